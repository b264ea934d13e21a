# backend/accounts/admin.py
from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as DjangoUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(DjangoUserAdmin):
    """
    Custom admin for our custom User model.
    Adds access_level to the standard Django user admin.
    """

    fieldsets = DjangoUserAdmin.fieldsets + (
        ("Storefront Access", {"fields": ("access_level",)}),
    )

    add_fieldsets = (
        (None, {
            "classes": ("wide",),
            "fields": ("email", "username", "password1", "password2", "access_level"),
        }),
    )

    list_display = ("email", "username", "access_level", "is_staff", "is_superuser")
    list_filter = ("access_level", "is_staff", "is_superuser")
    ordering = ("email",)
