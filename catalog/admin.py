from django.contrib import admin

from .models import Product, Service


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "slug", "base_price", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "slug", "description")
    list_editable = ("base_price", "is_active")
    prepopulated_fields = {"slug": ("name",)}


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ("title", "slug", "icon", "is_active")
    list_filter = ("is_active",)
    search_fields = ("title", "slug", "description")
    list_editable = ("is_active",)
    prepopulated_fields = {"slug": ("title",)}
