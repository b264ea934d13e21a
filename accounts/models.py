# backend/accounts/models.py
from django.contrib.auth.models import AbstractUser, UserManager
from django.db import models
from django.utils.translation import gettext_lazy as _


class AccessLevel(models.TextChoices):
    OWNER = "owner", "Owner"
    ADMIN = "admin", "Administrator"
    MEMBER = "member", "Customer"
    VISITOR = "visitor", "Visitor"


# Higher rank includes every permission of the lower ones.
ACCESS_RANK = {
    level: rank
    for rank, level in enumerate(
        (AccessLevel.VISITOR, AccessLevel.MEMBER, AccessLevel.ADMIN, AccessLevel.OWNER)
    )
}


def has_min_access(user_access: str | None, required: str | None) -> bool:
    """True when ``user_access`` ranks at or above ``required``; no requirement means public."""
    if not required:
        return True
    if user_access not in ACCESS_RANK or required not in ACCESS_RANK:
        return False
    return ACCESS_RANK[user_access] >= ACCESS_RANK[required]


class EmailUserManager(UserManager):
    """Customers and staff sign in with their email; ``username`` mirrors it unless given."""

    use_in_migrations = True

    def _create_user(self, email, password, **extra_fields):
        if not email:
            raise ValueError("An email address is required")
        email = self.normalize_email(email)
        extra_fields["username"] = extra_fields.get("username") or email
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        # superusers run the Django admin and own the storefront
        extra_fields.update(is_staff=True, is_superuser=True)
        extra_fields.setdefault("access_level", AccessLevel.OWNER)
        return self._create_user(email, password, **extra_fields)


class User(AbstractUser):
    username = models.CharField(_("username"), max_length=150, blank=True)
    email = models.EmailField(_("email address"), unique=True)
    access_level = models.CharField(
        max_length=32,
        choices=AccessLevel.choices,
        default=AccessLevel.VISITOR,
    )

    EMAIL_FIELD = "email"
    USERNAME_FIELD = "email"
    REQUIRED_FIELDS: list[str] = []

    objects = EmailUserManager()

    def __str__(self) -> str:
        return self.email or self.username or f"User {self.pk}"

    @property
    def is_site_admin(self) -> bool:
        return has_min_access(self.access_level, AccessLevel.ADMIN)
