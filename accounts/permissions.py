# backend/accounts/permissions.py
from rest_framework.permissions import SAFE_METHODS, BasePermission

from .models import AccessLevel, has_min_access


class HasMinAccessLevel(BasePermission):
    """
    Usage:
        permission_classes = [HasMinAccessLevel.with_level("admin")]
    """
    required_level = None

    def has_permission(self, request, view):
        user_access = getattr(request.user, "access_level", None)
        return has_min_access(user_access, self.required_level)

    @classmethod
    def with_level(cls, level: str):
        class _Perm(cls):
            required_level = level
        return _Perm


AdminOnly = HasMinAccessLevel.with_level(AccessLevel.ADMIN)


class AdminOrReadOnly(HasMinAccessLevel):
    """Anyone may read; writes need the admin access level."""

    required_level = AccessLevel.ADMIN

    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().has_permission(request, view)
