# backend/navigation/models.py
from django.core.exceptions import ValidationError
from django.db import models

from .tree import descendant_ids


class NavigationItem(models.Model):
    SCOPE_HEADER = "header"
    SCOPE_FOOTER = "footer"

    SCOPE_CHOICES = [
        (SCOPE_HEADER, "Header"),
        (SCOPE_FOOTER, "Footer"),
    ]

    TYPE_UTILITY = "utility"
    TYPE_MAIN = "main"
    TYPE_MEGA_CATEGORY = "mega-category"
    TYPE_MEGA_ITEM = "mega-item"
    TYPE_PROMO = "promo"
    TYPE_FOOTER_BRAND = "footer-brand"
    TYPE_FOOTER_COLUMN = "footer-column"
    TYPE_FOOTER_LINK = "footer-link"
    TYPE_FOOTER_NEWSLETTER = "footer-newsletter"

    TYPE_CHOICES = [
        (TYPE_UTILITY, "Utility Bar Link"),
        (TYPE_MAIN, "Main Category"),
        (TYPE_MEGA_CATEGORY, "Mega Menu Category"),
        (TYPE_MEGA_ITEM, "Mega Menu Item"),
        (TYPE_PROMO, "Promotional Block"),
        (TYPE_FOOTER_BRAND, "Brand Section"),
        (TYPE_FOOTER_COLUMN, "Footer Column"),
        (TYPE_FOOTER_LINK, "Footer Link"),
        (TYPE_FOOTER_NEWSLETTER, "Newsletter"),
    ]

    # Item types offered per scope in the admin editor.
    SCOPE_TYPES = {
        SCOPE_HEADER: (
            TYPE_UTILITY,
            TYPE_MAIN,
            TYPE_MEGA_CATEGORY,
            TYPE_MEGA_ITEM,
            TYPE_PROMO,
        ),
        SCOPE_FOOTER: (
            TYPE_FOOTER_BRAND,
            TYPE_FOOTER_COLUMN,
            TYPE_FOOTER_LINK,
            TYPE_FOOTER_NEWSLETTER,
        ),
    }

    # Types that may act as a parent, per scope.
    ALLOWED_PARENT_TYPES = {
        SCOPE_HEADER: (TYPE_MAIN, TYPE_MEGA_CATEGORY),
        SCOPE_FOOTER: (TYPE_FOOTER_COLUMN,),
    }

    # Footer links pick their contact icon from these description markers.
    FOOTER_ICON_MARKERS = ("icon-phone", "icon-mail", "icon-map")

    label = models.CharField(max_length=255)
    url = models.CharField(
        max_length=512,
        blank=True,
        null=True,
        help_text="Route or external URL, e.g. '/deals' or 'https://example.com'.",
    )
    type = models.CharField(max_length=32, choices=TYPE_CHOICES, default=TYPE_MAIN)

    parent = models.ForeignKey(
        "self",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="children",
    )
    position = models.IntegerField(default=0)

    icon = models.CharField(max_length=64, blank=True, null=True)
    image_url = models.CharField(max_length=1024, blank=True, null=True)
    description = models.TextField(
        blank=True,
        null=True,
        help_text="Free text. Footer links use 'icon-phone', 'icon-mail' or 'icon-map' to pick an icon.",
    )
    badge = models.CharField(max_length=32, blank=True, null=True)
    is_active = models.BooleanField(default=True)
    scope = models.CharField(max_length=16, choices=SCOPE_CHOICES, default=SCOPE_HEADER)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["scope", "position", "id"]
        indexes = [
            models.Index(fields=["scope", "parent", "position"], name="nav_scope_parent_position_idx"),
        ]
        verbose_name = "Navigation Item"
        verbose_name_plural = "Navigation Items"

    def __str__(self) -> str:
        return f"{self.label} ({self.type}, {self.scope})"

    @classmethod
    def allowed_parent_types(cls, scope: str) -> tuple:
        return cls.ALLOWED_PARENT_TYPES.get(scope, ())

    @classmethod
    def allowed_types(cls, scope: str) -> tuple:
        return cls.SCOPE_TYPES.get(scope, ())

    @classmethod
    def placement_errors(cls, scope, item_type, parent, item_id=None) -> dict:
        """Scope/type/parent rule violations keyed by model field name."""
        if item_type not in cls.allowed_types(scope):
            return {"type": f"'{item_type}' items are not allowed in the {scope} navigation."}
        if parent is None:
            return {}
        if parent.scope != scope:
            return {"parent": "Parent belongs to a different navigation scope."}
        if parent.type not in cls.allowed_parent_types(scope):
            return {"parent": f"'{parent.type}' items cannot have children."}
        if item_id is not None:
            rows = cls.objects.filter(scope=scope).values("id", "parent_id")
            if parent.pk == item_id or parent.pk in descendant_ids(rows, item_id):
                return {"parent": "An item cannot be moved under itself."}
        return {}

    def clean(self):
        errors = self.placement_errors(self.scope, self.type, self.parent, self.pk)
        if errors:
            raise ValidationError(errors)
