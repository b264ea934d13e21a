import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="NavigationItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("label", models.CharField(max_length=255)),
                (
                    "url",
                    models.CharField(
                        blank=True,
                        help_text="Route or external URL, e.g. '/deals' or 'https://example.com'.",
                        max_length=512,
                        null=True,
                    ),
                ),
                (
                    "type",
                    models.CharField(
                        choices=[
                            ("utility", "Utility Bar Link"),
                            ("main", "Main Category"),
                            ("mega-category", "Mega Menu Category"),
                            ("mega-item", "Mega Menu Item"),
                            ("promo", "Promotional Block"),
                            ("footer-brand", "Brand Section"),
                            ("footer-column", "Footer Column"),
                            ("footer-link", "Footer Link"),
                            ("footer-newsletter", "Newsletter"),
                        ],
                        default="main",
                        max_length=32,
                    ),
                ),
                ("position", models.IntegerField(default=0)),
                ("icon", models.CharField(blank=True, max_length=64, null=True)),
                ("image_url", models.CharField(blank=True, max_length=1024, null=True)),
                (
                    "description",
                    models.TextField(
                        blank=True,
                        help_text="Free text. Footer links use 'icon-phone', 'icon-mail' or 'icon-map' to pick an icon.",
                        null=True,
                    ),
                ),
                ("badge", models.CharField(blank=True, max_length=32, null=True)),
                ("is_active", models.BooleanField(default=True)),
                (
                    "scope",
                    models.CharField(
                        choices=[("header", "Header"), ("footer", "Footer")],
                        default="header",
                        max_length=16,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "parent",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="children",
                        to="navigation.navigationitem",
                    ),
                ),
            ],
            options={
                "verbose_name": "Navigation Item",
                "verbose_name_plural": "Navigation Items",
                "ordering": ["scope", "position", "id"],
                "indexes": [
                    models.Index(fields=["scope", "parent", "position"], name="nav_scope_parent_position_idx"),
                ],
            },
        ),
    ]
