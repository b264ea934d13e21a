# backend/content/models.py
from django.core.exceptions import ValidationError
from django.db import models

from .blocks import decode_content, validate_blocks


class Page(models.Model):
    """
    A slugged page built from an ordered list of typed blocks.

    ``content`` holds ``[{"id": ..., "type": ..., "content": {...}}]`` and is
    always replaced wholesale on save.
    """

    slug = models.SlugField(unique=True, max_length=255)
    title = models.CharField(max_length=255)
    content = models.JSONField(
        default=list,
        blank=True,
        help_text="Ordered list of blocks: {id, type, content}.",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-updated_at", "-id"]
        verbose_name = "Page"
        verbose_name_plural = "Pages"

    def __str__(self) -> str:
        return self.title or self.slug

    def clean(self):
        try:
            self.content = validate_blocks(decode_content(self.content))
        except ValueError as exc:
            raise ValidationError({"content": str(exc)})
        except ValidationError as exc:
            raise ValidationError({"content": exc.messages})

    @property
    def block_count(self) -> int:
        return len(self.content or [])
