# backend/sitesettings/models.py
from django.db import models


class GlobalSetting(models.Model):
    """Site-wide key/value setting (footer text, contact details, theme color...)."""

    key = models.CharField(max_length=100, primary_key=True)
    value = models.TextField(blank=True, default="")
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["key"]
        verbose_name = "Global Setting"
        verbose_name_plural = "Global Settings"

    def __str__(self) -> str:
        return self.key

    @classmethod
    def as_dict(cls):
        return dict(cls.objects.values_list("key", "value"))
