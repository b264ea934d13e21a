# backend/content/serializers.py
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers
from rest_framework.validators import UniqueValidator

from .blocks import decode_content, validate_blocks
from .models import Page


class BlockContentField(serializers.Field):
    """Page content, accepted as a JSON string or a list and returned as a list."""

    default_error_messages = {
        "invalid": "Content must be a list of blocks or a JSON string encoding one.",
    }

    def to_internal_value(self, data):
        try:
            items = decode_content(data)
        except ValueError:
            self.fail("invalid")
        try:
            return validate_blocks(items)
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.messages)

    def to_representation(self, value):
        try:
            return decode_content(value)
        except ValueError:
            return []


class PageSerializer(serializers.ModelSerializer):
    slug = serializers.SlugField(
        max_length=255,
        validators=[
            UniqueValidator(
                queryset=Page.objects.all(),
                message="A page with this slug already exists.",
            )
        ],
    )
    content = BlockContentField(required=False)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Page
        fields = ["id", "slug", "title", "content", "createdAt", "updatedAt"]
