# backend/catalog/serializers.py
from rest_framework import serializers

from .models import Product, Service


class ProductSearchSerializer(serializers.ModelSerializer):
    imageUrl = serializers.CharField(source="image_url", read_only=True)
    basePrice = serializers.DecimalField(
        source="base_price", max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True
    )

    class Meta:
        model = Product
        fields = ["id", "name", "slug", "imageUrl", "basePrice"]


class ServiceSearchSerializer(serializers.ModelSerializer):
    imageUrl = serializers.CharField(source="image_url", read_only=True)

    class Meta:
        model = Service
        fields = ["id", "title", "slug", "imageUrl", "icon"]
