# backend/sitesettings/serializers.py
from rest_framework import serializers


class GlobalSettingSerializer(serializers.Serializer):
    key = serializers.CharField(max_length=100)
    value = serializers.CharField(allow_blank=True, trim_whitespace=False)
