# backend/accounts/serializers.py
from django.contrib.auth import get_user_model
from rest_framework import serializers
from rest_framework_simplejwt.serializers import TokenObtainPairSerializer

User = get_user_model()


class EmailTokenObtainPairSerializer(TokenObtainPairSerializer):
    username_field = User.EMAIL_FIELD
    default_error_messages = {
        "no_active_account": "Unable to log in with that email and password.",
    }

    @classmethod
    def get_token(cls, user):
        token = super().get_token(user)
        token["access_level"] = user.access_level
        return token


class UserSerializer(serializers.ModelSerializer):
    access_level_label = serializers.CharField(
        source="get_access_level_display", read_only=True
    )
    isAdmin = serializers.BooleanField(source="is_site_admin", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "first_name",
            "last_name",
            "access_level",
            "access_level_label",
            "isAdmin",
        ]
        read_only_fields = fields
