from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import AccessLevel

from .models import GlobalSetting

User = get_user_model()


class GlobalSettingsViewTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("sitesettings:settings")
        self.admin = User.objects.create_user(
            email="admin@example.com", password="pass1234", access_level=AccessLevel.ADMIN
        )

    def test_get_returns_map(self):
        GlobalSetting.objects.create(key="primary_color", value="#830738")
        GlobalSetting.objects.create(key="contact_phone", value="510-655-3030")

        response = self.client.get(self.url)

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"primary_color": "#830738", "contact_phone": "510-655-3030"})

    def test_post_upserts_by_key(self):
        self.client.force_authenticate(self.admin)

        response = self.client.post(self.url, {"key": "sandbox_mode", "value": "true"}, format="json")
        self.assertEqual(response.data, {"key": "sandbox_mode", "value": "true"})

        self.client.post(self.url, {"key": "sandbox_mode", "value": "false"}, format="json")
        self.assertEqual(GlobalSetting.objects.count(), 1)
        self.assertEqual(GlobalSetting.objects.get(key="sandbox_mode").value, "false")

    def test_post_requires_admin(self):
        response = self.client.post(self.url, {"key": "primary_color", "value": "#000"}, format="json")
        self.assertIn(response.status_code, (401, 403))

        customer = User.objects.create_user(email="c@example.com", password="x", access_level=AccessLevel.MEMBER)
        self.client.force_authenticate(customer)
        response = self.client.post(self.url, {"key": "primary_color", "value": "#000"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertFalse(GlobalSetting.objects.exists())

    def test_post_validates_key(self):
        self.client.force_authenticate(self.admin)
        response = self.client.post(self.url, {"value": "orphan"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_default_fixture(self):
        call_command("loaddata", "default_settings", verbosity=0)
        settings_map = GlobalSetting.as_dict()
        self.assertEqual(settings_map["primary_color"], "#830738")
        self.assertEqual(settings_map["sandbox_mode"], "true")
