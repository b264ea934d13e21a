from django.contrib.auth import get_user_model
from django.test import SimpleTestCase, TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient, APIRequestFactory

from .models import AccessLevel, has_min_access
from .permissions import AdminOnly, AdminOrReadOnly

User = get_user_model()


class AccessLevelTests(SimpleTestCase):
    def test_ordering(self):
        self.assertTrue(has_min_access(AccessLevel.OWNER, AccessLevel.ADMIN))
        self.assertTrue(has_min_access(AccessLevel.ADMIN, AccessLevel.ADMIN))
        self.assertFalse(has_min_access(AccessLevel.MEMBER, AccessLevel.ADMIN))
        self.assertFalse(has_min_access(None, AccessLevel.VISITOR))
        self.assertTrue(has_min_access(None, None))
        self.assertFalse(has_min_access("root", AccessLevel.VISITOR))


class PermissionTests(TestCase):
    def setUp(self):
        self.factory = APIRequestFactory()

    def request(self, method, user=None):
        request = getattr(self.factory, method)("/")
        request.user = user
        return request

    def test_admin_only(self):
        admin = User.objects.create_user(email="a@example.com", password="x", access_level=AccessLevel.ADMIN)
        member = User.objects.create_user(email="m@example.com", password="x", access_level=AccessLevel.MEMBER)

        self.assertTrue(AdminOnly().has_permission(self.request("get", admin), None))
        self.assertFalse(AdminOnly().has_permission(self.request("get", member), None))

    def test_admin_or_read_only(self):
        member = User.objects.create_user(email="m@example.com", password="x", access_level=AccessLevel.MEMBER)

        self.assertTrue(AdminOrReadOnly().has_permission(self.request("get", member), None))
        self.assertFalse(AdminOrReadOnly().has_permission(self.request("post", member), None))


class AuthApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(
            email="Owner@Example.com", password="pass1234", access_level=AccessLevel.ADMIN
        )

    def test_login_and_me(self):
        response = self.client.post(
            reverse("accounts:token_obtain_pair"),
            {"email": "Owner@example.com", "password": "pass1234"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("refresh", response.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access']}")
        me = self.client.get(reverse("accounts:me"))

        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data["email"], "Owner@example.com")
        self.assertTrue(me.data["isAdmin"])
        self.assertEqual(me.data["access_level_label"], "Administrator")

    def test_bad_password(self):
        response = self.client.post(
            reverse("accounts:token_obtain_pair"),
            {"email": "Owner@example.com", "password": "wrong"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        self.assertEqual(self.client.get(reverse("accounts:me")).status_code, status.HTTP_401_UNAUTHORIZED)

    def test_superuser_is_owner(self):
        owner = User.objects.create_superuser(email="boss@example.com", password="x")
        self.assertEqual(owner.access_level, AccessLevel.OWNER)
        self.assertTrue(owner.is_site_admin)
        self.assertEqual(owner.username, "boss@example.com")
        self.assertTrue(owner.is_staff and owner.is_superuser)

    def test_email_is_required_and_normalized(self):
        with self.assertRaises(ValueError):
            User.objects.create_user(email="", password="x")

        user = User.objects.create_user(email="Print@EXAMPLE.com", password="x", username="printer")
        self.assertEqual(user.email, "Print@example.com")
        self.assertEqual(user.username, "printer")
        self.assertEqual(user.access_level, AccessLevel.VISITOR)
        self.assertFalse(user.is_site_admin)
