from django.core.files.storage import default_storage
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from .views import artwork_name


class ArtworkUploadTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.url = reverse("uploads:artwork")

    def test_upload_files(self):
        files = [
            SimpleUploadedFile("logo.PNG", b"\x89PNG fake", content_type="image/png"),
            SimpleUploadedFile("proof.pdf", b"%PDF-1.4", content_type="application/pdf"),
        ]

        response = self.client.post(self.url, {"files": files}, format="multipart")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        uploaded = response.data["files"]
        self.assertEqual([f["name"] for f in uploaded], ["logo.PNG", "proof.pdf"])
        self.assertEqual([f["type"] for f in uploaded], ["image/png", "application/pdf"])
        self.assertTrue(uploaded[0]["url"].startswith("/uploads/artwork/"))
        self.assertTrue(uploaded[0]["url"].endswith(".png"))

        stored = uploaded[1]["url"].removeprefix("/uploads/")
        self.assertTrue(default_storage.exists(stored))

    def test_no_files(self):
        response = self.client.post(self.url, {}, format="multipart")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"detail": "No files uploaded"})

    def test_names_are_unique(self):
        self.assertNotEqual(artwork_name("a.pdf"), artwork_name("a.pdf"))
        self.assertTrue(artwork_name("noext").startswith("artwork/"))
