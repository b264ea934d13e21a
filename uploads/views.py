# backend/uploads/views.py
import logging
import os
import uuid

from django.core.files.storage import default_storage
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

logger = logging.getLogger(__name__)

ARTWORK_DIR = "artwork"


def artwork_name(original_name):
    """Unique storage name that keeps the original extension."""
    _, ext = os.path.splitext(original_name or "")
    return f"{ARTWORK_DIR}/{uuid.uuid4().hex}{ext.lower()}"


class ArtworkUploadView(APIView):
    """
    POST /api/uploads/artwork/   multipart, one or more "files"
    -> { "files": [{ "name", "url", "type" }, ...] }
    """

    permission_classes = [AllowAny]
    parser_classes = [MultiPartParser, FormParser]

    def post(self, request):
        files = request.FILES.getlist("files")
        if not files:
            return Response({"detail": "No files uploaded"}, status=status.HTTP_400_BAD_REQUEST)

        uploaded = []
        for f in files:
            name = default_storage.save(artwork_name(f.name), f)
            uploaded.append({
                "name": f.name,
                "url": default_storage.url(name),
                "type": f.content_type,
            })
        logger.info("Stored %s artwork file(s)", len(uploaded))
        return Response({"files": uploaded})
