# backend/content/views.py
import logging

from django.db import IntegrityError
from django.shortcuts import render
from django.views import View
from rest_framework import generics
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import AdminOrReadOnly

from .blocks import decode_content, describe_registry
from .models import Page
from .renderer import render_blocks
from .serializers import PageSerializer

logger = logging.getLogger(__name__)

DUPLICATE_SLUG_MESSAGE = "A page with this slug already exists."


def _save_unique(serializer):
    try:
        return serializer.save()
    except IntegrityError:
        # two writers raced past the unique validator
        raise ValidationError({"slug": [DUPLICATE_SLUG_MESSAGE]})


class PageListCreateView(generics.ListCreateAPIView):
    """
    GET  /api/pages/   newest first
    POST /api/pages/   { "slug", "title", "content": [...] or "[...]" }
    """

    queryset = Page.objects.order_by("-updated_at", "-id")
    serializer_class = PageSerializer
    permission_classes = [AdminOrReadOnly]
    pagination_class = None

    def perform_create(self, serializer):
        page = _save_unique(serializer)
        logger.info("Created page %s (%s)", page.pk, page.slug)


class PageDetailView(APIView):
    """
    GET    /api/pages/<slug>/
    PUT    /api/pages/<id>/
    DELETE /api/pages/<id>/
    """

    permission_classes = [AdminOrReadOnly]

    def get_by_id(self, key):
        try:
            return Page.objects.get(pk=int(key))
        except (ValueError, Page.DoesNotExist):
            raise NotFound("Page not found")

    def get(self, request, key):
        try:
            page = Page.objects.get(slug=key)
        except Page.DoesNotExist:
            raise NotFound("Page not found")
        return Response(PageSerializer(page).data)

    def put(self, request, key):
        page = self.get_by_id(key)
        serializer = PageSerializer(page, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        page = _save_unique(serializer)
        logger.info("Saved page %s with %s block(s)", page.pk, page.block_count)
        return Response(serializer.data)

    def delete(self, request, key):
        page = self.get_by_id(key)
        page_id = page.pk
        page.delete()
        logger.info("Deleted page %s", page_id)
        return Response({"success": True})


class BlockRegistryView(APIView):
    """Block types and their editable fields, for page editors."""

    permission_classes = [AllowAny]

    def get(self, request):
        return Response(describe_registry())


class PublicPageView(View):
    """Server-rendered page for the storefront."""

    def get(self, request, slug):
        try:
            page = Page.objects.get(slug=slug)
        except Page.DoesNotExist:
            return render(request, "content/page_not_found.html", {"slug": slug}, status=404)

        try:
            items = decode_content(page.content)
        except ValueError:
            logger.exception("Page %s has unreadable content", page.pk)
            items = []
        return render(request, "content/page.html", {"page": page, "body": render_blocks(items)})
