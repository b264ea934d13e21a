# backend/catalog/views.py
import logging

from django.conf import settings
from django.db.models import Q
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from .models import Product, Service
from .serializers import ProductSearchSerializer, ServiceSearchSerializer

logger = logging.getLogger(__name__)


class SearchView(APIView):
    """
    GET /api/search/?q=cards
    -> { "products": [...], "services": [...] }
    """

    permission_classes = [AllowAny]

    def get(self, request):
        query = (request.query_params.get("q") or "").strip()
        if len(query) < settings.SEARCH_MIN_QUERY_LENGTH:
            return Response({"products": [], "services": []})

        products = Product.objects.filter(
            Q(name__icontains=query) | Q(description__icontains=query) | Q(slug__icontains=query),
            is_active=True,
        )[: settings.SEARCH_PRODUCT_LIMIT]
        services = Service.objects.filter(
            Q(title__icontains=query) | Q(description__icontains=query) | Q(slug__icontains=query),
            is_active=True,
        )[: settings.SEARCH_SERVICE_LIMIT]

        logger.debug("Search %r", query)
        return Response({
            "products": ProductSearchSerializer(products, many=True).data,
            "services": ServiceSearchSerializer(services, many=True).data,
        })
