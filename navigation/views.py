# backend/navigation/views.py
import logging

from django.core.exceptions import ObjectDoesNotExist
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import generics, status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import AdminOnly

from . import services
from .models import NavigationItem
from .serializers import (
    BulkReorderSerializer,
    MoveSerializer,
    NavigationItemSerializer,
    NavigationNodeSerializer,
)
from .tree import TreeDepthError

logger = logging.getLogger(__name__)

VALID_SCOPES = {choice for choice, _ in NavigationItem.SCOPE_CHOICES}


def get_scope(request):
    scope = request.query_params.get("scope") or NavigationItem.SCOPE_HEADER
    if scope not in VALID_SCOPES:
        raise ValidationError({"scope": f"Unknown navigation scope '{scope}'."})
    return scope


class NavigationTreeView(APIView):
    """
    Nested, active-only navigation for the storefront.

    Frontend usage:
      GET /api/navigation/tree/?scope=header
      GET /api/navigation/tree/?scope=footer
    """

    permission_classes = [AllowAny]

    def get(self, request):
        scope = get_scope(request)
        try:
            tree = services.tree_for_scope(scope)
        except TreeDepthError:
            logger.exception("Navigation tree for %s is too deep", scope)
            return Response(
                {"detail": "Failed to fetch navigation tree"},
                status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            )
        return Response(NavigationNodeSerializer(tree, many=True).data)


class NavigationAllView(generics.ListAPIView):
    """Flat list for the admin editor, inactive items included."""

    serializer_class = NavigationItemSerializer
    permission_classes = [AdminOnly]
    pagination_class = None

    def get_queryset(self):
        return NavigationItem.objects.filter(scope=get_scope(self.request)).order_by(
            "position", "id"
        )


class NavigationItemCreateView(generics.CreateAPIView):
    queryset = NavigationItem.objects.all()
    serializer_class = NavigationItemSerializer
    permission_classes = [AdminOnly]

    def perform_create(self, serializer):
        item = serializer.save()
        logger.info("Created navigation item %s (%s)", item.pk, item.type)


class NavigationItemDetailView(generics.RetrieveUpdateDestroyAPIView):
    queryset = NavigationItem.objects.all()
    serializer_class = NavigationItemSerializer
    permission_classes = [AdminOnly]

    def perform_destroy(self, instance):
        services.delete_item(instance)

    def destroy(self, request, *args, **kwargs):
        super().destroy(request, *args, **kwargs)
        return Response({"success": True})


class BulkReorderView(APIView):
    """
    PUT /api/navigation/reorder/bulk/
    Body: { "items": [{ "id": 1, "position": 0, "parentId": null }, ...] }
    """

    permission_classes = [AdminOnly]

    def put(self, request):
        serializer = BulkReorderSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            services.bulk_reorder(serializer.get_updates())
        except ObjectDoesNotExist as exc:
            raise NotFound(str(exc))
        except DjangoValidationError as exc:
            raise ValidationError({"items": exc.messages})
        return Response({"success": True})


class MoveView(APIView):
    """
    PUT /api/navigation/reorder/move/
    Body: { "activeId": 4, "overId": 7, "scope": "header", "expanded": [1, 2] }
    """

    permission_classes = [AdminOnly]

    def put(self, request):
        serializer = MoveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            result = services.move_item(
                data["scope"], data["activeId"], data["overId"], data["expanded"]
            )
        except ObjectDoesNotExist as exc:
            raise NotFound(str(exc))
        except DjangoValidationError as exc:
            raise ValidationError({"detail": exc.messages})

        if result is None:
            return Response({"success": True, "moved": False, "items": []})

        items = [
            {"id": entry["id"], "position": entry["position"], "parentId": entry["parent_id"]}
            for entry in result.updates
        ]
        return Response({"success": True, "moved": True, "items": items})
