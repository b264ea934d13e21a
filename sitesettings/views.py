# backend/sitesettings/views.py
import logging

from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.permissions import AdminOrReadOnly

from .models import GlobalSetting
from .serializers import GlobalSettingSerializer

logger = logging.getLogger(__name__)


class GlobalSettingsView(APIView):
    """
    GET  /api/settings/  -> { "primary_color": "#830738", ... }
    POST /api/settings/  { "key": "...", "value": "..." }  (upsert, admin only)
    """

    permission_classes = [AdminOrReadOnly]

    def get(self, request):
        return Response(GlobalSetting.as_dict())

    def post(self, request):
        serializer = GlobalSettingSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        setting, created = GlobalSetting.objects.update_or_create(
            key=serializer.validated_data["key"],
            defaults={"value": serializer.validated_data["value"]},
        )
        logger.info("%s setting %s", "Created" if created else "Updated", setting.key)
        return Response({"key": setting.key, "value": setting.value})
