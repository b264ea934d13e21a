# backend/config/urls.py
from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path

from content.views import PublicPageView

urlpatterns = [
    path("", lambda r: HttpResponse("API is running")),
    path("admin/", admin.site.urls),

    path("api/auth/", include("accounts.urls", namespace="accounts")),
    path("api/navigation/", include("navigation.urls", namespace="navigation")),
    path("api/", include("content.urls", namespace="content")),
    path("api/settings/", include("sitesettings.urls", namespace="sitesettings")),
    path("api/search/", include("catalog.urls", namespace="catalog")),
    path("api/uploads/", include("uploads.urls", namespace="uploads")),

    # Server-rendered CMS pages
    path("pages/<slug:slug>/", PublicPageView.as_view(), name="public_page"),
]

if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
