from django.urls import path

from .views import ArtworkUploadView

app_name = "uploads"

urlpatterns = [
    path("artwork/", ArtworkUploadView.as_view(), name="artwork"),
]
