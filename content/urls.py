# backend/content/urls.py
from django.urls import path

from .views import BlockRegistryView, PageDetailView, PageListCreateView

app_name = "content"

urlpatterns = [
    path("pages/", PageListCreateView.as_view(), name="page_list"),
    path("pages/<str:key>/", PageDetailView.as_view(), name="page_detail"),
    path("blocks/", BlockRegistryView.as_view(), name="block_registry"),
]
