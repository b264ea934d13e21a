# backend/navigation/urls.py
from django.urls import path

from .views import (
    BulkReorderView,
    MoveView,
    NavigationAllView,
    NavigationItemCreateView,
    NavigationItemDetailView,
    NavigationTreeView,
)

app_name = "navigation"

urlpatterns = [
    path("", NavigationItemCreateView.as_view(), name="item_create"),
    path("tree/", NavigationTreeView.as_view(), name="tree"),
    path("all/", NavigationAllView.as_view(), name="all"),
    path("reorder/bulk/", BulkReorderView.as_view(), name="reorder_bulk"),
    path("reorder/move/", MoveView.as_view(), name="reorder_move"),
    path("<int:pk>/", NavigationItemDetailView.as_view(), name="item_detail"),
]
