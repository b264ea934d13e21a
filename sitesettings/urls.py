from django.urls import path

from .views import GlobalSettingsView

app_name = "sitesettings"

urlpatterns = [
    path("", GlobalSettingsView.as_view(), name="settings"),
]
