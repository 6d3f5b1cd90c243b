"""URL configuration for tourdesk project."""

from django.contrib import admin
from django.urls import path

urlpatterns = [
    # Back-office admin screens
    path("admin/", admin.site.urls),
]
