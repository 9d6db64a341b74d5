"""
URL configuration for user authentication.
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from .views import CurrentUserView, TelegramAuthView

app_name = "users"

urlpatterns = [
    path("auth/telegram/", TelegramAuthView.as_view(), name="telegram-auth"),
    path("auth/me/", CurrentUserView.as_view(), name="current-user"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
]
