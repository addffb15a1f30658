from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from . import views

router = DefaultRouter()
router.register(r"protocols", views.ProtocolViewSet, basename="protocol")
router.register(r"applications", views.ApplicationViewSet, basename="application")
router.register(r"application-answers", views.ApplicationAnswerViewSet, basename="application-answer")
router.register(r"users", views.UserViewSet, basename="user")

urlpatterns = [
    path("health", views.healthcheck, name="healthcheck"),
    path("token", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("token/refresh", TokenRefreshView.as_view(), name="token_refresh"),
    path("", include(router.urls)),
]
