from django.urls import include, path
from rest_framework.routers import DefaultRouter

from apps.department import views

router = DefaultRouter()

router.register(r"departments", views.DepartmentViewSet, basename="department")

urlpatterns = [
    path("", include(router.urls)),
]
