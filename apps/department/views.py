from rest_framework import status

from apps.base.response import ApiResponse
from apps.base.viewset import BaseViewSet
from apps.department import services
from apps.department.models import Department
from apps.department.serializers import DepartmentSerializer


class DepartmentViewSet(BaseViewSet):
    queryset = Department.objects.all().order_by("name", "id")
    serializer_class = DepartmentSerializer
    entity_name = "Department"
    pagination_class = None

    def list(self, request, *args, **kwargs):
        return ApiResponse.success(
            message=f"{self.entity_name} list retrieved successfully",
            data=services.list_departments(),
            status=status.HTTP_200_OK,
        )

    def perform_destroy(self, instance):
        services.delete_department(instance)
