from rest_framework import serializers, status
from rest_framework.decorators import action
from rest_framework.exceptions import NotFound
from rest_framework.throttling import ScopedRateThrottle

from apps.base.exceptions import ConflictError
from apps.base.response import ApiResponse
from apps.base.viewset import BaseViewSet
from apps.employee.models import Employee
from apps.employee.repository import EmployeeConstraintError
from apps.employee.serializers import (
    BulkCreateEmployeeSerializer,
    BulkDeleteEmployeeSerializer,
    EmployeeQuerySerializer,
    EmployeeReportSerializer,
    EmployeeSerializer,
    EmployeeWriteSerializer,
)
from apps.employee.services import EmployeeService
from apps.employee.tasks import (
    bulk_create_employees,
    bulk_delete_employees,
    generate_employee_report,
)

RECENT_LIMIT_MAX = 50


def _query_flag(request, name):
    value = request.query_params.get(name)
    if value in (None, ""):
        return False
    try:
        return serializers.BooleanField().to_internal_value(value)
    except serializers.ValidationError as e:
        raise serializers.ValidationError({name: e.detail})


class EmployeeViewSet(BaseViewSet):
    queryset = Employee.objects.select_related("department", "detail")
    serializer_class = EmployeeSerializer
    entity_name = "Employee"
    throttle_scope = "employee-list"

    def initial(self, request, *args, **kwargs):
        super().initial(request, *args, **kwargs)
        self.service = EmployeeService()

    def get_throttles(self):
        if self.action == "list":
            return [ScopedRateThrottle()]
        return super().get_throttles()

    def get_serializer_class(self):
        if self.action in ["create", "update", "partial_update"]:
            return EmployeeWriteSerializer
        if self.action == "bulk_create":
            return BulkCreateEmployeeSerializer
        if self.action == "bulk_delete":
            return BulkDeleteEmployeeSerializer
        if self.action == "reports":
            return EmployeeReportSerializer
        return EmployeeSerializer

    def _not_found(self):
        return NotFound(f"{self.entity_name} not found.")

    #   ============ CRUD   =

    def list(self, request, *args, **kwargs):
        params = EmployeeQuerySerializer.canonical(request.query_params)
        payload = self.service.list_employees(params)
        return ApiResponse.success(
            message=f"{self.entity_name} list retrieved successfully",
            data=payload["data"],
            meta=payload["meta"],
        )

    def retrieve(self, request, pk=None, *args, **kwargs):
        data = self.service.get_employee(
            pk, include_deleted=_query_flag(request, "include_deleted")
        )
        if data is None:
            raise self._not_found()
        return ApiResponse.success(
            message=f"{self.entity_name} retrieved successfully", data=data
        )

    def create(self, request, *args, **kwargs):
        serializer = EmployeeWriteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = self.service.create_employee(*serializer.split_validated_data())

        return ApiResponse.success(
            message=f"{self.entity_name} created successfully",
            data=data,
            status=status.HTTP_201_CREATED,
        )

    def update(self, request, pk=None, *args, **kwargs):
        partial = kwargs.pop("partial", False)
        employee = self.service.repository.find_by_id(pk)
        if employee is None:
            raise self._not_found()

        serializer = EmployeeWriteSerializer(employee, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        data = self.service.update_employee(pk, *serializer.split_validated_data())
        if data is None:
            raise self._not_found()

        return ApiResponse.success(
            message=f"{self.entity_name} updated successfully", data=data
        )

    def destroy(self, request, pk=None, *args, **kwargs):
        if not self.service.delete_employee(pk):
            raise self._not_found()
        return ApiResponse.no_content()

    #   ============ SOFT DELETE   =

    @action(detail=False, methods=["get"])
    def trashed(self, request):
        params = EmployeeQuerySerializer.canonical(request.query_params)
        params["only_deleted"] = True
        payload = self.service.list_employees(params)
        return ApiResponse.success(
            message=f"Deleted {self.entity_name.lower()} list retrieved successfully",
            data=payload["data"],
            meta=payload["meta"],
        )

    @action(detail=True, methods=["post"])
    def restore(self, request, pk=None):
        try:
            data = self.service.restore_employee(pk)
        except EmployeeConstraintError as e:
            raise ConflictError(e.message)
        if data is None:
            raise self._not_found()

        return ApiResponse.success(
            message=f"{self.entity_name} restored successfully", data=data
        )

    @action(detail=True, methods=["delete"])
    def force_delete(self, request, pk=None):
        if not self.service.force_delete_employee(pk):
            raise self._not_found()
        return ApiResponse.no_content()

    #   ============ DASHBOARD   =

    @action(detail=False, methods=["get"])
    def statistics(self, request):
        return ApiResponse.success(
            message="Department statistics retrieved successfully",
            data=self.service.department_statistics(),
        )

    @action(detail=False, methods=["get"])
    def recent(self, request):
        limit = serializers.IntegerField(
            min_value=1, max_value=RECENT_LIMIT_MAX
        ).run_validation(request.query_params.get("limit", 5))
        return ApiResponse.success(
            message=f"Recent {self.entity_name.lower()}s retrieved successfully",
            data=self.service.recent_employees(limit=limit),
        )

    #   ============ BATCH JOBS   =

    @action(detail=False, methods=["post"])
    def bulk_create(self, request):
        serializer = BulkCreateEmployeeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        records = serializer.validated_data["employees"]
        task = bulk_create_employees.delay(records)

        return ApiResponse.success(
            message=f"Bulk creation of {len(records)} employees queued",
            data={"task_id": task.id, "count": len(records)},
            status=status.HTTP_202_ACCEPTED,
        )

    @action(detail=False, methods=["post"])
    def bulk_delete(self, request):
        serializer = BulkDeleteEmployeeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = [str(pk) for pk in serializer.validated_data["ids"]]
        force = serializer.validated_data["force"]
        task = bulk_delete_employees.delay(ids, force)

        return ApiResponse.success(
            message=f"Bulk deletion of {len(ids)} employees queued",
            data={"task_id": task.id, "count": len(ids), "force": force},
            status=status.HTTP_202_ACCEPTED,
        )

    @action(detail=False, methods=["post"])
    def reports(self, request):
        serializer = EmployeeReportSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        report_type = serializer.validated_data["report_type"]
        filters = EmployeeQuerySerializer.canonical(serializer.validated_data["filters"])
        user_id = getattr(request.user, "pk", None)
        task = generate_employee_report.delay(report_type, filters, user_id)

        return ApiResponse.success(
            message=f"{report_type} report generation queued",
            data={"task_id": task.id, "report_type": report_type},
            status=status.HTTP_202_ACCEPTED,
        )
