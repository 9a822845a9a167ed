from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from apps.base import constants
from apps.base.validators import BaseValidator, EmployeeValidator
from apps.department.models import Department
from apps.department.serializers import DepartmentMiniSerializer
from apps.employee.models import Employee

EMPLOYEE_FIELDS = ["name", "email", "department"]
DETAIL_FIELDS = ["designation", "salary", "address", "joined_date"]


#   ======= EMPLOYEE QUERY SERIALIZER   ============


class EmployeeQuerySerializer(serializers.Serializer):
    """Validates list query strings into a canonical parameter dict.

    Every field carries a default so that omitted parameters and explicit
    defaults produce the same dict and therefore the same cache key.
    """

    page = serializers.IntegerField(min_value=1, default=1)
    per_page = serializers.IntegerField(
        min_value=1, max_value=constants.MAX_PAGE_SIZE, default=constants.DEFAULT_PAGE_SIZE
    )
    search = serializers.CharField(
        max_length=255, allow_blank=True, required=False, default=""
    )
    department_id = serializers.IntegerField(min_value=1, allow_null=True, default=None)
    min_salary = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, allow_null=True, default=None
    )
    max_salary = serializers.DecimalField(
        max_digits=12, decimal_places=2, min_value=0, allow_null=True, default=None
    )
    sort_by = serializers.ChoiceField(
        choices=constants.SORT_FIELDS, default=constants.SORT_NAME
    )
    sort_dir = serializers.ChoiceField(
        choices=constants.SORT_DIRECTIONS, default=constants.SORT_ASC
    )
    include_deleted = serializers.BooleanField(default=False)

    def to_internal_value(self, data):
        # Empty query string values mean "not given".
        if hasattr(data, "dict"):
            data = data.dict()
        data = {key: value for key, value in dict(data).items() if value not in ("", None)}
        return super().to_internal_value(data)

    def validate(self, attrs):
        try:
            BaseValidator.validate_range(
                attrs.get("min_salary"), attrs.get("max_salary"), "Salary"
            )
        except DjangoValidationError as e:
            raise serializers.ValidationError({"max_salary": e.messages})
        return attrs

    @classmethod
    def canonical(cls, data):
        """Validated params with JSON friendly values, ready for cache keys."""
        serializer = cls(data=data)
        serializer.is_valid(raise_exception=True)
        params = dict(serializer.validated_data)
        params["search"] = params["search"].strip()
        for key in ("min_salary", "max_salary"):
            if params[key] is not None:
                params[key] = str(params[key])
        return params


#   ======= EMPLOYEE WRITE SERIALIZER   ============


class EmployeeWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(max_length=255)
    department_id = serializers.PrimaryKeyRelatedField(
        queryset=Department.objects.all(), source="department"
    )
    designation = serializers.CharField(max_length=255)
    salary = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    address = serializers.CharField(max_length=255)
    joined_date = serializers.DateField()

    def validate_email(self, value):
        exclude_pk = self.instance.pk if self.instance else None
        return EmployeeValidator.validate_unique_email(value, exclude_pk=exclude_pk)

    def validate_joined_date(self, value):
        return BaseValidator.validate_past_date(value, "Joined date")

    def split_validated_data(self):
        """Return ``(employee_fields, detail_fields)`` from the validated data."""
        data = self.validated_data
        employee_fields = {key: data[key] for key in EMPLOYEE_FIELDS if key in data}
        detail_fields = {key: data[key] for key in DETAIL_FIELDS if key in data}
        return employee_fields, detail_fields


#   ======= EMPLOYEE SERIALIZER   ============


class EmployeeSerializer(serializers.ModelSerializer):
    department = DepartmentMiniSerializer(read_only=True)
    designation = serializers.CharField(source="detail.designation", read_only=True)
    salary = serializers.DecimalField(
        source="detail.salary",
        max_digits=12,
        decimal_places=2,
        coerce_to_string=False,
        read_only=True,
    )
    address = serializers.CharField(source="detail.address", read_only=True)
    joined_date = serializers.DateField(source="detail.joined_date", read_only=True)

    class Meta:
        model = Employee
        fields = [
            "id",
            "name",
            "email",
            "department",
            "designation",
            "salary",
            "address",
            "joined_date",
            "created_at",
            "updated_at",
            "deleted_at",
        ]
        read_only_fields = fields


class EmployeeMiniSerializer(serializers.ModelSerializer):
    department = serializers.CharField(source="department.name", read_only=True)
    designation = serializers.CharField(source="detail.designation", read_only=True)
    joined_date = serializers.DateField(source="detail.joined_date", read_only=True)

    class Meta:
        model = Employee
        fields = ["id", "name", "email", "department", "designation", "joined_date"]


#   ======= BATCH JOB SERIALIZERS   ============


class BulkCreateEmployeeSerializer(serializers.Serializer):
    employees = serializers.ListField(
        child=serializers.DictField(), allow_empty=False, max_length=10000
    )

    def validate_employees(self, records):
        cleaned, errors = [], {}
        for index, record in enumerate(records):
            # Uniqueness is re-checked by the job, which skips taken emails.
            serializer = BulkEmployeeRecordSerializer(data=record)
            if serializer.is_valid():
                cleaned.append(serializer.to_job_payload())
            else:
                errors[index] = serializer.errors
        if errors:
            raise serializers.ValidationError(errors)
        return cleaned


class BulkEmployeeRecordSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(max_length=255)
    department_id = serializers.IntegerField(min_value=1)
    designation = serializers.CharField(max_length=255)
    salary = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    address = serializers.CharField(max_length=255)
    joined_date = serializers.DateField()

    def validate_department_id(self, value):
        if not Department.objects.filter(pk=value).exists():
            raise serializers.ValidationError("The selected department does not exist.")
        return value

    def validate_joined_date(self, value):
        return BaseValidator.validate_past_date(value, "Joined date")

    def to_job_payload(self):
        """Celery payloads are JSON, so decimals and dates travel as strings."""
        data = dict(self.validated_data)
        data["email"] = data["email"].lower()
        data["salary"] = str(data["salary"])
        data["joined_date"] = data["joined_date"].isoformat()
        return data


class BulkDeleteEmployeeSerializer(serializers.Serializer):
    ids = serializers.ListField(
        child=serializers.UUIDField(format="hex_verbose"), allow_empty=False
    )
    force = serializers.BooleanField(default=False)


class EmployeeReportSerializer(serializers.Serializer):
    report_type = serializers.ChoiceField(
        choices=constants.REPORT_TYPES, default=constants.REPORT_FULL
    )
    filters = serializers.DictField(required=False, default=dict)
