import logging

from django.db import transaction

from apps.base.exceptions import ConflictError
from apps.department.models import Department
from apps.department.serializers import DepartmentSerializer
from apps.employee.cache import employee_cache

logger = logging.getLogger(__name__)


def list_departments():
    def compute():
        queryset = Department.objects.order_by("name", "id")
        return [dict(row) for row in DepartmentSerializer(queryset, many=True).data]

    return employee_cache.remember_departments(compute)


def delete_department(department):
    """Delete ``department`` unless a non-deleted employee still references it."""
    with transaction.atomic():
        locked = Department.objects.select_for_update().get(pk=department.pk)
        live_employees = locked.employees.count()
        if live_employees:
            logger.info(
                f"Refusing to delete department {locked.pk}: {live_employees} employees assigned"
            )
            raise ConflictError(
                f"Cannot delete department with {live_employees} assigned employees."
            )
        locked.delete()
