"""
Glue between the employee viewset, the cache layer and the repository.

Reads go through ``EmployeeCache``; every write goes to the repository first
and invalidates the affected cache namespaces once it has committed.
"""

import logging

from apps.employee.cache import (
    DEPARTMENT_STATISTICS_KEY,
    RECENT_EMPLOYEES_KEY,
    EmployeeCache,
    employee_cache,
)
from apps.employee.repository import EmployeeRepository, parse_employee_id
from apps.employee.serializers import (
    EmployeeMiniSerializer,
    EmployeeQuerySerializer,
    EmployeeSerializer,
)

logger = logging.getLogger(__name__)


class EmployeeService:

    def __init__(self, repository=None, cache: EmployeeCache = None):
        self.repository = repository or EmployeeRepository()
        self.cache = cache or employee_cache

    #   ============ READS   =

    def compute_page(self, params):
        page = self.repository.list_employees(params)
        return {
            "data": [dict(row) for row in EmployeeSerializer(page.items, many=True).data],
            "meta": page.meta,
        }

    def list_employees(self, params):
        """``params`` must be the canonical dict from ``EmployeeQuerySerializer``."""
        if params.get("include_deleted") or params.get("only_deleted"):
            return self.compute_page(params)
        return self.cache.remember_list(params, lambda: self.compute_page(params))

    def get_employee(self, employee_id, include_deleted=False):
        pk = parse_employee_id(employee_id)
        if pk is None:
            return None

        def compute():
            employee = self.repository.find_by_id(pk, include_deleted=include_deleted)
            if employee is None:
                return None
            return dict(EmployeeSerializer(employee).data)

        if include_deleted:
            return compute()
        return self.cache.remember_entity(pk, compute)

    def department_statistics(self):
        return self.cache.remember_stats(
            DEPARTMENT_STATISTICS_KEY, self.repository.department_statistics
        )

    def recent_employees(self, limit=5):
        def compute():
            employees = self.repository.recent_employees(limit=limit)
            return [dict(row) for row in EmployeeMiniSerializer(employees, many=True).data]

        return self.cache.remember_stats(f"{RECENT_EMPLOYEES_KEY}:{limit}", compute)

    #   ============ WRITES   =

    def create_employee(self, employee_fields, detail_fields):
        employee = self.repository.create(employee_fields, detail_fields)
        self.cache.invalidate_entity(employee.pk)
        logger.info(f"Employee {employee.pk} created")
        return dict(EmployeeSerializer(employee).data)

    def update_employee(self, employee_id, employee_fields, detail_fields):
        employee = self.repository.update(employee_id, employee_fields, detail_fields)
        if employee is None:
            return None
        self.cache.invalidate_entity(employee.pk)
        logger.info(f"Employee {employee.pk} updated")
        return dict(EmployeeSerializer(employee).data)

    def delete_employee(self, employee_id):
        pk = parse_employee_id(employee_id)
        if pk is None or not self.repository.delete(pk):
            return False
        self.cache.invalidate_entity(pk)
        logger.info(f"Employee {pk} soft deleted")
        return True

    def restore_employee(self, employee_id):
        employee = self.repository.restore(employee_id)
        if employee is None:
            return None
        self.cache.invalidate_entity(employee.pk)
        logger.info(f"Employee {employee.pk} restored")
        return dict(EmployeeSerializer(employee).data)

    def force_delete_employee(self, employee_id):
        pk = parse_employee_id(employee_id)
        if pk is None or not self.repository.force_delete(pk):
            return False
        self.cache.invalidate_entity(pk)
        logger.info(f"Employee {pk} permanently deleted")
        return True

    #   ============ MAINTENANCE   =

    def warm_up(self):
        return self.cache.warm_up(EmployeeQuerySerializer.canonical, self.compute_page)
