"""
Data access for employees.

Every query joins the employee with its detail row so that the detail fields
(designation, salary, joined_date) can be filtered and sorted on alongside
the identity fields. Lists are always ordered by the requested column first
and by the employee id second, which keeps pagination stable when the primary
column has duplicates.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional

from django.core.paginator import EmptyPage, Paginator
from django.db import IntegrityError, transaction
from django.db.models import Avg, Count, Max, Min, Q
from django.db.models.functions import TruncMonth
from django.utils import timezone

from apps.base import constants
from apps.base.exceptions import ConstraintViolationError
from apps.employee.custom_filters import EmployeeFilter
from apps.employee.models import Employee, EmployeeDetail

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    constants.SORT_NAME: "name",
    constants.SORT_EMAIL: "email",
    constants.SORT_JOINED_DATE: "detail__joined_date",
    constants.SORT_SALARY: "detail__salary",
}

SALARY_RANGES = [
    ("0-30,000", Decimal("0"), Decimal("30000")),
    ("30,001-50,000", Decimal("30000.01"), Decimal("50000")),
    ("50,001-75,000", Decimal("50000.01"), Decimal("75000")),
    ("75,001-100,000", Decimal("75000.01"), Decimal("100000")),
    ("100,001-125,000", Decimal("100000.01"), Decimal("125000")),
    ("Over 125,000", Decimal("125000.01"), None),
]


class EmployeeConstraintError(ConstraintViolationError):
    pass


@dataclass
class EmployeePage:
    items: List[Employee] = field(default_factory=list)
    total: int = 0
    current_page: int = 1
    per_page: int = constants.DEFAULT_PAGE_SIZE

    @property
    def last_page(self):
        return max(math.ceil(self.total / self.per_page), 1)

    @property
    def meta(self):
        return {
            "total": self.total,
            "current_page": self.current_page,
            "last_page": self.last_page,
            "per_page": self.per_page,
        }


# Any UUID spelling is accepted; cache keys always use the canonical form.
def parse_employee_id(employee_id):
    if isinstance(employee_id, uuid.UUID):
        return employee_id
    try:
        return uuid.UUID(str(employee_id))
    except (TypeError, ValueError):
        return None


def _constraint_error(exc):
    message = str(exc).lower()
    if "email" in message or "unique_active_employee_email" in message:
        return EmployeeConstraintError("The email has already been taken.", field="email")
    if "foreign key" in message or "department" in message:
        return EmployeeConstraintError(
            "The selected department does not exist.", field="department_id"
        )
    return EmployeeConstraintError("The employee could not be saved.")


class EmployeeRepository:

    def base_queryset(self, include_deleted=False, only_deleted=False):
        if only_deleted:
            queryset = Employee.objects.deleted_only()
        elif include_deleted:
            queryset = Employee.objects.with_deleted()
        else:
            queryset = Employee.objects.all()
        return queryset.select_related("department", "detail").filter(
            detail__isnull=False
        )

    def filtered_queryset(self, params):
        queryset = self.base_queryset(
            include_deleted=params.get("include_deleted", False),
            only_deleted=params.get("only_deleted", False),
        )
        filter_data = {
            "search": params.get("search") or None,
            "department_id": params.get("department_id"),
            "min_salary": params.get("min_salary"),
            "max_salary": params.get("max_salary"),
        }
        return EmployeeFilter(data=filter_data, queryset=queryset).qs

    def ordered_queryset(self, params):
        sort_by = params.get("sort_by") or constants.SORT_NAME
        sort_dir = params.get("sort_dir") or constants.SORT_ASC
        column = SORT_COLUMNS.get(sort_by, SORT_COLUMNS[constants.SORT_NAME])
        if sort_dir == constants.SORT_DESC:
            column = f"-{column}"
        return self.filtered_queryset(params).order_by(column, "id")

    def list_employees(self, params) -> EmployeePage:
        page_number = int(params.get("page") or 1)
        per_page = int(params.get("per_page") or constants.DEFAULT_PAGE_SIZE)

        paginator = Paginator(self.ordered_queryset(params), per_page)
        try:
            items = list(paginator.page(page_number).object_list)
        except EmptyPage:
            items = []

        return EmployeePage(
            items=items,
            total=paginator.count,
            current_page=page_number,
            per_page=per_page,
        )

    def find_by_id(self, employee_id, include_deleted=False) -> Optional[Employee]:
        pk = parse_employee_id(employee_id)
        if pk is None:
            return None
        return self.base_queryset(include_deleted=include_deleted).filter(pk=pk).first()

    def create(self, employee_data, detail_data) -> Employee:
        try:
            with transaction.atomic():
                employee = Employee.objects.create(**employee_data)
                EmployeeDetail.objects.create(employee=employee, **detail_data)
        except IntegrityError as exc:
            logger.warning(f"Employee creation rejected by a constraint: {exc}")
            raise _constraint_error(exc) from exc

        return self.find_by_id(employee.pk)

    def update(self, employee_id, employee_data, detail_data) -> Optional[Employee]:
        pk = parse_employee_id(employee_id)
        if pk is None:
            return None

        try:
            with transaction.atomic():
                employee = Employee.objects.select_for_update().filter(pk=pk).first()
                if employee is None:
                    return None

                for attr, value in employee_data.items():
                    setattr(employee, attr, value)
                employee.save()

                detail = EmployeeDetail.objects.select_for_update().get(employee=employee)
                for attr, value in detail_data.items():
                    setattr(detail, attr, value)
                detail.save()
        except IntegrityError as exc:
            logger.warning(f"Employee {pk} update rejected by a constraint: {exc}")
            raise _constraint_error(exc) from exc

        return self.find_by_id(pk)

    def delete(self, employee_id) -> bool:
        employee = self.find_by_id(employee_id)
        if employee is None:
            return False

        with transaction.atomic():
            employee.delete()
        return True

    def restore(self, employee_id) -> Optional[Employee]:
        pk = parse_employee_id(employee_id)
        if pk is None:
            return None
        employee = Employee.objects.deleted_only().filter(pk=pk).first()
        if employee is None:
            return None

        try:
            with transaction.atomic():
                employee.restore()
        except IntegrityError as exc:
            raise _constraint_error(exc) from exc
        return self.find_by_id(pk)

    def force_delete(self, employee_id) -> bool:
        pk = parse_employee_id(employee_id)
        if pk is None:
            return False
        employee = Employee.all_objects.filter(pk=pk).first()
        if employee is None:
            return False

        with transaction.atomic():
            employee.force_delete()
        return True

    #   ============ BATCH OPERATIONS   =

    def existing_emails(self, emails):
        return set(
            Employee.objects.filter(email__in=[e.lower() for e in emails]).values_list(
                "email", flat=True
            )
        )

    def existing_department_ids(self, department_ids):
        from apps.department.models import Department

        return set(Department.objects.filter(pk__in=department_ids).values_list("id", flat=True))

    def create_many(self, records):
        """Create employee+detail pairs in one transaction; returns the count."""
        created = 0
        with transaction.atomic():
            for record in records:
                employee = Employee.objects.create(
                    name=record["name"],
                    email=record["email"].lower(),
                    department_id=record["department_id"],
                )
                EmployeeDetail.objects.create(
                    employee=employee,
                    designation=record["designation"],
                    salary=record["salary"],
                    address=record["address"],
                    joined_date=record["joined_date"],
                )
                created += 1
        return created

    def soft_delete_many(self, employee_ids):
        ids = [pk for pk in map(parse_employee_id, employee_ids) if pk is not None]
        with transaction.atomic():
            return Employee.objects.filter(pk__in=ids).update(
                deleted_at=timezone.now()
            )

    def force_delete_many(self, employee_ids):
        ids = [pk for pk in map(parse_employee_id, employee_ids) if pk is not None]
        with transaction.atomic():
            _, per_model = Employee.all_objects.filter(pk__in=ids).delete()
        return per_model.get(Employee._meta.label, 0)

    def purge_deleted_before(self, cutoff, chunk_size=1000):
        """Hard delete employees soft-deleted before ``cutoff``, chunk by chunk."""
        ids = list(
            Employee.objects.deleted_only()
            .filter(deleted_at__lt=cutoff)
            .values_list("id", flat=True)
        )
        if not ids:
            logger.info("No old deleted employee records found to purge")
            return 0

        logger.info(f"Found {len(ids)} old deleted employee records to purge")
        purged = 0
        for start in range(0, len(ids), chunk_size):
            chunk = ids[start:start + chunk_size]
            with transaction.atomic():
                _, per_model = Employee.all_objects.filter(
                    pk__in=chunk, deleted_at__lt=cutoff
                ).delete()
            purged += per_model.get(Employee._meta.label, 0)
        return purged

    #   ============ STATISTICS   =

    def department_statistics(self):
        from apps.department.models import Department

        live = Q(employees__deleted_at__isnull=True, employees__detail__isnull=False)
        rows = (
            Department.objects.annotate(
                employee_count=Count("employees", filter=live),
                average_salary=Avg("employees__detail__salary", filter=live),
                min_salary=Min("employees__detail__salary", filter=live),
                max_salary=Max("employees__detail__salary", filter=live),
            )
            .order_by("name")
            .values(
                "id",
                "name",
                "employee_count",
                "average_salary",
                "min_salary",
                "max_salary",
            )
        )
        return list(rows)

    def recent_employees(self, limit=5):
        return list(
            self.base_queryset().order_by("-detail__joined_date", "id")[:limit]
        )

    def count(self):
        return Employee.objects.filter(detail__isnull=False).count()

    def salary_distribution(self):
        queryset = EmployeeDetail.objects.filter(employee__deleted_at__isnull=True)
        total = queryset.count()
        rows = []
        for label, minimum, maximum in SALARY_RANGES:
            in_range = queryset.filter(salary__gte=minimum)
            if maximum is not None:
                in_range = in_range.filter(salary__lte=maximum)
            count = in_range.count()
            percentage = (count / total) * 100 if total else 0
            rows.append({"range": label, "count": count, "percentage": percentage})
        return rows

    def joining_trends(self):
        return list(
            EmployeeDetail.objects.filter(employee__deleted_at__isnull=True)
            .annotate(month=TruncMonth("joined_date"))
            .values("month")
            .annotate(count=Count("employee"))
            .order_by("month")
        )

    def iter_for_export(self, params=None, chunk_size=1000):
        params = params or {}
        queryset = self.filtered_queryset(params).order_by("name", "id")
        return queryset.iterator(chunk_size=chunk_size)
