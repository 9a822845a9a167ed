"""
Background jobs for employees.

Every job works in fixed size chunks and commits each chunk in its own
transaction, so a failure leaves earlier chunks applied and a retry picks up
from there. Jobs never raise to a caller; they log and hand the failure to
Celery's retry policy.
"""

import csv
import logging
import os
import uuid
from datetime import timedelta
from decimal import Decimal
from pathlib import Path

from celery import Task, shared_task
from django.conf import settings
from django.core.files import File
from django.core.files.storage import default_storage
from django.core.management import call_command
from django.utils import timezone

from apps.base import constants
from apps.department.services import list_departments
from apps.employee.cache import DEPARTMENT_STATISTICS_KEY, employee_cache
from apps.employee.repository import EmployeeRepository, parse_employee_id
from apps.employee.services import EmployeeService

logger = logging.getLogger(__name__)

BULK_CREATE_CHUNK_SIZE = 100
BULK_DELETE_CHUNK_SIZE = 1000
PURGE_CHUNK_SIZE = 1000
EXPORT_CHUNK_SIZE = 1000

FULL_REPORT_HEADER = [
    "ID",
    "Name",
    "Email",
    "Department",
    "Designation",
    "Salary",
    "Address",
    "Joined Date",
    "Created At",
]


class EmployeeJob(Task):
    """Shared base: logs jobs that ran out of attempts."""

    def on_failure(self, exc, task_id, args, kwargs, einfo):
        logger.error(
            f"{self.name} [{task_id}] failed permanently after "
            f"{self.request.retries + 1} attempts: {exc}"
        )


def _chunks(items, size):
    for start in range(0, len(items), size):
        yield items[start:start + size]


#   ============ BULK OPERATIONS   =


@shared_task(
    bind=True,
    base=EmployeeJob,
    queue=constants.EMPLOYEE_OPERATIONS_QUEUE,
    max_retries=2,
    time_limit=600,
    soft_time_limit=570,
)
def bulk_create_employees(self, records):
    repository = EmployeeRepository()
    created = skipped = 0
    try:
        for chunk in _chunks(records, BULK_CREATE_CHUNK_SIZE):
            taken = repository.existing_emails([record["email"] for record in chunk])
            departments = repository.existing_department_ids(
                {record["department_id"] for record in chunk}
            )
            pending, seen = [], set()
            for record in chunk:
                email = record["email"].lower()
                if email in taken or email in seen:
                    skipped += 1
                    continue
                if record["department_id"] not in departments:
                    logger.warning(
                        f"Skipping {email}: department {record['department_id']} no longer exists"
                    )
                    skipped += 1
                    continue
                seen.add(email)
                pending.append(
                    {
                        **record,
                        "email": email,
                        "salary": Decimal(str(record["salary"])),
                    }
                )
            created += repository.create_many(pending)
            logger.info(f"Bulk create chunk committed: {len(pending)} employees")
    except Exception as exc:
        logger.error(f"Bulk employee creation failed after {created} records: {exc}")
        raise self.retry(exc=exc)
    finally:
        if created:
            employee_cache.invalidate_all()

    logger.info(f"Bulk employee creation finished: {created} created, {skipped} skipped")
    return {"created": created, "skipped": skipped}


@shared_task(
    bind=True,
    base=EmployeeJob,
    queue=constants.DESTRUCTIVE_OPERATIONS_QUEUE,
    max_retries=2,
    time_limit=3600,
    soft_time_limit=3570,
)
def bulk_delete_employees(self, employee_ids, force=False):
    repository = EmployeeRepository()
    delete_chunk = repository.force_delete_many if force else repository.soft_delete_many
    deleted = 0
    try:
        ids = [pk for pk in map(parse_employee_id, employee_ids) if pk is not None]
        for chunk in _chunks(ids, BULK_DELETE_CHUNK_SIZE):
            deleted += delete_chunk(chunk)
            employee_cache.invalidate_entities(chunk)
    except Exception as exc:
        logger.error(f"Bulk employee deletion failed after {deleted} records: {exc}")
        raise self.retry(exc=exc)

    logger.info(
        f"Bulk employee deletion finished: {deleted} {'force' if force else 'soft'} deleted"
    )
    return {"deleted": deleted, "force": force}


#   ============ MAINTENANCE   =


@shared_task(
    bind=True,
    base=EmployeeJob,
    queue=constants.MAINTENANCE_QUEUE,
    max_retries=2,
    time_limit=1800,
    soft_time_limit=1770,
)
def sync_employee_data(self):
    repository = EmployeeRepository()
    try:
        logger.info("Starting employee data synchronization")

        cutoff = timezone.now() - timedelta(days=settings.SOFT_DELETE_RETENTION_DAYS)
        purged = repository.purge_deleted_before(cutoff, chunk_size=PURGE_CHUNK_SIZE)
        employee_cache.invalidate_all()

        statistics = repository.department_statistics()
        employee_cache.put_stats(DEPARTMENT_STATISTICS_KEY, statistics)
        logger.info(f"Department statistics updated for {len(statistics)} departments")

        list_departments()
        EmployeeService(repository=repository).recent_employees()
        logger.info("Employee caches rebuilt")
    except Exception as exc:
        logger.error(f"Employee data synchronization failed: {exc}")
        raise self.retry(exc=exc)

    logger.info("Employee data synchronization completed")
    return {"departments": len(statistics), "purged": purged}


@shared_task(
    bind=True,
    base=EmployeeJob,
    queue=constants.MAINTENANCE_QUEUE,
    max_retries=0,
    time_limit=600,
    soft_time_limit=570,
)
def warm_query_cache(self):
    warmed = EmployeeService().warm_up()
    logger.info(f"Query cache warmed with {warmed} entries")
    return warmed


@shared_task(
    bind=True,
    base=EmployeeJob,
    queue=constants.MAINTENANCE_QUEUE,
    max_retries=0,
    time_limit=3600,
    soft_time_limit=3570,
)
def optimize_database(self):
    call_command("optimize_database")
    return "Database optimization completed"


#   ============ REPORTS   =


def _full_report_rows(repository, filters):
    yield FULL_REPORT_HEADER
    for employee in repository.iter_for_export(filters, chunk_size=EXPORT_CHUNK_SIZE):
        detail = employee.detail
        yield [
            employee.id,
            employee.name,
            employee.email,
            employee.department.name,
            detail.designation,
            detail.salary,
            detail.address,
            detail.joined_date.isoformat(),
            employee.created_at.isoformat(),
        ]


def _department_summary_rows(repository, filters):
    yield ["Department", "Employee Count", "Average Salary", "Min Salary", "Max Salary"]
    for row in repository.department_statistics():
        average = row["average_salary"]
        yield [
            row["name"],
            row["employee_count"],
            f"{average:.2f}" if average is not None else "0.00",
            row["min_salary"] or 0,
            row["max_salary"] or 0,
        ]


def _salary_distribution_rows(repository, filters):
    yield ["Salary Range", "Employee Count", "Percentage"]
    for row in repository.salary_distribution():
        yield [row["range"], row["count"], f"{row['percentage']:.2f}%"]


def _joining_trends_rows(repository, filters):
    yield ["Month", "New Employees"]
    for row in repository.joining_trends():
        yield [row["month"].strftime("%Y-%m"), row["count"]]


REPORT_BUILDERS = {
    constants.REPORT_FULL: _full_report_rows,
    constants.REPORT_DEPARTMENT_SUMMARY: _department_summary_rows,
    constants.REPORT_SALARY_DISTRIBUTION: _salary_distribution_rows,
    constants.REPORT_JOINING_TRENDS: _joining_trends_rows,
}


@shared_task(
    bind=True,
    base=EmployeeJob,
    queue=constants.EMPLOYEE_REPORTS_QUEUE,
    max_retries=1,
    time_limit=900,
    soft_time_limit=870,
)
def generate_employee_report(self, report_type=constants.REPORT_FULL, filters=None, user_id=None):
    build_rows = REPORT_BUILDERS.get(report_type, _full_report_rows)
    timestamp = timezone.now().strftime("%Y-%m-%d_%H-%M-%S")
    filename = f"employee_report_{report_type}_{timestamp}_{uuid.uuid4().hex[:8]}.csv"

    temp_dir = Path(settings.REPORT_TEMP_DIR)
    temp_dir.mkdir(parents=True, exist_ok=True)
    temp_path = temp_dir / filename

    try:
        logger.info(f"Generating {report_type} employee report")
        with open(temp_path, "w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            for row in build_rows(EmployeeRepository(), filters or {}):
                writer.writerow(row)

        with open(temp_path, "rb") as handle:
            stored_path = default_storage.save(
                f"{settings.REPORT_STORAGE_DIR}/{filename}", File(handle)
            )
    except Exception as exc:
        logger.error(f"Employee report generation failed: {exc}")
        raise self.retry(exc=exc)
    finally:
        if temp_path.exists():
            os.remove(temp_path)

    if user_id is not None:
        logger.info(f"Report {stored_path} is ready for user {user_id}")
    logger.info(f"Employee report generated: {stored_path}")
    return stored_path
