import csv
from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from apps.base.cache import QueryCache
from apps.employee.cache import (
    DEPARTMENT_LIST_NAMESPACE,
    DEPARTMENT_STATISTICS_KEY,
    EMPLOYEE_LIST_NAMESPACE,
    employee_cache,
)
from apps.employee.models import Employee
from apps.employee.repository import EmployeeRepository
from apps.employee.tasks import (
    EmployeeJob,
    bulk_create_employees,
    bulk_delete_employees,
    generate_employee_report,
    sync_employee_data,
    warm_query_cache,
)

pytestmark = pytest.mark.django_db


def job_record(department, email, **overrides):
    record = {
        "name": "Bulk Person",
        "email": email,
        "department_id": department.pk,
        "designation": "Analyst",
        "salary": "55000.00",
        "address": "9 Side St",
        "joined_date": "2022-06-01",
    }
    record.update(overrides)
    return record


def test_bulk_create_skips_taken_emails(department, make_employee):
    make_employee(email="taken@example.com")
    records = [
        job_record(department, "new1@example.com"),
        job_record(department, "TAKEN@example.com"),
        job_record(department, "new2@example.com"),
        job_record(department, "new1@example.com"),
    ]

    result = bulk_create_employees(records)

    assert result == {"created": 2, "skipped": 2}
    assert Employee.objects.count() == 3
    assert Employee.objects.get(email="new2@example.com").detail.designation == "Analyst"


def test_bulk_create_skips_records_of_missing_departments(department):
    records = [
        job_record(department, "kept@example.com"),
        job_record(department, "orphan@example.com", department_id=department.pk + 100),
    ]

    result = bulk_create_employees(records)

    assert result == {"created": 1, "skipped": 1}
    assert list(Employee.objects.values_list("email", flat=True)) == ["kept@example.com"]


def test_bulk_create_rerun_resumes_instead_of_failing(department):
    records = [job_record(department, f"user{index}@example.com") for index in range(5)]

    bulk_create_employees(records[:3])
    result = bulk_create_employees(records)

    assert result == {"created": 2, "skipped": 3}
    assert Employee.objects.count() == 5


def test_bulk_create_invalidates_list_cache(department):
    employee_cache.remember_list({"page": 1}, lambda: {"data": [], "meta": {}})

    bulk_create_employees([job_record(department, "fresh@example.com")])

    assert employee_cache.query_cache.registry.keys(EMPLOYEE_LIST_NAMESPACE) == set()


def test_bulk_create_failure_is_retried(department):
    with mock.patch.object(
        EmployeeRepository, "create_many", side_effect=RuntimeError("db down")
    ):
        with pytest.raises(RuntimeError):
            bulk_create_employees([job_record(department, "x@example.com")])

    assert Employee.objects.count() == 0


def test_bulk_soft_delete(make_employee):
    first, second, keep = make_employee(), make_employee(), make_employee()

    result = bulk_delete_employees([str(first.pk), str(second.pk)])

    assert result == {"deleted": 2, "force": False}
    assert list(Employee.objects.values_list("pk", flat=True)) == [keep.pk]
    assert Employee.all_objects.count() == 3


def test_bulk_force_delete(make_employee):
    first, keep = make_employee(), make_employee()
    first.delete()

    result = bulk_delete_employees([str(first.pk)], force=True)

    assert result == {"deleted": 1, "force": True}
    assert list(Employee.all_objects.values_list("pk", flat=True)) == [keep.pk]


def test_sync_purges_and_rebuilds_caches(make_employee):
    expired, recent = make_employee(), make_employee()
    now = timezone.now()
    Employee.all_objects.filter(pk=expired.pk).update(deleted_at=now - timedelta(days=31))
    Employee.all_objects.filter(pk=recent.pk).update(deleted_at=now - timedelta(days=1))
    make_employee()

    result = sync_employee_data()

    assert result == {"departments": 1, "purged": 1}
    assert Employee.all_objects.filter(pk=expired.pk).exists() is False
    assert Employee.all_objects.filter(pk=recent.pk).exists() is True
    stats = QueryCache().get(DEPARTMENT_STATISTICS_KEY)
    assert stats[0]["employee_count"] == 1
    assert len(employee_cache.query_cache.registry.keys(DEPARTMENT_LIST_NAMESPACE)) == 1


def test_warm_query_cache_task(make_employee):
    make_employee()

    assert warm_query_cache() == 18
    assert len(employee_cache.query_cache.registry.keys(EMPLOYEE_LIST_NAMESPACE)) == 18


@pytest.fixture
def report_storage(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / "media"
    settings.REPORT_TEMP_DIR = tmp_path / "temp"
    return tmp_path


def read_report(report_storage, stored_path):
    with open(report_storage / "media" / stored_path, newline="", encoding="utf-8") as handle:
        return list(csv.reader(handle))


def test_full_report_honours_filters(report_storage, make_employee):
    make_employee(name="Ann", designation="Engineer")
    make_employee(name="Bob", designation="Driver")

    stored_path = generate_employee_report("full", {"search": "engineer"}, user_id=7)

    assert stored_path.startswith("reports/employee_report_full_")
    rows = read_report(report_storage, stored_path)
    assert rows[0][:3] == ["ID", "Name", "Email"]
    assert [row[1] for row in rows[1:]] == ["Ann"]
    assert list((report_storage / "temp").iterdir()) == []


def test_salary_distribution_report(report_storage, make_employee):
    make_employee(salary="20000.00")
    make_employee(salary="140000.00")

    rows = read_report(report_storage, generate_employee_report("salary_distribution"))

    assert rows[0] == ["Salary Range", "Employee Count", "Percentage"]
    assert ["0-30,000", "1", "50.00%"] in rows
    assert ["Over 125,000", "1", "50.00%"] in rows


def test_department_summary_and_trends_reports(report_storage, make_employee):
    make_employee(salary="1000.00")

    summary = read_report(report_storage, generate_employee_report("department_summary"))
    trends = read_report(report_storage, generate_employee_report("joining_trends"))

    assert summary[1][:3] == ["Engineering", "1", "1000.00"]
    assert trends[1:] == [["2023-01", "1"]]


def test_report_failure_cleans_up_staging_file(report_storage, make_employee):
    make_employee()

    with mock.patch(
        "apps.employee.tasks.default_storage.save", side_effect=OSError("disk full")
    ):
        with pytest.raises(OSError):
            generate_employee_report("full")

    assert list((report_storage / "temp").iterdir()) == []


def test_permanent_failure_is_logged():
    assert isinstance(bulk_delete_employees._get_current_object(), EmployeeJob)

    with mock.patch("apps.employee.tasks.logger") as logger:
        bulk_delete_employees.on_failure(RuntimeError("boom"), "task-1", (), {}, None)

    message = logger.error.call_args[0][0]
    assert "task-1" in message
    assert "failed permanently" in message
