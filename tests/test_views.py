import uuid
from datetime import timedelta
from unittest import mock

import pytest
from django.utils import timezone

from apps.employee.models import Employee
from apps.employee.services import EmployeeService
from apps.employee.tasks import (
    bulk_create_employees,
    bulk_delete_employees,
    generate_employee_report,
)

pytestmark = pytest.mark.django_db


def test_example_scenario(api_client):
    response = api_client.post("/api/departments/", {"name": "Engineering"}, format="json")
    assert response.status_code == 201
    department_id = response.json()["data"]["id"]

    response = api_client.post(
        "/api/employees/",
        {
            "name": "Ann",
            "email": "ann@x.com",
            "department_id": department_id,
            "designation": "Eng",
            "salary": 90000,
            "address": "1 Main St",
            "joined_date": "2023-01-10",
        },
        format="json",
    )
    assert response.status_code == 201
    ann = response.json()["data"]
    assert ann["department"]["id"] == department_id
    assert ann["designation"] == "Eng"
    assert ann["salary"] == 90000
    assert ann["joined_date"] == "2023-01-10"

    response = api_client.get("/api/employees/?sort_by=salary&sort_dir=desc&per_page=15")
    assert response.status_code == 200
    assert [row["id"] for row in response.json()["data"]] == [ann["id"]]

    response = api_client.delete(f"/api/departments/{department_id}/")
    assert response.status_code == 409
    assert response.json()["success"] is False

    assert api_client.delete(f"/api/employees/{ann['id']}/").status_code == 204
    assert api_client.delete(f"/api/departments/{department_id}/").status_code == 204


#   ============ DEPARTMENTS   =


def test_department_list_is_a_plain_array(api_client, department, other_department):
    response = api_client.get("/api/departments/")

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert [row["name"] for row in body["data"]] == ["Engineering", "Finance"]
    assert "meta" not in body


def test_department_name_must_be_unique(api_client, department):
    response = api_client.post("/api/departments/", {"name": "engineering"}, format="json")

    assert response.status_code == 422
    assert "name" in response.json()["errors"]


def test_department_update_and_missing(api_client, department):
    response = api_client.put(
        f"/api/departments/{department.pk}/",
        {"name": "Engineering", "description": "Platform"},
        format="json",
    )
    assert response.status_code == 200
    assert response.json()["data"]["description"] == "Platform"

    assert api_client.get("/api/departments/999/").status_code == 404
    assert api_client.put("/api/departments/999/", {"name": "x"}, format="json").status_code == 404


def test_department_with_only_deleted_employees_can_be_deleted(api_client, make_employee, department):
    employee = make_employee()
    employee.delete()

    assert api_client.delete(f"/api/departments/{department.pk}/").status_code == 204
    assert Employee.all_objects.filter(pk=employee.pk).exists() is False


def test_department_change_invalidates_cached_lists(
    api_client, department, django_capture_on_commit_callbacks
):
    assert len(api_client.get("/api/departments/").json()["data"]) == 1

    with django_capture_on_commit_callbacks(execute=True):
        api_client.post("/api/departments/", {"name": "Legal"}, format="json")

    assert len(api_client.get("/api/departments/").json()["data"]) == 2


#   ============ EMPLOYEES   =


def test_list_meta(api_client, make_employee):
    for _ in range(3):
        make_employee()

    response = api_client.get("/api/employees/?per_page=2&page=2")

    body = response.json()
    assert response.status_code == 200
    assert len(body["data"]) == 1
    assert body["meta"] == {"total": 3, "current_page": 2, "last_page": 2, "per_page": 2}


@pytest.mark.parametrize(
    "query",
    ["per_page=500", "page=0", "sort_dir=sideways", "min_salary=10&max_salary=5"],
)
def test_list_rejects_bad_query(api_client, query):
    response = api_client.get(f"/api/employees/?{query}")

    assert response.status_code == 422
    assert response.json()["message"] == "Validation failed"


def test_list_ignores_empty_query_values(api_client, make_employee):
    make_employee()

    response = api_client.get("/api/employees/?search=&department_id=&min_salary=")

    assert response.status_code == 200
    assert response.json()["meta"]["total"] == 1


def test_list_reflects_writes_through_the_cache(api_client, make_employee, employee_payload):
    make_employee()
    assert api_client.get("/api/employees/").json()["meta"]["total"] == 1

    api_client.post("/api/employees/", employee_payload, format="json")

    assert api_client.get("/api/employees/").json()["meta"]["total"] == 2


def test_create_validation_errors(api_client, make_employee, employee_payload):
    make_employee(email="ann@x.com")
    payload = {
        **employee_payload,
        "salary": -1,
        "department_id": 999,
        "joined_date": (timezone.localdate() + timedelta(days=1)).isoformat(),
    }
    del payload["name"]

    response = api_client.post("/api/employees/", payload, format="json")

    assert response.status_code == 422
    errors = response.json()["errors"]
    assert set(errors) >= {"name", "email", "salary", "department_id", "joined_date"}
    assert Employee.all_objects.count() == 1


def test_retrieve_and_not_found(api_client, make_employee):
    employee = make_employee()

    response = api_client.get(f"/api/employees/{employee.pk}/")
    assert response.status_code == 200
    assert response.json()["data"]["email"] == employee.email

    assert api_client.get(f"/api/employees/{uuid.uuid4()}/").status_code == 404
    assert api_client.get("/api/employees/not-a-uuid/").status_code == 404


def test_update_keeps_own_email(api_client, make_employee, employee_payload):
    employee = make_employee(email="ann@x.com")

    response = api_client.put(
        f"/api/employees/{employee.pk}/", {**employee_payload, "salary": 120000}, format="json"
    )

    assert response.status_code == 200
    assert response.json()["data"]["salary"] == 120000
    assert api_client.get(f"/api/employees/{employee.pk}/").json()["data"]["salary"] == 120000


def test_update_rejects_email_of_another_employee(api_client, make_employee):
    make_employee(email="taken@example.com")
    employee = make_employee()

    response = api_client.patch(
        f"/api/employees/{employee.pk}/", {"email": "taken@example.com"}, format="json"
    )

    assert response.status_code == 422
    assert "email" in response.json()["errors"]


def test_update_missing_employee_is_404_before_validation(api_client):
    response = api_client.put(f"/api/employees/{uuid.uuid4()}/", {}, format="json")

    assert response.status_code == 404


def test_soft_delete_visibility(api_client, make_employee):
    employee = make_employee()
    api_client.get(f"/api/employees/{employee.pk}/")

    assert api_client.delete(f"/api/employees/{employee.pk}/").status_code == 204

    assert api_client.get(f"/api/employees/{employee.pk}/").status_code == 404
    assert api_client.get("/api/employees/").json()["meta"]["total"] == 0
    response = api_client.get(f"/api/employees/{employee.pk}/?include_deleted=true")
    assert response.status_code == 200
    assert response.json()["data"]["deleted_at"] is not None
    assert api_client.get("/api/employees/?include_deleted=true").json()["meta"]["total"] == 1
    assert api_client.delete(f"/api/employees/{employee.pk}/").status_code == 404


def test_uppercase_id_read_does_not_outlive_delete(api_client, make_employee):
    employee = make_employee()
    upper = str(employee.pk).upper()

    assert api_client.get(f"/api/employees/{upper}/").status_code == 200
    assert api_client.delete(f"/api/employees/{employee.pk}/").status_code == 204

    assert api_client.get(f"/api/employees/{upper}/").status_code == 404


def test_delete_with_uppercase_id_drops_cached_employee(api_client, make_employee):
    employee = make_employee()
    other = make_employee()
    api_client.get(f"/api/employees/{employee.pk}/")
    api_client.get(f"/api/employees/{other.pk}/")

    assert api_client.delete(f"/api/employees/{str(employee.pk).upper()}/").status_code == 204
    assert api_client.get(f"/api/employees/{employee.pk}/").status_code == 404

    response = api_client.delete(f"/api/employees/{str(other.pk).upper()}/force_delete/")
    assert response.status_code == 204
    assert api_client.get(f"/api/employees/{other.pk}/").status_code == 404


def test_trashed_restore_and_force_delete(api_client, make_employee):
    employee = make_employee()
    make_employee()
    api_client.delete(f"/api/employees/{employee.pk}/")

    trashed = api_client.get("/api/employees/trashed/").json()
    assert [row["id"] for row in trashed["data"]] == [str(employee.pk)]

    response = api_client.post(f"/api/employees/{employee.pk}/restore/")
    assert response.status_code == 200
    assert response.json()["data"]["deleted_at"] is None
    assert api_client.post(f"/api/employees/{employee.pk}/restore/").status_code == 404

    assert api_client.delete(f"/api/employees/{employee.pk}/force_delete/").status_code == 204
    assert Employee.all_objects.filter(pk=employee.pk).exists() is False
    assert api_client.delete(f"/api/employees/{employee.pk}/force_delete/").status_code == 404


def test_restore_conflict(api_client, make_employee):
    old = make_employee(email="same@example.com")
    old.delete()
    make_employee(email="same@example.com")

    response = api_client.post(f"/api/employees/{old.pk}/restore/")

    assert response.status_code == 409


def test_statistics_and_recent(api_client, make_employee):
    make_employee(salary="1000.00")
    make_employee(salary="3000.00")

    stats = api_client.get("/api/employees/statistics/").json()["data"]
    assert stats[0]["name"] == "Engineering"
    assert stats[0]["employee_count"] == 2

    recent = api_client.get("/api/employees/recent/?limit=1").json()["data"]
    assert len(recent) == 1
    assert api_client.get("/api/employees/recent/?limit=0").status_code == 422


def test_unexpected_error_is_a_generic_500(api_client):
    with mock.patch.object(
        EmployeeService, "list_employees", side_effect=RuntimeError("db exploded")
    ):
        response = api_client.get("/api/employees/")

    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["errors"] is None


def test_request_timing_header(api_client):
    response = api_client.get("/api/departments/")

    assert "X-Request-Duration-ms" in response


#   ============ BATCH JOBS   =


def test_bulk_create_queues_job(api_client, employee_payload):
    with mock.patch.object(bulk_create_employees, "delay") as delay:
        delay.return_value.id = "task-1"
        response = api_client.post(
            "/api/employees/bulk_create/",
            {"employees": [employee_payload, {**employee_payload, "email": "bo@x.com"}]},
            format="json",
        )

    assert response.status_code == 202
    assert response.json()["data"] == {"task_id": "task-1", "count": 2}
    records = delay.call_args[0][0]
    assert records[0]["salary"] == "90000.00"
    assert records[0]["joined_date"] == "2023-01-10"


def test_bulk_create_rejects_invalid_records(api_client, employee_payload):
    with mock.patch.object(bulk_create_employees, "delay") as delay:
        response = api_client.post(
            "/api/employees/bulk_create/",
            {"employees": [employee_payload, {**employee_payload, "department_id": 999}]},
            format="json",
        )

    assert response.status_code == 422
    assert delay.called is False


def test_bulk_delete_queues_job(api_client, make_employee):
    employee = make_employee()

    with mock.patch.object(bulk_delete_employees, "delay") as delay:
        delay.return_value.id = "task-2"
        response = api_client.post(
            "/api/employees/bulk_delete/",
            {"ids": [str(employee.pk)], "force": True},
            format="json",
        )

    assert response.status_code == 202
    delay.assert_called_once_with([str(employee.pk)], True)


def test_report_queues_job(api_client):
    with mock.patch.object(generate_employee_report, "delay") as delay:
        delay.return_value.id = "task-3"
        response = api_client.post(
            "/api/employees/reports/",
            {"report_type": "salary_distribution", "filters": {"search": "ann"}},
            format="json",
        )

    assert response.status_code == 202
    report_type, filters, user_id = delay.call_args[0]
    assert report_type == "salary_distribution"
    assert filters["search"] == "ann"
    assert user_id is None


def test_report_rejects_unknown_type(api_client):
    response = api_client.post("/api/employees/reports/", {"report_type": "x"}, format="json")

    assert response.status_code == 422
