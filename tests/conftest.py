import itertools
from datetime import date
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.department.models import Department
from apps.employee.models import Employee, EmployeeDetail


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def department(db):
    return Department.objects.create(name="Engineering", description="Builds things")


@pytest.fixture
def other_department(db):
    return Department.objects.create(name="Finance")


@pytest.fixture
def make_employee(db, department):
    counter = itertools.count(1)

    def _make(
        name=None,
        email=None,
        department=department,
        designation="Engineer",
        salary="50000.00",
        address=None,
        joined_date=date(2023, 1, 10),
    ):
        index = next(counter)
        employee = Employee.objects.create(
            name=name or f"Employee {index}",
            email=email or f"employee{index}@example.com",
            department=department,
        )
        EmployeeDetail.objects.create(
            employee=employee,
            designation=designation,
            salary=Decimal(salary),
            address=address or f"{index} Main St",
            joined_date=joined_date,
        )
        return employee

    return _make


@pytest.fixture
def employee_payload(department):
    return {
        "name": "Ann",
        "email": "ann@x.com",
        "department_id": department.pk,
        "designation": "Eng",
        "salary": 90000,
        "address": "1 Main St",
        "joined_date": "2023-01-10",
    }
