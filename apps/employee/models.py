import uuid

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from apps.base.models import BaseModel, SoftDeleteModel
from apps.department.models import Department


class Employee(SoftDeleteModel):
    """Employee identity; the profile fields live in ``EmployeeDetail``."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, db_index=True)
    email = models.EmailField(max_length=255)
    # Only departments without live employees can be deleted, taking their
    # soft-deleted, not yet purged employees with them.
    department = models.ForeignKey(
        Department, on_delete=models.CASCADE, related_name="employees"
    )

    class Meta:
        constraints = [
            models.UniqueConstraint(
                fields=["email"],
                condition=Q(deleted_at__isnull=True),
                name="unique_active_employee_email",
            ),
        ]

    def __str__(self):
        return f"{self.name} <{self.email}>"


class EmployeeDetail(BaseModel):
    employee = models.OneToOneField(
        Employee,
        on_delete=models.CASCADE,
        primary_key=True,
        related_name="detail",
    )
    designation = models.CharField(max_length=255, db_index=True)
    salary = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        validators=[MinValueValidator(0)],
        db_index=True,
    )
    address = models.CharField(max_length=255)
    joined_date = models.DateField(db_index=True)

    def __str__(self):
        return f"{self.employee.email} - {self.designation}"
