"""
Base validation utilities.
Provides reusable validation functions shared by the serializers.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import validate_email as django_validate_email
from django.utils import timezone


class BaseValidator:
    """Base validation class with common validation methods."""

    @staticmethod
    def validate_email(email):
        """Validate email format."""
        if not email:
            raise ValidationError("Email is required.")
        try:
            django_validate_email(email)
        except ValidationError:
            raise ValidationError("Enter a valid email address.")
        return email.lower().strip()

    @staticmethod
    def validate_required_text(value, field_name="Value", max_length=255):
        """Validate a required, trimmed text field."""
        value = (value or "").strip()
        if not value:
            raise ValidationError(f"{field_name} is required.")

        if len(value) > max_length:
            raise ValidationError(
                f"{field_name} must not exceed {max_length} characters."
            )

        return value

    @staticmethod
    def validate_past_date(date_value, field_name="Date"):
        """Validate that date is not in the future."""
        if date_value and date_value > timezone.localdate():
            raise ValidationError(f"{field_name} cannot be in the future.")
        return date_value

    @staticmethod
    def validate_non_negative(amount, field_name="Amount"):
        if amount is not None and Decimal(amount) < 0:
            raise ValidationError(f"{field_name} cannot be negative.")
        return amount

    @staticmethod
    def validate_range(minimum, maximum, field_prefix="Value"):
        if minimum is not None and maximum is not None and minimum > maximum:
            raise ValidationError(
                f"{field_prefix} range is invalid. Minimum cannot be greater than maximum."
            )
        return minimum, maximum


class EmployeeValidator(BaseValidator):
    """Employee-specific validation methods."""

    @staticmethod
    def validate_unique_email(email, exclude_pk=None):
        """Email must not belong to another non-deleted employee."""
        from apps.employee.models import Employee

        email = BaseValidator.validate_email(email)
        queryset = Employee.objects.filter(email__iexact=email)
        if exclude_pk is not None:
            queryset = queryset.exclude(pk=exclude_pk)
        if queryset.exists():
            raise ValidationError("The email has already been taken.")
        return email


class DepartmentValidator(BaseValidator):
    """Department-specific validation methods."""

    @staticmethod
    def validate_unique_name(name, exclude_pk=None):
        from apps.department.models import Department

        name = BaseValidator.validate_required_text(name, "Name")
        queryset = Department.objects.filter(name__iexact=name)
        if exclude_pk is not None:
            queryset = queryset.exclude(pk=exclude_pk)
        if queryset.exists():
            raise ValidationError("The name has already been taken.")
        return name
