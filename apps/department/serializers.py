from rest_framework import serializers

from apps.base.validators import DepartmentValidator
from apps.department.models import Department


class DepartmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ["id", "name", "description", "created_at", "updated_at"]
        read_only_fields = ["id", "created_at", "updated_at"]
        # Uniqueness goes through DepartmentValidator so the message matches
        # the employee email one.
        extra_kwargs = {"name": {"validators": []}}

    def validate_name(self, value):
        exclude_pk = self.instance.pk if self.instance else None
        return DepartmentValidator.validate_unique_name(value, exclude_pk=exclude_pk)


class DepartmentMiniSerializer(serializers.ModelSerializer):
    class Meta:
        model = Department
        fields = ["id", "name", "description"]
