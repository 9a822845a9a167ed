import django_filters
from django.db.models import Q

from apps.employee.models import Employee


class EmployeeFilter(django_filters.FilterSet):
    search = django_filters.CharFilter(method="filter_search")
    department_id = django_filters.NumberFilter(field_name="department_id")
    min_salary = django_filters.NumberFilter(
        field_name="detail__salary", lookup_expr="gte"
    )
    max_salary = django_filters.NumberFilter(
        field_name="detail__salary", lookup_expr="lte"
    )

    class Meta:
        model = Employee
        fields = ["search", "department_id", "min_salary", "max_salary"]

    def filter_search(self, queryset, name, value):
        return queryset.filter(
            Q(name__icontains=value)
            | Q(email__icontains=value)
            | Q(detail__designation__icontains=value)
        )
