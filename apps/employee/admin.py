from functools import partial

from django.contrib import admin
from django.db import transaction

from apps.employee.cache import employee_cache
from apps.employee.models import Employee, EmployeeDetail
from apps.employee.repository import EmployeeRepository


class EmployeeDetailInline(admin.StackedInline):
    model = EmployeeDetail
    can_delete = False


@admin.register(Employee)
class EmployeeAdmin(admin.ModelAdmin):
    list_display = ("name", "email", "department", "deleted_at", "created_at")
    list_filter = ("department",)
    search_fields = ("name", "email", "detail__designation")
    inlines = [EmployeeDetailInline]

    def get_queryset(self, request):
        return Employee.all_objects.select_related("department", "detail")

    def delete_queryset(self, request, queryset):
        # Bulk updates send no signals; soft delete and invalidate explicitly.
        ids = list(queryset.values_list("pk", flat=True))
        EmployeeRepository().soft_delete_many(ids)
        transaction.on_commit(partial(employee_cache.invalidate_entities, ids))
