from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from apps.department.models import Department
from apps.employee.cache import employee_cache


@receiver(post_save, sender=Department)
@receiver(post_delete, sender=Department)
def invalidate_department_caches(sender, instance, **kwargs):
    # Employee payloads embed the department, so their caches go too.
    transaction.on_commit(employee_cache.invalidate_departments)
