from functools import partial

from django.db import transaction
from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from apps.employee.cache import employee_cache
from apps.employee.models import Employee, EmployeeDetail


@receiver(post_save, sender=Employee)
@receiver(post_delete, sender=Employee)
def invalidate_employee_caches(sender, instance, **kwargs):
    transaction.on_commit(partial(employee_cache.invalidate_entity, instance.pk))


@receiver(post_save, sender=EmployeeDetail)
@receiver(post_delete, sender=EmployeeDetail)
def invalidate_employee_detail_caches(sender, instance, **kwargs):
    transaction.on_commit(partial(employee_cache.invalidate_entity, instance.employee_id))
