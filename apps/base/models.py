"""
Base models with timestamp and soft delete functionality.

``BaseModel`` gives every table its ``created_at``/``updated_at`` columns.
``SoftDeleteModel`` adds a nullable ``deleted_at`` marker: a non-null value
means the row is logically deleted but retained until it is purged.
"""

from django.db import models
from django.utils import timezone


class SoftDeleteManager(models.Manager):
    """Manager for soft delete operations with filtered querysets."""

    def get_queryset(self):
        """Return only non-deleted records by default."""
        return super().get_queryset().filter(deleted_at__isnull=True)

    def with_deleted(self):
        """Return all records including soft-deleted ones."""
        return super().get_queryset()

    def deleted_only(self):
        """Return only soft-deleted records."""
        return super().get_queryset().filter(deleted_at__isnull=False)


class BaseModel(models.Model):
    """Abstract base model with automatic timestamps."""

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


class SoftDeleteModel(BaseModel):
    """Abstract base model whose delete() only sets the deletion marker."""

    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)

    objects = SoftDeleteManager()
    all_objects = models.Manager()

    class Meta:
        abstract = True

    @property
    def is_deleted(self):
        return self.deleted_at is not None

    def delete(self, using=None, keep_parents=False):
        """Soft delete the record by setting the deletion marker."""
        self.deleted_at = timezone.now()
        self.save(update_fields=["deleted_at", "updated_at"])

    def restore(self):
        """Restore a soft-deleted record to active status."""
        self.deleted_at = None
        self.save(update_fields=["deleted_at", "updated_at"])

    def force_delete(self):
        """Permanently delete the record from database."""
        return super().delete()
