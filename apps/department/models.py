from django.db import models

from apps.base.models import BaseModel


class Department(BaseModel):
    """Organizational departments that employees belong to."""

    name = models.CharField(max_length=255, unique=True)
    description = models.TextField(null=True, blank=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name
