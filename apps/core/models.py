"""
Abstract base models for the storefront applications
"""
from django.db import models


class BaseModel(models.Model):
    """
    Abstract base model with common fields for all entities.
    """
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']

    def __str__(self):
        return str(self.pk)


class Status(models.TextChoices):
    """Visibility flag shared by users, categories and products."""
    ACTIVE = 'ACTIVE', 'Active'
    INACTIVE = 'INACTIVE', 'Inactive'
