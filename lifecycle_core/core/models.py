"""
Base models for the lifecycle core.

These abstract models provide common functionality that can be inherited
by the concrete models of the lifecycle apps.
"""

from django.db import models


class TimestampedModel(models.Model):
    """
    Abstract model that provides created and updated timestamp fields.
    """
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True
        ordering = ['-created_at']
