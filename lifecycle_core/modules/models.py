"""
Module Installation Models

Defines the persisted data of installable modules:
- ModuleResource: registry record of a module and its installation flags
- ModuleDataClass: schema/class definitions owned by a module
- ModuleObject: objects of the object types a module registered
"""

import logging

from django.conf import settings
from django.db import connections, models

from lifecycle_core.core.models import TimestampedModel

logger = logging.getLogger(__name__)


class ModuleResource(TimestampedModel):
    """
    Registry record of a module.
    Created by the export package import or when the module is marked installed.
    """
    name = models.CharField(
        max_length=200,
        unique=True,
        help_text="Module code name"
    )
    display_name = models.CharField(max_length=200, blank=True)
    version = models.CharField(
        max_length=50,
        blank=True,
        help_text="Installed module version"
    )

    # Installation state
    is_installed = models.BooleanField(default=False)
    needs_restart = models.BooleanField(
        default=False,
        help_text="Module code is not loaded until the application restarts"
    )
    installed_at = models.DateTimeField(null=True, blank=True)
    installed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='installed_modules'
    )

    object_types = models.JSONField(
        default=list,
        blank=True,
        help_text="Object types registered by the module"
    )

    class Meta:
        db_table = 'lifecycle_module_resources'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_installed', 'name'], name='lifecycle_res_installed_idx'),
        ]

    def __str__(self):
        return f"{self.display_name or self.name} ({self.name}@{self.version})"


class ModuleDataClass(TimestampedModel):
    """
    Schema/class definition owned by a module.
    Deleting the class drops its table.
    """
    resource = models.ForeignKey(
        ModuleResource,
        on_delete=models.PROTECT,
        related_name='data_classes'
    )
    class_name = models.CharField(max_length=200, unique=True)
    table_name = models.CharField(max_length=100, blank=True)
    definition = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = 'lifecycle_module_data_classes'
        ordering = ['class_name']

    def __str__(self):
        return self.class_name

    def delete(self, using=None, keep_parents=False):
        using = using or self._state.db
        if self.table_name:
            connection = connections[using]
            with connection.cursor() as cursor:
                if self.table_name in connection.introspection.table_names(cursor):
                    cursor.execute(f"DROP TABLE {connection.ops.quote_name(self.table_name)}")
                    logger.debug(f"Dropped table {self.table_name} of class {self.class_name}")
        return super().delete(using=using, keep_parents=keep_parents)


class ModuleObject(TimestampedModel):
    """
    An object of one of the object types registered by a module.
    """
    resource = models.ForeignKey(
        ModuleResource,
        on_delete=models.PROTECT,
        related_name='module_objects'
    )
    object_type = models.CharField(max_length=100, db_index=True)
    code_name = models.CharField(max_length=200)
    data = models.JSONField(default=dict, blank=True)

    class Meta:
        db_table = 'lifecycle_module_objects'
        unique_together = [('resource', 'object_type', 'code_name')]
        ordering = ['object_type', 'code_name']

    def __str__(self):
        return f"{self.object_type}:{self.code_name}"
