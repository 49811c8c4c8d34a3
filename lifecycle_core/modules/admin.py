"""
Installable Modules Admin Configuration

Read-only views of the installed module data. Installation is driven by the
module installer, never by the admin.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import ModuleDataClass, ModuleObject, ModuleResource


class ReadOnlyAdmin(admin.ModelAdmin):

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(ModuleResource)
class ModuleResourceAdmin(ReadOnlyAdmin):
    list_display = [
        'name', 'display_name', 'version', 'is_installed_badge',
        'needs_restart', 'installed_at', 'installed_by'
    ]
    list_filter = ['is_installed', 'needs_restart', 'installed_at']
    search_fields = ['name', 'display_name']

    def is_installed_badge(self, obj):
        if obj.is_installed:
            return format_html('<span style="color: {};">{}</span>', 'green', '✓ Installed')
        return format_html('<span style="color: {};">{}</span>', 'gray', 'Not installed')
    is_installed_badge.short_description = 'Installed'


@admin.register(ModuleDataClass)
class ModuleDataClassAdmin(ReadOnlyAdmin):
    list_display = ['class_name', 'table_name', 'resource', 'created_at']
    list_filter = ['resource']
    search_fields = ['class_name', 'table_name']


@admin.register(ModuleObject)
class ModuleObjectAdmin(ReadOnlyAdmin):
    list_display = ['code_name', 'object_type', 'resource', 'updated_at']
    list_filter = ['object_type', 'resource']
    search_fields = ['code_name', 'object_type']
