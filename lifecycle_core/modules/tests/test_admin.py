"""
Tests for the read-only module admin
"""

from django.contrib import admin
from django.test import RequestFactory, TestCase

from lifecycle_core.modules.admin import ModuleResourceAdmin
from lifecycle_core.modules.models import ModuleResource


class ModuleResourceAdminTestCase(TestCase):

    def setUp(self):
        self.model_admin = ModuleResourceAdmin(ModuleResource, admin.site)
        self.request = RequestFactory().get('/admin/')

    def test_is_registered(self):
        self.assertTrue(admin.site.is_registered(ModuleResource))

    def test_is_read_only(self):
        self.assertFalse(self.model_admin.has_add_permission(self.request))
        self.assertFalse(self.model_admin.has_change_permission(self.request))
        self.assertFalse(self.model_admin.has_delete_permission(self.request))

    def test_installed_badge(self):
        installed = ModuleResource(name='Forums', version='1.0', is_installed=True)
        pending = ModuleResource(name='Blogs', version='1.0')

        self.assertIn('Installed', self.model_admin.is_installed_badge(installed))
        self.assertIn('green', self.model_admin.is_installed_badge(installed))
        self.assertIn('Not installed', self.model_admin.is_installed_badge(pending))
