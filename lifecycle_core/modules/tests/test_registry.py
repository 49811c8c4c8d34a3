"""
Tests for the database module registry
"""

from django.test import TestCase

from lifecycle_core.modules.base import InstallableModule, ModuleVersionIdentity
from lifecycle_core.modules.models import ModuleResource
from lifecycle_core.modules.registry import DatabaseModuleRegistry
from lifecycle_core.modules.tests.helpers import ModuleWorkspaceMixin


class DatabaseModuleRegistryTestCase(ModuleWorkspaceMixin, TestCase):
    """Test DatabaseModuleRegistry"""

    def setUp(self):
        super().setUp()
        self.registry = DatabaseModuleRegistry(self.root_path)

    def install(self, name, version, needs_restart=False):
        ModuleResource.objects.create(
            name=name, version=version, is_installed=True, needs_restart=needs_restart
        )

    def test_empty_state(self):
        self.assertTrue(self.registry.get_current_state().is_empty())

    def test_new_module_is_installed(self):
        self.write_module('Forums', '1.0', package='forums')

        state = self.registry.get_current_state()

        self.assertEqual(state.to_install, [InstallableModule('Forums', '1.0')])
        self.assertEqual(state.to_install[0].package, 'forums')
        self.assertEqual(state.installed_without_token, [])

    def test_new_module_with_token_is_not_installed(self):
        # Database recreated while the token survived
        self.write_module('Forums', '1.0')
        self.registry.ensure_uninstallation_token(ModuleVersionIdentity('Forums', '1.0'))

        state = self.registry.get_current_state()

        self.assertTrue(state.is_empty())

    def test_installed_module_without_token(self):
        self.write_module('Forums', '1.0')
        self.install('Forums', '1.0')

        state = self.registry.get_current_state()

        self.assertEqual(state.installed_without_token, [ModuleVersionIdentity('Forums', '1.0')])
        self.assertEqual(state.to_install, [])

    def test_fully_installed_module(self):
        self.write_module('Forums', '1.0')
        self.install('Forums', '1.0')
        self.registry.ensure_uninstallation_token(ModuleVersionIdentity('Forums', '1.0'))

        self.assertTrue(self.registry.get_current_state().is_empty())

    def test_module_with_new_version_is_updated(self):
        self.write_module('Forums', '1.1')
        self.install('Forums', '1.0')
        self.registry.ensure_uninstallation_token(ModuleVersionIdentity('Forums', '1.0'))

        state = self.registry.get_current_state()

        self.assertEqual(state.to_update, [(ModuleVersionIdentity('Forums', '1.0'), InstallableModule('Forums', '1.1'))])
        self.assertEqual(state.uninstalled_with_leftovers, [])
        self.assertEqual(state.to_uninstall, [])

    def test_removed_module_is_uninstalled(self):
        self.install('Forums', '1.0')
        self.registry.ensure_uninstallation_token(ModuleVersionIdentity('Forums', '1.0'))

        state = self.registry.get_current_state()

        self.assertEqual(state.to_uninstall, [ModuleVersionIdentity('Forums', '1.0')])
        self.assertEqual(state.uninstalled_with_leftovers, [])

    def test_removed_module_without_token_is_kept(self):
        self.install('Forums', '1.0')

        with self.assertLogs('lifecycle_core.modules.registry', level='WARNING') as logs:
            state = self.registry.get_current_state()

        self.assertTrue(state.is_empty())
        self.assertIn("'Forums'", logs.output[0])

    def test_uninstalled_module_with_token(self):
        self.registry.ensure_uninstallation_token(ModuleVersionIdentity('Forums', '1.0'))

        state = self.registry.get_current_state()

        self.assertEqual(state.uninstalled_with_leftovers, [ModuleVersionIdentity('Forums', '1.0')])

    def test_uninstalled_module_with_repository_only(self):
        self.repository_path('Forums', '1.0').mkdir(parents=True)

        state = self.registry.get_current_state()

        self.assertEqual(state.uninstalled_with_leftovers, [ModuleVersionIdentity('Forums', '1.0')])

    def test_stale_version_leftovers(self):
        self.write_module('Forums', '1.1')
        self.install('Forums', '1.1')
        self.registry.ensure_uninstallation_token(ModuleVersionIdentity('Forums', '1.1'))
        self.repository_path('Forums', '1.0').mkdir(parents=True)
        self.repository_path('Forums', '1.1').mkdir(parents=True)

        state = self.registry.get_current_state()

        self.assertEqual(state.uninstalled_with_leftovers, [ModuleVersionIdentity('Forums', '1.0')])

    def test_partially_archived_module_is_finished(self):
        self.write_module('Forums', '1.0')
        self.install('Forums', '1.0')
        self.repository_path('Forums', '1.0').mkdir(parents=True)

        state = self.registry.get_current_state()

        self.assertEqual(state.installed_without_token, [ModuleVersionIdentity('Forums', '1.0')])
        self.assertEqual(state.uninstalled_with_leftovers, [])

    def test_mark_module_as_installed(self):
        self.registry.mark_module_as_installed(
            InstallableModule('Forums', '1.0', display_name='Forums'), restart_needed=True
        )

        resource = ModuleResource.objects.get(name='Forums')
        self.assertTrue(resource.is_installed)
        self.assertTrue(resource.needs_restart)
        self.assertEqual(resource.version, '1.0')
        self.assertIsNotNone(resource.installed_at)
        self.assertTrue(self.registry.is_module_installed(ModuleVersionIdentity('Forums', '1.0')))
        self.assertFalse(self.registry.is_module_installed(ModuleVersionIdentity('Forums', '1.1')))

    def test_restart_performed_clears_pending_restarts(self):
        self.install('Forums', '1.0', needs_restart=True)
        self.install('Blogs', '2.0', needs_restart=True)

        self.registry.restart_performed()

        self.assertFalse(ModuleResource.objects.filter(needs_restart=True).exists())

    def test_token_operations(self):
        forums = ModuleVersionIdentity('Forums', '1.0')

        self.registry.ensure_uninstallation_token(forums)
        self.assertTrue(self.registry.has_uninstallation_token(forums))
        self.assertEqual(self.registry.get_uninstallation_tokens(), [forums])

        self.registry.remove_uninstallation_token(forums)
        self.assertFalse(self.registry.has_uninstallation_token(forums))
