"""
Tests for the uninstallation token ledger
"""

import json

from django.test import SimpleTestCase

from lifecycle_core.modules.base import ModuleVersionIdentity
from lifecycle_core.modules.tests.helpers import ModuleWorkspaceMixin
from lifecycle_core.modules.tokens import UninstallationTokenStore


class UninstallationTokenStoreTestCase(ModuleWorkspaceMixin, SimpleTestCase):
    """Test UninstallationTokenStore"""

    def setUp(self):
        super().setUp()
        self.store = UninstallationTokenStore(self.root_path)
        self.forums = ModuleVersionIdentity('Forums', '1.0')

    def test_ensure_creates_token(self):
        self.assertFalse(self.store.exists(self.forums))

        self.store.ensure(self.forums)

        self.assertTrue(self.store.exists(self.forums))
        payload = json.loads(self.token_path('Forums', '1.0').read_text())
        self.assertEqual(payload['name'], 'Forums')
        self.assertEqual(payload['version'], '1.0')
        self.assertIn('created_at', payload)

    def test_ensure_is_idempotent(self):
        self.store.ensure(self.forums)
        created = self.token_path('Forums', '1.0').read_text()

        self.store.ensure(self.forums)

        self.assertEqual(self.token_path('Forums', '1.0').read_text(), created)
        self.assertEqual(self.store.all(), [self.forums])

    def test_remove(self):
        self.store.ensure(self.forums)

        self.store.remove(self.forums)

        self.assertFalse(self.store.exists(self.forums))
        self.assertFalse(self.token_path('Forums', '1.0').parent.exists())

    def test_remove_missing_token(self):
        self.store.remove(self.forums)
        self.assertEqual(self.store.all(), [])

    def test_remove_keeps_other_versions(self):
        newer = ModuleVersionIdentity('Forums', '1.1')
        self.store.ensure(self.forums)
        self.store.ensure(newer)

        self.store.remove(self.forums)

        self.assertEqual(self.store.all(), [newer])

    def test_all_ignores_unrelated_files(self):
        self.store.ensure(self.forums)
        self.store.ensure(ModuleVersionIdentity('Blogs', '2.0'))
        (self.token_path('Forums', '1.0').parent / 'notes.txt').write_text('x')

        self.assertEqual(self.store.all(), [
            ModuleVersionIdentity('Blogs', '2.0'),
            self.forums,
        ])
