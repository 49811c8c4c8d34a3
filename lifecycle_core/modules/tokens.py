"""
Uninstallation Token Ledger

A token marks a module version whose uninstallation files were archived to
the repository. Tokens live on the filesystem next to the repository so they
survive a recreated database.
"""

import json
import logging
from pathlib import Path
from typing import List, Union

from django.utils import timezone

from .base import ModuleVersionIdentity
from .files import get_tokens_root

logger = logging.getLogger(__name__)

TOKEN_SUFFIX = '.token'


class UninstallationTokenStore:
    """
    Filesystem backed set of uninstallation tokens.
    All operations are idempotent.
    """

    def __init__(self, root_path: Union[str, Path]):
        self.tokens_root = get_tokens_root(root_path)

    def _token_path(self, module: ModuleVersionIdentity) -> Path:
        return self.tokens_root / module.name / f"{module.version}{TOKEN_SUFFIX}"

    def exists(self, module: ModuleVersionIdentity) -> bool:
        return self._token_path(module).is_file()

    def ensure(self, module: ModuleVersionIdentity) -> None:
        """Create the token unless it exists"""
        path = self._token_path(module)
        if path.is_file():
            return

        path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            'name': module.name,
            'version': module.version,
            'created_at': timezone.now().isoformat(),
        }
        # Write to a temporary file first so a crash never leaves a partial token
        temp_path = path.with_name(path.name + '.tmp')
        temp_path.write_text(json.dumps(payload), encoding='utf-8')
        temp_path.replace(path)
        logger.debug(f"Created uninstallation token for {module}")

    def remove(self, module: ModuleVersionIdentity) -> None:
        path = self._token_path(module)
        if path.exists():
            path.unlink()
            logger.debug(f"Removed uninstallation token for {module}")

        # Drop the module folder once its last token is gone
        if path.parent.is_dir() and not any(path.parent.iterdir()):
            path.parent.rmdir()

    def all(self) -> List[ModuleVersionIdentity]:
        """List all tokens, ordered by module name and version"""
        if not self.tokens_root.is_dir():
            return []

        tokens = []
        for module_dir in sorted(self.tokens_root.iterdir()):
            if not module_dir.is_dir():
                continue
            for token_file in sorted(module_dir.glob(f"*{TOKEN_SUFFIX}")):
                tokens.append(ModuleVersionIdentity(module_dir.name, token_file.name[:-len(TOKEN_SUFFIX)]))
        return tokens
