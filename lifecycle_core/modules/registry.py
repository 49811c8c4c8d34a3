"""
Module Registry

Knows which modules are present in the code base, which are installed in
the database and which own an uninstallation token, and derives the work of
an installation run from the difference.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Union

from django.db import DEFAULT_DB_ALIAS
from django.utils import timezone

from .base import InstallableModule, InstallationState, ModuleVersionIdentity
from .files import get_modules_path, iter_repository_identities
from .loader import ModuleDiscovery
from .models import ModuleResource
from .tokens import UninstallationTokenStore

logger = logging.getLogger(__name__)


class ModuleRegistry(ABC):
    """
    Interface the installer uses to read and record module installation state.
    """

    @abstractmethod
    def restart_performed(self) -> None:
        """Notify the registry that the application has just started"""
        pass

    @abstractmethod
    def get_current_state(self) -> InstallationState:
        """Compute the difference between the code base and the installed modules"""
        pass

    @abstractmethod
    def mark_module_as_installed(self, module: InstallableModule, restart_needed: bool,
                                 user=None, using: Optional[str] = None) -> None:
        """
        Record a module version as installed.
        Runs inside the installer's transaction on ``using``.
        """
        pass

    @abstractmethod
    def is_module_installed(self, module: ModuleVersionIdentity) -> bool:
        pass

    @abstractmethod
    def has_uninstallation_token(self, module: ModuleVersionIdentity) -> bool:
        pass

    @abstractmethod
    def ensure_uninstallation_token(self, module: ModuleVersionIdentity) -> None:
        pass

    @abstractmethod
    def remove_uninstallation_token(self, module: ModuleVersionIdentity) -> None:
        pass

    @abstractmethod
    def get_uninstallation_tokens(self) -> List[ModuleVersionIdentity]:
        pass


class DatabaseModuleRegistry(ModuleRegistry):
    """
    Registry backed by the ModuleResource table, the filesystem token ledger
    and the modules folder of the code base.
    """

    def __init__(self, root_path: Union[str, Path], discovery: Optional[ModuleDiscovery] = None,
                 token_store: Optional[UninstallationTokenStore] = None,
                 using: str = DEFAULT_DB_ALIAS):
        self.root_path = Path(root_path)
        self.discovery = discovery or ModuleDiscovery(get_modules_path(self.root_path))
        self.token_store = token_store or UninstallationTokenStore(self.root_path)
        self.using = using

    # Restart tracking

    def restart_performed(self) -> None:
        cleared = ModuleResource.objects.using(self.using).filter(needs_restart=True).update(
            needs_restart=False
        )
        if cleared:
            logger.info(f"Application restarted, cleared pending restart of {cleared} modules")

    # Installation state

    def _get_installed_versions(self) -> Dict[str, str]:
        return dict(
            ModuleResource.objects.using(self.using)
            .filter(is_installed=True)
            .values_list('name', 'version')
        )

    def get_current_state(self) -> InstallationState:
        available = {module.name: module for module in self.discovery.get_available_modules()}
        installed = self._get_installed_versions()
        tokens = set(self.token_store.all())

        state = InstallationState()

        for name, module in available.items():
            installed_version = installed.get(name)
            if installed_version is None:
                if module.identity not in tokens:
                    state.to_install.append(module)
            elif installed_version == module.version:
                if module.identity not in tokens:
                    state.installed_without_token.append(module.identity)
            else:
                state.to_update.append((ModuleVersionIdentity(name, installed_version), module))

        leftovers = tokens | set(iter_repository_identities(self.root_path))
        for identity in sorted(leftovers, key=lambda m: (m.name, m.version)):
            in_code_base = _has_version(available.get(identity.name), identity.version)
            in_database = installed.get(identity.name) == identity.version
            if not in_code_base and not in_database:
                state.uninstalled_with_leftovers.append(identity)

        for name, version in sorted(installed.items()):
            if name in available:
                continue
            identity = ModuleVersionIdentity(name, version)
            if identity in tokens:
                state.to_uninstall.append(identity)
            else:
                logger.warning(
                    f"Module '{name}' in version {version} was removed from the code base but "
                    f"cannot be uninstalled because it has no uninstallation token"
                )

        return state

    def mark_module_as_installed(self, module: InstallableModule, restart_needed: bool,
                                 user=None, using: Optional[str] = None) -> None:
        using = using or self.using
        resource, _ = ModuleResource.objects.using(using).get_or_create(
            name=module.name,
            defaults={'display_name': module.display_name or module.name}
        )
        resource.version = module.version
        resource.is_installed = True
        resource.needs_restart = restart_needed
        resource.installed_at = timezone.now()
        if user is not None:
            resource.installed_by = user
        resource.save(using=using)

    def is_module_installed(self, module: ModuleVersionIdentity) -> bool:
        return ModuleResource.objects.using(self.using).filter(
            name=module.name, version=module.version, is_installed=True
        ).exists()

    # Uninstallation tokens

    def has_uninstallation_token(self, module: ModuleVersionIdentity) -> bool:
        return self.token_store.exists(module)

    def ensure_uninstallation_token(self, module: ModuleVersionIdentity) -> None:
        self.token_store.ensure(module)

    def remove_uninstallation_token(self, module: ModuleVersionIdentity) -> None:
        self.token_store.remove(module)

    def get_uninstallation_tokens(self) -> List[ModuleVersionIdentity]:
        return self.token_store.all()


def _has_version(module: Optional[InstallableModule], version: str) -> bool:
    """Check that a discovered module exists in the given version"""
    return module is not None and module.version == version
