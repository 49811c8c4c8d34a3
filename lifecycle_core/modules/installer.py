"""
Module Installer

Drives modules through install, update and uninstall so that the code base
and the database stay consistent across deployments, restarts and partial
failures.

Each operation runs in two phases:

1. Database work (scripts, package import, registry records) in a single
   transaction. A failure rolls it back and aborts the installation run.
2. Finish actions outside the transaction: archiving the uninstallation
   scripts and writing the uninstallation token, or removing both. They are
   idempotent; a failure is logged and retried on the next run.
"""

import logging
import shutil
import threading
from collections import defaultdict
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple, Union

from django.contrib.auth import get_user_model
from django.db import DEFAULT_DB_ALIAS, transaction

from . import signals
from .base import InstallableModule, ModuleState, ModuleVersionIdentity
from .conf import get_installer_settings
from .exceptions import ModuleInstallationError, ModuleOperation
from .files import ModuleInstallationFileResolver
from .importer import ModuleExportPackageImporter
from .loader import has_loadable_code
from .models import ModuleDataClass, ModuleObject, ModuleResource
from .registry import DatabaseModuleRegistry, ModuleRegistry
from .scripts import SqlScriptRunner

logger = logging.getLogger(__name__)

FINISH_INSTALLATION = 'finish_installation'
FINISH_UNINSTALLATION = 'finish_uninstallation'


class ModuleInstaller:
    """
    Processes installation changes of modules.

    One instance is created per process (see ``lifecycle_core.get_module_installer``).
    Installation runs are serialized by the instance lock; running several
    installers against one database at the same time is not supported.
    """

    def __init__(
        self,
        registry: ModuleRegistry,
        root_path: Union[str, Path],
        script_runner: Optional[SqlScriptRunner] = None,
        importer_factory: Callable[..., ModuleExportPackageImporter] = ModuleExportPackageImporter,
        installation_user: Optional[str] = None,
        using: str = DEFAULT_DB_ALIAS,
        alert_threshold: int = 3,
    ):
        self.registry = registry
        self.root_path = Path(root_path)
        self.script_runner = script_runner or SqlScriptRunner()
        self.importer_factory = importer_factory
        self.installation_user = installation_user
        self.using = using
        self.alert_threshold = alert_threshold

        self._lock = threading.Lock()
        # Set by any module processed in this process which needs a restart
        self._restart_required = False
        self._after_restart = True
        self._finish_failures: Dict[Tuple[str, ModuleVersionIdentity], int] = defaultdict(int)

    @classmethod
    def from_settings(cls) -> 'ModuleInstaller':
        """Create an installer with the database registry configured by MODULE_INSTALLER"""
        config = get_installer_settings()
        registry = DatabaseModuleRegistry(config['ROOT_PATH'], using=config['DATABASE'])
        return cls(
            registry,
            config['ROOT_PATH'],
            installation_user=config['INSTALLATION_USER'],
            using=config['DATABASE'],
            alert_threshold=config['FINISH_ACTION_ALERT_THRESHOLD'],
        )

    @property
    def restart_required(self) -> bool:
        """
        Whether a module processed by this installer needs an application restart.
        Once set, the flag is not cleared until the process restarts.
        """
        return self._restart_required

    def _get_file_resolver(self, module: ModuleVersionIdentity) -> ModuleInstallationFileResolver:
        return ModuleInstallationFileResolver.for_module(self.root_path, module)

    # Public API

    def process_installation(self) -> bool:
        """
        Process installation changes of modules.

        Stops on the first failing module; the remaining work is picked up by
        the next call.

        Returns:
            True if all changes were processed successfully, False otherwise
        """
        with self._lock:
            try:
                if self._after_restart:
                    # Modules waiting for a restart are loaded now
                    self.registry.restart_performed()
                    self._after_restart = False

                state = self.registry.get_current_state()

                cached_user = []

                def installation_user():
                    if not cached_user:
                        cached_user.append(self._get_installation_user())
                    return cached_user[0]

                # Retry finish actions of installed modules
                for module in state.installed_without_token:
                    self._finish_module_installation(module)

                for module in state.to_install:
                    self.install_module(module, installation_user())

                for installed_module, module in state.to_update:
                    self.update_module(installed_module, module, installation_user())

                # Retry finish actions of uninstalled modules
                for module in state.uninstalled_with_leftovers:
                    self._finish_module_uninstallation(module)

                for module in state.to_uninstall:
                    self.uninstall_module(module)

                return True

            except Exception:
                logger.exception("Processing of module installation changes failed")
                return False

    def reset_uninstallation_tokens(self) -> None:
        """
        Remove the uninstallation tokens of all modules together with their
        archived uninstallation files.

        Modules still present in the code base are installed again by the next
        installation run if the database does not contain them (e.g. after
        the database was recreated). Installed modules get their tokens back
        by the next run. Until then, none of them can be uninstalled.
        """
        for module in self.registry.get_uninstallation_tokens():
            self._finish_module_uninstallation_internal(module)

    def get_module_state(self, module: ModuleVersionIdentity) -> ModuleState:
        """Get the installation state of a module version"""
        return ModuleState.from_flags(
            self.registry.is_module_installed(module),
            self.registry.has_uninstallation_token(module),
        )

    # Lifecycle operations

    def install_module(self, module: InstallableModule, user=None) -> None:
        """
        Install a new module.

        Raises:
            ModuleInstallationError: If the installation fails
        """
        try:
            file_resolver = self._get_file_resolver(module)

            with transaction.atomic(using=self.using):
                self.script_runner.run(file_resolver.installation_before_sql_path, using=self.using)

                importer = self.importer_factory(user)
                importer.import_package(
                    file_resolver.installation_export_package_path,
                    module.name, module.version, using=self.using,
                )

                self.script_runner.run(file_resolver.installation_after_sql_path, using=self.using)

                restart_needed = self._is_restart_needed(module)
                self.registry.mark_module_as_installed(module, restart_needed, user=user, using=self.using)

        except Exception as e:
            raise ModuleInstallationError(
                f"Installation of module '{module.name}' in version {module.version} failed.",
                module.name, ModuleOperation.INSTALL, module.version, e
            ) from e

        self._finish_module_installation(module.identity)
        self._set_restart_flag(restart_needed)

        logger.info(
            f"Module '{module.name}' in version {module.version} has been installed "
            f"(restart is {'' if restart_needed else 'not '}required)."
        )
        signals.module_installed.send(sender=self, module=module, restart_needed=restart_needed)

    def update_module(self, installed_module: ModuleVersionIdentity, module: InstallableModule, user=None) -> None:
        """
        Update an installed module to a new version.

        The update scripts receive ``from_version`` and ``to_version`` parameters.

        Raises:
            ModuleInstallationError: If the update fails
        """
        try:
            file_resolver = self._get_file_resolver(module)
            parameters = {
                'from_version': installed_module.version,
                'to_version': module.version,
            }

            with transaction.atomic(using=self.using):
                self.script_runner.run(file_resolver.update_before_sql_path, parameters, using=self.using)

                importer = self.importer_factory(user)
                importer.import_package(
                    file_resolver.installation_export_package_path,
                    module.name, module.version, using=self.using,
                )

                self.script_runner.run(file_resolver.update_after_sql_path, parameters, using=self.using)

                restart_needed = self._is_restart_needed(module)
                self.registry.mark_module_as_installed(module, restart_needed, user=user, using=self.using)

        except Exception as e:
            raise ModuleInstallationError(
                f"Update of module '{module.name}' from version {installed_module.version} "
                f"to version {module.version} failed.",
                module.name, ModuleOperation.UPDATE, module.version, e
            ) from e

        # Archived files of the previous version are stale
        self._finish_module_uninstallation(installed_module)
        self._finish_module_installation(module.identity)
        self._set_restart_flag(restart_needed)

        logger.info(
            f"Module '{module.name}' has been updated from version {installed_module.version} "
            f"to version {module.version} (restart is {'' if restart_needed else 'not '}required)."
        )
        signals.module_updated.send(
            sender=self, installed_module=installed_module, module=module, restart_needed=restart_needed
        )

    def uninstall_module(self, module: ModuleVersionIdentity) -> None:
        """
        Uninstall a module using the scripts archived in its repository.

        Raises:
            ModuleInstallationError: If the uninstallation fails
        """
        try:
            file_resolver = self._get_file_resolver(module)

            with transaction.atomic(using=self.using):
                self.script_runner.run(file_resolver.uninstallation_before_sql_repository_path, using=self.using)

                self.remove_installed_module_data(module.name)

                self.script_runner.run(file_resolver.uninstallation_after_sql_repository_path, using=self.using)

        except Exception as e:
            raise ModuleInstallationError(
                f"Uninstallation of module '{module.name}' in version {module.version} failed.",
                module.name, ModuleOperation.UNINSTALL, module.version, e
            ) from e

        self._finish_module_uninstallation(module)

        logger.info(f"Module '{module.name}' in version {module.version} has been uninstalled.")
        signals.module_uninstalled.send(sender=self, module=module)

    def remove_installed_module_data(self, module_name: str) -> None:
        """Delete the data classes, objects and registry record of a module"""
        resource = ModuleResource.objects.using(self.using).filter(name=module_name).first()
        if resource is None:
            return

        # Data classes drop their tables on delete, so delete them one by one
        for data_class in ModuleDataClass.objects.using(self.using).filter(resource=resource):
            data_class.delete(using=self.using)

        objects = ModuleObject.objects.using(self.using).filter(resource=resource)
        object_types = list(resource.object_types or [])
        object_types += sorted(set(objects.values_list('object_type', flat=True)) - set(object_types))
        for object_type in object_types:
            deleted, _ = objects.filter(object_type=object_type).delete()
            logger.debug(f"Deleted {deleted} objects of type {object_type} of module {module_name}")

        resource.delete(using=self.using)

    # Finish actions

    def _finish_module_installation(self, module: ModuleVersionIdentity) -> None:
        """
        Archive the uninstallation files and write the token. A failure has no
        impact on module functionality, but the module cannot be uninstalled
        until a later run completes the actions.
        """
        try:
            self._copy_uninstallation_files(self._get_file_resolver(module))

            # Token goes last
            self.registry.ensure_uninstallation_token(module)
        except Exception as e:
            self._report_finish_failure(
                FINISH_INSTALLATION, module, e,
                f"Finish actions for module '{module.name}' in version {module.version} have failed. "
                f"This has no impact on module functionality, but the module cannot be uninstalled "
                f"until the issue is resolved. The actions will be retried by the next installation run."
            )
        else:
            self._finish_failures.pop((FINISH_INSTALLATION, module), None)

    def _finish_module_uninstallation(self, module: ModuleVersionIdentity) -> None:
        """
        Remove the token and the repository. A failure does not affect the
        uninstallation itself, but the module cannot be installed again until a
        later run completes the actions.
        """
        try:
            self._finish_module_uninstallation_internal(module)
        except Exception as e:
            self._report_finish_failure(
                FINISH_UNINSTALLATION, module, e,
                f"Finish actions for module '{module.name}' in version {module.version} have failed. "
                f"This has no impact on the uninstallation, but the module cannot be installed again "
                f"until the issue is resolved. The actions will be retried by the next installation run."
            )
        else:
            self._finish_failures.pop((FINISH_UNINSTALLATION, module), None)

    def _finish_module_uninstallation_internal(self, module: ModuleVersionIdentity) -> None:
        # Token goes first, a partially removed repository must not be used for uninstallation
        self.registry.remove_uninstallation_token(module)

        repository_path = self._get_file_resolver(module).repository_path
        if repository_path.exists():
            shutil.rmtree(repository_path)

        # Drop the module folder once its last version is gone
        module_folder = repository_path.parent
        if module_folder.is_dir() and not any(module_folder.iterdir()):
            module_folder.rmdir()

    def _report_finish_failure(self, action: str, module: ModuleVersionIdentity, error: Exception, message: str) -> None:
        key = (action, module)
        self._finish_failures[key] += 1
        failures = self._finish_failures[key]
        alert = failures >= self.alert_threshold

        if alert:
            logger.error(f"{message} Failed {failures} times in a row: {error}")
        else:
            logger.warning(f"{message} {error}")

        signals.module_finish_action_failed.send(
            sender=self, module=module, action=action, error=error, failures=failures, alert=alert
        )

    def _copy_uninstallation_files(self, file_resolver: ModuleInstallationFileResolver) -> None:
        self._copy_uninstallation_file(
            file_resolver.uninstallation_before_sql_path,
            file_resolver.uninstallation_before_sql_repository_path,
        )
        self._copy_uninstallation_file(
            file_resolver.uninstallation_after_sql_path,
            file_resolver.uninstallation_after_sql_repository_path,
        )

    @staticmethod
    def _copy_uninstallation_file(source_path: Path, target_path: Path) -> None:
        """Copy a file if it exists, overwriting the target"""
        if source_path.is_file():
            target_path.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, target_path)

    # Helpers

    def _is_restart_needed(self, module: InstallableModule) -> bool:
        # Module code is only loaded on application start
        return has_loadable_code(module)

    def _set_restart_flag(self, restart_needed: bool) -> None:
        self._restart_required |= restart_needed

    def _get_installation_user(self):
        if not self.installation_user:
            return None

        User = get_user_model()
        user = User._default_manager.db_manager(self.using).filter(
            **{User.USERNAME_FIELD: self.installation_user}
        ).first()
        if user is None:
            logger.warning(f"Installation user '{self.installation_user}' does not exist, installing without user")
        return user
