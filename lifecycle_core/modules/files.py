"""
Module Installation File Layout

Resolves the files of a module version under the installation root:

    modules/<name>/module.json
    modules/<name>/install/{before,after}.sql
    modules/<name>/update/{before,after}.sql
    modules/<name>/uninstall/{before,after}.sql
    modules/<name>/package/<name>_<version>.json
    installation/repository/<name>/<version>/uninstall/{before,after}.sql
    installation/tokens/<name>/<version>.token
"""

from pathlib import Path
from typing import Iterator, Union

from .base import ModuleVersionIdentity

MODULES_FOLDER = 'modules'
INSTALLATION_FOLDER = 'installation'
REPOSITORY_FOLDER = 'repository'
TOKENS_FOLDER = 'tokens'

BEFORE_SCRIPT = 'before.sql'
AFTER_SCRIPT = 'after.sql'


def get_modules_path(root_path: Union[str, Path]) -> Path:
    """Folder holding the modules of the code base"""
    return Path(root_path) / MODULES_FOLDER


def get_repository_root(root_path: Union[str, Path]) -> Path:
    """Folder holding the archived files of installed module versions"""
    return Path(root_path) / INSTALLATION_FOLDER / REPOSITORY_FOLDER


def get_tokens_root(root_path: Union[str, Path]) -> Path:
    return Path(root_path) / INSTALLATION_FOLDER / TOKENS_FOLDER


def iter_repository_identities(root_path: Union[str, Path]) -> Iterator[ModuleVersionIdentity]:
    """Yield the module versions which have a repository folder"""
    repository_root = get_repository_root(root_path)
    if not repository_root.is_dir():
        return

    for module_dir in sorted(repository_root.iterdir()):
        if not module_dir.is_dir():
            continue
        for version_dir in sorted(module_dir.iterdir()):
            if version_dir.is_dir():
                yield ModuleVersionIdentity(module_dir.name, version_dir.name)


class ModuleInstallationFileResolver:
    """
    Computes the paths of one module version's installation files.
    """

    def __init__(self, root_path: Union[str, Path], module_name: str, module_version: str):
        self.root_path = Path(root_path)
        self.module_name = module_name
        self.module_version = module_version

    @classmethod
    def for_module(cls, root_path, module: ModuleVersionIdentity) -> 'ModuleInstallationFileResolver':
        return cls(root_path, module.name, module.version)

    @property
    def module_path(self) -> Path:
        return get_modules_path(self.root_path) / self.module_name

    @property
    def manifest_path(self) -> Path:
        return self.module_path / 'module.json'

    # Original files shipped with the module

    @property
    def installation_before_sql_path(self) -> Path:
        return self.module_path / 'install' / BEFORE_SCRIPT

    @property
    def installation_after_sql_path(self) -> Path:
        return self.module_path / 'install' / AFTER_SCRIPT

    @property
    def update_before_sql_path(self) -> Path:
        return self.module_path / 'update' / BEFORE_SCRIPT

    @property
    def update_after_sql_path(self) -> Path:
        return self.module_path / 'update' / AFTER_SCRIPT

    @property
    def uninstallation_before_sql_path(self) -> Path:
        return self.module_path / 'uninstall' / BEFORE_SCRIPT

    @property
    def uninstallation_after_sql_path(self) -> Path:
        return self.module_path / 'uninstall' / AFTER_SCRIPT

    @property
    def installation_export_package_path(self) -> Path:
        return self.module_path / 'package' / f"{self.module_name}_{self.module_version}.json"

    # Repository copies, available after the module left the code base

    @property
    def repository_path(self) -> Path:
        return get_repository_root(self.root_path) / self.module_name / self.module_version

    @property
    def uninstallation_before_sql_repository_path(self) -> Path:
        return self.repository_path / 'uninstall' / BEFORE_SCRIPT

    @property
    def uninstallation_after_sql_repository_path(self) -> Path:
        return self.repository_path / 'uninstall' / AFTER_SCRIPT
