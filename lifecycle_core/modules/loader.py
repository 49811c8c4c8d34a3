"""
Module Discovery

Finds the installable modules present in the code base and answers whether
a module carries loadable code.
"""

import importlib.machinery
import importlib.util
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional, Union

from .base import InstallableModule
from .exceptions import ModuleConfigurationError

logger = logging.getLogger(__name__)

MANIFEST_FILE = 'module.json'


class ModuleDiscovery:
    """
    Scans a modules folder for module manifests.

    Each module lives in its own directory with a ``module.json`` manifest:

        {"name": "Forums", "version": "1.0", "package": "forums", "display_name": "Forums"}

    ``package`` is optional and names the Python package with the module's code.
    """

    def __init__(self, modules_path: Union[str, Path]):
        self.modules_path = Path(modules_path)

    def get_available_modules(self) -> List[InstallableModule]:
        """
        Scan for available modules.

        Returns:
            Discovered modules ordered by name

        Raises:
            ModuleConfigurationError: If a manifest is invalid or a name is used twice
        """
        if not self.modules_path.is_dir():
            return []

        modules = {}
        for item in sorted(self.modules_path.iterdir()):
            if not item.is_dir() or item.name.startswith('.'):
                continue

            manifest_file = item / MANIFEST_FILE
            if not manifest_file.is_file():
                continue

            module = self._read_manifest(manifest_file)
            if module.name != item.name:
                raise ModuleConfigurationError(
                    f"Module {module.name} must be placed in a directory of the same name, found {item}"
                )
            modules[module.name] = module

        return list(modules.values())

    def _read_manifest(self, manifest_file: Path) -> InstallableModule:
        try:
            manifest = json.loads(manifest_file.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            raise ModuleConfigurationError(f"Invalid module manifest {manifest_file}: {e}") from e

        if not isinstance(manifest, dict):
            raise ModuleConfigurationError(f"Module manifest {manifest_file} must be a JSON object")

        name = manifest.get('name')
        version = manifest.get('version')
        if not name or not version:
            raise ModuleConfigurationError(f"Module manifest {manifest_file} requires name and version")

        return InstallableModule(
            name=str(name),
            version=str(version),
            package=manifest.get('package') or None,
            display_name=manifest.get('display_name', ''),
        )


def has_loadable_code(module: InstallableModule) -> bool:
    """
    Check whether a module carries code that is only loaded on application start.

    The package is resolved without importing it or any of its parents.
    """
    if not module.package:
        return False

    try:
        return _find_package_spec(module.package) is not None
    except (ImportError, ValueError):
        logger.warning(f"Package {module.package} of module {module.name} cannot be resolved")
        return False


def _find_package_spec(package: str):
    top_level, _, submodules = package.partition('.')
    spec = importlib.util.find_spec(top_level)

    name = top_level
    for part in filter(None, submodules.split('.')):
        parent_name = name
        name = f"{name}.{part}"
        if parent_name in sys.modules:
            # Loaded parents are searched by the regular machinery
            spec = importlib.util.find_spec(name)
        elif spec is None or spec.submodule_search_locations is None:
            return None
        else:
            spec = importlib.machinery.PathFinder.find_spec(name, spec.submodule_search_locations)

    return spec
