"""
Module Export Package Importer

Applies a module's export package to the database. A package is a JSON
document:

    {
        "resource": {"display_name": "Forums", "object_types": ["forums.forum"]},
        "classes": [{"class_name": "forums.post", "table_name": "forums_post", "definition": {}}],
        "objects": [{"object_type": "forums.forum", "code_name": "general", "data": {}}]
    }

The importer does not manage transactions; it runs inside the caller's.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from django.db import DEFAULT_DB_ALIAS

from .exceptions import ModulePackageError
from .models import ModuleDataClass, ModuleObject, ModuleResource

logger = logging.getLogger(__name__)


class ModuleExportPackageImporter:
    """
    Imports export packages on behalf of a user.
    """

    def __init__(self, user=None):
        self.user = user

    def import_package(
        self,
        package_path: Union[str, Path],
        module_name: str,
        module_version: str,
        using: str = DEFAULT_DB_ALIAS,
    ) -> Optional[ModuleResource]:
        """
        Import the package of a module version.

        Args:
            package_path: Path of the export package
            module_name: Name of the module the package belongs to
            module_version: Version of the module
            using: Database alias of the caller's transaction

        Returns:
            The module resource, or None if the module ships no package

        Raises:
            ModulePackageError: If the package is malformed
        """
        package_path = Path(package_path)
        if not package_path.is_file():
            logger.debug(f"Module {module_name} v{module_version} has no export package")
            return None

        package = self._read_package(package_path)
        resource_data = package.get('resource', {})

        resource, _ = ModuleResource.objects.using(using).get_or_create(name=module_name)
        resource.display_name = resource_data.get('display_name', resource.display_name or module_name)
        resource.version = module_version
        declared_types = list(resource_data.get('object_types', []))
        resource.object_types = sorted(set(resource.object_types or []) | set(declared_types))
        if self.user is not None:
            resource.installed_by = self.user
        resource.save(using=using)

        for class_data in package.get('classes', []):
            self._import_class(resource, class_data, package_path, using)

        for object_data in package.get('objects', []):
            self._import_object(resource, object_data, package_path, using)

        logger.info(
            f"Imported package {package_path.name}: "
            f"{len(package.get('classes', []))} classes, {len(package.get('objects', []))} objects"
        )
        return resource

    def _read_package(self, package_path: Path) -> Dict[str, Any]:
        try:
            package = json.loads(package_path.read_text(encoding='utf-8'))
        except (OSError, ValueError) as e:
            raise ModulePackageError(f"Cannot read export package {package_path}: {e}", package_path) from e

        if not isinstance(package, dict):
            raise ModulePackageError(f"Export package {package_path} must be a JSON object", package_path)
        return package

    def _import_class(self, resource, class_data, package_path, using):
        try:
            class_name = class_data['class_name']
        except (KeyError, TypeError):
            raise ModulePackageError(f"Class without class_name in {package_path}", package_path)

        ModuleDataClass.objects.using(using).update_or_create(
            class_name=class_name,
            defaults={
                'resource': resource,
                'table_name': class_data.get('table_name', ''),
                'definition': class_data.get('definition', {}),
            }
        )

    def _import_object(self, resource, object_data, package_path, using):
        try:
            object_type = object_data['object_type']
            code_name = object_data['code_name']
        except (KeyError, TypeError):
            raise ModulePackageError(f"Object without object_type or code_name in {package_path}", package_path)

        if object_type not in resource.object_types:
            resource.object_types = sorted(resource.object_types + [object_type])
            resource.save(using=using, update_fields=['object_types', 'updated_at'])

        ModuleObject.objects.using(using).update_or_create(
            resource=resource,
            object_type=object_type,
            code_name=code_name,
            defaults={'data': object_data.get('data', {})}
        )
