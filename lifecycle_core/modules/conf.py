"""
Module Installer Settings

Reads ``settings.MODULE_INSTALLER`` and fills in defaults.
"""

from pathlib import Path
from typing import Any, Dict

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS

from .exceptions import ModuleConfigurationError

DEFAULTS = {
    'ROOT_PATH': None,
    'INSTALLATION_USER': None,
    'DATABASE': DEFAULT_DB_ALIAS,
    'FINISH_ACTION_ALERT_THRESHOLD': 3,
}


def get_installer_settings() -> Dict[str, Any]:
    """
    Get module installer settings merged with defaults.

    Raises:
        ModuleConfigurationError: If a setting has an invalid value
    """
    configured = getattr(settings, 'MODULE_INSTALLER', {}) or {}
    unknown = set(configured) - set(DEFAULTS)
    if unknown:
        raise ModuleConfigurationError(f"Unknown MODULE_INSTALLER settings: {', '.join(sorted(unknown))}")

    result = dict(DEFAULTS, **configured)

    root_path = result['ROOT_PATH'] or getattr(settings, 'BASE_DIR', None)
    if not root_path:
        raise ModuleConfigurationError("MODULE_INSTALLER['ROOT_PATH'] or BASE_DIR must be set")
    result['ROOT_PATH'] = Path(root_path)

    if result['DATABASE'] not in settings.DATABASES:
        raise ModuleConfigurationError(f"Unknown database alias {result['DATABASE']!r}")

    threshold = result['FINISH_ACTION_ALERT_THRESHOLD']
    if not isinstance(threshold, int) or threshold < 1:
        raise ModuleConfigurationError("FINISH_ACTION_ALERT_THRESHOLD must be a positive integer")

    return result
