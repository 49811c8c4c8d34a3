"""
Lifecycle Core Package

Provides the module installation subsystem:
- Reconciliation of code base modules against installed modules
- Install / update / uninstall orchestration with crash recovery
- Uninstallation token ledger
"""

import threading

__version__ = '1.0.0'

_module_installer = None
_module_installer_lock = threading.Lock()


# Lazy import functions to avoid Django app registry issues
def get_module_installer():
    """Return the module installer of the current process, creating it on first use"""
    global _module_installer
    if _module_installer is None:
        with _module_installer_lock:
            if _module_installer is None:
                from .modules.installer import ModuleInstaller
                _module_installer = ModuleInstaller.from_settings()
    return _module_installer


__all__ = [
    'get_module_installer',
]
