"""
Module Installation Exceptions

Custom exceptions for the module installation system.
"""

from enum import Enum


class ModuleOperation(str, Enum):
    """Lifecycle operation reported by ModuleInstallationError"""
    INSTALL = 'INSTALL'
    UPDATE = 'UPDATE'
    UNINSTALL = 'UNINSTALL'


class ModuleError(Exception):
    """Base exception for module system errors"""
    pass


class ModuleConfigurationError(ModuleError):
    """Raised when installer settings or a module manifest are invalid"""
    pass


class ModuleScriptError(ModuleError):
    """Raised when a lifecycle SQL script fails to execute"""

    def __init__(self, message, script_path=None):
        super().__init__(message)
        self.script_path = script_path


class ModulePackageError(ModuleError):
    """Raised when a module export package cannot be imported"""

    def __init__(self, message, package_path=None):
        super().__init__(message)
        self.package_path = package_path


class ModuleInstallationError(ModuleError):
    """
    Raised when a module fails to install, update or uninstall.

    The database work of the failed operation has been rolled back. The
    original error is available as ``inner`` and as ``__cause__``.
    """

    def __init__(self, message, module_name, operation, module_version, inner=None):
        super().__init__(message)
        self.module_name = module_name
        self.module_version = module_version
        self.operation = ModuleOperation(operation)
        self.inner = inner
