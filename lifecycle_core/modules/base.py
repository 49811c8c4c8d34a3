"""
Base Module Types

Value types shared by the registry and the installer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


@dataclass(frozen=True)
class ModuleVersionIdentity:
    """Immutable identifier of one installable unit"""
    name: str
    version: str

    def __str__(self):
        return f"{self.name}@{self.version}"


@dataclass(frozen=True)
class InstallableModule(ModuleVersionIdentity):
    """
    A module present in the code base.

    ``package`` is the dotted import path of the module's loadable code, or
    None for modules that only ship data and scripts.
    """
    package: Optional[str] = field(default=None, compare=False)
    display_name: str = field(default='', compare=False)

    @property
    def identity(self) -> ModuleVersionIdentity:
        return ModuleVersionIdentity(self.name, self.version)


@dataclass
class InstallationState:
    """
    Difference between the modules in the code base and the modules
    recorded as installed, split into the work of one installation run.
    """
    installed_without_token: List[ModuleVersionIdentity] = field(default_factory=list)
    to_install: List[InstallableModule] = field(default_factory=list)
    to_update: List[Tuple[ModuleVersionIdentity, InstallableModule]] = field(default_factory=list)
    uninstalled_with_leftovers: List[ModuleVersionIdentity] = field(default_factory=list)
    to_uninstall: List[ModuleVersionIdentity] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.installed_without_token or self.to_install or self.to_update
            or self.uninstalled_with_leftovers or self.to_uninstall
        )


class ModuleState(str, Enum):
    """Installation state derived from the installed flag and the token"""
    PENDING_FINISH_INSTALL = 'pending_finish_install'
    INSTALLED = 'installed'
    PENDING_FINISH_UNINSTALL = 'pending_finish_uninstall'
    UNINSTALLED = 'uninstalled'

    @classmethod
    def from_flags(cls, is_installed: bool, has_token: bool) -> 'ModuleState':
        if is_installed:
            return cls.INSTALLED if has_token else cls.PENDING_FINISH_INSTALL
        return cls.PENDING_FINISH_UNINSTALL if has_token else cls.UNINSTALLED
