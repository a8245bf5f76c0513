"""
Data models for kernel module introspection.

This module contains the value types produced by the parsers: installed
kernel trees, loaded module records, static dependency entries and the
resolved dependency view joining them.
"""

import functools
import os
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .config import MODULES_DEP, MODULE_SUFFIXES

_COMPONENT_SPLIT = re.compile(r'[.-]')
_NUMERIC = re.compile(r'[0-9]+')


def version_key(version: str) -> Tuple[Tuple[int, int, str], ...]:
    """
    Build a sort key for a kernel version string.

    The version is split on "." and "-". Numeric components compare
    numerically, literal ones lexically, and a numeric component sorts
    before a literal one in the same position. A version that is a strict
    prefix of another sorts first.

    Args:
        version: Kernel release, e.g. "5.15.0-91-generic"

    Returns:
        tuple: Key usable with sorted()
    """
    key = []
    for component in _COMPONENT_SPLIT.split(version):
        if _NUMERIC.fullmatch(component):
            key.append((0, int(component), ''))
        else:
            key.append((1, 0, component))
    return tuple(key)


def module_name(path: str) -> str:
    """
    Derive the in-memory module name from a module file path.

    "kernel/sound/pci/hda/snd-hda-intel.ko.zst" becomes "snd_hda_intel":
    the directory and module suffix are stripped and dashes are turned into
    underscores, the way the kernel names loaded modules.

    Args:
        path: Module file path, file name or bare name

    Returns:
        str: Bare module name
    """
    name = os.path.basename(path)
    for suffix in MODULE_SUFFIXES:
        if name.endswith(suffix):
            name = name[:-len(suffix)]
            break
    return name.replace('-', '_')


@functools.total_ordering
@dataclass(frozen=True)
class Kernel:
    """An installed kernel tree under the module root, ordered by version."""

    version: str
    root_path: str

    @property
    def dep_path(self) -> str:
        """Path of this kernel's static dependency file."""
        return os.path.join(self.root_path, MODULES_DEP)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Kernel):
            return NotImplemented
        return self.version == other.version

    def __lt__(self, other) -> bool:
        if not isinstance(other, Kernel):
            return NotImplemented
        return version_key(self.version) < version_key(other.version)

    def __hash__(self) -> int:
        return hash(self.version)

    def __str__(self) -> str:
        return f"{self.version} ({self.root_path})"

    def to_dict(self) -> dict:
        """Convert kernel to dictionary representation."""
        return {
            'version': self.version,
            'root_path': self.root_path,
            'dep_path': self.dep_path,
        }


@dataclass(frozen=True)
class ModuleRecord:
    """A loaded kernel module as reported by the live module table."""

    name: str
    mem_size: int
    instances: int
    dependencies: Tuple[str, ...]
    state: str
    offset: int
    flags: Tuple[str, ...] = ()
    taints: str = ""

    def __str__(self) -> str:
        """Return string representation of the module."""
        deps_str = ", ".join(self.dependencies) if self.dependencies else "None"
        return (f"Module: {self.name}\n"
                f"  Size: {self.mem_size} bytes\n"
                f"  Instances: {self.instances}\n"
                f"  Dependencies: {deps_str}\n"
                f"  State: {self.state}\n"
                f"  Offset: 0x{self.offset:016x}\n")

    def to_dict(self) -> dict:
        """Convert module to dictionary representation."""
        return {
            'name': self.name,
            'mem_size': self.mem_size,
            'instances': self.instances,
            'dependencies': list(self.dependencies),
            'state': self.state,
            'offset': f"0x{self.offset:016x}",
            'flags': list(self.flags),
            'taints': self.taints,
        }


@dataclass(frozen=True)
class DependencyEntry:
    """One line of a kernel's static dependency file."""

    module_path: str
    dependency_paths: Tuple[str, ...]

    @property
    def name(self) -> str:
        """Bare module name of module_path."""
        return module_name(self.module_path)

    @property
    def dependency_names(self) -> List[str]:
        return [module_name(path) for path in self.dependency_paths]

    def to_dict(self) -> dict:
        return {
            'module_path': self.module_path,
            'dependency_paths': list(self.dependency_paths),
        }


@dataclass(frozen=True)
class ResolvedDependency:
    """
    A dependency of a loaded module, resolved to its bare name.

    path is None when the name only comes from the live module table;
    record is None when the dependency is not currently loaded.
    """

    name: str
    path: Optional[str] = None
    record: Optional[ModuleRecord] = None

    @property
    def loaded(self) -> bool:
        return self.record is not None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'path': self.path,
            'loaded': self.loaded,
        }


@dataclass(frozen=True)
class ModInfo:
    """Metadata read from the .modinfo section of a module file."""

    path: str
    fields: Dict[str, List[str]] = field(default_factory=dict)
    signed: bool = False

    def get(self, key: str, default: str = "") -> str:
        """Return the first value recorded for key."""
        values = self.fields.get(key)
        return values[0] if values else default

    @property
    def name(self) -> str:
        return self.get('name') or module_name(self.path)

    @property
    def description(self) -> str:
        return self.get('description')

    @property
    def license(self) -> str:
        return self.get('license')

    @property
    def version(self) -> str:
        return self.get('version')

    @property
    def vermagic(self) -> str:
        return self.get('vermagic')

    @property
    def depends(self) -> List[str]:
        """Module names listed in the depends key."""
        value = self.get('depends')
        return [dep for dep in value.split(',') if dep] if value else []

    @property
    def aliases(self) -> List[str]:
        return list(self.fields.get('alias', []))

    def __str__(self) -> str:
        return (f"Module: {self.name}\n"
                f"  File Path: {self.path}\n"
                f"  Description: {self.description or 'N/A'}\n"
                f"  License: {self.license or 'N/A'}\n"
                f"  Depends: {', '.join(self.depends) or 'None'}\n"
                f"  Signed: {'Yes' if self.signed else 'No'}\n")

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'file_path': self.path,
            'description': self.description,
            'license': self.license,
            'version': self.version,
            'vermagic': self.vermagic,
            'depends': self.depends,
            'aliases': self.aliases,
            'signed': self.signed,
        }
