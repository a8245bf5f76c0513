"""
kmodtree

Introspect Linux kernel modules without running external tools: list the
installed kernel trees, parse the loaded module table and the static
dependency index, and cross-reference both.
"""

from typing import Dict, Iterable, List, Optional, Union

from .config import MODULES_ROOT, PROC_MODULES
from .errors import (KmodError, MalformedLine, MalformedModule, NotFound,
                     PermissionDenied, SourceUnavailable)
from .kernels import KernelLocator, compare_versions, version_key
from .lines import LineRecordParser
from .lsmod import LoadedModuleReader
from .moddeps import DependencyMapParser
from .modinfo import ModInfoReader
from .models import (DependencyEntry, Kernel, ModInfo, ModuleRecord,
                     ResolvedDependency, module_name)
from .resolver import DependencyResolver
from .tree import ModuleTree

__version__ = "1.0.0"


def list_kernels(root: str = MODULES_ROOT, rootfs: Optional[str] = None,
                 reverse: bool = False) -> List[Kernel]:
    """Installed kernel trees, oldest version first."""
    return KernelLocator.list_kernels(root, rootfs, reverse)


def current_kernel(root: str = MODULES_ROOT, rootfs: Optional[str] = None) -> Kernel:
    """Kernel tree of the running kernel."""
    return KernelLocator.current_kernel(root, rootfs)


def lsmod(path: str = PROC_MODULES,
          text: Optional[Union[str, Iterable[str]]] = None) -> List[ModuleRecord]:
    """Snapshot of the loaded modules, in kernel order."""
    return LoadedModuleReader.read(path, text)


def dependencies_for(kernel: Kernel) -> List[DependencyEntry]:
    """Static dependency entries of a kernel tree, in file order."""
    return DependencyMapParser.dependencies_for(kernel)


def resolve(loaded: Iterable[ModuleRecord],
            deps: Iterable[DependencyEntry]) -> Dict[str, List[str]]:
    """Dependency names of every loaded module, live and static combined."""
    return DependencyResolver.resolve(loaded, deps)


def read_modinfo(path: str) -> ModInfo:
    """Metadata from the .modinfo section of a module file."""
    return ModInfoReader.read(path)


__all__ = [
    "list_kernels",
    "current_kernel",
    "lsmod",
    "dependencies_for",
    "resolve",
    "read_modinfo",
    "compare_versions",
    "version_key",
    "module_name",
    "Kernel",
    "ModuleRecord",
    "DependencyEntry",
    "ResolvedDependency",
    "ModInfo",
    "LineRecordParser",
    "KernelLocator",
    "LoadedModuleReader",
    "DependencyMapParser",
    "DependencyResolver",
    "ModInfoReader",
    "ModuleTree",
    "KmodError",
    "NotFound",
    "PermissionDenied",
    "SourceUnavailable",
    "MalformedLine",
    "MalformedModule",
]
