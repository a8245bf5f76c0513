"""
Transitive dependency expansion over a kernel's static dependency map.
"""

from typing import Dict, Iterable, List, Optional, Set

from .config import PROC_MODULES
from .lsmod import LoadedModuleReader
from .moddeps import DependencyMapParser
from .models import DependencyEntry, Kernel, module_name


def _strip_suffix(path: str) -> str:
    directory, _, base = path.replace('-', '_').rpartition('/')
    name = module_name(base)
    return f"{directory}/{name}" if directory else name


class ModuleTree:
    """
    Dependency tree of one kernel.

    The static map is read once when the tree is built; the loaded modules
    are read again on every call that needs them.
    """

    def __init__(self, kernel: Kernel, deps: Optional[Iterable[DependencyEntry]] = None,
                 proc_modules: str = PROC_MODULES):
        """
        Args:
            kernel: Kernel tree to work on
            deps: Already parsed entries of the kernel's modules.dep; read
                from the kernel tree when omitted
            proc_modules: Module table used when no module names are given
        """
        self.kernel = kernel
        self._proc_modules = proc_modules
        if deps is None:
            deps = DependencyMapParser.dependencies_for(kernel)

        self._deps: Dict[str, tuple] = {}
        self._by_name: Dict[str, str] = {}
        for entry in deps:
            self._deps[entry.module_path] = entry.dependency_paths
            self._by_name.setdefault(entry.name, entry.module_path)

    def find_module_path(self, name: str) -> Optional[str]:
        """
        Find the dependency map key for a module.

        Accepts a bare name ("sunrpc"), a file name ("sunrpc.ko") or a
        partial path ("net/sunrpc/sunrpc.ko"); "_" and "-" are treated alike.

        Returns:
            str: The module path as listed in modules.dep, or None
        """
        if name in self._deps:
            return name
        if '/' not in name:
            return self._by_name.get(module_name(name))

        wanted = _strip_suffix(name.lstrip('/'))
        for path in self._deps:
            candidate = _strip_suffix(path)
            if candidate == wanted or candidate.endswith('/' + wanted):
                return path
        return None

    def loaded_module_names(self) -> List[str]:
        return [record.name for record in LoadedModuleReader.read(self._proc_modules)]

    def _expand(self, path: str) -> List[str]:
        found: List[str] = []
        seen: Set[str] = {path}
        stack = list(reversed(self._deps.get(path, ())))
        while stack:
            dep = stack.pop()
            if dep in seen:
                continue
            seen.add(dep)
            found.append(dep)
            stack.extend(reversed(self._deps.get(dep, ())))
        return found

    def dependencies_of(self, names: Optional[Iterable[str]] = None) -> Dict[str, List[str]]:
        """
        Expand modules to all of their direct and indirect dependencies.

        Args:
            names: Module names or paths; the currently loaded modules when
                empty or None

        Returns:
            Dict mapping each resolved module path to its dependency paths,
            depth first in modules.dep order and without duplicates. Names
            that are not in the dependency map are left out.
        """
        names = list(names or [])
        if not names:
            names = self.loaded_module_names()

        tree: Dict[str, List[str]] = {}
        for name in names:
            path = self.find_module_path(name)
            if path is None:
                continue
            tree[path] = self._expand(path)
        return tree

    def merged_dependencies(self, names: Optional[Iterable[str]] = None) -> Set[str]:
        """Union of the requested module paths and all of their dependencies."""
        merged: Set[str] = set()
        for path, deps in self.dependencies_of(names).items():
            merged.add(path)
            merged.update(deps)
        return merged

    def disk_modules(self) -> List[str]:
        """Sorted list of every module path named in the dependency map."""
        paths = set(self._deps)
        for deps in self._deps.values():
            paths.update(deps)
        return sorted(paths)
