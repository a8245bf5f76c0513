"""
Filtering, sorting and plain text display of module snapshots.

This module contains the helpers the command line uses to narrow down and
present a LoadedModuleReader snapshot.
"""

import fnmatch
from typing import Dict, List, Optional

from .models import DependencyEntry, Kernel, ModuleRecord, ResolvedDependency


class ModuleFilter:
    """Filter modules based on various criteria."""

    @staticmethod
    def filter_modules(modules: List[ModuleRecord],
                       name_pattern: Optional[str] = None,
                       min_size: Optional[int] = None,
                       max_size: Optional[int] = None,
                       min_refs: Optional[int] = None,
                       state: Optional[str] = None) -> List[ModuleRecord]:
        """
        Filter modules based on various criteria.

        Args:
            modules: List of modules to filter
            name_pattern: Wildcard pattern for module names
            min_size: Minimum size in bytes
            max_size: Maximum size in bytes
            min_refs: Minimum instance count
            state: Module state to filter by

        Returns:
            List of filtered modules, in their original order
        """
        filtered = []

        for module in modules:
            if name_pattern and not fnmatch.fnmatch(module.name, name_pattern):
                continue
            if min_size is not None and module.mem_size < min_size:
                continue
            if max_size is not None and module.mem_size > max_size:
                continue
            if min_refs is not None and module.instances < min_refs:
                continue
            if state and module.state != state:
                continue
            filtered.append(module)

        return filtered


class ModuleSorter:
    """Sort modules by specified field."""

    SORT_FIELDS = ('name', 'size', 'refs', 'state')

    @staticmethod
    def sort_modules(modules: List[ModuleRecord], sort_by: Optional[str] = None,
                     reverse: bool = False) -> List[ModuleRecord]:
        """
        Sort modules by specified field.

        Args:
            modules: List of modules to sort
            sort_by: Field to sort by ('name', 'size', 'refs', 'state');
                None keeps the kernel order
            reverse: Reverse sort order

        Returns:
            Sorted list of modules
        """
        if sort_by is None:
            return list(reversed(modules)) if reverse else list(modules)

        def sort_key(module):
            if sort_by == 'size':
                return module.mem_size
            elif sort_by == 'refs':
                return module.instances
            elif sort_by == 'state':
                return module.state
            return module.name.lower()

        return sorted(modules, key=sort_key, reverse=reverse)


class ModuleDisplay:
    """Render kmodtree results as plain text."""

    @staticmethod
    def format_size(size_bytes: float) -> str:
        """Convert bytes to human readable format."""
        for unit in ['B', 'KB', 'MB', 'GB']:
            if size_bytes < 1024.0:
                return f"{size_bytes:.1f} {unit}"
            size_bytes /= 1024.0
        return f"{size_bytes:.1f} TB"

    @staticmethod
    def render_modules(modules: List[ModuleRecord], show_details: bool = False,
                       quiet: bool = False) -> str:
        """
        Render loaded modules, lsmod style.

        Args:
            modules: Modules to render
            show_details: One block per module instead of a table
            quiet: Suppress headers
        """
        lines = []
        if not quiet:
            lines.append(f"Loaded Kernel Modules ({len(modules)} total)")
            lines.append("=" * 60)

        if show_details:
            for i, module in enumerate(modules, 1):
                lines.append(f"{i}. {module}")
            return "\n".join(lines)

        if not quiet:
            lines.append(f"{'Module':<24} {'Size':>10} {'Used':>5}  {'State':<10} Used by")
        for module in modules:
            used_by = ",".join(module.dependencies + module.flags)
            lines.append(f"{module.name:<24} {ModuleDisplay.format_size(module.mem_size):>10} "
                         f"{module.instances:>5}  {module.state:<10} {used_by}")
        return "\n".join(lines)

    @staticmethod
    def render_kernels(kernels: List[Kernel], quiet: bool = False) -> str:
        lines = [] if quiet else [f"Installed Kernels ({len(kernels)} total)", "=" * 60]
        lines.extend(f"{kernel.version:<32} {kernel.root_path}" for kernel in kernels)
        return "\n".join(lines)

    @staticmethod
    def render_entries(entries: List[DependencyEntry]) -> str:
        return "\n".join(f"{entry.module_path}: {' '.join(entry.dependency_paths)}".rstrip()
                         for entry in entries)

    @staticmethod
    def render_mapping(mapping: Dict[str, List[str]]) -> str:
        """Render a name to names mapping, one "name: dep, dep" line each."""
        return "\n".join(f"{name}: {', '.join(deps) if deps else '-'}"
                         for name, deps in mapping.items())

    @staticmethod
    def render_resolved(resolved: Dict[str, List[ResolvedDependency]]) -> str:
        """Render resolved dependencies, marking the ones not loaded."""
        lines = []
        for name, deps in resolved.items():
            shown = [dep.name if dep.loaded else f"({dep.name})" for dep in deps]
            lines.append(f"{name}: {', '.join(shown) if shown else '-'}")
        return "\n".join(lines)
