"""
Cross-reference of the live module table with the static dependency map.

The live table names modules bare ("jbd2") while modules.dep lists file
paths ("kernel/fs/jbd2/jbd2.ko.zst"). The resolver reduces paths to names
and joins both views per loaded module.
"""

from typing import Dict, Iterable, List

from .models import DependencyEntry, ModuleRecord, ResolvedDependency, module_name


class DependencyResolver:
    """Join loaded modules with their static dependencies."""

    @staticmethod
    def index_entries(deps: Iterable[DependencyEntry]) -> Dict[str, DependencyEntry]:
        """Map bare module names to their dependency entries, first one wins."""
        index: Dict[str, DependencyEntry] = {}
        for entry in deps:
            index.setdefault(entry.name, entry)
        return index

    @staticmethod
    def resolve_detailed(loaded: Iterable[ModuleRecord],
                         deps: Iterable[DependencyEntry]) -> Dict[str, List[ResolvedDependency]]:
        """
        Resolve the dependencies of every loaded module.

        The live dependency names of a module come first, in kernel order,
        followed by the names from its static entry that are not already
        listed, in file order. Static dependencies that are not loaded are
        kept with record set to None.

        Args:
            loaded: Snapshot from LoadedModuleReader
            deps: Entries from DependencyMapParser for the same kernel

        Returns:
            Dict mapping each loaded module name to its resolved dependencies,
            in snapshot order
        """
        loaded = list(loaded)
        records = {record.name: record for record in loaded}
        static = DependencyResolver.index_entries(deps)
        result: Dict[str, List[ResolvedDependency]] = {}

        for record in loaded:
            resolved: List[ResolvedDependency] = []
            positions: Dict[str, int] = {}

            for name in record.dependencies:
                if name not in positions:
                    positions[name] = len(resolved)
                    resolved.append(ResolvedDependency(name, None, records.get(name)))

            entry = static.get(record.name)
            if entry is not None:
                for path in entry.dependency_paths:
                    name = module_name(path)
                    if name in positions:
                        # Already listed by the kernel, just attach the path
                        index = positions[name]
                        if resolved[index].path is None:
                            resolved[index] = ResolvedDependency(name, path, resolved[index].record)
                        continue
                    positions[name] = len(resolved)
                    resolved.append(ResolvedDependency(name, path, records.get(name)))

            result[record.name] = resolved

        return result

    @staticmethod
    def resolve(loaded: Iterable[ModuleRecord],
                deps: Iterable[DependencyEntry]) -> Dict[str, List[str]]:
        """Same as resolve_detailed, reduced to bare dependency names."""
        return {
            name: [dep.name for dep in resolved]
            for name, resolved in DependencyResolver.resolve_detailed(loaded, deps).items()
        }
