#!/usr/bin/env python3
"""
Example usage of the kmodtree package.

This script demonstrates how to list installed kernels, take a snapshot of
the loaded modules and cross-reference it with the static dependency map.
"""

from kmodtree import (KmodError, ModuleTree, current_kernel, dependencies_for,
                      list_kernels, lsmod, resolve)
from kmodtree.filters import ModuleDisplay, ModuleSorter


def main():
    """Demonstrate the kmodtree package functionality."""

    print("=== kmodtree Example ===\n")

    # 1. Installed kernels
    print("1. Listing installed kernels...")
    kernels = list_kernels()
    for kernel in kernels:
        print(f"   {kernel.version}")

    # 2. Loaded modules
    print("\n2. Parsing loaded modules from /proc/modules...")
    loaded = lsmod()
    print(f"   Found {len(loaded)} loaded modules")

    # 3. Largest modules
    print("\n3. Top 5 largest modules:")
    for i, module in enumerate(ModuleSorter.sort_modules(loaded, 'size', reverse=True)[:5], 1):
        print(f"   {i}. {module.name}: {ModuleDisplay.format_size(module.mem_size)}")

    # 4. Static dependencies of the running kernel
    try:
        kernel = current_kernel()
    except KmodError as e:
        print(f"\nRunning kernel tree not available: {e}")
        return

    print(f"\n4. Reading {kernel.dep_path}...")
    deps = dependencies_for(kernel)
    print(f"   {len(deps)} modules on disk")

    # 5. Cross reference
    print("\n5. Resolving dependencies of the loaded modules...")
    resolved = resolve(loaded, deps)
    for name, names in list(resolved.items())[:5]:
        print(f"   {name}: {', '.join(names) or '-'}")

    # 6. Everything needed to load the current module set
    merged = ModuleTree(kernel, deps).merged_dependencies()
    print(f"\n6. {len(merged)} module files needed for the loaded set")

    print("\n=== Example completed successfully! ===")


if __name__ == "__main__":
    main()
