#!/usr/bin/env python3
"""
kmodtree command line

Lists installed kernels, loaded modules and their static and resolved
dependencies by reading /proc/modules and /lib/modules directly.
"""

import argparse
import sys
from typing import List, Optional

from . import __version__
from .config import MODULES_ROOT, PROC_MODULES
from .errors import KmodError
from .filters import ModuleDisplay, ModuleFilter, ModuleSorter
from .formatters import CSVFormatter, JSONFormatter, mapping_rows
from .kernels import KernelLocator
from .lsmod import LoadedModuleReader
from .moddeps import DependencyMapParser
from .modinfo import ModInfoReader
from .resolver import DependencyResolver
from .tree import ModuleTree

EPILOG = """
Examples:
  kmodtree kernels                      # Installed kernels, oldest first
  kmodtree lsmod                        # Loaded modules, kernel order
  kmodtree lsmod --filter "snd*" --sort size --reverse
  kmodtree lsmod --count                # Number of loaded modules
  kmodtree deps --kernel 6.8.0-31-generic
  kmodtree resolve --json               # Loaded modules with dependency names
  kmodtree tree ext4 btrfs --merge      # Everything needed by ext4 and btrfs
  kmodtree modinfo /lib/modules/$(uname -r)/kernel/fs/ext4/ext4.ko.zst
"""


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog='kmodtree',
        description="Inspect kernel modules without external tools",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=EPILOG,
    )
    parser.add_argument('--root', default=MODULES_ROOT, metavar='DIR',
                        help=f'Directory holding the kernel trees (default: {MODULES_ROOT})')
    parser.add_argument('--rootfs', metavar='DIR',
                        help='Mount point of another root filesystem to inspect')
    parser.add_argument('--proc-modules', default=PROC_MODULES, metavar='FILE',
                        help=f'Loaded module table to read (default: {PROC_MODULES})')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Print diagnostics to stderr')

    output = argparse.ArgumentParser(add_help=False)
    formats = output.add_mutually_exclusive_group()
    formats.add_argument('--json', action='store_true', help='Output in JSON format')
    formats.add_argument('--csv', action='store_true', help='Output in CSV format')
    output.add_argument('--output', '-o', metavar='FILE',
                        help='Write output to FILE instead of stdout')
    output.add_argument('--quiet', '-q', action='store_true',
                        help='Suppress headers and only show data')

    kernel = argparse.ArgumentParser(add_help=False)
    kernel.add_argument('--kernel', '-k', metavar='VERSION',
                        help='Kernel version to use (default: running kernel)')

    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    kernels = commands.add_parser('kernels', parents=[output], help='List installed kernels')
    kernels.add_argument('--reverse', '-r', action='store_true', help='Newest first')

    lsmod = commands.add_parser('lsmod', parents=[output], help='List loaded modules')
    lsmod.add_argument('--detailed', '-d', action='store_true',
                       help='Show detailed information for each module')
    lsmod.add_argument('--count', '-c', action='store_true',
                       help='Show only the count of modules')
    lsmod.add_argument('--filter', '-f', metavar='PATTERN',
                       help='Filter modules by name pattern (supports wildcards)')
    lsmod.add_argument('--min-size', type=int, metavar='BYTES',
                       help='Show only modules with size >= BYTES')
    lsmod.add_argument('--max-size', type=int, metavar='BYTES',
                       help='Show only modules with size <= BYTES')
    lsmod.add_argument('--min-refs', type=int, metavar='COUNT',
                       help='Show only modules used at least COUNT times')
    lsmod.add_argument('--state', choices=['Live', 'Loading', 'Unloading'],
                       help='Filter by module state')
    lsmod.add_argument('--sort', choices=ModuleSorter.SORT_FIELDS,
                       help='Sort by field (default: kernel order)')
    lsmod.add_argument('--reverse', '-r', action='store_true', help='Reverse order')

    commands.add_parser('deps', parents=[output, kernel],
                        help='Show the static dependency map of a kernel')
    commands.add_parser('resolve', parents=[output, kernel],
                        help='Resolve dependencies of the loaded modules')

    tree = commands.add_parser('tree', parents=[output, kernel],
                               help='Expand modules to all their dependencies')
    tree.add_argument('modules', nargs='*', metavar='MODULE',
                      help='Module names or paths (default: loaded modules)')
    tree.add_argument('--merge', action='store_true',
                      help='Print one merged list of modules')

    modinfo = commands.add_parser('modinfo', parents=[output],
                                  help='Read .modinfo from module files')
    modinfo.add_argument('paths', nargs='+', metavar='PATH', help='Module files')

    return parser


def _select_kernel(args):
    if args.kernel:
        return KernelLocator.find_kernel(args.kernel, args.root, args.rootfs)
    return KernelLocator.current_kernel(args.root, args.rootfs)


def _render(args, items, key: str, text: str) -> str:
    if args.json:
        return JSONFormatter().format(items, key)
    if args.csv:
        return CSVFormatter().format(items, key)
    return text


def run_command(args) -> str:
    """Run the selected subcommand and return its output."""
    if args.command == 'kernels':
        kernels = KernelLocator.list_kernels(args.root, args.rootfs, args.reverse)
        return _render(args, kernels, 'kernels',
                       ModuleDisplay.render_kernels(kernels, args.quiet))

    if args.command == 'lsmod':
        modules = LoadedModuleReader.read(args.proc_modules)
        modules = ModuleFilter.filter_modules(
            modules,
            name_pattern=args.filter,
            min_size=args.min_size,
            max_size=args.max_size,
            min_refs=args.min_refs,
            state=args.state,
        )
        modules = ModuleSorter.sort_modules(modules, args.sort, args.reverse)
        if args.count:
            return f"Total loaded kernel modules: {len(modules)}"
        return _render(args, modules, 'modules',
                       ModuleDisplay.render_modules(modules, args.detailed, args.quiet))

    if args.command == 'deps':
        kernel = _select_kernel(args)
        if args.verbose:
            print(f"Reading {kernel.dep_path}", file=sys.stderr)
        entries = DependencyMapParser.dependencies_for(kernel)
        return _render(args, entries, 'dependencies', ModuleDisplay.render_entries(entries))

    if args.command == 'resolve':
        kernel = _select_kernel(args)
        if args.verbose:
            print(f"Resolving against {kernel.dep_path}", file=sys.stderr)
        loaded = LoadedModuleReader.read(args.proc_modules)
        resolved = DependencyResolver.resolve_detailed(
            loaded, DependencyMapParser.dependencies_for(kernel))
        rows = [{'name': name, 'dependencies': [dep.name for dep in deps],
                 'not_loaded': [dep.name for dep in deps if not dep.loaded]}
                for name, deps in resolved.items()]
        return _render(args, rows, 'modules', ModuleDisplay.render_resolved(resolved))

    if args.command == 'tree':
        tree = ModuleTree(_select_kernel(args), proc_modules=args.proc_modules)
        if args.merge:
            merged = sorted(tree.merged_dependencies(args.modules))
            return _render(args, [{'module_path': path} for path in merged],
                           'modules', "\n".join(merged))
        mapping = tree.dependencies_of(args.modules)
        if args.verbose:
            missing = [name for name in args.modules if tree.find_module_path(name) is None]
            for name in missing:
                print(f"Warning: {name} is not in {tree.kernel.dep_path}", file=sys.stderr)
        return _render(args, mapping_rows(mapping, 'module_path', 'dependency_paths'),
                       'modules', ModuleDisplay.render_mapping(mapping))

    if args.command == 'modinfo':
        infos = [ModInfoReader.read(path) for path in args.paths]
        return _render(args, infos, 'modules', "\n".join(str(info) for info in infos))

    raise ValueError(f"Unknown command {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function of the kmodtree command line."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        print(f"Arguments: {args}", file=sys.stderr)

    try:
        output_content = run_command(args)
    except KmodError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation cancelled by user", file=sys.stderr)
        return 1

    if args.output:
        try:
            with open(args.output, 'w', encoding='utf-8') as f:
                f.write(output_content)
        except OSError as e:
            print(f"Error writing to file {args.output}: {e}", file=sys.stderr)
            return 1
        if args.verbose:
            print(f"Output written to {args.output}", file=sys.stderr)
    else:
        print(output_content)

    return 0


if __name__ == "__main__":
    sys.exit(main())
