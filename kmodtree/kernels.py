"""
Discovery of installed kernel trees.

Kernel trees live in one directory per version under /lib/modules. A
directory only counts as a kernel tree when it carries a modules.dep file;
leftovers of partially purged kernels usually do not.
"""

import errno
import os
from typing import List, Optional

from .config import MODULES_DEP, MODULES_ROOT
from .errors import NotFound, PermissionDenied
from .models import Kernel, version_key


def compare_versions(a: str, b: str) -> int:
    """Return -1, 0 or 1 as version a sorts before, with or after b."""
    key_a, key_b = version_key(a), version_key(b)
    return (key_a > key_b) - (key_a < key_b)


def modules_root(root: Optional[str] = None, rootfs: Optional[str] = None) -> str:
    """
    Resolve the directory holding the kernel trees.

    Args:
        root: Module root, defaults to /lib/modules
        rootfs: Mount point of another root filesystem; "", "/" and None
            mean the running system

    Returns:
        str: Directory path
    """
    root = root or MODULES_ROOT
    if rootfs:
        rootfs = rootfs.strip().rstrip('/')
    if not rootfs:
        return root
    return os.path.join(rootfs, root.lstrip('/'))


class KernelLocator:
    """Enumerate and order the kernel trees installed under a module root."""

    @staticmethod
    def is_kernel_tree(path: str) -> bool:
        """Return True if path contains a static dependency file."""
        return os.path.exists(os.path.join(path, MODULES_DEP))

    @staticmethod
    def list_kernels(root: Optional[str] = None, rootfs: Optional[str] = None,
                     reverse: bool = False) -> List[Kernel]:
        """
        List installed kernel trees ordered by version.

        Args:
            root: Module root, defaults to /lib/modules
            rootfs: Optional mount point of another root filesystem
            reverse: Newest kernel first

        Returns:
            List[Kernel]: Kernels in version order; empty if none qualify

        Raises:
            NotFound: If the root does not exist or is not a directory
            PermissionDenied: If the root cannot be listed
        """
        directory = modules_root(root, rootfs)
        kernels = []

        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    if entry.is_dir() and KernelLocator.is_kernel_tree(entry.path):
                        kernels.append(Kernel(entry.name, entry.path))
        except PermissionError as e:
            raise PermissionDenied(errno.EACCES, f"Permission denied listing {directory}",
                                   directory) from e
        except OSError as e:
            raise NotFound(errno.ENOENT, f"Module root {directory} not found or unreadable",
                           directory) from e

        kernels.sort(reverse=reverse)
        return kernels

    @staticmethod
    def find_kernel(version: str, root: Optional[str] = None,
                    rootfs: Optional[str] = None) -> Kernel:
        """
        Return the kernel tree for a given version.

        Raises:
            NotFound: If no kernel tree exists for the version
        """
        path = os.path.join(modules_root(root, rootfs), version)
        if not os.path.isdir(path) or not KernelLocator.is_kernel_tree(path):
            raise NotFound(errno.ENOENT, f"No kernel tree for {version}", path)
        return Kernel(version, path)

    @staticmethod
    def current_kernel(root: Optional[str] = None, rootfs: Optional[str] = None) -> Kernel:
        """Return the kernel tree of the running kernel release."""
        return KernelLocator.find_kernel(os.uname().release, root, rootfs)
