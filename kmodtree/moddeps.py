"""
Parser for a kernel tree's static dependency index (modules.dep).

Each line maps a module file to the files it depends on:

    kernel/fs/ext4/ext4.ko.zst: kernel/fs/jbd2/jbd2.ko.zst kernel/fs/mbcache.ko.zst

A module without dependencies keeps its colon and an empty value list.
"""

from typing import Iterable, List

from .errors import MalformedLine, translate_os_error
from .lines import LineRecordParser, numbered_lines
from .models import DependencyEntry, Kernel


class DependencyMapParser:
    """Parse modules.dep files into DependencyEntry lists."""

    @staticmethod
    def parse_line(line: str) -> DependencyEntry:
        module_path, dependency_paths = LineRecordParser.split_key_value(line, ':')
        return DependencyEntry(module_path, tuple(dependency_paths))

    @staticmethod
    def parse_lines(lines: Iterable[str], source: str = "<input>") -> List[DependencyEntry]:
        """
        Parse dependency lines in file order.

        Raises:
            MalformedLine: On the first line without a colon, annotated with
                its 1-based line number
        """
        entries = []
        for number, line in numbered_lines(lines):
            try:
                entries.append(DependencyMapParser.parse_line(line))
            except MalformedLine as e:
                raise e.at(number, source) from e
        return entries

    @staticmethod
    def parse_file(path: str) -> List[DependencyEntry]:
        """
        Parse a modules.dep file.

        Args:
            path: Full path of the dependency file

        Returns:
            List[DependencyEntry]: Entries in file order

        Raises:
            NotFound: If the file does not exist
            PermissionDenied: If the file cannot be read
            MalformedLine: On the first malformed line
        """
        try:
            with open(path, 'r') as f:
                return DependencyMapParser.parse_lines(f, path)
        except OSError as e:
            raise translate_os_error(e, path) from e

    @staticmethod
    def dependencies_for(kernel: Kernel) -> List[DependencyEntry]:
        """Parse the static dependency file of an installed kernel."""
        return DependencyMapParser.parse_file(kernel.dep_path)
