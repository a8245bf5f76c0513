"""
Line-oriented record decoding shared by the kmodtree parsers.

Both kernel sources handled here are plain text with one record per line:
whitespace separated fields in /proc/modules, and "key: values" pairs in
modules.dep.
"""

from typing import Iterable, Iterator, List, Tuple

from .config import EMPTY_LIST_PLACEHOLDER
from .errors import MalformedLine


class LineRecordParser:
    """Split single lines into trimmed fields."""

    @staticmethod
    def split_fields(line: str, min_fields: int) -> List[str]:
        """
        Split a whitespace separated line into fields.

        Args:
            line: Raw line, with or without its trailing newline
            min_fields: Number of fields the format requires

        Returns:
            List[str]: Fields in line order

        Raises:
            MalformedLine: If the line has fewer than min_fields fields
        """
        fields = line.split()
        if len(fields) < min_fields:
            raise MalformedLine(
                f"expected at least {min_fields} fields, found {len(fields)}",
                line.rstrip('\n'))
        return fields

    @staticmethod
    def split_key_value(line: str, separator: str = ':') -> Tuple[str, List[str]]:
        """
        Split a "key: value value ..." line.

        The value list may be empty; values are separated by whitespace.

        Raises:
            MalformedLine: If the separator is missing or the key is empty
        """
        key, found, rest = line.partition(separator)
        key = key.strip()
        if not found:
            raise MalformedLine(f"missing '{separator}' separator", line.rstrip('\n'))
        if not key:
            raise MalformedLine("empty key", line.rstrip('\n'))
        return key, rest.split()

    @staticmethod
    def split_list(value: str, placeholder: str = EMPTY_LIST_PLACEHOLDER,
                   delimiter: str = ',') -> List[str]:
        """
        Split a list-valued field.

        The placeholder token stands for an empty list. Elements are not
        trimmed; only the empty element left by a trailing delimiter is
        dropped.

        Args:
            value: Raw field text, e.g. "jbd2,mbcache," or "-"
            placeholder: Token meaning "no items"
            delimiter: Element separator

        Returns:
            List[str]: Elements in field order
        """
        if value == placeholder:
            return []
        items = value.split(delimiter)
        if items and items[-1] == '':
            items.pop()
        return items

    @staticmethod
    def join_list(items: Iterable[str], placeholder: str = EMPTY_LIST_PLACEHOLDER,
                  delimiter: str = ',') -> str:
        """Inverse of split_list: render items back into field text."""
        items = list(items)
        if not items:
            return placeholder
        return delimiter.join(items)


def numbered_lines(lines: Iterable[str]) -> Iterator[Tuple[int, str]]:
    """Yield (1-based line number, line) for every non-blank line."""
    for number, line in enumerate(lines, 1):
        if line.strip():
            yield number, line
