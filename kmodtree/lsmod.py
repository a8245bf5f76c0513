"""
Parser for the live table of loaded kernel modules.

/proc/modules carries one module per line:

    name size instances deps state offset [taints]

for example "ext4 757760 1 jbd2,mbcache, Live 0xffffffffc0a1e000". The deps
field is "-" when empty and may contain markers such as "[permanent]".
"""

from typing import Iterable, List, Optional, Union

from .config import PROC_MODULES
from .errors import MalformedLine, SourceUnavailable
from .lines import LineRecordParser
from .models import ModuleRecord

MODULE_FIELDS = 6


def _unsigned(value: str, what: str, line: str, base: int = 10) -> int:
    digits = value[2:] if base == 16 and value[:2].lower() == '0x' else value
    try:
        if not digits or digits.startswith(('-', '+')):
            raise ValueError(value)
        return int(digits, base)
    except ValueError:
        raise MalformedLine(f"invalid {what} {value!r}", line) from None


class LoadedModuleReader:
    """Read snapshots of the loaded module table."""

    @staticmethod
    def parse_line(line: str) -> ModuleRecord:
        """
        Parse one line of the module table.

        Args:
            line: Raw line

        Returns:
            ModuleRecord: The parsed module

        Raises:
            MalformedLine: If the line does not have the six required fields
                or a numeric field is not a number
        """
        raw = line.rstrip('\n')
        fields = LineRecordParser.split_fields(raw, MODULE_FIELDS)
        name, size, instances, deps, state, offset = fields[:MODULE_FIELDS]

        items = LineRecordParser.split_list(deps)
        # Markers like [permanent] or [unsafe] are not module names
        flags = tuple(item for item in items if item.startswith('['))
        dependencies = tuple(item for item in items if not item.startswith('['))

        return ModuleRecord(
            name=name,
            mem_size=_unsigned(size, "size", raw),
            instances=_unsigned(instances, "instance count", raw),
            dependencies=dependencies,
            state=state,
            offset=_unsigned(offset, "load offset", raw, base=16),
            flags=flags,
            taints=' '.join(fields[MODULE_FIELDS:]),
        )

    @staticmethod
    def parse_lines(lines: Iterable[str], source: str = "<input>") -> List[ModuleRecord]:
        """
        Parse module table lines into records, in table order.

        A blank line has no fields and is malformed like any other short
        line. The first malformed line aborts the parse.

        Raises:
            MalformedLine: Annotated with the 1-based line number
        """
        modules = []
        for number, line in enumerate(lines, 1):
            try:
                modules.append(LoadedModuleReader.parse_line(line))
            except MalformedLine as e:
                raise e.at(number, source) from e
        return modules

    @staticmethod
    def read(path: str = PROC_MODULES,
             text: Optional[Union[str, Iterable[str]]] = None) -> List[ModuleRecord]:
        """
        Take a snapshot of the loaded modules.

        Args:
            path: Module table to read, defaults to /proc/modules
            text: Table content to parse instead of reading path; either a
                string or an iterable of lines

        Returns:
            List[ModuleRecord]: Loaded modules in kernel order

        Raises:
            SourceUnavailable: If the module table cannot be opened or read
            MalformedLine: On the first line that does not parse
        """
        if text is not None:
            if isinstance(text, str):
                text = text.splitlines()
            return LoadedModuleReader.parse_lines(text)

        try:
            with open(path, 'r') as f:
                return LoadedModuleReader.parse_lines(f, path)
        except OSError as e:
            raise SourceUnavailable(e.errno, f"Cannot read {path}: {e.strerror or e}",
                                    path) from e
