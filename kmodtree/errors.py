"""
Exceptions raised by the kmodtree parsers.

Each error kind also derives from the matching builtin exception so callers
that only know about ``FileNotFoundError`` or ``ValueError`` keep working.
"""

import errno
from typing import Optional


class KmodError(Exception):
    """Base class for all kmodtree errors."""


class NotFound(KmodError, FileNotFoundError):
    """A kernel tree root or dependency file does not exist."""


class PermissionDenied(KmodError, PermissionError):
    """The operating system refused access to a path."""


class SourceUnavailable(KmodError, OSError):
    """The live module table could not be opened."""


class MalformedLine(KmodError, ValueError):
    """
    A line did not match the expected record format.

    Attributes:
        line_number: 1-based line number, or None when parsing a lone line
        line: Raw content of the offending line
        source: Name of the file or source the line came from
    """

    def __init__(self, message: str, line: str = "",
                 line_number: Optional[int] = None, source: str = ""):
        self.reason = message
        self.line = line
        self.line_number = line_number
        self.source = source
        super().__init__(self._describe())

    def _describe(self) -> str:
        location = self.source or "<input>"
        if self.line_number is not None:
            location = f"{location}:{self.line_number}"
        return f"{location}: {self.reason}: {self.line!r}"

    def at(self, line_number: int, source: str = "") -> "MalformedLine":
        """Return a copy of this error annotated with its position."""
        return MalformedLine(self.reason, self.line, line_number,
                             source or self.source)


class MalformedModule(KmodError, ValueError):
    """A module file is not an ELF object with a .modinfo section."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(f"{path}: {message}" if path else message)


def translate_os_error(error: OSError, path: str) -> KmodError:
    """
    Map an OSError raised while opening a static file to a kmodtree error.

    SourceUnavailable is kept for the live module table, so failures other
    than a missing or forbidden path come back as a plain KmodError.

    Args:
        error: The original OS error
        path: Path that was being accessed

    Returns:
        KmodError: NotFound, PermissionDenied or KmodError
    """
    if isinstance(error, PermissionError) or error.errno in (errno.EACCES, errno.EPERM):
        return PermissionDenied(errno.EACCES, f"Permission denied reading {path}", path)
    if isinstance(error, IsADirectoryError) or error.errno == errno.EISDIR:
        return NotFound(errno.EISDIR, f"{path} is a directory, not a file", path)
    if isinstance(error, (FileNotFoundError, NotADirectoryError)) or error.errno == errno.ENOENT:
        return NotFound(errno.ENOENT, f"{path} not found", path)
    return KmodError(f"Cannot read {path}: {error.strerror or error}")
