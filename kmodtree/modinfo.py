"""
Reader for the .modinfo section of kernel module files.

Module objects embed their metadata (name, description, license, depends,
aliases, vermagic, ...) as NUL separated "key=value" strings in an ELF
section called .modinfo. Distribution kernels often ship the modules
compressed, so .ko.zst, .ko.xz and .ko.gz files are decompressed in memory
before the ELF is opened.
"""

import gzip
import io
import lzma
from typing import Dict, List

import zstandard as zstd
from elftools.common.exceptions import ELFError
from elftools.elf.elffile import ELFFile

from .config import SIGNATURE_KEYS, SIGNATURE_MARKER
from .errors import MalformedModule, translate_os_error
from .models import ModInfo


def parse_modinfo_data(data: bytes) -> Dict[str, List[str]]:
    """
    Split raw .modinfo section data into a key to values mapping.

    Keys may repeat (alias, parm, ...); their values are kept in order.
    """
    fields: Dict[str, List[str]] = {}
    for entry in data.split(b'\x00'):
        if not entry:
            continue
        key, found, value = entry.partition(b'=')
        if not found:
            continue
        fields.setdefault(key.decode('utf-8', errors='replace'), []).append(
            value.decode('utf-8', errors='replace'))
    return fields


class ModInfoReader:
    """Read module metadata straight from module files."""

    @staticmethod
    def load_module_bytes(path: str) -> bytes:
        """
        Return the uncompressed content of a module file.

        Raises:
            NotFound, PermissionDenied: If the file cannot be opened
            MalformedModule: If the compressed stream is corrupt
        """
        try:
            if path.endswith('.zst'):
                with open(path, 'rb') as compressed_file:
                    dctx = zstd.ZstdDecompressor()
                    with dctx.stream_reader(compressed_file) as reader:
                        return reader.read()
            if path.endswith('.xz'):
                with lzma.open(path, 'rb') as f:
                    return f.read()
            if path.endswith('.gz'):
                with gzip.open(path, 'rb') as f:
                    return f.read()
            with open(path, 'rb') as f:
                return f.read()
        except (zstd.ZstdError, lzma.LZMAError, gzip.BadGzipFile, EOFError) as e:
            raise MalformedModule(f"cannot decompress module: {e}", path) from e
        except OSError as e:
            raise translate_os_error(e, path) from e

    @staticmethod
    def read(path: str) -> ModInfo:
        """
        Read the .modinfo section of a module file.

        Args:
            path: Path to a .ko, .ko.zst, .ko.xz or .ko.gz file

        Returns:
            ModInfo: Parsed module metadata

        Raises:
            NotFound, PermissionDenied: If the file cannot be opened
            MalformedModule: If the file is not an ELF object with .modinfo
        """
        data = ModInfoReader.load_module_bytes(path)

        try:
            elf = ELFFile(io.BytesIO(data))
            section = elf.get_section_by_name('.modinfo')
            section_data = section.data() if section is not None else None
        except ELFError as e:
            raise MalformedModule(f"not an ELF object: {e}", path) from e

        if section_data is None:
            raise MalformedModule("no .modinfo section", path)

        fields = parse_modinfo_data(section_data)
        signed = (data.endswith(SIGNATURE_MARKER)
                  or any(key in fields for key in SIGNATURE_KEYS))
        return ModInfo(path, fields, signed)
