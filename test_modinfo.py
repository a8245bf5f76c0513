#!/usr/bin/env python3
"""
Unit tests for reading .modinfo from module files.

The module objects are minimal ELF64 relocatable files assembled in the
tests, holding only a section name table and a .modinfo section.
"""

import gzip
import lzma
import os
import struct
import tempfile
import unittest

import zstandard as zstd

from kmodtree import MalformedModule, ModInfoReader, NotFound, read_modinfo
from kmodtree.config import SIGNATURE_MARKER
from kmodtree.modinfo import parse_modinfo_data

MODINFO = (b"license=GPL\x00"
           b"description=Fourth Extended Filesystem\x00"
           b"alias=fs-ext4\x00"
           b"alias=ext3\x00"
           b"depends=jbd2,mbcache\x00"
           b"name=ext4\x00"
           b"vermagic=6.1.0 SMP preempt mod_unload \x00")

SECTION_HEADER = '<IIQQQQIIQQ'
SHT_PROGBITS = 1
SHT_STRTAB = 3
SHF_ALLOC = 2


def build_module(modinfo: bytes = MODINFO, with_modinfo: bool = True) -> bytes:
    """Assemble a little endian x86_64 ELF relocatable object."""
    names = b"\x00.shstrtab\x00.modinfo\x00"
    names_offset = 64
    modinfo_offset = names_offset + len(names)
    section_offset = modinfo_offset + len(modinfo)
    section_offset += (-section_offset) % 8

    sections = [
        struct.pack(SECTION_HEADER, 0, 0, 0, 0, 0, 0, 0, 0, 0, 0),
        struct.pack(SECTION_HEADER, 1, SHT_STRTAB, 0, 0, names_offset, len(names), 0, 0, 1, 0),
    ]
    if with_modinfo:
        sections.append(struct.pack(SECTION_HEADER, 11, SHT_PROGBITS, SHF_ALLOC, 0,
                                    modinfo_offset, len(modinfo), 0, 0, 1, 0))

    ident = b"\x7fELF" + bytes([2, 1, 1, 0, 0]) + b"\x00" * 7
    header = ident + struct.pack('<HHIQQQIHHHHHH',
                                 1,               # ET_REL
                                 62,              # EM_X86_64
                                 1,               # EV_CURRENT
                                 0, 0, section_offset, 0,
                                 64, 0, 0,        # ehsize, phentsize, phnum
                                 64, len(sections), 1)

    body = header + names + modinfo
    body += b"\x00" * (section_offset - len(body))
    return body + b"".join(sections)


class TestParseModinfoData(unittest.TestCase):
    """Test cases for splitting raw .modinfo data."""

    def test_repeated_keys_accumulate(self):
        fields = parse_modinfo_data(MODINFO)

        self.assertEqual(fields["alias"], ["fs-ext4", "ext3"])
        self.assertEqual(fields["license"], ["GPL"])

    def test_entries_without_value_are_ignored(self):
        self.assertEqual(parse_modinfo_data(b"\x00\x00garbage\x00intree=Y\x00"),
                         {"intree": ["Y"]})

    def test_value_may_contain_equals(self):
        self.assertEqual(parse_modinfo_data(b"parm=debug:level=1\x00"),
                         {"parm": ["debug:level=1"]})


class TestModInfoReader(unittest.TestCase):
    """Test cases for reading module files."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def write(self, name: str, data: bytes) -> str:
        path = os.path.join(self.root, name)
        with open(path, 'wb') as f:
            f.write(data)
        return path

    def assert_ext4(self, info):
        self.assertEqual(info.name, "ext4")
        self.assertEqual(info.description, "Fourth Extended Filesystem")
        self.assertEqual(info.license, "GPL")
        self.assertEqual(info.depends, ["jbd2", "mbcache"])
        self.assertEqual(info.aliases, ["fs-ext4", "ext3"])
        self.assertTrue(info.vermagic.startswith("6.1.0"))

    def test_plain_module(self):
        info = read_modinfo(self.write("ext4.ko", build_module()))

        self.assert_ext4(info)
        self.assertFalse(info.signed)

    def test_compressed_modules(self):
        data = build_module()
        test_cases = [
            ("ext4.ko.zst", zstd.ZstdCompressor().compress(data)),
            ("ext4.ko.xz", lzma.compress(data)),
            ("ext4.ko.gz", gzip.compress(data)),
        ]
        for name, compressed in test_cases:
            with self.subTest(name=name):
                self.assert_ext4(ModInfoReader.read(self.write(name, compressed)))

    def test_signed_module(self):
        data = build_module() + b"\x00" * 16 + SIGNATURE_MARKER
        self.assertTrue(read_modinfo(self.write("ext4.ko", data)).signed)

    def test_signature_keys(self):
        data = build_module(MODINFO + b"sig_id=PKCS#7\x00")
        self.assertTrue(read_modinfo(self.write("ext4.ko", data)).signed)

    def test_name_falls_back_to_file_name(self):
        info = read_modinfo(self.write("snd-dummy.ko", build_module(b"license=GPL\x00")))
        self.assertEqual(info.name, "snd_dummy")
        self.assertEqual(info.depends, [])

    def test_missing_modinfo_section(self):
        with self.assertRaises(MalformedModule):
            read_modinfo(self.write("empty.ko", build_module(with_modinfo=False)))

    def test_not_an_elf_file(self):
        with self.assertRaises(MalformedModule):
            read_modinfo(self.write("text.ko", b"just some text, not an object\n"))

    def test_corrupt_compressed_file(self):
        with self.assertRaises(MalformedModule):
            read_modinfo(self.write("broken.ko.xz", b"not xz data"))

    def test_missing_file(self):
        with self.assertRaises(NotFound):
            read_modinfo(os.path.join(self.root, "missing.ko"))

    def test_to_dict(self):
        info = read_modinfo(self.write("ext4.ko", build_module()))
        data = info.to_dict()
        self.assertEqual(data["name"], "ext4")
        self.assertEqual(data["depends"], ["jbd2", "mbcache"])
        self.assertFalse(data["signed"])


if __name__ == '__main__':
    unittest.main(verbosity=2)
