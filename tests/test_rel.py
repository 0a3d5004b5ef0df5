"""Tests for the REL module parser."""

import struct

from gamecube_loader.formats.rel import REL
from gamecube_loader.formats.rel_structures import (
    RelHeader, R_DOLPHIN_END, R_PPC_ADDR32, REL_DEFAULT_ALIGN,
)

from conftest import build_rel


def test_header_fields(rel_bytes):
    rel = REL(rel_bytes)
    header = rel.header

    assert header.module_id == 1
    assert header.version == 3
    assert header.section_count == 4
    assert header.section_table_offset == 0x4C
    assert header.bss_size == 0x30
    assert header.bss_section == 3
    assert header.align == 8
    assert header.bss_align == 8
    assert header.fix_size == 0


def test_sections(rel_bytes):
    rel = REL(rel_bytes)
    empty, text, data, bss = rel.sections

    assert empty.is_empty
    assert text.executable and text.name == '.text1'
    assert text.offset == 0x6C and text.length == 0x10
    assert not data.executable and data.name == '.data2'
    assert bss.is_bss and bss.name == '.bss3' and bss.length == 0x30
    assert rel.section_data(data) == b'\x01\x02\x03\x04\x05\x06'


def test_imports_and_relocations(rel_bytes):
    rel = REL(rel_bytes)

    assert len(rel.imports) == 1
    relocations = rel.relocations_for(0)
    assert [(r.offset, r.type, r.section, r.addend) for r in relocations] == [
        (0x10, R_PPC_ADDR32, 1, 0x80003100),
        (0, R_DOLPHIN_END, 0, 0),
    ]
    assert rel.relocations_for(7) == []


def test_valid_rel(rel_bytes):
    assert REL(rel_bytes).is_valid()


def test_version_one_header_uses_default_alignment():
    data = build_rel([("text", b'\x00' * 8)], version=1)
    rel = REL(data)

    assert rel.is_valid()
    assert rel.header.version == 1
    assert rel.header.align == REL_DEFAULT_ALIGN
    assert rel.header.bss_align == REL_DEFAULT_ALIGN
    assert rel.sections[0].offset == 0x48


def test_version_two_header_has_alignment_but_no_fix_size():
    data = build_rel([("data", b'\x00' * 8)], version=2, align=32, bss_align=16)
    rel = REL(data)

    assert rel.is_valid()
    assert rel.header.align == 32
    assert rel.header.bss_align == 16
    assert rel.header.fix_size == 0
    assert rel.size_of(RelHeader) == 0x48


def test_unknown_version_is_invalid(rel_bytes):
    data = bytearray(rel_bytes)
    struct.pack_into('>I', data, 0x1C, 9)
    assert not REL(bytes(data)).is_valid()


def test_zero_sections_is_invalid():
    assert not REL(build_rel([])).is_valid()


def test_section_outside_file_is_invalid(rel_bytes):
    data = bytearray(rel_bytes)
    # Stretch the text section past the end of the file
    struct.pack_into('>I', data, 0x4C + 8 + 4, 0x1000)
    assert not REL(bytes(data)).is_valid()


def test_section_table_outside_file_is_invalid(rel_bytes):
    data = bytearray(rel_bytes)
    struct.pack_into('>I', data, 0x10, 0x10000)
    rel = REL(bytes(data))
    assert rel.sections == []
    assert not rel.is_valid()


def test_empty_buffer_is_invalid():
    assert not REL(b'').is_valid()
