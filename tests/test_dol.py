"""Tests for the DOL header parser."""

import struct

from gamecube_loader.formats.dol import DOL
from gamecube_loader.formats.dol_structures import DOL_HEADER_SIZE, DOL_BSS_ADDRESS

from conftest import build_dol


def test_header_fields(dol_bytes):
    dol = DOL(dol_bytes)
    header = dol.header

    assert header.text_offsets[0] == 0x100
    assert header.text_addresses[:2] == [0x80003100, 0x80003200]
    assert header.text_sizes[:2] == [0x20, 0x10]
    assert header.data_addresses[0] == 0x80004000
    assert header.bss_address == 0x80004020
    assert header.bss_size == 0x40
    assert header.entry_point == 0x80003100
    assert [s.name for s in header.present_sections] == ['.text0', '.text1', '.data0']


def test_header_round_trip(dol_bytes):
    dol = DOL(dol_bytes)
    assert DOL.pack_header(dol.header) == dol_bytes[:DOL_HEADER_SIZE]


def test_section_data(dol_bytes):
    dol = DOL(dol_bytes)
    data_section = dol.header.data_sections[0]
    assert dol.section_data(data_section) == bytes(range(0x20))


def test_valid_dol(dol_bytes):
    assert DOL(dol_bytes).is_valid()


def test_short_buffer_parses_but_is_invalid():
    dol = DOL(b'\x00' * 0x20)
    assert dol.source_length == 0x20
    assert dol.header.present_sections == []
    assert not dol.is_valid()


def test_empty_buffer_is_invalid():
    assert not DOL(b'').is_valid()


def test_no_sections_is_invalid():
    assert not DOL(bytes(DOL_HEADER_SIZE)).is_valid()


def test_section_inside_header_is_invalid():
    data = bytearray(build_dol(text=[(0x80003100, bytes(0x20))]))
    struct.pack_into('>I', data, 0, 0x80)
    assert not DOL(bytes(data)).is_valid()


def test_uncached_address_is_invalid():
    data = build_dol(text=[(0x00003100, bytes(0x20))], entry=0x00003100)
    assert not DOL(data).is_valid()


def test_truncated_section_is_invalid():
    data = build_dol(text=[(0x80003100, bytes(0x20))])
    assert not DOL(data[:-4]).is_valid()


def test_overlapping_file_ranges_are_invalid():
    data = bytearray(build_dol(text=[(0x80003100, bytes(0x20)), (0x80003200, bytes(0x20))]))
    # Point the second text section back at the first one's bytes
    struct.pack_into('>I', data, 4, 0x110)
    assert not DOL(bytes(data)).is_valid()


def test_entry_point_outside_sections_is_invalid():
    data = build_dol(text=[(0x80003100, bytes(0x20))], entry=0x80009000)
    assert not DOL(data).is_valid()


def test_uncached_bss_is_invalid():
    data = bytearray(build_dol(text=[(0x80003100, bytes(0x20))], bss=(0x80004000, 0x10)))
    struct.pack_into('>I', data, DOL_BSS_ADDRESS, 0x00004000)
    assert not DOL(bytes(data)).is_valid()
