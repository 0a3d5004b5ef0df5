"""
DOL format parser for GameCube boot executables.

A DOL is a fixed 0x100 byte header followed by up to 7 text and 11 data
sections, each copied verbatim to its load address. A single bss range is
zeroed at startup. There is no magic number, so recognizing a DOL relies
on the sanity checks in DOL.is_valid().
"""

import struct
from typing import Union

from ..io.binary_stream import BinaryStream
from .dol_structures import (
    DolHeader, DolSection,
    DOL_HEADER_SIZE, DOL_TEXT_SECTION_COUNT, DOL_DATA_SECTION_COUNT,
    DOL_TEXT_OFFSETS, DOL_DATA_OFFSETS, DOL_TEXT_ADDRESSES, DOL_DATA_ADDRESSES,
    DOL_TEXT_SIZES, DOL_DATA_SIZES, DOL_BSS_ADDRESS, DOL_BSS_SIZE, DOL_ENTRY_POINT,
    CACHED_MEMORY_BIT,
)


class DOL(BinaryStream):
    """
    GameCube DOL parser.

    Parsing never raises: a buffer shorter than the header is zero padded
    so the header can still be inspected, and is_valid() reports it as
    unusable.
    """

    def __init__(self, data: Union[bytes, bytearray]):
        self._source_length = len(data)
        if len(data) < DOL_HEADER_SIZE:
            data = bytes(data) + bytes(DOL_HEADER_SIZE - len(data))
        super().__init__(data)
        self.header = self._read_header()

    def _read_header(self) -> DolHeader:
        """Read the fixed DOL header."""
        header = DolHeader()
        header.text_offsets = self.read_uint32_array(DOL_TEXT_OFFSETS, DOL_TEXT_SECTION_COUNT)
        header.data_offsets = self.read_uint32_array(DOL_DATA_OFFSETS, DOL_DATA_SECTION_COUNT)
        header.text_addresses = self.read_uint32_array(DOL_TEXT_ADDRESSES, DOL_TEXT_SECTION_COUNT)
        header.data_addresses = self.read_uint32_array(DOL_DATA_ADDRESSES, DOL_DATA_SECTION_COUNT)
        header.text_sizes = self.read_uint32_array(DOL_TEXT_SIZES, DOL_TEXT_SECTION_COUNT)
        header.data_sizes = self.read_uint32_array(DOL_DATA_SIZES, DOL_DATA_SECTION_COUNT)

        self.position = DOL_BSS_ADDRESS
        header.bss_address = self.read_uint32()
        self.position = DOL_BSS_SIZE
        header.bss_size = self.read_uint32()
        self.position = DOL_ENTRY_POINT
        header.entry_point = self.read_uint32()
        return header

    @property
    def source_length(self) -> int:
        """Length of the buffer the header was parsed from, before padding."""
        return self._source_length

    def is_valid(self) -> bool:
        """
        Check whether the parsed header describes a plausible DOL.

        Returns:
            True if every structural heuristic passes
        """
        length = self._source_length
        if length < DOL_HEADER_SIZE:
            return False

        sections = self.header.present_sections
        if not sections:
            return False

        for section in sections:
            if section.file_offset < DOL_HEADER_SIZE or section.address == 0:
                return False
            if section.address & CACHED_MEMORY_BIT == 0:
                return False
            if section.file_end > length:
                return False

        if sum(section.size for section in sections) > length:
            return False

        by_offset = sorted(sections, key=lambda s: s.file_offset)
        for previous, current in zip(by_offset, by_offset[1:]):
            if current.file_offset < previous.file_end:
                return False

        header = self.header
        if header.bss_size and header.bss_address & CACHED_MEMORY_BIT == 0:
            return False

        entry = header.entry_point
        if not any(s.address <= entry < s.address_end for s in sections):
            return False

        return True

    def section_data(self, section: DolSection) -> bytes:
        """Read the file bytes backing a section."""
        self.position = section.file_offset
        return self.read_bytes(section.size)

    @staticmethod
    def pack_header(header: DolHeader) -> bytes:
        """Serialize a header back into its 0x100 byte layout."""
        text = DOL_TEXT_SECTION_COUNT
        data = DOL_DATA_SECTION_COUNT
        packed = struct.pack(
            f'>{text}I{data}I{text}I{data}I{text}I{data}I3I',
            *header.text_offsets, *header.data_offsets,
            *header.text_addresses, *header.data_addresses,
            *header.text_sizes, *header.data_sizes,
            header.bss_address, header.bss_size, header.entry_point,
        )
        return packed + bytes(DOL_HEADER_SIZE - len(packed))
