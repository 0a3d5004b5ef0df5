"""
DOL format structure definitions.
"""

from dataclasses import dataclass, field
from typing import List

# Layout constants
DOL_HEADER_SIZE = 0x100
DOL_TEXT_SECTION_COUNT = 7
DOL_DATA_SECTION_COUNT = 11

# Field offsets
DOL_TEXT_OFFSETS = 0x00
DOL_DATA_OFFSETS = 0x1C
DOL_TEXT_ADDRESSES = 0x48
DOL_DATA_ADDRESSES = 0x64
DOL_TEXT_SIZES = 0x90
DOL_DATA_SIZES = 0xAC
DOL_BSS_ADDRESS = 0xD8
DOL_BSS_SIZE = 0xDC
DOL_ENTRY_POINT = 0xE0

# Loadable addresses live in the cached MEM1 mirror
CACHED_MEMORY_BIT = 0x80000000


def _text_zeros() -> List[int]:
    return [0] * DOL_TEXT_SECTION_COUNT


def _data_zeros() -> List[int]:
    return [0] * DOL_DATA_SECTION_COUNT


@dataclass
class DolSection:
    """One text or data descriptor from the DOL header."""
    index: int = 0
    is_text: bool = False
    file_offset: int = 0
    address: int = 0
    size: int = 0

    @property
    def name(self) -> str:
        return f".text{self.index}" if self.is_text else f".data{self.index}"

    @property
    def is_present(self) -> bool:
        return self.size != 0

    @property
    def file_end(self) -> int:
        return self.file_offset + self.size

    @property
    def address_end(self) -> int:
        return self.address + self.size


@dataclass
class DolHeader:
    """DOL file header."""
    text_offsets: List[int] = field(default_factory=_text_zeros)
    data_offsets: List[int] = field(default_factory=_data_zeros)
    text_addresses: List[int] = field(default_factory=_text_zeros)
    data_addresses: List[int] = field(default_factory=_data_zeros)
    text_sizes: List[int] = field(default_factory=_text_zeros)
    data_sizes: List[int] = field(default_factory=_data_zeros)
    bss_address: int = 0
    bss_size: int = 0
    entry_point: int = 0

    @property
    def text_sections(self) -> List[DolSection]:
        return [
            DolSection(i, True, self.text_offsets[i], self.text_addresses[i], self.text_sizes[i])
            for i in range(DOL_TEXT_SECTION_COUNT)
        ]

    @property
    def data_sections(self) -> List[DolSection]:
        return [
            DolSection(i, False, self.data_offsets[i], self.data_addresses[i], self.data_sizes[i])
            for i in range(DOL_DATA_SECTION_COUNT)
        ]

    @property
    def sections(self) -> List[DolSection]:
        """All text and data descriptors in header order."""
        return self.text_sections + self.data_sections

    @property
    def present_sections(self) -> List[DolSection]:
        return [s for s in self.sections if s.is_present]
