"""
REL format parser for GameCube relocatable modules.

A REL carries its own section table plus per-module relocation lists that
the runtime linker applies after placing the module in memory. This parser
decodes the header, section table, and import/relocation tables as data;
applying the relocations is left to a later pass.
"""

import logging
from typing import List, Union

from ..io.binary_stream import BinaryStream
from .rel_structures import (
    RelHeader, RelSection, RelSectionEntry, RelImport, RelRelocation,
    REL_HEADER_SIZES, REL_VERSION_OFFSET, REL_MAX_SECTIONS,
    REL_SECTION_ENTRY_SIZE, REL_IMPORT_ENTRY_SIZE, REL_RELOCATION_ENTRY_SIZE,
    REL_SECTION_EXECUTABLE, REL_SECTION_OFFSET_MASK,
    R_DOLPHIN_END,
)

logger = logging.getLogger(__name__)


class REL(BinaryStream):
    """
    GameCube REL parser.

    Like the DOL parser this never raises on malformed input; tables that
    would read past the end of the buffer are left empty and is_valid()
    rejects the module.
    """

    def __init__(self, data: Union[bytes, bytearray]):
        self._source_length = len(data)
        max_header = max(REL_HEADER_SIZES.values())
        if len(data) < max_header:
            data = bytes(data) + bytes(max_header - len(data))
        super().__init__(data)

        self.header = self._read_header()
        self.sections: List[RelSection] = self._read_sections()
        self.imports: List[RelImport] = self._read_imports()

    def _read_header(self) -> RelHeader:
        """Read the version-dependent header."""
        self.position = REL_VERSION_OFFSET
        self.version = min(self.read_uint32(), max(REL_HEADER_SIZES))
        return self.read_class(RelHeader, 0)

    def _fits(self, offset: int, size: int) -> bool:
        return 0 <= offset and offset + size <= self._source_length

    def _read_sections(self) -> List[RelSection]:
        """Decode the section table."""
        header = self.header
        count = header.section_count
        if count > REL_MAX_SECTIONS:
            return []
        if not self._fits(header.section_table_offset, count * REL_SECTION_ENTRY_SIZE):
            return []

        entries = self.read_class_array(RelSectionEntry, header.section_table_offset, count)
        return [
            RelSection(
                index=i,
                offset=entry.offset_flags & REL_SECTION_OFFSET_MASK,
                length=entry.length,
                executable=(entry.offset_flags & REL_SECTION_EXECUTABLE) != 0,
            )
            for i, entry in enumerate(entries)
        ]

    def _read_imports(self) -> List[RelImport]:
        """Decode the import table and each import's relocation list."""
        header = self.header
        if header.import_offset == 0 or header.import_size == 0:
            return []
        if not self._fits(header.import_offset, header.import_size):
            return []

        count = header.import_size // REL_IMPORT_ENTRY_SIZE
        imports = self.read_class_array(RelImport, header.import_offset, count)
        for imp in imports:
            imp.relocations = self._read_relocations(imp.offset)
        return imports

    def _read_relocations(self, offset: int) -> List[RelRelocation]:
        """Read relocation directives up to R_DOLPHIN_END."""
        relocations = []
        while self._fits(offset, REL_RELOCATION_ENTRY_SIZE):
            relocation = self.read_class(RelRelocation, offset)
            relocations.append(relocation)
            if relocation.type == R_DOLPHIN_END:
                return relocations
            offset += REL_RELOCATION_ENTRY_SIZE

        logger.warning(f"Relocation list at 0x{offset:x} is not terminated")
        return relocations

    @property
    def source_length(self) -> int:
        return self._source_length

    def is_valid(self) -> bool:
        """
        Check whether the parsed header describes a plausible REL.

        Returns:
            True if every structural heuristic passes
        """
        header = self.header
        header_size = REL_HEADER_SIZES.get(header.version)
        if header_size is None or self._source_length < header_size:
            return False

        if not 1 <= header.section_count <= REL_MAX_SECTIONS:
            return False
        if len(self.sections) != header.section_count:
            return False

        for section in self.sections:
            if section.is_empty or section.is_bss:
                continue
            if section.offset < header_size or not self._fits(section.offset, section.length):
                return False

        if header.import_size and not self._fits(header.import_offset, header.import_size):
            return False

        return True

    def section_data(self, section: RelSection) -> bytes:
        """Read the file bytes backing a section."""
        self.position = section.offset
        return self.read_bytes(section.length)

    def relocations_for(self, module_id: int) -> List[RelRelocation]:
        """Relocation directives against a given module."""
        for imp in self.imports:
            if imp.module_id == module_id:
                return imp.relocations
        return []
