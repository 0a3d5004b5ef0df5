"""
Linker map parser.

Recovers symbols from the map report written by the CodeWarrior linker.
The report lists, per section, every symbol with its section-relative
offset; the trailing "Memory map:" table gives each section's size. Absolute
addresses are rebuilt by walking the section blocks in order and
accumulating section sizes onto a running cursor.

Expected layout:

    .text section layout
      Starting        Virtual
      address  Size   address
      -----------------------
      00000000 000010 80003100  4 foo 	bar.o
    ...
    Memory map:
                       Starting Size     File
                       address           Offset
           .init       80003100 000024b8 00000100
           .text       800055c0 0024c4a0 000025c0

Rows that cannot be parsed are skipped and reported as Diagnostics.
"""

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, Sequence, Union

logger = logging.getLogger(__name__)

MEMORY_MAP_MARKER = "Memory map:"
SECTION_LAYOUT_MARKER = " section layout"
ENTRY_MARKER = "entry of "
BSS_SECTION_NAME = ".bss"

# Lines between a marker and the first data row
MEMORY_MAP_HEADER_LINES = 2
SECTION_HEADER_LINES = 3

MEMORY_MAP_FIELDS = 4
SYMBOL_FIELDS = 6
PLACEHOLDER_ALIGNMENT = 1

NO_BSS_ADDRESS = -1
DEFAULT_SECTION_ALIGNMENT = 32
UINT_MASK = 0xFFFFFFFF


class MemoryMapNotFoundError(Exception):
    """Raised when a map file has no "Memory map:" table."""
    pass


@dataclass
class MemoryMapSectionInfo:
    """One row of the memory map table."""
    name: str = ""
    starting_address: int = 0
    size: int = 0
    file_offset: int = 0


@dataclass
class SymbolInfo:
    """A symbol recovered from a section layout block."""
    name: str = ""
    container: str = ""
    file_offset: int = 0
    size: int = 0
    virtual_address: int = 0
    alignment: int = 0

    @property
    def is_placeholder(self) -> bool:
        return self.alignment == PLACEHOLDER_ALIGNMENT


@dataclass(frozen=True)
class Diagnostic:
    """A rejected or noteworthy line."""
    line_number: int
    line: str
    message: str
    level: int = logging.WARNING


@dataclass(frozen=True)
class MapParserState:
    """
    Cursor threaded through the section walk.

    Attributes:
        effective_address: Base address of the current section block
        current_section_size: Size of the section being walked
        pre_bss_address: Cursor saved while inside a relocated bss block,
            NO_BSS_ADDRESS otherwise
    """
    effective_address: int
    current_section_size: int = 0
    pre_bss_address: int = NO_BSS_ADDRESS


@dataclass
class MapParseResult:
    """Everything recovered from one map file."""
    memory_map: List[MemoryMapSectionInfo] = field(default_factory=list)
    symbols: List[SymbolInfo] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)


def align_to_next(address: int, alignment: int) -> int:
    """
    Advance to the next alignment boundary.

    An address that is already aligned still moves a full step
    (0x1000 -> 0x1004 for alignment 4). Existing symbol databases were
    built with this rounding, so it must not change.
    """
    return address + (alignment - address % alignment)


def rebase_memory_map(sections: Sequence[MemoryMapSectionInfo]) -> List[MemoryMapSectionInfo]:
    """
    Make file offsets relative to the first section.

    Sections with a zero offset (bss and friends) keep it.
    """
    if not sections or sections[0].file_offset == 0:
        return [replace(s) for s in sections]

    adjust = sections[0].file_offset
    return [
        replace(s, file_offset=s.file_offset - adjust) if s.file_offset != 0 else replace(s)
        for s in sections
    ]


def find_memory_map_start(lines: Sequence[str]) -> int:
    """
    Index of the first memory map row.

    The last marker wins when a report contains several.

    Raises:
        MemoryMapNotFoundError: If there is no marker
    """
    for i in range(len(lines) - 1, -1, -1):
        if MEMORY_MAP_MARKER in lines[i]:
            return i + MEMORY_MAP_HEADER_LINES
    raise MemoryMapNotFoundError("The memory map information couldn't be located")


def get_memory_map_info(
    lines: Sequence[str],
    diagnostics: Optional[List[Diagnostic]] = None
) -> List[MemoryMapSectionInfo]:
    """
    Parse the memory map table.

    Args:
        lines: The whole map file
        diagnostics: Optional list receiving rejected rows

    Returns:
        Rebased section rows in file order

    Raises:
        MemoryMapNotFoundError: If the table is missing
    """
    sections = []
    for i in range(find_memory_map_start(lines), len(lines)):
        line = lines[i]
        if not line.strip():
            break

        parts = line.split()
        if len(parts) < MEMORY_MAP_FIELDS:
            continue

        try:
            sections.append(MemoryMapSectionInfo(
                name=parts[0],
                starting_address=int(parts[1], 16) & UINT_MASK,
                size=int(parts[2], 16) & UINT_MASK,
                file_offset=int(parts[3], 16) & UINT_MASK,
            ))
        except ValueError:
            message = f"Failed to parse memory map entry: {parts[0]}"
            logger.warning(message)
            if diagnostics is not None:
                diagnostics.append(Diagnostic(i + 1, line, message))

    return rebase_memory_map(sections)


def find_section(memory_map: Sequence[MemoryMapSectionInfo], name: str) -> Optional[MemoryMapSectionInfo]:
    for section in memory_map:
        if section.name == name:
            return section
    return None


def enter_section(
    state: MapParserState,
    section: MemoryMapSectionInfo,
    alignment: int,
    bss_address: int = NO_BSS_ADDRESS
) -> MapParserState:
    """
    Move the cursor to the start of a new section block.

    The previous block's size is accumulated, the cursor is aligned, and
    a relocated bss block swaps in the explicit bss address. The block
    after bss resumes from the saved cursor.
    """
    effective = state.effective_address + state.current_section_size
    effective = align_to_next(effective, alignment)
    pre_bss = state.pre_bss_address

    if section.name == BSS_SECTION_NAME and bss_address != NO_BSS_ADDRESS:
        pre_bss = effective
        effective = bss_address
    elif pre_bss != NO_BSS_ADDRESS:
        effective = pre_bss
        pre_bss = NO_BSS_ADDRESS

    return MapParserState(
        effective_address=effective,
        current_section_size=section.size,
        pre_bss_address=pre_bss,
    )


def parse_symbol_row(
    parts: Sequence[str],
    state: MapParserState,
    object_address: int,
    max_address: int
) -> Optional[SymbolInfo]:
    """
    Build a symbol from a split layout row.

    Returns:
        The symbol, or None for placeholder rows (alignment 1)

    Raises:
        ValueError: If offset, size or address is not hexadecimal
    """
    file_offset = int(parts[0], 16) & UINT_MASK
    size = int(parts[1], 16) & UINT_MASK
    virtual_address = int(parts[2], 16) & UINT_MASK

    try:
        alignment = int(parts[3])
    except ValueError:
        alignment = 0
    if alignment == PLACEHOLDER_ALIGNMENT:
        return None

    # DOL maps often carry absolute addresses already
    if not object_address <= virtual_address < max_address:
        virtual_address += state.effective_address

    return SymbolInfo(
        name=parts[4],
        container=parts[5],
        file_offset=file_offset,
        size=size,
        virtual_address=virtual_address,
        alignment=alignment,
    )


class LinkerMapParser:
    """
    Single pass symbol extraction over a linker map.

    Attributes:
        lines: The map file, one entry per line
        object_address: Load address of the first section
        alignment: Section alignment used when advancing between blocks
        bss_address: Runtime bss address, or NO_BSS_ADDRESS
        max_address: Upper bound of the target address space
    """

    def __init__(
        self,
        lines: Sequence[str],
        object_address: int,
        alignment: int = DEFAULT_SECTION_ALIGNMENT,
        bss_address: int = NO_BSS_ADDRESS,
        max_address: int = UINT_MASK
    ):
        if alignment <= 0:
            raise ValueError(f"Section alignment must be positive, got {alignment}")
        self.lines = list(lines)
        self.object_address = object_address
        self.alignment = alignment
        self.bss_address = bss_address
        self.max_address = max_address

    @classmethod
    def from_text(cls, text: str, object_address: int, **kwargs) -> 'LinkerMapParser':
        return cls(text.splitlines(), object_address, **kwargs)

    def parse(self) -> MapParseResult:
        """
        Parse the memory map and every section layout block.

        Raises:
            MemoryMapNotFoundError: If the memory map table is missing
        """
        result = MapParseResult()
        result.memory_map = get_memory_map_info(self.lines, result.diagnostics)

        state = MapParserState(effective_address=self.object_address)
        lines = self.lines
        i = 0
        while i < len(lines):
            line = lines[i]
            i += 1
            if not line.strip():
                continue

            if SECTION_LAYOUT_MARKER in line:
                state = self._enter_block(line, i, state, result)
                i += SECTION_HEADER_LINES
                continue

            if ENTRY_MARKER in line:
                continue

            parts = line.split()
            if len(parts) < SYMBOL_FIELDS:
                continue

            try:
                symbol = parse_symbol_row(parts, state, self.object_address, self.max_address)
            except ValueError:
                message = f"Unable to parse symbol information for symbol: {line}"
                logger.error(message)
                result.diagnostics.append(Diagnostic(i, line, message, logging.ERROR))
                continue

            if symbol is not None:
                result.symbols.append(symbol)

        logger.info(f"Parsed {len(result.symbols)} symbols from {len(result.memory_map)} sections")
        return result

    def _enter_block(
        self,
        line: str,
        line_number: int,
        state: MapParserState,
        result: MapParseResult
    ) -> MapParserState:
        section_name = line[:line.index(SECTION_LAYOUT_MARKER)].strip()
        logger.info(f"Switched to symbols for section: {section_name}")

        section = find_section(result.memory_map, section_name)
        if section is None:
            message = f"No memory layout information was found for section: {section_name}"
            logger.info(message)
            result.diagnostics.append(Diagnostic(line_number, line, message, logging.INFO))
            return state

        return enter_section(state, section, self.alignment, self.bss_address)


def read_map_lines(path: Union[str, Path]) -> List[str]:
    """Read a map file into lines, tolerating non-UTF-8 symbol names."""
    return Path(path).read_text(encoding='utf-8', errors='replace').splitlines()


def parse_map_file(path: Union[str, Path], object_address: int, **kwargs) -> MapParseResult:
    """Parse a map file from disk."""
    return LinkerMapParser(read_map_lines(path), object_address, **kwargs).parse()
