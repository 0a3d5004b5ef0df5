"""
REL format structure definitions.
"""

from dataclasses import dataclass, field
from typing import List

from ..io.version_aware import version_field

# Header sizes by format version
REL_HEADER_SIZES = {1: 0x40, 2: 0x48, 3: 0x4C}
REL_VERSION_OFFSET = 0x1C
REL_MAX_SECTIONS = 64

REL_SECTION_ENTRY_SIZE = 8
REL_IMPORT_ENTRY_SIZE = 8
REL_RELOCATION_ENTRY_SIZE = 8

REL_DEFAULT_ALIGN = 4

# Section offset word: bit 0 marks an executable section
REL_SECTION_EXECUTABLE = 0x1
REL_SECTION_OFFSET_MASK = 0xFFFFFFFC

# The main DOL is module 0 in import tables
MAIN_MODULE_ID = 0

# Relocation types
R_PPC_ADDR32 = 1
R_DOLPHIN_END = 203


@dataclass
class RelHeader:
    """REL module header. Later versions append fields at the end."""
    module_id: int = version_field()
    next_module: int = version_field()
    prev_module: int = version_field()
    section_count: int = version_field()
    section_table_offset: int = version_field()
    name_offset: int = version_field()
    name_size: int = version_field()
    version: int = version_field()
    bss_size: int = version_field()
    relocation_offset: int = version_field()
    import_offset: int = version_field()
    import_size: int = version_field()
    prolog_section: int = version_field(binary_size=1)
    epilog_section: int = version_field(binary_size=1)
    unresolved_section: int = version_field(binary_size=1)
    bss_section: int = version_field(binary_size=1)
    prolog: int = version_field()
    epilog: int = version_field()
    unresolved: int = version_field()
    # Version 2+
    align: int = version_field(min_ver=2, default=REL_DEFAULT_ALIGN)
    bss_align: int = version_field(min_ver=2, default=REL_DEFAULT_ALIGN)
    # Version 3+
    fix_size: int = version_field(min_ver=3)


@dataclass
class RelSectionEntry:
    """Raw section table entry."""
    offset_flags: int = version_field()
    length: int = version_field()


@dataclass
class RelSection:
    """Decoded section table entry."""
    index: int = 0
    offset: int = 0
    length: int = 0
    executable: bool = False

    @property
    def is_bss(self) -> bool:
        return self.offset == 0 and self.length != 0

    @property
    def is_empty(self) -> bool:
        return self.offset == 0 and self.length == 0

    @property
    def name(self) -> str:
        if self.is_bss:
            return f".bss{self.index}"
        if self.executable:
            return f".text{self.index}"
        return f".data{self.index}"


@dataclass
class RelRelocation:
    """One relocation directive."""
    offset: int = version_field(binary_size=2)
    type: int = version_field(binary_size=1)
    section: int = version_field(binary_size=1)
    addend: int = version_field()


@dataclass
class RelImport:
    """Import table entry: relocations against one module."""
    module_id: int = version_field()
    offset: int = version_field()
    relocations: List[RelRelocation] = field(default_factory=list)
