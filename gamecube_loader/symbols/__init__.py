"""
Linker map symbol recovery.
"""

from .map_parser import (
    LinkerMapParser, MapParseResult, MemoryMapSectionInfo, SymbolInfo, Diagnostic,
    MemoryMapNotFoundError, NO_BSS_ADDRESS, parse_map_file, read_map_lines,
)
from .applier import SymbolApplier, ApplyResult, namespace_for_container

__all__ = [
    'LinkerMapParser', 'MapParseResult', 'MemoryMapSectionInfo', 'SymbolInfo', 'Diagnostic',
    'MemoryMapNotFoundError', 'NO_BSS_ADDRESS', 'parse_map_file', 'read_map_lines',
    'SymbolApplier', 'ApplyResult', 'namespace_for_container',
]
