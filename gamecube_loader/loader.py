"""
GameCube binary loader.

Detects the container format, builds the program image, and optionally
applies symbols from a linker map. The image and the symbols are
independent: a map that cannot be parsed does not undo the image, and an
image conflict does not prevent the symbols from being reported.
"""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple, Union

from .config import Config
from .formats import yaz0
from .formats.dol import DOL
from .formats.rel import REL
from .formats.rel_structures import MAIN_MODULE_ID
from .formats.yaz0 import CorruptDataError
from .host import AddressSpace, MemoryProgram, SegmentSink, SymbolStore
from .image.builder import ProgramImageBuilder, SegmentConflictError
from .image.segment import Segment
from .symbols.applier import ApplyResult, SymbolApplier
from .symbols.map_parser import (
    LinkerMapParser, MapParseResult, MemoryMapNotFoundError, NO_BSS_ADDRESS, read_map_lines,
)

logger = logging.getLogger(__name__)


class BinaryFormat(Enum):
    """Supported container formats."""
    DOL = "DOL"
    REL = "REL"


class LoadCancelledError(Exception):
    """Raised when a load is cancelled between stages."""
    pass


class UnsupportedFormatError(Exception):
    """Raised by load_file() when the input is neither a DOL nor a REL."""
    pass


def check_cancelled(cancel_event: Optional[threading.Event], stage: str) -> None:
    """
    Raises:
        LoadCancelledError: If cancel_event is set
    """
    if cancel_event is not None and cancel_event.is_set():
        raise LoadCancelledError(f"Load cancelled before {stage}")


@dataclass
class SniffResult:
    """Detected format and parsed header."""
    format: Optional[BinaryFormat] = None
    dol: Optional[DOL] = None
    rel: Optional[REL] = None
    compressed: bool = False
    error: Optional[str] = None

    @property
    def supported(self) -> bool:
        return self.format is not None


def sniff(data: Union[bytes, bytearray], cancel_event: Optional[threading.Event] = None) -> SniffResult:
    """
    Work out what kind of GameCube binary data holds.

    Yaz0 containers are always RELs since DOLs are never compressed.
    Otherwise the DOL heuristics are tried before the REL ones. A mismatch
    is an ordinary result, not an exception.
    """
    check_cancelled(cancel_event, "sniff")
    if yaz0.is_compressed(data):
        check_cancelled(cancel_event, "decompress")
        try:
            payload = yaz0.decompress(data)
        except CorruptDataError as e:
            logger.error(f"Failed to decompress Yaz0 container: {e}")
            return SniffResult(compressed=True, error=str(e))

        check_cancelled(cancel_event, "header-parse")
        rel = REL(payload)
        if not rel.is_valid():
            return SniffResult(compressed=True, error="Decompressed payload is not a REL module")
        logger.info("Detected Yaz0 compressed REL")
        return SniffResult(BinaryFormat.REL, rel=rel, compressed=True)

    check_cancelled(cancel_event, "header-parse")
    dol = DOL(data)
    if dol.is_valid():
        logger.info("Detected DOL")
        return SniffResult(BinaryFormat.DOL, dol=dol)

    rel = REL(data)
    if rel.is_valid():
        logger.info("Detected REL")
        return SniffResult(BinaryFormat.REL, rel=rel)

    return SniffResult(error="unsupported format")


@dataclass
class LoadResult:
    """Outcome of one load."""
    format: Optional[BinaryFormat] = None
    compressed: bool = False
    segments: List[Segment] = field(default_factory=list)
    base_address: int = 0
    bss_address: int = NO_BSS_ADDRESS
    error: Optional[str] = None
    image_error: Optional[str] = None
    symbol_error: Optional[str] = None
    map_result: Optional[MapParseResult] = None
    apply_result: Optional[ApplyResult] = None

    @property
    def success(self) -> bool:
        """The binary was recognized and its image built."""
        return self.format is not None and self.error is None and self.image_error is None


class GameCubeLoader:
    """
    Loads DOL and REL binaries into a host.

    Attributes:
        config: Loader configuration
        builder: Program image builder
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self.builder = ProgramImageBuilder(self.config.rel_base_address)

    def load(
        self,
        data: Union[bytes, bytearray],
        sink: SegmentSink,
        store: Optional[SymbolStore] = None,
        map_lines: Optional[Sequence[str]] = None,
        cancel_event: Optional[threading.Event] = None
    ) -> LoadResult:
        """
        Load a binary and, if given, its linker map.

        Args:
            data: Raw file contents
            sink: Receives the program segments
            store: Receives labels; required when map_lines is given
            map_lines: Linker map split into lines
            cancel_event: Polled between stages

        Returns:
            The load outcome. Bad input is reported here, never raised.

        Raises:
            ValueError: If a required collaborator is missing
            LoadCancelledError: If cancel_event is set
        """
        if sink is None:
            raise ValueError("A segment sink is required")
        if map_lines is not None and store is None:
            raise ValueError("A symbol store is required to apply a linker map")

        sniffed = sniff(data, cancel_event)
        result = LoadResult(format=sniffed.format, compressed=sniffed.compressed)
        if not sniffed.supported:
            result.error = sniffed.error or "unsupported format"
            logger.error(f"Format not recognized: {result.error}")
            return result

        check_cancelled(cancel_event, "image-build")
        self._build_image(sniffed, sink, result)

        if map_lines is not None:
            check_cancelled(cancel_event, "map-parse")
            map_result = self._parse_map(map_lines, result)
            if map_result is not None:
                check_cancelled(cancel_event, "symbol-apply")
                result.apply_result = SymbolApplier(store).apply(map_result.symbols)

        return result

    def _build_image(self, sniffed: SniffResult, sink: SegmentSink, result: LoadResult) -> None:
        try:
            if sniffed.format is BinaryFormat.DOL:
                segments = self.builder.build_dol(sniffed.dol)
            else:
                segments = self.builder.build_rel(sniffed.rel)
                self._report_dependencies(sniffed.rel)
            self.builder.materialize(segments, sink)
        except SegmentConflictError as e:
            result.image_error = str(e)
            logger.error(f"Failed to build program image: {e}")
            segments = e.placed
        result.segments = segments

        result.base_address, result.bss_address = self._symbol_addresses(sniffed, segments)

    def _symbol_addresses(self, sniffed: SniffResult, segments: List[Segment]) -> Tuple[int, int]:
        """Base and bss addresses the map parser rebases onto."""
        if sniffed.format is BinaryFormat.DOL:
            header = sniffed.dol.header
            base = min(s.address for s in header.present_sections)
            bss = header.bss_address if header.bss_size else NO_BSS_ADDRESS
        else:
            base = self.config.rel_base_address
            bss = next((s.address for s in segments if s.is_bss), NO_BSS_ADDRESS)

        if self.config.bss_address != NO_BSS_ADDRESS:
            bss = self.config.bss_address
        return base, bss

    def _report_dependencies(self, rel: REL) -> None:
        if not self.config.load_dependencies:
            return
        resident = (rel.header.module_id, MAIN_MODULE_ID)
        modules = sorted({imp.module_id for imp in rel.imports if imp.module_id not in resident})
        if modules:
            # TODO: locate and load imported modules once relocation processing exists
            logger.debug(f"Module {rel.header.module_id} imports from modules {modules}; not loaded")

    def _parse_map(self, map_lines: Sequence[str], result: LoadResult) -> Optional[MapParseResult]:
        parser = LinkerMapParser(
            map_lines,
            object_address=result.base_address,
            alignment=self.config.symbol_alignment,
            bss_address=result.bss_address,
            max_address=self.config.max_address,
        )
        try:
            map_result = parser.parse()
        except MemoryMapNotFoundError as e:
            result.symbol_error = str(e)
            logger.error(f"{e}. This symbol map cannot be loaded.")
            return None

        result.map_result = map_result
        return map_result


def load_file(
    path: Union[str, Path],
    map_path: Optional[Union[str, Path]] = None,
    config: Optional[Config] = None,
    cancel_event: Optional[threading.Event] = None
) -> Tuple[LoadResult, MemoryProgram]:
    """
    Load a file from disk into a fresh MemoryProgram.

    Raises:
        UnsupportedFormatError: If the file is not a GameCube binary
    """
    config = config or Config()
    program = MemoryProgram(AddressSpace(max_address=config.max_address))
    data = Path(path).read_bytes()
    map_lines = read_map_lines(map_path) if map_path is not None else None

    result = GameCubeLoader(config).load(data, program, program, map_lines, cancel_event)
    if result.format is None:
        raise UnsupportedFormatError(f"{path}: {result.error}")
    return result, program
