"""
Program image builder.

Turns a parsed DOL or REL into the ordered list of segments a host needs
to materialize. Conflicts between declared sections are reported, never
merged.
"""

import logging
from typing import List, Optional, Tuple, TYPE_CHECKING

from ..formats.dol import DOL
from ..formats.rel import REL
from ..formats.rel_structures import REL_DEFAULT_ALIGN
from .segment import Segment

if TYPE_CHECKING:
    from ..host import SegmentSink

logger = logging.getLogger(__name__)

DEFAULT_REL_BASE_ADDRESS = 0x80500000


class SegmentConflictError(Exception):
    """Raised when two segments claim the same addresses."""

    def __init__(
        self,
        first: Segment,
        second: Segment,
        message: str = "",
        placed: Optional[List[Segment]] = None
    ):
        self.first = first
        self.second = second
        # Segments the host already accepted before the failure
        self.placed = list(placed or [])
        super().__init__(message or (
            f"Segment {second.name} [0x{second.address:08x}-0x{second.end:08x}) overlaps "
            f"{first.name} [0x{first.address:08x}-0x{first.end:08x})"
        ))


def align_up(value: int, alignment: int) -> int:
    """Round up to a multiple of alignment; already aligned values are kept."""
    if alignment <= 1:
        return value
    return (value + alignment - 1) // alignment * alignment


class ProgramImageBuilder:
    """
    Builds segment lists for GameCube executables.

    Text sections are read/execute, data sections read/write, and bss
    ranges read/write with no backing bytes.
    """

    def __init__(self, rel_base_address: int = DEFAULT_REL_BASE_ADDRESS):
        self.rel_base_address = rel_base_address

    # ========== DOL ==========

    def build_dol(self, dol: DOL) -> List[Segment]:
        """
        Build the segments of a DOL image.

        Raises:
            SegmentConflictError: If two initialized sections overlap
        """
        header = dol.header
        initialized = []
        for section in header.present_sections:
            initialized.append(Segment(
                name=section.name,
                address=section.address,
                size=section.size,
                data=dol.section_data(section),
                write=not section.is_text,
                execute=section.is_text,
            ))

        self.check_conflicts(initialized)

        segments = initialized + self._carve_bss(header.bss_address, header.bss_size, initialized)
        segments.sort(key=lambda s: s.address)
        return segments

    def _carve_bss(self, bss_address: int, bss_size: int, initialized: List[Segment]) -> List[Segment]:
        """
        Split the DOL bss range around initialized sections.

        The header declares one range to zero at boot, which usually spans
        the small data sections as well.
        """
        if bss_size == 0:
            return []

        gaps: List[Tuple[int, int]] = []
        cursor = bss_address
        end = bss_address + bss_size
        for segment in sorted(initialized, key=lambda s: s.address):
            if segment.end <= cursor:
                continue
            if segment.address >= end:
                break
            if segment.address > cursor:
                gaps.append((cursor, segment.address))
            cursor = max(cursor, segment.end)
        if cursor < end:
            gaps.append((cursor, end))

        segments = []
        for i, (start, stop) in enumerate(gaps):
            segments.append(Segment(
                name=".bss" if i == 0 else f".bss{i}",
                address=start,
                size=stop - start,
                write=True,
            ))
        return segments

    # ========== REL ==========

    def build_rel(self, rel: REL, base_address: Optional[int] = None) -> List[Segment]:
        """
        Build the segments of a REL module placed at base_address.

        Sections are laid out in table order, each aligned to the module's
        alignment. Relocations are not applied.
        """
        header = rel.header
        address = self.rel_base_address if base_address is None else base_address
        align = header.align or REL_DEFAULT_ALIGN
        bss_align = header.bss_align or REL_DEFAULT_ALIGN

        segments = []
        for section in rel.sections:
            if section.is_empty:
                if section.index != header.bss_section or header.bss_size == 0:
                    continue
                size = header.bss_size
                is_bss = True
            else:
                size = section.length
                is_bss = section.is_bss

            address = align_up(address, bss_align if is_bss else align)
            if is_bss:
                segment = Segment(name=f".bss{section.index}", address=address, size=size, write=True)
            else:
                segment = Segment(
                    name=section.name,
                    address=address,
                    size=size,
                    data=rel.section_data(section),
                    write=not section.executable,
                    execute=section.executable,
                )
            segments.append(segment)
            address += size

        self.check_conflicts(segments)
        return segments

    # ========== Checks and output ==========

    @staticmethod
    def check_conflicts(segments: List[Segment]) -> None:
        """
        Raise on the first pair of overlapping segments.

        Raises:
            SegmentConflictError: If any two segments overlap
        """
        ordered = sorted((s for s in segments if s.size), key=lambda s: s.address)
        for previous, current in zip(ordered, ordered[1:]):
            if current.address < previous.end:
                raise SegmentConflictError(previous, current)

    @staticmethod
    def materialize(segments: List[Segment], sink: 'SegmentSink') -> None:
        """
        Hand segments to the host.

        Raises:
            SegmentConflictError: If the sink rejects a segment
        """
        placed: List[Segment] = []
        for segment in segments:
            if not sink.add_segment(segment):
                other = next((s for s in placed if s.overlaps(segment)), segment)
                raise SegmentConflictError(
                    other, segment,
                    f"Host rejected segment {segment.name} at 0x{segment.address:08x}",
                    placed,
                )
            logger.debug(
                f"Created {segment.name} [{segment.permissions}] "
                f"0x{segment.address:08x}-0x{segment.end:08x}"
            )
            placed.append(segment)
