"""
Loadable segment definition.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Segment:
    """A named, contiguous range of the program image."""
    name: str = ""
    address: int = 0
    size: int = 0
    data: Optional[bytes] = None
    read: bool = True
    write: bool = False
    execute: bool = False

    @property
    def is_bss(self) -> bool:
        """Zero-filled segments carry no backing bytes."""
        return self.data is None

    @property
    def end(self) -> int:
        return self.address + self.size

    def overlaps(self, other: 'Segment') -> bool:
        return self.address < other.end and other.address < self.end

    def contains(self, address: int) -> bool:
        return self.address <= address < self.end

    @property
    def permissions(self) -> str:
        return (
            ('r' if self.read else '-') +
            ('w' if self.write else '-') +
            ('x' if self.execute else '-')
        )
