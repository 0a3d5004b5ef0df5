"""
JSON report of a loaded image.

Lists segments and labels in a form other tools can import.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any, TYPE_CHECKING
import json

if TYPE_CHECKING:
    from ..host import MemoryProgram
    from ..loader import LoadResult


@dataclass
class SegmentEntry:
    """Segment information for the report."""
    Name: str = ""
    Address: int = 0
    Size: int = 0
    Permissions: str = ""
    Bss: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Name": self.Name,
            "Address": self.Address,
            "Size": self.Size,
            "Permissions": self.Permissions,
            "Bss": self.Bss
        }


@dataclass
class LabelEntry:
    """Label information for the report."""
    Address: int = 0
    Name: str = ""
    Namespace: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Address": self.Address,
            "Name": self.Name,
            "Namespace": self.Namespace
        }


@dataclass
class ImageJson:
    """Complete report for one loaded binary."""
    Format: str = ""
    Compressed: bool = False
    Segments: List[SegmentEntry] = field(default_factory=list)
    Labels: List[LabelEntry] = field(default_factory=list)
    Diagnostics: List[str] = field(default_factory=list)

    @classmethod
    def from_program(cls, result: 'LoadResult', program: 'MemoryProgram') -> 'ImageJson':
        report = cls(
            Format=result.format.value if result.format else "",
            Compressed=result.compressed,
        )
        for segment in program.segments:
            report.Segments.append(SegmentEntry(
                segment.name, segment.address, segment.size, segment.permissions, segment.is_bss
            ))
        for label in sorted(program.labels, key=lambda l: l.address):
            report.Labels.append(LabelEntry(label.address, label.name, label.namespace or ""))

        for error in (result.error, result.image_error, result.symbol_error):
            if error:
                report.Diagnostics.append(error)
        for parsed in (result.map_result, result.apply_result):
            if parsed is not None:
                report.Diagnostics.extend(d.message for d in parsed.diagnostics)
        return report

    def to_dict(self) -> Dict[str, Any]:
        return {
            "Format": self.Format,
            "Compressed": self.Compressed,
            "Segments": [s.to_dict() for s in self.Segments],
            "Labels": [l.to_dict() for l in self.Labels],
            "Diagnostics": self.Diagnostics
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert to JSON string."""
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: str) -> None:
        """Save to file."""
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
