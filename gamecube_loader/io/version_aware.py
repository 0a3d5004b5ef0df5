"""
Version-aware field declarations for binary structures.

REL module headers grow with each format version: version 2 appends the
section and bss alignments, version 3 appends the fixed-size marker.
Fields declared with version_field() are only read when the stream's
version falls inside their range.
"""

from dataclasses import field
from typing import Any, Dict, Optional


class VersionRange:
    """Represents a version range for conditional fields."""

    def __init__(self, min_ver: int = 0, max_ver: int = 99):
        self.min = min_ver
        self.max = max_ver

    def contains(self, version: int) -> bool:
        """Check if version is within this range."""
        return self.min <= version <= self.max

    def __repr__(self) -> str:
        return f"VersionRange({self.min}, {self.max})"


def version_field(
    min_ver: int = 0,
    max_ver: int = 99,
    default: Any = 0,
    binary_size: int = 4,
    unsigned: bool = True
):
    """
    Create a dataclass field with version and size metadata.

    Args:
        min_ver: Minimum format version (inclusive)
        max_ver: Maximum format version (inclusive)
        default: Default value when the field is absent
        binary_size: Size in bytes (1, 2 or 4)
        unsigned: Whether to read as unsigned

    Example:
        @dataclass
        class RELHeader:
            bss_size: int = version_field()
            # Only present in version 2+
            align: int = version_field(min_ver=2, default=4)
    """
    metadata = {
        'version': VersionRange(min_ver, max_ver),
        'binary_size': binary_size,
        'unsigned': unsigned,
    }
    return field(default=default, metadata=metadata)


def get_version_range(field_info) -> Optional[VersionRange]:
    """Get the version range from a field's metadata."""
    if field_info.metadata:
        return field_info.metadata.get('version')
    return None


def should_read_field(field_info, version: int) -> bool:
    """
    Determine if a field should be read for the given version.

    Fields without a version range are always read.
    """
    version_range = get_version_range(field_info)
    if version_range is None:
        return True
    return version_range.contains(version)


# Big-endian struct codes keyed by (binary_size, unsigned)
STRUCT_FORMAT: Dict[tuple, str] = {
    (1, True): 'B',
    (1, False): 'b',
    (2, True): 'H',
    (2, False): 'h',
    (4, True): 'I',
    (4, False): 'i',
}
