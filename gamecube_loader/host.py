"""
Host collaborator interfaces.

The loader never talks to a concrete program database. It hands segments
to a SegmentSink, resolves addresses against an AddressSpace, and creates
labels through a SymbolStore. MemoryProgram implements all of them in
plain Python for tests and the command line.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from .image.segment import Segment


@dataclass
class AddressSpace:
    """The target's default address space."""
    base_address: int = 0
    max_address: int = 0xFFFFFFFF

    def contains(self, address: int) -> bool:
        return self.base_address <= address <= self.max_address


class SegmentSink(ABC):
    """Receives segments to materialize in the host."""

    @abstractmethod
    def add_segment(self, segment: Segment) -> bool:
        """
        Materialize a segment.

        Returns:
            False if the segment conflicts with one already present
        """
        pass


class SymbolStore(ABC):
    """
    Namespace and label storage.

    A namespace of None stands for the global namespace. Neither method
    raises; failures are reported through the return value.
    """

    @abstractmethod
    def ensure_namespace(self, name: str) -> Optional[str]:
        """
        Resolve or create a namespace under the global namespace.

        Returns:
            The namespace handle, or None if it could not be created
        """
        pass

    @abstractmethod
    def create_label(self, address: int, name: str, namespace: Optional[str]) -> bool:
        """
        Create a label.

        Returns:
            True if the label was created
        """
        pass


@dataclass
class Label:
    """A created label."""
    address: int = 0
    name: str = ""
    namespace: Optional[str] = None

    @property
    def qualified_name(self) -> str:
        if self.namespace:
            return f"{self.namespace}::{self.name}"
        return self.name


def is_valid_symbol_name(name: str) -> bool:
    """Names may not be empty or contain whitespace."""
    return bool(name) and not any(c.isspace() for c in name)


class MemoryProgram(SegmentSink, SymbolStore):
    """In-memory program image with a flat symbol table."""

    def __init__(self, address_space: Optional[AddressSpace] = None):
        self.address_space = address_space or AddressSpace()
        self.segments: List[Segment] = []
        self.namespaces: Set[str] = set()
        self.labels: List[Label] = []
        self._labels_by_address: Dict[int, List[Label]] = {}

    # ========== SegmentSink ==========

    def add_segment(self, segment: Segment) -> bool:
        if segment.size == 0:
            return True
        if not self.address_space.contains(segment.address):
            return False
        if not self.address_space.contains(segment.end - 1):
            return False
        for existing in self.segments:
            if existing.overlaps(segment):
                return False

        self.segments.append(segment)
        self.segments.sort(key=lambda s: s.address)
        return True

    def segment_at(self, address: int) -> Optional[Segment]:
        for segment in self.segments:
            if segment.contains(address):
                return segment
        return None

    def read(self, address: int, size: int) -> bytes:
        """
        Read bytes from the loaded image.

        Raises:
            ValueError: If the range is not backed by a single segment
        """
        segment = self.segment_at(address)
        if segment is None or address + size > segment.end:
            raise ValueError(f"Address 0x{address:x} not in any segment")
        if segment.is_bss:
            return bytes(size)
        start = address - segment.address
        return segment.data[start:start + size]

    # ========== SymbolStore ==========

    def ensure_namespace(self, name: str) -> Optional[str]:
        if not is_valid_symbol_name(name):
            return None
        self.namespaces.add(name)
        return name

    def create_label(self, address: int, name: str, namespace: Optional[str]) -> bool:
        if not is_valid_symbol_name(name):
            return False
        if not self.address_space.contains(address):
            return False
        if namespace is not None and namespace not in self.namespaces:
            return False

        label = Label(address, name, namespace)
        self.labels.append(label)
        self._labels_by_address.setdefault(address, []).append(label)
        return True

    def labels_at(self, address: int) -> List[Label]:
        return list(self._labels_by_address.get(address, []))

    def find_label(self, name: str, namespace: Optional[str] = None) -> Optional[Label]:
        for label in self.labels:
            if label.name == name and label.namespace == namespace:
                return label
        return None
