"""
Big-endian binary stream reader with version-aware struct parsing.

GameCube executables are written for a big-endian PowerPC CPU, so every
multi-byte value read here is big-endian.
"""

import struct
from io import BytesIO
from typing import TypeVar, Type, List, Optional, Dict, Tuple, Union
from dataclasses import fields, is_dataclass

from .version_aware import should_read_field, STRUCT_FORMAT

T = TypeVar('T')

# Cache for compiled struct reading strategies
# Key: (dataclass_type, version) -> (struct_format, field_names, struct_size)
_STRUCT_CACHE: Dict[Tuple[type, int], Tuple[str, List[str], int]] = {}


class BinaryStream:
    """
    Binary stream reader for big-endian structures.

    Attributes:
        version: Format version used to select version_field() members
    """

    def __init__(self, data: Union[bytes, bytearray, BytesIO]):
        """
        Initialize a BinaryStream.

        Args:
            data: Either raw bytes or a BytesIO stream
        """
        if isinstance(data, (bytes, bytearray)):
            self._stream = BytesIO(bytes(data))
        else:
            self._stream = data

        self.version: int = 0

    def _get_struct_format(self, cls: Type[T]) -> Tuple[str, List[str], int]:
        """
        Get or compute the struct format for a dataclass at the current version.

        Returns:
            Tuple of (struct_format, field_names, struct_size)
        """
        cache_key = (cls, self.version)
        if cache_key in _STRUCT_CACHE:
            return _STRUCT_CACHE[cache_key]

        format_parts = ['>']
        field_names = []

        for field_info in fields(cls):
            # Plain fields hold decoded data, not on-disk values
            if 'binary_size' not in field_info.metadata:
                continue
            if not should_read_field(field_info, self.version):
                continue

            binary_size = field_info.metadata['binary_size']
            unsigned = field_info.metadata.get('unsigned', True)
            format_parts.append(STRUCT_FORMAT[(binary_size, unsigned)])
            field_names.append(field_info.name)

        format_str = ''.join(format_parts)
        result = (format_str, field_names, struct.calcsize(format_str))
        _STRUCT_CACHE[cache_key] = result
        return result

    # ========== Position ==========

    @property
    def position(self) -> int:
        """Get current stream position."""
        return self._stream.tell()

    @position.setter
    def position(self, value: int) -> None:
        """Set stream position."""
        self._stream.seek(value)

    # ========== Primitive Readers ==========

    def read_bytes(self, count: int) -> bytes:
        """Read raw bytes."""
        return self._stream.read(count)

    def read_uint32(self) -> int:
        """Read an unsigned 32-bit integer."""
        return struct.unpack('>I', self.read_bytes(4))[0]

    def read_uint32_array(self, addr: Optional[int], count: int) -> List[int]:
        """Read an array of uint32 values."""
        if count <= 0:
            return []
        if addr is not None:
            self.position = addr
        data = self.read_bytes(count * 4)
        return list(struct.unpack(f'>{count}I', data))

    # ========== Class/Struct Reading ==========

    def read_class(self, cls: Type[T], addr: Optional[int] = None) -> T:
        """
        Read a dataclass instance from the stream.

        Fields are read in declaration order; fields whose version range
        excludes the stream's version keep their defaults.

        Args:
            cls: The dataclass type to read
            addr: Optional address to seek to before reading

        Returns:
            An instance of the dataclass with fields populated from the stream
        """
        if addr is not None:
            self.position = addr

        if not is_dataclass(cls):
            raise TypeError(f"{cls!r} is not a dataclass")

        format_str, field_names, struct_size = self._get_struct_format(cls)

        instance = cls()
        values = struct.unpack(format_str, self.read_bytes(struct_size))
        for name, value in zip(field_names, values):
            setattr(instance, name, value)

        return instance

    def read_class_array(
        self,
        cls: Type[T],
        addr: Optional[int] = None,
        count: Optional[int] = None
    ) -> List[T]:
        """
        Read an array of dataclass instances.

        Args:
            cls: The dataclass type
            addr: Optional address to seek to
            count: Number of elements to read

        Returns:
            A list of dataclass instances
        """
        if addr is not None:
            self.position = addr

        if count is None or count <= 0:
            return []

        return [self.read_class(cls) for _ in range(count)]

    def size_of(self, cls: Type) -> int:
        """Calculate the size of a dataclass for the current version."""
        return self._get_struct_format(cls)[2]

    # ========== Utility Methods ==========

    def get_data(self) -> bytes:
        """Get the underlying data."""
        current = self.position
        self.position = 0
        data = self._stream.read()
        self.position = current
        return data

