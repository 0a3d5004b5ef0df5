"""
Yaz0 compression container.

Compressed REL modules are wrapped in a Yaz0 container: the magic "Yaz0",
the big-endian decompressed size, 8 reserved bytes, then an LZ77 stream.
Each control byte describes the next 8 chunks, high bit first: a set bit
copies one literal byte, a clear bit copies a back-reference.

Back-reference encodings:
    NR RR      distance = 0xRRR + 1, length = N + 2          (N != 0)
    0R RR NN   distance = 0xRRR + 1, length = 0xNN + 0x12
"""

import struct
from typing import Dict, List, Union

YAZ0_MAGIC = b'Yaz0'
YAZ0_HEADER_SIZE = 0x10

MAX_DISTANCE = 0x1000
MIN_MATCH = 3
MAX_SHORT_MATCH = 0x11
MAX_MATCH = 0xFF + 0x12


class CorruptDataError(Exception):
    """Raised when a compressed stream cannot be decoded."""
    pass


def is_compressed(data: Union[bytes, bytearray]) -> bool:
    """Check for the Yaz0 magic tag."""
    return bytes(data[:4]) == YAZ0_MAGIC


def decompressed_size(data: Union[bytes, bytearray]) -> int:
    """Read the declared decompressed size from the container header."""
    if len(data) < 8:
        raise CorruptDataError("Yaz0 header is truncated")
    return struct.unpack_from('>I', data, 4)[0]


def decompress(data: Union[bytes, bytearray]) -> bytes:
    """
    Decode a Yaz0 container.

    Args:
        data: The complete container, header included

    Returns:
        The decompressed payload

    Raises:
        CorruptDataError: If the magic is missing, a back-reference points
            outside the decoded output, or the stream ends early
    """
    if not is_compressed(data):
        raise CorruptDataError("Missing Yaz0 magic")

    size = decompressed_size(data)
    out = bytearray()
    src = YAZ0_HEADER_SIZE
    end = len(data)

    try:
        while len(out) < size:
            control = data[src]
            src += 1

            for bit in range(7, -1, -1):
                if len(out) >= size:
                    break

                if control & (1 << bit):
                    out.append(data[src])
                    src += 1
                    continue

                b1 = data[src]
                b2 = data[src + 1]
                src += 2
                distance = ((b1 & 0x0F) << 8 | b2) + 1
                length = b1 >> 4
                if length == 0:
                    length = data[src] + 0x12
                    src += 1
                else:
                    length += 2

                if distance == 0 or distance > len(out):
                    raise CorruptDataError(
                        f"Back-reference distance {distance} at output offset 0x{len(out):x} "
                        f"reaches before the start of the buffer"
                    )

                length = min(length, size - len(out))
                start = len(out) - distance
                # Byte by byte so overlapping references repeat the pattern
                for i in range(length):
                    out.append(out[start + i])
    except IndexError:
        raise CorruptDataError(
            f"Yaz0 stream ended at 0x{end:x} after {len(out)} of {size} bytes"
        ) from None

    return bytes(out)


def compress(data: Union[bytes, bytearray]) -> bytes:
    """
    Encode data into a Yaz0 container.

    Greedy matcher over a hash chain of 3-byte prefixes; good enough for
    module-sized inputs.
    """
    data = bytes(data)
    size = len(data)
    out = bytearray(YAZ0_MAGIC + struct.pack('>I', size) + bytes(8))
    chains: Dict[bytes, List[int]] = {}

    pos = 0
    while pos < size:
        control_index = len(out)
        out.append(0)
        control = 0

        for bit in range(7, -1, -1):
            if pos >= size:
                break

            best_length, best_distance = _find_match(data, pos, chains)
            if best_length >= MIN_MATCH:
                distance = best_distance - 1
                if best_length <= MAX_SHORT_MATCH:
                    out.append(((best_length - 2) << 4) | (distance >> 8))
                    out.append(distance & 0xFF)
                else:
                    out.append(distance >> 8)
                    out.append(distance & 0xFF)
                    out.append(best_length - 0x12)
                advance = best_length
            else:
                control |= 1 << bit
                out.append(data[pos])
                advance = 1

            for p in range(pos, pos + advance):
                if p + MIN_MATCH <= size:
                    chains.setdefault(data[p:p + MIN_MATCH], []).append(p)
            pos += advance

        out[control_index] = control

    return bytes(out)


def _find_match(data: bytes, pos: int, chains: Dict[bytes, List[int]]):
    """Return (length, distance) of the longest match before pos."""
    size = len(data)
    if pos + MIN_MATCH > size:
        return 0, 0

    candidates = chains.get(data[pos:pos + MIN_MATCH])
    if not candidates:
        return 0, 0

    limit = min(MAX_MATCH, size - pos)
    best_length = 0
    best_distance = 0
    for candidate in reversed(candidates):
        distance = pos - candidate
        if distance > MAX_DISTANCE:
            break
        length = 0
        # The source may run into the bytes being encoded
        while length < limit and data[candidate + length] == data[pos + length]:
            length += 1
        if length > best_length:
            best_length = length
            best_distance = distance
            if length == limit:
                break

    return best_length, best_distance
