"""Byte-level helpers for fixed-layout save parsing."""

import hashlib
import struct
from enum import Enum
from typing import List, Optional

from ..errors import InsufficientLength, LengthMismatch


class ByteOrder(Enum):
    """Byte order enum for struct packing/unpacking."""
    BIG_ENDIAN = ">"
    LITTLE_ENDIAN = "<"


def decode_int32(data: bytes, byte_order: ByteOrder = ByteOrder.LITTLE_ENDIAN) -> int:
    """Decode a signed 32-bit integer from the first 4 bytes of data."""
    if len(data) < 4:
        raise InsufficientLength(f"Not enough bytes for Int32 (have {len(data)}, need 4)")
    return struct.unpack_from(f"{byte_order.value}i", data, 0)[0]


def decode_int32_le(data: bytes) -> int:
    """Decode a signed little-endian 32-bit integer."""
    return decode_int32(data, ByteOrder.LITTLE_ENDIAN)


def decode_uint64_le(data: bytes) -> int:
    """Decode an unsigned little-endian 64-bit integer (owner ids)."""
    if len(data) < 8:
        raise InsufficientLength(f"Not enough bytes for UInt64 (have {len(data)}, need 8)")
    return struct.unpack_from("<Q", data, 0)[0]


def decode_utf16le_string(data: bytes, max_chars: Optional[int] = None) -> str:
    """
    Decode a null-terminated UTF-16LE string.

    The span is cut to max_chars * 2 bytes first. Decoding stops at the first
    aligned 0x00 0x00 pair; with no terminator the whole span is decoded.
    Unpaired surrogates and odd trailing bytes become U+FFFD.
    """
    span = bytes(data)
    if max_chars:
        span = span[:max_chars * 2]

    end = len(span)
    for i in range(0, len(span) - 1, 2):
        if span[i] == 0 and span[i + 1] == 0:
            end = i
            break

    return span[:end].decode("utf-16-le", errors="replace")


def find_all_occurrences(haystack: bytes, needle: bytes) -> List[int]:
    """
    Every start index where needle matches, overlapping matches included.

    An empty needle, or one longer than the haystack, yields no matches.
    """
    indices: List[int] = []
    needle = bytes(needle)
    if not needle or len(haystack) < len(needle):
        return indices

    if not isinstance(haystack, (bytes, bytearray)):
        haystack = bytes(haystack)

    pos = haystack.find(needle)
    while pos != -1:
        indices.append(pos)
        pos = haystack.find(needle, pos + 1)
    return indices


def replace_all_fixed_width(haystack: bytes, find: bytes, replace: bytes) -> bytes:
    """
    Replace every occurrence of find with replace, on a copy.

    find and replace must be the same width. An empty find returns an
    unchanged copy.
    """
    if len(find) == 0:
        return bytes(haystack)
    if len(find) != len(replace):
        raise LengthMismatch(
            f"Find and replace must have the same length (got {len(find)} and {len(replace)})"
        )

    copy = bytearray(haystack)
    replacement = bytes(replace)
    width = len(replacement)
    for index in find_all_occurrences(bytes(copy), find):
        copy[index:index + width] = replacement
    return bytes(copy)


def checksum(data: bytes) -> bytes:
    """16-byte MD5 digest of data."""
    return hashlib.md5(data).digest()


def to_hex(data: bytes, sep: str = "") -> str:
    """Uppercase hex string of data."""
    return bytes(data).hex(sep).upper() if sep else bytes(data).hex().upper()
