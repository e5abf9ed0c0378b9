"""Little-endian packing of scalars into byte buffers."""

from __future__ import annotations

import struct


def _unpack(fmt: str, buff: bytes) -> int | float:
    size = struct.calcsize(fmt)
    if len(buff) < size:
        raise ValueError(f"need at least {size} bytes, got {len(buff)}")
    return struct.unpack_from(fmt, buff)[0]


def unpack_float(buff: bytes) -> float:
    """Read a 32-bit float from the first four bytes."""
    return _unpack("<f", buff)


def pack_float(value: float) -> bytes:
    """Encode a 32-bit float."""
    return struct.pack("<f", value)


def unpack_i16(buff: bytes) -> int:
    """Read a signed 16-bit integer from the first two bytes."""
    return _unpack("<h", buff)


def unpack_u16(buff: bytes) -> int:
    """Read an unsigned 16-bit integer from the first two bytes."""
    return _unpack("<H", buff)


def pack_u16(value: int) -> bytes:
    """Encode the low 16 bits of ``value``."""
    return struct.pack("<H", value & 0xFFFF)


def unpack_u32(buff: bytes) -> int:
    """Read an unsigned 32-bit integer from the first four bytes."""
    return _unpack("<I", buff)


def pack_u32(value: int) -> bytes:
    """Encode the low 32 bits of ``value``."""
    return struct.pack("<I", value & 0xFFFFFFFF)