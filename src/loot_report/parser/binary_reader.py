"""Bounded little-endian reader over plugin file bytes."""

import struct


class BinaryReader:
    """Wraps a bytes buffer with typed reads and a moving cursor.

    slice(size) returns a new reader bounded to the next `size` bytes, so a
    record parser can never overrun into the following record.
    """

    __slots__ = ("_data", "_pos", "_end")

    def __init__(self, data: bytes, offset: int = 0, end: int | None = None) -> None:
        self._data = data
        self._pos = offset
        self._end = end if end is not None else len(data)

    @property
    def remaining(self) -> int:
        return self._end - self._pos

    def _check(self, size: int, action: str) -> None:
        if size < 0:
            raise ValueError(f"{action} of negative size {size} at offset {self._pos}")
        if self._pos + size > self._end:
            raise ValueError(
                f"{action} of {size} bytes at offset {self._pos} "
                f"would exceed boundary at {self._end}"
            )

    def _read(self, size: int) -> bytes:
        self._check(size, "Read")
        chunk = self._data[self._pos : self._pos + size]
        self._pos += size
        return chunk

    def uint16(self) -> int:
        return struct.unpack_from("<H", self._read(2))[0]

    def uint32(self) -> int:
        return struct.unpack_from("<I", self._read(4))[0]

    def signature(self) -> str:
        """Read a 4-byte record type signature (e.g. 'TES4', 'GRUP')."""
        return self._read(4).decode("ascii", errors="replace")

    def bytes(self, size: int) -> bytes:
        return self._read(size)

    def skip(self, size: int) -> None:
        self._check(size, "Skip")
        self._pos += size

    def slice(self, size: int) -> "BinaryReader":
        """Return a reader over the next `size` bytes and advance past them."""
        self._check(size, "Slice")
        sub = BinaryReader(self._data, self._pos, self._pos + size)
        self._pos += size
        return sub


def decode_zstring(raw: bytes) -> str:
    """Decode a null-terminated header string.

    Plugin header strings are Windows-1252 rather than UTF-8.
    """
    return raw.split(b"\x00", 1)[0].decode("cp1252", errors="replace")
