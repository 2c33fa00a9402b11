"""SHA-1 message digest."""

from __future__ import annotations

import struct

__all__ = ["SHA1", "sha1"]

_MASK32 = 0xFFFFFFFF
_MASK64 = 0xFFFFFFFFFFFFFFFF
_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476, 0xC3D2E1F0)


def _rol(value: int, bits: int) -> int:
    return ((value << bits) | (value >> (32 - bits))) & _MASK32


def _transform(state: tuple[int, ...], block: bytes) -> tuple[int, ...]:
    """Hash one 64-byte block into ``state`` and return the new state."""
    w = list(struct.unpack(">16I", block))
    for i in range(16, 80):
        w.append(_rol(w[i - 3] ^ w[i - 8] ^ w[i - 14] ^ w[i - 16], 1))

    a, b, c, d, e = state
    for i, word in enumerate(w):
        if i < 20:
            f = ((b & (c ^ d)) ^ d) + 0x5A827999
        elif i < 40:
            f = (b ^ c ^ d) + 0x6ED9EBA1
        elif i < 60:
            f = (((b | c) & d) | (b & c)) + 0x8F1BBCDC
        else:
            f = (b ^ c ^ d) + 0xCA62C1D6
        t = (f + e + _rol(a, 5) + word) & _MASK32
        a, b, c, d, e = t, a, _rol(b, 30), c, d

    return tuple((s + v) & _MASK32 for s, v in zip(state, (a, b, c, d, e)))


class SHA1:
    """Incremental SHA-1 hasher."""

    digest_size = 20
    block_size = 64

    def __init__(self, data: bytes = b"") -> None:
        self._state: tuple[int, ...] = _INITIAL_STATE
        self._count = 0
        self._buffer = b""
        if data:
            self.update(data)

    def update(self, data: bytes) -> None:
        """Feed more bytes into the hash."""
        chunk = memoryview(data).tobytes()
        self._count += len(chunk)
        buf = self._buffer + chunk
        full = len(buf) - len(buf) % 64
        state = self._state
        for offset in range(0, full, 64):
            state = _transform(state, buf[offset:offset + 64])
        self._state = state
        self._buffer = buf[full:]

    def digest(self) -> bytes:
        """Return the 20-byte digest of everything fed so far."""
        bit_count = (self._count << 3) & _MASK64
        padding = b"\x80" + b"\x00" * ((55 - self._count) % 64)
        tail = self._buffer + padding + struct.pack(">Q", bit_count)
        state = self._state
        for offset in range(0, len(tail), 64):
            state = _transform(state, tail[offset:offset + 64])
        return struct.pack(">5I", *state)

    def hexdigest(self) -> str:
        """Return the digest as lower-case hexadecimal."""
        return self.digest().hex()


def sha1(data: bytes) -> bytes:
    """Return the SHA-1 digest of ``data``."""
    return SHA1(data).digest()