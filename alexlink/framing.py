"""Framing of payloads for the serial link: magic number, length and XOR checksum."""

from __future__ import annotations

import functools
import operator
import struct

MAGIC_NUMBER = 0xFCFDFEFF
MAX_DATA_SIZE = 128

# magic, data size, data buffer, checksum, 3 bytes padding.
_FRAME = struct.Struct(f"<II{MAX_DATA_SIZE}sB3x")
FRAME_SIZE = _FRAME.size


class FramingError(Exception):
    """A received frame could not be accepted."""


class BadMagicError(FramingError):
    """The frame does not start with the magic number."""

    def __init__(self, magic: int) -> None:
        super().__init__(f"bad magic number: expected {MAGIC_NUMBER:x}, got {magic:x}")
        self.magic = magic


class ChecksumError(FramingError):
    """The frame's checksum does not match its data."""

    def __init__(self, expected: int, actual: int) -> None:
        super().__init__(f"bad checksum: frame says {expected:#04x}, data gives {actual:#04x}")
        self.expected = expected
        self.actual = actual


def _checksum(data: bytes) -> int:
    return functools.reduce(operator.xor, data, 0)


def serialize(payload: bytes) -> bytes:
    """Wrap a payload of at most 128 bytes in a fixed-size frame."""
    payload = bytes(payload)
    if len(payload) > MAX_DATA_SIZE:
        raise ValueError(f"payload is limited to {MAX_DATA_SIZE} bytes, got {len(payload)}")
    return _FRAME.pack(MAGIC_NUMBER, len(payload), payload, _checksum(payload))


def _decode(frame: bytes) -> bytes:
    magic, size, body, checksum = _FRAME.unpack(frame)
    if magic != MAGIC_NUMBER:
        raise BadMagicError(magic)
    if size > MAX_DATA_SIZE:
        raise FramingError(f"data size {size} exceeds {MAX_DATA_SIZE} bytes")
    payload = body[:size]
    actual = _checksum(payload)
    if actual != checksum:
        raise ChecksumError(checksum, actual)
    return payload


class FrameAssembler:
    """Collects bytes from a stream and cuts them into frames."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    def feed(self, data: bytes) -> list[bytes]:
        """Add received bytes and return the payloads of the frames now complete.

        A bad frame raises a FramingError and is dropped. When good frames
        precede it in the same call they are returned first and the error is
        raised by the next call; frames after it come out on later calls.
        """
        self._buffer += data
        payloads: list[bytes] = []
        while len(self._buffer) >= FRAME_SIZE:
            frame = bytes(self._buffer[:FRAME_SIZE])
            try:
                payload = _decode(frame)
            except FramingError:
                if payloads:
                    return payloads
                del self._buffer[:FRAME_SIZE]
                raise
            del self._buffer[:FRAME_SIZE]
            payloads.append(payload)
        return payloads