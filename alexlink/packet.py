"""Packet layout and protocol constants shared with the robot firmware."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from enum import IntEnum

MAX_STR_LEN = 32
PARAM_COUNT = 16

# packetType, command, 2 bytes padding, string data, sixteen uint32 parameters.
_LAYOUT = struct.Struct(f"<BB2x{MAX_STR_LEN}s{PARAM_COUNT}I")
PACKET_LENGTH = _LAYOUT.size

_UINT32_MAX = 0xFFFFFFFF
_BYTE_MAX = 0xFF


class PacketType(IntEnum):
    """Kind of packet carried on the link."""

    COMMAND = 0
    RESPONSE = 1
    ERROR = 2
    MESSAGE = 3
    HELLO = 4


class ResponseType(IntEnum):
    """Response and error codes; sent in the command field."""

    OK = 0
    STATUS = 1
    BAD_PACKET = 2
    BAD_CHECKSUM = 3
    BAD_COMMAND = 4
    BAD_RESPONSE = 5
    COLOR = 6


class CommandType(IntEnum):
    """Commands the controller sends to the robot.

    For movement commands params[0] is the distance or angle and
    params[1] the speed.
    """

    FORWARD = 0
    REVERSE = 1
    TURN_LEFT = 2
    TURN_RIGHT = 3
    STOP = 4
    GET_STATS = 5
    CLEAR_STATS = 6
    OPEN = 7
    CLOSE = 8
    SCAN = 9
    DROP = 10


class Direction(IntEnum):
    """Direction of travel."""

    FORWARD = 1
    BACKWARD = 2
    LEFT = 3
    RIGHT = 4


class MotionState(IntEnum):
    """Motor drive state."""

    STOP = 0
    GO = 1
    BACK = 2
    CCW = 3
    CW = 4


def _check_byte(name: str, value: int) -> int:
    value = int(value)
    if not 0 <= value <= _BYTE_MAX:
        raise ValueError(f"{name} must fit in one byte, got {value}")
    return value


@dataclass(frozen=True)
class Packet:
    """One protocol packet: type, command, up to 32 bytes of text and 16 parameters."""

    packet_type: int = PacketType.COMMAND
    command: int = 0
    data: bytes = b""
    params: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "packet_type", _check_byte("packet_type", self.packet_type))
        object.__setattr__(self, "command", _check_byte("command", self.command))

        data = bytes(self.data)
        if len(data) > MAX_STR_LEN:
            raise ValueError(f"data is limited to {MAX_STR_LEN} bytes, got {len(data)}")
        object.__setattr__(self, "data", data)

        params = tuple(int(p) for p in self.params)
        if len(params) > PARAM_COUNT:
            raise ValueError(f"at most {PARAM_COUNT} params allowed, got {len(params)}")
        for value in params:
            if not 0 <= value <= _UINT32_MAX:
                raise ValueError(f"param {value} does not fit in 32 unsigned bits")
        object.__setattr__(self, "params", params + (0,) * (PARAM_COUNT - len(params)))

    def to_bytes(self) -> bytes:
        """Encode the packet in its fixed-size wire layout."""
        return _LAYOUT.pack(self.packet_type, self.command, self.data, *self.params)

    @classmethod
    def from_bytes(cls, data: bytes) -> Packet:
        """Decode a packet from its fixed-size wire layout."""
        data = bytes(data)
        if len(data) != PACKET_LENGTH:
            raise ValueError(f"a packet is {PACKET_LENGTH} bytes, got {len(data)}")
        packet_type, command, text, *params = _LAYOUT.unpack(data)
        return cls(
            packet_type=packet_type,
            command=command,
            data=text.rstrip(b"\0"),
            params=tuple(params),
        )