import io
import threading

import pytest

from alexlink import client as client_module
from alexlink.client import (
    RobotClient,
    classify_color,
    command_for_key,
    describe_framing_error,
    describe_packet,
    format_color,
    format_error_response,
    format_message,
    format_response,
    format_status,
    read_key,
)
from alexlink.framing import BadMagicError, ChecksumError, FrameAssembler, FramingError, serialize
from alexlink.packet import CommandType, Packet, PacketType, ResponseType


class FakeLink:
    def __init__(self, chunks=(), stop_event=None):
        self.chunks = list(chunks)
        self.writes = []
        self.stop_event = stop_event

    def write(self, data):
        self.writes.append(data)
        return len(data)

    def read(self):
        if self.chunks:
            return self.chunks.pop(0)
        if self.stop_event is not None:
            self.stop_event.set()
        return b""


def _decode_writes(writes):
    assembler = FrameAssembler()
    payloads = []
    for chunk in writes:
        payloads += assembler.feed(chunk)
    return [Packet.from_bytes(p) for p in payloads]


def _run_receive(chunks):
    stop = threading.Event()
    out = io.StringIO()
    RobotClient(FakeLink(chunks, stop), out).receive_loop(stop)
    return out.getvalue()


def test_classify_color_references():
    assert classify_color(71, 235, 179) == "RED"
    assert classify_color(59, 51, 54) == "GREEN"
    assert classify_color(1000, 1000, 1000) == "NO COLOR"


def test_format_status_lists_params():
    packet = Packet(PacketType.RESPONSE, ResponseType.STATUS, params=range(1, 11))
    text = format_status(packet)
    assert "ALEX STATUS REPORT" in text
    assert "Left Forward Ticks:\t\t1\n" in text
    assert "Reverse Distance:\t\t10\n" in text


def test_format_status_shows_signed_values():
    packet = Packet(PacketType.RESPONSE, ResponseType.STATUS, params=[0xFFFFFFFF])
    assert "Left Forward Ticks:\t\t-1\n" in format_status(packet)


def test_format_color():
    packet = Packet(PacketType.RESPONSE, ResponseType.COLOR, params=[59, 51, 54])
    text = format_color(packet)
    assert "Red (R) frequency:\t59" in text
    assert "Blue (B) frequency:\t54" in text
    assert text.endswith("Detected Color: GREEN")


@pytest.mark.parametrize(
    "command, expected",
    [(ResponseType.OK, "Command OK"), (ResponseType.BAD_PACKET, "Arduino is confused")],
)
def test_format_response(command, expected):
    assert format_response(Packet(PacketType.RESPONSE, command)) == expected


@pytest.mark.parametrize(
    "command, expected",
    [
        (ResponseType.BAD_PACKET, "Arduino received bad magic number"),
        (ResponseType.BAD_CHECKSUM, "Arduino received bad checksum"),
        (ResponseType.BAD_COMMAND, "Arduino received bad command"),
        (ResponseType.BAD_RESPONSE, "Arduino received unexpected response"),
        (ResponseType.OK, "Arduino reports a weird error"),
    ],
)
def test_format_error_response(command, expected):
    assert format_error_response(Packet(PacketType.ERROR, command)) == expected


def test_format_message():
    packet = Packet(PacketType.MESSAGE, data=b"hello")
    assert format_message(packet) == "Message from Alex: hello"


def test_describe_packet_dispatch():
    assert describe_packet(Packet(PacketType.COMMAND, CommandType.STOP)) is None
    assert describe_packet(Packet(PacketType.HELLO)) is None
    assert describe_packet(Packet(PacketType.RESPONSE, ResponseType.OK)) == "Command OK"
    assert describe_packet(Packet(PacketType.MESSAGE, data=b"x")) == "Message from Alex: x"


def test_describe_framing_error():
    assert describe_framing_error(BadMagicError(0)) == "ERROR: Bad Magic Number"
    assert describe_framing_error(ChecksumError(1, 2)) == "ERROR: Bad checksum"
    assert describe_framing_error(FramingError("odd")) == "ERROR: UNKNOWN ERROR"


@pytest.mark.parametrize(
    "key, command, params",
    [
        ("w", CommandType.FORWARD, (3, 70)),
        ("F", CommandType.FORWARD, (25, 70)),
        ("s", CommandType.REVERSE, (3, 70)),
        ("b", CommandType.REVERSE, (25, 70)),
        ("1", CommandType.TURN_LEFT, (180, 90)),
        ("a", CommandType.TURN_LEFT, (20, 90)),
        ("q", CommandType.TURN_LEFT, (90, 90)),
        ("D", CommandType.TURN_RIGHT, (20, 90)),
        ("e", CommandType.TURN_RIGHT, (90, 90)),
        ("2", CommandType.TURN_RIGHT, (180, 90)),
        ("h", CommandType.STOP, ()),
        ("c", CommandType.CLEAR_STATS, (0,)),
        ("g", CommandType.GET_STATS, ()),
        ("o", CommandType.OPEN, ()),
        ("p", CommandType.CLOSE, ()),
        ("k", CommandType.SCAN, ()),
        ("L", CommandType.DROP, ()),
    ],
)
def test_command_for_key(key, command, params):
    packet = command_for_key(key)
    assert packet.packet_type == PacketType.COMMAND
    assert packet.command == command
    assert packet.params[: len(params)] == params


@pytest.mark.parametrize("key", ["x", "z", "", "ww"])
def test_command_for_key_without_command(key):
    assert command_for_key(key) is None


def test_handle_key_sends_framed_packet():
    link = FakeLink()
    sent = RobotClient(link, io.StringIO()).handle_key("w")
    assert _decode_writes(link.writes) == [sent]
    assert sent.command == CommandType.FORWARD


def test_send_round_trip():
    link = FakeLink()
    packet = Packet(PacketType.HELLO)
    RobotClient(link, io.StringIO()).send(packet)
    assert link.writes == [serialize(packet.to_bytes())]
    assert _decode_writes(link.writes) == [packet]


def test_handle_key_exit_and_bad_command():
    link = FakeLink()
    out = io.StringIO()
    robot = RobotClient(link, out)
    assert robot.handle_key("z") is None
    assert out.getvalue() == "Bad command\n"
    assert robot.exit_requested is False
    robot.handle_key("X")
    assert robot.exit_requested is True
    assert link.writes == []


def test_receive_loop_reports_packets():
    ok = serialize(Packet(PacketType.RESPONSE, ResponseType.OK).to_bytes())
    msg = serialize(Packet(PacketType.MESSAGE, data=b"hi").to_bytes())
    stream = ok + msg
    out = _run_receive([stream[:50], stream[50:]])
    assert out == "Command OK\nMessage from Alex: hi\n"


def test_receive_loop_reports_bad_magic_then_continues():
    good = serialize(Packet(PacketType.RESPONSE, ResponseType.OK).to_bytes())
    bad = b"\0\0\0\0" + good[4:]
    out = _run_receive([good + bad + good])
    assert out == "Command OK\nPACKET ERROR\nERROR: Bad Magic Number\nCommand OK\n"


def test_receive_loop_reports_bad_checksum():
    frame = bytearray(serialize(Packet(PacketType.RESPONSE, ResponseType.OK).to_bytes()))
    frame[8] ^= 0x01
    out = _run_receive([bytes(frame)])
    assert out == "PACKET ERROR\nERROR: Bad checksum\n"


def test_read_key_from_pipe(monkeypatch):
    monkeypatch.setattr(client_module.sys, "stdin", io.StringIO("gk"))
    assert read_key() == "g"
    assert read_key() == "k"
    assert read_key() == ""