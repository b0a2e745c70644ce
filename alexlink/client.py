"""Keyboard controller for the robot: sends commands and reports replies."""

from __future__ import annotations

import argparse
import math
import os
import sys
import threading
import time
from typing import TextIO

from alexlink.framing import (
    BadMagicError,
    ChecksumError,
    FrameAssembler,
    FramingError,
    serialize,
)
from alexlink.packet import (
    PACKET_LENGTH,
    CommandType,
    Packet,
    PacketType,
    ResponseType,
)
from alexlink.serial_port import DEFAULT_BAUDRATE, DEFAULT_PORT, SerialConnectionError, SerialLink

PROMPT = (
    "Command (w=forward, s=reverse, a=turn left, d=turn right, h=stop, c=clear stats, "
    "o=open, p=close, l=med, k=scan, g=get stats q=exit)"
)

# Reference colour readings and the distance within which they match.
_RED_REFERENCE = (71, 235, 179)
_GREEN_REFERENCE = (59, 51, 54)
_MATCH_DISTANCE = 100

_KEY_COMMANDS: dict[str, tuple[CommandType, tuple[int, ...]]] = {
    "w": (CommandType.FORWARD, (3, 70)),
    "f": (CommandType.FORWARD, (25, 70)),
    "s": (CommandType.REVERSE, (3, 70)),
    "b": (CommandType.REVERSE, (25, 70)),
    "1": (CommandType.TURN_LEFT, (180, 90)),
    "a": (CommandType.TURN_LEFT, (20, 90)),
    "q": (CommandType.TURN_LEFT, (90, 90)),
    "d": (CommandType.TURN_RIGHT, (20, 90)),
    "e": (CommandType.TURN_RIGHT, (90, 90)),
    "2": (CommandType.TURN_RIGHT, (180, 90)),
    "h": (CommandType.STOP, ()),
    "c": (CommandType.CLEAR_STATS, (0,)),
    "g": (CommandType.GET_STATS, ()),
    "o": (CommandType.OPEN, ()),
    "p": (CommandType.CLOSE, ()),
    "k": (CommandType.SCAN, ()),
    "l": (CommandType.DROP, ()),
}
_EXIT_KEY = "x"

_STATUS_LABELS = (
    "Left Forward Ticks:\t\t",
    "Right Forward Ticks:\t\t",
    "Left Reverse Ticks:\t\t",
    "Right Reverse Ticks:\t\t",
    "Left Forward Ticks Turns:\t",
    "Right Forward Ticks Turns:\t",
    "Left Reverse Ticks Turns:\t",
    "Right Reverse Ticks Turns:\t",
    "Forward Distance:\t\t",
    "Reverse Distance:\t\t",
)

_ERROR_RESPONSES = {
    ResponseType.BAD_PACKET: "Arduino received bad magic number",
    ResponseType.BAD_CHECKSUM: "Arduino received bad checksum",
    ResponseType.BAD_COMMAND: "Arduino received bad command",
    ResponseType.BAD_RESPONSE: "Arduino received unexpected response",
}


def _as_int32(value: int) -> int:
    """Show an unsigned 32-bit value as the signed integer the firmware means."""
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def _distance(reading: tuple[int, int, int], reference: tuple[int, int, int]) -> float:
    # The sum of squares is taken in unsigned 32-bit arithmetic on the wire side.
    total = sum((r - c) ** 2 for r, c in zip(reading, reference)) & 0xFFFFFFFF
    return math.sqrt(total)


def classify_color(red: int, green: int, blue: int) -> str:
    """Nearest-reference colour match: "RED", "GREEN" or "NO COLOR"."""
    reading = (red, green, blue)
    to_red = _distance(reading, _RED_REFERENCE)
    to_green = _distance(reading, _GREEN_REFERENCE)
    if to_red < to_green and to_red < _MATCH_DISTANCE:
        return "RED"
    if to_green < to_red and to_green < _MATCH_DISTANCE:
        return "GREEN"
    return "NO COLOR"


def format_status(packet: Packet) -> str:
    """Render a status report packet."""
    lines = ["", " ------- ALEX STATUS REPORT ------- ", ""]
    lines += [f"{label}{_as_int32(value)}" for label, value in zip(_STATUS_LABELS, packet.params)]
    lines += ["", "---------------------------------------", ""]
    return "\n".join(lines)


def format_color(packet: Packet) -> str:
    """Render a colour sensor reading and the colour it matches."""
    red, green, blue = packet.params[:3]
    return "\n".join(
        [
            "",
            " --------- ALEX COLOR SENSOR --------- ",
            "",
            f"Red (R) frequency:\t{_as_int32(red)}",
            f"Green (G) frequency:\t{_as_int32(green)}",
            f"Blue (B) frequency:\t{_as_int32(blue)}",
            f"Detected Color: {classify_color(red, green, blue)}",
        ]
    )


def format_response(packet: Packet) -> str:
    """Render a response packet according to its response code."""
    if packet.command == ResponseType.OK:
        return "Command OK"
    if packet.command == ResponseType.STATUS:
        return format_status(packet)
    if packet.command == ResponseType.COLOR:
        return format_color(packet)
    return "Arduino is confused"


def format_error_response(packet: Packet) -> str:
    """Render an error packet reported by the robot."""
    return _ERROR_RESPONSES.get(packet.command, "Arduino reports a weird error")


def format_message(packet: Packet) -> str:
    """Render a text message sent by the robot."""
    text = packet.data.split(b"\0", 1)[0].decode("utf-8", errors="replace")
    return f"Message from Alex: {text}"


def describe_packet(packet: Packet) -> str | None:
    """Text to show for a received packet, or None if it needs no report."""
    if packet.packet_type == PacketType.RESPONSE:
        return format_response(packet)
    if packet.packet_type == PacketType.ERROR:
        return format_error_response(packet)
    if packet.packet_type == PacketType.MESSAGE:
        return format_message(packet)
    return None


def describe_framing_error(error: FramingError) -> str:
    """Text to show for a frame that was rejected."""
    if isinstance(error, BadMagicError):
        return "ERROR: Bad Magic Number"
    if isinstance(error, ChecksumError):
        return "ERROR: Bad checksum"
    return "ERROR: UNKNOWN ERROR"


def command_for_key(key: str) -> Packet | None:
    """The command packet a key sends, or None if the key sends nothing."""
    entry = _KEY_COMMANDS.get(key.lower()) if len(key) == 1 else None
    if entry is None:
        return None
    command, params = entry
    return Packet(packet_type=PacketType.COMMAND, command=command, params=params)


def read_key() -> str:
    """Read one key from standard input without echo; empty string at end of input."""
    stream = sys.stdin
    if not stream.isatty():
        return stream.read(1)
    import termios

    fd = stream.fileno()
    saved = termios.tcgetattr(fd)
    raw = termios.tcgetattr(fd)
    raw[3] &= ~(termios.ICANON | termios.ECHO)
    termios.tcsetattr(fd, termios.TCSANOW, raw)
    try:
        return os.read(fd, 1).decode("utf-8", errors="replace")
    finally:
        termios.tcsetattr(fd, termios.TCSANOW, saved)


class RobotClient:
    """Sends command packets over a link and reports what comes back."""

    def __init__(self, link, output: TextIO | None = None) -> None:
        self.link = link
        self.output = output if output is not None else sys.stdout
        self.exit_requested = False

    def _say(self, text: str) -> None:
        self.output.write(text + "\n")
        self.output.flush()

    def send(self, packet: Packet) -> None:
        """Frame a packet and write it to the link."""
        self.link.write(serialize(packet.to_bytes()))

    def handle_key(self, key: str) -> Packet | None:
        """Act on one key press; return the packet sent, if any."""
        if key.lower() == _EXIT_KEY:
            self.exit_requested = True
            return None
        packet = command_for_key(key)
        if packet is None:
            self._say("Bad command")
            return None
        self.send(packet)
        return packet

    def _report(self, payload: bytes) -> None:
        packet = Packet.from_bytes(payload.ljust(PACKET_LENGTH, b"\0")[:PACKET_LENGTH])
        text = describe_packet(packet)
        if text is not None:
            self._say(text)

    def _process(self, assembler: FrameAssembler, data: bytes) -> None:
        chunk = data
        while True:
            try:
                payloads = assembler.feed(chunk)
            except FramingError as error:
                chunk = b""
                self._say("PACKET ERROR")
                self._say(describe_framing_error(error))
                continue
            chunk = b""
            if not payloads:
                return
            for payload in payloads:
                self._report(payload)

    def receive_loop(self, stop_event: threading.Event) -> None:
        """Read from the link and report packets until stop_event is set."""
        assembler = FrameAssembler()
        while not stop_event.is_set():
            try:
                data = self.link.read()
            except SerialConnectionError:
                return
            if data:
                self._process(assembler, data)


def main(argv: list[str] | None = None) -> int:
    """Connect to the robot and drive it from the keyboard."""
    parser = argparse.ArgumentParser(description="Drive the robot over a serial link.")
    parser.add_argument("--port", default=DEFAULT_PORT, help="serial device")
    parser.add_argument("--baudrate", type=int, default=DEFAULT_BAUDRATE, help="line speed")
    args = parser.parse_args(argv)

    link = SerialLink(port=args.port, baudrate=args.baudrate)
    try:
        link.open()
    except SerialConnectionError as error:
        print(error, file=sys.stderr)
        return 1

    print("WAITING TWO SECONDS FOR ARDUINO TO REBOOT")
    time.sleep(2)
    print("DONE")

    client = RobotClient(link)
    stop = threading.Event()
    receiver = threading.Thread(target=client.receive_loop, args=(stop,), daemon=True)
    receiver.start()

    client.send(Packet(packet_type=PacketType.HELLO))

    try:
        while not client.exit_requested:
            print(PROMPT, flush=True)
            key = read_key()
            if not key:
                break
            client.handle_key(key)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass
    finally:
        print("Closing connection to Arduino.")
        stop.set()
        receiver.join(timeout=1.0)
        link.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())