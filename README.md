# alexlink

A console for driving the Alex robot over a serial link. It sends command
packets to the robot's controller board and prints the status reports,
colour-sensor readings, messages and errors that come back.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Running the console

```
alexlink [--port DEVICE] [--baudrate SPEED]
```

`--port` defaults to `/dev/ttyACM0` and `--baudrate` to `9600`. The line
is set to 8 data bits, no parity and 1 stop bit, with no flow control.

If the port cannot be opened, the console retries up to 5 times and waits
5 seconds after each failure. If every attempt fails, it prints the error
and exits with status 1. Once the port is open, it waits two seconds for
the board to reboot and sends a hello packet. It then reads single keys
from the terminal without echo and without waiting for Enter:

| Key      | Command sent                       |
|----------|------------------------------------|
| `w`      | forward 3, speed 70                |
| `f`      | forward 25, speed 70               |
| `s`      | reverse 3, speed 70                |
| `b`      | reverse 25, speed 70               |
| `a`      | turn left 20, speed 90             |
| `q`      | turn left 90, speed 90             |
| `1`      | turn left 180, speed 90            |
| `d`      | turn right 20, speed 90            |
| `e`      | turn right 90, speed 90            |
| `2`      | turn right 180, speed 90           |
| `h`      | stop                               |
| `c`      | clear statistics                   |
| `g`      | get statistics                     |
| `o`      | open                               |
| `p`      | close                              |
| `k`      | scan                               |
| `l`      | drop                               |
| `x`      | exit (nothing is sent)             |

Letter keys work in upper or lower case. Any other key prints
`Bad command`. After each key the console pauses for half a second. It
also stops at the end of input or on Ctrl-C, and then closes the port.

A background thread prints replies as they arrive:

- command acknowledgements (`Command OK`)
- status reports with tick counts and distances
- colour readings, with the detected colour (`RED`, `GREEN` or
  `NO COLOR`)
- text messages from the robot
- error codes reported by the robot
- frames that were rejected for a bad magic number or a bad checksum

## Using the library

The modules can also be used on their own:

- `alexlink.packet`: the frozen `Packet` dataclass (`packet_type`,
  `command`, up to 32 bytes of `data`, up to 16 unsigned 32-bit `params`,
  padded with zeros). `to_bytes()` encodes it in its 100-byte wire layout
  and `Packet.from_bytes()` decodes it. The module also has the
  `PacketType`, `ResponseType`, `CommandType`, `Direction` and
  `MotionState` enumerations. Values that do not fit raise `ValueError`.
- `alexlink.framing`: `serialize(payload)` wraps a payload of at most 128
  bytes in a 140-byte frame that carries a magic number, the length and an
  XOR checksum. `FrameAssembler.feed(data)` collects bytes from the wire
  and returns the payloads of the frames now complete. It raises
  `BadMagicError` or `ChecksumError` (both `FramingError`) for a corrupt
  frame and drops that frame.
- `alexlink.serial_port`: `SerialLink` opens and configures the port with
  retries. It can be used as a context manager, and it raises
  `SerialConnectionError` if every attempt fails or if it is used while
  closed.
- `alexlink.client`: `RobotClient` works over any object that has `read()`
  and `write()`. `handle_key(key)` sends the command for a key, and
  `receive_loop(stop_event)` reports incoming packets to its output stream.
  The module also has the helpers behind the console: `command_for_key`,
  `classify_color`, `format_status`, `format_color`, `format_response`,
  `format_error_response`, `format_message`, `describe_packet`,
  `describe_framing_error` and `read_key`.

```python
from alexlink.packet import Packet, PacketType, CommandType
from alexlink.framing import serialize, FrameAssembler

packet = Packet(packet_type=PacketType.COMMAND, command=CommandType.FORWARD,
                params=[25, 70])
frame = serialize(packet.to_bytes())

assembler = FrameAssembler()
for payload in assembler.feed(frame):
    print(Packet.from_bytes(payload))
```

## Limits

- Distances, angles and speeds are fixed for each key. The console cannot
  be told to move by any other amount.
- The frame assembler does not search the stream for the magic number.
  Frames are cut every 140 bytes from the start of the stream, so a
  stream that loses bytes stays out of step.