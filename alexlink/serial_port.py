"""Serial connection to the robot's microcontroller."""

from __future__ import annotations

import time

import serial

MAX_BUFFER_LEN = 1024
DEFAULT_PORT = "/dev/ttyACM0"
DEFAULT_BAUDRATE = 9600

# Reads wait at most this long so receiving threads can notice a stop request.
_READ_TIMEOUT = 0.1

_PARITIES = {"o": serial.PARITY_ODD, "e": serial.PARITY_EVEN}
_BYTESIZES = {5: serial.FIVEBITS, 6: serial.SIXBITS, 7: serial.SEVENBITS}


class SerialConnectionError(Exception):
    """The serial port could not be opened or is not open."""


class SerialLink:
    """A raw serial link with retrying open, no flow control."""

    def __init__(
        self,
        port: str = DEFAULT_PORT,
        baudrate: int = DEFAULT_BAUDRATE,
        bytesize: int = 8,
        parity: str = "N",
        stopbits: int = 1,
        max_attempts: int = 5,
        retry_delay: float = 5.0,
    ) -> None:
        self.port = port
        self.baudrate = baudrate
        self.bytesize = bytesize
        self.parity = parity
        self.stopbits = stopbits
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self._serial: serial.Serial | None = None

    @property
    def is_open(self) -> bool:
        """Whether the port is currently open."""
        return self._serial is not None

    def _settings(self) -> dict:
        return {
            "baudrate": self.baudrate,
            "bytesize": _BYTESIZES.get(self.bytesize, serial.EIGHTBITS),
            "parity": _PARITIES.get(str(self.parity).lower(), serial.PARITY_NONE),
            "stopbits": serial.STOPBITS_TWO if self.stopbits == 2 else serial.STOPBITS_ONE,
            "timeout": _READ_TIMEOUT,
            "xonxoff": False,
            "rtscts": False,
        }

    def open(self) -> None:
        """Open the port, retrying up to max_attempts times."""
        if self._serial is not None:
            return
        settings = self._settings()
        for attempt in range(1, self.max_attempts + 1):
            print(
                f"ATTEMPTING TO CONNECT TO SERIAL. ATTEMPT # {attempt} of {self.max_attempts}."
            )
            try:
                self._serial = serial.Serial(port=self.port, **settings)
                return
            except (serial.SerialException, OSError):
                print(f"FAILED. TRYING AGAIN IN {self.retry_delay:g} SECONDS")
                time.sleep(self.retry_delay)
        raise SerialConnectionError(
            f"GIVING UP. Unable to open serial port {self.port}."
        )

    def _require_open(self) -> serial.Serial:
        if self._serial is None:
            raise SerialConnectionError("serial port is not open")
        return self._serial

    def read(self) -> bytes:
        """Return the bytes available, at most 1024; empty if none arrived in time."""
        port = self._require_open()
        wanted = min(max(port.in_waiting, 1), MAX_BUFFER_LEN)
        return bytes(port.read(wanted))

    def write(self, data: bytes) -> int:
        """Send bytes and return how many were written."""
        port = self._require_open()
        return port.write(bytes(data))

    def close(self) -> None:
        """Close the port; closing a closed link does nothing."""
        if self._serial is not None:
            self._serial.close()
            self._serial = None

    def __enter__(self) -> SerialLink:
        self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()