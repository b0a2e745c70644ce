"""Packet format, serial framing, serial link and keyboard console for the Alex robot."""

__version__ = "0.1.0"