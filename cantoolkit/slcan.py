"""The slcan ASCII protocol: command parsing and frame formatting."""

from __future__ import annotations

import re
from dataclasses import dataclass

from cantoolkit.can import (
    CAN_EFF_FLAG,
    CAN_EFF_MASK,
    CAN_RTR_FLAG,
    CAN_SFF_MASK,
    CanFilter,
    CanFrame,
)

ACK = b"\r"
NACK = b"\a"

# Size of the receive buffer; one byte of it is kept for a terminator.
_BUFFER_SIZE = 200

_FIXED_REPLIES = {
    "V": b"V1013\r",
    "v": b"v1014\r",
    "N": b"N4242\r",
    "F": b"F00\r",
}

_HEX_PREFIX = re.compile(r"[0-9A-Fa-f]*")


@dataclass(frozen=True)
class SlcanEvent:
    """The outcome of one slcan command.

    ``trace`` is the buffer as it stood when the command was taken, with
    carriage returns shown as ``@``. ``reply`` goes back to the application,
    ``frame`` (if any) goes to the CAN bus, and ``opened`` is True or False
    when the command opened or closed the channel.
    """

    trace: str
    reply: bytes
    frame: CanFrame | None = None
    opened: bool | None = None


def _nibble(char: str) -> int | None:
    if "0" <= char <= "9":
        return ord(char) - ord("0")
    if "A" <= char <= "F":
        return ord(char) - ord("A") + 10
    if "a" <= char <= "f":
        return ord(char) - ord("a") + 10
    return None


def _parse_hex_id(text: str) -> int:
    """Read a hexadecimal number the way ``strtoul(s, NULL, 16)`` does."""
    text = text.lstrip(" \t\n\v\f\r")
    negative = False
    if text[:1] in ("+", "-"):
        negative = text[0] == "-"
        text = text[1:]
    if text[:2].lower() == "0x" and _nibble(text[2:3] or "\0") is not None:
        text = text[2:]
    digits = _HEX_PREFIX.match(text).group(0)
    value = min(int(digits, 16) if digits else 0, 2**64 - 1)
    if negative:
        value = -value % 2**64
    return value & 0xFFFFFFFF


class SlcanSession:
    """State of one slcan conversation fed with the bytes the application sends."""

    def __init__(self, can_filter: CanFilter | None = None) -> None:
        self.filter = can_filter if can_filter is not None else CanFilter()
        self.is_open = False
        self.timestamps = False
        self._pending = b""

    @property
    def pending(self) -> bytes:
        """Bytes of an incomplete command still waiting for its carriage return."""
        return self._pending

    def feed(self, data: bytes) -> list[SlcanEvent]:
        """Take bytes from the application and return one event per complete command."""
        buf = self._pending + bytes(data)
        self._pending = b""
        events: list[SlcanEvent] = []
        while True:
            buf = buf.lstrip(b"\r")
            if not buf:
                break
            if b"\r" not in buf:
                if len(buf) >= _BUFFER_SIZE - 1:
                    raise ValueError("slcan command exceeds the receive buffer")
                self._pending = buf
                break
            event, last = self._handle(buf.decode("latin-1"))
            events.append(event)
            if len(buf) <= last + 1:
                break
            buf = buf[last + 1:]
        return events

    def _handle(self, text: str) -> tuple[SlcanEvent, int]:
        trace = text.replace("\r", "@")
        cmd = text[0]

        def at(index: int) -> str:
            return text[index] if index < len(text) else "\0"

        if cmd in ("m", "M"):
            # Acceptance filters of the SJA1000 kind are acknowledged but not applied.
            return SlcanEvent(trace, ACK), 9
        if cmd == "Z":
            self.timestamps = bool(ord(at(1)) & 0x01)
            return SlcanEvent(trace, ACK), 2
        if cmd == "O":
            self.is_open = True
            return SlcanEvent(trace, ACK, opened=True), 1
        if cmd == "C":
            self.is_open = False
            return SlcanEvent(trace, ACK, opened=False), 1
        if cmd in _FIXED_REPLIES:
            return SlcanEvent(trace, _FIXED_REPLIES[cmd]), 1
        if cmd in ("U", "S"):
            return SlcanEvent(trace, ACK), 2
        if cmd == "s":
            return SlcanEvent(trace, ACK), 5
        if cmd in ("P", "A"):
            return SlcanEvent(trace, NACK), 1
        if cmd == "X":
            return SlcanEvent(trace, ACK if ord(at(1)) & 0x01 else NACK), 2
        if cmd not in ("t", "T", "r", "R"):
            return SlcanEvent(trace, NACK), len(text) - 1
        return self._parse_frame(text, trace, at)

    @staticmethod
    def _parse_frame(text: str, trace: str, at) -> tuple[SlcanEvent, int]:
        cmd = text[0]
        extended = cmd in ("T", "R")
        remote = cmd in ("r", "R")
        pos = 9 if extended else 4
        flags = (CAN_EFF_FLAG if extended else 0) | (CAN_RTR_FLAG if remote else 0)

        if remote and at(pos) != "0":
            # Remote frame without a length digit: tolerated, sent with length 0.
            frame = CanFrame(can_id=_parse_hex_id(text[1:pos]) | flags)
            return SlcanEvent(trace, ACK, frame=frame), pos - 1

        digit = at(pos)
        if not "0" <= digit < "9":
            return SlcanEvent(trace, NACK), pos
        dlc = ord(digit) - ord("0")
        can_id = _parse_hex_id(text[1:pos]) | flags

        payload = bytearray()
        pos += 1
        for _ in range(dlc):
            high = _nibble(at(pos))
            pos += 1
            if high is None:
                return SlcanEvent(trace, NACK), pos
            low = _nibble(at(pos))
            pos += 1
            if low is None:
                return SlcanEvent(trace, NACK), pos
            payload.append(high << 4 | low)
        if dlc:
            pos -= 1

        frame = CanFrame(can_id=can_id, dlc=dlc, data=bytes(payload))
        return SlcanEvent(trace, ACK, frame=frame), pos


def format_frame(frame: CanFrame, timestamp_ms: int | None = None) -> bytes:
    """Render a frame as an slcan line, with an optional millisecond timestamp."""
    cmd = "R" if frame.is_remote else "T"
    if frame.is_extended:
        head = f"{cmd}{frame.can_id & CAN_EFF_MASK:08X}{frame.dlc}"
    else:
        head = f"{cmd.lower()}{frame.can_id & CAN_SFF_MASK:03X}{frame.dlc}"
    body = frame.payload.hex().upper()
    stamp = f"{timestamp_ms:04X}" if timestamp_ms is not None else ""
    return f"{head}{body}{stamp}\r".encode("ascii")


def build_setup_commands(
    speed: str | None = None,
    btr: str | None = None,
    read_status_flags: bool = False,
    listen: bool = False,
    open_: bool = False,
) -> list[bytes]:
    """Return the commands that configure and open an slcan adapter, in order."""
    commands = []
    if speed:
        commands.append(f"C\rS{speed}\r".encode("latin-1"))
    if btr:
        commands.append(f"C\rs{btr}\r".encode("latin-1"))
    if read_status_flags:
        commands.append(b"F\r")
    if listen:
        commands.append(b"L\r")
    elif open_:
        commands.append(b"O\r")
    return commands


def close_command() -> bytes:
    """Return the command that closes the CAN channel."""
    return b"C\r"