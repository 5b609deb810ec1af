"""Load MCP251xFD register and ring state from dev coredumps and regmap files."""

from __future__ import annotations

import enum
import re
import struct
from dataclasses import dataclass, field
from pathlib import Path

DUMP_MAGIC = 0x1825434D

MEM_SIZE = 0x1000

TX_FIFO = 1

REGMAP_ROOT = "/sys/kernel/debug/regmap"

_HEADER = struct.Struct("<IIII")
_OBJECT = struct.Struct("<II")
_WORD = struct.Struct("<I")

_HEX = r"[+-]?(?:0[xX])?[0-9a-fA-F]+"
_REGMAP_LINE = re.compile(rf"\s*({_HEX}):\s*({_HEX})\s*")


class DumpError(ValueError):
    """A dump or register file is malformed."""


class ObjectType(enum.IntEnum):
    REG = 0
    TEF = 1
    RX = 2
    TX = 3
    END = 0xFFFFFFFF


class RingKey(enum.IntEnum):
    HEAD = 0
    TAIL = 1
    BASE = 2
    NR = 3
    FIFO_NR = 4
    OBJ_NUM = 5
    OBJ_SIZE = 6


_RING_FIELDS = {
    RingKey.HEAD: ("head", 0xFFFFFFFF),
    RingKey.TAIL: ("tail", 0xFFFFFFFF),
    RingKey.BASE: ("base", 0xFFFF),
    RingKey.NR: ("nr", 0xFF),
    RingKey.FIFO_NR: ("fifo_nr", 0xFF),
    RingKey.OBJ_NUM: ("obj_num", 0xFF),
    RingKey.OBJ_SIZE: ("obj_size", 0xFF),
}


@dataclass
class Ring:
    """Driver view of one ring buffer."""

    head: int = 0
    tail: int = 0
    base: int = 0
    nr: int = 0
    fifo_nr: int = 0
    obj_num: int = 0
    obj_size: int = 0

    def masked_head(self) -> int:
        """Head index within the ring."""
        return self.head & (self.obj_num - 1) & 0xFF

    def masked_tail(self) -> int:
        """Tail index within the ring."""
        return self.tail & (self.obj_num - 1) & 0xFF


@dataclass
class ChipState:
    """Driver state recovered from a dump."""

    tef: Ring = field(default_factory=Ring)
    tx: Ring = field(default_factory=Ring)
    rx: Ring = field(default_factory=Ring)
    rx_ring_num: int = 0


def rx_fifo_number(n: int) -> int:
    """FIFO number of the ``n``-th receive ring."""
    return TX_FIFO + 1 + n


def _store_word(mem: bytearray, reg: int, value: int) -> None:
    if reg < 0 or reg > len(mem) - _WORD.size:
        raise DumpError(f"register address out of range: {reg:#x}")
    _WORD.pack_into(mem, reg, value & 0xFFFFFFFF)


def _objects(data: bytes, start: int, end: int):
    for pos in range(start, end - _OBJECT.size + 1, _OBJECT.size):
        yield _OBJECT.unpack_from(data, pos)


def _read_ring(data: bytes, start: int, end: int, ring: Ring) -> None:
    for key, value in _objects(data, start, end):
        try:
            name, mask = _RING_FIELDS[RingKey(key)]
        except ValueError:
            raise DumpError(f"unknown ring key: {key:#x}") from None
        setattr(ring, name, value & mask)


def parse_coredump(data: bytes, chip: ChipState, mem: bytearray) -> None:
    """Fill ``chip`` and the register memory ``mem`` from a dev coredump.

    ``mem`` holds registers as little-endian 32-bit words at their addresses.
    """
    data = bytes(data)
    dump_len = len(data)
    pos = 0
    while pos + _HEADER.size <= dump_len:
        magic, obj_type, offset, length = _HEADER.unpack_from(data, pos)
        if magic != DUMP_MAGIC:
            break
        if offset + length > dump_len:
            raise DumpError("object extends beyond the end of the dump")
        end = offset + length

        if obj_type == ObjectType.REG:
            for reg, value in _objects(data, offset, end):
                _store_word(mem, reg, value)
        elif obj_type == ObjectType.TEF:
            _read_ring(data, offset, end, chip.tef)
        elif obj_type == ObjectType.RX:
            _read_ring(data, offset, end, chip.rx)
        elif obj_type == ObjectType.TX:
            _read_ring(data, offset, end, chip.tx)
        elif obj_type == ObjectType.END:
            return
        else:
            raise DumpError(f"unknown object type: {obj_type:#x}")
        pos += _HEADER.size

    raise DumpError("dump has no end marker")


def read_coredump(path, chip: ChipState, mem: bytearray) -> None:
    """Read a dev coredump file into ``chip`` and ``mem``."""
    parse_coredump(Path(path).read_bytes(), chip, mem)


def read_regmap_file(path, mem: bytearray) -> None:
    """Read ``reg: value`` lines of a regmap register file into ``mem``.

    Reading stops at the first line that does not have that form.
    """
    text = Path(path).read_text(errors="replace")
    pos = 0
    while True:
        match = _REGMAP_LINE.match(text, pos)
        if not match:
            break
        reg = int(match.group(1), 16) & 0xFFFF
        value = int(match.group(2), 16) & 0xFFFFFFFF
        _store_word(mem, reg, value)
        pos = match.end()
        if pos == len(text):
            break


def read_regmap(path: str, mem: bytearray) -> None:
    """Read a regmap register file, also trying the debugfs location of a device name."""
    try:
        read_regmap_file(path, mem)
        return
    except (OSError, DumpError):
        if "/" in path:
            raise FileNotFoundError(f"no such register file: {path}") from None

    try:
        read_regmap_file(f"{REGMAP_ROOT}/{path}/registers", mem)
        return
    except (OSError, DumpError):
        pass
    read_regmap_file(f"{REGMAP_ROOT}/{path}-crc/registers", mem)