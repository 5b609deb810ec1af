"""Classical CAN frame and filter types, and the bit-field helpers used with them."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

# Special address description flags for the CAN identifier.
CAN_EFF_FLAG = 0x80000000
CAN_RTR_FLAG = 0x40000000
CAN_ERR_FLAG = 0x20000000

# Valid bits in the CAN identifier for the frame formats.
CAN_SFF_MASK = 0x000007FF
CAN_EFF_MASK = 0x1FFFFFFF
CAN_ERR_MASK = 0x1FFFFFFF

CAN_SFF_ID_BITS = 11
CAN_EFF_ID_BITS = 29

CAN_MAX_DLC = 8
CAN_MAX_RAW_DLC = 15
CAN_MAX_DLEN = 8

CANFD_MAX_DLC = 15
CANFD_MAX_DLEN = 64

CANFD_BRS = 0x01
CANFD_ESI = 0x02
CANFD_FDF = 0x04

CAN_MTU = 16
CANFD_MTU = 72

# Protocols of the CAN protocol family.
CAN_RAW = 1
CAN_BCM = 2
CAN_TP16 = 3
CAN_TP20 = 4
CAN_MCNET = 5
CAN_ISOTP = 6
CAN_J1939 = 7
CAN_NPROTO = 8

SOL_CAN_BASE = 100
SOL_CAN_RAW = SOL_CAN_BASE + CAN_RAW

# Options for raw CAN sockets.
CAN_RAW_FILTER = 1
CAN_RAW_ERR_FILTER = 2
CAN_RAW_LOOPBACK = 3
CAN_RAW_RECV_OWN_MSGS = 4
CAN_RAW_FD_FRAMES = 5
CAN_RAW_JOIN_FILTERS = 6

SCM_CAN_RAW_ERRQUEUE = 1

CAN_INV_FILTER = 0x20000000
CAN_RAW_FILTER_MAX = 512

_FRAME_STRUCT = struct.Struct("=IBBBB8s")
_FILTER_STRUCT = struct.Struct("=II")

_DLC2LEN = (0, 1, 2, 3, 4, 5, 6, 7, 8, 12, 16, 20, 24, 32, 48, 64)


@dataclass(frozen=True)
class CanFrame:
    """A classical CAN frame; ``data`` is always held as eight bytes."""

    can_id: int = 0
    dlc: int = 0
    data: bytes = field(default=bytes(CAN_MAX_DLEN))
    len8_dlc: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.can_id <= 0xFFFFFFFF:
            raise ValueError(f"CAN id out of range: {self.can_id:#x}")
        if not 0 <= self.dlc <= CAN_MAX_DLEN:
            raise ValueError(f"CAN payload length out of range: {self.dlc}")
        if not 0 <= self.len8_dlc <= CAN_MAX_RAW_DLC:
            raise ValueError(f"len8_dlc out of range: {self.len8_dlc}")
        data = bytes(self.data)
        if len(data) > CAN_MAX_DLEN:
            raise ValueError(f"CAN payload too long: {len(data)} bytes")
        object.__setattr__(self, "data", data.ljust(CAN_MAX_DLEN, b"\0"))

    @property
    def payload(self) -> bytes:
        """The first ``dlc`` bytes of the data."""
        return self.data[: self.dlc]

    @property
    def is_extended(self) -> bool:
        return bool(self.can_id & CAN_EFF_FLAG)

    @property
    def is_remote(self) -> bool:
        return bool(self.can_id & CAN_RTR_FLAG)

    @property
    def is_error(self) -> bool:
        return bool(self.can_id & CAN_ERR_FLAG)

    @property
    def arbitration_id(self) -> int:
        """The identifier without flag bits, masked to its frame format."""
        mask = CAN_EFF_MASK if self.is_extended else CAN_SFF_MASK
        return self.can_id & mask

    def pack(self) -> bytes:
        """Return the frame in the socket's native 16-byte layout."""
        return _FRAME_STRUCT.pack(self.can_id, self.dlc, 0, 0, self.len8_dlc, self.data)


def unpack_frame(raw: bytes) -> CanFrame:
    """Build a frame from its native 16-byte layout."""
    if len(raw) != CAN_MTU:
        raise ValueError(f"expected {CAN_MTU} bytes, got {len(raw)}")
    can_id, dlc, _pad, _res0, len8_dlc, data = _FRAME_STRUCT.unpack(raw)
    return CanFrame(can_id=can_id, dlc=dlc, data=data, len8_dlc=len8_dlc)


@dataclass(frozen=True)
class CanFilter:
    """A receive filter: matches when ``id & mask == can_id & mask``."""

    can_id: int = 0
    can_mask: int = 0

    def matches(self, can_id: int) -> bool:
        hit = (can_id & self.can_mask) == (self.can_id & self.can_mask)
        return not hit if self.can_id & CAN_INV_FILTER else hit

    def pack(self) -> bytes:
        """Return the filter in the socket option's native 8-byte layout."""
        return _FILTER_STRUCT.pack(self.can_id & 0xFFFFFFFF, self.can_mask & 0xFFFFFFFF)


def bit(nr: int) -> int:
    """Return a value with only bit ``nr`` set."""
    if nr < 0:
        raise ValueError(f"negative bit number: {nr}")
    return 1 << nr


def genmask(high: int, low: int) -> int:
    """Return a contiguous mask covering bits ``low`` through ``high``."""
    if low < 0 or high < low:
        raise ValueError(f"invalid mask range: {high}..{low}")
    return ((1 << (high + 1)) - 1) & ~((1 << low) - 1)


def field_get(mask: int, value: int) -> int:
    """Extract the field selected by ``mask`` from ``value``."""
    if mask <= 0:
        raise ValueError("mask must be a positive integer")
    shift = (mask & -mask).bit_length() - 1
    return (value & mask) >> shift


def canfd_dlc(dlc: int) -> int:
    """Clamp a DLC (taken as an unsigned byte) to the CAN FD maximum."""
    return min(dlc & 0xFF, CANFD_MAX_DLC)


def dlc2len(dlc: int) -> int:
    """Return the payload length in bytes for a DLC."""
    return _DLC2LEN[dlc & 0x0F]