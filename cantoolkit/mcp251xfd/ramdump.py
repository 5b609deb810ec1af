"""Decode and print the message RAM of an MCP251xFD controller."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass
from typing import TextIO

from cantoolkit.can import canfd_dlc, dlc2len, field_get
from cantoolkit.mcp251xfd import registers as r
from cantoolkit.mcp251xfd.loader import ChipState, Ring
from cantoolkit.mcp251xfd.regdump import (
    DumpRegisters,
    dump_registers,
    read_chip_registers,
    read_registers,
)

_PAYLOAD_SIZES = {
    r.REG_FIFOCON_PLSIZE_8: 8,
    r.REG_FIFOCON_PLSIZE_12: 12,
    r.REG_FIFOCON_PLSIZE_16: 16,
    r.REG_FIFOCON_PLSIZE_20: 20,
    r.REG_FIFOCON_PLSIZE_24: 24,
    r.REG_FIFOCON_PLSIZE_32: 32,
    r.REG_FIFOCON_PLSIZE_48: 48,
    r.REG_FIFOCON_PLSIZE_64: 64,
}

_TEF_OBJ = struct.Struct("<III")
_TX_OBJ_HEAD = struct.Struct("<II")
_RX_OBJ_HEAD = struct.Struct("<III")


def fifo_payload_size(fifo_con: int) -> int:
    """Payload size in bytes configured in a FIFO control register."""
    return _PAYLOAD_SIZES.get(field_get(r.REG_FIFOCON_PLSIZE_MASK, fifo_con), 0)


def fifo_obj_num(fifo_con: int) -> int:
    """Number of objects configured in a FIFO control register."""
    return (field_get(r.REG_FIFOCON_FSIZE_MASK, fifo_con) + 1) & 0xFF


@dataclass(frozen=True)
class RamLayout:
    """Placement of the TEF, TX and RX objects in message RAM, with the chip's ring indices."""

    tef_obj_num: int
    tx_obj_num: int
    tx_obj_size: int
    rx_obj_num: int
    rx_obj_size: int
    tef_tail: int = 0
    tx_head: int = 0
    tx_tail: int = 0
    rx_head: int = 0
    rx_tail: int = 0

    @classmethod
    def from_registers(cls, regs: DumpRegisters) -> "RamLayout":
        """Work out the layout from the FIFO configuration registers."""
        tx_fifo = regs.fifo[r.TX_FIFO]
        rx_fifo = regs.fifo[r.rx_fifo(0)]
        base = cls(
            tef_obj_num=fifo_obj_num(regs.tef.con),
            tx_obj_num=fifo_obj_num(tx_fifo.con),
            tx_obj_size=(r.TX_OBJ_HEADER_SIZE + fifo_payload_size(tx_fifo.con)) & 0xFF,
            rx_obj_num=fifo_obj_num(rx_fifo.con),
            rx_obj_size=(r.RX_OBJ_HEADER_SIZE + fifo_payload_size(rx_fifo.con)) & 0xFF,
        )
        tx_tail = ((tx_fifo.ua - base.tx_obj_rel_addr(0)) & 0xFFFFFFFF) // base.tx_obj_size
        rx_tail = ((rx_fifo.ua - base.rx_obj_rel_addr(0)) & 0xFFFFFFFF) // base.rx_obj_size
        return cls(
            tef_obj_num=base.tef_obj_num,
            tx_obj_num=base.tx_obj_num,
            tx_obj_size=base.tx_obj_size,
            rx_obj_num=base.rx_obj_num,
            rx_obj_size=base.rx_obj_size,
            tef_tail=(regs.tefua // r.TEF_OBJ_SIZE) & 0xFF,
            tx_head=field_get(r.REG_FIFOSTA_FIFOCI_MASK, tx_fifo.sta) & 0xFF,
            tx_tail=tx_tail & 0xFF,
            rx_head=field_get(r.REG_FIFOSTA_FIFOCI_MASK, rx_fifo.sta) & 0xFF,
            rx_tail=rx_tail & 0xFF,
        )

    def tef_obj_rel_addr(self, n: int) -> int:
        """Offset of TEF object ``n`` from the start of RAM."""
        return (r.TEF_OBJ_SIZE * n) & 0xFFFF

    def tx_obj_rel_addr(self, n: int) -> int:
        """Offset of TX object ``n`` from the start of RAM."""
        return (self.tef_obj_rel_addr(self.tef_obj_num) + self.tx_obj_size * n) & 0xFFFF

    def rx_obj_rel_addr(self, n: int) -> int:
        """Offset of RX object ``n`` from the start of RAM."""
        return (self.tx_obj_rel_addr(self.tx_obj_num) + self.rx_obj_size * n) & 0xFFFF


def _addr(rel: int) -> int:
    return (rel + r.RAM_START) & 0xFFFF


def _ram_bytes(ram, offset: int, size: int) -> bytes:
    chunk = bytes(ram[offset:offset + size])
    return chunk + bytes(size - len(chunk))


def format_data(data: bytes, dlc: int) -> str:
    """Render the payload of an object with the given DLC, eight bytes to a line."""
    length = dlc2len(canfd_dlc(dlc))
    if not length:
        return "%16s = -none-\n" % "data"
    if len(data) < length:
        raise ValueError(f"payload needs {length} bytes, got {len(data)}")

    parts = []
    for i, byte in enumerate(data[:length]):
        if i % 8 == 0:
            if i == 0:
                parts.append("%16s = %02x" % ("data", byte))
            else:
                parts.append("                   %02x" % byte)
        elif i % 4 == 0:
            parts.append("  %02x" % byte)
        elif i % 8 == 7:
            parts.append(" %02x\n" % byte)
        else:
            parts.append(" %02x" % byte)
    if length % 8:
        parts.append("\n")
    return "".join(parts)


def _mask_line(value: int, name: str, mask: int, desc: str) -> str:
    return "%16s = 0x%06x\t\t%s\n" % (name, field_get(mask, value), desc)


def _word_line(name: str, value: int) -> str:
    return "%16s = 0x%08x\n" % (name, value)


def _mark(condition: bool, text: str) -> str:
    return text if condition else ""


def _priv_fifo(ring: Ring, n: int) -> str:
    if ring.masked_head() == ring.masked_tail() == n:
        return "  priv-FIFO-empty" if ring.head == ring.tail else "  priv-FIFO-full"
    return ""


def _dump_tef(regs: DumpRegisters, layout: RamLayout, ram, tef: Ring, out: TextIO) -> None:
    out.write("\nTEF Overview:\n")
    out.write("%16s =        0x%02x    0x%08x\n" % ("head (p)", tef.masked_head(), tef.head))
    out.write("%16s = 0x%02x   0x%02x    0x%08x\n"
              % ("tail (c/p)", layout.tef_tail, tef.masked_tail(), tef.tail))
    out.write("\n")

    sta = regs.tef.sta
    for n in range(layout.tef_obj_num):
        rel = layout.tef_obj_rel_addr(n)
        obj_id, flags, ts = _TEF_OBJ.unpack(_ram_bytes(ram, rel, _TEF_OBJ.size))
        chip_fifo = ""
        if layout.tef_tail == n:
            if sta & r.REG_TEFSTA_TEFFIF:
                chip_fifo = "  chip-FIFO-full"
            elif not sta & r.REG_TEFSTA_TEFNEIF:
                chip_fifo = "  chip-FIFO-empty"
        out.write("TEF Object: 0x%02x (0x%03x)%s%s%s%s%s\n" % (
            n, _addr(rel),
            _mark(tef.masked_head() == n, "  priv-HEAD"),
            _mark(layout.tef_tail == n, "  chip-TAIL"),
            _mark(tef.masked_tail() == n, "  priv-TAIL"),
            chip_fifo,
            _priv_fifo(tef, n),
        ))
        out.write(_word_line("id", obj_id))
        out.write(_word_line("flags", flags))
        out.write(_word_line("ts", ts))
        out.write(_mask_line(flags, "SEQ", r.OBJ_FLAGS_SEQ_MASK, "Sequence"))
        out.write("\n")


def _overview(title: str, chip_head: int, chip_tail: int, ring: Ring, out: TextIO) -> None:
    out.write(f"\n{title} Overview:\n")
    out.write("%16s = 0x%02x    0x%02x    0x%08x\n"
              % ("head (c/p)", chip_head, ring.masked_head(), ring.head))
    out.write("%16s = 0x%02x    0x%02x    0x%08x\n"
              % ("tail (c/p)", chip_tail, ring.masked_tail(), ring.tail))
    out.write("\n")


def _dump_tx(regs: DumpRegisters, layout: RamLayout, ram, tx: Ring, out: TextIO) -> None:
    _overview("TX", layout.tx_head, layout.tx_tail, tx, out)
    sta = regs.fifo[r.TX_FIFO].sta
    for n in range(layout.tx_obj_num):
        rel = layout.tx_obj_rel_addr(n)
        raw = _ram_bytes(ram, rel, r.TX_OBJ_CANFD_SIZE)
        obj_id, flags = _TX_OBJ_HEAD.unpack_from(raw)
        chip_fifo = ""
        if layout.tx_tail == n:
            if not sta & r.REG_FIFOSTA_TFNRFNIF:
                chip_fifo = "  chip-FIFO-full"
            elif sta & r.REG_FIFOSTA_TFERFFIF:
                chip_fifo = "  chip-FIFO-empty"
        out.write("TX Object: 0x%02x (0x%03x)%s%s%s%s%s%s\n" % (
            n, _addr(rel),
            _mark(layout.tx_head == n, "  chip-HEAD"),
            _mark(tx.masked_head() == n, "  priv-HEAD"),
            _mark(layout.tx_tail == n, "  chip-TAIL"),
            _mark(tx.masked_tail() == n, "  priv-TAIL"),
            chip_fifo,
            _priv_fifo(tx, n),
        ))
        out.write(_word_line("id", obj_id))
        out.write(_word_line("flags", flags))
        out.write(_mask_line(flags, "SEQ_MCP2517FD", r.OBJ_FLAGS_SEQ_MCP2517FD_MASK,
                             "Sequence (MCP2517)"))
        out.write(_mask_line(flags, "SEQ_MCP2518FD", r.OBJ_FLAGS_SEQ_MCP2518FD_MASK,
                             "Sequence (MCP2518)"))
        out.write(format_data(raw[_TX_OBJ_HEAD.size:], field_get(r.OBJ_FLAGS_DLC, flags)))
        out.write("\n")


def _dump_rx(regs: DumpRegisters, layout: RamLayout, ram, rx: Ring, out: TextIO) -> None:
    _overview("RX", layout.rx_head, layout.rx_tail, rx, out)
    sta = regs.fifo[r.rx_fifo(0)].sta
    for n in range(layout.rx_obj_num):
        rel = layout.rx_obj_rel_addr(n)
        raw = _ram_bytes(ram, rel, r.RX_OBJ_CANFD_SIZE)
        obj_id, flags, ts = _RX_OBJ_HEAD.unpack_from(raw)
        chip_fifo = ""
        if layout.rx_tail == n:
            if sta & r.REG_FIFOSTA_TFERFFIF:
                chip_fifo = "  chip-FIFO-full"
            elif not sta & r.REG_FIFOSTA_TFNRFNIF:
                chip_fifo = "  chip-FIFO-empty"
        out.write("RX Object: 0x%02x (0x%03x)%s%s%s%s%s%s\n" % (
            n, _addr(rel),
            _mark(layout.rx_head == n, "  chip-HEAD"),
            _mark(rx.masked_head() == n, "  priv-HEAD"),
            _mark(layout.rx_tail == n, "  chip-TAIL"),
            _mark(rx.masked_tail() == n, "  priv-TAIL"),
            chip_fifo,
            _priv_fifo(rx, n),
        ))
        out.write(_word_line("id", obj_id))
        out.write(_word_line("flags", flags))
        out.write(_word_line("ts", ts))
        out.write(format_data(raw[_RX_OBJ_HEAD.size:], field_get(r.OBJ_FLAGS_DLC, flags)))
        out.write("\n")


def dump_ram(chip: ChipState, regs: DumpRegisters, ram, out: TextIO | None = None) -> None:
    """Write the decoded TEF, TX and RX objects of message RAM to ``out``."""
    out = sys.stdout if out is None else out
    layout = RamLayout.from_registers(regs)
    out.write("----------------------- RAM dump ----------------------\n")
    _dump_tef(regs, layout, ram, chip.tef, out)
    _dump_tx(regs, layout, ram, chip.tx, out)
    _dump_rx(regs, layout, ram, chip.rx, out)
    out.write("------------------------- end -------------------------\n")


def dump(chip: ChipState, mem, out: TextIO | None = None) -> None:
    """Write the register dump followed by the RAM dump of register memory ``mem``."""
    out = sys.stdout if out is None else out
    regs = read_registers(mem)
    ram = bytes(mem[r.RAM_START:r.RAM_START + r.RAM_SIZE])
    chip_regs = read_chip_registers(mem)
    dump_registers(regs, chip_regs, out)
    dump_ram(chip, regs, ram, out)