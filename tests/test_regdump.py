import io
import struct

import pytest

from cantoolkit.mcp251xfd import registers as r
from cantoolkit.mcp251xfd.regdump import (
    ChipRegisters,
    DumpRegisters,
    FifoRegisters,
    decode_vec,
    dump_registers,
    read_chip_registers,
    read_registers,
)


def _mem(**words):
    mem = bytearray(0x1000)
    for addr, value in words.values():
        struct.pack_into("<I", mem, addr, value)
    return mem


def _dump_text(mem):
    out = io.StringIO()
    dump_registers(read_registers(mem), read_chip_registers(mem), out)
    return out.getvalue()


def test_read_registers_places_fields_at_their_addresses():
    mem = _mem(
        con=(r.REG_CON, 0x11111111),
        vec=(r.REG_VEC, 0x22222222),
        rxif=(r.REG_RXIF, 0x33),
        txif=(r.REG_TXIF, 0x44),
        tefua=(r.REG_TEFUA, 0x55),
        fifoua=(r.fifoua(1), 0x66),
        fifosta=(r.fifosta(2), 0x77),
        fltcon=(r.fltcon(7), 0x88),
        fltmask=(r.fltmask(31), 0x99),
    )
    regs = read_registers(mem)
    assert regs.con == 0x11111111
    assert regs.vec == 0x22222222
    assert regs.rxif == 0x33
    assert regs.txif == 0x44
    assert regs.tefua == 0x55
    assert regs.fifo[1].ua == 0x66
    assert regs.fifo[2].sta == 0x77
    assert regs.fltcon[7] == 0x88
    assert regs.filter[31][1] == 0x99
    assert len(regs.fifo) == 32
    assert len(regs.fltcon) == 8
    assert len(regs.filter) == 32


def test_fifo_aliases():
    mem = _mem(tx=(r.fifocon(r.TX_FIFO), 0xABC), rx=(r.fifocon(r.rx_fifo(0)), 0xDEF))
    regs = read_registers(mem)
    assert regs.tx_fifo == regs.fifo[r.TX_FIFO]
    assert regs.rx_fifo == regs.fifo[r.rx_fifo(0)]
    assert regs.txq == regs.fifo[0]
    assert regs.tx_fifo.con == 0xABC
    assert regs.rx_fifo.con == 0xDEF
    assert regs.tef == FifoRegisters(regs.tefcon, regs.tefsta, regs.tefua)


def test_read_registers_rejects_short_memory():
    with pytest.raises(ValueError):
        read_registers(bytearray(16))


def test_read_chip_registers():
    mem = _mem(osc=(r.REG_OSC, 0x460), devid=(r.REG_DEVID, 0x14))
    chip = read_chip_registers(mem)
    assert chip.osc == 0x460
    assert chip.devid == 0x14
    assert chip.iocon == 0


def test_read_chip_registers_rejects_short_memory():
    with pytest.raises(ValueError):
        read_chip_registers(bytearray(0x800))


def test_decode_vec_codes():
    value = (0x40 << 24) | (3 << 16) | 0x4A
    text = decode_vec(value, r.REG_VEC)
    assert text.startswith(f"VEC: vec(0x018)=0x{value:08x}\n")
    assert "\trxcode: No Interrupt (0x40)\n" in text
    assert "\ttxcode: FIFO 3 (0x03)\n" in text
    assert "\ticode: Transmit Attempt Interrupt (0x4a)\n" in text


def test_decode_vec_reserved():
    value = (0x21 << 24) | (0x7F << 16) | 0x30
    text = decode_vec(value)
    assert "rxcode: Reserved (0x21)" in text
    assert "txcode: Reserved (0x7f)" in text
    assert "icode: Reserved (0x30)" in text


def test_dump_frames_and_order():
    text = _dump_text(bytearray(0x1000))
    assert text.startswith("-------------------- register dump --------------------\n")
    assert text.endswith("------------------------- end -------------------------\n")
    order = [
        "CON: con(0x000)",
        "VEC: vec(0x018)",
        "INT: intf(0x01c)",
        "RXIF: rxif(0x020)",
        "RXOVIF: rxovif(0x028)",
        "TXIF: txif(0x024)",
        "OSC: osc(0xe00)",
        "IOCON: iocon(0xe04)",
        "-------------------- TEF --------------------",
        "TEFUA: tefua(0x048)",
        "-------------------- TX_FIFO --------------------",
        f"FIFOCON: fifocon(0x{r.fifocon(r.TX_FIFO):03x})",
        " -------------------- RX_FIFO --------------------",
        f"FIFOUA: fifoua(0x{r.fifoua(r.rx_fifo(0)):03x})",
    ]
    positions = [text.index(item) for item in order]
    assert positions == sorted(positions)


def test_dump_empty_bitmask():
    text = _dump_text(bytearray(0x1000))
    assert "RXIF: rxif(0x020)=0x00000000\nReceive FIFO Interrupt Pending:\n\t\t-none-\n" in text


def test_dump_bitmask_lists_low_fifos_only():
    mem = _mem(rxif=(r.REG_RXIF, 0b10011))
    text = _dump_text(mem)
    assert "Receive FIFO Interrupt Pending:\n\t\t0 1 \n" in text


def test_dump_bit_and_mask_lines():
    mem = _mem(
        con=(r.REG_CON, r.REG_CON_ABAT),
        nbtcfg=(r.REG_NBTCFG, 5 << 24),
    )
    text = _dump_text(mem)
    assert "ABAT".rjust(16) + "   x\t\tAbort All Pending Transmissions\n" in text
    assert "TXQEN".rjust(16) + "    \t\tEnable Transmit Queue\n" in text
    assert "BRP".rjust(16) + " =   5\t\tBaud Rate Prescaler\n" in text


def test_dump_osc_divisor_decimal():
    mem = _mem(osc=(r.REG_OSC, 3 << 5))
    text = _dump_text(mem)
    assert "CLKODIV".rjust(16) + " = 0x03\t\tClock Output Divisor\n" in text


def test_dump_interrupt_table():
    mem = _mem(intf=(r.REG_INT, r.REG_INT_TXIE | r.REG_INT_TXIF | r.REG_INT_RXIF))
    text = _dump_text(mem)
    assert "\t\tIE\tIF\tIE & IF\n" in text
    assert "\tTXI\tx\tx\tx\tTransmit FIFO Interrupt\n" in text
    assert "\tRXI\t\tx\t\tReceive FIFO Interrupt\n" in text


def test_dump_registers_accepts_constructed_values():
    fifo = tuple(FifoRegisters() for _ in range(32))
    regs = DumpRegisters(
        *([0] * 16), tef=FifoRegisters(), reserved0=0, fifo=fifo,
        fltcon=(0,) * 8, filter=((0, 0),) * 32,
    )
    chip = ChipRegisters(0, 0, 0, 0, 0, 0)
    out = io.StringIO()
    dump_registers(regs, chip, out)
    assert out.getvalue() == _dump_text(bytearray(0x1000))