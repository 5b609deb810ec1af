"""Decode and print the MCP251xFD controller registers."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass
from typing import TextIO

from cantoolkit.can import field_get
from cantoolkit.mcp251xfd import registers as r

DUMP_REGS_SIZE = 0x2F0
CHIP_REGS_SIZE = 6 * 4

_REGS = struct.Struct(f"<{DUMP_REGS_SIZE // 4}I")
_CHIP_REGS = struct.Struct("<6I")


@dataclass(frozen=True)
class FifoRegisters:
    """Control, status and user address registers of one FIFO."""

    con: int = 0
    sta: int = 0
    ua: int = 0


@dataclass(frozen=True)
class DumpRegisters:
    """The controller module registers from CON up to the last filter mask."""

    con: int
    nbtcfg: int
    dbtcfg: int
    tdc: int
    tbc: int
    tscon: int
    vec: int
    intf: int
    rxif: int
    txif: int
    rxovif: int
    txatif: int
    txreq: int
    trec: int
    bdiag0: int
    bdiag1: int
    tef: FifoRegisters
    reserved0: int
    fifo: tuple[FifoRegisters, ...]
    fltcon: tuple[int, ...]
    filter: tuple[tuple[int, int], ...]

    @property
    def tefcon(self) -> int:
        return self.tef.con

    @property
    def tefsta(self) -> int:
        return self.tef.sta

    @property
    def tefua(self) -> int:
        return self.tef.ua

    @property
    def txq(self) -> FifoRegisters:
        return self.fifo[0]

    @property
    def tx_fifo(self) -> FifoRegisters:
        return self.fifo[r.TX_FIFO]

    @property
    def rx_fifo(self) -> FifoRegisters:
        return self.fifo[r.rx_fifo(0)]


@dataclass(frozen=True)
class ChipRegisters:
    """The MCP2517/18FD specific registers starting at OSC."""

    osc: int
    iocon: int
    crc: int
    ecccon: int
    eccstat: int
    devid: int


def read_registers(mem) -> DumpRegisters:
    """Decode the controller module registers from register memory."""
    if len(mem) < DUMP_REGS_SIZE:
        raise ValueError(f"register memory too small: {len(mem)} bytes")
    words = _REGS.unpack_from(bytes(mem), 0)
    head = words[:16]
    tef = FifoRegisters(*words[16:19])
    reserved0 = words[19]
    fifo_words = words[20:116]
    fifo = tuple(FifoRegisters(*fifo_words[i:i + 3]) for i in range(0, len(fifo_words), 3))
    fltcon = tuple(words[116:124])
    filter_words = words[124:188]
    filters = tuple(
        (filter_words[i], filter_words[i + 1]) for i in range(0, len(filter_words), 2)
    )
    return DumpRegisters(
        *head, tef=tef, reserved0=reserved0, fifo=fifo, fltcon=fltcon, filter=filters
    )


def read_chip_registers(mem) -> ChipRegisters:
    """Decode the chip specific registers from register memory."""
    if len(mem) < r.REG_OSC + CHIP_REGS_SIZE:
        raise ValueError(f"register memory too small: {len(mem)} bytes")
    return ChipRegisters(*_CHIP_REGS.unpack_from(bytes(mem), r.REG_OSC))


def _format_bit(value: int, name: str, mask: int, desc: str) -> str:
    return "%16s   %s\t\t%s\n" % (name, "x" if value & mask else " ", desc)


def _format_mask(value: int, name: str, mask: int, fmt: str, desc: str) -> str:
    return "%16s = " % name + fmt % field_get(mask, value) + "\t\t%s\n" % desc


def _format_register(title: str, field: str, value: int, addr: int, entries=()) -> str:
    lines = [f"{title}: {field}(0x{addr:03x})=0x{value:08x}\n"]
    for entry in entries:
        if len(entry) == 3:
            lines.append(_format_bit(value, *entry))
        else:
            lines.append(_format_mask(value, *entry))
    return "".join(lines)


_CON = (
    ("TXBWS", r.REG_CON_TXBWS_MASK, "0x%02x", "Transmit Bandwidth Sharing"),
    ("ABAT", r.REG_CON_ABAT, "Abort All Pending Transmissions"),
    ("REQOP", r.REG_CON_REQOP_MASK, "0x%02x", "Request Operation Mode"),
    ("OPMOD", r.REG_CON_OPMOD_MASK, "0x%02x", "Operation Mode Status"),
    ("TXQEN", r.REG_CON_TXQEN, "Enable Transmit Queue"),
    ("STEF", r.REG_CON_STEF, "Store in Transmit Event FIFO"),
    ("SERR2LOM", r.REG_CON_SERR2LOM, "Transition to Listen Only Mode on System Error"),
    ("ESIGM", r.REG_CON_ESIGM, "Transmit ESI in Gateway Mode"),
    ("RTXAT", r.REG_CON_RTXAT, "Restrict Retransmission Attempts"),
    ("BRSDIS", r.REG_CON_BRSDIS, "Bit Rate Switching Disable"),
    ("BUSY", r.REG_CON_BUSY, "CAN Module is Busy"),
    ("WFT", r.REG_CON_WFT_MASK, "0x%02x", "Selectable Wake-up Filter Time"),
    ("WAKFIL", r.REG_CON_WAKFIL, "Enable CAN Bus Line Wake-up Filter"),
    ("PXEDIS", r.REG_CON_PXEDIS, "Protocol Exception Event Detection Disabled"),
    ("ISOCRCEN", r.REG_CON_ISOCRCEN, "Enable ISO CRC in CAN FD Frames"),
    ("DNCNT", r.REG_CON_DNCNT_MASK, "0x%02x", "Device Net Filter Bit Number"),
)

_NBTCFG = (
    ("BRP", r.REG_NBTCFG_BRP_MASK, "%3d", "Baud Rate Prescaler"),
    ("TSEG1", r.REG_NBTCFG_TSEG1_MASK, "%3d",
     "Time Segment 1 (Propagation Segment + Phase Segment 1)"),
    ("TSEG2", r.REG_NBTCFG_TSEG2_MASK, "%3d", "Time Segment 2 (Phase Segment 2)"),
    ("SJW", r.REG_NBTCFG_SJW_MASK, "%3d", "Synchronization Jump Width"),
)

_DBTCFG = (
    ("BRP", r.REG_DBTCFG_BRP_MASK, "%3d", "Baud Rate Prescaler"),
    ("TSEG1", r.REG_DBTCFG_TSEG1_MASK, "%3d",
     "Time Segment 1 (Propagation Segment + Phase Segment 1)"),
    ("TSEG2", r.REG_DBTCFG_TSEG2_MASK, "%3d", "Time Segment 2 (Phase Segment 2)"),
    ("SJW", r.REG_DBTCFG_SJW_MASK, "%3d", "Synchronization Jump Width"),
)

_TDC = (
    ("EDGFLTEN", r.REG_TDC_EDGFLTEN, "Enable Edge Filtering during Bus Integration state"),
    ("SID11EN", r.REG_TDC_SID11EN, "Enable 12-Bit SID in CAN FD Base Format Messages"),
    ("TDCMOD", r.REG_TDC_TDCMOD_MASK, "0x%02x", "Transmitter Delay Compensation Mode"),
    ("TDCO", r.REG_TDC_TDCO_MASK, "0x%02x", "Transmitter Delay Compensation Offset"),
    ("TDCV", r.REG_TDC_TDCV_MASK, "0x%02x", "Transmitter Delay Compensation Value"),
)

_TREC = (
    ("TXBO", r.REG_TREC_TXBO, "Transmitter in Bus Off State"),
    ("TXBP", r.REG_TREC_TXBP, "Transmitter in Error Passive State"),
    ("RXBP", r.REG_TREC_RXBP, "Receiver in Error Passive State"),
    ("TXWARN", r.REG_TREC_TXWARN, "Transmitter in Error Warning State"),
    ("RXWARN", r.REG_TREC_RXWARN, "Receiver in Error Warning State"),
    ("EWARN", r.REG_TREC_EWARN, "Transmitter or Receiver is in Error Warning State"),
    ("TEC", r.REG_TREC_TEC_MASK, "%3d", "Transmit Error Counter"),
    ("REC", r.REG_TREC_REC_MASK, "%3d", "Receive Error Counter"),
)

_BDIAG0 = (
    ("DTERRCNT", r.REG_BDIAG0_DTERRCNT_MASK, "%3d", "Data Bit Rate Transmit Error Counter"),
    ("DRERRCNT", r.REG_BDIAG0_DRERRCNT_MASK, "%3d", "Data Bit Rate Receive Error Counter"),
    ("NTERRCNT", r.REG_BDIAG0_NTERRCNT_MASK, "%3d", "Nominal Bit Rate Transmit Error Counter"),
    ("NRERRCNT", r.REG_BDIAG0_NRERRCNT_MASK, "%3d", "Nominal Bit Rate Receive Error Counter"),
)

_BDIAG1 = (
    ("DLCMM", r.REG_BDIAG1_DLCMM, "DLC Mismatch"),
    ("ESI", r.REG_BDIAG1_ESI, "ESI flag of a received CAN FD message was set"),
    ("DCRCERR", r.REG_BDIAG1_DCRCERR, "Data CRC Error"),
    ("DSTUFERR", r.REG_BDIAG1_DSTUFERR, "Data Bit Stuffing Error"),
    ("DFORMERR", r.REG_BDIAG1_DFORMERR, "Data Format Error"),
    ("DBIT1ERR", r.REG_BDIAG1_DBIT1ERR, "Data BIT1 Error"),
    ("DBIT0ERR", r.REG_BDIAG1_DBIT0ERR, "Data BIT0 Error"),
    ("TXBOERR", r.REG_BDIAG1_TXBOERR, "Device went to bus-off (and auto-recovered)"),
    ("NCRCERR", r.REG_BDIAG1_NCRCERR, "CRC Error"),
    ("NSTUFERR", r.REG_BDIAG1_NSTUFERR, "Bit Stuffing Error"),
    ("NFORMERR", r.REG_BDIAG1_NFORMERR, "Format Error"),
    ("NACKERR", r.REG_BDIAG1_NACKERR, "Transmitted message was not acknowledged"),
    ("NBIT1ERR", r.REG_BDIAG1_NBIT1ERR, "Bit1 Error"),
    ("NBIT0ERR", r.REG_BDIAG1_NBIT0ERR, "Bit0 Error"),
    ("EFMSGCNT", r.REG_BDIAG1_EFMSGCNT_MASK, "%3d", "Error Free Message Counter"),
)

_OSC = (
    ("SCLKRDY", r.REG_OSC_SCLKRDY, "Synchronized SCLKDIV"),
    ("OSCRDY", r.REG_OSC_OSCRDY, "Clock Ready"),
    ("PLLRDY", r.REG_OSC_PLLRDY, "PLL Ready"),
    ("CLKODIV", r.REG_OSC_CLKODIV_MASK, "0x%02d", "Clock Output Divisor"),
    ("SCLKDIV", r.REG_OSC_SCLKDIV, "System Clock Divisor"),
    ("LPMEN", r.REG_OSC_LPMEN, "Low Power Mode (LPM) Enable (MCP2518FD only)"),
    ("OSCDIS", r.REG_OSC_OSCDIS, "Clock (Oscillator) Disable"),
    ("PLLEN", r.REG_OSC_PLLEN, "PLL Enable"),
)

_IOCON = (
    ("INTOD", r.REG_IOCON_INTOD,
     "Interrupt pins Open Drain Mode (0: Push/Pull Output, 1: Open Drain Output)"),
    ("SOF", r.REG_IOCON_SOF,
     "Start-Of-Frame signal (0: Clock on CLKO pin, 1: SOF signal on CLKO pin)"),
    ("TXCANOD", r.REG_IOCON_TXCANOD,
     "TXCAN Open Drain Mode (0: Push/Pull Output, 1: Open Drain Output)"),
    ("PM1", r.REG_IOCON_PM1,
     "GPIO Pin Mode (0: Interrupt Pin INT1 (RXIF), 1: Pin is used as GPIO1)"),
    ("PM0", r.REG_IOCON_PM0,
     "GPIO Pin Mode (0: Interrupt Pin INT0 (TXIF), 1: Pin is used as GPIO0)"),
    ("GPIO1", r.REG_IOCON_GPIO1, "GPIO1 Status"),
    ("GPIO0", r.REG_IOCON_GPIO0, "GPIO0 Status"),
    ("LAT1", r.REG_IOCON_LAT1, "GPIO1 Latch"),
    ("LAT0", r.REG_IOCON_LAT0, "GPIO0 Latch"),
    ("XSTBYEN", r.REG_IOCON_XSTBYEN, "Enable Transceiver Standby Pin Control"),
    ("TRIS1", r.REG_IOCON_TRIS1, "GPIO1 Data Direction (0: Output Pin, 1: Input Pin)"),
    ("TRIS0", r.REG_IOCON_TRIS0, "GPIO0 Data Direction (0: Output Pin, 1: Input Pin)"),
)

_TEFCON = (
    ("FSIZE", r.REG_TEFCON_FSIZE_MASK, "%3d", "FIFO Size"),
    ("FRESET", r.REG_TEFCON_FRESET, "FIFO Reset"),
    ("UINC", r.REG_TEFCON_UINC, "Increment Tail"),
    ("TEFTSEN", r.REG_TEFCON_TEFTSEN, "Transmit Event FIFO Time Stamp Enable"),
    ("TEFOVIE", r.REG_TEFCON_TEFOVIE, "Transmit Event FIFO Overflow Interrupt Enable"),
    ("TEFFIE", r.REG_TEFCON_TEFFIE, "Transmit Event FIFO Full Interrupt Enable"),
    ("TEFHIE", r.REG_TEFCON_TEFHIE, "Transmit Event FIFO Half Full Interrupt Enable"),
    ("TEFNEIE", r.REG_TEFCON_TEFNEIE, "Transmit Event FIFO Not Empty Interrupt Enable"),
)

_TEFSTA = (
    ("TEFOVIF", r.REG_TEFSTA_TEFOVIF, "Transmit Event FIFO Overflow Interrupt Flag"),
    ("TEFFIF", r.REG_TEFSTA_TEFFIF, "Transmit Event FIFO Full Interrupt Flag (0: not full)"),
    ("TEFHIF", r.REG_TEFSTA_TEFHIF,
     "Transmit Event FIFO Half Full Interrupt Flag (0: < half full)"),
    ("TEFNEIF", r.REG_TEFSTA_TEFNEIF,
     "Transmit Event FIFO Not Empty Interrupt Flag (0: empty)"),
)

_FIFOCON = (
    ("PLSIZE", r.REG_FIFOCON_PLSIZE_MASK, "%3d", "Payload Size"),
    ("FSIZE", r.REG_FIFOCON_FSIZE_MASK, "%3d", "FIFO Size"),
    ("TXAT", r.REG_FIFOCON_TXAT_MASK, "%3d", "Retransmission Attempts"),
    ("TXPRI", r.REG_FIFOCON_TXPRI_MASK, "%3d", "Message Transmit Priority"),
    ("FRESET", r.REG_FIFOCON_FRESET, "FIFO Reset"),
    ("TXREQ", r.REG_FIFOCON_TXREQ, "Message Send Request"),
    ("UINC", r.REG_FIFOCON_UINC, "Increment Head/Tail"),
    ("TXEN", r.REG_FIFOCON_TXEN, "TX/RX FIFO Selection (0: RX, 1: TX)"),
    ("RTREN", r.REG_FIFOCON_RTREN, "Auto RTR Enable"),
    ("RXTSEN", r.REG_FIFOCON_RXTSEN, "Received Message Time Stamp Enable"),
    ("TXATIE", r.REG_FIFOCON_TXATIE, "Transmit Attempts Exhausted Interrupt Enable"),
    ("RXOVIE", r.REG_FIFOCON_RXOVIE, "Overflow Interrupt Enable"),
    ("TFERFFIE", r.REG_FIFOCON_TFERFFIE, "Transmit/Receive FIFO Empty/Full Interrupt Enable"),
    ("TFHRFHIE", r.REG_FIFOCON_TFHRFHIE,
     "Transmit/Receive FIFO Half Empty/Half Full Interrupt Enable"),
    ("TFNRFNIE", r.REG_FIFOCON_TFNRFNIE,
     "Transmit/Receive FIFO Not Full/Not Empty Interrupt Enable"),
)

_FIFOSTA = (
    ("FIFOCI", r.REG_FIFOSTA_FIFOCI_MASK, "%3d", "FIFO Message Index"),
    ("TXABT", r.REG_FIFOSTA_TXABT,
     "Message Aborted Status (0: completed successfully, 1: aborted)"),
    ("TXLARB", r.REG_FIFOSTA_TXLARB, "Message Lost Arbitration Status"),
    ("TXERR", r.REG_FIFOSTA_TXERR, "Error Detected During Transmission"),
    ("TXATIF", r.REG_FIFOSTA_TXATIF, "Transmit Attempts Exhausted Interrupt Pending"),
    ("RXOVIF", r.REG_FIFOSTA_RXOVIF, "Receive FIFO Overflow Interrupt Flag"),
    ("TFERFFIF", r.REG_FIFOSTA_TFERFFIF, "Transmit/Receive FIFO Empty/Full Interrupt Flag"),
    ("TFHRFHIF", r.REG_FIFOSTA_TFHRFHIF,
     "Transmit/Receive FIFO Half Empty/Half Full Interrupt Flag"),
    ("TFNRFNIF", r.REG_FIFOSTA_TFNRFNIF,
     "Transmit/Receive FIFO Not Full/Not Empty Interrupt Flag"),
)

_INTERRUPTS = (
    ("IVMI", r.REG_INT_IVMIE, r.REG_INT_IVMIF, "Invalid Message Interrupt"),
    ("WAKI", r.REG_INT_WAKIE, r.REG_INT_WAKIF, "Bus Wake Up Interrupt"),
    ("CERRI", r.REG_INT_CERRIE, r.REG_INT_CERRIF, "CAN Bus Error Interrupt"),
    ("SERRI", r.REG_INT_SERRIE, r.REG_INT_SERRIF, "System Error Interrupt"),
    ("RXOVI", r.REG_INT_RXOVIE, r.REG_INT_RXOVIF, "Receive FIFO Overflow Interrupt"),
    ("TXATI", r.REG_INT_TXATIE, r.REG_INT_TXATIF, "Transmit Attempt Interrupt"),
    ("SPICRCI", r.REG_INT_SPICRCIE, r.REG_INT_SPICRCIF, "SPI CRC Error Interrupt"),
    ("ECCI", r.REG_INT_ECCIE, r.REG_INT_ECCIF, "ECC Error Interrupt"),
    ("TEFI", r.REG_INT_TEFIE, r.REG_INT_TEFIF, "Transmit Event FIFO Interrupt"),
    ("MODI", r.REG_INT_MODIE, r.REG_INT_MODIF, "Mode Change Interrupt"),
    ("TBCI", r.REG_INT_TBCIE, r.REG_INT_TBCIF, "Time Base Counter Interrupt"),
    ("RXI", r.REG_INT_RXIE, r.REG_INT_RXIF, "Receive FIFO Interrupt"),
    ("TXI", r.REG_INT_TXIE, r.REG_INT_TXIF, "Transmit FIFO Interrupt"),
)

_ICODES = {
    0x4A: "Transmit Attempt Interrupt",
    0x49: "Transmit Event FIFO Interrupt",
    0x48: "Invalid Message Occurred",
    0x47: "Operation Mode Changed",
    0x46: "TBC Overflow",
    0x45: "RX/TX MAB Overflow/Underflow",
    0x44: "Address Error Interrupt",
    0x43: "Receive FIFO Overflow Interrupt",
    0x42: "Wake-up Interrupt",
    0x41: "Error Interrupt",
    0x40: "No Interrupt",
}


def _code_text(code: int, names: dict) -> str:
    if code in names:
        return names[code]
    if code < 0x20:
        return f"FIFO {code}"
    return "Reserved"


def decode_vec(value: int, addr: int = r.REG_VEC) -> str:
    """Return the decoded text of the interrupt code register."""
    rx_code = field_get(r.REG_VEC_RXCODE_MASK, value)
    tx_code = field_get(r.REG_VEC_TXCODE_MASK, value)
    i_code = field_get(r.REG_VEC_ICODE_MASK, value)
    no_irq = {0x40: "No Interrupt"}
    return (
        f"VEC: vec(0x{addr:03x})=0x{value:08x}\n"
        f"\trxcode: {_code_text(rx_code, no_irq)} (0x{rx_code:02x})\n"
        f"\ttxcode: {_code_text(tx_code, no_irq)} (0x{tx_code:02x})\n"
        f"\ticode: {_code_text(i_code, _ICODES)} (0x{i_code:02x})\n"
    )


def _format_int(value: int, addr: int) -> str:
    lines = [f"INT: intf(0x{addr:03x})=0x{value:08x}\n", "\t\tIE\tIF\tIE & IF\n"]
    active = field_get(r.REG_INT_IF_MASK, value) & field_get(r.REG_INT_IE_MASK, value)
    for name, ie, flag, desc in _INTERRUPTS:
        lines.append(
            "\t%s\t%s\t%s\t%s\t%s\n" % (
                name,
                "x" if value & ie else "",
                "x" if value & flag else "",
                "x" if active & flag else "",
                desc,
            )
        )
    return "".join(lines)


def _format_fifo_bitmask(title: str, field: str, desc: str, value: int, addr: int) -> str:
    lines = [f"{title}: {field}(0x{addr:03x})=0x{value:08x}\n", f"{desc}:\n"]
    if not value:
        lines.append("\t\t-none-\n")
        return "".join(lines)
    # Only the lowest four FIFOs are listed, as the register width in bytes bounds the scan.
    bits = "".join(f"{i} " for i in range(4) if value & (1 << i))
    lines.append(f"\t\t{bits}\n")
    return "".join(lines)


def dump_registers(regs: DumpRegisters, chip_regs: ChipRegisters, out: TextIO | None = None) -> None:
    """Write the decoded register dump to ``out`` (standard output by default)."""
    out = sys.stdout if out is None else out
    tx = r.TX_FIFO
    rx = r.rx_fifo(0)
    sections = [
        _format_register("CON", "con", regs.con, r.REG_CON, _CON),
        _format_register("NBTCFG", "nbtcfg", regs.nbtcfg, r.REG_NBTCFG, _NBTCFG),
        _format_register("DBTCFG", "dbtcfg", regs.dbtcfg, r.REG_DBTCFG, _DBTCFG),
        _format_register("TDC", "tdc", regs.tdc, r.REG_TDC, _TDC),
        _format_register("TBC", "tbc", regs.tbc, r.REG_TBC),
        decode_vec(regs.vec, r.REG_VEC),
        _format_int(regs.intf, r.REG_INT),
        _format_fifo_bitmask("RXIF", "rxif", "Receive FIFO Interrupt Pending",
                             regs.rxif, r.REG_RXIF),
        _format_fifo_bitmask("RXOVIF", "rxovif", "Receive FIFO Overflow Interrupt Pending",
                             regs.rxovif, r.REG_RXOVIF),
        _format_fifo_bitmask("TXIF", "txif", "Transmit FIFO Interrupt Pending",
                             regs.txif, r.REG_TXIF),
        _format_fifo_bitmask("TXATIF", "txatif", "Transmit FIFO Attempt Interrupt Pending",
                             regs.txatif, r.REG_TXATIF),
        _format_fifo_bitmask("TXREQ", "txreq", "Message Send Request",
                             regs.txreq, r.REG_TXREQ),
        _format_register("TREC", "trec", regs.trec, r.REG_TREC, _TREC),
        _format_register("BDIAG0", "bdiag0", regs.bdiag0, r.REG_BDIAG0, _BDIAG0),
        _format_register("BDIAG1", "bdiag1", regs.bdiag1, r.REG_BDIAG1, _BDIAG1),
        _format_register("OSC", "osc", chip_regs.osc, r.REG_OSC, _OSC),
        _format_register("IOCON", "iocon", chip_regs.iocon, r.REG_IOCON, _IOCON),
    ]
    tef_sections = [
        _format_register("TEFCON", "tefcon", regs.tefcon, r.REG_TEFCON, _TEFCON),
        _format_register("TEFSTA", "tefsta", regs.tefsta, r.REG_TEFSTA, _TEFSTA),
        _format_register("TEFUA", "tefua", regs.tefua, r.REG_TEFUA),
    ]

    def fifo_sections(n: int) -> list[str]:
        fifo = regs.fifo[n]
        return [
            _format_register("FIFOCON", "fifocon", fifo.con, r.fifocon(n), _FIFOCON),
            _format_register("FIFOSTA", "fifosta", fifo.sta, r.fifosta(n), _FIFOSTA),
            _format_register("FIFOUA", "fifoua", fifo.ua, r.fifoua(n)),
        ]

    out.write("-------------------- register dump --------------------\n")
    for text in sections:
        out.write(text + "\n")
    out.write("-------------------- TEF --------------------\n")
    for text in tef_sections:
        out.write(text + "\n")
    out.write("-------------------- TX_FIFO --------------------\n")
    for text in fifo_sections(tx):
        out.write(text + "\n")
    out.write(" -------------------- RX_FIFO --------------------\n")
    for text in fifo_sections(rx):
        out.write(text + "\n")
    out.write("------------------------- end -------------------------\n")