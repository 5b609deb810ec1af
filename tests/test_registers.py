import pytest

from cantoolkit.can import bit, dlc2len, field_get, genmask
from cantoolkit.mcp251xfd import registers as r


def test_fifo_zero_is_the_transmit_queue():
    assert r.fifocon(0) == r.REG_TXQCON == 0x50
    assert r.fifosta(0) == r.REG_TXQSTA == 0x54
    assert r.fifoua(0) == r.REG_TXQUA == 0x58


@pytest.mark.parametrize("n", range(32))
def test_fifo_registers_are_consecutive(n):
    assert r.fifosta(n) == r.fifocon(n) + 4
    assert r.fifoua(n) == r.fifocon(n) + 8


@pytest.mark.parametrize("n", range(31))
def test_fifo_stride(n):
    assert r.fifocon(n + 1) - r.fifocon(n) == 0xC


def test_last_fifo_precedes_filter_control():
    assert r.fifoua(31) + 4 == r.fltcon(0)


def test_filter_base_addresses():
    assert r.fltcon(0) == 0x1D0
    assert r.fltobj(0) == 0x1F0
    assert r.fltmask(0) == 0x1F4


def test_filter_control_ends_at_filter_objects():
    assert r.fltcon(7) + 4 == r.fltobj(0)


@pytest.mark.parametrize("n", range(32))
def test_filter_mask_follows_object(n):
    assert r.fltmask(n) == r.fltobj(n) + 4


@pytest.mark.parametrize(
    "func, bad",
    [
        (r.fifocon, 32),
        (r.fifosta, -1),
        (r.fifoua, 32),
        (r.fltcon, 8),
        (r.fltobj, 32),
        (r.fltmask, -1),
    ],
)
def test_out_of_range_numbers_raise(func, bad):
    with pytest.raises(ValueError):
        func(bad)


def test_rx_fifo_comes_after_tx_fifo():
    assert r.rx_fifo(0) > r.TX_FIFO
    assert r.rx_fifo(1) == r.rx_fifo(0) + 1


def test_rx_fifo_rejects_negative_and_too_large():
    with pytest.raises(ValueError):
        r.rx_fifo(-1)
    with pytest.raises(ValueError):
        r.rx_fifo(31)


def test_plsize_field_extraction():
    assert field_get(r.REG_FIFOCON_PLSIZE_MASK, 0xE0000000) == r.REG_FIFOCON_PLSIZE_64
    assert field_get(r.REG_FIFOCON_PLSIZE_MASK, 0x1FFFFFFF) == r.REG_FIFOCON_PLSIZE_8


def test_clearable_interrupt_flags_are_within_flag_half():
    assert field_get(r.REG_INT_IF_MASK, r.REG_INT_IF_CLEARABLE_MASK) == r.REG_INT_IF_CLEARABLE_MASK
    assert field_get(r.REG_INT_IE_MASK, r.REG_INT_IF_MASK) == 0


def test_bus_error_mask_excludes_counter():
    assert field_get(r.REG_BDIAG1_EFMSGCNT_MASK, r.REG_BDIAG1_BERR_MASK) == 0


def test_object_sizes_match_headers():
    payload_growth = dlc2len(15) - dlc2len(8)
    assert r.TX_OBJ_CANFD_SIZE - r.TX_OBJ_CAN_SIZE == payload_growth
    assert r.RX_OBJ_CANFD_SIZE - r.RX_OBJ_CAN_SIZE == payload_growth
    assert r.RX_OBJ_CAN_SIZE - r.TX_OBJ_CAN_SIZE == r.RX_OBJ_HEADER_SIZE - r.TX_OBJ_HEADER_SIZE


def test_ram_fits_in_register_memory():
    assert r.RAM_START == bit(10)
    assert r.RAM_SIZE == genmask(10, 0) + 1
    assert r.RAM_START + r.RAM_SIZE <= r.REG_OSC