import struct

import pytest

from cantoolkit.can import (
    CAN_EFF_FLAG,
    CAN_INV_FILTER,
    CAN_MTU,
    CAN_RTR_FLAG,
    CANFD_MAX_DLC,
    CanFilter,
    CanFrame,
    bit,
    canfd_dlc,
    dlc2len,
    field_get,
    genmask,
    unpack_frame,
)


def test_frame_pack_has_mtu_length():
    frame = CanFrame(can_id=0x123, dlc=3, data=b"\x01\x02\x03")
    assert len(frame.pack()) == CAN_MTU


def test_frame_round_trip():
    frame = CanFrame(can_id=0x1ABCDE | CAN_EFF_FLAG, dlc=8, data=bytes(range(8)))
    assert unpack_frame(frame.pack()) == frame


def test_frame_pack_layout_matches_native_struct():
    frame = CanFrame(can_id=0x7FF, dlc=2, data=b"\xAA\xBB")
    can_id, dlc, data = struct.unpack("=IB3x8s", frame.pack())
    assert (can_id, dlc) == (0x7FF, 2)
    assert data == b"\xAA\xBB" + bytes(6)


def test_frame_data_is_padded_and_payload_trimmed():
    frame = CanFrame(can_id=1, dlc=2, data=b"\x11\x22")
    assert len(frame.data) == 8
    assert frame.payload == b"\x11\x22"


def test_frame_flags_and_arbitration_id():
    frame = CanFrame(can_id=0x12345678 | CAN_EFF_FLAG | CAN_RTR_FLAG)
    assert frame.is_extended
    assert frame.is_remote
    assert not frame.is_error
    assert frame.arbitration_id == 0x12345678


@pytest.mark.parametrize(
    "kwargs",
    [{"dlc": 9}, {"dlc": -1}, {"data": bytes(9)}, {"can_id": -1}, {"len8_dlc": 16}],
)
def test_frame_rejects_invalid_fields(kwargs):
    with pytest.raises(ValueError):
        CanFrame(**kwargs)


def test_unpack_rejects_wrong_length():
    with pytest.raises(ValueError):
        unpack_frame(bytes(CAN_MTU - 1))


def test_filter_pack_layout():
    flt = CanFilter(can_id=0x100, can_mask=0x700)
    packed = flt.pack()
    assert len(packed) == 8
    assert struct.unpack("=II", packed) == (0x100, 0x700)


def test_filter_matching_and_inversion():
    flt = CanFilter(can_id=0x100, can_mask=0x700)
    assert flt.matches(0x1FF)
    assert not flt.matches(0x200)
    inverted = CanFilter(can_id=0x100 | CAN_INV_FILTER, can_mask=0x700)
    assert not inverted.matches(0x1FF)
    assert inverted.matches(0x200)


def test_open_filter_matches_everything():
    flt = CanFilter()
    assert all(flt.matches(i) for i in (0, 0x7FF, 0x1FFFFFFF))


@pytest.mark.parametrize("n", [0, 1, 7, 31, 63])
def test_bit_equals_single_bit_mask(n):
    assert bit(n) == genmask(n, n)


def test_genmask_known_value():
    assert genmask(31, 28) == 0xF0000000


@pytest.mark.parametrize("high,low", [(7, 0), (12, 8), (31, 9), (28, 24)])
def test_field_get_inverts_shift(high, low):
    mask = genmask(high, low)
    width = high - low + 1
    for value in (0, 1, (1 << width) - 1):
        assert field_get(mask, value << low) == value


def test_field_get_ignores_bits_outside_mask():
    mask = genmask(12, 8)
    assert field_get(mask, ~mask & 0xFFFFFFFF) == 0


def test_invalid_masks_raise():
    with pytest.raises(ValueError):
        genmask(3, 4)
    with pytest.raises(ValueError):
        field_get(0, 5)
    with pytest.raises(ValueError):
        bit(-1)


def test_canfd_dlc_clamps():
    assert canfd_dlc(3) == 3
    assert canfd_dlc(200) == CANFD_MAX_DLC


def test_dlc2len_table():
    assert [dlc2len(i) for i in range(9)] == list(range(9))
    assert dlc2len(9) == 12
    assert dlc2len(15) == 64
    assert dlc2len(0x19) == dlc2len(9)
    assert dlc2len(canfd_dlc(255)) == 64