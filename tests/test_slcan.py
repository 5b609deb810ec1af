import pytest

from cantoolkit.can import CAN_EFF_FLAG, CAN_RTR_FLAG, CanFrame
from cantoolkit.slcan import (
    SlcanSession,
    build_setup_commands,
    close_command,
    format_frame,
)


@pytest.mark.parametrize(
    "command, reply",
    [(b"V\r", b"V1013\r"), (b"v\r", b"v1014\r"), (b"N\r", b"N4242\r"), (b"F\r", b"F00\r")],
)
def test_fixed_replies(command, reply):
    events = SlcanSession().feed(command)
    assert [e.reply for e in events] == [reply]


def test_open_and_close_change_state():
    session = SlcanSession()
    opened = session.feed(b"O\r")
    assert opened[0].opened is True
    assert opened[0].reply == b"\r"
    assert session.is_open
    closed = session.feed(b"C\r")
    assert closed[0].opened is False
    assert not session.is_open


def test_incomplete_command_is_kept():
    session = SlcanSession()
    assert session.feed(b"t12") == []
    assert session.pending == b"t12"
    events = session.feed(b"30\r")
    assert len(events) == 1
    assert events[0].frame == CanFrame(can_id=0x123, dlc=0)
    assert session.pending == b""


def test_standard_data_frame():
    events = SlcanSession().feed(b"t1232AABB\r")
    assert len(events) == 1
    frame = events[0].frame
    assert frame.can_id == 0x123
    assert frame.payload == bytes.fromhex("AABB")
    assert events[0].reply == b"\r"


def test_remote_frame_with_length_digit_is_tolerated():
    events = SlcanSession().feed(b"R123456783\r")
    assert events[0].frame == CanFrame(can_id=0x12345678 | CAN_EFF_FLAG | CAN_RTR_FLAG)
    # the unexpected length digit is left over and rejected as a command of its own
    assert events[1].reply == b"\a"


def test_several_commands_in_one_chunk():
    session = SlcanSession()
    events = session.feed(b"O\rV\rZ1\r")
    assert len(events) == 3
    assert session.timestamps is True
    assert session.feed(b"Z0\r")[0].reply == b"\r"
    assert session.timestamps is False


def test_unknown_command_discards_the_rest():
    events = SlcanSession().feed(b"Q\rV\r")
    assert [e.reply for e in events] == [b"\a"]


def test_bad_hex_digit_is_rejected():
    events = SlcanSession().feed(b"t1231ZZ\r")
    assert len(events) == 1
    assert events[0].reply == b"\a"
    assert events[0].frame is None


def test_bad_length_is_rejected():
    events = SlcanSession().feed(b"t1239\r")
    assert events[0].reply == b"\a"
    assert events[0].frame is None


def test_leading_carriage_returns_are_skipped():
    events = SlcanSession().feed(b"\r\r\rV\r")
    assert [e.reply for e in events] == [b"V1013\r"]


def test_trace_shows_carriage_returns():
    assert SlcanSession().feed(b"V\r")[0].trace == "V@"


@pytest.mark.parametrize("command, reply", [(b"X1\r", b"\r"), (b"X0\r", b"\a"), (b"P\r", b"\a")])
def test_auto_poll_and_poll_commands(command, reply):
    assert SlcanSession().feed(command)[0].reply == reply


@pytest.mark.parametrize(
    "frame",
    [
        CanFrame(can_id=0x123, dlc=2, data=b"\xaa\xbb"),
        CanFrame(can_id=0x1ABCDEF | CAN_EFF_FLAG, dlc=8, data=bytes(range(8))),
        CanFrame(can_id=0x7FF | CAN_RTR_FLAG),
        CanFrame(can_id=0x12345 | CAN_EFF_FLAG | CAN_RTR_FLAG),
        CanFrame(can_id=0),
    ],
)
def test_format_and_parse_round_trip(frame):
    events = SlcanSession().feed(format_frame(frame))
    assert len(events) == 1
    assert events[0].frame == frame


def test_format_standard_frame():
    frame = CanFrame(can_id=0x123, dlc=2, data=b"\xaa\xbb")
    assert format_frame(frame) == b"t1232AABB\r"


def test_format_appends_timestamp():
    frame = CanFrame(can_id=0x123, dlc=2, data=b"\xaa\xbb")
    line = format_frame(frame, 0x1234)
    assert line == format_frame(frame)[:-1] + b"1234\r"


def test_setup_commands_in_order():
    commands = build_setup_commands("6", "031C", True, False, True)
    assert commands == [b"C\rS6\r", b"C\rs031C\r", b"F\r", b"O\r"]


def test_listen_overrides_open():
    assert build_setup_commands(listen=True, open_=True) == [b"L\r"]
    assert build_setup_commands() == []


def test_close_command():
    assert close_command() == b"C\r"


def test_overlong_command_raises():
    session = SlcanSession()
    session.feed(b"t" * 100)
    with pytest.raises(ValueError):
        session.feed(b"t" * 99)