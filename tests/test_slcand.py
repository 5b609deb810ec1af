import termios

import pytest

from cantoolkit.slcan_attach import UsageError
from cantoolkit.slcand import (
    DaemonOptions,
    FlowControl,
    main,
    parse_args,
    tty_path,
    uart_speed_constant,
)


def test_tty_path_adds_prefix():
    assert tty_path("ttyUSB0") == "/dev/ttyUSB0"


def test_tty_path_keeps_full_path():
    assert tty_path("/dev/ttyUSB0") == "/dev/ttyUSB0"


def test_tty_path_prefix_only_at_start():
    assert tty_path("x/dev/y") == "/dev/x/dev/y"


def test_tty_path_is_bounded():
    assert len(tty_path("a" * 1000)) < 256


def test_parse_source_example():
    opts = parse_args(["-o", "-c", "-f", "-s6", "ttyUSB0", "can0"])
    assert opts == DaemonOptions(
        tty="ttyUSB0",
        name="can0",
        send_open=True,
        send_close=True,
        read_status_flags=True,
        speed="6",
    )


def test_parse_defaults():
    opts = parse_args(["ttyUSB0"])
    assert opts.name is None
    assert opts.flow is FlowControl.NONE
    assert opts.uart_speed == 0
    assert opts.foreground is False


def test_parse_listen_and_foreground():
    opts = parse_args(["-l", "-F", "ttyUSB0"])
    assert opts.send_listen is True
    assert opts.foreground is True


def test_parse_uart_speed():
    assert parse_args(["-S", "115200", "ttyUSB0"]).uart_speed == 115200


def test_parse_unsupported_uart_speed():
    with pytest.raises(ValueError, match="Unsupported UART speed"):
        parse_args(["-S", "1234", "ttyUSB0"])


def test_parse_non_numeric_uart_speed_reads_as_zero():
    with pytest.raises(ValueError, match=r"\(0\)"):
        parse_args(["-S", "abc", "ttyUSB0"])


@pytest.mark.parametrize("text, flow", [("hw", FlowControl.HW), ("sw", FlowControl.SW)])
def test_parse_flow(text, flow):
    assert parse_args(["-t", text, "ttyUSB0"]).flow is flow


def test_parse_bad_flow():
    with pytest.raises(ValueError, match="Unsupported flow type"):
        parse_args(["-t", "xx", "ttyUSB0"])


@pytest.mark.parametrize(
    "argv",
    [
        ["-s", "12", "ttyUSB0"],
        ["-b", "1234567", "ttyUSB0"],
        ["-h"],
        [],
        ["ttyUSB0", "n" * 16],
        ["-Q", "ttyUSB0"],
    ],
)
def test_parse_usage_errors(argv):
    with pytest.raises(UsageError):
        parse_args(argv)


def test_uart_speed_constant_known():
    assert uart_speed_constant(115200) == termios.B115200
    assert uart_speed_constant(9600) == termios.B9600


def test_uart_speed_constant_unknown():
    with pytest.raises(ValueError):
        uart_speed_constant(1234)


def test_main_help_prints_usage(capsys):
    assert main(["-h"]) == 1
    assert "Usage:" in capsys.readouterr().err


def test_main_bad_flow_message(capsys):
    assert main(["-t", "bogus", "ttyUSB0"]) == 1
    assert "Unsupported flow type (bogus)" in capsys.readouterr().err


def test_main_missing_tty(tmp_path, capsys):
    assert main(["-F", str(tmp_path / "missing")]) == 1
    assert "failed to open TTY device" in capsys.readouterr().out