import os

import pytest

from cantoolkit.slcan_attach import (
    AttachOptions,
    UsageError,
    main,
    netdevice_name,
    parse_args,
    rename_netdevice,
    set_line_discipline,
    N_SLCAN,
)


def test_parse_full_example():
    opts = parse_args(["-w", "-o", "-f", "-s6", "-c", "/dev/ttyS1"])
    assert opts == AttachOptions(
        tty="/dev/ttyS1",
        wait_key=True,
        send_open=True,
        read_status_flags=True,
        speed="6",
        send_close=True,
    )


def test_parse_name_and_detach():
    opts = parse_args(["-d", "-n", "can15", "/dev/ttyS1"])
    assert opts.detach is True
    assert opts.name == "can15"
    assert opts.wait_key is False


def test_parse_bare_tty():
    assert parse_args(["/dev/ttyS1"]) == AttachOptions(tty="/dev/ttyS1")


@pytest.mark.parametrize(
    "argv",
    [
        [],
        ["a", "b"],
        ["-s", "12", "tty"],
        ["-b", "1234567", "tty"],
        ["-n", "x" * 16, "tty"],
        ["-?", "tty"],
        ["-z", "tty"],
        ["-s"],
    ],
)
def test_parse_rejects_bad_command_lines(argv):
    with pytest.raises(UsageError):
        parse_args(argv)


def test_main_usage_error(capsys):
    assert main(["-z"]) == 1
    assert "Usage:" in capsys.readouterr().err


def test_main_missing_tty(tmp_path, capsys):
    missing = tmp_path / "missing"
    assert main([str(missing)]) == 1
    assert str(missing) in capsys.readouterr().err


def test_main_sends_setup_before_failing_on_non_terminal(tmp_path, capsys):
    path = tmp_path / "line"
    path.write_bytes(b"")
    assert main(["-s6", "-o", str(path)]) == 1
    assert path.read_bytes() == b"C\rS6\rO\r"
    assert "ioctl TIOCSETD" in capsys.readouterr().err


def test_main_listen_overrides_open(tmp_path):
    path = tmp_path / "line"
    path.write_bytes(b"")
    assert main(["-l", "-o", "-f", str(path)]) == 1
    assert path.read_bytes() == b"F\rL\r"


def test_main_detach_only_writes_nothing(tmp_path):
    path = tmp_path / "line"
    path.write_bytes(b"")
    assert main(["-d", "-c", str(path)]) == 1
    assert path.read_bytes() == b""


def test_line_discipline_needs_a_terminal(tmp_path):
    path = tmp_path / "plain"
    path.write_bytes(b"")
    fd = os.open(path, os.O_WRONLY)
    try:
        with pytest.raises(OSError):
            set_line_discipline(fd, N_SLCAN)
        with pytest.raises(OSError):
            netdevice_name(fd)
    finally:
        os.close(fd)


def test_rename_rejects_long_name():
    with pytest.raises(ValueError):
        rename_netdevice("slcan0", "n" * 16)