"""Daemon that attaches the slcan line discipline to a serial line and keeps it."""

from __future__ import annotations

import enum
import errno
import fcntl
import getopt
import os
import re
import signal
import struct
import sys
import syslog
import termios
import time
from dataclasses import dataclass
from typing import Callable

from cantoolkit.slcan import build_setup_commands, close_command
from cantoolkit.slcan_attach import (
    IFNAMSIZ,
    N_SLCAN,
    N_TTY,
    UsageError,
    netdevice_name,
    rename_netdevice,
    set_line_discipline,
)

DAEMON_NAME = "slcand"
TTYPATH_LENGTH = 256
DEV_PREFIX = "/dev/"

_TIOCGSERIAL = 0x541E
_TIOCSSERIAL = 0x541F
_ASYNC_LOW_LATENCY = 1 << 13
_SERIAL_FLAGS_OFFSET = 16
_SERIAL_STRUCT_SIZE = 128

_BAUD_RATES = (
    9600, 19200, 38400, 57600, 115200, 230400, 460800, 500000, 576000,
    921600, 1000000, 1152000, 1500000, 2000000, 2500000, 3000000,
    3500000, 4000000,
)

_SPEED_TABLE = {
    baud: getattr(termios, f"B{baud}")
    for baud in _BAUD_RATES
    if hasattr(termios, f"B{baud}")
}

_LONG_MAX = 2**63 - 1
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class FlowControl(enum.Enum):
    """UART flow control type."""

    NONE = 0
    HW = 1
    SW = 2


@dataclass
class DaemonOptions:
    tty: str
    name: str | None = None
    send_open: bool = False
    send_close: bool = False
    send_listen: bool = False
    read_status_flags: bool = False
    speed: str | None = None
    uart_speed: int = 0
    flow: FlowControl = FlowControl.NONE
    btr: str | None = None
    foreground: bool = False


def _usage(prog: str) -> str:
    return (
        f"{prog} - userspace daemon for serial line CAN interface driver SLCAN.\n"
        f"\nUsage: {prog} [options] <tty> [canif-name]\n\n"
        "Options:\n"
        "         -o          (send open command 'O\\r')\n"
        "         -c          (send close command 'C\\r')\n"
        "         -f          (read status flags with 'F\\r' to reset error states)\n"
        "         -l          (send listen only command 'L\\r', overrides -o)\n"
        "         -s <speed>  (set CAN speed 0..8)\n"
        "         -S <speed>  (set UART speed in baud)\n"
        "         -t <type>   (set UART flow control type 'hw' or 'sw')\n"
        "         -b <btr>    (set bit time register value)\n"
        "         -F          (stay in foreground; no daemonize)\n"
        "         -h          (show this help page)\n"
        "\nExamples:\n"
        "slcand -o -c -f -s6 ttyUSB0\n\n"
        "slcand -o -c -f -s6 ttyUSB0 can0\n\n"
        "slcand -o -c -f -s6 /dev/ttyUSB0\n\n"
    )


def uart_speed_constant(baud: int) -> int:
    """Return the termios speed constant for ``baud``; raise ValueError if unsupported."""
    try:
        return _SPEED_TABLE[baud]
    except KeyError:
        raise ValueError(f"Unsupported UART speed ({baud})") from None


def tty_path(name: str) -> str:
    """Return the device path for a tty name, adding ``/dev/`` when it is missing."""
    path = name if name.startswith(DEV_PREFIX) else DEV_PREFIX + name
    return path[: TTYPATH_LENGTH - 1]


def _parse_baud(text: str) -> int:
    match = _LEADING_INT.match(text)
    if not match:
        return 0
    value = int(match.group(1))
    if abs(value) > _LONG_MAX:
        raise UsageError(f"UART speed out of range: {text!r}")
    return value


def parse_args(argv: list[str]) -> DaemonOptions:
    """Parse the command line.

    Raises UsageError when the usage text is due, ValueError for an
    unsupported UART speed or flow control type.
    """
    try:
        opts, args = getopt.gnu_getopt(list(argv), "ocfls:S:t:b:?hF")
    except getopt.GetoptError as exc:
        raise UsageError(str(exc)) from exc

    values: dict = {}
    flags = {
        "-o": "send_open",
        "-c": "send_close",
        "-f": "read_status_flags",
        "-l": "send_listen",
    }
    for opt, arg in opts:
        if opt in flags:
            values[flags[opt]] = True
        elif opt == "-s":
            if len(arg) > 1:
                raise UsageError(f"invalid speed: {arg!r}")
            values["speed"] = arg
        elif opt == "-S":
            baud = _parse_baud(arg)
            uart_speed_constant(baud)
            values["uart_speed"] = baud
        elif opt == "-t":
            if arg == "hw":
                values["flow"] = FlowControl.HW
            elif arg == "sw":
                values["flow"] = FlowControl.SW
            else:
                raise ValueError(f"Unsupported flow type ({arg})")
        elif opt == "-b":
            if len(arg) > 6:
                raise UsageError(f"invalid bit time register value: {arg!r}")
            values["btr"] = arg
        elif opt == "-F":
            values["foreground"] = True
        else:
            raise UsageError("help requested")

    if not args:
        raise UsageError("a tty is required")
    name = args[1] if len(args) > 1 else None
    if name is not None and len(name) > IFNAMSIZ - 1:
        raise UsageError(f"netdevice name too long: {name!r}")
    return DaemonOptions(tty=args[0], name=name, **values)


Logger = Callable[[int, str], None]


def _make_logger(foreground: bool) -> Logger:
    if foreground:
        def log(priority: int, message: str) -> None:
            print(f"[{priority}] {message}", flush=True)
    else:
        def log(priority: int, message: str) -> None:
            syslog.syslog(priority, message)
    return log


class _StepError(Exception):
    def __init__(self, label: str, cause: OSError) -> None:
        super().__init__(label)
        self.label = label
        self.cause = cause


def _perror(label: str, exc: OSError) -> None:
    print(f"{label}: {exc.strerror or exc}", file=sys.stderr)


def _write_command(fd: int, command: bytes) -> None:
    try:
        written = os.write(fd, command)
    except OSError as exc:
        raise _StepError("write", exc) from exc
    if written <= 0:
        raise _StepError("write", OSError(errno.EIO, "nothing written"))


def _set_low_latency(fd: int) -> None:
    buf = bytearray(_SERIAL_STRUCT_SIZE)
    try:
        fcntl.ioctl(fd, _TIOCGSERIAL, buf, True)
        (flags,) = struct.unpack_from("i", buf, _SERIAL_FLAGS_OFFSET)
        struct.pack_into("i", buf, _SERIAL_FLAGS_OFFSET, flags | _ASYNC_LOW_LATENCY)
        fcntl.ioctl(fd, _TIOCSSERIAL, buf)
    except OSError:
        pass


def _make_raw(attrs: list) -> None:
    attrs[0] &= ~(
        termios.IGNBRK | termios.BRKINT | termios.PARMRK | termios.ISTRIP
        | termios.INLCR | termios.IGNCR | termios.ICRNL | termios.IXON
    )
    attrs[1] &= ~termios.OPOST
    attrs[3] &= ~(termios.ECHO | termios.ECHONL | termios.ICANON | termios.ISIG | termios.IEXTEN)
    attrs[2] &= ~(termios.CSIZE | termios.PARENB)
    attrs[2] |= termios.CS8
    attrs[6][termios.VMIN] = 1
    attrs[6][termios.VTIME] = 0


def _apply(fd: int, attrs: list, path: str, log: Logger) -> None:
    try:
        termios.tcsetattr(fd, termios.TCSADRAIN, attrs)
    except termios.error as exc:
        log(syslog.LOG_NOTICE, f'Cannot set attributes for device "{path}": {exc.args[-1]}!')


def _detach() -> None:
    """Detach from the controlling terminal within the running process."""
    try:
        os.setsid()
    except OSError:
        pass
    signal.signal(signal.SIGHUP, signal.SIG_IGN)
    os.chdir("/")
    devnull = os.open(os.devnull, os.O_RDWR)
    for target in (0, 1, 2):
        os.dup2(devnull, target)
    if devnull > 2:
        os.close(devnull)


@dataclass
class _LoopState:
    running: bool = True
    exit_code: int = 0


def _serve(fd: int, path: str, opts: DaemonOptions, log: Logger) -> int:
    try:
        attrs = termios.tcgetattr(fd)
    except termios.error as exc:
        log(syslog.LOG_NOTICE, f"failed to get attributes for TTY device {path}: {exc.args[-1]}")
        return 1

    _set_low_latency(fd)
    old_ispeed, old_ospeed = attrs[4], attrs[5]

    _make_raw(attrs)
    attrs[0] &= ~termios.IXOFF
    crtscts = getattr(termios, "CRTSCTS", 0)
    attrs[2] &= ~crtscts
    if opts.uart_speed:
        attrs[4] = attrs[5] = uart_speed_constant(opts.uart_speed)
    if opts.flow is FlowControl.HW:
        attrs[2] |= crtscts
    elif opts.flow is FlowControl.SW:
        attrs[0] |= termios.IXON | termios.IXOFF
    _apply(fd, attrs, path, log)

    try:
        for command in build_setup_commands(
            opts.speed, opts.btr, opts.read_status_flags, opts.send_listen, opts.send_open
        ):
            _write_command(fd, command)
        try:
            set_line_discipline(fd, N_SLCAN)
        except OSError as exc:
            raise _StepError("ioctl TIOCSETD", exc) from exc
        try:
            current = netdevice_name(fd)
        except OSError as exc:
            raise _StepError("ioctl SIOCGIFNAME", exc) from exc
    except _StepError as exc:
        _perror(exc.label, exc.cause)
        return 1

    log(syslog.LOG_NOTICE, f"attached TTY {path} to netdevice {current}")

    if opts.name:
        try:
            rename_netdevice(current, opts.name)
        except OSError as exc:
            log(syslog.LOG_NOTICE, f"netdevice {current} rename to {opts.name} failed")
            _perror("ioctl SIOCSIFNAME rename", exc)
            return 1
        log(syslog.LOG_NOTICE, f"netdevice {current} renamed to {opts.name}")

    state = _LoopState()
    if opts.foreground:
        def on_signal(signum: int, _frame) -> None:
            log(syslog.LOG_NOTICE, f"received signal {signum} on {path}")
            state.exit_code = 0
            state.running = False

        signal.signal(signal.SIGINT, on_signal)
        signal.signal(signal.SIGTERM, on_signal)
    else:
        try:
            _detach()
        except OSError:
            log(syslog.LOG_ERR, "failed to daemonize")
            return 1

    while state.running:
        time.sleep(1)

    log(syslog.LOG_INFO, f"stopping on TTY device {path}")
    try:
        try:
            set_line_discipline(fd, N_TTY)
        except OSError as exc:
            raise _StepError("ioctl TIOCSETD", exc) from exc
        if opts.send_close:
            _write_command(fd, close_command())
    except _StepError as exc:
        _perror(exc.label, exc.cause)
        return 1

    attrs[4], attrs[5] = old_ispeed, old_ospeed
    _apply(fd, attrs, path, log)

    log(syslog.LOG_NOTICE, f"terminated on {path}")
    return state.exit_code


def main(argv: list[str] | None = None) -> int:
    """Command entry point; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        opts = parse_args(args)
    except UsageError:
        prog = os.path.basename(sys.argv[0]) or DAEMON_NAME
        print(_usage(prog), file=sys.stderr, end="")
        return 1
    except ValueError as exc:
        print(exc, file=sys.stderr)
        return 1

    log = _make_logger(opts.foreground)
    syslog.openlog(DAEMON_NAME, syslog.LOG_PID, syslog.LOG_LOCAL5)
    try:
        path = tty_path(opts.tty)
        log(syslog.LOG_INFO, f"starting on TTY device {path}")
        try:
            fd = os.open(path, os.O_RDWR | os.O_NONBLOCK | os.O_NOCTTY)
        except OSError as exc:
            log(syslog.LOG_NOTICE, f"failed to open TTY device {path}")
            _perror(path, exc)
            return 1
        try:
            return _serve(fd, path, opts, log)
        finally:
            os.close(fd)
    finally:
        syslog.closelog()