"""Attach the slcan line discipline to a serial line and send setup commands."""

from __future__ import annotations

import errno
import fcntl
import getopt
import os
import socket
import struct
import sys
from dataclasses import dataclass

from cantoolkit.slcan import build_setup_commands, close_command

N_TTY = 0
N_SLCAN = 17

TIOCSETD = 0x5423
SIOCGIFNAME = 0x8910
SIOCSIFNAME = 0x8923

IFNAMSIZ = 16
_IFREQ_SIZE = 40


class UsageError(Exception):
    """The command line could not be understood."""


@dataclass
class AttachOptions:
    tty: str
    detach: bool = False
    wait_key: bool = False
    send_open: bool = False
    send_listen: bool = False
    send_close: bool = False
    read_status_flags: bool = False
    speed: str | None = None
    btr: str | None = None
    name: str | None = None


def _usage(prog: str) -> str:
    return (
        f"{prog} - userspace tool for serial line CAN interface driver SLCAN.\n"
        f"\nUsage: {prog} [options] tty\n\n"
        "Options:\n"
        "         -o          (send open command 'O\\r')\n"
        "         -l          (send listen only command 'L\\r', overrides -o)\n"
        "         -c          (send close command 'C\\r')\n"
        "         -f          (read status flags with 'F\\r' to reset error states)\n"
        "         -s <speed>  (set CAN speed 0..8)\n"
        "         -b <btr>    (set bit time register value)\n"
        "         -d          (only detach line discipline)\n"
        "         -w          (attach - wait for keypress - detach)\n"
        "         -n <name>   (assign created netdevice name)\n"
        "\n"
        "    <speed>          Bitrate\n"
        "          0            10 Kbit/s\n"
        "          1            20 Kbit/s\n"
        "          2            50 Kbit/s\n"
        "          3           100 Kbit/s\n"
        "          4           125 Kbit/s\n"
        "          5           250 Kbit/s\n"
        "          6           500 Kbit/s\n"
        "          7           800 Kbit/s\n"
        "          8          1000 Kbit/s\n"
        "\n"
        "\nExamples:\n"
        "slcan_attach -w -o -f -s6 -c /dev/ttyS1\n\n"
        "slcan_attach /dev/ttyS1\n\n"
        "slcan_attach -d /dev/ttyS1\n\n"
        "slcan_attach -w -n can15 /dev/ttyS1\n\n"
    )


def parse_args(argv: list[str]) -> AttachOptions:
    """Parse the command line; raise UsageError when it is not valid."""
    try:
        opts, args = getopt.gnu_getopt(list(argv), "ldwocfs:b:n:?")
    except getopt.GetoptError as exc:
        raise UsageError(str(exc)) from exc

    values: dict = {}
    flags = {
        "-d": "detach",
        "-w": "wait_key",
        "-o": "send_open",
        "-l": "send_listen",
        "-c": "send_close",
        "-f": "read_status_flags",
    }
    for opt, arg in opts:
        if opt in flags:
            values[flags[opt]] = True
        elif opt == "-s":
            if len(arg) > 1:
                raise UsageError(f"invalid speed: {arg!r}")
            values["speed"] = arg
        elif opt == "-b":
            if len(arg) > 6:
                raise UsageError(f"invalid bit time register value: {arg!r}")
            values["btr"] = arg
        elif opt == "-n":
            if len(arg) > IFNAMSIZ - 1:
                raise UsageError(f"netdevice name too long: {arg!r}")
            values["name"] = arg
        else:
            raise UsageError("help requested")

    if len(args) != 1:
        raise UsageError("exactly one tty is required")
    return AttachOptions(tty=args[0], **values)


def set_line_discipline(fd: int, ldisc: int) -> None:
    """Set the line discipline of the terminal ``fd``."""
    fcntl.ioctl(fd, TIOCSETD, struct.pack("i", ldisc))


def netdevice_name(fd: int) -> str:
    """Return the name of the network device bound to the terminal ``fd``."""
    raw = fcntl.ioctl(fd, SIOCGIFNAME, bytes(IFNAMSIZ))
    return raw.split(b"\0", 1)[0].decode()


def rename_netdevice(old: str, new: str) -> None:
    """Rename network device ``old`` to ``new``."""
    if len(new.encode()) > IFNAMSIZ - 1:
        raise ValueError(f"netdevice name too long: {new!r}")
    request = struct.pack(
        f"{IFNAMSIZ}s{_IFREQ_SIZE - IFNAMSIZ}s", old.encode(), new.encode()
    )
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        fcntl.ioctl(sock.fileno(), SIOCSIFNAME, request)


class _StepError(Exception):
    def __init__(self, label: str, cause: OSError) -> None:
        super().__init__(label)
        self.label = label
        self.cause = cause


def _write_command(fd: int, command: bytes) -> None:
    try:
        written = os.write(fd, command)
    except OSError as exc:
        raise _StepError("write", exc) from exc
    if written <= 0:
        raise _StepError("write", OSError(errno.EIO, "nothing written"))


def _ioctl_step(label: str, action, *args):
    try:
        return action(*args)
    except OSError as exc:
        raise _StepError(label, exc) from exc


def _attach(fd: int, opts: AttachOptions) -> None:
    if opts.wait_key or not opts.detach:
        for command in build_setup_commands(
            opts.speed, opts.btr, opts.read_status_flags, opts.send_listen, opts.send_open
        ):
            _write_command(fd, command)

        _ioctl_step("ioctl TIOCSETD", set_line_discipline, fd, N_SLCAN)
        current = _ioctl_step("ioctl SIOCGIFNAME", netdevice_name, fd)
        print(f"attached tty {opts.tty} to netdevice {current}")

        if opts.name:
            print(f"rename netdevice {current} to {opts.name} ... ", end="", flush=True)
            try:
                rename_netdevice(current, opts.name)
            except OSError:
                print("failed!")
            else:
                print("ok.")

    if opts.wait_key:
        print(f"Press any key to detach {opts.tty} ...", flush=True)
        sys.stdin.read(1)

    if opts.wait_key or opts.detach:
        _ioctl_step("ioctl", set_line_discipline, fd, N_TTY)
        if opts.send_close:
            _write_command(fd, close_command())


def main(argv: list[str] | None = None) -> int:
    """Command entry point; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        opts = parse_args(args)
    except UsageError:
        prog = os.path.basename(sys.argv[0]) or "slcan_attach"
        print(_usage(prog), file=sys.stderr, end="")
        return 1

    try:
        fd = os.open(opts.tty, os.O_WRONLY | os.O_NOCTTY)
    except OSError as exc:
        print(f"{opts.tty}: {exc.strerror}", file=sys.stderr)
        return 1
    try:
        _attach(fd, opts)
    except _StepError as exc:
        print(f"{exc.label}: {exc.cause.strerror or exc.cause}", file=sys.stderr)
        return 1
    finally:
        os.close(fd)
    return 0