"""Bridge a pseudo-terminal speaking slcan to a CAN network interface."""

from __future__ import annotations

import contextlib
import fcntl
import os
import select
import socket
import struct
import sys
import termios

from cantoolkit.can import (
    CAN_MTU,
    CAN_RAW,
    CAN_RAW_FILTER,
    SOL_CAN_RAW,
    unpack_frame,
)
from cantoolkit.slcan import SlcanSession, format_frame

DEVICE_NAME_PTMX = "/dev/ptmx"

_READ_SIZE = 199
_PF_CAN = 29
_SIOCGSTAMP = 0x8906
_TIOCSPTLCK = 0x40045431
_TIOCGPTN = 0x80045430
_TIMEVAL = struct.Struct("@ll")


def _perror(label: str, exc: OSError) -> None:
    print(f"{label}: {exc.strerror or exc}", file=sys.stderr)


def _usage(prog: str) -> str:
    return (
        f"{prog}: adapter for applications using the slcan ASCII protocol.\n"
        f"\n{prog} creates a pty for applications using the slcan ASCII protocol and\n"
        "converts the ASCII data to a CAN network interface (and vice versa)\n\n"
        f"Usage: {prog} <pty> <can interface>\n"
        "\nExamples:\n"
        f"{prog} /dev/ptyc0 can0  - creates /dev/ttyc0 for the slcan application\n\n"
        f"e.g. for pseudo-terminal '{prog} {DEVICE_NAME_PTMX} can0' creates /dev/pts/N\n"
        "\n"
    )


def stdin_selectable() -> bool:
    """Tell whether standard input can be watched for a key press to stop."""
    try:
        ready, _, _ = select.select([0], [], [], 0)
    except (OSError, ValueError):
        return False
    if ready:
        try:
            if os.read(0, 1) == b"":
                return False
        except OSError:
            return False
    return True


def _configure_pty(fd: int) -> None:
    attrs = termios.tcgetattr(fd)
    lflag_off = (
        termios.ICANON
        | termios.ECHO
        | termios.ECHOE
        | termios.ECHOK
        | termios.ECHONL
        | getattr(termios, "ECHOPRT", 0)
        | termios.ECHOKE
    )
    attrs[3] &= ~lflag_off
    attrs[0] &= ~termios.ICRNL
    attrs[0] |= termios.INLCR
    with contextlib.suppress(termios.error):
        termios.tcsetattr(fd, termios.TCSANOW, attrs)


def _slave_name(fd: int) -> str:
    try:
        fcntl.ioctl(fd, _TIOCSPTLCK, struct.pack("i", 0))
    except OSError as exc:
        raise _StepError("unlockpt", exc) from exc
    try:
        raw = fcntl.ioctl(fd, _TIOCGPTN, struct.pack("I", 0))
    except OSError as exc:
        raise _StepError("ptsname", exc) from exc
    return f"/dev/pts/{struct.unpack('I', raw)[0]}"


class _StepError(Exception):
    def __init__(self, label: str, cause: OSError) -> None:
        super().__init__(label)
        self.label = label
        self.cause = cause


def _timestamp_ms(sock: socket.socket) -> int:
    try:
        raw = fcntl.ioctl(sock.fileno(), _SIOCGSTAMP, bytes(_TIMEVAL.size))
        sec, usec = _TIMEVAL.unpack(raw)
    except OSError as exc:
        _perror("SIOCGSTAMP", exc)
        sec = usec = 0
    return (sec % 60) * 1000 + usec // 1000


def _pty_to_can(pty_fd: int, sock: socket.socket, session: SlcanSession) -> bool:
    try:
        data = os.read(pty_fd, _READ_SIZE)
    except OSError as exc:
        _perror("read pty", exc)
        return False
    if not data:
        return False
    try:
        events = session.feed(data)
    except ValueError as exc:
        print(f"read pty: {exc}", file=sys.stderr)
        return False

    for event in events:
        print(event.trace)
        if event.opened is True:
            with contextlib.suppress(OSError):
                sock.setsockopt(SOL_CAN_RAW, CAN_RAW_FILTER, session.filter.pack())
        elif event.opened is False:
            with contextlib.suppress(OSError):
                sock.setsockopt(SOL_CAN_RAW, CAN_RAW_FILTER, b"")
        if event.frame is not None:
            try:
                sent = sock.send(event.frame.pack())
            except OSError as exc:
                _perror("write socket", exc)
                return False
            if sent != CAN_MTU:
                print("write socket: incomplete CAN frame", file=sys.stderr)
                return False
        try:
            os.write(pty_fd, event.reply)
        except OSError as exc:
            _perror("write pty replybuf", exc)
            return False
    return True


def _can_to_pty(pty_fd: int, sock: socket.socket, session: SlcanSession) -> bool:
    try:
        raw = sock.recv(CAN_MTU)
    except OSError as exc:
        _perror("read socket", exc)
        return False
    if len(raw) != CAN_MTU:
        print("read socket: incomplete CAN frame", file=sys.stderr)
        return False
    frame = unpack_frame(raw)
    stamp = _timestamp_ms(sock) if session.timestamps else None
    try:
        os.write(pty_fd, format_frame(frame, stamp))
    except OSError as exc:
        _perror("write pty", exc)
        return False
    sys.stdout.flush()
    return True


def _serve(pty_fd: int, pty_path: str, interface: str, select_stdin: bool) -> int:
    try:
        _configure_pty(pty_fd)
    except termios.error as exc:
        print(f"tcgetattr: {exc.args[-1]}", file=sys.stderr)
        return 1

    if pty_path == DEVICE_NAME_PTMX:
        try:
            name = _slave_name(pty_fd)
        except _StepError as exc:
            _perror(exc.label, exc.cause)
            return 1
        print(f"open: {pty_path}: slave pseudo-terminal is {name}")

    try:
        sock = socket.socket(getattr(socket, "AF_CAN", _PF_CAN), socket.SOCK_RAW, CAN_RAW)
    except OSError as exc:
        _perror("socket", exc)
        return 1

    with sock:
        try:
            socket.if_nametoindex(interface)
        except OSError as exc:
            _perror("if_nametoindex", exc)
            return 1
        # Receive nothing until the application opens the channel.
        with contextlib.suppress(OSError):
            sock.setsockopt(SOL_CAN_RAW, CAN_RAW_FILTER, b"")
        try:
            sock.bind((interface,))
        except OSError as exc:
            _perror("bind", exc)
            return 1

        session = SlcanSession()
        while True:
            watched: list = [pty_fd, sock]
            if select_stdin:
                watched.append(0)
            try:
                readable, _, _ = select.select(watched, [], [])
            except OSError as exc:
                _perror("select", exc)
                return 1
            if select_stdin and 0 in readable:
                break
            if pty_fd in readable and not _pty_to_can(pty_fd, sock, session):
                break
            if sock in readable and not _can_to_pty(pty_fd, sock, session):
                break
    return 0


def run(pty_path: str, interface: str) -> int:
    """Serve the slcan pty until it closes or a key is pressed; return the exit status."""
    select_stdin = stdin_selectable()
    try:
        pty_fd = os.open(pty_path, os.O_RDWR)
    except OSError as exc:
        _perror("open pty", exc)
        return 1
    try:
        return _serve(pty_fd, pty_path, interface, select_stdin)
    finally:
        os.close(pty_fd)


def main(argv: list[str] | None = None) -> int:
    """Command entry point: ``slcanpty <pty> <can interface>``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 2:
        prog = os.path.basename(sys.argv[0]) or "slcanpty"
        print(_usage(prog), file=sys.stderr, end="")
        return 1
    return run(args[0], args[1])