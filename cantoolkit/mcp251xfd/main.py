"""Command that decodes the chip and driver state of an MCP251xFD controller."""

from __future__ import annotations

import getopt
import os
import sys

from cantoolkit.mcp251xfd.loader import (
    MEM_SIZE,
    ChipState,
    DumpError,
    read_coredump,
    read_regmap,
)
from cantoolkit.mcp251xfd.ramdump import dump


def _usage(prog: str) -> str:
    return (
        f"{prog} - decode chip and driver state of mcp251xfd.\n"
        "\n"
        f"Usage: {prog} [options] <file>\n"
        "\n"
        "        <file>      path to dev coredump file\n"
        "                        ('/var/log/devcoredump-19700101-234200.dump')\n"
        "                    path to regmap register file\n"
        "                        ('/sys/kernel/debug/regmap/spi1.0-crc/registers')\n"
        "                    shortcut to regmap register file\n"
        "                        ('spi0.0')\n"
        "\n"
        "Options:\n"
        "        -h, --help  this help\n"
        "\n"
    )


def main(argv: list[str] | None = None) -> int:
    """Command entry point; return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    prog = os.path.basename(sys.argv[0]) or "mcp251xfd-dump"

    try:
        opts, rest = getopt.gnu_getopt(args, "ei:pqrvh", ["help"])
    except getopt.GetoptError:
        print(_usage(prog), file=sys.stderr, end="")
        return 1
    if opts:
        print(_usage(prog), file=sys.stderr, end="")
        return 0 if opts[0][0] in ("-h", "--help") else 1

    if not rest:
        print(_usage(prog), file=sys.stderr, end="")
        return 1
    file_path = rest[0]

    mem = bytearray(MEM_SIZE)
    chip = ChipState()
    try:
        read_coredump(file_path, chip, mem)
    except (OSError, DumpError):
        try:
            read_regmap(file_path, mem)
        except (OSError, DumpError):
            print(f"Unable to read file: '{file_path}'", file=sys.stderr)
            return 1

    dump(chip, mem, sys.stdout)
    return 0