# cantoolkit

Command-line tools and a small library for Linux SocketCAN work:

- **slcanpty** – bridges a pseudo-terminal speaking the slcan ASCII protocol
  to a CAN network interface, and the other way round.
- **slcan-attach** – configures a serial slcan adapter and attaches the slcan
  line discipline to its tty.
- **slcand** – the same job as a long-running process, with UART speed and
  flow-control settings.
- **mcp251xfd-dump** – decodes the chip and driver state of an MCP2517FD /
  MCP2518FD CAN controller from a devcoredump file or a regmap register file.

The serial-line and socket tools need Linux with SocketCAN and the slcan
driver; the dump decoder runs anywhere. No third-party libraries are needed.

## Installation

```
pip install .
```

Install with the `test` extra to run the test suite:

```
pip install .[test]
pytest
```

## Commands

### slcanpty

```
slcanpty /dev/ptmx can0
```

Opens the given pty (with `/dev/ptmx` the slave pseudo-terminal is unlocked
and its name printed), binds a raw CAN socket to `can0` and translates in both
directions. The socket receives no frames until the application sends the
open command `O`; `C` stops reception again. Each command received is echoed
to standard output with carriage returns shown as `@`. `Z1` adds a
millisecond timestamp to frames passed to the pty. When standard input can be
watched, pressing a key ends the program; it also ends when the pty closes.

### slcan-attach

```
slcan-attach -w -o -f -s6 -c /dev/ttyS1
slcan-attach /dev/ttyS1
slcan-attach -d /dev/ttyS1
slcan-attach -w -n can15 /dev/ttyS1
```

| option      | meaning                                            |
|-------------|----------------------------------------------------|
| `-o`        | send open command `O\r`                            |
| `-l`        | send listen-only command `L\r` (overrides `-o`)    |
| `-c`        | send close command `C\r` after detaching           |
| `-f`        | read status flags with `F\r`                       |
| `-s <n>`    | CAN speed 0..8 (10, 20, 50, 100, 125, 250, 500, 800, 1000 kbit/s) |
| `-b <btr>`  | bit time register value (up to six characters)     |
| `-d`        | only detach the line discipline                    |
| `-w`        | attach, wait for a key press, then detach          |
| `-n <name>` | rename the created network device                  |

Without `-d` or `-w` the tool attaches and exits, leaving the line discipline
in place.

### slcand

```
slcand -o -c -f -s6 ttyUSB0
slcand -o -c -f -s6 ttyUSB0 can0
slcand -F -S 115200 -t hw /dev/ttyUSB0
```

Accepts `-o`, `-c`, `-f`, `-l`, `-s` and `-b` as above, plus `-S <baud>` for
the UART speed (9600 up to the highest rate the platform's termios knows),
`-t hw|sw` for flow control and `-F` to stay in the foreground and log to
standard output instead of syslog. A tty name without `/dev/` is looked up
under `/dev/`; an optional second argument renames the created network
device.

With `-F`, SIGINT or SIGTERM ends the process cleanly: the normal line
discipline is restored, `C\r` is sent if `-c` was given and the old UART
speeds are put back. Without `-F` the process detaches from its terminal
(it does not fork) and keeps running until it is killed.

### mcp251xfd-dump

```
mcp251xfd-dump /var/log/devcoredump-19700101-234200.dump
mcp251xfd-dump /sys/kernel/debug/regmap/spi1.0-crc/registers
mcp251xfd-dump spi0.0
```

Reads the file as a devcoredump first; if that fails it is read as a regmap
register file. A bare device name such as `spi0.0` is looked up under
`/sys/kernel/debug/regmap/` (also with a `-crc` suffix). The output lists the
controller registers with their decoded fields, followed by the TEF, TX and
RX FIFO objects held in the chip's RAM. `-h` / `--help` prints the usage.

## Library

The pieces behind the commands can be used directly:

```python
from cantoolkit.slcan import SlcanSession, format_frame

session = SlcanSession()
for event in session.feed(b"t1232AABB\r"):
    print(event.reply, event.frame)
```

- `cantoolkit.can` – `CanFrame` and `CanFilter` with `pack()`,
  `unpack_frame()`, and the bit helpers `bit()`, `genmask()`, `field_get()`,
  `canfd_dlc()` and `dlc2len()`.
- `cantoolkit.slcan` – `SlcanSession.feed()` turns slcan command bytes into
  `SlcanEvent`s, each with a `trace`, the `reply` to write back, an optional
  `frame` for the bus and `opened` for `O`/`C`; `format_frame()` renders a
  frame as slcan text; `build_setup_commands()` and `close_command()` produce
  the adapter configuration strings.
- `cantoolkit.mcp251xfd.loader` – `read_coredump()`, `parse_coredump()`,
  `read_regmap()` and `read_regmap_file()` fill a register memory image and a
  `ChipState` with its `Ring`s; malformed input raises `DumpError`.
- `cantoolkit.mcp251xfd.registers` – register addresses and field masks, with
  `fifocon()`, `fifosta()`, `fifoua()`, `fltcon()`, `fltobj()`, `fltmask()`
  and `rx_fifo()`.
- `cantoolkit.mcp251xfd.regdump`, `cantoolkit.mcp251xfd.ramdump` – decode
  the image: `read_registers()`, `read_chip_registers()`, `decode_vec()`,
  `dump_registers()`, `RamLayout`, `format_data()`, `dump_ram()` and `dump()`
  write the report to any text stream.

## Limits

- slcanpty handles classical CAN frames only, not CAN FD.
- The slcan acceptance filter commands `m` and `M` are acknowledged but not
  applied; the bitrate commands `S` and `s` are acknowledged and ignored.
- There are no tools here for capturing, logging, replaying or generating
  CAN traffic beyond the slcan bridge.
- The dump decoder shows only the TEF, the TX FIFO and the first RX FIFO.