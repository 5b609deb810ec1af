import struct

from cantoolkit.mcp251xfd.loader import DUMP_MAGIC, ObjectType, RingKey
from cantoolkit.mcp251xfd.main import main


def _coredump(reg_objects, tef_keys=()):
    headers = []
    body = b""
    base = 16 * 3
    reg_blob = b"".join(struct.pack("<II", reg, val) for reg, val in reg_objects)
    headers.append(struct.pack("<IIII", DUMP_MAGIC, ObjectType.REG, base, len(reg_blob)))
    body += reg_blob
    tef_blob = b"".join(struct.pack("<II", key, val) for key, val in tef_keys)
    headers.append(struct.pack("<IIII", DUMP_MAGIC, ObjectType.TEF, base + len(body), len(tef_blob)))
    body += tef_blob
    headers.append(struct.pack("<IIII", DUMP_MAGIC, ObjectType.END, 0, 0))
    return b"".join(headers) + body


def test_no_file_prints_usage(capsys):
    assert main([]) == 1
    assert "Usage:" in capsys.readouterr().err


def test_help_succeeds(capsys):
    assert main(["-h"]) == 0
    assert "--help" in capsys.readouterr().err


def test_long_help_succeeds(capsys):
    assert main(["--help"]) == 0
    assert "Usage:" in capsys.readouterr().err


def test_other_option_fails(capsys):
    assert main(["-v", "file"]) == 1
    assert "Usage:" in capsys.readouterr().err


def test_unreadable_file(tmp_path, capsys):
    missing = str(tmp_path / "missing.dump")
    assert main([missing]) == 1
    assert f"Unable to read file: '{missing}'" in capsys.readouterr().err


def test_coredump_file(tmp_path, capsys):
    path = tmp_path / "dev.dump"
    path.write_bytes(_coredump([(0x00, 0x12345678)], [(RingKey.OBJ_NUM, 1)]))
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "CON: con(0x000)=0x12345678" in out
    assert "register dump" in out
    assert "RAM dump" in out


def test_regmap_file(tmp_path, capsys):
    path = tmp_path / "registers"
    path.write_text("0000: 0000abcd\n0004: 00000001\n")
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert "CON: con(0x000)=0x0000abcd" in out
    assert "NBTCFG: nbtcfg(0x004)=0x00000001" in out


def test_output_ends_with_ram_dump_end(tmp_path, capsys):
    path = tmp_path / "registers"
    path.write_text("0000: 00000000\n")
    assert main([str(path)]) == 0
    out = capsys.readouterr().out
    assert out.endswith("------------------------- end -------------------------\n")
    assert out.index("TEF Overview") < out.index("RX Overview")