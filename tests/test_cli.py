from __future__ import annotations

import hashlib
import json

import pytest

from baesenx.cli import main
from baesenx.tables import FunctionEntry

OPCODES = bytes([0x38, 0x00, 0x00, 0x00, 0x00, 0x1D, 0x00, 0x00, 0x00, 0x00, 0x00, 0x41])


@pytest.fixture
def script_path(tmp_path, make_script):
    path = tmp_path / "bsxx.dat"
    path.write_bytes(
        make_script(
            opcodes=OPCODES,
            functions=[FunctionEntry("Start", 0)],
            messages=["こんにちは"],
        )
    )
    return path


def test_decompile(script_path, tmp_path, capsys) -> None:
    dest = tmp_path / "bsxx.json"

    main(["decompile", str(script_path), str(dest)])

    assert json.loads(dest.read_text(encoding="utf-8")) == [
        {"Type": "38 256", "Arguments": ["Start"]},
        {"Type": "1D 261", "Arguments": ["こんにちは"]},
        {"Type": "41 267", "Arguments": []},
    ]
    assert "Done." in capsys.readouterr().out


def test_decompile_verbose(script_path, tmp_path, capsys) -> None:
    main(["-v", "decompile", str(script_path), str(tmp_path / "out.json")])

    out = capsys.readouterr().out
    assert "[0000a8] 38 256('Start')" in out


def test_patch_save(script_path, tmp_path, capsys) -> None:
    save = tmp_path / "common.dat"
    save.write_bytes(b"0" * 32 + b"\x01\x02\x03")
    dest = tmp_path / "common_patched.dat"

    main(["patch-save", str(script_path), str(save), str(dest)])

    assert dest.read_bytes() == hashlib.md5(OPCODES).hexdigest().encode("ascii") + b"\x01\x02\x03"
    assert "Checksum updated" in capsys.readouterr().out

    main(["patch-save", str(script_path), str(dest), str(tmp_path / "again.dat")])

    assert (tmp_path / "again.dat").read_bytes() == dest.read_bytes()
    assert "nothing to change" in capsys.readouterr().out


def test_info(script_path, capsys) -> None:
    main(["info", str(script_path)])

    out = capsys.readouterr().out
    assert "Version: BSXScript 3.0" in out
    assert "Functions: 1" in out
    assert "Messages: 1" in out


def test_same_source_and_dest(script_path) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["decompile", str(script_path), str(script_path)])

    assert exc.value.code == 1


def test_bad_script(tmp_path, capsys) -> None:
    path = tmp_path / "bsxx.dat"
    path.write_bytes(b"BSXScript 9.9\x00\x00\x00")

    with pytest.raises(SystemExit) as exc:
        main(["decompile", str(path), str(tmp_path / "out.json")])

    assert exc.value.code == 1
    assert "No valid BSXScript version" in capsys.readouterr().err


def test_same_source_and_dest_relative(script_path, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    before = script_path.read_bytes()

    with pytest.raises(SystemExit) as exc:
        main(["decompile", "bsxx.dat", "./bsxx.dat"])

    assert exc.value.code == 1
    assert script_path.read_bytes() == before


def test_same_save_and_dest_relative(script_path, tmp_path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    save = tmp_path / "common.dat"
    save.write_bytes(b"0" * 32 + b"\x01")

    with pytest.raises(SystemExit) as exc:
        main(["patch-save", str(script_path), "common.dat", str(save)])

    assert exc.value.code == 1
    assert save.read_bytes() == b"0" * 32 + b"\x01"
