#!/usr/bin/env python3

from __future__ import annotations

import argparse
import hashlib
import pathlib
import sys

from .container import BSXScript, ListID
from .errors import BSXError
from .save import ChecksumStatus, set_updated_checksum
from .serialize import instr_list_to_json
from .version import __version__


def load_script(path: pathlib.Path) -> BSXScript:
    with open(path, "rb") as file:
        f = file.read()
    print(f"Parsing {path.name} ({len(f)} bytes, md5 {hashlib.md5(f).hexdigest()})...")
    return BSXScript(f)


def decompile(args: argparse.Namespace) -> None:
    script = load_script(args.SCRIPT)
    print(f"Found {script.version}, decompiling...")
    result = script.decompile(print_data=args.verbose, print_prefix="  ")
    print(f"Writing {len(result.instructions)} instructions to {args.DEST}...")
    with open(args.DEST, "w", encoding="utf-8") as f:
        f.write(instr_list_to_json(result.instructions, indent=args.indent))


def patch_save(args: argparse.Namespace) -> None:
    script = load_script(args.SCRIPT)
    with open(args.SAVE, "rb") as file:
        save = file.read()
    print(f"Parsing {args.SAVE.name} ({len(save)} bytes)...")
    data, status = set_updated_checksum(save, script.opcodes)
    if status == ChecksumStatus.UPDATED:
        print(f"Checksum updated to {data[:32].decode('ascii')}")
    else:
        print("Checksum already matches the script, nothing to change")
    with open(args.DEST, "wb") as f:
        f.write(data)


def info(args: argparse.Namespace) -> None:
    script = load_script(args.SCRIPT)
    print(f"Version: {script.version}")
    for list_id in ListID:
        raw = script.get_raw_list(list_id)
        print(
            f"  - {list_id.name.lower()}: {len(raw.metadata)} bytes metadata, {len(raw.content)} bytes content"
        )
    symbols = script.get_symbols()
    print(f"Functions: {len(symbols.functions)}")
    for i, variables in enumerate(symbols.variables):
        print(f"Variables {i + 1}: {len(variables)}")
    print(f"Characters: {len(symbols.characters)}")
    print(f"Messages: {len(symbols.messages)}")
    if args.verbose:
        for i, function in enumerate(symbols.functions):
            print(f"  [{i}] {function.name} (address 0x{function.address:08x})")


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Decompiler for BSXScript 3.x visual novel scripts"
    )
    parser.add_argument(
        "--version",
        "-V",
        action="version",
        version=f"%(prog)s {__version__}",
        help="Show program's version number and exit.",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show verbose logging output."
    )
    commands = parser.add_subparsers(dest="command", required=True)

    cmd = commands.add_parser(
        "decompile", help="Convert a compiled script (bsxx.dat) to JSON."
    )
    cmd.add_argument("SCRIPT", type=pathlib.Path, help="Path to the compiled script.")
    cmd.add_argument("DEST", type=pathlib.Path, help="Path to output the JSON file.")
    cmd.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Number of spaces to indent the JSON output with.",
    )
    cmd.set_defaults(func=decompile)

    cmd = commands.add_parser(
        "patch-save",
        help="Update the checksum of a save file (common.dat, no*) to match a compiled script.",
    )
    cmd.add_argument("SCRIPT", type=pathlib.Path, help="Path to the compiled script.")
    cmd.add_argument("SAVE", type=pathlib.Path, help="Path to the save file.")
    cmd.add_argument("DEST", type=pathlib.Path, help="Path to output the patched save.")
    cmd.set_defaults(func=patch_save)

    cmd = commands.add_parser(
        "info", help="Show the version and symbol table sizes of a compiled script."
    )
    cmd.add_argument("SCRIPT", type=pathlib.Path, help="Path to the compiled script.")
    cmd.set_defaults(func=info)

    args = parser.parse_args(argv or sys.argv[1:])

    dest = getattr(args, "DEST", None)
    sources = [p for p in (args.SCRIPT, getattr(args, "SAVE", None)) if p is not None]
    if dest is not None and dest.resolve() in {p.resolve() for p in sources}:
        parser.exit(1, "Source and destination paths must be different\n")

    try:
        args.func(args)
    except BSXError as e:
        parser.exit(1, f"Error: {e}\n")
    print("Done.")


if __name__ == "__main__":
    main()
