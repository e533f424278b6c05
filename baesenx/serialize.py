from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any

from .disasm import Instruction
from .errors import InvalidInstructionText

# key names match the JSON written by the original Windows tool
TYPE_KEY = "Type"
ARGUMENTS_KEY = "Arguments"


def instr_to_dict(instr: Instruction) -> dict[str, Any]:
    return {TYPE_KEY: instr.type, ARGUMENTS_KEY: list(instr.args)}


def instr_from_dict(item: Any) -> Instruction:
    if not isinstance(item, dict) or not isinstance(item.get(TYPE_KEY), str):
        raise InvalidInstructionText(f"Expected an instruction object, got {item!r}")
    args = item.get(ARGUMENTS_KEY, [])
    if not isinstance(args, list) or not all(isinstance(a, str) for a in args):
        raise InvalidInstructionText(f"Arguments must be a list of strings: {args!r}")
    try:
        return Instruction.from_type(item[TYPE_KEY], args)
    except ValueError:
        raise InvalidInstructionText(
            f"Malformed instruction type {item[TYPE_KEY]!r}"
        ) from None


def instr_list_to_json(instrs: Iterable[Instruction], indent: int | None = 2) -> str:
    return json.dumps(
        [instr_to_dict(instr) for instr in instrs], indent=indent, ensure_ascii=False
    )


def instr_list_from_json(text: str) -> list[Instruction]:
    try:
        items = json.loads(text)
    except json.JSONDecodeError as e:
        raise InvalidInstructionText(f"Not valid JSON: {e}") from e
    if not isinstance(items, list):
        raise InvalidInstructionText("Expected a list of instructions")
    return [instr_from_dict(item) for item in items]
