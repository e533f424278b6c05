from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from io import BytesIO, IOBase

from mrcrowbar import utils

from .errors import (
    InvalidCount,
    InvalidMessageSubtype,
    InvalidOpcode,
    InvalidSelector,
    InvalidSymbolIndex,
    SelectorOutOfRange,
    TruncatedStream,
)
from .tables import FunctionEntry

# instruction offsets are printed relative to the opcode section plus this base
TYPE_OFFSET_BASE = 256

# selectors name one of the 7 tables:
# opcodes, functions, variables 1-4, characters, messages
SELECTOR_MIN = 256
SELECTOR_MAX = 262
COUNTER_SELECTOR_MIN = 258


BSX_OPERATORS: dict[int, str] = {
    0x0C: ">",
    0x0D: "<",
    0x0E: ">=",
    0x0F: "<=",
    0x10: "!=",
    0x11: "==",
    0x13: "|",
    0x14: "&",
    0x15: "+",
    0x16: "-",
    0x17: "*",
    0x18: "/",
    0x19: "%",
    0x3A: "^",
    0x3B: "<<",
    0x3C: ">>",
}

# variable lists by position
ASSET_VARIABLES = 0
OPERAND_VARIABLES = 2


@dataclass(frozen=True)
class SymbolTables:
    functions: tuple[FunctionEntry, ...] = ()
    variables: tuple[tuple[str, ...], ...] = ((), (), (), ())
    characters: tuple[str, ...] = ()
    messages: tuple[str, ...] = ()


@dataclass(frozen=True)
class Instruction:
    opcode: int
    offset: int
    args: tuple[str, ...] = ()
    raw: bytes = field(default=b"", compare=False, repr=False)

    @property
    def type(self) -> str:
        return f"{self.opcode:02X} {self.offset + TYPE_OFFSET_BASE}"

    @classmethod
    def from_type(cls, type_tag: str, args: Sequence[str] = ()) -> Instruction:
        opcode, offset = type_tag.split(" ")
        return cls(int(opcode, 16), int(offset) - TYPE_OFFSET_BASE, tuple(args))

    def __str__(self):
        return f"{self.type}({', '.join(repr(a) for a in self.args)})"


def get_bytes(stream: IOBase, size: int, start: int) -> bytes:
    pos = stream.tell()
    data = stream.read(size)
    if len(data) != size:
        raise TruncatedStream(start, pos - start + size, pos - start + len(data))
    return data


def get_byte(stream: IOBase, start: int) -> int:
    return utils.from_uint8(get_bytes(stream, 1, start))


def get_word(stream: IOBase, start: int) -> int:
    return utils.from_uint16_le(get_bytes(stream, 2, start))


def get_int(stream: IOBase, start: int) -> int:
    return utils.from_int32_le(get_bytes(stream, 4, start))


def get_uint(stream: IOBase, start: int) -> int:
    return utils.from_uint32_le(get_bytes(stream, 4, start))


def get_selector(
    stream: IOBase, start: int, low: int = SELECTOR_MIN, high: int = SELECTOR_MAX
) -> int:
    selector = get_word(stream, start)
    check_selector(selector, start, low, high)
    return selector


def check_selector(
    selector: int, start: int, low: int = SELECTOR_MIN, high: int = SELECTOR_MAX
) -> None:
    if selector < low or selector > high:
        raise SelectorOutOfRange(selector, low, high, start)


def lookup(table: Sequence[str], index: int, name: str, start: int) -> str:
    if index < 0 or index >= len(table):
        raise InvalidSymbolIndex(name, index, len(table), start)
    return table[index]


def lookup_function(symbols: SymbolTables, index: int, start: int) -> str:
    if index < 0 or index >= len(symbols.functions):
        raise InvalidSymbolIndex("function", index, len(symbols.functions), start)
    return symbols.functions[index].name


def lookup_variable(symbols: SymbolTables, table: int, index: int, start: int) -> str:
    return lookup(symbols.variables[table], index, f"variable {table + 1}", start)


def parse_binary_op(
    stream: IOBase, opcode: int, symbols: SymbolTables, start: int
) -> list[str]:
    get_bytes(stream, 1, start)
    dest = get_int(stream, start)
    source_a = get_selector(stream, start)
    # the selector is not used to pick the table, operands always come from the 3rd list
    a = lookup_variable(symbols, OPERAND_VARIABLES, get_int(stream, start), start)
    source_b = get_selector(stream, start)
    b = get_int(stream, start)
    return [
        str(dest),
        str(source_a),
        a,
        BSX_OPERATORS[opcode],
        str(source_b),
        str(b),
    ]


def parse_load(stream: IOBase, symbols: SymbolTables, start: int) -> list[str]:
    get_bytes(stream, 5, start)
    selector = get_word(stream, start)
    value = get_uint(stream, start)
    param = get_word(stream, start)
    index = get_int(stream, start)

    match selector:
        case 258 | 260 | 261 | 262:
            # EV image or sound effect
            if index < 0:
                asset = str(index)
            else:
                asset = lookup_variable(symbols, ASSET_VARIABLES, index, start)
            args = [str(selector), str(value), str(param), asset]
        case 259:
            args = [
                "Modify variable",
                lookup_variable(symbols, OPERAND_VARIABLES, value, start),
                str(param),
                str(index),
            ]
        case _:
            raise InvalidSelector(selector, start)

    check_selector(param, start)
    return args


def parse_message(stream: IOBase, symbols: SymbolTables, start: int) -> list[str]:
    subtype = get_byte(stream, start)
    match subtype:
        case 0:
            # narration
            message = get_int(stream, start)
            return [lookup(symbols.messages, message, "message", start)]
        case 1:
            message = get_int(stream, start)
            character = get_int(stream, start)
            return [
                lookup(symbols.messages, message, "message", start),
                lookup(symbols.characters, character, "character", start),
            ]
        case 2 | 3:
            # voiced line, followed by the sound files to play
            message = get_int(stream, start)
            character = get_int(stream, start)
            count = get_int(stream, start)
            if count < 0:
                raise InvalidCount(count, start)
            args = [
                lookup(symbols.messages, message, "message", start),
                lookup(symbols.characters, character, "character", start),
                str(count),
            ]
            for _ in range(count):
                sound = get_int(stream, start)
                args.append(lookup_variable(symbols, ASSET_VARIABLES, sound, start))
            return args
        case _:
            raise InvalidMessageSubtype(subtype, start)


def get_bsx_instr(stream: IOBase, symbols: SymbolTables) -> Instruction | None:
    start = stream.tell()
    data = stream.read(1)
    if not data:
        return None
    opcode = utils.from_uint8(data)
    args: list[str] = []

    match opcode:
        case (
            0x00 | 0x01 | 0x02 | 0x0A | 0x0B
            | 0x1E | 0x1F | 0x20 | 0x21 | 0x22 | 0x23 | 0x24 | 0x25 | 0x26
            | 0x27 | 0x28 | 0x29 | 0x2A | 0x2B | 0x2C | 0x2D | 0x2E | 0x2F
            | 0x30 | 0x31 | 0x32 | 0x35 | 0x37 | 0x39 | 0x3F | 0x40 | 0x41
        ):
            pass

        case 0x03 | 0x06 | 0x07 | 0x08 | 0x09 | 0x38:
            # jumps, calls and the label markers they point at
            args.append(lookup_function(symbols, get_int(stream, start), start))

        case 0x04 | 0x05:
            args.append(str(get_int(stream, start)))

        case 0x0C | 0x0D | 0x0E | 0x0F | 0x10 | 0x11:
            args = parse_binary_op(stream, opcode, symbols, start)

        case 0x13 | 0x14 | 0x15 | 0x16 | 0x17 | 0x18 | 0x19 | 0x3A | 0x3B | 0x3C:
            args = parse_binary_op(stream, opcode, symbols, start)

        case 0x12:
            args = parse_load(stream, symbols, start)

        case 0x1A:
            get_bytes(stream, 5, start)
            args.append(str(get_selector(stream, start)))
            args.append(str(get_uint(stream, start)))

        case 0x1B | 0x1C:
            # increment / decrement
            get_bytes(stream, 5, start)
            args.append(str(get_selector(stream, start, low=COUNTER_SELECTOR_MIN)))
            args.append(str(get_uint(stream, start)))

        case 0x1D:
            args = parse_message(stream, symbols, start)

        case 0x33:
            # branch option: target label id, option number, option text
            args.append(str(get_int(stream, start)))
            args.append(str(get_int(stream, start)))
            message = get_int(stream, start)
            args.append(lookup(symbols.messages, message, "message", start))

        case 0x34:
            # end of options, padded with 0xFF
            get_bytes(stream, 4, start)

        case 0x36:
            function = get_int(stream, start)
            if function < 0:
                args.append(str(function))
            else:
                args.append(lookup_function(symbols, function, start))

        case 0x3D:
            args.append(str(get_int(stream, start)))
            args.append(str(get_selector(stream, start)))
            args.append(str(get_int(stream, start)))
            get_bytes(stream, 1, start)

        case 0x3E:
            count = get_int(stream, start)
            if count < 0:
                raise InvalidCount(count, start)
            args.append(str(count))
            # FIXME: payload meaning unknown, only the repetition number is kept
            get_bytes(stream, 4 * count, start)
            args.extend(str(i) for i in range(count))

        case _:
            raise InvalidOpcode(opcode, start)

    end = stream.tell()
    stream.seek(start)
    raw = stream.read(end - start)
    return Instruction(opcode, start, tuple(args), raw)


def bsx_tokenizer(
    data: bytes,
    symbols: SymbolTables,
    print_data: bool = False,
    print_offset: int = 0,
    print_prefix: str = "",
) -> list[Instruction]:
    stream = BytesIO(data)
    result = []
    while True:
        instr = get_bsx_instr(stream, symbols)
        if instr is None:
            break
        result.append(instr)
        if print_data:
            print(f"{print_prefix}[{instr.offset + print_offset:06x}] {str(instr)}")
    return result
