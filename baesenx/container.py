from __future__ import annotations

import enum
from dataclasses import dataclass

from mrcrowbar import utils

from .disasm import Instruction, SymbolTables, bsx_tokenizer
from .errors import BSXDecodeError, TruncatedContainer, UnsupportedFormat
from .tables import FunctionEntry, decode_function_table, decode_string_table

MAGIC_SIZE = 16


class BSXVersion(enum.Enum):
    # the signature is 13 bytes, the game reserves 16 for it
    V3_0 = b"BSXScript 3.0\x00\x00\x00"
    V3_1 = b"BSXScript 3.1\x00\x00\x00"
    V3_2 = b"BSXScript 3.2\x00\x00\x00"
    V3_3 = b"BSXScript 3.3\x00\x00\x00"

    def __str__(self):
        return self.value[:13].decode("ascii")


class ListKind(enum.Enum):
    CONTENT_ONLY = 0
    CONTENT_WITH_METADATA = 1


class ListID(enum.IntEnum):
    OPCODES = 0
    FUNCTIONS = 1
    VARIABLES_1 = 2
    VARIABLES_2 = 3
    VARIABLES_3 = 4
    VARIABLES_4 = 5
    CHARACTERS = 6
    MESSAGES = 7


VARIABLE_LISTS = (
    ListID.VARIABLES_1,
    ListID.VARIABLES_2,
    ListID.VARIABLES_3,
    ListID.VARIABLES_4,
)


@dataclass(frozen=True)
class HeaderEntry:
    """Where one list is described in the header.

    The first four fields are positions inside the header of 32-bit words
    holding the offset and size of the list's metadata and content. The shift
    is hardcoded in the game executable and turns the metadata size into the
    number of elements.
    """

    metadata_offset_field: int
    metadata_size_field: int
    content_offset_field: int
    content_size_field: int
    shift: int

    @property
    def kind(self) -> ListKind:
        if self.metadata_size_field == 0:
            return ListKind.CONTENT_ONLY
        return ListKind.CONTENT_WITH_METADATA


@dataclass(frozen=True)
class RawList:
    metadata: bytes
    content: bytes


V3_HEADER: tuple[HeaderEntry, ...] = (
    HeaderEntry(0x00, 0x00, 0x2C, 0x30, 0),  # opcodes
    HeaderEntry(0x38, 0x3C, 0x40, 0x44, 3),  # functions
    HeaderEntry(0x48, 0x4C, 0x50, 0x54, 2),  # variables 1
    HeaderEntry(0x58, 0x5C, 0x60, 0x64, 2),  # variables 2
    HeaderEntry(0x68, 0x6C, 0x70, 0x74, 2),  # variables 3
    HeaderEntry(0x78, 0x7C, 0x80, 0x84, 2),  # variables 4
    HeaderEntry(0x88, 0x8C, 0x90, 0x94, 2),  # characters
    HeaderEntry(0x98, 0x9C, 0xA0, 0xA4, 2),  # messages
)

HEADER_LAYOUTS: dict[BSXVersion, tuple[HeaderEntry, ...]] = {
    BSXVersion.V3_0: V3_HEADER,
    BSXVersion.V3_1: V3_HEADER,
    BSXVersion.V3_2: V3_HEADER,
    BSXVersion.V3_3: V3_HEADER,
}


def get_version(magic: bytes) -> BSXVersion:
    try:
        return BSXVersion(bytes(magic))
    except ValueError:
        raise UnsupportedFormat(bytes(magic)) from None


def read_header_word(data: bytes, position: int) -> int:
    if position + 4 > len(data):
        raise TruncatedContainer(position, 4, len(data))
    return utils.from_uint32_le(data[position : position + 4])


def read_section(data: bytes, offset_field: int, size_field: int) -> bytes:
    offset = read_header_word(data, offset_field)
    size = read_header_word(data, size_field)
    if offset + size > len(data):
        raise TruncatedContainer(offset, size, len(data))
    return data[offset : offset + size]


def extract_list(entry: HeaderEntry, data: bytes) -> RawList:
    content = read_section(data, entry.content_offset_field, entry.content_size_field)
    if entry.kind == ListKind.CONTENT_ONLY:
        return RawList(b"", content)
    metadata = read_section(
        data, entry.metadata_offset_field, entry.metadata_size_field
    )
    return RawList(metadata, content)


@dataclass(frozen=True)
class DecodedScript:
    version: BSXVersion
    symbols: SymbolTables
    instructions: tuple[Instruction, ...]

    @property
    def functions(self) -> tuple[FunctionEntry, ...]:
        return self.symbols.functions

    @property
    def variables(self) -> tuple[tuple[str, ...], ...]:
        return self.symbols.variables

    @property
    def characters(self) -> tuple[str, ...]:
        return self.symbols.characters

    @property
    def messages(self) -> tuple[str, ...]:
        return self.symbols.messages


class BSXScript:
    """A compiled script file (bsxx.dat).

    Only the version is worked out on construction; the symbol tables and
    instructions are produced fresh by every call to decompile().
    """

    def __init__(self, data: bytes):
        self._data = bytes(data)
        self._version = get_version(self._data[:MAGIC_SIZE])
        self._header = HEADER_LAYOUTS[self._version]

    @property
    def data(self) -> bytes:
        return self._data

    @property
    def version(self) -> BSXVersion:
        return self._version

    @property
    def header(self) -> tuple[HeaderEntry, ...]:
        return self._header

    @property
    def opcodes(self) -> bytes:
        return self.get_raw_list(ListID.OPCODES).content

    @property
    def opcodes_offset(self) -> int:
        entry = self._header[ListID.OPCODES]
        return read_header_word(self._data, entry.content_offset_field)

    def get_raw_list(self, index: int) -> RawList:
        return extract_list(self._header[index], self._data)

    def get_symbols(self) -> SymbolTables:
        entry = self._header[ListID.FUNCTIONS]
        raw = self.get_raw_list(ListID.FUNCTIONS)
        functions = decode_function_table(raw.metadata, raw.content, entry.shift)

        def strings(index: ListID) -> tuple[str, ...]:
            raw = self.get_raw_list(index)
            return decode_string_table(
                raw.metadata, raw.content, self._header[index].shift
            )

        return SymbolTables(
            functions=functions,
            variables=tuple(strings(i) for i in VARIABLE_LISTS),
            characters=strings(ListID.CHARACTERS),
            messages=strings(ListID.MESSAGES),
        )

    def decompile(
        self, print_data: bool = False, print_prefix: str = ""
    ) -> DecodedScript:
        symbols = self.get_symbols()
        base = self.opcodes_offset
        try:
            instructions = bsx_tokenizer(
                self.opcodes,
                symbols,
                print_data=print_data,
                print_offset=base,
                print_prefix=print_prefix,
            )
        except BSXDecodeError as e:
            e.file_offset = e.offset + base
            raise
        return DecodedScript(self._version, symbols, tuple(instructions))
