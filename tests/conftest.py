from __future__ import annotations

from collections.abc import Sequence

import pytest
from mrcrowbar import utils

from baesenx.container import V3_HEADER
from baesenx.tables import FunctionEntry, encode_function_table, encode_string_table

HEADER_SIZE = 0xA8


def build_script(
    opcodes: bytes = b"",
    functions: Sequence[FunctionEntry] = (),
    variables: Sequence[Sequence[str]] = ((), (), (), ()),
    characters: Sequence[str] = (),
    messages: Sequence[str] = (),
    magic: bytes = b"BSXScript 3.0",
) -> bytes:
    data = bytearray(magic.ljust(16, b"\x00"))
    data.extend(b"\x00" * (HEADER_SIZE - len(data)))

    def put(offset_field: int, size_field: int, section: bytes) -> None:
        data[offset_field : offset_field + 4] = utils.to_uint32_le(len(data))
        data[size_field : size_field + 4] = utils.to_uint32_le(len(section))
        data.extend(section)

    lists = [encode_function_table(functions)]
    lists.extend(encode_string_table(v) for v in variables)
    lists.append(encode_string_table(characters))
    lists.append(encode_string_table(messages))

    put(V3_HEADER[0].content_offset_field, V3_HEADER[0].content_size_field, opcodes)
    for entry, (metadata, content) in zip(V3_HEADER[1:], lists):
        put(entry.metadata_offset_field, entry.metadata_size_field, metadata)
        put(entry.content_offset_field, entry.content_size_field, content)
    return bytes(data)


@pytest.fixture
def make_script():
    return build_script
