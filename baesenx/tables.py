from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from mrcrowbar import utils

from .errors import MalformedStringTable, TruncatedContainer


@dataclass(frozen=True)
class FunctionEntry:
    name: str
    # not confirmed, presumably the engine's jump target for this label
    address: int


def _name_offsets(metadata: bytes, count: int, stride: int, start: int) -> list[int]:
    # indices count UTF-16 code units, not bytes
    return [
        utils.from_uint32_le(metadata[i * stride + start : i * stride + start + 4]) * 2
        for i in range(count)
    ]


def _decode_names(content: bytes, offsets: list[int]) -> list[str]:
    result = []
    for i, offset in enumerate(offsets):
        if i == len(offsets) - 1:
            length = len(content) - offset
        else:
            length = offsets[i + 1] - offset
        if offset + max(length, 0) > len(content):
            raise TruncatedContainer(offset, length, len(content))
        if length < 2:
            raise MalformedStringTable(i, offset, length)
        # every name is followed by a double-byte null, bad code units become U+FFFD
        name = content[offset : offset + length - 2].decode("utf-16-le", errors="replace")
        result.append(name)
    return result


def decode_string_table(metadata: bytes, content: bytes, shift: int) -> tuple[str, ...]:
    """Recover the names of a variable, character or message list.

    The number of entries is given by the metadata size shifted right by a
    per-list amount hardcoded in the game executable. Each 4-byte metadata
    record holds the position of the entry inside the content array.
    """
    count = len(metadata) >> shift
    if count * 4 > len(metadata):
        raise TruncatedContainer(0, count * 4, len(metadata))
    return tuple(_decode_names(content, _name_offsets(metadata, count, 4, 0)))


def decode_function_table(
    metadata: bytes, content: bytes, shift: int
) -> tuple[FunctionEntry, ...]:
    """Recover the function/label list.

    Metadata records are 8 bytes: a 32-bit address followed by the name index.
    """
    count = len(metadata) >> shift
    if count * 8 > len(metadata):
        raise TruncatedContainer(0, count * 8, len(metadata))
    addresses = [utils.from_int32_le(metadata[i * 8 : i * 8 + 4]) for i in range(count)]
    names = _decode_names(content, _name_offsets(metadata, count, 8, 4))
    return tuple(
        FunctionEntry(name=name, address=address)
        for name, address in zip(names, addresses)
    )


def _encode_names(names: Sequence[str]) -> tuple[list[int], bytes]:
    indices = []
    content = bytearray()
    for name in names:
        indices.append(len(content) // 2)
        content.extend(name.encode("utf-16-le"))
        content.extend(b"\x00\x00")
    return indices, bytes(content)


def encode_string_table(names: Sequence[str]) -> tuple[bytes, bytes]:
    indices, content = _encode_names(names)
    metadata = b"".join(utils.to_uint32_le(index) for index in indices)
    return metadata, content


def encode_function_table(entries: Sequence[FunctionEntry]) -> tuple[bytes, bytes]:
    indices, content = _encode_names([entry.name for entry in entries])
    metadata = b"".join(
        utils.to_int32_le(entry.address) + utils.to_uint32_le(index)
        for entry, index in zip(entries, indices)
    )
    return metadata, content
