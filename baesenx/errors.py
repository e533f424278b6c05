from __future__ import annotations


class BSXError(ValueError):
    pass


class UnsupportedFormat(BSXError):
    def __init__(self, magic: bytes):
        self.magic = magic
        super().__init__(f"No valid BSXScript version detected in header {magic!r}")


class TruncatedContainer(BSXError):
    def __init__(self, offset: int, length: int, size: int):
        self.offset = offset
        self.length = length
        self.size = size
        super().__init__(
            f"Read of {length} bytes at 0x{offset:x} runs past end of container ({size} bytes)"
        )


class MalformedStringTable(BSXError):
    def __init__(self, index: int, offset: int, length: int):
        self.index = index
        self.offset = offset
        self.length = length
        super().__init__(
            f"Name {index} at 0x{offset:x} spans {length} bytes, "
            "entries must be in order and end with a double-byte null"
        )


class TruncatedSave(BSXError):
    def __init__(self, size: int):
        self.size = size
        super().__init__(f"Save data is {size} bytes, expected at least 32")


class InvalidInstructionText(BSXError):
    pass


# errors raised while walking the opcode stream; offset is relative to the start of the opcode section


class BSXDecodeError(BSXError):
    def __init__(self, message: str, offset: int):
        self.offset = offset
        self.file_offset: int | None = None
        super().__init__(f"{message} at opcode offset {offset}")

    def __str__(self):
        message = super().__str__()
        if self.file_offset is not None:
            message += f" (file offset 0x{self.file_offset:x})"
        return message


class TruncatedStream(BSXDecodeError):
    def __init__(self, offset: int, needed: int, available: int):
        self.needed = needed
        self.available = available
        super().__init__(
            f"Instruction needs {needed} bytes but only {available} remain", offset
        )


class InvalidOpcode(BSXDecodeError):
    def __init__(self, opcode: int, offset: int):
        self.opcode = opcode
        super().__init__(f"Invalid opcode 0x{opcode:02X}", offset)


class SelectorOutOfRange(BSXDecodeError):
    def __init__(self, selector: int, low: int, high: int, offset: int):
        self.selector = selector
        self.low = low
        self.high = high
        super().__init__(
            f"Selector {selector} outside of range [{low}, {high}]", offset
        )


class InvalidSelector(BSXDecodeError):
    def __init__(self, selector: int, offset: int):
        self.selector = selector
        super().__init__(f"Unknown load selector {selector}", offset)


class InvalidMessageSubtype(BSXDecodeError):
    def __init__(self, subtype: int, offset: int):
        self.subtype = subtype
        super().__init__(f"Unknown message type {subtype}", offset)


class InvalidSymbolIndex(BSXDecodeError):
    def __init__(self, table: str, index: int, size: int, offset: int):
        self.table = table
        self.index = index
        self.size = size
        super().__init__(
            f"Index {index} out of range for {table} table ({size} entries)", offset
        )


class InvalidCount(BSXDecodeError):
    def __init__(self, count: int, offset: int):
        self.count = count
        super().__init__(f"Negative element count {count}", offset)
