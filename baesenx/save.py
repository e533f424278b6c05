from __future__ import annotations

import enum
import hashlib

from mrcrowbar import models as mrc

from .errors import TruncatedSave

CHECKSUM_SIZE = 32


class ChecksumStatus(enum.Enum):
    UNCHANGED = "unchanged"
    UPDATED = "updated"


class SaveFile(mrc.Block):
    # lowercase hex MD5 of the opcode section of the matching bsxx.dat
    checksum = mrc.Bytes(0x00, length=CHECKSUM_SIZE)
    data = mrc.Bytes()


def load_save(data: bytes) -> SaveFile:
    if len(data) < CHECKSUM_SIZE:
        raise TruncatedSave(len(data))
    return SaveFile(data)


def get_checksum(opcodes: bytes) -> bytes:
    return hashlib.md5(opcodes).hexdigest().encode("ascii")


def set_updated_checksum(save: bytes, opcodes: bytes) -> tuple[bytes, ChecksumStatus]:
    """Point a save file at a modified script.

    The game deletes any save whose stored checksum doesn't match the MD5 of
    the opcode section of its compiled script. Returns the save data (a new
    copy if it had to change) and whether the checksum was rewritten.
    """
    model = load_save(save)
    checksum = get_checksum(opcodes)
    if model.checksum == checksum:
        return bytes(save), ChecksumStatus.UNCHANGED
    model.checksum = checksum
    return bytes(model.export_data()), ChecksumStatus.UPDATED
