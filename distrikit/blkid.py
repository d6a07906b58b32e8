"""Identify block devices: LUKS headers, LVM physical volumes and ext4 file systems."""

from __future__ import annotations

import io
import struct
from typing import BinaryIO

__all__ = ["NotFoundError", "probe_luks", "probe_lvm", "blkid"]

_LUKS_MAGIC = b"LUKS\xba\xbe"
# magic, version, cipher name, cipher mode, hash spec, payload offset,
# key bytes, mk digest, mk digest salt, mk digest iterations, uuid
_LUKS_HEADER = struct.Struct("<6sH32s32s32sII20s32sI40s")

_LVM_MAGIC = b"LABELONE"
_SECTOR_SIZE = 512
_LVM_LABEL_SECTORS = 4

_EXT_SUPERBLOCK_OFFSET = 0x400
_EXT_MAGIC = 0xEF53
# Only the leading part of the superblock is needed for probing.
_EXT_SUPERBLOCK_SIZE = 120
_EXT_MAGIC_OFFSET = 56
_EXT_UUID_OFFSET = 104


class NotFoundError(LookupError):
    """The probed signature is not present on the device."""


def _read_exact(f: BinaryIO, size: int) -> bytes:
    data = f.read(size)
    if len(data) != size:
        raise EOFError(f"unexpected EOF: read {len(data)} of {size} bytes")
    return data


def probe_luks(f: BinaryIO) -> str:
    """Return the UUID stored in a LUKS header at the start of f."""
    f.seek(0, io.SEEK_SET)
    header = _LUKS_HEADER.unpack(_read_exact(f, _LUKS_HEADER.size))
    magic, uuid = header[0], header[-1]
    if magic != _LUKS_MAGIC:
        raise NotFoundError("no LUKS header found")
    return uuid.split(b"\x00", 1)[0].decode("ascii", errors="replace")


def probe_lvm(f: BinaryIO) -> None:
    """Raise NotFoundError unless f carries an LVM physical volume label."""
    # The label can be stored in any of the first 4 sectors.
    for sector in range(_LVM_LABEL_SECTORS):
        f.seek(sector * _SECTOR_SIZE, io.SEEK_SET)
        data = f.read(len(_LVM_MAGIC))
        if not data:
            raise EOFError("unexpected EOF while probing for LVM label")
        if data == _LVM_MAGIC:
            return
    raise NotFoundError("no LVM label found")


def _format_uuid(raw: bytes) -> str:
    h = raw.hex()
    return f"{h[0:8]}-{h[8:12]}-{h[12:16]}-{h[16:20]}-{h[20:32]}"


def blkid(f: BinaryIO) -> str:
    """Return the LUKS or ext4 UUID of the block device f."""
    try:
        return probe_luks(f)
    except NotFoundError:
        pass

    f.seek(_EXT_SUPERBLOCK_OFFSET, io.SEEK_SET)
    sb = _read_exact(f, _EXT_SUPERBLOCK_SIZE)
    (magic,) = struct.unpack_from("<H", sb, _EXT_MAGIC_OFFSET)
    if magic != _EXT_MAGIC:
        raise ValueError("no ext4 superblock found")
    return _format_uuid(sb[_EXT_UUID_OFFSET:_EXT_UUID_OFFSET + 16])