import io
import struct

import pytest

from distrikit.blkid import NotFoundError, blkid, probe_luks, probe_lvm

LUKS_UUID = "0d7b09a9-8928-4451-8037-21f7a329fed8"
EXT4_UUID = "1fa04de7-30a9-4183-93e9-1b0061567121"


def luks_image() -> bytes:
    header = bytearray(208)
    header[0:6] = b"LUKS\xba\xbe"
    struct.pack_into("<H", header, 6, 1)
    header[8:8 + 11] = b"aes\x00"[:4].ljust(11, b"\x00")
    uuid = LUKS_UUID.encode()
    header[168:168 + len(uuid)] = uuid
    return bytes(header) + bytes(4096)


def ext4_image() -> bytes:
    image = bytearray(0x400 + 1024)
    sb = 0x400
    struct.pack_into("<H", image, sb + 56, 0xEF53)
    raw = bytes.fromhex(EXT4_UUID.replace("-", ""))
    image[sb + 104:sb + 120] = raw
    return bytes(image)


def test_blkid_luks():
    assert blkid(io.BytesIO(luks_image())) == LUKS_UUID


def test_blkid_ext4():
    assert blkid(io.BytesIO(ext4_image())) == EXT4_UUID


def test_probe_luks_not_luks():
    with pytest.raises(NotFoundError):
        probe_luks(io.BytesIO(ext4_image()))


def test_probe_luks_short_read():
    with pytest.raises(EOFError):
        probe_luks(io.BytesIO(b"LUKS"))


def test_blkid_short_device():
    with pytest.raises(EOFError):
        blkid(io.BytesIO(b"abc"))


def test_blkid_no_superblock():
    with pytest.raises(ValueError, match="no ext4 superblock found"):
        blkid(io.BytesIO(bytes(4096)))


@pytest.mark.parametrize("sector", [0, 1, 2, 3])
def test_probe_lvm_found(sector):
    image = bytearray(4096)
    image[sector * 512:sector * 512 + 8] = b"LABELONE"
    assert probe_lvm(io.BytesIO(bytes(image))) is None


def test_probe_lvm_beyond_fourth_sector():
    image = bytearray(4096)
    image[4 * 512:4 * 512 + 8] = b"LABELONE"
    with pytest.raises(NotFoundError):
        probe_lvm(io.BytesIO(bytes(image)))


def test_probe_lvm_not_found():
    with pytest.raises(NotFoundError):
        probe_lvm(io.BytesIO(ext4_image()))


def test_probe_lvm_empty():
    with pytest.raises(EOFError):
        probe_lvm(io.BytesIO(b""))