import pytest

from distrikit.cmdline import (
    luks_name,
    parse_cmdline,
    poll_file,
    root_fs_type,
    skip_device_mapper,
    wants_block_event,
)


def test_skip_device_mapper():
    assert skip_device_mapper("7208960") is True
    assert skip_device_mapper("6291456") is False


@pytest.mark.parametrize(
    "cookie, expected",
    [
        ("", False),
        ("garbage", False),
        ("-7208960", False),
        ("0x6E0000", True),
        ("033400000", True),
        ("0x1006E0000", False),
    ],
)
def test_skip_device_mapper_cookie_forms(cookie, expected):
    assert skip_device_mapper(cookie) is expected


def test_parse_cmdline():
    got = parse_cmdline("root=UUID=abc rd.luks.name=u=n quiet\n")
    assert got == {"root": "UUID=abc", "rd.luks.name": "u=n", "quiet": ""}


def test_root_fs_type_default():
    assert root_fs_type(parse_cmdline("quiet")) == "ext4"
    assert root_fs_type(parse_cmdline("rootfstype=btrfs")) == "btrfs"


def test_luks_name():
    assert luks_name(parse_cmdline("rd.luks.name=uuid=cryptroot")) == "cryptroot"


def test_luks_name_malformed():
    with pytest.raises(ValueError):
        luks_name(parse_cmdline("rd.luks.name=onlyname"))
    with pytest.raises(ValueError):
        luks_name({})


@pytest.mark.parametrize(
    "devname, action, subsystem, expected",
    [
        ("sda", "add", "block", True),
        ("sda", "change", "block", False),
        ("dm-0", "add", "block", False),
        ("dm-0", "change", "block", True),
        ("sda", "add", "usb", False),
    ],
)
def test_wants_block_event(devname, action, subsystem, expected):
    assert wants_block_event(devname, action, subsystem) is expected


def test_poll_file_existing(tmp_path):
    p = tmp_path / "name"
    p.write_text("cryptroot\n")
    assert poll_file(str(p)) == "cryptroot\n"


def test_poll_file_timeout(tmp_path):
    with pytest.raises(TimeoutError):
        poll_file(str(tmp_path / "missing"), timeout=0.05)