"""Kernel command line handling and uevent filtering for an initramfs init."""

from __future__ import annotations

import time

__all__ = [
    "parse_cmdline",
    "skip_device_mapper",
    "wants_block_event",
    "poll_file",
    "root_fs_type",
    "luks_name",
]

# libdevmapper.h
_DM_UDEV_FLAGS_SHIFT = 16
_DM_UDEV_DISABLE_DISK_RULES_FLAG = 0x0004


def parse_cmdline(text: str) -> dict[str, str]:
    """Parse a kernel command line into a mapping of parameter to value."""
    params: dict[str, str] = {}
    for part in text.strip().split(" "):
        # Split on the first "="; values may contain more (e.g. rd.luks.name).
        key, _, value = part.partition("=")
        params[key] = value
    return params


def _parse_uint32(text: str) -> int:
    """Parse an unsigned integer with base prefixes (0x, 0o, 0b, leading 0)."""
    if not text or text[0] in "+-" or text != text.strip():
        raise ValueError(f"invalid unsigned integer {text!r}")
    lowered = text.lower()
    if len(text) > 1 and text[0] == "0" and lowered[1] not in "xob":
        value = int(text[1:].lstrip("_") or "0", 8) if text[1] != "_" or len(text) > 2 else 0
    else:
        value = int(text, 0)
    if value > 0xFFFFFFFF:
        raise ValueError(f"value out of range: {text!r}")
    return value


def skip_device_mapper(cookie: str) -> bool:
    """Return whether a device mapper cookie asks to skip disk rules."""
    if not cookie:
        return False  # device not set up by libdevmapper
    try:
        value = _parse_uint32(cookie)
    except ValueError:
        return False  # invalid cookie
    flags = value >> _DM_UDEV_FLAGS_SHIFT
    return flags & _DM_UDEV_DISABLE_DISK_RULES_FLAG > 0


def wants_block_event(devname: str, action: str, subsystem: str) -> bool:
    """Return whether a uevent announces a block device ready for probing.

    Device mapper devices are only ready with the "change" event; all others
    with "add".
    """
    is_dm = devname.startswith("dm-")
    ready = (not is_dm and action == "add") or (is_dm and action == "change")
    return ready and subsystem == "block"


def poll_file(path: str, timeout: float = 5.0) -> str:
    """Read path, retrying until it appears or timeout seconds pass."""
    start = time.monotonic()
    while time.monotonic() - start < timeout:
        try:
            with open(path, encoding="utf-8") as f:
                return f.read()
        except FileNotFoundError:
            time.sleep(0.001)
    raise TimeoutError(f"{path} did not appear within {timeout}s")


def root_fs_type(cmdline: dict[str, str]) -> str:
    """Return the root file system type, defaulting to ext4."""
    return cmdline.get("rootfstype", "") or "ext4"


def luks_name(cmdline: dict[str, str]) -> str:
    """Return the mapper name from rd.luks.name=<uuid>=<name>."""
    parts = cmdline.get("rd.luks.name", "").split("=")
    if len(parts) != 2:
        raise ValueError(
            "rd.luks.name kernel parameter malformed "
            "(expected rd.luks.name=<uuid>=<name>)"
        )
    return parts[1]