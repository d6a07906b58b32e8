"""Small file helpers: copying files and reporting a listening address."""

from __future__ import annotations

import os
import shutil

__all__ = ["copy_file", "write_addr"]


def copy_file(src: str, dest: str) -> None:
    """Copy the contents of src to dest, creating dest's parent directories."""
    parent = os.path.dirname(dest)
    if parent:
        os.makedirs(parent, mode=0o755, exist_ok=True)
    shutil.copyfile(src, dest)


def write_addr(fd: int, addr: str) -> None:
    """Write addr to file descriptor fd and close it; fd -1 means do nothing."""
    if fd == -1:
        return
    with os.fdopen(fd, "wb") as f:
        f.write(addr.encode())