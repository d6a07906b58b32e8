"""Package store maintenance: file listings and resetting to a listing."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from datetime import datetime

__all__ = [
    "read_listing",
    "stale_entries",
    "reset_store",
    "file_listing_path",
    "persist_file_listing",
    "main",
]

log = logging.getLogger(__name__)

RESET_HELP = """distri reset [-flags] <path/to/files.before.txt>

Reset your package store to the contents specified by the provided
files.before.txt, which distri updates writes.

Example:
  % distri reset /var/log/distri/update-1561126278/files.before.txt
"""


def read_listing(path: str) -> list[str]:
    """Read a file listing written by persist_file_listing."""
    with open(path, encoding="utf-8") as f:
        return f.read().strip().split("\n")


def stale_entries(store_dir: str, keep) -> list[str]:
    """Return the sorted names in store_dir which are not in keep."""
    keep = set(keep)
    return [name for name in sorted(os.listdir(store_dir)) if name not in keep]


def reset_store(before: str, root: str = "/", write: bool = False) -> list[str]:
    """Delete package store entries not listed in before.

    Without write, only reports what would be deleted. Returns the names of
    the stale entries.
    """
    keep = read_listing(before)
    roimg = os.path.join(root, "roimg")
    log.info("resetting package store %s to contents %s", roimg, before)
    stale = stale_entries(roimg, keep)
    for name in stale:
        log.info("deleting %s", name)
        if write:
            os.remove(os.path.join(roimg, name))
    return stale


def file_listing_path(root: str, timestamp, basename: str) -> str:
    """Return the path of an update log file listing for timestamp."""
    if isinstance(timestamp, datetime):
        seconds = int(timestamp.timestamp())
    else:
        seconds = int(timestamp)
    return os.path.join(root, "var", "log", "distri", f"update-{seconds}", basename)


def persist_file_listing(dest: str, directory: str) -> None:
    """Write the names of the entries in directory to dest, one per line."""
    parent = os.path.dirname(dest)
    if parent:
        os.makedirs(parent, mode=0o755, exist_ok=True)
    try:
        names = os.listdir(directory)
    except FileNotFoundError:
        names = None
    with open(dest, "w", encoding="utf-8") as f:
        if names is not None:
            f.write("\n".join(names) + "\n")


def _usage_parser(name: str, help_text: str) -> argparse.ArgumentParser:
    return argparse.ArgumentParser(
        prog=f"distri {name}",
        description=help_text,
        epilog=None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )


def main(argv=None) -> int:
    """Run the reset command."""
    parser = _usage_parser("reset", RESET_HELP)
    parser.add_argument(
        "-root", "--root", default="/",
        help="root directory for optionally installing into a chroot",
    )
    parser.add_argument(
        "-w", dest="write", action="store_true",
        help="write changes (default is dry run)",
    )
    parser.add_argument("before", help="path to files.before.txt")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    try:
        reset_store(args.before, args.root, args.write)
    except OSError as exc:
        print(f"distri reset: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())