"""Compare two Linux kernel configurations."""

from __future__ import annotations

import argparse
import logging
import sys

__all__ = ["parse_config", "all_options", "diff_configs", "main"]

log = logging.getLogger(__name__)


def parse_config(text: str) -> dict[str, str]:
    """Return the options set to y or m in a kernel config."""
    config: dict[str, str] = {}
    for line in text.strip().split("\n"):
        if line.endswith("=y"):
            config[line[: -len("=y")]] = "y"
        elif line.endswith("=m"):
            config[line[: -len("=m")]] = "m"
    return config


def all_options(distri: dict[str, str], other: dict[str, str]) -> list[str]:
    """Return the sorted union of option names of both configs."""
    return sorted(distri.keys() | other.keys())


def diff_configs(distri: dict[str, str], other: dict[str, str]) -> list[str]:
    """Return the report lines describing how the configs differ."""
    lines: list[str] = []
    for opt in all_options(distri, other):
        mine = distri.get(opt, "")
        theirs = other.get(opt, "")
        if mine and not theirs:
            lines.append(f"only in distri: {opt}={mine}")
        elif not mine and theirs:
            lines.append(f"only in other: {opt}={theirs}")
        elif mine == theirs:
            continue
        elif mine == "y" and theirs == "m":
            # distri is more strict
            log.info("FYI: distri y/other m: %s", opt)
        else:
            lines.append(f"diff: {opt}={mine} (distri) vs. {theirs} (other)")
    return lines


def main(argv=None) -> int:
    """Print the differences between two kernel config files."""
    parser = argparse.ArgumentParser(prog="kernel-cfg-diff")
    parser.add_argument("-config_distri", "--config_distri", default="",
                        help="Path to the distri kernel config")
    parser.add_argument("-config_other", "--config_other", default="",
                        help="Path to the other kernel config")
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    try:
        with open(args.config_distri, encoding="utf-8") as f:
            distri = parse_config(f.read())
        with open(args.config_other, encoding="utf-8") as f:
            other = parse_config(f.read())
    except OSError as exc:
        print(f"kernel-cfg-diff: {exc}", file=sys.stderr)
        return 1
    for line in diff_configs(distri, other):
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())