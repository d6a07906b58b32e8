"""Semantic version validation and comparison ("v" prefixed, with shorthands)."""

from __future__ import annotations

import re
from dataclasses import dataclass

__all__ = ["is_valid", "compare", "maybe_v"]

_IDENT = re.compile(r"[0-9A-Za-z-]+")
_DIGITS = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class _Version:
    major: str
    minor: str
    patch: str
    prerelease: tuple[str, ...]


def _take_num(s: str) -> tuple[str, str] | None:
    m = _DIGITS.match(s)
    if m is None:
        return None
    num = m.group(0)
    if len(num) > 1 and num[0] == "0":
        return None
    return num, s[len(num):]


def _is_num(s: str) -> bool:
    return _DIGITS.fullmatch(s) is not None


def _is_bad_num(s: str) -> bool:
    return _is_num(s) and len(s) > 1 and s[0] == "0"


def _parse(v: str) -> _Version | None:
    if not v.startswith("v"):
        return None
    taken = _take_num(v[1:])
    if taken is None:
        return None
    major, rest = taken
    if not rest:
        return _Version(major, "0", "0", ())
    if rest[0] != ".":
        return None
    taken = _take_num(rest[1:])
    if taken is None:
        return None
    minor, rest = taken
    if not rest:
        return _Version(major, minor, "0", ())
    if rest[0] != ".":
        return None
    taken = _take_num(rest[1:])
    if taken is None:
        return None
    patch, rest = taken

    prerelease: tuple[str, ...] = ()
    if rest.startswith("-"):
        body, plus, build = rest[1:].partition("+")
        idents = body.split(".")
        if any(not _IDENT.fullmatch(i) or _is_bad_num(i) for i in idents):
            return None
        prerelease = tuple(idents)
        rest = plus + build
    if rest.startswith("+"):
        if any(not _IDENT.fullmatch(i) for i in rest[1:].split(".")):
            return None
        rest = ""
    if rest:
        return None
    return _Version(major, minor, patch, prerelease)


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _cmp_int(x: str, y: str) -> int:
    return _cmp((len(x), x), (len(y), y))


def _cmp_prerelease(x: tuple[str, ...], y: tuple[str, ...]) -> int:
    if x == y:
        return 0
    if not x:
        return 1
    if not y:
        return -1
    for a, b in zip(x, y):
        if a == b:
            continue
        a_num, b_num = _is_num(a), _is_num(b)
        if a_num != b_num:
            return -1 if a_num else 1
        return _cmp_int(a, b) if a_num else _cmp(a, b)
    return _cmp(len(x), len(y))


def is_valid(version: str) -> bool:
    """Return whether version is a valid semantic version."""
    return _parse(version) is not None


def compare(v: str, w: str) -> int:
    """Return -1, 0 or 1 as v is less than, equal to or greater than w.

    Invalid versions compare equal to each other and less than valid ones.
    Build metadata is ignored.
    """
    pv, pw = _parse(v), _parse(w)
    if pv is None and pw is None:
        return 0
    if pv is None:
        return -1
    if pw is None:
        return 1
    for a, b in ((pv.major, pw.major), (pv.minor, pw.minor), (pv.patch, pw.patch)):
        c = _cmp_int(a, b)
        if c:
            return c
    return _cmp_prerelease(pv.prerelease, pw.prerelease)


def maybe_v(version: str) -> str:
    """Return version with a leading "v", adding one if missing."""
    return version if version.startswith("v") else "v" + version