"""Details about the distri environment: checkout root, config and repositories."""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass

__all__ = [
    "Repo",
    "DistriRoot",
    "distri_root",
    "distri_config",
    "default_repo_root",
    "default_repo",
    "repos",
    "join",
]


@dataclass(frozen=True)
class Repo:
    """A package repository.

    ``path`` is a file system path or HTTP URL; ``pkg_path`` is ``path``/pkg.
    """

    path: str
    pkg_path: str


def _filepath_join(*elems: str) -> str:
    parts = [e for e in elems if e]
    if not parts:
        return ""
    return os.path.normpath(os.path.join(*parts))


def _url_path_join(*elems: str) -> str:
    parts = [e for e in elems if e]
    if not parts:
        return ""
    return posixpath.normpath(posixpath.join(*parts))


@dataclass(frozen=True)
class DistriRoot:
    """Root directory of a distri checkout."""

    path: str

    def build_dir(self, pkg: str) -> str:
        return _filepath_join(self.path, "_build", pkg)

    def pkg_dir(self, pkg: str) -> str:
        return _filepath_join(self.path, "pkgs", pkg)

    def __str__(self) -> str:
        return self.path

    def __fspath__(self) -> str:
        return self.path


def distri_root() -> DistriRoot:
    """Return the checkout root from $DISTRIROOT, defaulting to $HOME/distri."""
    value = os.environ.get("DISTRIROOT", "")
    if value:
        return DistriRoot(value)
    return DistriRoot(os.environ.get("HOME", "") + "/distri")


def distri_config() -> str:
    """Return the directory holding distri config files (typically /etc/distri)."""
    return os.environ.get("DISTRICFG", "") or "/etc/distri"


def default_repo_root() -> str:
    """Return the default repository path or URL."""
    return os.environ.get("DEFAULTREPOROOT", "") or distri_root().build_dir("distri")


def default_repo() -> str:
    """Return the default repository path or URL to pkg/."""
    return os.environ.get("DEFAULTREPO", "") or join(default_repo_root(), "pkg")


def repos() -> list[Repo]:
    """Return all configured repositories from the repos.d config directory."""
    directory = os.path.join(distri_config(), "repos.d")
    try:
        names = sorted(os.listdir(directory))
    except FileNotFoundError:
        return [Repo(path=default_repo_root(), pkg_path=default_repo())]
    result: list[Repo] = []
    for name in names:
        if not name.endswith(".repo"):
            continue
        with open(os.path.join(directory, name), encoding="utf-8") as f:
            content = f.read()
        for line in content.strip().split("\n"):
            # Anything after the first space is reserved for key=value pairs.
            line = line.split(" ", 1)[0]
            result.append(Repo(path=line, pkg_path=line + "/pkg"))
    return result


def join(*args: str) -> str:
    """Join path elements, treating an HTTP(S) first element as a URL."""
    if not args:
        return ""
    first, rest = args[0], args[1:]
    if first.startswith(("http://", "https://")):
        base = first[:-1] if first.endswith("/") else first
        return base + "/" + _url_path_join(*rest)
    return _filepath_join(*args)