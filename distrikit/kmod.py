"""Kernel module dependency and alias lookup from modules.dep and modules.alias."""

from __future__ import annotations

import logging
import os
import posixpath
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from typing import Iterable

__all__ = ["ModuleEntry", "ModuleAlias", "ModuleIndex"]

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleEntry:
    """A kernel module file and the files it depends on."""

    path: str
    deps: tuple[str, ...] = ()


@dataclass(frozen=True)
class ModuleAlias:
    """A modalias pattern and the module it resolves to."""

    pattern: str
    module: str


@dataclass
class ModuleIndex:
    """Kernel module dependencies and aliases, keyed by module name."""

    aliases: list[ModuleAlias] = field(default_factory=list)
    deps: dict[str, ModuleEntry] = field(default_factory=dict)

    @classmethod
    def from_directory(cls, directory: str) -> "ModuleIndex":
        """Read modules.alias and modules.dep from a /lib/modules/<release> directory."""
        index = cls()
        with open(os.path.join(directory, "modules.alias"), encoding="utf-8") as f:
            index.parse_aliases(f)
        with open(os.path.join(directory, "modules.dep"), encoding="utf-8") as f:
            index.parse_deps(f)
        return index

    def parse_aliases(self, lines: Iterable[str]) -> None:
        """Add the aliases found in modules.alias lines."""
        for line in lines:
            line = line.rstrip("\n")
            if not line.startswith("alias "):
                continue  # also skips comments
            line = line[len("alias "):]
            # Some patterns contain a space, so split on the last one.
            pattern, sep, module = line.rpartition(" ")
            if not sep:
                log.warning("BUG: modules.alias line has no space: %r", line)
                continue
            self.aliases.append(ModuleAlias(pattern=pattern, module=module))

    def parse_deps(self, lines: Iterable[str]) -> None:
        """Add the module entries found in modules.dep lines."""
        for line in lines:
            line = line.rstrip("\n")
            if not line:
                continue
            parts = line.split(" ")
            base = posixpath.basename(parts[0])
            if base.endswith(".ko:"):
                base = base[: -len(".ko:")]
            # Aliases may refer to e.g. acpi_cpufreq for acpi-cpufreq.ko.
            base = base.replace("-", "_")
            path = parts[0][:-1] if parts[0].endswith(":") else parts[0]
            self.deps[base] = ModuleEntry(path=path, deps=tuple(parts[1:]))

    def load_order(self, module: str) -> list[str]:
        """Return the files to load for module: its dependencies, then itself."""
        try:
            entry = self.deps[module]
        except KeyError:
            raise KeyError(f"module {module!r} not found") from None
        return [*entry.deps, entry.path]

    def modules_for_alias(self, modalias: str) -> list[str]:
        """Return the modules whose alias patterns match modalias, in file order."""
        return [a.module for a in self.aliases if fnmatchcase(modalias, a.pattern)]

    def files_for_alias(self, modalias: str) -> list[str]:
        """Return the module files to load, in order, for modalias."""
        files: list[str] = []
        for module in self.modules_for_alias(modalias):
            files.extend(self.load_order(module))
        return files