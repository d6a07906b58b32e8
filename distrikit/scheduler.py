"""Dependency-ordered parallel package builds with cycle breaking."""

from __future__ import annotations

import logging
import os
import random
import subprocess
import tempfile
import threading
import time
from collections import deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from typing import Callable, Optional

from .env import DistriRoot, distri_root

__all__ = ["BuildGraph", "Scheduler"]

log = logging.getLogger(__name__)

_DEPENDENCIES_UNFULFILLED = "dependencies cannot be fulfilled"


@dataclass(frozen=True)
class _Node:
    pkg: str  # e.g. make
    fullname: str  # package, arch and version, e.g. make-amd64-4.2.1


class BuildGraph:
    """Packages to build and the packages each of them depends on."""

    def __init__(self, arch: str = "") -> None:
        self.arch = arch
        self._nodes: dict[str, _Node] = {}
        self._by_pkg: dict[str, _Node] = {}
        # Ordered sets (dicts with None values) keep iteration deterministic.
        self._deps: dict[str, dict[str, None]] = {}
        self._dependents: dict[str, dict[str, None]] = {}

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, fullname: object) -> bool:
        return fullname in self._nodes

    def add_node(self, pkg: str, fullname: str) -> None:
        """Add package pkg, whose full name is fullname, to the graph."""
        if fullname in self._nodes:
            raise ValueError(f"package {fullname!r} already in graph")
        node = _Node(pkg=pkg, fullname=fullname)
        self._nodes[fullname] = node
        self._by_pkg[pkg] = node
        if self.arch:
            self._by_pkg[f"{pkg}-{self.arch}"] = node
        self._deps[fullname] = {}
        self._dependents[fullname] = {}

    def _lookup(self, name: str) -> _Node:
        node = self._nodes.get(name) or self._by_pkg.get(name)
        if node is None:
            raise KeyError(f"package {name!r} not in graph")
        return node

    def add_dependency(self, pkg: str, dep: str) -> bool:
        """Record that pkg depends on dep; return whether an edge was added.

        Self dependencies and dependencies outside the graph (already built)
        are ignored.
        """
        node = self._lookup(pkg)
        if dep in (node.fullname, node.pkg, f"{node.pkg}-{self.arch}"):
            return False  # skip adding self edges
        added = False
        for target in (self._nodes.get(dep), self._by_pkg.get(dep)):
            if target is None or target.fullname == node.fullname:
                continue
            if target.fullname not in self._deps[node.fullname]:
                self._deps[node.fullname][target.fullname] = None
                self._dependents[target.fullname][node.fullname] = None
                added = True
        return added

    def pkg(self, fullname: str) -> str:
        """Return the package name of fullname."""
        return self._nodes[fullname].pkg

    def dependencies(self, fullname: str) -> list[str]:
        """Return the full names fullname depends on."""
        return list(self._deps[fullname])

    def dependents(self, fullname: str) -> list[str]:
        """Return the full names which depend on fullname."""
        return list(self._dependents[fullname])

    def _strongly_connected(self) -> list[list[str]]:
        index: dict[str, int] = {}
        lowlink: dict[str, int] = {}
        on_stack: set[str] = set()
        stack: list[str] = []
        components: list[list[str]] = []
        counter = 0
        for root in self._nodes:
            if root in index:
                continue
            work: list[tuple[str, iter]] = []
            index[root] = lowlink[root] = counter
            counter += 1
            stack.append(root)
            on_stack.add(root)
            work.append((root, iter(list(self._deps[root]))))
            while work:
                v, successors = work[-1]
                advanced = False
                for w in successors:
                    if w not in index:
                        index[w] = lowlink[w] = counter
                        counter += 1
                        stack.append(w)
                        on_stack.add(w)
                        work.append((w, iter(list(self._deps[w]))))
                        advanced = True
                        break
                    if w in on_stack:
                        lowlink[v] = min(lowlink[v], index[w])
                if advanced:
                    continue
                work.pop()
                if work:
                    parent = work[-1][0]
                    lowlink[parent] = min(lowlink[parent], lowlink[v])
                if lowlink[v] == index[v]:
                    component = []
                    while True:
                        w = stack.pop()
                        on_stack.discard(w)
                        component.append(w)
                        if w == v:
                            break
                    components.append(component)
        return components

    def _cyclic_components(self) -> list[list[str]]:
        return [c for c in self._strongly_connected() if len(c) > 1]

    def break_cycles(self) -> list[str]:
        """Remove all dependencies of packages which are part of a cycle.

        Those packages are bootstrapped with the host's dependencies. Returns
        the names of the bootstrapped packages.
        """
        bootstrapped: list[str] = []
        for component in self._cyclic_components():
            for fullname in component:
                node = self._nodes[fullname]
                log.info("  bootstrap %s", node.pkg)
                bootstrapped.append(node.pkg)
                for dep in self._deps[fullname]:
                    self._dependents[dep].pop(fullname, None)
                self._deps[fullname].clear()
        try:
            self.topological_order()
        except ValueError as exc:
            raise ValueError(f"could not break cycles: {exc}") from exc
        return bootstrapped

    def topological_order(self) -> list[str]:
        """Return all full names, each after everything it depends on.

        Raises ValueError if the graph contains a cycle.
        """
        remaining = {name: len(deps) for name, deps in self._deps.items()}
        ready = deque(name for name, count in remaining.items() if count == 0)
        order: list[str] = []
        while ready:
            name = ready.popleft()
            order.append(name)
            for dependent in self._dependents[name]:
                remaining[dependent] -= 1
                if remaining[dependent] == 0:
                    ready.append(dependent)
        if len(order) != len(self._nodes):
            cycles = [
                sorted(self._nodes[n].pkg for n in c) for c in self._cyclic_components()
            ]
            raise ValueError(f"dependency cycles: {cycles}")
        return order


class _DistriBuild:
    """Builds a package by running the distri build command."""

    def __init__(self, root: DistriRoot, arch: str, log_dir: str) -> None:
        self.root = root
        self.arch = arch
        self.log_dir = log_dir

    def __call__(self, pkg: str) -> None:
        args = ["distri", "build"]
        if self.arch:
            args.append(f"-cross={self.arch}")
        with open(os.path.join(self.log_dir, pkg + ".log"), "w") as log_file:
            result = subprocess.run(
                args,
                cwd=self.root.pkg_dir(pkg),
                stdout=log_file,
                stderr=subprocess.STDOUT,
            )
        if result.returncode != 0:
            raise RuntimeError(f"{args}: exit status {result.returncode}")


def _simulated_build(pkg: str) -> None:
    time.sleep(0.01 + random.random())
    if pkg == "libx11":
        raise RuntimeError("simulate intentionally failed")


class Scheduler:
    """Builds the packages of a BuildGraph in dependency order."""

    def __init__(
        self,
        graph: BuildGraph,
        build: Optional[Callable[[str], None]] = None,
        workers: int = 1,
        *,
        root: Optional[DistriRoot] = None,
        log_dir: Optional[str] = None,
        simulate: bool = False,
        cancel=None,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.graph = graph
        self.workers = workers
        self.cancel = cancel
        self.log_dir = log_dir
        self.built: dict[str, Optional[BaseException]] = {}
        if build is None:
            if simulate:
                build = _simulated_build
            else:
                if self.log_dir is None:
                    self.log_dir = tempfile.mkdtemp(prefix="distri-batch")
                build = _DistriBuild(root or distri_root(), graph.arch, self.log_dir)
        self._build = build
        self._lock = threading.Lock()

    def can_build(self, fullname: str) -> bool:
        """Return whether all dependencies of fullname were built successfully."""
        for dep in self.graph.dependencies(fullname):
            if dep not in self.built or self.built[dep] is not None:
                return False
        return True

    def mark_failed(self, fullname: str) -> int:
        """Mark everything depending on fullname as failed; return how many."""
        failed = 0
        for dependent in self.graph.dependents(fullname):
            if dependent in self.built and self.built[dependent] is None:
                raise RuntimeError(
                    f"BUG: {dependent} already succeeded, but dependencies cannot be fulfilled"
                )
            if dependent not in self.built:
                self.built[dependent] = RuntimeError(_DEPENDENCIES_UNFULFILLED)
                failed += 1
            failed += self.mark_failed(dependent)
        return failed

    def _cancelled(self) -> bool:
        return self.cancel is not None and self.cancel.cancelled()

    def run(self) -> dict[str, Optional[BaseException]]:
        """Build every package; return each full name's error, None on success."""
        order = self.graph.topological_order()
        total = len(order)
        self.built = {}
        succeeded = failed = 0
        pending: dict[Future, str] = {}
        submitted: set[str] = set()

        with ThreadPoolExecutor(max_workers=self.workers) as pool:

            def submit(fullname: str) -> None:
                submitted.add(fullname)
                pending[pool.submit(self._build, self.graph.pkg(fullname))] = fullname

            # Packages without dependencies get the build started.
            for fullname in order:
                if not self.graph.dependencies(fullname):
                    submit(fullname)

            while len(self.built) < total:
                if self._cancelled():
                    pool.shutdown(wait=True, cancel_futures=True)
                    raise InterruptedError("build cancelled")
                if not pending:
                    raise RuntimeError("no buildable packages left")
                done, _ = wait(list(pending), timeout=0.1, return_when=FIRST_COMPLETED)
                for future in done:
                    fullname = pending.pop(future)
                    err = future.exception()
                    self.built[fullname] = err
                    if err is None:
                        succeeded += 1
                        for dependent in self.graph.dependents(fullname):
                            if dependent not in submitted and self.can_build(dependent):
                                submit(dependent)
                    else:
                        pkg = self.graph.pkg(fullname)
                        if self.log_dir:
                            log.error(
                                "build of %s failed (%s), see %s",
                                pkg, err, os.path.join(self.log_dir, pkg + ".log"),
                            )
                        else:
                            log.error("build of %s failed (%s)", pkg, err)
                        failed += 1 + self.mark_failed(fullname)
                    log.info(
                        "%d of %d packages: %d built, %d failed",
                        len(self.built), total, succeeded, failed,
                    )

        ok = sum(1 for err in self.built.values() if err is None)
        log.info(
            "%d packages succeeded, %d failed, %d total",
            ok, len(self.built) - ok, len(self.built),
        )
        return dict(self.built)