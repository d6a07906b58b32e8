"""Find the latest upstream release of a package source."""

from __future__ import annotations

import json
import logging
import os
import posixpath
import re
import string
import urllib.error
import urllib.request
from dataclasses import dataclass
from functools import cmp_to_key
from html.parser import HTMLParser
from urllib.parse import urljoin, urlsplit, urlunsplit

from . import semver

__all__ = [
    "CheckResult",
    "find_in_debian_packages",
    "check_debian",
    "extract_links",
    "extract_versions",
    "escape_module_path",
    "check_gomod",
    "releases_url",
]

log = logging.getLogger(__name__)

# An empty hash means the hash is to be computed from the download.
HASH_FROM_DOWNLOAD = ""

# Module proxy used when GOPROXY names none.
DEFAULT_MODULE_PROXY = "https://goproxy.io"

_PROJECT_RE = re.compile(r"^/project/([^/]+)/")


@dataclass(frozen=True)
class CheckResult:
    """The latest remote version of a package source."""

    source: str
    hash: str
    version: str


def _go_clean(p: str) -> str:
    result = posixpath.normpath(p)
    if result.startswith("//"):
        result = "/" + result.lstrip("/")
    return result


def _go_dir(p: str) -> str:
    return _go_clean(p[: p.rfind("/") + 1])


def _go_base(p: str) -> str:
    if not p:
        return "."
    p = p.rstrip("/")
    if not p:
        return "/"
    return p[p.rfind("/") + 1:]


def _go_join(*elems: str) -> str:
    parts = [e for e in elems if e]
    return _go_clean("/".join(parts)) if parts else ""


def _fetch(url: str, timeout: float | None = None) -> bytes:
    request = urllib.request.Request(url)
    kwargs = {} if timeout is None else {"timeout": timeout}
    try:
        with urllib.request.urlopen(request, **kwargs) as resp:
            if resp.status != 200:
                raise RuntimeError(f"{url}: unexpected HTTP status: got {resp.status}, want 200")
            return resp.read()
    except urllib.error.HTTPError as exc:
        raise RuntimeError(f"{url}: HTTP {exc.code} {exc.reason}") from exc


def find_in_debian_packages(text: str, source_url: str) -> CheckResult:
    """Find the stanza in a Debian Packages file matching source_url's directory."""
    parts = urlsplit(source_url)
    base_path = _go_dir(parts.path)
    filename = version = sha256 = ""
    for line in text.split("\n"):
        if line.startswith("Filename: "):
            filename = line[len("Filename: "):]
            continue
        if line.startswith("Version: "):
            version = line[len("Version: "):]
            continue
        if line.startswith("SHA256: "):
            sha256 = line[len("SHA256: "):]
            continue
        if line.strip():
            continue
        # A blank line ends a package stanza.
        if not base_path.endswith(_go_dir(filename)):
            continue
        new_path = _go_join(base_path, _go_base(filename))
        return CheckResult(
            source=urlunsplit(parts._replace(path=new_path)),
            hash=sha256,
            version=version,
        )
    raise LookupError("package not found in Debian Packages file")


def check_debian(source_url: str, packages_url: str) -> CheckResult:
    """Fetch a Debian Packages file and find the latest version of source_url."""
    body = _fetch(packages_url, timeout=5).decode("utf-8", errors="replace")
    return find_in_debian_packages(body, source_url)


class _LinkCollector(HTMLParser):
    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.hrefs: list[str] = []

    def handle_starttag(self, tag, attrs) -> None:
        if tag != "a":
            return
        for key, value in attrs:
            if key == "href":
                if value:
                    self.hrefs.append(value)
                break


def extract_links(parent: str, html) -> list[str]:
    """Return the href targets of all <a> elements, resolved against parent."""
    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")
    collector = _LinkCollector()
    collector.feed(html)
    collector.close()
    links = []
    for href in collector.hrefs:
        try:
            links.append(urljoin(parent, href))
        except ValueError:
            continue
    return links


_TEMPLATE_REF = re.compile(r"\$(?:(\$)|\{([A-Za-z0-9_]+)\}|([A-Za-z0-9_]+))")


def _group(match: re.Match, name: str) -> str:
    if _DIGIT_NAME.fullmatch(name):
        index = int(name)
        if index > match.re.groups:
            return ""
        return match.group(index) or ""
    try:
        return match.group(name) or ""
    except IndexError:
        return ""


_DIGIT_NAME = re.compile(r"[0-9]+")


def _expand(template: str, match: re.Match) -> str:
    """Expand $1, ${1}, $name and $$ in template using match."""

    def ref(m: re.Match) -> str:
        if m.group(1):
            return "$"
        return _group(match, m.group(2) or m.group(3))

    return _TEMPLATE_REF.sub(ref, template)


def _compile(expr: str, what: str) -> re.Pattern:
    try:
        return re.compile(expr)
    except re.error as exc:
        raise ValueError(f"compile({what}): {exc}") from exc


def extract_versions(
    text: str,
    source: str,
    upstream: str,
    pattern: str = "",
    replace_expr: str = "",
    replace_repl: str = "",
    force_semver: bool = False,
) -> list[str]:
    """Return the versions found in text, newest first.

    Without pattern, one is derived from source's file name by replacing the
    upstream version with a version-matching group.
    """
    base = _go_base(source)
    if not pattern:
        log.debug("base: %s", base)
        idx = base.find(upstream)
        if idx == -1:
            idx = base.find(upstream.replace(".", "_"))
        if idx == -1:
            raise ValueError(f"upstreamVersion {upstream!r} not found in base {base!r}")
        pattern = (
            re.escape(base[:idx])
            + r"([0-9vBp._-]*)"
            + re.escape(base[idx + len(upstream):])
        )
    if pattern == base:
        raise ValueError("could not derive regexp pattern, specify manually")
    log.debug("pattern: %s", pattern)
    regex = _compile(pattern, "pattern")
    if regex.groups < 1:
        raise ValueError("pattern must contain a capturing group")
    found = [m.group(1) or "" for m in regex.finditer(text)]
    if replace_expr:
        replacer = _compile(replace_expr, "replaceAllExpr")
        found = [replacer.sub(lambda m: _expand(replace_repl, m), v) for v in found]

    versions = sorted({v for v in found if v != "latest"})
    if force_semver:
        versions = [v for v in versions if semver.is_valid(semver.maybe_v(v))]
        all_valid = True
    else:
        invalid = [v for v in versions if not semver.is_valid(semver.maybe_v(v))]
        if invalid:
            log.debug("not semver: %s", invalid[0])
        all_valid = not invalid

    if not all_valid:
        # A plain string sort beats semver comparison for non-semver versions.
        return sorted(versions, reverse=True)
    key = cmp_to_key(lambda a, b: semver.compare(semver.maybe_v(a), semver.maybe_v(b)))
    return sorted(versions, key=key, reverse=True)


_MODULE_CHARS = frozenset(string.ascii_letters + string.digits + "-._~")
_FIRST_ELEM_CHARS = frozenset(string.ascii_lowercase + string.digits + ".-")


def _split_path_version_ok(path: str) -> bool:
    i = len(path)
    dot = False
    while i > 0 and (path[i - 1].isascii() and path[i - 1].isdigit() or path[i - 1] == "."):
        if path[i - 1] == ".":
            dot = True
        i -= 1
    if i <= 1 or i == len(path) or path[i - 1] != "v" or path[i - 2] != "/":
        return True
    major = path[i - 2:]
    return not (dot or len(major) <= 2 or major[2] == "0" or major == "/v1")


def _check_module_path(path: str) -> None:
    def bad(reason: str) -> ValueError:
        return ValueError(f"malformed module path {path!r}: {reason}")

    if not path:
        raise bad("empty string")
    if path.startswith("/") or path.endswith("/") or "//" in path:
        raise bad("empty path element")
    elems = path.split("/")
    for elem in elems:
        if not elem.strip("."):
            raise bad(f"invalid path element {elem!r}")
        if elem.startswith("."):
            raise bad("leading dot in path element")
        if elem.endswith("."):
            raise bad("trailing dot in path element")
        for ch in elem:
            if ch not in _MODULE_CHARS:
                raise bad(f"invalid char {ch!r}")
    first = elems[0]
    if "." not in first:
        raise bad("missing dot in first path element")
    if first.startswith("-"):
        raise bad("leading dash in first path element")
    for ch in first:
        if ch not in _FIRST_ELEM_CHARS:
            raise bad(f"invalid char {ch!r} in first path element")
    if not _split_path_version_ok(path):
        raise bad("disallowed version string")


def escape_module_path(path: str) -> str:
    """Return the module proxy form of path: uppercase letters become "!" + lowercase."""
    _check_module_path(path)
    return "".join("!" + ch.lower() if "A" <= ch <= "Z" else ch for ch in path)


def _module_proxy() -> str:
    """Return the first HTTP(S) proxy named in GOPROXY, or the default one."""
    for entry in re.split(r"[,|]", os.environ.get("GOPROXY", "")):
        entry = entry.strip()
        if entry.startswith(("http://", "https://")):
            return entry.rstrip("/")
    return DEFAULT_MODULE_PROXY


def check_gomod(spec: str) -> CheckResult:
    """Look up the latest version of a Go module, e.g. github.com/x/y@v1.1.0."""
    module = spec.partition("@")[0]
    url = _module_proxy() + "/" + escape_module_path(module) + "/@latest"
    reply = json.loads(_fetch(url))
    version = reply.get("Version", "") if isinstance(reply, dict) else ""
    return CheckResult(
        source=f"distri+gomod://{module}@{version}",
        hash=HASH_FROM_DOWNLOAD,
        version=version,
    )


def releases_url(source: str) -> str:
    """Return the URL of the index page most likely listing releases of source."""
    parts = urlsplit(source)
    host, path = parts.netloc, parts.path
    if host == "github.com" and "/releases/" in path:
        path = path[: path.index("/releases/") + len("/releases/")]
    elif host == "github.com" and "/archive/" in path:
        path = path[: path.index("/archive/")] + "/releases/"
    elif host == "downloads.sourceforge.net" and path.startswith("/project/"):
        m = _PROJECT_RE.match(path)
        if m is None:
            raise ValueError("downloads.sourceforge.net: could not find project name")
        path = "/projects/" + m.group(1) + "/files/"
        host = "sourceforge.net"
    elif host == "launchpad.net":
        path = path[1:] if path.startswith("/") else path
        path = path.split("/", 1)[0]
    else:
        path = _go_dir(path) + "/"
    return urlunsplit(parts._replace(netloc=host, path=path))