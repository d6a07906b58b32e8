# distrikit

Helpers for working with a package-store based Linux distribution. The
package is pure Python (3.10 or newer) and has no third-party dependencies.

## What is in it

- `distrikit.env`: locate the checkout root (`distri_root()`, a
  `DistriRoot` with `build_dir(pkg)` and `pkg_dir(pkg)`), the configuration
  directory (`distri_config()`), the default repository (`default_repo_root()`,
  `default_repo()`) and the configured repositories (`repos()`, read from
  `*.repo` files in `repos.d`, returning `Repo` records). The environment
  variables `DISTRIROOT`, `DISTRICFG`, `DEFAULTREPOROOT` and `DEFAULTREPO`
  override the defaults. `join()` joins path elements, treating an
  `http://` or `https://` first element as a URL.
- `distrikit.store`: write a listing of the package store
  (`persist_file_listing`, `file_listing_path`), read one back
  (`read_listing`), and reset the store to an earlier listing
  (`stale_entries`, `reset_store`).
- `distrikit.kconfig_diff`: compare two kernel `.config` files by their
  `=y` and `=m` options (`parse_config`, `all_options`, `diff_configs`).
- `distrikit.blkid`: identify a block device from an open binary file:
  LUKS header UUID (`probe_luks`), LVM physical volume label (`probe_lvm`)
  and ext4 UUID (`blkid`). A missing signature raises `NotFoundError`.
- `distrikit.kmod`: `ModuleIndex` reads `modules.dep` and `modules.alias`
  and answers which module files to load, in order, for a module
  (`load_order`) or a modalias (`modules_for_alias`, `files_for_alias`).
- `distrikit.cmdline`: kernel command line parsing (`parse_cmdline`,
  `root_fs_type`, `luks_name`), uevent filtering (`wants_block_event`,
  `skip_device_mapper`) and waiting for a file to appear (`poll_file`).
- `distrikit.semver`: semantic version validation and comparison
  (`is_valid`, `compare`, `maybe_v`).
- `distrikit.checkupstream`: find newer upstream releases. Look up a
  source in a Debian `Packages` index (`find_in_debian_packages`,
  `check_debian`), ask a Go module proxy for a module's latest version
  (`check_gomod`, `escape_module_path`; the proxy is taken from `GOPROXY`
  when it names an HTTP(S) one), guess a release index page for a source
  URL (`releases_url`), and pull links and versions out of such a page
  (`extract_links`, `extract_versions`, newest first). Results are
  `CheckResult` records; an empty hash means it is to be computed from
  the download.
- `distrikit.scheduler`: `BuildGraph` holds packages and their
  dependencies, breaks dependency cycles (`break_cycles`) and orders
  packages (`topological_order`). `Scheduler` builds the packages on a
  thread pool, each once all its dependencies have succeeded, and marks
  everything depending on a failed package as failed. The build step is a
  callable taking the package name; by default it runs `distri build` in
  the package directory, with `simulate=True` it only sleeps.
- `distrikit.signals`: `Interruptible`, a context manager that turns
  SIGINT/SIGTERM into a cancellation flag (`cancelled()`); it can be passed
  to `Scheduler` as `cancel`.

## Installation

```
pip install .
```

## Commands

Reset the package store to the contents recorded in a listing (a dry run
unless `-w` is given):

```
distri-reset --help
```

Compare a distribution kernel config with another one:

```
kernel-cfg-diff --help
```

## Library use

```python
from distrikit import env, kconfig_diff, cmdline, semver

root = env.distri_root()
print(root.pkg_dir("gcc"))       # <root>/pkgs/gcc
print(root.build_dir("gcc"))     # <root>/_build/gcc
for repo in env.repos():
    print(repo.path, repo.pkg_path)

distri = kconfig_diff.parse_config("CONFIG_A=y\nCONFIG_B=m\n")
other = kconfig_diff.parse_config("CONFIG_A=m\n")
print(kconfig_diff.diff_configs(distri, other))

print(cmdline.skip_device_mapper("7208960"))   # True
print(semver.is_valid("v1.2.3"))               # True
```

Identifying a block device:

```python
from distrikit.blkid import blkid

with open("/dev/sda1", "rb") as f:
    print(blkid(f))   # LUKS or ext4 UUID
```

Scheduling builds with a custom build step:

```python
from distrikit.scheduler import BuildGraph, Scheduler

graph = BuildGraph(arch="amd64")
graph.add_node("glibc", "glibc-amd64-2.31-1")
graph.add_node("make", "make-amd64-4.2.1-1")
graph.add_dependency("make", "glibc")
graph.break_cycles()

results = Scheduler(graph, build=lambda pkg: print("building", pkg), workers=2).run()
# maps each full name to None on success, or to the raised exception
```

## What it does not do

- It does not build, install, update or pack packages. There is no
  `distri build` here; the default scheduler build step expects that
  command to be on `PATH`.
- It does not read package build files, so the `BuildGraph` must be filled
  in by the caller.
- It is not an initramfs init: it mounts nothing, loads no kernel modules
  and opens no encrypted volumes. It only provides the parsing, probing and
  lookup those steps need.
- Upstream checks cover Debian `Packages` indexes and Go module proxies
  end to end; for release index pages it supplies the URL guess and the
  link and version extraction, but does not fetch the page itself.

## Tests

```
pip install .[test]
pytest
```