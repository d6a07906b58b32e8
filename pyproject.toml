[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "distrikit"
version = "0.1.0"
description = "Helpers for a package-store based Linux distribution: environment, store maintenance, kernel config comparison, initramfs probing, upstream version checks and batch build scheduling"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "distribution",
    "package-store",
    "initramfs",
    "blkid",
    "kernel-modules",
    "kernel-config",
    "upstream",
    "semver",
    "build-scheduler",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
    "Topic :: System :: Boot",
    "Topic :: Software Development :: Build Tools",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
distri-reset = "distrikit.store:main"
kernel-cfg-diff = "distrikit.kconfig_diff:main"

[tool.hatch.build.targets.wheel]
packages = ["distrikit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
