"""Environment, store maintenance, initramfs probing, upstream checks and build scheduling for a package-store based Linux distribution."""

__version__ = "0.1.0"