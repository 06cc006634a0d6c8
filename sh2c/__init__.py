"""sh2c - translate a subset of POSIX shell into standalone C programs."""

__version__ = "0.1.0"
