"""pkgsentinel: audit every package in an npm dependency tree."""

__version__ = "0.1.0"
