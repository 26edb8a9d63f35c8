"""Storage building blocks: a write-ahead log, a revision index, options and helpers."""

__version__ = "0.1.0"