"""File-system helpers and generators for test keys and values."""

from __future__ import annotations

import fnmatch
import os
import random
import shutil
import stat
from pathlib import Path
from typing import Iterable

__all__ = [
    "dir_size",
    "available_disk_size",
    "copy_dir",
    "get_test_key",
    "random_value",
    "LETTERS",
]

LETTERS = b"abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"

_rng = random.Random()


def dir_size(dir_path: str | os.PathLike) -> int:
    """Return the total size in bytes of every non-directory entry under *dir_path*."""
    root = Path(dir_path)
    root_stat = root.lstat()  # raises FileNotFoundError when missing
    if not stat.S_ISDIR(root_stat.st_mode):
        return root_stat.st_size
    total = 0
    for entry in root.rglob("*"):
        info = entry.lstat()
        if not stat.S_ISDIR(info.st_mode):
            total += info.st_size
    return total


def available_disk_size() -> int:
    """Return the free space, in bytes, available on the disk holding the working directory."""
    return shutil.disk_usage(os.getcwd()).free


def _excluded(name: str, patterns: Iterable[str]) -> bool:
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def copy_dir(
    src: str | os.PathLike,
    dst: str | os.PathLike,
    exclude: Iterable[str] = (),
) -> None:
    """Copy the tree at *src* into *dst*, skipping entries whose name matches a pattern in *exclude*."""
    patterns = list(exclude)
    src_root = Path(src)
    dst_root = Path(dst)
    if not src_root.exists():
        raise FileNotFoundError(src_root)
    dst_root.mkdir(parents=True, exist_ok=True)

    for current, dirnames, filenames in os.walk(src_root):
        current_path = Path(current)
        relative = current_path.relative_to(src_root)
        dirnames[:] = [d for d in dirnames if not _excluded(d, patterns)]
        for name in dirnames:
            source_dir = current_path / name
            mode = stat.S_IMODE(source_dir.stat().st_mode)
            (dst_root / relative / name).mkdir(mode=mode, parents=True, exist_ok=True)
        for name in filenames:
            if _excluded(name, patterns):
                continue
            target = dst_root / relative / name
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy(current_path / name, target)


def get_test_key(i: int) -> bytes:
    """Return the key used for the i-th entry in tests and benchmarks."""
    return f"TestKey-{i:09d}".encode()


def random_value(n: int) -> bytes:
    """Return *n* random alphanumeric bytes."""
    if n < 0:
        raise ValueError("length must not be negative")
    return bytes(_rng.choices(LETTERS, k=n))