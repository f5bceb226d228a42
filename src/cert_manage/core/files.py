"""Filesystem primitives — mirror a subtree and swap directories into place."""

from __future__ import annotations

import os
import shutil
from pathlib import Path


def mirror(src: Path, dst: Path) -> None:
    """Copy ``src`` to ``dst`` preserving permissions and symlinks.

    Directories are copied recursively; a plain file is copied with its
    metadata. ``dst`` must not already exist when ``src`` is a directory.
    """
    if src.is_dir() and not src.is_symlink():
        shutil.copytree(src, dst, symlinks=True, copy_function=shutil.copy2)
        shutil.copystat(src, dst)
    else:
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src, dst, follow_symlinks=False)


def remove_path(path: Path) -> None:
    """Delete a file, symlink, or directory tree if it exists."""
    if path.is_symlink() or path.is_file():
        path.unlink()
    elif path.is_dir():
        shutil.rmtree(path)


def replace_path(new: Path, live: Path) -> None:
    """Swap ``new`` into ``live``.

    The previous ``live`` is moved aside first and only deleted once ``new``
    is in place; if the final rename fails the old content is put back.
    ``new`` must be on the same filesystem as ``live``.
    """
    old = live.with_name(f".{live.name}.old")
    remove_path(old)
    had_live = live.exists() or live.is_symlink()
    if had_live:
        os.replace(live, old)
    try:
        os.replace(new, live)
    except OSError:
        if had_live:
            os.replace(old, live)
        raise
    remove_path(old)


def publish_directory(tmp: Path, final: Path) -> None:
    """Atomically publish a fully written temporary directory as ``final``."""
    final.parent.mkdir(parents=True, exist_ok=True)
    replace_path(tmp, final)
