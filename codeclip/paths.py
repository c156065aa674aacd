"""
Project-root containment checks for paths declared in pasted edits.

Pure path arithmetic: nothing here touches the filesystem, so symlinks inside
the project are not followed.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Union

from codeclip.errors import UnsafePathError

PathLike = Union[str, Path]


def normalize_root(root: PathLike) -> Path:
    """Absolute, normalised form of the project root."""
    return Path(os.path.normpath(os.path.abspath(os.fspath(root))))


def is_path_inside(root: PathLike, target: PathLike) -> bool:
    """True when target lies strictly below root (root itself is not inside)."""
    try:
        rel = os.path.relpath(os.fspath(target), os.fspath(root))
    except ValueError:
        # different drives on Windows
        return False

    if rel in ("", os.curdir) or os.path.isabs(rel):
        return False
    first = Path(rel).parts[0]
    return first != os.pardir


def resolve_safe_path(root: PathLike, declared: str) -> Path:
    """Resolve a declared path against root and check it stays inside.

    Absolute paths are taken as-is, relative ones are joined to root. Raises
    UnsafePathError when the normalised target is root itself or escapes it.
    """
    root_abs = normalize_root(root)

    if os.path.isabs(declared):
        target = os.path.normpath(declared)
    else:
        target = os.path.normpath(os.path.join(root_abs, declared))

    target_path = Path(target)
    if not is_path_inside(root_abs, target_path):
        raise UnsafePathError(root_abs, target_path)
    return target_path
