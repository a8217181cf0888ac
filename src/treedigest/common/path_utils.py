"""Path utilities for consistent path handling across packages."""

import os
from pathlib import Path


def clean_absolute_path(path: Path | str) -> Path:
    """
    Turn a user supplied path into an absolute, lexically cleaned path.

    Applies:
    - ``~`` expansion
    - Lexical normalization (``a/./b/../c`` becomes ``a/c``)
    - Anchoring relative paths at the current working directory

    Symlinks are NOT resolved: the traversal root keeps the name the user gave it.

    Args:
        path: Path object or string to clean

    Returns:
        Absolute Path without redundant separators or up-level references

    Examples:
        >>> clean_absolute_path("/data/./photos/../music")
        PosixPath('/data/music')
    """
    expanded = os.path.expanduser(str(path))
    return Path(os.path.abspath(os.path.normpath(expanded)))
