"""Symbolic link inspection."""

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import SymlinkResolutionError


@dataclass(frozen=True)
class SymlinkInfo:
    """Result of inspecting a path with lstat.

    Attributes:
        is_symlink: True if the path itself is a symbolic link
        target: Raw link target as stored in the link (None for non-links)
    """
    is_symlink: bool
    target: Optional[Path] = None


def check_symlink(path: Path) -> SymlinkInfo:
    """
    Report whether path is a symbolic link and, if so, its raw target.

    Args:
        path: Path to inspect (not followed)

    Returns:
        SymlinkInfo for the path

    Raises:
        OSError: If the path cannot be lstat'ed or the link cannot be read
    """
    st = os.lstat(path)
    if not stat.S_ISLNK(st.st_mode):
        return SymlinkInfo(is_symlink=False)
    return SymlinkInfo(is_symlink=True, target=Path(os.readlink(path)))


def resolve_symlink_target(link_path: Path) -> Path:
    """
    Return the path a symbolic link points at.

    A relative target is interpreted relative to the directory holding the
    link. The result is normalized lexically; intermediate links are not
    followed.

    Args:
        link_path: Absolute path of the link

    Returns:
        Absolute path of the link target

    Raises:
        SymlinkResolutionError: If link_path is not a link or cannot be read
    """
    try:
        info = check_symlink(link_path)
    except OSError as e:
        raise SymlinkResolutionError(
            f"error reading symlink {link_path}: {e}", path=str(link_path)
        ) from e

    if not info.is_symlink:
        raise SymlinkResolutionError(
            f"not a symbolic link: {link_path}", path=str(link_path)
        )

    target = info.target
    if not target.is_absolute():
        target = link_path.parent / target
    return Path(os.path.normpath(target))
