"""Directory tree discovery for hashing.

Walks a directory tree depth-first in pre-order and yields one FileEntry for
every file that should be hashed. The walk:

- prunes directories (and skips files) whose full path matches the exclusion pattern
- yields regular files directly
- resolves symbolic links when asked to, yielding the link target
- reports and skips everything else (FIFOs, sockets, devices, unfollowed links)
- absorbs listing and stat failures so one bad directory never stops the walk
"""

import logging
import os
import re
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from .errors import HasherError, InvalidPatternError, SymlinkResolutionError, WalkError
from .hardlinks import InodeIdentity, inode_identity
from .symlinks import resolve_symlink_target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileEntry:
    """A file accepted for hashing.

    Attributes:
        path: Absolute path whose content is hashed (the target, for followed links)
        is_regular: True if path is a regular file
        is_symlink: True if the entry was reached through a symbolic link
        link_count: Number of hard links to the file's inode
        inode_identity: (device, inode) pair, or None if unavailable
    """
    path: Path
    is_regular: bool
    is_symlink: bool
    link_count: int
    inode_identity: Optional[InodeIdentity]

    @classmethod
    def from_stat(cls, path: Path, st: os.stat_result, is_symlink: bool = False) -> "FileEntry":
        return cls(
            path=path,
            is_regular=stat.S_ISREG(st.st_mode),
            is_symlink=is_symlink,
            link_count=st.st_nlink,
            inode_identity=inode_identity(st),
        )


def compile_exclusion(pattern: Optional[str]) -> Optional[re.Pattern]:
    """
    Compile an exclusion regular expression.

    Args:
        pattern: Regular expression, or None/"" for no exclusion

    Returns:
        Compiled pattern, or None when nothing is excluded

    Raises:
        InvalidPatternError: If the pattern does not compile
    """
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        raise InvalidPatternError(
            f"invalid exclude pattern {pattern!r}: {e}", pattern=pattern
        ) from e


def is_excluded(path: Path, pattern: Optional[re.Pattern]) -> bool:
    """True if pattern matches anywhere in the full path. A missing pattern matches nothing."""
    return pattern is not None and pattern.search(str(path)) is not None


class TreeWalker:
    """Depth-first, pre-order walker producing FileEntry objects.

    Counters are updated as the walk progresses and are final once ``walk()``
    is exhausted.
    """

    def __init__(
        self,
        root: Path,
        exclude: Optional[re.Pattern] = None,
        follow_symlinks: bool = False,
    ):
        self.root = root
        self.exclude = exclude
        self.follow_symlinks = follow_symlinks

        self.directories_visited = 0
        self.excluded = 0
        self.entries_skipped = 0
        self.errors: List[HasherError] = []

    @property
    def walk_errors(self) -> int:
        return len(self.errors)

    def walk(self) -> Iterator[FileEntry]:
        """Lazily yield entries to hash, in lexical depth-first order."""
        logger.debug(f"Walking tree: {{'root': {str(self.root)!r}, 'follow_symlinks': {self.follow_symlinks}}}")

        try:
            root_stat = os.lstat(self.root)
        except OSError as e:
            self._report_walk_error(self.root, e)
            return

        # Explicit stack: deep trees must not hit the recursion limit
        stack: List[Tuple[Path, os.stat_result]] = [(self.root, root_stat)]

        while stack:
            path, st = stack.pop()

            if is_excluded(path, self.exclude):
                self.excluded += 1
                logger.debug(f"Excluded: {path}")
                continue

            if stat.S_ISDIR(st.st_mode):
                self.directories_visited += 1
                children = self._list_directory(path)
                stack.extend(reversed(children))
            elif stat.S_ISREG(st.st_mode):
                yield FileEntry.from_stat(path, st)
            elif stat.S_ISLNK(st.st_mode) and self.follow_symlinks:
                entry = self._follow_symlink(path)
                if entry is not None:
                    yield entry
            else:
                self.entries_skipped += 1
                logger.info(f"skipping non-regular file {path}")

    def _list_directory(self, directory: Path) -> List[Tuple[Path, os.stat_result]]:
        """Return (path, lstat) for each child, sorted by name. Failures are reported, not raised."""
        try:
            with os.scandir(directory) as it:
                dir_entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            self._report_walk_error(directory, e)
            return []

        children = []
        for dir_entry in dir_entries:
            child = Path(dir_entry.path)
            try:
                children.append((child, dir_entry.stat(follow_symlinks=False)))
            except OSError as e:
                self._report_walk_error(child, e)
        return children

    def _follow_symlink(self, link_path: Path) -> Optional[FileEntry]:
        """Resolve a link to an entry for its target, using the target's own metadata."""
        try:
            target = resolve_symlink_target(link_path)
        except SymlinkResolutionError as e:
            self._report_symlink_error(e)
            return None

        try:
            target_stat = os.stat(target)
        except OSError as e:
            self._report_symlink_error(SymlinkResolutionError(
                f"error reading symlink {link_path}: target {target}: {e}",
                path=str(link_path),
                target=str(target),
            ))
            return None

        if not stat.S_ISREG(target_stat.st_mode):
            self.entries_skipped += 1
            logger.info(f"skipping symlink {link_path}: target {target} is not a regular file")
            return None

        logger.debug(f"Following symlink: {link_path} -> {target}")
        return FileEntry.from_stat(target, target_stat, is_symlink=True)

    def _report_walk_error(self, path: Path, exc: OSError) -> None:
        error = WalkError(f"unable to walk {path}: {exc}", path=str(path))
        self.errors.append(error)
        logger.error(error.message)

    def _report_symlink_error(self, error: SymlinkResolutionError) -> None:
        self.errors.append(error)
        logger.error(error.message)
