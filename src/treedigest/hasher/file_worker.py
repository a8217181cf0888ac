"""Task body that hashes one discovered file."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .digests import DIGEST_CHUNK_SIZE, DigestAlgorithm, compute_file_digest
from .discovery import FileEntry
from .errors import FileReadError
from .hardlinks import HardLinkCache

logger = logging.getLogger(__name__)

COMPUTED_MARKER = "-"
REUSED_MARKER = "*"


@dataclass(frozen=True)
class FileResult:
    """Digest of one file.

    Attributes:
        digest: Lowercase hex digest
        path: Path that was reported
        reused: True if the digest came from the hard-link cache
    """
    digest: str
    path: Path
    reused: bool = False

    @property
    def marker(self) -> str:
        return REUSED_MARKER if self.reused else COMPUTED_MARKER

    def format_line(self) -> str:
        return f"{self.digest}  {self.path}  {self.marker}"


def hash_file_entry(
    entry: FileEntry,
    cache: HardLinkCache,
    algorithm: DigestAlgorithm,
    emit: Callable[[FileResult], None],
    chunk_size: int = DIGEST_CHUNK_SIZE,
) -> FileResult:
    """Hash one file, reusing a cached digest for already-seen hard links.

    Exactly one result is emitted when this returns normally.

    Args:
        entry: File to hash
        cache: Hard-link cache shared by every worker of the run
        algorithm: Resolved digest algorithm
        emit: Callback receiving the result
        chunk_size: Read size for streaming

    Returns:
        The emitted FileResult

    Raises:
        FileReadError: If the file cannot be opened or read
    """
    identity = entry.inode_identity
    shares_inode = identity is not None and entry.link_count > 1

    if shares_inode:
        cached = cache.claim(identity)
    elif identity is not None:
        cached = cache.get(identity)
    else:
        cached = None

    if cached is not None:
        result = FileResult(digest=cached, path=entry.path, reused=True)
        emit(result)
        return result

    digest = None
    try:
        digest = compute_file_digest(entry.path, algorithm, chunk_size)
    except OSError as e:
        raise FileReadError(
            f"failed to hash {entry.path}: {e}", path=str(entry.path)
        ) from e
    finally:
        if shares_inode:
            if digest is None:
                cache.release(identity)
            else:
                cache.put_if_absent(identity, digest)

    result = FileResult(digest=digest, path=entry.path, reused=False)
    emit(result)
    return result


def make_file_task(
    entry: FileEntry,
    cache: HardLinkCache,
    algorithm: DigestAlgorithm,
    emit: Callable[[FileResult], None],
    chunk_size: int = DIGEST_CHUNK_SIZE,
) -> Callable[[], FileResult]:
    """Bind a FileEntry into a zero-argument task for the pool."""
    def task() -> FileResult:
        return hash_file_entry(entry, cache, algorithm, emit, chunk_size)
    return task
