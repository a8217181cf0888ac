"""Run coordinator: walks a tree and hashes every file in parallel.

One run owns:
- one HardLinkCache (shared by all workers, discarded afterwards)
- one BoundedTaskPool (at most ``concurrency`` files hashed at once)
- one ResultWriter (the only writer of result lines)

The walk happens on the calling thread; submissions block when the pool is
full. Every discovered file is processed even after a failure, and the first
failure decides the outcome.
"""

import logging
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, TextIO

from treedigest.common import LogContext, clean_absolute_path

from .config import HasherConfig
from .digests import DIGEST_CHUNK_SIZE, DEFAULT_ALGORITHM, DigestAlgorithm, resolve_algorithm
from .discovery import TreeWalker, compile_exclusion
from .errors import classify_error
from .file_worker import make_file_task
from .hardlinks import HardLinkCache
from .parallel.bounded_pool import BoundedTaskPool
from .parallel.result_writer import ResultWriter

logger = logging.getLogger(__name__)


@dataclass
class RunOutcome:
    """Summary of one run.

    ``files_processed`` counts submissions made by the walk; ``computed`` and
    ``reused`` count result lines actually written.
    """
    root: Path
    algorithm: DigestAlgorithm
    files_processed: int = 0
    computed: int = 0
    reused: int = 0
    walk_errors: int = 0
    skipped: int = 0
    excluded: int = 0
    duration_seconds: float = 0.0
    first_error: Optional[BaseException] = field(default=None, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.first_error is None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "root": str(self.root),
            "algorithm": self.algorithm.value,
            "files_processed": self.files_processed,
            "computed": self.computed,
            "reused": self.reused,
            "walk_errors": self.walk_errors,
            "skipped": self.skipped,
            "excluded": self.excluded,
            "duration_seconds": round(self.duration_seconds, 3),
            "status": "completed" if self.succeeded else "failed",
        }


class TreeDigestRunner:
    """Hashes every file under a root directory."""

    def __init__(
        self,
        root: Path | str,
        concurrency: int = 8,
        follow_symlinks: bool = False,
        algorithm: str | DigestAlgorithm = DEFAULT_ALGORITHM,
        exclude_pattern: Optional[str] = None,
        chunk_size: int = DIGEST_CHUNK_SIZE,
        stream: Optional[TextIO] = None,
    ):
        """Validate configuration. Nothing is read from disk yet.

        Args:
            root: Directory to hash (made absolute and cleaned)
            concurrency: Maximum concurrent file workers (<= 0 for unlimited)
            follow_symlinks: Hash link targets instead of skipping links
            algorithm: Digest algorithm; unknown identifiers fall back to sha256 with a warning
            exclude_pattern: Optional regular expression for paths to skip
            chunk_size: Read size when streaming files
            stream: Output stream for result lines (default: sys.stdout)

        Raises:
            InvalidPatternError: If exclude_pattern does not compile
        """
        self.exclude = compile_exclusion(exclude_pattern)
        self.algorithm = resolve_algorithm(algorithm)
        self.root = clean_absolute_path(root)
        self.concurrency = concurrency
        self.follow_symlinks = follow_symlinks
        self.chunk_size = chunk_size
        self.stream = stream if stream is not None else sys.stdout

        logger.info(
            f"Initialized TreeDigestRunner: {{'root': {str(self.root)!r}, 'algorithm': {self.algorithm.value!r}, "
            f"'concurrency': {concurrency}, 'follow_symlinks': {follow_symlinks}, "
            f"'exclude': {exclude_pattern!r}}}"
        )

    def run(self) -> RunOutcome:
        """Walk the tree, hash every eligible file and wait for all of them."""
        outcome = RunOutcome(root=self.root, algorithm=self.algorithm)
        cache = HardLinkCache()
        walker = TreeWalker(self.root, self.exclude, self.follow_symlinks)
        pool = BoundedTaskPool(self.concurrency)
        writer = ResultWriter(self.stream)

        start_time = time.time()
        with LogContext(logger, root=str(self.root), algorithm=self.algorithm.value):
            writer.start()
            try:
                with pool:
                    for entry in walker.walk():
                        pool.submit(make_file_task(
                            entry, cache, self.algorithm, writer.emit, self.chunk_size
                        ))
                        outcome.files_processed += 1
            finally:
                writer.close()

            outcome.first_error = pool.first_error or writer.write_error
            outcome.computed = writer.computed
            outcome.reused = writer.reused
            outcome.walk_errors = walker.walk_errors
            outcome.skipped = walker.entries_skipped
            outcome.excluded = walker.excluded
            outcome.duration_seconds = time.time() - start_time

            if outcome.first_error is not None:
                logger.error(
                    f"Run failed: {{'category': {classify_error(outcome.first_error)!r}, "
                    f"'error': {str(outcome.first_error)!r}, 'failed_tasks': {pool.tasks_failed}}}"
                )
            logger.info(f"Run summary: {outcome.to_dict()}")
            logger.info(f"Files processed: {outcome.files_processed}")

        return outcome


def run_tree_digest(config: HasherConfig, stream: Optional[TextIO] = None) -> RunOutcome:
    """Build a runner from configuration and run it."""
    runner = TreeDigestRunner(
        root=config.root_path,
        concurrency=config.concurrency,
        follow_symlinks=config.follow_symlinks,
        algorithm=config.hash_algorithm,
        exclude_pattern=config.exclude_pattern,
        chunk_size=config.chunk_size,
        stream=stream,
    )
    return runner.run()
