"""Parallel directory tree hashing."""

from .config import HasherConfig, TreeDigestConfig
from .digests import DigestAlgorithm, DEFAULT_ALGORITHM, new_hasher, resolve_algorithm
from .runner import RunOutcome, TreeDigestRunner, run_tree_digest

__all__ = [
    'HasherConfig',
    'TreeDigestConfig',
    'DigestAlgorithm',
    'DEFAULT_ALGORITHM',
    'new_hasher',
    'resolve_algorithm',
    'RunOutcome',
    'TreeDigestRunner',
    'run_tree_digest',
]
