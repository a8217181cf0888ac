"""Parallel processing components for the tree hasher.

This package contains the parallel processing infrastructure:
- Bounded task pool: runs hashing tasks on at most N threads, keeps the first error
- Result writer: single thread that serializes result lines to the output stream
"""

from .bounded_pool import BoundedTaskPool
from .result_writer import ResultWriter

__all__ = [
    "BoundedTaskPool",
    "ResultWriter",
]
