"""Per-run cache of digests for hard-linked files.

Hard links share one inode, so their content digest only needs computing
once. The cache maps an inode identity ``(st_dev, st_ino)`` to the hex
digest of the first path that was hashed for it.

Concurrent workers meeting the same inode for the first time are serialized
with a claim: the first caller computes, the others wait for its digest.
If the owner fails, its claim is released and one waiter takes over.
Even without claims a duplicate computation would only ever store the same
value, since the digest is a pure function of the file content.
"""

import logging
import os
import threading
from typing import Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)

InodeIdentity = Tuple[int, int]


def inode_identity(st: os.stat_result) -> Optional[InodeIdentity]:
    """Return (device, inode) for a stat result, or None when the platform has no inode numbers."""
    if not st.st_ino:
        return None
    return (st.st_dev, st.st_ino)


class HardLinkCache:
    """Thread-safe inode identity -> digest mapping scoped to one run.

    Entries are inserted at most once and never updated or removed.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._digests: Dict[Hashable, str] = {}
        self._pending: Dict[Hashable, threading.Event] = {}

    def get(self, identity: Hashable) -> Optional[str]:
        """Non-blocking lookup."""
        with self._lock:
            return self._digests.get(identity)

    def put_if_absent(self, identity: Hashable, digest: str) -> bool:
        """Store digest unless one is already cached.

        Also completes any claim on identity, waking its waiters.

        Returns:
            True if this call inserted the entry
        """
        with self._lock:
            inserted = identity not in self._digests
            if inserted:
                self._digests[identity] = digest
            pending = self._pending.pop(identity, None)
        if pending is not None:
            pending.set()
        return inserted

    def claim(self, identity: Hashable) -> Optional[str]:
        """Return the cached digest, or make the caller responsible for computing it.

        Returns None exactly once per identity at a time: that caller must later
        call ``put_if_absent`` or ``release``. Other callers block meanwhile.
        """
        while True:
            with self._lock:
                digest = self._digests.get(identity)
                if digest is not None:
                    return digest
                pending = self._pending.get(identity)
                if pending is None:
                    self._pending[identity] = threading.Event()
                    return None
            logger.debug(f"Waiting for in-flight digest of inode {identity}")
            pending.wait()

    def release(self, identity: Hashable) -> None:
        """Abandon a claim without storing a digest."""
        with self._lock:
            pending = self._pending.pop(identity, None)
        if pending is not None:
            pending.set()

    def __contains__(self, identity: Hashable) -> bool:
        with self._lock:
            return identity in self._digests

    def __len__(self) -> int:
        with self._lock:
            return len(self._digests)
