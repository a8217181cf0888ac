"""Bounded task pool for parallel hashing.

Runs zero-argument tasks on worker threads with a concurrency cap:

- limit > 0: ``limit`` worker threads pull tasks from a work queue of the same
  maxsize. ``submit`` blocks while the queue is full, which throttles the
  producer (backpressure).
- limit <= 0: unbounded. Every task gets its own thread and ``submit`` never blocks.

A failing task never cancels the others. Every submitted task runs to
completion and ``join`` returns the first exception raised by any of them.
"""

import logging
import threading
from queue import Queue
from typing import Any, Callable, List, Optional

from ..errors import PoolClosedError, classify_error

logger = logging.getLogger(__name__)

Task = Callable[[], Any]

# Finished per-task threads are pruned after this many unbounded submissions
_PRUNE_INTERVAL = 1024


class BoundedTaskPool:
    """Fixed-capacity task dispatcher with "first error, run to completion" semantics."""

    def __init__(self, limit: int, name: str = "Worker"):
        """Initialize the pool. Threads start lazily on first submit.

        Args:
            limit: Maximum number of concurrently running tasks (<= 0 for unlimited)
            name: Thread name prefix
        """
        self.limit = limit
        self.name = name

        self.work_queue: Optional[Queue] = None
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self._first_error: Optional[BaseException] = None
        self._submitted = 0
        self._failed = 0
        self._started = False
        self._closed = False

    @property
    def bounded(self) -> bool:
        return self.limit > 0

    @property
    def first_error(self) -> Optional[BaseException]:
        with self._lock:
            return self._first_error

    @property
    def tasks_submitted(self) -> int:
        return self._submitted

    @property
    def tasks_failed(self) -> int:
        with self._lock:
            return self._failed

    def start(self) -> None:
        """Start worker threads (bounded mode). Safe to call more than once."""
        if self._started:
            return
        self._started = True

        if not self.bounded:
            logger.info("Started unbounded task pool (one thread per task)")
            return

        self.work_queue = Queue(maxsize=self.limit)
        for i in range(self.limit):
            thread = threading.Thread(
                target=self._worker_main,
                args=(i,),
                name=f"{self.name}-{i}",
            )
            thread.start()
            self._threads.append(thread)

        logger.info(f"Started worker threads: {{'count': {self.limit}}}")

    def submit(self, task: Task) -> None:
        """Queue a task, blocking while the pool is at capacity.

        Raises:
            PoolClosedError: If the pool has already been joined
        """
        if self._closed:
            raise PoolClosedError(f"pool {self.name} is closed", pool=self.name)
        self.start()

        index = self._submitted
        self._submitted += 1

        if self.bounded:
            self.work_queue.put(task)
            return

        thread = threading.Thread(
            target=self._run_task,
            args=(task,),
            name=f"{self.name}-{index}",
        )
        thread.start()
        self._threads.append(thread)
        if self._submitted % _PRUNE_INTERVAL == 0:
            self._threads = [t for t in self._threads if t.is_alive()]

    def join(self) -> Optional[BaseException]:
        """Wait for every submitted task, then stop the workers.

        Returns:
            The first exception raised by any task, or None
        """
        if not self._closed:
            self._closed = True

            if self.bounded and self.work_queue is not None:
                # One sentinel per worker; queued tasks ahead of them still run
                for _ in range(len(self._threads)):
                    self.work_queue.put(None)

            for thread in self._threads:
                thread.join()
            self._threads = []

            logger.info(
                f"Task pool finished: {{'submitted': {self._submitted}, 'failed': {self.tasks_failed}}}"
            )

        return self.first_error

    def __enter__(self) -> "BoundedTaskPool":
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.join()

    def _worker_main(self, thread_id: int) -> None:
        """Worker loop: run tasks until a None sentinel arrives."""
        logger.debug(f"Worker thread {thread_id} started")
        processed_count = 0

        while True:
            task = self.work_queue.get()
            try:
                if task is None:
                    logger.debug(f"Worker thread {thread_id} received shutdown sentinel")
                    break
                self._run_task(task)
                processed_count += 1
            finally:
                self.work_queue.task_done()

        logger.debug(f"Worker thread {thread_id} shutting down (processed={processed_count})")

    def _run_task(self, task: Task) -> None:
        try:
            task()
        except Exception as e:
            self._record_error(e)

    def _record_error(self, error: BaseException) -> None:
        with self._lock:
            self._failed += 1
            if self._first_error is None:
                self._first_error = error
        logger.error(
            f"Task failed in {threading.current_thread().name}: "
            f"{{'category': {classify_error(error)!r}, 'error': {str(error)!r}}}"
        )
