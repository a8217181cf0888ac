"""Tests for the bounded task pool."""

import threading
import time

import pytest

from treedigest.hasher.errors import PoolClosedError
from treedigest.hasher.parallel.bounded_pool import BoundedTaskPool


class ConcurrencyProbe:
    """Records the peak number of tasks running at once."""

    def __init__(self):
        self.lock = threading.Lock()
        self.active = 0
        self.peak = 0
        self.completed = 0

    def task(self, duration=0.01):
        def run():
            with self.lock:
                self.active += 1
                self.peak = max(self.peak, self.active)
            time.sleep(duration)
            with self.lock:
                self.active -= 1
                self.completed += 1
        return run


class TestBoundedTaskPool:
    """Tests for BoundedTaskPool."""

    @pytest.mark.parametrize("limit", [1, 2, 4])
    def test_concurrency_limit_respected(self, limit):
        """Test that no more than limit tasks are ever active."""
        probe = ConcurrencyProbe()
        pool = BoundedTaskPool(limit)

        for _ in range(limit * 6):
            pool.submit(probe.task())
        error = pool.join()

        assert error is None
        assert probe.completed == limit * 6
        assert 1 <= probe.peak <= limit

    def test_limit_reached_under_load(self):
        """Test that the pool actually runs tasks in parallel."""
        probe = ConcurrencyProbe()
        pool = BoundedTaskPool(4)

        for _ in range(16):
            pool.submit(probe.task(duration=0.05))
        pool.join()

        assert probe.peak > 1

    @pytest.mark.parametrize("limit", [0, -1])
    def test_unlimited_runs_everything_at_once(self, limit):
        """Test that limit <= 0 starts every task immediately."""
        count = 6
        barrier = threading.Barrier(count, timeout=5)
        pool = BoundedTaskPool(limit)

        # Deadlocks (BrokenBarrierError) unless all tasks run concurrently
        for _ in range(count):
            pool.submit(barrier.wait)
        error = pool.join()

        assert error is None
        assert pool.tasks_submitted == count

    def test_first_error_returned_and_others_complete(self):
        """Test run-to-completion semantics with first error retained."""
        completed = []
        pool = BoundedTaskPool(1)

        def fail(tag):
            def run():
                raise OSError(f"failure {tag}")
            return run

        pool.submit(lambda: completed.append(1))
        pool.submit(fail("first"))
        pool.submit(lambda: completed.append(2))
        pool.submit(fail("second"))
        pool.submit(lambda: completed.append(3))
        error = pool.join()

        assert isinstance(error, OSError)
        assert str(error) == "failure first"
        assert completed == [1, 2, 3]
        assert pool.tasks_failed == 2
        assert pool.tasks_submitted == 5

    def test_submit_blocks_when_full(self):
        """Test backpressure: submit waits while the pool is at capacity."""
        gate = threading.Event()
        started = threading.Event()
        pool = BoundedTaskPool(1)

        def blocker():
            started.set()
            gate.wait(timeout=5)

        pool.submit(blocker)
        assert started.wait(timeout=5)
        pool.submit(lambda: None)  # fills the queue

        submitted = threading.Event()

        def producer():
            pool.submit(lambda: None)
            submitted.set()

        thread = threading.Thread(target=producer)
        thread.start()

        assert not submitted.wait(timeout=0.2)
        gate.set()
        assert submitted.wait(timeout=5)

        thread.join(timeout=5)
        assert pool.join() is None
        assert pool.tasks_submitted == 3

    def test_join_without_tasks(self):
        """Test that an unused pool joins cleanly."""
        pool = BoundedTaskPool(3)
        assert pool.join() is None
        assert pool.tasks_submitted == 0

    def test_join_is_idempotent(self):
        """Test that calling join twice returns the same first error."""
        pool = BoundedTaskPool(2)
        error = ValueError("boom")

        def fail():
            raise error

        pool.submit(fail)
        assert pool.join() is error
        assert pool.join() is error
        assert pool.first_error is error

    def test_submit_after_join_rejected(self):
        """Test that a closed pool refuses new work."""
        pool = BoundedTaskPool(2)
        pool.join()
        with pytest.raises(PoolClosedError):
            pool.submit(lambda: None)

    def test_context_manager_joins(self):
        """Test that leaving the with-block waits for tasks."""
        results = []
        with BoundedTaskPool(2) as pool:
            for i in range(5):
                pool.submit(lambda i=i: results.append(i))

        assert sorted(results) == [0, 1, 2, 3, 4]
        with pytest.raises(PoolClosedError):
            pool.submit(lambda: None)

    def test_worker_threads_named(self):
        """Test that worker threads carry the pool name."""
        names = []
        pool = BoundedTaskPool(1, name="Hasher")
        pool.submit(lambda: names.append(threading.current_thread().name))
        pool.join()

        assert names == ["Hasher-0"]
