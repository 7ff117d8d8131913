"""
Tests for the bounded statement executor
"""

import threading
import pytest

from tenant_ledger.exceptions import CapacityExceededError
from tenant_ledger.executor import JobExecutor


class TestJobExecutor:

    def setup_method(self):
        self.release = threading.Event()
        self.executor = JobExecutor(core_workers=1, max_workers=2, queue_capacity=1)

    def teardown_method(self):
        self.release.set()
        self.executor.shutdown(wait=True, timeout=5)

    def _blocking_task(self, started=None):
        def task():
            if started is not None:
                started.set()
            self.release.wait(5)
        return task

    def test_runs_tasks(self):
        done = []
        self.executor.submit("job-1", done.append, "job-1")
        self.executor.submit("job-2", done.append, "job-2")

        assert self.executor.wait_idle(timeout=5)
        assert sorted(done) == ["job-1", "job-2"]
        assert self.executor.in_flight == 0

    def test_capacity_is_threads_plus_queue(self):
        assert self.executor.capacity == 3

    def test_rejects_beyond_capacity(self):
        started = threading.Event()
        self.executor.submit("job-1", self._blocking_task(started))
        assert started.wait(5)
        self.executor.submit("job-2", self._blocking_task())
        self.executor.submit("job-3", self._blocking_task())

        with pytest.raises(CapacityExceededError) as exc_info:
            self.executor.submit("job-4", self._blocking_task())
        assert exc_info.value.retryable
        assert self.executor.in_flight == 3

        self.release.set()
        assert self.executor.wait_idle(timeout=5)

        # Capacity frees up once the backlog drains
        self.executor.submit("job-4", lambda: None)
        assert self.executor.wait_idle(timeout=5)

    def test_grows_past_core_under_load(self):
        started = threading.Event()
        self.executor.submit("job-1", self._blocking_task(started))
        assert started.wait(5)
        assert self.executor.worker_count == 1

        self.executor.submit("job-2", self._blocking_task())
        self.executor.submit("job-3", self._blocking_task())
        assert self.executor.worker_count == 2

    def test_rejects_duplicate_job_id(self):
        self.executor.submit("job-1", self._blocking_task())
        with pytest.raises(ValueError):
            self.executor.submit("job-1", self._blocking_task())

    def test_task_exception_does_not_kill_worker(self):
        def explode():
            raise RuntimeError("boom")

        done = threading.Event()
        self.executor.submit("job-1", explode)
        assert self.executor.wait_idle(timeout=5)
        self.executor.submit("job-2", done.set)

        assert done.wait(5)

    def test_thread_names_use_prefix(self):
        names = []
        self.executor.submit("job-1", lambda: names.append(threading.current_thread().name))

        assert self.executor.wait_idle(timeout=5)
        assert names[0].startswith("async-statement-")

    def test_submit_after_shutdown(self):
        self.executor.shutdown(wait=True)
        with pytest.raises(RuntimeError):
            self.executor.submit("job-1", lambda: None)

    def test_shutdown_drains_queue(self):
        done = []
        started = threading.Event()
        self.executor.submit("job-1", self._blocking_task(started))
        assert started.wait(5)
        self.executor.submit("job-2", done.append, "job-2")

        self.release.set()
        self.executor.shutdown(wait=True, timeout=5)

        assert done == ["job-2"]

    def test_stats(self):
        stats = self.executor.stats()
        assert stats["capacity"] == 3
        assert stats["in_flight"] == 0
        assert stats["queued"] == 0


class TestJobExecutorValidation:

    @pytest.mark.parametrize("kwargs", [
        {"core_workers": 0},
        {"core_workers": 3, "max_workers": 2},
        {"queue_capacity": 0},
    ])
    def test_invalid_sizing(self, kwargs):
        with pytest.raises(ValueError):
            JobExecutor(**kwargs)
