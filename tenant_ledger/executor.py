"""
Statement Job Executor

Runs statement processing off the request path on a bounded worker pool.

Sizing follows the classic core/max/queue model:

- up to ``core_workers`` threads are started as tasks arrive and stay alive;
- further tasks wait in a queue of ``queue_capacity`` entries;
- when the queue is full, extra threads are started up to ``max_workers``;
  they exit again after ``keep_alive`` seconds without work;
- when the queue is full and all ``max_workers`` threads are busy, ``submit``
  raises CapacityExceededError. Work is never dropped silently and the
  backlog never grows past the bound.

Each job id may have only one task queued or running at a time. There is no
cancellation and no ordering between jobs.
"""

from queue import Queue, Empty, Full
from typing import Any, Callable, Dict, List, Optional, Set, Tuple
import itertools
import threading

from .exceptions import CapacityExceededError
from .logging_config import get_logger


_STOP = object()

Task = Tuple[str, Callable[..., Any], tuple, dict]


class JobExecutor:
    """Bounded thread pool keyed by job id"""

    def __init__(
        self,
        core_workers: int = 2,
        max_workers: int = 5,
        queue_capacity: int = 100,
        thread_name_prefix: str = "async-statement-",
        keep_alive: float = 60.0
    ):
        if core_workers < 1:
            raise ValueError("core_workers must be at least 1")
        if max_workers < core_workers:
            raise ValueError("max_workers must be >= core_workers")
        if queue_capacity < 1:
            raise ValueError("queue_capacity must be at least 1")

        self.core_workers = core_workers
        self.max_workers = max_workers
        self.queue_capacity = queue_capacity
        self.thread_name_prefix = thread_name_prefix
        self.keep_alive = keep_alive
        self.logger = get_logger("tenant_ledger.executor")

        self._queue: "Queue[Any]" = Queue(maxsize=queue_capacity)
        self._cond = threading.Condition()
        self._workers: List[threading.Thread] = []
        self._in_flight: Set[str] = set()
        self._running = 0
        self._counter = itertools.count(1)
        self._shutdown = False

    @property
    def capacity(self) -> int:
        """Tasks that can be accepted at once: one per thread plus the queue"""
        return self.max_workers + self.queue_capacity

    @property
    def in_flight(self) -> int:
        with self._cond:
            return len(self._in_flight)

    @property
    def pending_count(self) -> int:
        return self._queue.qsize()

    @property
    def worker_count(self) -> int:
        with self._cond:
            return len(self._workers)

    def stats(self) -> Dict[str, int]:
        with self._cond:
            return {
                "workers": len(self._workers),
                "running": self._running,
                "queued": self._queue.qsize(),
                "in_flight": len(self._in_flight),
                "capacity": self.capacity,
            }

    def submit(self, job_id: str, fn: Callable[..., Any], *args, **kwargs) -> None:
        """
        Schedule ``fn(*args, **kwargs)`` for ``job_id``.

        Raises CapacityExceededError when the pool and queue are full,
        ValueError when the job already has a task in flight and
        RuntimeError after shutdown.
        """
        task: Task = (job_id, fn, args, kwargs)
        with self._cond:
            if self._shutdown:
                raise RuntimeError("Executor has been shut down")
            if job_id in self._in_flight:
                raise ValueError(f"Job {job_id} is already scheduled")

            if len(self._workers) < self.core_workers:
                self._spawn_worker(first_task=task, core=True)
            else:
                try:
                    self._queue.put_nowait(task)
                except Full:
                    if len(self._workers) >= self.max_workers:
                        self.logger.warning(
                            "Statement queue full, rejecting job",
                            extra={"job_id": job_id, "extra": {"capacity": self.capacity}}
                        )
                        raise CapacityExceededError(self.capacity)
                    self._spawn_worker(first_task=task, core=False)

            self._in_flight.add(job_id)

    def wait_idle(self, timeout: Optional[float] = None) -> bool:
        """Block until no task is queued or running; False on timeout"""
        with self._cond:
            return self._cond.wait_for(lambda: not self._in_flight, timeout)

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Stop accepting work; queued tasks still run before workers exit"""
        with self._cond:
            first_call = not self._shutdown
            self._shutdown = True
            workers = list(self._workers)

        if first_call:
            # One stop marker per worker, queued behind any remaining work
            remaining = len(workers)
            while remaining and self.worker_count:
                try:
                    self._queue.put(_STOP, timeout=0.1)
                    remaining -= 1
                except Full:
                    continue

        if wait:
            for worker in workers:
                worker.join(timeout)

    # Internal

    def _spawn_worker(self, first_task: Optional[Task], core: bool) -> None:
        thread = threading.Thread(
            target=self._work,
            args=(first_task, core),
            name=f"{self.thread_name_prefix}{next(self._counter)}",
            daemon=True
        )
        self._workers.append(thread)
        thread.start()

    def _work(self, task: Optional[Task], core: bool) -> None:
        try:
            while True:
                if task is None:
                    try:
                        item = self._queue.get(timeout=None if core else self.keep_alive)
                    except Empty:
                        return
                    if item is _STOP:
                        return
                    task = item
                self._run(task)
                task = None
        finally:
            with self._cond:
                current = threading.current_thread()
                if current in self._workers:
                    self._workers.remove(current)
                self._cond.notify_all()

    def _run(self, task: Task) -> None:
        job_id, fn, args, kwargs = task
        with self._cond:
            self._running += 1
        try:
            fn(*args, **kwargs)
        except Exception:
            # Tasks record their own failures; the worker keeps running
            self.logger.exception("Statement task raised", extra={"job_id": job_id})
        finally:
            with self._cond:
                self._running -= 1
                self._in_flight.discard(job_id)
                self._cond.notify_all()
