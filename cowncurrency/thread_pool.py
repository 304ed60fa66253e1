"""Thread pool that records failed jobs and reports them on shutdown."""

from __future__ import annotations

import queue
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

_STOP = object()


@dataclass(frozen=True)
class PanicRecord:
    """A job that raised, with the local time it happened."""

    time: datetime
    info: str

    def __str__(self) -> str:
        return f"[Panic:] [{self.time:%Y-%m-%d %H:%M:%S}] {self.info}"


class ThreadPoolPanicked(RuntimeError):
    """Raised on shutdown when one or more jobs raised."""

    def __init__(self, records) -> None:
        self.records = tuple(records)
        super().__init__("\n".join(str(r) for r in self.records))


class ThreadPool:
    """Fixed number of worker threads running submitted jobs."""

    def __init__(self, size: int) -> None:
        if size <= 0:
            raise ValueError("thread pool size must be positive")
        self._jobs: "queue.SimpleQueue" = queue.SimpleQueue()
        self._idle = threading.Condition()
        self._pending = 0
        self._closed = False
        self._panics: List[PanicRecord] = []
        self._panic_lock = threading.Lock()
        self._workers = [
            threading.Thread(target=self._work, name=f"pool-worker-{i}", daemon=True)
            for i in range(size)
        ]
        for worker in self._workers:
            worker.start()

    def _work(self) -> None:
        while True:
            job = self._jobs.get()
            if job is _STOP:
                return
            try:
                job()
            except Exception as exc:
                record = PanicRecord(datetime.now(), str(exc) or type(exc).__name__)
                with self._panic_lock:
                    self._panics.append(record)
            finally:
                with self._idle:
                    self._pending -= 1
                    if self._pending == 0:
                        self._idle.notify_all()

    def execute(self, f: Callable[[], object]) -> None:
        """Queue ``f`` to run on a worker thread."""
        with self._idle:
            if self._closed:
                raise RuntimeError("thread pool is shut down")
            self._pending += 1
        self._jobs.put(f)

    def join(self) -> None:
        """Block until every queued job has finished."""
        with self._idle:
            self._idle.wait_for(lambda: self._pending == 0)

    def panicked(self) -> bool:
        """Return whether any job has raised."""
        with self._panic_lock:
            return bool(self._panics)

    def shutdown(self) -> None:
        """Finish queued jobs, stop the workers and report any failed job."""
        with self._idle:
            if self._closed:
                return
            self._closed = True
        self.join()
        for _ in self._workers:
            self._jobs.put(_STOP)
        current = threading.current_thread()
        for worker in self._workers:
            if worker is not current:
                worker.join()
        with self._panic_lock:
            records = list(self._panics)
        if records:
            raise ThreadPoolPanicked(records)

    def __enter__(self) -> "ThreadPool":
        return self

    def __exit__(self, *args) -> None:
        self.shutdown()


_GLOBAL_SIZE = 8
_global_lock = threading.Lock()
_global: Optional[ThreadPool] = None


def global_pool() -> ThreadPool:
    """Return the process-wide shared pool, creating it on first use."""
    global _global
    with _global_lock:
        if _global is None:
            _global = ThreadPool(_GLOBAL_SIZE)
        return _global