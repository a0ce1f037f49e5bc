# -*- coding: utf-8 -*-
"""
dtforest.concurrency
====================

Threading primitives used for training trees and forests.

The tree builder fans out over subtrees without ever blocking inside a worker:
each spawned subtree increments a shared :class:`ModifiableCountDownLatch`
before it is scheduled and decrements it when its own frame finishes, and only
the thread that started the build waits on the latch.  Because no worker waits
on another worker, a bounded pool is enough and can not deadlock.
"""
from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor

from .exceptions import ConcurrencyInterruptedError

logger = logging.getLogger(__name__)

LOGICAL_CORES: int = os.cpu_count() or 1

_pool: ThreadPoolExecutor | None = None
_pool_lock = threading.Lock()


def get_worker_pool() -> ThreadPoolExecutor:
    """Return the process wide worker pool, creating it on first use."""
    global _pool
    with _pool_lock:
        if _pool is None:
            _pool = ThreadPoolExecutor(max_workers=max(2, LOGICAL_CORES),
                                       thread_name_prefix="dtforest")
        return _pool


def get_executor(parallel: bool) -> Executor:
    return get_worker_pool() if parallel else SynchronousExecutor()


def me_parallel(depth: int, cores: int | None = None) -> bool:
    """Whether a node at ``depth`` should parallelize its own split search."""
    cores = LOGICAL_CORES if cores is None else cores
    return (1 << depth) < 2 * cores


def child_parallel(depth: int, cores: int | None = None) -> bool:
    """Whether a node at ``depth`` should hand its children to the pool."""
    cores = LOGICAL_CORES if cores is None else cores
    return (1 << (depth + 1)) >= 2 * cores


class SynchronousExecutor(Executor):
    """Executor that runs every submitted callable immediately in the caller."""

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        try:
            result = fn(*args, **kwargs)
        except BaseException as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future


class ModifiableCountDownLatch:
    """A countdown latch whose count can also be raised after creation.

    Parameters
    ----------
    count : int
        Initial number of pending parties.
    """

    def __init__(self, count: int = 1):
        if count < 0:
            raise ValueError("count must be non-negative")
        self._count = count
        self._cond = threading.Condition()
        self._interrupted = False
        self.failures: list[BaseException] = []

    @property
    def count(self) -> int:
        with self._cond:
            return self._count

    def count_up(self) -> None:
        with self._cond:
            self._count += 1

    def count_down(self) -> None:
        with self._cond:
            if self._count > 0:
                self._count -= 1
                if self._count == 0:
                    self._cond.notify_all()

    def record_failure(self, exc: BaseException) -> None:
        """Remember an exception raised by a worker so the waiter can re-raise it."""
        with self._cond:
            self.failures.append(exc)

    def interrupt(self) -> None:
        """Wake up the waiting thread and make :meth:`await_` raise."""
        with self._cond:
            self._interrupted = True
            self._cond.notify_all()

    def await_(self, timeout: float | None = None) -> bool:
        """Block until the count reaches zero.

        Returns ``False`` if ``timeout`` elapsed first.

        Raises
        ------
        ConcurrencyInterruptedError
            If :meth:`interrupt` was called before the count reached zero.
        """
        with self._cond:
            done = self._cond.wait_for(lambda: self._count == 0 or self._interrupted,
                                       timeout=timeout)
            if self._interrupted and self._count != 0:
                raise ConcurrencyInterruptedError(
                    f"interrupted while waiting on {self._count} pending tasks")
            return done


def parallel_run(parallel: bool, n: int, fn, executor: Executor | None = None) -> None:
    """Run ``fn(start, end)`` over contiguous blocks covering ``range(n)``.

    With ``parallel=False`` a single block ``(0, n)`` runs in the caller.
    Otherwise ``range(n)`` is split into at most ``LOGICAL_CORES`` blocks of
    near equal size which run on the worker pool; the call returns once every
    block is done and re-raises the first failure.
    """
    if n <= 0:
        return
    if not parallel or n == 1:
        fn(0, n)
        return
    executor = executor or get_worker_pool()
    blocks = min(n, LOGICAL_CORES)
    bounds = [n * b // blocks for b in range(blocks + 1)]
    futures = [executor.submit(fn, bounds[b], bounds[b + 1]) for b in range(blocks)]
    for future in futures:
        future.result()
