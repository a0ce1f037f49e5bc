import threading

import pytest

from dtforest import ConcurrencyInterruptedError
from dtforest.concurrency import (ModifiableCountDownLatch, SynchronousExecutor, child_parallel,
                                  get_worker_pool, me_parallel, parallel_run)


def test_latch_can_grow_before_it_reaches_zero():
    latch = ModifiableCountDownLatch(1)
    latch.count_up()
    latch.count_down()
    assert latch.count == 1
    assert latch.await_(timeout=0.01) is False
    latch.count_down()
    assert latch.count == 0
    assert latch.await_(timeout=0.01) is True


def test_latch_releases_waiter_from_other_threads():
    latch = ModifiableCountDownLatch(3)
    workers = [threading.Thread(target=latch.count_down) for _ in range(3)]
    for w in workers:
        w.start()
    assert latch.await_(timeout=5)
    for w in workers:
        w.join()


def test_interrupted_latch_raises():
    latch = ModifiableCountDownLatch(2)
    latch.interrupt()
    with pytest.raises(ConcurrencyInterruptedError):
        latch.await_()


def test_latch_keeps_worker_failures():
    latch = ModifiableCountDownLatch(1)
    latch.record_failure(KeyError("boom"))
    latch.count_down()
    assert latch.await_()
    assert isinstance(latch.failures[0], KeyError)


def test_negative_latch_count_is_rejected():
    with pytest.raises(ValueError):
        ModifiableCountDownLatch(-1)


@pytest.mark.parametrize("parallel", [False, True])
@pytest.mark.parametrize("n", [1, 7, 64])
def test_parallel_run_covers_every_index_once(parallel, n):
    seen = [0] * n

    def block(start, end):
        for i in range(start, end):
            seen[i] += 1

    parallel_run(parallel, n, block)
    assert seen == [1] * n


def test_parallel_run_reraises_failures():
    def block(start, end):
        raise RuntimeError("block failed")

    with pytest.raises(RuntimeError):
        parallel_run(True, 8, block)


def test_depth_policy_switches_from_split_to_node_parallelism():
    assert me_parallel(0, cores=4)
    assert me_parallel(2, cores=4)
    assert not me_parallel(3, cores=4)
    assert not child_parallel(1, cores=4)
    assert child_parallel(2, cores=4)
    assert child_parallel(5, cores=4)


def test_synchronous_executor_runs_in_the_caller():
    caller = threading.get_ident()
    future = SynchronousExecutor().submit(threading.get_ident)
    assert future.result() == caller
    failed = SynchronousExecutor().submit(lambda: 1 / 0)
    with pytest.raises(ZeroDivisionError):
        failed.result()


def test_worker_pool_is_shared():
    assert get_worker_pool() is get_worker_pool()
