"""
Unit tests for the worker thread pool.
"""

import threading

import pytest

from bookserver.core.thread_pool import ThreadPool


class TestThreadPool:

    def test_runs_tasks(self):
        pool = ThreadPool(min_workers=2, max_workers=2)
        pool.start()
        done = threading.Event()
        results = []

        def task(value):
            results.append(value)
            done.set()

        try:
            assert pool.submit(task, args=(42,)) is True
            assert done.wait(2.0)
        finally:
            pool.shutdown()

        assert results == [42]

    def test_submit_before_start(self):
        with pytest.raises(RuntimeError):
            ThreadPool().submit(print)

    def test_full_queue_rejects(self):
        pool = ThreadPool(min_workers=1, max_workers=1, queue_size=1)
        pool.start()
        started = threading.Event()
        release = threading.Event()

        def blocker():
            started.set()
            release.wait(5.0)

        try:
            assert pool.submit(blocker)
            assert started.wait(2.0)
            assert pool.submit(lambda: None, block=False) is True
            assert pool.submit(lambda: None, block=False) is False
        finally:
            release.set()
            pool.shutdown()

    def test_failing_task_does_not_kill_worker(self):
        pool = ThreadPool(min_workers=1, max_workers=1)
        pool.start()
        done = threading.Event()

        def boom():
            raise RuntimeError("boom")

        try:
            pool.submit(boom)
            pool.submit(done.set)
            assert done.wait(2.0)
        finally:
            pool.shutdown()

    def test_scales_up_when_busy(self):
        pool = ThreadPool(min_workers=1, max_workers=3)
        pool.start()
        started = threading.Event()
        release = threading.Event()

        def blocker():
            started.set()
            release.wait(5.0)

        try:
            pool.submit(blocker)
            assert started.wait(2.0)
            pool.submit(lambda: None)
            assert pool.worker_count == 2
        finally:
            release.set()
            pool.shutdown()

    def test_submit_after_shutdown(self):
        pool = ThreadPool(min_workers=1, max_workers=1)
        pool.start()
        pool.shutdown()

        with pytest.raises(RuntimeError):
            pool.submit(print)

    def test_stats_count_outcomes(self):
        pool = ThreadPool(min_workers=1, max_workers=1, queue_size=10)
        pool.start()
        done = threading.Event()

        def boom():
            raise RuntimeError("boom")

        try:
            pool.submit(boom)
            pool.submit(lambda: None)
            pool.submit(done.set)
            assert done.wait(2.0)
            stats = pool.stats
        finally:
            pool.shutdown()

        assert stats["workers"]["min"] == 1
        assert stats["workers"]["max"] == 1
        assert stats["queue"]["max"] == 10
        assert stats["tasks"]["failed"] == 1
        assert stats["tasks"]["completed"] >= 1
