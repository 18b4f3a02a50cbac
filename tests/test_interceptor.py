"""Tests for the enqueue interceptor."""

from __future__ import annotations

import itertools

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from job_status.errors import StoreUnavailableError
from job_status.interceptor import EnqueueInterceptor
from job_status.queue import LocalQueue, RejectingMiddleware
from job_status.storage import InMemoryStatusStore
from job_status.types import JobStatus


def sequential_ids():
    counter = itertools.count(1)
    return lambda: f"job-{next(counter)}"


class ExplodingQueue:
    async def enqueue(self, job_id, job_type, args):
        raise RuntimeError("queue down")


class UndeletableStore(InMemoryStatusStore):
    async def delete(self, job_id):
        raise StoreUnavailableError("cannot delete")


class TestEnqueue:
    """Test the enqueue path."""

    async def test_accepted_job_has_queued_record(self, store, local_queue, hooks, metrics):
        interceptor = EnqueueInterceptor(store, local_queue, id_factory=sequential_ids(), hooks=hooks)

        job_id = await interceptor.enqueue("import", "data.csv", 10, queue_name="bulk")

        assert job_id == "job-1"
        record = await store.load(job_id)
        assert record.status == JobStatus.QUEUED
        assert record.args == ["data.csv", 10]
        assert record.job_type == "import"
        assert record.queue == "bulk"
        assert metrics.count("job.enqueued") == 1

    async def test_only_the_job_id_travels_through_the_queue(self, store, local_queue):
        interceptor = EnqueueInterceptor(store, local_queue)

        job_id = await interceptor.enqueue("import", {"big": "x" * 100})

        [job] = local_queue.pending
        assert job.job_id == job_id
        assert job.job_type == "import"
        assert job.args == [job_id]

    async def test_default_ids_are_unique(self, store, local_queue):
        interceptor = EnqueueInterceptor(store, local_queue)

        ids = {await interceptor.enqueue("t") for _ in range(20)}

        assert len(ids) == 20
        assert all(len(job_id) == 24 for job_id in ids)

    async def test_rejected_job_leaves_no_record(self, store, hooks, metrics):
        queue = LocalQueue(middlewares=[RejectingMiddleware()])
        interceptor = EnqueueInterceptor(store, queue, id_factory=sequential_ids(), hooks=hooks)

        assert await interceptor.enqueue("import", 1) is None
        assert await store.load("job-1") is None
        assert await store.count() == 0
        assert metrics.count("job.rejected") == 1
        assert metrics.count("job.enqueued") == 0

    async def test_rejection_delete_failure_is_swallowed(self, clock):
        store = UndeletableStore(time_func=clock)
        queue = LocalQueue(middlewares=[RejectingMiddleware()])
        interceptor = EnqueueInterceptor(store, queue, id_factory=sequential_ids())

        assert await interceptor.enqueue("import") is None
        # Left for the TTL to reclaim
        assert await store.load("job-1") is not None

    async def test_queue_exception_removes_record_and_propagates(self, store):
        interceptor = EnqueueInterceptor(store, ExplodingQueue(), id_factory=sequential_ids())

        with pytest.raises(RuntimeError, match="queue down"):
            await interceptor.enqueue("import")
        assert await store.load("job-1") is None

    async def test_store_failure_aborts_before_submit(self, redis_store, fake_redis, local_queue):
        fake_redis.error = RedisConnectionError("refused")
        interceptor = EnqueueInterceptor(redis_store, local_queue)

        with pytest.raises(StoreUnavailableError):
            await interceptor.enqueue("import")
        assert local_queue.pending == []
