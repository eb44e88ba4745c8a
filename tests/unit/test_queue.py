"""
Unit tests for the pending queue.
"""

import pytest

from hashfleet.core.constants import QUEUE_KEY
from hashfleet.jobs.models import QueueEntry
from hashfleet.jobs.queue import JobQueue


class TestJobQueue:
    """Test FIFO semantics of the Redis list queue."""

    @pytest.mark.asyncio
    async def test_fifo_order(self, fake_redis):
        queue = JobQueue(fake_redis)
        for job_id in ("a", "b", "c"):
            await queue.enqueue(QueueEntry(job_id=job_id, text="t", algorithm="sha256"))

        popped = [await queue.blocking_dequeue(timeout=0.05) for _ in range(3)]

        assert [entry.job_id for entry in popped] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_enqueue_returns_depth(self, fake_redis):
        queue = JobQueue(fake_redis)
        assert await queue.enqueue(QueueEntry(job_id="a", text="t", algorithm="sha256")) == 1
        assert await queue.enqueue(QueueEntry(job_id="b", text="t", algorithm="sha256")) == 2
        assert await queue.depth() == 2

    @pytest.mark.asyncio
    async def test_timeout_returns_none(self, fake_redis):
        queue = JobQueue(fake_redis)
        assert await queue.blocking_dequeue(timeout=0.02) is None

    @pytest.mark.asyncio
    async def test_malformed_entry_is_dropped(self, fake_redis):
        await fake_redis.lpush(QUEUE_KEY, "{broken")
        queue = JobQueue(fake_redis)

        assert await queue.blocking_dequeue(timeout=0.05) is None
        assert await queue.depth() == 0

    @pytest.mark.asyncio
    async def test_entry_without_text_is_delivered(self, fake_redis):
        await fake_redis.lpush(QUEUE_KEY, '{"jobId": "j1", "algorithm": "sha256"}')

        entry = await JobQueue(fake_redis).blocking_dequeue(timeout=0.05)

        assert entry.job_id == "j1"
        assert entry.text is None

    @pytest.mark.asyncio
    async def test_clear_keeps_records(self, fake_redis, seed_job):
        seed_job("j1")
        queue = JobQueue(fake_redis)
        await queue.enqueue(QueueEntry(job_id="j1", text="t", algorithm="sha256"))

        assert await queue.clear() is True
        assert await queue.depth() == 0
        assert fake_redis.job_data("j1")["status"] == "queued"
