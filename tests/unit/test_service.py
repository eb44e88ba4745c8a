"""
Unit tests for the job service (admission control and lookups).
"""

import json

import pytest

from hashfleet.core.config import Settings
from hashfleet.core.constants import QUEUE_KEY, SCALER_STATUS_KEY
from hashfleet.core.exceptions import AdmissionError, BackpressureError
from hashfleet.jobs.liveness import LivenessRegistry
from hashfleet.jobs.service import JobService, project_batch_item, project_job


@pytest.fixture
def service(fake_redis, settings):
    return JobService(fake_redis, settings)


class TestSubmit:
    """Test admission control."""

    @pytest.mark.asyncio
    async def test_submit_creates_record_and_entry(self, fake_redis, service):
        job_id = await service.submit("hello", "sha256")

        data = fake_redis.job_data(job_id)
        assert data["status"] == "queued"
        assert data["text"] == "hello"
        assert data["algorithm"] == "sha256"
        assert data["retries"] == "0"
        assert data["createdAt"].endswith("Z")

        entry = json.loads(fake_redis.queue_items()[0])
        assert entry["jobId"] == job_id
        assert entry["status"] == "queued"
        assert entry["retries"] == 0

    @pytest.mark.asyncio
    async def test_bcrypt_is_accepted(self, fake_redis, service):
        job_id = await service.submit("hello", "bcrypt")
        assert fake_redis.job_data(job_id)["algorithm"] == "bcrypt"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, "", 42])
    async def test_text_required(self, fake_redis, service, text):
        with pytest.raises(AdmissionError, match="Text is required"):
            await service.submit(text, "sha256")
        assert fake_redis.queue_items() == []

    @pytest.mark.asyncio
    async def test_unknown_algorithm(self, service):
        with pytest.raises(AdmissionError, match="Only sha256 and bcrypt"):
            await service.submit("hello", "md5")

    @pytest.mark.asyncio
    async def test_text_size_limit(self, fake_redis):
        service = JobService(fake_redis, Settings(max_text_bytes=8, simulated_delay_ms=0))

        await service.submit("12345678", "sha256")
        with pytest.raises(AdmissionError):
            await service.submit("123456789", "sha256")

    @pytest.mark.asyncio
    async def test_backpressure_creates_nothing(self, fake_redis, service):
        for i in range(5000):
            await fake_redis.lpush(QUEUE_KEY, f'{{"jobId": "x{i}"}}')

        with pytest.raises(BackpressureError, match="System overloaded"):
            await service.submit("hello", "sha256")

        assert await fake_redis.llen(QUEUE_KEY) == 5000
        assert [k async for k in fake_redis.scan_iter(match="job:*")] == []

    @pytest.mark.asyncio
    async def test_below_ceiling_is_accepted(self, fake_redis, service):
        for i in range(4999):
            await fake_redis.lpush(QUEUE_KEY, f'{{"jobId": "x{i}"}}')

        await service.submit("hello", "sha256")
        assert await fake_redis.llen(QUEUE_KEY) == 5000

    @pytest.mark.asyncio
    async def test_job_ids_are_unique(self, service):
        ids = {await service.submit("hello", "sha256") for _ in range(20)}
        assert len(ids) == 20


class TestLookups:
    """Test status projections."""

    def test_project_done(self):
        view = project_job("j1", {
            "status": "done", "algorithm": "sha256", "hash": "abc",
            "finishedAt": "t", "text": "secret",
        })
        assert view == {
            "jobId": "j1", "status": "done", "algorithm": "sha256",
            "hash": "abc", "finishedAt": "t",
        }

    def test_project_processing(self):
        view = project_job("j1", {"status": "processing", "workerId": "w1", "retries": "1"})
        assert view == {"jobId": "j1", "status": "processing", "workerId": "w1", "retries": "1"}

    def test_project_failed(self):
        view = project_job("j1", {"status": "failed", "error": "boom"})
        assert view == {"jobId": "j1", "status": "failed", "error": "boom"}

    def test_project_queued(self):
        view = project_job("j1", {"status": "queued"})
        assert view == {"jobId": "j1", "status": "queued", "error": None}

    def test_batch_unknown(self):
        assert project_batch_item("nope", {}) == {"jobId": "nope", "status": "unknown"}

    @pytest.mark.asyncio
    async def test_get_job(self, service, seed_job):
        seed_job("j1", status="done", hash="abc")
        view = await service.get_job("j1")
        assert view["hash"] == "abc"
        assert await service.get_job("missing") is None

    @pytest.mark.asyncio
    async def test_get_jobs_preserves_order(self, service, seed_job):
        seed_job("a", status="done", hash="h")
        seed_job("b", status="failed", error="boom")

        jobs = await service.get_jobs(["b", "missing", "a"])

        assert [j["jobId"] for j in jobs] == ["b", "missing", "a"]
        assert jobs[0]["error"] == "boom"
        assert jobs[1]["status"] == "unknown"
        assert jobs[2]["hash"] == "h"
        assert jobs[2]["text"] == "hello"


class TestFleetOperations:
    """Test stats and administration."""

    @pytest.mark.asyncio
    async def test_stats(self, fake_redis, service):
        await LivenessRegistry(fake_redis, 3).refresh("w1")
        await LivenessRegistry(fake_redis, 3).refresh("w2")
        await service.submit("hello", "sha256")
        await fake_redis.set(SCALER_STATUS_KEY, "scaling_up", ex=10)

        assert await service.get_stats() == {
            "activeWorkers": 2,
            "queueLength": 1,
            "scalerStatus": "scaling_up",
        }

    @pytest.mark.asyncio
    async def test_stats_default_status(self, service):
        stats = await service.get_stats()
        assert stats["scalerStatus"] == "idle"
        assert stats["activeWorkers"] == 0

    @pytest.mark.asyncio
    async def test_clear_queue_keeps_records(self, fake_redis, service):
        job_id = await service.submit("hello", "sha256")
        await service.clear_queue()

        assert fake_redis.queue_items() == []
        assert fake_redis.job_data(job_id)["status"] == "queued"

    @pytest.mark.asyncio
    async def test_autoscaling_toggle(self, service):
        assert await service.get_autoscaling() is True
        assert await service.set_autoscaling(False) is False
        assert await service.get_autoscaling() is False
