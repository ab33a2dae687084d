import asyncio

import pytest

from projectbrain.server.background import jobs
from projectbrain.server.core.config import settings


@pytest.mark.asyncio
async def test_run_periodic_survives_failures():
    calls = []

    async def job():
        calls.append(len(calls))
        if len(calls) == 1:
            raise RuntimeError("first run fails")

    task = asyncio.create_task(jobs.run_periodic("flaky", job, interval_seconds=0))
    for _ in range(100):
        if len(calls) >= 3:
            break
        await asyncio.sleep(0)
    await jobs.stop_background_jobs([task])

    assert len(calls) >= 3
    assert task.cancelled()


@pytest.mark.asyncio
async def test_device_token_cleanup_skips_without_firebase(monkeypatch, session_factory):
    monkeypatch.setattr(jobs, "async_session_maker", session_factory)
    monkeypatch.setattr(jobs, "build_cleanup_service", lambda repos: None)

    await jobs.device_token_cleanup_job()


@pytest.mark.asyncio
async def test_device_token_cleanup_runs_both_passes(monkeypatch, session_factory):
    ran = []

    class FakeCleanup:
        async def cleanup_invalid_tokens(self):
            ran.append("invalid")
            return 1

        async def remove_stale_tokens(self):
            ran.append("stale")
            return 2

    monkeypatch.setattr(jobs, "async_session_maker", session_factory)
    monkeypatch.setattr(jobs, "build_cleanup_service", lambda repos: FakeCleanup())

    await jobs.device_token_cleanup_job()

    assert ran == ["invalid", "stale"]


@pytest.mark.asyncio
async def test_start_respects_switches(monkeypatch):
    monkeypatch.setattr(settings, "push_cleanup_enabled", False)
    monkeypatch.setattr(settings, "activity_sync_enabled", False)

    tasks = jobs.start_background_jobs()

    assert tasks == []
    await jobs.stop_background_jobs(tasks)
