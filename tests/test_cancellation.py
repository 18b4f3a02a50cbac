"""Tests for store-backed kill tokens."""

from __future__ import annotations

import asyncio

import pytest

from job_status.cancellation import JobKilledError, KillToken
from job_status.container import StatusContainer


@pytest.fixture
async def container(store):
    return await StatusContainer.create(store, "j1")


class TestKillToken:
    """Test KillToken behavior."""

    async def test_token_starts_unkilled(self, store, container):
        token = KillToken(store, "j1")

        assert not token.is_killed
        assert await token.check() is False
        await token.raise_if_killed()  # Should not raise

    async def test_check_observes_kill_request(self, store, container):
        token = KillToken(store, "j1")
        await container.request_kill()

        assert not token.is_killed  # nothing observed yet
        assert await token.check() is True
        assert token.is_killed

    async def test_raise_if_killed(self, store, container):
        token = KillToken(store, "j1")
        await container.request_kill()

        with pytest.raises(JobKilledError) as exc_info:
            await token.raise_if_killed()
        assert exc_info.value.job_id == "j1"

    async def test_missing_record_reads_as_not_killed(self, store):
        token = KillToken(store, "ghost")
        assert await token.check() is False

    async def test_kill_observation_is_sticky(self, store, container):
        token = KillToken(store, "j1")
        await container.request_kill()
        await token.check()
        await container.delete()

        assert await token.check() is True

    async def test_on_kill_callback(self, store, container):
        token = KillToken(store, "j1")
        called = []
        token.on_kill(lambda: called.append(True))

        await token.check()
        assert called == []

        await container.request_kill()
        await token.check()
        await token.check()
        assert called == [True]

    async def test_on_kill_immediate_if_already_killed(self, store):
        token = KillToken(store, "j1", killed=True)
        called = []
        token.on_kill(lambda: called.append(True))
        assert called == [True]

    async def test_wait_blocks_until_kill(self, store, container):
        token = KillToken(store, "j1")

        async def kill_later():
            await asyncio.sleep(0.01)
            await container.request_kill()

        asyncio.create_task(kill_later())
        await asyncio.wait_for(token.wait(poll_interval=0.005), timeout=1.0)
        assert token.is_killed

    async def test_check_yields_to_other_tasks(self, store, container):
        token = KillToken(store, "j1")
        ran = []

        async def other():
            ran.append(True)

        task = asyncio.create_task(other())
        await token.check()

        assert ran == [True]
        await task
