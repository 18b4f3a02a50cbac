"""
Tests for StatusContainer.
"""

from __future__ import annotations

import pytest

from job_status.container import StatusContainer
from job_status.errors import ContainerNotFoundError, IllegalTransitionError, InvalidProgressError
from job_status.types import JobStatus


@pytest.fixture
async def container(store):
    return await StatusContainer.create(store, "j1", ["a.csv", 3], job_type="import", queue="default")


class TestCreateAndLoad:
    """Test container construction."""

    async def test_create_persists_queued_record(self, store, container):
        record = await store.load("j1")

        assert record.status == JobStatus.QUEUED
        assert record.args == ["a.csv", 3]
        assert record.job_type == "import"
        assert record.queue == "default"
        assert container.is_queued
        assert container.is_killable

    async def test_load_missing_returns_none(self, store):
        assert await StatusContainer.load(store, "nope") is None

    async def test_get_missing_raises(self, store):
        with pytest.raises(ContainerNotFoundError) as exc_info:
            await StatusContainer.get(store, "nope")
        assert exc_info.value.job_id == "nope"

    async def test_args_are_a_copy(self, container):
        container.args.append("extra")
        assert container.args == ["a.csv", 3]

    async def test_reload_picks_up_other_writers(self, store, container):
        other = await StatusContainer.get(store, "j1")
        await other.set_status(JobStatus.WORKING)
        await other.set_progress(2, 4, "half")

        assert container.is_queued
        await container.reload()

        assert container.is_working
        assert (container.at, container.total, container.message) == (2, 4, "half")
        assert container.pct_complete == 50

    async def test_reload_without_writers_is_stable(self, store, container):
        await container.set_status(JobStatus.WORKING)
        await container.set_progress(1, 3, "first")
        await container.set_payload({"rows": 10})

        await container.reload()
        first = container.record.to_dict()
        await container.reload()

        assert container.record.to_dict() == first
        assert first["message"] == "first"
        assert first["payload"] == {"rows": 10}

    async def test_reload_missing_raises(self, store, container):
        await store.delete("j1")
        with pytest.raises(ContainerNotFoundError):
            await container.reload()


class TestProgress:
    """Test progress setters."""

    async def test_set_at_clears_message_unless_given(self, store, container):
        await container.set_at(1, "first")
        assert (await store.load("j1")).message == "first"

        await container.set_at(2)
        record = await store.load("j1")
        assert record.at == 2
        assert record.message is None

    async def test_set_total_and_message(self, store, container):
        await container.set_total(10)
        await container.set_message("loading")

        record = await store.load("j1")
        assert record.total == 10
        assert record.message == "loading"

    async def test_set_progress_single_write(self, store, container):
        await container.set_progress(50, 200, "25% done")

        record = await store.load("j1")
        assert (record.at, record.total, record.message) == (50, 200, "25% done")
        assert container.pct_complete == 25

    async def test_set_progress_keeps_total(self, container):
        await container.set_total(8)
        await container.set_progress(4)
        assert container.total == 8

    async def test_at_above_total_rejected(self, store, container):
        await container.set_total(5)

        with pytest.raises(InvalidProgressError):
            await container.set_at(6)
        with pytest.raises(ValueError):
            await container.set_progress(9, 8)
        assert (await store.load("j1")).at == 0

    async def test_total_below_at_rejected(self, container):
        await container.set_at(7)
        with pytest.raises(ValueError):
            await container.set_total(3)

    async def test_payload_survives_progress(self, store, container):
        await container.set_payload({"rows": [1, 2]})
        await container.set_at(1)

        assert (await store.load("j1")).payload == {"rows": [1, 2]}

    async def test_writes_to_missing_record_raise(self, store, container):
        await store.delete("j1")

        with pytest.raises(ContainerNotFoundError) as exc_info:
            await container.set_at(1)
        assert exc_info.value.context.operation == "set_at"
        with pytest.raises(ContainerNotFoundError):
            await container.set_payload("x")


class TestStatus:
    """Test lifecycle transitions."""

    async def test_happy_path(self, store, container):
        await container.set_status(JobStatus.WORKING)
        await container.set_message("busy")
        await container.set_status("complete")

        record = await store.load("j1")
        assert record.status == JobStatus.COMPLETE
        assert record.message is None
        assert container.is_complete
        assert not container.is_killable

    async def test_illegal_transition(self, store, container):
        with pytest.raises(IllegalTransitionError):
            await container.set_status(JobStatus.COMPLETE)
        assert (await store.load("j1")).status == JobStatus.QUEUED

    async def test_terminal_is_final(self, container):
        await container.set_status(JobStatus.WORKING)
        await container.set_status(JobStatus.FAILED)

        for status in JobStatus:
            with pytest.raises(IllegalTransitionError):
                await container.set_status(status)

    async def test_queued_can_be_killed(self, container):
        await container.set_status(JobStatus.KILLED)
        assert container.is_killed


class TestKill:
    """Test kill requests."""

    async def test_request_kill_sets_flag(self, store, container):
        await container.request_kill()

        assert container.kill_requested
        assert (await store.load("j1")).kill_requested is True

    async def test_fetch_kill_requested_reads_store(self, store, container):
        other = await StatusContainer.get(store, "j1")
        await other.request_kill()

        assert container.kill_requested is False
        assert await container.fetch_kill_requested() is True
        assert container.kill_requested is True

    async def test_kill_survives_progress_writes(self, store, container):
        await container.set_status(JobStatus.WORKING)
        killer = await StatusContainer.get(store, "j1")
        await killer.request_kill()

        # The writer's snapshot still says False; its writes must not reset the flag
        await container.set_progress(1, 2, "tick")
        assert (await store.load("j1")).kill_requested is True

    async def test_request_kill_on_terminal_still_writes(self, store, container):
        await container.set_status(JobStatus.WORKING)
        await container.set_status(JobStatus.COMPLETE)
        await container.request_kill()

        record = await store.load("j1")
        assert record.kill_requested is True
        assert record.status == JobStatus.COMPLETE

    async def test_request_kill_missing_raises(self, store, container):
        await container.delete()
        with pytest.raises(ContainerNotFoundError):
            await container.request_kill()


async def test_delete(store, container):
    assert await container.delete() is True
    assert await store.load("j1") is None


async def test_to_dict_and_repr(container):
    data = container.to_dict()

    assert data["job_id"] == "j1"
    assert data["status"] == "queued"
    assert "j1" in repr(container)
