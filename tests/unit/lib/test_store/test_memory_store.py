"""Unit tests for the in-memory code store."""

import asyncio

import pytest

from toilet_spotter.lib.store import MOCK_CENTER, CodeRecord, MemoryCodeStore, RemoteUnavailableError, VoteRecord


def _record(code: str = "1234", lat: float = 47.6169, lon: float = -122.3201, device: str = "device_a") -> CodeRecord:
    return CodeRecord(code=code, latitude=lat, longitude=lon, device_id=device)


class TestMemoryStoreCodes:
    """Tests for code insertion and radius queries."""

    @pytest.mark.asyncio
    async def test_insert_assigns_id_and_timestamp(self, memory_store: MemoryCodeStore) -> None:
        stored = await memory_store.insert_code_record(_record())
        assert stored.id is not None
        assert stored.created_at is not None
        assert stored.vote_score == 0
        assert len(memory_store.codes) == 1

    @pytest.mark.asyncio
    async def test_insert_ignores_caller_supplied_id(self, memory_store: MemoryCodeStore) -> None:
        record = _record()
        record.id = "fixed"
        stored = await memory_store.insert_code_record(record)
        assert stored.id != "fixed"

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, memory_store: MemoryCodeStore) -> None:
        stored = await memory_store.insert_code_record(_record())
        stored.vote_score = 99
        fetched = await memory_store.get_code(stored.id)
        assert fetched is not None
        assert fetched.vote_score == 0

    @pytest.mark.asyncio
    async def test_find_within_radius_filters_by_distance(self, seeded_store: MemoryCodeStore) -> None:
        nearby = await seeded_store.find_within_radius(MOCK_CENTER.latitude, MOCK_CENTER.longitude, 2000)
        assert len(nearby) == 12
        assert all(r.distance is None for r in nearby)

    @pytest.mark.asyncio
    async def test_find_within_radius_empty_area(self, seeded_store: MemoryCodeStore) -> None:
        assert await seeded_store.find_within_radius(0.0, 0.0, 1000) == []

    @pytest.mark.asyncio
    async def test_duplicate_same_code_close_by(self, memory_store: MemoryCodeStore) -> None:
        await memory_store.insert_code_record(_record())
        # About 11 meters north
        assert await memory_store.find_duplicate_within_radius("1234", 47.6170, -122.3201, 50)

    @pytest.mark.asyncio
    async def test_no_duplicate_for_other_code(self, memory_store: MemoryCodeStore) -> None:
        await memory_store.insert_code_record(_record())
        assert not await memory_store.find_duplicate_within_radius("9999", 47.6169, -122.3201, 50)

    @pytest.mark.asyncio
    async def test_no_duplicate_far_away(self, memory_store: MemoryCodeStore) -> None:
        await memory_store.insert_code_record(_record())
        # About 234 meters south
        assert not await memory_store.find_duplicate_within_radius("1234", 47.6148, -122.3204, 50)

    @pytest.mark.asyncio
    async def test_get_code_owner(self, memory_store: MemoryCodeStore) -> None:
        stored = await memory_store.insert_code_record(_record(device="device_owner"))
        assert await memory_store.get_code_owner(stored.id) == "device_owner"
        assert await memory_store.get_code_owner("missing") is None


class TestMemoryStoreVotes:
    """Tests for vote rows and score recomputation."""

    @pytest.mark.asyncio
    async def test_insert_and_find_vote(self, memory_store: MemoryCodeStore) -> None:
        code = await memory_store.insert_code_record(_record())
        stored = await memory_store.insert_vote(VoteRecord(code_id=code.id, device_id="device_b", value=1))
        assert stored.id is not None

        found = await memory_store.find_vote(code.id, "device_b")
        assert found is not None
        assert found.value == 1
        assert await memory_store.find_vote(code.id, "device_c") is None

    @pytest.mark.asyncio
    async def test_second_vote_row_for_same_device_rejected(self, memory_store: MemoryCodeStore) -> None:
        code = await memory_store.insert_code_record(_record())
        await memory_store.insert_vote(VoteRecord(code_id=code.id, device_id="device_b", value=1))
        with pytest.raises(RemoteUnavailableError, match="memory"):
            await memory_store.insert_vote(VoteRecord(code_id=code.id, device_id="device_b", value=-1))

    @pytest.mark.asyncio
    async def test_vote_on_unknown_code_rejected(self, memory_store: MemoryCodeStore) -> None:
        with pytest.raises(RemoteUnavailableError):
            await memory_store.insert_vote(VoteRecord(code_id="missing", device_id="device_b", value=1))

    @pytest.mark.asyncio
    async def test_update_unknown_vote_rejected(self, memory_store: MemoryCodeStore) -> None:
        with pytest.raises(RemoteUnavailableError):
            await memory_store.update_vote("missing", 1)

    @pytest.mark.asyncio
    async def test_recompute_sums_votes(self, memory_store: MemoryCodeStore) -> None:
        code = await memory_store.insert_code_record(_record())
        await memory_store.insert_vote(VoteRecord(code_id=code.id, device_id="device_b", value=1))
        await memory_store.insert_vote(VoteRecord(code_id=code.id, device_id="device_c", value=1))
        vote = await memory_store.insert_vote(VoteRecord(code_id=code.id, device_id="device_d", value=1))
        await memory_store.update_vote(vote.id, -1)

        await memory_store.recompute_score(code.id)

        fetched = await memory_store.get_code(code.id)
        assert fetched is not None
        assert fetched.vote_score == 1

    @pytest.mark.asyncio
    async def test_recompute_replaces_seeded_score(self, seeded_store: MemoryCodeStore) -> None:
        code = seeded_store.codes[0]
        assert code.vote_score == 5
        await seeded_store.recompute_score(code.id)
        fetched = await seeded_store.get_code(code.id)
        assert fetched is not None
        assert fetched.vote_score == 0

    @pytest.mark.asyncio
    async def test_concurrent_votes_all_counted(self, memory_store: MemoryCodeStore) -> None:
        code = await memory_store.insert_code_record(_record())

        async def vote(device: str) -> None:
            await memory_store.insert_vote(VoteRecord(code_id=code.id, device_id=device, value=1))
            await memory_store.recompute_score(code.id)

        await asyncio.gather(*(vote(f"device_{i}") for i in range(20)))

        fetched = await memory_store.get_code(code.id)
        assert fetched is not None
        assert fetched.vote_score == 20

    @pytest.mark.asyncio
    async def test_recompute_unknown_code_rejected(self, memory_store: MemoryCodeStore) -> None:
        with pytest.raises(RemoteUnavailableError):
            await memory_store.recompute_score("missing")


class TestVoteRecord:
    """Tests for VoteRecord validation."""

    def test_rejects_zero(self) -> None:
        with pytest.raises(ValueError, match="1 or -1"):
            VoteRecord(code_id="c", device_id="d", value=0)

    def test_rejects_two(self) -> None:
        with pytest.raises(ValueError):
            VoteRecord(code_id="c", device_id="d", value=2)
