from types import SimpleNamespace

import pytest

from conftest import NOW, days_ago

from feedtrust.compute.backends import (
    InMemoryAccountSource,
    InMemoryScoreSink,
    RedisScoreSink,
    load_account_source,
)
from feedtrust.compute.refresh import run_score_refresh
from feedtrust.compute.signals import RawAccountData
from feedtrust.scoring.models import ScoreOutputs

SETTINGS = SimpleNamespace(
    SCORE_ACTIVE_WINDOW_HOURS=24,
    SCORE_CANDIDATE_LIMIT=500,
    SCORE_CHUNK_SIZE=2,
)


def account(user_id, last_active, **profile):
    profile.update(user_id=user_id, last_active_at=last_active)
    return RawAccountData(user_id=user_id, profile=profile)


class FlakySource(InMemoryAccountSource):
    def __init__(self, accounts, broken):
        super().__init__(accounts)
        self.broken = set(broken)

    async def load_account(self, user_id, now):
        if user_id in self.broken:
            raise ConnectionError("replica went away")
        return await super().load_account(user_id, now)


class FlakySink(InMemoryScoreSink):
    def __init__(self, broken):
        super().__init__()
        self.broken = set(broken)

    async def save_scores(self, user_id, outputs):
        if user_id in self.broken:
            raise TimeoutError("write timed out")
        await super().save_scores(user_id, outputs)


async def refresh(source, sink):
    return await run_score_refresh(source, sink, now=NOW, settings=SETTINGS)


@pytest.mark.asyncio
async def test_scores_active_accounts():
    source = InMemoryAccountSource([
        account("u1", NOW),
        account("u2", days_ago(0.5)),
        account("u3", days_ago(3), spam_score=12),
        account("u4", days_ago(3)),
    ])
    sink = InMemoryScoreSink()
    report = await refresh(source, sink)

    assert report.candidates == 3
    assert report.scored == 3
    assert report.updated == 3
    assert report.failed == []
    assert set(sink.saved) == {"u1", "u2", "u3"}
    assert all(isinstance(v, ScoreOutputs) for v in sink.saved.values())


@pytest.mark.asyncio
async def test_falls_back_to_recent_accounts():
    source = InMemoryAccountSource([
        account("old", days_ago(20)),
        account("older", days_ago(40)),
        account("gone", days_ago(5), status="deleted"),
    ])
    sink = InMemoryScoreSink()
    report = await refresh(source, sink)

    assert report.candidates == 2
    assert set(sink.saved) == {"old", "older"}


@pytest.mark.asyncio
async def test_failed_load_skips_only_that_account():
    source = FlakySource([account(f"u{i}", NOW) for i in range(5)], broken={"u2"})
    sink = InMemoryScoreSink()
    report = await refresh(source, sink)

    assert report.candidates == 5
    assert report.scored == 4
    assert report.updated == 4
    assert report.failed == ["u2"]
    assert "u2" not in sink.saved


@pytest.mark.asyncio
async def test_failed_write_is_reported():
    source = InMemoryAccountSource([account("u1", NOW), account("u2", NOW)])
    sink = FlakySink(broken={"u1"})
    report = await refresh(source, sink)

    assert report.scored == 2
    assert report.updated == 1
    assert report.failed == ["u1"]
    assert report.to_dict()["failed"] == ["u1"]


@pytest.mark.asyncio
async def test_no_candidates():
    report = await refresh(InMemoryAccountSource(), InMemoryScoreSink())
    assert report.to_dict()["updated"] == 0
    assert report.candidates == 0


@pytest.mark.asyncio
async def test_candidate_selection_errors_propagate():
    class BrokenSource(InMemoryAccountSource):
        async def list_candidates(self, active_since, limit):
            raise RuntimeError("database down")

    with pytest.raises(RuntimeError):
        await refresh(BrokenSource(), InMemoryScoreSink())


@pytest.mark.asyncio
async def test_redis_sink_writes_profile_hash(redis_client):
    sink = RedisScoreSink(redis_client)
    await sink.save_scores("u1", ScoreOutputs(profile_score=55.5, spam_score=2.0, trust_level=3))

    stored = await redis_client.hgetall("profile:u1")
    assert stored == {"profile_score": "55.5", "spam_score": "2.0", "trust_level": "3"}


@pytest.mark.asyncio
async def test_redis_sink_overwrites_previous_scores(redis_client):
    await redis_client.hset("profile:u1", mapping={"spam_score": "80.0", "bio": "kept"})
    sink = RedisScoreSink(redis_client)
    await sink.save_scores("u1", ScoreOutputs(profile_score=10.0, spam_score=0.0, trust_level=1))

    stored = await redis_client.hgetall("profile:u1")
    assert float(stored["spam_score"]) == 0.0
    assert int(stored["trust_level"]) == 1
    assert stored["bio"] == "kept"


@pytest.mark.asyncio
async def test_refresh_into_redis(redis_client):
    source = InMemoryAccountSource([account("u1", NOW), account("u2", NOW)])
    report = await refresh(source, RedisScoreSink(redis_client))

    assert report.updated == 2
    for user_id in ("u1", "u2"):
        stored = await redis_client.hgetall(f"profile:{user_id}")
        assert 0 <= float(stored["profile_score"]) <= 100
        assert 0 <= float(stored["spam_score"]) <= 100
        assert 0 <= int(stored["trust_level"]) <= 5


def test_load_account_source():
    source = load_account_source("feedtrust.compute.backends:InMemoryAccountSource")
    assert isinstance(source, InMemoryAccountSource)

    with pytest.raises(ValueError):
        load_account_source("feedtrust.compute.backends")
    with pytest.raises(ValueError):
        load_account_source("feedtrust.compute.backends:NoSuchSource")
