from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis

from feedtrust.scoring.models import AccountProfile, ScoreInputs

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_inputs(profile=None, **kwargs) -> ScoreInputs:
    """ScoreInputs with a profile built from keyword overrides."""
    return ScoreInputs(profile=AccountProfile(**(profile or {})), **kwargs)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


@pytest.fixture
def now():
    return NOW


@pytest_asyncio.fixture
async def redis_client():
    client = FakeRedis(decode_responses=True)
    try:
        yield client
    finally:
        await client.flushall()
        await client.aclose()
