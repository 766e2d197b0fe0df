"""
Feedtrust — Storage Backends

The refresh job reads accounts through an AccountSource and writes results
through a ScoreSink. Both are protocols so the job never knows which
database is behind them.

    InMemoryAccountSource — dict-backed source (development, tests)
    InMemoryScoreSink     — collects written scores
    RedisScoreSink        — HSET profile:{user_id} profile_score spam_score trust_level

Deployments point ACCOUNT_SOURCE at their own source ("module:attr").
"""
import importlib
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Protocol

import structlog

from feedtrust.compute.signals import RawAccountData
from feedtrust.scoring.models import AccountStatus, ScoreOutputs, parse_datetime

logger = structlog.get_logger()

PROFILE_KEY = "profile:{user_id}"


class AccountSource(Protocol):
    async def list_candidates(self, active_since: datetime, limit: int) -> List[str]:
        """Accounts active since `active_since` or already carrying a spam score."""
        ...

    async def list_recent(self, limit: int) -> List[str]:
        """Most recently active non-deleted accounts."""
        ...

    async def load_account(self, user_id: str, now: datetime) -> RawAccountData:
        ...


class ScoreSink(Protocol):
    async def save_scores(self, user_id: str, outputs: ScoreOutputs) -> None:
        ...


# =============================================
# IN-MEMORY
# =============================================

class InMemoryAccountSource:
    """
    Accounts held in a dict keyed by user id.
    Candidate selection reads `last_active_at`, `spam_score` and `status`
    from each account's profile row.
    """

    def __init__(self, accounts: Optional[Iterable[RawAccountData]] = None):
        self._accounts: Dict[str, RawAccountData] = {}
        for account in accounts or ():
            self.add(account)

    def add(self, account: RawAccountData) -> None:
        self._accounts[account.user_id] = account

    def _last_active(self, account: RawAccountData) -> datetime:
        return parse_datetime(account.profile.get("last_active_at")) or datetime.min.replace(tzinfo=timezone.utc)

    async def list_candidates(self, active_since: datetime, limit: int) -> List[str]:
        ids = []
        for user_id, account in self._accounts.items():
            spam_score = float(account.profile.get("spam_score") or 0)
            if self._last_active(account) >= active_since or spam_score > 0:
                ids.append(user_id)
        return ids[:limit]

    async def list_recent(self, limit: int) -> List[str]:
        live = [
            a for a in self._accounts.values()
            if AccountStatus.parse(a.profile.get("status")) != AccountStatus.DELETED
        ]
        live.sort(key=self._last_active, reverse=True)
        return [a.user_id for a in live[:limit]]

    async def load_account(self, user_id: str, now: datetime) -> RawAccountData:
        try:
            return self._accounts[user_id]
        except KeyError:
            raise LookupError(f"unknown account: {user_id}")


class InMemoryScoreSink:
    def __init__(self):
        self.saved: Dict[str, ScoreOutputs] = {}

    async def save_scores(self, user_id: str, outputs: ScoreOutputs) -> None:
        self.saved[user_id] = outputs


# =============================================
# REDIS
# =============================================

class RedisScoreSink:
    """
    Writes scores to the account hash. `client` is a redis.asyncio.Redis
    (or arq's ArqRedis, which extends it).
    """

    def __init__(self, client: Any, key_template: str = PROFILE_KEY):
        self.client = client
        self.key_template = key_template

    async def save_scores(self, user_id: str, outputs: ScoreOutputs) -> None:
        key = self.key_template.format(user_id=user_id)
        await self.client.hset(key, mapping=outputs.to_record())


# =============================================
# FACTORY
# =============================================

def load_account_source(path: Optional[str] = None) -> AccountSource:
    """
    Resolve a "module:attr" path to an AccountSource. A class or factory
    function is called with no arguments; anything else is used as-is.
    """
    if path is None:
        from feedtrust.config import settings
        path = settings.ACCOUNT_SOURCE

    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"ACCOUNT_SOURCE must look like 'module:attr', got {path!r}")

    module = importlib.import_module(module_name)
    try:
        target = getattr(module, attr)
    except AttributeError:
        raise ValueError(f"{module_name} has no attribute {attr!r}")

    source = target() if callable(target) else target
    logger.info("account_source_loaded", path=path)
    return source
