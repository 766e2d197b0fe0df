"""
Feedtrust — Score Refresh Job
Re-scores recently active accounts and writes the results back.

Flow:
    1. Candidates — active in the last SCORE_ACTIVE_WINDOW_HOURS or spam_score > 0,
       falling back to the most recently active accounts
    2. Load + score — chunks of SCORE_CHUNK_SIZE, loaded concurrently
    3. Persist — same chunking; one failed write never aborts the batch

Run manually:
    python -m feedtrust.compute.refresh
"""
import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

import structlog

from feedtrust.compute.backends import AccountSource, ScoreSink
from feedtrust.compute.signals import build_score_inputs
from feedtrust.scoring.engine import score_account
from feedtrust.scoring.models import ScoreOutputs

logger = structlog.get_logger()


@dataclass
class RefreshReport:
    candidates: int = 0
    scored: int = 0
    updated: int = 0
    failed: List[str] = field(default_factory=list)
    duration_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "updated": self.updated,
            "scored": self.scored,
            "failed": list(self.failed),
            "candidates": self.candidates,
            "duration_ms": self.duration_ms,
        }


def _chunks(items: Sequence[Any], size: int):
    for i in range(0, len(items), size):
        yield items[i:i + size]


async def select_candidates(source: AccountSource, now: datetime, settings) -> List[str]:
    active_since = now - timedelta(hours=settings.SCORE_ACTIVE_WINDOW_HOURS)
    ids = await source.list_candidates(active_since, settings.SCORE_CANDIDATE_LIMIT)
    if not ids:
        ids = await source.list_recent(settings.SCORE_CANDIDATE_LIMIT)
        logger.info("score_refresh_fallback_candidates", count=len(ids))
    return list(ids)


async def _score_one(source: AccountSource, user_id: str, now: datetime) -> ScoreOutputs:
    raw = await source.load_account(user_id, now)
    return score_account(build_score_inputs(raw, now), now).outputs


async def run_score_refresh(
    source: AccountSource,
    sink: ScoreSink,
    *,
    now: Optional[datetime] = None,
    settings=None,
) -> RefreshReport:
    """
    Score every candidate and persist the results.
    Candidate selection errors propagate; per-account errors are logged and reported.
    """
    if settings is None:
        from feedtrust.config import settings
    now = now or datetime.now(timezone.utc)
    start = time.time()
    report = RefreshReport()

    user_ids = await select_candidates(source, now, settings)
    report.candidates = len(user_ids)
    logger.info("score_refresh_started", candidates=report.candidates)

    if not user_ids:
        return report

    results: List[Tuple[str, ScoreOutputs]] = []
    for chunk in _chunks(user_ids, settings.SCORE_CHUNK_SIZE):
        outcomes = await asyncio.gather(
            *(_score_one(source, user_id, now) for user_id in chunk),
            return_exceptions=True,
        )
        for user_id, outcome in zip(chunk, outcomes):
            if isinstance(outcome, Exception):
                logger.warning("account_load_failed", user_id=user_id, error=str(outcome))
                report.failed.append(user_id)
                continue
            results.append((user_id, outcome))

    report.scored = len(results)

    for chunk in _chunks(results, settings.SCORE_CHUNK_SIZE):
        outcomes = await asyncio.gather(
            *(sink.save_scores(user_id, outputs) for user_id, outputs in chunk),
            return_exceptions=True,
        )
        for (user_id, _), outcome in zip(chunk, outcomes):
            if isinstance(outcome, Exception):
                logger.warning("score_persist_failed", user_id=user_id, error=str(outcome))
                report.failed.append(user_id)
                continue
            report.updated += 1

    report.duration_ms = int((time.time() - start) * 1000)
    logger.info(
        "score_refresh_complete",
        candidates=report.candidates,
        scored=report.scored,
        updated=report.updated,
        failed=len(report.failed),
        duration_ms=report.duration_ms,
    )
    return report


# ── CLI Entry Point ───────────────────────────────

async def main():
    import redis.asyncio as aioredis

    from feedtrust.compute.backends import RedisScoreSink, load_account_source
    from feedtrust.config import settings

    client = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        report = await run_score_refresh(load_account_source(), RedisScoreSink(client))
    finally:
        await client.aclose()
    print(f"Refreshed {report.updated}/{report.candidates} profile scores")


if __name__ == "__main__":
    asyncio.run(main())
