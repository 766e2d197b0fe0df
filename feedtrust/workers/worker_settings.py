"""
Feedtrust — Worker Settings

arq worker that re-scores active accounts on a schedule:

    refresh_profile_scores — cron, minutes from SCORE_REFRESH_MINUTES

Start with:
    arq feedtrust.workers.worker_settings.WorkerSettings
"""
from arq import cron
from arq.connections import RedisSettings
import structlog

from feedtrust.config import settings
from feedtrust.compute.backends import RedisScoreSink, load_account_source
from feedtrust.compute.refresh import run_score_refresh

logger = structlog.get_logger()

REDIS_SETTINGS = RedisSettings.from_dsn(settings.REDIS_URL)


async def startup(ctx):
    ctx["account_source"] = load_account_source(settings.ACCOUNT_SOURCE)
    ctx["score_sink"] = RedisScoreSink(ctx["redis"])
    logger.info("worker_started", refresh_minutes=sorted(settings.refresh_minutes))


async def refresh_profile_scores(ctx):
    report = await run_score_refresh(ctx["account_source"], ctx["score_sink"], settings=settings)
    return report.to_dict()


class WorkerSettings:
    functions = [refresh_profile_scores]

    cron_jobs = [
        cron(
            refresh_profile_scores,
            minute=settings.refresh_minutes,
            unique=True,  # one refresh at a time across workers
        ),
    ]

    on_startup = startup
    redis_settings = REDIS_SETTINGS
    max_jobs = 10
    job_timeout = 600
