"""
Feedtrust — Scoring package
Re-exports the engine's public surface.
"""
from feedtrust.scoring.models import (
    AccountProfile,
    AccountStatus,
    DimensionScore,
    PostStat,
    RateLimitHit,
    ScoreInputs,
    ScoreOutputs,
)
from feedtrust.scoring.aggregate import (
    AggregateScore,
    ProfileScoreAggregator,
    SpamScoreAggregator,
    compute_profile_score,
    compute_spam_score,
)
from feedtrust.scoring.trust import compute_trust_level
from feedtrust.scoring.engine import AccountScore, score_account

__all__ = [
    "AccountProfile",
    "AccountStatus",
    "AccountScore",
    "AggregateScore",
    "DimensionScore",
    "PostStat",
    "ProfileScoreAggregator",
    "RateLimitHit",
    "ScoreInputs",
    "ScoreOutputs",
    "SpamScoreAggregator",
    "compute_profile_score",
    "compute_spam_score",
    "compute_trust_level",
    "score_account",
]
