"""
Feedtrust — Account Scoring Engine

Runs the three computations for one account, in dependency order:

    ScoreInputs → profile dimensions → ProfileScoreAggregator ┐
                → spam dimensions    → SpamScoreAggregator    ┼→ TrustClassifier
                                                              ┘
Pure: no I/O, no shared state. Callers may score any number of accounts
concurrently. Pass `now` to make account age and decay reproducible.
"""
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Optional, Dict, Any

import structlog

from feedtrust.scoring.aggregate import (
    AggregateScore,
    ProfileScoreAggregator,
    SpamScoreAggregator,
)
from feedtrust.scoring.models import ScoreInputs, ScoreOutputs
from feedtrust.scoring.trust import compute_trust_level

logger = structlog.get_logger()

ENGINE_VERSION = "4.0.0"

_profile = ProfileScoreAggregator()
_spam = SpamScoreAggregator()


@dataclass(frozen=True)
class AccountScore:
    """Outputs plus the traces that explain them."""
    outputs: ScoreOutputs
    profile: AggregateScore
    spam: AggregateScore
    calculated_at: datetime
    engine_version: str = ENGINE_VERSION

    def to_dict(self) -> Dict[str, Any]:
        d = self.outputs.to_record()
        d["calculated_at"] = self.calculated_at.isoformat()
        d["engine_version"] = self.engine_version
        d["profile"] = self.profile.to_dict()
        d["spam"] = self.spam.to_dict()
        return d


def score_account(inputs: ScoreInputs, now: Optional[datetime] = None) -> AccountScore:
    now = now or datetime.now(timezone.utc)

    profile = _profile.evaluate(inputs, now)
    spam = _spam.evaluate(inputs, now)
    trust_level = compute_trust_level(profile.score, spam.score, inputs.profile, now)

    logger.debug(
        "account_scored",
        profile_score=profile.score,
        spam_score=spam.score,
        trust_level=trust_level,
        shadow_banned=inputs.profile.shadow_banned,
    )

    return AccountScore(
        outputs=ScoreOutputs(
            profile_score=profile.score,
            spam_score=spam.score,
            trust_level=trust_level,
        ),
        profile=profile,
        spam=spam,
        calculated_at=now,
    )
