"""
Feedtrust — Trust Classifier

Maps (profile score, spam score, verification, email, account age) to an
ordinal trust tier 0-5. Rules are checked top to bottom; the first match
wins. A shadow-banned account is never reported above tier 1.

    5  profile ≥ 80, spam < 5,  verified
    4  profile ≥ 60, spam < 10, age > 90d, email verified
    3  profile ≥ 40, spam < 20, age > 30d
    2  profile ≥ 20, spam < 40
    0  spam ≥ 70
    1  everything else
"""
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Optional, Tuple

from feedtrust.scoring.models import AccountProfile

DEFAULT_TRUST_LEVEL = 1
SHADOW_BAN_MAX_LEVEL = 1


@dataclass(frozen=True)
class TrustRule:
    level: int
    min_profile: Optional[float] = None
    max_spam: Optional[float] = None         # spam must be strictly below
    min_spam: Optional[float] = None         # spam must be at or above
    min_age_days: Optional[float] = None     # age must be strictly above
    requires_verified: bool = False
    requires_email: bool = False

    def matches(self, profile_score: float, spam_score: float, profile: AccountProfile, age_days: float) -> bool:
        if self.min_profile is not None and profile_score < self.min_profile:
            return False
        if self.max_spam is not None and spam_score >= self.max_spam:
            return False
        if self.min_spam is not None and spam_score < self.min_spam:
            return False
        if self.min_age_days is not None and age_days <= self.min_age_days:
            return False
        if self.requires_verified and not profile.is_verified:
            return False
        if self.requires_email and not profile.email_verified:
            return False
        return True


TRUST_RULES: Tuple[TrustRule, ...] = (
    TrustRule(level=5, min_profile=80, max_spam=5, requires_verified=True),
    TrustRule(level=4, min_profile=60, max_spam=10, min_age_days=90, requires_email=True),
    TrustRule(level=3, min_profile=40, max_spam=20, min_age_days=30),
    TrustRule(level=2, min_profile=20, max_spam=40),
    TrustRule(level=0, min_spam=70),
)


def classify(profile_score: float, spam_score: float, profile: AccountProfile, now: datetime) -> int:
    """Tier from the ordered rules alone, before the shadow-ban clamp."""
    age_days = profile.account_age_days(now)
    for rule in TRUST_RULES:
        if rule.matches(profile_score, spam_score, profile, age_days):
            return rule.level
    return DEFAULT_TRUST_LEVEL


def compute_trust_level(
    profile_score: float,
    spam_score: float,
    profile: AccountProfile,
    now: Optional[datetime] = None,
) -> int:
    now = now or datetime.now(timezone.utc)
    level = classify(profile_score, spam_score, profile, now)
    if profile.shadow_banned:
        return min(SHADOW_BAN_MAX_LEVEL, level)
    return level
