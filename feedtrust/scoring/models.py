"""
Feedtrust — Scoring Data Model

Input snapshot and output values for the scoring engine.

    AccountProfile  — identity flags, counters and status of one account
    PostStat        — per-post engagement numbers (typed, never a loose dict)
    RateLimitHit    — rate-limit hits for one action type
    ScoreInputs     — everything the engine reads, assembled externally
    ScoreOutputs    — profile_score, spam_score, trust_level

Every field defaults to its zero value. Absent behavioral data is itself a
(low) signal, so the engine treats it as zero rather than failing.
"""
import math
import re
from datetime import datetime, timezone
from dataclasses import dataclass, field, fields
from typing import Optional, Dict, Any, List, Mapping
from enum import Enum


class AccountStatus(str, Enum):
    ACTIVE     = "active"
    MODERATION = "moderation"
    FROZEN     = "frozen"
    BLOCKED    = "blocked"
    DELETED    = "deleted"

    @classmethod
    def parse(cls, value: Any) -> "AccountStatus":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.ACTIVE


# =============================================
# COERCION HELPERS: missing means zero
# =============================================

def as_int(value: Any) -> int:
    """Non-negative int. Accepts numeric strings such as "3" or "3.0"; junk and NaN become 0."""
    if isinstance(value, int):
        return max(int(value), 0)
    return int(as_float(value))


def as_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return max(number, 0.0)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "t")
    return bool(value)


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


# Postgres emits 1-9 fractional digits; fromisoformat before 3.11 only takes 3 or 6
_FRACTION = re.compile(r"([T ]\d{2}:\d{2}:\d{2})\.(\d+)")


def _normalize_iso(text: str) -> str:
    text = text.strip().replace("Z", "+00:00")
    return _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text)


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO timestamp (or pass a datetime through) as an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = datetime.fromisoformat(_normalize_iso(str(value)))
        except ValueError:
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def days_between(earlier: Optional[datetime], now: datetime) -> Optional[float]:
    """Fractional days from `earlier` to `now`, or None when unknown."""
    if earlier is None:
        return None
    return (now - earlier).total_seconds() / 86400


# =============================================
# ACCOUNT PROFILE
# =============================================

@dataclass(frozen=True)
class AccountProfile:
    """Read-only snapshot of the account record."""
    avatar_url: Optional[str] = None
    bio: Optional[str] = None
    email_verified: bool = False
    phone_verified: bool = False
    website: Optional[str] = None
    birth_date: Optional[str] = None
    gender: Optional[str] = None
    full_name: Optional[str] = None
    account_type: Optional[str] = None
    is_verified: bool = False
    is_premium: bool = False

    follower_count: int = 0
    following_count: int = 0
    post_count: int = 0

    status: AccountStatus = AccountStatus.ACTIVE
    created_at: Optional[datetime] = None
    shadow_banned: bool = False

    total_earned: int = 0
    total_views_received: int = 0

    def account_age_days(self, now: datetime) -> float:
        """Fractional account age. Unknown creation time counts as brand new."""
        age = days_between(self.created_at, now)
        return age if age is not None else 0.0

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "AccountProfile":
        data = data or {}
        return cls(
            avatar_url=_as_str(data.get("avatar_url")),
            bio=_as_str(data.get("bio")),
            email_verified=_as_bool(data.get("email_verified")),
            phone_verified=_as_bool(data.get("phone_verified")),
            website=_as_str(data.get("website")),
            birth_date=_as_str(data.get("birth_date")),
            gender=_as_str(data.get("gender")),
            full_name=_as_str(data.get("full_name")),
            account_type=_as_str(data.get("account_type")),
            is_verified=_as_bool(data.get("is_verified")),
            is_premium=_as_bool(data.get("is_premium")),
            follower_count=as_int(data.get("follower_count")),
            following_count=as_int(data.get("following_count")),
            post_count=as_int(data.get("post_count")),
            status=AccountStatus.parse(data.get("status") or AccountStatus.ACTIVE),
            created_at=parse_datetime(data.get("created_at")),
            shadow_banned=_as_bool(data.get("shadow_banned")),
            total_earned=as_int(data.get("total_earned")),
            total_views_received=as_int(data.get("total_views_received")),
        )


@dataclass(frozen=True)
class PostStat:
    id: int = 0
    like_count: int = 0
    comment_count: int = 0
    save_count: int = 0
    share_count: int = 0
    unique_view_count: int = 0
    trending_score: float = 0.0
    word_count: int = 0
    mention_count: int = 0

    @property
    def interactions(self) -> int:
        """Likes + comments + saves; shares are not part of the interaction rate."""
        return self.like_count + self.comment_count + self.save_count

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "PostStat":
        return cls(
            id=as_int(data.get("id")),
            like_count=as_int(data.get("like_count")),
            comment_count=as_int(data.get("comment_count")),
            save_count=as_int(data.get("save_count")),
            share_count=as_int(data.get("share_count")),
            unique_view_count=as_int(data.get("unique_view_count")),
            trending_score=as_float(data.get("trending_score")),
            word_count=as_int(data.get("word_count")),
            mention_count=as_int(data.get("mention_count")),
        )


@dataclass(frozen=True)
class RateLimitHit:
    action: str = "unknown"
    count: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RateLimitHit":
        return cls(action=str(data.get("action") or "unknown"), count=as_int(data.get("count")))


# =============================================
# SCORE INPUTS: the engine's sole input
# =============================================

@dataclass(frozen=True)
class ScoreInputs:
    """
    Behavioral snapshot for one account.
    Ratios are in [0, 1]; everything else is a non-negative count or average.
    """
    profile: AccountProfile = field(default_factory=AccountProfile)

    # Post counts
    published_post_count: int = 0
    moderation_post_count: int = 0
    removed_post_count: int = 0
    recent_published_count: int = 0          # published in the last 30 days

    # Comment counts
    spam_comment_count: int = 0
    removed_comment_count: int = 0
    recent_comment_count: int = 0            # written in the last 24h
    total_user_comment_count: int = 0

    # Community signals
    blocks_received: int = 0
    reports_received: int = 0
    moderation_action_count: int = 0

    # Behavioral
    burst_post_count: int = 0                # created in the last hour
    avg_word_count: float = 0.0

    # Rehabilitation
    last_moderation_date: Optional[datetime] = None

    # Content quality
    post_stats: List[PostStat] = field(default_factory=list)
    qualified_read_count: int = 0

    # Engagement quality
    comment_likes_total: int = 0
    gifts_received_coins: int = 0

    # Economic activity
    gifts_sent_coins: int = 0

    # Rate limits (last 7 days)
    rate_limit_hits: List[RateLimitHit] = field(default_factory=list)

    # Daily activity & follower loss
    active_days_last_30: int = 0
    follower_loss_last_7: int = 0
    login_streak: int = 0

    # Spam detection (v3)
    duplicate_comment_groups: int = 0
    mass_delete_last_24h: int = 0
    top_gift_sender_ratio: float = 0.0
    suspicious_withdrawal_count: int = 0
    self_comment_ratio: float = 0.0
    comment_author_diversity: int = 0
    avg_mention_per_post: float = 0.0

    # Profile bonuses (v3)
    mutual_follow_ratio: float = 0.0
    comment_reply_ratio: float = 0.0
    network_trust_avg: float = 0.0
    gift_sender_diversity: int = 0
    avg_read_duration_on_posts: float = 0.0  # seconds
    social_shares_by_user: int = 0
    organic_comment_ratio: float = 0.0
    discussion_post_count: int = 0

    nsfw_post_ratio: float = 0.0

    profile_visits_last_30: int = 0
    unique_profile_visitors: int = 0

    # Content quality penalties (v4)
    post_and_delete_count: int = 0
    low_effort_post_ratio: float = 0.0
    duplicate_content_count: int = 0
    one_line_no_media_post_ratio: float = 0.0
    weird_char_post_ratio: float = 0.0

    @property
    def bad_comment_count(self) -> int:
        return self.spam_comment_count + self.removed_comment_count

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "ScoreInputs":
        """
        Build inputs from a loosely-typed mapping (JSON payload, DB row dict).
        Missing keys and None become zero values; unknown keys are ignored.
        """
        data = data or {}
        kwargs: Dict[str, Any] = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            value = data[f.name]
            if f.name == "profile":
                kwargs[f.name] = (
                    value if isinstance(value, AccountProfile) else AccountProfile.from_mapping(value)
                )
            elif f.name == "post_stats":
                kwargs[f.name] = [
                    p if isinstance(p, PostStat) else PostStat.from_mapping(p) for p in value or []
                ]
            elif f.name == "rate_limit_hits":
                kwargs[f.name] = [
                    h if isinstance(h, RateLimitHit) else RateLimitHit.from_mapping(h) for h in value or []
                ]
            elif f.name == "last_moderation_date":
                kwargs[f.name] = parse_datetime(value)
            elif isinstance(f.default, float):
                kwargs[f.name] = as_float(value)
            else:
                kwargs[f.name] = as_int(value)
        return cls(**kwargs)


# =============================================
# SCORE OUTPUTS
# =============================================

@dataclass(frozen=True)
class ScoreOutputs:
    profile_score: float
    spam_score: float
    trust_level: int

    def to_record(self) -> Dict[str, Any]:
        """Field names as persisted on the account record."""
        return {
            "profile_score": self.profile_score,
            "spam_score": self.spam_score,
            "trust_level": self.trust_level,
        }


# =============================================
# DIMENSION RESULT
# =============================================

@dataclass(frozen=True)
class DimensionScore:
    """Capped contribution of one dimension plus the signals that produced it."""
    name: str
    score: float
    cap: Optional[float]
    breakdown: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "score": round(self.score, 2),
            "cap": self.cap,
            "breakdown": dict(self.breakdown),
        }
