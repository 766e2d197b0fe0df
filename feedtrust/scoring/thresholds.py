"""
Feedtrust — Threshold Tables

Every tiered rule in the engine is an ordered table of (min_value, points),
evaluated highest-first. The first tier that matches wins; tiers of the same
table never stack. Keeping them as data means each table can be tested and
audited on its own.

    POST_COUNT.lookup(30)   → 6
    BLOCKS_PENALTY.lookup(11) → -20

Tiers compare with >= unless marked exclusive (strict >).
"""
from dataclasses import dataclass
from typing import Dict, Tuple, Union

from feedtrust.scoring.models import AccountStatus

Number = Union[int, float]


@dataclass(frozen=True)
class Tier:
    min_value: Number
    points: Number
    inclusive: bool = True

    def matches(self, value: Number) -> bool:
        if self.inclusive:
            return value >= self.min_value
        return value > self.min_value


@dataclass(frozen=True)
class CeilingTier:
    """Tier for "lower is better" signals: matches when value is below the bound."""
    max_value: Number
    points: Number
    inclusive: bool = False

    def matches(self, value: Number) -> bool:
        if self.inclusive:
            return value <= self.max_value
        return value < self.max_value


@dataclass(frozen=True)
class ThresholdTable:
    name: str
    tiers: Tuple[Union[Tier, CeilingTier], ...]
    default: Number = 0

    def __post_init__(self):
        bounds = [
            t.min_value if isinstance(t, Tier) else -t.max_value
            for t in self.tiers
        ]
        if any(a < b for a, b in zip(bounds, bounds[1:])):
            raise ValueError(f"threshold table {self.name!r} must be ordered strictest-first")

    def lookup(self, value: Number) -> Number:
        for tier in self.tiers:
            if tier.matches(value):
                return tier.points
        return self.default

    def as_rows(self) -> list:
        """Plain rows for audit dumps."""
        rows = []
        for t in self.tiers:
            if isinstance(t, Tier):
                op = ">=" if t.inclusive else ">"
                rows.append({"table": self.name, "when": f"{op} {t.min_value}", "points": t.points})
            else:
                op = "<=" if t.inclusive else "<"
                rows.append({"table": self.name, "when": f"{op} {t.max_value}", "points": t.points})
        return rows


def table(name: str, *tiers, default: Number = 0) -> ThresholdTable:
    """Build a table from Tier objects or (min_value, points) pairs."""
    built = tuple(t if isinstance(t, (Tier, CeilingTier)) else Tier(*t) for t in tiers)
    return ThresholdTable(name=name, tiers=built, default=default)


# =============================================
# PROFILE: ACTIVITY
# =============================================

POST_COUNT = table("post_count", (50, 8), (25, 6), (10, 5), (3, 3), (1, 2))
ACTIVE_DAYS = table("active_days_last_30", (25, 4), (15, 3), (7, 2), (3, 1))
LOGIN_STREAK = table("login_streak", (30, 4), (14, 3), (7, 2), (3, 1))
ACCOUNT_AGE_DAYS = table(
    "account_age_days",
    (3650, 7), (2555, 6), (1825, 5), (1095, 4), (365, 3), (180, 2), (30, 1),
)

INACTIVE_DAYS_BELOW = 3
INACTIVITY_PENALTY = -2
RECENT_POST_BONUS = 2

# =============================================
# PROFILE: SOCIAL TRUST
# =============================================

FOLLOWER_REACH_CAP = 8
FOLLOWING_RATIO = table("following_ratio", CeilingTier(3, 2), CeilingTier(10, 1))
MUTUAL_FOLLOW_RATIO = table("mutual_follow_ratio", (0.40, 3), (0.20, 2), (0.10, 1))
NETWORK_TRUST_AVG = table("network_trust_avg", (3.5, 2), (2.5, 1))
UNIQUE_PROFILE_VISITORS = table("unique_profile_visitors", (50, 3), (20, 2), (5, 1))

VERIFIED_BONUS = 3
PREMIUM_BONUS = 2

# =============================================
# PROFILE: CONTENT QUALITY
# =============================================

MIN_VIEWS_FOR_RATE = 10
ENGAGEMENT_RATE = table(
    "engagement_rate", (0.15, 8), (0.08, 6), (0.03, 4), Tier(0, 2, inclusive=False),
)
QUALIFIED_READ_RATIO = table("qualified_read_ratio", (0.30, 5), (0.15, 3), (0.05, 1))
TRENDING_POSTS = table("trending_posts", (3, 4), (1, 2))
AVG_WORD_COUNT = table("avg_word_count", (300, 3), (100, 2), (30, 1))
READ_DURATION = table("avg_read_duration", (120, 3), (60, 2), (30, 1))
DISCUSSION_POSTS = table("discussion_posts", (3, 3), (1, 1))

SHORT_READ_SECONDS = 15
SHORT_READ_MIN_VIEWS = 50
SHORT_READ_PENALTY = -3

# =============================================
# PROFILE: ENGAGEMENT QUALITY
# =============================================

COMMENT_LIKES = table("comment_likes", (100, 5), (30, 4), (10, 3), (3, 1))
GIFT_COINS_RECEIVED = table("gift_coins_received", (500, 5), (100, 4), (20, 2), (1, 1))
ENGAGEMENT_DIVERSITY = table("engagement_diversity", (4, 5), (3, 3), (2, 2))
COMMENT_REPLY_RATIO = table("comment_reply_ratio", (0.50, 3), (0.25, 2), (0.10, 1))
ORGANIC_COMMENT_RATIO = table("organic_comment_ratio", (0.80, 2), (0.50, 1))
SOCIAL_SHARES = table("social_shares", (20, 2), (5, 1))

# =============================================
# PROFILE: ECONOMIC ACTIVITY
# =============================================

TOTAL_EARNED = table("total_earned", (1000, 4), (200, 3), (50, 2), (5, 1))
GIFT_COINS_SENT = table("gift_coins_sent", (100, 3), (20, 2), (1, 1))
SAVE_RATE = table("save_rate", (0.05, 3), (0.02, 2), (0.005, 1))
GIFT_SENDER_DIVERSITY = table("gift_sender_diversity", (10, 3), (5, 2), (3, 1))

# =============================================
# PROFILE: PENALTIES
# =============================================

BLOCKS_PENALTY = table("blocks_received", Tier(10, -20, inclusive=False), (6, -10), (3, -5), (1, -2))
REPORTS_PENALTY = table("reports_received", Tier(5, -15, inclusive=False), (3, -8), (1, -3))
MODERATION_ACTIONS_PENALTY = table("moderation_actions", (4, -20), (2, -10), (1, -5))

STATUS_PENALTY: Dict[AccountStatus, int] = {
    AccountStatus.BLOCKED: -30,
    AccountStatus.MODERATION: -15,
    AccountStatus.FROZEN: -10,
}

BAD_COMMENT_MIN_TOTAL = 5            # gate is strictly greater than this
BAD_COMMENT_RATIO_PENALTY = table("bad_comment_ratio", (0.30, -8), (0.15, -4))

NSFW_MIN_PUBLISHED = 3
NSFW_RATIO_PENALTY = table(
    "nsfw_post_ratio",
    Tier(0.50, -10, inclusive=False), Tier(0.30, -6, inclusive=False), Tier(0.10, -3, inclusive=False),
)

POST_AND_DELETE_PENALTY = table("post_and_delete", (10, -15), (5, -10), (3, -5), (1, -2))

LOW_EFFORT_MIN_PUBLISHED = 3
LOW_EFFORT_RATIO_PENALTY = table("low_effort_post_ratio", (0.60, -12), (0.40, -8), (0.20, -4))

DUPLICATE_CONTENT_PENALTY = table("duplicate_content", (5, -20), (3, -12), (2, -8), (1, -4))

ONE_LINE_MIN_PUBLISHED = 5
ONE_LINE_RATIO_PENALTY = table("one_line_no_media_ratio", (0.70, -10), (0.50, -6), (0.30, -3))

WEIRD_CHAR_MIN_PUBLISHED = 3
WEIRD_CHAR_RATIO_PENALTY = table("weird_char_post_ratio", (0.50, -10), (0.30, -6), (0.15, -3))

# =============================================
# SPAM: BEHAVIORAL ANOMALIES
# =============================================

BURST_POST_MIN = 5
BURST_POST_POINTS = 15
RECENT_COMMENTS = table("recent_comments", (50, 10), (30, 5))
SHORT_CONTENT_WORDS = 10
SHORT_CONTENT_POINTS = 5
DUPLICATE_COMMENT_GROUPS = table("duplicate_comment_groups", (3, 10), (1, 5))
MASS_DELETE = table("mass_delete_last_24h", (10, 10), (5, 6), (3, 3))
NSFW_RATIO_SPAM = table(
    "nsfw_post_ratio_spam", Tier(0.50, 12, inclusive=False), Tier(0.30, 6, inclusive=False),
)
DUPLICATE_CONTENT_SPAM = table("duplicate_content_spam", (3, 12), (1, 6))
LOW_EFFORT_SPAM_RATIO = 0.50
LOW_EFFORT_SPAM_POINTS = 8
WEIRD_CHAR_SPAM_RATIO = 0.40
WEIRD_CHAR_SPAM_POINTS = 8

# =============================================
# SPAM: COMMUNITY, RATE LIMITS, FOLLOWER LOSS
# =============================================

BLOCKS_SPAM = table("blocks_received_spam", (6, 20), (3, 10), (1, 5))
REPORTS_SPAM = table("reports_received_spam", (3, 15), (1, 5))
BOT_FOLLOWING_OVER = 20
BOT_SIGNATURE_POINTS = 10

RATE_LIMIT_TOTAL_HITS = table("rate_limit_total_hits", (20, 12), (10, 8), (5, 4), (2, 2))
RATE_LIMIT_DISTINCT_ACTIONS = table("rate_limit_distinct_actions", (4, 8), (3, 5), (2, 3))

FOLLOWER_LOSS = table("follower_loss_last_7", (50, 15), (20, 10), (10, 6), (5, 3))

# =============================================
# SPAM: MANIPULATION
# =============================================

GIFT_CONCENTRATION_MIN_COINS = 10    # gate is strictly greater than this
TOP_GIFT_SENDER_RATIO = table("top_gift_sender_ratio", (0.90, 8), (0.70, 5))
SUSPICIOUS_WITHDRAWALS = table("suspicious_withdrawals", (3, 5), (1, 2))
SELF_COMMENT_HIGH_RATIO = 0.50
SELF_COMMENT_LOW_DIVERSITY = 3
SELF_COMMENT_HIGH_POINTS = 10
SELF_COMMENT_RATIO = 0.30
SELF_COMMENT_POINTS = 5
MENTION_SPAM_AVG = 2.5
MENTION_SPAM_POINTS = 5
BAD_COMMENT_RATIO_SPAM = table("bad_comment_ratio_spam", (0.30, 8), (0.15, 4))

# =============================================
# REHABILITATION DECAY
# =============================================

REHABILITATION_DECAY = table(
    "rehabilitation_decay", (14, 0.4), (7, 0.6), (3, 0.8), default=1.0,
)

# =============================================
# DIMENSION CAPS
# =============================================

PROFILE_CAPS = {
    "completeness": 15,
    "activity": 25,
    "social_trust": 20,
    "content_quality": 26,
    "engagement_quality": 22,
    "economic_activity": 13,
}

SPAM_CAPS = {
    "moderation_history": 30,
    "behavioral": 30,
    "community_signals": 20,
    "rate_limit_violations": 20,
    "follower_loss": 15,
    "manipulation": 20,
}

MODERATED_POST_WEIGHT, MODERATED_POST_CAP = 8, 20
REMOVED_POST_WEIGHT, REMOVED_POST_CAP = 12, 20
BAD_COMMENT_WEIGHT, BAD_COMMENT_CAP = 6, 15

SHADOW_BAN_PROFILE_PENALTY = 50
SHADOW_BAN_SPAM_FLOOR_RAISE = 50
SCORE_MIN, SCORE_MAX = 0, 100


ALL_TABLES = tuple(v for v in list(globals().values()) if isinstance(v, ThresholdTable))
