"""
Feedtrust — Signal Derivation

Turns the raw rows gathered for one account into ScoreInputs. Everything
here is pure: the storage queries that fill RawAccountData live with the
AccountSource implementation, not in this module.

    RawAccountData      — raw rows/counts for one account (as stored)
    build_score_inputs  — derive every ratio and count the engine reads

Missing rows are empty lists and missing counts are zero, so a partially
collected account still produces valid inputs.
"""
import re
from collections import Counter, defaultdict
from datetime import date, datetime, timedelta, timezone
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from feedtrust.scoring.models import (
    AccountProfile,
    PostStat,
    RateLimitHit,
    ScoreInputs,
    as_float,
    parse_datetime,
)

ACTIVITY_WINDOW_DAYS = 30
STREAK_LOOKBACK_DAYS = 60
MIN_DUPLICATE_COMMENT_LENGTH = 5
DUPLICATE_COMMENT_MIN_POSTS = 3
SUSPICIOUS_WITHDRAWAL_CEILING = 600     # minimum withdrawal is 500
DISCUSSION_MIN_COMMENTERS = 5
LOW_EFFORT_WORDS = 10
ONE_LINE_WORDS = 30
MIN_TITLE_LENGTH = 3

# Zalgo combining marks, zero-width / bidi spaces, Thai-block runs, one character repeated 6+ times
WEIRD_CHARS = re.compile(
    r"[\u0300-\u036f]{3,}|[\u2000-\u200f]|[\u2028-\u202f]|[\u0e00-\u0e7f]{5,}|(.)\1{5,}"
)


@dataclass
class RawAccountData:
    """Raw signals for one account, as read from storage."""
    user_id: str
    profile: Dict[str, Any] = field(default_factory=dict)

    # Posts
    post_statuses: List[str] = field(default_factory=list)      # published / moderation / removed
    recent_published_count: int = 0
    burst_post_count: int = 0
    mass_delete_last_24h: int = 0
    post_and_delete_count: int = 0
    nsfw_post_count: int = 0
    published_word_counts: List[int] = field(default_factory=list)
    posts: List[Dict[str, Any]] = field(default_factory=list)   # latest published posts
    qualified_read_count: int = 0
    read_durations: List[float] = field(default_factory=list)

    # Comments
    comment_statuses: List[str] = field(default_factory=list)   # spam / removed
    recent_comment_count: int = 0
    total_comment_count: int = 0
    approved_comment_likes: List[int] = field(default_factory=list)
    recent_comments: List[Dict[str, Any]] = field(default_factory=list)   # content, post_id
    post_comments: List[Dict[str, Any]] = field(default_factory=list)     # author_id, post_id, parent_id

    # Community
    blocks_received: int = 0
    reports_received: int = 0
    moderation_action_count: int = 0
    last_moderation_at: Any = None

    # Economy
    gifts_received: List[Dict[str, Any]] = field(default_factory=list)   # coin_amount, sender_id
    gifts_sent_coins: List[int] = field(default_factory=list)
    withdrawal_amounts: List[float] = field(default_factory=list)

    # Activity
    rate_limit_actions: List[Optional[str]] = field(default_factory=list)
    login_times: List[Any] = field(default_factory=list)
    follower_loss_last_7: int = 0
    social_shares: int = 0

    # Graph
    follower_ids: List[str] = field(default_factory=list)
    following_ids: List[str] = field(default_factory=list)
    follower_trust_levels: List[int] = field(default_factory=list)
    profile_visitor_ids: List[Optional[str]] = field(default_factory=list)


@dataclass(frozen=True)
class CommentGraph:
    self_comment_ratio: float = 0.0
    organic_comment_ratio: float = 0.0
    comment_author_diversity: int = 0
    discussion_post_count: int = 0
    comment_reply_ratio: float = 0.0


@dataclass(frozen=True)
class ContentQualityRatios:
    low_effort_post_ratio: float = 0.0
    duplicate_content_count: int = 0
    one_line_no_media_post_ratio: float = 0.0
    weird_char_post_ratio: float = 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _ratio(part: float, whole: float) -> float:
    return part / whole if whole > 0 else 0.0


# =============================================
# POSTS
# =============================================

def post_stat_from_row(row: Mapping[str, Any]) -> PostStat:
    mentions = row.get("mentions")
    data = dict(row)
    data["mention_count"] = len(mentions) if isinstance(mentions, (list, tuple)) else 0
    return PostStat.from_mapping(data)


def content_quality_ratios(posts: Sequence[Mapping[str, Any]], published_count: int) -> ContentQualityRatios:
    """Ratios are taken against all published posts, counts over the sampled rows."""
    low_effort = sum(1 for p in posts if (p.get("word_count") or 0) < LOW_EFFORT_WORDS)

    titles = Counter()
    for p in posts:
        title = (p.get("title") or "").strip().lower()
        if len(title) >= MIN_TITLE_LENGTH:
            titles[title] += 1
    duplicates = sum(n for n in titles.values() if n >= 2)

    one_liners = sum(
        1 for p in posts
        if (p.get("word_count") or 0) < ONE_LINE_WORDS and not p.get("featured_image")
    )
    weird = sum(1 for p in posts if WEIRD_CHARS.search(p.get("title") or ""))

    return ContentQualityRatios(
        low_effort_post_ratio=_ratio(low_effort, published_count),
        duplicate_content_count=duplicates,
        one_line_no_media_post_ratio=_ratio(one_liners, published_count),
        weird_char_post_ratio=_ratio(weird, published_count),
    )


# =============================================
# ACTIVITY
# =============================================

def active_days(login_times: Iterable[Any], last_active_at: Any, now: datetime) -> Set[date]:
    """Distinct UTC dates with a login in the trailing window."""
    window_start = now - timedelta(days=ACTIVITY_WINDOW_DAYS)
    days = set()
    for value in login_times:
        dt = parse_datetime(value)
        if dt is not None and dt >= window_start:
            days.add(dt.astimezone(timezone.utc).date())
    last_active = parse_datetime(last_active_at)
    if last_active is not None and last_active >= window_start:
        days.add(last_active.astimezone(timezone.utc).date())
    return days


def login_streak(days: Set[date], today: date) -> int:
    """Consecutive days with a login, ending today."""
    streak = 0
    for offset in range(STREAK_LOOKBACK_DAYS):
        if today - timedelta(days=offset) not in days:
            break
        streak += 1
    return streak


def rate_limit_hits(actions: Iterable[Optional[str]]) -> List[RateLimitHit]:
    counts = Counter(action or "unknown" for action in actions)
    return [RateLimitHit(action=a, count=n) for a, n in counts.items()]


# =============================================
# COMMENTS
# =============================================

def duplicate_comment_groups(comments: Iterable[Mapping[str, Any]]) -> int:
    """Distinct comment texts the user pasted under at least three different posts."""
    posts_by_text: Dict[str, Set[Any]] = defaultdict(set)
    for c in comments:
        text = (c.get("content") or "").strip().lower()
        if len(text) < MIN_DUPLICATE_COMMENT_LENGTH:
            continue
        posts_by_text[text].add(c.get("post_id"))
    return sum(1 for post_ids in posts_by_text.values() if len(post_ids) >= DUPLICATE_COMMENT_MIN_POSTS)


def comment_graph(comments: Sequence[Mapping[str, Any]], user_id: str) -> CommentGraph:
    """Who comments on the user's posts, and does the user answer them."""
    total = len(comments)
    if total == 0:
        return CommentGraph()

    own = [c for c in comments if c.get("author_id") == user_id]
    others = [c for c in comments if c.get("author_id") != user_id]

    self_ratio = len(own) / total

    commenters_by_post: Dict[Any, Set[Any]] = defaultdict(set)
    for c in others:
        commenters_by_post[c.get("post_id")].add(c.get("author_id"))
    discussions = sum(1 for authors in commenters_by_post.values() if len(authors) >= DISCUSSION_MIN_COMMENTERS)

    other_roots = sum(1 for c in others if not c.get("parent_id"))
    own_replies = sum(1 for c in own if c.get("parent_id"))
    reply_ratio = min(1.0, own_replies / other_roots) if other_roots > 0 else 0.0

    return CommentGraph(
        self_comment_ratio=self_ratio,
        organic_comment_ratio=1 - self_ratio,
        comment_author_diversity=len({c.get("author_id") for c in others}),
        discussion_post_count=discussions,
        comment_reply_ratio=reply_ratio,
    )


# =============================================
# ECONOMY & GRAPH
# =============================================

def gift_concentration(gifts: Iterable[Mapping[str, Any]]) -> Tuple[float, int, float]:
    """(total coins, distinct senders, share of the biggest sender)."""
    total = 0.0
    by_sender: Dict[Any, float] = defaultdict(float)
    for g in gifts:
        coins = as_float(g.get("coin_amount"))
        total += coins
        sender = g.get("sender_id")
        if sender:
            by_sender[sender] += coins
    top = max(by_sender.values()) if by_sender else 0
    return total, len(by_sender), _ratio(top, total)


def suspicious_withdrawals(amounts: Iterable[float], ceiling: float = SUSPICIOUS_WITHDRAWAL_CEILING) -> int:
    """Withdrawals hugging the minimum payout."""
    return sum(1 for a in amounts if 0 < as_float(a) <= ceiling)


def mutual_follow_ratio(follower_ids: Sequence[str], following_ids: Sequence[str]) -> float:
    followers = [f for f in follower_ids if f]
    following = {f for f in following_ids if f}
    mutual = sum(1 for f in followers if f in following)
    return _ratio(mutual, len(followers))


# =============================================
# ASSEMBLY
# =============================================

def build_score_inputs(raw: RawAccountData, now: Optional[datetime] = None) -> ScoreInputs:
    now = now or datetime.now(timezone.utc)

    statuses = Counter(raw.post_statuses)
    published = statuses.get("published", 0)
    comment_statuses = Counter(raw.comment_statuses)

    post_stats = [post_stat_from_row(p) for p in raw.posts]
    quality = content_quality_ratios(raw.posts, published)
    graph = comment_graph(raw.post_comments, raw.user_id)
    gift_total, gift_senders, top_sender_ratio = gift_concentration(raw.gifts_received)

    days = active_days(raw.login_times, raw.profile.get("last_active_at"), now)

    return ScoreInputs(
        profile=AccountProfile.from_mapping(raw.profile),
        published_post_count=published,
        moderation_post_count=statuses.get("moderation", 0),
        removed_post_count=statuses.get("removed", 0),
        recent_published_count=raw.recent_published_count,
        spam_comment_count=comment_statuses.get("spam", 0),
        removed_comment_count=comment_statuses.get("removed", 0),
        recent_comment_count=raw.recent_comment_count,
        total_user_comment_count=raw.total_comment_count,
        blocks_received=raw.blocks_received,
        reports_received=raw.reports_received,
        moderation_action_count=raw.moderation_action_count,
        burst_post_count=raw.burst_post_count,
        avg_word_count=_mean([w or 0 for w in raw.published_word_counts]),
        last_moderation_date=parse_datetime(raw.last_moderation_at),
        post_stats=post_stats,
        qualified_read_count=raw.qualified_read_count,
        comment_likes_total=sum(n or 0 for n in raw.approved_comment_likes),
        gifts_received_coins=gift_total,
        gifts_sent_coins=sum(n or 0 for n in raw.gifts_sent_coins),
        rate_limit_hits=rate_limit_hits(raw.rate_limit_actions),
        active_days_last_30=len(days),
        follower_loss_last_7=raw.follower_loss_last_7,
        login_streak=login_streak(days, now.astimezone(timezone.utc).date()),
        duplicate_comment_groups=duplicate_comment_groups(raw.recent_comments),
        mass_delete_last_24h=raw.mass_delete_last_24h,
        top_gift_sender_ratio=top_sender_ratio,
        suspicious_withdrawal_count=suspicious_withdrawals(raw.withdrawal_amounts),
        self_comment_ratio=graph.self_comment_ratio,
        comment_author_diversity=graph.comment_author_diversity,
        avg_mention_per_post=_mean([p.mention_count for p in post_stats]),
        mutual_follow_ratio=mutual_follow_ratio(raw.follower_ids, raw.following_ids),
        comment_reply_ratio=graph.comment_reply_ratio,
        network_trust_avg=_mean([lvl or 0 for lvl in raw.follower_trust_levels]),
        gift_sender_diversity=gift_senders,
        avg_read_duration_on_posts=_mean([d or 0 for d in raw.read_durations]),
        social_shares_by_user=raw.social_shares,
        organic_comment_ratio=graph.organic_comment_ratio,
        discussion_post_count=graph.discussion_post_count,
        nsfw_post_ratio=_ratio(raw.nsfw_post_count, published),
        profile_visits_last_30=len(raw.profile_visitor_ids),
        unique_profile_visitors=len({v for v in raw.profile_visitor_ids if v}),
        post_and_delete_count=raw.post_and_delete_count,
        low_effort_post_ratio=quality.low_effort_post_ratio,
        duplicate_content_count=quality.duplicate_content_count,
        one_line_no_media_post_ratio=quality.one_line_no_media_post_ratio,
        weird_char_post_ratio=quality.weird_char_post_ratio,
    )
