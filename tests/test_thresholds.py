import math

import pytest

from feedtrust.scoring import thresholds as t
from feedtrust.scoring.thresholds import CeilingTier, Tier, table


def test_post_count_first_matching_tier_wins():
    assert t.POST_COUNT.lookup(0) == 0
    assert t.POST_COUNT.lookup(1) == 2
    assert t.POST_COUNT.lookup(30) == 6
    assert t.POST_COUNT.lookup(50) == 8
    assert t.POST_COUNT.lookup(10_000) == 8


def test_exclusive_top_tier_on_blocks():
    assert t.BLOCKS_PENALTY.lookup(0) == 0
    assert t.BLOCKS_PENALTY.lookup(1) == -2
    assert t.BLOCKS_PENALTY.lookup(10) == -10
    assert t.BLOCKS_PENALTY.lookup(11) == -20


def test_engagement_rate_needs_some_interaction():
    assert t.ENGAGEMENT_RATE.lookup(0) == 0
    assert t.ENGAGEMENT_RATE.lookup(0.01) == 2
    assert t.ENGAGEMENT_RATE.lookup(0.03) == 4
    assert t.ENGAGEMENT_RATE.lookup(0.15) == 8


def test_following_ratio_ceiling_tiers():
    assert t.FOLLOWING_RATIO.lookup(0) == 2
    assert t.FOLLOWING_RATIO.lookup(2.99) == 2
    assert t.FOLLOWING_RATIO.lookup(3) == 1
    assert t.FOLLOWING_RATIO.lookup(10) == 0
    assert t.FOLLOWING_RATIO.lookup(math.inf) == 0


def test_nsfw_tiers_are_strict():
    assert t.NSFW_RATIO_PENALTY.lookup(0.10) == 0
    assert t.NSFW_RATIO_PENALTY.lookup(0.5) == -6
    assert t.NSFW_RATIO_PENALTY.lookup(0.51) == -10


@pytest.mark.parametrize("days,expected", [
    (0, 1.0), (2.9, 1.0), (3, 0.8), (6.9, 0.8), (7, 0.6), (13.9, 0.6), (14, 0.4), (400, 0.4),
])
def test_rehabilitation_decay_table(days, expected):
    assert t.REHABILITATION_DECAY.lookup(days) == expected


def test_unordered_table_is_rejected():
    with pytest.raises(ValueError):
        table("broken", (1, 2), (10, 5))
    with pytest.raises(ValueError):
        table("broken_ceiling", CeilingTier(10, 1), CeilingTier(3, 2))


def test_all_tables_collected():
    names = {tbl.name for tbl in t.ALL_TABLES}
    assert "post_count" in names
    assert "rehabilitation_decay" in names
    assert len(names) == len(t.ALL_TABLES)


def test_as_rows_describes_operators():
    rows = table("demo", Tier(5, -3, inclusive=False), (1, -1)).as_rows()
    assert rows == [
        {"table": "demo", "when": "> 5", "points": -3},
        {"table": "demo", "when": ">= 1", "points": -1},
    ]


def test_dimension_caps():
    assert sum(t.PROFILE_CAPS.values()) == 121
    assert t.SPAM_CAPS["moderation_history"] == 30
    assert t.SPAM_CAPS["follower_loss"] == 15
