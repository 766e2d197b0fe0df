"""
Feedtrust — Score Aggregators

Each aggregate score is an explicit staged pipeline. Stage order is the
contract, and every stage's output is kept in the trace:

    Profile:  sum → clamp → shadow_ban (−50, floor 0) → round
    Spam:     sum → clamp → decay (×multiplier) → shadow_ban (+50, cap 100) → round

Shadow-ban adjustments always run after clamping. Decay runs after the six
spam dimensions are summed and before the shadow-ban floor raise.
"""
import math
from datetime import datetime, timezone
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from feedtrust.scoring import thresholds as t
from feedtrust.scoring.models import DimensionScore, ScoreInputs
from feedtrust.scoring.profile import PROFILE_DIMENSIONS
from feedtrust.scoring.spam import SPAM_DIMENSIONS, rehabilitation_multiplier

DimensionFn = Callable[[ScoreInputs, datetime], DimensionScore]
StageFn = Callable[[float, ScoreInputs, datetime], float]


@dataclass(frozen=True)
class Stage:
    name: str
    value: float


@dataclass(frozen=True)
class AggregateScore:
    name: str
    score: float
    dimensions: Tuple[DimensionScore, ...]
    stages: Tuple[Stage, ...]

    def dimension(self, name: str) -> DimensionScore:
        for d in self.dimensions:
            if d.name == name:
                return d
        raise KeyError(name)

    def stage(self, name: str) -> float:
        for s in self.stages:
            if s.name == name:
                return s.value
        raise KeyError(name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "dimensions": {d.name: d.to_dict() for d in self.dimensions},
            "stages": [{"stage": s.name, "value": round(s.value, 4)} for s in self.stages],
        }


# ── Stages ────────────────────────────────────────

def clamp(value: float, inputs: ScoreInputs, now: datetime) -> float:
    return max(t.SCORE_MIN, min(t.SCORE_MAX, value))


def round2(value: float, inputs: ScoreInputs, now: datetime) -> float:
    """Two decimals, halves rounded up."""
    return math.floor(value * 100 + 0.5) / 100


def profile_shadow_ban(value: float, inputs: ScoreInputs, now: datetime) -> float:
    if inputs.profile.shadow_banned:
        return max(t.SCORE_MIN, value - t.SHADOW_BAN_PROFILE_PENALTY)
    return value


def rehabilitation_decay(value: float, inputs: ScoreInputs, now: datetime) -> float:
    return value * rehabilitation_multiplier(inputs.last_moderation_date, now)


def spam_shadow_ban(value: float, inputs: ScoreInputs, now: datetime) -> float:
    if inputs.profile.shadow_banned:
        return min(t.SCORE_MAX, value + t.SHADOW_BAN_SPAM_FLOOR_RAISE)
    return min(t.SCORE_MAX, max(t.SCORE_MIN, value))


# ── Pipelines ─────────────────────────────────────

class ScorePipeline:
    """Sum a set of dimensions, then run the value through ordered stages."""

    name: str = "score"
    dimensions: Sequence[DimensionFn] = ()
    stages: Sequence[Tuple[str, StageFn]] = ()

    def evaluate(self, inputs: ScoreInputs, now: Optional[datetime] = None) -> AggregateScore:
        now = now or datetime.now(timezone.utc)
        dims = tuple(calc(inputs, now) for calc in self.dimensions)

        value = sum(d.score for d in dims)
        trace = [Stage("sum", value)]
        for stage_name, stage in self.stages:
            value = stage(value, inputs, now)
            trace.append(Stage(stage_name, value))

        return AggregateScore(name=self.name, score=value, dimensions=dims, stages=tuple(trace))

    def compute(self, inputs: ScoreInputs, now: Optional[datetime] = None) -> float:
        return self.evaluate(inputs, now).score


class ProfileScoreAggregator(ScorePipeline):
    name = "profile_score"
    dimensions = PROFILE_DIMENSIONS
    stages = (
        ("clamp", clamp),
        ("shadow_ban", profile_shadow_ban),
        ("round", round2),
    )


class SpamScoreAggregator(ScorePipeline):
    name = "spam_score"
    dimensions = SPAM_DIMENSIONS
    stages = (
        ("clamp", clamp),
        ("decay", rehabilitation_decay),
        ("shadow_ban", spam_shadow_ban),
        ("round", round2),
    )


_profile_aggregator = ProfileScoreAggregator()
_spam_aggregator = SpamScoreAggregator()


def compute_profile_score(inputs: ScoreInputs, now: Optional[datetime] = None) -> float:
    """Profile quality score in [0, 100], two decimals."""
    return _profile_aggregator.compute(inputs, now)


def compute_spam_score(inputs: ScoreInputs, now: Optional[datetime] = None) -> float:
    """Spam/abuse score in [0, 100], two decimals."""
    return _spam_aggregator.compute(inputs, now)
