"""Score arithmetic shared by all analyzers, plus the overall aggregator."""

import math
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .models import CategoryResult, Rating


def round_score(value: float) -> int:
    """Round half up (2.5 -> 3), unlike Python's banker's rounding."""
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(0, min(100, round_score(value)))


def percentage(part: int, total: int, empty: int = 0) -> int:
    """Rounded share of part in total, or `empty` when total is zero."""
    if total <= 0:
        return empty
    return round_score(part / total * 100)


def get_rating(score: float) -> Rating:
    if score >= 90:
        return Rating.EXCELLENT
    if score >= 70:
        return Rating.GOOD
    if score >= 50:
        return Rating.NEEDS_IMPROVEMENT
    return Rating.POOR


def weighted_score(scores: Mapping[str, float], weights: Mapping[str, float]) -> int:
    """Weighted mean of per-check scores, normalized by the weights in use.

    Checks missing from `scores` or carrying zero weight do not count.
    """
    total = 0.0
    total_weight = 0.0
    for name, weight in weights.items():
        if weight <= 0 or name not in scores:
            continue
        total += scores[name] * weight
        total_weight += weight
    if total_weight == 0:
        return 0
    return clamp_score(total / total_weight)


@dataclass(frozen=True)
class ScoreSummary:
    overall_score: int
    score_rating: Rating


def aggregate(results: Iterable[CategoryResult]) -> ScoreSummary:
    """Combine category results into an overall score and rating."""
    results: Sequence[CategoryResult] = list(results)
    total_weight = sum(float(r.weight) for r in results)
    if total_weight <= 0:
        return ScoreSummary(overall_score=0, score_rating=get_rating(0))

    weighted = sum(r.category_score * float(r.weight) for r in results)
    overall = clamp_score(weighted / total_weight)
    return ScoreSummary(overall_score=overall, score_rating=get_rating(overall))
