"""Heuristic confidence scoring for generated rewrites.

The score is a weighted sum over independent features of the query profile
and the parsed response, starting from a base value and clamped to
[MIN_CONFIDENCE, MAX_CONFIDENCE].
"""

from collections.abc import Callable

from sqltune.models.enums import Complexity
from sqltune.models.pattern import ParsedResponse, QueryPattern
from sqltune.models.result import MAX_CONFIDENCE, MIN_CONFIDENCE

BASE_SCORE = 0.5

COMPLEXITY_ADJUSTMENTS: dict[Complexity, float] = {
    Complexity.SIMPLE: 0.3,
    Complexity.MEDIUM: 0.1,
    Complexity.COMPLEX: -0.1,
}

ConfidenceRule = tuple[str, float, Callable[[QueryPattern, ParsedResponse], bool]]

CONFIDENCE_RULES: tuple[ConfidenceRule, ...] = (
    ("anti_patterns_detected", 0.2, lambda pattern, parsed: bool(pattern.anti_patterns)),
    ("many_opportunities", 0.15, lambda pattern, parsed: len(pattern.optimization_ops) > 2),
    ("detailed_rationale", 0.1, lambda pattern, parsed: len(parsed.rationale) > 50),
    ("detailed_plan_change", 0.1, lambda pattern, parsed: len(parsed.expected_plan_change) > 50),
    ("mentions_index", 0.05, lambda pattern, parsed: "index" in parsed.proposed_sql.lower()),
)


def clamp_confidence(score: float) -> float:
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, score))


def score_confidence(pattern: QueryPattern, parsed: ParsedResponse) -> float:
    score = BASE_SCORE + COMPLEXITY_ADJUSTMENTS.get(pattern.complexity, 0.0)
    for _name, weight, applies in CONFIDENCE_RULES:
        if applies(pattern, parsed):
            score += weight
    return clamp_confidence(score)


__all__ = ["score_confidence", "clamp_confidence", "CONFIDENCE_RULES", "BASE_SCORE"]
