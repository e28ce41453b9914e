"""
GymBuddy — Compatibility scoring between two fitness profiles.

Additive point system over six independent criteria, evaluated in a fixed
order:

  1. Goal          +3 when goals are equal
  2. Styles        +3 per shared style (uncapped)
  3. Time slots    +2 per shared slot, capped at 6
  4. Gym/location  +3 same gym (case-insensitive), else +2 same location
  5. Level         +1 when levels are equal
  6. Availability  +2 per shared day, capped at 8

Normalised score = round(raw / 25, 2).  25 is a fixed denominator rather
than a true maximum: style overlap is uncapped, so a pair sharing many
styles can score above 1.0.  The score is never clamped.
"""

from __future__ import annotations

from typing import Iterable, Sequence, TypeVar

import structlog

from gymbuddy.schemas.fitness_profile import FitnessAttributes
from gymbuddy.schemas.match import CategoryScore, CompatibilityBreakdown, CriterionResult
from gymbuddy.services.formatting import format_goal, format_style

logger = structlog.get_logger("gymbuddy.compatibility_service")

_T = TypeVar("_T")


class CompatibilityService:
    """Score and rank gym-buddy candidates.

    Stateless: every method is a pure function of its arguments, so a single
    instance can be shared across requests.
    """

    # ── Point weights ───────────────────────────────────────────────
    GOAL_POINTS: int = 3
    STYLE_POINTS_PER_MATCH: int = 3
    TIME_SLOT_POINTS_PER_MATCH: int = 2
    TIME_SLOT_CAP: int = 6
    GYM_POINTS: int = 3
    LOCATION_POINTS: int = 2
    LEVEL_POINTS: int = 1
    DAY_POINTS_PER_MATCH: int = 2
    DAY_CAP: int = 8

    MAX_POSSIBLE_SCORE: int = 25
    DEFAULT_RANK_LIMIT: int = 3

    # ── Display percentages per category (details view) ─────────────
    STYLE_PERCENT_PER_MATCH: int = 25
    TIME_SLOT_PERCENT_PER_MATCH: int = 33
    DAY_PERCENT_PER_MATCH: int = 14
    LOCATION_ONLY_PERCENT: int = 60

    CATEGORY_NAMES: dict[str, str] = {
        "goal": "Fitness Goal",
        "style": "Training Style",
        "time": "Workout Times",
        "location": "Location",
        "availability": "Availability",
        "level": "Fitness Level",
    }

    # ── Public API ──────────────────────────────────────────────────

    def evaluate(
        self, self_attrs: FitnessAttributes, other_attrs: FitnessAttributes
    ) -> CompatibilityBreakdown:
        """Run all six criteria and return the structured result.

        Criteria that do not fire still appear in ``criteria`` with zero
        points and no reason, so consumers can index by position or tag.
        """
        criteria = (
            self._score_goal(self_attrs, other_attrs),
            self._score_styles(self_attrs, other_attrs),
            self._score_time_slots(self_attrs, other_attrs),
            self._score_location(self_attrs, other_attrs),
            self._score_level(self_attrs, other_attrs),
            self._score_availability(self_attrs, other_attrs),
        )
        raw_score = sum(c.points for c in criteria)
        score = round(raw_score / self.MAX_POSSIBLE_SCORE, 2)

        logger.debug(
            "compatibility.evaluated",
            raw_score=raw_score,
            score=score,
            triggered=[c.criterion for c in criteria if c.triggered],
        )

        return CompatibilityBreakdown(raw_score=raw_score, score=score, criteria=criteria)

    def score(
        self, self_attrs: FitnessAttributes, other_attrs: FitnessAttributes
    ) -> tuple[float, list[str]]:
        """Return ``(normalised_score, reasons)`` for a pair of profiles."""
        breakdown = self.evaluate(self_attrs, other_attrs)
        return breakdown.score, breakdown.reasons

    def rank(self, candidates: Sequence[_T], limit: int = DEFAULT_RANK_LIMIT) -> list[_T]:
        """Return the ``limit`` highest-scoring candidates.

        Candidates only need a ``compatibility_score`` attribute.  The input
        is not mutated; ties keep their input order.
        """
        if limit <= 0:
            return []
        ordered = sorted(candidates, key=lambda c: c.compatibility_score, reverse=True)
        return ordered[:limit]

    def category_breakdown(self, criteria: Iterable[CriterionResult]) -> list[CategoryScore]:
        """Per-category display percentages derived from the structured criteria.

        Accepts ``CompatibilityBreakdown.criteria`` or
        ``ScoredCandidate.criteria``.  Returned in the order the details
        dialog lists them: goal, style, time, location, availability, level.
        """
        by_tag = {c.criterion: c for c in criteria}
        categories: list[CategoryScore] = []

        for tag in ("goal", "style", "time", "location", "availability", "level"):
            result = by_tag.get(tag)
            if result is None or not result.triggered:
                categories.append(
                    CategoryScore(
                        name=self.CATEGORY_NAMES[tag],
                        percentage=0,
                        detail=f"No matching {tag}",
                    )
                )
                continue

            if tag == "style":
                percentage = int(result.detail) * self.STYLE_PERCENT_PER_MATCH
            elif tag == "time":
                percentage = int(result.detail) * self.TIME_SLOT_PERCENT_PER_MATCH
            elif tag == "availability":
                percentage = int(result.detail) * self.DAY_PERCENT_PER_MATCH
            elif tag == "location":
                percentage = 100 if result.detail == "gym" else self.LOCATION_ONLY_PERCENT
            else:
                percentage = 100

            categories.append(
                CategoryScore(
                    name=self.CATEGORY_NAMES[tag],
                    percentage=min(percentage, 100),
                    detail=result.reason,
                )
            )

        return categories

    # ── Criteria ────────────────────────────────────────────────────

    def _score_goal(self, a: FitnessAttributes, b: FitnessAttributes) -> CriterionResult:
        if a.goal != b.goal:
            return CriterionResult(criterion="goal", points=0)
        return CriterionResult(
            criterion="goal",
            points=self.GOAL_POINTS,
            detail=a.goal,
            reason=f"You both have the same fitness goal: {format_goal(a.goal)}",
        )

    def _score_styles(self, a: FitnessAttributes, b: FitnessAttributes) -> CriterionResult:
        shared = sorted(a.styles & b.styles)
        if not shared:
            return CriterionResult(criterion="style", points=0, detail=0)
        labels = ", ".join(format_style(style) for style in shared)
        return CriterionResult(
            criterion="style",
            points=len(shared) * self.STYLE_POINTS_PER_MATCH,
            detail=len(shared),
            reason=f"You share {len(shared)} training styles: {labels}",
        )

    def _score_time_slots(self, a: FitnessAttributes, b: FitnessAttributes) -> CriterionResult:
        shared = a.preferred_time_slots & b.preferred_time_slots
        if not shared:
            return CriterionResult(criterion="time", points=0, detail=0)
        return CriterionResult(
            criterion="time",
            points=min(len(shared) * self.TIME_SLOT_POINTS_PER_MATCH, self.TIME_SLOT_CAP),
            detail=len(shared),
            reason=f"You have {len(shared)} compatible workout times",
        )

    def _score_location(self, a: FitnessAttributes, b: FitnessAttributes) -> CriterionResult:
        # Same gym is the more specific signal and suppresses the location one
        if a.gym_name and b.gym_name and a.gym_name.lower() == b.gym_name.lower():
            return CriterionResult(
                criterion="location",
                points=self.GYM_POINTS,
                detail="gym",
                reason=f"You both work out at {a.gym_name}",
            )
        if a.location == b.location:
            return CriterionResult(
                criterion="location",
                points=self.LOCATION_POINTS,
                detail="location",
                reason=f"You're both in {a.location}",
            )
        return CriterionResult(criterion="location", points=0)

    def _score_level(self, a: FitnessAttributes, b: FitnessAttributes) -> CriterionResult:
        if a.level != b.level:
            return CriterionResult(criterion="level", points=0)
        return CriterionResult(
            criterion="level",
            points=self.LEVEL_POINTS,
            detail=a.level,
            reason=f"You're both at a {a.level} fitness level",
        )

    def _score_availability(self, a: FitnessAttributes, b: FitnessAttributes) -> CriterionResult:
        shared = a.availability_days & b.availability_days
        if not shared:
            return CriterionResult(criterion="availability", points=0, detail=0)
        return CriterionResult(
            criterion="availability",
            points=min(len(shared) * self.DAY_POINTS_PER_MATCH, self.DAY_CAP),
            detail=len(shared),
            reason=f"You share {len(shared)} days of availability",
        )
