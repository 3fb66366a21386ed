from __future__ import annotations

"""Mission score aggregation.

CONTRACT
- Inputs: ObjectiveStore, missions with declared dependencies
- Outputs (required):
  - MissionResult per mission, refreshed when one of its dependencies changes
  - ScoreBreakdown (sub, multiplier, bonus, rest, final) after every mission change
- Invariants:
  - Flat missions (no percentages) are multiplied by 1 + sum of all percentages
  - Bonus missions add their own flat value on top, unmultiplied
  - bonus_score is ceil(sub_score * bonus_multiplier) in decimal arithmetic
  - An objective change recomputes only the missions that read it, then publishes once
- Failure:
  - final score is None until bind/refresh has run or while any mission is unevaluated
  - Raises ChallengeDefinitionError when a mission reads an unknown objective
"""

import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Callable, Iterable, Sequence

from ..errors import ChallengeDefinitionError
from .missions import (
    Mission,
    MissionResult,
    ScoreFunction,
    declared_dependencies,
    evaluate_mission,
    mission_dependencies,
)
from .objectives import ObjectiveStore

BreakdownCallback = Callable[["ScoreBreakdown | None"], None]
DependencyResolver = Callable[[ScoreFunction], Sequence[str]]


@dataclass(frozen=True)
class ScoreBreakdown:
    sub_score: int | float
    bonus_multiplier: float
    bonus_score: int
    rest_score: int | float
    final_score: int | float


def _dec(value: Any) -> Decimal:
    return Decimal(str(value or 0))


def _num(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


def aggregate(results: Iterable[MissionResult]) -> ScoreBreakdown:
    """Combine mission results with the flat + percentage bonus model."""
    flat: list[MissionResult] = []
    bonus: list[MissionResult] = []
    for r in results:
        (bonus if r.percentages else flat).append(r)

    sub_score = sum((_dec(r.value) for r in flat), Decimal(0))
    # Start at 1 so missions without a bonus leave the score unchanged.
    multiplier = Decimal(1) + sum((_dec(p) for r in bonus for p in r.percentages), Decimal(0))
    bonus_score = math.ceil(sub_score * multiplier)
    rest_score = sum((_dec(r.value) for r in bonus), Decimal(0))

    return ScoreBreakdown(
        sub_score=_num(sub_score),
        bonus_multiplier=float(multiplier),
        bonus_score=bonus_score,
        rest_score=_num(rest_score),
        final_score=_num(bonus_score + rest_score),
    )


class MissionScoreAggregator:
    """Keeps mission results and the breakdown in step with an ObjectiveStore.

    One subscription is held per objective name. A change re-evaluates every
    mission reading that objective and then publishes a single breakdown.
    """

    def __init__(
        self,
        objectives: ObjectiveStore,
        dependencies: DependencyResolver | None = None,
    ) -> None:
        self._objectives = objectives
        self._dependencies = dependencies or declared_dependencies
        self._missions: list[Mission] = []
        self._readers: dict[str, list[Mission]] = {}
        self._unsubscribers: list[Callable[[], None]] = []
        self._subscribers: list[BreakdownCallback] = []
        self._breakdown: ScoreBreakdown | None = None
        self._bound = False

    @property
    def objectives(self) -> ObjectiveStore:
        return self._objectives

    @property
    def missions(self) -> tuple[Mission, ...]:
        return tuple(self._missions)

    @property
    def breakdown(self) -> ScoreBreakdown | None:
        return self._breakdown

    def score(self) -> int | float | None:
        return self._breakdown.final_score if self._breakdown else None

    def all_evaluated(self) -> bool:
        # Vacuously true for a bound challenge without missions.
        return self._bound and all(m.result is not None for m in self._missions)

    def subscribe(self, callback: BreakdownCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def dependencies_of(self, mission: Mission) -> tuple[str, ...]:
        return mission_dependencies(mission, self._dependencies)

    def add_mission(self, mission: Mission) -> None:
        """Track a mission without evaluating it yet."""
        deps = self.dependencies_of(mission)
        missing = [d for d in deps if d not in self._objectives]
        if missing:
            raise ChallengeDefinitionError(
                f"mission {mission.id} depends on unknown objectives: {', '.join(missing)}"
            )
        for dep in deps:
            readers = self._readers.get(dep)
            if readers is None:
                readers = self._readers[dep] = []
                self._unsubscribers.append(self._objectives.subscribe(dep, self._on_change))
            readers.append(mission)
        self._missions.append(mission)

    def bind(self, missions: Iterable[Mission]) -> None:
        for mission in missions:
            self.add_mission(mission)
        self.refresh()

    def rebind(self, objectives: ObjectiveStore, missions: Iterable[Mission]) -> None:
        """Switch to a new objective store; score subscribers stay attached."""
        self.detach()
        self._objectives = objectives
        self.bind(missions)

    def detach(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        self._readers.clear()
        self._missions.clear()
        self._bound = False
        self._set_breakdown(None)

    def refresh(self) -> None:
        for mission in self._missions:
            mission.result = self._evaluate(mission)
        self._bound = True
        self._reaggregate()

    def recompute(self, mission: Mission) -> None:
        mission.result = self._evaluate(mission)
        self._reaggregate()

    def _on_change(self, name: str) -> None:
        for mission in self._readers.get(name, ()):
            mission.result = self._evaluate(mission)
        self._reaggregate()

    def _evaluate(self, mission: Mission) -> MissionResult:
        return evaluate_mission(mission, self._objectives.values, self._dependencies)

    def _reaggregate(self) -> None:
        if not self.all_evaluated():
            self._set_breakdown(None)
            return
        self._set_breakdown(aggregate(m.result for m in self._missions if m.result is not None))

    def _set_breakdown(self, breakdown: ScoreBreakdown | None) -> None:
        self._breakdown = breakdown
        for callback in list(self._subscribers):
            callback(breakdown)
