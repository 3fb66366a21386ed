from __future__ import annotations

"""Missions and their scoring functions.

CONTRACT
- Inputs: Plain callables decorated with @score_function("objective", ...)
- Outputs:
  - ScoreFunction (callable + declared dependencies)
  - Mission (ordered score functions, dependency union)
  - MissionResult (value, errors, percentages)
- Invariants:
  - A mission's dependencies are the ordered union of its functions' declared dependencies
  - A result in the open interval (0, 1) that is not an integer is a percentage bonus
- Failure:
  - EvaluationError raised or returned by a function is collected, never propagated
  - NaN and infinite results are collected as EvaluationError
"""

import math
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from ..errors import EvaluationError


@dataclass(frozen=True)
class ScoreFunction:
    fn: Callable[..., Any]
    dependencies: tuple[str, ...]

    def __call__(self, *values: Any) -> Any:
        return self.fn(*values)

    @property
    def name(self) -> str:
        return getattr(self.fn, "__name__", "score")


def score_function(*dependencies: str) -> Callable[[Callable[..., Any]], ScoreFunction]:
    """Declare which objectives a scoring function reads, in argument order."""

    def wrap(fn: Callable[..., Any]) -> ScoreFunction:
        return ScoreFunction(fn=fn, dependencies=tuple(dependencies))

    return wrap


@dataclass
class MissionResult:
    value: float = 0
    errors: list[EvaluationError] = field(default_factory=list)
    percentages: list[float] = field(default_factory=list)


@dataclass
class Mission:
    id: str
    score_functions: Sequence[ScoreFunction]
    title: str = ""
    description: str = ""
    result: MissionResult | None = None

    @property
    def dependencies(self) -> tuple[str, ...]:
        return mission_dependencies(self)


def declared_dependencies(score_function: ScoreFunction) -> tuple[str, ...]:
    return score_function.dependencies


def mission_dependencies(
    mission: Mission,
    dependencies: Callable[[ScoreFunction], Sequence[str]] = declared_dependencies,
) -> tuple[str, ...]:
    """Ordered union of the objective names read by a mission's functions."""
    deps: list[str] = []
    for sf in mission.score_functions:
        for dep in dependencies(sf):
            if dep not in deps:
                deps.append(dep)
    return tuple(deps)


def is_percentage(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    if not math.isfinite(value) or float(value).is_integer():
        return False
    return 0 < value < 1


def evaluate_mission(
    mission: Mission,
    lookup: Callable[[Sequence[str]], list[Any]],
    dependencies: Callable[[ScoreFunction], Sequence[str]] | None = None,
) -> MissionResult:
    """Evaluate every scoring function of a mission against current objective values.

    `dependencies` resolves the objective names passed to each function; by
    default the names the function declared.
    """
    resolve = dependencies or declared_dependencies
    result = MissionResult()
    total: float = 0
    for sf in mission.score_functions:
        try:
            res = sf(*lookup(resolve(sf)))
        except EvaluationError as e:
            res = e
        if isinstance(res, EvaluationError):
            result.errors.append(res)
            continue
        if res is None:
            continue
        if isinstance(res, bool):
            res = int(res)
        if not isinstance(res, (int, float)):
            result.errors.append(
                EvaluationError(f"{mission.id}.{sf.name} returned {type(res).__name__}")
            )
            continue
        if isinstance(res, float) and not math.isfinite(res):
            result.errors.append(EvaluationError(f"{mission.id}.{sf.name} returned {res}"))
            continue
        if is_percentage(res):
            result.percentages.append(res)
            continue
        total += res
    result.value = total
    return result
