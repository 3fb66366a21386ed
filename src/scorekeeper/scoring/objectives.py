from __future__ import annotations

"""Objective values with change notification.

CONTRACT
- Inputs: Objective definitions (name, default, min, max)
- Outputs:
  - Current value per objective name
  - Change notifications pushed to subscribers of that name
- Invariants:
  - inc() never exceeds `max`, dec() never goes below `min` (0 when unset)
  - Subscribers are only notified when a value actually changes
- Failure:
  - Raises KeyError for unknown objective names
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

ChangeCallback = Callable[[str], None]


@dataclass
class Objective:
    name: str
    default: Any = None
    min: float | None = None
    max: float | None = None
    title: str = ""
    value: Any = None

    def __post_init__(self) -> None:
        if self.value is None:
            self.value = self.default


@dataclass
class ObjectiveStore:
    objectives: dict[str, Objective] = field(default_factory=dict)
    _subscribers: dict[str, list[ChangeCallback]] = field(default_factory=dict, repr=False)

    @classmethod
    def from_objectives(cls, objectives: Iterable[Objective]) -> ObjectiveStore:
        return cls(objectives={o.name: o for o in objectives})

    def __contains__(self, name: str) -> bool:
        return name in self.objectives

    def __getitem__(self, name: str) -> Objective:
        return self.objectives[name]

    def value(self, name: str) -> Any:
        return self.objectives[name].value

    def values(self, names: Iterable[str]) -> list[Any]:
        return [self.objectives[n].value for n in names]

    def snapshot(self) -> dict[str, Any]:
        return {name: o.value for name, o in self.objectives.items()}

    def subscribe(self, name: str, callback: ChangeCallback) -> Callable[[], None]:
        if name not in self.objectives:
            raise KeyError(name)
        callbacks = self._subscribers.setdefault(name, [])
        callbacks.append(callback)

        def unsubscribe() -> None:
            if callback in callbacks:
                callbacks.remove(callback)

        return unsubscribe

    def set(self, name: str, value: Any) -> None:
        objective = self.objectives[name]
        if objective.value == value and type(objective.value) is type(value):
            return
        objective.value = value
        for callback in list(self._subscribers.get(name, [])):
            callback(name)

    def inc(self, name: str, amount: float | None = None) -> None:
        objective = self.objectives[name]
        upper = objective.max if objective.max is not None else float("inf")
        self.set(name, min(upper, (objective.value or 0) + (amount or 1)))

    def dec(self, name: str, amount: float | None = None) -> None:
        objective = self.objectives[name]
        lower = objective.min if objective.min is not None else 0
        self.set(name, max(lower, (objective.value or 0) - (amount or 1)))

    def reset(self) -> None:
        for name, objective in self.objectives.items():
            self.set(name, objective.default)
