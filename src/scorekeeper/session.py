from __future__ import annotations

"""Scoring session selections.

CONTRACT
- Inputs: Selection events (team, stage, round, signature)
- Outputs:
  - Read-only view of the current selections
- Invariants:
  - Fields change only through the selection methods or reset()
- Failure:
  - None; incomplete sessions are reported by `complete`
"""

from typing import Any

from .artifacts.schemas import Team
from .stages import SanitizedStage


class SessionState:
    def __init__(self) -> None:
        self._team: Team | None = None
        self._stage: SanitizedStage | None = None
        self._round: int | None = None
        self._signature: Any = None

    @property
    def team(self) -> Team | None:
        return self._team

    @property
    def stage(self) -> SanitizedStage | None:
        return self._stage

    @property
    def round(self) -> int | None:
        return self._round

    @property
    def signature(self) -> Any:
        return self._signature

    @property
    def complete(self) -> bool:
        return all(
            v is not None for v in (self._team, self._stage, self._round, self._signature)
        )

    def select_team(self, team: Team | None) -> None:
        self._team = team

    def choose_stage(self, stage: SanitizedStage | None) -> None:
        self._stage = stage

    def choose_round(self, round_: int | None) -> None:
        self._round = round_

    def sign(self, signature: Any) -> None:
        self._signature = signature

    def reset(self) -> None:
        self._team = None
        self._stage = None
        self._round = None
        self._signature = None
