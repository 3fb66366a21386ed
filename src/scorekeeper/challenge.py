from __future__ import annotations

"""Challenge definition provider.

CONTRACT
- Inputs: Challenge selector (module name under scorekeeper.challenges)
- Outputs (required):
  - ChallengeDefinition (field, missions, objective_index)
- Invariants:
  - Every load() returns fresh objectives at their declared defaults
  - get_dependencies() returns the objective names a score function reads, in order
- Failure:
  - Raises ChallengeDefinitionError if the module is missing or has no build()
"""

import asyncio
import importlib
import re
from dataclasses import dataclass
from typing import Any, Protocol

from .errors import ChallengeDefinitionError
from .scoring.missions import Mission, ScoreFunction
from .scoring.objectives import ObjectiveStore

DEFAULT_CHALLENGE = "sample"
_SELECTOR_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,63}$")


@dataclass
class ChallengeDefinition:
    field: dict[str, Any]
    missions: list[Mission]
    objective_index: ObjectiveStore


class ChallengeProvider(Protocol):
    async def load(self, selector: str | None) -> ChallengeDefinition: ...
    def get_dependencies(self, score_function: ScoreFunction) -> list[str]: ...


@dataclass(frozen=True)
class ModuleChallengeProvider:
    package: str = "scorekeeper.challenges"

    def _import(self, selector: str | None) -> ChallengeDefinition:
        name = selector or DEFAULT_CHALLENGE
        if not _SELECTOR_RE.fullmatch(name):
            raise ChallengeDefinitionError(f"Invalid challenge name: {name}")
        try:
            module = importlib.import_module(f"{self.package}.{name}")
        except ImportError as exc:
            raise ChallengeDefinitionError(f"Unknown challenge: {name}") from exc
        build = getattr(module, "build", None)
        if build is None:
            raise ChallengeDefinitionError(f"Challenge {name} has no build()")
        return build()

    async def load(self, selector: str | None) -> ChallengeDefinition:
        return await asyncio.to_thread(self._import, selector)

    def get_dependencies(self, score_function: ScoreFunction) -> list[str]:
        return list(score_function.dependencies)
