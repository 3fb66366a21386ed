from __future__ import annotations

"""Persisted record schemas.

CONTRACT
- Inputs: Pydantic models
- Outputs:
  - Validated JSON-serializable objects
- Invariants:
  - Defines the shape of every persisted record (stages.json, scores.json, score_*.json)
  - Stage ids are non-empty strings, rounds are never negative
- Failure:
  - Raises ValidationError on schema mismatch
"""

from typing import Any

from pydantic import BaseModel, Field, TypeAdapter


class StageDefinition(BaseModel):
    id: str = Field(min_length=1)
    name: str = ""
    rounds: int = Field(default=1, ge=0)


class Team(BaseModel):
    number: int
    name: str = ""


class StageRef(BaseModel):
    id: str
    name: str = ""


class ScoreRecord(BaseModel):
    file: str
    team: Team
    stage: StageRef
    round: int
    score: int | float | None = None


class ScoreDetail(BaseModel):
    """Full snapshot written to score_<table>_<team>_<ms>.json."""

    schema_version: int = 1
    objectives: dict[str, Any] = Field(default_factory=dict)
    team: Team
    stage: StageRef
    round: int
    table: str | None = None
    signature: Any = None


_STAGE_LIST = TypeAdapter(list[StageDefinition])
_SCORE_LIST = TypeAdapter(list[ScoreRecord])


def parse_stage_list(data: Any) -> list[StageDefinition]:
    return _STAGE_LIST.validate_python(data)


def parse_score_list(data: Any) -> list[ScoreRecord]:
    return _SCORE_LIST.validate_python(data)
