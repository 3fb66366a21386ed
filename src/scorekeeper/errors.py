from __future__ import annotations

"""Error kinds and result values.

CONTRACT
- Inputs: Catalog and persistence failures
- Outputs:
  - Result(ok=True, value=...) or Result(ok=False, error=CatalogError(...))
- Invariants:
  - Recoverable invariant violations (duplicate id, unknown id, failed write) are returned,
    not raised, so callers have to look at `ok`
  - `unwrap()` is the only place a failed Result turns into an exception
- Failure:
  - Raises StageCatalogError from unwrap() on a failed Result
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    DUPLICATE_ID = "duplicate_id"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence"
    INVALID = "invalid"


@dataclass(frozen=True)
class CatalogError:
    kind: ErrorKind
    message: str


class StageCatalogError(Exception):
    def __init__(self, error: CatalogError) -> None:
        super().__init__(error.message)
        self.error = error


class DuplicateStageIdError(StageCatalogError):
    """Raised when a derived stage list would contain the same id twice."""

    def __init__(self, stage_id: str) -> None:
        super().__init__(CatalogError(ErrorKind.DUPLICATE_ID, f"duplicate stage id {stage_id}"))
        self.stage_id = stage_id


class InvalidStagesError(StageCatalogError):
    """Raised when a stored stage list is readable but does not match the schema."""

    def __init__(self, detail: str) -> None:
        super().__init__(CatalogError(ErrorKind.INVALID, f"invalid stages.json: {detail}"))


class PersistenceError(Exception):
    """A read or write against the data directory failed."""


class EvaluationError(Exception):
    """A scoring function cannot produce a number for the current objective values."""


class ChallengeDefinitionError(Exception):
    pass


class SessionIncompleteError(Exception):
    pass


@dataclass(frozen=True)
class Result(Generic[T]):
    ok: bool
    value: T | None = None
    error: CatalogError | None = None

    @classmethod
    def success(cls, value: T | None = None) -> Result[T]:
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> Result[T]:
        return cls(ok=False, error=CatalogError(kind, message))

    def unwrap(self) -> T | None:
        if not self.ok:
            assert self.error is not None
            raise StageCatalogError(self.error)
        return self.value
