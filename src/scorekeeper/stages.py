from __future__ import annotations

"""Stage catalog.

CONTRACT
- Inputs: Store (stages.json), StageDefinition records
- Outputs (required):
  - StageSnapshot (all_stages, active_stages) published after every change
  - stages.json written by save()
- Invariants:
  - Stage ids are unique; derivation is the single place that enforces it
  - Every SanitizedStage has round_sequence == (1..rounds)
  - active_stages is the rounds > 0 subsequence, re-indexed from 0
  - Mutations re-derive synchronously before returning; snapshots are immutable
- Failure:
  - add/update_stage/move_stage return Result with DUPLICATE_ID / NOT_FOUND
  - Derivation raises DuplicateStageIdError on duplicate ids
  - load() falls back to DEFAULT_STAGES when the store cannot be read
  - load() raises InvalidStagesError for a readable but malformed payload and keeps
    the previous catalog
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable

from loguru import logger
from pydantic import ValidationError

from .artifacts.schemas import StageDefinition, parse_stage_list
from .artifacts.store import Store
from .errors import DuplicateStageIdError, ErrorKind, InvalidStagesError, Result

STAGES_FILE = "stages.json"

DEFAULT_STAGES: tuple[StageDefinition, ...] = (
    StageDefinition(id="practice", name="Practice rounds", rounds=2),
    StageDefinition(id="qualifying", name="Qualifying rounds", rounds=3),
    StageDefinition(id="eighth", name="Eighth finals", rounds=0),
    StageDefinition(id="quarter", name="Quarter finals", rounds=0),
    StageDefinition(id="semi", name="Semi finals", rounds=0),
    StageDefinition(id="final", name="Final", rounds=1),
)


@dataclass(frozen=True)
class SanitizedStage:
    index: int
    id: str
    name: str
    rounds: int
    round_sequence: tuple[int, ...]


@dataclass(frozen=True)
class StageSnapshot:
    version: int
    all_stages: tuple[SanitizedStage, ...]
    active_stages: tuple[SanitizedStage, ...]


SnapshotCallback = Callable[[StageSnapshot], None]


def _sanitize(index: int, raw: StageDefinition) -> SanitizedStage:
    return SanitizedStage(
        index=index,
        id=raw.id,
        name=raw.name,
        rounds=raw.rounds,
        round_sequence=tuple(range(1, raw.rounds + 1)),
    )


def derive_views(
    raw_stages: Iterable[StageDefinition],
) -> tuple[tuple[SanitizedStage, ...], tuple[SanitizedStage, ...]]:
    """Build the (all, active) views, failing on the first duplicate id."""
    seen: set[str] = set()
    all_stages: list[SanitizedStage] = []
    for raw in raw_stages:
        if raw.id in seen:
            raise DuplicateStageIdError(raw.id)
        seen.add(raw.id)
        all_stages.append(_sanitize(len(all_stages), raw))
    active = [s for s in all_stages if s.rounds > 0]
    active_stages = tuple(
        SanitizedStage(i, s.id, s.name, s.rounds, s.round_sequence) for i, s in enumerate(active)
    )
    return tuple(all_stages), active_stages


class StageCatalog:
    """Ordered, id-unique list of tournament stages.

    Consumers either read `snapshot` or `subscribe()` to receive a new
    StageSnapshot whenever the catalog changes. Snapshots are never mutated.

    `load()` and `save()` are the only coroutines. Overlapping `save()` calls
    are not serialized; the last write to reach the store wins.
    """

    def __init__(self, store: Store) -> None:
        self._store = store
        self._raw_stages: list[StageDefinition] = []
        self._subscribers: list[SnapshotCallback] = []
        self._snapshot = StageSnapshot(version=0, all_stages=(), active_stages=())

    @classmethod
    async def create(cls, store: Store) -> StageCatalog:
        catalog = cls(store)
        await catalog.load()
        return catalog

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    @property
    def snapshot(self) -> StageSnapshot:
        return self._snapshot

    @property
    def stages(self) -> tuple[SanitizedStage, ...]:
        return self._snapshot.active_stages

    @property
    def all_stages(self) -> tuple[SanitizedStage, ...]:
        return self._snapshot.all_stages

    def raw_stages(self) -> list[dict[str, Any]]:
        return [s.model_dump() for s in self._raw_stages]

    def get(self, stage_id: str) -> SanitizedStage | None:
        for stage in self._snapshot.all_stages:
            if stage.id == stage_id:
                return stage
        return None

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def load(self) -> None:
        try:
            raw = parse_stage_list(await self._store.read(STAGES_FILE))
        except ValidationError as e:
            # The file exists; replacing it with defaults would lose it on the next save().
            logger.error("stages read error: invalid stages.json: {}", e)
            raise InvalidStagesError(str(e)) from e
        except Exception as e:
            logger.error("stages read error: {}", e)
            raw = self._defaults()
        # Derive before replacing so a bad payload leaves the catalog as it was.
        views = derive_views(raw)
        self._raw_stages = raw
        self._publish(views)

    async def save(self) -> Result[None]:
        data = self.raw_stages()
        try:
            await self._store.write(STAGES_FILE, data)
        except Exception as e:
            logger.error("stages write error: {}", e)
            return Result.failure(ErrorKind.PERSISTENCE, f"stages write error: {e}")
        return Result.success()

    @staticmethod
    def _defaults() -> list[StageDefinition]:
        logger.warning("stages using defaults")
        return [s.model_copy() for s in DEFAULT_STAGES]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, raw: StageDefinition | dict[str, Any]) -> Result[SanitizedStage]:
        stage = StageDefinition.model_validate(raw).model_copy()
        if self._position(stage.id) is not None:
            return Result.failure(ErrorKind.DUPLICATE_ID, f"duplicate stage id {stage.id}")
        self._raw_stages.append(stage)
        self._update()
        return Result.success(self.get(stage.id))

    def remove(self, stage_id: str) -> None:
        pos = self._position(stage_id)
        if pos is None:
            return
        del self._raw_stages[pos]
        self._update()

    def update_stage(self, stage: SanitizedStage) -> Result[SanitizedStage]:
        pos = self._position(stage.id)
        if pos is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"stage not found: {stage.id}")
        current = self._raw_stages[pos]
        self._raw_stages[pos] = StageDefinition(id=current.id, name=stage.name, rounds=stage.rounds)
        self._update()
        return Result.success(self.get(stage.id))

    def move_stage(self, stage: SanitizedStage, delta: int) -> Result[SanitizedStage]:
        pos = self._position(stage.id)
        if pos is None:
            return Result.failure(ErrorKind.NOT_FOUND, f"stage not found: {stage.id}")
        target = max(0, min(len(self._raw_stages) - 1, pos + delta))
        if target != pos:
            moved = self._raw_stages.pop(pos)
            self._raw_stages.insert(target, moved)
            self._update()
        return Result.success(self.get(stage.id))

    def clear(self) -> None:
        self._raw_stages.clear()
        self._update()

    # ------------------------------------------------------------------
    # Derivation
    # ------------------------------------------------------------------

    def _position(self, stage_id: str) -> int | None:
        for i, raw in enumerate(self._raw_stages):
            if raw.id == stage_id:
                return i
        return None

    def _update(self) -> None:
        self._publish(derive_views(self._raw_stages))

    def _publish(
        self, views: tuple[tuple[SanitizedStage, ...], tuple[SanitizedStage, ...]]
    ) -> None:
        all_stages, active_stages = views
        self._snapshot = StageSnapshot(
            version=self._snapshot.version + 1,
            all_stages=all_stages,
            active_stages=active_stages,
        )
        for callback in list(self._subscribers):
            callback(self._snapshot)
