from __future__ import annotations

"""Score ledger (scores.json).

CONTRACT
- Inputs: Store, ScoreRecord entries
- Outputs (required):
  - scores.json holding the ordered list of score records
- Invariants:
  - Records keep insertion order
- Failure:
  - load() logs and starts empty when scores.json cannot be read
  - save() propagates PersistenceError to the caller
"""

from typing import Any

from loguru import logger

from .artifacts.schemas import ScoreRecord, parse_score_list
from .artifacts.store import Store

SCORES_FILE = "scores.json"


class ScoreLedger:
    def __init__(self, store: Store) -> None:
        self._store = store
        self._records: list[ScoreRecord] = []

    @property
    def records(self) -> tuple[ScoreRecord, ...]:
        return tuple(self._records)

    async def load(self) -> None:
        try:
            self._records = parse_score_list(await self._store.read(SCORES_FILE))
        except Exception as e:
            logger.warning("scores read error: {}", e)
            self._records = []

    def add(self, record: ScoreRecord | dict[str, Any]) -> ScoreRecord:
        entry = ScoreRecord.model_validate(record)
        self._records.append(entry)
        return entry

    async def save(self) -> None:
        await self._store.write(SCORES_FILE, [r.model_dump() for r in self._records])
