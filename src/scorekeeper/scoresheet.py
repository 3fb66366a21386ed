from __future__ import annotations

"""Scoresheet: one team's scoring session.

CONTRACT
- Inputs: Settings, Store, StageCatalog, ScoreLedger, ChallengeProvider
- Outputs (required):
  - score() / breakdown for the current objective values
  - score_<table>_<team>_<ms>.json and a scores.json entry on save()
- Invariants:
  - save() is never attempted unless is_saveable() is true
  - discard() clears every selection and reloads the challenge at its defaults
  - The ledger is only updated after the detail file was written
  - The saved score and objectives are both taken before the first write
  - A ledger record whose scores.json write failed stays in memory and is
    persisted by the next successful save()
- Failure:
  - save() raises SessionIncompleteError when the session is incomplete
  - save() logs and returns a PERSISTENCE Result when a write fails; no retry
"""

from typing import Any, Callable

from loguru import logger

from .artifacts.schemas import ScoreDetail, ScoreRecord, StageRef, Team
from .artifacts.store import JsonStore, Store
from .challenge import ChallengeProvider, ModuleChallengeProvider
from .config import Settings
from .errors import ErrorKind, Result, SessionIncompleteError
from .ledger import ScoreLedger
from .scoring.aggregator import BreakdownCallback, MissionScoreAggregator, ScoreBreakdown
from .scoring.missions import Mission
from .scoring.objectives import ObjectiveStore
from .session import SessionState
from .stages import SanitizedStage, StageCatalog
from .util.ids import epoch_millis, score_file_name


class Scoresheet:
    def __init__(
        self,
        settings: Settings,
        *,
        store: Store,
        catalog: StageCatalog,
        ledger: ScoreLedger,
        provider: ChallengeProvider | None = None,
        clock: Callable[[], int] = epoch_millis,
    ) -> None:
        self.settings = settings
        self.store = store
        self.catalog = catalog
        self.ledger = ledger
        self.provider = provider or ModuleChallengeProvider()
        self.session = SessionState()
        self.field: dict[str, Any] = {}
        self.objectives = ObjectiveStore()
        self.aggregator = MissionScoreAggregator(
            self.objectives, dependencies=self.provider.get_dependencies
        )
        self._clock = clock

    @classmethod
    async def create(
        cls,
        settings: Settings,
        *,
        store: Store | None = None,
        provider: ChallengeProvider | None = None,
    ) -> Scoresheet:
        store = store or JsonStore(settings.data_dir)
        catalog = await StageCatalog.create(store)
        ledger = ScoreLedger(store)
        await ledger.load()
        sheet = cls(settings, store=store, catalog=catalog, ledger=ledger, provider=provider)
        await sheet.load()
        return sheet

    async def load(self) -> None:
        definition = await self.provider.load(self.settings.challenge)
        self.field = definition.field
        self.objectives = definition.objective_index
        self.aggregator.rebind(self.objectives, definition.missions)
        logger.debug("challenge {} loaded", self.settings.challenge)

    # ------------------------------------------------------------------
    # State exposed to the UI
    # ------------------------------------------------------------------

    @property
    def stages(self) -> tuple[SanitizedStage, ...]:
        return self.catalog.stages

    @property
    def missions(self) -> tuple[Mission, ...]:
        return self.aggregator.missions

    @property
    def breakdown(self) -> ScoreBreakdown | None:
        return self.aggregator.breakdown

    def score(self) -> int | float | None:
        return self.aggregator.score()

    def is_saveable(self) -> bool:
        return self.session.complete and self.aggregator.all_evaluated()

    def subscribe(self, callback: BreakdownCallback) -> Callable[[], None]:
        """Receive every new breakdown; survives discard() and reloads."""
        return self.aggregator.subscribe(callback)

    # ------------------------------------------------------------------
    # Selection events
    # ------------------------------------------------------------------

    def select_team(self, team: Team | dict[str, Any] | None) -> None:
        self.session.select_team(Team.model_validate(team) if team is not None else None)

    def choose_stage(self, stage: SanitizedStage | None) -> None:
        self.session.choose_stage(stage)

    def choose_round(self, round_: int | None) -> None:
        self.session.choose_round(round_)

    def sign(self, signature: Any) -> None:
        self.session.sign(signature)

    def handle(self, event: str, payload: Any) -> None:
        handlers: dict[str, Callable[[Any], None]] = {
            "selectTeam": self.select_team,
            "chooseStage": self.choose_stage,
            "chooseRound": self.choose_round,
            "sign": self.sign,
        }
        if event not in handlers:
            raise ValueError(f"Unknown selection event: {event}")
        handlers[event](payload)

    # ------------------------------------------------------------------
    # Objective input
    # ------------------------------------------------------------------

    def set_objective(self, name: str, value: Any) -> None:
        self.objectives.set(name, value)

    def inc(self, name: str, amount: float | None = None) -> None:
        self.objectives.inc(name, amount)

    def dec(self, name: str, amount: float | None = None) -> None:
        self.objectives.dec(name, amount)

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    async def discard(self) -> None:
        self.session.reset()
        logger.info("discard")
        await self.load()

    async def save(self) -> Result[ScoreRecord]:
        """Write the detail file, then append to and save the ledger.

        Two overlapping save() calls are not serialized against each other.
        """
        if not self.is_saveable():
            raise SessionIncompleteError("select a team, stage, round and signature first")
        team = self.session.team
        stage = self.session.stage
        round_ = self.session.round
        assert team is not None and stage is not None and round_ is not None

        fn = score_file_name(self.settings.table, team.number, self._clock())
        stage_ref = StageRef(id=stage.id, name=stage.name)
        score = self.score()
        detail = ScoreDetail(
            objectives=self.objectives.snapshot(),
            team=team,
            stage=stage_ref,
            round=round_,
            table=self.settings.table,
            signature=self.session.signature,
        )
        try:
            await self.store.write(fn, detail.model_dump(mode="json"))
            record = self.ledger.add(
                ScoreRecord(file=fn, team=team, stage=stage_ref, round=round_, score=score)
            )
            await self.ledger.save()
        except Exception as e:
            logger.error("unable to write result: {}", e)
            return Result.failure(ErrorKind.PERSISTENCE, f"unable to write result: {e}")
        logger.info("result saved")
        return Result.success(record)
