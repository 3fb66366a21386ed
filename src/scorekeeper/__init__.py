"""scorekeeper package.

Simple API for a scoring table:

    import scorekeeper

    sheet = scorekeeper.open_scoresheet("settings.yaml")
    sheet.inc("flags_raised")
    sheet.score()
"""

import asyncio
from pathlib import Path

from .config import Settings, read_settings
from .errors import ErrorKind, Result
from .scoresheet import Scoresheet
from .scoring.aggregator import MissionScoreAggregator, ScoreBreakdown, aggregate
from .stages import SanitizedStage, StageCatalog, StageSnapshot

__version__ = "0.1.0"


def open_scoresheet(settings_file: str | Path = "settings.yaml") -> Scoresheet:
    """Load settings, stages, scores and the configured challenge.

    For use outside a running event loop; inside one, await Scoresheet.create().
    """
    settings = read_settings(Path(settings_file))
    return asyncio.run(Scoresheet.create(settings))


__all__ = [
    "open_scoresheet",
    "ErrorKind",
    "MissionScoreAggregator",
    "Result",
    "SanitizedStage",
    "ScoreBreakdown",
    "Scoresheet",
    "Settings",
    "StageCatalog",
    "StageSnapshot",
    "aggregate",
]
