"""Sample challenge used by the CLI and the tests.

Four missions: a counter, a yes/no objective, a pair of counters that can be
inconsistent, and a precision bonus paid out as a percentage.
"""

from __future__ import annotations

from ..challenge import ChallengeDefinition
from ..errors import EvaluationError
from ..scoring.missions import Mission, score_function
from ..scoring.objectives import Objective, ObjectiveStore

_PRECISION_BONUS = {6: 0.1, 5: 0.08, 4: 0.05, 3: 0.03, 2: 0.02, 1: 0.01}


@score_function("flags_raised")
def flags(raised):
    return (raised or 0) * 20


@score_function("bridge_lowered")
def bridge(lowered):
    return 30 if lowered else 0


@score_function("samples_collected", "samples_in_base")
def samples(collected, in_base):
    if (in_base or 0) > (collected or 0):
        return EvaluationError("more samples in base than collected")
    return (in_base or 0) * 10


@score_function("samples_collected")
def all_samples(collected):
    return 15 if collected == 4 else 0


@score_function("precision_tokens")
def precision(tokens):
    return _PRECISION_BONUS.get(tokens or 0, 0)


def build() -> ChallengeDefinition:
    objectives = [
        Objective("flags_raised", default=0, min=0, max=3, title="Flags raised"),
        Objective("bridge_lowered", default=False, title="Bridge lowered"),
        Objective("samples_collected", default=0, min=0, max=4, title="Samples collected"),
        Objective("samples_in_base", default=0, min=0, max=4, title="Samples in base"),
        Objective("precision_tokens", default=6, min=0, max=6, title="Precision tokens left"),
    ]
    missions = [
        Mission("flags", [flags], title="Raise the flags"),
        Mission("bridge", [bridge], title="Lower the bridge"),
        Mission("samples", [samples, all_samples], title="Collect samples"),
        Mission("precision", [precision], title="Precision"),
    ]
    field = {
        "title": "Sample challenge",
        "objectives": [
            {"name": o.name, "title": o.title, "default": o.default, "min": o.min, "max": o.max}
            for o in objectives
        ],
    }
    return ChallengeDefinition(
        field=field,
        missions=missions,
        objective_index=ObjectiveStore.from_objectives(objectives),
    )
