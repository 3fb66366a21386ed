from __future__ import annotations

"""Stage id validation and score file naming.

CONTRACT
- Inputs: Stage ids, table names, team numbers
- Outputs (required):
  - validate_stage_id() returns the validated id or raises
  - score_file_name() returns `score_<table>_<team>_<epochMillis>.json`
- Invariants:
  - Ids entered through `stages add` match `[A-Za-z0-9][A-Za-z0-9_.-]{0,63}`;
    stored ids are any non-empty string
  - Score file names never contain path separators
- Failure:
  - Raises ValueError on invalid ids
"""

import re
import time

from .paths import safe_filename

_STAGE_ID_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]{0,63}$")


def validate_stage_id(stage_id: str) -> str:
    if not _STAGE_ID_RE.fullmatch(stage_id):
        raise ValueError(
            "Invalid stage id. Use 1-64 chars: letters/digits, plus '._-'. Must start with a "
            "letter or digit."
        )
    return stage_id


def epoch_millis() -> int:
    return int(time.time() * 1000)


def score_file_name(table: str | None, team_number: int, ts_ms: int | None = None) -> str:
    # score_<table>_<teamNumber>_<epochMillis>.json
    ts = epoch_millis() if ts_ms is None else ts_ms
    table_part = safe_filename(str(table), default="table") if table else ""
    return "_".join(["score", table_part, str(team_number), str(ts)]) + ".json"


if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Utilities for stage ids and score files")
    parser.add_argument("--validate-stage", help="Validate a stage id (returns it or fails)")
    parser.add_argument("--score-file", nargs=2, metavar=("TABLE", "TEAM"), help="Build a score file name")
    args = parser.parse_args()

    try:
        if args.validate_stage:
            print(validate_stage_id(args.validate_stage))
        elif args.score_file:
            print(score_file_name(args.score_file[0], int(args.score_file[1])))
        else:
            parser.print_help()
            sys.exit(1)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
