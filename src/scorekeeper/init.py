from __future__ import annotations

"""Workspace initializer.

CONTRACT
- Inputs: Target directory
- Outputs (required):
  - Writes settings.yaml
  - Writes data/stages.json with the default stages
- Invariants:
  - Creates the data directory if missing
  - Does not overwrite existing files (by default)
- Failure:
  - Raises OSError on permission issues
"""

from pathlib import Path

import yaml

from .artifacts.store import JsonStore
from .config import SETTINGS_FILE, Settings
from .stages import DEFAULT_STAGES, STAGES_FILE
from .util.paths import ensure_dir


def write_defaults(root: Path, force: bool = False) -> list[Path]:
    ensure_dir(root)
    written: list[Path] = []

    settings_path = root / SETTINGS_FILE
    if force or not settings_path.exists():
        settings = Settings(data_dir=Path("data")).to_dict()
        settings_path.write_text(yaml.safe_dump(settings, sort_keys=False), encoding="utf-8")
        written.append(settings_path)

    store = JsonStore(root / "data")
    store.ensure()
    stages_path = store.path(STAGES_FILE)
    if force or not stages_path.exists():
        written.append(store.write_json(STAGES_FILE, [s.model_dump() for s in DEFAULT_STAGES]))
    return written
