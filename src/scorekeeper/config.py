from __future__ import annotations

"""Configuration models.

CONTRACT
- Inputs: YAML file path (settings.yaml) or dictionary data
- Outputs (required):
  - Validated Settings object
- Invariants:
  - Challenge names match `[A-Za-z_][A-Za-z0-9_]{0,63}`
  - Default values are usable (sample challenge, no table, ./data)
- Failure:
  - Raises ValueError on invalid schema; read_settings() falls back to defaults
"""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

SETTINGS_FILE = "settings.yaml"


@dataclass(frozen=True)
class Settings:
    challenge: str = "sample"
    table: str | None = None
    data_dir: Path = Path("data")

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["data_dir"] = str(self.data_dir)
        return data


SETTINGS_SCHEMA = {
    "type": "object",
    "properties": {
        "challenge": {"type": "string", "pattern": "^[A-Za-z_][A-Za-z0-9_]{0,63}$"},
        "table": {"type": ["string", "integer", "null"]},
        "data_dir": {"type": "string"},
    },
    "additionalProperties": False,
}


def settings_from_dict(data: dict[str, Any], *, base: Path | None = None) -> Settings:
    import jsonschema  # lazy import

    try:
        jsonschema.validate(instance=data, schema=SETTINGS_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ValueError(f"Invalid settings schema: {e.message}") from e

    data_dir = Path(str(data.get("data_dir", "data")))
    if base is not None and not data_dir.is_absolute():
        data_dir = base / data_dir
    table = data.get("table")
    return Settings(
        challenge=str(data.get("challenge", "sample")),
        table=str(table) if table is not None else None,
        data_dir=data_dir,
    )


def load_settings(path: Path) -> Settings:
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(data, dict):
        raise ValueError("Invalid settings schema: top level must be a mapping")
    return settings_from_dict(data, base=path.parent)


def read_settings(path: Path) -> Settings:
    """load_settings() that logs and returns defaults instead of raising."""
    try:
        return load_settings(path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.warning("unable to load settings: {}", e)
        return Settings(data_dir=path.parent / "data")


if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="Settings Loader CLI")
    parser.add_argument("--settings", required=True, help="Path to settings.yaml")
    args = parser.parse_args()

    try:
        cfg = load_settings(Path(args.settings))
        print(f"Challenge: {cfg.challenge}")
        print(f"Table: {cfg.table}")
        print(f"Data dir: {cfg.data_dir}")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
