from __future__ import annotations

"""JSON data store.

CONTRACT
- Inputs: Data directory path
- Outputs:
  - read(name) -> decoded JSON value
  - write(name, value) -> file at <data_dir>/<name>
- Invariants:
  - Enforces path safety (prevents traversal outside data_dir)
  - Ensures parent directories exist on write
  - read/write are coroutines; blocking file IO runs in a worker thread
- Failure:
  - Raises ValueError on unsafe path access
  - Raises PersistenceError on missing files, IO errors and malformed JSON
"""

import asyncio
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from ..errors import PersistenceError


class Store(Protocol):
    async def read(self, name: str) -> Any: ...
    async def write(self, name: str, value: Any) -> None: ...


@dataclass(frozen=True)
class JsonStore:
    data_dir: Path

    def ensure(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def path(self, *parts: str) -> Path:
        p = self.data_dir.joinpath(*parts)
        base = self.data_dir.resolve(strict=False)
        try:
            p.resolve(strict=False).relative_to(base)
        except ValueError as exc:
            raise ValueError(f"Refusing to access path outside data_dir: {p}") from exc
        return p

    def read_json(self, rel: str) -> Any:
        p = self.path(rel)
        try:
            return json.loads(p.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise PersistenceError(f"cannot read {rel}: {exc}") from exc

    def write_json(self, rel: str, data: Any) -> Path:
        p = self.path(rel)
        try:
            p.parent.mkdir(parents=True, exist_ok=True)
            p.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        except (OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"cannot write {rel}: {exc}") from exc
        return p

    async def read(self, name: str) -> Any:
        return await asyncio.to_thread(self.read_json, name)

    async def write(self, name: str, value: Any) -> None:
        await asyncio.to_thread(self.write_json, name, value)


if __name__ == "__main__":
    import argparse
    import sys

    parser = argparse.ArgumentParser(description="JSON Store CLI")
    parser.add_argument("--data-dir", required=True, help="Path to data directory")
    parser.add_argument("--cat", help="Print a JSON file from the data directory")
    args = parser.parse_args()

    try:
        store = JsonStore(Path(args.data_dir))
        if args.cat:
            print(json.dumps(store.read_json(args.cat), indent=2))
        else:
            store.ensure()
            print(f"Ensured {args.data_dir}")
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
