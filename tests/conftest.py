import copy

import pytest
from loguru import logger

from scorekeeper.errors import PersistenceError


class MemoryStore:
    """Dict-backed store; set fail_read/fail_write to a reason to make calls fail.

    fail_write_only limits write failures to the named files. on_write is called
    with the file name before a write completes.
    """

    def __init__(self, files=None):
        self.files = copy.deepcopy(files or {})
        self.fail_read = None
        self.fail_write = None
        self.fail_write_only = None
        self.on_write = None
        self.writes = []

    async def read(self, name):
        if self.fail_read is not None:
            raise PersistenceError(self.fail_read)
        if name not in self.files:
            raise PersistenceError(f"no such file: {name}")
        return copy.deepcopy(self.files[name])

    async def write(self, name, value):
        if self.on_write is not None:
            self.on_write(name)
        if self.fail_write is not None and (
            self.fail_write_only is None or name in self.fail_write_only
        ):
            raise PersistenceError(self.fail_write)
        self.writes.append((name, copy.deepcopy(value)))
        self.files[name] = copy.deepcopy(value)


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), format="{message}")
    yield messages
    logger.remove(handler_id)
