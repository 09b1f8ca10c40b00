"""
In-memory stand-in for AsyncSession, enough to drive route handlers directly.

`get` serves rows registered up front; `execute` hands back queued results in
order. Commits, flushes and deletes are recorded for assertions.
"""
from collections import deque

import pytest


class FakeResult:
    def __init__(self, value=None):
        self._value = value

    def scalar_one_or_none(self):
        return self._value


class FakeSession:
    def __init__(self, *rows, results=()):
        self.rows = {(type(r), r.id): r for r in rows}
        self.results = deque(FakeResult(r) for r in results)
        self.added = []
        self.deleted = []
        self.commits = 0
        self.flushes = 0

    async def get(self, model, obj_id):
        return self.rows.get((model, obj_id))

    async def execute(self, statement):
        return self.results.popleft()

    def add(self, obj):
        self.added.append(obj)

    async def delete(self, obj):
        self.deleted.append(obj)

    async def flush(self):
        self.flushes += 1

    async def refresh(self, obj):
        pass

    async def commit(self):
        self.commits += 1


@pytest.fixture
def make_session():
    return FakeSession
