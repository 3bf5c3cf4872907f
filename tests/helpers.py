"""Shared fixtures for the test suite"""

import asyncio
import fnmatch

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from office_hours import models  # noqa: F401 - registers tables
from office_hours.database import Base
from office_hours.domain.matching.reasoning import ReasoningGenerator


def make_session_factory():
    """In-memory SQLite shared across threads"""
    engine = create_engine(
        "sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeRedis:
    """The subset of the redis client API used by the score cache and the rate limiter"""

    def __init__(self):
        self.store = {}
        self.ttls = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ex=None):
        self.store[key] = str(value)
        if ex is not None:
            self.ttls[key] = ex

    def setex(self, key, ttl, value):
        self.set(key, value, ex=ttl)

    def ttl(self, key):
        if key not in self.store:
            return -2
        return self.ttls.get(key, -1)

    def delete(self, *keys):
        deleted = 0
        for key in keys:
            if key in self.store:
                del self.store[key]
                self.ttls.pop(key, None)
                deleted += 1
        return deleted

    def keys(self, pattern):
        return [k for k in self.store if fnmatch.fnmatchcase(k, pattern)]

    def scan_iter(self, match="*"):
        return iter(self.keys(match))


class StubGenerator(ReasoningGenerator):
    def __init__(self, text="Generated reasoning"):
        self.text = text
        self.calls = []

    async def generate_reasoning(self, mentee, mentor, score):
        self.calls.append((mentee.id, mentor.id, score))
        return self.text


class FailingGenerator(ReasoningGenerator):
    async def generate_reasoning(self, mentee, mentor, score):
        raise RuntimeError("text generation unavailable")


class SlowGenerator(ReasoningGenerator):
    def __init__(self, delay=1.0):
        self.delay = delay

    async def generate_reasoning(self, mentee, mentor, score):
        await asyncio.sleep(self.delay)
        return "too late"
