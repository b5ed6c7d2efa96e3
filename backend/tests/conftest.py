import sys
from pathlib import Path

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

import pytest
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import init_db, make_engine


class FakeResponse:
    def __init__(self, status_code=200, json_data=None, reason="OK"):
        self.status_code = status_code
        self._json = json_data
        self.reason = reason

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


class ScriptedTransport:
    """Returns queued responses (or raises queued exceptions) and records requested URLs."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.urls = []

    def __call__(self, url, headers=None, timeout=None):
        self.urls.append(url)
        if not self.responses:
            raise AssertionError("unexpected extra request")
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def calls(self):
        return len(self.urls)


def envelope(items=None, result_code="0000", result_msg="OK", **body):
    """Build a KorService2-style JSON payload."""
    data = {
        "response": {
            "header": {"resultCode": result_code, "resultMsg": result_msg},
            "body": {"items": "" if items is None else {"item": items}, **body},
        }
    }
    return data


@pytest.fixture
def session_factory():
    engine = make_engine("sqlite://", poolclass=StaticPool)
    init_db(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    yield factory
    engine.dispose()


@pytest.fixture
def no_sleep():
    delays = []
    return delays, delays.append
