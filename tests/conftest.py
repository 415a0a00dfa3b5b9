"""
Shared pytest fixtures for boardsync tests
"""

import json
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from boardsync.config import ClientOptions


class FakeTransport:
    """Transport double that replays queued responses in order.

    Each queued entry is either a dict (returned) or an exception (raised).
    Every call is recorded as (document, variables) or ("raw", body).
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls = []
        self.closed = False

    def queue(self, *responses):
        self.responses.extend(responses)

    def _next(self):
        if not self.responses:
            raise AssertionError("FakeTransport: no response queued")
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response

    def execute(self, document, variables=None):
        self.calls.append((document, variables))
        return self._next()

    def execute_raw(self, body):
        self.calls.append(("raw", body))
        return self._next()

    def close(self):
        self.closed = True


@pytest.fixture
def fixtures_dir():
    """Return path to test fixtures directory"""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def project_items_fixture(fixtures_dir):
    """Load a two-page project items response"""
    with open(fixtures_dir / "project_items.json") as f:
        return json.load(f)


@pytest.fixture
def mock_session():
    """requests.Session stand-in with a real headers dict"""
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def options(mock_session):
    """Client options with a token and an injected session"""
    return ClientOptions(token="ghp_testtoken", session=mock_session, retry_delays=(1.0, 2.0, 4.0))


@pytest.fixture
def fake_transport():
    return FakeTransport()


@pytest.fixture
def client(options, fake_transport):
    """ProjectClient wired to a FakeTransport"""
    from boardsync.client import ProjectClient

    return ProjectClient(options, transport=fake_transport)


def _make_response(status_code=200, payload=None, text=None, headers=None):
    response = MagicMock()
    response.status_code = status_code
    response.headers = headers or {}
    if payload is not None:
        response.json.return_value = payload
        response.text = text if text is not None else json.dumps(payload)
    else:
        response.json.side_effect = ValueError("No JSON object could be decoded")
        response.text = text or ""
    return response


@pytest.fixture
def make_response():
    """Factory for mock requests.Response objects"""
    return _make_response
