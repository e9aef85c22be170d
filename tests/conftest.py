"""
Pytest configuration and shared fixtures for the authorize bridge tests
"""
import os
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests
from requests.structures import CaseInsensitiveDict

ROOT = Path(__file__).parent.parent

# Add project root to path and point config at the repository file before importing the app
sys.path.insert(0, str(ROOT))
os.environ.setdefault("OAUTH_BRIDGE_CONFIG", str(ROOT / "config.yaml"))


def make_response(status_code=200, body="", headers=None, reason="OK"):
    """Build a real requests.Response as the provider would have returned it"""
    response = requests.Response()
    response.status_code = status_code
    response.reason = reason
    response.headers = CaseInsensitiveDict(headers or {})
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    return response


@pytest.fixture
def provider_session():
    """requests.Session stand-in whose get() returns a 302 with a verifier by default"""
    session = MagicMock(spec=requests.Session)
    session.__enter__.return_value = session
    session.__exit__.return_value = False
    session.get.return_value = make_response(
        302,
        headers={"Location": "https://api.inexogy.com/cb?oauth_verifier=ABC123&oauth_token=T1"},
        reason="Found",
    )
    return session


@pytest.fixture
def events():
    """Collects (name, fields) pairs emitted by a bridge"""
    return []


@pytest.fixture
def bridge(provider_session, events):
    from oauthbridge.bridge import AuthorizationBridge

    return AuthorizationBridge(
        session_factory=lambda: provider_session,
        timeout=5,
        oob_callback=True,
        on_event=lambda name, fields: events.append((name, fields)),
    )


@pytest.fixture
def client(bridge):
    """TestClient for the app with the bridge swapped for the mocked one"""
    from starlette.testclient import TestClient
    from app import app
    from oauthbridge.routes import get_bridge

    app.dependency_overrides[get_bridge] = lambda: bridge
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
