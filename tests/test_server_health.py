"""Tests for /health endpoint."""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from fastapi.testclient import TestClient
from server.__version__ import __version__
from server.app import app


client = TestClient(app)


def test_health_returns_200():
    resp = client.get("/health")
    assert resp.status_code == 200


def test_health_body():
    resp = client.get("/health")
    assert resp.json() == {"ok": True, "version": __version__}


def test_state_requires_login():
    assert client.get("/state").status_code == 401
