"""
tests/test_health.py -- Integration tests for GET /api/v1/health.

Covers:
  - 200 response with status, version, and components fields
  - components.database reports 'error' when the store cannot be reached
  - No authentication required
"""

from __future__ import annotations

from unittest.mock import patch


def test_health_returns_200_with_components(api_client):
    """Health endpoint returns 200 with status, version, and components."""
    resp = api_client.get("/api/v1/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == "0.1.0"
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_health_reports_database_error(api_client):
    """A failing ping is reported, not raised."""
    store = api_client.app.state.store
    with patch.object(store, "ping", return_value=False):
        data = api_client.get("/api/v1/health").json()
    assert data["components"]["database"] == "error"


def test_health_no_auth_required(api_client):
    """Health endpoint is accessible without any authentication headers."""
    resp = api_client.get("/api/v1/health", headers={})
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
