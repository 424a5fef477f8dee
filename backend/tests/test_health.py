"""Tests for the healthcheck endpoint."""

from __future__ import annotations

from sqlalchemy.exc import OperationalError

from backend.approvals.extensions import db


class UnreachableSession:
    def execute(self, *args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    def rollback(self) -> None:
        pass


def test_health_endpoint_returns_ok(client):
    """The healthcheck endpoint should report the store as reachable."""

    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.get_json() == {"status": "ok", "store": "ok"}


def test_health_endpoint_reports_unreachable_store(client, monkeypatch):
    monkeypatch.setattr(db, "session", UnreachableSession())

    response = client.get("/api/health")

    assert response.status_code == 503
    assert response.get_json() == {"status": "degraded", "store": "unavailable"}
