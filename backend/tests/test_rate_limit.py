"""Rate limiting of step decisions."""

from __future__ import annotations

import pytest
from sqlalchemy.pool import StaticPool

from approvals import Config, create_app
from backend.approvals.extensions import db


class RateLimitedConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
    NOTIFICATION_WEBHOOK_URL = None
    NOTIFICATION_ASYNC = False
    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = "memory://"
    STEP_UPDATE_RATE_LIMIT = "3 per minute"


@pytest.fixture(scope="module")
def app():
    app = create_app(RateLimitedConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    ctx.pop()


def test_step_updates_are_rate_limited_per_role(client):
    created = client.post(
        "/api/workflows",
        json={
            "documentId": "DOC-9",
            "documentType": "Migration Quote",
            "clientName": "Acme",
            "amount": 10,
            "workflowSteps": [
                {"step": 1, "role": "Technical Team"},
                {"step": 2, "role": "Legal Team"},
            ],
        },
    )
    workflow_id = created.get_json()["workflowId"]
    url = f"/api/workflows/{workflow_id}/step/1"
    tech = {"X-Approver-Role": "Technical Team"}

    for number in range(3):
        response = client.put(url, json={"comments": f"note {number}"}, headers=tech)
        assert response.status_code == 200

    blocked = client.put(url, json={"comments": "one too many"}, headers=tech)
    assert blocked.status_code == 429
    assert blocked.get_json()["code"] == "RateLimited"

    other_role = client.put(
        url, json={"status": "approved"}, headers={"X-Approver-Role": "Legal Team"}
    )
    assert other_role.status_code == 409

    assert client.get(f"/api/workflows/{workflow_id}").status_code == 200
