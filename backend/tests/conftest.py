from __future__ import annotations

import pathlib
import secrets
import sys
from collections.abc import Callable

import pytest
from sqlalchemy.pool import StaticPool

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _load_dependencies():
    from approvals import Config, create_app
    from backend.approvals.extensions import db

    return Config, create_app, db


ConfigBase, create_app, db = _load_dependencies()

DEFAULT_CHAIN = [
    {"step": 1, "role": "Technical Team", "email": "tech@example.com"},
    {"step": 2, "role": "Legal Team", "email": "legal@example.com"},
    {"step": 3, "role": "Client", "email": "client@example.com"},
]


class TestConfig(ConfigBase):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite+pysqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {
        "poolclass": StaticPool,
        "connect_args": {"check_same_thread": False},
    }
    CORS_ALLOWED_ORIGINS = "http://localhost"
    NOTIFICATION_WEBHOOK_URL = None
    NOTIFICATION_ASYNC = False
    RATELIMIT_ENABLED = False
    APPROVAL_DEFAULT_STEPS = DEFAULT_CHAIN


class RecordingSender:
    def __init__(self) -> None:
        self.events = []

    def send(self, event) -> None:
        self.events.append(event)


@pytest.fixture(scope="module")
def app():
    app = create_app(TestConfig)
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    ctx.pop()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def sent_events(app):
    dispatcher = app.extensions["workflow_service"].notifier
    original = dispatcher.sender
    recorder = RecordingSender()
    dispatcher.sender = recorder
    yield recorder.events
    dispatcher.sender = original


@pytest.fixture()
def auth_header_factory(app):
    from backend.approvals.models.auth import ApiToken
    from backend.approvals.utils.auth import hash_token

    def factory(
        role: str = "admin", approver_role: str | None = None, name: str | None = None
    ) -> dict[str, str]:
        token_value = secrets.token_urlsafe(16)
        token = ApiToken(
            name=name or f"Test {role.title()} Token",
            role=role,
            approver_role=approver_role,
            token_hash=hash_token(token_value),
        )
        db.session.add(token)
        db.session.commit()
        return {"Authorization": f"Bearer {token_value}"}

    return factory


@pytest.fixture()
def clean_database(app):
    from backend.approvals.models import ApiToken, AppSetting, ApprovalWorkflow, EventLog

    yield

    db.session.rollback()
    for model in (ApiToken, AppSetting, ApprovalWorkflow, EventLog):
        db.session.query(model).delete()
    db.session.commit()


@pytest.fixture()
def admin_headers(auth_header_factory: Callable[..., dict[str, str]]):
    return auth_header_factory(role="admin")


@pytest.fixture()
def workflow_payload() -> Callable[..., dict[str, object]]:
    def factory(**overrides: object) -> dict[str, object]:
        payload: dict[str, object] = {
            "documentId": "DOC-100",
            "documentType": "Migration Quote",
            "clientName": "Acme",
            "amount": 4200,
            "creatorEmail": "sales@example.com",
            "workflowSteps": DEFAULT_CHAIN,
        }
        payload.update(overrides)
        return payload

    return factory
