"""Helpers for writing the durable audit log."""

from __future__ import annotations

import json
from typing import Any

from flask import Flask, current_app

from .extensions import db
from .models.logs import EventLog


def record_event(source: str, payload: dict[str, Any], workflow_id: str | None = None) -> None:
    """Persist an audit entry in the current app context; never raises."""

    try:
        entry = EventLog(source=source, workflow_id=workflow_id, message=json.dumps(payload))
        db.session.add(entry)
        db.session.commit()
    except Exception:
        current_app.logger.exception("Failed to persist %s audit entry", source)
        db.session.rollback()


def record_event_for_app(
    app: Flask, source: str, payload: dict[str, Any], workflow_id: str | None = None
) -> None:
    """Persist an audit entry from outside a request, e.g. a delivery thread."""

    with app.app_context():
        record_event(source, payload, workflow_id)


def record_workflow_event(workflow_id: str, payload: dict[str, Any]) -> None:
    """Audit recorder handed to the workflow service."""

    record_event("workflow", payload, workflow_id)
