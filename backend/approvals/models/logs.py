"""Audit log model definition."""

from __future__ import annotations

from datetime import datetime

from ..extensions import db

EVENT_SOURCES = ("workflow", "notification")


class EventLog(db.Model):
    """Durable record of workflow changes and notification attempts."""

    __tablename__ = "event_logs"

    id = db.Column(db.Integer, primary_key=True)
    source = db.Column(db.Enum(*EVENT_SOURCES, name="eventlog_source"), nullable=False)
    workflow_id = db.Column(db.String(64), nullable=True, index=True)
    message = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<EventLog {self.id} {self.source} {self.workflow_id}>"
