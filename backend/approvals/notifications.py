"""Delivery of workflow transition events to the external notification system.

Delivery is best effort: a failed attempt is logged and written to the
audit log, it is never retried and never reaches the approver.
"""

from __future__ import annotations

import threading
from typing import Protocol

import requests
from flask import Flask

from .audit import record_event_for_app
from .workflow.types import TransitionEvent


class NotificationSender(Protocol):
    def send(self, event: TransitionEvent) -> None:
        """Hand the event to the mail/notification system or raise."""


class WebhookSender:
    """POST transition events as JSON to a configured URL."""

    def __init__(self, url: str, timeout: float = 5.0) -> None:
        self.url = url
        self.timeout = timeout

    def send(self, event: TransitionEvent) -> None:
        response = requests.post(self.url, json=event.to_dict(), timeout=self.timeout)
        response.raise_for_status()


class LogSender:
    """Fallback used when no webhook is configured."""

    def __init__(self, app: Flask) -> None:
        self.app = app

    def send(self, event: TransitionEvent) -> None:
        self.app.logger.info(
            "Transition of workflow %s to %s (step %s -> %s), recipients: %s",
            event.workflow_id,
            event.new_status,
            event.from_step,
            event.to_step,
            ", ".join(event.recipients) or "-",
        )


class NotificationDispatcher:
    """Fire-and-forget notifier handed to the workflow service."""

    def __init__(self, app: Flask, sender: NotificationSender, run_async: bool = True) -> None:
        self.app = app
        self.sender = sender
        self.run_async = run_async

    def notify(self, event: TransitionEvent) -> None:
        if self.run_async:
            thread = threading.Thread(target=self._deliver, args=(event,), daemon=True)
            thread.start()
        else:
            self._deliver(event)

    def _deliver(self, event: TransitionEvent) -> None:
        payload = event.to_dict()
        try:
            self.sender.send(event)
        except Exception as exc:
            self.app.logger.warning(
                "Notification for workflow %s failed: %s", event.workflow_id, exc
            )
            payload.update(delivered=False, error=str(exc))
        else:
            payload.update(delivered=True, error=None)
        record_event_for_app(self.app, "notification", payload, event.workflow_id)


def build_dispatcher(app: Flask) -> NotificationDispatcher:
    """Create the dispatcher described by the application config."""

    url = app.config.get("NOTIFICATION_WEBHOOK_URL")
    if url:
        sender: NotificationSender = WebhookSender(
            url, timeout=float(app.config.get("NOTIFICATION_TIMEOUT", 5))
        )
    else:
        sender = LogSender(app)
    return NotificationDispatcher(
        app, sender, run_async=bool(app.config.get("NOTIFICATION_ASYNC", True))
    )
