"""JSON rendering of workflow errors."""

from __future__ import annotations

from http import HTTPStatus

from flask import current_app, jsonify

from ..workflow.errors import InvalidSpec, StoreUnavailable, WorkflowError


def json_error(message: str, code: str, status: HTTPStatus = HTTPStatus.BAD_REQUEST):
    return jsonify({"error": message, "code": code}), status


def handle_workflow_error(exc: WorkflowError):
    if isinstance(exc, StoreUnavailable):
        current_app.logger.exception("Workflow store failure")
    body: dict[str, object] = {"error": exc.message, "code": exc.code}
    if isinstance(exc, InvalidSpec):
        body["errors"] = exc.errors
    return jsonify(body), exc.status


def handle_rate_limited(exc):
    return json_error(
        f"rate limit exceeded: {exc.description}", "RateLimited", HTTPStatus.TOO_MANY_REQUESTS
    )
