"""API endpoints exposing the workflow audit log."""

from __future__ import annotations

import json
from http import HTTPStatus

from flask import Blueprint, Response, jsonify, request

from ..models.logs import EVENT_SOURCES, EventLog
from ..utils.auth import require_token
from .errors import json_error

bp = Blueprint("logs", __name__)


def _serialize_entry(entry: EventLog) -> dict[str, object]:
    try:
        message: object = json.loads(entry.message)
    except (TypeError, ValueError):
        message = entry.message
    return {
        "id": entry.id,
        "source": entry.source,
        "workflowId": entry.workflow_id,
        "message": message,
        "createdAt": entry.created_at.isoformat() + "Z",
    }


def _filtered_query():
    source = request.args.get("source")
    workflow_id = request.args.get("workflowId")
    query = EventLog.query
    if source:
        if source not in EVENT_SOURCES:
            return None
        query = query.filter_by(source=source)
    if workflow_id:
        query = query.filter_by(workflow_id=workflow_id)
    return query


@bp.get("/logs")
@require_token()
def get_logs() -> tuple[object, int]:
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 200))

    query = _filtered_query()
    if query is None:
        return json_error("invalid source", "InvalidFilter")

    entries = query.order_by(EventLog.id.desc()).limit(limit).all()
    return jsonify([_serialize_entry(entry) for entry in entries]), HTTPStatus.OK


@bp.get("/logs/download")
@require_token()
def download_logs() -> Response | tuple[object, int]:
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 1000))

    query = _filtered_query()
    if query is None:
        return json_error("invalid source", "InvalidFilter")

    entries = query.order_by(EventLog.id.desc()).limit(limit).all()
    payload = "\n".join(json.dumps(_serialize_entry(entry)) for entry in reversed(entries))
    response = Response(payload, mimetype="application/x-ndjson")
    response.headers["Content-Disposition"] = "attachment; filename=approval-events.ndjson"
    return response
