"""REST API endpoints for approval workflows."""

from __future__ import annotations

from http import HTTPStatus
from typing import Any

from flask import Blueprint, current_app, jsonify, request

from ..extensions import limiter
from ..utils.auth import current_approver_role, require_token
from ..workflow.errors import InvalidSpec, InvalidUpdate
from ..workflow.service import WorkflowService, parse_step_update
from .errors import json_error

bp = Blueprint("workflows", __name__)


def get_service() -> WorkflowService:
    return current_app.extensions["workflow_service"]


def _json_object(error_cls: type[InvalidSpec] | type[InvalidUpdate]) -> dict[str, Any]:
    payload = request.get_json(silent=True, force=True)
    if not isinstance(payload, dict):
        raise error_cls("payload must be an object")
    return payload


def _step_rate_limit() -> str:
    return current_app.config.get("STEP_UPDATE_RATE_LIMIT", "30 per minute")


@bp.post("/workflows")
@require_token(role="approver")
def create_workflow() -> tuple[object, int]:
    workflow = get_service().create_workflow(_json_object(InvalidSpec))
    return jsonify({"workflowId": workflow.id, "workflow": workflow.to_dict()}), HTTPStatus.CREATED


@bp.get("/workflows")
@require_token()
def list_workflows() -> tuple[object, int]:
    status = request.args.get("status") or None
    workflows = get_service().list_workflows(status)
    return jsonify({"workflows": [wf.to_dict() for wf in workflows]}), HTTPStatus.OK


@bp.get("/workflows/<workflow_id>")
@require_token()
def get_workflow(workflow_id: str) -> tuple[object, int]:
    workflow = get_service().get_workflow(workflow_id)
    return jsonify({"workflow": workflow.to_dict()}), HTTPStatus.OK


@bp.put("/workflows/<workflow_id>")
@require_token(role="admin")
def update_workflow(workflow_id: str) -> tuple[object, int]:
    payload = _json_object(InvalidUpdate)
    workflow = get_service().update_workflow(workflow_id, payload)
    return jsonify({"workflow": workflow.to_dict()}), HTTPStatus.OK


@bp.put("/workflows/<workflow_id>/step/<int:step_number>")
@require_token(role="approver")
@limiter.limit(_step_rate_limit)
def update_workflow_step(workflow_id: str, step_number: int) -> tuple[object, int]:
    actor_role = current_approver_role()
    if actor_role is None:
        return json_error("approver role is required", "RoleRequired", HTTPStatus.UNAUTHORIZED)

    update = parse_step_update(_json_object(InvalidUpdate))
    workflow = get_service().update_workflow_step(workflow_id, step_number, actor_role, update)
    return jsonify({"workflow": workflow.to_dict()}), HTTPStatus.OK


@bp.delete("/workflows/<workflow_id>")
@require_token(role="admin")
def delete_workflow(workflow_id: str) -> tuple[object, int]:
    get_service().delete_workflow(workflow_id)
    return "", HTTPStatus.NO_CONTENT


@bp.post("/workflows/deduplicate")
@require_token(role="admin")
def deduplicate_workflows() -> tuple[object, int]:
    removed = get_service().remove_duplicate_workflows()
    return jsonify({"removed": removed}), HTTPStatus.OK
