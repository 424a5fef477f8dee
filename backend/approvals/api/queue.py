"""Read views behind the approver dashboards."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, jsonify

from ..utils.auth import current_approver_role, require_token
from ..workflow.views import audit_view, my_queue
from .errors import json_error
from .workflows import get_service

bp = Blueprint("queue", __name__)


@bp.get("/queue")
@require_token(role="approver")
def get_my_queue() -> tuple[object, int]:
    """Workflows currently waiting on the caller's approver role."""

    role = current_approver_role()
    if role is None:
        return json_error("approver role is required", "RoleRequired", HTTPStatus.UNAUTHORIZED)
    workflows = my_queue(get_service().store, role)
    return jsonify({"role": role, "workflows": [wf.to_dict() for wf in workflows]}), HTTPStatus.OK


@bp.get("/audit")
@require_token()
def get_audit_view() -> tuple[object, int]:
    workflows = audit_view(get_service().store)
    return jsonify({"workflows": [wf.to_dict() for wf in workflows]}), HTTPStatus.OK
