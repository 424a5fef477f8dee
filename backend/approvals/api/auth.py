"""REST endpoints for API tokens and the protection toggle."""

from __future__ import annotations

from datetime import UTC, datetime
from http import HTTPStatus

from flask import Blueprint, jsonify, request

from ..extensions import db
from ..models.auth import ACCESS_ROLES, ApiToken
from ..utils.auth import (
    generate_token,
    hash_token,
    is_token_protection_enabled,
    normalize_bool,
    require_token,
    set_token_protection_enabled,
)
from .errors import json_error

bp = Blueprint("auth", __name__)


def _serialize(token: ApiToken) -> dict[str, object | None]:
    return {
        "id": token.id,
        "name": token.name,
        "role": token.role,
        "approverRole": token.approver_role,
        "createdAt": token.created_at.isoformat() + "Z",
        "revokedAt": token.revoked_at.isoformat() + "Z" if token.revoked_at else None,
    }


@bp.post("/auth/tokens")
@require_token(role="admin")
def create_token() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    name = (payload.get("name") or "").strip()
    role = (payload.get("role") or "readonly").strip().lower()
    approver_role = (payload.get("approverRole") or "").strip() or None

    if not name:
        return json_error("name is required", "InvalidToken")
    if role not in ACCESS_ROLES:
        return json_error(f"role must be one of {', '.join(ACCESS_ROLES)}", "InvalidToken")
    if role == "approver" and approver_role is None:
        return json_error("approverRole is required for approver tokens", "InvalidToken")

    plaintext = generate_token()
    token = ApiToken(
        name=name,
        role=role,
        approver_role=approver_role,
        token_hash=hash_token(plaintext),
    )
    db.session.add(token)
    db.session.commit()

    response_payload = _serialize(token)
    response_payload["token"] = plaintext
    return jsonify(response_payload), HTTPStatus.CREATED


@bp.get("/auth/tokens")
@require_token(role="admin")
def list_tokens() -> tuple[object, int]:
    tokens = ApiToken.query.order_by(ApiToken.created_at.desc()).all()
    return jsonify([_serialize(token) for token in tokens]), HTTPStatus.OK


@bp.delete("/auth/tokens/<int:token_id>")
@require_token(role="admin")
def revoke_token(token_id: int) -> tuple[object, int]:
    token = ApiToken.query.get_or_404(token_id)
    if token.revoked_at is None:
        token.revoked_at = datetime.now(UTC)
        db.session.commit()
    return "", HTTPStatus.NO_CONTENT


@bp.get("/auth/protection")
def get_protection() -> tuple[object, int]:
    return jsonify({"enabled": is_token_protection_enabled()}), HTTPStatus.OK


@bp.post("/auth/protection")
@require_token(role="admin")
def update_protection() -> tuple[object, int]:
    payload = request.get_json(force=True, silent=True) or {}
    if "enabled" not in payload:
        return json_error("enabled is required", "InvalidSetting")
    enabled = normalize_bool(payload["enabled"])
    set_token_protection_enabled(enabled)
    return jsonify({"enabled": enabled}), HTTPStatus.OK
