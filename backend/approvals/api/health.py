"""Health check endpoint."""

from flask import Blueprint, jsonify
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from ..extensions import db

bp = Blueprint("health", __name__)


@bp.get("/health")
def health() -> tuple[dict[str, str], int]:
    """Report service liveness and whether the workflow store answers."""
    try:
        db.session.execute(text("SELECT 1"))
    except OperationalError:
        db.session.rollback()
        return jsonify({"status": "degraded", "store": "unavailable"}), 503
    return jsonify({"status": "ok", "store": "ok"}), 200
