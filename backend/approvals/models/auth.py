"""Authentication related database models."""

from __future__ import annotations

from datetime import datetime, timezone

from ..extensions import db

ACCESS_ROLES = ("readonly", "approver", "admin")


class ApiToken(db.Model):
    """Bearer token identifying a caller and, for approvers, their role in the chain."""

    __tablename__ = "api_tokens"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    token_hash = db.Column(db.String(64), unique=True, nullable=False)
    role = db.Column(db.String(20), nullable=False, default="readonly")
    approver_role = db.Column(db.String(120), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    revoked_at = db.Column(db.DateTime, nullable=True)

    def is_active(self) -> bool:
        return self.revoked_at is None
