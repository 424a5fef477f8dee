"""Approval workflow model definition."""

from __future__ import annotations

from datetime import datetime

from ..extensions import db


class ApprovalWorkflow(db.Model):
    """One approval workflow; its steps are embedded as an ordered JSON array."""

    __tablename__ = "approval_workflows"
    __table_args__ = (
        db.Index("ix_approval_workflows_status_current_step", "status", "current_step"),
        db.UniqueConstraint(
            "document_id", "client_name", "open_slot", name="uq_approval_workflows_open_document"
        ),
    )

    pk = db.Column(db.Integer, primary_key=True)
    id = db.Column(db.String(64), unique=True, nullable=False, index=True)
    document_id = db.Column(db.String(255), nullable=False, index=True)
    document_type = db.Column(db.String(120), nullable=False)
    client_name = db.Column(db.String(255), nullable=False)
    amount = db.Column(db.Float, nullable=False, default=0)
    creator_email = db.Column(db.String(255), nullable=True)
    is_overage = db.Column(db.Boolean, nullable=False, default=False)
    status = db.Column(
        db.Enum("pending", "in_progress", "approved", "denied", name="workflow_status"),
        nullable=False,
        default="pending",
    )
    current_step = db.Column(db.Integer, nullable=False, default=1)
    # True while pending or in progress, NULL once decided; NULLs never collide.
    open_slot = db.Column(db.Boolean, nullable=True, default=True)
    total_steps = db.Column(db.Integer, nullable=False)
    workflow_steps = db.Column(db.JSON, nullable=False)
    version = db.Column(db.Integer, nullable=False, default=1)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self) -> str:  # pragma: no cover - repr not critical for tests
        return f"<ApprovalWorkflow {self.id!r} {self.status}>"
