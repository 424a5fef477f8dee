"""Workflow store backed by Flask-SQLAlchemy."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from typing import Any, TypeVar

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, OperationalError

from ..extensions import db
from ..models.workflow import ApprovalWorkflow
from .errors import ConcurrentModification, DuplicateWorkflow, StoreUnavailable
from .types import ACTIVE_STATUSES, Workflow, WorkflowStep

T = TypeVar("T")


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _to_aware_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _row_values(workflow: Workflow) -> dict[str, object]:
    return {
        "id": workflow.id,
        "document_id": workflow.document_id,
        "document_type": workflow.document_type,
        "client_name": workflow.client_name,
        "amount": workflow.amount,
        "creator_email": workflow.creator_email,
        "is_overage": workflow.is_overage,
        "status": workflow.status,
        "current_step": workflow.current_step,
        "open_slot": True if workflow.status in ACTIVE_STATUSES else None,
        "total_steps": workflow.total_steps,
        "workflow_steps": [step.to_dict() for step in workflow.workflow_steps],
        "version": workflow.version,
        "created_at": _to_naive_utc(workflow.created_at),
        "updated_at": _to_naive_utc(workflow.updated_at),
    }


def _from_row(row: ApprovalWorkflow) -> Workflow:
    steps = tuple(WorkflowStep.from_dict(item) for item in row.workflow_steps or [])
    return Workflow(
        id=row.id,
        document_id=row.document_id,
        document_type=row.document_type,
        client_name=row.client_name,
        amount=row.amount,
        creator_email=row.creator_email,
        is_overage=bool(row.is_overage),
        status=row.status,
        current_step=row.current_step,
        workflow_steps=steps,
        version=row.version,
        created_at=_to_aware_utc(row.created_at),
        updated_at=_to_aware_utc(row.updated_at),
    )


class SqlAlchemyWorkflowStore:
    """Persist workflows in the ``approval_workflows`` table.

    Every method runs inside the current Flask application context and
    commits its own unit of work. Connectivity failures are rolled back and
    surfaced as :class:`StoreUnavailable`.
    """

    def _guard(self, func: Callable[..., T], *args: Any) -> T:
        try:
            return func(*args)
        except OperationalError as exc:
            db.session.rollback()
            raise StoreUnavailable(f"workflow store unavailable: {exc.orig}") from exc

    def create(self, workflow: Workflow) -> Workflow:
        def _create() -> Workflow:
            row = ApprovalWorkflow(**_row_values(workflow))
            db.session.add(row)
            try:
                db.session.commit()
            except IntegrityError as exc:
                db.session.rollback()
                raise DuplicateWorkflow(
                    f"an open workflow already exists for document {workflow.document_id} "
                    f"and client {workflow.client_name}"
                ) from exc
            return workflow

        return self._guard(_create)

    def get(self, workflow_id: str) -> Workflow | None:
        def _get() -> Workflow | None:
            row = ApprovalWorkflow.query.filter_by(id=workflow_id).first()
            return _from_row(row) if row is not None else None

        return self._guard(_get)

    def list_all(self) -> list[Workflow]:
        def _list() -> list[Workflow]:
            rows = ApprovalWorkflow.query.order_by(ApprovalWorkflow.pk.desc()).all()
            return [_from_row(row) for row in rows]

        return self._guard(_list)

    def list_by_status(self, statuses: Iterable[str]) -> list[Workflow]:
        wanted = list(statuses)

        def _list() -> list[Workflow]:
            rows = (
                ApprovalWorkflow.query.filter(ApprovalWorkflow.status.in_(wanted))
                .order_by(ApprovalWorkflow.pk.desc())
                .all()
            )
            return [_from_row(row) for row in rows]

        return self._guard(_list)

    def save(self, workflow: Workflow, expected_version: int) -> Workflow:
        saved = workflow.with_changes(version=expected_version + 1)
        values = _row_values(saved)
        values.pop("id")
        values.pop("created_at")

        def _save() -> Workflow:
            result = db.session.execute(
                update(ApprovalWorkflow)
                .where(ApprovalWorkflow.id == workflow.id)
                .where(ApprovalWorkflow.version == expected_version)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.session.rollback()
                raise ConcurrentModification()
            db.session.commit()
            db.session.expire_all()
            return saved

        return self._guard(_save)

    def delete(self, workflow_id: str) -> bool:
        def _delete() -> bool:
            row = ApprovalWorkflow.query.filter_by(id=workflow_id).first()
            if row is None:
                return False
            db.session.delete(row)
            db.session.commit()
            return True

        return self._guard(_delete)
