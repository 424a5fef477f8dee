"""Orchestration layer for approval workflows.

The service validates requests against persisted state, applies the state
machine, writes through a :class:`~.store.WorkflowStore` and hands transition
events to a notifier. It does not depend on Flask; the HTTP layer builds one
instance per application.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol

from . import state_machine
from .errors import (
    DuplicateWorkflow,
    InvalidSpec,
    InvalidUpdate,
    NotFound,
    RoleMismatch,
    StepNotActive,
    WorkflowTerminated,
)
from .store import WorkflowStore
from .types import (
    ACTIVE_STATUSES,
    STEP_PENDING,
    WORKFLOW_PENDING,
    WORKFLOW_STATUSES,
    StepUpdate,
    TransitionEvent,
    Workflow,
    WorkflowStep,
    utcnow,
)

ADMIN_FIELDS = {"status", "currentStep", "isOverage"}
IMMUTABLE_FIELDS = {
    "id",
    "documentId",
    "documentType",
    "clientName",
    "amount",
    "totalSteps",
    "workflowSteps",
    "createdAt",
    "updatedAt",
    "version",
}


class Notifier(Protocol):
    def notify(self, event: TransitionEvent) -> None:
        """Deliver a transition event; may raise, the service logs it."""


AuditRecorder = Callable[[str, dict[str, Any]], None]


def _generate_id() -> str:
    return f"WF-{uuid.uuid4().hex[:16]}"


def _require_text(payload: Mapping[str, Any], key: str, errors: list[str]) -> str:
    value = payload.get(key)
    if not isinstance(value, str) or not value.strip():
        errors.append(f"{key} is required")
        return ""
    return value.strip()


def _optional_text(payload: Mapping[str, Any], key: str, errors: list[str]) -> str | None:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        errors.append(f"{key} must be a string")
        return None
    return value.strip()


def _parse_steps(raw_steps: Any, errors: list[str]) -> tuple[WorkflowStep, ...]:
    if not isinstance(raw_steps, list):
        errors.append("workflowSteps must be a list")
        return ()
    if not raw_steps:
        errors.append("workflowSteps must not be empty")
        return ()

    steps: list[WorkflowStep] = []
    for index, item in enumerate(raw_steps, start=1):
        if not isinstance(item, Mapping):
            errors.append(f"workflowSteps[{index}] must be an object")
            continue
        number = item.get("step")
        if isinstance(number, bool) or not isinstance(number, int) or number != index:
            errors.append(f"workflowSteps[{index}].step must be {index}")
            continue
        role = _require_text(item, "role", errors)
        email = _optional_text(item, "email", errors) or ""
        group = _optional_text(item, "group", errors)
        if not role:
            continue
        steps.append(WorkflowStep(step=number, role=role, email=email, group=group))
    return tuple(steps)


def build_workflow(
    spec: Mapping[str, Any],
    default_steps: Iterable[Mapping[str, Any]] = (),
    id_factory: Callable[[], str] = _generate_id,
) -> Workflow:
    """Validate a creation request and return a fresh, unsaved workflow."""

    errors: list[str] = []
    document_id = _require_text(spec, "documentId", errors)
    document_type = _require_text(spec, "documentType", errors)
    client_name = _require_text(spec, "clientName", errors)
    creator_email = _optional_text(spec, "creatorEmail", errors) or None

    amount = spec.get("amount")
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        errors.append("amount must be a number")
        amount = 0
    elif amount < 0:
        errors.append("amount must not be negative")

    is_overage = spec.get("isOverage", False)
    if not isinstance(is_overage, bool):
        errors.append("isOverage must be a boolean")
        is_overage = False

    raw_steps = spec["workflowSteps"] if "workflowSteps" in spec else list(default_steps)
    steps = _parse_steps(raw_steps, errors)

    if errors:
        raise InvalidSpec(errors)

    now = utcnow()
    return Workflow(
        id=id_factory(),
        document_id=document_id,
        document_type=document_type,
        client_name=client_name,
        amount=float(amount),
        creator_email=creator_email,
        is_overage=is_overage,
        workflow_steps=steps,
        status=WORKFLOW_PENDING,
        current_step=1,
        created_at=now,
        updated_at=now,
    )


def parse_step_update(payload: Mapping[str, Any]) -> StepUpdate:
    """Turn a request body into a :class:`StepUpdate`."""

    unknown = set(payload) - {"status", "comments", "email"}
    if unknown:
        raise InvalidUpdate(f"unsupported step fields: {', '.join(sorted(unknown))}")

    values: dict[str, str | None] = {}
    for key in ("status", "comments", "email"):
        value = payload.get(key)
        if value is not None and not isinstance(value, str):
            raise InvalidUpdate(f"{key} must be a string")
        values[key] = value
    return StepUpdate(**values)


def _recipients(workflow: Workflow) -> tuple[str, ...]:
    if workflow.is_terminal:
        return (workflow.creator_email,) if workflow.creator_email else ()
    step = workflow.active_step
    return (step.email,) if step is not None and step.email else ()


class WorkflowService:
    """Single entry point for reading and mutating approval workflows."""

    def __init__(
        self,
        store: WorkflowStore,
        notifier: Notifier | None = None,
        logger: logging.Logger | None = None,
        default_steps: Iterable[Mapping[str, Any]] = (),
        audit: AuditRecorder | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.logger = logger or logging.getLogger(__name__)
        self.default_steps = [dict(step) for step in default_steps]
        self.audit = audit

    # ------------------------------------------------------------------ reads
    def get_workflow(self, workflow_id: str) -> Workflow:
        workflow = self.store.get(workflow_id)
        if workflow is None:
            raise NotFound(f"workflow {workflow_id} not found")
        return workflow

    def list_workflows(self, status: str | None = None) -> list[Workflow]:
        if status is None:
            return self.store.list_all()
        if status not in WORKFLOW_STATUSES:
            raise InvalidUpdate(f"status must be one of {', '.join(sorted(WORKFLOW_STATUSES))}")
        return self.store.list_by_status([status])

    # --------------------------------------------------------------- creation
    def create_workflow(self, spec: Mapping[str, Any]) -> Workflow:
        workflow = build_workflow(spec, self.default_steps)

        for existing in self.store.list_by_status(ACTIVE_STATUSES):
            if (
                existing.document_id == workflow.document_id
                and existing.client_name == workflow.client_name
            ):
                raise DuplicateWorkflow(
                    f"workflow {existing.id} is still open for document "
                    f"{workflow.document_id} and client {workflow.client_name}"
                )

        created = self.store.create(workflow)
        self.logger.info(
            "Created workflow %s for document %s with %s steps",
            created.id,
            created.document_id,
            created.total_steps,
        )
        self._record(
            created.id,
            {
                "action": "created",
                "documentId": created.document_id,
                "steps": created.total_steps,
            },
        )
        return created

    # -------------------------------------------------------------- mutations
    def update_workflow_step(
        self,
        workflow_id: str,
        step_number: int,
        actor_role: str,
        update: StepUpdate,
    ) -> Workflow:
        """Record a decision or comment on the active step."""

        workflow = self.get_workflow(workflow_id)

        step = workflow.step_at(step_number)
        if step is None:
            raise StepNotActive(
                f"step {step_number} does not exist in workflow {workflow.id}"
            )
        if actor_role != step.role:
            raise RoleMismatch(f"step {step_number} belongs to {step.role}, not {actor_role}")

        updated = state_machine.transition(workflow, step_number, update)
        saved = self.store.save(updated, expected_version=workflow.version)

        self.logger.info(
            "Workflow %s step %s updated by %s: status=%s current_step=%s",
            saved.id,
            step_number,
            actor_role,
            saved.status,
            saved.current_step,
        )
        updated_step = saved.workflow_steps[step_number - 1]
        self._record(
            saved.id,
            {
                "action": "step_updated",
                "step": step_number,
                "role": actor_role,
                "stepStatus": updated_step.status,
                "status": saved.status,
                "currentStep": saved.current_step,
            },
        )

        if state_machine.advances(workflow, saved):
            self._emit(
                TransitionEvent(
                    workflow_id=saved.id,
                    from_step=workflow.current_step,
                    to_step=saved.current_step,
                    new_status=saved.status,
                    document_id=saved.document_id,
                    client_name=saved.client_name,
                    amount=saved.amount,
                    recipients=_recipients(saved),
                )
            )
        return saved

    def update_workflow(self, workflow_id: str, fields: Mapping[str, Any]) -> Workflow:
        """Administrative update of workflow-level fields.

        Bypasses the step transition rules; reserved for trusted internal
        callers that reconcile out-of-band events.
        """

        workflow = self.get_workflow(workflow_id)

        immutable = sorted(set(fields) & IMMUTABLE_FIELDS)
        if immutable:
            raise InvalidUpdate(f"fields cannot be changed: {', '.join(immutable)}")
        unknown = sorted(set(fields) - ADMIN_FIELDS)
        if unknown:
            raise InvalidUpdate(f"unsupported fields: {', '.join(unknown)}")
        if not fields:
            raise InvalidUpdate("no fields to update")

        changes: dict[str, Any] = {}
        status = fields.get("status")
        if "status" in fields:
            if status not in WORKFLOW_STATUSES:
                raise InvalidUpdate(
                    f"status must be one of {', '.join(sorted(WORKFLOW_STATUSES))}"
                )
            changes["status"] = status
        if "currentStep" in fields:
            current_step = fields["currentStep"]
            if (
                isinstance(current_step, bool)
                or not isinstance(current_step, int)
                or not 1 <= current_step <= workflow.total_steps
            ):
                raise InvalidUpdate(f"currentStep must be within 1..{workflow.total_steps}")
            if workflow.workflow_steps[current_step - 1].status != STEP_PENDING:
                raise InvalidUpdate(f"currentStep {current_step} is already decided")
            changes["current_step"] = current_step
        if "isOverage" in fields:
            if not isinstance(fields["isOverage"], bool):
                raise InvalidUpdate("isOverage must be a boolean")
            changes["is_overage"] = fields["isOverage"]

        if workflow.is_terminal:
            raise WorkflowTerminated(f"workflow {workflow.id} is already {workflow.status}")

        updated = workflow.with_changes(updated_at=utcnow(), **changes)
        saved = self.store.save(updated, expected_version=workflow.version)
        self.logger.warning(
            "Workflow %s updated administratively: %s",
            saved.id,
            ", ".join(f"{key}={fields[key]!r}" for key in sorted(fields)),
        )
        self._record(saved.id, {"action": "admin_update", "fields": dict(fields)})
        return saved

    def delete_workflow(self, workflow_id: str) -> None:
        if not self.store.delete(workflow_id):
            raise NotFound(f"workflow {workflow_id} not found")
        self.logger.info("Deleted workflow %s", workflow_id)
        self._record(workflow_id, {"action": "deleted"})

    def remove_duplicate_workflows(self) -> list[str]:
        """Keep the newest workflow per document, client and status; delete the rest."""

        seen: set[tuple[str, str, str]] = set()
        removed: list[str] = []
        for workflow in self.store.list_all():
            key = (workflow.document_id, workflow.client_name, workflow.status)
            if key in seen:
                if self.store.delete(workflow.id):
                    removed.append(workflow.id)
                    self._record(workflow.id, {"action": "deleted", "reason": "duplicate"})
                continue
            seen.add(key)
        if removed:
            self.logger.info("Removed %s duplicate workflows", len(removed))
        return removed

    # ---------------------------------------------------------------- events
    def _record(self, workflow_id: str, payload: dict[str, Any]) -> None:
        if self.audit is not None:
            self.audit(workflow_id, payload)

    def _emit(self, event: TransitionEvent) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.notify(event)
        except Exception:
            self.logger.exception(
                "Failed to notify transition of workflow %s to %s",
                event.workflow_id,
                event.new_status,
            )


__all__ = [
    "ADMIN_FIELDS",
    "AuditRecorder",
    "IMMUTABLE_FIELDS",
    "Notifier",
    "WorkflowService",
    "build_workflow",
    "parse_step_update",
]
