"""Data shapes shared by the approval state machine, service and stores."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from typing import Any

WORKFLOW_PENDING = "pending"
WORKFLOW_IN_PROGRESS = "in_progress"
WORKFLOW_APPROVED = "approved"
WORKFLOW_DENIED = "denied"

WORKFLOW_STATUSES = frozenset(
    {WORKFLOW_PENDING, WORKFLOW_IN_PROGRESS, WORKFLOW_APPROVED, WORKFLOW_DENIED}
)
ACTIVE_STATUSES = frozenset({WORKFLOW_PENDING, WORKFLOW_IN_PROGRESS})
TERMINAL_STATUSES = frozenset({WORKFLOW_APPROVED, WORKFLOW_DENIED})

STEP_PENDING = "pending"
STEP_APPROVED = "approved"
STEP_DENIED = "denied"

STEP_STATUSES = frozenset({STEP_PENDING, STEP_APPROVED, STEP_DENIED})


def utcnow() -> datetime:
    return datetime.now(UTC)


def format_timestamp(value: datetime | None) -> str | None:
    """Render a timestamp as ISO-8601 with a trailing ``Z``."""

    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat() + "Z"


def parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class WorkflowStep:
    """One position in the approval chain, owned by a single approver role."""

    step: int
    role: str
    email: str = ""
    status: str = STEP_PENDING
    group: str | None = None
    comments: str | None = None
    timestamp: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "role": self.role,
            "email": self.email,
            "status": self.status,
            "group": self.group,
            "comments": self.comments,
            "timestamp": format_timestamp(self.timestamp),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowStep:
        return cls(
            step=int(data["step"]),
            role=data["role"],
            email=data.get("email") or "",
            status=data.get("status") or STEP_PENDING,
            group=data.get("group"),
            comments=data.get("comments"),
            timestamp=parse_timestamp(data.get("timestamp")),
        )


@dataclass(frozen=True)
class Workflow:
    """A document's journey through an ordered approval chain."""

    id: str
    document_id: str
    document_type: str
    client_name: str
    amount: float
    workflow_steps: tuple[WorkflowStep, ...]
    status: str = WORKFLOW_PENDING
    current_step: int = 1
    creator_email: str | None = None
    is_overage: bool = False
    version: int = 1
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    @property
    def total_steps(self) -> int:
        return len(self.workflow_steps)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def step_at(self, step_number: int) -> WorkflowStep | None:
        if 1 <= step_number <= self.total_steps:
            return self.workflow_steps[step_number - 1]
        return None

    @property
    def active_step(self) -> WorkflowStep | None:
        return self.step_at(self.current_step)

    def with_changes(self, **changes: Any) -> Workflow:
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "documentId": self.document_id,
            "documentType": self.document_type,
            "clientName": self.client_name,
            "amount": self.amount,
            "creatorEmail": self.creator_email,
            "isOverage": self.is_overage,
            "status": self.status,
            "currentStep": self.current_step,
            "totalSteps": self.total_steps,
            "workflowSteps": [step.to_dict() for step in self.workflow_steps],
            "version": self.version,
            "createdAt": format_timestamp(self.created_at),
            "updatedAt": format_timestamp(self.updated_at),
        }


@dataclass(frozen=True)
class StepUpdate:
    """Requested mutation of the active step; ``None`` leaves a field alone."""

    status: str | None = None
    comments: str | None = None
    email: str | None = None

    @property
    def is_empty(self) -> bool:
        return self.status is None and self.comments is None and self.email is None


@dataclass(frozen=True)
class TransitionEvent:
    """Message handed to the notification trigger after a step decision."""

    workflow_id: str
    from_step: int
    to_step: int
    new_status: str
    document_id: str
    client_name: str
    amount: float
    recipients: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "workflowId": self.workflow_id,
            "fromStep": self.from_step,
            "toStep": self.to_step,
            "newStatus": self.new_status,
            "documentId": self.document_id,
            "clientName": self.client_name,
            "amount": self.amount,
            "recipients": list(self.recipients),
        }
