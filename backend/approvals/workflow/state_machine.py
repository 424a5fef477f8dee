"""Pure step-transition rules for sequential approval workflows.

Nothing in this module touches storage or notifications. ``transition``
takes a workflow snapshot and a requested mutation of one step and returns
the next snapshot, or raises one of the errors from :mod:`.errors`.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from .errors import CommentRequired, InvalidUpdate, StepNotActive, WorkflowTerminated
from .types import (
    STEP_APPROVED,
    STEP_DENIED,
    STEP_PENDING,
    STEP_STATUSES,
    WORKFLOW_APPROVED,
    WORKFLOW_DENIED,
    WORKFLOW_IN_PROGRESS,
    StepUpdate,
    Workflow,
    utcnow,
)


def check_preconditions(workflow: Workflow, step_number: int, update: StepUpdate) -> None:
    """Raise if ``update`` may not be applied to ``step_number``."""

    if workflow.is_terminal:
        raise WorkflowTerminated(f"workflow {workflow.id} is already {workflow.status}")

    if step_number != workflow.current_step:
        raise StepNotActive(
            f"step {step_number} is not active; workflow {workflow.id} "
            f"is waiting on step {workflow.current_step}"
        )

    step = workflow.workflow_steps[step_number - 1]
    if step.status != STEP_PENDING:
        raise StepNotActive(
            f"step {step_number} of workflow {workflow.id} is already {step.status}"
        )

    if update.is_empty:
        raise InvalidUpdate("update must set status, comments or email")

    if update.status is not None and update.status not in STEP_STATUSES:
        raise InvalidUpdate(f"status must be one of {', '.join(sorted(STEP_STATUSES))}")

    if update.status == STEP_DENIED and not (update.comments or "").strip():
        raise CommentRequired()


def transition(
    workflow: Workflow,
    step_number: int,
    update: StepUpdate,
    now: datetime | None = None,
) -> Workflow:
    """Apply ``update`` to the active step and derive the workflow outcome."""

    check_preconditions(workflow, step_number, update)
    now = now or utcnow()

    current = workflow.workflow_steps[step_number - 1]
    changes: dict[str, object] = {"timestamp": now}
    if update.status is not None:
        changes["status"] = update.status
    if update.comments is not None:
        changes["comments"] = update.comments
    if update.email is not None:
        changes["email"] = update.email
    updated_step = replace(current, **changes)

    steps = list(workflow.workflow_steps)
    steps[step_number - 1] = updated_step

    status = workflow.status
    current_step = workflow.current_step

    if updated_step.status == STEP_APPROVED:
        if step_number == workflow.total_steps:
            status = WORKFLOW_APPROVED
        else:
            status = WORKFLOW_IN_PROGRESS
            current_step = step_number + 1
    elif updated_step.status == STEP_DENIED:
        # Later steps stay pending and are never evaluated.
        status = WORKFLOW_DENIED
    # Step still pending: comment or email only.

    return workflow.with_changes(
        workflow_steps=tuple(steps),
        status=status,
        current_step=current_step,
        updated_at=now,
    )


def advances(before: Workflow, after: Workflow) -> bool:
    """Return whether a transition moved the workflow forward or ended it."""

    return before.status != after.status or before.current_step != after.current_step


__all__ = ["advances", "check_preconditions", "transition"]
