"""Read-only projections used by approver dashboards."""

from __future__ import annotations

from .store import WorkflowStore
from .types import ACTIVE_STATUSES, Workflow


def is_waiting_on(workflow: Workflow, role: str) -> bool:
    """Return whether ``role`` owns the step the workflow currently waits on."""

    if workflow.status not in ACTIVE_STATUSES:
        return False
    step = workflow.active_step
    return step is not None and step.role == role


def my_queue(store: WorkflowStore, role: str) -> list[Workflow]:
    """Open workflows whose active step belongs to ``role``, newest first."""

    return [wf for wf in store.list_by_status(ACTIVE_STATUSES) if is_waiting_on(wf, role)]


def audit_view(store: WorkflowStore) -> list[Workflow]:
    """Every workflow, newest first, identical for all roles."""

    return store.list_all()
