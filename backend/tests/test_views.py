"""Tests for the approver queue and audit projections."""
from __future__ import annotations

import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.approvals.workflow import (  # noqa: E402
    InMemoryWorkflowStore,
    StepUpdate,
    WorkflowService,
    audit_view,
    my_queue,
)

CHAIN = [
    {"step": 1, "role": "Technical Team"},
    {"step": 2, "role": "Legal Team"},
    {"step": 3, "role": "Deal Desk"},
]


@pytest.fixture()
def service() -> WorkflowService:
    return WorkflowService(InMemoryWorkflowStore())


def _create(service: WorkflowService, document_id: str):
    return service.create_workflow(
        {
            "documentId": document_id,
            "documentType": "Migration Quote",
            "clientName": "Acme",
            "amount": 100,
            "workflowSteps": CHAIN,
        }
    )


def _queue_ids(service: WorkflowService, role: str) -> list[str]:
    return [wf.id for wf in my_queue(service.store, role)]


def test_queue_follows_current_step(service):
    workflow = _create(service, "DOC-1")
    assert _queue_ids(service, "Technical Team") == [workflow.id]
    assert _queue_ids(service, "Legal Team") == []

    service.update_workflow_step(workflow.id, 1, "Technical Team", StepUpdate(status="approved"))
    assert _queue_ids(service, "Technical Team") == []
    assert _queue_ids(service, "Legal Team") == [workflow.id]

    service.update_workflow_step(workflow.id, 2, "Legal Team", StepUpdate(status="approved"))
    service.update_workflow_step(workflow.id, 3, "Deal Desk", StepUpdate(status="approved"))
    for role in ("Technical Team", "Legal Team", "Deal Desk"):
        assert _queue_ids(service, role) == []


def test_denied_workflows_leave_every_queue(service):
    workflow = _create(service, "DOC-1")
    service.update_workflow_step(workflow.id, 1, "Technical Team", StepUpdate(status="approved"))
    service.update_workflow_step(
        workflow.id, 2, "Legal Team", StepUpdate(status="denied", comments="redlines pending")
    )

    assert _queue_ids(service, "Legal Team") == []
    assert _queue_ids(service, "Deal Desk") == []


def test_queue_is_derived_from_state_after_admin_override(service):
    workflow = _create(service, "DOC-1")
    service.update_workflow(workflow.id, {"status": "in_progress", "currentStep": 3})

    assert _queue_ids(service, "Technical Team") == []
    assert _queue_ids(service, "Deal Desk") == [workflow.id]


def test_queue_holds_every_matching_workflow_newest_first(service):
    first = _create(service, "DOC-1")
    second = _create(service, "DOC-2")
    _create(service, "DOC-3")
    service.update_workflow_step(first.id, 1, "Technical Team", StepUpdate(status="approved"))
    service.update_workflow_step(second.id, 1, "Technical Team", StepUpdate(status="approved"))

    assert _queue_ids(service, "Legal Team") == [second.id, first.id]


def test_audit_view_lists_everything(service):
    first = _create(service, "DOC-1")
    second = _create(service, "DOC-2")
    service.update_workflow_step(
        first.id, 1, "Technical Team", StepUpdate(status="denied", comments="out of scope")
    )

    assert [wf.id for wf in audit_view(service.store)] == [second.id, first.id]
