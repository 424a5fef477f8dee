"""Tests for the SQLAlchemy backed workflow store."""
from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime

import pytest
from sqlalchemy.exc import OperationalError

from backend.approvals.models.workflow import ApprovalWorkflow
from backend.approvals.workflow.errors import (
    ConcurrentModification,
    DuplicateWorkflow,
    StoreUnavailable,
)
from backend.approvals.workflow.sql_store import SqlAlchemyWorkflowStore
from backend.approvals.workflow.types import Workflow, WorkflowStep

pytestmark = pytest.mark.usefixtures("clean_database")


def _workflow(workflow_id: str, status: str = "pending") -> Workflow:
    created = datetime(2026, 3, 1, 9, 30, tzinfo=UTC)
    return Workflow(
        id=workflow_id,
        document_id=f"DOC-{workflow_id}",
        document_type="Migration Quote",
        client_name="Acme",
        amount=990.5,
        creator_email="sales@example.com",
        is_overage=True,
        workflow_steps=(
            WorkflowStep(step=1, role="Technical Team", email="tech@example.com", group="SMB"),
            WorkflowStep(step=2, role="Legal Team"),
        ),
        status=status,
        created_at=created,
        updated_at=created,
    )


@pytest.fixture()
def store(app) -> SqlAlchemyWorkflowStore:
    return SqlAlchemyWorkflowStore()


def test_create_and_get_roundtrip(store):
    original = _workflow("WF-1")
    store.create(original)

    loaded = store.get("WF-1")

    assert loaded == original
    assert loaded.workflow_steps[0].group == "SMB"
    assert store.get("WF-unknown") is None


def test_steps_are_embedded_in_one_row(store):
    store.create(_workflow("WF-1"))

    row = ApprovalWorkflow.query.filter_by(id="WF-1").one()
    assert row.total_steps == 2
    assert [item["role"] for item in row.workflow_steps] == ["Technical Team", "Legal Team"]


def test_list_order_and_status_filter(store):
    store.create(_workflow("WF-1"))
    store.create(_workflow("WF-2", status="denied"))
    store.create(_workflow("WF-3", status="in_progress"))

    assert [wf.id for wf in store.list_all()] == ["WF-3", "WF-2", "WF-1"]
    assert [wf.id for wf in store.list_by_status(["pending", "in_progress"])] == ["WF-3", "WF-1"]


def test_save_is_conditional_on_version(store):
    original = store.create(_workflow("WF-1"))
    approved = original.with_changes(
        status="in_progress",
        current_step=2,
        workflow_steps=(replace(original.workflow_steps[0], status="approved"),)
        + original.workflow_steps[1:],
    )

    saved = store.save(approved, expected_version=1)
    assert saved.version == 2
    assert store.get("WF-1").current_step == 2
    assert store.get("WF-1").workflow_steps[0].status == "approved"

    with pytest.raises(ConcurrentModification):
        store.save(original.with_changes(status="denied"), expected_version=1)

    assert store.get("WF-1").status == "in_progress"


def test_save_of_deleted_workflow_conflicts(store):
    workflow = store.create(_workflow("WF-1"))
    assert store.delete("WF-1") is True
    assert store.delete("WF-1") is False

    with pytest.raises(ConcurrentModification):
        store.save(workflow, expected_version=1)


def test_connectivity_failure_is_reported(store, monkeypatch):
    def _boom(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("server has gone away"))

    monkeypatch.setattr("backend.approvals.workflow.sql_store.update", _boom)

    with pytest.raises(StoreUnavailable):
        store.save(_workflow("WF-1"), expected_version=1)


def test_only_one_open_workflow_per_document_and_client(store):
    first = store.create(_workflow("WF-1"))

    with pytest.raises(DuplicateWorkflow):
        store.create(_workflow("WF-2").with_changes(document_id=first.document_id))
    assert [wf.id for wf in store.list_all()] == ["WF-1"]

    store.create(_workflow("WF-3", status="denied").with_changes(document_id=first.document_id))
    store.save(first.with_changes(status="denied"), expected_version=1)
    store.create(_workflow("WF-4").with_changes(document_id=first.document_id))

    assert [wf.id for wf in store.list_all()] == ["WF-4", "WF-3", "WF-1"]
