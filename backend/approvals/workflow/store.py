"""Persistence contract for approval workflows and an in-memory backend."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Protocol

from .errors import ConcurrentModification, DuplicateWorkflow
from .types import ACTIVE_STATUSES, Workflow


class WorkflowStore(Protocol):
    """Document-style storage: one record per workflow, steps embedded."""

    def create(self, workflow: Workflow) -> Workflow:
        """Persist a new workflow and return it as stored.

        Raises :class:`DuplicateWorkflow` when another pending or in-progress
        workflow exists for the same document and client.
        """

    def get(self, workflow_id: str) -> Workflow | None:
        """Return the workflow with ``workflow_id`` or ``None``."""

    def list_all(self) -> list[Workflow]:
        """Return every workflow, most recently created first."""

    def list_by_status(self, statuses: Iterable[str]) -> list[Workflow]:
        """Return workflows whose status is in ``statuses``, newest first."""

    def save(self, workflow: Workflow, expected_version: int) -> Workflow:
        """Replace the stored record if its version still equals ``expected_version``.

        The stored copy gets ``expected_version + 1``. Raises
        :class:`ConcurrentModification` when the record changed or vanished
        since it was read.
        """

    def delete(self, workflow_id: str) -> bool:
        """Remove the workflow; return whether a record was deleted."""


class InMemoryWorkflowStore:
    """Keep workflows in process memory.

    Used by tests and scripts. Data does not survive a restart.
    """

    def __init__(self) -> None:
        self._workflows: dict[str, Workflow] = {}
        self._lock = threading.Lock()

    def create(self, workflow: Workflow) -> Workflow:
        with self._lock:
            if workflow.id in self._workflows:
                raise ValueError(f"workflow {workflow.id} already exists")
            if workflow.status in ACTIVE_STATUSES and any(
                other.status in ACTIVE_STATUSES
                and other.document_id == workflow.document_id
                and other.client_name == workflow.client_name
                for other in self._workflows.values()
            ):
                raise DuplicateWorkflow(
                    f"an open workflow already exists for document {workflow.document_id} "
                    f"and client {workflow.client_name}"
                )
            self._workflows[workflow.id] = workflow
        return workflow

    def get(self, workflow_id: str) -> Workflow | None:
        return self._workflows.get(workflow_id)

    def list_all(self) -> list[Workflow]:
        with self._lock:
            return list(reversed(self._workflows.values()))

    def list_by_status(self, statuses: Iterable[str]) -> list[Workflow]:
        wanted = set(statuses)
        return [wf for wf in self.list_all() if wf.status in wanted]

    def save(self, workflow: Workflow, expected_version: int) -> Workflow:
        with self._lock:
            stored = self._workflows.get(workflow.id)
            if stored is None or stored.version != expected_version:
                raise ConcurrentModification()
            saved = workflow.with_changes(version=expected_version + 1)
            self._workflows[workflow.id] = saved
        return saved

    def delete(self, workflow_id: str) -> bool:
        with self._lock:
            return self._workflows.pop(workflow_id, None) is not None
