"""Sequential multi-party approval workflow engine."""

from .errors import (
    CommentRequired,
    ConcurrentModification,
    DuplicateWorkflow,
    InvalidSpec,
    InvalidUpdate,
    NotFound,
    RoleMismatch,
    StepNotActive,
    StoreUnavailable,
    WorkflowError,
    WorkflowTerminated,
)
from .service import WorkflowService, parse_step_update
from .state_machine import transition
from .store import InMemoryWorkflowStore, WorkflowStore
from .types import StepUpdate, TransitionEvent, Workflow, WorkflowStep
from .views import audit_view, my_queue

__all__ = [
    "CommentRequired",
    "ConcurrentModification",
    "DuplicateWorkflow",
    "InMemoryWorkflowStore",
    "InvalidSpec",
    "InvalidUpdate",
    "NotFound",
    "RoleMismatch",
    "StepNotActive",
    "StepUpdate",
    "StoreUnavailable",
    "TransitionEvent",
    "Workflow",
    "WorkflowError",
    "WorkflowService",
    "WorkflowStep",
    "WorkflowStore",
    "WorkflowTerminated",
    "audit_view",
    "my_queue",
    "parse_step_update",
    "transition",
]
