"""Exceptions raised by the approval workflow engine."""

from __future__ import annotations

from http import HTTPStatus


class WorkflowError(Exception):
    """Base class for caller-facing workflow failures."""

    code = "WorkflowError"
    status = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__doc__ or self.code)

    @property
    def message(self) -> str:
        return str(self.args[0])


class InvalidSpec(WorkflowError):
    """workflow definition is invalid"""

    code = "InvalidSpec"

    def __init__(self, errors: list[str] | str) -> None:
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))


class InvalidUpdate(WorkflowError):
    """update payload is invalid"""

    code = "InvalidUpdate"


class NotFound(WorkflowError):
    """workflow not found"""

    code = "NotFound"
    status = HTTPStatus.NOT_FOUND


class RoleMismatch(WorkflowError):
    """role is not assigned to this step"""

    code = "RoleMismatch"
    status = HTTPStatus.CONFLICT


class StepNotActive(WorkflowError):
    """step is not awaiting a decision"""

    code = "StepNotActive"
    status = HTTPStatus.CONFLICT


class WorkflowTerminated(WorkflowError):
    """workflow is already approved or denied"""

    code = "WorkflowTerminated"
    status = HTTPStatus.CONFLICT


class CommentRequired(WorkflowError):
    """a comment is required to deny a step"""

    code = "CommentRequired"
    status = HTTPStatus.CONFLICT


class ConcurrentModification(WorkflowError):
    """workflow was modified concurrently; reload and retry"""

    code = "ConcurrentModification"
    status = HTTPStatus.CONFLICT


class DuplicateWorkflow(WorkflowError):
    """an open workflow already exists for this document and client"""

    code = "DuplicateWorkflow"
    status = HTTPStatus.CONFLICT


class StoreUnavailable(WorkflowError):
    """workflow store is unavailable"""

    code = "StoreUnavailable"
    status = HTTPStatus.SERVICE_UNAVAILABLE
