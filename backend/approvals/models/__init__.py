"""Database models for the quote approval backend."""

from .auth import ApiToken
from .logs import EventLog
from .settings import AppSetting
from .workflow import ApprovalWorkflow

__all__ = ["ApiToken", "ApprovalWorkflow", "AppSetting", "EventLog"]
