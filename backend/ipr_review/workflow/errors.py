"""Workflow error taxonomy.

Every error here is a rejected operation: the transaction that raised it is
rolled back, so applications, suggestions and status updates are left as they
were. ``status_code`` is the HTTP status the API layer reports.
"""

from __future__ import annotations


class WorkflowError(Exception):
    """Base class for rejected workflow operations."""

    status_code = 400

    def __init__(self, message: str, *, rule: str | None = None):
        super().__init__(message)
        self.message = message
        self.rule = rule


class ValidationError(WorkflowError):
    """Blank or malformed required input."""

    status_code = 422


class NotFoundError(WorkflowError):
    """Unknown application, suggestion or status update id."""

    status_code = 404


class InvalidTransitionError(WorkflowError):
    """Attempt to move a record out of a state that does not allow it."""

    status_code = 409


class AlreadyResolvedError(InvalidTransitionError):
    """Suggestion was already accepted or rejected."""


class PermissionDeniedError(WorkflowError):
    """Actor's role is not entitled to the requested action."""

    status_code = 403
