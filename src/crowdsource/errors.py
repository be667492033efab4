"""
Exceptions raised by the report triage and reputation engine.
"""


class TriageError(Exception):
    """Base exception for triage engine failures."""


class ValidationError(TriageError):
    """Raised when a submission or moderator request is rejected before any mutation."""


class NotFoundError(TriageError):
    """Raised when a report id does not resolve to a stored report."""

    def __init__(self, report_id: str):
        super().__init__(f"Report not found: {report_id}")
        self.report_id = report_id


class DuplicateIdError(TriageError):
    """Raised when inserting a report whose id is already stored."""

    def __init__(self, report_id: str):
        super().__init__(f"Duplicate report id: {report_id}")
        self.report_id = report_id


class PersistenceError(TriageError):
    """Raised when the storage backend fails to load or persist a snapshot."""


class AuthorizationError(TriageError):
    """Raised when a moderator action is attempted without moderator capability."""
