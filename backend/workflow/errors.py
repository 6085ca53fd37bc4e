"""
Error taxonomy for the outreach workflow.

Workflow operations report failures as result objects carrying an
``ErrorKind``; ``OperationResult.raise_for_error`` maps a failed result to
one of the exceptions below for callers that prefer exceptions.
"""
import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    APPROVAL = "approval"
    COLLABORATOR = "collaborator"


class ApprovalFailure(str, enum.Enum):
    MISSING = "missing"
    MISMATCHED = "mismatched"
    NOT_RECORDED = "not_recorded"
    NOT_YET_VALID = "not_yet_valid"
    EXPIRED = "expired"


class OutreachError(Exception):
    kind: Optional[ErrorKind] = None

    def __init__(self, message: str, errors: Optional[list] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or []


class ValidationError(OutreachError):
    """Input or generated content failed schema validation."""
    kind = ErrorKind.VALIDATION


class NotFoundError(OutreachError):
    kind = ErrorKind.NOT_FOUND


class ApprovalError(OutreachError):
    """A send was attempted without a usable approval."""
    kind = ErrorKind.APPROVAL

    def __init__(self, message: str, reason: Optional[ApprovalFailure] = None):
        super().__init__(message)
        self.reason = reason


class CollaboratorError(OutreachError):
    """An external dependency (store, CRM, mail, generator) failed."""
    kind = ErrorKind.COLLABORATOR


class PersistenceError(CollaboratorError):
    pass


ERRORS_BY_KIND = {
    ErrorKind.VALIDATION: ValidationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.APPROVAL: ApprovalError,
    ErrorKind.COLLABORATOR: CollaboratorError,
}
