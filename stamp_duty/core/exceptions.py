"""Exceptions raised by the stamp duty engine"""

from typing import Any, Optional


class StampDutyError(Exception):
    """Base class for engine errors

    Attributes:
        message: human-readable message
        code: stable error code (shared with the HTTP error body)
        details: optional structured details
    """

    code = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict:
        body = {'success': False, 'code': self.code, 'message': self.message}
        if self.details is not None:
            body['details'] = self.details
        return body


class RuleTableError(StampDutyError, ValueError):
    """A rule table entry has an invalid or ambiguous shape.

    This is fatal: the table is rejected at load time and never
    evaluated with a best guess.
    """

    code = "RULE_TABLE_INVALID"


InvariantViolation = RuleTableError


class InputValidationError(StampDutyError, ValueError):
    """Raised only by strict-mode normalization."""

    code = "VALIDATION_ERROR"
