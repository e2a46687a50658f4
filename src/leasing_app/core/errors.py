"""Exception hierarchy for leasing agreement processing."""

from __future__ import annotations


class LeasingError(Exception):
    """Base exception for all leasing errors."""

    def to_dict(self) -> dict[str, str]:
        return {"error": type(self).__name__, "message": str(self)}


class ValidationError(LeasingError):
    """Raised when a request is malformed or outside policy."""

    def __init__(self, message: str, field: str, code: str):
        super().__init__(message)
        self.message = message
        self.field = field
        self.code = code

    def to_dict(self) -> dict[str, str]:
        return {**super().to_dict(), "field": self.field, "code": self.code}


class BusinessRuleError(LeasingError):
    """Raised when a business precondition fails for otherwise valid input."""

    def __init__(self, message: str, rule: str, code: str):
        super().__init__(message)
        self.message = message
        self.rule = rule
        self.code = code

    def to_dict(self) -> dict[str, str]:
        return {**super().to_dict(), "rule": self.rule, "code": self.code}


class AgreementNotFoundError(LeasingError):
    """Raised when a referenced agreement does not exist."""


class ConfigurationError(LeasingError):
    """Raised when configuration is invalid or missing."""
