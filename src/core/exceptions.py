"""
Core exception hierarchy for the sale audit pipeline.

Provides standardized exception types with categorization for retry logic.
All components should use these exceptions instead of generic Exception.
"""

from typing import Any, Optional


# =============================================================================
# Base Exceptions
# =============================================================================


class SaleAuditError(Exception):
    """Base exception for all sale audit pipeline errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class RetryableError(SaleAuditError):
    """
    Transient errors that may succeed on a later attempt.

    Examples: Rate limits, timeouts, temporary network issues.
    The workflow never retries these itself; the category is informational.
    """

    pass


class PermanentError(SaleAuditError):
    """
    Errors that won't be fixed by retrying.

    Examples: Invalid input, missing required data, authentication failures.
    """

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)


# =============================================================================
# Intake Errors
# =============================================================================


class MethodNotAllowedError(PermanentError):
    """Raised when the intake endpoint receives anything but a POST."""

    def __init__(self, method: str):
        self.method = method
        super().__init__("Method not allowed", {"method": method})


class IntakeParseError(PermanentError):
    """Raised when a sale notification body cannot be parsed."""

    pass


# =============================================================================
# Collaborator Errors
# =============================================================================


class ReportGenerationError(RetryableError):
    """Raised when the LLM service fails to produce a report."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)


class DeliveryError(SaleAuditError):
    """Raised when the email provider rejects or fails to accept a message."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)


# =============================================================================
# Ledger Errors
# =============================================================================


class LedgerError(SaleAuditError):
    """Base exception for sale ledger errors."""

    pass


class LedgerWriteError(LedgerError, RetryableError):
    """Raised when a sale record cannot be written."""

    pass


class LedgerReadError(LedgerError, RetryableError):
    """Raised when sale records cannot be read."""

    pass


# =============================================================================
# Authorization
# =============================================================================


class UnauthorizedError(PermanentError):
    """Raised when the dashboard key does not match the configured secret."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)
