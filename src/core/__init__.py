"""
Core infrastructure modules for the sale audit pipeline.

Provides common utilities used across the application:
- exceptions: Standardized exception hierarchy
"""

from src.core.exceptions import (
    SaleAuditError,
    RetryableError,
    PermanentError,
    ConfigurationError,
    MethodNotAllowedError,
    IntakeParseError,
    ReportGenerationError,
    DeliveryError,
    LedgerError,
    LedgerWriteError,
    LedgerReadError,
    UnauthorizedError,
)

__all__ = [
    "SaleAuditError",
    "RetryableError",
    "PermanentError",
    "ConfigurationError",
    "MethodNotAllowedError",
    "IntakeParseError",
    "ReportGenerationError",
    "DeliveryError",
    "LedgerError",
    "LedgerWriteError",
    "LedgerReadError",
    "UnauthorizedError",
]
