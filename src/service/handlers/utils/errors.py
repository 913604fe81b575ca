"""
Error taxonomy for the event processor.

Per-message failures travel through the pipeline as result values. The
exceptions below cover the cases that are raised instead: configuration
defects that must abort a batch, and store failures that a strategy turns
into a failed outcome.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(str, Enum):
    """Error severity levels for classification."""
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    CONFIGURATION = "CONFIGURATION"
    INFRASTRUCTURE = "INFRASTRUCTURE"
    TIMEOUT = "TIMEOUT"


class BaseServiceError(Exception):
    """Base exception class for service errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.severity = severity
        self.category = category
        self.details = details or {}
        self.error_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "severity": self.severity.value,
            "category": self.category.value,
            "details": self.details,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }


class CapabilityNotRegisteredError(BaseServiceError):
    """Raised when a strategy needs a collaborator the processor context lacks.

    This is a deployment defect, not a property of any single message, so it
    is allowed to abort the whole batch.
    """

    def __init__(self, capability: str, subject: Optional[str] = None):
        super().__init__(
            message=f"Capability '{capability}' is not registered in the processor context",
            error_code="CAPABILITY_NOT_REGISTERED",
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            details={"capability": capability, "subject": subject},
        )
        self.capability = capability
        self.subject = subject


class EventRegistrationError(BaseServiceError):
    """Raised when the event registry is modified incorrectly."""

    def __init__(self, message: str, subject: str):
        super().__init__(
            message=message,
            error_code="EVENT_REGISTRATION_ERROR",
            severity=ErrorSeverity.HIGH,
            category=ErrorCategory.CONFIGURATION,
            details={"subject": subject},
        )
        self.subject = subject


class DALError(BaseServiceError):
    """Raised when a DynamoDB operation fails."""

    def __init__(
        self,
        message: str,
        operation: str,
        table_name: str,
        error_code: str = "DAL_ERROR",
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
    ):
        super().__init__(
            message=message,
            error_code=error_code,
            severity=severity,
            category=category,
            details={"operation": operation, "table_name": table_name},
        )
        self.operation = operation
        self.table_name = table_name
