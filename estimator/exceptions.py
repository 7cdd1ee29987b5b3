"""
Custom exceptions for the Cost Estimator.

Provides a hierarchy of exceptions with error codes for consistent error handling.
"""
from typing import Optional, Dict, Any


class EstimatorError(Exception):
    """
    Base exception for all Cost Estimator errors.

    Attributes:
        error_code: Unique error code (e.g., EST-001)
        message: Human-readable error message
        details: Additional error context
    """
    error_code: str = "EST-000"
    http_status: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[Dict[str, Any]] = None,
        error_code: Optional[str] = None,
    ):
        self.message = message
        self.details = details or {}
        if error_code:
            self.error_code = error_code
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API response."""
        return {
            "error": True,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }


# Not Found Errors (EST-1XX)
class NotFoundError(EstimatorError):
    """Requested entity does not exist."""
    error_code = "EST-100"
    http_status = 404

    def __init__(self, message: str = "Resource not found", **kwargs):
        super().__init__(message, **kwargs)


class ProjectNotFoundError(NotFoundError):
    """Project not found in storage."""
    error_code = "EST-101"

    def __init__(self, project_id: str, **kwargs):
        message = f"Project {project_id} not found"
        super().__init__(message, details={"project_id": project_id}, **kwargs)


class TaskNotFoundError(NotFoundError):
    """Task not found in its project."""
    error_code = "EST-102"

    def __init__(self, project_id: str, task_id: str, **kwargs):
        message = f"Task {task_id} not found in project {project_id}"
        super().__init__(
            message,
            details={"project_id": project_id, "task_id": task_id},
            **kwargs,
        )


# Configuration Errors (EST-3XX)
class ConfigurationError(EstimatorError):
    """Required configuration is missing."""
    error_code = "EST-300"
    http_status = 400

    def __init__(self, message: str = "Estimator is not configured", **kwargs):
        super().__init__(message, **kwargs)


# Validation Errors (EST-7XX)
class ValidationError(EstimatorError):
    """Input validation failed."""
    error_code = "EST-700"
    http_status = 400

    def __init__(self, message: str = "Validation failed", errors: list = None, **kwargs):
        details = kwargs.pop("details", {})
        details["errors"] = errors or []
        super().__init__(message, details=details, **kwargs)


class InvalidComplexityError(ValidationError):
    """Complexity is not one of the recognized levels."""
    error_code = "EST-701"

    def __init__(self, complexity: Any, **kwargs):
        message = f"Invalid complexity: {complexity!r}"
        super().__init__(
            message,
            errors=[{"field": "complexity", "message": "must be one of low, medium, high, veryHigh"}],
            details={"complexity": str(complexity)},
            **kwargs,
        )


class InvalidSizeFactorError(ValidationError):
    """Size factor is negative."""
    error_code = "EST-702"

    def __init__(self, size_factor: Any, **kwargs):
        message = f"Size factor must be non-negative, got {size_factor}"
        super().__init__(
            message,
            errors=[{"field": "size_factor", "message": "must be >= 0"}],
            details={"size_factor": str(size_factor)},
            **kwargs,
        )


# Storage Errors (EST-8XX)
class StorageError(EstimatorError):
    """Storage operation failed."""
    error_code = "EST-800"
    http_status = 500

    def __init__(self, message: str = "Storage operation failed", **kwargs):
        super().__init__(message, **kwargs)


# External Service Errors (EST-9XX)
class ProviderError(EstimatorError):
    """LLM provider call failed."""
    error_code = "EST-900"
    http_status = 502

    def __init__(self, provider: str, message: str = None, **kwargs):
        msg = message or f"LLM provider '{provider}' is unavailable"
        details = kwargs.pop("details", {})
        details["provider"] = provider
        super().__init__(msg, details=details, **kwargs)


class NoTasksGeneratedError(ProviderError):
    """LLM response contained no usable tasks."""
    error_code = "EST-901"

    def __init__(self, provider: str, reason: str = "", **kwargs):
        super().__init__(
            provider,
            "Could not generate tasks from the LLM response",
            details={"reason": reason},
            **kwargs,
        )
