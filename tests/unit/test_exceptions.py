"""
Unit tests for custom exceptions.

Tests exception hierarchy and error formatting.
"""
import pytest

from estimator.exceptions import (
    ConfigurationError,
    EstimatorError,
    InvalidComplexityError,
    InvalidSizeFactorError,
    NoTasksGeneratedError,
    NotFoundError,
    ProjectNotFoundError,
    ProviderError,
    StorageError,
    TaskNotFoundError,
    ValidationError,
)


class TestExceptionHierarchy:
    """Tests for exception class hierarchy."""

    def test_base_exception(self):
        exc = EstimatorError("Test error")

        assert exc.error_code == "EST-000"
        assert exc.message == "Test error"
        assert exc.http_status == 500
        assert str(exc) == "Test error"

    @pytest.mark.parametrize(
        "exc, parent, code, status",
        [
            (ProjectNotFoundError("p1"), NotFoundError, "EST-101", 404),
            (TaskNotFoundError("p1", "t1"), NotFoundError, "EST-102", 404),
            (InvalidComplexityError("extreme"), ValidationError, "EST-701", 400),
            (InvalidSizeFactorError(-1), ValidationError, "EST-702", 400),
            (ConfigurationError(), EstimatorError, "EST-300", 400),
            (StorageError(), EstimatorError, "EST-800", 500),
            (NoTasksGeneratedError("claude"), ProviderError, "EST-901", 502),
        ],
    )
    def test_codes_and_status(self, exc, parent, code, status):
        assert isinstance(exc, parent)
        assert exc.error_code == code
        assert exc.http_status == status

    def test_error_code_override(self):
        exc = ValidationError("Bad", error_code="EST-799")
        assert exc.error_code == "EST-799"


class TestExceptionDetails:
    """Tests for details attached by subclasses."""

    def test_task_not_found_details(self):
        exc = TaskNotFoundError("p1", "t1")

        assert exc.details == {"project_id": "p1", "task_id": "t1"}
        assert "t1" in exc.message

    def test_validation_errors_list(self):
        exc = ValidationError("Invalid", errors=[{"field": "name", "message": "required"}])

        assert exc.details["errors"][0]["field"] == "name"

    def test_invalid_complexity_keeps_value(self):
        exc = InvalidComplexityError("extreme")

        assert exc.details["complexity"] == "extreme"
        assert exc.details["errors"][0]["field"] == "complexity"

    def test_provider_in_details(self):
        exc = ProviderError("openai", "OpenAI API error: 500", details={"status_code": 500})

        assert exc.details == {"status_code": 500, "provider": "openai"}

    def test_no_tasks_reason(self):
        exc = NoTasksGeneratedError("claude", reason="no JSON array found")

        assert exc.details == {"reason": "no JSON array found", "provider": "claude"}


class TestExceptionSerialization:
    """Tests for exception to_dict output."""

    def test_to_dict(self):
        exc = ProjectNotFoundError("abc")

        assert exc.to_dict() == {
            "error": True,
            "error_code": "EST-101",
            "message": "Project abc not found",
            "details": {"project_id": "abc"},
        }
