"""Tests for the Result pattern implementation."""

import pytest

from folder_organizer.domain.result import Failure, Success


class TestSuccess:
    """Test the Success result type."""

    def test_success_creation(self):
        result = Success(42)
        assert result.is_success() is True
        assert result.is_failure() is False
        assert result.value() == 42

    def test_success_repr(self):
        assert repr(Success("test")) == "Success('test')"

    def test_success_error_raises(self):
        with pytest.raises(ValueError, match="Cannot get error from Success result"):
            Success(42).error()

    def test_success_map(self):
        mapped = Success(5).map(lambda x: x * 2)
        assert isinstance(mapped, Success)
        assert mapped.value() == 10


class TestFailure:
    """Test the Failure result type."""

    def test_failure_creation(self):
        result = Failure("Session abc not found")
        assert result.is_failure() is True
        assert result.error() == "Session abc not found"

    def test_failure_value_raises(self):
        with pytest.raises(ValueError, match="Cannot get value from Failure result"):
            Failure("boom").value()

    def test_failure_map_is_identity(self):
        result = Failure("boom")
        assert result.map(lambda x: x * 2) is result

    def test_or_else(self):
        assert Failure("boom").or_else(7) == 7
        assert Success(3).or_else(7) == 3
