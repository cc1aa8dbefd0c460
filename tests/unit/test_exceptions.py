"""
Unit tests for exceptions module.

Tests all exception types and their error messages.
"""

import pytest

from targetgroup_sidecar.exceptions import (
    ApiError,
    ConfigurationError,
    IdentityResolutionError,
    InvalidTargetError,
    InvalidTransitionError,
    SidecarError,
    TargetGroupNotFoundError,
    TooManyRegistrationsForTargetError,
    TooManyTargetsError,
    TransportError,
    api_error_for_code,
)
from targetgroup_sidecar.types import ApiErrorCode, MembershipState


class TestSidecarError:
    """Tests for the base SidecarError."""

    def test_base_exception(self):
        """Test that SidecarError can be raised with message."""
        with pytest.raises(SidecarError) as exc_info:
            raise SidecarError("Test error")
        assert str(exc_info.value) == "Test error"

    @pytest.mark.parametrize(
        "error_class",
        [
            ConfigurationError,
            IdentityResolutionError,
            TransportError,
            InvalidTransitionError,
            ApiError,
        ],
    )
    def test_all_errors_subclass_base(self, error_class):
        """Every library error derives from SidecarError."""
        assert issubclass(error_class, SidecarError)


class TestIdentityResolutionError:
    """Tests for IdentityResolutionError."""

    def test_message_prefix(self):
        """The message explains what could not be resolved."""
        error = IdentityResolutionError("HTTP 404")
        assert str(error) == "Failed to resolve instance id: HTTP 404"
        assert error.cause is None

    def test_keeps_cause(self):
        """The underlying error is kept for callers."""
        cause = TransportError("http://imds/meta-data/instance-id", "timed out")
        error = IdentityResolutionError(str(cause), cause=cause)
        assert error.cause is cause


class TestTransportError:
    """Tests for TransportError."""

    def test_message_contains_url(self):
        """The failing URL is part of the message and kept as attribute."""
        error = TransportError("http://169.254.169.254/latest/api/token", "connection refused")
        assert error.url == "http://169.254.169.254/latest/api/token"
        assert "connection refused" in str(error)
        assert "http://169.254.169.254/latest/api/token" in str(error)


class TestInvalidTransitionError:
    """Tests for InvalidTransitionError."""

    def test_states_in_message(self):
        """Both states are recorded."""
        error = InvalidTransitionError(MembershipState.DEREGISTERED, MembershipState.REGISTERING)
        assert error.current == MembershipState.DEREGISTERED
        assert error.target == MembershipState.REGISTERING
        assert "deregistered -> registering" in str(error)


class TestApiError:
    """Tests for ApiError and its classified subclasses."""

    def test_default_code_is_other(self):
        """A plain ApiError is unclassified."""
        error = ApiError("throttled")
        assert error.code == ApiErrorCode.OTHER
        assert error.message == "throttled"
        assert error.target_group_id is None
        assert str(error) == "Other: throttled"

    def test_target_group_in_message(self):
        """The target group is appended when known."""
        error = ApiError("throttled", target_group_id="tg-1")
        assert str(error) == "Other: throttled (target group tg-1)"

    def test_explicit_code(self):
        """The code can be passed for a plain ApiError."""
        error = ApiError("boom", code=ApiErrorCode.INVALID_TARGET)
        assert error.code == ApiErrorCode.INVALID_TARGET
        assert str(error).startswith("InvalidTarget: ")

    @pytest.mark.parametrize(
        ("error_class", "code"),
        [
            (TargetGroupNotFoundError, ApiErrorCode.TARGET_GROUP_NOT_FOUND),
            (TooManyTargetsError, ApiErrorCode.TOO_MANY_TARGETS),
            (InvalidTargetError, ApiErrorCode.INVALID_TARGET),
            (TooManyRegistrationsForTargetError, ApiErrorCode.TOO_MANY_REGISTRATIONS_FOR_TARGET),
        ],
    )
    def test_subclass_codes(self, error_class, code):
        """Each subclass carries its classified code."""
        error = error_class("failed", target_group_id="tg-2")
        assert error.code == code
        assert isinstance(error, ApiError)
        assert str(error) == f"{code.value}: failed (target group tg-2)"


class TestApiErrorForCode:
    """Tests for api_error_for_code."""

    def test_known_code_builds_subclass(self):
        """Classified codes produce the matching subclass."""
        error = api_error_for_code(ApiErrorCode.TOO_MANY_TARGETS, "limit", "tg-1")
        assert type(error) is TooManyTargetsError
        assert error.target_group_id == "tg-1"

    def test_other_code_builds_plain_error(self):
        """OTHER produces a plain ApiError."""
        error = api_error_for_code(ApiErrorCode.OTHER, "Throttling: slow down")
        assert type(error) is ApiError
        assert error.code == ApiErrorCode.OTHER
