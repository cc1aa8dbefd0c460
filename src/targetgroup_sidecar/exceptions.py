"""Library exceptions for the targetgroup_sidecar package."""

from targetgroup_sidecar.types import ApiErrorCode, MembershipState


class SidecarError(Exception):
    """Base exception for targetgroup_sidecar."""

    pass


class ConfigurationError(SidecarError):
    """Raised when the sidecar configuration is invalid."""

    pass


class IdentityResolutionError(SidecarError):
    """Raised when the instance identifier cannot be resolved."""

    def __init__(self, message: str, cause: Exception | None = None) -> None:
        self.cause = cause
        super().__init__(f"Failed to resolve instance id: {message}")


class TransportError(SidecarError):
    """Raised when a request to the instance metadata service fails in transit."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"Request to {url} failed: {message}")


class InvalidTransitionError(SidecarError):
    """Raised when a membership state transition would move backwards."""

    def __init__(self, current: MembershipState, target: MembershipState) -> None:
        self.current = current
        self.target = target
        super().__init__(
            f"Invalid membership transition: {current.value} -> {target.value}"
        )


class ApiError(SidecarError):
    """
    Raised when a control-plane call is rejected or fails.

    The code classifies the provider response. Subclasses exist for each
    classified code so callers may catch them individually.

    Attributes:
        code: Classified error code
        message: Provider message
        target_group_id: Target group the call was issued for, if known
    """

    code: ApiErrorCode = ApiErrorCode.OTHER

    def __init__(
        self,
        message: str,
        target_group_id: str | None = None,
        code: ApiErrorCode | None = None,
    ) -> None:
        if code is not None:
            self.code = code
        self.message = message
        self.target_group_id = target_group_id
        location = f" (target group {target_group_id})" if target_group_id else ""
        super().__init__(f"{self.code.value}: {message}{location}")


class TargetGroupNotFoundError(ApiError):
    """Raised when the target group does not exist."""

    code = ApiErrorCode.TARGET_GROUP_NOT_FOUND


class TooManyTargetsError(ApiError):
    """Raised when the target group has reached its target limit."""

    code = ApiErrorCode.TOO_MANY_TARGETS


class InvalidTargetError(ApiError):
    """Raised when the instance is not a valid target for the group."""

    code = ApiErrorCode.INVALID_TARGET


class TooManyRegistrationsForTargetError(ApiError):
    """Raised when the instance is registered in too many target groups."""

    code = ApiErrorCode.TOO_MANY_REGISTRATIONS_FOR_TARGET


_ERRORS_BY_CODE: dict[ApiErrorCode, type[ApiError]] = {
    ApiErrorCode.TARGET_GROUP_NOT_FOUND: TargetGroupNotFoundError,
    ApiErrorCode.TOO_MANY_TARGETS: TooManyTargetsError,
    ApiErrorCode.INVALID_TARGET: InvalidTargetError,
    ApiErrorCode.TOO_MANY_REGISTRATIONS_FOR_TARGET: TooManyRegistrationsForTargetError,
}


def api_error_for_code(
    code: ApiErrorCode,
    message: str,
    target_group_id: str | None = None,
) -> ApiError:
    """
    Build the ApiError subclass matching a classified code.

    Args:
        code: Classified error code
        message: Provider message
        target_group_id: Target group the call was issued for

    Returns:
        ApiError instance (OTHER codes produce a plain ApiError)
    """
    error_class = _ERRORS_BY_CODE.get(code)
    if error_class is None:
        return ApiError(message, target_group_id=target_group_id, code=code)
    return error_class(message, target_group_id=target_group_id)
