"""Common type definitions for the targetgroup_sidecar package."""

from enum import Enum, IntEnum

# Type aliases for clarity and documentation
InstanceId = str
TargetGroupId = str


class MembershipState(Enum):
    """
    Membership of the instance in its target groups.

    States only move forward:
    1. UNREGISTERED: Process started, nothing registered yet
    2. REGISTERING: Registering target groups in order
    3. REGISTERED: Every target group registered, waiting for a trigger
    4. DEREGISTERING: Teardown in progress
    5. DEREGISTERED: Teardown finished (terminal)
    """

    UNREGISTERED = "unregistered"
    REGISTERING = "registering"
    REGISTERED = "registered"
    DEREGISTERING = "deregistering"
    DEREGISTERED = "deregistered"

    @property
    def order(self) -> int:
        """Position of the state in the forward-only lifecycle."""
        return _STATE_ORDER[self]


_STATE_ORDER = {state: index for index, state in enumerate(MembershipState)}


class TerminationCause(Enum):
    """
    Origin of a termination trigger.

    Useful for logging and for the final lifecycle result.
    """

    SIGNAL_SIGTERM = "signal_sigterm"
    """SIGTERM delivered to the process (ECS, Kubernetes, systemd stop)."""

    SIGNAL_SIGINT = "signal_sigint"
    """SIGINT delivered to the process (Ctrl+C)."""

    PREEMPTION_NOTICE = "preemption_notice"
    """Spot termination notice published by the instance metadata service."""

    REGISTRATION_FAILURE = "registration_failure"
    """A register call failed and the membership is being torn down."""

    PROGRAMMATIC = "programmatic"
    """Teardown requested by application code."""


class ApiErrorCode(Enum):
    """Classified control-plane error codes."""

    TARGET_GROUP_NOT_FOUND = "TargetGroupNotFound"
    TOO_MANY_TARGETS = "TooManyTargets"
    INVALID_TARGET = "InvalidTarget"
    TOO_MANY_REGISTRATIONS_FOR_TARGET = "TooManyRegistrationsForTargetId"
    OTHER = "Other"


class ExitCode(IntEnum):
    """Process exit codes."""

    SUCCESS = 0
    REGISTRATION_FAILED = 1
    CONFIGURATION_ERROR = 2
    IDENTITY_RESOLUTION_FAILED = 3
