"""
Standard span attributes for targetgroup_sidecar.

Attribute constants used by every traced component so that spans from the
coordinator and the control-plane clients share the same keys.

Example:
    >>> from targetgroup_sidecar.observability.attributes import (
    ...     ATTR_INSTANCE_ID,
    ...     ATTR_TARGET_GROUP_ID,
    ... )
    >>>
    >>> with tracer.span(
    ...     "targetgroup_sidecar.control_plane.register",
    ...     {ATTR_INSTANCE_ID: "i-abc", ATTR_TARGET_GROUP_ID: "tg-1"},
    ... ):
    ...     pass
"""

# =============================================================================
# Membership Attributes
# =============================================================================

ATTR_INSTANCE_ID = "targetgroup_sidecar.instance.id"
"""Identifier of the instance being registered (e.g., 'i-0abc123')."""

ATTR_TARGET_GROUP_ID = "targetgroup_sidecar.target_group.id"
"""Target group identifier or ARN."""

ATTR_TARGET_GROUP_COUNT = "targetgroup_sidecar.target_group.count"
"""Number of target groups handled by an operation (integer)."""

ATTR_MEMBERSHIP_STATE = "targetgroup_sidecar.membership.state"
"""Membership state when the span ended (e.g., 'registered')."""

# =============================================================================
# Termination Attributes
# =============================================================================

ATTR_TERMINATION_CAUSE = "targetgroup_sidecar.termination.cause"
"""Cause of the termination trigger (e.g., 'signal_sigterm')."""

ATTR_DEREGISTER_FAILURES = "targetgroup_sidecar.deregister.failures"
"""Number of target groups whose deregistration failed (integer)."""

# =============================================================================
# Control Plane Attributes
# =============================================================================

ATTR_CLOUD_PROVIDER = "cloud.provider"
"""Cloud provider of the control plane (OTEL semantic, e.g., 'aws')."""

ATTR_ERROR_CODE = "targetgroup_sidecar.error.code"
"""Classified control-plane error code."""


__all__ = [
    "ATTR_INSTANCE_ID",
    "ATTR_TARGET_GROUP_ID",
    "ATTR_TARGET_GROUP_COUNT",
    "ATTR_MEMBERSHIP_STATE",
    "ATTR_TERMINATION_CAUSE",
    "ATTR_DEREGISTER_FAILURES",
    "ATTR_CLOUD_PROVIDER",
    "ATTR_ERROR_CODE",
]
