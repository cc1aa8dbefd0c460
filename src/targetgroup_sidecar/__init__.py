"""
targetgroup-sidecar - Load balancer target group membership for a single instance.

This package provides:
- Control-plane clients that register and deregister an instance in target groups
- Instance metadata sources for identity resolution and spot termination notices
- A first-trigger-wins termination primitive fed by OS signals and pre-emption notices
- A lifecycle coordinator that registers once and deregisters once
- A command line entry point wiring everything together
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("targetgroup-sidecar")
except PackageNotFoundError:
    # Package not installed (running from source without install)
    __version__ = "0.0.0.dev0"

from targetgroup_sidecar.config import (
    METADATA_SENTINEL,
    InstanceContext,
    SidecarConfig,
    parse_target_group_ids,
)
from targetgroup_sidecar.control_plane import (
    ControlPlaneClient,
    ElbV2ControlPlane,
    InMemoryControlPlane,
)
from targetgroup_sidecar.coordinator import LifecycleCoordinator, LifecycleResult
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
)
from targetgroup_sidecar.metadata import (
    Ec2MetadataSource,
    InMemoryMetadataSource,
    MetadataSource,
)
from targetgroup_sidecar.preemption import PreemptionMonitor
from targetgroup_sidecar.runner import resolve_instance_id, run_sidecar
from targetgroup_sidecar.signals import SignalListener
from targetgroup_sidecar.trigger import TerminationTrigger, TriggerSource
from targetgroup_sidecar.types import (
    ApiErrorCode,
    ExitCode,
    MembershipState,
    TerminationCause,
)

__all__ = [
    "__version__",
    # Configuration
    "METADATA_SENTINEL",
    "InstanceContext",
    "SidecarConfig",
    "parse_target_group_ids",
    # Control plane
    "ControlPlaneClient",
    "ElbV2ControlPlane",
    "InMemoryControlPlane",
    # Metadata
    "Ec2MetadataSource",
    "InMemoryMetadataSource",
    "MetadataSource",
    # Lifecycle
    "LifecycleCoordinator",
    "LifecycleResult",
    "PreemptionMonitor",
    "SignalListener",
    "TerminationTrigger",
    "TriggerSource",
    "resolve_instance_id",
    "run_sidecar",
    # Types
    "ApiErrorCode",
    "ExitCode",
    "MembershipState",
    "TerminationCause",
    # Exceptions
    "ApiError",
    "ConfigurationError",
    "IdentityResolutionError",
    "InvalidTargetError",
    "InvalidTransitionError",
    "SidecarError",
    "TargetGroupNotFoundError",
    "TooManyRegistrationsForTargetError",
    "TooManyTargetsError",
    "TransportError",
]
