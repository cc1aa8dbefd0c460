"""
Observability utilities for targetgroup_sidecar.

Provides the composition-based tracer and the standard span attributes.

Note:
    OpenTelemetry is an optional dependency (``pip install targetgroup-sidecar[telemetry]``).
    Without it every component falls back to NullTracer.
"""

from targetgroup_sidecar.observability.attributes import (
    ATTR_CLOUD_PROVIDER,
    ATTR_DEREGISTER_FAILURES,
    ATTR_ERROR_CODE,
    ATTR_INSTANCE_ID,
    ATTR_MEMBERSHIP_STATE,
    ATTR_TARGET_GROUP_COUNT,
    ATTR_TARGET_GROUP_ID,
    ATTR_TERMINATION_CAUSE,
)
from targetgroup_sidecar.observability.tracer import (
    OTEL_AVAILABLE,
    MockTracer,
    NullTracer,
    OpenTelemetryTracer,
    RecordedSpan,
    Tracer,
    create_tracer,
)

__all__ = [
    "OTEL_AVAILABLE",
    # Tracer
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "RecordedSpan",
    "MockTracer",
    "create_tracer",
    # Attributes
    "ATTR_CLOUD_PROVIDER",
    "ATTR_DEREGISTER_FAILURES",
    "ATTR_ERROR_CODE",
    "ATTR_INSTANCE_ID",
    "ATTR_MEMBERSHIP_STATE",
    "ATTR_TARGET_GROUP_COUNT",
    "ATTR_TARGET_GROUP_ID",
    "ATTR_TERMINATION_CAUSE",
]
