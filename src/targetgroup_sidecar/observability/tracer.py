"""
Tracers injected into the sidecar components.

Components never import OpenTelemetry themselves. They receive a Tracer and
open spans through it; a span handle is yielded when the tracer records
anything, None otherwise, so attribute updates are written as::

    with self._tracer.span("targetgroup_sidecar.coordinator.run", attrs) as span:
        ...
        if span:
            span.set_attribute(ATTR_MEMBERSHIP_STATE, state.value)

Implementations:
- NullTracer: tracing disabled or OpenTelemetry missing
- OpenTelemetryTracer: spans on the global OpenTelemetry tracer provider
- MockTracer: keeps RecordedSpan objects for assertions in tests
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

try:
    from opentelemetry import trace

    OTEL_AVAILABLE = True
except ImportError:
    OTEL_AVAILABLE = False
    trace = None  # type: ignore[assignment]


@runtime_checkable
class Tracer(Protocol):
    """Source of tracing spans for one component."""

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Any]:
        """
        Open a span around a block.

        Args:
            name: Span name, dotted and prefixed with the package name
            attributes: Attributes known when the span starts

        Returns:
            Context manager yielding a span handle with set_attribute(),
            or None when nothing is recorded
        """
        ...

    @property
    def enabled(self) -> bool: ...


class NullTracer:
    """Tracer that records nothing."""

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[None]:
        return contextlib.nullcontext()

    @property
    def enabled(self) -> bool:
        return False


class OpenTelemetryTracer:
    """
    Tracer backed by the globally configured OpenTelemetry provider.

    Exceptions escaping a span are recorded on it and mark it as failed,
    which is the OpenTelemetry default.

    Raises:
        ImportError: If opentelemetry-api is not installed
    """

    def __init__(self, tracer_name: str) -> None:
        from opentelemetry import trace as otel_trace

        self._tracer = otel_trace.get_tracer(tracer_name)

    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> AbstractContextManager[Any]:
        return self._tracer.start_as_current_span(name, attributes=attributes or {})

    @property
    def enabled(self) -> bool:
        return True


@dataclass
class RecordedSpan:
    """A span captured by MockTracer."""

    name: str
    attributes: dict[str, Any] = field(default_factory=dict)
    error: BaseException | None = None

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value


class MockTracer:
    """
    Tracer for tests.

    Every span is kept in opening order, with the attributes it started with
    plus those set on it later, and the exception that left it, if any.

    Example:
        >>> tracer = MockTracer()
        >>> with tracer.span("targetgroup_sidecar.coordinator.teardown") as span:
        ...     span.set_attribute("targetgroup_sidecar.deregister.failures", 0)
        >>> tracer.find("targetgroup_sidecar.coordinator.teardown").attributes
        {'targetgroup_sidecar.deregister.failures': 0}
    """

    def __init__(self) -> None:
        self.spans: list[RecordedSpan] = []

    @contextlib.contextmanager
    def span(
        self,
        name: str,
        attributes: dict[str, Any] | None = None,
    ) -> Iterator[RecordedSpan]:
        recorded = RecordedSpan(name, dict(attributes or {}))
        self.spans.append(recorded)
        try:
            yield recorded
        except BaseException as e:
            recorded.error = e
            raise

    @property
    def enabled(self) -> bool:
        return True

    @property
    def span_names(self) -> list[str]:
        return [recorded.name for recorded in self.spans]

    def find(self, name: str) -> RecordedSpan:
        """
        Return the first span with the given name.

        Raises:
            LookupError: If no such span was opened
        """
        for recorded in self.spans:
            if recorded.name == name:
                return recorded
        raise LookupError(f"No span named {name!r}; recorded: {self.span_names}")

    def clear(self) -> None:
        self.spans.clear()


def create_tracer(name: str, enable_tracing: bool = True) -> Tracer:
    """
    Pick the tracer for a component.

    Args:
        name: Tracer name, usually the component's module __name__
        enable_tracing: False forces a NullTracer

    Returns:
        OpenTelemetryTracer when enabled and installed, NullTracer otherwise
    """
    if enable_tracing and OTEL_AVAILABLE:
        return OpenTelemetryTracer(name)
    return NullTracer()


__all__ = [
    "OTEL_AVAILABLE",
    "Tracer",
    "NullTracer",
    "OpenTelemetryTracer",
    "RecordedSpan",
    "MockTracer",
    "create_tracer",
]
