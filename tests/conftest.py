"""
Shared pytest fixtures for the targetgroup_sidecar tests.

This module provides:
- Context fixtures (instance_id, target_group_ids, instance_context)
- Collaborator fixtures (control_plane, metadata, trigger, mock_tracer)
"""

from __future__ import annotations

import logging

import pytest

from targetgroup_sidecar.config import InstanceContext, SidecarConfig
from targetgroup_sidecar.control_plane import InMemoryControlPlane
from targetgroup_sidecar.metadata import InMemoryMetadataSource
from targetgroup_sidecar.observability import MockTracer
from targetgroup_sidecar.trigger import TerminationTrigger

# ============================================================================
# Context Fixtures
# ============================================================================


@pytest.fixture
def instance_id() -> str:
    """Instance id used across tests."""
    return "i-abc"


@pytest.fixture
def target_group_ids() -> tuple[str, ...]:
    """Three target groups in registration order."""
    return ("tg-1", "tg-2", "tg-3")


@pytest.fixture
def instance_context(instance_id: str, target_group_ids: tuple[str, ...]) -> InstanceContext:
    """Resolved context for the default instance and target groups."""
    return InstanceContext(instance_id, target_group_ids)


@pytest.fixture
def sidecar_config(instance_id: str) -> SidecarConfig:
    """Configuration with a literal instance id and no pre-emption monitoring."""
    return SidecarConfig(instance_id=instance_id, target_group_ids="tg-1,tg-2,tg-3")


# ============================================================================
# Collaborator Fixtures
# ============================================================================


@pytest.fixture
def control_plane(target_group_ids: tuple[str, ...]) -> InMemoryControlPlane:
    """In-memory control plane that knows the default target groups."""
    return InMemoryControlPlane(target_groups=target_group_ids)


@pytest.fixture
def metadata(instance_id: str) -> InMemoryMetadataSource:
    """Available metadata source without a termination notice."""
    return InMemoryMetadataSource(instance_id)


@pytest.fixture
def trigger() -> TerminationTrigger:
    """Fresh termination trigger."""
    return TerminationTrigger()


@pytest.fixture
def mock_tracer() -> MockTracer:
    """Tracer recording span names."""
    return MockTracer()


@pytest.fixture(autouse=True)
def _capture_all_logs(caplog: pytest.LogCaptureFixture) -> None:
    """Capture DEBUG logs from the package so tests can assert on them."""
    caplog.set_level(logging.DEBUG, logger="targetgroup_sidecar")
