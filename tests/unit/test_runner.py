"""
Unit tests for composing and running the sidecar.

Tests for:
- Instance id resolution (literal and from metadata)
- Trigger source wiring
- End-to-end lifecycle with in-memory collaborators
"""

import os
import signal
import sys
from unittest.mock import MagicMock

import pytest

from targetgroup_sidecar.config import SidecarConfig
from targetgroup_sidecar.control_plane import InMemoryControlPlane
from targetgroup_sidecar.exceptions import IdentityResolutionError, TooManyTargetsError
from targetgroup_sidecar.metadata import InMemoryMetadataSource
from targetgroup_sidecar.runner import resolve_instance_id, run_sidecar
from targetgroup_sidecar.types import ExitCode, MembershipState, TerminationCause


def spot_config(**overrides) -> SidecarConfig:
    values = {
        "instance_id": "i-abc",
        "target_group_ids": "tg-1,tg-2,tg-3",
        "monitor_preemption": True,
        "preemption_interval": 0.01,
        "enable_tracing": False,
    }
    values.update(overrides)
    return SidecarConfig(**values)


class TestResolveInstanceId:
    """Tests for resolve_instance_id."""

    @pytest.mark.asyncio
    async def test_literal_id_skips_metadata(self, sidecar_config):
        metadata = InMemoryMetadataSource(None, available=False)
        assert await resolve_instance_id(sidecar_config, metadata) == "i-abc"

    @pytest.mark.asyncio
    async def test_sentinel_reads_metadata(self):
        config = SidecarConfig(target_group_ids="tg-1")
        metadata = InMemoryMetadataSource("i-0fromimds")
        assert await resolve_instance_id(config, metadata) == "i-0fromimds"

    @pytest.mark.asyncio
    async def test_metadata_failure_propagates(self):
        config = SidecarConfig(target_group_ids="tg-1")
        with pytest.raises(IdentityResolutionError):
            await resolve_instance_id(config, InMemoryMetadataSource(None))


class TestRunSidecar:
    """Tests for run_sidecar."""

    @pytest.mark.asyncio
    async def test_preemption_lifecycle(self, control_plane):
        """Register, receive a notice, deregister; exit code 0."""
        metadata = InMemoryMetadataSource("i-abc", notices=[False, True])

        result = await run_sidecar(
            spot_config(),
            control_plane=control_plane,
            metadata=metadata,
            handle_signals=False,
        )

        pairs = [("i-abc", "tg-1"), ("i-abc", "tg-2"), ("i-abc", "tg-3")]
        assert control_plane.register_calls == pairs
        assert control_plane.deregister_calls == pairs
        assert result.exit_code == ExitCode.SUCCESS
        assert result.cause == TerminationCause.PREEMPTION_NOTICE
        assert result.state == MembershipState.DEREGISTERED
        assert metadata.closed is True

    @pytest.mark.asyncio
    async def test_instance_id_from_metadata(self, control_plane):
        metadata = InMemoryMetadataSource("i-0fromimds", notices=[True])

        await run_sidecar(
            spot_config(instance_id="metadata"),
            control_plane=control_plane,
            metadata=metadata,
            handle_signals=False,
        )

        assert control_plane.register_calls[0] == ("i-0fromimds", "tg-1")
        assert control_plane.deregister_calls[-1] == ("i-0fromimds", "tg-3")

    @pytest.mark.asyncio
    async def test_identity_failure_makes_no_calls(self, control_plane):
        """Nothing is registered when the id cannot be resolved."""
        metadata = InMemoryMetadataSource(None, available=False)

        with pytest.raises(IdentityResolutionError):
            await run_sidecar(
                spot_config(instance_id="metadata"),
                control_plane=control_plane,
                metadata=metadata,
                handle_signals=False,
            )

        assert control_plane.calls == []
        assert metadata.closed is True

    @pytest.mark.asyncio
    async def test_registration_failure_exit_code(self, control_plane, metadata):
        control_plane.fail_register("tg-2", TooManyTargetsError("full"))

        result = await run_sidecar(
            spot_config(monitor_preemption=False),
            control_plane=control_plane,
            metadata=metadata,
            handle_signals=False,
        )

        assert result.exit_code == ExitCode.REGISTRATION_FAILED
        assert [tg for _, tg in control_plane.deregister_calls] == ["tg-1", "tg-2", "tg-3"]
        assert metadata.poll_count == 0

    @pytest.mark.asyncio
    async def test_default_control_plane_uses_region(self, monkeypatch):
        control_plane = InMemoryControlPlane()
        factory = MagicMock(return_value=control_plane)
        monkeypatch.setattr("targetgroup_sidecar.runner.ElbV2ControlPlane", factory)
        metadata = InMemoryMetadataSource("i-abc", notices=[True])

        await run_sidecar(
            spot_config(region="eu-west-1"),
            metadata=metadata,
            handle_signals=False,
        )

        factory.assert_called_once_with(region="eu-west-1", enable_tracing=False)
        assert len(control_plane.deregister_calls) == 3

    @pytest.mark.asyncio
    @pytest.mark.skipif(
        sys.platform == "win32",
        reason="Signal handling tests not supported on Windows",
    )
    async def test_sigterm_after_registration(self, metadata):
        """SIGTERM after the last register call deregisters every group."""

        def send_sigterm(operation, instance_id, target_group_id):
            if operation == "register" and target_group_id == "tg-3":
                os.kill(os.getpid(), signal.SIGTERM)

        control_plane = InMemoryControlPlane(on_call=send_sigterm)

        result = await run_sidecar(
            spot_config(monitor_preemption=False),
            control_plane=control_plane,
            metadata=metadata,
        )

        pairs = [("i-abc", "tg-1"), ("i-abc", "tg-2"), ("i-abc", "tg-3")]
        assert control_plane.register_calls == pairs
        assert control_plane.deregister_calls == pairs
        assert result.cause == TerminationCause.SIGNAL_SIGTERM
        assert result.exit_code == ExitCode.SUCCESS
