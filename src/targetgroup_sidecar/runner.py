"""
Composition of the sidecar from its configuration.

run_sidecar resolves the instance identity, builds the immutable
InstanceContext, wires the trigger sources and runs the coordinator. It
returns the coordinator's result and never exits the process itself.
"""

import logging

from targetgroup_sidecar.config import InstanceContext, SidecarConfig
from targetgroup_sidecar.control_plane import ControlPlaneClient, ElbV2ControlPlane
from targetgroup_sidecar.coordinator import LifecycleCoordinator, LifecycleResult
from targetgroup_sidecar.metadata import Ec2MetadataSource, MetadataSource
from targetgroup_sidecar.preemption import PreemptionMonitor
from targetgroup_sidecar.signals import SignalListener
from targetgroup_sidecar.trigger import TriggerSource

logger = logging.getLogger(__name__)


async def resolve_instance_id(config: SidecarConfig, metadata: MetadataSource) -> str:
    """
    Resolve the instance identifier.

    Args:
        config: Sidecar configuration
        metadata: Source consulted when the configured id is "metadata"

    Returns:
        The literal configured id, or the id reported by the metadata source

    Raises:
        IdentityResolutionError: If the metadata source cannot provide an id
    """
    if not config.resolve_from_metadata:
        return config.instance_id

    logger.info("Fetching instance id from instance metadata")
    instance_id = await metadata.get_instance_id()
    logger.info("Resolved instance id", extra={"instance_id": instance_id})
    return instance_id


async def run_sidecar(
    config: SidecarConfig,
    *,
    control_plane: ControlPlaneClient | None = None,
    metadata: MetadataSource | None = None,
    handle_signals: bool = True,
) -> LifecycleResult:
    """
    Run the sidecar until its membership has been torn down.

    Args:
        config: Sidecar configuration
        control_plane: Control-plane client. An ElbV2ControlPlane for
            config.region is created when omitted.
        metadata: Metadata source. An Ec2MetadataSource for
            config.metadata_url is created when omitted.
        handle_signals: Whether to install SIGTERM/SIGINT handlers

    Returns:
        The coordinator's LifecycleResult

    Raises:
        IdentityResolutionError: If the instance id cannot be resolved
        ConfigurationError: If the control-plane client cannot be built
    """
    if metadata is None:
        metadata = Ec2MetadataSource(config.metadata_url, timeout=config.metadata_timeout)

    try:
        instance_id = await resolve_instance_id(config, metadata)
        context = InstanceContext(instance_id, config.target_group_ids)

        logger.info(
            "Sidecar configuration",
            extra={**config.to_log_dict(), "instance_id": context.instance_id},
        )

        if control_plane is None:
            control_plane = ElbV2ControlPlane(
                region=config.region,
                enable_tracing=config.enable_tracing,
            )

        sources: list[TriggerSource] = []
        if handle_signals:
            sources.append(SignalListener())
        if config.monitor_preemption:
            sources.append(PreemptionMonitor(metadata, interval=config.preemption_interval))

        coordinator = LifecycleCoordinator(
            context,
            control_plane,
            sources=sources,
            enable_tracing=config.enable_tracing,
        )
        return await coordinator.run()
    finally:
        await metadata.close()
