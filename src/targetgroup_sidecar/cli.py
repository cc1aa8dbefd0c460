"""
Command line entry point.

Every option can also be set through the environment variable shown in
--help, which is how the sidecar is usually configured inside a container
task definition.

Exit codes:
    0  membership torn down cleanly
    1  a register call failed (teardown was still attempted)
    2  invalid configuration
    3  instance id could not be resolved
"""

import asyncio
import importlib.metadata
import logging
from enum import Enum
from typing import Annotated

import typer

from targetgroup_sidecar.config import DEFAULT_METADATA_URL, METADATA_SENTINEL, load_config
from targetgroup_sidecar.exceptions import ConfigurationError, IdentityResolutionError
from targetgroup_sidecar.log_config import configure_logging
from targetgroup_sidecar.runner import run_sidecar
from targetgroup_sidecar.types import ExitCode

logger = logging.getLogger(__name__)


class LogFormat(str, Enum):
    TEXT = "text"
    JSON = "json"


app = typer.Typer(
    name="targetgroup-sidecar",
    help=(
        "Register this instance in load balancer target groups on start and "
        "deregister it on SIGTERM/SIGINT or on a spot termination notice."
    ),
    add_completion=False,
)


def _version_callback(value: bool) -> None:
    if value:
        try:
            typer.echo(importlib.metadata.version("targetgroup-sidecar"))
        except importlib.metadata.PackageNotFoundError:
            typer.echo("0.0.0.dev0")
        raise typer.Exit()


@app.command()
def run(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            help="Show version and exit.",
            callback=_version_callback,
            is_eager=True,
        ),
    ] = None,
    instance_id: Annotated[
        str,
        typer.Option(
            "--instance-id",
            "--instanceid",
            envvar="INSTANCEID",
            help=f"Instance id to register, or '{METADATA_SENTINEL}' to read it from instance metadata.",
        ),
    ] = METADATA_SENTINEL,
    target_group_ids: Annotated[
        str,
        typer.Option(
            "--target-group-ids",
            "--targetgroupids",
            envvar="TARGETGROUPIDS",
            help="Comma separated list of target group ARNs.",
        ),
    ] = "",
    monitor_spot: Annotated[
        bool,
        typer.Option(
            "--monitor-spot/--no-monitor-spot",
            envvar="MONITORSPOT",
            help="Watch for spot termination notices and deregister early.",
        ),
    ] = False,
    spot_poll_interval: Annotated[
        float,
        typer.Option(
            "--spot-poll-interval",
            envvar="SPOTPOLLINTERVAL",
            help="Seconds between spot termination notice checks.",
            min=0.1,
        ),
    ] = 5.0,
    region: Annotated[
        str | None,
        typer.Option("--region", envvar="AWS_REGION", help="AWS region of the load balancer."),
    ] = None,
    metadata_url: Annotated[
        str,
        typer.Option(
            "--metadata-url",
            envvar="METADATAURL",
            help="Base URL of the instance metadata service.",
        ),
    ] = DEFAULT_METADATA_URL,
    log_level: Annotated[
        str,
        typer.Option("--log-level", envvar="LOGLEVEL", help="Log level."),
    ] = "INFO",
    log_format: Annotated[
        LogFormat,
        typer.Option("--log-format", envvar="LOGFORMAT", help="Log output format."),
    ] = LogFormat.TEXT,
    tracing: Annotated[
        bool,
        typer.Option(
            "--tracing/--no-tracing",
            envvar="TRACING",
            help="Emit OpenTelemetry spans when OpenTelemetry is installed.",
        ),
    ] = True,
) -> None:
    """Manage target group membership for the lifetime of this process."""
    try:
        configure_logging(log_level, log_format.value)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR) from None

    try:
        config = load_config(
            instance_id=instance_id,
            target_group_ids=target_group_ids,
            monitor_preemption=monitor_spot,
            preemption_interval=spot_poll_interval,
            region=region,
            metadata_url=metadata_url,
            enable_tracing=tracing,
        )
    except ConfigurationError as e:
        logger.error("Invalid configuration", extra={"error": str(e)})
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR) from None

    try:
        result = asyncio.run(run_sidecar(config))
    except ConfigurationError as e:
        logger.error("Invalid configuration", extra={"error": str(e)})
        raise typer.Exit(code=ExitCode.CONFIGURATION_ERROR) from None
    except IdentityResolutionError as e:
        logger.error("Failed to fetch instance id", extra={"error": str(e)})
        raise typer.Exit(code=ExitCode.IDENTITY_RESOLUTION_FAILED) from None
    except KeyboardInterrupt:
        # Signal handlers are installed with the coordinator; nothing is registered yet
        logger.warning("Interrupted before registration started")
        raise typer.Exit(code=ExitCode.SUCCESS) from None

    if result.exit_code != ExitCode.SUCCESS:
        logger.error(
            "Failed to register instance in all target groups, deregistered and quit",
            extra={"error": result.error},
        )
    raise typer.Exit(code=int(result.exit_code))


def main() -> None:
    """Console script entry point."""
    app()


__all__ = ["app", "main"]
