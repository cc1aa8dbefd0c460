"""
Configuration for the target group sidecar.

This module provides:
- SidecarConfig: Raw configuration read once at startup
- InstanceContext: Resolved, immutable context handed to the coordinator
- parse_target_group_ids: Parser for the comma separated target group list
- load_config: Builds a SidecarConfig, reporting problems as ConfigurationError

Example:
    >>> config = load_config(instance_id="i-abc", target_group_ids="tg-1,tg-2")
    >>> config.target_group_ids
    ('tg-1', 'tg-2')
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from targetgroup_sidecar.exceptions import ConfigurationError

# Instance id value meaning "ask the instance metadata service"
METADATA_SENTINEL = "metadata"

DEFAULT_METADATA_URL = "http://169.254.169.254/latest"
DEFAULT_PREEMPTION_INTERVAL = 5.0


def parse_target_group_ids(value: str) -> tuple[str, ...]:
    """
    Parse a comma separated list of target group identifiers.

    Surrounding whitespace is stripped from every item. Order is preserved.

    Args:
        value: Comma separated identifiers, e.g. "tg-1,tg-2"

    Returns:
        Tuple of identifiers in the order given

    Raises:
        ConfigurationError: If the list is empty or contains an empty item
    """
    if not value or not value.strip():
        raise ConfigurationError("At least one target group id is required")

    items = tuple(item.strip() for item in value.split(","))
    if any(not item for item in items):
        raise ConfigurationError(f"Empty target group id in list: {value!r}")
    return items


class SidecarConfig(BaseModel):
    """
    Configuration of the sidecar, read once at startup.

    Attributes:
        instance_id: Literal instance id, or "metadata" to resolve it from
            the instance metadata service
        target_group_ids: Target groups to register in, in order
        monitor_preemption: Whether to watch for spot termination notices
        preemption_interval: Seconds between spot termination notice polls
        region: AWS region for the control-plane client (None = boto3 default)
        metadata_url: Base URL of the instance metadata service
        metadata_timeout: Timeout in seconds for a metadata request
        enable_tracing: Whether to emit OpenTelemetry spans when available
    """

    model_config = ConfigDict(frozen=True)

    instance_id: str = Field(default=METADATA_SENTINEL, min_length=1)
    target_group_ids: tuple[str, ...]
    monitor_preemption: bool = False
    preemption_interval: float = Field(default=DEFAULT_PREEMPTION_INTERVAL, gt=0)
    region: str | None = None
    metadata_url: str = DEFAULT_METADATA_URL
    metadata_timeout: float = Field(default=2.0, gt=0)
    enable_tracing: bool = True

    @field_validator("target_group_ids", mode="before")
    @classmethod
    def _split_target_group_ids(cls, value: Any) -> Any:
        if isinstance(value, str):
            try:
                return parse_target_group_ids(value)
            except ConfigurationError as e:
                raise ValueError(str(e)) from e
        return value

    @field_validator("target_group_ids")
    @classmethod
    def _require_target_group_ids(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("At least one target group id is required")
        if any(not item.strip() for item in value):
            raise ValueError("Target group ids must not be empty")
        return value

    @property
    def resolve_from_metadata(self) -> bool:
        """True when the instance id must be fetched from the metadata service."""
        return self.instance_id == METADATA_SENTINEL

    def to_log_dict(self) -> dict[str, Any]:
        """Configuration values worth logging at startup."""
        return {
            "instance_id": self.instance_id,
            "target_group_ids": ",".join(self.target_group_ids),
            "monitor_preemption": self.monitor_preemption,
        }


def load_config(**values: Any) -> SidecarConfig:
    """
    Build a SidecarConfig from keyword values.

    Args:
        **values: Field values for SidecarConfig

    Returns:
        Validated configuration

    Raises:
        ConfigurationError: If any value is invalid
    """
    try:
        return SidecarConfig(**values)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e


@dataclass(frozen=True)
class InstanceContext:
    """
    Resolved identity and target groups, shared read-only by all components.

    Attributes:
        instance_id: Resolved instance identifier
        target_group_ids: Target groups in registration order
    """

    instance_id: str
    target_group_ids: tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.instance_id:
            raise ConfigurationError("Instance id must not be empty")
        if not self.target_group_ids:
            raise ConfigurationError("At least one target group id is required")
