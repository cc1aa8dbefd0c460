"""
AWS Elastic Load Balancing v2 control-plane client.

Registers and deregisters an EC2 instance in ELBv2 target groups through
boto3. The boto3 client is synchronous, so every call runs in a worker
thread to keep the event loop free for signal delivery.

Example:
    >>> client = ElbV2ControlPlane(region="eu-west-1")
    >>> await client.register("i-0abc123", "arn:aws:elasticloadbalancing:...")
"""

import asyncio
import logging
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoRegionError

from targetgroup_sidecar.control_plane.interface import ControlPlaneClient
from targetgroup_sidecar.exceptions import ApiError, ConfigurationError, api_error_for_code
from targetgroup_sidecar.observability import (
    ATTR_CLOUD_PROVIDER,
    ATTR_ERROR_CODE,
    ATTR_INSTANCE_ID,
    ATTR_TARGET_GROUP_ID,
    Tracer,
    create_tracer,
)
from targetgroup_sidecar.types import ApiErrorCode

logger = logging.getLogger(__name__)

# Provider error codes returned by the ELBv2 API
_CODE_MAP: dict[str, ApiErrorCode] = {
    "TargetGroupNotFound": ApiErrorCode.TARGET_GROUP_NOT_FOUND,
    "TooManyTargets": ApiErrorCode.TOO_MANY_TARGETS,
    "InvalidTarget": ApiErrorCode.INVALID_TARGET,
    "TooManyRegistrationsForTargetId": ApiErrorCode.TOO_MANY_REGISTRATIONS_FOR_TARGET,
}


def classify_client_error(error: ClientError, target_group_id: str | None = None) -> ApiError:
    """
    Translate a botocore ClientError into the matching ApiError.

    Args:
        error: Error raised by the boto3 client
        target_group_id: Target group the call was issued for

    Returns:
        ApiError subclass for known codes, plain ApiError (OTHER) otherwise
    """
    details = error.response.get("Error", {})
    provider_code = details.get("Code", "")
    message = details.get("Message") or str(error)
    code = _CODE_MAP.get(provider_code, ApiErrorCode.OTHER)
    if code is ApiErrorCode.OTHER and provider_code:
        message = f"{provider_code}: {message}"
    return api_error_for_code(code, message, target_group_id=target_group_id)


class ElbV2ControlPlane(ControlPlaneClient):
    """
    ELBv2 implementation of the control-plane client.

    Args:
        client: Pre-built boto3 "elbv2" client. Created from the default
            credential chain when omitted.
        region: AWS region used when creating the client
        tracer: Optional custom Tracer instance
        enable_tracing: Whether to enable OpenTelemetry tracing.
            Ignored if tracer is explicitly provided.

    Raises:
        ConfigurationError: If no region is configured for the client
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        region: str | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        if client is None:
            try:
                client = boto3.client("elbv2", region_name=region)
            except NoRegionError as e:
                raise ConfigurationError(
                    "No AWS region configured; pass --region or set AWS_REGION"
                ) from e
        self._client = client

        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled

    async def register(self, instance_id: str, target_group_id: str) -> None:
        with self._tracer.span(
            "targetgroup_sidecar.control_plane.register",
            {
                ATTR_CLOUD_PROVIDER: "aws",
                ATTR_INSTANCE_ID: instance_id,
                ATTR_TARGET_GROUP_ID: target_group_id,
            },
        ) as span:
            try:
                await asyncio.to_thread(
                    self._call, "register_targets", instance_id, target_group_id
                )
            except ApiError as e:
                if span:
                    span.set_attribute(ATTR_ERROR_CODE, e.code.value)
                raise

    async def deregister(self, instance_id: str, target_group_id: str) -> None:
        with self._tracer.span(
            "targetgroup_sidecar.control_plane.deregister",
            {
                ATTR_CLOUD_PROVIDER: "aws",
                ATTR_INSTANCE_ID: instance_id,
                ATTR_TARGET_GROUP_ID: target_group_id,
            },
        ) as span:
            try:
                await asyncio.to_thread(
                    self._call, "deregister_targets", instance_id, target_group_id
                )
            except ApiError as e:
                if span:
                    span.set_attribute(ATTR_ERROR_CODE, e.code.value)
                raise

    def _call(self, operation: str, instance_id: str, target_group_id: str) -> None:
        """Issue one blocking ELBv2 call, translating botocore failures."""
        method = getattr(self._client, operation)
        logger.debug(
            "Calling ELBv2",
            extra={
                "operation": operation,
                "instance_id": instance_id,
                "target_group_id": target_group_id,
            },
        )
        try:
            method(
                TargetGroupArn=target_group_id,
                Targets=[{"Id": instance_id}],
            )
        except ClientError as e:
            raise classify_client_error(e, target_group_id) from e
        except BotoCoreError as e:
            raise ApiError(str(e), target_group_id=target_group_id) from e
