"""Control-plane client interface definitions.

The control plane is the load balancer API that adds an instance to, or
removes it from, a target group. Implementations classify provider errors
into ApiError subclasses and never retry; retry and abort policy belongs to
the lifecycle coordinator.
"""

from abc import ABC, abstractmethod


class ControlPlaneClient(ABC):
    """
    Abstract client for target group membership calls.

    Both operations are idempotent at the provider level: registering an
    already registered target, or deregistering an absent one, is not an
    error the client has to special-case.

    Example:
        >>> client = InMemoryControlPlane()
        >>> await client.register("i-abc", "tg-1")
        >>> await client.deregister("i-abc", "tg-1")
    """

    @abstractmethod
    async def register(self, instance_id: str, target_group_id: str) -> None:
        """
        Register the instance as a target of the target group.

        Args:
            instance_id: Instance to register
            target_group_id: Target group identifier or ARN

        Raises:
            ApiError: If the provider rejects or fails the call
        """
        pass

    @abstractmethod
    async def deregister(self, instance_id: str, target_group_id: str) -> None:
        """
        Deregister the instance from the target group.

        Args:
            instance_id: Instance to deregister
            target_group_id: Target group identifier or ARN

        Raises:
            ApiError: If the provider rejects or fails the call
        """
        pass
