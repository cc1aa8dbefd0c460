"""Instance metadata source interface.

A metadata source answers questions about the instance the sidecar runs on:
its own identifier, and whether the hosting platform has announced an
imminent involuntary shutdown (spot termination / pre-emption notice).
"""

from abc import ABC, abstractmethod


class MetadataSource(ABC):
    """
    Abstract source of instance metadata.

    Example:
        >>> source = Ec2MetadataSource()
        >>> if await source.is_available():
        ...     instance_id = await source.get_instance_id()
        ...     notice = await source.termination_notice_present()
        >>> await source.close()
    """

    @abstractmethod
    async def is_available(self) -> bool:
        """
        Check whether the metadata service can be reached.

        Returns:
            True if the service answered, False otherwise. Never raises.
        """
        pass

    @abstractmethod
    async def get_instance_id(self) -> str:
        """
        Fetch the identifier of the current instance.

        Returns:
            Instance identifier (e.g., "i-0abc123")

        Raises:
            IdentityResolutionError: If the identifier cannot be fetched
        """
        pass

    @abstractmethod
    async def termination_notice_present(self) -> bool:
        """
        Check for a pre-emption notice.

        Returns:
            True if the platform has published a termination notice

        Raises:
            TransportError: If the request could not be completed
        """
        pass

    async def close(self) -> None:
        """Release any connections held by the source."""
        return None
