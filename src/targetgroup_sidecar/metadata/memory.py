"""In-memory metadata source.

Answers metadata queries from scripted values. Used by tests and by dry
runs outside of a cloud instance.
"""

from collections.abc import Iterable

from targetgroup_sidecar.exceptions import IdentityResolutionError
from targetgroup_sidecar.metadata.interface import MetadataSource


class InMemoryMetadataSource(MetadataSource):
    """
    Scripted metadata source.

    Each termination notice poll consumes the next scripted answer. An
    answer is either a bool or an exception to raise (e.g. TransportError).
    Once the script is exhausted the last answer repeats; an empty script
    always answers False.

    Args:
        instance_id: Identifier returned by get_instance_id (None = unresolvable)
        available: Value returned by is_available
        notices: Scripted answers for termination_notice_present

    Example:
        >>> source = InMemoryMetadataSource("i-abc", notices=[False, True])
        >>> await source.termination_notice_present()
        False
        >>> await source.termination_notice_present()
        True
        >>> source.poll_count
        2
    """

    def __init__(
        self,
        instance_id: str | None = None,
        *,
        available: bool = True,
        notices: Iterable[bool | Exception] = (),
    ) -> None:
        self.instance_id = instance_id
        self.available = available
        self._notices: list[bool | Exception] = list(notices)
        self.poll_count = 0
        self.closed = False

    async def is_available(self) -> bool:
        return self.available

    async def get_instance_id(self) -> str:
        if not self.available:
            raise IdentityResolutionError("metadata service is not available")
        if not self.instance_id:
            raise IdentityResolutionError("no instance id configured")
        return self.instance_id

    async def termination_notice_present(self) -> bool:
        index = self.poll_count
        self.poll_count += 1
        if not self._notices:
            return False
        answer = self._notices[min(index, len(self._notices) - 1)]
        if isinstance(answer, Exception):
            raise answer
        return answer

    async def close(self) -> None:
        self.closed = True
