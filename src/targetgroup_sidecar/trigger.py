"""
First-trigger-wins termination primitive.

Several producers (OS signals, the pre-emption monitor, the coordinator
itself on registration failure) may ask for teardown. Only the first request
has effect: it records its cause and releases every waiter. Later requests
are logged and ignored, and never block the producer.

This module provides:
- TerminationTrigger: The one-shot trigger
- TriggerSource: Protocol for components that fire the trigger

Example:
    >>> trigger = TerminationTrigger()
    >>> trigger.fire(TerminationCause.SIGNAL_SIGTERM)
    True
    >>> trigger.fire(TerminationCause.PREEMPTION_NOTICE)
    False
    >>> await trigger.wait()
    <TerminationCause.SIGNAL_SIGTERM: 'signal_sigterm'>
"""

import asyncio
import logging
from typing import Protocol, runtime_checkable

from targetgroup_sidecar.types import TerminationCause

logger = logging.getLogger(__name__)


class TerminationTrigger:
    """
    One-shot termination trigger shared by all producers and the coordinator.

    All methods must be called from the event loop thread. Signal handlers
    installed with loop.add_signal_handler satisfy this.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._cause: TerminationCause | None = None
        self._ignored = 0

    def fire(self, cause: TerminationCause) -> bool:
        """
        Request teardown.

        Args:
            cause: Origin of the request

        Returns:
            True if this call fired the trigger, False if it had already fired
        """
        if self._cause is not None:
            self._ignored += 1
            logger.info(
                "Termination already triggered, ignoring",
                extra={"cause": cause.value, "first_cause": self._cause.value},
            )
            return False

        self._cause = cause
        self._event.set()
        logger.info("Termination triggered", extra={"cause": cause.value})
        return True

    def is_set(self) -> bool:
        """Non-blocking check whether the trigger has fired."""
        return self._cause is not None

    async def wait(self) -> TerminationCause:
        """
        Wait until the trigger fires.

        Returns:
            Cause recorded by the first fire() call
        """
        await self._event.wait()
        assert self._cause is not None
        return self._cause

    @property
    def cause(self) -> TerminationCause | None:
        """Cause of the first fire() call, None if not fired yet."""
        return self._cause

    @property
    def ignored_count(self) -> int:
        """Number of fire() calls ignored because the trigger had already fired."""
        return self._ignored


@runtime_checkable
class TriggerSource(Protocol):
    """
    Protocol for components that fire the termination trigger.

    start() is called by the coordinator before registration begins and
    stop() once teardown is complete.
    """

    def start(self, trigger: TerminationTrigger) -> None: ...

    async def stop(self) -> None: ...
