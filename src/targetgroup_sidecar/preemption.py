"""
Pre-emption (spot termination) notice monitor.

Polls the metadata source at a fixed interval. The first poll that reports
a notice fires the termination trigger once, after which the monitor stops
for good. Transport errors only skip the current tick.

Monitoring is best effort: if the metadata service is unavailable when the
monitor starts, it returns without polling.

Example:
    >>> monitor = PreemptionMonitor(Ec2MetadataSource(), interval=5.0)
    >>> monitor.start(trigger)
    >>> ...
    >>> await monitor.stop()
"""

import asyncio
import logging

from targetgroup_sidecar.config import DEFAULT_PREEMPTION_INTERVAL
from targetgroup_sidecar.exceptions import TransportError
from targetgroup_sidecar.metadata.interface import MetadataSource
from targetgroup_sidecar.trigger import TerminationTrigger
from targetgroup_sidecar.types import TerminationCause

logger = logging.getLogger(__name__)


class PreemptionMonitor:
    """
    Background poller for the pre-emption notice.

    Between ticks the monitor waits on the trigger itself, so once teardown
    starts through another path it returns without issuing another request.

    Attributes:
        interval: Seconds between polls
        poll_count: Number of notice requests issued so far
        notice_received: True once a notice has been observed
    """

    def __init__(
        self,
        metadata: MetadataSource,
        interval: float = DEFAULT_PREEMPTION_INTERVAL,
    ) -> None:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")

        self._metadata = metadata
        self.interval = interval
        self.poll_count = 0
        self.notice_received = False
        self._task: asyncio.Task[bool] | None = None

    def start(self, trigger: TerminationTrigger) -> None:
        """Start polling in a background task."""
        if self._task is not None:
            logger.warning("Pre-emption monitor already started")
            return
        self._task = asyncio.create_task(self.run(trigger), name="preemption-monitor")

    async def run(self, trigger: TerminationTrigger) -> bool:
        """
        Poll until a notice arrives or the trigger fires from elsewhere.

        Args:
            trigger: Trigger to fire on notice, and to watch for cancellation

        Returns:
            True if this monitor fired the trigger
        """
        logger.info("Monitoring spot termination notice", extra={"interval": self.interval})

        if not await self._metadata.is_available():
            logger.warning("Instance metadata service is not available")
            return False

        while not trigger.is_set():
            try:
                await asyncio.wait_for(trigger.wait(), timeout=self.interval)
            except TimeoutError:
                pass

            if trigger.is_set():
                break

            self.poll_count += 1
            try:
                present = await self._metadata.termination_notice_present()
            except TransportError as e:
                logger.error(
                    "Error checking termination notice",
                    extra={"error": str(e), "poll": self.poll_count},
                )
                continue

            if present:
                logger.info("Spot instance termination notice received")
                self.notice_received = True
                trigger.fire(TerminationCause.PREEMPTION_NOTICE)
                return True

            logger.debug("No termination notice, continuing monitoring")

        logger.info("Stopping monitoring of spot termination notice")
        return False

    async def stop(self) -> None:
        """Cancel the background task if it is still running and wait for it."""
        task = self._task
        if task is None:
            return
        self._task = None

        if not task.done():
            task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception:
            logger.error("Pre-emption monitor failed", exc_info=True)

    @property
    def running(self) -> bool:
        """True while the background task is alive."""
        return self._task is not None and not self._task.done()
