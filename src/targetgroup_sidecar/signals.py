"""
OS signal listener.

Maps SIGTERM and SIGINT to the termination trigger. Handlers stay installed
until stop() so that a second signal during teardown is absorbed instead of
killing the process half way through deregistration.
"""

import asyncio
import logging
import signal

from targetgroup_sidecar.trigger import TerminationTrigger
from targetgroup_sidecar.types import TerminationCause

logger = logging.getLogger(__name__)

_CAUSES = {
    signal.SIGTERM: TerminationCause.SIGNAL_SIGTERM,
    signal.SIGINT: TerminationCause.SIGNAL_SIGINT,
}


class SignalListener:
    """
    Fires the termination trigger when SIGTERM or SIGINT is delivered.

    De-duplication is left to the trigger: every signal is forwarded.

    Example:
        >>> listener = SignalListener()
        >>> listener.start(trigger)  # inside a running event loop
        >>> ...
        >>> await listener.stop()
    """

    signals: tuple[signal.Signals, ...] = (signal.SIGTERM, signal.SIGINT)

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._trigger: TerminationTrigger | None = None
        self._registered: list[signal.Signals] = []
        self.received: list[signal.Signals] = []

    def start(self, trigger: TerminationTrigger) -> None:
        """
        Register the signal handlers on the event loop.

        Args:
            trigger: Trigger to fire on signal delivery

        Note:
            On Windows, add_signal_handler is not implemented; a warning is
            logged and the process keeps the default signal behavior.
        """
        if self._registered:
            logger.warning("Signal handlers already registered")
            return

        self._trigger = trigger
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop

        for sig in self.signals:
            try:
                loop.add_signal_handler(sig, self._handle_signal, sig)
                self._registered.append(sig)
                logger.debug("Registered signal handler", extra={"signal": sig.name})
            except NotImplementedError:
                logger.warning(
                    "Signal handling not supported on this platform",
                    extra={"signal": sig.name},
                )

        logger.info("Termination signal handlers registered")

    def _handle_signal(self, sig: signal.Signals) -> None:
        self.received.append(sig)
        logger.info("Caught signal", extra={"signal": sig.name})
        if self._trigger is not None:
            self._trigger.fire(_CAUSES.get(sig, TerminationCause.SIGNAL_SIGTERM))

    async def stop(self) -> None:
        """Remove the signal handlers installed by start()."""
        if not self._registered or self._loop is None:
            return

        for sig in self._registered:
            try:
                self._loop.remove_signal_handler(sig)
            except (NotImplementedError, ValueError, RuntimeError):
                logger.debug("Could not remove signal handler", extra={"signal": sig.name})

        self._registered.clear()
        logger.debug("Termination signal handlers removed")
