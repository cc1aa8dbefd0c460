"""
Lifecycle coordinator for target group membership.

Owns the membership state machine and is the only component that talks to
the control plane. Trigger sources (signals, pre-emption monitor) only fire
the shared TerminationTrigger; the coordinator observes it and performs the
single teardown.

This module provides:
- LifecycleResult: Terminal outcome returned to the caller
- LifecycleCoordinator: The state machine

The sequence:
1. UNREGISTERED -> REGISTERING: start trigger sources
2. Register each target group in order, checking the trigger before each call
3. REGISTERING -> REGISTERED: wait for the first termination trigger
4. -> DEREGISTERING: deregister each target group in order, skipping failures
5. -> DEREGISTERED: stop trigger sources and return the result

A failed register call aborts registration, fires the trigger with
REGISTRATION_FAILURE and deregisters the whole target group set, including
groups that were never registered. The provider treats those calls as
no-ops, and the caller exits with a non-zero status.

Example:
    >>> coordinator = LifecycleCoordinator(
    ...     InstanceContext("i-abc", ("tg-1", "tg-2")),
    ...     ElbV2ControlPlane(region="eu-west-1"),
    ...     sources=[SignalListener()],
    ... )
    >>> result = await coordinator.run()
    >>> sys.exit(result.exit_code)
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from targetgroup_sidecar.config import InstanceContext
from targetgroup_sidecar.control_plane.interface import ControlPlaneClient
from targetgroup_sidecar.exceptions import ApiError, InvalidTransitionError
from targetgroup_sidecar.observability import (
    ATTR_DEREGISTER_FAILURES,
    ATTR_INSTANCE_ID,
    ATTR_MEMBERSHIP_STATE,
    ATTR_TARGET_GROUP_COUNT,
    ATTR_TERMINATION_CAUSE,
    Tracer,
    create_tracer,
)
from targetgroup_sidecar.trigger import TerminationTrigger, TriggerSource
from targetgroup_sidecar.types import ExitCode, MembershipState, TerminationCause

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifecycleResult:
    """
    Terminal outcome of a coordinator run.

    Attributes:
        state: Final membership state (DEREGISTERED after a completed run)
        exit_code: Status the process should exit with
        cause: Cause of the termination trigger that started teardown
        registered: Target groups successfully registered, in order
        deregistered: Target groups successfully deregistered, in order
        failed_deregistrations: Target groups whose deregistration failed
        error: Registration error message, None if registration did not fail
        duration_seconds: Wall time of the run in seconds
    """

    state: MembershipState
    exit_code: ExitCode
    cause: TerminationCause | None
    registered: tuple[str, ...]
    deregistered: tuple[str, ...]
    failed_deregistrations: tuple[str, ...] = ()
    error: str | None = None
    duration_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Returns:
            Dictionary representation of result
        """
        return {
            "state": self.state.value,
            "exit_code": int(self.exit_code),
            "cause": self.cause.value if self.cause else None,
            "registered": list(self.registered),
            "deregistered": list(self.deregistered),
            "failed_deregistrations": list(self.failed_deregistrations),
            "error": self.error,
            "duration_seconds": self.duration_seconds,
        }


class LifecycleCoordinator:
    """
    Drives one instance through register -> wait -> deregister.

    Teardown runs at most once per coordinator, no matter how many
    producers fire the trigger or how often teardown is entered.

    Attributes:
        context: Resolved instance id and target groups
        control_plane: Client used for register/deregister calls
    """

    def __init__(
        self,
        context: InstanceContext,
        control_plane: ControlPlaneClient,
        *,
        trigger: TerminationTrigger | None = None,
        sources: Sequence[TriggerSource] = (),
        tracer: Tracer | None = None,
        enable_tracing: bool = True,
    ) -> None:
        """
        Initialize the coordinator.

        Args:
            context: Resolved instance id and target groups
            control_plane: Client used for register/deregister calls
            trigger: Shared termination trigger. Created when omitted.
            sources: Trigger sources started before registration and
                stopped after teardown
            tracer: Optional custom Tracer instance. If not provided, one is
                   created based on enable_tracing setting.
            enable_tracing: Whether to enable OpenTelemetry tracing.
                          Ignored if tracer is explicitly provided.
        """
        self._tracer = tracer or create_tracer(__name__, enable_tracing)
        self._enable_tracing = self._tracer.enabled

        self.context = context
        self.control_plane = control_plane
        self._trigger = trigger or TerminationTrigger()
        self._sources = list(sources)

        self._state = MembershipState.UNREGISTERED
        self._registered: list[str] = []
        self._deregistered: list[str] = []
        self._failed_deregistrations: list[str] = []
        self._registration_error: Exception | None = None

        self._teardown_lock = asyncio.Lock()
        self._teardown_started = False
        self._teardown_count = 0

    @property
    def state(self) -> MembershipState:
        """Current membership state."""
        return self._state

    @property
    def trigger(self) -> TerminationTrigger:
        """Termination trigger observed by this coordinator."""
        return self._trigger

    @property
    def teardown_count(self) -> int:
        """Number of teardown sequences executed (0 or 1)."""
        return self._teardown_count

    def request_termination(self, cause: TerminationCause = TerminationCause.PROGRAMMATIC) -> bool:
        """
        Ask the coordinator to tear down, as a signal would.

        Args:
            cause: The reason for termination. Defaults to PROGRAMMATIC.

        Returns:
            True if this request fired the trigger
        """
        return self._trigger.fire(cause)

    def _transition(self, target: MembershipState) -> None:
        if target.order <= self._state.order:
            raise InvalidTransitionError(self._state, target)
        logger.debug(
            "Membership state transition",
            extra={"from_state": self._state.value, "to_state": target.value},
        )
        self._state = target

    async def run(self) -> LifecycleResult:
        """
        Run the full lifecycle and return its outcome.

        Returns:
            LifecycleResult in state DEREGISTERED

        Raises:
            InvalidTransitionError: If the coordinator has already run
        """
        started_at = time.perf_counter()

        with self._tracer.span(
            "targetgroup_sidecar.coordinator.run",
            {
                ATTR_INSTANCE_ID: self.context.instance_id,
                ATTR_TARGET_GROUP_COUNT: len(self.context.target_group_ids),
            },
        ) as span:
            self._transition(MembershipState.REGISTERING)
            self._start_sources()

            try:
                if await self._register_all():
                    self._transition(MembershipState.REGISTERED)
                    logger.info(
                        "Registered instance in all target groups",
                        extra={"target_group_count": len(self._registered)},
                    )
                    await self._trigger.wait()
            finally:
                # Runs on cancellation too
                try:
                    await self._teardown()
                finally:
                    await self._stop_sources()

            result = self._create_result(time.perf_counter() - started_at)

            if span:
                span.set_attribute(ATTR_MEMBERSHIP_STATE, result.state.value)
                span.set_attribute(ATTR_DEREGISTER_FAILURES, len(result.failed_deregistrations))
                if result.cause:
                    span.set_attribute(ATTR_TERMINATION_CAUSE, result.cause.value)

        logger.info(
            "Lifecycle finished",
            extra={
                "exit_code": int(result.exit_code),
                "cause": result.cause.value if result.cause else None,
                "failed_deregistrations": list(result.failed_deregistrations),
                "duration_seconds": round(result.duration_seconds, 3),
            },
        )
        return result

    async def _register_all(self) -> bool:
        """
        Register every target group in order.

        Returns:
            True if every group was registered, False if registration was
            aborted by a trigger or by a failed call
        """
        instance_id = self.context.instance_id

        with self._tracer.span(
            "targetgroup_sidecar.coordinator.register_all",
            {
                ATTR_INSTANCE_ID: instance_id,
                ATTR_TARGET_GROUP_COUNT: len(self.context.target_group_ids),
            },
        ):
            for target_group_id in self.context.target_group_ids:
                # Best effort: a trigger arriving during the call is seen on the next pass
                if self._trigger.is_set():
                    logger.warning(
                        "Termination triggered before registration completed, aborting",
                        extra={
                            "cause": self._trigger.cause.value if self._trigger.cause else None,
                            "next_target_group_id": target_group_id,
                            "registered": list(self._registered),
                        },
                    )
                    return False

                logger.info(
                    "Setting up instance in target group",
                    extra={"instance_id": instance_id, "target_group_id": target_group_id},
                )
                try:
                    await self.control_plane.register(instance_id, target_group_id)
                except ApiError as e:
                    self._registration_error = e
                    logger.error(
                        "Failed to register instance in target group",
                        extra={
                            "instance_id": instance_id,
                            "target_group_id": target_group_id,
                            "error_code": e.code.value,
                            "error": e.message,
                        },
                    )
                    self._trigger.fire(TerminationCause.REGISTRATION_FAILURE)
                    return False
                except Exception as e:
                    self._registration_error = e
                    logger.exception(
                        "Unexpected error registering instance in target group",
                        extra={"instance_id": instance_id, "target_group_id": target_group_id},
                    )
                    self._trigger.fire(TerminationCause.REGISTRATION_FAILURE)
                    return False

                self._registered.append(target_group_id)
                logger.info(
                    "Registered instance",
                    extra={"instance_id": instance_id, "target_group_id": target_group_id},
                )

        return True

    async def _teardown(self) -> bool:
        """
        Deregister every target group in order, once.

        Per-group failures of any kind are logged and skipped so one broken
        target group never prevents deregistering the others.

        Returns:
            True if this call executed the teardown, False if it had
            already run
        """
        async with self._teardown_lock:
            if self._teardown_started:
                logger.debug("Teardown already executed, ignoring")
                return False
            self._teardown_started = True
            self._teardown_count += 1

            if not self._trigger.is_set():
                self._trigger.fire(TerminationCause.PROGRAMMATIC)

            self._transition(MembershipState.DEREGISTERING)
            instance_id = self.context.instance_id

            with self._tracer.span(
                "targetgroup_sidecar.coordinator.teardown",
                {
                    ATTR_INSTANCE_ID: instance_id,
                    ATTR_TARGET_GROUP_COUNT: len(self.context.target_group_ids),
                },
            ) as span:
                for target_group_id in self.context.target_group_ids:
                    logger.info(
                        "Removing instance from target group",
                        extra={"instance_id": instance_id, "target_group_id": target_group_id},
                    )
                    try:
                        await self.control_plane.deregister(instance_id, target_group_id)
                    except ApiError as e:
                        self._failed_deregistrations.append(target_group_id)
                        logger.error(
                            "Failed to deregister instance from target group",
                            extra={
                                "instance_id": instance_id,
                                "target_group_id": target_group_id,
                                "error_code": e.code.value,
                                "error": e.message,
                            },
                        )
                        continue
                    except Exception:
                        self._failed_deregistrations.append(target_group_id)
                        logger.exception(
                            "Unexpected error deregistering instance from target group",
                            extra={"instance_id": instance_id, "target_group_id": target_group_id},
                        )
                        continue

                    self._deregistered.append(target_group_id)
                    logger.info(
                        "Successfully deregistered instance",
                        extra={"instance_id": instance_id, "target_group_id": target_group_id},
                    )

                if span:
                    span.set_attribute(
                        ATTR_DEREGISTER_FAILURES, len(self._failed_deregistrations)
                    )

            self._transition(MembershipState.DEREGISTERED)
            logger.info(
                "Deregistered instance from all target groups",
                extra={"failed": list(self._failed_deregistrations)},
            )
            return True

    def _start_sources(self) -> None:
        for source in self._sources:
            source.start(self._trigger)

    async def _stop_sources(self) -> None:
        for source in reversed(self._sources):
            await source.stop()

    def _create_result(self, duration_seconds: float) -> LifecycleResult:
        failed = self._registration_error is not None
        return LifecycleResult(
            state=self._state,
            exit_code=ExitCode.REGISTRATION_FAILED if failed else ExitCode.SUCCESS,
            cause=self._trigger.cause,
            registered=tuple(self._registered),
            deregistered=tuple(self._deregistered),
            failed_deregistrations=tuple(self._failed_deregistrations),
            error=_describe_error(self._registration_error),
            duration_seconds=duration_seconds,
        )


def _describe_error(error: Exception | None) -> str | None:
    if error is None:
        return None
    if isinstance(error, ApiError):
        return str(error)
    return f"{type(error).__name__}: {error}"
