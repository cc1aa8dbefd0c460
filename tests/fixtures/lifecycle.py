"""Helpers for driving the lifecycle coordinator in tests."""

import asyncio

from targetgroup_sidecar.coordinator import LifecycleCoordinator
from targetgroup_sidecar.types import MembershipState


async def wait_for_state(
    coordinator: LifecycleCoordinator,
    state: MembershipState,
    timeout: float = 2.0,
) -> None:
    """Yield to the event loop until the coordinator reaches the state."""

    async def _poll() -> None:
        while coordinator.state is not state:
            await asyncio.sleep(0)

    await asyncio.wait_for(_poll(), timeout=timeout)


class TriggerOnCall:
    """
    Control-plane hook that fires the coordinator's trigger during a call.

    Used to simulate a signal arriving while a register call is in flight.
    """

    def __init__(
        self,
        coordinator: LifecycleCoordinator | None,
        operation: str,
        target_group_id: str,
    ) -> None:
        self.coordinator = coordinator
        self.operation = operation
        self.target_group_id = target_group_id
        self.fired = False

    def __call__(self, operation: str, instance_id: str, target_group_id: str) -> None:
        if self.coordinator is None:
            return
        if operation == self.operation and target_group_id == self.target_group_id:
            self.fired = self.coordinator.request_termination() or self.fired


class RaiseOnCall:
    """Control-plane hook that raises an arbitrary exception during a call."""

    def __init__(self, operation: str, target_group_id: str, error: Exception) -> None:
        self.operation = operation
        self.target_group_id = target_group_id
        self.error = error

    def __call__(self, operation: str, instance_id: str, target_group_id: str) -> None:
        if operation == self.operation and target_group_id == self.target_group_id:
            raise self.error
