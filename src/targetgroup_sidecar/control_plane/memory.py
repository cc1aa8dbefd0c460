"""In-memory control-plane client.

Keeps target group membership in process memory and records every call in
order. Failures can be scripted per target group.

Suitable for tests and dry runs. For real load balancers, use
ElbV2ControlPlane instead.
"""

import inspect
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable, Iterable

from targetgroup_sidecar.control_plane.interface import ControlPlaneClient
from targetgroup_sidecar.exceptions import ApiError, TargetGroupNotFoundError
from targetgroup_sidecar.observability import (
    ATTR_INSTANCE_ID,
    ATTR_TARGET_GROUP_ID,
    Tracer,
    create_tracer,
)

logger = logging.getLogger(__name__)

# Hook invoked on each call with (operation, instance_id, target_group_id)
CallHook = Callable[[str, str, str], Awaitable[None] | None]


class InMemoryControlPlane(ControlPlaneClient):
    """
    In-memory control plane for target group membership.

    Features:
    - Ordered call log of every register/deregister attempt
    - Optional set of known target groups (unknown ones raise TargetGroupNotFoundError)
    - Scripted failures per operation and target group
    - Optional hook invoked during each call

    Example:
        >>> control_plane = InMemoryControlPlane(target_groups=["tg-1", "tg-2"])
        >>> control_plane.fail_register("tg-2", TooManyTargetsError("full"))
        >>> await control_plane.register("i-abc", "tg-1")
        >>> control_plane.members("tg-1")
        {'i-abc'}
    """

    def __init__(
        self,
        target_groups: Iterable[str] | None = None,
        *,
        on_call: CallHook | None = None,
        tracer: Tracer | None = None,
        enable_tracing: bool = False,
    ) -> None:
        self._known: set[str] | None = set(target_groups) if target_groups is not None else None
        self._members: dict[str, set[str]] = defaultdict(set)
        self._failures: dict[tuple[str, str], ApiError] = {}
        self._calls: list[tuple[str, str, str]] = []
        self._on_call = on_call

        self._tracer = tracer or create_tracer(__name__, enable_tracing)

    def fail_register(self, target_group_id: str, error: ApiError) -> None:
        """Make every register call for the target group raise the error."""
        self._failures[("register", target_group_id)] = error

    def fail_deregister(self, target_group_id: str, error: ApiError) -> None:
        """Make every deregister call for the target group raise the error."""
        self._failures[("deregister", target_group_id)] = error

    async def register(self, instance_id: str, target_group_id: str) -> None:
        with self._tracer.span(
            "targetgroup_sidecar.control_plane.register",
            {ATTR_INSTANCE_ID: instance_id, ATTR_TARGET_GROUP_ID: target_group_id},
        ):
            await self._record("register", instance_id, target_group_id)
            self._members[target_group_id].add(instance_id)

    async def deregister(self, instance_id: str, target_group_id: str) -> None:
        with self._tracer.span(
            "targetgroup_sidecar.control_plane.deregister",
            {ATTR_INSTANCE_ID: instance_id, ATTR_TARGET_GROUP_ID: target_group_id},
        ):
            await self._record("deregister", instance_id, target_group_id)
            self._members[target_group_id].discard(instance_id)

    async def _record(self, operation: str, instance_id: str, target_group_id: str) -> None:
        self._calls.append((operation, instance_id, target_group_id))

        if self._on_call is not None:
            result = self._on_call(operation, instance_id, target_group_id)
            if inspect.isawaitable(result):
                await result

        error = self._failures.get((operation, target_group_id))
        if error is not None:
            raise error
        if self._known is not None and target_group_id not in self._known:
            raise TargetGroupNotFoundError(
                "One or more target groups not found",
                target_group_id=target_group_id,
            )

    @property
    def calls(self) -> list[tuple[str, str, str]]:
        """All calls in order as (operation, instance_id, target_group_id)."""
        return list(self._calls)

    @property
    def register_calls(self) -> list[tuple[str, str]]:
        """Register calls in order as (instance_id, target_group_id)."""
        return [(i, tg) for op, i, tg in self._calls if op == "register"]

    @property
    def deregister_calls(self) -> list[tuple[str, str]]:
        """Deregister calls in order as (instance_id, target_group_id)."""
        return [(i, tg) for op, i, tg in self._calls if op == "deregister"]

    def members(self, target_group_id: str) -> set[str]:
        """Instances currently registered in the target group."""
        return set(self._members.get(target_group_id, set()))

    def clear(self) -> None:
        """Forget all calls, membership and scripted failures."""
        self._calls.clear()
        self._members.clear()
        self._failures.clear()
