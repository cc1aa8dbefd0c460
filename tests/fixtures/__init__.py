"""
Shared test helpers for the targetgroup_sidecar tests.

Usage:
    from tests.fixtures import RaiseOnCall, TriggerOnCall, wait_for_state
"""

from tests.fixtures.lifecycle import RaiseOnCall, TriggerOnCall, wait_for_state

__all__ = [
    "RaiseOnCall",
    "TriggerOnCall",
    "wait_for_state",
]
