"""
Control-plane clients for target group membership.

- ControlPlaneClient: abstract interface
- ElbV2ControlPlane: AWS Elastic Load Balancing v2 through boto3
- InMemoryControlPlane: in-process implementation for tests and dry runs
"""

from targetgroup_sidecar.control_plane.elbv2 import ElbV2ControlPlane, classify_client_error
from targetgroup_sidecar.control_plane.interface import ControlPlaneClient
from targetgroup_sidecar.control_plane.memory import InMemoryControlPlane

__all__ = [
    "ControlPlaneClient",
    "ElbV2ControlPlane",
    "InMemoryControlPlane",
    "classify_client_error",
]
