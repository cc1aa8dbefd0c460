"""
Instance metadata sources.

- MetadataSource: abstract interface
- Ec2MetadataSource: EC2 instance metadata service over aiohttp
- InMemoryMetadataSource: scripted source for tests and dry runs
"""

from targetgroup_sidecar.metadata.ec2 import (
    INSTANCE_ID_PATH,
    SPOT_TERMINATION_PATH,
    Ec2MetadataSource,
)
from targetgroup_sidecar.metadata.interface import MetadataSource
from targetgroup_sidecar.metadata.memory import InMemoryMetadataSource

__all__ = [
    "INSTANCE_ID_PATH",
    "SPOT_TERMINATION_PATH",
    "Ec2MetadataSource",
    "InMemoryMetadataSource",
    "MetadataSource",
]
