"""Instance API and token providers for status pages."""

from .instances_client import InstancesClient
from .token_provider import (
    CallableTokenProvider,
    EnvTokenProvider,
    StaticTokenProvider,
)

__all__ = [
    "CallableTokenProvider",
    "EnvTokenProvider",
    "InstancesClient",
    "StaticTokenProvider",
]
