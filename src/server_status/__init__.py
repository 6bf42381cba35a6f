"""Provisioning status pages for created server instances."""

from .main import create_app
from .settings import StatusPageSettings

__all__ = ["create_app", "StatusPageSettings"]
