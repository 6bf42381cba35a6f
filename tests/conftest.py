"""Pytest configuration for server-status tests."""
import sys
from pathlib import Path

# Add src/ to path for src-layout imports
_PROJECT_ROOT = Path(__file__).parent.parent
_SRC = _PROJECT_ROOT / 'src'
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

import pytest

from server_status.inmemory import InMemoryInstanceService
from server_status.launch import ServerReference
from server_status.settings import StatusPageSettings


@pytest.fixture
def reference():
    """Launch parameters of a freshly created server."""
    return ServerReference(
        instance_id='i-0abc123',
        public_ip='3.91.10.20',
        server_address='3.91.10.20:25565',
        server_name='minecraft-1739452800',
        minecraft_version='1.20.4',
        server_type='VANILLA',
    )


@pytest.fixture
def instance_service(reference):
    return InMemoryInstanceService({reference.instance_id: 'pending'})


@pytest.fixture
def settings():
    """Settings with the provisioning wait already over and slow timers."""
    return StatusPageSettings(
        provisioning_seconds=0,
        tick_seconds=60.0,
        poll_interval_seconds=60.0,
    )
