"""Tests for launch parameter parsing."""

from __future__ import annotations

from server_status.launch import ServerReference


def test_from_query_params_maps_camel_case_keys():
    reference = ServerReference.from_query_params(
        {
            'instanceId': 'i-0abc123',
            'publicIp': '3.91.10.20',
            'serverAddress': '3.91.10.20:25565',
            'serverName': 'minecraft-1',
            'minecraftVersion': '1.20.4',
            'serverType': 'PAPER',
        }
    )
    assert reference == ServerReference(
        instance_id='i-0abc123',
        public_ip='3.91.10.20',
        server_address='3.91.10.20:25565',
        server_name='minecraft-1',
        minecraft_version='1.20.4',
        server_type='PAPER',
    )


def test_missing_params_become_empty():
    reference = ServerReference.from_query_params({'instanceId': 'i-1', 'publicIp': None})
    assert reference.instance_id == 'i-1'
    assert reference.public_ip == ''
    assert reference.server_name == ''


def test_from_launch_url_accepts_url_or_query():
    url = '/server-status?instanceId=i-1&serverName=my%20server'
    assert ServerReference.from_launch_url(url).server_name == 'my server'
    assert ServerReference.from_launch_url('?instanceId=i-2').instance_id == 'i-2'
    assert ServerReference.from_launch_url('instanceId=i-3').instance_id == 'i-3'


def test_from_creation_response():
    reference = ServerReference.from_creation_response(
        {
            'instance_id': 'i-9',
            'public_ip': None,
            'server_name': 'minecraft-9',
            'extra': 'ignored',
        }
    )
    assert reference.instance_id == 'i-9'
    assert reference.public_ip == ''
    assert reference.server_name == 'minecraft-9'


def test_launch_path(reference):
    path = reference.to_launch_path()
    assert path.startswith('/server-status?instanceId=i-0abc123&publicIp=3.91.10.20')
    assert ServerReference.from_launch_url(path) == reference
