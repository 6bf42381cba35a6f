"""Launch parameters for a status page.

A status page is entered with the created server's details encoded as query
parameters (camelCase keys). They are opaque strings: nothing here validates
them, and a missing key simply becomes an empty string.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping
from urllib.parse import parse_qsl, urlencode, urlsplit

# Attribute name -> launch query key.
QUERY_KEYS: Mapping[str, str] = {
    'instance_id': 'instanceId',
    'public_ip': 'publicIp',
    'server_address': 'serverAddress',
    'server_name': 'serverName',
    'minecraft_version': 'minecraftVersion',
    'server_type': 'serverType',
}


@dataclass(frozen=True, slots=True)
class ServerReference:
    """Identity and connection details of the server tracked by a page."""

    instance_id: str = ''
    public_ip: str = ''
    server_address: str = ''
    server_name: str = ''
    minecraft_version: str = ''
    server_type: str = ''

    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> ServerReference:
        values = {}
        for attr, key in QUERY_KEYS.items():
            raw = params.get(key)
            values[attr] = '' if raw is None else str(raw)
        return cls(**values)

    @classmethod
    def from_launch_url(cls, url: str) -> ServerReference:
        """Parse a full status URL or bare query string."""
        query = urlsplit(url).query if '?' in url else url.lstrip('?')
        return cls.from_query_params(dict(parse_qsl(query)))

    @classmethod
    def from_creation_response(cls, payload: Mapping[str, Any]) -> ServerReference:
        """Build a reference from the server-creation API response body."""
        # The creation API uses the attribute names as snake_case keys.
        return cls(**{attr: str(payload.get(attr) or '') for attr in QUERY_KEYS})

    def to_query_params(self) -> dict[str, str]:
        return {QUERY_KEYS[attr]: value for attr, value in asdict(self).items()}

    def to_launch_path(self, path: str = '/server-status') -> str:
        return f'{path}?{urlencode(self.to_query_params())}'
