"""
Client Registry for the multi-tenant asset server.

The registry is built once at startup from configuration and is read-only
for the lifetime of the process. It is handed to the app factory explicitly
instead of living in a module-level global.

CONFIGURATION:
    CLIENTS=acme,globex
    ACME_ID=abc
    ACME_SECRET=xyz
    GLOBEX_ID=...
    GLOBEX_SECRET=...
"""

import hmac
import logging
import os
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, Mapping, Optional

from .config import Settings
from .exceptions import ConfigurationError
from .models import Client

logger = logging.getLogger(__name__)


def _as_bytes(value: str) -> bytes:
    # os.environ keeps undecodable bytes as lone surrogates
    return value.encode("utf-8", errors="surrogateescape")


class ClientRegistry:
    """
    Immutable mapping of client id -> Client.

    Lookups by id are used for authentication; lookups by name are used
    to resolve the public static-file path. Names are expected to be unique
    but this is not enforced, so the first match wins.
    """

    def __init__(self, clients: Iterable[Client]):
        by_id: Dict[str, Client] = {}
        for client in clients:
            if client.id in by_id:
                raise ConfigurationError(
                    f"Duplicate client id for clients {by_id[client.id].name} and {client.name}"
                )
            by_id[client.id] = client
        self._clients: Mapping[str, Client] = MappingProxyType(by_id)

    def __len__(self) -> int:
        return len(self._clients)

    def __iter__(self) -> Iterator[Client]:
        return iter(self._clients.values())

    def __contains__(self, client_id: object) -> bool:
        return client_id in self._clients

    def __repr__(self) -> str:
        return f"ClientRegistry(names={[c.name for c in self]!r})"

    def get(self, client_id: str) -> Optional[Client]:
        return self._clients.get(client_id)

    def find_by_name(self, name: str) -> Optional[Client]:
        """Return the first client whose name matches, or None."""
        for client in self._clients.values():
            if client.name == name:
                return client
        return None

    def verify(self, client_id: str, secret: str) -> Optional[Client]:
        """
        Resolve a client from an id/secret pair.

        Args:
            client_id: Value of the x-client-id header
            secret: Value of the x-client-secret header

        Returns:
            The matching Client, or None if the id is unknown or the
            secret differs
        """
        client = self._clients.get(client_id)
        if client is None:
            return None
        if not hmac.compare_digest(_as_bytes(client.secret), _as_bytes(secret)):
            return None
        return client


def load_clients(settings: Settings, environ: Optional[Mapping[str, str]] = None) -> ClientRegistry:
    """
    Build the registry from the configured client names.

    Each name needs both {NAME}_ID and {NAME}_SECRET (name uppercased).
    A missing value aborts startup; the server never runs with a partially
    loaded registry.

    Args:
        settings: Loaded settings (client names and assets root)
        environ: Environment holding the credential pairs, os.environ by default

    Returns:
        ClientRegistry keyed by client id

    Raises:
        ConfigurationError: If a client lacks an id or a secret, or two
            clients share an id
    """
    if environ is None:
        environ = os.environ

    clients = []
    for name in settings.clients:
        prefix = name.upper()
        client_id = environ.get(f"{prefix}_ID")
        secret = environ.get(f"{prefix}_SECRET")

        if not client_id or not secret:
            raise ConfigurationError(f"Missing credentials for client {name}")

        clients.append(Client(
            id=client_id,
            name=name,
            secret=secret,
            asset_dir=settings.assets_root / name,
        ))

    registry = ClientRegistry(clients)
    logger.info(f"Loaded {len(registry)} clients from configuration")
    return registry
