# cric_api/identity_client.py
from __future__ import annotations

import logging
from typing import Literal, Optional

import requests

from cric_api import cache
from cric_api.config import (
    IDENTITY_CACHE_TTL_SECONDS,
    IDENTITY_SERVICE_ENABLED,
    IDENTITY_SERVICE_TIMEOUT_SECONDS,
    IDENTITY_SERVICE_URL,
)
from cric_api.store import MemoryStore

logger = logging.getLogger(__name__)

EntityKind = Literal["players", "teams"]


class IdentityServiceError(Exception):
    """Raised when the identity directory call fails or is misconfigured."""
    pass


class LocalDirectory:
    """Existence checks against the engine's own registry tables."""

    def __init__(self, store: MemoryStore):
        self._store = store

    def player_exists(self, player_id: int) -> bool:
        return player_id in self._store.players

    def team_exists(self, team_id: int) -> bool:
        return team_id in self._store.teams


class HttpDirectory:
    """
    Existence checks against the platform's identity service.

    GET {base_url}/{kind}/{id}: 200 -> exists, 404 -> missing, anything else -> IdentityServiceError.
    Only positive answers are cached, so a freshly created player is never reported missing for a TTL.
    """

    def __init__(self, base_url: str, timeout: int = 10, cache_ttl_seconds: int = 300):
        if not base_url.startswith("http"):
            raise IdentityServiceError("IDENTITY_SERVICE_URL must start with http/https")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.cache_ttl_seconds = cache_ttl_seconds

    def _exists(self, kind: EntityKind, entity_id: int) -> bool:
        key = cache.make_key("identity", kind, entity_id)
        if cache.get(key) is not None:
            return True

        url = f"{self.base_url}/{kind}/{entity_id}"
        try:
            resp = requests.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise IdentityServiceError(f"Network error: {e}") from e

        if resp.status_code == 404:
            return False
        if resp.status_code != 200:
            raise IdentityServiceError(f"HTTP {resp.status_code}: {resp.text}")

        cache.set(key, True, ttl_seconds=self.cache_ttl_seconds)
        return True

    def player_exists(self, player_id: int) -> bool:
        return self._exists("players", player_id)

    def team_exists(self, team_id: int) -> bool:
        return self._exists("teams", team_id)


def build_directory(store: MemoryStore, enabled: Optional[bool] = None):
    """Local registry unless IDENTITY_SERVICE_ENABLED=1."""
    use_http = IDENTITY_SERVICE_ENABLED if enabled is None else enabled
    if use_http:
        logger.info("Using identity service at %s", IDENTITY_SERVICE_URL)
        return HttpDirectory(
            IDENTITY_SERVICE_URL,
            timeout=IDENTITY_SERVICE_TIMEOUT_SECONDS,
            cache_ttl_seconds=IDENTITY_CACHE_TTL_SECONDS,
        )
    return LocalDirectory(store)
