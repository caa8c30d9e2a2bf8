from __future__ import annotations

import logging

import requests

from publishing.common import getenv
from publishing.errors import RegistryLookupError

logger = logging.getLogger(__name__)

DEFAULT_API = "https://crates.io/api/v1"

# crates.io rejects API calls without an identifying user agent.
DEFAULT_HEADERS = {
    "User-Agent": "crate-release-train/0.1 (+sequential crate publisher)",
    "Accept": "application/json",
}


class CratesIoIndex:
    """Version lookups against the crates.io web API."""

    def __init__(self, api_base: str | None = None, timeout: float = 15) -> None:
        self.api_base = (api_base or getenv("CRATES_IO_API", DEFAULT_API) or DEFAULT_API).rstrip("/")
        self.timeout = timeout

    def is_published(self, name: str, version: str) -> bool:
        url = f"{self.api_base}/crates/{name}/{version}"
        try:
            resp = requests.get(url, headers=DEFAULT_HEADERS, timeout=self.timeout)
        except requests.RequestException as exc:
            raise RegistryLookupError(f"lookup of {name} {version} failed: {exc}") from exc

        if resp.status_code == 404:
            return False
        if resp.status_code >= 400:
            raise RegistryLookupError(f"lookup of {name} {version} returned HTTP {resp.status_code}")

        try:
            payload = resp.json()
        except ValueError as exc:
            raise RegistryLookupError(f"lookup of {name} {version} returned a non-JSON body") from exc
        if not isinstance(payload, dict) or not isinstance(payload.get("version") or {}, dict):
            raise RegistryLookupError(f"lookup of {name} {version} returned an unexpected payload")

        # Yanked versions still occupy their number and cannot be uploaded again.
        yanked = (payload.get("version") or {}).get("yanked")
        if yanked:
            logger.warning("%s %s is on the registry but yanked", name, version)
        return True
