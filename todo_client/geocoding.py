"""
Address to coordinates lookup via Nominatim (OpenStreetMap), memoized per address.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional

import requests

from todo_client.config import get_client_settings
from todo_client.errors import UpstreamError
from todo_client.models import Coordinates

logger = logging.getLogger(__name__)


class GeocodingCache:
    """
    Resolves addresses lazily and remembers every hit for the life of the
    object. Keys are the exact address strings; nothing is evicted.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        base_url: Optional[str] = None,
        user_agent: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_client_settings()
        self.session = session or requests.Session()
        self.base_url = base_url or settings.geocoding_url
        self.user_agent = user_agent or settings.geocoding_user_agent
        self.timeout = timeout or settings.request_timeout
        self.cache: Dict[str, Coordinates] = {}

    def lookup(self, address: Optional[str]) -> Optional[Coordinates]:
        """
        Return coordinates for ``address``, or None if it is blank or unknown
        to the provider. Misses are not cached.

        Raises:
            UpstreamError: If the provider cannot be reached or errors out.
        """
        if not address or not address.strip():
            return None
        cached = self.cache.get(address)
        if cached is not None:
            return cached

        try:
            response = self.session.get(
                self.base_url,
                params={"q": address, "format": "json", "limit": 1},
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            results = response.json()
            if not isinstance(results, list):
                raise ValueError("expected a list of results")
            if not results:
                logger.warning("No results found for address: %s", address)
                return None
            first = results[0]
            coordinates = Coordinates(
                latitude=float(first["lat"]), longitude=float(first["lon"])
            )
        except (requests.RequestException, KeyError, TypeError, ValueError) as exc:
            raise UpstreamError(f"Geocoding failed for {address!r}: {exc!r}") from exc

        self.cache[address] = coordinates
        return coordinates

    def lookup_many(
        self, addresses: Iterable[str]
    ) -> Dict[str, Optional[Coordinates]]:
        """Look up each distinct address; provider failures map to None."""
        results: Dict[str, Optional[Coordinates]] = {}
        for address in dict.fromkeys(addresses):
            try:
                results[address] = self.lookup(address)
            except UpstreamError as exc:
                logger.error("%s", exc)
                results[address] = None
        return results
