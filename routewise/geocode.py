"""
Geocoding utilities for RouteWise.

The planner only depends on the ``AddressResolver`` protocol: a single
``resolve`` coroutine that turns free‑form text into a ``Coordinate`` or
raises ``AddressNotFound`` / ``ResolverUnavailable``. ``GeopyResolver``
implements it on top of the `geopy` library, using OpenStreetMap's
Nominatim service.

Example usage:

    resolver = GeopyResolver()
    coordinate = await resolver.resolve("Tokyo Tower")

Nominatim enforces a strict request rate. The orchestrator serialises
lookups and pauses between them; this adapter adds no caching and no
throttling of its own.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Protocol

from geopy.exc import GeocoderServiceError, GeocoderTimedOut
from geopy.geocoders import Nominatim

from .errors import AddressNotFound, ResolverUnavailable
from .logging_utils import get_logger
from .models import Coordinate
from .settings import RouteWiseSettings, get_settings

LOGGER = get_logger(__name__)


class AddressResolver(Protocol):
    """Capability that converts an address into a coordinate."""

    async def resolve(self, address: str) -> Optional[Coordinate]:
        """Return the first matching coordinate.

        Implementations raise ``AddressNotFound`` when there is no match
        and ``ResolverUnavailable`` for transient failures. Returning
        ``None`` is treated the same as ``AddressNotFound``.
        """
        ...


class GeopyResolver:
    """``AddressResolver`` backed by a geopy geocoder.

    The blocking geopy call runs in a worker thread. A lookup that has
    already been dispatched cannot be interrupted; callers that no
    longer want the answer simply ignore it.
    """

    def __init__(
        self,
        geocoder: Any = None,
        timeout: Optional[float] = None,
        settings: Optional[RouteWiseSettings] = None,
    ) -> None:
        settings = settings or get_settings()
        # Provide a custom user agent to comply with Nominatim's usage policy.
        self._geocoder = geocoder or Nominatim(user_agent=settings.geocoder_user_agent)
        self._timeout = timeout if timeout is not None else settings.geocoder_timeout_seconds

    async def resolve(self, address: str) -> Coordinate:
        return await asyncio.to_thread(self._geocode, address)

    def _geocode(self, address: str) -> Coordinate:
        """Geocode ``address`` synchronously.

        If a timeout or service error occurs, the request is retried
        once with a doubled timeout before giving up.
        """
        try:
            location = self._geocoder.geocode(address, timeout=self._timeout)
        except (GeocoderTimedOut, GeocoderServiceError) as exc:
            LOGGER.warning("Geocoder error for %r (%s), retrying once", address, exc)
            try:
                location = self._geocoder.geocode(address, timeout=self._timeout * 2)
            except (GeocoderTimedOut, GeocoderServiceError) as retry_exc:
                raise ResolverUnavailable(address, str(retry_exc)) from retry_exc
        if location is None:
            raise AddressNotFound(address, "no result")
        return Coordinate(location.latitude, location.longitude)
