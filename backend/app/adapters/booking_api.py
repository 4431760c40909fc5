"""HTTP booking source - reads a traveler's confirmed flight and hotel orders."""

import asyncio
import logging
from typing import Any

import httpx

from backend.app.config import Settings
from backend.app.itinerary.errors import BookingSourceError

logger = logging.getLogger(__name__)

RATE_LIMIT_MARKERS = ("Too many requests", "network rate limit is exceeded")


async def fetch_with_backoff(
    client: httpx.AsyncClient,
    url: str,
    retries: int = 5,
    initial_delay_s: float = 1.0,
) -> httpx.Response:
    """GET with exponential backoff on rate limiting and network errors.

    Retries on HTTP 429, on error bodies that report rate limiting, and on
    transport errors. Any other response (including non-2xx) is returned for
    the caller to interpret.

    Raises:
        BookingSourceError: If every attempt was rate limited or failed
    """
    delay = initial_delay_s
    for attempt in range(1, retries + 1):
        try:
            response = await client.get(url)
        except httpx.TransportError as e:
            logger.warning(f"Booking fetch attempt {attempt} failed: {type(e).__name__}")
        else:
            if response.status_code == 429:
                logger.warning(f"Booking fetch attempt {attempt} rate limited")
            elif not response.is_success and any(m in response.text for m in RATE_LIMIT_MARKERS):
                logger.warning(f"Booking fetch attempt {attempt} rate limited (body)")
            else:
                return response

        if attempt < retries:
            await asyncio.sleep(delay)
            delay *= 2

    raise BookingSourceError(
        f"Failed to fetch {url} after {retries} attempts due to network, rate limit, "
        "or unexpected API response."
    )


class HttpBookingSource:
    """BookingSource backed by the booking provider's REST endpoints."""

    def __init__(
        self,
        base_url: str,
        client: httpx.AsyncClient | None = None,
        retries: int = 5,
        initial_delay_s: float = 1.0,
        timeout_s: float = 4.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_s)
        self._retries = retries
        self._initial_delay_s = initial_delay_s

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpBookingSource":
        return cls(
            settings.booking_api_base_url,
            retries=settings.booking_api_retries,
            initial_delay_s=settings.booking_api_initial_delay_ms / 1000,
            timeout_s=settings.booking_api_timeout_s,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def list_flight_bookings(self, user_id: str) -> list[dict[str, Any]]:
        """List flight bookings for user."""
        return await self._list(f"/users/{user_id}/bookings/flights")

    async def list_hotel_bookings(self, user_id: str) -> list[dict[str, Any]]:
        """List hotel bookings for user."""
        return await self._list(f"/users/{user_id}/bookings/hotels")

    async def get_flight_booking(self, user_id: str, booking_id: str) -> dict[str, Any] | None:
        """Get one flight booking."""
        return await self._get_one(f"/users/{user_id}/bookings/flights/{booking_id}")

    async def get_hotel_booking(self, user_id: str, booking_id: str) -> dict[str, Any] | None:
        """Get one hotel booking."""
        return await self._get_one(f"/users/{user_id}/bookings/hotels/{booking_id}")

    async def _list(self, path: str) -> list[dict[str, Any]]:
        payload = await self._get_json(path)
        if payload is None:
            return []

        # Endpoint returns either a bare list or a {"data": [...]} envelope
        items = payload.get("data", []) if isinstance(payload, dict) else payload
        if not isinstance(items, list):
            raise BookingSourceError(f"Unexpected booking list shape from {path}")
        return [item for item in items if isinstance(item, dict)]

    async def _get_one(self, path: str) -> dict[str, Any] | None:
        payload = await self._get_json(path)
        if payload is None:
            return None
        if not isinstance(payload, dict):
            raise BookingSourceError(f"Unexpected booking shape from {path}")
        return payload

    async def _get_json(self, path: str) -> Any:
        url = f"{self._base_url}{path}"
        response = await fetch_with_backoff(
            self._client, url, retries=self._retries, initial_delay_s=self._initial_delay_s
        )

        if response.status_code == 404:
            return None
        if not response.is_success:
            raise BookingSourceError(f"Booking provider returned {response.status_code} for {url}")

        try:
            return response.json()
        except ValueError as e:
            raise BookingSourceError(f"Booking provider returned invalid JSON for {url}") from e
