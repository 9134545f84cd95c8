"""Google Geocoder: resolves a free-text address into Coordinates over HTTP.

Invariants:
    - resolve() returns Coordinates or raises GeocodeError; never returns None
    - Timeouts, transport errors, non-2xx responses, ZERO_RESULTS and malformed
      payloads all map to GeocodeError (core/errors.py)
    - No retries: a failed lookup fails the request that needed it
"""

import logging

import httpx

from placeshare.core.domain_types import Coordinates
from placeshare.core.errors import GeocodeError

logger = logging.getLogger(__name__)


class GoogleGeocoder:
    """Geocoder backed by the Google Geocoding API."""

    def __init__(
        self,
        api_key: str,
        url: str = "https://maps.googleapis.com/maps/api/geocode/json",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.url = url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def resolve(self, address: str) -> Coordinates:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport,
            ) as client:
                response = await client.get(
                    self.url, params={"address": address, "key": self.api_key},
                )
                response.raise_for_status()
                payload = response.json()
        except httpx.TimeoutException as e:
            logger.error(f"Geocoding timed out: {e}")
            raise GeocodeError("timeout")
        except httpx.HTTPError as e:
            logger.error(f"Geocoding request failed: {e}")
            raise GeocodeError("transport")
        except ValueError as e:
            logger.error(f"Geocoding returned invalid JSON: {e}")
            raise GeocodeError("invalid_json")

        return _parse_location(payload, address)


def _parse_location(payload, address: str) -> Coordinates:
    if not isinstance(payload, dict):
        logger.error(f"Geocoding payload is not an object: {type(payload).__name__}")
        raise GeocodeError("malformed_payload")
    status = payload.get("status")
    results = payload.get("results") or []
    if status == "ZERO_RESULTS" or not results:
        logger.info(f"No geocoding results for address {address!r}")
        raise GeocodeError("zero_results")
    if status not in (None, "OK"):
        logger.error(f"Geocoding service returned status {status}")
        raise GeocodeError(f"status_{status}")
    try:
        location = results[0]["geometry"]["location"]
        return Coordinates(lat=float(location["lat"]), lng=float(location["lng"]))
    except (KeyError, IndexError, TypeError, ValueError) as e:
        logger.error(f"Malformed geocoding payload: {e}")
        raise GeocodeError("malformed_payload")
