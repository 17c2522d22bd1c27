"""Position providers for the session controller."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, Optional

import requests

from mapty.core.constants import IP_GEOLOCATION_URL
from mapty.core.errors import GeolocationError
from mapty.core.models import Coordinates

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[Coordinates], None]
ErrorCallback = Callable[[GeolocationError], None]


class StaticGeolocation:
    """Report a fixed position, or fail when none is known."""

    def __init__(self, coords: Optional[Coordinates] = None) -> None:
        self.coords = coords

    def request_current_position(self, on_success: SuccessCallback, on_error: ErrorCallback) -> None:
        if self.coords is None:
            on_error(GeolocationError("No position configured"))
            return
        on_success(self.coords)


class IPGeolocation:
    """Approximate the position from the public IP address."""

    def __init__(
        self,
        url: str = IP_GEOLOCATION_URL,
        timeout_seconds: float = 10,
        max_retries: int = 2,
    ) -> None:
        self.url = url
        self.timeout_seconds = timeout_seconds
        self.max_retries = max(1, max_retries)

    def _fetch(self) -> Dict[str, Any]:
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_retries + 1):
            try:
                response = requests.get(self.url, timeout=self.timeout_seconds)
                response.raise_for_status()
                payload = response.json()
                if not isinstance(payload, dict):
                    raise ValueError("Unexpected geolocation payload")
                return payload
            except (requests.RequestException, ValueError) as exc:
                last_error = exc
                logger.debug("Geolocation attempt %d failed: %s", attempt, exc)
                if attempt >= self.max_retries:
                    break
                time.sleep(min(2**attempt, 8))

        raise GeolocationError(f"Position lookup failed: {last_error}")

    def locate(self) -> Coordinates:
        payload = self._fetch()
        if payload.get("error"):
            raise GeolocationError(f"Position lookup refused: {payload.get('reason', 'unknown')}")
        try:
            return float(payload["latitude"]), float(payload["longitude"])
        except (KeyError, TypeError, ValueError) as exc:
            raise GeolocationError(f"Position lookup returned no coordinates: {exc}") from exc

    def request_current_position(self, on_success: SuccessCallback, on_error: ErrorCallback) -> None:
        try:
            coords = self.locate()
        except GeolocationError as exc:
            on_error(exc)
            return
        on_success(coords)
