from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Optional

import requests
from requests import Response


logger = logging.getLogger(__name__)


class ProviderError(RuntimeError):
    """Base provider error."""


class RateLimited(ProviderError):
    """Raised when a provider throttles us (HTTP 429)."""


class NotFound(ProviderError):
    """Raised when a provider has no data for the requested location."""


@dataclass
class RequestConfig:
    timeout: float = 10.0


class HttpProvider:
    """Base class that adds timeouts and error mapping for HTTP providers.

    No retries are performed: a failed call surfaces immediately.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self._log = logging.getLogger(self.__class__.__name__)

    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Rate limited: %s", response.text[:200])
            raise RateLimited("rate limited")
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, response.text[:200])
            raise ProviderError(f"HTTP {response.status_code}")
        return response

    def _request(self, method: str, url: str, **kwargs) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request timed out", exc_info=exc)
            raise ProviderError("timeout") from exc
        except requests.RequestException as exc:
            self._log.error("Request failed", exc_info=exc)
            raise ProviderError("request failed") from exc
        return self._handle_response(response)

    def _json(self, response: Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise ProviderError("invalid json") from exc


def safe_number(value: Any) -> Optional[float]:
    """Return ``value`` as a finite float, or ``None`` for anything else."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float)):
        return None
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def in_range(lat: Optional[float], lon: Optional[float]) -> bool:
    if lat is None or lon is None:
        return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lon <= 180.0


__all__ = [
    "HttpProvider",
    "NotFound",
    "ProviderError",
    "RateLimited",
    "RequestConfig",
    "in_range",
    "safe_number",
]
