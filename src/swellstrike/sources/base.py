"""Base classes and error taxonomy for source adapters."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

import requests

from swellstrike.cache.models import Location, Reading

logger = logging.getLogger(__name__)


class SourceError(Exception):
    """Base class for failures of a single upstream provider."""

    def __init__(self, source_id: str, message: str):
        super().__init__(f"{source_id}: {message}")
        self.source_id = source_id
        self.message = message


class Unavailable(SourceError):
    """Transport failure, timeout or non-success HTTP status."""


class AdapterDisabled(Unavailable):
    """Provider is not configured (e.g. missing API key)."""


class MalformedPayload(SourceError):
    """Response arrived but its content does not have the expected shape."""


class RateLimited(SourceError):
    """Provider explicitly throttled the request."""


@dataclass(frozen=True)
class FetchOutcome:
    """Uniform result of one adapter attempt: a reading or an error."""

    source_id: str
    reading: Optional[Reading] = None
    error: Optional[SourceError] = None

    @property
    def ok(self) -> bool:
        return self.reading is not None


class SourceAdapter(ABC):
    """Fetches and parses one provider's payload into a Reading.

    Subclasses set `source_id` and implement `fetch`. Adapters must not keep
    mutable state between calls; they are shared by worker threads.
    """

    source_id: str = "base"

    def __init__(self, timeout: float = 15.0, user_agent: Optional[str] = None):
        """Initialize the adapter.

        Args:
            timeout: Per-request HTTP timeout in seconds
            user_agent: Optional User-Agent header value
        """
        self.timeout = timeout
        self.user_agent = user_agent

    @abstractmethod
    def fetch(self, location: Location) -> Reading:
        """Fetch the latest reading for a location.

        Raises:
            Unavailable: Transport failure or non-success status
            MalformedPayload: Content does not have the expected shape
            RateLimited: Provider throttled the request
        """
        pass

    def try_fetch(self, location: Location) -> FetchOutcome:
        """Run `fetch` and fold adapter errors into a FetchOutcome."""
        try:
            return FetchOutcome(self.source_id, reading=self.fetch(location))
        except SourceError as e:
            return FetchOutcome(self.source_id, error=e)

    def _headers(self) -> dict:
        if self.user_agent:
            return {"User-Agent": self.user_agent}
        return {}

    def _get(self, url: str, params: Optional[dict] = None) -> requests.Response:
        """GET a URL, translating transport and status failures.

        Raises:
            Unavailable: On connection errors, timeouts or non-2xx status
            RateLimited: On HTTP 429
        """
        try:
            response = requests.get(
                url, params=params, headers=self._headers(), timeout=self.timeout
            )
        except requests.RequestException as e:
            raise Unavailable(self.source_id, f"request to {url} failed: {e}") from e

        if response.status_code == 429:
            raise RateLimited(self.source_id, f"rate limited by {url}")
        if not 200 <= response.status_code < 300:
            raise Unavailable(self.source_id, f"HTTP {response.status_code} from {url}")
        return response

    def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        response = self._get(url, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise MalformedPayload(self.source_id, f"invalid JSON from {url}") from e


def parse_float(raw: Any, missing: tuple = ("MM", "", None)) -> Optional[float]:
    """Parse a numeric field, returning None when missing or unparseable."""
    if raw in missing:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if value != value:  # NaN
        return None
    return value
