"""Client for the VBB (Berlin/Brandenburg) transport REST API."""

import logging
import threading
from decimal import Decimal
from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Tuple, TypeVar
from urllib.parse import quote

import requests

from .errors import DecodeError, RequestError
from .models import (
    LOCATION_TYPE_PARAMS,
    PRODUCT_PARAMS,
    Departure,
    Location,
    LocationTypes,
    Products,
)
from .wire import Generation, codec_for

logger = logging.getLogger(__name__)

DEFAULT_BASE_URLS = {generation: codec_for(generation).default_base_url for generation in Generation}
DEFAULT_DURATION = timedelta(minutes=10)

# Wire contract: numeric UTC offset, never "Z"
TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

Params = List[Tuple[str, str]]
T = TypeVar("T")

_default_session: Optional[requests.Session] = None
_default_session_lock = threading.Lock()


def default_session() -> requests.Session:
    """Return the session shared by clients created without one."""
    global _default_session
    with _default_session_lock:
        if _default_session is None:
            _default_session = requests.Session()
            _default_session.headers.update({"Accept": "application/json"})
        return _default_session


def format_bool(value: bool) -> str:
    return "true" if value else "false"


def format_coordinate(value: float) -> str:
    """Shortest string that round-trips to the same float, without an exponent."""
    text = repr(float(value))
    if "e" in text:
        text = format(Decimal(text), "f")
    return text


def format_when(when: datetime) -> str:
    """
    Format a reference time for the ``when`` parameter.

    Naive datetimes are taken as local time.
    """
    if when.tzinfo is None or when.utcoffset() is None:
        when = when.astimezone()
    return when.strftime(TIMESTAMP_FORMAT)


def format_duration(duration: timedelta) -> str:
    """Whole minutes of a lookahead window, truncated."""
    return str(int(duration / timedelta(minutes=1)))


def location_type_params(types: LocationTypes) -> Params:
    types = LocationTypes(types)
    return [(name, format_bool(bool(types & flag))) for name, flag in LOCATION_TYPE_PARAMS]


def product_params(products: Products) -> Params:
    products = Products(products)
    return [(name, format_bool(bool(products & flag))) for name, flag in PRODUCT_PARAMS]


class VBBClient:
    """
    Queries locations, nearby stops, departures and arrivals.

    Each call performs a single blocking GET through the session; the client
    keeps no other state and can be shared between threads.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        session: Optional[requests.Session] = None,
        generation: Generation = Generation.V5,
        timeout: Optional[float] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: API root. Defaults to the public endpoint of ``generation``.
            session: HTTP session to send requests through. Defaults to a shared session.
            generation: Wire format the endpoint speaks. Must match ``base_url``.
            timeout: Default request timeout in seconds, passed to the session.
        """
        self.generation = Generation(generation)
        self._codec = codec_for(self.generation)
        self.base_url = (base_url or self._codec.default_base_url).rstrip("/")
        self.session = session if session is not None else default_session()
        self.timeout = timeout

    def search_locations(
        self,
        query: str,
        types: LocationTypes = LocationTypes.ANY,
        results: int = 5,
        fuzzy: bool = True,
        timeout: Optional[float] = None,
    ) -> List[Location]:
        """
        Search stops, addresses and points of interest by name.

        Args:
            query: Free text, e.g. "Alexanderplatz".
            types: Kinds of locations to return.
            results: Maximum number of results.
            fuzzy: Set to False to request exact matching.
            timeout: Overrides the client timeout for this call.

        Returns:
            Locations in the order the server ranked them.
        """
        params: Params = [("query", query), ("results", str(results))]
        params.extend(location_type_params(types))
        params.append(("pretty", "false"))
        if not fuzzy:
            params.append(("fuzzy", "false"))

        path = "/locations"
        subject = f"query {query!r}"
        body = self._get("search_locations", subject, path, params, timeout)
        locations = self._decode("search_locations", subject, path, self._codec.decode_locations, body)
        logger.debug(f"search_locations: {len(locations)} results for {query!r}")
        return locations

    def nearby_stops(
        self,
        latitude: float,
        longitude: float,
        distance: int = 1000,
        results: int = 8,
        timeout: Optional[float] = None,
    ) -> List[Location]:
        """
        Find stops around a coordinate.

        The 1.x API ignores ``distance`` and it is not sent there.

        Returns:
            Locations with ``distance`` set to the walking distance in meters.
        """
        params: Params = [
            ("latitude", format_coordinate(latitude)),
            ("longitude", format_coordinate(longitude)),
        ]
        if self._codec.nearby_sends_distance:
            params.append(("distance", str(distance)))
        params.append(("results", str(results)))
        params.append(("pretty", "false"))

        path = self._codec.nearby_path
        subject = f"{latitude},{longitude}"
        body = self._get("nearby_stops", subject, path, params, timeout)
        locations = self._decode("nearby_stops", subject, path, self._codec.decode_locations, body)
        logger.debug(f"nearby_stops: {len(locations)} results around {subject}")
        return locations

    def departures(
        self,
        stop_id: str,
        when: Optional[datetime] = None,
        duration: timedelta = DEFAULT_DURATION,
        products: Products = Products.ALL,
        timeout: Optional[float] = None,
    ) -> List[Departure]:
        """
        List departures at a stop.

        Args:
            stop_id: Stop identifier, e.g. "900000100003".
            when: Start of the window. Defaults to now.
            duration: Length of the window, in whole minutes.
            products: Transport modes to include.
            timeout: Overrides the client timeout for this call.

        Returns:
            Departures in server order.
        """
        return self._stop_events("departures", stop_id, when, duration, products, timeout)

    def arrivals(
        self,
        stop_id: str,
        when: Optional[datetime] = None,
        duration: timedelta = DEFAULT_DURATION,
        products: Products = Products.ALL,
        timeout: Optional[float] = None,
    ) -> List[Departure]:
        """
        List arrivals at a stop.

        Arrivals are returned as :class:`Departure` values. Where the API
        leaves ``direction`` empty it is taken from the arrival's
        ``provenance``.
        """
        return self._stop_events("arrivals", stop_id, when, duration, products, timeout)

    def _stop_events(
        self,
        kind: str,
        stop_id: str,
        when: Optional[datetime],
        duration: timedelta,
        products: Products,
        timeout: Optional[float],
    ) -> List[Departure]:
        if when is None:
            when = datetime.now().astimezone()

        params: Params = [
            ("when", format_when(when)),
            ("duration", format_duration(duration)),
        ]
        params.extend(product_params(products))
        params.append(("pretty", "false"))

        path = f"/stops/{quote(str(stop_id), safe='')}/{kind}"
        subject = f"stop {stop_id}"
        body = self._get(kind, subject, path, params, timeout)

        def decode(payload: Any) -> List[Departure]:
            return self._codec.decode_departures(payload, kind, arrivals=kind == "arrivals")

        events = self._decode(kind, subject, path, decode, body)
        logger.debug(f"{kind}: {len(events)} results for stop {stop_id}")
        return events

    def _get(self, operation: str, subject: str, path: str, params: Params, timeout: Optional[float]) -> Any:
        """
        Send a GET request and parse the JSON body.

        Raises:
            RequestError: If the request fails or the server answers with an error status.
            DecodeError: If the body is not JSON.
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"{operation}: GET {url} {params}")
        try:
            response = self.session.get(
                url,
                params=params,
                timeout=timeout if timeout is not None else self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"{operation} ({subject}) request to {path} failed: {e}")
            raise RequestError(
                f"{operation} ({subject}): request to {path} failed: {e}", operation, path, e
            ) from e

        try:
            return response.json()
        except ValueError as e:
            logger.error(f"{operation} ({subject}) returned invalid JSON from {path}: {e}")
            raise DecodeError(
                f"{operation} ({subject}): invalid JSON from {path}: {e}", operation, path, e
            ) from e

    @staticmethod
    def _decode(operation: str, subject: str, path: str, decode: Callable[[Any], T], body: Any) -> T:
        try:
            return decode(body)
        except (ValueError, TypeError, KeyError, OverflowError) as e:
            logger.error(f"{operation} ({subject}) returned an unexpected payload from {path}: {e}")
            raise DecodeError(
                f"{operation} ({subject}): unexpected payload from {path}: {e}", operation, path, e
            ) from e
