"""Wire formats of the two VBB REST API generations.

The 1.x API returns flat location records and bare JSON arrays. The 5.x
API nests stop coordinates in a ``location`` sub-object, marks points of
interest with a ``poi`` boolean and wraps departures and arrivals in an
envelope object. The two location shapes cannot be told apart reliably
from a response alone, so the generation is always chosen up front.

Decoders raise ``ValueError``, ``TypeError``, ``KeyError`` or
``OverflowError`` on malformed input; the client turns those into
:class:`~vbbclient.errors.DecodeError`.
"""

import dataclasses
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Optional

from .models import Departure, Line, Location, LocationType, Platform


class Generation(Enum):
    """API generation a client talks to."""
    V1 = "1"  # Flat locations, bare arrays, numeric platforms
    V5 = "5"  # Nested stop coordinates, poi flag, enveloped departures


def parse_time(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp as sent by the API."""
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise TypeError(f"Expected timestamp string, got {type(value).__name__}")
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _coordinate(value: Any) -> float:
    if value is None:
        return 0.0
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"Expected number for coordinate, got {value!r}")
    return float(value)


def _text(record: Dict[str, Any], key: str) -> str:
    value = record.get(key)
    if value is None:
        return ""
    return str(value)


def _require_object(record: Any, what: str) -> Dict[str, Any]:
    if not isinstance(record, dict):
        raise TypeError(f"Expected {what} object, got {type(record).__name__}")
    return record


def apply_provenance(departure: Departure, record: Dict[str, Any]) -> Departure:
    """Fill an arrival's empty direction from its ``provenance`` field.

    The API reports where an arriving trip comes from in ``provenance`` and
    often leaves ``direction`` blank for arrivals.
    """
    if departure.direction:
        return departure
    return dataclasses.replace(departure, direction=_text(record, "provenance"))


class _Codec(ABC):
    """Behavior shared by both generations."""

    generation: Generation
    default_base_url: str
    nearby_path: str
    nearby_sends_distance: bool
    trip_key: str

    @abstractmethod
    def unwrap(self, body: Any, key: str) -> List[Any]:
        """Return the records of a departures or arrivals body."""

    @abstractmethod
    def decode_location(self, record: Any) -> Location:
        """Decode one location record."""

    @abstractmethod
    def encode_location(self, location: Location) -> Dict[str, Any]:
        """Encode a location the way the API sends it."""

    @abstractmethod
    def decode_platform(self, value: Any) -> Platform:
        """Decode a platform value."""

    def decode_locations(self, body: Any) -> List[Location]:
        if not isinstance(body, list):
            raise TypeError(f"Expected array of locations, got {type(body).__name__}")
        return [self.decode_location(record) for record in body]

    def decode_line(self, record: Any) -> Line:
        if record is None:
            return Line(name="", product="")
        record = _require_object(record, "line")
        return Line(
            name=_text(record, "name"),
            product=_text(record, "product"),
            id=_text(record, "id"),
            mode=_text(record, "mode"),
        )

    def decode_departure(self, record: Any) -> Departure:
        record = _require_object(record, "departure")
        when = parse_time(record.get("when"))
        planned_when = parse_time(record.get("plannedWhen"))

        delay = record.get("delay")
        if delay is not None:
            if isinstance(delay, bool) or not isinstance(delay, (int, float)):
                raise TypeError(f"Expected number for delay, got {delay!r}")
            delay = int(delay)
        elif when is not None and planned_when is not None:
            delay = int((when - planned_when).total_seconds())

        # 1.x only sends the live time and the delay
        if planned_when is None and when is not None and delay is not None:
            planned_when = when - timedelta(seconds=delay)

        return Departure(
            direction=_text(record, "direction"),
            line=self.decode_line(record.get("line")),
            when=when,
            planned_when=planned_when,
            delay=delay,
            platform=self.decode_platform(record.get("platform")),
            planned_platform=self.decode_platform(record.get("plannedPlatform")),
            trip_id=_text(record, self.trip_key),
            cancelled=bool(record.get("cancelled", False)),
        )

    def decode_departures(self, body: Any, key: str, arrivals: bool = False) -> List[Departure]:
        records = self.unwrap(body, key)
        departures = []
        for record in records:
            departure = self.decode_departure(record)
            if arrivals:
                departure = apply_provenance(departure, record)
            departures.append(departure)
        return departures


class FlatCodec(_Codec):
    """1.x wire format."""

    generation = Generation.V1
    default_base_url = "https://1.vbb.transport.rest"
    nearby_path = "/stops/nearby"
    nearby_sends_distance = False
    trip_key = "trip"

    _types = {
        "station": LocationType.STOP,
        "stop": LocationType.STOP,
        "address": LocationType.ADDRESS,
        "poi": LocationType.POI,
    }

    def unwrap(self, body: Any, key: str) -> List[Any]:
        if not isinstance(body, list):
            raise TypeError(f"Expected array of {key}, got {type(body).__name__}")
        return body

    def decode_location(self, record: Any) -> Location:
        record = _require_object(record, "location")
        kind = self._types.get(record.get("type"))
        if kind is None:
            raise ValueError(f"Unknown location type {record.get('type')!r}")
        return Location(
            type=kind,
            id=_text(record, "id"),
            name=_text(record, "name"),
            address=_text(record, "address"),
            latitude=_coordinate(record.get("latitude")),
            longitude=_coordinate(record.get("longitude")),
            distance=int(record.get("distance") or 0),
        )

    def encode_location(self, location: Location) -> Dict[str, Any]:
        kind = "station" if location.type is LocationType.STOP else location.type.value
        payload: Dict[str, Any] = {
            "type": kind,
            "id": location.id,
            "name": location.name,
            "address": location.address,
            "latitude": location.latitude,
            "longitude": location.longitude,
        }
        if location.distance:
            payload["distance"] = location.distance
        return payload

    def decode_platform(self, value: Any) -> Platform:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise TypeError(f"Expected numeric platform, got {value!r}")
        if isinstance(value, int):
            return value
        if isinstance(value, str) and value.isdigit():
            return int(value)
        raise ValueError(f"Expected numeric platform, got {value!r}")


class NestedCodec(_Codec):
    """5.x wire format."""

    generation = Generation.V5
    default_base_url = "https://v5.vbb.transport.rest"
    nearby_path = "/locations/nearby"
    nearby_sends_distance = True
    trip_key = "tripId"

    def unwrap(self, body: Any, key: str) -> List[Any]:
        # Early 5.x releases answered with a bare array
        if isinstance(body, list):
            return body
        body = _require_object(body, f"{key} envelope")
        records = body[key]
        if not isinstance(records, list):
            raise TypeError(f"Expected array of {key}, got {type(records).__name__}")
        return records

    def decode_location(self, record: Any) -> Location:
        record = _require_object(record, "location")
        kind_name = record.get("type")
        if record.get("poi"):
            kind = LocationType.POI
        elif kind_name in ("stop", "station"):
            kind = LocationType.STOP
        elif kind_name == "location":
            kind = LocationType.ADDRESS
        else:
            raise ValueError(f"Unknown location type {kind_name!r}")

        latitude = _coordinate(record.get("latitude"))
        longitude = _coordinate(record.get("longitude"))
        nested = record.get("location")
        if nested is not None:
            nested = _require_object(nested, "coordinate")
            latitude = _coordinate(nested.get("latitude"))
            longitude = _coordinate(nested.get("longitude"))

        return Location(
            type=kind,
            id=_text(record, "id"),
            name=_text(record, "name"),
            address=_text(record, "address"),
            latitude=latitude,
            longitude=longitude,
            distance=int(record.get("distance") or 0),
        )

    def encode_location(self, location: Location) -> Dict[str, Any]:
        payload: Dict[str, Any]
        if location.type is LocationType.STOP:
            payload = {
                "type": "stop",
                "id": location.id,
                "name": location.name,
                "location": {
                    "type": "location",
                    "latitude": location.latitude,
                    "longitude": location.longitude,
                },
            }
        else:
            payload = {"type": "location"}
            if location.id:
                payload["id"] = location.id
            if location.name:
                payload["name"] = location.name
            if location.address:
                payload["address"] = location.address
            payload["latitude"] = location.latitude
            payload["longitude"] = location.longitude
        payload["poi"] = location.poi
        if location.distance:
            payload["distance"] = location.distance
        return payload

    def decode_platform(self, value: Any) -> Platform:
        if value is None or value == "":
            return None
        if isinstance(value, bool):
            raise TypeError(f"Expected platform label, got {value!r}")
        if isinstance(value, (int, str)):
            return str(value)
        raise TypeError(f"Expected platform label, got {value!r}")


CODECS = {
    Generation.V1: FlatCodec(),
    Generation.V5: NestedCodec(),
}


def codec_for(generation: Generation) -> _Codec:
    """Return the wire codec for an API generation."""
    return CODECS[Generation(generation)]
