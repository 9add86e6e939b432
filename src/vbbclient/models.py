"""Data models for the VBB transit client."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum, IntFlag
from typing import Optional, Union


class LocationType(Enum):
    """Kind of a location result."""
    STOP = "stop"
    ADDRESS = "address"
    POI = "poi"


class LocationTypes(IntFlag):
    """Location kinds a search should return. Combine with ``|``."""
    STOP = 1
    ADDRESS = 2
    POI = 4
    ANY = STOP | ADDRESS | POI


class Products(IntFlag):
    """Transport modes a departure or arrival query should include."""
    SUBURBAN = 1
    SUBWAY = 2
    TRAM = 4
    BUS = 8
    FERRY = 16
    EXPRESS = 32
    REGIONAL = 64
    URBAN = SUBURBAN | SUBWAY | TRAM | BUS | FERRY | REGIONAL
    ALL = URBAN | EXPRESS


# Wire parameter name for each single product, in the order they are sent
PRODUCT_PARAMS = (
    ("suburban", Products.SUBURBAN),
    ("subway", Products.SUBWAY),
    ("tram", Products.TRAM),
    ("bus", Products.BUS),
    ("ferry", Products.FERRY),
    ("express", Products.EXPRESS),
    ("regional", Products.REGIONAL),
)

# "addresss" is the upstream spelling
LOCATION_TYPE_PARAMS = (
    ("stops", LocationTypes.STOP),
    ("addresss", LocationTypes.ADDRESS),
    ("poi", LocationTypes.POI),
)

Platform = Union[int, str, None]


@dataclass(frozen=True)
class Location:
    """A stop, an address or a point of interest."""
    type: LocationType
    id: str = ""  # Empty for addresses
    name: str = ""
    address: str = ""
    latitude: float = 0.0
    longitude: float = 0.0
    distance: int = 0  # Walking distance in meters, nearby search only

    @property
    def poi(self) -> bool:
        return self.type is LocationType.POI


@dataclass(frozen=True)
class Line:
    """A public transport line."""
    name: str
    product: str  # Mode family, e.g. "subway" or "bus"
    id: str = ""
    mode: str = ""


@dataclass(frozen=True)
class Departure:
    """A departure or arrival at a stop.

    ``platform`` and ``planned_platform`` are integers on the flat (1.x)
    API and free text on the nested (5.x) API, where platform labels such
    as "1a" exist.
    """
    direction: str
    line: Line
    when: Optional[datetime] = None  # Live time
    planned_when: Optional[datetime] = None
    delay: Optional[int] = None  # Seconds, negative when early
    platform: Platform = None
    planned_platform: Platform = None
    trip_id: str = ""
    cancelled: bool = False
