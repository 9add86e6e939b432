"""vbbclient - Client for the VBB (Berlin/Brandenburg) transport REST API."""

__version__ = "0.1.0"

from .models import Location, LocationType, LocationTypes, Products, Line, Departure
from .errors import VBBError, RequestError, DecodeError
from .wire import Generation
from .client import VBBClient

__all__ = [
    "VBBClient",
    "Generation",
    "Location",
    "LocationType",
    "LocationTypes",
    "Products",
    "Line",
    "Departure",
    "VBBError",
    "RequestError",
    "DecodeError",
]
