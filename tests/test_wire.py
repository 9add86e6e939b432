"""Tests for the VBB wire formats."""

import unittest
from datetime import datetime, timedelta, timezone
import sys
from pathlib import Path

# Add src to path so we can import vbbclient
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vbbclient.models import Departure, Line, Location, LocationType
from vbbclient.wire import (
    FlatCodec,
    Generation,
    NestedCodec,
    _Codec,
    apply_provenance,
    codec_for,
    parse_time,
)

BERLIN = timezone(timedelta(hours=1))


class TestNestedLocations(unittest.TestCase):
    """Test the 5.x location format."""

    def setUp(self):
        self.codec = NestedCodec()

    def test_stop_round_trip(self):
        """Test that a stop survives encoding and decoding."""
        stop = Location(
            type=LocationType.STOP,
            id="900000100003",
            name="S+U Alexanderplatz",
            latitude=52.521508,
            longitude=13.411267,
        )
        payload = self.codec.encode_location(stop)

        self.assertEqual(payload["type"], "stop")
        self.assertEqual(payload["location"]["type"], "location")
        self.assertEqual(payload["location"]["latitude"], stop.latitude)
        self.assertEqual(payload["location"]["longitude"], stop.longitude)

        decoded = self.codec.decode_location(payload)
        self.assertEqual(decoded.type, LocationType.STOP)
        self.assertEqual(decoded.id, stop.id)
        self.assertEqual(decoded.name, stop.name)
        self.assertEqual(decoded.latitude, stop.latitude)
        self.assertEqual(decoded.longitude, stop.longitude)

    def test_poi_flag_mirrors_type(self):
        """Test that the poi flag is set for points of interest only."""
        for kind in LocationType:
            location = Location(type=kind, id="1", name="x", latitude=52.5, longitude=13.4)
            payload = self.codec.encode_location(location)
            self.assertIs(payload["poi"], kind is LocationType.POI)
            self.assertEqual("location" in payload, kind is LocationType.STOP)
            self.assertEqual(self.codec.decode_location(payload).type, kind)

    def test_nested_coordinates_override_top_level(self):
        """Test that nested coordinates take precedence."""
        record = {
            "type": "stop",
            "id": "900000100003",
            "name": "S+U Alexanderplatz",
            "latitude": 1.0,
            "longitude": 2.0,
            "location": {"type": "location", "latitude": 52.521508, "longitude": 13.411267},
        }
        location = self.codec.decode_location(record)
        self.assertAlmostEqual(location.latitude, 52.521508)
        self.assertAlmostEqual(location.longitude, 13.411267)

    def test_decode_address_and_poi(self):
        """Test decoding of addresses and points of interest."""
        address = self.codec.decode_location({
            "type": "location",
            "address": "10178 Berlin-Mitte, Alexanderplatz 1",
            "latitude": 52.52,
            "longitude": 13.41,
        })
        self.assertEqual(address.type, LocationType.ADDRESS)
        self.assertEqual(address.id, "")
        self.assertEqual(address.address, "10178 Berlin-Mitte, Alexanderplatz 1")
        self.assertFalse(address.poi)

        poi = self.codec.decode_location({
            "type": "location",
            "poi": True,
            "id": "900980720",
            "name": "Berlin, Fernsehturm",
            "latitude": 52.520803,
            "longitude": 13.40945,
        })
        self.assertEqual(poi.type, LocationType.POI)
        self.assertTrue(poi.poi)

    def test_missing_coordinates_are_zero(self):
        """Test that absent coordinates decode to zero."""
        location = self.codec.decode_location({"type": "stop", "id": "1", "name": "Somewhere"})
        self.assertEqual(location.latitude, 0.0)
        self.assertEqual(location.longitude, 0.0)

    def test_unknown_type_rejected(self):
        """Test that an unknown location type is an error."""
        with self.assertRaises(ValueError):
            self.codec.decode_location({"type": "vehicle", "id": "1"})

    def test_platform_is_text(self):
        """Test that platforms are kept as labels."""
        self.assertEqual(self.codec.decode_platform("1a"), "1a")
        self.assertEqual(self.codec.decode_platform(2), "2")
        self.assertIsNone(self.codec.decode_platform(None))


class TestFlatLocations(unittest.TestCase):
    """Test the 1.x location format."""

    def setUp(self):
        self.codec = FlatCodec()

    def test_decode_station(self):
        """Test decoding of a flat station record."""
        location = self.codec.decode_location({
            "type": "station",
            "id": "900000100003",
            "name": "S+U Alexanderplatz",
            "latitude": 52.521508,
            "longitude": 13.411267,
            "distance": 120,
        })
        self.assertEqual(location.type, LocationType.STOP)
        self.assertEqual(location.distance, 120)
        self.assertAlmostEqual(location.latitude, 52.521508)

    def test_round_trip(self):
        """Test that flat records survive encoding and decoding."""
        for kind in LocationType:
            location = Location(type=kind, id="7", name="Name", address="Addr", latitude=52.5, longitude=13.4)
            payload = self.codec.encode_location(location)
            self.assertNotIn("location", payload)
            self.assertNotIn("poi", payload)
            self.assertEqual(self.codec.decode_location(payload), location)

    def test_numeric_platform(self):
        """Test that platforms are numbers."""
        self.assertEqual(self.codec.decode_platform(3), 3)
        self.assertEqual(self.codec.decode_platform("4"), 4)
        self.assertIsNone(self.codec.decode_platform(None))
        with self.assertRaises(ValueError):
            self.codec.decode_platform("1a")

    def test_envelope_not_accepted(self):
        """Test that the flat format expects bare arrays."""
        with self.assertRaises(TypeError):
            self.codec.unwrap({"departures": []}, "departures")


class TestDepartures(unittest.TestCase):
    """Test departure and arrival decoding."""

    def test_decode_departure(self):
        """Test decoding of a 5.x departure."""
        departure = NestedCodec().decode_departure({
            "tripId": "1|12345|0|86|15012024",
            "direction": "S Ostkreuz",
            "when": "2024-01-15T08:32:00+01:00",
            "plannedWhen": "2024-01-15T08:30:00+01:00",
            "delay": 120,
            "platform": "1a",
            "plannedPlatform": "1",
            "line": {"id": "s5", "name": "S5", "product": "suburban", "mode": "train"},
        })
        self.assertEqual(departure.direction, "S Ostkreuz")
        self.assertEqual(departure.when, datetime(2024, 1, 15, 8, 32, tzinfo=BERLIN))
        self.assertEqual(departure.planned_when, datetime(2024, 1, 15, 8, 30, tzinfo=BERLIN))
        self.assertEqual(departure.delay, 120)
        self.assertEqual(departure.platform, "1a")
        self.assertEqual(departure.planned_platform, "1")
        self.assertEqual(departure.line, Line(name="S5", product="suburban", id="s5", mode="train"))
        self.assertEqual(departure.trip_id, "1|12345|0|86|15012024")
        self.assertFalse(departure.cancelled)

    def test_delay_derived_from_times(self):
        """Test that a missing delay is computed from the two times."""
        departure = NestedCodec().decode_departure({
            "direction": "U Pankow",
            "when": "2024-01-15T08:29:00+01:00",
            "plannedWhen": "2024-01-15T08:30:00+01:00",
            "line": {"name": "U2", "product": "subway"},
        })
        self.assertEqual(departure.delay, -60)

    def test_flat_departure_planned_time(self):
        """Test that 1.x departures get their planned time from the delay."""
        departure = FlatCodec().decode_departure({
            "trip": 12345,
            "direction": "U Pankow",
            "when": "2024-01-15T08:32:00+01:00",
            "delay": 120,
            "platform": 2,
            "line": {"name": "U2", "product": "subway"},
        })
        self.assertEqual(departure.planned_when, datetime(2024, 1, 15, 8, 30, tzinfo=BERLIN))
        self.assertEqual(departure.platform, 2)
        self.assertEqual(departure.trip_id, "12345")

    def test_cancelled_departure(self):
        """Test a cancelled departure without live time."""
        departure = NestedCodec().decode_departure({
            "direction": "S Spandau",
            "when": None,
            "plannedWhen": "2024-01-15T08:30:00+01:00",
            "delay": None,
            "cancelled": True,
            "line": {"name": "S3", "product": "suburban"},
        })
        self.assertIsNone(departure.when)
        self.assertIsNone(departure.delay)
        self.assertTrue(departure.cancelled)

    def test_arrival_direction_from_provenance(self):
        """Test that an empty arrival direction is taken from provenance."""
        body = {"arrivals": [
            {"direction": "", "provenance": "Platform 3 area", "line": {"name": "M10", "product": "tram"}},
            {"direction": "Warschauer Str.", "provenance": "Hauptbahnhof", "line": {"name": "M10", "product": "tram"}},
        ]}
        arrivals = NestedCodec().decode_departures(body, "arrivals", arrivals=True)
        self.assertEqual(arrivals[0].direction, "Platform 3 area")
        self.assertEqual(arrivals[1].direction, "Warschauer Str.")

    def test_provenance_ignored_for_departures(self):
        """Test that departures never read provenance."""
        body = [{"direction": "", "provenance": "Somewhere", "line": {"name": "100", "product": "bus"}}]
        departures = FlatCodec().decode_departures(body, "departures")
        self.assertEqual(departures[0].direction, "")

    def test_apply_provenance_keeps_direction(self):
        """Test that a non-empty direction is left alone."""
        departure = Departure(direction="S Ostkreuz", line=Line(name="S5", product="suburban"))
        self.assertIs(apply_provenance(departure, {"provenance": "Other"}), departure)

    def test_empty_results(self):
        """Test that empty bodies decode to empty lists."""
        self.assertEqual(NestedCodec().decode_departures({"departures": []}, "departures"), [])
        self.assertEqual(NestedCodec().decode_departures([], "departures"), [])
        self.assertEqual(FlatCodec().decode_departures([], "departures"), [])

    def test_missing_envelope_key(self):
        """Test that a 5.x envelope without the expected key is an error."""
        with self.assertRaises(KeyError):
            NestedCodec().decode_departures({"error": True}, "departures")


class TestHelpers(unittest.TestCase):
    """Test module-level helpers."""

    def test_parse_time(self):
        self.assertIsNone(parse_time(None))
        self.assertIsNone(parse_time(""))
        self.assertEqual(parse_time("2024-01-15T07:30:00Z"), datetime(2024, 1, 15, 7, 30, tzinfo=timezone.utc))
        with self.assertRaises(ValueError):
            parse_time("not a time")

    def test_codec_for(self):
        self.assertIsInstance(codec_for(Generation.V1), FlatCodec)
        self.assertIsInstance(codec_for(Generation.V5), NestedCodec)

    def test_codec_requires_overrides(self):
        """Test that a codec missing its wire methods cannot be created."""
        class PartialCodec(_Codec):
            def unwrap(self, body, key):
                return body

        with self.assertRaises(TypeError):
            PartialCodec()


if __name__ == "__main__":
    unittest.main()
