"""Example usage of VBBClient."""

import logging
import sys
from datetime import timedelta
from pathlib import Path

# Add src to path so we can import vbbclient
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from vbbclient import LocationTypes, Products, VBBClient, VBBError

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


def print_departures(client: VBBClient, query: str):
    """
    Look up a stop by name and display its next departures.

    Args:
        client: Client to query with.
        query: Stop name (e.g., "Alexanderplatz")
    """
    print(f"\n{'='*70}")
    print(f"Searching for: {query}")
    print(f"{'='*70}\n")

    stops = client.search_locations(query, types=LocationTypes.STOP, results=1)
    if not stops:
        print("  No stop found")
        return

    stop = stops[0]
    print(f"Stop: {stop.name} (ID: {stop.id})")
    print(f"Location: {stop.latitude:.5f}, {stop.longitude:.5f}\n")

    print("DEPARTURES:")
    print("-" * 70)
    departures = client.departures(stop.id, duration=timedelta(minutes=20), products=Products.URBAN)
    if not departures:
        print("  No departures found")
    for dep in departures:
        time = dep.when or dep.planned_when
        clock = time.strftime("%H:%M") if time else "--:--"
        delay = f" (+{dep.delay // 60})" if dep.delay and dep.delay > 0 else ""
        platform = f" [{dep.platform}]" if dep.platform is not None else ""
        cancelled = " CANCELLED" if dep.cancelled else ""
        print(f"  {clock}{delay} {dep.line.name:>5} → {dep.direction}{platform}{cancelled}")

    print("\nNEARBY STOPS:")
    print("-" * 70)
    for nearby in client.nearby_stops(stop.latitude, stop.longitude, distance=400, results=5):
        print(f"  {nearby.distance:4d} m  {nearby.name}")

    print("\n" + "=" * 70 + "\n")


if __name__ == "__main__":
    station_name = " ".join(sys.argv[1:]) or "Alexanderplatz"
    try:
        print_departures(VBBClient(timeout=10), station_name)
    except VBBError as e:
        logger.error(f"Failed to fetch data: {e}", exc_info=True)
        print(f"Error: {e}")
        sys.exit(1)
