import logging
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = ROOT / "src"
sys.path.insert(0, str(SRC_PATH))

from geowatch import (  # noqa: E402
    GeoPoint,
    GeoStore,
    GeoWatchSettings,
    InMemoryDocumentStore,
    QueryEvent,
)


def main() -> None:
    logging.basicConfig(level=os.getenv("GEOWATCH_LOG_LEVEL", "INFO"))
    settings = GeoWatchSettings.from_env()
    lat = float(os.getenv("GEOWATCH_CENTER_LAT", "-23.5505"))
    lon = float(os.getenv("GEOWATCH_CENTER_LON", "-46.6333"))
    radius = float(os.getenv("GEOWATCH_RADIUS_M", "2000"))
    walkers = int(os.getenv("GEOWATCH_WALKERS", "4"))
    steps = int(os.getenv("GEOWATCH_STEPS", "12"))

    store = InMemoryDocumentStore(hash_field=settings.hash_field)
    geo_store = GeoStore(store, store, settings)
    center = GeoPoint(lat, lon)
    totals = {}

    def on_event(event: QueryEvent) -> None:
        totals[event.type.value] = totals.get(event.type.value, 0) + 1
        print(f"{event.type.value:8} {event.key or '-':10} {event.location or ''}")

    query = geo_store.query_at_location(center, radius)
    query.add_listener(on_event)

    # each walker crosses the circle south to north on its own meridian
    step_degrees = radius * 3 / 110574 / steps
    for step in range(steps + 1):
        for walker in range(walkers):
            offset = (walker - walkers / 2) * radius / 111319 / walkers
            point = GeoPoint(
                lat - radius * 1.5 / 110574 + step * step_degrees,
                lon + offset,
            )
            geo_store.set_location(f"walker:{walker}", point)

    query.set_region(center, radius / 2)
    query.dispose()
    print(totals)


if __name__ == "__main__":
    main()
