from geowatch import GeoPoint, GeoStore, InMemoryDocumentStore, QueryEvent


def main() -> None:
    store = InMemoryDocumentStore()
    geo_store = GeoStore(store, store)

    geo_store.set_location("cafe:1", GeoPoint(37.7860, -122.4056))
    geo_store.set_location("cafe:2", GeoPoint(37.7749, -122.4194))

    def on_event(event: QueryEvent) -> None:
        print(event.type.value, event.key or "", event.location or "")

    with geo_store.query_at_location(GeoPoint(37.7853, -122.4056), 1000) as query:
        query.add_listener(on_event)

        geo_store.set_location("cafe:2", GeoPoint(37.7870, -122.4050))
        geo_store.set_location("cafe:1", GeoPoint(37.7865, -122.4060))
        geo_store.remove_location("cafe:1")

        query.set_region(GeoPoint(37.7749, -122.4194), 500)
        print(sorted(query.ranges))
        print(geo_store.get_location("cafe:2"))


if __name__ == "__main__":
    main()
