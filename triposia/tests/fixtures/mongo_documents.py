"""MongoDB document fixtures for testing."""

AIRLINE_DOCUMENTS = [
    {"name": "American Airlines", "iata": "AA", "code": "AAL"},
    {"name": "Delta Air Lines", "code": "DL"},
    {"name": "Unnamed Charter", "iata": "", "code": None},
]

AIRPORT_DOCUMENTS = [
    {
        "name": "John F. Kennedy International",
        "iata_from": "JFK",
        "departure_count": 420,
        "arrival_count": 410,
        "destinations_count": 180,
    },
    {
        "name": "Los Angeles International",
        "iata_from": "LAX",
        "departure_count": 390,
        "arrival_count": 400,
        "destinations_count": 150,
    },
    # Too little activity to be indexed
    {
        "name": "Block Island State",
        "iata_from": "BID",
        "departure_count": 2,
        "arrival_count": 1,
        "destinations_count": 1,
    },
    # No destinations served
    {
        "name": "Closed Field",
        "iata_from": "CLF",
        "departure_count": 10,
        "arrival_count": 0,
        "destinations_count": 0,
    },
]

ROUTE_DOCUMENTS = [
    {
        "origin_iata": "JFK",
        "destination_iata": "LAX",
        "has_flight_data": True,
        "flights_per_day": "24 flights",
        "average_duration": "6h 10m",
    },
    {
        "origin_iata": "LAX",
        "destination_iata": "JFK",
        "has_flight_data": True,
        "flights_per_day": "22 flights",
    },
    # Listed routes without departures today
    {
        "origin_iata": "JFK",
        "destination_iata": "BID",
        "has_flight_data": True,
        "flights_per_day": "0 flights",
    },
    {
        "origin_iata": "JFK",
        "destination_iata": None,
        "has_flight_data": True,
        "flights_per_day": "3 flights",
    },
]

DEPARTURE_DOCUMENTS = [
    {"airline_iata": "AA", "origin_iata": "JFK", "destination_iata": "LAX"},
    {"airline_iata": "AA", "origin_iata": "JFK", "destination_iata": "LAX"},
    {"airline_iata": "AA", "origin_iata": "LAX", "destination_iata": "JFK"},
    # Route without flight data
    {"airline_iata": "AA", "origin_iata": "JFK", "destination_iata": "MIA"},
    {"airline_iata": "DL", "origin_iata": "LAX", "destination_iata": "JFK"},
]
