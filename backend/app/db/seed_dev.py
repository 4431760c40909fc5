"""Dev seeding helper: schema, a shared trip and sample bookings for stub auth."""

import asyncio

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from backend.app.db.engine import get_async_engine
from backend.app.db.models import Base, FlightBooking, HotelBooking, Trip

# Bearer token (= user id) to use against a seeded dev database
DEV_USER_ID = "dev-traveler"
DEV_TRIP_ID = "dev-trip"
DEV_FLIGHT_BOOKING_ID = "dev-flight-1"
DEV_HOTEL_BOOKING_ID = "dev-hotel-1"

DEV_FLIGHT_BOOKING = {
    "raw": {
        "data": {
            "id": DEV_FLIGHT_BOOKING_ID,
            "associatedRecords": [{"reference": "DEVREF"}],
            "flightOffers": [
                {
                    "price": {"total": "300.00", "currency": "USD"},
                    "itineraries": [
                        {
                            "segments": [
                                {
                                    "id": "1",
                                    "departure": {"iataCode": "JFK", "at": "2024-05-02T08:30:00"},
                                    "arrival": {"iataCode": "CDG", "at": "2024-05-02T20:45:00"},
                                    "carrierCode": "AF",
                                    "number": "007",
                                },
                                {
                                    "id": "2",
                                    "departure": {"iataCode": "CDG", "at": "2024-05-02T22:10:00"},
                                    "arrival": {"iataCode": "NCE", "at": "2024-05-02T23:40:00"},
                                    "carrierCode": "AF",
                                    "number": "7700",
                                },
                            ]
                        }
                    ],
                }
            ],
        }
    }
}

DEV_HOTEL_BOOKING = {
    "amadeusResponse": {
        "data": {
            "id": DEV_HOTEL_BOOKING_ID,
            "hotelBookings": [
                {
                    "hotel": {
                        "name": "Hotel Negresco",
                        "contact": {
                            "address": {"lines": ["37 Promenade des Anglais"], "cityName": "Nice"}
                        },
                    },
                    "hotelOffer": {
                        "checkInDate": "2024-05-03",
                        "checkOutDate": "2024-05-06",
                        "price": {"total": "540.00", "currency": "USD"},
                    },
                }
            ],
        }
    }
}


async def seed_dev_data(engine: AsyncEngine | None = None) -> None:
    """Create tables and seed the dev trip and bookings.

    This function is idempotent - safe to run multiple times.
    """
    engine = engine or get_async_engine()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSession(engine) as session:
        if await session.get(Trip, DEV_TRIP_ID) is None:
            print(f"Creating dev trip {DEV_TRIP_ID}...")
            session.add(
                Trip(trip_id=DEV_TRIP_ID, owner_id=DEV_USER_ID, accepted=[DEV_USER_ID], max_members=4)
            )
        else:
            print(f"Dev trip already exists: {DEV_TRIP_ID}")

        if await session.get(FlightBooking, DEV_FLIGHT_BOOKING_ID) is None:
            session.add(
                FlightBooking(
                    booking_id=DEV_FLIGHT_BOOKING_ID, user_id=DEV_USER_ID, data=DEV_FLIGHT_BOOKING
                )
            )

        if await session.get(HotelBooking, DEV_HOTEL_BOOKING_ID) is None:
            session.add(
                HotelBooking(
                    booking_id=DEV_HOTEL_BOOKING_ID, user_id=DEV_USER_ID, data=DEV_HOTEL_BOOKING
                )
            )

        await session.commit()
        print("✅ Dev seeding complete")


if __name__ == "__main__":
    asyncio.run(seed_dev_data())
