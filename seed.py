"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 8 sample users (4 drivers, 4 passengers)
  - 4 vehicles, one per driver
  - 5 upcoming rides between Pune and Mumbai, some with waypoints
  - 3 bookings on those rides
"""

import asyncio
from datetime import timedelta

from sqlalchemy import text

from carpool.domain.entities import Location, Waypoint
from carpool.domain.enums import BookingStatus, PaymentStatus, RideType
from carpool.domain.pricing import booking_amount, estimate_route_km
from carpool.infrastructure.database import async_session_factory, engine
from carpool.infrastructure.models import BookingModel, UserModel, VehicleModel
from carpool.infrastructure.repositories import BookingRepository, RideRepository
from carpool.services.base import utcnow

PUNE = Location(18.5204, 73.8567, "Pune Station", city="Pune", country="India")
LONAVALA = Location(18.7546, 73.4062, "Lonavala", city="Lonavala", country="India")
PANVEL = Location(18.9894, 73.1175, "Panvel", city="Panvel", country="India")
MUMBAI = Location(19.0760, 72.8777, "Mumbai Central", city="Mumbai", country="India")
THANE = Location(19.2183, 72.9781, "Thane", city="Thane", country="India")


USERS = [
    {"name": "Aarav Sharma", "email": "aarav@example.com"},
    {"name": "Priya Patel", "email": "priya@example.com"},
    {"name": "Rohan Mehta", "email": "rohan@example.com"},
    {"name": "Sneha Gupta", "email": "sneha@example.com"},
    {"name": "Vikram Singh", "email": "vikram@example.com"},
    {"name": "Ananya Reddy", "email": "ananya@example.com"},
    {"name": "Karan Joshi", "email": "karan@example.com"},
    {"name": "Meera Nair", "email": "meera@example.com"},
]

VEHICLES = [
    {"vehicle_number": "MH12AB1234", "vehicle_name": "Swift Dzire", "capacity": 4},
    {"vehicle_number": "MH14CD5678", "vehicle_name": "Innova Crysta", "capacity": 7},
    {"vehicle_number": "MH01EF9012", "vehicle_name": "Honda City", "capacity": 4},
    {"vehicle_number": "MH04GH3456", "vehicle_name": "Ertiga", "capacity": 6},
]


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM users"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

        # ── Users ─────────────────────────────────────────────────────
        user_models = []
        for i, u in enumerate(USERS, start=1):
            m = UserModel(uid=f"seed-user-{i}", name=u["name"], email=u["email"])
            session.add(m)
            user_models.append(m)
        await session.flush()
        drivers, passengers = user_models[:4], user_models[4:]
        print(f"  Created {len(user_models)} users")

        # ── Vehicles ──────────────────────────────────────────────────
        vehicle_models = []
        for driver, v in zip(drivers, VEHICLES):
            m = VehicleModel(owner_id=driver.id, **v)
            session.add(m)
            vehicle_models.append(m)
        await session.flush()
        print(f"  Created {len(vehicle_models)} vehicles")

        # ── Rides ─────────────────────────────────────────────────────
        now = utcnow()
        rides_data = [
            {"driver": 0, "pickup": PUNE, "destination": MUMBAI,
             "waypoints": [LONAVALA, PANVEL], "hours": 4, "capacity": 3, "price": 450.0},
            {"driver": 1, "pickup": PUNE, "destination": THANE,
             "waypoints": [LONAVALA], "hours": 6, "capacity": 6, "price": 400.0},
            {"driver": 2, "pickup": MUMBAI, "destination": PUNE,
             "waypoints": [], "hours": 24, "capacity": 4, "price": 500.0},
            {"driver": 3, "pickup": PUNE, "destination": PANVEL,
             "waypoints": [], "hours": 30, "capacity": 5, "price": 0.0,
             "price_per_km": 4.5},
            {"driver": 0, "pickup": MUMBAI, "destination": PUNE,
             "waypoints": [PANVEL], "hours": 52, "capacity": 2, "price": 475.0},
        ]

        ride_repo = RideRepository(session)
        ride_models = []
        for r in rides_data:
            stops = [
                Waypoint(w.latitude, w.longitude, w.place_name, stop_order=i)
                for i, w in enumerate(r["waypoints"], start=1)
            ]
            driver = drivers[r["driver"]]
            ride = await ride_repo.create_with_locations(
                driver_id=driver.id,
                vehicle_id=vehicle_models[r["driver"]].id,
                pickup=r["pickup"],
                destination=r["destination"],
                waypoints=stops,
                scheduled_at=now + timedelta(hours=r["hours"]),
                selected_capacity=r["capacity"],
                price=r["price"],
                price_per_km=r.get("price_per_km"),
                estimated_distance_km=estimate_route_km(
                    r["pickup"], r["destination"], stops
                ),
            )
            ride_models.append(ride)
        print(f"  Created {len(ride_models)} rides")

        # ── Bookings ──────────────────────────────────────────────────
        booking_repo = BookingRepository(session)
        bookings_data = [(0, passengers[0], 1), (0, passengers[1], 2), (1, passengers[2], 1)]
        for ride_index, passenger, seats in bookings_data:
            ride = ride_models[ride_index]
            await booking_repo.create(
                BookingModel(
                    ride_id=ride.id,
                    passenger_id=passenger.id,
                    driver_id=ride.driver_id,
                    passenger_count=seats,
                    source=ride.pickup.place_name,
                    destination=ride.destination.place_name,
                    status=BookingStatus.CONFIRMED,
                    payment_status=PaymentStatus.PENDING,
                    payment_amount=booking_amount(ride),
                )
            )
            ride.ride_type = RideType.BOOKED
        print(f"  Created {len(bookings_data)} bookings")

        await session.commit()
        print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
