"""
Database seeding script for development.

Creates a broker, two drivers, the reference data a driver picks at daily
setup and two lease-hauler companies. Run with
`python -m haulage.seed_data` once the database is up.
"""

import asyncio

from sqlalchemy import select

from haulage.app.db.session import AsyncSessionLocal, engine, Base
from haulage.app.models.user import User
from haulage.app.models.enums import UserRole
from haulage.app.models.truck import Truck
from haulage.app.models.job import Job
from haulage.app.models.material import Material
from haulage.app.models.location import Location
from haulage.app.models.activity_enums import LocationKind
from haulage.app.models.company import Company
from haulage.app.models.dispatch import Dispatch, CompanyDispatchAssignment  # noqa: F401
from haulage.app.models.work_day import WorkDay  # noqa: F401
from haulage.app.models.activity import Activity  # noqa: F401
from haulage.app.models.audit_log import AuditLog  # noqa: F401
from haulage.app.core.security import get_password_hash

USERS = [
    ("broker", "broker@haulage.dev", "Bea Broker", UserRole.BROKER, "broker123"),
    ("driver1", "driver1@haulage.dev", "Dan Driver", UserRole.DRIVER, "driver123"),
    ("driver2", "driver2@haulage.dev", "Olga Ortiz", UserRole.DRIVER, "driver123"),
]


async def seed():
    """
    Seed users and reference data.

    Skips everything if the broker account already exists.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        result = await db.execute(select(User).where(User.username == "broker"))
        if result.scalar_one_or_none():
            print("ℹ️  Seed data already present, skipping")
            return

        for username, email, full_name, role, password in USERS:
            db.add(User(
                email=email,
                username=username,
                full_name=full_name,
                hashed_password=get_password_hash(password),
                role=role,
                is_active=True
            ))
            print(f"✅ Created {role.value} user (username: {username}, password: {password})")

        db.add_all([
            Truck(number="T-101", type="Side Dump"),
            Truck(number="T-102", type="Super Side Dump"),
            Truck(number="T-103", type="Tri-Axle"),
            Job(name="I-95 Widening", customer_name="State DOT", status="active"),
            Job(name="Harbor Fill", customer_name="Port Authority", status="active"),
            Material(name="Base Rock", type="A1A", price_per_load=85.0),
            Material(name="Fill Sand", type="Fill", price_per_load=55.0),
            Material(name="Export Fill", type="Export Fill", price_per_load=40.0),
            Location(name="North Pit", address="1200 Quarry Rd", latitude=26.715, longitude=-80.112,
                     kind=LocationKind.SOURCE),
            Location(name="Mile 12 Fill Site", address="I-95 MM 12", latitude=26.902, longitude=-80.208,
                     kind=LocationKind.DESTINATION),
            Company(name="Acme Hauling", contact_phone="555-0100", is_lease_hauler=True),
            Company(name="Coastal Trucking", contact_email="dispatch@coastal.dev", is_lease_hauler=True),
        ])

        await db.commit()

        print("\n🎉 Seeding completed successfully!")
        print("  - BROKER: broker / broker123")
        print("  - DRIVER: driver1, driver2 / driver123")


if __name__ == "__main__":
    asyncio.run(seed())
