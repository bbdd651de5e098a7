"""
Factory Boy payload factories and request helpers shared by the test modules.
"""

import uuid
from datetime import date

import factory
from httpx import AsyncClient


class VehicleFactory(factory.Factory):
    class Meta:
        model = dict

    license_plate = factory.LazyFunction(lambda: f"RD-{uuid.uuid4().hex[:6].upper()}")
    brand = factory.Iterator(["Volkswagen", "Toyota", "Ford", "Renault"])
    model = factory.Iterator(["Golf", "Corolla", "Transit", "Clio"])
    vehicle_type = "passenger"
    fuel = "petrol"
    daily_price = "49.50"
    monthly_price = "899.00"
    current_mileage = factory.Faker("pyint", min_value=1000, max_value=150000)
    gps = False


class CustomerFactory(factory.Factory):
    class Meta:
        model = dict

    name = factory.Faker("company")
    email = factory.LazyFunction(lambda: f"customer-{uuid.uuid4().hex[:8]}@example.com")
    phone = factory.LazyFunction(lambda: f"+31 6 {uuid.uuid4().int % 10**8:08d}")
    customer_type = "individual"
    city = factory.Faker("city")


class DriverFactory(factory.Factory):
    class Meta:
        model = dict

    first_name = factory.Faker("first_name")
    last_name = factory.Faker("last_name")
    email = factory.LazyFunction(lambda: f"driver-{uuid.uuid4().hex[:8]}@example.com")
    is_primary = False


class ExpenseFactory(factory.Factory):
    class Meta:
        model = dict

    category = "maintenance"
    amount = "125.00"
    date = "2024-03-15"
    description = factory.Faker("sentence")


async def make_reservation(
    client: AsyncClient,
    vehicle: dict,
    customer: dict,
    start: date,
    end: date | None,
    **extra,
):
    """POST a reservation and return the raw response."""
    payload = {
        "vehicle_id": vehicle["id"],
        "customer_id": customer["id"],
        "start_date": start.isoformat(),
        "end_date": end.isoformat() if end else None,
        **extra,
    }
    return await client.post("/api/reservations", json=payload)
