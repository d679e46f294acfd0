"""
Seed a fresh database with what the engine needs to run end to end:
default leave types, a head-office location, one admin employee and the
national holidays for the given year.

    python scripts/seed_reference_data.py --year 2024
"""
import argparse
from datetime import date, time

from hrms.core.init_system import seed_leave_types
from hrms.database import init_db, session_scope
from hrms.models.employee import Employee, EmployeeRole
from hrms.models.holiday import Holiday
from hrms.models.location import Location

PK_HOLIDAYS = [
    (2, 5, "Kashmir Day"),
    (3, 23, "Pakistan Day"),
    (5, 1, "Labour Day"),
    (8, 14, "Independence Day"),
    (11, 9, "Iqbal Day"),
    (12, 25, "Quaid-e-Azam Day"),
]


def seed(year: int):
    init_db()
    with session_scope() as db:
        created = seed_leave_types(db)
        print(f"Leave types created: {created}")

        office = db.query(Location).filter(Location.name == "Head Office").first()
        if not office:
            office = Location(
                name="Head Office",
                country_code="PK",
                latitude=24.8607,
                longitude=67.0011,
                geo_fence_radius_meters=200,
                timezone="Asia/Karachi",
            )
            db.add(office)
            db.flush()
            print("Created location: Head Office")

        admin = db.query(Employee).filter(Employee.employee_code == "ADMIN-001").first()
        if not admin:
            admin = Employee(
                employee_code="ADMIN-001",
                first_name="System",
                last_name="Admin",
                email="admin@example.com",
                role=EmployeeRole.ADMIN,
                location_id=office.id,
                shift_start_time=time(9, 0),
                shift_end_time=time(18, 0),
            )
            db.add(admin)
            print("Created admin employee ADMIN-001")

        existing = {
            h.holiday_date for h in db.query(Holiday).filter(Holiday.country_code == "PK").all()
        }
        added = 0
        for month, day, name in PK_HOLIDAYS:
            holiday_date = date(year, month, day)
            if holiday_date in existing:
                continue
            db.add(Holiday(country_code="PK", holiday_date=holiday_date, name=name))
            added += 1
        print(f"Holidays added for {year}: {added}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed reference data")
    parser.add_argument("--year", type=int, default=date.today().year)
    args = parser.parse_args()
    seed(args.year)
