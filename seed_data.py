#!/usr/bin/env python3

from datetime import date, time, timedelta
from decimal import Decimal

from src.auth.service import UserService
from src.batches.schemas import TicketBatchCreate
from src.batches.service import BatchService
from src.config import settings
from src.database import create_db_engine, create_session_factory, init_db
from src.models import Airline, Country

COUNTRIES = [
    ("SA", "Saudi Arabia", "🇸🇦"),
    ("AE", "United Arab Emirates", "🇦🇪"),
    ("QA", "Qatar", "🇶🇦"),
    ("KW", "Kuwait", "🇰🇼"),
    ("OM", "Oman", "🇴🇲"),
    ("BH", "Bahrain", "🇧🇭"),
    ("MY", "Malaysia", "🇲🇾"),
    ("SG", "Singapore", "🇸🇬"),
]

AIRLINES = [
    ("Biman Bangladesh Airlines", "BD"),
    ("US-Bangla Airlines", "BD"),
    ("Saudia", "SA"),
    ("Emirates", "AE"),
    ("Qatar Airways", "QA"),
    ("Kuwait Airways", "KW"),
    ("Malaysia Airlines", "MY"),
]


def create_seed_data():
    engine = create_db_engine(settings.database_url, echo=settings.SQL_ECHO)
    init_db(engine)
    SessionLocal = create_session_factory(engine)
    db = SessionLocal()

    try:
        print("🚀 Creating seed data for BD TicketPro...")

        # 1. Default users
        print("Creating default users...")
        created_users = UserService.ensure_default_users(db)

        # 2. Countries
        print("Creating countries...")
        existing_codes = {code for (code,) in db.query(Country.code).all()}
        countries = [
            Country(code=code, name=name, flag_emoji=flag)
            for code, name, flag in COUNTRIES
            if code not in existing_codes
        ]
        db.add_all(countries)

        # 3. Airlines
        print("Creating airlines...")
        existing_airlines = {name for (name,) in db.query(Airline.name).all()}
        airlines = [
            Airline(name=name, country_code=code)
            for name, code in AIRLINES
            if name not in existing_airlines
        ]
        db.add_all(airlines)
        db.commit()

        # 4. Demo batch, only on an empty inventory
        batches_issued = 0
        _, batch_total = BatchService.list_batches(db, limit=1)
        if batch_total == 0:
            print("Issuing a demo ticket batch...")
            admin = UserService.get_user_by_username(db, "admin")
            saudia = db.query(Airline).filter(Airline.name == "Saudia").first()
            BatchService.issue_batch(
                db,
                TicketBatchCreate(
                    country_code="SA",
                    airline_id=saudia.id if saudia else None,
                    flight_date=date.today() + timedelta(days=30),
                    flight_time=time(10, 30),
                    buying_price=Decimal("450.00"),
                    quantity=10,
                    agent_name="Demo Travel Agency",
                    agent_contact="+8801700000000",
                ),
                admin,
            )
            batches_issued = 1

        print("✅ Successfully created seed data for BD TicketPro!")
        print(f"Created:")
        print(f"  - {created_users} users")
        print(f"  - {len(countries)} countries")
        print(f"  - {len(airlines)} airlines")
        print(f"  - {batches_issued} ticket batches")

    except Exception as e:
        print(f"❌ Error creating seed data: {e}")
        db.rollback()
        raise
    finally:
        db.close()
        engine.dispose()

if __name__ == "__main__":
    create_seed_data()
