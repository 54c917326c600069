from sqlalchemy import and_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import List, Optional
from src.models import Airline, Country, Ticket, TicketBatch
from src.countries.schemas import AirlineCreate, CountryCreate
from src.exceptions import ConflictError

class CountryService:
    @staticmethod
    def get_countries(db: Session) -> List[Country]:
        return db.query(Country).order_by(Country.name).all()

    @staticmethod
    def get_country_by_code(db: Session, code: str) -> Optional[Country]:
        return db.query(Country).filter(Country.code == code.upper()).first()

    @staticmethod
    def create_country(db: Session, data: CountryCreate) -> Country:
        country = Country(code=data.code, name=data.name, flag_emoji=data.flag_emoji)
        try:
            db.add(country)
            db.commit()
            db.refresh(country)
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"Country '{data.code}' already exists")
        return country

    @staticmethod
    def get_country_stats(db: Session) -> List[dict]:
        """Available ticket count per country, including countries with none"""
        rows = (
            db.query(
                Country.code,
                Country.name,
                Country.flag_emoji,
                func.count(Ticket.id).label("available_tickets"),
            )
            .outerjoin(TicketBatch, TicketBatch.country_id == Country.id)
            .outerjoin(Ticket, and_(Ticket.batch_id == TicketBatch.id, Ticket.status == "available"))
            .group_by(Country.id, Country.code, Country.name, Country.flag_emoji)
            .order_by(Country.name)
            .all()
        )
        return [
            {
                "code": row.code,
                "name": row.name,
                "flag_emoji": row.flag_emoji,
                "available_tickets": row.available_tickets,
            }
            for row in rows
        ]

    @staticmethod
    def get_airlines(db: Session, country_code: Optional[str] = None) -> List[Airline]:
        query = db.query(Airline)
        if country_code:
            query = query.filter(Airline.country_code == country_code.upper())
        return query.order_by(Airline.name).all()

    @staticmethod
    def get_airline_by_id(db: Session, airline_id: int) -> Optional[Airline]:
        return db.query(Airline).filter(Airline.id == airline_id).first()

    @staticmethod
    def create_airline(db: Session, data: AirlineCreate) -> Airline:
        airline = Airline(name=data.name, country_code=data.country_code)
        db.add(airline)
        db.commit()
        db.refresh(airline)
        return airline
