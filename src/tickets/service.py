from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy import func, update
from sqlalchemy.orm import Session, joinedload

from src.exceptions import ConflictError, NotFoundError
from src.models import Booking, Country, Ticket, TicketBatch, User

class TicketService:
    @staticmethod
    def get_ticket(db: Session, ticket_id: int) -> Ticket:
        """Fresh copy of the ticket row; NotFoundError if it does not exist"""
        ticket = db.get(Ticket, ticket_id, populate_existing=True)
        if ticket is None:
            raise NotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    @staticmethod
    def list_tickets(
        db: Session,
        country_code: Optional[str] = None,
        status: Optional[str] = None,
        batch_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Ticket], int]:
        """Tickets with their batch, newest first"""
        query = db.query(Ticket).join(TicketBatch, Ticket.batch_id == TicketBatch.id)

        if country_code:
            query = query.join(Country, TicketBatch.country_id == Country.id).filter(
                Country.code == country_code.upper()
            )
        if status:
            query = query.filter(Ticket.status == status)
        if batch_id is not None:
            query = query.filter(Ticket.batch_id == batch_id)

        total = query.count()
        tickets = (
            query.options(joinedload(Ticket.batch).joinedload(TicketBatch.country),
                          joinedload(Ticket.batch).joinedload(TicketBatch.airline))
            .order_by(Ticket.created_at.desc(), Ticket.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return tickets, total

    @staticmethod
    def get_available_tickets_by_country(db: Session, country_code: str) -> List[Ticket]:
        """Available tickets for one country, earliest flight first"""
        return (
            db.query(Ticket)
            .join(TicketBatch, Ticket.batch_id == TicketBatch.id)
            .join(Country, TicketBatch.country_id == Country.id)
            .options(joinedload(Ticket.batch).joinedload(TicketBatch.country),
                     joinedload(Ticket.batch).joinedload(TicketBatch.airline))
            .filter(Country.code == country_code.upper(), Ticket.status == "available")
            .order_by(TicketBatch.flight_date, TicketBatch.flight_time, Ticket.id)
            .all()
        )

    @staticmethod
    def cancel_ticket(db: Session, ticket_id: int, user: User) -> Ticket:
        """Administrative cancellation; terminal for the ticket and its active booking"""
        result = db.execute(
            update(Ticket)
            .where(Ticket.id == ticket_id, Ticket.status != "cancelled")
            .values(status="cancelled", locked_by=None, locked_until=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            TicketService.get_ticket(db, ticket_id)
            raise ConflictError(f"Ticket {ticket_id} is already cancelled")

        db.execute(
            update(Booking)
            .where(Booking.ticket_id == ticket_id, Booking.status != "cancelled")
            .values(status="cancelled")
            .execution_options(synchronize_session=False)
        )
        db.commit()
        logger.info(f"Ticket {ticket_id} cancelled by user {user.id}")
        return TicketService.get_ticket(db, ticket_id)

    @staticmethod
    def get_dashboard_stats(db: Session) -> dict:
        status_counts = dict(
            db.query(Ticket.status, func.count(Ticket.id)).group_by(Ticket.status).all()
        )
        total_bookings = db.query(func.count(Booking.id)).scalar() or 0
        active_bookings = (
            db.query(func.count(Booking.id)).filter(Booking.status != "cancelled").scalar() or 0
        )
        return {
            "total_inventory": sum(status_counts.values()),
            "available_tickets": status_counts.get("available", 0),
            "locked_tickets": status_counts.get("locked", 0),
            "booked_tickets": status_counts.get("booked", 0),
            "sold_tickets": status_counts.get("sold", 0),
            "cancelled_tickets": status_counts.get("cancelled", 0),
            "total_bookings": total_bookings,
            "active_bookings": active_bookings,
        }
