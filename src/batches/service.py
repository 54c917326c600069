from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from loguru import logger
from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.activity import record_activity
from src.batches.schemas import TicketBatchCreate
from src.config import settings
from src.countries.service import CountryService
from src.exceptions import NotFoundError
from src.models import TICKET_STATUSES, Country, Ticket, TicketBatch, User
from src.utils import to_money


def selling_price_for(buying_price: Decimal, markup_percentage: Optional[Decimal] = None) -> Decimal:
    """Default selling price: buying price plus the markup, rounded to cents"""
    if markup_percentage is None:
        markup_percentage = settings.DEFAULT_MARKUP_PERCENTAGE
    return to_money(Decimal(buying_price) * (Decimal(100) + Decimal(markup_percentage)) / Decimal(100))


def make_ticket_number(country_code: str, batch_id: int, sequence: int) -> str:
    return f"{country_code}{batch_id}-{sequence:04d}"


class BatchService:
    """Issues ticket batches and answers batch queries"""

    @staticmethod
    def issue_batch(db: Session, data: TicketBatchCreate, creator: User) -> TicketBatch:
        """Persist a batch and its ``quantity`` tickets in one transaction.

        Either the batch row and every ticket row are committed, or nothing
        is: any failure rolls the whole unit back and re-raises.
        """
        country = CountryService.get_country_by_code(db, data.country_code)
        if country is None:
            raise NotFoundError(f"Country '{data.country_code}' not found")

        if data.airline_id is not None and CountryService.get_airline_by_id(db, data.airline_id) is None:
            raise NotFoundError(f"Airline {data.airline_id} not found")

        selling_price = selling_price_for(data.buying_price, data.markup_percentage)

        try:
            batch = TicketBatch(
                country_id=country.id,
                airline_id=data.airline_id,
                flight_date=data.flight_date,
                flight_time=data.flight_time,
                buying_price=to_money(data.buying_price),
                quantity=data.quantity,
                agent_name=data.agent_name,
                agent_contact=data.agent_contact,
                agent_address=data.agent_address,
                remarks=data.remarks,
                document_url=data.document_url,
                created_by=creator.id,
            )
            db.add(batch)
            db.flush()

            db.add_all([
                Ticket(
                    batch_id=batch.id,
                    ticket_number=make_ticket_number(country.code, batch.id, sequence),
                    selling_price=selling_price,
                    status="available",
                )
                for sequence in range(1, data.quantity + 1)
            ])
            record_activity(
                db, creator.id, "batch_created",
                f"Batch {batch.id}: {data.quantity} tickets to {country.code} on {data.flight_date}",
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Issuing batch of {data.quantity} tickets to {data.country_code} failed")
            raise

        db.refresh(batch)
        logger.info(
            f"Issued batch {batch.id}: {batch.quantity} tickets at {selling_price} "
            f"to {country.code} by user {creator.id}"
        )
        return batch

    @staticmethod
    def get_batch(db: Session, batch_id: int) -> TicketBatch:
        batch = db.query(TicketBatch).filter(TicketBatch.id == batch_id).first()
        if batch is None:
            raise NotFoundError("Ticket batch not found")
        return batch

    @staticmethod
    def get_status_counts(db: Session, batch_id: int) -> Dict[str, int]:
        counts = {status: 0 for status in TICKET_STATUSES}
        rows = (
            db.query(Ticket.status, func.count(Ticket.id))
            .filter(Ticket.batch_id == batch_id)
            .group_by(Ticket.status)
            .all()
        )
        for status, count in rows:
            counts[status] = count
        return counts

    @staticmethod
    def list_batches(
        db: Session,
        country_code: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[TicketBatch], int]:
        """Newest batches first, optionally for one country"""
        query = db.query(TicketBatch)
        if country_code:
            query = query.join(Country, TicketBatch.country_id == Country.id).filter(
                Country.code == country_code.upper()
            )

        total = query.count()
        batches = (
            query.order_by(TicketBatch.created_at.desc(), TicketBatch.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return batches, total
