"""Time-boxed ticket locks.

Every transition here is a single conditional UPDATE; the database decides
the winner when two callers race for the same row.
"""

from datetime import datetime, timedelta
from typing import Optional

from loguru import logger
from sqlalchemy import and_, or_, update
from sqlalchemy.orm import Session

from src.config import settings
from src.exceptions import ConflictError, ValidationError
from src.models import Ticket, User
from src.tickets.service import TicketService
from src.utils import utcnow

MAX_LOCK_MINUTES = 1440


def lockable(now: datetime):
    """Available, or locked with a lock that has already run out"""
    return or_(
        Ticket.status == "available",
        and_(Ticket.status == "locked", Ticket.locked_until < now),
    )


class LockService:
    @staticmethod
    def lock_ticket(
        db: Session,
        ticket_id: int,
        user: User,
        duration_minutes: Optional[int] = None,
    ) -> Ticket:
        """Lock an available ticket for ``user``; ConflictError if it is not available"""
        duration = settings.LOCK_DURATION_MINUTES if duration_minutes is None else duration_minutes
        if not 1 <= duration <= MAX_LOCK_MINUTES:
            raise ValidationError(f"Lock duration must be between 1 and {MAX_LOCK_MINUTES} minutes")
        now = utcnow()

        result = db.execute(
            update(Ticket)
            .where(Ticket.id == ticket_id, lockable(now))
            .values(status="locked", locked_by=user.id, locked_until=now + timedelta(minutes=duration))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            ticket = TicketService.get_ticket(db, ticket_id)
            raise ConflictError(f"Ticket {ticket_id} is {ticket.status} and cannot be locked")

        db.commit()
        logger.info(f"Ticket {ticket_id} locked by user {user.id} for {duration} minutes")
        return TicketService.get_ticket(db, ticket_id)

    @staticmethod
    def unlock_ticket(db: Session, ticket_id: int, user: User, release_any: bool = False) -> Ticket:
        """Release a lock held by ``user`` (or by anyone when ``release_any``)"""
        conditions = [Ticket.id == ticket_id, Ticket.status == "locked"]
        if not release_any:
            conditions.append(Ticket.locked_by == user.id)

        result = db.execute(
            update(Ticket)
            .where(*conditions)
            .values(status="available", locked_by=None, locked_until=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            ticket = TicketService.get_ticket(db, ticket_id)
            if ticket.status == "locked":
                raise ConflictError(f"Ticket {ticket_id} is locked by another user")
            raise ConflictError(f"Ticket {ticket_id} is {ticket.status}, not locked")

        db.commit()
        logger.info(f"Ticket {ticket_id} unlocked by user {user.id}")
        return TicketService.get_ticket(db, ticket_id)

    @staticmethod
    def reclaim_expired_locks(db: Session, now: Optional[datetime] = None) -> int:
        """Return every ticket whose lock has run out to ``available``"""
        now = now or utcnow()
        result = db.execute(
            update(Ticket)
            .where(Ticket.status == "locked", Ticket.locked_until < now)
            .values(status="available", locked_by=None, locked_until=None)
            .execution_options(synchronize_session=False)
        )
        db.commit()

        if result.rowcount:
            logger.info(f"Reclaimed {result.rowcount} expired ticket locks")
        return result.rowcount
