from typing import List, Optional, Tuple
from datetime import datetime, timedelta, timezone
from loguru import logger
from sqlalchemy import and_, delete, or_, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.activity import record_activity
from src.bookings.schemas import BookingCreate, BookingStatus
from src.config import settings
from src.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from src.models import Booking, Ticket, User
from src.tickets.service import TicketService
from src.utils import to_money, utcnow


def bookable_by(user_id: int, now: datetime):
    """Available, locked by this user, or locked under an expired lock"""
    return or_(
        Ticket.status == "available",
        and_(
            Ticket.status == "locked",
            or_(Ticket.locked_by == user_id, Ticket.locked_until < now),
        ),
    )


def release_ticket(db: Session, booking: Booking):
    """Send the booking's ticket back to ``available`` if the booking still holds it"""
    return db.execute(
        update(Ticket)
        .where(
            Ticket.id == booking.ticket_id,
            Ticket.booking_id == booking.id,
            Ticket.status.in_(("booked", "sold")),
        )
        .values(status="available", booking_id=None, passenger_info=None, sold_at=None)
        .execution_options(synchronize_session=False)
    )


class BookingService:
    """Service for turning tickets into bookings"""

    def __init__(self, db: Session):
        self.db = db

    def create_booking(self, request: BookingCreate, user: User) -> Booking:
        """Claim the ticket and record the booking in one transaction"""
        now = utcnow()
        expires_at = self._normalize(request.expires_at) if request.expires_at else (
            now + timedelta(hours=settings.BOOKING_EXPIRY_HOURS)
        )
        if expires_at <= now:
            raise ValidationError("Booking expiry must be in the future")

        passenger_info = request.passenger_info.model_dump(mode="json", exclude_none=True)
        agent_info = request.agent_info.model_dump(mode="json", exclude_none=True) if request.agent_info else None

        claimed = self.db.execute(
            update(Ticket)
            .where(Ticket.id == request.ticket_id, bookable_by(user.id, now))
            .values(status="booked", locked_by=None, locked_until=None, passenger_info=passenger_info)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 0:
            self.db.rollback()
            ticket = TicketService.get_ticket(self.db, request.ticket_id)
            if ticket.status == "locked":
                raise ConflictError(f"Ticket {ticket.id} is locked by another user")
            raise ConflictError(f"Ticket {ticket.id} is {ticket.status} and cannot be booked")

        try:
            ticket = TicketService.get_ticket(self.db, request.ticket_id)
            price = request.selling_price if request.selling_price is not None else ticket.selling_price
            if price is None:
                self.db.rollback()
                raise ValidationError("Ticket has no selling price; provide one")

            booking = Booking(
                ticket_id=ticket.id,
                agent_info=agent_info,
                passenger_info=passenger_info,
                selling_price=to_money(price),
                payment_type=request.payment_type.value,
                status=BookingStatus.PENDING.value,
                comments=request.comments,
                created_by=user.id,
                expires_at=expires_at,
            )
            self.db.add(booking)
            self.db.flush()

            self.db.execute(
                update(Ticket)
                .where(Ticket.id == ticket.id)
                .values(booking_id=booking.id)
                .execution_options(synchronize_session=False)
            )
            record_activity(self.db, user.id, "booking_created", f"Booking {booking.id} for ticket {ticket.id}")
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.exception(f"Booking ticket {request.ticket_id} failed")
            raise

        logger.info(f"Ticket {ticket.id} booked as booking {booking.id} by user {user.id}")
        return self.get_booking(booking.id)

    def confirm_booking(self, booking_id: int, user: User) -> Booking:
        """Confirm a pending booking; its ticket becomes ``sold``"""
        booking = self.get_booking(booking_id)
        now = utcnow()

        confirmed = self.db.execute(
            update(Booking)
            .where(
                Booking.id == booking_id,
                Booking.status == BookingStatus.PENDING.value,
                Booking.expires_at > now,
            )
            .values(status=BookingStatus.CONFIRMED.value, confirmed_at=now, confirmed_by=user.id)
            .execution_options(synchronize_session=False)
        )
        if confirmed.rowcount == 0:
            self.db.rollback()
            booking = self.get_booking(booking_id)
            if booking.status != BookingStatus.PENDING.value:
                raise ConflictError(f"Booking cannot be confirmed. Status: {booking.status}")
            raise ConflictError("Booking has expired")

        sold = self.db.execute(
            update(Ticket)
            .where(
                Ticket.id == booking.ticket_id,
                Ticket.booking_id == booking_id,
                Ticket.status == "booked",
            )
            .values(status="sold", sold_at=now)
            .execution_options(synchronize_session=False)
        )
        if sold.rowcount == 0:
            self.db.rollback()
            raise ConflictError(f"Ticket {booking.ticket_id} is no longer held by booking {booking_id}")

        record_activity(self.db, user.id, "booking_confirmed", f"Booking {booking_id} confirmed")
        self.db.commit()
        logger.info(f"Booking {booking_id} confirmed by user {user.id}; ticket {booking.ticket_id} sold")
        return self.get_booking(booking_id)

    def cancel_booking(
        self,
        booking_id: int,
        user: User,
        cancel_any: bool = False,
        remove: bool = True,
    ) -> Booking:
        """Cancel a booking and put its ticket back on sale.

        With ``remove`` the booking row is deleted, otherwise it stays with
        status ``cancelled``. A booking that is already cancelled can still
        be removed; its ticket was dealt with when it was cancelled.
        Returns the booking as it was at cancellation.
        """
        booking = self.get_booking(booking_id)
        if not cancel_any and booking.created_by != user.id:
            raise ForbiddenError("Only the booking's creator or a manager can cancel it")

        cancelled = self.db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status != BookingStatus.CANCELLED.value)
            .values(status=BookingStatus.CANCELLED.value)
            .execution_options(synchronize_session=False)
        )
        if cancelled.rowcount:
            release_ticket(self.db, booking)
        elif not remove:
            self.db.rollback()
            raise ConflictError("Booking is already cancelled")

        if remove:
            # A cancelled ticket may still point at the booking being removed
            self.db.execute(
                update(Ticket)
                .where(Ticket.id == booking.ticket_id, Ticket.booking_id == booking_id)
                .values(booking_id=None)
                .execution_options(synchronize_session=False)
            )
            self.db.execute(
                delete(Booking)
                .where(Booking.id == booking_id)
                .execution_options(synchronize_session=False)
            )

        record_activity(self.db, user.id, "booking_cancelled", f"Booking {booking_id} cancelled")
        self.db.commit()
        logger.info(f"Booking {booking_id} cancelled by user {user.id}")

        if not remove:
            return self.get_booking(booking_id)

        # The row is gone; hand back a detached snapshot
        self.db.expunge(booking)
        booking.status = BookingStatus.CANCELLED.value
        return booking

    def update_status(self, booking_id: int, status: BookingStatus, user: User, cancel_any: bool = False) -> Booking:
        if status == BookingStatus.CONFIRMED:
            return self.confirm_booking(booking_id, user)
        if status == BookingStatus.CANCELLED:
            return self.cancel_booking(booking_id, user, cancel_any=cancel_any, remove=False)
        raise ValidationError("A booking cannot be moved back to pending")

    def expire_stale_bookings(self, now: Optional[datetime] = None) -> int:
        """Cancel pending bookings past their expiry and release their tickets"""
        now = now or utcnow()
        stale = (
            self.db.query(Booking)
            .filter(Booking.status == BookingStatus.PENDING.value, Booking.expires_at < now)
            .all()
        )

        expired = 0
        for booking in stale:
            result = self.db.execute(
                update(Booking)
                .where(
                    Booking.id == booking.id,
                    Booking.status == BookingStatus.PENDING.value,
                    Booking.expires_at < now,
                )
                .values(status=BookingStatus.CANCELLED.value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                release_ticket(self.db, booking)
                expired += 1

        self.db.commit()
        if expired:
            logger.info(f"Expired {expired} stale pending bookings")
        return expired

    def get_booking(self, booking_id: int) -> Booking:
        booking = self.db.get(Booking, booking_id, populate_existing=True)
        if booking is None:
            raise NotFoundError("Booking not found")
        return booking

    def list_bookings(
        self,
        status: Optional[BookingStatus] = None,
        created_by: Optional[int] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Booking], int]:
        """Newest bookings first"""
        query = self.db.query(Booking)
        if status:
            query = query.filter(Booking.status == status.value)
        if created_by is not None:
            query = query.filter(Booking.created_by == created_by)

        total = query.count()
        bookings = (
            query.order_by(Booking.created_at.desc(), Booking.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return bookings, total

    @staticmethod
    def _normalize(value: datetime) -> datetime:
        """Naive datetimes are taken as UTC"""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
