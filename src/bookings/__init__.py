"""
Booking Module

Turns tickets into customer bookings:

- create: claims an available ticket (or one the caller has locked) and
  records the booking in the same transaction
- confirm: booking confirmed, ticket sold
- cancel: ticket back to available; the booking is deleted or kept as
  cancelled
- expiry: pending bookings past their deadline are cancelled by the sweeper
"""

from .booking_service import BookingService
from .schemas import (
    Booking, BookingCreate, BookingStatus, BookingStatusUpdate, PaymentType,
    PassengerInfo, AgentInfo
)

__all__ = [
    "BookingService",
    "Booking",
    "BookingCreate",
    "BookingStatus",
    "BookingStatusUpdate",
    "PaymentType",
    "PassengerInfo",
    "AgentInfo",
]
