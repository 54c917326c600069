from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

class BookingStatus(str, Enum):
    """Booking status enumeration"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

class PaymentType(str, Enum):
    FULL = "full"
    PARTIAL = "partial"

# Passenger & Agent Information
class PassengerInfo(BaseModel):
    """Traveller the ticket is booked for"""
    name: str = Field(..., min_length=1)
    passport_number: Optional[str] = None
    nationality: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    date_of_birth: Optional[str] = None

class AgentInfo(BaseModel):
    """Selling agent"""
    name: str = Field(..., min_length=1)
    agency: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

# Request Models
class BookingCreate(BaseModel):
    """Request to book one ticket"""
    ticket_id: int
    passenger_info: PassengerInfo
    agent_info: Optional[AgentInfo] = None
    selling_price: Optional[Decimal] = Field(
        None, ge=0, max_digits=10, decimal_places=2, description="Defaults to the ticket's selling price"
    )
    payment_type: PaymentType = PaymentType.FULL
    comments: Optional[str] = None
    expires_at: Optional[datetime] = Field(None, description="Defaults to the configured booking expiry")

class BookingStatusUpdate(BaseModel):
    status: BookingStatus

# Response Models
class Booking(BaseModel):
    id: int
    ticket_id: int
    agent_info: Optional[Dict[str, Any]] = None
    passenger_info: Optional[Dict[str, Any]] = None
    selling_price: Decimal
    payment_type: PaymentType
    status: BookingStatus
    comments: Optional[str] = None
    created_by: int
    confirmed_by: Optional[int] = None
    confirmed_at: Optional[datetime] = None
    expires_at: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class BookingList(BaseModel):
    bookings: List[Booking]
    total: int

class BookingCancellation(BaseModel):
    message: str
    booking_id: int
    ticket_id: int
    ticket_status: str
