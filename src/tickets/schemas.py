from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum

class TicketStatus(str, Enum):
    """Ticket lifecycle status"""
    AVAILABLE = "available"
    LOCKED = "locked"
    BOOKED = "booked"
    SOLD = "sold"
    CANCELLED = "cancelled"

class TicketBatchInfo(BaseModel):
    id: int
    country_code: Optional[str] = None
    airline_name: Optional[str] = None
    flight_date: date
    flight_time: Optional[time] = None
    buying_price: Decimal
    agent_name: Optional[str] = None

    class Config:
        from_attributes = True

class Ticket(BaseModel):
    id: int
    batch_id: int
    ticket_number: Optional[str] = None
    status: TicketStatus
    selling_price: Optional[Decimal] = None
    passenger_info: Optional[Dict[str, Any]] = None
    locked_by: Optional[int] = None
    locked_until: Optional[datetime] = None
    booking_id: Optional[int] = None
    sold_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TicketWithBatch(Ticket):
    batch: Optional[TicketBatchInfo] = None

class TicketList(BaseModel):
    tickets: List[TicketWithBatch]
    total: int

class TicketLockRequest(BaseModel):
    duration_minutes: Optional[int] = Field(None, ge=1, le=1440, description="Defaults to the configured lock duration")

class TicketStatusUpdate(BaseModel):
    status: TicketStatus
    duration_minutes: Optional[int] = Field(None, ge=1, le=1440)

class LockReclaimResult(BaseModel):
    reclaimed_locks: int
    expired_bookings: int

class DashboardStats(BaseModel):
    total_inventory: int
    available_tickets: int
    locked_tickets: int
    booked_tickets: int
    sold_tickets: int
    cancelled_tickets: int
    total_bookings: int
    active_bookings: int
