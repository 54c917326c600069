from pydantic import BaseModel, Field, validator
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

class RoomType(str, Enum):
    SINGLE = "single"
    DOUBLE = "double"
    TRIPLE = "triple"

class PackageStatus(str, Enum):
    ACTIVE = "active"
    UPCOMING = "upcoming"
    COMPLETED = "completed"

class UmrahPackageCreate(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    departure_date: date
    return_date: date
    hotel_name: Optional[str] = None
    hotel_location: Optional[str] = None
    room_type: RoomType = RoomType.DOUBLE
    price_per_person: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    status: PackageStatus = PackageStatus.UPCOMING

    @validator("return_date")
    def return_after_departure(cls, v, values):
        departure = values.get("departure_date")
        if departure and v < departure:
            raise ValueError("Return date must not be before departure date")
        return v

class UmrahPackage(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    departure_date: date
    return_date: date
    hotel_name: Optional[str] = None
    hotel_location: Optional[str] = None
    room_type: RoomType
    price_per_person: Decimal
    status: PackageStatus
    created_by: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class GroupTicketCreate(BaseModel):
    package_id: int
    ticket_count: int = Field(..., ge=1, le=1000)

class SeatCount(BaseModel):
    count: int = Field(1, ge=1)

class GroupTicket(BaseModel):
    id: int
    package_id: int
    package_name: Optional[str] = None
    ticket_count: int
    available_count: int
    sold_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class GroupTicketList(BaseModel):
    group_tickets: List[GroupTicket]
    total: int
