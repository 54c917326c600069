from pydantic import BaseModel, Field, validator
from typing import Dict, List, Optional
from datetime import date, datetime, time
from decimal import Decimal

class TicketBatchCreate(BaseModel):
    """Request to buy a lot of tickets for one flight"""
    country_code: str = Field(..., min_length=2, max_length=2)
    airline_id: Optional[int] = None
    flight_date: date
    flight_time: Optional[time] = None
    buying_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(..., ge=1, le=1000)
    markup_percentage: Optional[Decimal] = Field(
        None, ge=0, le=1000, description="Overrides the default selling markup"
    )
    agent_name: Optional[str] = None
    agent_contact: Optional[str] = None
    agent_address: Optional[str] = None
    remarks: Optional[str] = None
    document_url: Optional[str] = None

    @validator("country_code")
    def normalize_country_code(cls, v):
        return v.upper()

class TicketBatch(BaseModel):
    id: int
    country_id: int
    airline_id: Optional[int] = None
    flight_date: date
    flight_time: Optional[time] = None
    buying_price: Decimal
    quantity: int
    agent_name: Optional[str] = None
    agent_contact: Optional[str] = None
    agent_address: Optional[str] = None
    remarks: Optional[str] = None
    document_url: Optional[str] = None
    created_by: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

class TicketBatchDetail(TicketBatch):
    country_code: str
    airline_name: Optional[str] = None
    status_counts: Dict[str, int]

class TicketBatchList(BaseModel):
    batches: List[TicketBatch]
    total: int
