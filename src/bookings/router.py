from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from src import models
from src.auth import permissions
from src.auth.dependencies import get_current_user
from src.bookings.booking_service import BookingService
from src.bookings.schemas import (
    Booking, BookingCancellation, BookingCreate, BookingList, BookingStatus, BookingStatusUpdate
)
from src.database import get_db

router = APIRouter()

@router.get("/", response_model=BookingList)
def get_bookings(
    booking_status: Optional[BookingStatus] = Query(None, alias="status", description="Filter by booking status"),
    mine: bool = Query(False, description="Only bookings created by the caller"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List bookings, newest first"""
    booking_service = BookingService(db)
    bookings, total = booking_service.list_bookings(
        status=booking_status,
        created_by=current_user.id if mine else None,
        limit=limit,
        offset=offset,
    )
    return {"bookings": bookings, "total": total}

@router.post("/", response_model=Booking, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Book an available ticket, or one the caller has locked"""
    return BookingService(db).create_booking(request, current_user)

@router.get("/{booking_id}", response_model=Booking)
def get_booking(
    booking_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return BookingService(db).get_booking(booking_id)

@router.patch("/{booking_id}/status", response_model=Booking)
def update_booking_status(
    booking_id: int,
    update: BookingStatusUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Confirm (ticket becomes sold) or cancel (ticket back on sale, booking kept)"""
    return BookingService(db).update_status(
        booking_id,
        update.status,
        current_user,
        cancel_any=permissions.has_capability(current_user.role, permissions.BOOKINGS_CANCEL_ANY),
    )

@router.delete("/{booking_id}", response_model=BookingCancellation)
def cancel_booking(
    booking_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel and remove a booking; its ticket returns to available"""
    booking = BookingService(db).cancel_booking(
        booking_id,
        current_user,
        cancel_any=permissions.has_capability(current_user.role, permissions.BOOKINGS_CANCEL_ANY),
    )
    ticket = db.get(models.Ticket, booking.ticket_id, populate_existing=True)
    return BookingCancellation(
        message="Booking cancelled",
        booking_id=booking.id,
        ticket_id=booking.ticket_id,
        ticket_status=ticket.status,
    )
