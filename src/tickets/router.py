from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session
from typing import List, Optional

from src import models
from src.auth import permissions
from src.auth.dependencies import get_current_user, require_capability
from src.database import get_db
from src.exceptions import ForbiddenError, ValidationError
from src.tickets.locking import LockService
from src.tickets.schemas import (
    DashboardStats, LockReclaimResult, TicketList, TicketLockRequest, TicketStatus,
    TicketStatusUpdate, TicketWithBatch
)
from src.tickets.service import TicketService
from src.tickets.sweeper import sweep_once

router = APIRouter()

# Inventory Queries
@router.get("/dashboard/stats", response_model=DashboardStats)
def get_dashboard_stats(
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Inventory and booking counters"""
    return TicketService.get_dashboard_stats(db)

@router.get("/", response_model=TicketList)
def get_tickets(
    country: Optional[str] = Query(None, min_length=2, max_length=2, description="Filter by country code"),
    ticket_status: Optional[TicketStatus] = Query(None, alias="status", description="Filter by status"),
    batch_id: Optional[int] = Query(None, description="Filter by batch"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    tickets, total = TicketService.list_tickets(
        db,
        country_code=country,
        status=ticket_status.value if ticket_status else None,
        batch_id=batch_id,
        limit=limit,
        offset=offset,
    )
    return {"tickets": tickets, "total": total}

@router.get("/all", response_model=TicketList)
def get_all_tickets(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Every ticket regardless of status"""
    tickets, total = TicketService.list_tickets(db, limit=limit, offset=offset)
    return {"tickets": tickets, "total": total}

@router.get("/country/{code}", response_model=TicketList)
def get_tickets_by_country(
    code: str,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Available tickets for a country, earliest flight first"""
    tickets = TicketService.get_available_tickets_by_country(db, code)
    return {"tickets": tickets, "total": len(tickets)}

# Locks
@router.post("/locks/reclaim", response_model=LockReclaimResult)
def reclaim_expired_locks(
    request: Request,
    current_user: models.User = Depends(require_capability(permissions.LOCKS_RECLAIM)),
):
    """Run the expiry sweep now"""
    return sweep_once(request.app.state.session_factory)

@router.get("/{ticket_id}", response_model=TicketWithBatch)
def get_ticket(
    ticket_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return TicketService.get_ticket(db, ticket_id)

@router.post("/{ticket_id}/lock", response_model=TicketWithBatch)
def lock_ticket(
    ticket_id: int,
    lock_request: Optional[TicketLockRequest] = None,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Hold an available ticket for the caller"""
    duration = lock_request.duration_minutes if lock_request else None
    return LockService.lock_ticket(db, ticket_id, current_user, duration)

@router.post("/{ticket_id}/unlock", response_model=TicketWithBatch)
def unlock_ticket(
    ticket_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Release a lock; managers may release anyone's"""
    return LockService.unlock_ticket(
        db,
        ticket_id,
        current_user,
        release_any=permissions.has_capability(current_user.role, permissions.TICKETS_RELEASE_ANY),
    )

@router.patch("/{ticket_id}/status", response_model=TicketWithBatch)
def update_ticket_status(
    ticket_id: int,
    update: TicketStatusUpdate,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Status changes that do not go through a booking"""
    if update.status == TicketStatus.LOCKED:
        return LockService.lock_ticket(db, ticket_id, current_user, update.duration_minutes)

    if update.status == TicketStatus.AVAILABLE:
        return LockService.unlock_ticket(
            db,
            ticket_id,
            current_user,
            release_any=permissions.has_capability(current_user.role, permissions.TICKETS_RELEASE_ANY),
        )

    if update.status == TicketStatus.CANCELLED:
        if not permissions.has_capability(current_user.role, permissions.TICKETS_CANCEL):
            raise ForbiddenError("Not enough permissions")
        return TicketService.cancel_ticket(db, ticket_id, current_user)

    raise ValidationError(f"Tickets become {update.status.value} through the bookings endpoints")
