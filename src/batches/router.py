from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from src.database import get_db
from src.auth import permissions
from src.auth.dependencies import get_current_user, require_capability
from src.batches.schemas import TicketBatch, TicketBatchCreate, TicketBatchDetail, TicketBatchList
from src.batches.service import BatchService
from src import models

router = APIRouter()

@router.post("/", response_model=TicketBatch, status_code=status.HTTP_201_CREATED)
def create_ticket_batch(
    batch: TicketBatchCreate,
    current_user: models.User = Depends(require_capability(permissions.BATCHES_CREATE)),
    db: Session = Depends(get_db)
):
    """Buy a batch of tickets; one available ticket is created per unit"""
    return BatchService.issue_batch(db, batch, current_user)

@router.get("/", response_model=TicketBatchList)
def get_ticket_batches(
    country: Optional[str] = Query(None, min_length=2, max_length=2, description="Filter by country code"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    batches, total = BatchService.list_batches(db, country_code=country, limit=limit, offset=offset)
    return {"batches": batches, "total": total}

@router.get("/{batch_id}", response_model=TicketBatchDetail)
def get_ticket_batch(
    batch_id: int,
    current_user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Batch details with a per-status ticket count"""
    batch = BatchService.get_batch(db, batch_id)
    detail = TicketBatch.model_validate(batch).model_dump()
    detail.update(
        country_code=batch.country.code,
        airline_name=batch.airline.name if batch.airline else None,
        status_counts=BatchService.get_status_counts(db, batch.id),
    )
    return detail
