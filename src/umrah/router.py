from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional

from src import models
from src.auth import permissions
from src.auth.dependencies import get_current_user, require_capability
from src.database import get_db
from src.umrah.schemas import (
    GroupTicket, GroupTicketCreate, GroupTicketList, PackageStatus, SeatCount, UmrahPackage,
    UmrahPackageCreate
)
from src.umrah.service import UmrahService

router = APIRouter(dependencies=[Depends(get_current_user)])

# Packages
@router.get("/packages", response_model=List[UmrahPackage])
def get_packages(
    package_status: Optional[PackageStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    return UmrahService.list_packages(db, package_status.value if package_status else None)

@router.post("/packages", response_model=UmrahPackage, status_code=status.HTTP_201_CREATED)
def create_package(
    package: UmrahPackageCreate,
    current_user: models.User = Depends(require_capability(permissions.UMRAH_WRITE)),
    db: Session = Depends(get_db)
):
    return UmrahService.create_package(db, package, current_user)

# Group Tickets
@router.get("/group-tickets", response_model=GroupTicketList)
def get_group_tickets(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db)
):
    groups, total = UmrahService.list_group_tickets(db, limit=limit, offset=offset)
    return {"group_tickets": groups, "total": total}

@router.post(
    "/group-tickets",
    response_model=GroupTicket,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_capability(permissions.UMRAH_WRITE))],
)
def create_group_ticket(group: GroupTicketCreate, db: Session = Depends(get_db)):
    """Open a pool of seats for a package"""
    return UmrahService.create_group_ticket(db, group)

@router.post("/group-tickets/{group_id}/sell", response_model=GroupTicket)
def sell_group_seats(group_id: int, seats: SeatCount, db: Session = Depends(get_db)):
    return UmrahService.sell_seats(db, group_id, seats.count)

@router.post("/group-tickets/{group_id}/release", response_model=GroupTicket)
def release_group_seats(group_id: int, seats: SeatCount, db: Session = Depends(get_db)):
    return UmrahService.release_seats(db, group_id, seats.count)
