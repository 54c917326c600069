from typing import List, Optional, Tuple

from loguru import logger
from sqlalchemy import update
from sqlalchemy.orm import Session, joinedload

from src.exceptions import ConflictError, NotFoundError
from src.models import UmrahGroupTicket, UmrahPackage, User
from src.umrah.schemas import GroupTicketCreate, UmrahPackageCreate
from src.utils import to_money

class UmrahService:
    """Umrah packages and their pooled group tickets"""

    @staticmethod
    def create_package(db: Session, data: UmrahPackageCreate, creator: User) -> UmrahPackage:
        package = UmrahPackage(
            name=data.name,
            description=data.description,
            departure_date=data.departure_date,
            return_date=data.return_date,
            hotel_name=data.hotel_name,
            hotel_location=data.hotel_location,
            room_type=data.room_type.value,
            price_per_person=to_money(data.price_per_person),
            status=data.status.value,
            created_by=creator.id,
        )
        db.add(package)
        db.commit()
        db.refresh(package)
        return package

    @staticmethod
    def list_packages(db: Session, status: Optional[str] = None) -> List[UmrahPackage]:
        query = db.query(UmrahPackage)
        if status:
            query = query.filter(UmrahPackage.status == status)
        return query.order_by(UmrahPackage.departure_date, UmrahPackage.id).all()

    @staticmethod
    def get_package(db: Session, package_id: int) -> UmrahPackage:
        package = db.get(UmrahPackage, package_id)
        if package is None:
            raise NotFoundError(f"Umrah package {package_id} not found")
        return package

    @staticmethod
    def create_group_ticket(db: Session, data: GroupTicketCreate) -> UmrahGroupTicket:
        """A pool of seats for a package; every seat starts available"""
        UmrahService.get_package(db, data.package_id)
        group = UmrahGroupTicket(
            package_id=data.package_id,
            ticket_count=data.ticket_count,
            available_count=data.ticket_count,
            sold_count=0,
        )
        db.add(group)
        db.commit()
        db.refresh(group)
        return group

    @staticmethod
    def list_group_tickets(db: Session, limit: int = 50, offset: int = 0) -> Tuple[List[UmrahGroupTicket], int]:
        query = db.query(UmrahGroupTicket)
        total = query.count()
        groups = (
            query.options(joinedload(UmrahGroupTicket.package))
            .order_by(UmrahGroupTicket.created_at.desc(), UmrahGroupTicket.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )
        return groups, total

    @staticmethod
    def get_group_ticket(db: Session, group_id: int) -> UmrahGroupTicket:
        group = db.get(UmrahGroupTicket, group_id, populate_existing=True)
        if group is None:
            raise NotFoundError(f"Umrah group ticket {group_id} not found")
        return group

    @staticmethod
    def sell_seats(db: Session, group_id: int, count: int) -> UmrahGroupTicket:
        """Move ``count`` seats from available to sold, all or nothing"""
        result = db.execute(
            update(UmrahGroupTicket)
            .where(UmrahGroupTicket.id == group_id, UmrahGroupTicket.available_count >= count)
            .values(
                available_count=UmrahGroupTicket.available_count - count,
                sold_count=UmrahGroupTicket.sold_count + count,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            group = UmrahService.get_group_ticket(db, group_id)
            raise ConflictError(f"Only {group.available_count} seats available")

        db.commit()
        logger.info(f"Sold {count} seats from Umrah group {group_id}")
        return UmrahService.get_group_ticket(db, group_id)

    @staticmethod
    def release_seats(db: Session, group_id: int, count: int) -> UmrahGroupTicket:
        """Return ``count`` sold seats to the available pool"""
        result = db.execute(
            update(UmrahGroupTicket)
            .where(UmrahGroupTicket.id == group_id, UmrahGroupTicket.sold_count >= count)
            .values(
                available_count=UmrahGroupTicket.available_count + count,
                sold_count=UmrahGroupTicket.sold_count - count,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            db.rollback()
            group = UmrahService.get_group_ticket(db, group_id)
            raise ConflictError(f"Only {group.sold_count} seats have been sold")

        db.commit()
        logger.info(f"Released {count} seats back to Umrah group {group_id}")
        return UmrahService.get_group_ticket(db, group_id)
