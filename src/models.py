from sqlalchemy import (
    Column, Integer, BigInteger, String, DateTime, Date, Time, Text, ForeignKey,
    Numeric, JSON, CheckConstraint, Index, text
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from src.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY
BigIntId = BigInteger().with_variant(Integer, "sqlite")

USER_ROLES = ("admin", "manager", "staff")
USER_STATUSES = ("active", "inactive")
TICKET_STATUSES = ("available", "locked", "booked", "sold", "cancelled")
BOOKING_STATUSES = ("pending", "confirmed", "cancelled")
PAYMENT_TYPES = ("full", "partial")
ROOM_TYPES = ("single", "double", "triple")
PACKAGE_STATUSES = ("active", "upcoming", "completed")


def _in(column: str, values) -> str:
    quoted = ", ".join(f"'{v}'" for v in values)
    return f"{column} IN ({quoted})"


# ================================
# Users
# ================================
class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(_in("role", USER_ROLES), name="ck_users_role"),
        CheckConstraint(_in("status", USER_STATUSES), name="ck_users_status"),
    )

    id = Column(BigIntId, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    email = Column(String(255))
    phone = Column(String(50))
    role = Column(String(20), nullable=False, default="staff")
    status = Column(String(20), nullable=False, default="active")
    last_login = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    batches = relationship("TicketBatch", back_populates="creator")
    bookings = relationship("Booking", back_populates="creator", foreign_keys="Booking.created_by")

# ================================
# Countries & Airlines
# ================================
class Country(Base):
    __tablename__ = "countries"

    id = Column(BigIntId, primary_key=True, index=True)
    code = Column(String(2), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    flag_emoji = Column(String(16))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    batches = relationship("TicketBatch", back_populates="country")

class Airline(Base):
    __tablename__ = "airlines"

    id = Column(BigIntId, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    country_code = Column(String(2))
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    batches = relationship("TicketBatch", back_populates="airline")

# ================================
# Ticket Inventory
# ================================
class TicketBatch(Base):
    __tablename__ = "ticket_batches"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="ck_ticket_batches_quantity"),
        CheckConstraint("buying_price >= 0", name="ck_ticket_batches_buying_price"),
    )

    id = Column(BigIntId, primary_key=True, index=True)
    country_id = Column(BigInteger, ForeignKey("countries.id"), nullable=False, index=True)
    airline_id = Column(BigInteger, ForeignKey("airlines.id"))
    flight_date = Column(Date, nullable=False)
    flight_time = Column(Time)
    buying_price = Column(Numeric(10, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    agent_name = Column(String(255))
    agent_contact = Column(String(255))
    agent_address = Column(Text)
    remarks = Column(Text)
    document_url = Column(String(500))
    created_by = Column(BigInteger, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    country = relationship("Country", back_populates="batches")
    airline = relationship("Airline", back_populates="batches")
    creator = relationship("User", back_populates="batches")
    tickets = relationship("Ticket", back_populates="batch", order_by="Ticket.id")

    @property
    def country_code(self):
        return self.country.code if self.country else None

    @property
    def airline_name(self):
        return self.airline.name if self.airline else None

class Ticket(Base):
    __tablename__ = "tickets"
    __table_args__ = (
        CheckConstraint(_in("status", TICKET_STATUSES), name="ck_tickets_status"),
        CheckConstraint(
            "status = 'locked' OR (locked_by IS NULL AND locked_until IS NULL)",
            name="ck_tickets_lock_fields",
        ),
    )

    id = Column(BigIntId, primary_key=True, index=True)
    batch_id = Column(BigInteger, ForeignKey("ticket_batches.id"), nullable=False, index=True)
    ticket_number = Column(String(50), unique=True)
    selling_price = Column(Numeric(10, 2))
    status = Column(String(20), nullable=False, default="available", index=True)
    passenger_info = Column(JSON(none_as_null=True))
    locked_by = Column(BigInteger, ForeignKey("users.id"))
    locked_until = Column(DateTime(timezone=True))
    # Plain column: bookings.ticket_id already points the other way
    booking_id = Column(BigInteger, index=True)
    sold_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    batch = relationship("TicketBatch", back_populates="tickets")
    bookings = relationship("Booking", back_populates="ticket")

# ================================
# Bookings
# ================================
class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint(_in("payment_type", PAYMENT_TYPES), name="ck_bookings_payment_type"),
        CheckConstraint(_in("status", BOOKING_STATUSES), name="ck_bookings_status"),
        Index(
            "uq_bookings_active_ticket",
            "ticket_id",
            unique=True,
            postgresql_where=text("status <> 'cancelled'"),
            sqlite_where=text("status <> 'cancelled'"),
        ),
    )

    id = Column(BigIntId, primary_key=True, index=True)
    ticket_id = Column(BigInteger, ForeignKey("tickets.id"), nullable=False)
    agent_info = Column(JSON(none_as_null=True))
    passenger_info = Column(JSON(none_as_null=True))
    selling_price = Column(Numeric(10, 2), nullable=False)
    payment_type = Column(String(20), nullable=False, default="full")
    status = Column(String(20), nullable=False, default="pending", index=True)
    comments = Column(Text)
    created_by = Column(BigInteger, ForeignKey("users.id"), nullable=False)
    confirmed_by = Column(BigInteger, ForeignKey("users.id"))
    confirmed_at = Column(DateTime(timezone=True))
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    ticket = relationship("Ticket", back_populates="bookings")
    creator = relationship("User", back_populates="bookings", foreign_keys=[created_by])

# ================================
# Umrah Packages
# ================================
class UmrahPackage(Base):
    __tablename__ = "umrah_packages"
    __table_args__ = (
        CheckConstraint(_in("room_type", ROOM_TYPES), name="ck_umrah_packages_room_type"),
        CheckConstraint(_in("status", PACKAGE_STATUSES), name="ck_umrah_packages_status"),
    )

    id = Column(BigIntId, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    departure_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=False)
    hotel_name = Column(String(255))
    hotel_location = Column(String(255))
    room_type = Column(String(20), nullable=False, default="double")
    price_per_person = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default="upcoming", index=True)
    created_by = Column(BigInteger, ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    group_tickets = relationship("UmrahGroupTicket", back_populates="package")

class UmrahGroupTicket(Base):
    __tablename__ = "umrah_group_tickets"
    __table_args__ = (
        CheckConstraint("available_count >= 0", name="ck_umrah_group_tickets_available"),
        CheckConstraint("sold_count >= 0", name="ck_umrah_group_tickets_sold"),
        CheckConstraint(
            "available_count + sold_count = ticket_count", name="ck_umrah_group_tickets_total"
        ),
    )

    id = Column(BigIntId, primary_key=True, index=True)
    package_id = Column(BigInteger, ForeignKey("umrah_packages.id"), nullable=False)
    ticket_count = Column(Integer, nullable=False)
    available_count = Column(Integer, nullable=False, default=0)
    sold_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    package = relationship("UmrahPackage", back_populates="group_tickets")

    @property
    def package_name(self):
        return self.package.name if self.package else None

# ================================
# Activity Logs & Settings
# ================================
class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(BigIntId, primary_key=True, index=True)
    user_id = Column(BigInteger, ForeignKey("users.id"), index=True)
    action = Column(String(100), nullable=False)
    description = Column(Text)
    ip_address = Column(String(64))
    user_agent = Column(String(500))
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

class SystemSetting(Base):
    __tablename__ = "system_settings"

    id = Column(BigIntId, primary_key=True, index=True)
    setting_key = Column(String(255), unique=True, nullable=False)
    setting_value = Column(Text)
    description = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
