# campus_booking/models.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Date, Float, Text, JSON, Enum
from campus_booking.database import Base
import datetime
import enum


class Role(str, enum.Enum):
    ADMIN = "Admin"
    FACULTY = "Faculty"
    STUDENT = "Student"
    STAFF = "Staff"


class ResourceStatus(str, enum.Enum):
    ACTIVE = "Active"
    MAINTENANCE = "Maintenance"
    INACTIVE = "Inactive"


class BookingStatus(str, enum.Enum):
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


# Statuses that count toward the no-overlap rule
ACTIVE_BOOKING_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)


class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(Enum(Role, values_callable=lambda e: [m.value for m in e]), nullable=False, default=Role.STUDENT)

    department_code = Column(String, nullable=True)
    department_name = Column(String, nullable=True)
    department_batch = Column(String, nullable=True)

    can_book_labs = Column(Boolean, default=False, nullable=False)
    can_book_auditorium = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.datetime.utcnow)


class Resource(Base):
    __tablename__ = "resources"
    # Ids of deleted resources are never reused; bookings still point at them
    __table_args__ = {"sqlite_autoincrement": True}
    id = Column(Integer, primary_key=True, index=True)
    code = Column(String, unique=True, index=True, nullable=False)  # e.g. RES-101
    name = Column(String, nullable=False)
    category = Column(String, nullable=False)
    sub_category = Column(String, nullable=True)
    capacity = Column(Integer, nullable=False)
    status = Column(Enum(ResourceStatus, values_callable=lambda e: [m.value for m in e]), nullable=False, default=ResourceStatus.ACTIVE)

    building = Column(String, nullable=True)
    zone = Column(String, nullable=True)
    floor = Column(Integer, default=0)

    # Booking rules
    requires_approval = Column(Boolean, default=False, nullable=False)
    allowed_roles = Column(JSON, default=list, nullable=False)  # role values; empty means everyone
    max_duration_hours = Column(Float, nullable=True)
    required_permission = Column(String, nullable=True)  # capability flag name, e.g. can_book_labs

    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)


class Booking(Base):
    __tablename__ = "bookings"
    id = Column(Integer, primary_key=True, index=True)
    reference = Column(String, unique=True, index=True, nullable=False)
    # No foreign key: bookings outlive catalog rows through their snapshots
    resource_id = Column(Integer, index=True, nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), index=True, nullable=False)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    purpose = Column(Text, nullable=False, default="")
    status = Column(Enum(BookingStatus, values_callable=lambda e: [m.value for m in e]), nullable=False, default=BookingStatus.PENDING)

    # Snapshots taken at creation
    resource_name = Column(String, nullable=False)
    user_name = Column(String, nullable=False)

    created_at = Column(DateTime, default=datetime.datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.datetime.utcnow, onupdate=datetime.datetime.utcnow)
    cancelled_at = Column(DateTime, nullable=True)

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_BOOKING_STATUSES
