# campus_booking/schemas.py
from pydantic import BaseModel, EmailStr, Field
from typing import List, Literal, Optional
from datetime import date as DateType, datetime, time

from campus_booking.models import Role, ResourceStatus, BookingStatus

PermissionFlag = Literal["can_book_labs", "can_book_auditorium"]


class Department(BaseModel):
    code: str
    name: str
    batch: Optional[str] = None


class UserCreate(BaseModel):
    full_name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = Role.STUDENT
    phone: Optional[str] = None
    department: Optional[Department] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserProfile(BaseModel):
    id: int
    full_name: str
    email: str
    role: Role
    phone: Optional[str] = None
    department_code: Optional[str] = None
    department_name: Optional[str] = None
    department_batch: Optional[str] = None
    can_book_labs: bool = False
    can_book_auditorium: bool = False
    is_active: bool = True

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    role: Optional[Role] = None
    can_book_labs: Optional[bool] = None
    can_book_auditorium: Optional[bool] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime
    user: UserProfile


class ResourceCreate(BaseModel):
    code: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: str
    sub_category: Optional[str] = None
    capacity: int = Field(gt=0)
    status: ResourceStatus = ResourceStatus.ACTIVE
    building: Optional[str] = None
    zone: Optional[str] = None
    floor: int = 0
    requires_approval: bool = False
    allowed_roles: List[Role] = []
    max_duration_hours: Optional[float] = Field(default=None, gt=0)
    required_permission: Optional[PermissionFlag] = None


class ResourceUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    sub_category: Optional[str] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    building: Optional[str] = None
    zone: Optional[str] = None
    floor: Optional[int] = None
    requires_approval: Optional[bool] = None
    allowed_roles: Optional[List[Role]] = None
    max_duration_hours: Optional[float] = Field(default=None, gt=0)
    required_permission: Optional[PermissionFlag] = None


class ResourceStatusUpdate(BaseModel):
    status: ResourceStatus


class ResourceOut(BaseModel):
    id: int
    code: str
    name: str
    category: str
    sub_category: Optional[str] = None
    capacity: int
    status: ResourceStatus
    building: Optional[str] = None
    zone: Optional[str] = None
    floor: Optional[int] = None
    requires_approval: bool
    allowed_roles: List[Role]
    max_duration_hours: Optional[float] = None
    required_permission: Optional[str] = None

    class Config:
        from_attributes = True


class BookingCreate(BaseModel):
    resource_id: int
    date: DateType
    start_time: time
    end_time: time
    purpose: str = Field(min_length=1)


class BookingOut(BaseModel):
    id: int
    reference: str
    resource_id: int
    user_id: int
    date: DateType
    start_time: datetime
    end_time: datetime
    purpose: str
    status: BookingStatus
    resource_name: str
    user_name: str
    created_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BusyInterval(BaseModel):
    start: datetime
    end: datetime


class Availability(BaseModel):
    resource_id: int
    date: DateType
    busy_intervals: List[BusyInterval]
