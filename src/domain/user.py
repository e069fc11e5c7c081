"""User Domain Entity

Company member; active members are billable seats.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlmodel import Field, Index
from src.domain.base import BaseModel, UTCDateTime, generate_uuid
from src.domain.billing_clock import utc_now


class UserRole(str, Enum):
    USER = "user"
    COMPANY_ADMIN = "company_admin"
    SUPER_ADMIN = "super_admin"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class User(BaseModel, table=True):
    """
    User - Company member

    Domain Rules:
    - Seat count = number of users with status active in the company
    - billing_* fields are maintained by the usage tracker
    """

    __tablename__ = "users"
    __table_args__ = (
        Index('ix_users_company_id_status', 'company_id', 'status'),
    )

    id: str = Field(default_factory=generate_uuid, primary_key=True)

    company_id: Optional[str] = Field(default=None)
    name: Optional[str] = Field(default=None)
    email: Optional[str] = Field(default=None)

    role: UserRole = Field(default=UserRole.USER)
    status: UserStatus = Field(default=UserStatus.ACTIVE)

    billing_added_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)
    billing_active: bool = Field(default=False)
    billing_last_billed_at: Optional[datetime] = Field(sa_type=UTCDateTime, default=None)

    created_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
    updated_at: datetime = Field(sa_type=UTCDateTime, default_factory=utc_now)
