"""
User and agent API schemas
"""
from typing import Optional, List
from pydantic import EmailStr, Field, field_validator

from lead_router.models.user import UserRole
from lead_router.schemas.base import BaseSchema, BaseResponseSchema, lower_email


class UserCreate(BaseSchema):
    email: EmailStr
    first_name: str = Field(min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    role: UserRole = UserRole.AGENT
    is_active: bool = True
    owed_leads_count: int = Field(0, ge=0)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return lower_email(v)


class UserUpdate(BaseSchema):
    """Partial update; unset fields are left alone"""
    email: Optional[EmailStr] = None
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=20)
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    owed_leads_count: Optional[int] = Field(None, ge=0)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return lower_email(v)


class UserStatusUpdate(BaseSchema):
    is_active: bool


class BulkDeleteRequest(BaseSchema):
    ids: List[int] = Field(min_length=1)


class UserResponse(BaseResponseSchema):
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: str
    phone: Optional[str] = None
    role: str
    is_active: bool
    owed_leads_count: int


class UserListResponse(BaseSchema):
    total: int
    users: List[UserResponse]


class AgentRemovalResponse(BaseSchema):
    """Outcome of a deactivation or deletion, with the cascade summary"""
    message: str
    user_id: int
    unassigned_prospect_ids: List[int] = []
    activity_log_written: bool = True


class BulkDeleteResponse(BaseSchema):
    message: str
    deleted_ids: List[int]
    not_found: List[int] = []
    unassigned_prospect_ids: List[int] = []
    activity_log_written: bool = True


class CreditBreakdown(BaseSchema):
    agent_id: int
    package_credit: int
    manual_credit: int
    total: int
