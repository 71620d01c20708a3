"""
Prospect API request and response schemas
"""
from typing import Optional, List
from datetime import datetime
from pydantic import EmailStr, Field, field_validator

from lead_router.models.prospect import LeadSource, LeadStatus
from lead_router.schemas.base import BaseSchema, BaseResponseSchema, lower_email


class ProspectCreate(BaseSchema):
    """Public lead capture payload"""
    first_name: str = Field(min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    email: EmailStr
    phone: Optional[str] = Field(None, min_length=10, max_length=20)
    lead_source: LeadSource
    campaign_id: Optional[int] = None
    qr_tag_id: Optional[str] = Field(None, max_length=64)

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return lower_email(v)

    @field_validator("first_name", "last_name")
    @classmethod
    def strip_names(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ProspectUpdate(BaseSchema):
    """Admin edit of contact details and pipeline status; unset fields are left alone"""
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, min_length=10, max_length=20)
    lead_status: Optional[LeadStatus] = None

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: Optional[str]) -> Optional[str]:
        return lower_email(v)


class ProspectAssign(BaseSchema):
    """Manual assignment; a null agent unassigns"""
    agent_id: Optional[int] = None


class ProspectBulkAssign(BaseSchema):
    prospect_ids: List[int] = Field(min_length=1)
    agent_id: int


class BulkAssignResponse(BaseSchema):
    message: str
    assigned_ids: List[int]
    not_found: List[int] = []


class ProspectActivityResponse(BaseSchema):
    id: int
    type: str
    description: str
    actor_user_id: Optional[int] = None
    details: dict = {}
    created_at: datetime


class ProspectResponse(BaseResponseSchema):
    first_name: str
    last_name: Optional[str] = None
    email: str
    phone: Optional[str] = None
    lead_source: str
    lead_status: str
    campaign_id: Optional[int] = None
    qr_tag_id: Optional[str] = None
    assigned_agent_id: Optional[int] = None


class ProspectDetail(ProspectResponse):
    activities: List[ProspectActivityResponse] = []


class ProspectListResponse(BaseSchema):
    total: int
    skip: int
    limit: int
    prospects: List[ProspectResponse]
