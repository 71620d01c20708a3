"""
Lead package API schemas
"""
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from pydantic import Field

from lead_router.models.lead_package import LeadPackageStatus
from lead_router.schemas.base import BaseSchema, BaseResponseSchema


class LeadPackageCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    lead_count: int = Field(ge=1)
    price: Decimal = Field(Decimal("0"), ge=0)
    status: LeadPackageStatus = LeadPackageStatus.ACTIVE


class LeadPackageResponse(BaseResponseSchema):
    name: str
    description: Optional[str] = None
    lead_count: int
    price: Decimal
    status: str


class PackageAssignRequest(BaseSchema):
    agent_id: int
    package_id: int


class PackageAssignmentResponse(BaseResponseSchema):
    agent_id: int
    lead_package_id: int
    status: str
    leads_total: int
    leads_remaining: int
    price_snapshot: Decimal
    purchase_date: datetime


class PackageAssignmentList(BaseSchema):
    agent_id: int
    assignments: List[PackageAssignmentResponse]
