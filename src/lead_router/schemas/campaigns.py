"""
Campaign API schemas
"""
from typing import Optional, List
from pydantic import Field

from lead_router.models.campaign import CampaignType, CampaignStatus
from lead_router.schemas.base import BaseSchema, BaseResponseSchema


class CampaignCreate(BaseSchema):
    name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = None
    type: CampaignType = CampaignType.LEAD_GENERATION
    status: CampaignStatus = CampaignStatus.ACTIVE
    assigned_agent_ids: List[int] = []


class CampaignAgentsUpdate(BaseSchema):
    assigned_agent_ids: List[int]


class CampaignResponse(BaseResponseSchema):
    name: str
    description: Optional[str] = None
    type: str
    status: str
    assigned_agent_ids: List[int] = []
    metrics: dict = {}
