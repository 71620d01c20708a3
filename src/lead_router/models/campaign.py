"""
Campaign model
"""
from enum import Enum

from sqlalchemy import Column, String, Text, JSON

from lead_router.models.base import BaseModel


class CampaignType(str, Enum):
    LEAD_GENERATION = "lead_generation"
    BRAND_AWARENESS = "brand_awareness"
    PRODUCT_PROMOTION = "product_promotion"
    EVENT_MARKETING = "event_marketing"
    LEAD_CAPTURE = "lead_capture"


class CampaignStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class Campaign(BaseModel):
    """
    A marketing campaign. ``assigned_agent_ids`` is the round-robin pool for
    prospects captured through the campaign; an empty list means the global
    agent pool is used instead.
    """
    __tablename__ = "campaigns"

    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    type = Column(String(30), nullable=False, default=CampaignType.LEAD_GENERATION.value)
    status = Column(String(20), nullable=False, default=CampaignStatus.DRAFT.value)
    assigned_agent_ids = Column(JSON, nullable=False, default=list)
    metrics = Column(JSON, nullable=False, default=dict)

    @property
    def agent_pool(self) -> list:
        return [int(agent_id) for agent_id in (self.assigned_agent_ids or [])]
