"""
Database models module
"""
from lead_router.models.base import Base, BaseModel
from lead_router.models.user import User, UserRole
from lead_router.models.campaign import Campaign, CampaignType, CampaignStatus
from lead_router.models.lead_package import (
    LeadPackage,
    LeadPackageStatus,
    LeadPackageAssignment,
    AssignmentStatus,
)
from lead_router.models.prospect import Prospect, ProspectActivity, LeadSource, LeadStatus, ActivityType

__all__ = [
    "Base",
    "BaseModel",
    "User",
    "UserRole",
    "Campaign",
    "CampaignType",
    "CampaignStatus",
    "LeadPackage",
    "LeadPackageStatus",
    "LeadPackageAssignment",
    "AssignmentStatus",
    "Prospect",
    "ProspectActivity",
    "LeadSource",
    "LeadStatus",
    "ActivityType",
]
