"""
Pydantic schemas for request/response validation
"""
from lead_router.schemas.base import (
    BaseSchema,
    TimestampSchema,
    IDSchema,
    BaseResponseSchema,
)
from lead_router.schemas.prospects import (
    ProspectCreate,
    ProspectUpdate,
    ProspectAssign,
    ProspectBulkAssign,
    BulkAssignResponse,
    ProspectActivityResponse,
    ProspectResponse,
    ProspectDetail,
    ProspectListResponse,
)
from lead_router.schemas.users import (
    UserCreate,
    UserUpdate,
    UserStatusUpdate,
    BulkDeleteRequest,
    UserResponse,
    UserListResponse,
    AgentRemovalResponse,
    BulkDeleteResponse,
    CreditBreakdown,
)
from lead_router.schemas.campaigns import (
    CampaignCreate,
    CampaignAgentsUpdate,
    CampaignResponse,
)
from lead_router.schemas.lead_packages import (
    LeadPackageCreate,
    LeadPackageResponse,
    PackageAssignRequest,
    PackageAssignmentResponse,
    PackageAssignmentList,
)

__all__ = [
    # Base schemas
    "BaseSchema",
    "TimestampSchema",
    "IDSchema",
    "BaseResponseSchema",
    # Prospect schemas
    "ProspectCreate",
    "ProspectUpdate",
    "ProspectAssign",
    "ProspectBulkAssign",
    "BulkAssignResponse",
    "ProspectActivityResponse",
    "ProspectResponse",
    "ProspectDetail",
    "ProspectListResponse",
    # User schemas
    "UserCreate",
    "UserUpdate",
    "UserStatusUpdate",
    "BulkDeleteRequest",
    "UserResponse",
    "UserListResponse",
    "AgentRemovalResponse",
    "BulkDeleteResponse",
    "CreditBreakdown",
    # Campaign schemas
    "CampaignCreate",
    "CampaignAgentsUpdate",
    "CampaignResponse",
    # Lead package schemas
    "LeadPackageCreate",
    "LeadPackageResponse",
    "PackageAssignRequest",
    "PackageAssignmentResponse",
    "PackageAssignmentList",
]
