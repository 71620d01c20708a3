"""
Lead package endpoints
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lead_router.api.v1.dependencies import verify_api_key
from lead_router.core.dependencies import get_db
from lead_router.schemas.lead_packages import (
    LeadPackageCreate,
    LeadPackageResponse,
    PackageAssignmentList,
    PackageAssignmentResponse,
    PackageAssignRequest,
)
from lead_router.services.lead_package_service import LeadPackageService

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.post("/lead-packages", response_model=LeadPackageResponse, status_code=status.HTTP_201_CREATED)
async def create_lead_package(payload: LeadPackageCreate, db: Session = Depends(get_db)):
    return LeadPackageResponse.model_validate(LeadPackageService(db).create_package(payload))


@router.post("/lead-packages/assign", response_model=PackageAssignmentResponse, status_code=status.HTTP_201_CREATED)
async def assign_lead_package(payload: PackageAssignRequest, db: Session = Depends(get_db)):
    """Grant a package's credits to an agent"""
    assignment = LeadPackageService(db).assign(payload.agent_id, payload.package_id)
    return PackageAssignmentResponse.model_validate(assignment)


@router.get("/lead-packages/assignments/{agent_id}", response_model=PackageAssignmentList)
async def list_package_assignments(agent_id: int, db: Session = Depends(get_db)):
    assignments = LeadPackageService(db).assignments_for(agent_id)
    return {
        "agent_id": agent_id,
        "assignments": [PackageAssignmentResponse.model_validate(a) for a in assignments],
    }
