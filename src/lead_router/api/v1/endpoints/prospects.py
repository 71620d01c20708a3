"""
Prospect API endpoints
"""
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from lead_router.api.v1.dependencies import get_actor_id, verify_api_key
from lead_router.core.dependencies import get_db
from lead_router.repositories.prospect_repository import ProspectRepository
from lead_router.schemas.prospects import (
    BulkAssignResponse,
    ProspectAssign,
    ProspectBulkAssign,
    ProspectCreate,
    ProspectDetail,
    ProspectListResponse,
    ProspectResponse,
    ProspectUpdate,
)
from lead_router.services.lead_routing_service import LeadRoutingService, RoutingResult
from lead_router.services.notification_service import NotificationService
from lead_router.utils.exceptions import NotFoundError
from lead_router.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


def _notify_assignment(background_tasks: BackgroundTasks, result: RoutingResult) -> None:
    """Queue the assignment email for human assignees; runs after the response"""
    if result.overflow:
        return
    prospect = result.prospect
    agent = {"email": result.agent.email, "full_name": result.agent.full_name}
    summary = {
        "first_name": prospect.first_name,
        "last_name": prospect.last_name,
        "email": prospect.email,
        "phone": prospect.phone,
        "lead_source": prospect.lead_source,
        "campaign_name": prospect.campaign.name if prospect.campaign else None,
    }
    background_tasks.add_task(NotificationService().send_lead_assignment_email, agent, summary)


@router.post("/prospects", response_model=ProspectResponse, status_code=status.HTTP_201_CREATED)
async def create_prospect(
    payload: ProspectCreate,
    background_tasks: BackgroundTasks,
    actor_id: Optional[int] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Capture a lead and route it to an agent.

    Public endpoint. The response carries ``assignedAgentId``: a human agent
    with credit, or the System Agent when nobody in the pool has credit.
    """
    try:
        service = LeadRoutingService(db)
        result = service.create_prospect(payload, actor_id=actor_id)
        _notify_assignment(background_tasks, result)
        return ProspectResponse.model_validate(result.prospect)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error creating prospect:[/red] {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/prospects", response_model=ProspectListResponse, dependencies=[Depends(verify_api_key)])
async def list_prospects(
    campaign_id: Optional[int] = Query(None, alias="campaignId"),
    assigned_agent_id: Optional[int] = Query(None, alias="assignedAgentId"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """List prospects, optionally filtered by campaign or assignee"""
    try:
        total, prospects = ProspectRepository(db).search(
            campaign_id=campaign_id,
            assigned_agent_id=assigned_agent_id,
            skip=skip,
            limit=limit,
        )
        return {
            "total": total,
            "skip": skip,
            "limit": limit,
            "prospects": [ProspectResponse.model_validate(p) for p in prospects],
        }
    except Exception as e:
        logger.error(f"[red]Error listing prospects:[/red] {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/prospects/{prospect_id}", response_model=ProspectDetail, dependencies=[Depends(verify_api_key)])
async def get_prospect(prospect_id: int, db: Session = Depends(get_db)):
    """A prospect with its full activity log"""
    prospect = ProspectRepository(db).find_by_id(prospect_id)
    if prospect is None:
        raise NotFoundError(f"Prospect {prospect_id} not found")
    return ProspectDetail.model_validate(prospect)


@router.put("/prospects/{prospect_id}", response_model=ProspectResponse, dependencies=[Depends(verify_api_key)])
async def update_prospect(
    prospect_id: int,
    payload: ProspectUpdate,
    actor_id: Optional[int] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Edit a prospect's contact details or lead status"""
    try:
        prospect = LeadRoutingService(db).update_prospect(prospect_id, payload, actor_id=actor_id)
        return ProspectResponse.model_validate(prospect)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error updating prospect {prospect_id}:[/red] {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/prospects/bulk/assign", response_model=BulkAssignResponse, dependencies=[Depends(verify_api_key)])
async def bulk_assign_prospects(
    payload: ProspectBulkAssign,
    actor_id: Optional[int] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Assign several prospects to one active agent"""
    try:
        assigned_ids, not_found = LeadRoutingService(db).bulk_assign(
            payload.prospect_ids, payload.agent_id, actor_id=actor_id
        )
        return {
            "message": f"{len(assigned_ids)} prospect(s) assigned",
            "assigned_ids": assigned_ids,
            "not_found": not_found,
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error bulk assigning prospects:[/red] {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/prospects/{prospect_id}/assign",response_model=ProspectResponse, dependencies=[Depends(verify_api_key)])
async def assign_prospect(
    prospect_id: int,
    payload: ProspectAssign,
    actor_id: Optional[int] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Manually assign a prospect; ``agentId: null`` unassigns it"""
    try:
        prospect = LeadRoutingService(db).assign_prospect(prospect_id, payload.agent_id, actor_id=actor_id)
        return ProspectResponse.model_validate(prospect)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error assigning prospect {prospect_id}:[/red] {e}")
        raise HTTPException(status_code=500, detail=str(e))
