"""
User and agent administration endpoints
"""
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from lead_router.api.v1.dependencies import get_actor_id, verify_api_key
from lead_router.core.dependencies import get_db
from lead_router.schemas.users import (
    AgentRemovalResponse,
    BulkDeleteRequest,
    BulkDeleteResponse,
    CreditBreakdown,
    UserCreate,
    UserListResponse,
    UserResponse,
    UserStatusUpdate,
    UserUpdate,
)
from lead_router.services.agent_service import AgentService, RemovalOutcome
from lead_router.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter(dependencies=[Depends(verify_api_key)])


def _removal_response(message: str, outcome: RemovalOutcome) -> dict:
    return {
        "message": message,
        "user_id": outcome.user_id,
        "unassigned_prospect_ids": outcome.unassigned_prospect_ids,
        "activity_log_written": outcome.activity_log_written,
    }


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    """Create a user (agents are created without a password)"""
    user = AgentService(db).create_user(payload)
    return UserResponse.model_validate(user)


@router.get("/users", response_model=UserListResponse)
async def list_users(
    role: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(active|inactive)$"),
    include_system: bool = Query(False, alias="includeSystem"),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    """List users; the System Agent is hidden unless ``includeSystem=true``"""
    is_active = None if status_filter is None else status_filter == "active"
    users = AgentService(db).list_users(
        role=role, is_active=is_active, include_system=include_system, skip=skip, limit=limit
    )
    return {"total": len(users), "users": [UserResponse.model_validate(u) for u in users]}


@router.post("/users/bulk-delete", response_model=BulkDeleteResponse)
async def bulk_delete_users(
    payload: BulkDeleteRequest,
    actor_id: Optional[int] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Permanently delete several agents and unassign their prospects.
    The whole request is rejected if any id is the System Agent.
    """
    try:
        outcomes, not_found = AgentService(db).bulk_delete(payload.ids, actor_id=actor_id)
        return {
            "message": f"{len(outcomes)} user(s) permanently deleted",
            "deleted_ids": [o.user_id for o in outcomes],
            "not_found": not_found,
            "unassigned_prospect_ids": [pid for o in outcomes for pid in o.unassigned_prospect_ids],
            "activity_log_written": all(o.activity_log_written for o in outcomes),
        }
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error bulk deleting users {payload.ids}:[/red] {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: Session = Depends(get_db)):
    return UserResponse.model_validate(AgentService(db).get_or_404(user_id))


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    payload: UserUpdate,
    actor_id: Optional[int] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Partial update; role, status and email changes are refused for the System Agent"""
    user = AgentService(db).update_user(user_id, payload, actor_id=actor_id)
    return UserResponse.model_validate(user)


@router.get("/users/{user_id}/credits", response_model=CreditBreakdown)
async def get_user_credits(user_id: int, db: Session = Depends(get_db)):
    credit = AgentService(db).credit(user_id)
    return {
        "agent_id": credit.agent_id,
        "package_credit": credit.package_credit,
        "manual_credit": credit.manual_credit,
        "total": credit.total,
    }


@router.delete("/users/{user_id}", response_model=AgentRemovalResponse)
async def deactivate_user(
    user_id: int,
    actor_id: Optional[int] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Soft delete: deactivate the user and unassign their prospects"""
    try:
        outcome = AgentService(db).deactivate(user_id, actor_id=actor_id)
        return _removal_response("User deactivated successfully", outcome)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error deactivating user {user_id}:[/red] {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.delete("/users/{user_id}/permanent", response_model=AgentRemovalResponse)
async def delete_user_permanently(
    user_id: int,
    actor_id: Optional[int] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Permanently delete an agent and unassign their prospects"""
    try:
        outcome = AgentService(db).delete_permanently(user_id, actor_id=actor_id)
        return _removal_response("User permanently deleted", outcome)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error deleting user {user_id}:[/red] {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.patch("/users/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: int,
    payload: UserStatusUpdate,
    actor_id: Optional[int] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Activate or deactivate a user; deactivation unassigns their prospects"""
    try:
        user, _ = AgentService(db).set_status(user_id, payload.is_active, actor_id=actor_id)
        return UserResponse.model_validate(user)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"[red]Error updating status of user {user_id}:[/red] {e}")
        raise HTTPException(status_code=500, detail=str(e))
