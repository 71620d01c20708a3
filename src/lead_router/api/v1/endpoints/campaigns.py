"""
Campaign endpoints
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lead_router.api.v1.dependencies import verify_api_key
from lead_router.core.dependencies import get_db
from lead_router.schemas.campaigns import CampaignAgentsUpdate, CampaignCreate, CampaignResponse
from lead_router.services.campaign_service import CampaignService

router = APIRouter(dependencies=[Depends(verify_api_key)])


@router.post("/campaigns", response_model=CampaignResponse, status_code=status.HTTP_201_CREATED)
async def create_campaign(payload: CampaignCreate, db: Session = Depends(get_db)):
    return CampaignResponse.model_validate(CampaignService(db).create_campaign(payload))


@router.get("/campaigns/{campaign_id}", response_model=CampaignResponse)
async def get_campaign(campaign_id: int, db: Session = Depends(get_db)):
    return CampaignResponse.model_validate(CampaignService(db).get_or_404(campaign_id))


@router.put("/campaigns/{campaign_id}/agents", response_model=CampaignResponse)
async def set_campaign_agents(campaign_id: int, payload: CampaignAgentsUpdate, db: Session = Depends(get_db)):
    """Replace the campaign's round-robin pool"""
    campaign = CampaignService(db).set_agents(campaign_id, payload.assigned_agent_ids)
    return CampaignResponse.model_validate(campaign)
