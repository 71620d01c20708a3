"""
Campaign service: creation and round-robin pool management
"""
from typing import List

from sqlalchemy.orm import Session

from lead_router.models import Campaign
from lead_router.repositories.user_repository import UserRepository
from lead_router.schemas.campaigns import CampaignCreate
from lead_router.services.base_service import BaseService
from lead_router.services.system_agent import SystemAgentGuard
from lead_router.utils.exceptions import NotFoundError, ValidationError
from lead_router.utils.logging import get_logger

logger = get_logger(__name__)


class CampaignService(BaseService[Campaign]):
    model = Campaign

    def __init__(self, db: Session):
        super().__init__(db)
        self.users = UserRepository(db)
        self.guard = SystemAgentGuard(db)

    def get_or_404(self, campaign_id: int) -> Campaign:
        campaign = self.get(campaign_id)
        if campaign is None:
            raise NotFoundError(f"Campaign {campaign_id} not found")
        return campaign

    def create_campaign(self, data: CampaignCreate) -> Campaign:
        pool = self._validated_pool(data.assigned_agent_ids)
        campaign = self.create(
            name=data.name,
            description=data.description,
            type=data.type.value,
            status=data.status.value,
            assigned_agent_ids=pool,
            metrics={"leads": 0},
        )
        logger.info(f"[green]Created campaign[/green] [cyan]{campaign.name}[/cyan] with {len(pool)} agent(s)")
        return campaign

    def set_agents(self, campaign_id: int, agent_ids: List[int]) -> Campaign:
        campaign = self.get_or_404(campaign_id)
        campaign.assigned_agent_ids = self._validated_pool(agent_ids)
        self.db.commit()
        self.db.refresh(campaign)
        logger.info(f"[cyan]Campaign {campaign.id} pool set to[/cyan] {campaign.assigned_agent_ids}")
        return campaign

    def _validated_pool(self, agent_ids: List[int]) -> List[int]:
        """De-duplicate, keep order, and require active non-sentinel agents"""
        agent_ids = list(dict.fromkeys(agent_ids))
        if not agent_ids:
            return []
        system_agent = self.guard.get()
        if system_agent is not None and system_agent.id in agent_ids:
            raise ValidationError("The System Agent cannot be part of a campaign pool")
        valid = {agent.id for agent in self.users.active_agents(ids=agent_ids)}
        invalid = [agent_id for agent_id in agent_ids if agent_id not in valid]
        if invalid:
            raise ValidationError(f"Not active agents: {invalid}")
        return agent_ids
