"""
Lead routing: picks the agent for every new prospect

Selection is a round robin over the eligible pool, restricted to agents with
credit. Rotation order is recomputed from committed rows on every call (how
many prospects each agent currently holds in the scope, then who was served
longest ago, then agent creation order), so every server process agrees on
the next agent without shared memory. When nobody has credit the prospect
goes to the System Agent.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from lead_router.core.config import settings
from lead_router.models import ActivityType, Campaign, LeadStatus, Prospect, User
from lead_router.repositories.campaign_repository import CampaignRepository
from lead_router.repositories.prospect_repository import (
    ProspectActivityRepository,
    ProspectRepository,
)
from lead_router.repositories.user_repository import UserRepository
from lead_router.schemas.prospects import ProspectCreate, ProspectUpdate
from lead_router.services.credit_ledger import CreditLedger
from lead_router.services.system_agent import SystemAgentGuard
from lead_router.utils.exceptions import ConflictError, NotFoundError, ValidationError
from lead_router.utils.helpers import normalize_phone, utcnow
from lead_router.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RoutingResult:
    prospect: Prospect
    agent: User
    overflow: bool
    credit_source: Optional[str] = None


class LeadRoutingService:
    """Creates prospects and assigns each one to exactly one agent"""

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.campaigns = CampaignRepository(db)
        self.prospects = ProspectRepository(db)
        self.activities = ProspectActivityRepository(db)
        self.ledger = CreditLedger(db)
        self.guard = SystemAgentGuard(db)

    def eligible_pool(self, campaign: Optional[Campaign], system_agent_id: int) -> List[User]:
        """
        Campaign agents when the campaign names any, else every active agent.
        Only active agents survive, and never the System Agent.
        """
        if campaign is not None and campaign.agent_pool:
            return self.users.active_agents(ids=campaign.agent_pool, exclude_id=system_agent_id)
        return self.users.active_agents(exclude_id=system_agent_id)

    def rotation_order(self, candidates: List[User], campaign_id: Optional[int]) -> List[User]:
        """Candidates sorted so the first one is next in the rotation"""
        stats = self.prospects.assignment_stats((a.id for a in candidates), campaign_id=campaign_id)

        def key(agent: User):
            count, last_assigned = stats.get(agent.id, (0, None))
            return (count, last_assigned or datetime.min, agent.created_at or datetime.min, agent.id)

        return sorted(candidates, key=key)

    def select_agent(self, campaign: Optional[Campaign], system_agent: User):
        """
        Pick the next agent and spend one of its credits.
        Returns (agent, credit_source), or (None, None) when the pool is dry.
        """
        campaign_id = campaign.id if campaign is not None else None
        attempts = settings.routing.max_attempts

        for attempt in range(1, attempts + 1):
            if attempt > 1:
                # Drop cached rows so the retry sees other transactions' writes
                self.db.expire_all()
            pool = self.eligible_pool(campaign, system_agent.id)
            candidates = self.ledger.with_credit(pool)
            if not candidates:
                logger.info(
                    f"[yellow]No agent with credit[/yellow] in pool of {len(pool)} "
                    f"(campaign={campaign_id or 'global'})"
                )
                return None, None

            agent = self.rotation_order(candidates, campaign_id)[0]
            source = self.ledger.consume(agent.id)
            if source is not None:
                return agent, source

            logger.warning(
                f"[yellow]Credit for {agent.full_name} (id={agent.id}) was spent concurrently[/yellow] "
                f"[dim]attempt {attempt}/{attempts}[/dim]"
            )

        return None, None

    def create_prospect(self, data: ProspectCreate, actor_id: Optional[int] = None) -> RoutingResult:
        """
        Insert a prospect and its routing decision in one transaction.

        Raises:
            ValidationError: the campaign does not exist
            ConflictError: the phone already signed up for this campaign
            DatabaseError: the System Agent is missing
        """
        phone = normalize_phone(data.phone)
        try:
            campaign = None
            if data.campaign_id is not None:
                # Locking the campaign serialises selection within its pool
                campaign = self.campaigns.lock(data.campaign_id)
                if campaign is None:
                    raise ValidationError(f"Campaign {data.campaign_id} does not exist")
                if phone and self.prospects.phone_taken(campaign.id, phone):
                    raise ConflictError("This phone number has already signed up for this campaign.")

            system_agent = self.guard.require()
            if campaign is None:
                # The global pool has no campaign row, so the sentinel row stands in as the lock
                self.users.lock(system_agent.id)

            agent, source = self.select_agent(campaign, system_agent)
            overflow = agent is None
            if overflow:
                agent = system_agent

            prospect = self.prospects.add(
                first_name=data.first_name,
                last_name=data.last_name,
                email=data.email,
                phone=phone,
                lead_source=data.lead_source.value,
                campaign_id=campaign.id if campaign else None,
                qr_tag_id=data.qr_tag_id,
                assigned_agent_id=agent.id,
            )
            self._record_routing(prospect, agent, campaign, overflow, source, actor_id)
            if campaign is not None:
                self.campaigns.bump_metric(campaign, "leads")

            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(prospect)
        logger.info(
            f"[green]Prospect {prospect.id} routed to[/green] [bold cyan]{agent.full_name}[/bold cyan] "
            f"[dim](campaign={prospect.campaign_id or 'none'}, overflow={overflow}, credit={source or '-'})[/dim]"
        )
        return RoutingResult(prospect=prospect, agent=agent, overflow=overflow, credit_source=source)

    def _record_routing(
        self,
        prospect: Prospect,
        agent: User,
        campaign: Optional[Campaign],
        overflow: bool,
        source: Optional[str],
        actor_id: Optional[int],
    ) -> None:
        campaign_label = campaign.name if campaign is not None else "N/A"
        assigned_at = utcnow()
        self.activities.record(
            prospect_id=prospect.id,
            type=ActivityType.CREATED.value,
            actor_user_id=actor_id,
            description=f"Prospect created via {prospect.lead_source} for campaign {campaign_label}",
            details={
                "leadSource": prospect.lead_source,
                "campaignId": prospect.campaign_id,
                "qrTagId": prospect.qr_tag_id,
            },
        )
        method = "overflow (no agent credit available)" if overflow else "round robin"
        self.activities.record(
            prospect_id=prospect.id,
            type=ActivityType.ASSIGNED.value,
            actor_user_id=actor_id,
            description=(
                f"Assigned to agent {agent.full_name} via {method} "
                f"for campaign {campaign_label} at {assigned_at.isoformat(timespec='seconds')}Z"
            ),
            details={
                "assignedAgentId": agent.id,
                "campaignId": prospect.campaign_id,
                "overflow": overflow,
                "creditSource": source,
                "assignedAt": assigned_at.isoformat(),
            },
        )

    def assign_prospect(self, prospect_id: int, agent_id: Optional[int], actor_id: Optional[int] = None) -> Prospect:
        """
        Manual (admin) reassignment. ``agent_id=None`` unassigns.
        No credit is spent or refunded.
        """
        prospect = self.prospects.find_by_id(prospect_id)
        if prospect is None:
            raise NotFoundError(f"Prospect {prospect_id} not found")

        previous = prospect.assigned_agent
        if agent_id is None:
            if previous is None:
                return prospect
            prospect.assigned_agent_id = None
            self.activities.record(
                prospect_id=prospect.id,
                type=ActivityType.UNASSIGNED.value,
                actor_user_id=actor_id,
                description=f"Lead manually unassigned from agent {previous.full_name}",
                details={"previousAgentId": previous.id},
            )
        else:
            agent = self._assignable_agent(agent_id)
            self._record_manual_assignment(prospect, agent, actor_id)

        self.db.commit()
        self.db.refresh(prospect)
        return prospect

    def bulk_assign(
        self, prospect_ids: List[int], agent_id: int, actor_id: Optional[int] = None
    ) -> Tuple[List[int], List[int]]:
        """
        Assign many prospects to one agent in a single transaction.
        Returns (assigned_ids, not_found); unknown ids are skipped.
        """
        agent = self._assignable_agent(agent_id)
        wanted = list(dict.fromkeys(prospect_ids))
        prospects = self.prospects.find_many(wanted)
        found = {p.id for p in prospects}

        try:
            for prospect in prospects:
                self._record_manual_assignment(prospect, agent, actor_id)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        assigned_ids = [p.id for p in prospects]
        logger.info(
            f"[green]Bulk assigned {len(assigned_ids)} prospect(s) to[/green] "
            f"[bold cyan]{agent.full_name}[/bold cyan]"
        )
        return assigned_ids, [i for i in wanted if i not in found]

    def update_prospect(self, prospect_id: int, data: ProspectUpdate, actor_id: Optional[int] = None) -> Prospect:
        """
        Edit contact details or move the prospect through the pipeline.

        Raises:
            NotFoundError: no such prospect
            ConflictError: the new phone already signed up for the campaign
            ValidationError: marking as won while the System Agent holds the lead
        """
        prospect = self.prospects.find_by_id(prospect_id)
        if prospect is None:
            raise NotFoundError(f"Prospect {prospect_id} not found")

        fields = data.model_dump(exclude_unset=True, exclude_none=True)
        if "phone" in fields:
            fields["phone"] = normalize_phone(fields["phone"])
        if "lead_status" in fields:
            fields["lead_status"] = LeadStatus(fields["lead_status"]).value
        changes = {
            key: {"from": getattr(prospect, key), "to": value}
            for key, value in fields.items()
            if getattr(prospect, key) != value
        }
        if not changes:
            return prospect

        if "phone" in changes and prospect.campaign_id is not None:
            if self.prospects.phone_taken(prospect.campaign_id, changes["phone"]["to"], exclude_id=prospect.id):
                raise ConflictError("This phone number has already signed up for this campaign.")

        won = changes.get("lead_status", {}).get("to") == LeadStatus.WON.value
        if won and (prospect.assigned_agent is None or self.guard.is_system_agent(prospect.assigned_agent)):
            raise ValidationError("Lead must be assigned to a real agent before marking as won")

        try:
            for key, change in changes.items():
                setattr(prospect, key, change["to"])
            if "lead_status" in changes:
                status_change = changes["lead_status"]
                description = f"Lead status changed from {status_change['from']} to {status_change['to']}"
            else:
                description = "Prospect details updated"
            self.activities.record(
                prospect_id=prospect.id,
                type=ActivityType.UPDATED.value,
                actor_user_id=actor_id,
                description=description,
                details={"changes": changes},
            )
            if won and prospect.campaign is not None:
                self.campaigns.bump_metric(prospect.campaign, "conversions")
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(prospect)
        logger.info(f"[green]Prospect {prospect.id} updated[/green] [dim]{sorted(changes)}[/dim]")
        return prospect

    def _assignable_agent(self, agent_id: int) -> User:
        agent = self.users.find_by_id(agent_id)
        if agent is None or not agent.is_agent or not agent.is_active:
            raise ValidationError("Invalid or inactive agent")
        return agent

    def _record_manual_assignment(self, prospect: Prospect, agent: User, actor_id: Optional[int]) -> None:
        previous_id = prospect.assigned_agent_id
        prospect.assigned_agent_id = agent.id
        self.activities.record(
            prospect_id=prospect.id,
            type=ActivityType.ASSIGNED.value,
            actor_user_id=actor_id,
            description=f"Manually assigned to agent {agent.full_name}",
            details={
                "assignedAgentId": agent.id,
                "previousAgentId": previous_id,
            },
        )
