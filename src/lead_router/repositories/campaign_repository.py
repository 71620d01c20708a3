"""
Campaign queries
"""
from typing import Optional

from sqlalchemy import select

from lead_router.models import Campaign
from lead_router.repositories.base_repository import BaseRepository


class CampaignRepository(BaseRepository[Campaign]):
    model = Campaign

    def lock(self, campaign_id: int) -> Optional[Campaign]:
        """Load a campaign row with FOR UPDATE (no-op lock on SQLite)"""
        return self.db.execute(
            select(Campaign).where(Campaign.id == campaign_id).with_for_update()
        ).scalar_one_or_none()

    def bump_metric(self, campaign: Campaign, key: str, amount: int = 1) -> None:
        metrics = dict(campaign.metrics or {})
        metrics[key] = int(metrics.get(key, 0)) + amount
        # Reassign so the JSON column is flagged dirty
        campaign.metrics = metrics
