"""Tests for credit-aware round-robin routing."""

from collections import Counter

import pytest
from sqlalchemy import update

from lead_router.models import LeadPackageAssignment, Prospect, ProspectActivity, User
from lead_router.schemas.prospects import ProspectUpdate
from lead_router.services.credit_ledger import CreditLedger, MANUAL, PACKAGE
from lead_router.services.lead_routing_service import LeadRoutingService
from lead_router.utils.exceptions import ConflictError, DatabaseError, ValidationError


class TestCampaignRouting:
    """Routing within a campaign pool."""

    def test_credit_holder_takes_every_lead_then_overflow(self, db, system_agent, make_user, grant, make_campaign, route):
        """A with 5 credits and B with none: five leads go to A, the sixth to the System Agent."""
        a = make_user("A")
        b = make_user("B")
        assignment = grant(a, 5)
        campaign = make_campaign([a, b])

        for _ in range(5):
            result = route(campaign)
            assert result.agent.id == a.id
            assert not result.overflow

        db.refresh(assignment)
        assert assignment.leads_remaining == 0
        assert assignment.status == "depleted"

        result = route(campaign)
        assert result.overflow
        assert result.prospect.assigned_agent_id == system_agent.id

    def test_balance_across_agents(self, db, system_agent, make_user, grant, make_campaign, route):
        """N=90 leads over K=3 agents holding enough credit spread evenly."""
        agents = [make_user(f"Agent{i}") for i in range(3)]
        for agent in agents:
            grant(agent, 90)
        campaign = make_campaign(agents)

        for _ in range(90):
            route(campaign)

        counts = Counter(
            p.assigned_agent_id for p in db.query(Prospect).filter(Prospect.campaign_id == campaign.id)
        )
        assert set(counts) == {a.id for a in agents}
        assert max(counts.values()) - min(counts.values()) <= 1

    def test_rotation_follows_creation_order(self, system_agent, make_user, make_campaign, route):
        """With equal counts the longest-waiting agent goes next."""
        a = make_user("A", owed_leads_count=10)
        b = make_user("B", owed_leads_count=10)
        c = make_user("C", owed_leads_count=10)
        campaign = make_campaign([a, b, c])

        picked = [route(campaign).agent.id for _ in range(6)]
        assert picked == [a.id, b.id, c.id, a.id, b.id, c.id]

    def test_rotation_is_scoped_to_the_campaign(self, system_agent, make_user, make_campaign, route):
        """Leads held in another campaign do not push an agent back in this one."""
        a = make_user("A", owed_leads_count=10)
        b = make_user("B", owed_leads_count=10)
        other = make_campaign([a], name="Other")
        for _ in range(3):
            route(other)

        campaign = make_campaign([a, b])
        assert route(campaign).agent.id == a.id

    def test_agent_without_credit_is_skipped(self, system_agent, make_user, make_campaign, route):
        a = make_user("A", owed_leads_count=0)
        b = make_user("B", owed_leads_count=3)
        campaign = make_campaign([a, b])

        assert [route(campaign).agent.id for _ in range(3)] == [b.id] * 3

    def test_inactive_pool_member_is_skipped(self, db, system_agent, make_user, make_campaign, route):
        a = make_user("A", owed_leads_count=5, is_active=False)
        b = make_user("B", owed_leads_count=5)
        campaign = make_campaign([a, b])

        assert route(campaign).agent.id == b.id

    def test_pool_with_no_active_agents_overflows(self, system_agent, make_user, make_campaign, route):
        """A named pool never falls back to the global pool."""
        a = make_user("A", owed_leads_count=5, is_active=False)
        make_user("Outsider", owed_leads_count=5)
        campaign = make_campaign([a])

        result = route(campaign)
        assert result.overflow
        assert result.agent.id == system_agent.id

    def test_campaign_metric_is_bumped(self, db, system_agent, make_user, make_campaign, route):
        a = make_user("A", owed_leads_count=5)
        campaign = make_campaign([a])
        route(campaign)
        route(campaign)

        db.refresh(campaign)
        assert campaign.metrics["leads"] == 2


class TestGlobalRouting:
    """Prospects without a campaign (or with an empty pool) use every active agent."""

    def test_global_pool_excludes_system_agent(self, system_agent, make_user, route):
        a = make_user("A", owed_leads_count=1)
        b = make_user("B", owed_leads_count=1)

        picked = {route().agent.id for _ in range(2)}
        assert picked == {a.id, b.id}

        result = route()
        assert result.overflow
        assert result.agent.id == system_agent.id

    def test_empty_campaign_pool_uses_global_pool(self, system_agent, make_user, make_campaign, route):
        a = make_user("A", owed_leads_count=1)
        campaign = make_campaign([])

        assert route(campaign).agent.id == a.id

    def test_admins_are_not_routed_to(self, system_agent, make_user, route):
        make_user("Admin", role="admin", owed_leads_count=5)

        assert route().overflow


class TestCreditConservation:
    """Every routed lead spends exactly one credit from its assignee."""

    def test_decrements_match_assignments(self, db, system_agent, make_user, grant, make_campaign, route):
        a = make_user("A")
        b = make_user("B")
        grant(a, 4)
        grant(b, 2)
        campaign = make_campaign([a, b])

        for _ in range(9):
            route(campaign)

        held = Counter(p.assigned_agent_id for p in db.query(Prospect))
        for agent, total in ((a, 4), (b, 2)):
            spent = sum(
                x.leads_total - x.leads_remaining
                for x in db.query(LeadPackageAssignment).filter_by(agent_id=agent.id)
            )
            assert spent == held[agent.id] == total
        assert held[system_agent.id] == 3

    def test_overflow_spends_nothing(self, db, system_agent, make_user, make_campaign, route):
        a = make_user("A", owed_leads_count=0)
        campaign = make_campaign([a])
        route(campaign)

        db.refresh(a)
        db.refresh(system_agent)
        assert a.owed_leads_count == 0
        assert system_agent.owed_leads_count == 0


class TestRoutingAudit:
    def test_created_and_assigned_activities(self, db, system_agent, make_user, make_campaign, route):
        a = make_user("Alice", last_name="Smith", owed_leads_count=1)
        campaign = make_campaign([a], name="Open House")
        prospect = route(campaign, lead_source="website").prospect

        activities = db.query(ProspectActivity).filter_by(prospect_id=prospect.id).order_by(ProspectActivity.id).all()
        assert [x.type for x in activities] == ["created", "assigned"]
        assert activities[0].description == "Prospect created via website for campaign Open House"
        assert activities[1].description.startswith("Assigned to agent Alice Smith via round robin for campaign Open House at ")
        assert activities[1].details["creditSource"] == MANUAL

    def test_overflow_activity_mentions_overflow(self, db, system_agent, route):
        prospect = route().prospect

        assigned = db.query(ProspectActivity).filter_by(prospect_id=prospect.id, type="assigned").one()
        assert "overflow (no agent credit available)" in assigned.description
        assert "campaign N/A" in assigned.description
        assert assigned.details["overflow"] is True


class TestRoutingErrors:
    def test_unknown_campaign_is_rejected(self, system_agent, route):
        class Missing:
            id = 999

        with pytest.raises(ValidationError):
            route(Missing())

    def test_duplicate_phone_in_campaign_conflicts(self, system_agent, make_user, make_campaign, route):
        a = make_user("A", owed_leads_count=5)
        campaign = make_campaign([a])
        route(campaign, phone="(555) 123-4567")

        with pytest.raises(ConflictError):
            route(campaign, phone="555-123-4567")

    def test_missing_system_agent_is_fatal(self, db, make_user, route):
        make_user("A", owed_leads_count=0)

        with pytest.raises(DatabaseError) as exc:
            route()
        assert exc.value.status_code == 500
        assert db.query(Prospect).count() == 0


class TestConcurrentCredit:
    """A credit spent by another request between selection and decrement."""

    def test_retry_moves_to_next_agent(self, db, system_agent, make_user, make_campaign, route, monkeypatch):
        a = make_user("A", owed_leads_count=1)
        b = make_user("B", owed_leads_count=1)
        campaign = make_campaign([a, b])
        real_consume = CreditLedger.consume
        calls = []

        def drained_first(self, agent_id):
            calls.append(agent_id)
            if len(calls) == 1:
                self.db.execute(update(User).where(User.id == agent_id).values(owed_leads_count=0))
                return None
            return real_consume(self, agent_id)

        monkeypatch.setattr(CreditLedger, "consume", drained_first)

        result = route(campaign)
        assert calls == [a.id, b.id]
        assert result.agent.id == b.id
        assert not result.overflow

    def test_second_conflict_overflows(self, system_agent, make_user, make_campaign, route, monkeypatch):
        a = make_user("A", owed_leads_count=1)
        campaign = make_campaign([a])
        monkeypatch.setattr(CreditLedger, "consume", lambda self, agent_id: None)

        result = route(campaign)
        assert result.overflow
        assert result.agent.id == system_agent.id


class TestManualAssignment:
    def test_reassign_and_unassign(self, db, system_agent, make_user, route):
        a = make_user("A", owed_leads_count=1)
        b = make_user("Bob", last_name="Jones")
        prospect = route().prospect
        service = LeadRoutingService(db)

        prospect = service.assign_prospect(prospect.id, b.id)
        assert prospect.assigned_agent_id == b.id
        db.refresh(b)
        assert b.owed_leads_count == 0

        prospect = service.assign_prospect(prospect.id, None)
        assert prospect.assigned_agent_id is None
        last = prospect.activities[-1]
        assert last.type == "unassigned"
        assert last.description == "Lead manually unassigned from agent Bob Jones"

    def test_inactive_target_is_rejected(self, db, system_agent, make_user, route):
        make_user("A", owed_leads_count=1)
        inactive = make_user("Gone", is_active=False)
        prospect = route().prospect

        with pytest.raises(ValidationError):
            LeadRoutingService(db).assign_prospect(prospect.id, inactive.id)

    def test_bulk_assign_moves_every_known_prospect(self, db, system_agent, make_user, route):
        make_user("A", owed_leads_count=2)
        b = make_user("Bob", last_name="Jones")
        first = route().prospect
        second = route().prospect

        assigned, not_found = LeadRoutingService(db).bulk_assign([second.id, first.id, 9999], b.id)

        assert assigned == [first.id, second.id]
        assert not_found == [9999]
        for prospect_id in assigned:
            prospect = db.get(Prospect, prospect_id)
            assert prospect.assigned_agent_id == b.id
            assert prospect.activities[-1].description == "Manually assigned to agent Bob Jones"

    def test_bulk_assign_to_inactive_agent_changes_nothing(self, db, system_agent, make_user, route):
        a = make_user("A", owed_leads_count=1)
        inactive = make_user("Gone", is_active=False)
        prospect = route().prospect

        with pytest.raises(ValidationError, match="Invalid or inactive agent"):
            LeadRoutingService(db).bulk_assign([prospect.id], inactive.id)
        assert db.get(Prospect, prospect.id).assigned_agent_id == a.id


class TestProspectUpdates:
    def test_status_change_is_logged(self, db, system_agent, make_user, route):
        make_user("A", owed_leads_count=1)
        prospect = route().prospect

        updated = LeadRoutingService(db).update_prospect(prospect.id, ProspectUpdate(lead_status="contacted"))

        assert updated.lead_status == "contacted"
        last = updated.activities[-1]
        assert last.type == "updated"
        assert last.description == "Lead status changed from new to contacted"
        assert last.details == {"changes": {"lead_status": {"from": "new", "to": "contacted"}}}

    def test_details_change_is_logged(self, db, system_agent, make_user, route):
        make_user("A", owed_leads_count=1)
        prospect = route().prospect

        updated = LeadRoutingService(db).update_prospect(
            prospect.id, ProspectUpdate(email="Moved@Example.com", phone="(555) 123-4567")
        )

        assert updated.email == "moved@example.com"
        assert updated.phone == "5551234567"
        assert updated.activities[-1].description == "Prospect details updated"

    def test_unchanged_fields_write_nothing(self, db, system_agent, make_user, route):
        make_user("A", owed_leads_count=1)
        prospect = route().prospect
        before = len(prospect.activities)

        LeadRoutingService(db).update_prospect(prospect.id, ProspectUpdate(lead_status="new"))

        db.refresh(prospect)
        assert len(prospect.activities) == before

    def test_system_agent_lead_cannot_be_won(self, db, system_agent, route):
        prospect = route().prospect
        assert prospect.assigned_agent_id == system_agent.id

        with pytest.raises(ValidationError, match="real agent"):
            LeadRoutingService(db).update_prospect(prospect.id, ProspectUpdate(lead_status="won"))
        db.refresh(prospect)
        assert prospect.lead_status == "new"

    def test_won_counts_a_conversion(self, db, system_agent, make_user, make_campaign, route):
        a = make_user("A", owed_leads_count=1)
        campaign = make_campaign([a])
        prospect = route(campaign).prospect

        LeadRoutingService(db).update_prospect(prospect.id, ProspectUpdate(lead_status="won"))

        db.refresh(campaign)
        assert campaign.metrics == {"leads": 1, "conversions": 1}

    def test_phone_taken_in_campaign_conflicts(self, db, system_agent, make_user, make_campaign, route):
        a = make_user("A", owed_leads_count=2)
        campaign = make_campaign([a])
        route(campaign, phone="5550009999")
        prospect = route(campaign).prospect

        with pytest.raises(ConflictError):
            LeadRoutingService(db).update_prospect(prospect.id, ProspectUpdate(phone="5550009999"))


def test_credit_sources_are_reported(system_agent, make_user, grant, route):
    """Package credit pays before the manual counter."""
    a = make_user("A", owed_leads_count=1)
    grant(a, 1)

    assert route().credit_source == PACKAGE
    assert route().credit_source == MANUAL
    assert route().overflow
