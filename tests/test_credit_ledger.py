"""Tests for the credit ledger."""

from datetime import timedelta

from lead_router.models import AssignmentStatus
from lead_router.services.credit_ledger import CreditLedger, MANUAL, PACKAGE


class TestCreditLedger:
    """Package credit first (oldest purchase first), then the manual counter."""

    def test_balances(self, db, make_user, grant):
        a = make_user("A", owed_leads_count=2)
        b = make_user("B")
        grant(a, 5)

        balances = CreditLedger(db).balances([a, b])
        assert balances[a.id].package_credit == 5
        assert balances[a.id].manual_credit == 2
        assert balances[a.id].total == 7
        assert balances[b.id].total == 0

    def test_with_credit_filters_empty_agents(self, db, make_user, grant):
        a = make_user("A")
        b = make_user("B", owed_leads_count=1)
        c = make_user("C")
        grant(c, 1)

        assert CreditLedger(db).with_credit([a, b, c]) == [b, c]

    def test_oldest_purchase_is_spent_first(self, db, make_user, grant):
        a = make_user("A")
        newer = grant(a, 2)
        older = grant(a, 1)
        older.purchase_date = newer.purchase_date - timedelta(days=1)
        db.commit()

        ledger = CreditLedger(db)
        assert ledger.consume(a.id) == PACKAGE

        db.refresh(older)
        db.refresh(newer)
        assert older.leads_remaining == 0
        assert older.status == AssignmentStatus.DEPLETED.value
        assert newer.leads_remaining == 2

    def test_manual_counter_is_the_fallback(self, db, make_user, grant):
        a = make_user("A", owed_leads_count=1)
        grant(a, 1)
        ledger = CreditLedger(db)

        assert [ledger.consume(a.id) for _ in range(3)] == [PACKAGE, MANUAL, None]
        db.refresh(a)
        assert a.owed_leads_count == 0

    def test_archived_assignments_do_not_count(self, db, make_user, grant):
        a = make_user("A")
        assignment = grant(a, 4)
        assignment.status = AssignmentStatus.ARCHIVED.value
        db.commit()

        ledger = CreditLedger(db)
        assert ledger.balances([a])[a.id].total == 0
        assert ledger.consume(a.id) is None

    def test_remaining_never_goes_negative(self, db, make_user, grant):
        a = make_user("A")
        assignment = grant(a, 2)
        ledger = CreditLedger(db)

        results = [ledger.consume(a.id) for _ in range(4)]
        db.commit()

        assert results == [PACKAGE, PACKAGE, None, None]
        db.refresh(assignment)
        assert assignment.leads_remaining == 0

    def test_grant_snapshots_the_package(self, db, make_user, grant):
        a = make_user("A")
        assignment = grant(a, 25)

        assert assignment.leads_total == 25
        assert assignment.leads_remaining == 25
        assert assignment.status == AssignmentStatus.ACTIVE.value
        assert str(assignment.price_snapshot) == "10.00"
