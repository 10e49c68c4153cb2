"""Tests for AccountService and the balance audit trail it writes."""

from decimal import Decimal

import pytest

from fintrack.constants import Events
from fintrack.models import Account, AccountUpdate, Transaction
from fintrack.services.events import EventBus
from fintrack.services.ledger import AccountService
from fintrack.services.repositories.exceptions import NotFoundError


@pytest.fixture
def service(db_session, clock):
    return AccountService(db_session, clock=clock)


def _updates(db_session, account_id):
    return (
        db_session.query(AccountUpdate)
        .filter(AccountUpdate.account_id == account_id)
        .order_by(AccountUpdate.id)
        .all()
    )


class TestCreate:
    """Tests for creating accounts."""

    def test_create_default(self, service, db_session):
        account = service.create_default()

        assert account.id is not None
        assert account.name == "New Account"
        assert account.currency == "EUR"
        assert account.balance == Decimal("0")
        assert _updates(db_session, account.id) == []

    def test_configured_defaults(self, db_session):
        service = AccountService(db_session, default_name="Wallet", default_currency="usd")

        account = service.create_default()

        assert account.name == "Wallet"
        assert account.currency == "USD"

    def test_list_is_ordered_by_name_case_insensitively(self, service):
        names = ["savings", "Brokerage", "checking"]
        for name in names:
            service.update(service.create_default().id, name=name)

        assert [a.name for a in service.list()] == ["Brokerage", "checking", "savings"]


class TestUpdate:
    """Tests for editing accounts."""

    def test_balance_change_appends_update(self, service, db_session, clock):
        account = service.create_default()

        service.update(account.id, balance=Decimal("100"))

        updates = _updates(db_session, account.id)
        assert len(updates) == 1
        assert updates[0].previous_balance == Decimal("0")
        assert updates[0].new_balance == Decimal("100")
        assert updates[0].updated_at == clock.now

    def test_rename_without_balance_change_writes_no_update(self, service, db_session):
        account = service.create_default()

        updated = service.update(account.id, name="Checking", balance=Decimal("0"))

        assert updated.name == "Checking"
        assert _updates(db_session, account.id) == []

    def test_change_below_epsilon_is_not_audited(self, service, db_session):
        account = service.create_default()
        service.update(account.id, balance=Decimal("100"))

        updated = service.update(account.id, balance=Decimal("100.00005"))

        assert updated.balance == Decimal("100.00005")
        assert len(_updates(db_session, account.id)) == 1

    def test_currency_is_normalized(self, service):
        account = service.create_default()

        assert service.update(account.id, currency=" usd ").currency == "USD"

    def test_update_missing_account(self, service):
        with pytest.raises(NotFoundError):
            service.update(999, name="Ghost")

    def test_empty_currency_rolls_back(self, service, db_session):
        account = service.create_default()

        with pytest.raises(ValueError):
            service.update(account.id, name="Renamed", currency="  ")

        assert db_session.get(Account, account.id).name == "New Account"


class TestDelete:
    """Tests for deleting accounts."""

    def test_delete_cascades(self, service, db_session, clock):
        account = service.create_default()
        service.update(account.id, balance=Decimal("10"))
        db_session.add(
            Transaction(
                title="Salary",
                amount=Decimal("10"),
                currency="EUR",
                account_id=account.id,
                created_at=clock.now,
            )
        )
        db_session.commit()

        service.delete(account.id)

        assert db_session.query(Account).count() == 0
        assert db_session.query(AccountUpdate).count() == 0
        assert db_session.query(Transaction).count() == 0

    def test_delete_missing_account(self, service):
        with pytest.raises(NotFoundError):
            service.delete(42)


class TestEvents:
    """Tests for change notifications."""

    def test_changes_publish_account_list(self, db_session):
        bus = EventBus()
        received = []
        bus.subscribe(
            Events.ACCOUNTS_CHANGED, lambda e: received.append([a.name for a in e.payload])
        )
        service = AccountService(db_session, events=bus)

        account = service.create_default()
        service.update(account.id, name="Checking")
        service.delete(account.id)

        assert received == [
            ["New Account"],
            ["Checking"],
            [],
        ]

    def test_failed_update_publishes_nothing(self, db_session):
        bus = EventBus()
        received = []
        bus.subscribe(Events.ACCOUNTS_CHANGED, received.append)

        with pytest.raises(NotFoundError):
            AccountService(db_session, events=bus).update(1, name="Nope")

        assert received == []
