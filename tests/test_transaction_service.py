"""Tests for TransactionService postings and their balance effects."""

from datetime import datetime
from decimal import Decimal

import pytest

from fintrack.constants import Events
from fintrack.models import Account, AccountUpdate, Transaction
from fintrack.services.currency.exceptions import RateFetchError
from fintrack.services.events import EventBus
from fintrack.services.ledger import TransactionService
from fintrack.services.repositories.exceptions import NotFoundError


@pytest.fixture
def make_account(db_session):
    def _make(name="Checking", currency="EUR", balance=Decimal("0")):
        account = Account(name=name, currency=currency, balance=balance)
        db_session.add(account)
        db_session.commit()
        return account

    return _make


@pytest.fixture
def service(db_session, rates_service, clock):
    return TransactionService(db_session, rates_service=rates_service, clock=clock)


def _updates(db_session, account_id):
    return (
        db_session.query(AccountUpdate)
        .filter(AccountUpdate.account_id == account_id)
        .order_by(AccountUpdate.id)
        .all()
    )


class TestInsert:
    """Tests for inserting transactions."""

    def test_coffee_on_checking(self, service, make_account, db_session):
        checking = make_account()

        service.insert(title="Coffee", amount=-4.5, currency="EUR", account_id=checking.id)

        assert checking.balance == Decimal("-4.5")
        updates = _updates(db_session, checking.id)
        assert len(updates) == 1
        assert (updates[0].previous_balance, updates[0].new_balance) == (
            Decimal("0"),
            Decimal("-4.5"),
        )

    def test_converts_into_account_currency(self, service, make_account):
        wallet = make_account(name="US", currency="USD")

        service.insert(title="Refund", amount=Decimal("10"), currency="EUR", account_id=wallet.id)

        assert wallet.balance == Decimal("20")

    def test_defaults_created_at_to_now(self, service, make_account, clock):
        account = make_account()

        transaction = service.insert("Rent", Decimal("-800"), "eur", account.id)

        assert transaction.created_at == clock.now
        assert transaction.currency == "EUR"

    def test_missing_rate_still_saves_transaction(self, service, make_account, db_session):
        account = make_account(currency="CHF", balance=Decimal("5"))

        transaction = service.insert("Lunch", Decimal("-12"), "EUR", account.id)

        assert db_session.get(Transaction, transaction.id) is not None
        assert account.balance == Decimal("5")
        assert _updates(db_session, account.id) == []

    def test_rate_fetch_failure_still_posts_same_currency(
        self, service, make_account, fiat_source
    ):
        fiat_source.error = RateFetchError("down")
        account = make_account()

        service.insert("Gift", Decimal("25"), "EUR", account.id)
        service.insert("Book", Decimal("-10"), "USD", account.id)

        assert account.balance == Decimal("25")
        assert fiat_source.calls == 1

    def test_unknown_account(self, service, db_session):
        with pytest.raises(NotFoundError):
            service.insert("Orphan", Decimal("1"), "EUR", 404)

        assert db_session.query(Transaction).count() == 0


class TestRoundTrip:
    """Tests for insert followed by delete."""

    def test_insert_then_delete_restores_balance(self, service, make_account, db_session):
        account = make_account(balance=Decimal("100"))

        transaction = service.insert("Salary", Decimal("50"), "EUR", account.id)
        assert account.balance == Decimal("150")

        service.delete(transaction.id)

        assert account.balance == Decimal("100")
        updates = _updates(db_session, account.id)
        assert [(u.previous_balance, u.new_balance) for u in updates] == [
            (Decimal("100"), Decimal("150")),
            (Decimal("150"), Decimal("100")),
        ]
        assert db_session.query(Transaction).count() == 0

    def test_delete_missing_transaction(self, service):
        with pytest.raises(NotFoundError):
            service.delete(7)


class TestUpdate:
    """Tests for editing transactions."""

    def test_amount_edit_applies_net_change(self, service, make_account, db_session):
        account = make_account()
        transaction = service.insert("Groceries", Decimal("-10"), "EUR", account.id)

        service.update(transaction.id, amount=Decimal("-25"))

        assert account.balance == Decimal("-25")
        assert len(_updates(db_session, account.id)) == 2

    def test_title_edit_writes_no_update(self, service, make_account, db_session):
        account = make_account()
        transaction = service.insert("Groceries", Decimal("-10"), "EUR", account.id)

        updated = service.update(transaction.id, title="Market")

        assert updated.title == "Market"
        assert len(_updates(db_session, account.id)) == 1

    def test_currency_edit_converts_both_sides(self, service, make_account):
        account = make_account()
        transaction = service.insert("Hotel", Decimal("100"), "EUR", account.id)

        service.update(transaction.id, currency="USD")

        # 100 USD is 50 EUR
        assert account.balance == Decimal("50")

    def test_reassignment_moves_value_between_accounts(self, service, make_account):
        eur = make_account(name="EUR", currency="EUR")
        usd = make_account(name="USD", currency="USD")
        transaction = service.insert("Bonus", Decimal("10"), "EUR", eur.id)

        service.update(transaction.id, account_id=usd.id)

        assert eur.balance == Decimal("0")
        assert usd.balance == Decimal("20")
        assert transaction.account_id == usd.id

    def test_reassignment_to_unknown_account_changes_nothing(
        self, service, make_account, db_session
    ):
        account = make_account()
        transaction = service.insert("Bonus", Decimal("10"), "EUR", account.id)

        with pytest.raises(NotFoundError):
            service.update(transaction.id, account_id=999)

        db_session.expire_all()
        assert db_session.get(Transaction, transaction.id).account_id == account.id
        assert db_session.get(Account, account.id).balance == Decimal("10")


class TestSmallPostings:
    """Tests for postings at or below the audit threshold."""

    def test_small_postings_add_up_without_audit_rows(self, service, make_account, db_session):
        wallet = make_account(name="Wallet", currency="BTC")

        for _ in range(10):
            service.insert("Sats", Decimal("0.00005"), "BTC", wallet.id)

        assert wallet.balance == Decimal("0.0005")
        assert db_session.query(Transaction).count() == 10
        assert _updates(db_session, wallet.id) == []

    def test_posting_at_threshold_moves_balance_only(self, service, make_account, db_session):
        wallet = make_account(name="Wallet", currency="BTC")

        service.insert("Dust", Decimal("0.0001"), "BTC", wallet.id)

        assert wallet.balance == Decimal("0.0001")
        assert _updates(db_session, wallet.id) == []

    def test_posting_above_threshold_is_audited(self, service, make_account, db_session):
        wallet = make_account(name="Wallet", currency="BTC")

        service.insert("Sats", Decimal("0.00011"), "BTC", wallet.id)

        updates = _updates(db_session, wallet.id)
        assert [(u.previous_balance, u.new_balance) for u in updates] == [
            (Decimal("0"), Decimal("0.00011"))
        ]

    def test_small_converted_posting_moves_balance(self, service, make_account, db_session):
        """0.0001 USD is 0.00005 EUR at USD=2."""
        account = make_account(balance=Decimal("10"))

        service.insert("Rounding", Decimal("0.0001"), "USD", account.id)

        assert account.balance == Decimal("10.00005")
        assert _updates(db_session, account.id) == []

    def test_small_edit_moves_balance_only(self, service, make_account, db_session):
        account = make_account()
        transaction = service.insert("Groceries", Decimal("-10"), "EUR", account.id)

        service.update(transaction.id, amount=Decimal("-10.00005"))

        assert account.balance == Decimal("-10.00005")
        assert len(_updates(db_session, account.id)) == 1

    def test_small_posting_then_delete_restores_balance(self, service, make_account):
        wallet = make_account(name="Wallet", currency="BTC", balance=Decimal("1"))
        transaction = service.insert("Sats", Decimal("0.00005"), "BTC", wallet.id)

        service.delete(transaction.id)

        assert wallet.balance == Decimal("1")


class TestQueries:
    """Tests for listing and currency options."""

    def test_list_is_most_recent_first(self, service, make_account):
        account = make_account()
        service.insert("Old", 1, "EUR", account.id, created_at=datetime(2024, 1, 1))
        service.insert("New", 1, "EUR", account.id, created_at=datetime(2024, 2, 1))

        assert [t.title for t in service.list()] == ["New", "Old"]
        assert service.most_recent().title == "New"

    def test_currency_options_default(self, service):
        assert service.currency_options() == ["EUR"]

    def test_currency_options_include_accounts_and_last_transaction(
        self, service, make_account
    ):
        account = make_account(currency="USD")
        make_account(name="Main", currency="EUR")
        service.insert("Tea", Decimal("-3"), "GBP", account.id)

        assert list(service.currency_options()) == ["EUR", "GBP", "USD"]


def test_changes_publish_events(db_session, rates_service, make_account):
    bus = EventBus()
    received = []
    bus.subscribe(Events.TRANSACTIONS_CHANGED, lambda e: received.append(e.name))
    bus.subscribe(Events.ACCOUNTS_CHANGED, lambda e: received.append(e.name))
    account = make_account()

    TransactionService(db_session, rates_service=rates_service, events=bus).insert(
        "Coffee", Decimal("-2"), "EUR", account.id
    )

    assert received == [Events.TRANSACTIONS_CHANGED, Events.ACCOUNTS_CHANGED]
