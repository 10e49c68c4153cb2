"""Database initialization script with optional seed data.

Usage:
    python -m fintrack.init_db          # create tables
    python -m fintrack.init_db --seed   # create tables and sample accounts
"""

import argparse
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import Engine
from sqlalchemy.orm import Session

from fintrack.config import settings
from fintrack.database import Base, build_engine, build_session_factory
from fintrack.models import Account, AccountUpdate, Transaction


def create_tables(engine: Engine):
    """Create all database tables."""
    print("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    print("Tables created successfully!")


def seed_data(db: Session):
    """Seed the database with sample accounts and a short history."""
    print("\nSeeding database with sample data...")
    now = datetime.now()

    print("Creating accounts...")
    checking = Account(name="Checking", balance=Decimal("1450.00"), currency="EUR")
    savings = Account(name="Savings", balance=Decimal("5000.00"), currency="USD")
    wallet = Account(name="Cold Wallet", balance=Decimal("0.05000000"), currency="BTC")
    db.add_all([checking, savings, wallet])
    db.flush()

    print("Creating balance history...")
    db.add_all(
        [
            AccountUpdate(
                account_id=checking.id,
                previous_balance=Decimal("0"),
                new_balance=Decimal("1200.00"),
                updated_at=now - timedelta(days=60),
            ),
            AccountUpdate(
                account_id=savings.id,
                previous_balance=Decimal("0"),
                new_balance=Decimal("4000.00"),
                updated_at=now - timedelta(days=45),
            ),
            AccountUpdate(
                account_id=checking.id,
                previous_balance=Decimal("1200.00"),
                new_balance=Decimal("1500.00"),
                updated_at=now - timedelta(days=30),
            ),
            AccountUpdate(
                account_id=savings.id,
                previous_balance=Decimal("4000.00"),
                new_balance=Decimal("5000.00"),
                updated_at=now - timedelta(days=10),
            ),
            AccountUpdate(
                account_id=checking.id,
                previous_balance=Decimal("1500.00"),
                new_balance=Decimal("1450.00"),
                updated_at=now - timedelta(days=2),
            ),
        ]
    )

    print("Creating transactions...")
    db.add(
        Transaction(
            title="Groceries",
            amount=Decimal("-50.00"),
            currency="EUR",
            account_id=checking.id,
            created_at=now - timedelta(days=2),
        )
    )

    db.commit()
    print("Seed data created successfully!")
    print(f"  Accounts: {len([checking, savings, wallet])}")


def init_db(database_url: str | None = None, seed: bool = False):
    """Initialize database with tables and, optionally, seed data."""
    print("Initializing database...")
    engine = build_engine(database_url or settings.database_url)

    try:
        create_tables(engine)
        if not seed:
            return

        db = build_session_factory(engine)()
        try:
            existing_accounts = db.query(Account).count()
            if existing_accounts > 0:
                print(f"\nDatabase already has {existing_accounts} accounts. Skipping seed data.")
                return

            seed_data(db)
            print("\nDatabase initialization complete!")

        except Exception as e:
            print(f"\nError during database initialization: {e}")
            db.rollback()
            raise
        finally:
            db.close()
    finally:
        engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the fintrack database")
    parser.add_argument("--seed", action="store_true", help="Add sample accounts")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    args = parser.parse_args()
    init_db(args.database_url, seed=args.seed)
