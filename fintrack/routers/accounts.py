"""Accounts API router."""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from fintrack.config import Settings
from fintrack.database import get_db
from fintrack.dependencies import get_event_bus, get_settings
from fintrack.schemas.account import Account as AccountSchema
from fintrack.schemas.account import AccountUpdate
from fintrack.schemas.account_update import BalanceUpdate, BalanceUpdateCreate
from fintrack.services.events import EventBus
from fintrack.services.ledger import AccountHistoryService, AccountService
from fintrack.services.repositories.exceptions import NotFoundError

router = APIRouter(prefix="/api/accounts", tags=["accounts"])


def _service(db: Session, events: EventBus, settings: Settings) -> AccountService:
    return AccountService(
        db,
        events=events,
        default_name=settings.default_account_name,
        default_currency=settings.default_account_currency,
    )


@router.get("", response_model=list[AccountSchema])
async def list_accounts(
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
):
    """Get all accounts ordered by name."""
    return _service(db, events, settings).list()


@router.post("", response_model=AccountSchema, status_code=status.HTTP_201_CREATED)
async def create_account(
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
):
    """Create a new account with default name, currency and a zero balance."""
    return _service(db, events, settings).create_default()


@router.put("/{account_id}", response_model=AccountSchema)
async def update_account(
    account_id: int,
    account_update: AccountUpdate,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
):
    """Update an account; a balance change is recorded in its history."""
    try:
        return _service(db, events, settings).update(
            account_id, **account_update.model_dump(exclude_unset=True)
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete("/{account_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    account_id: int,
    db: Session = Depends(get_db),
    events: EventBus = Depends(get_event_bus),
    settings: Settings = Depends(get_settings),
):
    """Delete an account with its transactions and history."""
    try:
        _service(db, events, settings).delete(account_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.get("/{account_id}/updates", response_model=list[BalanceUpdate])
async def list_account_updates(account_id: int, db: Session = Depends(get_db)):
    """Get the balance history of an account, newest first."""
    try:
        return AccountHistoryService(db).list_for_account(account_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.post(
    "/{account_id}/updates",
    response_model=BalanceUpdate,
    status_code=status.HTTP_201_CREATED,
)
async def record_account_update(
    account_id: int,
    entry: BalanceUpdateCreate,
    db: Session = Depends(get_db),
):
    """Record a back-dated balance without changing the current balance."""
    try:
        return AccountHistoryService(db).record_historical_balance(
            account_id,
            previous_balance=entry.previous_balance,
            new_balance=entry.new_balance,
            updated_at=entry.updated_at,
        )
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
