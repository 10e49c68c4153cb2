"""Transactions API router.

Handlers are plain functions: a posting may fetch exchange rates over the
network, so they run in the threadpool instead of on the event loop.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from fintrack.database import get_db
from fintrack.dependencies import get_event_bus, get_rates_service
from fintrack.schemas.transaction import Transaction as TransactionSchema
from fintrack.schemas.transaction import TransactionCreate, TransactionUpdate
from fintrack.services.currency.rates_service import CurrencyRatesService
from fintrack.services.events import EventBus
from fintrack.services.ledger import TransactionService
from fintrack.services.repositories.exceptions import NotFoundError

router = APIRouter(prefix="/api/transactions", tags=["transactions"])


def _service(
    db: Session = Depends(get_db),
    rates_service: CurrencyRatesService = Depends(get_rates_service),
    events: EventBus = Depends(get_event_bus),
) -> TransactionService:
    return TransactionService(db, rates_service=rates_service, events=events)


@router.get("", response_model=list[TransactionSchema])
def list_transactions(service: TransactionService = Depends(_service)):
    """Get all transactions, most recent first."""
    return service.list()


@router.get("/currency-options", response_model=list[str])
def currency_options(service: TransactionService = Depends(_service)):
    """Currencies to offer when entering a transaction."""
    return service.currency_options()


@router.post("", response_model=TransactionSchema, status_code=status.HTTP_201_CREATED)
def create_transaction(
    transaction: TransactionCreate,
    service: TransactionService = Depends(_service),
):
    """Create a transaction and post it to its account."""
    try:
        return service.insert(**transaction.model_dump())
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.put("/{transaction_id}", response_model=TransactionSchema)
def update_transaction(
    transaction_id: int,
    transaction_update: TransactionUpdate,
    service: TransactionService = Depends(_service),
):
    """Edit a transaction; affected balances move by the net change."""
    try:
        return service.update(transaction_id, **transaction_update.model_dump(exclude_unset=True))
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: int,
    service: TransactionService = Depends(_service),
):
    """Delete a transaction and reverse its posting."""
    try:
        service.delete(transaction_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e)) from e
