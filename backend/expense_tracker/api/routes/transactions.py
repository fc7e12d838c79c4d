"""
Transaction management routes. Every route requires a bearer token.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from expense_tracker.db.session import get_db
from expense_tracker.schemas.transaction import (
    TransactionCreate, TransactionUpdate, TransactionResponse,
    TransactionSummary, MessageResponse, DateBound
)
from expense_tracker.api.dependencies import get_current_user_id
from expense_tracker.models.transaction import TransactionType
from expense_tracker.services import transaction_service

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=List[TransactionResponse])
async def list_transactions(
    type: Optional[TransactionType] = None,
    category: Optional[str] = None,
    date_from: Optional[DateBound] = Query(None, alias="from"),
    date_to: Optional[DateBound] = Query(None, alias="to"),
    current_user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """List the current user's transactions, most recent first."""
    filters = transaction_service.build_filters(type, category, date_from, date_to)
    return transaction_service.list_transactions(db, current_user_id, filters)


@router.get("/summary", response_model=TransactionSummary)
async def get_summary(
    type: Optional[TransactionType] = None,
    category: Optional[str] = None,
    date_from: Optional[DateBound] = Query(None, alias="from"),
    date_to: Optional[DateBound] = Query(None, alias="to"),
    current_user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Income/expense totals with category and monthly breakdowns."""
    filters = transaction_service.build_filters(type, category, date_from, date_to)
    return transaction_service.summarize_transactions(db, current_user_id, filters)


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    current_user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a single transaction."""
    return transaction_service.get_owned_transaction(db, current_user_id, transaction_id)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    current_user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a new transaction."""
    return transaction_service.create_transaction(
        db, current_user_id, transaction_data.model_dump()
    )


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    transaction_data: TransactionUpdate,
    current_user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Update the fields supplied in the request body."""
    return transaction_service.update_transaction(
        db, current_user_id, transaction_id, transaction_data.model_dump(exclude_unset=True)
    )


@router.delete("/{transaction_id}", response_model=MessageResponse)
async def delete_transaction(
    transaction_id: int,
    current_user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete a transaction."""
    transaction_service.delete_transaction(db, current_user_id, transaction_id)
    return {"message": "Transaction removed"}
