"""Ledger transactions and credit card purchases."""

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, Query

from ledgerdash.api.dependencies import get_components
from ledgerdash.models import (
    DeleteResult,
    EditScope,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)
from ledgerdash.orchestrator import AppComponents
from ledgerdash.validation import NotFoundError, ValidationError


router = APIRouter(tags=["ledger"])


# Ledger transactions

@router.get("/accounts/{account_id}/transactions", response_model=list[Transaction])
def list_transactions(
    account_id: int,
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    components: AppComponents = Depends(get_components),
):
    return components.ledger.list_transactions(
        account_id,
        start=start,
        end=end,
        limit=limit,
        card_purchases=False,
    )


@router.post("/accounts/{account_id}/transactions", response_model=list[Transaction], status_code=201)
def create_transaction(
    account_id: int,
    payload: TransactionCreate,
    components: AppComponents = Depends(get_components),
):
    return components.ledger.create_transaction(account_id, payload)


@router.get("/transactions/{transaction_id}", response_model=Transaction)
def get_transaction(transaction_id: int, components: AppComponents = Depends(get_components)):
    return components.ledger.get_transaction(transaction_id)


@router.patch("/transactions/{transaction_id}", response_model=list[Transaction])
def update_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    scope: EditScope = EditScope.SINGLE,
    components: AppComponents = Depends(get_components),
):
    return components.ledger.update_transaction(transaction_id, payload, scope)


@router.delete("/transactions/{transaction_id}", response_model=DeleteResult)
def delete_transaction(
    transaction_id: int,
    scope: EditScope = EditScope.SINGLE,
    components: AppComponents = Depends(get_components),
):
    return components.ledger.delete_transaction(transaction_id, scope)


@router.get("/series/{series_id}", response_model=list[Transaction])
def get_series(series_id: str, components: AppComponents = Depends(get_components)):
    return components.ledger.get_series(series_id)


# Credit card purchases

def _require_card_purchase(components: AppComponents, transaction_id: int) -> None:
    if components.ledger.get_transaction(transaction_id).credit_card_id is None:
        raise NotFoundError("Credit card transaction", transaction_id)


@router.get("/accounts/{account_id}/credit-card-transactions", response_model=list[Transaction])
def list_credit_card_transactions(
    account_id: int,
    credit_card_id: Optional[int] = Query(default=None, alias="creditCardId"),
    start: Optional[dt.date] = None,
    end: Optional[dt.date] = None,
    components: AppComponents = Depends(get_components),
):
    return components.ledger.list_transactions(
        account_id,
        start=start,
        end=end,
        card_purchases=True,
        credit_card_id=credit_card_id,
    )


@router.post(
    "/accounts/{account_id}/credit-card-transactions",
    response_model=list[Transaction],
    status_code=201,
)
def create_credit_card_transaction(
    account_id: int,
    payload: TransactionCreate,
    components: AppComponents = Depends(get_components),
):
    if payload.credit_card_id is None:
        raise ValidationError.for_field(
            "credit_card_id",
            "missing",
            "creditCardId is required for credit card transactions",
        )
    return components.ledger.create_transaction(account_id, payload)


@router.patch("/credit-card-transactions/{transaction_id}", response_model=list[Transaction])
def update_credit_card_transaction(
    transaction_id: int,
    payload: TransactionUpdate,
    scope: EditScope = EditScope.SINGLE,
    components: AppComponents = Depends(get_components),
):
    _require_card_purchase(components, transaction_id)
    return components.ledger.update_transaction(transaction_id, payload, scope)


@router.delete("/credit-card-transactions/{transaction_id}", response_model=DeleteResult)
def delete_credit_card_transaction(
    transaction_id: int,
    scope: EditScope = EditScope.SINGLE,
    components: AppComponents = Depends(get_components),
):
    _require_card_purchase(components, transaction_id)
    return components.ledger.delete_transaction(transaction_id, scope)
