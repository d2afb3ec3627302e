"""Credit cards, invoices and invoice payments."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ledgerdash.api.dependencies import get_components
from ledgerdash.models import (
    CreditCard,
    CreditCardCreate,
    CreditCardInvoice,
    CreditCardOverview,
    CreditCardUpdate,
    DeleteResult,
    InvoicePayment,
    ProcessResult,
)
from ledgerdash.orchestrator import AppComponents


router = APIRouter(tags=["credit-cards"])


@router.get("/accounts/{account_id}/credit-cards", response_model=list[CreditCard])
def list_credit_cards(account_id: int, components: AppComponents = Depends(get_components)):
    return components.invoices.list_credit_cards(account_id)


@router.get("/accounts/{account_id}/credit-cards/overview", response_model=list[CreditCardOverview])
def list_credit_card_overviews(account_id: int, components: AppComponents = Depends(get_components)):
    return components.invoices.card_overviews(account_id)


@router.post("/accounts/{account_id}/credit-cards", response_model=CreditCard, status_code=201)
def create_credit_card(
    account_id: int,
    payload: CreditCardCreate,
    components: AppComponents = Depends(get_components),
):
    return components.invoices.create_credit_card(account_id, payload)


@router.get("/credit-cards/{credit_card_id}", response_model=CreditCard)
def get_credit_card(credit_card_id: int, components: AppComponents = Depends(get_components)):
    return components.invoices.get_credit_card(credit_card_id)


@router.patch("/credit-cards/{credit_card_id}", response_model=CreditCard)
def update_credit_card(
    credit_card_id: int,
    payload: CreditCardUpdate,
    components: AppComponents = Depends(get_components),
):
    return components.invoices.update_credit_card(credit_card_id, payload)


@router.delete("/credit-cards/{credit_card_id}", response_model=DeleteResult)
def delete_credit_card(credit_card_id: int, components: AppComponents = Depends(get_components)):
    return components.invoices.delete_credit_card(credit_card_id)


@router.get("/credit-cards/{credit_card_id}/invoices/{month}", response_model=CreditCardInvoice)
def get_invoice(
    credit_card_id: int,
    month: str,
    components: AppComponents = Depends(get_components),
):
    return components.invoices.get_invoice(credit_card_id, month)


@router.get("/accounts/{account_id}/credit-card-invoices", response_model=list[CreditCardInvoice])
def list_invoices(
    account_id: int,
    credit_card_id: Optional[int] = Query(default=None, alias="creditCardId"),
    components: AppComponents = Depends(get_components),
):
    return components.invoices.list_invoices(account_id, credit_card_id)


@router.get("/accounts/{account_id}/invoice-payments", response_model=list[InvoicePayment])
def list_invoice_payments(account_id: int, components: AppComponents = Depends(get_components)):
    return components.invoices.list_invoice_payments(account_id)


@router.post("/accounts/{account_id}/invoice-payments/process-overdue", response_model=ProcessResult)
def process_overdue_invoices(account_id: int, components: AppComponents = Depends(get_components)):
    return components.invoices.process_overdue_invoices(account_id)
