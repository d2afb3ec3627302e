"""Accounts, bank accounts, categories and the current-account selection."""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from ledgerdash.api.dependencies import get_components
from ledgerdash.models import (
    Account,
    AccountCreate,
    AccountUpdate,
    BankAccount,
    BankAccountBalance,
    BankAccountCreate,
    BankAccountUpdate,
    Category,
    CategoryCreate,
    CategoryStat,
    CategoryUpdate,
    DeleteResult,
    TransactionType,
)
from ledgerdash.orchestrator import AppComponents


router = APIRouter(tags=["accounts"])


# Accounts

@router.get("/accounts", response_model=list[Account])
def list_accounts(components: AppComponents = Depends(get_components)):
    return components.accounts.list_accounts()


@router.post("/accounts", response_model=Account, status_code=201)
def create_account(payload: AccountCreate, components: AppComponents = Depends(get_components)):
    return components.accounts.create_account(payload)


@router.get("/accounts/current", response_model=Optional[Account])
def get_current_account(components: AppComponents = Depends(get_components)):
    return components.context.resolve()


@router.get("/accounts/{account_id}", response_model=Account)
def get_account(account_id: int, components: AppComponents = Depends(get_components)):
    return components.accounts.get_account(account_id)


@router.patch("/accounts/{account_id}", response_model=Account)
def update_account(
    account_id: int,
    payload: AccountUpdate,
    components: AppComponents = Depends(get_components),
):
    return components.accounts.update_account(account_id, payload)


@router.delete("/accounts/{account_id}", response_model=DeleteResult)
def delete_account(account_id: int, components: AppComponents = Depends(get_components)):
    return components.accounts.delete_account(account_id)


@router.post("/accounts/{account_id}/select", response_model=Account)
def select_account(account_id: int, components: AppComponents = Depends(get_components)):
    return components.context.select(account_id)


# Bank accounts

@router.get("/accounts/{account_id}/bank-accounts", response_model=list[BankAccount])
def list_bank_accounts(account_id: int, components: AppComponents = Depends(get_components)):
    return components.accounts.list_bank_accounts(account_id)


@router.post("/accounts/{account_id}/bank-accounts", response_model=BankAccount, status_code=201)
def create_bank_account(
    account_id: int,
    payload: BankAccountCreate,
    components: AppComponents = Depends(get_components),
):
    return components.accounts.create_bank_account(account_id, payload)


@router.get("/bank-accounts/{bank_account_id}", response_model=BankAccount)
def get_bank_account(bank_account_id: int, components: AppComponents = Depends(get_components)):
    return components.accounts.get_bank_account(bank_account_id)


@router.get("/bank-accounts/{bank_account_id}/balance", response_model=BankAccountBalance)
def get_bank_account_balance(bank_account_id: int, components: AppComponents = Depends(get_components)):
    return components.accounts.get_bank_account_balance(bank_account_id)


@router.patch("/bank-accounts/{bank_account_id}", response_model=BankAccount)
def update_bank_account(
    bank_account_id: int,
    payload: BankAccountUpdate,
    account_id: Optional[int] = Query(default=None, alias="accountId"),
    components: AppComponents = Depends(get_components),
):
    return components.accounts.update_bank_account(bank_account_id, payload, acting_account_id=account_id)


@router.delete("/bank-accounts/{bank_account_id}", response_model=DeleteResult)
def delete_bank_account(
    bank_account_id: int,
    account_id: Optional[int] = Query(default=None, alias="accountId"),
    components: AppComponents = Depends(get_components),
):
    return components.accounts.delete_bank_account(bank_account_id, acting_account_id=account_id)


# Categories

@router.get("/accounts/{account_id}/categories", response_model=list[Category])
def list_categories(
    account_id: int,
    category_type: Optional[TransactionType] = Query(default=None, alias="type"),
    components: AppComponents = Depends(get_components),
):
    return components.categories.list_categories(account_id, category_type)


@router.get("/accounts/{account_id}/categories/stats", response_model=list[CategoryStat])
def get_category_stats(
    account_id: int,
    month: Optional[str] = None,
    components: AppComponents = Depends(get_components),
):
    return components.reports.get_category_stats(account_id, month)


@router.post("/accounts/{account_id}/categories", response_model=Category, status_code=201)
def create_category(
    account_id: int,
    payload: CategoryCreate,
    components: AppComponents = Depends(get_components),
):
    return components.categories.create_category(account_id, payload)


@router.patch("/categories/{category_id}", response_model=Category)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    components: AppComponents = Depends(get_components),
):
    return components.categories.update_category(category_id, payload)


@router.delete("/categories/{category_id}", response_model=DeleteResult)
def delete_category(category_id: int, components: AppComponents = Depends(get_components)):
    return components.categories.delete_category(category_id)
