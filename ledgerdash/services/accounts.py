"""
Account Directory

Accounts are the top-level ownership scope: every category, bank
account, card, transaction and business entity belongs to exactly one.

DESIGN DECISION: "Which account am I looking at" is not global state.
AccountContext holds it explicitly and persists it through an injected
SelectionStoreInterface, so it survives reloads and is trivially
replaceable in tests.
"""

from decimal import Decimal
from typing import Any, Optional

import structlog
from sqlalchemy import delete, func, or_, select, update

from ledgerdash.audit import AuditLogger
from ledgerdash.models.account import (
    Account,
    AccountCreate,
    AccountType,
    AccountUpdate,
    BankAccount,
    BankAccountBalance,
    BankAccountCreate,
    BankAccountUpdate,
)
from ledgerdash.models.common import TransactionType, ZERO, quantize
from ledgerdash.models.transaction import DeleteResult
from ledgerdash.services.base import LedgerService, column_values, load_account
from ledgerdash.services.categories import CategoryRegistry
from ledgerdash.services.storage import SelectionStoreInterface
from ledgerdash.services.storage.tables import (
    AccountRow,
    BankAccountRow,
    CategoryRow,
    ClientRow,
    CostCenterRow,
    CreditCardRow,
    InvoicePaymentRow,
    ProjectRow,
    TransactionRow,
)
from ledgerdash.validation import ConflictError, NotFoundError, ValidationError


logger = structlog.get_logger()


class AccountDirectory(LedgerService):
    """Accounts and their bank accounts."""

    def __init__(self, database, audit_logger=None):
        super().__init__(database, audit_logger)
        self._categories = CategoryRegistry(database, self._audit)

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def list_accounts(self) -> list[Account]:
        """All accounts in creation order."""
        with self._db.session_scope() as session:
            rows = session.scalars(select(AccountRow).order_by(AccountRow.id))
            return [Account.model_validate(row) for row in rows]

    def get_account(self, account_id: int) -> Account:
        with self._db.session_scope() as session:
            return Account.model_validate(load_account(session, account_id))

    def create_account(self, data: Any) -> Account:
        """
        Create an account and seed its default categories.

        Business accounts get the business category set on top.
        """
        payload = self._parse(AccountCreate, data, "create_account")

        with self._db.session_scope() as session:
            row = AccountRow(name=payload.name, type=payload.type.value)
            session.add(row)
            session.flush()
            self._categories.seed_defaults(session, row.id, payload.type)
            account = Account.model_validate(row)

        self._audit.log_account_created(account.id, account.name, account.type.value)
        return account

    def update_account(self, account_id: int, changes: Any) -> Account:
        """
        Rename an account.

        The type is fixed at creation. Sending the current type is
        harmless; sending a different one is rejected.
        """
        payload = self._parse(AccountUpdate, changes, "update_account", account_id)

        with self._db.session_scope() as session:
            row = load_account(session, account_id)
            if payload.type is not None and payload.type.value != row.type:
                raise ValidationError.for_field(
                    "type",
                    "immutable",
                    "Account type cannot be changed after creation",
                )
            if payload.name is not None:
                row.name = payload.name
            session.flush()
            account = Account.model_validate(row)

        self._audit.log_account_updated(account_id, payload.model_dump(exclude_unset=True, mode="json"))
        return account

    def delete_account(self, account_id: int) -> DeleteResult:
        """
        Delete an account and everything it owns.

        Raises:
            ConflictError: If any transaction still references the account
        """
        with self._db.session_scope() as session:
            row = load_account(session, account_id)
            transaction_count = session.scalar(
                select(func.count(TransactionRow.id)).where(TransactionRow.account_id == account_id)
            )
            name = row.name
            if not transaction_count:
                self._delete_children(session, account_id)
                session.delete(row)

        if transaction_count:
            self._audit.log_account_delete_blocked(account_id, transaction_count)
            raise ConflictError(
                f"Account {account_id} has {transaction_count} transactions and cannot be deleted"
            )

        self._audit.log_account_deleted(account_id, name)
        return DeleteResult(account_id=account_id, deleted_ids=[account_id])

    def _delete_children(self, session, account_id: int) -> None:
        """Remove child rows in foreign-key order."""
        bank_ids = select(BankAccountRow.id).where(BankAccountRow.account_id == account_id)
        # Shared bank accounts may be tagged on other accounts' transactions
        session.execute(
            update(TransactionRow)
            .where(TransactionRow.bank_account_id.in_(bank_ids))
            .values(bank_account_id=None)
            .execution_options(synchronize_session=False)
        )
        for table in (
            InvoicePaymentRow,
            ProjectRow,
            ClientRow,
            CostCenterRow,
            CreditCardRow,
            CategoryRow,
            BankAccountRow,
        ):
            session.execute(
                delete(table)
                .where(table.account_id == account_id)
                .execution_options(synchronize_session=False)
            )
        session.expire_all()

    # ------------------------------------------------------------------
    # Bank accounts
    # ------------------------------------------------------------------

    def list_bank_accounts(self, account_id: int) -> list[BankAccount]:
        """Bank accounts owned by the account, followed by shared ones of other accounts."""
        with self._db.session_scope() as session:
            load_account(session, account_id)
            stmt = (
                select(BankAccountRow)
                .where(or_(
                    BankAccountRow.account_id == account_id,
                    BankAccountRow.shared.is_(True),
                ))
                .order_by((BankAccountRow.account_id != account_id), BankAccountRow.name, BankAccountRow.id)
            )
            return [BankAccount.model_validate(row) for row in session.scalars(stmt)]

    def get_bank_account(self, bank_account_id: int) -> BankAccount:
        with self._db.session_scope() as session:
            return BankAccount.model_validate(self._load_bank_account(session, bank_account_id))

    def create_bank_account(self, account_id: int, data: Any) -> BankAccount:
        payload = self._parse(BankAccountCreate, data, "create_bank_account", account_id)

        with self._db.session_scope() as session:
            load_account(session, account_id)
            row = BankAccountRow(account_id=account_id, **payload.model_dump())
            session.add(row)
            session.flush()
            bank_account = BankAccount.model_validate(row)

        self._audit.log_bank_account_changed(account_id, bank_account.id, "created")
        return bank_account

    def update_bank_account(
        self,
        bank_account_id: int,
        changes: Any,
        acting_account_id: Optional[int] = None,
    ) -> BankAccount:
        """
        Update a bank account.

        Shared bank accounts are visible everywhere but only their
        owner may change them.
        """
        payload = self._parse(BankAccountUpdate, changes, "update_bank_account", acting_account_id)

        with self._db.session_scope() as session:
            row = self._load_bank_account(session, bank_account_id)
            self._check_owner(row, acting_account_id)
            for field, value in column_values(payload.model_dump(exclude_unset=True)).items():
                if value is not None:
                    setattr(row, field, value)
            session.flush()
            bank_account = BankAccount.model_validate(row)

        self._audit.log_bank_account_changed(bank_account.account_id, bank_account_id, "updated")
        return bank_account

    def delete_bank_account(
        self,
        bank_account_id: int,
        acting_account_id: Optional[int] = None,
    ) -> DeleteResult:
        """Delete a bank account. Transactions tagged with it are untagged."""
        with self._db.session_scope() as session:
            row = self._load_bank_account(session, bank_account_id)
            self._check_owner(row, acting_account_id)
            owner_id = row.account_id
            session.execute(
                update(TransactionRow)
                .where(TransactionRow.bank_account_id == bank_account_id)
                .values(bank_account_id=None)
            )
            session.delete(row)

        self._audit.log_bank_account_changed(owner_id, bank_account_id, "deleted")
        return DeleteResult(account_id=owner_id, deleted_ids=[bank_account_id])

    def get_bank_account_balance(self, bank_account_id: int) -> BankAccountBalance:
        """
        initial balance + income - expenses of every transaction tagged
        with this bank account.
        """
        with self._db.session_scope() as session:
            row = self._load_bank_account(session, bank_account_id)
            income = expenses = ZERO
            tagged = session.scalars(
                select(TransactionRow).where(TransactionRow.bank_account_id == bank_account_id)
            )
            for tx in tagged:
                if tx.type == TransactionType.INCOME.value:
                    income += tx.amount
                else:
                    expenses += tx.amount
            initial = row.initial_balance if row.initial_balance is not None else ZERO

        return BankAccountBalance(
            bank_account_id=bank_account_id,
            initial_balance=quantize(Decimal(initial)),
            income=quantize(income),
            expenses=quantize(expenses),
            balance=quantize(Decimal(initial) + income - expenses),
        )

    def _load_bank_account(self, session, bank_account_id: int) -> BankAccountRow:
        row = session.get(BankAccountRow, bank_account_id)
        if row is None:
            raise NotFoundError("BankAccount", bank_account_id)
        return row

    @staticmethod
    def _check_owner(row: BankAccountRow, acting_account_id: Optional[int]) -> None:
        if acting_account_id is not None and acting_account_id != row.account_id:
            raise ConflictError(
                f"Bank account {row.id} is shared from account {row.account_id} "
                "and can only be modified by its owner"
            )


class AccountContext:
    """
    The currently selected account.

    Resolution order:
    1. The saved selection, if that account still exists
    2. The first personal account
    3. The first account of any type
    4. None, when there are no accounts
    """

    def __init__(
        self,
        directory: AccountDirectory,
        store: SelectionStoreInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._directory = directory
        self._store = store
        self._audit = audit_logger or directory.audit_logger

    def resolve(self) -> Optional[Account]:
        accounts = self._directory.list_accounts()
        if not accounts:
            return None

        saved_id = self._store.load()
        if saved_id is not None:
            for account in accounts:
                if account.id == saved_id:
                    return account
            logger.info("stale_account_selection", account_id=saved_id)

        for account in accounts:
            if account.type == AccountType.PERSONAL:
                return account
        return accounts[0]

    def select(self, account_id: int) -> Account:
        """
        Make an account current and persist the choice.

        Raises:
            NotFoundError: If the account does not exist
        """
        account = self._directory.get_account(account_id)
        self._store.save(account.id)
        self._audit.log_account_selected(account.id)
        return account

    def clear(self) -> None:
        self._store.clear()

    @property
    def current_account_id(self) -> Optional[int]:
        account = self.resolve()
        return account.id if account else None
