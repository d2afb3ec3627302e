"""
Transaction Ledger

Income and expense records, installment and recurring series, and
scoped edits.

INSTALLMENT SERIES:
A purchase of N installments is stored as N rows sharing a series_id.
Row k (1-based) is dated k-1 calendar months after the first one
(clamped to month end) and carries its share of the total. Shares are
equal to the cent; the leftover cents go to the first installment, so
the shares always add up to the total exactly:

    100.00 / 3 -> 33.34, 33.33, 33.33

RECURRING SERIES:
A recurring transaction is stored as one row per occurrence, from its
date up to the end date, each at the full amount. Occurrence k is
computed from the first date, so a monthly series started on the 31st
returns to the 31st whenever the month has one.

SCOPED EDITS:
An edit or delete of a series row names a scope:
- single: only that row
- future: that row and every later one
- all:    every row of the series
All affected rows change in one data-store transaction or none do.

SETTLED CARD PURCHASES:
Once an invoice is paid, its purchases keep their invoice month. Their
amount, type, date and card can no longer change, and they cannot be
deleted.
"""

import calendar
import datetime as dt
from decimal import Decimal
from typing import Any, Optional
from uuid import uuid4

from dateutil.relativedelta import relativedelta
from sqlalchemy import select, update

from ledgerdash.models.common import CENT, TransactionType
from ledgerdash.models.transaction import (
    DeleteResult,
    EditScope,
    RecurrenceFrequency,
    Transaction,
    TransactionCreate,
    TransactionUpdate,
)
from ledgerdash.services.base import LedgerService, column_values, load_account
from ledgerdash.services.storage.tables import (
    AccountRow,
    BankAccountRow,
    CategoryRow,
    CostCenterRow,
    CreditCardRow,
    InvoicePaymentRow,
    ProjectRow,
    TransactionRow,
)
from ledgerdash.validation import ConflictError, NotFoundError, ValidationError, parse_date


MAX_OCCURRENCES = 120

RECURRENCE_STEPS = {
    RecurrenceFrequency.WEEKLY: relativedelta(weeks=1),
    RecurrenceFrequency.MONTHLY: relativedelta(months=1),
    RecurrenceFrequency.BIMONTHLY: relativedelta(months=2),
    RecurrenceFrequency.QUARTERLY: relativedelta(months=3),
    RecurrenceFrequency.SEMIANNUAL: relativedelta(months=6),
    RecurrenceFrequency.YEARLY: relativedelta(years=1),
}

# Fields a settled card purchase must keep
SETTLED_FIELDS = ("amount", "type", "credit_card_id")


def split_amount(total: Decimal, count: int) -> list[Decimal]:
    """
    Split a total into `count` cent-exact shares.

    The remainder cents go to the first share.
    """
    if count < 1:
        raise ValueError("count must be at least 1")
    cents = int((total / CENT).to_integral_value())
    base, remainder = divmod(cents, count)
    shares = [base] * count
    shares[0] += remainder
    return [(Decimal(share) * CENT).quantize(CENT) for share in shares]


def add_months(day: dt.date, months: int) -> dt.date:
    """Shift a date by calendar months, clamping to the end of the month."""
    return day + relativedelta(months=months)


def recurrence_dates(start: dt.date, frequency: Any, end: dt.date) -> list[dt.date]:
    """
    Occurrence dates from `start` to `end`, both inclusive.

    Raises:
        ValidationError: If the range holds more than MAX_OCCURRENCES
    """
    step = RECURRENCE_STEPS[RecurrenceFrequency(frequency)]
    dates = []
    while True:
        day = start + step * len(dates)
        if day > end:
            return dates
        if len(dates) == MAX_OCCURRENCES:
            raise ValidationError.for_field(
                "recurrence_end_date",
                "out_of_range",
                f"A recurring transaction is limited to {MAX_OCCURRENCES} occurrences",
            )
        dates.append(day)


def rebase_date(day: dt.date, old_anchor: dt.date, new_anchor: dt.date, weekly: bool = False) -> dt.date:
    """
    Move `day` the way an edited row moved from old_anchor to new_anchor.

    Weekly rows move by the same number of days. Other rows move by the
    same number of calendar months and keep their own day of month,
    unless the edit changed the day, in which case they take the new
    day (clamped to month end).
    """
    if weekly:
        return day + (new_anchor - old_anchor)
    months = (new_anchor.year - old_anchor.year) * 12 + new_anchor.month - old_anchor.month
    wanted = new_anchor.day if new_anchor.day != old_anchor.day else day.day
    target = day.replace(day=1) + relativedelta(months=months)
    return target.replace(day=min(wanted, calendar.monthrange(target.year, target.month)[1]))


def parse_scope(scope: Any) -> EditScope:
    if isinstance(scope, EditScope):
        return scope
    try:
        return EditScope(str(scope).lower())
    except ValueError:
        raise ValidationError.for_field(
            "scope",
            "invalid_value",
            f"Unknown scope {scope!r}: expected single, future or all",
        )


# (field, row class, entity label, business only)
REFERENCES = [
    ("category_id", CategoryRow, "Category", False),
    ("credit_card_id", CreditCardRow, "Credit card", False),
    ("bank_account_id", BankAccountRow, "Bank account", False),
    ("project_id", ProjectRow, "Project", True),
    ("cost_center_id", CostCenterRow, "Cost center", True),
]


class TransactionLedger(LedgerService):
    """Ledger rows and installment series."""

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _check_references(session, account: AccountRow, values: dict) -> None:
        """
        Every referenced entity must exist and belong to the account.

        Bank accounts may also be shared ones owned by another account.
        """
        for field, row_cls, label, business_only in REFERENCES:
            ref_id = values.get(field)
            if ref_id is None:
                continue
            if business_only and account.type != "business":
                raise ValidationError.for_field(
                    field,
                    "account_type",
                    f"{label}s are only available on business accounts",
                )
            ref = session.get(row_cls, ref_id)
            shared = field == "bank_account_id" and ref is not None and ref.shared
            if ref is None or (ref.account_id != account.id and not shared):
                raise ValidationError.for_field(
                    field,
                    "unknown_reference",
                    f"{label} {ref_id} does not exist in account {account.id}",
                )

    @staticmethod
    def _check_card_purchase(row: TransactionRow) -> None:
        if row.credit_card_id is None:
            return
        if row.type != TransactionType.EXPENSE.value:
            raise ValidationError.for_field(
                "type",
                "invalid_value",
                "Credit card transactions must be expenses",
            )
        if row.bank_account_id is not None:
            raise ValidationError.for_field(
                "bank_account_id",
                "invalid_value",
                "A credit card transaction cannot also target a bank account",
            )

    def _load_for_update(self, session, transaction_id: int) -> TransactionRow:
        row = session.scalars(
            select(TransactionRow)
            .where(TransactionRow.id == transaction_id)
            .with_for_update()
        ).first()
        if row is None:
            raise NotFoundError("Transaction", transaction_id)
        return row

    @staticmethod
    def _scope_rows(session, row: TransactionRow, scope: EditScope) -> list[TransactionRow]:
        """Rows an edit at `row` touches, ordered by installment index."""
        if row.series_id is None or scope == EditScope.SINGLE:
            return [row]
        stmt = select(TransactionRow).where(TransactionRow.series_id == row.series_id)
        if scope == EditScope.FUTURE:
            stmt = stmt.where(TransactionRow.installment_index >= row.installment_index)
        stmt = stmt.order_by(TransactionRow.installment_index).with_for_update()
        return list(session.scalars(stmt))

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_transaction(self, account_id: int, data: Any) -> list[Transaction]:
        """
        Record a transaction.

        With installment_total > 1 the amount is split into an
        installment series. With a recurrence frequency one row is
        created per occurrence. Returns every created row, first one
        first.
        """
        payload = self._parse(TransactionCreate, data, "create_transaction", account_id)

        if payload.is_recurring:
            dates = recurrence_dates(payload.date, payload.recurrence_frequency, payload.recurrence_end_date)
            amounts = [payload.amount] * len(dates)
        else:
            count = payload.installment_total
            if payload.amount < CENT * count:
                raise ValidationError.for_field(
                    "amount",
                    "out_of_range",
                    f"Amount {payload.amount} is too small to split into {count} installments",
                )
            dates = [add_months(payload.date, offset) for offset in range(count)]
            amounts = split_amount(payload.amount, count)

        count = len(dates)
        values = payload.model_dump(exclude={
            "amount",
            "date",
            "installment_total",
            "recurrence_frequency",
            "recurrence_end_date",
        })
        series_id = str(uuid4()) if count > 1 or payload.is_recurring else None
        recurrence = {}
        if payload.is_recurring:
            recurrence = {
                "recurrence_frequency": payload.recurrence_frequency.value,
                "recurrence_end_date": payload.recurrence_end_date,
            }

        with self._db.session_scope() as session:
            account = load_account(session, account_id)
            self._check_references(session, account, values)

            rows = []
            for index, (day, amount) in enumerate(zip(dates, amounts), start=1):
                row = TransactionRow(
                    account_id=account_id,
                    amount=amount,
                    date=day,
                    series_id=series_id,
                    installment_index=index if series_id else None,
                    installment_total=count if series_id else None,
                    **recurrence,
                    **column_values(values),
                )
                session.add(row)
                rows.append(row)
            session.flush()
            created = [Transaction.model_validate(row) for row in rows]

        if payload.is_recurring:
            self._audit.log_recurring_series_created(
                account_id=account_id,
                series_id=series_id,
                amount=str(payload.amount),
                frequency=payload.recurrence_frequency.value,
                transaction_ids=[tx.id for tx in created],
            )
        elif series_id:
            self._audit.log_installment_series_created(
                account_id=account_id,
                series_id=series_id,
                total=str(payload.amount),
                installments=count,
                transaction_ids=[tx.id for tx in created],
            )
        else:
            self._audit.log_transaction_created(
                account_id=account_id,
                transaction_id=created[0].id,
                amount=str(created[0].amount),
                transaction_type=created[0].type.value,
            )
        return created

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def list_transactions(
        self,
        account_id: int,
        start: Optional[Any] = None,
        end: Optional[Any] = None,
        limit: Optional[int] = None,
        card_purchases: Optional[bool] = None,
        credit_card_id: Optional[int] = None,
    ) -> list[Transaction]:
        """
        Transactions of an account, newest first.

        Args:
            start, end: Inclusive date bounds (date or ISO string)
            limit: Maximum number of rows
            card_purchases: True for card purchases only, False to exclude them
            credit_card_id: Only purchases on this card
        """
        start_date = parse_date(start, "start") if start is not None else None
        end_date = parse_date(end, "end") if end is not None else None
        if limit is not None and limit < 1:
            raise ValidationError.for_field("limit", "out_of_range", "limit must be positive")

        with self._db.session_scope() as session:
            load_account(session, account_id)
            stmt = select(TransactionRow).where(TransactionRow.account_id == account_id)
            if start_date:
                stmt = stmt.where(TransactionRow.date >= start_date)
            if end_date:
                stmt = stmt.where(TransactionRow.date <= end_date)
            if card_purchases is True:
                stmt = stmt.where(TransactionRow.credit_card_id.is_not(None))
            elif card_purchases is False:
                stmt = stmt.where(TransactionRow.credit_card_id.is_(None))
            if credit_card_id is not None:
                stmt = stmt.where(TransactionRow.credit_card_id == credit_card_id)
            stmt = stmt.order_by(TransactionRow.date.desc(), TransactionRow.id.desc())
            if limit:
                stmt = stmt.limit(limit)
            return [Transaction.model_validate(row) for row in session.scalars(stmt)]

    def get_transaction(self, transaction_id: int) -> Transaction:
        with self._db.session_scope() as session:
            row = session.get(TransactionRow, transaction_id)
            if row is None:
                raise NotFoundError("Transaction", transaction_id)
            return Transaction.model_validate(row)

    def get_series(self, series_id: str) -> list[Transaction]:
        """Every installment of a series, in installment order."""
        with self._db.session_scope() as session:
            rows = session.scalars(
                select(TransactionRow)
                .where(TransactionRow.series_id == series_id)
                .order_by(TransactionRow.installment_index)
            ).all()
            if not rows:
                raise NotFoundError("Series", series_id)
            return [Transaction.model_validate(row) for row in rows]

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    def update_transaction(
        self,
        transaction_id: int,
        changes: Any,
        scope: Any = EditScope.SINGLE,
    ) -> list[Transaction]:
        """
        Apply changes to a transaction and, for series, the rows in scope.

        A changed date is applied relative to the edited row (see
        rebase_date). Re-sending a row's current date changes nothing.
        Rows outside the scope are untouched.

        Returns the updated rows in series order.

        Raises:
            ConflictError: If a settled card purchase in scope would
                change amount, type, date or card
        """
        payload = self._parse(TransactionUpdate, changes, "update_transaction")
        edit_scope = parse_scope(scope)
        values = column_values(payload.changes())
        new_date = values.pop("date", None)
        for field in ("description", "amount", "type", "paid"):
            if field in values and values[field] is None:
                raise ValidationError.for_field(field, "missing", f"{field} cannot be null")

        with self._db.session_scope() as session:
            row = self._load_for_update(session, transaction_id)
            account = load_account(session, row.account_id)
            self._check_references(session, account, values)

            old_date = row.date
            moved = new_date is not None and new_date != old_date
            weekly = row.recurrence_frequency == RecurrenceFrequency.WEEKLY.value
            targets = self._scope_rows(session, row, edit_scope)
            for target in targets:
                self._check_settled_edit(target, values, moved)
                for field, value in values.items():
                    setattr(target, field, value)
                if moved:
                    target.date = rebase_date(target.date, old_date, new_date, weekly)
                self._check_card_purchase(target)
            session.flush()
            updated = [Transaction.model_validate(target) for target in targets]
            account_id = row.account_id
            applied_scope = edit_scope if row.series_id else EditScope.SINGLE

        changed = sorted(values) + (["date"] if moved else [])
        self._audit.log_transaction_updated(
            account_id=account_id,
            transaction_id=transaction_id,
            scope=applied_scope.value,
            changed_fields=changed,
            updated_ids=[tx.id for tx in updated],
        )
        return updated

    @staticmethod
    def _check_settled_edit(row: TransactionRow, values: dict, moved: bool) -> None:
        if row.settled_invoice_month is None:
            return
        touched = [
            field for field in SETTLED_FIELDS
            if field in values and values[field] != getattr(row, field)
        ]
        if moved:
            touched.append("date")
        if touched:
            raise ConflictError(
                f"Transaction {row.id} was settled in the {row.settled_invoice_month} invoice; "
                f"{', '.join(touched)} can no longer change"
            )

    def delete_transaction(
        self,
        transaction_id: int,
        scope: Any = EditScope.SINGLE,
    ) -> DeleteResult:
        """
        Delete a transaction and, for series, the rows in scope.

        Invoice payments that pointed at a deleted settlement keep their
        record with transaction_id cleared.

        Raises:
            ConflictError: If a settled card purchase is in scope
        """
        edit_scope = parse_scope(scope)

        with self._db.session_scope() as session:
            row = self._load_for_update(session, transaction_id)
            account_id = row.account_id
            targets = self._scope_rows(session, row, edit_scope)
            settled = [target.id for target in targets if target.settled_invoice_month is not None]
            if settled:
                raise ConflictError(
                    f"Transactions {settled} belong to a paid invoice and cannot be deleted"
                )
            deleted_ids = [target.id for target in targets]

            session.execute(
                update(InvoicePaymentRow)
                .where(InvoicePaymentRow.transaction_id.in_(deleted_ids))
                .values(transaction_id=None)
            )
            for target in targets:
                session.delete(target)
            applied_scope = edit_scope if row.series_id else EditScope.SINGLE

        self._audit.log_transaction_deleted(
            account_id=account_id,
            transaction_id=transaction_id,
            scope=applied_scope.value,
            deleted_ids=deleted_ids,
        )
        return DeleteResult(account_id=account_id, deleted_ids=deleted_ids)

    def set_paid(self, transaction_id: int, paid: bool = True) -> Transaction:
        """Mark a single transaction paid or unpaid."""
        return self.update_transaction(transaction_id, {"paid": bool(paid)})[0]
