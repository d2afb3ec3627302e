"""
Credit Card & Invoice Reconciler

Maps card purchases to monthly invoices, computes due dates, and
settles overdue invoices into the ledger.

INVOICE RULES:
- A purchase made on or before the card's closing day belongs to the
  invoice closing that month; after it, to next month's. The closing
  day is clamped to the month's length (31 -> 28/29/30).
- The invoice is due on the due day of the closing month when the due
  day comes after the closing day, otherwise in the following month,
  again clamped to the month's length.
- Once an invoice is paid its purchases are stamped with its month
  and stay there, whatever later happens to the card's closing day.
  A purchase that would land in a paid invoice goes to the next
  unpaid one instead.

SETTLEMENT:
An invoice is overdue when its due date has passed, its total is
positive and no InvoicePayment exists for it. Settling one creates a
single expense transaction for the invoice total plus a paid
InvoicePayment, inside its own savepoint. The unique constraint on
(credit_card_id, invoice_month) turns a concurrent duplicate into a
skip instead of a second payment.
"""

import calendar
import datetime as dt
from collections import defaultdict
from typing import Any, Optional

import structlog
from dateutil.relativedelta import relativedelta
from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from ledgerdash.audit import create_correlation_id
from ledgerdash.models.common import ZERO, TransactionType, quantize, utc_now
from ledgerdash.models.credit_card import (
    CreditCard,
    CreditCardCreate,
    CreditCardInvoice,
    CreditCardOverview,
    CreditCardUpdate,
    InvoicePayment,
    InvoicePaymentStatus,
    InvoiceStatus,
    ProcessResult,
)
from ledgerdash.models.transaction import DeleteResult, PaymentMethod, Transaction
from ledgerdash.services.base import LedgerService, load_account
from ledgerdash.services.storage.tables import CreditCardRow, InvoicePaymentRow, TransactionRow
from ledgerdash.validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    month_key,
    parse_month,
    validate_day_of_month,
)


logger = structlog.get_logger()

INVALID_DUE_LABEL = "--/--"

BRAND_ICONS = [
    (("visa",), "fab fa-cc-visa"),
    (("master",), "fab fa-cc-mastercard"),
    (("amex", "american"), "fab fa-cc-amex"),
]
DEFAULT_BRAND_ICON = "fas fa-credit-card"


def _clamp_day(year: int, month: int, day: int) -> dt.date:
    return dt.date(year, month, min(day, calendar.monthrange(year, month)[1]))


def invoice_month(day: dt.date, closing_day: int) -> str:
    """
    "YYYY-MM" of the invoice a purchase on `day` belongs to.

    >>> invoice_month(dt.date(2024, 3, 20), 25)
    '2024-03'
    >>> invoice_month(dt.date(2024, 3, 27), 25)
    '2024-04'
    """
    closing_day = validate_day_of_month(closing_day, "closing_day")
    closing = _clamp_day(day.year, day.month, closing_day)
    if day <= closing:
        return month_key(day)
    return month_key(day.replace(day=1) + relativedelta(months=1))


def next_month(month: str) -> str:
    start, _ = parse_month(month)
    return month_key(start + relativedelta(months=1))


def invoice_closing_date(month: str, closing_day: int) -> dt.date:
    start, _ = parse_month(month)
    closing_day = validate_day_of_month(closing_day, "closing_day")
    return _clamp_day(start.year, start.month, closing_day)


def invoice_due_date(month: str, closing_day: int, due_day: int) -> dt.date:
    """
    Due date of the invoice closing in `month`.

    >>> invoice_due_date("2024-03", 25, 5)
    datetime.date(2024, 4, 5)
    >>> invoice_due_date("2024-03", 5, 15)
    datetime.date(2024, 3, 15)
    """
    start, _ = parse_month(month)
    closing_day = validate_day_of_month(closing_day, "closing_day")
    due_day = validate_day_of_month(due_day, "due_date")
    target = start if due_day > closing_day else start + relativedelta(months=1)
    return _clamp_day(target.year, target.month, due_day)


def next_due_date_label(due_day: Any, today: Optional[dt.date] = None) -> str:
    """
    "DD/MM" of the next due date for display.

    Missing or invalid due days render as "--/--".
    """
    try:
        due_day = validate_day_of_month(due_day, "due_date")
    except ValidationError:
        return INVALID_DUE_LABEL

    today = today or dt.date.today()
    target = today.replace(day=1)
    if today.day > due_day:
        target = target + relativedelta(months=1)
    due = _clamp_day(target.year, target.month, due_day)
    return f"{due.day:02d}/{due.month:02d}"


def brand_icon(brand: Optional[str]) -> str:
    """Icon class for a card brand, matched case-insensitively."""
    name = (brand or "").lower()
    for needles, icon in BRAND_ICONS:
        if any(needle in name for needle in needles):
            return icon
    return DEFAULT_BRAND_ICON


class InvoiceReconciler(LedgerService):
    """Credit cards, their derived invoices and invoice settlement."""

    # ------------------------------------------------------------------
    # Cards
    # ------------------------------------------------------------------

    def list_credit_cards(self, account_id: int) -> list[CreditCard]:
        with self._db.session_scope() as session:
            load_account(session, account_id)
            rows = session.scalars(
                select(CreditCardRow)
                .where(CreditCardRow.account_id == account_id)
                .order_by(CreditCardRow.name, CreditCardRow.id)
            )
            return [CreditCard.model_validate(row) for row in rows]

    def get_credit_card(self, credit_card_id: int) -> CreditCard:
        with self._db.session_scope() as session:
            return CreditCard.model_validate(self._load_card(session, credit_card_id))

    def create_credit_card(self, account_id: int, data: Any) -> CreditCard:
        payload = self._parse(CreditCardCreate, data, "create_credit_card", account_id)

        with self._db.session_scope() as session:
            load_account(session, account_id)
            row = CreditCardRow(account_id=account_id, **payload.model_dump())
            session.add(row)
            session.flush()
            card = CreditCard.model_validate(row)

        self._audit.log_credit_card_changed(account_id, card.id, "created")
        return card

    def update_credit_card(self, credit_card_id: int, changes: Any) -> CreditCard:
        """Update a card. New closing or due days only affect unpaid invoices."""
        payload = self._parse(CreditCardUpdate, changes, "update_credit_card")

        with self._db.session_scope() as session:
            row = self._load_card(session, credit_card_id)
            for field, value in payload.model_dump(exclude_unset=True).items():
                if value is not None:
                    setattr(row, field, value)
            session.flush()
            card = CreditCard.model_validate(row)

        self._audit.log_credit_card_changed(card.account_id, credit_card_id, "updated")
        return card

    def delete_credit_card(self, credit_card_id: int) -> DeleteResult:
        """
        Delete a card.

        Raises:
            ConflictError: If any transaction still references the card
        """
        with self._db.session_scope() as session:
            row = self._load_card(session, credit_card_id)
            account_id = row.account_id
            purchases = session.scalar(
                select(func.count(TransactionRow.id))
                .where(TransactionRow.credit_card_id == credit_card_id)
            )
            if not purchases:
                session.execute(
                    delete(InvoicePaymentRow)
                    .where(InvoicePaymentRow.credit_card_id == credit_card_id)
                )
                session.delete(row)

        if purchases:
            raise ConflictError(
                f"Credit card {credit_card_id} has {purchases} transactions and cannot be deleted"
            )

        self._audit.log_credit_card_changed(account_id, credit_card_id, "deleted")
        return DeleteResult(account_id=account_id, deleted_ids=[credit_card_id])

    def _load_card(self, session, credit_card_id: int) -> CreditCardRow:
        row = session.get(CreditCardRow, credit_card_id)
        if row is None:
            raise NotFoundError("CreditCard", credit_card_id)
        return row

    # ------------------------------------------------------------------
    # Invoices
    # ------------------------------------------------------------------

    def _build_invoices(
        self,
        session,
        account_id: int,
        today: dt.date,
        credit_card_id: Optional[int] = None,
    ) -> list[CreditCardInvoice]:
        """
        Group card purchases into invoices, ordered by card then month.

        Settled purchases stay in the invoice they were paid with. An
        unsettled purchase whose invoice is already paid rolls forward
        to the next unpaid one.
        """
        card_stmt = select(CreditCardRow).where(CreditCardRow.account_id == account_id)
        if credit_card_id is not None:
            card_stmt = card_stmt.where(CreditCardRow.id == credit_card_id)
        cards = {card.id: card for card in session.scalars(card_stmt)}
        if not cards:
            return []

        purchases = session.scalars(
            select(TransactionRow)
            .where(TransactionRow.credit_card_id.in_(list(cards)))
            .order_by(TransactionRow.date, TransactionRow.id)
        ).all()
        payments = {
            (payment.credit_card_id, payment.invoice_month): payment
            for payment in session.scalars(
                select(InvoicePaymentRow).where(InvoicePaymentRow.credit_card_id.in_(list(cards)))
            )
        }
        paid = {
            key for key, payment in payments.items()
            if payment.status == InvoicePaymentStatus.PAID.value
        }

        groups = defaultdict(list)
        for tx in purchases:
            card = cards[tx.credit_card_id]
            if tx.settled_invoice_month is not None:
                groups[(card.id, tx.settled_invoice_month)].append(tx)
                continue
            try:
                month = invoice_month(tx.date, card.closing_day)
            except ValidationError:
                logger.warning("card_without_closing_day", credit_card_id=card.id, transaction_id=tx.id)
                continue
            while (card.id, month) in paid:
                month = next_month(month)
            groups[(card.id, month)].append(tx)

        invoices = []
        for (card_id, month), rows in sorted(groups.items()):
            card = cards[card_id]
            payment = payments.get((card_id, month))
            try:
                closing = invoice_closing_date(month, card.closing_day)
                due = invoice_due_date(month, card.closing_day, card.due_date)
            except ValidationError:
                logger.warning("card_without_due_date", credit_card_id=card_id, month=month)
                continue

            total = sum((row.amount for row in rows), ZERO)
            if (card_id, month) in paid:
                status = InvoiceStatus.PAID
                due = payment.due_date
            elif due < today:
                status = InvoiceStatus.OVERDUE
            else:
                status = InvoiceStatus.OPEN

            invoices.append(CreditCardInvoice(
                account_id=account_id,
                credit_card_id=card_id,
                month=month,
                closing_date=closing,
                due_date=due,
                total=quantize(total),
                status=status,
                transactions=[Transaction.model_validate(row) for row in rows],
            ))
        return invoices

    def list_invoices(
        self,
        account_id: int,
        credit_card_id: Optional[int] = None,
        today: Optional[dt.date] = None,
    ) -> list[CreditCardInvoice]:
        """Every invoice that has at least one purchase."""
        today = today or dt.date.today()
        with self._db.session_scope() as session:
            load_account(session, account_id)
            if credit_card_id is not None:
                card = self._load_card(session, credit_card_id)
                if card.account_id != account_id:
                    raise NotFoundError("CreditCard", credit_card_id)
            return self._build_invoices(session, account_id, today, credit_card_id)

    def get_invoice(
        self,
        credit_card_id: int,
        month: str,
        today: Optional[dt.date] = None,
    ) -> CreditCardInvoice:
        """
        One invoice. Months without purchases yield an empty open invoice.
        """
        parse_month(month)
        today = today or dt.date.today()
        with self._db.session_scope() as session:
            card = self._load_card(session, credit_card_id)
            for invoice in self._build_invoices(session, card.account_id, today, credit_card_id):
                if invoice.month == month:
                    return invoice
            due = invoice_due_date(month, card.closing_day, card.due_date)
            return CreditCardInvoice(
                account_id=card.account_id,
                credit_card_id=credit_card_id,
                month=month,
                closing_date=invoice_closing_date(month, card.closing_day),
                due_date=due,
                total=ZERO,
                status=InvoiceStatus.OPEN,
            )

    def card_overviews(
        self,
        account_id: int,
        today: Optional[dt.date] = None,
    ) -> list[CreditCardOverview]:
        """
        Cards with their unpaid balance, available limit and due label.
        """
        today = today or dt.date.today()
        with self._db.session_scope() as session:
            load_account(session, account_id)
            cards = session.scalars(
                select(CreditCardRow)
                .where(CreditCardRow.account_id == account_id)
                .order_by(CreditCardRow.name, CreditCardRow.id)
            ).all()
            unpaid = defaultdict(lambda: ZERO)
            for invoice in self._build_invoices(session, account_id, today):
                if invoice.status != InvoiceStatus.PAID:
                    unpaid[invoice.credit_card_id] += invoice.total

            overviews = []
            for row in cards:
                card = CreditCard.model_validate(row)
                balance = quantize(unpaid[card.id])
                overviews.append(CreditCardOverview(
                    card=card,
                    current_balance=balance,
                    available_limit=quantize(card.credit_limit - balance),
                    next_due_label=next_due_date_label(card.due_date, today),
                    brand_icon=brand_icon(card.brand),
                ))
            return overviews

    # ------------------------------------------------------------------
    # Settlement
    # ------------------------------------------------------------------

    def process_overdue_invoices(
        self,
        account_id: int,
        today: Optional[dt.date] = None,
    ) -> ProcessResult:
        """
        Settle every overdue invoice of an account.

        Idempotent: an invoice is settled at most once, however many
        times (or however concurrently) this runs.
        """
        today = today or dt.date.today()
        correlation_id = create_correlation_id()
        settled = []
        skipped = 0

        with self._db.session_scope() as session:
            load_account(session, account_id)
            cards = {
                card.id: card
                for card in session.scalars(
                    select(CreditCardRow).where(CreditCardRow.account_id == account_id)
                )
            }

            for invoice in self._build_invoices(session, account_id, today):
                if invoice.status != InvoiceStatus.OVERDUE or invoice.total <= 0:
                    continue
                card = cards[invoice.credit_card_id]
                try:
                    with session.begin_nested():
                        payment = self._settle(session, card, invoice)
                except IntegrityError:
                    skipped += 1
                    logger.info(
                        "invoice_already_settled",
                        credit_card_id=card.id,
                        invoice_month=invoice.month,
                        correlation_id=str(correlation_id),
                    )
                    continue
                settled.append(InvoicePayment.model_validate(payment))

        for payment in settled:
            self._audit.log_invoice_settled(
                account_id=account_id,
                payment_id=payment.id,
                credit_card_id=payment.credit_card_id,
                month=payment.invoice_month,
                total=str(payment.total_amount),
                transaction_id=payment.transaction_id,
                correlation_id=correlation_id,
            )
        self._audit.log_overdue_invoices_processed(
            account_id=account_id,
            processed=len(settled),
            skipped=skipped,
            reference_date=today.isoformat(),
            correlation_id=correlation_id,
        )

        return ProcessResult(
            account_id=account_id,
            reference_date=today,
            processed_count=len(settled),
            skipped_count=skipped,
            settled=settled,
        )

    @staticmethod
    def _settle(session, card: CreditCardRow, invoice: CreditCardInvoice) -> InvoicePaymentRow:
        """Ledger entry plus payment record for one invoice."""
        settlement = TransactionRow(
            account_id=card.account_id,
            description=f"Fatura {card.name} {invoice.month}",
            amount=invoice.total,
            type=TransactionType.EXPENSE.value,
            date=invoice.due_date,
            payment_method=PaymentMethod.CREDIT_CARD_INVOICE.value,
            paid=True,
        )
        session.add(settlement)
        session.flush()

        payment = InvoicePaymentRow(
            account_id=card.account_id,
            credit_card_id=card.id,
            invoice_month=invoice.month,
            total_amount=invoice.total,
            due_date=invoice.due_date,
            transaction_id=settlement.id,
            status=InvoicePaymentStatus.PAID.value,
            paid_at=utc_now(),
        )
        session.add(payment)
        session.flush()

        session.execute(
            update(TransactionRow)
            .where(TransactionRow.id.in_([tx.id for tx in invoice.transactions]))
            .values(settled_invoice_month=invoice.month)
        )
        return payment

    def list_invoice_payments(self, account_id: int) -> list[InvoicePayment]:
        with self._db.session_scope() as session:
            load_account(session, account_id)
            rows = session.scalars(
                select(InvoicePaymentRow)
                .where(InvoicePaymentRow.account_id == account_id)
                .order_by(InvoicePaymentRow.due_date.desc(), InvoicePaymentRow.id.desc())
            )
            return [InvoicePayment.model_validate(row) for row in rows]
