"""
Category Registry

Categories are per-account, typed income or expense, with a display
color and icon. New accounts are seeded with a default set.

Deleting a category never deletes transactions: references to it are
cleared in the same data-store transaction as the delete.
"""

from typing import Any, Iterable, Optional

from sqlalchemy import select, update

from ledgerdash.models.account import AccountType
from ledgerdash.models.audit import AuditEventType
from ledgerdash.models.category import Category, CategoryCreate, CategoryUpdate
from ledgerdash.models.common import TransactionType
from ledgerdash.models.transaction import DeleteResult
from ledgerdash.services.base import LedgerService, column_values, load_account
from ledgerdash.services.storage.tables import CategoryRow, TransactionRow
from ledgerdash.validation import NotFoundError


# (name, color, icon) seeded for every new account
DEFAULT_CATEGORIES = [
    ("Alimentação", "#3B82F6", "fas fa-utensils"),
    ("Transporte", "#10B981", "fas fa-car"),
    ("Saúde", "#EF4444", "fas fa-heart"),
    ("Lazer", "#8B5CF6", "fas fa-gamepad"),
    ("Educação", "#F59E0B", "fas fa-graduation-cap"),
    ("Casa", "#06B6D4", "fas fa-home"),
    ("Outros", "#6B7280", "fas fa-ellipsis-h"),
]

# Added on top of the defaults for business accounts
BUSINESS_CATEGORIES = [
    ("Escritório", "#1F2937", "fas fa-building"),
    ("Marketing", "#EC4899", "fas fa-bullhorn"),
    ("Tecnologia", "#3B82F6", "fas fa-laptop"),
    ("Fornecedores", "#059669", "fas fa-truck"),
]


def default_categories_for(account_type: AccountType) -> list[CategoryCreate]:
    """Expense categories a new account of this type starts with."""
    seeds = list(DEFAULT_CATEGORIES)
    if account_type == AccountType.BUSINESS:
        seeds.extend(BUSINESS_CATEGORIES)
    return [
        CategoryCreate(name=name, color=color, icon=icon, type=TransactionType.EXPENSE)
        for name, color, icon in seeds
    ]


def partition_by_type(categories: Iterable[Category]) -> dict[TransactionType, list[Category]]:
    """Split categories into {income: [...], expense: [...]}, order preserved."""
    groups = {TransactionType.INCOME: [], TransactionType.EXPENSE: []}
    for category in categories:
        groups[category.type].append(category)
    return groups


class CategoryRegistry(LedgerService):
    """CRUD for categories."""

    def list_categories(
        self,
        account_id: int,
        category_type: Optional[TransactionType] = None,
    ) -> list[Category]:
        with self._db.session_scope() as session:
            load_account(session, account_id)
            stmt = select(CategoryRow).where(CategoryRow.account_id == account_id)
            if category_type is not None:
                stmt = stmt.where(CategoryRow.type == TransactionType(category_type).value)
            stmt = stmt.order_by(CategoryRow.name, CategoryRow.id)
            return [Category.model_validate(row) for row in session.scalars(stmt)]

    def get_category(self, category_id: int) -> Category:
        with self._db.session_scope() as session:
            row = session.get(CategoryRow, category_id)
            if row is None:
                raise NotFoundError("Category", category_id)
            return Category.model_validate(row)

    def create_category(self, account_id: int, data: Any) -> Category:
        payload = self._parse(CategoryCreate, data, "create_category", account_id)

        with self._db.session_scope() as session:
            load_account(session, account_id)
            row = CategoryRow(account_id=account_id, **column_values(payload.model_dump()))
            session.add(row)
            session.flush()
            category = Category.model_validate(row)

        self._audit.log_category_changed(
            AuditEventType.CATEGORY_CREATED,
            account_id,
            category.id,
            category.name,
        )
        return category

    def update_category(self, category_id: int, changes: Any) -> Category:
        payload = self._parse(CategoryUpdate, changes, "update_category")
        values = payload.model_dump(exclude_unset=True)

        with self._db.session_scope() as session:
            row = session.get(CategoryRow, category_id)
            if row is None:
                raise NotFoundError("Category", category_id)
            for field, value in column_values(values).items():
                if value is not None:
                    setattr(row, field, value)
            session.flush()
            category = Category.model_validate(row)

        self._audit.log_category_changed(
            AuditEventType.CATEGORY_UPDATED,
            category.account_id,
            category.id,
            category.name,
            details={"changed_fields": sorted(values)},
        )
        return category

    def delete_category(self, category_id: int) -> DeleteResult:
        """
        Delete a category.

        Transactions that referenced it keep existing with category_id = None.
        """
        with self._db.session_scope() as session:
            row = session.get(CategoryRow, category_id)
            if row is None:
                raise NotFoundError("Category", category_id)
            account_id, name = row.account_id, row.name

            cleared = session.execute(
                update(TransactionRow)
                .where(TransactionRow.category_id == category_id)
                .values(category_id=None)
            ).rowcount
            session.delete(row)

        self._audit.log_category_changed(
            AuditEventType.CATEGORY_DELETED,
            account_id,
            category_id,
            name,
            details={"cleared_transactions": cleared},
        )
        return DeleteResult(account_id=account_id, deleted_ids=[category_id])

    def seed_defaults(self, session, account_id: int, account_type: AccountType) -> list[CategoryRow]:
        """Add the default categories to a new account inside an open session."""
        rows = [
            CategoryRow(account_id=account_id, **column_values(category.model_dump()))
            for category in default_categories_for(account_type)
        ]
        session.add_all(rows)
        return rows
