"""
Business Registry

Clients, projects and cost centers. They exist only under business
accounts; asking for them on a personal account is a validation error.
"""

from typing import Any

from sqlalchemy import select, update

from ledgerdash.models.business import (
    Client,
    ClientCreate,
    ClientUpdate,
    CostCenter,
    CostCenterCreate,
    CostCenterUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
)
from ledgerdash.models.transaction import DeleteResult
from ledgerdash.services.base import LedgerService, column_values, load_account, require_business
from ledgerdash.services.storage.tables import ClientRow, CostCenterRow, ProjectRow, TransactionRow
from ledgerdash.validation import NotFoundError, ValidationError


ENTITY_NAMES = {
    ClientRow: "Client",
    ProjectRow: "Project",
    CostCenterRow: "CostCenter",
}


class BusinessRegistry(LedgerService):
    """CRUD for business-only entities."""

    # ------------------------------------------------------------------
    # Shared plumbing
    # ------------------------------------------------------------------

    def _list(self, row_cls, model_cls, account_id: int) -> list:
        with self._db.session_scope() as session:
            require_business(load_account(session, account_id))
            stmt = (
                select(row_cls)
                .where(row_cls.account_id == account_id)
                .order_by(row_cls.name, row_cls.id)
            )
            return [model_cls.model_validate(row) for row in session.scalars(stmt)]

    @staticmethod
    def _load(session, row_cls, entity_id: int):
        row = session.get(row_cls, entity_id)
        if row is None:
            raise NotFoundError(ENTITY_NAMES[row_cls], entity_id)
        return row

    @staticmethod
    def _check_client(session, account_id: int, client_id) -> None:
        if client_id is None:
            return
        client = session.get(ClientRow, client_id)
        if client is None or client.account_id != account_id:
            raise ValidationError.for_field(
                "client_id",
                "unknown_reference",
                f"Client {client_id} does not belong to account {account_id}",
            )

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def list_clients(self, account_id: int) -> list[Client]:
        return self._list(ClientRow, Client, account_id)

    def get_client(self, client_id: int) -> Client:
        with self._db.session_scope() as session:
            return Client.model_validate(self._load(session, ClientRow, client_id))

    def create_client(self, account_id: int, data: Any) -> Client:
        payload = self._parse(ClientCreate, data, "create_client", account_id)

        with self._db.session_scope() as session:
            require_business(load_account(session, account_id))
            row = ClientRow(account_id=account_id, **payload.model_dump())
            session.add(row)
            session.flush()
            client = Client.model_validate(row)

        self._audit.log_business_entity_changed(account_id, "client", client.id, "created")
        return client

    def update_client(self, client_id: int, changes: Any) -> Client:
        payload = self._parse(ClientUpdate, changes, "update_client")

        with self._db.session_scope() as session:
            row = self._load(session, ClientRow, client_id)
            for field, value in payload.model_dump(exclude_unset=True).items():
                if field == "name" and value is None:
                    continue
                setattr(row, field, value)
            session.flush()
            client = Client.model_validate(row)

        self._audit.log_business_entity_changed(client.account_id, "client", client_id, "updated")
        return client

    def delete_client(self, client_id: int) -> DeleteResult:
        """Delete a client. Its projects stay, without a client."""
        with self._db.session_scope() as session:
            row = self._load(session, ClientRow, client_id)
            account_id = row.account_id
            session.execute(
                update(ProjectRow)
                .where(ProjectRow.client_id == client_id)
                .values(client_id=None)
            )
            session.delete(row)

        self._audit.log_business_entity_changed(account_id, "client", client_id, "deleted")
        return DeleteResult(account_id=account_id, deleted_ids=[client_id])

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self, account_id: int) -> list[Project]:
        return self._list(ProjectRow, Project, account_id)

    def get_project(self, project_id: int) -> Project:
        with self._db.session_scope() as session:
            return Project.model_validate(self._load(session, ProjectRow, project_id))

    def create_project(self, account_id: int, data: Any) -> Project:
        payload = self._parse(ProjectCreate, data, "create_project", account_id)

        with self._db.session_scope() as session:
            require_business(load_account(session, account_id))
            self._check_client(session, account_id, payload.client_id)
            row = ProjectRow(account_id=account_id, **column_values(payload.model_dump()))
            session.add(row)
            session.flush()
            project = Project.model_validate(row)

        self._audit.log_business_entity_changed(account_id, "project", project.id, "created")
        return project

    def update_project(self, project_id: int, changes: Any) -> Project:
        payload = self._parse(ProjectUpdate, changes, "update_project")
        values = payload.model_dump(exclude_unset=True)

        with self._db.session_scope() as session:
            row = self._load(session, ProjectRow, project_id)
            if "client_id" in values:
                self._check_client(session, row.account_id, values["client_id"])
            for field, value in column_values(values).items():
                if field in ("name", "status") and value is None:
                    continue
                setattr(row, field, value)
            if row.start_date and row.end_date and row.end_date < row.start_date:
                raise ValidationError.for_field(
                    "end_date",
                    "out_of_range",
                    "Project end date cannot be before start date",
                )
            session.flush()
            project = Project.model_validate(row)

        self._audit.log_business_entity_changed(project.account_id, "project", project_id, "updated")
        return project

    def delete_project(self, project_id: int) -> DeleteResult:
        """Delete a project. Transactions tagged with it are untagged."""
        with self._db.session_scope() as session:
            row = self._load(session, ProjectRow, project_id)
            account_id = row.account_id
            session.execute(
                update(TransactionRow)
                .where(TransactionRow.project_id == project_id)
                .values(project_id=None)
            )
            session.delete(row)

        self._audit.log_business_entity_changed(account_id, "project", project_id, "deleted")
        return DeleteResult(account_id=account_id, deleted_ids=[project_id])

    # ------------------------------------------------------------------
    # Cost centers
    # ------------------------------------------------------------------

    def list_cost_centers(self, account_id: int) -> list[CostCenter]:
        return self._list(CostCenterRow, CostCenter, account_id)

    def get_cost_center(self, cost_center_id: int) -> CostCenter:
        with self._db.session_scope() as session:
            return CostCenter.model_validate(self._load(session, CostCenterRow, cost_center_id))

    def create_cost_center(self, account_id: int, data: Any) -> CostCenter:
        payload = self._parse(CostCenterCreate, data, "create_cost_center", account_id)

        with self._db.session_scope() as session:
            require_business(load_account(session, account_id))
            row = CostCenterRow(account_id=account_id, **payload.model_dump())
            session.add(row)
            session.flush()
            cost_center = CostCenter.model_validate(row)

        self._audit.log_business_entity_changed(account_id, "cost_center", cost_center.id, "created")
        return cost_center

    def update_cost_center(self, cost_center_id: int, changes: Any) -> CostCenter:
        payload = self._parse(CostCenterUpdate, changes, "update_cost_center")

        with self._db.session_scope() as session:
            row = self._load(session, CostCenterRow, cost_center_id)
            for field, value in payload.model_dump(exclude_unset=True).items():
                if field == "name" and value is None:
                    continue
                setattr(row, field, value)
            session.flush()
            cost_center = CostCenter.model_validate(row)

        self._audit.log_business_entity_changed(cost_center.account_id, "cost_center", cost_center_id, "updated")
        return cost_center

    def delete_cost_center(self, cost_center_id: int) -> DeleteResult:
        """Delete a cost center. Transactions tagged with it are untagged."""
        with self._db.session_scope() as session:
            row = self._load(session, CostCenterRow, cost_center_id)
            account_id = row.account_id
            session.execute(
                update(TransactionRow)
                .where(TransactionRow.cost_center_id == cost_center_id)
                .values(cost_center_id=None)
            )
            session.delete(row)

        self._audit.log_business_entity_changed(account_id, "cost_center", cost_center_id, "deleted")
        return DeleteResult(account_id=account_id, deleted_ids=[cost_center_id])
