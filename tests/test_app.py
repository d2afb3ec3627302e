"""
Tests for the Streamlit dashboard.

The app runs headless through streamlit's AppTest against a SQLite file
that the test seeds through the same services.
"""

from datetime import date
from pathlib import Path

import pytest
import streamlit as st
from streamlit.testing.v1 import AppTest

from ledgerdash.config import DatabaseSettings, get_settings
from ledgerdash.models import EditScope
from ledgerdash.orchestrator import create_app_components
from ledgerdash.services.storage import Database, JsonFileSelectionStore


APP = str(Path(__file__).resolve().parent.parent / "app" / "main.py")


@pytest.fixture
def app_components(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'ledger.db'}"
    selection = tmp_path / "selection.json"
    monkeypatch.setenv("LEDGERDASH_DB_URL", url)
    monkeypatch.setenv("LEDGERDASH_SELECTION_FILE", str(selection))
    get_settings.cache_clear()
    st.cache_resource.clear()

    database = Database(DatabaseSettings(url=url))
    components = create_app_components(
        database=database,
        selection_store=JsonFileSelectionStore(selection),
    )
    yield components

    database.dispose()
    st.cache_resource.clear()
    get_settings.cache_clear()


def run_app(page=None) -> AppTest:
    at = AppTest.from_file(APP, default_timeout=30)
    at.run()
    if page is not None:
        at.radio(key="page").set_value(page).run()
    return at


def button(at: AppTest, label: str):
    return next(b for b in at.button if b.label == label)


@pytest.fixture
def pessoal(app_components):
    account = app_components.accounts.create_account({"name": "Pessoal", "type": "personal"})
    app_components.context.select(account.id)
    return account


@pytest.fixture
def notebook(app_components, pessoal):
    return app_components.ledger.create_transaction(pessoal.id, {
        "description": "Notebook",
        "amount": "900.00",
        "type": "expense",
        "date": date(2024, 1, 31),
        "installment_total": 3,
    })


class TestFirstRun:
    def test_welcome_creates_account(self, app_components):
        at = run_app()
        assert not at.exception
        assert at.title[0].value == "👋 Welcome"

        button(at, "Create account").click().run()

        accounts = app_components.accounts.list_accounts()
        assert [a.name for a in accounts] == ["Pessoal"]


class TestTransactionsPage:
    def test_scoped_delete_removes_following_installments(self, app_components, pessoal, notebook):
        at = run_app("💸 Transactions")
        assert not at.exception

        at.selectbox(key="edit_tx").set_value(notebook[1].id).run()
        at.radio(key="edit_scope").set_value(EditScope.FUTURE).run()
        at.button(key="delete_tx").click().run()

        assert not at.exception
        remaining = app_components.ledger.list_transactions(pessoal.id)
        assert [tx.id for tx in remaining] == [notebook[0].id]

    def test_full_form_edit_keeps_each_installment_day(self, app_components, pessoal, notebook):
        at = run_app("💸 Transactions")

        second = notebook[1].id
        at.selectbox(key="edit_tx").set_value(second).run()
        at.text_input(key=f"edit_description_{second}").input("Notebook Pro").run()
        at.radio(key="edit_scope").set_value(EditScope.ALL).run()
        at.button(key="save_edit").click().run()

        assert not at.exception
        rows = sorted(app_components.ledger.list_transactions(pessoal.id), key=lambda tx: tx.date)
        assert [tx.description for tx in rows] == ["Notebook Pro"] * 3
        assert [tx.date for tx in rows] == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]

    def test_single_row_has_no_scope_choice(self, app_components, pessoal):
        app_components.ledger.create_transaction(pessoal.id, {
            "description": "Padaria",
            "amount": "12.50",
            "date": date(2024, 1, 5),
        })
        at = run_app("💸 Transactions")

        assert not at.exception
        assert not [r for r in at.radio if r.key == "edit_scope"]


class TestOtherPages:
    def test_categories_page_lists_defaults(self, app_components, pessoal):
        at = run_app("🏷️ Categories & Banks")

        assert not at.exception
        assert any("Alimentação" in md.value for md in at.markdown)

    def test_business_page_on_personal_account(self, app_components, pessoal):
        at = run_app("🏢 Business")

        assert not at.exception
        assert "business accounts" in at.info[0].value

    def test_business_page_shows_project_budget(self, app_components):
        empresa = app_components.accounts.create_account({"name": "Empresa", "type": "business"})
        app_components.context.select(empresa.id)
        app_components.business.create_project(empresa.id, {"name": "Site", "budget": "1000.00"})

        at = run_app("🏢 Business")

        assert not at.exception
        assert any("Site" in md.value for md in at.markdown)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
