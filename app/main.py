"""
Streamlit Dashboard for LedgerDash

The day-to-day view of an account: balances, spending by category,
recent transactions and credit card invoices.

DESIGN PRINCIPLES:
1. One account at a time, picked in the sidebar and remembered
2. Every write goes through the same services the API uses
3. Errors are shown in plain language, never swallowed
4. Overdue invoices are settled only when the user asks

Run with:
    streamlit run app/main.py
"""

from datetime import date

import streamlit as st

from ledgerdash.config import get_settings
from ledgerdash.config.settings import DatabaseSettings
from ledgerdash.models import (
    AccountCreate,
    AccountType,
    EditScope,
    RecurrenceFrequency,
    TransactionType,
    format_amount,
)
from ledgerdash.orchestrator import AppComponents, create_app_components
from ledgerdash.services.categories import partition_by_type
from ledgerdash.services.storage import Database
from ledgerdash.validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    month_key,
    parse_amount,
)


# Page configuration
st.set_page_config(
    page_title="LedgerDash",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
    .card-box {
        padding: 16px;
        background-color: #f4f6f8;
        border-radius: 10px;
        margin: 8px 0;
    }
</style>
""", unsafe_allow_html=True)


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    try:
        return create_app_components()
    except Exception as e:
        st.error(f"Failed to open the database: {e}")
        st.warning("Running on a temporary in-memory database. Nothing will be kept.")
        return create_app_components(
            database=Database(DatabaseSettings(url="sqlite://")),
            persist_audit=False,
        )


def money(value) -> str:
    return format_amount(value, get_settings().app.currency_symbol)


def show_error(error: Exception) -> None:
    """Plain-language rendering of a service error."""
    if isinstance(error, ValidationError):
        st.error(error.message)
        for issue in error.issues:
            st.caption(f"• {issue.field}: {issue.message}")
    elif isinstance(error, (NotFoundError, ConflictError)):
        st.error(str(error))
    else:
        raise error


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("📒 LedgerDash")
    st.sidebar.markdown("---")

    account = render_account_selector(components)

    page = st.sidebar.radio(
        "Navigate to:",
        [
            "📊 Dashboard",
            "💸 Transactions",
            "💳 Credit Cards",
            "🏷️ Categories & Banks",
            "🏢 Business",
            "⚙️ Settings",
        ],
        index=0,
        key="page",
    )

    if account is None and page != "⚙️ Settings":
        render_first_account(components)
        return

    if page == "📊 Dashboard":
        render_dashboard_page(components)
    elif page == "💸 Transactions":
        render_transactions_page(components, account.id)
    elif page == "💳 Credit Cards":
        render_cards_page(components, account.id)
    elif page == "🏷️ Categories & Banks":
        render_categories_page(components, account.id)
    elif page == "🏢 Business":
        render_business_page(components, account)
    elif page == "⚙️ Settings":
        render_settings_page(components)


def render_account_selector(components: AppComponents):
    """Sidebar account picker. Returns the current account, if any."""
    accounts = components.accounts.list_accounts()
    current = components.context.resolve()
    if current is None:
        return None

    ids = [acc.id for acc in accounts]
    choice = st.sidebar.selectbox(
        "Account",
        options=ids,
        index=ids.index(current.id),
        format_func=lambda i: next(
            f"{acc.name} ({acc.type.value})" for acc in accounts if acc.id == i
        ),
    )
    if choice != current.id:
        current = components.context.select(choice)
        st.rerun()
    st.sidebar.markdown("---")
    return current


def render_first_account(components: AppComponents):
    st.title("👋 Welcome")
    st.markdown("Create your first account to get started.")

    with st.form("first_account"):
        name = st.text_input("Account name", value="Pessoal")
        account_type = st.selectbox(
            "Type",
            options=list(AccountType),
            format_func=lambda t: t.value.title(),
        )
        if st.form_submit_button("Create account", type="primary"):
            try:
                account = components.accounts.create_account(
                    AccountCreate(name=name, type=account_type)
                )
            except ValidationError as e:
                show_error(e)
            else:
                components.context.select(account.id)
                st.rerun()


def render_dashboard_page(components: AppComponents):
    """Render the dashboard page."""
    month = st.sidebar.text_input("Month (YYYY-MM)", value=month_key(date.today()))

    try:
        snapshot = components.dashboard.load(month=month)
    except (ValidationError, NotFoundError) as e:
        show_error(e)
        return
    if snapshot is None:
        return

    st.title(f"📊 {snapshot.account.name}")
    st.caption(f"Month {snapshot.month}")

    stats = snapshot.stats
    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Balance", money(stats.total_balance))
    col2.metric("Income", money(stats.monthly_income))
    col3.metric("Expenses", money(stats.monthly_expenses))
    col4.metric("Projected", money(stats.projected_balance))

    st.markdown("---")
    left, right = st.columns(2)

    with left:
        st.subheader("🏷️ Top categories")
        if not snapshot.top_categories:
            st.info("No expenses this month.")
        for stat in snapshot.top_categories:
            st.markdown(
                f"<span style='color:{stat.color}'>●</span> **{stat.category_name}** "
                f"{money(stat.total)}",
                unsafe_allow_html=True,
            )

    with right:
        st.subheader("🧾 Recent transactions")
        if not snapshot.recent_transactions:
            st.info("No transactions yet.")
        for tx in snapshot.recent_transactions:
            sign = "+" if tx.type == TransactionType.INCOME else "-"
            label = f" ({tx.installment_label})" if tx.installment_label else ""
            st.markdown(
                f"{tx.date.strftime('%d/%m')} · {tx.description}{label} · "
                f"**{sign}{money(tx.amount)}**"
            )

    st.markdown("---")
    render_card_overviews(snapshot.credit_cards)

    if snapshot.overdue_invoices:
        total = sum(inv.total for inv in snapshot.overdue_invoices)
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ {len(snapshot.overdue_invoices)} overdue invoice(s)</h4>
            <p>Total <strong>{money(total)}</strong>. Settling records one expense per invoice.</p>
        </div>
        """, unsafe_allow_html=True)
        if st.button("✅ Settle overdue invoices", type="primary"):
            result = components.invoices.process_overdue_invoices(snapshot.account.id)
            st.success(f"Settled {result.processed_count} invoice(s).")
            st.rerun()


def render_card_overviews(overviews):
    st.subheader("💳 Credit cards")
    if not overviews:
        st.info("No credit cards.")
        return
    cols = st.columns(min(len(overviews), 3))
    for i, overview in enumerate(overviews):
        card = overview.card
        with cols[i % len(cols)]:
            st.markdown(f"""
            <div class="card-box">
                <h4><i class="{overview.brand_icon}"></i> {card.name}</h4>
                <p>Balance: <strong>{money(overview.current_balance)}</strong></p>
                <p>Available: {money(overview.available_limit)}</p>
                <p>Next due: {overview.next_due_label}</p>
            </div>
            """, unsafe_allow_html=True)


LAUNCH_TYPES = ["Single", "Installments", "Recurring"]

SCOPE_LABELS = {
    EditScope.SINGLE: "Only this one",
    EditScope.FUTURE: "This and the following",
    EditScope.ALL: "The whole series",
}


def transaction_label(tx) -> str:
    suffix = ""
    if tx.installment_label:
        suffix = f" ({tx.installment_label})"
    elif tx.is_recurring:
        suffix = " ↻"
    return f"{tx.date.strftime('%d/%m/%Y')} · {tx.description}{suffix} · {money(tx.amount)}"


def render_transactions_page(components: AppComponents, account_id: int):
    """Render the transactions page."""
    st.title("💸 Transactions")

    categories = components.categories.list_categories(account_id)
    cards = components.invoices.list_credit_cards(account_id)

    with st.expander("➕ New transaction", expanded=False):
        with st.form("new_transaction", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                description = st.text_input("Description")
                amount = st.text_input("Amount", placeholder="0.00")
                tx_date = st.date_input("Date", value=date.today())
                launch_type = st.selectbox("Launch type", options=LAUNCH_TYPES)
            with col2:
                tx_type = st.selectbox(
                    "Type",
                    options=list(TransactionType),
                    index=1,
                    format_func=lambda t: t.value.title(),
                )
                category = st.selectbox(
                    "Category",
                    options=[None] + categories,
                    format_func=lambda c: "None" if c is None else c.name,
                )
                card = st.selectbox(
                    "Credit card",
                    options=[None] + cards,
                    format_func=lambda c: "None" if c is None else c.name,
                )
                installments = st.number_input("Installments", min_value=2, max_value=120, value=2)
                frequency = st.selectbox(
                    "Repeats",
                    options=list(RecurrenceFrequency),
                    index=1,
                    format_func=lambda f: f.value.title(),
                )
                end_date = st.date_input("Repeats until", value=date.today())

            if st.form_submit_button("💾 Save", type="primary"):
                payload = {
                    "category_id": category.id if category else None,
                    "credit_card_id": card.id if card else None,
                    "type": tx_type,
                    "date": tx_date,
                    "description": description,
                }
                if launch_type == "Installments":
                    payload["installment_total"] = int(installments)
                elif launch_type == "Recurring":
                    payload["recurrence_frequency"] = frequency
                    payload["recurrence_end_date"] = end_date
                try:
                    payload["amount"] = parse_amount(amount)
                    created = components.ledger.create_transaction(account_id, payload)
                except (ValidationError, NotFoundError) as e:
                    show_error(e)
                else:
                    st.success(f"Saved {len(created)} transaction(s).")

    transactions = components.ledger.list_transactions(account_id, limit=100)
    if not transactions:
        st.info("No transactions yet.")
        return

    names = {c.id: c.name for c in categories}
    st.dataframe(
        [
            {
                "Date": tx.date.isoformat(),
                "Description": tx.description,
                "Installment": tx.installment_label or ("↻" if tx.is_recurring else ""),
                "Category": names.get(tx.category_id, ""),
                "Type": tx.type.value,
                "Amount": money(tx.amount),
                "Paid": tx.paid,
            }
            for tx in transactions
        ],
        use_container_width=True,
    )

    render_edit_section(components, transactions)


def render_edit_section(components: AppComponents, transactions):
    """
    Edit or delete one transaction.

    Rows of a series ask which of them the change applies to.
    """
    st.markdown("---")
    st.subheader("✏️ Edit or delete")

    by_id = {tx.id: tx for tx in transactions}
    tx_id = st.selectbox(
        "Transaction",
        options=list(by_id),
        format_func=lambda i: transaction_label(by_id[i]),
        key="edit_tx",
    )
    tx = by_id[tx_id]

    description = st.text_input("Description", value=tx.description, key=f"edit_description_{tx.id}")
    amount = st.text_input("Amount", value=str(tx.amount), key=f"edit_amount_{tx.id}")
    tx_date = st.date_input("Date", value=tx.date, key=f"edit_date_{tx.id}")

    scope = EditScope.SINGLE
    if tx.series_id:
        scope = st.radio(
            "Apply to",
            options=list(EditScope),
            format_func=SCOPE_LABELS.get,
            horizontal=True,
            key="edit_scope",
        )
    if tx.is_settled:
        st.caption(f"Paid with the {tx.settled_invoice_month} invoice: only the description can change.")

    col1, col2 = st.columns(2)
    if col1.button("💾 Save changes", key="save_edit"):
        try:
            components.ledger.update_transaction(
                tx.id,
                {"description": description, "amount": parse_amount(amount), "date": tx_date},
                scope,
            )
        except (ValidationError, NotFoundError, ConflictError) as e:
            show_error(e)
        else:
            st.rerun()
    if col2.button("🗑️ Delete", key="delete_tx"):
        try:
            components.ledger.delete_transaction(tx.id, scope)
        except (NotFoundError, ConflictError) as e:
            show_error(e)
        else:
            st.rerun()


def render_cards_page(components: AppComponents, account_id: int):
    """Render the credit cards page."""
    st.title("💳 Credit Cards")

    render_card_overviews(components.invoices.card_overviews(account_id))

    with st.expander("➕ New credit card"):
        with st.form("new_card", clear_on_submit=True):
            name = st.text_input("Name")
            brand = st.text_input("Brand", placeholder="Visa, Mastercard...")
            limit = st.text_input("Credit limit", value="0.00")
            closing_day = st.number_input("Closing day", min_value=1, max_value=31, value=25)
            due_day = st.number_input("Due day", min_value=1, max_value=31, value=5)
            if st.form_submit_button("💾 Save card", type="primary"):
                try:
                    components.invoices.create_credit_card(account_id, {
                        "name": name,
                        "brand": brand,
                        "credit_limit": parse_amount(limit, "credit_limit", positive=False),
                        "closing_day": int(closing_day),
                        "due_date": int(due_day),
                    })
                except ValidationError as e:
                    show_error(e)
                else:
                    st.rerun()

    st.markdown("---")
    st.subheader("🧾 Invoices")
    invoices = components.invoices.list_invoices(account_id)
    if not invoices:
        st.info("No invoices yet. Card purchases show up here.")
        return
    card_names = {c.id: c.name for c in components.invoices.list_credit_cards(account_id)}
    st.dataframe(
        [
            {
                "Card": card_names.get(inv.credit_card_id, ""),
                "Month": inv.month,
                "Closes": inv.closing_date.strftime("%d/%m/%Y"),
                "Due": inv.due_date.strftime("%d/%m/%Y"),
                "Total": money(inv.total),
                "Status": inv.status.value,
            }
            for inv in invoices
        ],
        use_container_width=True,
    )


def render_categories_page(components: AppComponents, account_id: int):
    """Categories by type, and bank accounts with their balances."""
    st.title("🏷️ Categories & Banks")

    left, right = st.columns(2)
    groups = partition_by_type(components.categories.list_categories(account_id))
    for column, tx_type in ((left, TransactionType.INCOME), (right, TransactionType.EXPENSE)):
        with column:
            st.subheader(tx_type.value.title())
            for category in groups[tx_type]:
                st.markdown(
                    f"<span style='color:{category.color}'>●</span> {category.name}",
                    unsafe_allow_html=True,
                )

    with st.expander("➕ New category"):
        with st.form("new_category", clear_on_submit=True):
            name = st.text_input("Name")
            color = st.color_picker("Color", value="#6B7280")
            tx_type = st.selectbox(
                "Type",
                options=list(TransactionType),
                index=1,
                format_func=lambda t: t.value.title(),
            )
            if st.form_submit_button("💾 Save category", type="primary"):
                try:
                    components.categories.create_category(
                        account_id, {"name": name, "color": color.upper(), "type": tx_type}
                    )
                except ValidationError as e:
                    show_error(e)
                else:
                    st.rerun()

    st.markdown("---")
    st.subheader("🏦 Bank accounts")
    bank_accounts = components.accounts.list_bank_accounts(account_id)
    if not bank_accounts:
        st.info("No bank accounts yet.")
    for bank in bank_accounts:
        balance = components.accounts.get_bank_account_balance(bank.id)
        shared = " · shared" if bank.shared else ""
        st.markdown(
            f"**{bank.name}**{shared}: {money(balance.balance)} "
            f"(in {money(balance.income)}, out {money(balance.expenses)})"
        )

    with st.expander("➕ New bank account"):
        with st.form("new_bank_account", clear_on_submit=True):
            name = st.text_input("Name")
            initial = st.text_input("Opening balance", value="0.00")
            pix = st.text_input("PIX key")
            shared = st.checkbox("Visible to my other accounts")
            if st.form_submit_button("💾 Save bank account", type="primary"):
                try:
                    components.accounts.create_bank_account(account_id, {
                        "name": name,
                        "initial_balance": parse_amount(initial, "initial_balance", positive=False),
                        "pix": pix,
                        "shared": shared,
                    })
                except (ValidationError, NotFoundError) as e:
                    show_error(e)
                else:
                    st.rerun()


def render_budget_usage(usage):
    spent = f"{money(usage.spent)} spent in {usage.transaction_count} transaction(s)"
    if usage.budget is None:
        st.markdown(f"**{usage.name}**: {spent}")
        return
    st.markdown(f"**{usage.name}**: {spent} of {money(usage.budget)}")
    if usage.budget > 0:
        st.progress(min(float(usage.spent / usage.budget), 1.0))


def render_business_page(components: AppComponents, account):
    """Projects, cost centers and clients of a business account."""
    st.title("🏢 Business")

    if not account.is_business:
        st.info("Projects, cost centers and clients are available on business accounts.")
        return

    projects_tab, centers_tab, clients_tab = st.tabs(["Projects", "Cost centers", "Clients"])
    clients = components.business.list_clients(account.id)

    with projects_tab:
        for project in components.business.list_projects(account.id):
            render_budget_usage(components.reports.project_stats(project.id))
        with st.form("new_project", clear_on_submit=True):
            name = st.text_input("Project name")
            budget = st.text_input("Budget", placeholder="optional")
            client = st.selectbox(
                "Client",
                options=[None] + clients,
                format_func=lambda c: "None" if c is None else c.name,
            )
            if st.form_submit_button("💾 Save project", type="primary"):
                try:
                    components.business.create_project(account.id, {
                        "name": name,
                        "budget": parse_amount(budget, "budget", positive=False) if budget else None,
                        "client_id": client.id if client else None,
                    })
                except (ValidationError, NotFoundError, ConflictError) as e:
                    show_error(e)
                else:
                    st.rerun()

    with centers_tab:
        for center in components.business.list_cost_centers(account.id):
            render_budget_usage(components.reports.cost_center_stats(center.id))
        with st.form("new_cost_center", clear_on_submit=True):
            name = st.text_input("Cost center name")
            code = st.text_input("Code")
            budget = st.text_input("Budget", placeholder="optional")
            if st.form_submit_button("💾 Save cost center", type="primary"):
                try:
                    components.business.create_cost_center(account.id, {
                        "name": name,
                        "code": code or None,
                        "budget": parse_amount(budget, "budget", positive=False) if budget else None,
                    })
                except (ValidationError, NotFoundError, ConflictError) as e:
                    show_error(e)
                else:
                    st.rerun()

    with clients_tab:
        for client in clients:
            contact = " · ".join(part for part in (client.email, client.phone) if part)
            st.markdown(f"**{client.name}** {contact}")
        with st.form("new_client", clear_on_submit=True):
            name = st.text_input("Client name")
            email = st.text_input("Email")
            phone = st.text_input("Phone")
            if st.form_submit_button("💾 Save client", type="primary"):
                try:
                    components.business.create_client(account.id, {
                        "name": name,
                        "email": email or None,
                        "phone": phone or None,
                    })
                except (ValidationError, NotFoundError, ConflictError) as e:
                    show_error(e)
                else:
                    st.rerun()


def render_settings_page(components: AppComponents):
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Connection Status")

    from ledgerdash.config import validate_all_settings

    status = validate_all_settings()
    for name, key in [("Database settings", "database"), ("App settings", "app")]:
        if status.get(key, False):
            st.success(f"✅ {name} - Valid")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Invalid')}")

    if components.database.is_reachable():
        st.success("✅ Database - Connected")
    else:
        st.error("❌ Database - Unreachable")

    st.markdown("---")
    st.markdown("### Configuration")
    st.markdown(
        "Settings come from `LEDGERDASH_*` environment variables or a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
