"""
Streamlit Frontend for Shop Ledger

The screens the shop owner works with every day: dashboard, orders,
vendors, general expenses, owner funds and backups.

DESIGN PRINCIPLES:
1. The UI only calls the flows; it never touches storage directly
2. Every number shown comes from the metrics engine
3. Destructive actions (delete, import) need an explicit confirmation
"""

from datetime import date
from decimal import Decimal

import streamlit as st

from shopledger.config import StorageBackendName, get_settings, validate_all_settings
from shopledger.metrics import order_figures
from shopledger.models.records import (
    ExpenseLine,
    FundType,
    Payment,
    VendorPaymentStatus,
)
from shopledger.orchestrator import AppComponents, create_app_components
from shopledger.queries import (
    paginate,
    search_expenses,
    search_orders,
    vendor_display_name,
)
from shopledger.storage import NotFoundError, StorageError


st.set_page_config(
    page_title="Shop Ledger",
    page_icon="📒",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource
def get_components() -> AppComponents:
    """Get or create application components (cached)."""
    return create_app_components()


def money(value: Decimal) -> str:
    currency = get_settings().app.currency
    return f"{currency} {value:,.2f}"


def pager(key: str, total_items: int) -> int:
    """Page picker; returns the requested page number."""
    page_size = get_settings().app.page_size
    total_pages = max(1, -(-total_items // page_size))
    if total_pages == 1:
        return 1
    return int(st.number_input("Page", min_value=1, max_value=total_pages, value=1, key=key))


def main():
    """Main application entry point."""
    try:
        components = get_components()
    except StorageError as e:
        st.error(f"Could not open the ledger: {e}")
        st.stop()

    st.sidebar.title("📒 Shop Ledger")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Dashboard", "🧾 Orders", "✏️ Order Form", "🏭 Vendors",
         "💸 Expenses", "🏦 Owner Funds", "💾 Backup", "⚙️ Settings"],
        index=0,
    )

    if page == "📊 Dashboard":
        render_dashboard(components)
    elif page == "🧾 Orders":
        render_orders(components)
    elif page == "✏️ Order Form":
        render_order_form(components)
    elif page == "🏭 Vendors":
        render_vendors(components)
    elif page == "💸 Expenses":
        render_expenses(components)
    elif page == "🏦 Owner Funds":
        render_funds(components)
    elif page == "💾 Backup":
        render_backup(components)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_dashboard(components: AppComponents):
    st.title("📊 Dashboard")
    metrics = components.reports.dashboard()

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Orders", metrics.total_orders)
    col2.metric("Total Sales", money(metrics.total_sales))
    col3.metric("Receivables", money(metrics.total_receivables))
    col4.metric("Payables", money(metrics.total_payables))

    col1, col2, col3, col4 = st.columns(4)
    col1.metric("Total Expenses", money(metrics.total_expenses))
    col2.metric("Profit", money(metrics.total_profit))
    col3.metric("Cash in Hand", money(metrics.cash_in_hand))
    col4.metric(
        "Owner Funds",
        money(metrics.total_owner_deposits - metrics.total_owner_withdrawals),
    )

    st.caption(
        "Profit counts every expense incurred. Cash in hand only counts "
        "expenses actually paid, so pending vendor payments show up as payables."
    )

    st.subheader("Recent Orders")
    if not metrics.recent_orders:
        st.info("No orders yet.")
    for order in metrics.recent_orders:
        figures = order_figures(order)
        st.markdown(
            f"**{order.customer_name or 'Unnamed'}** · {order.order_date or '-'} · "
            f"{money(figures.grand_total)} · receivable {money(figures.receivable)}"
        )


def render_orders(components: AppComponents):
    st.title("🧾 Orders")
    term = st.text_input("Search by customer name or phone")
    vendors = components.vendors.list_vendors()

    orders = search_orders(components.orders.list_orders(), term)
    page = paginate(orders, pager("orders_page", len(orders)), get_settings().app.page_size)
    st.caption(page.describe("orders"))

    for order in page.items:
        figures = order_figures(order)
        status = "✅" if order.is_completed else "⏳"
        with st.expander(f"{status} {order.customer_name} · {order.order_date or '-'} · {money(figures.grand_total)}"):
            st.write(order.order_description)
            col1, col2, col3 = st.columns(3)
            col1.metric("Receivable", money(figures.receivable))
            col2.metric("Expenses", money(figures.expense_total))
            col3.metric("Profit", money(figures.profit))

            for expense in order.expenses:
                line = f"- {expense.description}: {money(expense.amount)}"
                if expense.has_vendor:
                    line += (
                        f" · Vendor: {vendor_display_name(expense, vendors)}"
                        f" ({expense.vendor_payment_status.value})"
                    )
                st.markdown(line)

            col1, col2, col3 = st.columns(3)
            if col1.button("Toggle completed", key=f"complete_{order.id}"):
                components.orders.toggle_completion(order.id)
                st.rerun()
            if col2.button("Edit", key=f"edit_{order.id}"):
                st.session_state["draft_order"] = order.model_dump()
                st.info("Loaded into the Order Form page.")
            if col3.checkbox("Confirm delete", key=f"confirm_{order.id}"):
                if col3.button("Delete", key=f"delete_{order.id}"):
                    components.orders.delete_order(order.id)
                    st.rerun()


def _empty_draft() -> dict:
    return {
        "id": None,
        "customer_name": "",
        "customer_phone": "",
        "order_description": "",
        "order_date": date.today(),
        "order_total": Decimal("0"),
        "received_delivery_charges": Decimal("0"),
        "paid_delivery_charges": Decimal("0"),
        "expenses": [],
        "payments": [],
    }


def render_order_form(components: AppComponents):
    draft = st.session_state.setdefault("draft_order", _empty_draft())
    editing = bool(draft.get("id"))
    st.title("✏️ Edit Order" if editing else "✏️ New Order")

    vendors = components.vendors.list_vendors()
    vendor_labels = {"": "No vendor"}
    vendor_labels.update({vendor.id: vendor.name for vendor in vendors})

    st.subheader("Expenses")
    for index, raw in enumerate(draft["expenses"]):
        expense = ExpenseLine.model_validate(raw)
        col1, col2 = st.columns([5, 1])
        label = f"{expense.description}: {money(expense.amount)}"
        if expense.has_vendor:
            label += f" · {vendor_display_name(expense, vendors)} ({expense.vendor_payment_status.value})"
        col1.write(label)
        if col2.button("Remove", key=f"remove_expense_{index}"):
            draft["expenses"].pop(index)
            st.rerun()

    with st.form("add_expense", clear_on_submit=True):
        description = st.text_input("Expense description")
        amount = st.number_input("Amount", min_value=0.0, step=100.0)
        vendor_id = st.selectbox("Vendor", list(vendor_labels), format_func=vendor_labels.get)
        status = st.selectbox("Vendor payment", [s.value for s in VendorPaymentStatus])
        if st.form_submit_button("Add expense") and description and amount > 0:
            draft["expenses"].append(
                ExpenseLine(
                    description=description,
                    amount=amount,
                    vendor_id=vendor_id or None,
                    vendor_name=vendor_labels[vendor_id] if vendor_id else "",
                    vendor_payment_status=status,
                ).model_dump()
            )
            st.rerun()

    st.subheader("Payments")
    for index, raw in enumerate(draft["payments"]):
        payment = Payment.model_validate(raw)
        col1, col2 = st.columns([5, 1])
        col1.write(f"{payment.date or '-'}: {money(payment.amount)}")
        if col2.button("Remove", key=f"remove_payment_{index}"):
            draft["payments"].pop(index)
            st.rerun()

    with st.form("add_payment", clear_on_submit=True):
        paid_on = st.date_input("Payment date", value=date.today())
        amount = st.number_input("Payment amount", min_value=0.0, step=100.0)
        if st.form_submit_button("Add payment") and amount > 0:
            draft["payments"].append(Payment(date=paid_on, amount=amount).model_dump())
            st.rerun()

    with st.form("order"):
        customer_name = st.text_input("Customer name", value=draft["customer_name"])
        customer_phone = st.text_input("Customer phone", value=draft["customer_phone"])
        description = st.text_area("Description", value=draft["order_description"])
        order_date = st.date_input("Order date", value=draft["order_date"] or date.today())
        order_total = st.number_input("Order total", min_value=0.0, value=float(draft["order_total"]))
        received = st.number_input(
            "Delivery charges received", min_value=0.0,
            value=float(draft["received_delivery_charges"]),
        )
        paid = st.number_input(
            "Delivery charges paid", min_value=0.0,
            value=float(draft["paid_delivery_charges"]),
        )
        submitted = st.form_submit_button("Update order" if editing else "Save order")

    if submitted:
        fields = {
            "customer_name": customer_name,
            "customer_phone": customer_phone,
            "order_description": description,
            "order_date": order_date,
            "order_total": order_total,
            "received_delivery_charges": received,
            "paid_delivery_charges": paid,
            "expenses": draft["expenses"],
            "payments": draft["payments"],
        }
        try:
            if editing:
                components.orders.update_order(draft["id"], fields)
            else:
                components.orders.add_order(fields)
        except (ValueError, NotFoundError, StorageError) as e:
            st.error(f"Could not save the order: {e}")
            return
        st.session_state["draft_order"] = _empty_draft()
        st.success("Order saved.")


def render_vendors(components: AppComponents):
    st.title("🏭 Vendors")

    with st.form("vendor", clear_on_submit=True):
        name = st.text_input("Vendor name")
        contact = st.text_input("Contact number")
        if st.form_submit_button("Add vendor") and name and contact:
            components.vendors.add_vendor(name, contact)
            st.rerun()

    vendors = components.vendors.list_vendors()
    page = paginate(vendors, pager("vendors_page", len(vendors)), get_settings().app.page_size)
    st.caption(page.describe("vendors"))

    for vendor in page.items:
        totals = components.vendors.totals(vendor.id)
        with st.expander(f"{vendor.name} · {vendor.contact_number}"):
            col1, col2, col3 = st.columns(3)
            col1.metric("Assigned", money(totals.total_assigned))
            col2.metric("Paid", money(totals.total_paid))
            col3.metric("Pending", money(totals.total_pending))

            for tx in components.vendors.list_transactions(vendor.id):
                col1, col2 = st.columns([5, 1])
                col1.write(
                    f"{tx.expense_description}: {money(tx.amount)} · {tx.status.value} · order {tx.order_id}"
                )
                action = "Mark pending" if tx.status == VendorPaymentStatus.PAID else "Mark paid"
                if col2.button(action, key=f"toggle_{tx.id}"):
                    components.vendors.toggle_transaction_status(tx.id)
                    st.rerun()

            if st.checkbox("Confirm delete (removes this vendor's transactions)", key=f"confirm_{vendor.id}"):
                if st.button("Delete vendor", key=f"delete_{vendor.id}"):
                    components.vendors.delete_vendor(vendor.id)
                    st.rerun()

    st.markdown("---")
    if st.button("Rebuild vendor transactions from orders"):
        count = components.vendors.rebuild_transactions()
        st.success(f"Rebuilt {count} vendor transactions.")


def render_expenses(components: AppComponents):
    st.title("💸 General Expenses")

    with st.form("expense", clear_on_submit=True):
        description = st.text_input("Description")
        amount = st.number_input("Amount", min_value=0.0, step=100.0)
        spent_on = st.date_input("Date", value=date.today())
        if st.form_submit_button("Add expense") and description and amount > 0:
            components.cashbook.add_expense(
                {"description": description, "amount": amount, "date": spent_on}
            )
            st.rerun()

    st.metric("Total general expenses", money(components.cashbook.expense_total()))

    term = st.text_input("Search expenses")
    expenses = search_expenses(components.cashbook.list_expenses(), term)
    page = paginate(expenses, pager("expenses_page", len(expenses)), get_settings().app.page_size)
    st.caption(page.describe("expenses"))

    for expense in page.items:
        col1, col2 = st.columns([5, 1])
        col1.write(f"{expense.date or '-'} · {expense.description}: {money(expense.amount)}")
        if col2.button("Delete", key=f"delete_expense_{expense.id}"):
            components.cashbook.delete_expense(expense.id)
            st.rerun()


def render_funds(components: AppComponents):
    st.title("🏦 Owner Funds")

    with st.form("fund", clear_on_submit=True):
        fund_type = st.selectbox("Type", [t.value for t in FundType])
        description = st.text_input("Description")
        amount = st.number_input("Amount", min_value=0.0, step=100.0)
        moved_on = st.date_input("Date", value=date.today())
        if st.form_submit_button("Add") and amount > 0:
            components.cashbook.add_fund_transaction(
                {"type": fund_type, "description": description, "amount": amount, "date": moved_on}
            )
            st.rerun()

    summary = components.cashbook.fund_summary()
    col1, col2, col3 = st.columns(3)
    col1.metric("Deposits", money(summary.total_deposits))
    col2.metric("Withdrawals", money(summary.total_withdrawals))
    col3.metric("Net", money(summary.net_balance))

    for fund in components.cashbook.list_funds():
        col1, col2 = st.columns([5, 1])
        col1.write(f"{fund.date or '-'} · {fund.type.value} · {fund.description}: {money(fund.amount)}")
        if col2.button("Delete", key=f"delete_fund_{fund.id}"):
            components.cashbook.delete_fund_transaction(fund.id)
            st.rerun()


def render_backup(components: AppComponents):
    st.title("💾 Backup")

    st.subheader("Export")
    st.download_button(
        "Download database",
        data=components.transfer.export_bytes(),
        file_name=components.transfer.default_file_name(),
        mime="application/json",
    )

    st.subheader("Import")
    st.warning("Importing replaces ALL current data with the file's contents.")
    uploaded = st.file_uploader("Backup file", type=["json"])
    confirmed = st.checkbox("I understand my current data will be replaced")
    if uploaded is not None and confirmed and st.button("Import"):
        result = components.transfer.import_bytes(uploaded.getvalue())
        if result.success:
            st.success(result.message)
        else:
            st.error(result.message)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    settings = get_settings()
    storage = settings.storage
    app_settings = settings.app

    st.markdown("### Storage")
    st.write(f"Backend: `{storage.backend.value}`")
    if storage.backend == StorageBackendName.JSON:
        st.write(f"Data directory: `{storage.data_dir}`")

    st.markdown("### Configuration Status")
    status = validate_all_settings()
    for key in ("storage", "google_sheets", "app"):
        if key not in status:
            continue
        if status[key]:
            st.success(f"✅ {key} settings OK")
        else:
            st.error(f"❌ {key} - {status.get(f'{key}_error', 'Not configured')}")

    st.markdown("### Ledger")
    st.write(f"Currency: {app_settings.currency}")
    st.write(f"Rows per page: {app_settings.page_size}")
    st.write(f"Vendor delete policy: `{app_settings.vendor_delete_policy.value}`")
    st.markdown(
        "Settings come from environment variables or a `.env` file "
        "(`LEDGER_STORAGE_BACKEND`, `LEDGER_STORAGE_DATA_DIR`, `VENDOR_DELETE_POLICY`, ...)."
    )


if __name__ == "__main__":
    main()
