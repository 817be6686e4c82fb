import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

from wallet.async_reports import spent_by_account, sum_payments_with_progress
from wallet.config import load_settings
from wallet.domain import PaymentStatus
from wallet.errors import DecodeError, WalletError
from wallet.events import BALANCE_ALERT, register_default_handlers
from wallet.lazy import by_account, by_status, iter_payments, lazy_top_categories
from wallet.logging_setup import configure_logging, get_logger
from wallet.services import WalletService

configure_logging()
logger = get_logger("wallet.app")

st.set_page_config(page_title="Wallet", layout="wide")

settings = load_settings()

if "wallet" not in st.session_state:
    service = WalletService(settings=settings)
    register_default_handlers(service.bus)
    st.session_state.wallet = service
    st.session_state.alerts = []

    def _collect_alert(event, payload):
        if payload.get("threshold", 0) > 0 and payload.get("balance", 0) < payload["threshold"]:
            st.session_state.alerts.append(f"{event.ts[:19]}  account {payload['account_id']}: {payload['balance']:,}")
        return {}

    service.bus.subscribe(BALANCE_ALERT, _collect_alert)

wallet: WalletService = st.session_state.wallet


def accounts_df() -> pd.DataFrame:
    return pd.DataFrame(
        [{"id": a.id, "phone": a.phone, "balance": a.balance} for a in wallet.accounts()],
        columns=["id", "phone", "balance"],
    )


def payments_df(payments) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"id": p.id, "account": p.account_id, "amount": p.amount, "category": p.category, "status": p.status.value}
            for p in payments
        ],
        columns=["id", "account", "amount", "category", "status"],
    )


def run_action(action, success: str):
    try:
        result = action()
    except DecodeError as e:
        st.error("\n".join(e.problems))
        return None
    except WalletError as e:
        st.error(f"{e.error_code}: {e.message}")
        return None
    except OSError as e:
        logger.error("file operation failed: %s", e)
        st.error(f"File error: {e}")
        return None
    st.success(success)
    return result


st.sidebar.markdown("### 👛 Wallet")
menu = st.sidebar.radio("Menu", ["🏠 Overview", "💳 Accounts", "🧾 Payments", "⭐ Favorites", "💾 Storage"])

for alert in st.session_state.alerts[-3:]:
    st.sidebar.warning(f"Low balance: {alert}")

if menu == "🏠 Overview":
    accounts = wallet.accounts()
    payments = wallet.payments()
    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Accounts", len(accounts))
    with k2:
        st.metric("Payments", len(payments))
    with k3:
        st.metric("Favorites", len(wallet.favorites()))
    with k4:
        st.metric("Total Balance", f"{sum(a.balance for a in accounts):,}")

    if accounts:
        df_acc = accounts_df()
        fig_bal = px.bar(df_acc, x="phone", y="balance", title="Account Balances", template="plotly_dark")
        st.plotly_chart(fig_bal, use_container_width=True)

        spent = asyncio.run(spent_by_account(accounts, payments))
        fig_spent = go.Figure()
        fig_spent.add_trace(go.Bar(x=[a.phone for a in accounts], y=[a.balance for a in accounts], name="Balance"))
        fig_spent.add_trace(go.Bar(x=[a.phone for a in accounts], y=[spent.get(a.id, 0) for a in accounts], name="Spent"))
        fig_spent.update_layout(barmode="group", template="plotly_dark", margin=dict(t=30, b=10, l=10, r=10))
        st.plotly_chart(fig_spent, use_container_width=True)
    else:
        st.info("Register an account to get started.")

    top = list(lazy_top_categories(payments, 5))
    if top:
        df_top = pd.DataFrame(top, columns=["Category", "Total"])
        st.plotly_chart(px.pie(df_top, values="Total", names="Category", title="Top Categories"), use_container_width=True)

elif menu == "💳 Accounts":
    st.title("💳 Accounts")

    with st.form("register_form", clear_on_submit=True):
        phone = st.text_input("Phone")
        if st.form_submit_button("Register") and phone:
            run_action(lambda: wallet.register_account(phone), f"Registered {phone}")

    accounts = wallet.accounts()
    if accounts:
        with st.form("deposit_form", clear_on_submit=True):
            account_id = st.selectbox("Account", [a.id for a in accounts], format_func=lambda i: f"#{i}")
            amount = st.number_input("Amount", min_value=0, step=100)
            if st.form_submit_button("Deposit"):
                run_action(lambda: wallet.deposit(account_id, int(amount)), f"Deposited {int(amount):,}")

        st.table(accounts_df())

elif menu == "🧾 Payments":
    st.title("🧾 Payments")
    accounts = wallet.accounts()

    if accounts:
        with st.form("pay_form", clear_on_submit=True):
            col1, col2 = st.columns(2)
            with col1:
                account_id = st.selectbox("Account", [a.id for a in accounts], format_func=lambda i: f"#{i}")
                amount = st.number_input("Amount", min_value=0, step=100)
            with col2:
                category = st.text_input("Category", value="groceries")
            if st.form_submit_button("Pay"):
                run_action(lambda: wallet.pay(account_id, int(amount), category), "Payment created")
    else:
        st.info("No accounts yet.")

    payments = wallet.payments()
    if payments:
        col1, col2 = st.columns(2)
        with col1:
            account_filter = st.multiselect("Account", [a.id for a in accounts], default=[])
        with col2:
            status_filter = st.multiselect("Status", [s.value for s in PaymentStatus], default=[])

        shown = payments
        if account_filter:
            shown = [p for a in account_filter for p in iter_payments(shown, by_account(a))]
        if status_filter:
            shown = [p for s in status_filter for p in iter_payments(shown, by_status(PaymentStatus(s)))]

        df = payments_df(shown)
        st.dataframe(df, use_container_width=True)
        st.download_button("⬇ Download CSV", df.to_csv(index=False), file_name="payments.csv", mime="text/csv")

        selected = st.selectbox("Payment", [p.id for p in payments])
        name = st.text_input("Favorite name")
        c1, c2, c3 = st.columns(3)
        with c1:
            if st.button("Reject"):
                run_action(lambda: wallet.reject(selected), "Payment rejected")
        with c2:
            if st.button("Repeat"):
                run_action(lambda: wallet.repeat(selected), "Payment repeated")
        with c3:
            if st.button("Save as favorite") and name:
                run_action(lambda: wallet.favorite_payment(selected, name), f"Saved {name}")

        parts = st.slider("Parts", min_value=1, max_value=8, value=2)
        progress = asyncio.run(sum_payments_with_progress(payments, parts))
        st.caption(" · ".join(f"part {p.part}: {p.result:,}" for p in progress))

elif menu == "⭐ Favorites":
    st.title("⭐ Favorites")
    favorites = wallet.favorites()
    if not favorites:
        st.info("No favorites yet.")
    for fav in favorites:
        col1, col2 = st.columns([3, 1])
        with col1:
            st.markdown(f"**{fav.name}** · account #{fav.account_id} · {fav.amount:,} · {fav.category}")
        with col2:
            if st.button("Pay", key=f"fav_{fav.id}"):
                run_action(lambda: wallet.pay_from_favorite(fav.id), f"Paid {fav.name}")

elif menu == "💾 Storage":
    st.title("💾 Storage")
    dump_dir = st.text_input("Dump directory", value=settings.dump_dir)
    legacy_file = st.text_input("Accounts file", value=settings.legacy_file)
    strict = st.checkbox("Strict decoding", value=settings.strict_decode)

    c1, c2 = st.columns(2)
    with c1:
        if st.button("Export directory"):
            os.makedirs(dump_dir, exist_ok=True)
            run_action(lambda: wallet.export(dump_dir), f"Exported to {dump_dir}")
        if st.button("Import directory"):
            added = run_action(lambda: wallet.import_(dump_dir, strict=strict), f"Imported from {dump_dir}")
            if added:
                st.json(added)
    with c2:
        if st.button("Export accounts file"):
            run_action(lambda: wallet.export_to_file(legacy_file), f"Exported to {legacy_file}")
        if st.button("Import accounts file"):
            run_action(lambda: wallet.import_from_file(legacy_file, strict=strict), f"Imported from {legacy_file}")

    st.subheader("Preview")
    st.code(wallet.export_accounts_to_string(";", "\n") or "(no accounts)")
