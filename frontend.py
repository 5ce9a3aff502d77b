"""
Streamlit frontend for the payment portal.

    streamlit run frontend.py

Customers submit payment requests and watch their status; employees review
pending requests. Both dashboards refresh themselves on a timer.
"""

import os
from typing import Any, Dict, List

import streamlit as st

from api_client import ApiError, PortalClient
from validation import check_amount_bounds, sanitize_payment, validate_payment

API_BASE = os.getenv("PORTAL_API_URL", "https://localhost:5001")
VERIFY_TLS = (os.getenv("PORTAL_VERIFY_TLS") or "true").strip().lower() != "false"
SHOW_DIAGNOSTICS = (os.getenv("PORTAL_SHOW_DIAGNOSTICS") or "").strip().lower() == "true"

CUSTOMER_REFRESH_SECONDS = 15
EMPLOYEE_REFRESH_SECONDS = 120

CURRENCIES = ["USD", "EUR", "GBP", "ZAR", "JPY", "CHF", "CAD", "AUD"]
SWIFT_CODES = [
    ("BOFAUS3N", "Bank of America", "USA"),
    ("CITIUS33", "Citibank", "USA"),
    ("CHASUS33", "JPMorgan Chase", "USA"),
    ("WFBIUS6S", "Wells Fargo", "USA"),
    ("HSBCUS33", "HSBC Bank USA", "USA"),
    ("DEUTUS33", "Deutsche Bank", "USA"),
    ("BARBGB22", "Barclays Bank", "UK"),
    ("HSBCGB2L", "HSBC UK", "UK"),
    ("LOYDGB2L", "Lloyds Bank", "UK"),
    ("NWBKGB2L", "NatWest", "UK"),
    ("DEUTDEFF", "Deutsche Bank", "Germany"),
    ("COBADEFF", "Commerzbank", "Germany"),
    ("BNPAFRPP", "BNP Paribas", "France"),
    ("SOGEFRPP", "Société Générale", "France"),
]
STATUS_BADGES = {"pending": "🟡", "approved": "🟢", "rejected": "🔴"}

st.set_page_config(page_title="Payment Portal", page_icon="💳", layout="wide")


# ---------------- Session helpers ----------------

def get_client() -> PortalClient:
    return PortalClient(API_BASE, token=st.session_state.get("token"), verify=VERIFY_TLS)


def logout() -> None:
    for key in ("token", "user"):
        st.session_state.pop(key, None)


def show_error(error: ApiError) -> None:
    st.error(error.message)
    for message in error.errors:
        st.write(f"- {message}")
    if error.status_code in (401, 403):
        st.warning("Your session is no longer valid. Please log in again.")
        logout()


def payment_rows(payments: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            "Reference": p.get("reference"),
            "Status": f"{STATUS_BADGES.get(p.get('status'), '⚪')} {p.get('status')}",
            "Amount": f"{p.get('amount')} {p.get('currency')}",
            "Beneficiary": p.get("beneficiary_name"),
            "SWIFT": p.get("beneficiary_bank"),
            "Purpose": p.get("purpose"),
            "Created": p.get("created_at"),
            "Reviewed by": p.get("reviewed_by") or "",
        }
        for p in payments
    ]


# ---------------- Login ----------------

def login_view() -> None:
    st.title("💳 International Payments Portal")
    with st.form("login"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        role = st.selectbox("I am a", ["customer", "employee", "admin"], format_func=str.capitalize)
        submitted = st.form_submit_button("Log in")

    if submitted:
        client = get_client()
        try:
            body = client.login(username.strip(), password, role)
        except ApiError as e:
            st.error(e.message)
            return
        st.session_state.token = body["token"]
        st.session_state.user = body["user"]
        st.rerun()


# ---------------- Customer dashboard ----------------

def payment_form() -> None:
    st.subheader("New payment request")
    with st.form("create_payment", clear_on_submit=False):
        col1, col2 = st.columns(2)
        source_account = col1.text_input("Your account number")
        target_account = col2.text_input("Beneficiary account number")
        beneficiary_name = col1.text_input("Beneficiary name")
        swift_choice = col2.selectbox(
            "Beneficiary bank",
            SWIFT_CODES,
            format_func=lambda s: f"{s[0]} - {s[1]} ({s[2]})",
        )
        custom_swift = col2.text_input("Other SWIFT code (overrides the selection)")
        amount = col1.text_input("Amount", placeholder="1000.00")
        currency = col1.selectbox("Currency", CURRENCIES)
        purpose = st.text_area("Purpose of payment")
        submitted = st.form_submit_button("Submit payment")

    if not submitted:
        return

    payment = sanitize_payment(
        {
            "source_account": source_account.upper(),
            "target_account": target_account.upper(),
            "beneficiary_name": beneficiary_name,
            "beneficiary_bank": (custom_swift or swift_choice[0]).upper(),
            "amount": amount,
            "currency": currency,
            "purpose": purpose,
        }
    )
    errors = validate_payment(payment)
    if not errors:
        bounds_error = check_amount_bounds(payment["amount"])
        if bounds_error:
            errors.append(bounds_error)
    if errors:
        for message in errors:
            st.error(message)
        return

    try:
        body = get_client().create_payment(payment)
    except ApiError as e:
        show_error(e)
        return
    st.success(f"Payment request {body['reference']} submitted ({body['amount']} {body['currency']})")


@st.fragment(run_every=CUSTOMER_REFRESH_SECONDS)
def customer_payments() -> None:
    st.subheader("My payments")
    try:
        payments = get_client().my_payments()
    except ApiError as e:
        show_error(e)
        return
    if not payments:
        st.info("No payment requests yet.")
        return
    st.dataframe(payment_rows(payments), use_container_width=True, hide_index=True)
    st.caption(f"Refreshes every {CUSTOMER_REFRESH_SECONDS} seconds")


def customer_dashboard(user: Dict[str, Any]) -> None:
    st.title(f"Welcome, {user['full_name']}")
    payment_form()
    customer_payments()


# ---------------- Employee dashboard ----------------

def review(payment_id: str, status: str) -> None:
    try:
        body = get_client().update_status(payment_id, status)
        st.session_state.flash = ("success", body["message"])
    except ApiError as e:
        st.session_state.flash = ("error", e.message)
        if e.status_code in (401, 403):
            logout()


@st.fragment(run_every=EMPLOYEE_REFRESH_SECONDS)
def employee_payments() -> None:
    flash = st.session_state.pop("flash", None)
    if flash:
        getattr(st, flash[0])(flash[1])

    client = get_client()
    try:
        pending = client.pending_payments()
        everything = client.all_payments()
    except ApiError as e:
        show_error(e)
        return

    pending_tab, all_tab = st.tabs([f"Pending ({len(pending)})", f"All payments ({len(everything)})"])
    with pending_tab:
        if not pending:
            st.info("No payments waiting for review.")
        for p in pending:
            with st.container(border=True):
                info, approve, reject = st.columns([6, 1, 1])
                info.markdown(
                    f"**{p['reference']}** · {p['amount']} {p['currency']} → "
                    f"{p['beneficiary_name']} ({p['beneficiary_bank']})  \n"
                    f"From {p['customer_name']} · {p['purpose']}"
                )
                approve.button("Approve", key=f"approve-{p['id']}", on_click=review, args=(p["id"], "approved"))
                reject.button("Reject", key=f"reject-{p['id']}", on_click=review, args=(p["id"], "rejected"))
    with all_tab:
        st.dataframe(payment_rows(everything), use_container_width=True, hide_index=True)
    st.caption(f"Refreshes every {EMPLOYEE_REFRESH_SECONDS // 60} minutes")


def diagnostics() -> None:
    with st.expander("Diagnostics (development only)"):
        client = get_client()
        if st.button("Test database connection"):
            try:
                st.json(client.test_db())
            except ApiError as e:
                st.error(e.message)
        if st.button("Dump debug data"):
            try:
                st.json(client.debug_data())
            except ApiError as e:
                st.error(e.message)


def employee_dashboard(user: Dict[str, Any]) -> None:
    st.title(f"Payment verification · {user['full_name']}")
    employee_payments()
    if SHOW_DIAGNOSTICS:
        diagnostics()


# ---------------- Main ----------------

def main() -> None:
    user = st.session_state.get("user")
    if not st.session_state.get("token") or not user:
        login_view()
        return

    with st.sidebar:
        st.write(f"Signed in as **{user['username']}** ({user['role']})")
        if st.button("Log out"):
            logout()
            st.rerun()

    if user["role"] == "customer":
        customer_dashboard(user)
    else:
        employee_dashboard(user)


main()
