"""
Sunlight VM - village rental management
Streamlit web app with Google Sheets (or in-memory demo data) as storage.
"""

import logging
from dataclasses import replace
from datetime import date, timedelta

import pandas as pd
import streamlit as st

import config
from core.backends import get_backend
from core.errors import (
    AccessDeniedError, ConflictError, NotFoundError, PartialCascadeFailure,
    PersistenceError, SunlightError, ValidationError,
)
from core.models import (
    Booking, BookingStatus, Expense, PaymentStatus, Subscription, Unit,
    UnitType, User, new_id, utcnow,
)
from core.mutations import MutationCoordinator
from core.pricing import compute_end_date, compute_total, recompute_booking
from core.session import Session
from core.subscriptions import days_remaining
from reports.export import frame_to_csv_bytes, frames_to_excel_bytes
from reports.pivot import (
    ALL, admin_totals, bookings_frame, expense_summary, expenses_frame,
    filter_bookings, filter_expenses, financial_report, financial_totals,
    occupancy_report, pivot_by_month_unit, subscriptions_report, village_fees_report,
)
from reports.booking_calendar import month_calendar
from reports.dashboard import dashboard_kpis, latest_rentals
from reports.receipt import receipt_frame, receipt_header
from reports.security import multi_device_alerts

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("sunlight")

st.set_page_config(
    page_title=config.APP_TITLE,
    page_icon="☀️",
    layout="wide",
)

# Messages shown for core errors; the rest of the UI text is English
MESSAGES = {
    "en": {
        "conflict": "Unit unavailable: these dates overlap an existing booking.",
        "persistence": "Could not save, changes were undone. Please try again.",
        "partial_cascade": "Delete stopped half way. Some related records may already be gone: reload to see the stored data.",
        "no_subscription": "Access denied. You are not subscribed. Please subscribe to add data.",
        "paused": "Your subscription is paused by the admin. You cannot add new data.",
        "expired": "Subscription expired. Please renew your subscription to add new data.",
        "not_found": "This record no longer exists.",
    },
    "ar": {
        "conflict": "الوحدة غير متاحة: هذه التواريخ تتداخل مع حجز قائم.",
        "persistence": "تعذر الحفظ وتم التراجع عن التغييرات. حاول مرة أخرى.",
        "partial_cascade": "توقف الحذف في منتصفه. قد تكون بعض السجلات المرتبطة قد حذفت: أعد التحميل.",
        "no_subscription": "غير مسموح. أنت غير مشترك في الخدمة. يرجى الاشتراك للتمكن من إضافة البيانات.",
        "paused": "اشتراكك موقوف مؤقتاً من قبل الإدارة. لا يمكنك إضافة بيانات جديدة.",
        "expired": "عفواً، انتهت صلاحية اشتراكك. يرجى تجديد الاشتراك لإضافة بيانات جديدة.",
        "not_found": "هذا السجل لم يعد موجوداً.",
    },
}


def lang() -> str:
    return st.session_state.get("language", "en")


def message_for(error: SunlightError) -> str:
    m = MESSAGES[lang()]
    if isinstance(error, ConflictError):
        return m["conflict"]
    if isinstance(error, AccessDeniedError):
        return m[error.reason]
    if isinstance(error, PartialCascadeFailure):
        return m["partial_cascade"]
    if isinstance(error, PersistenceError):
        return m["persistence"]
    if isinstance(error, NotFoundError):
        return m["not_found"]
    return str(error)


def run_action(action, *args, success: str = None) -> bool:
    """Runs a coordinator call and reports the outcome on the page."""
    try:
        action(*args)
    except SunlightError as e:
        st.error(message_for(e))
        if isinstance(e, ConflictError):
            for b in e.conflicts:
                st.caption(f"{b.tenant_name}: {b.start_date} → {b.end_date} ({b.status.value})")
        return False
    if success:
        st.success(success)
    return True


# ── Backend and session ──────────────────────────────────────────────────────
@st.cache_resource
def load_backend():
    return get_backend()


try:
    backend = load_backend()
except SunlightError as e:
    st.title(f"☀️ {config.APP_TITLE}")
    st.error(f"Storage not available: {e}")
    st.caption("Configure `.streamlit/secrets.toml` or run with SUNLIGHT_BACKEND=memory.")
    st.stop()

if "session" not in st.session_state:
    st.session_state["session"] = Session(backend)
session: Session = st.session_state["session"]
state = session.state

if lang() == "ar":
    st.markdown("<style>.main, .stMarkdown, .stDataFrame {direction: rtl; text-align: right;}</style>",
                unsafe_allow_html=True)

st.title(f"☀️ {config.APP_TITLE}")


# ── Login ────────────────────────────────────────────────────────────────────
if not session.is_authenticated:
    st.subheader("Sign in")
    with st.form("login"):
        email = st.text_input("Email")
        submitted = st.form_submit_button("Sign in", type="primary")
    if submitted:
        try:
            profile = next(
                (p for p in backend.profiles.list_all() if p.email.lower() == email.strip().lower()),
                None,
            )
        except SunlightError as e:
            st.error(message_for(e))
            st.stop()
        if profile is None:
            logger.warning("Sign-in attempt for unknown email %s", email.strip())
            st.error("Unknown account.")
        else:
            try:
                session.login(profile)
            except SunlightError as e:
                session.logout()
                st.error(message_for(e))
                st.stop()
            st.rerun()
    st.stop()


coordinator = MutationCoordinator(state, backend, user=session.user)
today = date.today()
currency = config.CURRENCY[lang()]
unit_names = {u.id: u.name for u in state.units}


with st.sidebar:
    st.header(session.user.full_name or session.user.email)
    st.caption(f"Storage: {backend.name}")
    st.radio(
        "Language / اللغة", options=["en", "ar"], key="language", horizontal=True,
        format_func=lambda x: "English" if x == "en" else "العربية",
    )
    if not session.is_admin:
        sub = session.subscription
        if sub is None:
            st.warning("No subscription")
        else:
            st.metric("Days remaining", days_remaining(sub, today))
    st.divider()
    if st.button("Reload data"):
        try:
            session.refresh()
        except SunlightError as e:
            st.error(message_for(e))
    if st.button("Sign out"):
        session.logout()
        st.rerun()


tab_names = ["🏡 Dashboard", "🏠 Units", "📅 Bookings", "💸 Expenses", "📊 Reports"]
if session.is_admin:
    tab_names.append("🛡️ Admin")
tabs = st.tabs(tab_names)


# ============================================================
# TAB 1: DASHBOARD
# ============================================================
with tabs[0]:
    kpis = dashboard_kpis(state.bookings, state.expenses)
    k1, k2, k3 = st.columns(3)
    k1.metric("Active bookings", kpis["active_bookings"])
    k2.metric(f"Revenue ({currency})", f"{kpis['revenue']:,.2f}")
    k3.metric(f"Net profit ({currency})", f"{kpis['net']:,.2f}")

    st.subheader("Latest rentals")
    latest = latest_rentals(state.bookings, state.units)
    if latest.empty:
        st.caption("No bookings yet.")
    else:
        st.dataframe(latest, use_container_width=True, hide_index=True)

    st.subheader("Calendar")
    month_start = st.date_input("Month", value=today.replace(day=1), key="cal_month")
    if state.units:
        grid = month_calendar(state.bookings, state.units, month_start.year, month_start.month)
        st.dataframe(grid, use_container_width=True)
    else:
        st.caption("Add a unit to see the calendar.")


# ============================================================
# TAB 2: UNITS
# ============================================================
with tabs[1]:
    st.header("Units")

    with st.expander("➕ Add unit"):
        with st.form("add_unit", clear_on_submit=True):
            name = st.text_input("Name")
            utype = st.selectbox("Type", list(UnitType), format_func=lambda t: t.value)
            if st.form_submit_button("Save", type="primary") and name.strip():
                unit = Unit(id=new_id(), name=name.strip(), type=utype, created_at=utcnow())
                if run_action(coordinator.create_unit, unit):
                    st.rerun()

    if not state.units:
        st.info("No units yet.")
    for u in state.units:
        n_bookings = len(state.bookings_for_unit(u.id))
        n_expenses = sum(1 for e in state.expenses if e.unit_id == u.id)
        with st.expander(f"{u.name} · {u.type.value} · {n_bookings} bookings"):
            with st.form(f"edit_unit_{u.id}"):
                new_name = st.text_input("Name", value=u.name)
                new_type = st.selectbox("Type", list(UnitType), index=list(UnitType).index(u.type),
                                        format_func=lambda t: t.value)
                if st.form_submit_button("Update"):
                    if run_action(coordinator.update_unit, replace(u, name=new_name.strip(), type=new_type)):
                        st.rerun()
            st.warning(f"Deleting removes {n_bookings} booking(s) and {n_expenses} expense(s) too.")
            if st.button("🗑️ Delete unit", key=f"del_unit_{u.id}"):
                if run_action(coordinator.delete_unit, u.id):
                    st.rerun()


# ============================================================
# TAB 3: BOOKINGS
# ============================================================
def booking_form(key: str, existing: Booking = None):
    """Returns a Booking with derived fields recomputed, or None if not submitted."""
    b = existing
    unit_ids = [u.id for u in state.units]
    with st.form(key, clear_on_submit=existing is None):
        col1, col2, col3 = st.columns(3)
        with col1:
            tenant = st.text_input("Tenant", value=b.tenant_name if b else "")
            phone = st.text_input("Phone", value=b.phone if b else "")
            unit_id = st.selectbox(
                "Unit", unit_ids, format_func=lambda x: unit_names.get(x, x),
                index=unit_ids.index(b.unit_id) if b and b.unit_id in unit_ids else 0,
            )
            start = st.date_input("Check-in", value=b.start_date if b else today)
            nights = st.number_input("Nights", min_value=1, step=1, value=b.nights if b else 1)
        with col2:
            rate = st.number_input("Nightly rate", min_value=0.0, value=float(b.nightly_rate) if b else 0.0)
            fee = st.number_input("Village fee / night", min_value=0.0, value=float(b.village_fee) if b else 0.0)
            hk_on = st.checkbox("Housekeeping", value=b.housekeeping_enabled if b else False)
            hk_price = st.number_input("Housekeeping price", min_value=0.0,
                                       value=float(b.housekeeping_price) if b else 0.0)
            dep_on = st.checkbox("Security deposit", value=b.deposit_enabled if b else False)
            dep = st.number_input("Deposit amount", min_value=0.0, value=float(b.deposit_amount) if b else 0.0)
        with col3:
            status = st.selectbox("Status", list(BookingStatus), format_func=lambda s: s.value,
                                  index=list(BookingStatus).index(b.status) if b else 1)
            paid = st.selectbox("Payment", list(PaymentStatus), format_func=lambda s: s.value,
                                index=list(PaymentStatus).index(b.payment_status) if b else 1)
            good = st.radio("Tenant", [True, False], horizontal=True,
                            index=0 if (b is None or b.tenant_rating_good) else 1,
                            format_func=lambda x: "👍 Welcome again" if x else "👎 Not welcome")
            notes = st.text_area("Notes", value=b.notes if b else "")
            st.caption(
                f"Check-out {compute_end_date(start, int(nights))} · "
                f"total {compute_total(rate, fee, int(nights), hk_on, hk_price):,.2f} {currency}"
            )
        if not st.form_submit_button("Save", type="primary"):
            return None

    booking = Booking(
        id=b.id if b else new_id(),
        tenant_name=tenant.strip(),
        phone=phone.strip(),
        unit_id=unit_id,
        start_date=start,
        nights=int(nights),
        end_date=start,
        nightly_rate=rate,
        village_fee=fee,
        total_rental_price=0.0,
        status=status,
        payment_status=paid,
        housekeeping_enabled=hk_on,
        housekeeping_price=hk_price,
        deposit_enabled=dep_on,
        deposit_amount=dep,
        notes=notes,
        tenant_rating_good=good,
        created_at=b.created_at if b else utcnow(),
        user_id=b.user_id if b else "",
    )
    try:
        return recompute_booking(booking)
    except ValidationError as e:
        st.error(str(e))
        return None


with tabs[2]:
    st.header("Bookings")

    if not state.units:
        st.info("Add a unit first.")
    else:
        with st.expander("➕ New booking"):
            new_booking = booking_form("add_booking")
            if new_booking is not None and run_action(coordinator.create_booking, new_booking):
                st.rerun()

        col1, col2, col3 = st.columns(3)
        with col1:
            f_start = st.date_input("From", value=None, key="bk_from")
        with col2:
            f_end = st.date_input("To", value=None, key="bk_to")
        with col3:
            f_unit = st.selectbox("Unit", [ALL] + list(unit_names), key="bk_unit",
                                  format_func=lambda x: "All units" if x == ALL else unit_names[x])

        shown = filter_bookings(state.bookings, f_start, f_end, f_unit)
        st.dataframe(bookings_frame(shown, state.units), use_container_width=True, hide_index=True)

        for b in shown:
            label = f"{b.tenant_name} · {unit_names.get(b.unit_id, '?')} · {b.start_date} → {b.end_date} · {b.status.value}"
            with st.expander(label):
                edited = booking_form(f"edit_booking_{b.id}", existing=b)
                if edited is not None and run_action(coordinator.update_booking, edited):
                    st.rerun()
                if st.button("🗑️ Delete booking", key=f"del_booking_{b.id}"):
                    if run_action(coordinator.delete_booking, b.id):
                        st.rerun()
                if st.toggle("🧾 Receipt", key=f"receipt_{b.id}"):
                    header = receipt_header(b, unit_names.get(b.unit_id, "N/A"))
                    st.caption(" · ".join(f"{k}: {v}" for k, v in header.items() if v not in ("", None)))
                    receipt = receipt_frame(b, lang())
                    st.dataframe(receipt, use_container_width=True, hide_index=True)
                    st.download_button(
                        "⬇️ Download receipt",
                        frames_to_excel_bytes({"Receipt": receipt}, rtl=lang() == "ar"),
                        file_name=f"receipt_{b.id}.xlsx",
                        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                        key=f"dl_receipt_{b.id}",
                    )


# ============================================================
# TAB 4: EXPENSES
# ============================================================
with tabs[3]:
    st.header("Expenses")

    if not state.units:
        st.info("Add a unit first.")
    else:
        with st.expander("➕ New expense"):
            with st.form("add_expense", clear_on_submit=True):
                title = st.text_input("Title")
                category = st.selectbox("Category", config.EXPENSE_CATEGORIES)
                amount = st.number_input("Amount", min_value=0.0)
                e_unit = st.selectbox("Unit", list(unit_names), format_func=lambda x: unit_names[x])
                e_date = st.date_input("Date", value=today)
                description = st.text_area("Description")
                if st.form_submit_button("Save", type="primary") and title.strip():
                    expense = Expense(
                        id=new_id(), unit_id=e_unit, title=title.strip(), category=category,
                        amount=amount, date=e_date, description=description, created_at=utcnow(),
                    )
                    if run_action(coordinator.create_expense, expense):
                        st.rerun()

        col1, col2, col3 = st.columns(3)
        with col1:
            x_start = st.date_input("From", value=today.replace(day=1), key="ex_from")
        with col2:
            x_end = st.date_input("To", value=today, key="ex_to")
        with col3:
            x_unit = st.selectbox("Unit", [ALL] + list(unit_names), key="ex_unit",
                                  format_func=lambda x: "All units" if x == ALL else unit_names[x])

        shown_x = filter_expenses(state.expenses, x_start, x_end, x_unit)
        st.metric(f"Total ({currency})", f"{sum(e.amount for e in shown_x):,.2f}")
        df_x = expenses_frame(shown_x, state.units)
        st.dataframe(df_x, use_container_width=True, hide_index=True)
        st.download_button("⬇️ Download CSV", frame_to_csv_bytes(df_x),
                           file_name=f"expenses_{x_start}_{x_end}.csv", mime="text/csv")

        for e in shown_x:
            with st.expander(f"{e.date} · {e.title} · {e.amount:,.2f}"):
                with st.form(f"edit_expense_{e.id}"):
                    t = st.text_input("Title", value=e.title)
                    a = st.number_input("Amount", min_value=0.0, value=float(e.amount))
                    c = st.text_input("Category", value=e.category)
                    if st.form_submit_button("Update"):
                        if run_action(coordinator.update_expense, replace(e, title=t, amount=a, category=c)):
                            st.rerun()
                if st.button("🗑️ Delete expense", key=f"del_expense_{e.id}"):
                    if run_action(coordinator.delete_expense, e.id):
                        st.rerun()


# ============================================================
# TAB 5: REPORTS
# ============================================================
with tabs[4]:
    st.header("Reports")

    col1, col2, col3 = st.columns(3)
    with col1:
        r_start = st.date_input("From", value=today.replace(day=1), key="rp_from")
    with col2:
        r_end = st.date_input("To", value=today + timedelta(days=30), key="rp_to")
    with col3:
        r_unit = st.selectbox("Unit", [ALL] + list(unit_names), key="rp_unit",
                              format_func=lambda x: "All units" if x == ALL else unit_names[x])

    fin = financial_report(state.units, state.bookings, state.expenses, r_start, r_end, r_unit)
    totals = financial_totals(fin)
    k1, k2, k3 = st.columns(3)
    k1.metric(f"Revenue ({currency})", f"{totals['revenue']:,.2f}")
    k2.metric(f"Expenses ({currency})", f"{totals['expenses']:,.2f}")
    k3.metric(f"Net profit ({currency})", f"{totals['net']:,.2f}")

    frames = {
        "Financial": fin,
        "Occupancy": occupancy_report(state.units, state.bookings, r_start, r_end, r_unit),
        "Village fees": village_fees_report(state.units, state.bookings, r_start, r_end, r_unit),
        "Expenses by category": expense_summary(filter_expenses(state.expenses, r_start, r_end, r_unit)),
        "Monthly totals": pivot_by_month_unit(filter_bookings(state.bookings, r_start, r_end, r_unit),
                                              state.units),
    }
    for title, df in frames.items():
        st.subheader(title)
        if df.empty:
            st.caption("No data for this period.")
        else:
            st.dataframe(df, use_container_width=True)

    st.download_button(
        "⬇️ Download Excel",
        frames_to_excel_bytes(frames, rtl=lang() == "ar"),
        file_name=f"report_{r_start}_{r_end}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )


# ============================================================
# TAB 6: ADMIN
# ============================================================
if session.is_admin:
    with tabs[5]:
        st.header("Clients")

        with st.expander("➕ Add account"):
            with st.form("add_account", clear_on_submit=True):
                a_email = st.text_input("Email")
                a_name = st.text_input("Full name")
                a_phone = st.text_input("Phone")
                if st.form_submit_button("Create", type="primary"):
                    account = User(id=new_id(), email=a_email.strip(), full_name=a_name.strip(),
                                   phone=a_phone.strip())
                    if run_action(coordinator.create_account, account,
                                  success=f"Account created with a {config.DEFAULT_SUBSCRIPTION_DAYS}-day trial."):
                        st.rerun()

        t = admin_totals(state.users, state.subscriptions, today)
        k1, k2, k3, k4 = st.columns(4)
        k1.metric("Clients", t["clients"])
        k2.metric("Active", t["active"])
        k3.metric("Expired / paused", t["inactive"])
        k4.metric(f"Revenue ({currency})", f"{t['revenue']:,.2f}")

        st.dataframe(subscriptions_report(state.users, state.subscriptions, today),
                     use_container_width=True, hide_index=True)

        clients = [u for u in state.users if not u.is_admin]
        subs_by_user = {s.user_id: s for s in state.subscriptions}
        for u in clients:
            sub = subs_by_user.get(u.id)
            with st.expander(f"{u.full_name or u.email} · {u.email}"):
                with st.form(f"sub_{u.id}"):
                    s_start = st.date_input("Start", value=sub.start_date if sub else today)
                    s_days = st.number_input("Duration (days)", min_value=1, step=1,
                                             value=sub.duration_days if sub else config.DEFAULT_SUBSCRIPTION_DAYS)
                    s_price = st.number_input("Price", min_value=0.0, value=float(sub.price) if sub else 0.0)
                    if st.form_submit_button("Save subscription"):
                        saved = Subscription(
                            id=sub.id if sub else new_id(), user_id=u.id, start_date=s_start,
                            duration_days=int(s_days), price=s_price, status="active",
                        )
                        if run_action(coordinator.save_subscription, saved):
                            st.rerun()
                c1, c2, c3 = st.columns(3)
                if sub is not None:
                    pause_label = "▶️ Resume" if sub.status == "paused" else "⏸️ Pause"
                    if c1.button(pause_label, key=f"pause_{sub.id}"):
                        if run_action(coordinator.toggle_pause, sub.id):
                            st.rerun()
                    if c2.button("Remove subscription", key=f"del_sub_{sub.id}"):
                        if run_action(coordinator.delete_subscription, sub.id):
                            st.rerun()
                if c3.button("🗑️ Delete account", key=f"del_user_{u.id}"):
                    if run_action(coordinator.delete_account, u.id):
                        st.rerun()

        st.divider()
        st.header("Sessions")
        alerts = multi_device_alerts(state.session_logs, state.users, utcnow())
        if alerts.empty:
            st.success("No multi-device activity in the last "
                       f"{config.MULTI_DEVICE_WINDOW_HOURS} hours.")
        else:
            st.warning(f"{len(alerts)} account(s) active on more than one device.")
            st.dataframe(alerts, use_container_width=True, hide_index=True)

        logs = pd.DataFrame([{
            "id": log.id, "user": log.user_id, "device": log.device_id, "ip": log.ip_address,
            "user_agent": log.user_agent, "login": log.login_at, "last_active": log.last_active_at,
        } for log in state.session_logs])
        if not logs.empty:
            st.dataframe(logs, use_container_width=True, hide_index=True)
            log_id = st.selectbox("Session", logs["id"].tolist(), key="log_pick")
            if st.button("🗑️ Delete session log"):
                if run_action(coordinator.delete_session_log, log_id):
                    st.rerun()
