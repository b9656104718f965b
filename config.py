"""
Centralised configuration - change paths, sheet names and defaults here.
Credentials live in .streamlit/secrets.toml, never in this file.
"""

import os

APP_TITLE = "Sunlight VM"

# Persistence variant, chosen once at startup: "sheets" | "memory"
# "memory" runs on demo fixtures and saves nothing.
PERSISTENCE_BACKEND = os.getenv("SUNLIGHT_BACKEND", "sheets")

LOG_LEVEL = os.getenv("SUNLIGHT_LOG_LEVEL", "INFO")

# Keys expected in st.secrets for the Google Sheets backend
SECRETS_SERVICE_ACCOUNT = "gcp_service_account"
SECRETS_SHEETS = "google_sheets"

# Worksheet name per entity kind
SHEET_NAMES = {
    "units":         "units",
    "bookings":      "bookings",
    "expenses":      "expenses",
    "subscriptions": "subscriptions",
    "session_logs":  "session_logs",
    "profiles":      "profiles",
}

# Header row of each worksheet. Column A is always the record id.
SHEET_COLUMNS = {
    "units": ["id", "name", "type", "created_at", "user_id"],
    "bookings": [
        "id", "tenant_name", "phone", "unit_id",
        "start_date", "nights", "end_date",
        "nightly_rate", "village_fee", "total_rental_price",
        "status", "payment_status",
        "housekeeping_enabled", "housekeeping_price",
        "deposit_enabled", "deposit_amount",
        "notes", "tenant_rating_good", "created_at", "user_id",
    ],
    "expenses": [
        "id", "unit_id", "title", "category", "amount", "date",
        "description", "created_at", "user_id",
    ],
    "subscriptions": ["id", "user_id", "start_date", "duration_days", "price", "status"],
    "session_logs": [
        "id", "user_id", "device_id", "user_agent", "ip_address",
        "login_at", "last_active_at",
    ],
    "profiles": ["id", "email", "full_name", "role", "phone"],
}

# Suggested expense categories (free text is accepted too)
EXPENSE_CATEGORIES = [
    "Maintenance",
    "Electricity",
    "Water",
    "Internet",
    "Gas",
    "Cleaning Supplies",
    "Furniture",
    "Other",
]

CURRENCY = {"en": "EGP", "ar": "ج.م"}

DEFAULT_SUBSCRIPTION_DAYS = 30

# Admin alert: same account active on more than one device in this window
MULTI_DEVICE_WINDOW_HOURS = 24
