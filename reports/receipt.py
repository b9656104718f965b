"""
Per-booking receipt, in English or Arabic.

The security deposit is printed on its own line after the total: it is
collected separately and never part of the rental price.
"""

import pandas as pd

from core.models import Booking
from core.pricing import price_breakdown

LABELS = {
    "en": {
        "item": "Item", "rate": "Rate (daily)", "qty": "Qty", "total": "Total",
        "base_rent": "Accommodation (base rent)",
        "village_fees": "Village fees",
        "housekeeping": "Housekeeping",
        "subtotal": "Total rental price",
        "deposit": "Security deposit (separate)",
    },
    "ar": {
        "item": "الصنف", "rate": "السعر (يومي)", "qty": "العدد", "total": "الإجمالي",
        "base_rent": "الإقامة (الإيجار الأساسي)",
        "village_fees": "رسوم القرية",
        "housekeeping": "خدمة التنظيف",
        "subtotal": "إجمالي سعر الإيجار",
        "deposit": "تأمين (منفصل)",
    },
}


def receipt_header(booking: Booking, unit_name: str) -> dict:
    return {
        "id": booking.id,
        "tenant": booking.tenant_name,
        "phone": booking.phone,
        "unit": unit_name,
        "check_in": booking.start_date,
        "check_out": booking.end_date,
        "nights": booking.nights,
        "status": booking.status.value,
        "payment": booking.payment_status.value,
        "notes": booking.notes,
    }


def receipt_frame(booking: Booking, lang: str = "en") -> pd.DataFrame:
    """Receipt lines: base rent, village fees, housekeeping, total, deposit."""
    t = LABELS[lang]
    lines = price_breakdown(booking)

    rows = [
        (t["base_rent"], booking.nightly_rate, booking.nights, lines["base_rent"]),
        (t["village_fees"], booking.village_fee, booking.nights, lines["village_fees"]),
    ]
    if booking.housekeeping_enabled:
        rows.append((t["housekeeping"], lines["housekeeping"], 1, lines["housekeeping"]))
    rows.append((t["subtotal"], None, None, lines["subtotal"]))
    if booking.deposit_enabled:
        rows.append((t["deposit"], None, None, lines["deposit"]))

    return pd.DataFrame(rows, columns=[t["item"], t["rate"], t["qty"], t["total"]])
