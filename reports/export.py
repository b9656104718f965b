"""
Download helpers: report DataFrames to XLSX / CSV bytes.

Each frame becomes its own sheet. For Arabic the sheets open right-to-left
and CSV is written with a BOM so Excel picks up UTF-8.
"""

import io
from typing import Dict

import pandas as pd
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

MAX_SHEET_TITLE = 31  # Excel limit
MAX_COLUMN_WIDTH = 50


def _sheet_title(name: str, used: set) -> str:
    title = (name or "Sheet")[:MAX_SHEET_TITLE]
    base, n = title, 1
    while title in used:
        suffix = f"_{n}"
        title = base[:MAX_SHEET_TITLE - len(suffix)] + suffix
        n += 1
    used.add(title)
    return title


def _format_sheet(ws, rtl: bool) -> None:
    for cell in ws[1]:
        cell.font = Font(bold=True)
    ws.freeze_panes = "A2"
    ws.sheet_view.rightToLeft = rtl

    for cells in ws.iter_cols():
        width = max((len(str(c.value)) for c in cells if c.value is not None), default=0)
        letter = get_column_letter(cells[0].column)
        ws.column_dimensions[letter].width = min(width + 2, MAX_COLUMN_WIDTH)


def _excel_safe(df: pd.DataFrame) -> pd.DataFrame:
    # Excel cannot store timezone-aware datetimes
    tz_cols = df.select_dtypes(include=["datetimetz"]).columns
    if len(tz_cols) == 0:
        return df
    df = df.copy()
    for col in tz_cols:
        df[col] = df[col].dt.tz_localize(None)
    return df


def frames_to_excel_bytes(frames: Dict[str, pd.DataFrame], rtl: bool = False) -> bytes:
    """Converts named DataFrames to the bytes of one XLSX workbook."""
    buf = io.BytesIO()
    used = set()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        if not frames:
            pd.DataFrame().to_excel(writer, sheet_name="Data", index=False)
        for name, df in frames.items():
            # Pivots keep their month index, flat lists do not
            index = not isinstance(df.index, pd.RangeIndex)
            title = _sheet_title(name, used)
            _excel_safe(df).to_excel(writer, sheet_name=title, index=index)
            _format_sheet(writer.sheets[title], rtl)
    return buf.getvalue()


def frame_to_csv_bytes(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8-sig")
