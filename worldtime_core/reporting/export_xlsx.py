# worldtime_core/reporting/export_xlsx.py
from __future__ import annotations

from pathlib import Path

import pandas as pd


def export_result_xlsx(
    out_path: str,
    timeline_df: pd.DataFrame,
    summary_df: pd.DataFrame,
) -> str:
    Path(out_path).parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(out_path, engine="openpyxl") as w:
        timeline_df.to_excel(w, sheet_name="timeline", index=True)
        summary_df.to_excel(w, sheet_name="locations", index=False)
    return out_path
