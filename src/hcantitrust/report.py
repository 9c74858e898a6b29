# hcantitrust/report.py
# Summaries + CSV/xlsx writers for diversion results

from __future__ import annotations
import logging
import re
from pathlib import Path
import pandas as pd

from .diversion import DivResult

log = logging.getLogger(__name__)

DIV_COL = re.compile(r"^div_from_(sys_)?(.+)$")


def notices_frame(result: DivResult) -> pd.DataFrame:
    rows = [{"sys_id": n.sys_id, "hosp_id": n.hosp_id, "cell": c} for n in result.notices for c in n.cells]
    return pd.DataFrame(rows, columns=["sys_id", "hosp_id", "cell"])


def summarize_div(result: DivResult, top: int = 3) -> pd.DataFrame:
    """One row per ``div_from_*`` column (hospital and system level): total
    inside diversion, number of receiving hospitals, and the top receivers."""
    rows = []
    for level, df in (("hospital", result.hosp_level), ("system", result.sys_level)):
        for c in df.columns:
            m = DIV_COL.match(c)
            if not m or (level == "hospital" and m.group(1)):
                continue
            s = df.set_index("hospital")[c].dropna()
            best = s.sort_values(ascending=False).head(top)
            rows.append({
                "level": level,
                "from": m.group(2),
                "total_div": s.sum(),
                "n_receivers": int((s > 0).sum()),
                "top_receivers": ", ".join(f"{h} ({v:.1%})" for h, v in best.items()),
            })
    return pd.DataFrame(rows, columns=["level", "from", "total_div", "n_receivers", "top_receivers"])


def write_div(result: DivResult, path) -> list:
    """.xlsx → one workbook (hosp_level / sys_level / degenerate sheets);
    anything else → ``<stem>_hosp_level.csv`` + ``<stem>_sys_level.csv``."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    degen = notices_frame(result)
    if path.suffix.lower() == ".xlsx":
        with pd.ExcelWriter(path) as xw:
            result.hosp_level.to_excel(xw, sheet_name="hosp_level", index=False)
            result.sys_level.to_excel(xw, sheet_name="sys_level", index=False)
            degen.to_excel(xw, sheet_name="degenerate", index=False)
        written = [path]
    else:
        stem = path.with_suffix("")
        written = [Path(f"{stem}_hosp_level.csv"), Path(f"{stem}_sys_level.csv")]
        result.hosp_level.to_csv(written[0], index=False)
        result.sys_level.to_csv(written[1], index=False)
        if len(degen):
            written.append(Path(f"{stem}_degenerate.csv"))
            degen.to_csv(written[-1], index=False)
    for fp in written:
        log.info("[report] saved → %s", fp)
    return written
