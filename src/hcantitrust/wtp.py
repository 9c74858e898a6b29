# hcantitrust/wtp.py
# Willingness-to-pay by system: Σ_cells N · ln(1 / (1 - share_s)), plus the
# pre/post merger % change for a set of party systems

from __future__ import annotations
import logging
from typing import Iterable
import numpy as np
import pandas as pd

from .errors import ConfigurationError
from .utils import require_frame, require_columns, to_count, safe_div

log = logging.getLogger(__name__)


def wtp_calc(data: pd.DataFrame,
             cell: str = "cell",
             sys_id: str = "sys_id",
             count: str = "count",
             drop_degenerate_cell: bool = True) -> pd.DataFrame:
    """One row per system: ``N_s``, ``WTP_s`` (cell-total weighted) and
    ``WTP_s_wt`` (weighted by the system's own admissions in the cell).

    A system with 100% of a cell has infinite WTP there; such cells are
    skipped unless ``drop_degenerate_cell`` is False.
    """
    require_frame(data)
    if not isinstance(drop_degenerate_cell, (bool, np.bool_)):
        raise ConfigurationError("Input drop_degenerate_cell needs to be a boolean")
    require_columns(data, [cell, sys_id, count])

    d = pd.DataFrame({"cell": data[cell].to_numpy(), "sys_id": data[sys_id].to_numpy(),
                      "N_s": to_count(data[count], count).to_numpy()})
    y = d.groupby(["cell", "sys_id"], as_index=False, sort=True)["N_s"].sum()
    y["N"] = y["cell"].map(y.groupby("cell")["N_s"].sum()).to_numpy()
    y["share_s"] = safe_div(y["N_s"], y["N"])

    degen = y["share_s"] >= 1.0
    if degen.any():
        cells = y.loc[degen, "cell"].tolist()
        log.info("[wtp] %d degenerate cells (one system holds 100%%)%s", len(cells),
                 "; dropped" if drop_degenerate_cell else "")
    with np.errstate(divide="ignore"):
        y["wtp"] = -np.log1p(-y["share_s"].fillna(0.0).clip(upper=1.0))
    if drop_degenerate_cell:
        y.loc[degen, "wtp"] = 0.0

    y["WTP_s"] = y["N"] * y["wtp"]
    y["WTP_s_wt"] = y["N_s"] * y["wtp"]
    out = y.groupby("sys_id", as_index=False, sort=True)[["WTP_s", "WTP_s_wt", "N_s"]].sum()
    return out


def wtp_change(data: pd.DataFrame,
               parties: Iterable,
               cell: str = "cell",
               sys_id: str = "sys_id",
               count: str = "count",
               drop_degenerate_cell: bool = True) -> pd.DataFrame:
    """% change in combined WTP when the ``parties`` systems merge into the
    first of them. Rows WTP_s and WTP_s_wt; columns pre, post, pct_change."""
    parties = list(parties)
    if len(parties) < 2:
        raise ConfigurationError("wtp_change needs at least two party systems")
    require_frame(data)
    require_columns(data, [sys_id])

    kw = dict(cell=cell, sys_id=sys_id, count=count, drop_degenerate_cell=drop_degenerate_cell)
    pre = wtp_calc(data, **kw)
    pre = pre[pre["sys_id"].isin(parties)][["WTP_s", "WTP_s_wt"]].sum()

    merged = data.copy()
    merged.loc[merged[sys_id].isin(parties), sys_id] = parties[0]
    post = wtp_calc(merged, **kw)
    post = post[post["sys_id"] == parties[0]][["WTP_s", "WTP_s_wt"]].sum()

    pct = safe_div(post - pre, pre) * 100
    out = pd.DataFrame({"pre": pre, "post": post, "pct_change": pct})
    log.info("[wtp] merger of systems %s: %% change in WTP_s = %.2f", parties, pct["WTP_s"])
    return out
