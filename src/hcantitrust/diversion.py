# hcantitrust/diversion.py
# Semiparametric diversion ratios: cell shares → exclusion simulation →
# hospital-level diversions → system-level (admissions-weighted) diversions

from __future__ import annotations
import logging
from typing import Iterable, List, NamedTuple, Optional
import numpy as np
import pandas as pd
from tqdm.auto import tqdm

from .errors import ConfigurationError, DegenerateCellNotice
from .utils import (require_frame, require_columns, warn_ambiguous_names, warn_inconsistent,
                    bool_from_any, to_count, safe_div)

log = logging.getLogger(__name__)

HOSP_KEYS = ["hosp_id", "hospital"]
BASE_COLS = ["hosp_id", "hospital", "party_sys_id", "sys_id", "N_h"]


class DivResult(NamedTuple):
    hosp_level: pd.DataFrame
    sys_level: pd.DataFrame
    notices: List[DegenerateCellNotice]

    @property
    def provider_level(self) -> pd.DataFrame:
        return self.hosp_level


# ============================== Inputs ========================================
def _check_inputs(data, cols: dict, drop_degenerate_cell, focal_sys_id) -> None:
    require_frame(data)
    if not isinstance(drop_degenerate_cell, (bool, np.bool_)):
        raise ConfigurationError("Input drop_degenerate_cell needs to be a boolean")
    need = [c for k, c in cols.items() if not (k == "party_ind" and focal_sys_id is not None)]
    require_columns(data, need)
    warn_ambiguous_names(data, cols["hosp_id"], cols["hospital"])


def _standardize(data: pd.DataFrame, cols: dict, focal_sys_id) -> pd.DataFrame:
    d = pd.DataFrame({
        "cell":     data[cols["cell"]].to_numpy(),
        "hosp_id":  data[cols["hosp_id"]].to_numpy(),
        "hospital": data[cols["hospital"]].to_numpy(),
        "sys_id":   data[cols["sys_id"]].to_numpy(),
        "N_h":      to_count(data[cols["count"]], cols["count"]).to_numpy(),
    })
    if focal_sys_id is not None:
        d["party"] = d["sys_id"].isin(focal_sys_id)
    else:
        d["party"] = bool_from_any(data[cols["party_ind"]]).to_numpy()
        warn_inconsistent(d, "hosp_id", "party", cols["party_ind"])
    warn_inconsistent(d, "hosp_id", "sys_id", cols["sys_id"])

    # one system and one party status per hospital (first system; party if flagged on any row)
    by_hosp = d.groupby("hosp_id", sort=False, dropna=False)
    d["sys_id"] = by_hosp["sys_id"].transform("first")
    party = by_hosp["party"].transform("max").astype(bool)
    # 0 for every non-party hospital; the focal system id otherwise
    d["party_sys_id"] = np.where(party, d["sys_id"], 0)
    return d.drop(columns="party")


# ============================== Cell shares ===================================
def cell_hosp_table(d: pd.DataFrame) -> pd.DataFrame:
    """Admissions per (cell, hospital), with the cell total ``N`` and ``share_h``."""
    y = (d.groupby(["cell", "hosp_id", "hospital", "party_sys_id"], as_index=False, sort=True)["N_h"]
          .sum())
    cell_tot = y.groupby("cell")["N_h"].sum()
    y["N"] = y["cell"].map(cell_tot).to_numpy()
    y["share_h"] = safe_div(y["N_h"], y["N"])
    return y


def cell_diversion(y: pd.DataFrame, m) -> pd.DataFrame:
    """Per-cell diversion ratios away from focal system ``m``.

    ``share_m`` is one scalar per cell (system m's admissions over the cell
    total), joined back onto every row.  m's own rows get ``share_h = 0``, and
    ``div = share_h / (1 - share_m)`` is missing where ``share_m == 1``.
    """
    out = y.copy()
    in_m = out["party_sys_id"] == m
    N_m = out["N_h"].where(in_m, 0.0).groupby(out["cell"]).sum()
    share_m = safe_div(N_m, out.groupby("cell")["N_h"].sum()).fillna(0.0)
    out["share_m"] = out["cell"].map(share_m).to_numpy()
    out.loc[in_m, "share_h"] = 0.0
    out["div"] = safe_div(out["share_h"], 1.0 - out["share_m"])
    return out


# ============================== Hospital base =================================
def hosp_base_table(d: pd.DataFrame) -> pd.DataFrame:
    return (d.groupby(["hosp_id", "hospital", "party_sys_id", "sys_id"], as_index=False, sort=True)["N_h"]
             .sum())[BASE_COLS]


def _degenerate_cells(yc: pd.DataFrame, k) -> tuple:
    is_k = (yc["hosp_id"] == k) & (yc["N_h"] > 0)
    return tuple(yc.loc[is_k & yc["div"].isna(), "cell"].tolist())


def exclude_hospital(yc: pd.DataFrame, base: pd.DataFrame, m, k,
                     drop_degenerate_cell: bool = True) -> pd.Series:
    """Diversion from party hospital ``k`` (system ``m``) to every hospital in ``base``.

    Returned in ``base`` row order; missing for system-m hospitals.
    """
    in_m = yc["party_sys_id"] == m
    is_k = yc["hosp_id"] == k
    N_k_cell = yc["N_h"].where(is_k, 0.0).groupby(yc["cell"]).sum()
    N_k = yc["cell"].map(N_k_cell).to_numpy()

    # degenerate / empty cells redistribute nothing
    gain = (N_k * yc["div"]).fillna(0.0)
    # N_h_predict - N_h, where system-m hospitals are predicted at 0
    moved = gain.where(~in_m, -yc["N_h"])

    pred = moved.groupby([yc["hosp_id"], yc["hospital"]], sort=False).sum()
    idx = pd.MultiIndex.from_frame(base[HOSP_KEYS])
    movers = pd.Series(pred.reindex(idx).fillna(0.0).to_numpy(), index=base.index)

    if drop_degenerate_cell:
        denom = movers[movers > 0].sum()
    else:
        denom = base.loc[base["hosp_id"] == k, "N_h"].sum()

    if not denom > 0:
        log.warning("[div] zero denominator excluding hospital %s (system %s); diversions left missing", k, m)
        div = pd.Series(np.nan, index=base.index)
    else:
        div = movers / denom
    div = div.mask(base["party_sys_id"] == m)
    log.debug("[div] total inside diversion from %s: %.4f", k, div.sum())
    return div


# ============================== System level ==================================
def system_level(hosp: pd.DataFrame, focal: Iterable) -> pd.DataFrame:
    """Collapse each focal system's ``div_from_{k}`` columns into one
    ``div_from_sys_{m}`` column, weighting hospital k by its admissions."""
    out = hosp.copy()
    for m in focal:
        members = hosp.loc[hosp["party_sys_id"].eq(m).fillna(False)].sort_values("hosp_id")
        varnames = [f"div_from_{k}" for k in members["hosp_id"]]
        ct = members["N_h"].to_numpy(dtype=float)
        tot = ct.sum()
        mat = hosp[varnames].to_numpy(dtype=float)
        out[f"div_from_sys_{m}"] = (mat @ ct) / tot if tot > 0 else np.nan
        out = out.drop(columns=varnames)
    return out


# ============================== Driver ========================================
def div_calc(data: pd.DataFrame,
             cell: str = "cell",
             hosp_id: str = "hosp_id",
             hospital: str = "hospital",
             sys_id: str = "sys_id",
             party_ind: str = "party_ind",
             count: str = "count",
             drop_degenerate_cell: bool = True,
             focal_sys_id: Optional[Iterable] = None,
             progress: bool = False,
             provider_id: Optional[str] = None,
             provider: Optional[str] = None) -> DivResult:
    """Hospital- and system-level diversion ratios once cells are defined.

    Each party hospital k is excluded in turn and its admissions in every cell
    are reallocated to the remaining hospitals in proportion to their share of
    the cell net of k's own system.  Patients never divert to a hospital of
    the excluded hospital's system.

    Parameters
    ----------
    data : discharges with a cell assignment (see ``cells.cell_defn``).
    cell, hosp_id, hospital, sys_id, party_ind, count : column names.
        ``count`` is the admissions each row represents (1 per discharge).
    drop_degenerate_cell : if True, cells where the excluded hospital's
        system holds 100% share are left out of numerator and denominator;
        if False they stay in the denominator (outside option), so inside
        diversions total less than 100%.
    focal_sys_id : optional system id (or ids) whose hospitals are all
        parties; replaces ``party_ind``.
    progress : show a tqdm bar over exclusions.
    provider_id, provider : aliases for ``hosp_id`` and ``hospital``.

    Returns
    -------
    DivResult(hosp_level, sys_level, notices). ``hosp_level`` carries one
    ``div_from_{k}`` column per party hospital, ``sys_level`` one
    ``div_from_sys_{m}`` column per focal system. ``provider_level`` is an
    alias of ``hosp_level``. For system-to-system diversions pass system
    identifiers as ``hosp_id`` and ``hospital``.
    """
    hosp_id = provider_id or hosp_id
    hospital = provider or hospital
    if focal_sys_id is not None:
        focal_sys_id = np.atleast_1d(focal_sys_id).tolist()
    cols = {"cell": cell, "hosp_id": hosp_id, "hospital": hospital,
            "sys_id": sys_id, "party_ind": party_ind, "count": count}
    _check_inputs(data, cols, drop_degenerate_cell, focal_sys_id)

    d = _standardize(data, cols, focal_sys_id)
    focal = sorted(d.loc[d["party_sys_id"] > 0, "party_sys_id"].unique().tolist())
    if not focal:
        log.warning("[div] no party hospitals flagged; nothing to exclude")

    y = cell_hosp_table(d)
    base = hosp_base_table(d)
    scenarios = [(m, k) for m in focal
                 for k in sorted(y.loc[y["party_sys_id"] == m, "hosp_id"].unique().tolist())]

    div_cols, notices = {}, []
    yc, cur = None, None
    for m, k in tqdm(scenarios, desc="[div] exclusions", disable=not progress):
        if m != cur:
            yc, cur = cell_diversion(y, m), m
        degen = _degenerate_cells(yc, k)
        if degen:
            notice = DegenerateCellNotice(m, k, degen)
            notices.append(notice)
            log.info("[div] Note the following cells are degenerate for %s", notice)
        div_cols[f"div_from_{k}"] = exclude_hospital(yc, base, m, k, drop_degenerate_cell)

    hosp = pd.concat([base, pd.DataFrame(div_cols, index=base.index)], axis=1)
    hosp["party_sys_id"] = hosp["party_sys_id"].mask(hosp["party_sys_id"] == 0).astype("Int64")
    hosp = (hosp.sort_values(["party_sys_id", "sys_id", "hosp_id"], na_position="first", kind="mergesort")
                .reset_index(drop=True))

    sys_ = system_level(hosp, focal)
    log.info("[div] %d exclusions across %d focal systems; %d hospitals", len(scenarios), len(focal), len(hosp))
    return DivResult(hosp, sys_, notices)
