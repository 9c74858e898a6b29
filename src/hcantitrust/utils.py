# hcantitrust/utils.py
# Shared column checks + normalizers for the cell / diversion / WTP stages

from __future__ import annotations
import warnings
from pathlib import Path
from typing import Iterable
import pandas as pd

from .errors import ConfigurationError, DataQualityWarning

# === Checks ===
def require_frame(data) -> None:
    if not isinstance(data, pd.DataFrame):
        raise ConfigurationError("Input needs to be a pandas DataFrame")

def require_columns(df: pd.DataFrame, cols: Iterable[str]) -> None:
    for c in cols:
        if c not in df.columns:
            raise ConfigurationError(f'Variable "{c}" required in input dataset')

def warn_ambiguous_names(df: pd.DataFrame, id_col: str, name_col: str) -> list:
    """Warn when one id carries more than one name; returns the offending ids."""
    pairs = df[[id_col, name_col]].drop_duplicates()
    dup = pairs.loc[pairs[id_col].duplicated(), id_col].unique().tolist()
    if dup:
        warnings.warn(f"{id_col} associated with multiple {name_col} names: {dup}",
                      DataQualityWarning, stacklevel=3)
    return dup

def warn_inconsistent(df: pd.DataFrame, id_col: str, col: str, label: str = None) -> list:
    """Warn when ``col`` is not constant within an id; returns the offending ids."""
    n = df.groupby(id_col, dropna=False)[col].nunique(dropna=False)
    bad = n[n > 1].index.tolist()
    if bad:
        warnings.warn(f"{label or col} varies within {id_col}: {bad}",
                      DataQualityWarning, stacklevel=3)
    return bad

# === Normalizers ===
def bool_from_any(x: pd.Series) -> pd.Series:
    if pd.api.types.is_bool_dtype(x):
        return x.fillna(False).astype(bool)
    if pd.api.types.is_numeric_dtype(x):
        return x.fillna(0) != 0
    s = x.astype(str).str.strip().str.lower()
    return s.map({"1":True,"y":True,"yes":True,"true":True,"t":True,
                  "0":False,"n":False,"no":False,"false":False,"f":False}).eq(True)

def to_count(x: pd.Series, name: str = "count") -> pd.Series:
    s = pd.to_numeric(x, errors="coerce")
    bad = int(s.isna().sum())
    if bad:
        warnings.warn(f"{bad:,} non-numeric/missing {name} values set to 0",
                      DataQualityWarning, stacklevel=3)
    return s.fillna(0).astype(float)

def safe_div(num: pd.Series, den: pd.Series) -> pd.Series:
    """Elementwise num/den with 0 denominators → NaN (never inf)."""
    return num / den.where(den != 0)

# === IO ===
def read_robust(fp: Path) -> pd.DataFrame:
    for enc in ("utf-8","utf-8-sig","cp1252","latin1"):
        try:
            return pd.read_csv(fp, low_memory=False, encoding=enc)
        except UnicodeDecodeError:
            continue
    return pd.read_csv(fp, low_memory=False, encoding="latin1", encoding_errors="replace")
