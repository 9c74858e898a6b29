# hcantitrust/cells.py
# Cell definition: assign discharges to the finest layer of grouping variables
# whose groups reach the admissions threshold

from __future__ import annotations
import logging
from numbers import Number
from typing import List, NamedTuple, Sequence
import pandas as pd

from .errors import ConfigurationError
from .utils import require_frame, require_columns, to_count

log = logging.getLogger(__name__)


class CellResult(NamedTuple):
    assigned: pd.DataFrame
    unassigned: pd.DataFrame


def _check_layers(data: pd.DataFrame, threshold, layers, count: str) -> List[List[str]]:
    require_frame(data)
    if isinstance(threshold, bool) or not isinstance(threshold, Number) or not threshold > 0:
        raise ConfigurationError("threshold needs to be a positive number")
    if isinstance(layers, str) or not isinstance(layers, Sequence) or not layers:
        raise ConfigurationError("layers needs to be a non-empty list of column lists")
    out = []
    for layer in layers:
        layer = [layer] if isinstance(layer, str) else list(layer)
        if not layer:
            raise ConfigurationError("empty layer in layers")
        require_columns(data, layer)
        out.append(layer)
    require_columns(data, [count])
    return out


def cell_defn(data: pd.DataFrame, threshold, layers, count: str = "count") -> CellResult:
    """Group discharges into cells of at least ``threshold`` admissions.

    Layers are tried in order (finest first). At each layer the still
    unassigned records are grouped by that layer's columns; groups reaching
    the threshold become cells and leave the pool. Whatever is left after the
    last layer is returned as ``unassigned``.

    Adds ``cell`` (consecutive ints from 1) and ``cell_layer`` (1-based).
    """
    layers = _check_layers(data, threshold, layers, count)
    pool = data.copy()
    pool["_n"] = to_count(pool[count], count).to_numpy()
    done, next_id = [], 1

    for i, layer in enumerate(layers, start=1):
        if pool.empty:
            break
        g = pool.groupby(layer, sort=True, dropna=False)
        size = g["_n"].transform("sum")
        ok = size >= threshold
        if not ok.any():
            log.info("[cells] layer %d %s: 0 cells", i, layer)
            continue
        hit = pool.loc[ok].copy()
        hit["cell"] = hit.groupby(layer, sort=True, dropna=False).ngroup() + next_id
        hit["cell_layer"] = i
        next_id = int(hit["cell"].max()) + 1
        done.append(hit)
        pool = pool.loc[~ok]
        log.info("[cells] layer %d %s: %d cells, %s admissions (left=%s)",
                 i, layer, hit["cell"].nunique(), f"{hit['_n'].sum():,.0f}", f"{pool['_n'].sum():,.0f}")

    cols = [c for c in data.columns if c not in ("cell", "cell_layer")] + ["cell", "cell_layer"]
    if done:
        assigned = pd.concat(done).drop(columns="_n").sort_index()[cols]
    else:
        assigned = (data.iloc[0:0].drop(columns=["cell", "cell_layer"], errors="ignore")
                        .assign(cell=pd.Series(dtype="int64"), cell_layer=pd.Series(dtype="int64")))
    unassigned = pool.drop(columns="_n")
    if len(unassigned):
        log.info("[cells] %s records could not be assigned to any cell", f"{len(unassigned):,}")
    return CellResult(assigned, unassigned)
