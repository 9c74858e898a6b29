#!/usr/bin/env python
# run_pipeline.py — top-level runner: discharges → cells → diversions / WTP

from __future__ import annotations
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pandas as pd

from . import config
from .cells import cell_defn
from .diversion import div_calc
from .report import summarize_div, write_div
from .utils import read_robust
from .wtp import wtp_calc, wtp_change

STEPS = ("cells", "div", "wtp", "all")

log = logging.getLogger("hcantitrust")


def _layers(specs: List[str]) -> List[List[str]]:
    return [[c.strip() for c in s.split(",") if c.strip()] for s in specs]


def _args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Semiparametric hospital diversion ratios and WTP")
    ap.add_argument("--input", type=Path, default=config.DISCHARGES_CSV,
                    help=f"Discharge CSV (default: {config.DISCHARGES_CSV})")
    ap.add_argument("--step", choices=STEPS, default="all", help="Which step to run (default: all)")
    ap.add_argument("--layers", nargs="+", default=[],
                    help="Cell layers, finest first, each a comma list: drg,age,zip5 drg,age,zip3 zip3")
    ap.add_argument("--threshold", type=float, default=config.DEFAULT_THRESHOLD,
                    help="Minimum admissions per cell")
    ap.add_argument("--focal-sys", nargs="+", type=int, default=None,
                    help="Party systems (replaces the party_ind column)")
    ap.add_argument("--keep-degenerate", action="store_true",
                    help="Keep 100%%-share cells in the denominator (outside option)")
    ap.add_argument("--count-one", action="store_true",
                    help="Each row is one admission (sets count = 1)")
    ap.add_argument("--out", type=Path, default=config.DIV_XLSX,
                    help="Diversion output (.xlsx workbook or CSV stem)")
    ap.add_argument("--cells-out", type=Path, default=config.CELLS_CSV)
    ap.add_argument("--wtp-out", type=Path, default=config.WTP_CSV)
    for key, default in config.DEFAULT_COLS.items():
        ap.add_argument(f"--{key.replace('_', '-')}-col", dest=f"{key}_col", default=default)
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _args(argv)
    logging.basicConfig(
        stream=sys.stdout,
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
    logging.captureWarnings(True)

    cols = {k: getattr(args, f"{k}_col") for k in config.DEFAULT_COLS}
    df = read_robust(args.input)
    log.info("[load] %s rows=%s", args.input, f"{len(df):,}")
    if args.count_one:
        df[cols["count"]] = 1

    steps = (args.step,) if args.step != "all" else ("cells", "div", "wtp")

    for s in steps:
        print(f"\n=== [{s}] =====================================================")
        if s == "cells":
            if not args.layers:
                log.info("[cells] no --layers given; using existing %r column", cols["cell"])
                continue
            res = cell_defn(df, args.threshold, _layers(args.layers), count=cols["count"])
            df = res.assigned.rename(columns={"cell": cols["cell"]})
            args.cells_out.parent.mkdir(parents=True, exist_ok=True)
            df.to_csv(args.cells_out, index=False)
            log.info("[cells] assigned=%s unassigned=%s → %s",
                     f"{len(res.assigned):,}", f"{len(res.unassigned):,}", args.cells_out)
        elif s == "div":
            out = div_calc(df, cell=cols["cell"], hosp_id=cols["hosp_id"], hospital=cols["hospital"],
                           sys_id=cols["sys_id"], party_ind=cols["party_ind"], count=cols["count"],
                           drop_degenerate_cell=not args.keep_degenerate,
                           focal_sys_id=args.focal_sys, progress=True)
            with pd.option_context("display.width", 160, "display.max_columns", 20):
                print(summarize_div(out).to_string(index=False))
            write_div(out, args.out)
        elif s == "wtp":
            wtp = wtp_calc(df, cell=cols["cell"], sys_id=cols["sys_id"], count=cols["count"],
                           drop_degenerate_cell=not args.keep_degenerate)
            args.wtp_out.parent.mkdir(parents=True, exist_ok=True)
            wtp.to_csv(args.wtp_out, index=False)
            log.info("[wtp] saved → %s (systems=%d)", args.wtp_out, len(wtp))
            if args.focal_sys and len(args.focal_sys) > 1:
                chg = wtp_change(df, args.focal_sys, cell=cols["cell"], sys_id=cols["sys_id"],
                                 count=cols["count"], drop_degenerate_cell=not args.keep_degenerate)
                print(chg.to_string())
        else:
            raise ValueError(s)
    return 0


if __name__ == "__main__":
    sys.exit(main())
