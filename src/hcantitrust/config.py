# hcantitrust/config.py
# Project paths (env-overridable) + default input column names

from pathlib import Path
import os

# Project roots
PROJECT_ROOT = Path.cwd()
while not (PROJECT_ROOT / "src").is_dir() and PROJECT_ROOT != PROJECT_ROOT.parent:
    PROJECT_ROOT = PROJECT_ROOT.parent

REPO = PROJECT_ROOT
DATA = REPO / "data"
RAW  = Path(os.getenv("HCA_DATA_DIR", DATA / "raw")).resolve()
INT  = DATA / "interim"
CLN  = DATA / "clean"

# Default artifacts
DISCHARGES_CSV = RAW / "discharges.csv"
CELLS_CSV      = INT / "discharges_with_cells.csv"
DIV_XLSX       = CLN / "diversion_ratios.xlsx"
WTP_CSV        = CLN / "wtp_by_system.csv"

# Input columns expected by the cell / diversion / WTP stages
DEFAULT_COLS = {
    "cell":      "cell",
    "hosp_id":   "hosp_id",
    "hospital":  "hospital",
    "sys_id":    "sys_id",
    "party_ind": "party_ind",
    "count":     "count",
}

# Minimum admissions per cell (original vignette value)
DEFAULT_THRESHOLD = 25
