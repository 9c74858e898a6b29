# hcantitrust/errors.py
# Fatal config errors, data-quality warnings, degenerate-cell notices

from __future__ import annotations
from typing import NamedTuple, Tuple


class ConfigurationError(ValueError):
    """Bad input table or arguments; nothing is computed."""


class DataQualityWarning(UserWarning):
    """Suspicious input that the computation works around."""


class DegenerateCellNotice(NamedTuple):
    """Cells where ``sys_id`` holds 100% share and party hospital ``hosp_id``
    has admissions, so excluding it redistributes nothing."""
    sys_id: int
    hosp_id: int
    cells: Tuple

    def __str__(self) -> str:
        cells = ", ".join(str(c) for c in self.cells)
        return f"system {self.sys_id}, hospital {self.hosp_id}: {cells}"
