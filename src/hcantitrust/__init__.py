# hcantitrust — semiparametric hospital merger tools (cells, diversion ratios, WTP)

from .errors import ConfigurationError, DataQualityWarning, DegenerateCellNotice
from .cells import cell_defn, CellResult
from .diversion import div_calc, DivResult
from .wtp import wtp_calc, wtp_change

__all__ = [
    "ConfigurationError", "DataQualityWarning", "DegenerateCellNotice",
    "cell_defn", "CellResult", "div_calc", "DivResult", "wtp_calc", "wtp_change",
]
__version__ = "0.1.0"
