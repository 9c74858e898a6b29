import math

import pandas as pd
import pytest

from hcantitrust import ConfigurationError, wtp_calc, wtp_change


def frame(rows):
    return pd.DataFrame(rows, columns=["cell", "sys_id", "count"])


def test_wtp_by_system():
    df = frame([(1, 1, 50), (1, 2, 50), (2, 1, 10)])
    out = wtp_calc(df).set_index("sys_id")
    assert out.loc[1, "WTP_s"] == pytest.approx(100 * math.log(2))
    assert out.loc[1, "WTP_s_wt"] == pytest.approx(50 * math.log(2))
    assert out.loc[1, "N_s"] == 60
    assert out.loc[2, "WTP_s"] == pytest.approx(100 * math.log(2))


def test_degenerate_cell_kept_is_infinite():
    df = frame([(1, 1, 50), (1, 2, 50), (2, 1, 10)])
    out = wtp_calc(df, drop_degenerate_cell=False).set_index("sys_id")
    assert math.isinf(out.loc[1, "WTP_s"])
    assert math.isfinite(out.loc[2, "WTP_s"])


def test_merger_change():
    df = frame([(1, 1, 40), (1, 2, 40), (1, 3, 20)])
    chg = wtp_change(df, [1, 2])
    pre = 2 * 100 * math.log(1 / 0.6)
    post = 100 * math.log(1 / 0.2)
    assert chg.loc["WTP_s", "pre"] == pytest.approx(pre)
    assert chg.loc["WTP_s", "post"] == pytest.approx(post)
    assert chg.loc["WTP_s", "pct_change"] == pytest.approx((post - pre) / pre * 100)


def test_merger_needs_two_parties():
    with pytest.raises(ConfigurationError):
        wtp_change(frame([(1, 1, 1)]), [1])


def test_missing_column():
    with pytest.raises(ConfigurationError, match="count"):
        wtp_calc(frame([(1, 1, 1)]).drop(columns="count"))
