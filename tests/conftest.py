import pandas as pd
import pytest

COLS = ["cell", "hosp_id", "hospital", "sys_id", "party_ind", "count"]


def discharges(rows):
    return pd.DataFrame(rows, columns=COLS)


@pytest.fixture
def two_hosp():
    # A (party) 80, B 20 in one cell
    return discharges([
        (1, 1, "A", 1, 1, 80),
        (1, 2, "B", 2, 0, 20),
    ])


@pytest.fixture
def three_hosp():
    return discharges([
        (1, 1, "A", 1, 1, 50),
        (1, 2, "B", 2, 0, 30),
        (1, 3, "C", 3, 0, 20),
    ])


@pytest.fixture
def degenerate():
    # cell 1 is 100% system 1
    return discharges([
        (1, 1, "A", 1, 1, 40),
        (2, 1, "A", 1, 1, 20),
        (2, 2, "B", 2, 0, 30),
        (2, 3, "C", 3, 0, 10),
    ])


@pytest.fixture
def two_systems():
    # parties: A1, A2 (system 1) and E (system 5); F, G non-party
    return discharges([
        ("x", 1, "A1", 1, 1, 30),
        ("x", 2, "A2", 1, 1, 10),
        ("x", 5, "E",  5, 1, 20),
        ("x", 6, "F",  6, 0, 40),
        ("y", 1, "A1", 1, 1, 10),
        ("y", 5, "E",  5, 1, 30),
        ("y", 6, "F",  6, 0, 20),
        ("y", 7, "G",  7, 0, 40),
        ("z", 2, "A2", 1, 1, 50),
        ("z", 7, "G",  7, 0, 50),
    ])


@pytest.fixture
def make_discharges():
    return discharges
