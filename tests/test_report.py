import json
from pathlib import Path

import pandas as pd

from core.reconcile import reconcile
from core.report import REPORT_COLUMNS, build_report, export_report


def _rec():
    return reconcile(
        ["Barcelona", "Guipúzcoa"],
        ["08 Barcelona", "Barcelona", "20 Gipuzkoa", "35 Las Palmas"],
    )


def test_one_row_per_stripped_name():
    df = build_report(_rec())

    assert list(df.columns) == REPORT_COLUMNS
    assert len(df) == 3
    row = df[df["stripped"] == "Barcelona"].iloc[0]
    assert row["observed"] == "08 Barcelona; Barcelona"
    assert row["canonical"] == "Barcelona"
    assert row["method"] == "exact"


def test_unresolved_first_with_suggestions_and_log():
    df = build_report(_rec(), params={"period": "2022"})

    assert list(df["method"][:2]) == ["unresolved", "unresolved"]
    gip = df[df["stripped"] == "Gipuzkoa"].iloc[0]
    sugg = json.loads(gip["suggestions"])
    assert sugg[0]["canonical"] == "Guipúzcoa"

    log = json.loads(gip["log"])
    assert log["status"] == "unresolved"
    assert log["reason"] == "no_candidate"
    assert log["is_resolved"] is False
    assert log["params"] == {"period": "2022"}


def test_export_writes_xlsx():
    path = export_report(build_report(_rec()))
    try:
        back = pd.read_excel(path)
        assert list(back.columns) == REPORT_COLUMNS
        assert len(back) == 3
    finally:
        Path(path).unlink()
