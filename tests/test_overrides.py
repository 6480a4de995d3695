from pathlib import Path

import pytest

from core.overrides import DEFAULT_OVERRIDES, fragments_for, load_overrides

REPO_OVERRIDES = Path(__file__).resolve().parent.parent / "overrides.csv"


def test_default_without_path():
    out = load_overrides()
    assert out == DEFAULT_OVERRIDES
    out["Lugo"] = "x"
    assert "Lugo" not in DEFAULT_OVERRIDES


def test_repo_file_matches_defaults():
    assert load_overrides(REPO_OVERRIDES) == DEFAULT_OVERRIDES


def test_load_strips_codes_and_skips_blank_rows(tmp_path):
    p = tmp_path / "ov.csv"
    p.write_text('observed,fragment\n"15 Coruña, A",Coruña\n,\nBizkaia,Vizcaya\n', encoding="utf-8")
    assert load_overrides(p) == {"Coruña, A": "Coruña", "Bizkaia": "Vizcaya"}


def test_load_rejects_duplicates(tmp_path):
    p = tmp_path / "ov.csv"
    p.write_text("observed,fragment\n48 Bizkaia,Vizcaya\nBizkaia,Bizk\n", encoding="utf-8")
    with pytest.raises(ValueError, match="duplicate"):
        load_overrides(p)


def test_load_requires_columns(tmp_path):
    p = tmp_path / "ov.csv"
    p.write_text("name,value\nBizkaia,Vizcaya\n", encoding="utf-8")
    with pytest.raises(ValueError, match="observed"):
        load_overrides(p)


def test_fragments_for_keeps_the_name():
    assert fragments_for("Bizkaia", DEFAULT_OVERRIDES) == ("Bizkaia", "Vizcaya")
    assert fragments_for("Lugo", DEFAULT_OVERRIDES) == ("Lugo",)
    assert fragments_for("Bizkaia", None) == ("Bizkaia",)
    assert fragments_for("Bizkaia", {"Bizkaia": "Bizkaia"}) == ("Bizkaia",)
