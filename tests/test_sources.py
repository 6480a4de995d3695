import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

from core.sources import (
    canonical_names,
    default_category,
    filter_table,
    latest_period,
    load_regions,
    observed_names,
    resolve_selection,
    standardize_px,
)


def test_standardize_detects_ine_columns(px_raw):
    df = standardize_px(px_raw)

    assert list(df.columns) == ["period", "category", "region", "value"]
    assert df["value"].dtype.kind in "if"
    assert set(df["category"]) == {"Total", "Hombres", "Mujeres"}


def test_standardize_missing_values_become_nan():
    raw = pd.DataFrame(
        {"Provincias": ["08 Barcelona", "27 Lugo"], "Periodo": ["2022", "2022"], "DATA": ["5714730", ".."]}
    )
    df = standardize_px(raw)

    assert df.loc[0, "value"] == 5714730
    assert pd.isna(df.loc[1, "value"])
    # table without a category dimension
    assert set(df["category"]) == {"Total"}


def test_standardize_explicit_columns():
    raw = pd.DataFrame({"zona": ["08 Barcelona"], "t": ["2022"], "s": ["Total"], "v": ["1"]})
    df = standardize_px(raw, columns={"region": "zona", "period": "t", "category": "s", "value": "v"})
    assert df.loc[0, "region"] == "08 Barcelona"
    assert df.loc[0, "value"] == 1


def test_standardize_requires_region_column():
    raw = pd.DataFrame({"Periodo": ["2022"], "DATA": ["1"]})
    with pytest.raises(ValueError, match="region"):
        standardize_px(raw)


def test_standardize_requires_value_column():
    raw = pd.DataFrame({"Provincias": ["08 Barcelona"], "Periodo": ["2022"]})
    with pytest.raises(ValueError, match="value"):
        standardize_px(raw)


def test_defaults_pick_latest_period_and_total(px_raw):
    df = standardize_px(px_raw)
    assert latest_period(df) == "2022"
    assert default_category(df) == "Total"


def test_latest_period_reads_year_from_label():
    df = pd.DataFrame({"period": ["1 de enero de 2019", "1 de enero de 2021", "1 de enero de 2020"]})
    assert latest_period(df) == "1 de enero de 2021"


def test_filter_table(px_raw):
    df = standardize_px(px_raw)
    out = filter_table(df)

    assert set(out["period"]) == {"2022"}
    assert set(out["category"]) == {"Total"}
    assert len(out) == 5

    men = filter_table(df, period="2021", category="Hombres")
    assert set(men["category"]) == {"Hombres"}
    assert len(men) == 5


def test_resolve_selection(px_raw):
    df = standardize_px(px_raw)
    assert resolve_selection(df) == ("2022", "Total")
    assert resolve_selection(df, " 2021 ", "Mujeres") == ("2021", "Mujeres")
    with pytest.raises(ValueError, match="Ninguno"):
        resolve_selection(df, category="Ninguno")


def test_filter_table_unknown_period(px_raw):
    df = standardize_px(px_raw)
    with pytest.raises(ValueError, match="1999"):
        filter_table(df, period="1999")


def test_observed_names_skip_totals(px_raw):
    df = filter_table(standardize_px(px_raw))
    assert observed_names(df) == ["08 Barcelona", "12 Castell", "46 Valencia", "35 Palmas, Las"]


def test_load_regions_round_trip(tmp_path, provinces):
    path = tmp_path / "provinces.geojson"
    provinces.to_file(path, driver="GeoJSON")

    gdf = load_regions(path, name_field="NAME")
    assert canonical_names(gdf, "NAME") == list(provinces["NAME"])
    assert gdf.crs.to_epsg() == 4326


def test_load_regions_drops_empty_names_and_reprojects(tmp_path):
    src = gpd.GeoDataFrame(
        {"NAME": ["Lugo", None]},
        geometry=[box(600000, 4700000, 610000, 4710000), box(610000, 4700000, 620000, 4710000)],
        crs="EPSG:25830",
    )
    path = tmp_path / "utm.gpkg"
    src.to_file(path, layer="provincias", driver="GPKG")

    gdf = load_regions(path, layer="provincias")
    assert canonical_names(gdf) == ["Lugo"]
    assert gdf.crs.to_epsg() == 4326
    assert -10 < gdf.geometry.iloc[0].centroid.x < 0


def test_load_regions_missing_field(tmp_path, provinces):
    path = tmp_path / "provinces.geojson"
    provinces.to_file(path, driver="GeoJSON")
    with pytest.raises(ValueError, match="NAME_2"):
        load_regions(path, name_field="NAME_2")
