import geopandas as gpd
import pandas as pd
import pytest
from shapely.geometry import box

PROVINCES = ["Barcelona", "Castellón/Castelló", "Valencia/València", "Lugo"]


@pytest.fixture
def provinces() -> gpd.GeoDataFrame:
    """Four unit squares standing in for province polygons."""
    return gpd.GeoDataFrame(
        {"NAME": PROVINCES, "code": ["08", "12", "46", "27"]},
        geometry=[box(i, 40, i + 1, 41) for i in range(len(PROVINCES))],
        crs="EPSG:4326",
    )


@pytest.fixture
def px_raw() -> pd.DataFrame:
    """Shape of pyaxis output for an INE 'population by province and sex' table."""
    regions = ["Total Nacional", "08 Barcelona", "12 Castell", "46 Valencia", "35 Palmas, Las"]
    rows = []
    base = {"Total Nacional": 47000000, "08 Barcelona": 5700000, "12 Castell": 590000,
            "46 Valencia": 2600000, "35 Palmas, Las": 1100000}
    for period, k in (("2021", 0.99), ("2022", 1.0)):
        for r in regions:
            total = int(base[r] * k)
            rows.append({"Provincias": r, "Sexo": "Total", "Periodo": period, "DATA": str(total)})
            rows.append({"Provincias": r, "Sexo": "Hombres", "Periodo": period, "DATA": str(total // 2)})
            rows.append({"Provincias": r, "Sexo": "Mujeres", "Periodo": period, "DATA": str(total - total // 2)})
    return pd.DataFrame(rows)
