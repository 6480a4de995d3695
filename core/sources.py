"""
Загрузка источников.

- геометрия: любой векторный формат, который читает geopandas (shp, zip, gpkg, geojson)
- статистика: PC-Axis (.px) от INE, Latin-1, через pyaxis

Названия колонок PC-Axis зависят от таблицы ("Provincias", "Sexo", "Periodo"...),
поэтому приводим их к period / category / region / value.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Union

import geopandas as gpd
import pandas as pd
from pyaxis import pyaxis

from core.normalization import normalize_empty

logger = logging.getLogger(__name__)

DEFAULT_NAME_FIELD = "NAME"
PX_ENCODING = "latin-1"
TARGET_EPSG = 4326

STANDARD_COLUMNS = ("period", "category", "region", "value")
VALUE_COLUMNS = ("DATA", "value", "Value", "VALUE", "Valor")

REGION_COL_RE = re.compile(r"(?i)provinc|comunidad|regi[oó]n|territ|municip")
PERIOD_COL_RE = re.compile(r"(?i)periodo|a[ñn]o|anio|year|fecha")

# категория "итого" в таблицах INE
TOTAL_CATEGORY_RE = re.compile(r"(?i)^(total|ambos sexos)\b")
YEAR_RE = re.compile(r"(\d{4})")

PathLike = Union[str, Path]


def load_regions(
    path: PathLike,
    layer: Optional[str] = None,
    name_field: str = DEFAULT_NAME_FIELD,
) -> gpd.GeoDataFrame:
    """
    Read polygons with geopandas.
    - name_field must exist (ValueError otherwise)
    - rows with an empty name are dropped
    - reprojected to EPSG:4326 when the source has a CRS
    """
    layer = normalize_empty(layer)
    if layer:
        gdf = gpd.read_file(path, layer=layer)
    else:
        gdf = gpd.read_file(path)
    logger.info("loaded %d features from %s", len(gdf), path)

    if name_field not in gdf.columns:
        raise ValueError(
            f"geometry source must contain field '{name_field}' "
            f"(available: {[c for c in gdf.columns if c != 'geometry']})"
        )

    names = gdf[name_field].map(normalize_empty)
    dropped = int(names.isna().sum())
    if dropped:
        logger.warning("dropping %d features without a '%s' value", dropped, name_field)
    gdf = gdf.loc[names.notna()].copy()
    gdf[name_field] = names[names.notna()]

    if gdf.crs is not None and gdf.crs.to_epsg() != TARGET_EPSG:
        gdf = gdf.to_crs(epsg=TARGET_EPSG)
    return gdf.reset_index(drop=True)


def canonical_names(gdf: pd.DataFrame, name_field: str = DEFAULT_NAME_FIELD) -> List[str]:
    """Names in feature order; duplicates are left for reconcile() to reject."""
    return [str(v) for v in gdf[name_field].tolist()]


def load_px(path: PathLike, encoding: str = PX_ENCODING) -> pd.DataFrame:
    """Parse a PC-Axis file and return its DATA frame (one column per dimension + value)."""
    px = pyaxis.parse(uri=str(path), encoding=encoding)
    df = px["DATA"]
    logger.info("loaded PC-Axis table %s: %d rows, columns %s", path, len(df), list(df.columns))
    return df


def _detect_columns(df: pd.DataFrame) -> Dict[str, str]:
    cols = [str(c) for c in df.columns]

    value_col = next((c for c in VALUE_COLUMNS if c in cols), None)
    if value_col is None:
        raise ValueError(f"PC-Axis table has no value column (expected one of {list(VALUE_COLUMNS)})")

    dims = [c for c in cols if c != value_col]
    region_col = next((c for c in dims if REGION_COL_RE.search(c)), None)
    if region_col is None:
        raise ValueError(f"PC-Axis table has no region column: {dims}")
    period_col = next((c for c in dims if c != region_col and PERIOD_COL_RE.search(c)), None)
    if period_col is None:
        raise ValueError(f"PC-Axis table has no period column: {dims}")
    rest = [c for c in dims if c not in (region_col, period_col)]

    out = {"region": region_col, "period": period_col, "value": value_col}
    if rest:
        out["category"] = rest[0]
    return out


def standardize_px(df: pd.DataFrame, columns: Optional[Dict[str, str]] = None) -> pd.DataFrame:
    """
    Rename dimension columns to period / category / region / value.

    columns: standard name -> source column; detected by header regex when omitted.
    A table without a category dimension gets category "Total".
    """
    columns = dict(columns) if columns else _detect_columns(df)
    for std in ("period", "region", "value"):
        if std not in columns:
            raise ValueError(f"column mapping must define '{std}'")
    for std, src in columns.items():
        if src not in df.columns:
            raise ValueError(f"PC-Axis table must contain column '{src}'")

    out = df.rename(columns={src: std for std, src in columns.items()})
    if "category" not in columns:
        out["category"] = "Total"
    out = out[list(STANDARD_COLUMNS)].copy()

    for c in ("period", "category", "region"):
        out[c] = out[c].astype(str).str.strip()
    # ".." / "." в PC-Axis это отсутствующее значение
    out["value"] = pd.to_numeric(out["value"], errors="coerce")
    return out.reset_index(drop=True)


def _period_key(period: str):
    m = YEAR_RE.search(period)
    return (int(m.group(1)) if m else -1, period)


def latest_period(df: pd.DataFrame) -> str:
    periods = df["period"].dropna().unique().tolist()
    if not periods:
        raise ValueError("table has no periods")
    return max(periods, key=_period_key)


def default_category(df: pd.DataFrame) -> str:
    cats = df["category"].dropna().unique().tolist()
    if not cats:
        raise ValueError("table has no categories")
    return next((c for c in cats if TOTAL_CATEGORY_RE.search(c)), cats[0])


def resolve_selection(
    df: pd.DataFrame,
    period: Optional[str] = None,
    category: Optional[str] = None,
) -> Tuple[str, str]:
    """
    Concrete (period, category) for a selection.
    - period None -> latest (by 4-digit year in the label)
    - category None -> "Total"/"Ambos sexos" if present, else the first one
    Unknown values -> ValueError listing what the table has.
    """
    period = normalize_empty(period) or latest_period(df)
    category = normalize_empty(category) or default_category(df)

    for col, val in (("period", period), ("category", category)):
        if val not in set(df[col]):
            raise ValueError(f"{col} '{val}' not found; available: {sorted(set(df[col]))}")
    return period, category


def filter_table(
    df: pd.DataFrame,
    period: Optional[str] = None,
    category: Optional[str] = None,
) -> pd.DataFrame:
    """Keep one period and one category, resolved by resolve_selection()."""
    period, category = resolve_selection(df, period, category)

    out = df[(df["period"] == period) & (df["category"] == category)].copy()
    logger.info("selected period=%s category=%s: %d rows", period, category, len(out))
    return out.reset_index(drop=True)


def observed_names(df: pd.DataFrame, exclude: Sequence[str] = ("Total Nacional", "Total")) -> List[str]:
    """Distinct region labels in first-seen order, national totals excluded."""
    out: List[str] = []
    for v in df["region"].tolist():
        name = normalize_empty(v)
        if name is None or name in exclude or name in out:
            continue
        out.append(name)
    return out
