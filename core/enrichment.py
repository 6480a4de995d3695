"""
Детерминированное присоединение значений к полигонам.

Здесь НЕТ fuzzy и НЕТ позиционного выравнивания.
Только связь по имени: observed -> canonical (из Reconciliation) -> полигон.
Полигон без значения получает NaN, лишние строки статистики отбрасываются.
"""

from __future__ import annotations

import logging
from typing import Dict

import numpy as np
import pandas as pd

from core.normalization import strip_code
from core.reconcile import Reconciliation

logger = logging.getLogger(__name__)


class ValueLookup:
    """canonical name -> value, built from a filtered table through the mapping."""

    def __init__(self, table: pd.DataFrame, rec: Reconciliation, value_col: str = "value"):
        self.by_canonical: Dict[str, float] = {}
        self.dropped: Dict[str, float] = {}

        for _, row in table.iterrows():
            observed = str(row["region"])
            v = row[value_col]
            target = rec.lookup(observed)
            if target is None:
                self.dropped[strip_code(observed)] = v
                continue
            if target in self.by_canonical:
                raise ValueError(
                    f"several rows map to '{target}'; filter the table to one period and category first"
                )
            self.by_canonical[target] = v

    def frame(self, name_field: str, value_col: str = "value") -> pd.DataFrame:
        # явные dtype: пустая выборка иначе даёт float64 ключ и merge падает
        return pd.DataFrame(
            {
                name_field: pd.Series(list(self.by_canonical.keys()), dtype=object),
                value_col: pd.Series(list(self.by_canonical.values()), dtype=float),
            }
        )


def attach_values(
    gdf: pd.DataFrame,
    name_field: str,
    table: pd.DataFrame,
    rec: Reconciliation,
    value_col: str = "value",
) -> pd.DataFrame:
    """Left-join the statistic onto the polygons by canonical name."""
    if name_field not in gdf.columns:
        raise ValueError(f"geometry must contain field '{name_field}'")

    lookup = ValueLookup(table, rec, value_col=value_col)
    base = gdf.drop(columns=[value_col]) if value_col in gdf.columns else gdf
    out = base.merge(lookup.frame(name_field, value_col), on=name_field, how="left", validate="one_to_one")
    out[value_col] = pd.to_numeric(out[value_col], errors="coerce").astype(float)

    missing = int(out[value_col].isna().sum())
    if missing:
        logger.info("%d polygons have no value", missing)
    if lookup.dropped:
        logger.info("statistics rows without a polygon: %s", sorted(lookup.dropped))
    return out


def matched_only(gdf: pd.DataFrame, value_col: str = "value") -> pd.DataFrame:
    """Polygons that received a finite value; what the map draws."""
    vals = pd.to_numeric(gdf[value_col], errors="coerce")
    return gdf.loc[np.isfinite(vals.to_numpy(dtype=float, na_value=np.nan))].reset_index(drop=True)
