"""
Полный прогон: геометрия + PC-Axis -> сопоставление -> значения на полигонах -> фигуры.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pandas as pd
import plotly.graph_objects as go

from core.enrichment import attach_values
from core.overrides import load_overrides
from core.reconcile import Reconciliation, reconcile
from core.rendering import bar_by_category, bar_by_region, choropleth
from core.report import build_report, export_report
from core.scoring import ReconcileStats, summarize
from core.sources import (
    DEFAULT_NAME_FIELD,
    canonical_names,
    filter_table,
    load_px,
    load_regions,
    observed_names,
    resolve_selection,
    standardize_px,
)

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    regions: pd.DataFrame              # polygons with the attached value column
    table: pd.DataFrame                # filtered statistics (one period, one category)
    reconciliation: Reconciliation
    stats: ReconcileStats
    period: str
    category: str
    figures: Dict[str, go.Figure] = field(default_factory=dict)
    report: Optional[pd.DataFrame] = None


def build(
    regions: pd.DataFrame,
    px_table: pd.DataFrame,
    name_field: str = DEFAULT_NAME_FIELD,
    period: Optional[str] = None,
    category: Optional[str] = None,
    overrides: Optional[Dict[str, str]] = None,
    suggest_n: int = 3,
) -> PipelineResult:
    """Everything after loading; px_table must already be standardized."""
    period, category = resolve_selection(px_table, period, category)
    table = filter_table(px_table, period=period, category=category)

    canonical = canonical_names(regions, name_field)
    rec = reconcile(canonical, observed_names(table), overrides=overrides, suggest_n=suggest_n)
    if rec.unresolved:
        logger.warning("unresolved region names: %s", sorted(rec.unresolved))

    enriched = attach_values(regions, name_field, table, rec)
    stats = summarize(rec, canonical)

    title = f"{category} · {period}"
    figures = {
        "map": choropleth(enriched, name_field, title=title),
        "bar_region": bar_by_region(table, rec, title=title),
        "bar_category": bar_by_category(px_table, period, rec, title=period),
    }
    params: Dict[str, Any] = {"name_field": name_field, "period": period, "category": category}
    return PipelineResult(
        regions=enriched,
        table=table,
        reconciliation=rec,
        stats=stats,
        period=period,
        category=category,
        figures=figures,
        report=build_report(rec, params=params),
    )


def run(
    regions_path,
    px_path,
    name_field: str = DEFAULT_NAME_FIELD,
    layer: Optional[str] = None,
    period: Optional[str] = None,
    category: Optional[str] = None,
    overrides_path=None,
) -> PipelineResult:
    regions = load_regions(regions_path, layer=layer, name_field=name_field)
    px_table = standardize_px(load_px(px_path))
    return build(
        regions,
        px_table,
        name_field=name_field,
        period=period,
        category=category,
        overrides=load_overrides(overrides_path),
    )


def export(result: PipelineResult) -> str:
    return export_report(result.report)
