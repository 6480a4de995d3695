"""
Отчёт по сопоставлению: одна строка на observed (без кода) + JSON-лог.

Формат как у выгрузки валидатора: исходное значение, результат,
колонка `suggestions` и колонка `log` в JSON, итог пишется в .xlsx.
"""

from __future__ import annotations

import json
import tempfile
from typing import Any, Dict, List, Optional

import pandas as pd

from core.reconcile import METHOD_UNRESOLVED, Reconciliation

REPORT_COLUMNS = ["observed", "stripped", "canonical", "method", "reason", "suggestions", "log"]


def _raw_by_stripped(rec: Reconciliation) -> Dict[str, List[str]]:
    out: Dict[str, List[str]] = {}
    for raw, s in rec.stripped.items():
        out.setdefault(s, []).append(raw)
    return out


def build_report(rec: Reconciliation, params: Optional[Dict[str, Any]] = None) -> pd.DataFrame:
    raws = _raw_by_stripped(rec)
    rows: List[Dict[str, Any]] = []
    for s, d in rec.details.items():
        sugg = [{"canonical": c, "score": sc} for c, sc in rec.suggestions.get(s, [])]
        log_obj = {
            "status": d.method,
            "reason": d.reason,
            "fragment": d.fragment,
            "candidates": list(d.candidates),
            "is_resolved": d.method != METHOD_UNRESOLVED,
            **({"params": params} if params else {}),
        }
        rows.append(
            {
                "observed": "; ".join(raws.get(s, [s])),
                "stripped": s,
                "canonical": d.canonical,
                "method": d.method,
                "reason": d.reason,
                "suggestions": json.dumps(sugg, ensure_ascii=False),
                "log": json.dumps(log_obj, ensure_ascii=False),
            }
        )
    df = pd.DataFrame(rows, columns=REPORT_COLUMNS)
    # неразрешённые наверх, их смотрят первыми
    order = df["method"].map(lambda m: 0 if m == METHOD_UNRESOLVED else 1)
    return df.assign(_o=order).sort_values(["_o", "stripped"], kind="stable").drop(columns="_o").reset_index(drop=True)


def export_report(df: pd.DataFrame) -> str:
    with tempfile.NamedTemporaryFile(delete=False, suffix=".xlsx") as tmp:
        out_path = tmp.name
    df.to_excel(out_path, index=False)
    return out_path
