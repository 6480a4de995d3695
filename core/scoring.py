"""
Сводка по прогону сопоставления (без ML).

Идея:
- сколько observed разрешено exact / fuzzy / не разрешено
- сколько полигонов осталось без значения
- coverage = доля разрешённых observed, в процентах
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Sequence

from core.reconcile import METHOD_EXACT, METHOD_FUZZY, Reconciliation


@dataclass(frozen=True)
class ReconcileStats:
    observed_total: int
    exact: int
    fuzzy: int
    unresolved: int
    canonical_total: int
    canonical_unmatched: int
    coverage_pct: float

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def summarize(rec: Reconciliation, canonical: Sequence[str]) -> ReconcileStats:
    methods = [d.method for d in rec.details.values()]
    observed_total = len(rec.details)
    resolved = len(rec.mapping)
    targets = set(rec.mapping.values())

    coverage = (resolved / observed_total * 100) if observed_total else 0.0
    return ReconcileStats(
        observed_total=observed_total,
        exact=methods.count(METHOD_EXACT),
        fuzzy=methods.count(METHOD_FUZZY),
        unresolved=len(rec.unresolved),
        canonical_total=len(canonical),
        canonical_unmatched=sum(1 for c in canonical if c not in targets),
        coverage_pct=round(coverage, 1),
    )
