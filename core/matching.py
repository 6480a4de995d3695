"""
Инструменты для fuzzy подсказок.

Важное правило проекта:
подсказки НЕ принимают решений о сопоставлении.
Они только считают похожесть и показывают кандидатов для неразрешённых имён.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz, process

from core.normalization import fold_key


def build_norm_map(names: Sequence[str]) -> Dict[str, str]:
    """fold_key(name) -> name; names whose key collapses to None are skipped."""
    out: Dict[str, str] = {}
    for name in names:
        k = fold_key(name)
        if k:
            out.setdefault(k, name)
    return out


def top_n_from_norm_map(
    query_norm: Optional[str],
    norm_to_canon: Dict[str, str],
    n: int = 5,
    cutoff: float = 0.0,
) -> List[Tuple[str, float]]:
    """Return top-N canonical candidates with scores (0..1)."""
    if not query_norm or not norm_to_canon or n <= 0:
        return []
    keys = list(norm_to_canon.keys())
    matches = process.extract(
        query_norm, keys, scorer=fuzz.WRatio, limit=n, score_cutoff=cutoff * 100
    )
    out: List[Tuple[str, float]] = []
    for norm_key, sc, _ in matches:
        out.append((norm_to_canon[norm_key], round(sc / 100.0, 3)))
    return out


def suggest(
    name: str,
    canonical: Sequence[str],
    n: int = 3,
    cutoff: float = 0.5,
) -> List[Tuple[str, float]]:
    """Top-N canonical names that look like `name` (accents and codes ignored)."""
    return top_n_from_norm_map(fold_key(name), build_norm_map(canonical), n=n, cutoff=cutoff)
