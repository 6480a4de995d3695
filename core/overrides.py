"""
Известные расхождения написания провинций (INE -> shapefile).

Это данные, а не логика: ключ это название из статистики (уже без кода),
значение это дополнительный фрагмент, который ищется подстрокой в каноническом
названии вместе с самим названием (не вместо него).
Правки делаются в overrides.csv, DEFAULT_OVERRIDES держит тот же список
для запуска без файла.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Tuple, Union

import pandas as pd

from core.normalization import normalize_empty, strip_code

OVERRIDES_COLUMNS = ("observed", "fragment")

DEFAULT_OVERRIDES: Dict[str, str] = {
    # порядок "Nombre, Artículo" в INE
    "Balears, Illes": "Balears",
    "Coruña, A": "Coruña",
    "Rioja, La": "Rioja",
    "Palmas, Las": "Palmas",
    # двуязычные названия, в shapefile другой вариант
    "Araba/Álava": "lava",
    "Castellón/Castelló": "Castell",
    "Alicante/Alacant": "Alicante",
    "Valencia/València": "Valencia",
    "Gipuzkoa": "Guip",
    "Bizkaia": "Vizcaya",
    "Ourense": "Orense",
    "Girona": "Gerona",
    "Lleida": "rida",
}


def load_overrides(path: Union[str, Path, None] = None) -> Dict[str, str]:
    """
    Read overrides from a CSV with columns observed,fragment.
    - no path -> DEFAULT_OVERRIDES copy
    - blank rows are skipped, code prefixes in `observed` are stripped
    - the same observed name twice -> ValueError
    """
    if path is None:
        return dict(DEFAULT_OVERRIDES)

    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    for c in OVERRIDES_COLUMNS:
        if c not in df.columns:
            raise ValueError(f"overrides file must contain column '{c}'")

    out: Dict[str, str] = {}
    for _, row in df.iterrows():
        observed = normalize_empty(row["observed"])
        fragment = normalize_empty(row["fragment"])
        if observed is None or fragment is None:
            continue
        observed = strip_code(observed)
        if observed in out:
            raise ValueError(f"duplicate override for '{observed}'")
        out[observed] = fragment
    return out


def fragments_for(name: str, overrides: Optional[Dict[str, str]]) -> Tuple[str, ...]:
    """
    Texts searched for in canonical names during the fuzzy pass:
    the name itself, plus its override fragment when one is configured.
    """
    extra = overrides.get(name) if overrides else None
    if not extra or extra == name:
        return (name,)
    return (name, extra)
