"""
Нормализация названий провинций.

Принципы:
- стандартизируем пустоты в None (в PC-Axis пропуск это "..", "." или "-")
- код провинции ("08 Barcelona") снимаем отдельно и только цифровой
- сравнение в reconcile идёт по исходному написанию (case-sensitive),
  fold_key нужен только для подсказок, решения по нему не принимаются
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional, Any

EMPTY_VALUES = {"", " ", "na", "nan", "null", "none", "-", "—", "n/a", ".", "..", "..."}

# "08 Barcelona", "46 Valencia/València"; снимаем только цифровые коды.
# Нецифровой токен ("A1 Lugo", "Santa Cruz") остаётся как есть: иначе
# повторный strip съел бы слово названия и перестал быть идемпотентным.
CODE_PREFIX_RE = re.compile(r"^(?:\d+\s+)+")


def normalize_empty(value: Any) -> Optional[str]:
    """Convert various empty-like inputs to None; otherwise return stripped string."""
    if value is None:
        return None
    # pandas NaN
    if isinstance(value, float) and value != value:
        return None

    v = str(value).replace("\xa0", " ").strip()
    if v == "":
        return None
    if v.lower() in EMPTY_VALUES:
        return None
    return v


def strip_code(value: str) -> str:
    """Remove a leading numeric code token ("08 ") if present. Idempotent."""
    return CODE_PREFIX_RE.sub("", value.strip(), count=1)


def _strip_accents(s: str) -> str:
    decomposed = unicodedata.normalize("NFD", s)
    return "".join(ch for ch in decomposed if unicodedata.category(ch) != "Mn")


def fold_key(value: Any) -> Optional[str]:
    """
    Comparison key for diagnostics:
    - strip code prefix, lower, remove diacritics
    - '/', ',', '-' and brackets -> spaces (bilingual "Valencia/València")
    """
    v = normalize_empty(value)
    if v is None:
        return None
    s = strip_code(v).lower()
    s = _strip_accents(s)
    s = re.sub(r"[/,;:()\-\"'.]", " ", s)
    s = re.sub(r"\s+", " ", s).strip()
    return s or None
