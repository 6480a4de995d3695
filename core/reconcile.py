"""
Сопоставление названий провинций: статистика (observed) -> геометрия (canonical).

Два прохода:
1) exact: название без кода совпадает с каноническим один в один
2) fuzzy: подстрока в одну или другую сторону, только среди канонических
   названий, не занятых exact-проходом; ищем и само название, и фрагмент
   из overrides; ровно один кандидат -> принимаем

Неразрешённые имена это нормальный результат (острова могут отсутствовать
в shapefile), ошибкой считается только некорректный canonical.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import DefaultDict, Dict, FrozenSet, List, Optional, Sequence, Set, Tuple

from core.matching import suggest
from core.normalization import strip_code
from core.overrides import fragments_for

logger = logging.getLogger(__name__)

METHOD_EXACT = "exact"
METHOD_FUZZY = "fuzzy"
METHOD_UNRESOLVED = "unresolved"

REASON_NO_CANDIDATE = "no_candidate"
REASON_AMBIGUOUS = "ambiguous"
REASON_CONTESTED = "contested"


class InvalidInput(ValueError):
    """Canonical name set is empty or has duplicates."""


@dataclass(frozen=True)
class MatchDetail:
    method: str                      # exact / fuzzy / unresolved
    canonical: Optional[str] = None
    reason: Optional[str] = None     # only for unresolved
    fragment: Optional[str] = None   # override fragment, or the name itself
    candidates: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Reconciliation:
    mapping: Dict[str, str]
    unresolved: FrozenSet[str]
    details: Dict[str, MatchDetail]
    stripped: Dict[str, str] = field(default_factory=dict)   # raw observed -> stripped
    suggestions: Dict[str, List[Tuple[str, float]]] = field(default_factory=dict)

    def lookup(self, observed: str) -> Optional[str]:
        """Canonical name for a raw or stripped observed name; None if unresolved."""
        key = self.stripped.get(observed, strip_code(observed))
        return self.mapping.get(key)

    @property
    def exact(self) -> Dict[str, str]:
        return {k: v for k, v in self.mapping.items() if self.details[k].method == METHOD_EXACT}

    @property
    def fuzzy(self) -> Dict[str, str]:
        return {k: v for k, v in self.mapping.items() if self.details[k].method == METHOD_FUZZY}


def _validate_canonical(canonical: Sequence[str]) -> List[str]:
    names = list(canonical)
    if not names:
        raise InvalidInput("canonical name set is empty")
    seen: Set[str] = set()
    dups: List[str] = []
    for n in names:
        if n in seen and n not in dups:
            dups.append(n)
        seen.add(n)
    if dups:
        raise InvalidInput(f"canonical name set contains duplicates: {dups}")
    return names


def _candidates(fragments: Sequence[str], pool: Sequence[str]) -> Tuple[str, ...]:
    """Union over fragments, in pool order."""
    # пустая строка является подстрокой чего угодно
    frags = [f for f in fragments if f]
    return tuple(c for c in pool if c and any(f in c or c in f for f in frags))


def reconcile(
    canonical: Sequence[str],
    observed: Sequence[str],
    overrides: Optional[Dict[str, str]] = None,
    suggest_n: int = 3,
) -> Reconciliation:
    """
    Map observed (statistics) names to canonical (geometry) names.

    overrides: stripped observed name -> extra fragment searched for in the fuzzy pass
        alongside the name itself.
    suggest_n: how many rapidfuzz suggestions to keep per unresolved name (0 = none).
    """
    names = _validate_canonical(canonical)
    canon_set = set(names)

    # strip pass; duplicates after stripping collapse into one key
    stripped: Dict[str, str] = {}
    keys: List[str] = []
    for raw in observed:
        s = strip_code(raw)
        stripped[raw] = s
        if s not in keys:
            keys.append(s)

    mapping: Dict[str, str] = {}
    details: Dict[str, MatchDetail] = {}

    # exact pass
    for s in keys:
        if s in canon_set:
            mapping[s] = s
            details[s] = MatchDetail(METHOD_EXACT, canonical=s)

    claimed = set(mapping.values())
    pool = [c for c in names if c not in claimed]

    # fuzzy pass: collect single-candidate proposals first, then drop contested ones
    proposals: Dict[str, Tuple[str, str]] = {}
    by_target: DefaultDict[str, List[str]] = defaultdict(list)
    for s in keys:
        if s in mapping:
            continue
        frags = fragments_for(s, overrides)
        frag = frags[-1]
        cands = _candidates(frags, pool)
        if len(cands) == 1:
            proposals[s] = (cands[0], frag)
            by_target[cands[0]].append(s)
        else:
            reason = REASON_NO_CANDIDATE if not cands else REASON_AMBIGUOUS
            details[s] = MatchDetail(METHOD_UNRESOLVED, reason=reason, fragment=frag, candidates=cands)

    for s, (target, frag) in proposals.items():
        rivals = by_target[target]
        if len(rivals) > 1:
            details[s] = MatchDetail(
                METHOD_UNRESOLVED, reason=REASON_CONTESTED, fragment=frag, candidates=(target,)
            )
            continue
        mapping[s] = target
        details[s] = MatchDetail(METHOD_FUZZY, canonical=target, fragment=frag, candidates=(target,))
        logger.debug("fuzzy match %r -> %r (fragment %r)", s, target, frag)

    unresolved = frozenset(s for s in keys if s not in mapping)

    suggestions: Dict[str, List[Tuple[str, float]]] = {}
    if suggest_n > 0:
        taken = set(mapping.values())
        free = [c for c in names if c not in taken]
        for s in keys:
            if s in unresolved:
                suggestions[s] = suggest(s, free, n=suggest_n)

    logger.info(
        "reconciled %d observed names: %d exact, %d fuzzy, %d unresolved",
        len(keys),
        len(claimed),
        len(mapping) - len(claimed),
        len(unresolved),
    )
    return Reconciliation(
        mapping=mapping,
        unresolved=unresolved,
        details=details,
        stripped=stripped,
        suggestions=suggestions,
    )
