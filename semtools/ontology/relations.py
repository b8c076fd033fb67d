"""
semtools Relation Graph Builder
===============================
沿 is_a (或其他關係 tag) 展開每個術語的祖先閉包

特點:
- 顯式堆疊 + memo 表，不依賴遞迴深度
- 偵測循環: 閉包重新包含起點時移除並標記 circular
- 依閉包分佈將整個本體分類為 atomic / sparse / hierarchical / circular

版本: 1.0.0
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from semtools.core.types import ANCESTOR_TAG, ExpansionStatus, StructureType, TagMap

logger = logging.getLogger(__name__)


# =============================================================================
# Helpers
# =============================================================================
def ordered_union(current: List[str], extra: Iterable[str]) -> List[str]:
    """有序聯集，保留 current 的順序並附加新的元素"""
    seen = set(current)
    merged = list(current)
    for item in extra:
        if item not in seen:
            seen.add(item)
            merged.append(item)
    return merged


def _relation_values(tags: TagMap, tag: str) -> Optional[List[str]]:
    value = tags.get(tag)
    if value is None:
        return None
    return value if isinstance(value, list) else [value]


class _Frame:
    """展開中的術語"""
    __slots__ = ("term", "parents", "index", "current", "circular")

    def __init__(self, term: str, parents: List[str], current: List[str]):
        self.term = term
        self.parents = parents
        self.index = 0
        self.current = current
        self.circular = False


# =============================================================================
# Expansion
# =============================================================================
def expand_related_ids(
    start: str,
    terms: Mapping[str, TagMap],
    tag: str = ANCESTOR_TAG,
    alternatives: Optional[Mapping[str, str]] = None,
    memo: Optional[Dict[str, List[str]]] = None,
) -> Tuple[ExpansionStatus, List[str]]:
    """
    展開單一術語的關係閉包

    Args:
        start: 起始術語
        terms: 術語 stanza
        tag: 要展開的關係 tag
        alternatives: 別名 -> canonical ID，連結會先替換為 canonical
        memo: 已展開的閉包 (就地更新)

    Returns:
        (展開狀態, 閉包列表)；未知術語與沒有 tag 的術語回傳空閉包
    """
    alternatives = alternatives or {}
    if memo is None:
        memo = {}

    if start not in terms:
        return ExpansionStatus.NO_TERM, []
    start_parents = _relation_values(terms[start], tag)
    if start_parents is None:
        return ExpansionStatus.SOURCE, []

    stack = [_Frame(start, start_parents, list(memo.get(start, [])))]
    finished: Optional[_Frame] = None

    while stack:
        frame = stack[-1]

        if frame.index >= len(frame.parents):
            stack.pop()
            memo[frame.term] = frame.current
            if stack:
                parent = stack[-1]
                parent.current = ordered_union(parent.current, frame.current)
                if frame.circular:
                    parent.circular = True
                if parent.term in parent.current:
                    parent.circular = True
                    parent.current.remove(parent.term)
            else:
                finished = frame
            continue

        related_id = frame.parents[frame.index]
        frame.index += 1
        related_id = alternatives.get(related_id, related_id)

        if related_id in frame.current:
            frame.circular = True
            continue

        frame.current.append(related_id)
        if related_id in memo:
            frame.current = ordered_union(frame.current, memo[related_id])
            if frame.term in frame.current:
                frame.circular = True
                frame.current = [t for t in frame.current if t not in (related_id, frame.term)]
            continue

        # Partial closure visible to descendants of this expansion
        memo[frame.term] = list(frame.current)
        if related_id not in terms:
            continue
        related_parents = _relation_values(terms[related_id], tag)
        if related_parents is None:
            continue
        stack.append(_Frame(related_id, related_parents, []))

    status = ExpansionStatus.CIRCULAR if finished.circular else ExpansionStatus.HIERARCHICAL
    return status, finished.current


# =============================================================================
# Index Builder
# =============================================================================
@dataclass
class RelationIndex:
    """祖先 / 後代索引與結構分類"""
    structure_type: StructureType = StructureType.ATOMIC
    ancestors: Dict[str, List[str]] = field(default_factory=dict)
    descendants: Dict[str, List[str]] = field(default_factory=dict)
    circular_terms: List[str] = field(default_factory=list)


def classify_structure(
    n_candidates: int,
    n_expanded: int,
    circular: bool,
    reroot: bool = False,
) -> StructureType:
    """
    結構分類

    Args:
        n_candidates: 參與分類的術語數 (canonical，非過時)
        n_expanded: 有閉包的術語數
        circular: 是否偵測到循環
        reroot: 由 mutate 產生的子本體一律為 sparse
    """
    structure = StructureType.CIRCULAR if circular else StructureType.HIERARCHICAL
    if n_expanded == 0:
        structure = StructureType.ATOMIC
    if reroot or (n_expanded > 0 and n_candidates - n_expanded >= 2):
        structure = StructureType.SPARSE
    return structure


def build_relation_index(
    terms: Mapping[str, TagMap],
    candidates: Iterable[str],
    tag: str = ANCESTOR_TAG,
    alternatives: Optional[Mapping[str, str]] = None,
    removable_terms: Iterable[str] = (),
    reroot: bool = False,
) -> RelationIndex:
    """
    為所有候選術語建立閉包索引

    Args:
        terms: 術語 stanza (包含別名與過時術語)
        candidates: 要展開的 canonical 術語
        tag: 關係 tag
        alternatives: 別名 -> canonical ID
        removable_terms: 從閉包中移除的術語
        reroot: 是否為重新定根的子本體

    Returns:
        RelationIndex
    """
    alternatives = alternatives or {}
    removable: Set[str] = set(removable_terms)
    candidates = list(candidates)
    memo: Dict[str, List[str]] = {}
    circular_terms: List[str] = []

    for term in candidates:
        if term in memo or _relation_values(terms[term], tag) is None:
            continue
        status, _ = expand_related_ids(term, terms, tag, alternatives, memo)
        if status == ExpansionStatus.CIRCULAR:
            circular_terms.append(term)

    n_expanded = sum(1 for term in candidates if term in memo)
    structure = classify_structure(len(candidates), n_expanded, bool(circular_terms), reroot)

    index = RelationIndex(structure_type=structure, circular_terms=circular_terms)
    for term, related in memo.items():
        if term in alternatives:
            continue
        related = [t for t in related if t in terms and t not in removable]
        index.ancestors[term] = related
        for ancestor in related:
            index.descendants.setdefault(ancestor, []).append(term)

    logger.info(
        f"Relation index built over {len(index.ancestors)} terms, "
        f"structure: {structure.value}"
    )
    if circular_terms:
        logger.warning(f"Circular relations found while expanding {len(circular_terms)} terms")
    return index


__all__ = [
    "ordered_union",
    "expand_related_ids",
    "RelationIndex",
    "classify_structure",
    "build_relation_index",
]
