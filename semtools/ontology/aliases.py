"""
semtools Alias Resolver
=======================
替代 ID 解析: alt_id / replaced_by / consider 與過時術語

流程:
1. 過時術語 (is_obsolete: true) 指向第一個可用的替代 tag 的第一個值
2. 非過時術語的 alt_id 指向術語本身 (排除自身與可移除術語)
3. 收斂別名鏈，丟棄循環或指向未知術語的別名
4. 為沒有自己 stanza 的別名合成 stanza (複製 canonical 的 tag map)

版本: 1.0.0
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from semtools.core.types import ALTERNATIVE_TAGS, OBSOLETE_TAG, TagMap

logger = logging.getLogger(__name__)


@dataclass
class AliasResolution:
    """
    別名解析結果

    alternatives: 別名 -> canonical ID (已收斂，不含鏈)
    obsoletes: 所有過時術語 (無論是否有替代)
    synthesized: 合成 stanza 的別名
    """
    alternatives: Dict[str, str] = field(default_factory=dict)
    obsoletes: Set[str] = field(default_factory=set)
    synthesized: List[str] = field(default_factory=list)


def _first_value(value) -> Optional[str]:
    if isinstance(value, list):
        return value[0] if value else None
    return value


def _collapse(alias: str, alternatives: Dict[str, str]) -> Optional[str]:
    """沿著別名鏈走到非別名的 ID；遇到循環時回傳 None"""
    seen = {alias}
    target = alternatives[alias]
    while target in alternatives:
        if target in seen:
            return None
        seen.add(target)
        target = alternatives[target]
    return target


def resolve_aliases(
    terms: Dict[str, TagMap],
    removable_terms: Iterable[str] = (),
    synthesize: bool = True,
) -> AliasResolution:
    """
    解析術語 stanza 的別名與過時標記

    Args:
        terms: 術語 stanza (會就地加入合成的別名 stanza)
        removable_terms: 不納入計算的術語
        synthesize: 是否為別名合成 stanza

    Returns:
        AliasResolution
    """
    removable = set(removable_terms)
    resolution = AliasResolution()
    alternatives = resolution.alternatives

    # Obsolete terms point to the first value of the first available tag
    for term_id, tags in terms.items():
        if tags.get(OBSOLETE_TAG) != "true":
            continue
        resolution.obsoletes.add(term_id)
        for alt_tag in ALTERNATIVE_TAGS:
            target = _first_value(tags.get(alt_tag))
            if target is not None:
                alternatives[term_id] = target
                break

    # alt_id values of working terms
    for term_id, tags in terms.items():
        if term_id in resolution.obsoletes or term_id in alternatives:
            continue
        alt_ids = tags.get("alt_id")
        if not alt_ids:
            continue
        for alt_id in alt_ids:
            if alt_id == term_id or alt_id in removable:
                continue
            alternatives[alt_id] = term_id

    # Collapse chains so every alias maps straight to a canonical id
    for alias in list(alternatives):
        target = _collapse(alias, alternatives)
        if target is None:
            logger.warning(f"Dropping alternative {alias}: its chain loops back to itself")
            del alternatives[alias]
        elif target not in terms or target in removable:
            logger.debug(f"Dropping alternative {alias}: unknown target {target}")
            del alternatives[alias]
        else:
            alternatives[alias] = target

    if synthesize:
        for alias, canonical in alternatives.items():
            if alias not in terms:
                terms[alias] = {
                    tag: list(value) if isinstance(value, list) else value
                    for tag, value in terms[canonical].items()
                }
                resolution.synthesized.append(alias)

    logger.info(
        f"Resolved {len(alternatives)} alternative ids "
        f"({len(resolution.obsoletes)} obsolete terms)"
    )
    return resolution


def remove_terms(terms: Dict[str, TagMap], removable_terms: Iterable[str]) -> List[str]:
    """從術語集合中移除指定術語，回傳實際移除的 ID"""
    removed = []
    for term_id in removable_terms:
        if terms.pop(term_id, None) is not None:
            removed.append(term_id)
    if removed:
        logger.info(f"Removed {len(removed)} terms before indexing")
    return removed


__all__ = [
    "AliasResolution",
    "resolve_aliases",
    "remove_terms",
]
