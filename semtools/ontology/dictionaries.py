"""
semtools Dictionary Builder
===========================
以 tag 建立雙向查詢字典 (term -> 值, 值 -> term)

常用字典:
- name: ID <-> 名稱
- synonym: 同義詞 (只取引號內文字)
- is_a: 直接父節點 (by_term) / 直接子節點 (by_value)

版本: 1.0.0
"""
from __future__ import annotations

import logging
import re
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Tuple, Union

from semtools.core.types import TagMap, TermDictionary

logger = logging.getLogger(__name__)


def extract_id(text: str, exists: Callable[[str], bool]) -> Optional[str]:
    """
    從文字中取出術語 ID

    文字本身是 ID 時直接回傳，否則嘗試第一個空白分隔的片段

    Returns:
        術語 ID，找不到時回傳 None
    """
    if exists(text):
        return text
    tokens = str(text).split()
    if tokens and exists(tokens[0]):
        return tokens[0]
    return None


def _select(values: List[str], pattern: Optional[Pattern]) -> List[str]:
    if pattern is None:
        return values
    selected = []
    for value in values:
        match = pattern.search(value)
        if match is None:
            continue
        selected.append(match.group(1) if pattern.groups else match.group(0))
    return selected


def build_dictionary(
    terms: Iterable[Tuple[str, TagMap]],
    tag: str,
    select_regex: Optional[Union[str, Pattern]] = None,
    multiterm: bool = False,
    self_type_references: bool = False,
    exists: Optional[Callable[[str], bool]] = None,
    alternatives: Optional[Dict[str, str]] = None,
) -> TermDictionary:
    """
    建立雙向字典

    Args:
        terms: (術語 ID, tag map) 序列
        tag: 用來建立字典的 tag
        select_regex: 每個值只保留第一個符合的片段 (有 group 時取 group 1)
        multiterm: by_value 是否允許一個值對應多個術語
        self_type_references: 值為術語 ID 時，以 extract_id 校正
        exists: 檢查術語是否存在 (self_type_references 需要)
        alternatives: 別名 -> canonical，self_type_references 時將值替換為 canonical

    Returns:
        TermDictionary
    """
    if isinstance(select_regex, str):
        select_regex = re.compile(select_regex)
    if self_type_references and exists is None:
        raise ValueError("self_type_references requires an existence check")

    dictionary = TermDictionary()
    by_term = dictionary.by_term
    by_value = dictionary.by_value

    for term, tags in terms:
        raw = tags.get(tag)
        if raw is None:
            continue
        values = _select(raw if isinstance(raw, list) else [raw], select_regex)
        if self_type_references:
            values = [extract_id(value, exists) or value for value in values]
            if alternatives:
                values = [alternatives.get(value, value) for value in values]
        if not values:
            continue

        stored = by_term.setdefault(term, [])
        for value in values:
            if value not in stored:
                stored.append(value)
            if multiterm:
                linked = by_value.setdefault(value, [])
                if term not in linked:
                    linked.append(term)
            else:
                by_value[value] = term

    logger.debug(f"Dictionary {tag}: {len(by_term)} terms, {len(by_value)} values")
    return dictionary


__all__ = [
    "extract_id",
    "build_dictionary",
]
