"""
semtools Core Types
===================
統一的資料類型定義，所有本體模組共享

包含:
- Stanza / 結構 / IC / 相似度 類型列舉
- OBO tag 表 (多值 tag、帶尾註 tag、替代 ID tag)
- 術語元資料、全域最大值、路徑記錄、雙向字典

版本: 1.0.0
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union


# =============================================================================
# Type Aliases
# =============================================================================
TagValue = Union[str, List[str]]  # scalar tag or ordered multivalue tag
TagMap = Dict[str, TagValue]
ProfileID = Union[str, int]


# =============================================================================
# OBO Tag Tables
# =============================================================================
MULTIVALUE_TAGS = frozenset({
    "alt_id", "is_a", "subset", "synonym", "xref", "intersection_of",
    "union_of", "disjoint_from", "relationship", "replaced_by", "consider",
    "subsetdef", "synonymtypedef", "property_value", "remark",
})

# Values of these tags keep only the text before " ! "
TRAILING_MODIFIER_TAGS = frozenset({
    "is_a", "union_of", "disjoint_from", "relationship", "subsetdef",
    "synonymtypedef", "property_value",
})

# Priority order used to resolve obsolete terms
ALTERNATIVE_TAGS = ("replaced_by", "consider", "alt_id")

OBSOLETE_TAG = "is_obsolete"
ANCESTOR_TAG = "is_a"


# =============================================================================
# Enums
# =============================================================================
class StanzaKind(str, Enum):
    """OBO stanza 類型"""
    HEADER = "Header"
    TERM = "Term"
    TYPEDEF = "Typedef"
    INSTANCE = "Instance"


class StructureType(str, Enum):
    """
    本體 is_a 圖的整體結構分類

    整個本體只有一個分類，不是每個術語各自分類
    """
    ATOMIC = "atomic"
    SPARSE = "sparse"
    HIERARCHICAL = "hierarchical"
    CIRCULAR = "circular"


class ExpansionStatus(str, Enum):
    """單一術語閉包展開的結果狀態"""
    NO_TERM = "no_term"    # term is not in the term set
    SOURCE = "source"      # term has no relation tag
    HIERARCHICAL = "hierarchical"
    CIRCULAR = "circular"


class ICType(str, Enum):
    """Information Content 公式"""
    RESNIK = "resnik"
    RESNIK_OBSERVED = "resnik_observed"
    SECO = "seco"
    ZHOU = "zhou"
    SANCHEZ = "sanchez"

    @classmethod
    def parse(cls, value: Union[str, "ICType"]) -> "ICType":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"IC type specified ({value}) is not allowed") from None


class SimilarityType(str, Enum):
    """
    術語相似度類型

    jiang_conrath 是距離 (越小越相似)，與 resnik/lin 共用同一介面
    """
    RESNIK = "resnik"
    LIN = "lin"
    JIANG_CONRATH = "jiang_conrath"

    @classmethod
    def parse(cls, value: Union[str, "SimilarityType"]) -> "SimilarityType":
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"SIM type specified ({value}) is not allowed") from None


# =============================================================================
# Metadata Records
# =============================================================================
@dataclass
class TermMetadata:
    """
    術語的結構與觀測頻率

    只以 canonical ID 為 key 存放；替代 ID 透過 alias map 間接讀寫
    """
    ancestors: float = 0.0
    descendants: float = 0.0
    struct_freq: float = 0.0
    observed_freq: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "ancestors": self.ancestors,
            "descendants": self.descendants,
            "struct_freq": self.struct_freq,
            "observed_freq": self.observed_freq,
        }


@dataclass
class MaxFrequencies:
    """全域最大值 (-1.0 表示尚未計算)"""
    struct_freq: float = -1.0
    observed_freq: float = -1.0
    max_depth: float = -1.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "struct_freq": self.struct_freq,
            "observed_freq": self.observed_freq,
            "max_depth": self.max_depth,
        }


@dataclass
class TermPathRecord:
    """
    術語到根節點的所有路徑

    每條路徑從術語本身開始，依直接父節點走到根
    """
    total_paths: int = 0
    largest_path: Optional[int] = 0
    shortest_path: Optional[int] = 0
    paths: List[List[str]] = field(default_factory=list)

    def update_stats(self) -> None:
        sizes = [len(path) for path in self.paths]
        self.total_paths = len(self.paths)
        self.largest_path = max(sizes) if sizes else None
        self.shortest_path = min(sizes) if sizes else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_paths": self.total_paths,
            "largest_path": self.largest_path,
            "shortest_path": self.shortest_path,
            "paths": [list(path) for path in self.paths],
        }


@dataclass
class TermDictionary:
    """
    雙向字典

    by_term: term -> 值列表
    by_value: 值 -> term (multiterm 時為 term 列表)
    """
    by_term: Dict[str, List[str]] = field(default_factory=dict)
    by_value: Dict[str, Union[str, List[str]]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"by_term": self.by_term, "by_value": self.by_value}


__all__ = [
    # Type aliases
    "TagValue",
    "TagMap",
    "ProfileID",
    # Tag tables
    "MULTIVALUE_TAGS",
    "TRAILING_MODIFIER_TAGS",
    "ALTERNATIVE_TAGS",
    "OBSOLETE_TAG",
    "ANCESTOR_TAG",
    # Enums
    "StanzaKind",
    "StructureType",
    "ExpansionStatus",
    "ICType",
    "SimilarityType",
    # Records
    "TermMetadata",
    "MaxFrequencies",
    "TermPathRecord",
    "TermDictionary",
]
