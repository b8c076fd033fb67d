"""
semtools Term Paths & Levels
============================
術語到根節點的所有路徑 (經由直接父節點) 與結構層級

- 路徑: 每條路徑從術語本身開始走到根，記錄總數與最短/最長長度
- 層級: 最短 (或最長) 路徑長度，根的層級為 1
- 只適用於 hierarchical 或 sparse 結構

版本: 1.0.0
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from semtools.core.types import ANCESTOR_TAG, StructureType, TermPathRecord

if TYPE_CHECKING:
    from semtools.ontology.hierarchy import Ontology

logger = logging.getLogger(__name__)

PATH_LENGTH_FIELDS = ("shortest_path", "largest_path")


class TermPathIndex:
    """
    路徑與層級索引

    term_paths: 術語 -> TermPathRecord
    term_levels: 術語 -> 層級
    levels: 層級 -> 術語列表
    """

    def __init__(self, ontology: "Ontology"):
        self.ontology = ontology
        self.reset()

    def reset(self) -> None:
        self.term_paths: Dict[str, TermPathRecord] = {}
        self.term_levels: Dict[str, int] = {}
        self.levels: Dict[int, List[str]] = {}

    # =========================================================================
    # Paths
    # =========================================================================
    def _direct_parents(self, term: str) -> List[str]:
        dictionary = self.ontology.dicts.get(ANCESTOR_TAG)
        if dictionary is None:
            return []
        parents = []
        for parent in dictionary.by_term.get(term, []):
            parent = self.ontology.get_canonical(parent)
            if parent != term and parent not in parents and self.ontology.term_exists(parent):
                parents.append(parent)
        return parents

    def calc_term_paths(self) -> None:
        """計算所有主要術語的路徑"""
        self.term_paths = {}
        if self.ontology.structure_type not in (StructureType.HIERARCHICAL, StructureType.SPARSE):
            logger.warning(
                "Ontology structure must be hierarchical or sparse to calculate term levels. "
                "Aborting paths calculation"
            )
            return

        for term in self.ontology.each():
            self.expand_path(term)
        for record in self.term_paths.values():
            record.update_stats()
        logger.info(f"Paths computed for {len(self.term_paths)} terms")

    def expand_path(self, term: str) -> TermPathRecord:
        """
        展開術語的所有路徑 (memoized)

        記錄在展開前就建立，父節點的路徑各自加上術語本身後串接
        """
        record = self.term_paths.get(term)
        if record is not None:
            return record

        record = TermPathRecord()
        self.term_paths[term] = record
        parents = self._direct_parents(term)
        if not parents:
            record.paths.append([term])
        else:
            for parent in parents:
                parent_record = self.expand_path(parent)
                record.paths.extend([term] + path for path in parent_record.paths)
        record.update_stats()
        return record

    def get_term_paths(self, term: str) -> Optional[TermPathRecord]:
        return self.term_paths.get(self.ontology.get_canonical(term))

    def get_parental_path(
        self,
        term: str,
        which_path: str = "shortest_path",
        level: int = 0,
    ) -> Optional[List[str]]:
        """
        術語到根 (或到指定層級) 的祖先路徑，不含術語本身

        Args:
            which_path: "shortest_path" 或 "largest_path"
            level: 大於 0 時只保留到該層級的祖先

        Returns:
            未知術語回傳 None，沒有路徑回傳空列表
        """
        if which_path not in PATH_LENGTH_FIELDS:
            raise ValueError(f"Path type not allowed: {which_path}")

        record = self.get_term_paths(term)
        if record is None:
            return None
        if not record.paths:
            return []

        path_length = getattr(record, which_path)
        path = list(next(p for p in record.paths if len(p) == path_length))
        if level > 0:
            n_parents = max(path_length - level, 0)
            path = path[:n_parents + 1]
        return path[1:]

    # =========================================================================
    # Levels
    # =========================================================================
    def calc_term_levels(self, calc_paths: bool = False, shortest_path: bool = True) -> None:
        """
        由路徑長度計算層級

        Args:
            calc_paths: 路徑尚未計算時先計算
            shortest_path: 使用最短路徑 (False 時使用最長路徑)
        """
        if not self.term_paths and calc_paths:
            self.calc_term_paths()
        if not self.term_paths:
            return

        self.term_levels = {}
        self.levels = {}
        for term, record in self.term_paths.items():
            length = record.shortest_path if shortest_path else record.largest_path
            level = -1 if length is None else int(round(length))
            self.term_levels[term] = level
            self.levels.setdefault(level, []).append(term)

        self.ontology.max_freqs.max_depth = float(max(self.levels))

    def get_term_level(self, term: str) -> Optional[int]:
        return self.term_levels.get(self.ontology.get_canonical(term))

    def get_terms_levels(self, terms: Iterable[str]) -> List[Tuple[str, Optional[int]]]:
        return [(term, self.get_term_level(term)) for term in terms]

    def get_ontology_levels(self) -> Dict[int, List[str]]:
        """層級 -> 術語列表 (副本)"""
        return {level: list(terms) for level, terms in self.levels.items()}


__all__ = [
    "TermPathIndex",
]
