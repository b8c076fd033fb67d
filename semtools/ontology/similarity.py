"""
semtools Similarity Engine
==========================
以 MICA (Most Informative Common Ancestor) 為基礎的語義相似度

支援:
- resnik: MICA 的 IC
- lin: 2 * IC(MICA) / (IC(A) + IC(B))
- jiang_conrath: IC(A) + IC(B) - 2 * IC(MICA)，為距離 (越小越相似)

版本: 1.0.0
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Mapping, Optional, Set, Tuple, Union

import numpy as np

from semtools.config import get_settings_manager
from semtools.core.types import ICType, ProfileID, SimilarityType

if TYPE_CHECKING:
    from semtools.ontology.hierarchy import Ontology

logger = logging.getLogger(__name__)

Mica = Tuple[Optional[str], float]
PairIndex = Set[Tuple[str, str]]


class SimilarityEngine:
    """
    術語與術語集合的相似度計算

    mica_index 由 build_mica_index 建立，compare(store_mica=True) 直接讀取；
    None 代表已計算但沒有共同祖先
    """

    def __init__(self, ontology: "Ontology"):
        self.ontology = ontology
        self.mica_index: Dict[str, Dict[str, Optional[float]]] = {}

    def reset(self) -> None:
        self.mica_index = {}

    # =========================================================================
    # Common Ancestors
    # =========================================================================
    def get_lca(self, term_a: str, term_b: str) -> List[str]:
        """
        共同祖先 (包含術語本身)

        順序依 ancestors(A) + [A] 的列舉順序
        """
        ancestors_a = self.ontology.get_ancestors(term_a)
        ancestors_b = self.ontology.get_ancestors(term_b)
        if not ancestors_a and not ancestors_b:
            return []
        ancestors_a.append(term_a)
        ancestors_b.append(term_b)
        shared = set(ancestors_b)
        lca = []
        for term in ancestors_a:
            if term in shared and term not in lca:
                lca.append(term)
        return lca

    def get_mica(
        self,
        term_a: str,
        term_b: str,
        ic_type: Union[str, ICType, None] = None,
    ) -> Mica:
        """
        最具資訊量的共同祖先

        兩個 canonical ID 先排序，同 IC 時的結果與參數順序無關

        Returns:
            (MICA, IC)；沒有共同祖先或術語不存在時為 (None, -1.0)
        """
        term_a, term_b = sorted((self.ontology.get_canonical(term_a), self.ontology.get_canonical(term_b)))
        if term_a not in self.ontology.meta or term_b not in self.ontology.meta:
            return None, -1.0
        if term_a == term_b:
            return term_a, self.ontology.get_ic(term_a, ic_type)

        mica: Mica = (None, -1.0)
        for lca in self.get_lca(term_a, term_b):
            ic = self.ontology.get_ic(lca, ic_type)
            # Strict comparison: the first term reaching the maximum wins
            if ic > mica[1]:
                mica = (lca, ic)
        return mica

    def get_icmica(
        self,
        term_a: str,
        term_b: str,
        ic_type: Union[str, ICType, None] = None,
    ) -> Optional[float]:
        term, ic = self.get_mica(term_a, term_b, ic_type)
        return None if term is None else ic

    def get_maxmica_term2profile(self, ref_term: str, profile: List[str]) -> Mica:
        """術語與 profile 各術語的 MICA 中 IC 最大者"""
        micas = [self.get_mica(ref_term, term) for term in profile]
        if not micas:
            return None, -1.0
        maxmica = micas[0]
        for mica in micas:
            if mica[1] > maxmica[1]:
                maxmica = mica
        return maxmica

    # =========================================================================
    # Term Similarity
    # =========================================================================
    def get_similarity(
        self,
        term_a: str,
        term_b: str,
        sim_type: Union[str, SimilarityType, None] = None,
        ic_type: Union[str, ICType, None] = None,
    ) -> Optional[float]:
        """
        兩個術語的相似度

        Returns:
            相似度 (jiang_conrath 為距離)；沒有 MICA 時為 None
        """
        sim_type = SimilarityType.parse(sim_type or get_settings_manager().metrics.sim_type)
        mica, mica_ic = self.get_mica(term_a, term_b, ic_type)
        if mica is None:
            return None

        if sim_type == SimilarityType.RESNIK:
            return mica_ic

        ic_a = self.ontology.get_ic(term_a, ic_type)
        ic_b = self.ontology.get_ic(term_b, ic_type)
        if sim_type == SimilarityType.LIN:
            with np.errstate(divide="ignore", invalid="ignore"):
                return float(np.divide(2.0 * mica_ic, ic_a + ic_b))
        # Jiang-Conrath is a distance
        return (ic_a + ic_b) - 2.0 * mica_ic

    # =========================================================================
    # Set Similarity
    # =========================================================================
    def compare(
        self,
        terms_a: List[str],
        terms_b: List[str],
        sim_type: Union[str, SimilarityType, None] = None,
        ic_type: Union[str, ICType, None] = None,
        bidirectional: Optional[bool] = None,
        store_mica: bool = False,
    ) -> float:
        """
        比較兩個術語集合

        A 的每個術語取對 B 的最大相似度 (沒有值時為 0) 後平均；
        bidirectional 時以兩個集合大小加權平均兩個方向

        Args:
            store_mica: 從 mica_index 讀取相似度而不重新計算
        """
        if terms_a is None or terms_b is None:
            raise ValueError("Terms sets given are None")
        if not terms_a or not terms_b:
            raise ValueError("Set given is empty. Aborting similarity calc")
        if bidirectional is None:
            bidirectional = get_settings_manager().metrics.bidirectional

        maxima = []
        for term_a in terms_a:
            values = []
            for term_b in terms_b:
                if store_mica:
                    value = self.mica_index[term_a][term_b]
                else:
                    value = self.get_similarity(term_a, term_b, sim_type, ic_type)
                if isinstance(value, float):
                    values.append(value)
            maxima.append(max(values) if values else 0.0)
        mean_sim = sum(maxima) / len(maxima)

        if bidirectional:
            mean_sim_b = self.compare(
                terms_b, terms_a, sim_type, ic_type,
                bidirectional=False, store_mica=store_mica,
            )
            mean_sim = (mean_sim * len(terms_a) + mean_sim_b * len(terms_b)) / (len(terms_a) + len(terms_b))
        return mean_sim

    # =========================================================================
    # Pair / MICA Index
    # =========================================================================
    @staticmethod
    def get_pair_index(
        profiles_a: Mapping[ProfileID, Iterable[str]],
        profiles_b: Mapping[ProfileID, Iterable[str]],
    ) -> PairIndex:
        """兩組 profile 之間所有術語對 (排序後去重)"""
        pair_index: PairIndex = set()
        for profile_a in profiles_a.values():
            for profile_b in profiles_b.values():
                for term_a in profile_a:
                    for term_b in profile_b:
                        pair_index.add(tuple(sorted((term_a, term_b))))
        return pair_index

    def build_mica_index(
        self,
        pair_index: PairIndex,
        sim_type: Union[str, SimilarityType, None] = None,
        ic_type: Union[str, ICType, None] = None,
    ) -> Dict[str, Dict[str, Optional[float]]]:
        """為所有術語對預先計算相似度 (雙向存放)"""
        self.mica_index = {}
        for term_a, term_b in pair_index:
            value = self.get_similarity(term_a, term_b, sim_type, ic_type)
            self.mica_index.setdefault(term_a, {})[term_b] = value
            self.mica_index.setdefault(term_b, {})[term_a] = value
        logger.debug(f"MICA index built for {len(pair_index)} term pairs")
        return self.mica_index


__all__ = [
    "SimilarityEngine",
]
