"""
semtools Ontology Engine
========================
本體圖索引與語義度量引擎

負責:
- 建立索引: 別名解析 -> 祖先/後代閉包 -> 雙向字典
- 結構頻率與觀測頻率 (只以 canonical ID 儲存，別名透過 alias map 間接存取)
- 五種 Information Content 公式 (resnik, resnik_observed, seco, zhou, sanchez)
- ID <-> 名稱翻譯、直接父子查詢
- 子本體裁切 (mutate)、複製與比較

每個 Ontology 實例擁有自己的 SimilarityEngine、TermPathIndex 與 ProfileManager

版本: 1.0.0
"""
from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union

import numpy as np

from semtools.config import get_settings_manager
from semtools.core.types import (
    ANCESTOR_TAG,
    ICType,
    MaxFrequencies,
    SimilarityType,
    StructureType,
    TagMap,
    TermDictionary,
    TermMetadata,
)
from semtools.ontology.aliases import remove_terms, resolve_aliases
from semtools.ontology.dictionaries import build_dictionary
from semtools.ontology.loader import OBODocument, read_document
from semtools.ontology.paths import TermPathIndex
from semtools.ontology.profiles import ProfileManager
from semtools.ontology.relations import build_relation_index
from semtools.ontology.similarity import SimilarityEngine

logger = logging.getLogger(__name__)

ExtraDicts = Union[Mapping[str, Dict[str, Any]], Iterable[Tuple[str, Dict[str, Any]]]]


# =============================================================================
# Ontology Class
# =============================================================================
class Ontology:
    """
    本體引擎

    提供:
    - 術語存在 / 別名 / 過時查詢
    - 祖先、後代 (完整閉包) 與直接父子查詢
    - 結構頻率、觀測頻率與 IC
    - 字典翻譯
    - 相似度捷徑 (委派給 self.similarity)
    """

    def __init__(
        self,
        document: Optional[OBODocument] = None,
        removable_terms: Optional[Iterable[str]] = None,
        build: bool = True,
        extra_dicts: Optional[ExtraDicts] = None,
        reroot: bool = False,
    ):
        """
        Args:
            document: 解析後的 OBO 文件，None 時建立空本體 (供匯入狀態使用)
            removable_terms: 建立索引前移除的術語，預設取自設定
            build: 是否建立索引並預計算頻率與層級
            extra_dicts: 額外字典 {tag: calc_dictionary 參數}，預設取自設定
            reroot: 重新定根的子本體 (結構一律視為 sparse)
        """
        parser_settings = get_settings_manager().parser
        if removable_terms is None:
            removable_terms = parser_settings.removable_terms
        if extra_dicts is None:
            extra_dicts = parser_settings.extra_dictionaries

        document = document or OBODocument()
        self.source: Optional[Path] = document.source
        self.name: Optional[str] = document.name
        self.header: TagMap = copy.deepcopy(document.header)
        self.terms: Dict[str, TagMap] = copy.deepcopy(document.terms)
        self.typedefs: Dict[str, TagMap] = copy.deepcopy(document.typedefs)
        self.instances: Dict[str, TagMap] = copy.deepcopy(document.instances)

        self.removable_terms: List[str] = list(removable_terms)
        self.extra_dicts: List[Tuple[str, Dict[str, Any]]] = (
            list(extra_dicts.items()) if isinstance(extra_dicts, Mapping) else list(extra_dicts)
        )
        self.reroot = reroot

        self.similarity = SimilarityEngine(self)
        self.paths = TermPathIndex(self)
        self.profiles = ProfileManager(self)
        self._reset_indexes()

        remove_terms(self.terms, self.removable_terms)
        if build and self.terms:
            self.build_index()
            self.precompute()

    @classmethod
    def from_file(cls, path: Union[str, Path], **kwargs: Any) -> "Ontology":
        """從 OBO / OWL 檔案建立本體"""
        return cls(read_document(path), **kwargs)

    def _reset_indexes(self) -> None:
        self.alternatives_index: Dict[str, str] = {}
        self.obsoletes: Set[str] = set()
        self.ancestors_index: Dict[str, List[str]] = {}
        self.descendants_index: Dict[str, List[str]] = {}
        self.structure_type: Optional[StructureType] = None
        self.ics: Dict[ICType, Dict[str, float]] = {ic_type: {} for ic_type in ICType}
        self.meta: Dict[str, TermMetadata] = {}
        self.max_freqs = MaxFrequencies()
        self.dicts: Dict[str, TermDictionary] = {}
        self.paths.reset()
        self.similarity.reset()

    # =========================================================================
    # Index Build
    # =========================================================================
    def build_index(self) -> None:
        """解析別名、建立閉包索引與預設字典"""
        resolution = resolve_aliases(self.terms, self.removable_terms)
        self.alternatives_index = resolution.alternatives
        self.obsoletes = resolution.obsoletes

        relation_index = build_relation_index(
            self.terms,
            self.main_terms(),
            tag=ANCESTOR_TAG,
            alternatives=self.alternatives_index,
            removable_terms=self.removable_terms,
            reroot=self.reroot,
        )
        self.structure_type = relation_index.structure_type
        self.ancestors_index = relation_index.ancestors
        self.descendants_index = relation_index.descendants

        self.calc_dictionary("name")
        self.calc_dictionary("synonym", select_regex=r'"(.*)"')
        self.calc_dictionary(ANCESTOR_TAG, self_type_references=True, multiterm=True)
        for dict_tag, extra_parameters in self.extra_dicts:
            self.calc_dictionary(dict_tag, **extra_parameters)

        logger.info(
            f"Index built for {self.name or 'ontology'}: {len(self.terms)} stanzas, "
            f"{len(self.alternatives_index)} alternatives, structure {self.structure_type.value}"
        )

    def precompute(self) -> None:
        """計算結構頻率、路徑與層級"""
        self.get_index_frequencies()
        self.paths.calc_term_levels(calc_paths=True)

    # =========================================================================
    # Term Queries
    # =========================================================================
    def main_terms(self) -> List[str]:
        """canonical 且非過時的術語"""
        return [
            term for term in self.terms
            if term not in self.alternatives_index and term not in self.obsoletes
        ]

    def each(self, with_tags: bool = False, only_main: bool = True) -> Iterator[Any]:
        """
        遍歷術語

        Args:
            with_tags: 是否同時產生 tag map
            only_main: 是否略過別名與過時術語
        """
        if not self.terms:
            logger.warning("Ontology has no terms")
        for term, tags in self.terms.items():
            if only_main and (term in self.alternatives_index or term in self.obsoletes):
                continue
            yield (term, tags) if with_tags else term

    def term_exists(self, term: str) -> bool:
        return term in self.terms

    def is_obsolete(self, term: str) -> bool:
        return term in self.obsoletes

    def is_alternative(self, term: str) -> bool:
        return term in self.alternatives_index

    def get_canonical(self, term: str) -> str:
        """別名 -> canonical ID，其他 ID 原樣回傳"""
        return self.alternatives_index.get(term, term)

    def get_main_id(self, term: str) -> Optional[str]:
        """
        取得主要 ID

        Returns:
            非別名術語回傳自身；別名回傳 canonical (除非 canonical 已過時)；
            未知 ID 回傳 None
        """
        main_id = self.alternatives_index.get(term)
        if term not in self.terms and main_id is None and term not in self.obsoletes:
            return None
        if main_id is not None and main_id not in self.obsoletes:
            return main_id
        return term

    def check_ids(self, ids: Iterable[str], substitute: bool = True) -> Tuple[List[str], List[str]]:
        """
        檢查一組 ID

        Args:
            ids: 要檢查的 ID
            substitute: 是否以主要 ID 取代別名

        Returns:
            (接受的 ID, 拒絕的 ID)
        """
        checked, rejected = [], []
        for term in ids:
            main_id = self.get_main_id(term)
            if main_id is None:
                rejected.append(term)
            else:
                checked.append(main_id if substitute else term)
        return checked, rejected

    def get_root(self) -> List[str]:
        """沒有祖先的主要術語"""
        return [term for term in self.each() if term not in self.ancestors_index]

    def list_term_attributes(self) -> List[Tuple[str, Optional[str], Optional[int]]]:
        """(ID, 名稱, 層級) 列表"""
        return [
            (term, self.translate_id(term), self.paths.get_term_level(term))
            for term in self.each()
        ]

    # =========================================================================
    # Closures
    # =========================================================================
    def get_familiar(
        self,
        term: str,
        return_ancestors: bool = True,
        filter_alternatives: bool = False,
    ) -> List[str]:
        """祖先或後代閉包的副本，未知術語回傳空列表"""
        index = self.ancestors_index if return_ancestors else self.descendants_index
        familiars = list(index.get(self.get_canonical(term), []))
        if filter_alternatives:
            familiars = [t for t in familiars if t not in self.alternatives_index]
        return familiars

    def get_ancestors(self, term: str, filter_alternatives: bool = False) -> List[str]:
        return self.get_familiar(term, True, filter_alternatives)

    def get_descendants(self, term: str, filter_alternatives: bool = False) -> List[str]:
        return self.get_familiar(term, False, filter_alternatives)

    # =========================================================================
    # Direct Relations
    # =========================================================================
    def get_direct_related(
        self,
        term: str,
        relation: str,
        remove_alternatives: bool = False,
    ) -> Optional[List[str]]:
        """
        直接父節點 ("ancestor") 或直接子節點 ("descendant")

        Returns:
            相關術語列表；字典不存在、關係類型錯誤或沒有關係時回傳 None
        """
        dictionary = self.dicts.get(ANCESTOR_TAG)
        if dictionary is None:
            logger.warning("Hierarchy dictionary is not calculated yet, returning None")
            return None

        if relation == "ancestor":
            target = dictionary.by_term
        elif relation == "descendant":
            target = dictionary.by_value
        else:
            logger.warning(f"Relation type not allowed: {relation}, returning None")
            return None

        related = target.get(self.get_canonical(term))
        if related is None:
            return None
        related = list(related)
        if remove_alternatives:
            related, _ = self.profiles.remove_alternatives_from_profile(related)
        return related

    def get_direct_ancestors(self, term: str, remove_alternatives: bool = False) -> Optional[List[str]]:
        return self.get_direct_related(term, "ancestor", remove_alternatives)

    def get_direct_descendants(self, term: str, remove_alternatives: bool = False) -> Optional[List[str]]:
        return self.get_direct_related(term, "descendant", remove_alternatives)

    # =========================================================================
    # Frequencies
    # =========================================================================
    def get_index_frequencies(self) -> None:
        """
        由閉包計算結構頻率

        計數不含別名；struct_freq = descendants + 1
        """
        if not self.ancestors_index:
            logger.warning("Ancestors index is empty, structural frequencies not computed")
            return

        for term in self.terms:
            if term in self.alternatives_index:
                continue
            record = self.meta.get(term)
            if record is None:
                record = TermMetadata()
                self.meta[term] = record

            record.ancestors = float(sum(
                1 for t in self.ancestors_index.get(term, []) if t not in self.alternatives_index
            ))
            record.descendants = float(sum(
                1 for t in self.descendants_index.get(term, []) if t not in self.alternatives_index
            ))
            record.struct_freq = record.descendants + 1.0

            if self.max_freqs.struct_freq < record.struct_freq:
                self.max_freqs.struct_freq = record.struct_freq
            if self.max_freqs.max_depth < record.descendants:
                self.max_freqs.max_depth = record.descendants

        logger.info(f"Structural frequencies computed for {len(self.meta)} terms")

    def add_observed_term(self, term: str, increase: float = 1.0) -> bool:
        """
        增加術語的觀測頻率 (別名寫入 canonical 記錄)

        Returns:
            術語不存在時回傳 False
        """
        if not self.term_exists(term):
            return False
        term = self.get_canonical(term)

        record = self.meta.get(term)
        if record is None:
            record = TermMetadata(ancestors=-1.0, descendants=-1.0, struct_freq=0.0, observed_freq=0.0)
            self.meta[term] = record

        if record.observed_freq == -1:
            record.observed_freq = 0.0
        record.observed_freq += increase

        if self.max_freqs.observed_freq < record.observed_freq:
            self.max_freqs.observed_freq = record.observed_freq
        return True

    def add_observed_terms(self, terms: Iterable[str], increase: float = 1.0) -> List[bool]:
        return [self.add_observed_term(term, increase) for term in terms]

    def reset_observed_frequencies(self, value: float = -1.0) -> None:
        """將所有觀測頻率與觀測最大值設為指定值"""
        for record in self.meta.values():
            record.observed_freq = value
        self.max_freqs.observed_freq = value
        self.invalidate_ics(ICType.RESNIK_OBSERVED)

    def get_frequency(self, term: str, freq_type: str = "struct_freq") -> Optional[float]:
        """
        取得術語頻率

        Args:
            freq_type: "struct_freq" 或 "observed_freq"
        """
        if freq_type not in ("struct_freq", "observed_freq"):
            raise ValueError(f"Frequency type not allowed: {freq_type}")
        record = self.meta.get(self.get_canonical(term))
        return None if record is None else getattr(record, freq_type)

    def get_structural_frequency(self, term: str) -> Optional[float]:
        return self.get_frequency(term, "struct_freq")

    def get_observed_frequency(self, term: str) -> Optional[float]:
        return self.get_frequency(term, "observed_freq")

    # =========================================================================
    # Information Content
    # =========================================================================
    def get_ic(
        self,
        term: str,
        ic_type: Union[str, ICType, None] = None,
        force: bool = False,
        zhou_k: Optional[float] = None,
    ) -> float:
        """
        計算術語的 Information Content

        Args:
            term: 術語 (別名讀取 canonical 的值)
            ic_type: IC 公式，預設取自設定
            force: 忽略快取重新計算
            zhou_k: zhou 公式的係數，預設取自設定

        Returns:
            IC 值 (頻率為 0 時為 inf，0/0 時為 nan)
        """
        metrics = get_settings_manager().metrics
        ic_type = ICType.parse(ic_type or metrics.ic_type)
        term = self.get_canonical(term)

        cache = self.ics[ic_type]
        if term in cache and not force:
            return cache[term]

        record = self.meta.get(term)
        if record is None:
            raise KeyError(f"No frequency metadata for term {term}, run precompute() first")

        with np.errstate(divide="ignore", invalid="ignore"):
            if ic_type == ICType.RESNIK:
                ic = -np.log10(np.divide(record.struct_freq, self.max_freqs.struct_freq))
            elif ic_type == ICType.RESNIK_OBSERVED:
                ic = -np.log10(np.divide(record.observed_freq, self.max_freqs.observed_freq))
            elif ic_type == ICType.SECO:
                n_terms = len(self.terms) - len(self.alternatives_index)
                ic = 1.0 - np.divide(np.log10(record.struct_freq), np.log10(n_terms))
            elif ic_type == ICType.ZHOU:
                k = metrics.zhou_k if zhou_k is None else zhou_k
                seco = self.get_ic(term, ICType.SECO, force=force)
                depth = np.divide(np.log10(record.descendants), np.log10(self.max_freqs.max_depth))
                ic = k * seco + (1.0 - k) * depth
            else:
                ratio = np.divide(record.descendants, record.ancestors) + 1.0
                ic = -np.log10(np.divide(ratio, self.max_freqs.max_depth + 1.0))

        ic = float(ic)
        cache[term] = ic
        return ic

    def invalidate_ics(self, ic_type: Union[str, ICType, None] = None) -> None:
        """清除 IC 快取 (None 表示全部)"""
        if ic_type is None:
            for cache in self.ics.values():
                cache.clear()
        else:
            self.ics[ICType.parse(ic_type)].clear()

    # =========================================================================
    # Dictionaries & Translation
    # =========================================================================
    def calc_dictionary(
        self,
        tag: str,
        select_regex: Optional[str] = None,
        store_tag: Optional[str] = None,
        multiterm: bool = False,
        self_type_references: bool = False,
    ) -> TermDictionary:
        """以 tag 建立雙向字典並存入 self.dicts"""
        dictionary = build_dictionary(
            ((term, self.terms[term]) for term in self.main_terms()),
            tag,
            select_regex=select_regex,
            multiterm=multiterm,
            self_type_references=self_type_references,
            exists=self.term_exists,
            alternatives=self.alternatives_index,
        )
        self.dicts[store_tag or tag] = dictionary
        return dictionary

    def translate(self, value: str, tag: str, by_value: bool = True) -> Any:
        """
        以字典翻譯

        Args:
            value: 要翻譯的值 (by_value) 或術語 ID
            tag: 字典名稱
            by_value: True 為值 -> 術語，False 為術語 -> 值列表
        """
        dictionary = self.dicts.get(tag)
        if dictionary is None:
            raise ValueError(f"Dictionary {tag} is not calculated")
        if by_value:
            return dictionary.by_value.get(value)
        return dictionary.by_term.get(self.get_main_id(value))

    def translate_name(self, name: str) -> Optional[str]:
        """名稱 -> ID，找不到時改用同義詞"""
        term = self.translate(name, "name")
        if term is None:
            term = self.translate(name, "synonym")
        return term

    def translate_names(self, names: Iterable[str]) -> Tuple[List[str], List[str]]:
        translated, rejected = [], []
        for name in names:
            term = self.translate_name(name)
            if term is None:
                rejected.append(name)
            else:
                translated.append(term)
        return translated, rejected

    def translate_id(self, term: str) -> Optional[str]:
        """ID -> 主要名稱"""
        names = self.translate(term, "name", by_value=False)
        return names[0] if names else None

    def translate_ids(self, terms: Iterable[str]) -> Tuple[List[str], List[str]]:
        translated, rejected = [], []
        for term in terms:
            name = self.translate_id(term)
            if name is None:
                rejected.append(term)
            else:
                translated.append(name)
        return translated, rejected

    # =========================================================================
    # Similarity Shortcuts
    # =========================================================================
    def get_lca(self, term_a: str, term_b: str) -> List[str]:
        return self.similarity.get_lca(term_a, term_b)

    def get_mica(
        self,
        term_a: str,
        term_b: str,
        ic_type: Union[str, ICType, None] = None,
    ) -> Tuple[Optional[str], float]:
        return self.similarity.get_mica(term_a, term_b, ic_type)

    def get_icmica(
        self,
        term_a: str,
        term_b: str,
        ic_type: Union[str, ICType, None] = None,
    ) -> Optional[float]:
        return self.similarity.get_icmica(term_a, term_b, ic_type)

    def get_similarity(
        self,
        term_a: str,
        term_b: str,
        sim_type: Union[str, SimilarityType, None] = None,
        ic_type: Union[str, ICType, None] = None,
    ) -> Optional[float]:
        return self.similarity.get_similarity(term_a, term_b, sim_type, ic_type)

    def compare(
        self,
        terms_a: List[str],
        terms_b: List[str],
        sim_type: Union[str, SimilarityType, None] = None,
        ic_type: Union[str, ICType, None] = None,
        bidirectional: Optional[bool] = None,
        store_mica: bool = False,
    ) -> float:
        return self.similarity.compare(terms_a, terms_b, sim_type, ic_type, bidirectional, store_mica)

    # =========================================================================
    # Structure Operations
    # =========================================================================
    @classmethod
    def mutate(
        cls,
        root: str,
        ontology: "Ontology",
        clone: bool = True,
        remove_up: bool = True,
    ) -> "Ontology":
        """
        裁切子本體

        Args:
            root: 子本體的根
            ontology: 來源本體
            clone: 是否保留來源本體 (False 時就地修改)
            remove_up: True 保留 root 與其後代；False 保留其餘術語與 root

        Returns:
            重新建立索引 (reroot, 結構為 sparse) 的本體
        """
        if clone:
            ontology = ontology.clone()

        root = ontology.get_canonical(root)
        branch = set(ontology.get_descendants(root))
        branch.add(root)

        terms = {}
        for term, tags in ontology.terms.items():
            # Alias stanzas are synthesized again by the rebuild
            if tags.get("id", term) != term:
                continue
            in_branch = ontology.get_canonical(term) in branch
            if in_branch == remove_up or term == root:
                terms[term] = tags

        for tags in terms.values():
            parents = tags.get(ANCESTOR_TAG)
            if parents is None:
                continue
            kept = [p for p in parents if ontology.get_canonical(p) in terms]
            if kept:
                tags[ANCESTOR_TAG] = kept
            else:
                del tags[ANCESTOR_TAG]

        ontology.terms = terms
        ontology.reroot = True
        ontology._reset_indexes()
        ontology.profiles.items = {}

        ontology.build_index()
        ontology.precompute()
        ontology.profiles.add_observed_terms_from_profiles(reset=True)
        logger.info(f"Ontology mutated from root {root}: {len(terms)} terms kept")
        return ontology

    def clone(self) -> "Ontology":
        """深度複製所有索引"""
        return copy.deepcopy(self)

    def _state(self) -> Tuple[Any, ...]:
        return (
            self.terms,
            self.ancestors_index,
            self.descendants_index,
            self.alternatives_index,
            self.obsoletes,
            self.structure_type,
            self.ics,
            self.meta,
            self.max_freqs,
            self.dicts,
            self.profiles.profiles,
            self.profiles.items,
            self.paths.term_paths,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ontology):
            return NotImplemented
        return self._state() == other._state()

    __hash__ = None

    def __repr__(self) -> str:
        structure = self.structure_type.value if self.structure_type else None
        return f"Ontology({self.name}, terms={len(self.terms)}, structure={structure})"


__all__ = [
    "Ontology",
]
