"""
semtools Profile Manager
========================
profile (具名術語集合) 的儲存、清理、擴展與統計

功能:
- 儲存 / 驗證 profile，拒絕未知 ID (警告，不中斷)
- 觀測頻率: 由所有 profile 重新計算
- 清理: 移除冗餘祖先、已有 canonical 的別名、過時術語
- 擴展: 加入祖先 (parental) 或由子節點推論 items (propagate)
- 統計: 大小分佈、百分位數、IC 摘要、層級分佈、資料集專一性指數
- profile 兩兩比較 (預先建立 MICA 索引)

版本: 1.0.0
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

from semtools.config import get_settings_manager
from semtools.config.settings import ProfileSettings
from semtools.core.types import ICType, ProfileID, SimilarityType, StructureType
from semtools.ontology.relations import ordered_union
from semtools.utils.statistics import describe, value_at_percentile

if TYPE_CHECKING:
    from semtools.ontology.hierarchy import Ontology

logger = logging.getLogger(__name__)

ProfileInput = Union[Mapping[ProfileID, Iterable[str]], Sequence[Iterable[str]]]
LevelRow = List[Union[int, float]]


def _unique(values: Iterable[Any]) -> List[Any]:
    return ordered_union([], values)


def _percentage(part: int, total: int) -> float:
    return round(part / total * 100, 3) if total else 0.0


class ProfileManager:
    """
    profile 管理器

    profiles: profile ID -> 術語列表
    items: 術語 -> 關聯的外部項目 (profile ID 或其他 ID)
    """

    def __init__(self, ontology: "Ontology"):
        self.ontology = ontology
        self.profiles: Dict[ProfileID, List[str]] = {}
        self.items: Dict[str, List[Any]] = {}

    @property
    def settings(self) -> ProfileSettings:
        return get_settings_manager().profiles

    # =========================================================================
    # Storage
    # =========================================================================
    def add_profile(
        self,
        profile_id: ProfileID,
        terms: Iterable[str],
        substitute: Optional[bool] = None,
    ) -> List[str]:
        """
        儲存 profile (已存在時取代)

        Args:
            profile_id: profile ID
            terms: 術語列表
            substitute: 以主要 ID 取代別名，預設取自設定

        Returns:
            被拒絕的 ID
        """
        if substitute is None:
            substitute = self.settings.substitute
        if profile_id in self.profiles:
            logger.warning(f"Profile assigned to ID ({profile_id}) is going to be replaced")

        correct_terms, rejected_terms = self.ontology.check_ids(terms, substitute=substitute)
        if rejected_terms:
            logger.warning(
                f"Given terms contains erroneous IDs: {','.join(map(str, rejected_terms))}. "
                f"These IDs will be removed"
            )
        self.profiles[profile_id] = correct_terms
        return rejected_terms

    def load_profiles(
        self,
        profiles: ProfileInput,
        calc_metadata: bool = True,
        reset_stored: bool = False,
        substitute: bool = False,
    ) -> None:
        """
        批次儲存 profile 並重新計算觀測頻率

        Args:
            profiles: dict (ID -> 術語) 或列表 (ID 為 0..n-1)
            calc_metadata: 是否建立 items 索引
            reset_stored: 是否先清除已儲存的 profile
            substitute: 以主要 ID 取代別名
        """
        if reset_stored:
            self.reset_profiles()

        if isinstance(profiles, Mapping):
            if any(profile_id in self.profiles for profile_id in profiles):
                logger.warning("Some profiles given are already stored. Stored version will be replaced")
            for profile_id, terms in profiles.items():
                self.add_profile(profile_id, terms, substitute=substitute)
        else:
            for index, terms in enumerate(profiles):
                self.add_profile(index, terms, substitute=substitute)

        self.add_observed_terms_from_profiles(reset=True)
        if calc_metadata:
            self.get_items_from_profiles()
        logger.info(f"{len(self.profiles)} profiles stored")

    def reset_profiles(self) -> None:
        """清除 profile，觀測頻率歸零"""
        self.profiles = {}
        self.ontology.reset_observed_frequencies(0.0)

    def get_profile(self, profile_id: ProfileID) -> Optional[List[str]]:
        return self.profiles.get(profile_id)

    # =========================================================================
    # Sizes
    # =========================================================================
    def get_profiles_sizes(self) -> List[int]:
        return [len(terms) for terms in self.profiles.values()]

    def get_profiles_mean_size(self, round_digits: Optional[int] = None) -> Optional[float]:
        if not self.profiles:
            return None
        if round_digits is None:
            round_digits = self.settings.mean_size_round_digits
        return round(sum(self.get_profiles_sizes()) / len(self.profiles), round_digits)

    def get_profile_length_at_percentile(
        self,
        perc: float = 50,
        increasing_sort: bool = False,
    ) -> Optional[int]:
        """
        百分位數位置的 profile 長度

        Args:
            perc: 百分位數 (0-100)
            increasing_sort: 遞增排序 (預設遞減)
        """
        return value_at_percentile(self.get_profiles_sizes(), perc, increasing_sort)

    def profile_stats(self) -> Dict[str, Optional[float]]:
        """profile 大小的描述統計"""
        return describe(self.get_profiles_sizes())

    # =========================================================================
    # Translation
    # =========================================================================
    def profile_names(self, profile: Iterable[str]) -> List[Optional[str]]:
        return [self.ontology.translate_id(term) for term in profile]

    def translate_profiles_ids(
        self,
        profiles: Optional[Union[Mapping[ProfileID, List[str]], Sequence[List[str]]]] = None,
        as_array: bool = True,
    ) -> Union[List[List[Optional[str]]], Dict[ProfileID, List[Optional[str]]]]:
        """
        將 profile 翻譯為名稱

        Args:
            profiles: 要翻譯的 profile，預設為已儲存的 profile
            as_array: True 回傳名稱列表的列表，False 回傳 dict
        """
        if not profiles:
            to_process = self.profiles
        elif isinstance(profiles, Mapping):
            to_process = profiles
        else:
            to_process = dict(enumerate(profiles))

        names = {profile_id: self.profile_names(terms) for profile_id, terms in to_process.items()}
        return list(names.values()) if as_array else names

    # =========================================================================
    # Frequencies
    # =========================================================================
    def add_observed_terms_from_profiles(self, reset: bool = False) -> None:
        """所有 profile 中的術語計入觀測頻率"""
        if reset:
            self.ontology.reset_observed_frequencies(-1.0)
        for terms in self.profiles.values():
            self.ontology.add_observed_terms(terms)

    def get_profiles_terms_frequency(
        self,
        ratio: bool = True,
        as_array: bool = True,
        translate: bool = True,
    ) -> Union[List[Tuple[str, float]], Dict[str, float]]:
        """
        profile 中術語 (字面) 出現次數

        Args:
            ratio: 除以 profile 數
            as_array: 回傳依頻率遞減排序的 (術語, 頻率) 列表
            translate: 以名稱取代 ID (無法翻譯的術語略過)
        """
        freqs: Dict[str, float] = {}
        for terms in self.profiles.values():
            for term in terms:
                freqs[term] = freqs.get(term, 0) + 1

        if translate:
            translated = {}
            for term, freq in freqs.items():
                name = self.ontology.translate_id(term)
                if name is not None:
                    translated[name] = freq
            freqs = translated

        if ratio:
            n_profiles = len(self.profiles)
            freqs = {term: freq / n_profiles for term, freq in freqs.items()}

        if as_array:
            return sorted(freqs.items(), key=lambda pair: pair[1], reverse=True)
        return freqs

    # =========================================================================
    # Cleaning
    # =========================================================================
    def remove_ancestors_from_profile(self, profile: List[str]) -> Tuple[List[str], List[str]]:
        """
        移除是其他成員祖先的術語

        Returns:
            (保留的術語, 移除的術語)
        """
        ancestors = set()
        for term in profile:
            ancestors.update(self.ontology.get_ancestors(term))
        redundant = _unique(term for term in profile if term in ancestors)
        kept = [term for term in profile if term not in ancestors]
        return kept, redundant

    def remove_alternatives_from_profile(self, profile: List[str]) -> Tuple[List[str], List[str]]:
        """
        移除 canonical 已在 profile 中的別名

        Returns:
            (保留的術語, 移除的術語)
        """
        alternatives_index = self.ontology.alternatives_index
        redundant = _unique(
            term for term in profile
            if term in alternatives_index and alternatives_index[term] in profile
        )
        kept = [term for term in profile if term not in redundant]
        return kept, redundant

    def clean_profile(self, profile: List[str], remove_alternatives: Optional[bool] = None) -> List[str]:
        """移除冗餘祖先，並視需要移除別名"""
        if remove_alternatives is None:
            remove_alternatives = self.settings.remove_alternatives
        if self.ontology.structure_type == StructureType.CIRCULAR:
            logger.warning("Structure is circular, behaviour could not be which is expected")

        terms, _ = self.remove_ancestors_from_profile(profile)
        if remove_alternatives:
            terms, _ = self.remove_alternatives_from_profile(terms)
        return terms

    def clean_profile_hard(self, profile: List[str], term_filter: Optional[str] = None) -> List[str]:
        """
        嚴格清理

        檢查並替換 ID -> 移除過時術語 -> (可選) 只保留 term_filter 的後代 ->
        去重 -> clean_profile
        """
        profile, _ = self.ontology.check_ids(profile)
        profile = [term for term in profile if not self.ontology.is_obsolete(term)]
        if term_filter is not None:
            profile = [term for term in profile if term_filter in self.ontology.get_ancestors(term)]
        return self.clean_profile(_unique(profile))

    def clean_profile_by_score(
        self,
        profile: List[str],
        scores: Mapping[str, float],
        by_max: bool = True,
        remove_without_score: bool = True,
    ) -> List[str]:
        """
        以分數在祖先/後代之間擇一保留

        Args:
            scores: 術語 -> 分數
            by_max: 保留分數最高者 (False 時保留最低者)
            remove_without_score: 移除沒有分數的術語
        """
        ranked = [term for term, _ in sorted(scores.items(), key=lambda pair: pair[1])]
        keep = []
        for term in profile:
            if term in scores:
                parentals = self.ontology.get_ancestors(term) + self.ontology.get_descendants(term)
                targetable = [parent for parent in parentals if parent in profile]
                if not targetable:
                    keep.append(term)
                    continue
                targetable.append(term)
                targets = [t for t in ranked if t in targetable]
                keep.append(targets[-1] if by_max else targets[0])
            elif not remove_without_score:
                keep.append(term)
        return _unique(keep)

    def clean_profiles(
        self,
        store: bool = False,
        remove_alternatives: Optional[bool] = None,
    ) -> Dict[ProfileID, List[str]]:
        """清理所有 profile，store=True 時取代已儲存的版本"""
        cleaned = {
            profile_id: self.clean_profile(terms, remove_alternatives=remove_alternatives)
            for profile_id, terms in self.profiles.items()
        }
        if store:
            self.profiles = cleaned
        return cleaned

    # =========================================================================
    # Redundancy
    # =========================================================================
    def parentals_per_profile(self) -> List[int]:
        """每個 profile 中冗餘祖先的數量"""
        cleaned = self.clean_profiles(remove_alternatives=False)
        return [len(terms) - len(cleaned[profile_id]) for profile_id, terms in self.profiles.items()]

    def get_profile_redundancy(self) -> Tuple[List[int], List[int]]:
        """(profile 大小, 冗餘祖先數)，依大小遞減排序"""
        pairs = sorted(
            zip(self.get_profiles_sizes(), self.parentals_per_profile()),
            key=lambda pair: pair[0],
            reverse=True,
        )
        if not pairs:
            return [], []
        sizes, parentals = zip(*pairs)
        return list(sizes), list(parentals)

    def get_childs_table(
        self,
        terms: Iterable[str],
        filter_alternatives: bool = False,
    ) -> List[Tuple[Tuple[str, Optional[str]], List[Tuple[str, Optional[str]]]]]:
        """[(術語, 名稱), [(後代, 名稱), ...]] 列表"""
        table = []
        for term in terms:
            childs = [
                (child, self.ontology.translate_id(child))
                for child in self.ontology.get_descendants(term, filter_alternatives)
            ]
            table.append(((term, self.ontology.translate_id(term)), childs))
        return table

    def compute_term_list_and_childs(self) -> Tuple[Dict[ProfileID, List[Any]], float]:
        """
        每個 profile 術語的更專一子節點

        Returns:
            (profile ID -> childs table, 有子節點的術語比例)
        """
        suggested_childs = {}
        total_terms = 0
        terms_with_childs = 0
        for profile_id, terms in self.profiles.items():
            total_terms += len(terms)
            childs_table = self.get_childs_table(terms, True)
            terms_with_childs += sum(1 for _, childs in childs_table if childs)
            suggested_childs[profile_id] = childs_table
        ratio = terms_with_childs / total_terms if total_terms else 0.0
        return suggested_childs, ratio

    # =========================================================================
    # IC Summaries
    # =========================================================================
    def get_profile_mean_ic(
        self,
        profile: List[str],
        ic_type: Union[str, ICType, None] = None,
        zhou_k: Optional[float] = None,
    ) -> Optional[float]:
        if not profile:
            return None
        ics = [self.ontology.get_ic(term, ic_type, zhou_k=zhou_k) for term in profile]
        return sum(ics) / len(ics)

    def get_profiles_resnik_dual_ics(
        self,
        struct: Union[str, ICType] = ICType.RESNIK,
        observ: Union[str, ICType] = ICType.RESNIK_OBSERVED,
    ) -> Tuple[Dict[ProfileID, Optional[float]], Dict[ProfileID, Optional[float]]]:
        """每個 profile 的平均結構 IC 與平均觀測 IC"""
        struct_ics = {}
        observ_ics = {}
        for profile_id, terms in self.profiles.items():
            struct_ics[profile_id] = self.get_profile_mean_ic(terms, ic_type=struct)
            observ_ics[profile_id] = self.get_profile_mean_ic(terms, ic_type=observ)
        return struct_ics, observ_ics

    def get_observed_ics_by_onto_and_freq(self) -> Tuple[Dict[str, float], Dict[str, float]]:
        """profile 中出現的術語: (resnik IC, resnik_observed IC)"""
        ic_ont = {}
        resnik_observed = {}
        for terms in self.profiles.values():
            for term in terms:
                if term in ic_ont:
                    continue
                ic_ont[term] = self.ontology.get_ic(term, ICType.RESNIK)
                resnik_observed[term] = self.ontology.get_ic(term, ICType.RESNIK_OBSERVED)
        return ic_ont, resnik_observed

    # =========================================================================
    # Items
    # =========================================================================
    def get_items_from_profiles(self) -> None:
        """術語 -> 包含該術語的 profile ID"""
        for profile_id, terms in self.profiles.items():
            for term in terms:
                linked = self.items.setdefault(term, [])
                if profile_id not in linked:
                    linked.append(profile_id)

    def get_profiles_from_items(self) -> None:
        """由 items 重建 profile"""
        new_profiles: Dict[ProfileID, List[str]] = {}
        for term, ids in self.items.items():
            for profile_id in ids:
                new_profiles.setdefault(profile_id, []).append(term)
        self.profiles = new_profiles

    def get_items_from_term(self, term: str) -> Optional[List[Any]]:
        return self.items.get(term)

    def load_item_relations_to_terms(
        self,
        relations: Mapping[str, List[Any]],
        remove_old_relations: bool = False,
        expand: bool = False,
    ) -> None:
        """
        儲存術語 -> 項目關聯

        Args:
            relations: 術語 -> 項目列表 (未知術語仍會儲存)
            remove_old_relations: 先清除已儲存的關聯
            expand: 與已存在的關聯合併 (False 時覆寫)
        """
        if remove_old_relations:
            self.items = {}
        if any(not self.ontology.term_exists(term) for term in relations):
            logger.warning(
                "Some terms specified are not stored into this ontology. "
                "These not correct terms will be stored too"
            )
        if expand:
            self.items = self.concat_items(self.items, dict(relations))
        else:
            self.items.update(relations)

    def concat_items(self, item_a: Any, item_b: Any) -> Any:
        """
        合併兩個項目

        list + list -> 有序聯集；dict + dict -> 逐 key 合併；
        單值 + list 或單值 -> 去重列表
        """
        if isinstance(item_a, list) and isinstance(item_b, list):
            return ordered_union(item_a, item_b)
        if isinstance(item_a, dict) and isinstance(item_b, dict):
            merged = dict(item_a)
            for key, value in item_b.items():
                merged[key] = self.concat_items(merged[key], value) if key in merged else value
            return merged
        if isinstance(item_a, (list, dict)) or isinstance(item_b, dict):
            raise TypeError(
                f"Cannot concatenate {type(item_a).__name__} with {type(item_b).__name__}"
            )
        if isinstance(item_b, list):
            return _unique([item_a] + item_b)
        return _unique([item_a, item_b])

    def set_items_from_dict(self, dict_id: str, remove_old_relations: bool = False) -> None:
        """以已計算字典的 by_term 作為 items"""
        if remove_old_relations:
            self.items = {}
        dictionary = self.ontology.dicts.get(dict_id)
        if dictionary is None:
            logger.warning(f"Dictionary {dict_id} is not calculated. It will not be added as an items set")
            return
        self.items.update({term: list(values) for term, values in dictionary.by_term.items()})

    # =========================================================================
    # Expansion
    # =========================================================================
    def expand_profile_with_parents(self, profile: Iterable[str]) -> List[str]:
        """加入所有祖先 (祖先在前，原術語在後)"""
        profile = list(profile)
        new_terms: List[str] = []
        for term in profile:
            new_terms = ordered_union(new_terms, self.ontology.get_ancestors(term))
        return ordered_union(new_terms, profile)

    def expand_profiles(
        self,
        method: str,
        unwanted_terms: Iterable[str] = (),
        calc_metadata: bool = True,
        ontology: Optional["Ontology"] = None,
        minimum_childs: int = 1,
        clean_profiles: bool = True,
    ) -> None:
        """
        擴展已儲存的 profile

        Args:
            method: "parental" (加入祖先) 或 "propagate" (由子節點推論 items)
            unwanted_terms: parental 擴展後移除的術語
            calc_metadata: parental 擴展後重建 items
            ontology: propagate 時以另一本體的 MICA 判斷項目一致
            minimum_childs: propagate 所需的最少子節點數
            clean_profiles: propagate 後以 ontology 清理 items
        """
        if method == "parental":
            unwanted = set(unwanted_terms)
            for profile_id, terms in list(self.profiles.items()):
                self.profiles[profile_id] = [
                    term for term in self.expand_profile_with_parents(terms) if term not in unwanted
                ]
            if calc_metadata:
                self.get_items_from_profiles()
        elif method == "propagate":
            self.get_items_from_profiles()
            self.expand_items_to_parentals(
                ontology=ontology, minimum_childs=minimum_childs, clean_profiles=clean_profiles
            )
            self.get_profiles_from_items()
        else:
            raise ValueError(f"Expansion method not allowed: {method}")
        self.add_observed_terms_from_profiles(reset=True)

    def list_terms_per_level(self, terms: Iterable[str]) -> Dict[Optional[int], List[str]]:
        terms_levels: Dict[Optional[int], List[str]] = {}
        for term in terms:
            terms_levels.setdefault(self.ontology.paths.get_term_level(term), []).append(term)
        return terms_levels

    def expand_items_to_parentals(
        self,
        ontology: Optional["Ontology"] = None,
        minimum_childs: Optional[int] = None,
        clean_profiles: bool = True,
    ) -> None:
        """
        由子節點的 items 推論父節點的 items

        由最深層往上處理 (最深層不推論)；子節點中出現至少 minimum_childs 次的
        項目傳播到父節點。提供 ontology 時，項目以該本體的 MICA 判斷是否一致
        """
        if minimum_childs is None:
            minimum_childs = self.settings.minimum_childs

        target_keys = self.expand_profile_with_parents(self.items.keys())
        terms_per_level = sorted(
            (level, terms)
            for level, terms in self.list_terms_per_level(target_keys).items()
            if level is not None
        )
        if not terms_per_level:
            return
        terms_per_level.pop()  # Leaves are not expandable

        for _, terms in reversed(terms_per_level):
            for term in terms:
                childs = [t for t in self.ontology.get_descendants(term, True) if t in self.items]
                if len(childs) < minimum_childs:
                    continue

                propagated_count: Dict[Any, int] = {}
                if ontology is None:
                    for child in childs:
                        for item in self.items[child]:
                            propagated_count[item] = propagated_count.get(item, 0) + 1
                else:
                    self._count_mica_agreements(ontology, childs, propagated_count)

                propagated = [item for item, count in propagated_count.items() if count >= minimum_childs]
                if not propagated:
                    continue
                if term not in self.items:
                    self.items[term] = propagated
                else:
                    merged = ordered_union(self.items[term], propagated)
                    if clean_profiles and ontology is not None:
                        merged = ontology.profiles.clean_profile(merged)
                    self.items[term] = merged

    def _count_mica_agreements(
        self,
        ontology: "Ontology",
        childs: List[str],
        propagated_count: Dict[Any, int],
    ) -> None:
        pending = list(childs)
        while len(pending) > 1:
            current = pending.pop(0)
            for child in pending:
                maxmica_counts: Dict[Any, int] = {}
                current_items = self.items[current]
                child_items = self.items[child]
                for item in current_items:
                    mica = ontology.similarity.get_maxmica_term2profile(item, child_items)[0]
                    maxmica_counts[mica] = maxmica_counts.get(mica, 0) + 1
                for item in child_items:
                    mica = ontology.similarity.get_maxmica_term2profile(item, current_items)[0]
                    maxmica_counts[mica] = maxmica_counts.get(mica, 0) + 1
                for mica, freq in maxmica_counts.items():
                    if mica is not None and freq >= 2:
                        propagated_count[mica] = propagated_count.get(mica, 0) + freq

    # =========================================================================
    # Comparison
    # =========================================================================
    def compare_profiles(
        self,
        external_profiles: Optional[Mapping[ProfileID, List[str]]] = None,
        sim_type: Union[str, SimilarityType, None] = None,
        ic_type: Union[str, ICType, None] = None,
        bidirectional: bool = True,
    ) -> Dict[ProfileID, Dict[ProfileID, float]]:
        """
        已儲存 profile 兩兩比較 (或與外部 profile 比較)

        Returns:
            profile ID -> 比較對象 ID -> 相似度
        """
        main_profiles = self.profiles
        compared_profiles = self.profiles if external_profiles is None else external_profiles

        similarity = self.ontology.similarity
        pair_index = similarity.get_pair_index(main_profiles, compared_profiles)
        similarity.build_mica_index(pair_index, sim_type=sim_type, ic_type=ic_type)

        profiles_similarity: Dict[ProfileID, Dict[ProfileID, float]] = {}
        for current_id, current_profile in main_profiles.items():
            row = profiles_similarity.setdefault(current_id, {})
            for profile_id, profile in compared_profiles.items():
                row[profile_id] = similarity.compare(
                    current_profile, profile, sim_type, ic_type,
                    bidirectional=bidirectional, store_mica=True,
                )
        return profiles_similarity

    # =========================================================================
    # Level Distributions
    # =========================================================================
    def get_ontology_levels_from_profiles(self, uniq: bool = True) -> Dict[Optional[int], List[str]]:
        """層級 -> profile 術語 (uniq=False 時依出現次數重複)"""
        profile_terms = [term for terms in self.profiles.values() for term in terms]
        if uniq:
            profile_terms = _unique(profile_terms)

        term_counts: Dict[str, int] = {}
        for term in profile_terms:
            term_counts[term] = term_counts.get(term, 0) + 1

        levels: Dict[Optional[int], List[str]] = {}
        for term, count in term_counts.items():
            level = self.ontology.paths.get_term_level(term)
            levels.setdefault(level, []).extend([term] * count)
        return levels

    def get_profile_ontology_distribution_tables(self) -> Tuple[List[LevelRow], List[LevelRow]]:
        """
        本體與 profile 的層級分佈

        Returns:
            ([層級, 本體術語數, profile 術語數], [層級, 本體 %, profile %, 去重 profile %])
        """
        cohort_levels = self.get_ontology_levels_from_profiles(uniq=False)
        uniq_cohort_levels = self.get_ontology_levels_from_profiles(uniq=True)
        ontology_levels = self.ontology.paths.get_ontology_levels()

        total_ontology = sum(len(terms) for terms in ontology_levels.values())
        total_cohort = sum(len(terms) for terms in cohort_levels.values())
        total_uniq_cohort = sum(len(terms) for terms in uniq_cohort_levels.values())

        level_counts: List[LevelRow] = []
        distribution: List[LevelRow] = []
        for level, terms in ontology_levels.items():
            n_cohort = len(cohort_levels.get(level, []))
            n_uniq = len(uniq_cohort_levels.get(level, []))
            level_counts.append([level, len(terms), n_cohort])
            distribution.append([
                level,
                _percentage(len(terms), total_ontology),
                _percentage(n_cohort, total_cohort),
                _percentage(n_uniq, total_uniq_cohort),
            ])

        level_counts.sort(key=lambda row: row[0])
        distribution.sort(key=lambda row: row[0])
        return level_counts, distribution

    def get_dataset_specificity_index(self, mode: str) -> float:
        """
        資料集專一性指數

        比較 profile 與本體的層級分佈: 本體術語最多的層級以下 (更專一) 的
        超額比例加權和，除以以上的加權和

        Args:
            mode: "uniq" (去重 profile 分佈) 或 "weighted" (依出現次數)
        """
        if mode == "uniq":
            column = 3
        elif mode == "weighted":
            column = 2
        else:
            raise ValueError(f"Specificity index mode not allowed: {mode}")

        level_counts, distribution = self.get_profile_ontology_distribution_tables()
        if not distribution:
            return 0.0

        max_terms = max(row[1] for row in distribution)
        max_level = [row[0] for row in distribution if row[1] == max_terms][-1]

        diffs = [(row[0], row[column] - row[1]) for row in distribution]
        diffs = [(level, diff) for level, diff in diffs if diff > 0]
        low_section = [(level, diff) for level, diff in diffs if level <= max_level]
        high_section = [(level, diff) for level, diff in diffs if level > max_level]
        if not high_section:
            return 0.0

        hss = self.get_weighted_level_contribution(high_section, max_level, len(level_counts) - max_level)
        lss = self.get_weighted_level_contribution(low_section, max_level, max_level)
        with np.errstate(divide="ignore", invalid="ignore"):
            return float(np.divide(hss, lss))

    @staticmethod
    def get_weighted_level_contribution(
        section: Iterable[Tuple[int, float]],
        max_level: int,
        n_levels: int,
    ) -> float:
        """層級差異以與 max_level 的距離加權後平均"""
        accumulated = 0.0
        for level, diff in section:
            weight = max_level - level
            weight = weight + 1 if weight >= 0 else abs(weight)
            accumulated += diff * weight
        return accumulated / n_levels


__all__ = [
    "ProfileManager",
]
