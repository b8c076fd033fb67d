"""
Unit Tests for Profile Manager
==============================
測試 profile 儲存、清理、擴展、items、比較與層級分佈
"""
import logging
import math

import pytest

from semtools.config import get_settings_manager
from semtools.core import ICType
from semtools.ontology import Ontology, ProfileManager


RESNIK_CHILD2 = -math.log10(0.5)


# =============================================================================
# Fixtures
# =============================================================================
@pytest.fixture
def stored(hierarchical: Ontology) -> Ontology:
    """四個 profile，B 含有未知 ID"""
    manager = hierarchical.profiles
    manager.add_profile("A", ["Child2", "Parental"], substitute=False)
    manager.add_profile("B", ["Child2", "Parental", "FakeID"], substitute=False)
    manager.add_profile("C", ["Child2", "Parental"], substitute=False)
    manager.add_profile("D", ["Parental"], substitute=False)
    return hierarchical


@pytest.fixture
def expanded(enrichment: Ontology) -> Ontology:
    enrichment.profiles.load_profiles({
        "A": ["branchAChild1", "branchB"],
        "B": ["branchAChild2", "branchA", "branchB"],
        "C": ["root", "branchAChild2", "branchAChild1"],
        "D": ["FakeID"],
    })
    return enrichment


# =============================================================================
# Test Storage
# =============================================================================
class TestStorage:
    """測試 profile 儲存"""

    def test_add_profile_rejects_unknown(self, hierarchical, caplog):
        """測試拒絕未知 ID"""
        with caplog.at_level(logging.WARNING):
            rejected = hierarchical.profiles.add_profile("B", ["Child2", "FakeID"])
        assert rejected == ["FakeID"]
        assert hierarchical.profiles.get_profile("B") == ["Child2"]
        assert "FakeID" in caplog.text

    def test_add_profile_substitutes_by_default(self, hierarchical):
        """測試預設以主要 ID 取代別名"""
        hierarchical.profiles.add_profile("A", ["Child3", "Parental"])
        assert hierarchical.profiles.get_profile("A") == ["Child2", "Parental"]

    def test_add_profile_replaces(self, hierarchical, caplog):
        """測試取代已存在的 profile"""
        hierarchical.profiles.add_profile("A", ["Child2"])
        with caplog.at_level(logging.WARNING):
            hierarchical.profiles.add_profile("A", ["Parental"])
        assert hierarchical.profiles.get_profile("A") == ["Parental"]
        assert "replaced" in caplog.text

    def test_load_profiles_keeps_aliases(self, hierarchical):
        """測試不取代別名時保留原 ID"""
        hierarchical.profiles.load_profiles({
            "A": ["Child1", "Parental"],
            "B": ["Child3", "Child4", "Parental"],
        })
        assert hierarchical.profiles.profiles == {
            "A": ["Child1", "Parental"],
            "B": ["Child3", "Child4", "Parental"],
        }
        assert hierarchical.get_observed_frequency("Child2") == 3.0
        assert hierarchical.get_observed_frequency("Parental") == 2.0

    def test_load_profiles_from_list(self, hierarchical):
        """測試以列表載入 (ID 為索引)"""
        hierarchical.profiles.load_profiles([["Child2"], ["Parental"]])
        assert hierarchical.profiles.profiles == {0: ["Child2"], 1: ["Parental"]}

    def test_load_profiles_updates_observed(self, hierarchical):
        """測試載入後重新計算觀測頻率"""
        hierarchical.profiles.load_profiles({"A": ["Child2"], "D": ["Parental", "Child2"]})

        assert hierarchical.get_ic("Child2", ICType.RESNIK_OBSERVED) == pytest.approx(0.0)
        assert hierarchical.get_ic("Parental", ICType.RESNIK_OBSERVED) == pytest.approx(RESNIK_CHILD2)
        assert hierarchical.profiles.items == {"Child2": ["A", "D"], "Parental": ["D"]}

    def test_load_profiles_reset_stored(self, hierarchical):
        """測試清除已儲存的 profile"""
        hierarchical.profiles.load_profiles({"A": ["Child2"]})
        hierarchical.profiles.load_profiles({"B": ["Parental"]}, reset_stored=True)
        assert list(hierarchical.profiles.profiles) == ["B"]

    def test_reset_profiles(self, stored):
        """測試清除 profile 並將觀測頻率歸零"""
        stored.profiles.reset_profiles()
        assert stored.profiles.profiles == {}
        assert stored.get_observed_frequency("Child2") == 0.0


# =============================================================================
# Test Sizes & Stats
# =============================================================================
class TestSizes:
    """測試 profile 大小統計"""

    def test_sizes(self, stored):
        """測試大小與平均"""
        assert stored.profiles.get_profiles_sizes() == [2, 2, 2, 1]
        assert stored.profiles.get_profiles_mean_size() == 1.75

    def test_mean_size_empty(self, hierarchical):
        """測試沒有 profile"""
        assert hierarchical.profiles.get_profiles_mean_size() is None

    def test_profile_stats(self, stored):
        """測試描述統計"""
        stats = stored.profiles.profile_stats()
        assert stats["average"] == pytest.approx(1.75)
        assert stats["variance"] == pytest.approx(0.1875)
        assert stats["standardDeviation"] == pytest.approx(math.sqrt(0.1875))
        assert stats["max"] == 2
        assert stats["min"] == 1
        assert stats["count"] == 4
        assert stats["countNonZero"] == 4
        assert stats["q1"] == pytest.approx(1.75)
        assert stats["median"] == 2
        assert stats["q3"] == 2

    @pytest.mark.parametrize("perc, expected", [(0, 1), (66.67, 2), (100, 2), (133.3, 2)])
    def test_length_at_percentile(self, stored, perc, expected):
        """測試百分位數長度"""
        assert stored.profiles.get_profile_length_at_percentile(perc, increasing_sort=True) == expected

    def test_length_at_percentile_decreasing(self, stored):
        """測試遞減排序"""
        assert stored.profiles.get_profile_length_at_percentile(100) == 1


# =============================================================================
# Test Frequencies & Translation
# =============================================================================
class TestTermFrequencies:
    """測試 profile 術語頻率"""

    def test_counts(self, stored):
        """測試出現次數"""
        freqs = stored.profiles.get_profiles_terms_frequency(ratio=False, as_array=False, translate=False)
        assert freqs == {"Child2": 3, "Parental": 4}

    def test_ratio_sorted(self, stored):
        """測試比例依遞減排序"""
        assert stored.profiles.get_profiles_terms_frequency(translate=False) == [
            ("Parental", 1.0),
            ("Child2", 0.75),
        ]

    def test_translated(self, stored):
        """測試以名稱取代 ID"""
        assert stored.profiles.get_profiles_terms_frequency(as_array=False) == {"Child2": 0.75, "All": 1.0}

    def test_observed_from_profiles(self, stored):
        """測試由 profile 計算觀測頻率"""
        stored.profiles.add_observed_terms_from_profiles(reset=True)
        assert stored.get_ic("Child2", ICType.RESNIK_OBSERVED) == pytest.approx(-math.log10(3 / 4))
        assert stored.get_ic("Parental", ICType.RESNIK_OBSERVED) == pytest.approx(0.0)

    def test_translate_profiles_ids(self, stored):
        """測試 profile 翻譯為名稱"""
        assert stored.profiles.translate_profiles_ids() == [
            ["Child2", "All"],
            ["Child2", "All"],
            ["Child2", "All"],
            ["All"],
        ]
        assert stored.profiles.translate_profiles_ids([["Parental"]], as_array=False) == {0: ["All"]}


# =============================================================================
# Test Cleaning
# =============================================================================
class TestCleaning:
    """測試 profile 清理"""

    def test_remove_ancestors(self, hierarchical):
        """測試移除冗餘祖先"""
        assert hierarchical.profiles.remove_ancestors_from_profile(["Child2", "Parental"]) == (
            ["Child2"],
            ["Parental"],
        )

    def test_remove_alternatives(self, hierarchical):
        """測試移除 canonical 已存在的別名"""
        assert hierarchical.profiles.remove_alternatives_from_profile(["Child2", "Parental", "Child3"]) == (
            ["Child2", "Parental"],
            ["Child3"],
        )

    def test_clean_profile(self, hierarchical):
        """測試清理"""
        assert hierarchical.profiles.clean_profile(["Child2", "Parental", "Child3"]) == ["Child2"]
        assert hierarchical.profiles.clean_profile(
            ["Child2", "Parental", "Child3"], remove_alternatives=False
        ) == ["Child2", "Child3"]

    def test_clean_profile_idempotent(self, hierarchical, enrichment):
        """測試清理結果再清理不變"""
        cases = [
            (hierarchical, ["Child2", "Parental", "Child3"]),
            (hierarchical, ["Child4", "Parental"]),
            (enrichment, ["root", "branchA", "branchAChild1", "branchAChild3", "branchB"]),
            (enrichment, ["branchAChild2", "branchA"]),
            (enrichment, ["branchAChild1", "branchAChild2", "branchB"]),
        ]
        for ontology, profile in cases:
            for remove_alternatives in (True, False):
                cleaned = ontology.profiles.clean_profile(profile, remove_alternatives)
                assert ontology.profiles.clean_profile(cleaned, remove_alternatives) == cleaned

    def test_clean_profile_circular_warns(self, circular, caplog):
        """測試循環結構發出警告"""
        with caplog.at_level(logging.WARNING):
            circular.profiles.clean_profile(["A", "B"])
        assert "circular" in caplog.text

    def test_clean_profile_hard(self, hierarchical):
        """測試嚴格清理"""
        assert hierarchical.profiles.clean_profile_hard(["Child2", "Parental", "Child5", "Child1"]) == ["Child2"]

    def test_clean_profile_hard_with_filter(self, enrichment):
        """測試只保留指定術語的後代"""
        assert enrichment.profiles.clean_profile_hard(
            ["root", "branchB", "branchAChild1", "branchAChild2"], term_filter="branchA"
        ) == ["branchAChild1", "branchAChild2"]

    def test_clean_profile_by_score(self, hierarchical):
        """測試以分數擇一保留"""
        manager = hierarchical.profiles
        profile = ["Parental", "Child2"]
        scores = {"Parental": 3, "Child2": 7}

        assert manager.clean_profile_by_score(profile, scores) == ["Child2"]
        assert manager.clean_profile_by_score(profile, scores, by_max=False) == ["Parental"]

    def test_clean_profile_by_score_partial(self, hierarchical):
        """測試只有部分術語有分數"""
        manager = hierarchical.profiles
        scores = {"Child2": 7}

        assert manager.clean_profile_by_score(["Parental", "Child2"], scores) == ["Child2"]
        assert manager.clean_profile_by_score(["Parental", "Child2"], scores, by_max=False) == ["Child2"]

        scores = {"Parental": 3}
        assert manager.clean_profile_by_score(["Parental", "Child3"], scores) == ["Parental"]
        assert manager.clean_profile_by_score(
            ["Parental", "Child3"], scores, remove_without_score=False
        ) == ["Parental", "Child3"]

    def test_clean_profiles(self, stored):
        """測試清理所有 profile"""
        expected = {"A": ["Child2"], "B": ["Child2"], "C": ["Child2"], "D": ["Parental"]}
        assert stored.profiles.clean_profiles() == expected
        assert stored.profiles.profiles["A"] == ["Child2", "Parental"]

        stored.profiles.clean_profiles(store=True)
        assert stored.profiles.profiles == expected


# =============================================================================
# Test Redundancy & IC Summaries
# =============================================================================
class TestRedundancy:
    """測試冗餘統計"""

    def test_parentals_per_profile(self, stored):
        """測試冗餘祖先數"""
        assert stored.profiles.parentals_per_profile() == [1, 1, 1, 0]

    def test_profile_redundancy(self, stored):
        """測試依大小排序的冗餘"""
        assert stored.profiles.get_profile_redundancy() == ([2, 2, 2, 1], [1, 1, 1, 0])

    def test_childs_table(self, hierarchical):
        """測試子節點表"""
        assert hierarchical.profiles.get_childs_table(["Parental"]) == [
            (("Parental", "All"), [("Child2", "Child2")])
        ]

    def test_compute_term_list_and_childs(self, stored):
        """測試有子節點的術語比例"""
        suggested, ratio = stored.profiles.compute_term_list_and_childs()
        assert ratio == pytest.approx(4 / 7)
        assert suggested["D"] == [(("Parental", "All"), [("Child2", "Child2")])]


class TestICSummaries:
    """測試 IC 摘要"""

    def test_profile_mean_ic(self, hierarchical):
        """測試平均 IC"""
        assert hierarchical.profiles.get_profile_mean_ic(["Child2", "Parental"]) == pytest.approx(
            RESNIK_CHILD2 / 2
        )
        assert hierarchical.profiles.get_profile_mean_ic([]) is None

    def test_resnik_dual_ics(self, stored):
        """測試結構與觀測的平均 IC"""
        stored.profiles.add_observed_terms_from_profiles(reset=True)
        by_ontology, by_freq = stored.profiles.get_profiles_resnik_dual_ics()

        assert by_ontology["A"] == pytest.approx(RESNIK_CHILD2 / 2)
        assert by_ontology["D"] == pytest.approx(0.0)
        assert by_freq["A"] == pytest.approx(-math.log10(3 / 4) / 2)

    def test_observed_ics_by_onto_and_freq(self, stored):
        """測試 profile 術語的兩種 IC"""
        stored.profiles.add_observed_terms_from_profiles(reset=True)
        ic_ont, ic_freq = stored.profiles.get_observed_ics_by_onto_and_freq()

        assert set(ic_ont) == {"Child2", "Parental"}
        assert ic_ont["Child2"] == pytest.approx(RESNIK_CHILD2)
        assert ic_freq["Child2"] == pytest.approx(-math.log10(3 / 4))


# =============================================================================
# Test Items
# =============================================================================
class TestItems:
    """測試術語 -> 項目關聯"""

    def test_items_from_profiles(self, stored):
        """測試由 profile 建立 items"""
        stored.profiles.get_items_from_profiles()
        assert stored.profiles.items == {
            "Child2": ["A", "B", "C"],
            "Parental": ["A", "B", "C", "D"],
        }
        assert stored.profiles.get_items_from_term("Child2") == ["A", "B", "C"]

    def test_items_from_profiles_not_duplicated(self, stored):
        """測試重複計算不會重複 ID"""
        stored.profiles.get_items_from_profiles()
        stored.profiles.get_items_from_profiles()
        assert stored.profiles.items["Parental"] == ["A", "B", "C", "D"]

    def test_set_items_from_dict(self, hierarchical):
        """測試以字典作為 items，再反推 profile"""
        hierarchical.profiles.set_items_from_dict("is_a")
        assert hierarchical.profiles.items == {"Child2": ["Parental"]}

        hierarchical.profiles.get_profiles_from_items()
        assert hierarchical.profiles.profiles == {"Parental": ["Child2"]}

    def test_set_items_from_missing_dict(self, hierarchical, caplog):
        """測試字典不存在"""
        with caplog.at_level(logging.WARNING):
            hierarchical.profiles.set_items_from_dict("xref")
        assert hierarchical.profiles.items == {}
        assert "not calculated" in caplog.text

    def test_load_item_relations(self, hierarchical, caplog):
        """測試儲存關聯 (未知術語仍儲存)"""
        manager = hierarchical.profiles
        manager.load_item_relations_to_terms({"Child2": ["I1"]})
        with caplog.at_level(logging.WARNING):
            manager.load_item_relations_to_terms({"Child2": ["I2"], "FakeID": ["I3"]}, expand=True)

        assert manager.items == {"Child2": ["I1", "I2"], "FakeID": ["I3"]}
        assert "not stored into this ontology" in caplog.text

        manager.load_item_relations_to_terms({"Parental": ["I4"]}, remove_old_relations=True)
        assert manager.items == {"Parental": ["I4"]}

    def test_concat_items(self, hierarchical):
        """測試合併項目"""
        concat = hierarchical.profiles.concat_items
        assert concat(["a", "b"], ["b", "c"]) == ["a", "b", "c"]
        assert concat({"x": ["a"]}, {"x": ["b"], "y": ["c"]}) == {"x": ["a", "b"], "y": ["c"]}
        assert concat("a", ["a", "b"]) == ["a", "b"]
        assert concat("a", "b") == ["a", "b"]

    def test_concat_items_unsupported(self, hierarchical):
        """測試不支援的組合"""
        with pytest.raises(TypeError):
            hierarchical.profiles.concat_items(["a"], {"x": "b"})


# =============================================================================
# Test Expansion
# =============================================================================
class TestExpansion:
    """測試 profile 擴展"""

    def test_expand_profile_with_parents(self, enrichment):
        """測試加入祖先"""
        assert enrichment.profiles.expand_profile_with_parents(["branchAChild1", "branchB"]) == [
            "branchA", "root", "branchAChild1", "branchB",
        ]

    def test_expand_profiles_parental(self, expanded):
        """測試 parental 擴展"""
        expanded.profiles.expand_profiles("parental")
        assert expanded.profiles.profiles == {
            "A": ["branchA", "root", "branchAChild1", "branchB"],
            "B": ["branchA", "root", "branchAChild2", "branchB"],
            "C": ["branchA", "root", "branchAChild2", "branchAChild1"],
            "D": [],
        }
        assert expanded.get_observed_frequency("root") == 3.0

    def test_expand_profiles_unwanted(self, expanded):
        """測試移除不需要的術語"""
        expanded.profiles.expand_profiles("parental", unwanted_terms=["root"])
        assert expanded.profiles.profiles["A"] == ["branchA", "branchAChild1", "branchB"]

    def test_expand_profiles_invalid_method(self, expanded):
        """測試不允許的擴展方法"""
        with pytest.raises(ValueError):
            expanded.profiles.expand_profiles("sideways")

    def test_list_terms_per_level(self, enrichment):
        """測試依層級分組"""
        assert enrichment.profiles.list_terms_per_level(["root", "branchAChild1", "branchB", "FakeID"]) == {
            1: ["root"],
            3: ["branchAChild1"],
            2: ["branchB"],
            None: ["FakeID"],
        }

    def test_expand_items_without_ontology(self, enrichment):
        """測試由子節點推論父節點的 items"""
        manager = enrichment.profiles
        manager.load_item_relations_to_terms({
            "branchAChild1": ["P1", "P2"],
            "branchAChild2": ["P1"],
            "branchB": ["P3"],
        })
        manager.expand_items_to_parentals(minimum_childs=2)

        assert manager.items["branchA"] == ["P1"]
        assert manager.items["root"] == ["P1"]
        assert manager.items["branchAChild1"] == ["P1", "P2"]

    def test_expand_items_exact_match(self, short_hierarchical):
        """測試字面一致的項目合併到父節點"""
        manager = short_hierarchical.profiles
        manager.load_item_relations_to_terms({
            "root": ["branchA"],
            "Child1": ["branchAChild1"],
            "Child2": ["branchAChild1", "branchAChild2", "branchB"],
        })
        manager.expand_items_to_parentals(minimum_childs=2)
        assert manager.items["root"] == ["branchA", "branchAChild1"]

    def test_expand_items_with_ontology(self, short_hierarchical, enrichment):
        """測試以另一本體的 MICA 判斷項目一致"""
        manager = short_hierarchical.profiles
        relations = {
            "root": ["branchA"],
            "Child1": ["branchAChild1"],
            "Child2": ["branchAChild1", "branchAChild2", "branchB"],
        }
        manager.load_item_relations_to_terms(relations)
        manager.expand_items_to_parentals(ontology=enrichment, minimum_childs=2, clean_profiles=False)
        assert manager.items["root"] == ["branchA", "branchAChild1"]

        manager.load_item_relations_to_terms(relations, remove_old_relations=True)
        manager.expand_items_to_parentals(ontology=enrichment, minimum_childs=2)
        assert manager.items["root"] == ["branchAChild1"]

    def test_expand_items_mica_propagates_new_term(self, short_hierarchical, enrichment):
        """測試 MICA 推論出子節點沒有的項目"""
        manager = short_hierarchical.profiles
        manager.load_item_relations_to_terms({
            "Child1": ["branchAChild1"],
            "Child2": ["branchAChild2", "branchB"],
        })
        manager.expand_items_to_parentals(ontology=enrichment, minimum_childs=2, clean_profiles=False)
        assert manager.items["root"] == ["branchA"]

    def test_expand_items_minimum_from_settings(self, enrichment):
        """測試預設最少子節點數取自設定"""
        get_settings_manager().profiles.minimum_childs = 3
        manager = enrichment.profiles
        manager.load_item_relations_to_terms({"branchAChild1": ["P1"], "branchAChild2": ["P1"]})
        manager.expand_items_to_parentals()
        assert "branchA" not in manager.items

    def test_expand_profiles_propagate(self, enrichment):
        """測試 propagate 擴展"""
        manager = enrichment.profiles
        manager.load_profiles({
            "P1": ["branchAChild1", "branchAChild2"],
            "P2": ["branchAChild1"],
        })
        manager.expand_profiles("propagate", minimum_childs=2)

        assert manager.profiles["P1"] == ["branchAChild1", "branchAChild2", "branchA", "root"]
        assert manager.profiles["P2"] == ["branchAChild1"]


# =============================================================================
# Test Comparison
# =============================================================================
class TestCompareProfiles:
    """測試 profile 兩兩比較"""

    def test_compare_stored(self, hierarchical):
        """測試已儲存 profile 互相比較"""
        hierarchical.profiles.load_profiles({"A": ["Child2"], "D": ["Parental", "Child2"]})
        similarities = hierarchical.profiles.compare_profiles()

        expected = hierarchical.compare(["Child2"], ["Parental", "Child2"])
        assert similarities["A"]["D"] == pytest.approx(expected)
        assert similarities["D"]["A"] == pytest.approx(expected)
        assert similarities["A"]["A"] == pytest.approx(RESNIK_CHILD2)

    def test_compare_external(self, hierarchical):
        """測試與外部 profile 比較"""
        hierarchical.profiles.load_profiles({"A": ["Child2"], "D": ["Parental", "Child2"]})
        similarities = hierarchical.profiles.compare_profiles(external_profiles={"C": ["Parental"]})

        assert list(similarities["A"]) == ["C"]
        assert similarities["A"]["C"] == pytest.approx(0.0)

    def test_compare_unidirectional(self, hierarchical):
        """測試單向比較"""
        hierarchical.profiles.load_profiles({"A": ["Child2"], "D": ["Parental", "Child2"]})
        similarities = hierarchical.profiles.compare_profiles(bidirectional=False)
        assert similarities["D"]["A"] == pytest.approx(RESNIK_CHILD2 / 2)


# =============================================================================
# Test Level Distributions
# =============================================================================
class TestLevelDistributions:
    """測試層級分佈與專一性指數"""

    def test_levels_from_profiles(self, stored):
        """測試 profile 術語的層級"""
        assert stored.profiles.get_ontology_levels_from_profiles() == {1: ["Parental"], 2: ["Child2"]}
        assert stored.profiles.get_ontology_levels_from_profiles(uniq=False) == {
            1: ["Parental"] * 4,
            2: ["Child2"] * 3,
        }

    def test_distribution_tables(self, hierarchical):
        """測試本體與 profile 的層級分佈表"""
        hierarchical.profiles.load_profiles({
            "A": ["Child2"],
            "B": ["Parental"],
            "C": ["Child2", "Parental"],
        })
        assert hierarchical.profiles.get_profile_ontology_distribution_tables() == (
            [[1, 1, 2], [2, 1, 2]],
            [[1, 50.0, 50.0, 50.0], [2, 50.0, 50.0, 50.0]],
        )

    def test_weighted_level_contribution(self):
        """測試加權層級貢獻"""
        assert ProfileManager.get_weighted_level_contribution([(1, 0.5), (2, 0.7)], 3, 3) == pytest.approx(
            2.9 / 3
        )

    def test_specificity_index(self, enrichment2):
        """測試資料集專一性指數"""
        enrichment2.profiles.load_profiles(
            {
                "A": ["branchB", "branchAChild1", "root"],
                "B": ["root", "branchA", "branchB", "branchAChild2", "branchAChild1"],
                "C": ["root", "branchC", "branchAChild1", "branchAChild2"],
                "D": ["root", "branchAChild1", "branchAChild2"],
            },
            calc_metadata=False,
            substitute=False,
        )
        assert enrichment2.profiles.get_dataset_specificity_index("weighted") == pytest.approx(1.3334, abs=1e-4)
        assert enrichment2.profiles.get_dataset_specificity_index("uniq") == 0.0

    def test_specificity_index_invalid_mode(self, enrichment2):
        """測試不允許的模式"""
        with pytest.raises(ValueError):
            enrichment2.profiles.get_dataset_specificity_index("median")
