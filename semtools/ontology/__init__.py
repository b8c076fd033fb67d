"""
semtools Ontology Module
========================
OBO 本體圖索引與語義度量引擎

主要功能:
- 載入 OBO 格式本體檔案 (OWL / OBO Graphs 透過 pronto)
- 別名與過時術語解析
- 祖先 / 後代閉包與結構分類
- Information Content (resnik, resnik_observed, seco, zhou, sanchez)
- 語義相似度 (resnik, lin, jiang_conrath) 與 profile 比較
- 路徑、層級與 profile 層級分佈
- 引擎狀態 JSON 匯出 / 匯入

使用範例:
    from semtools.ontology import Ontology, OntologyLoader

    # 載入本體
    loader = OntologyLoader()
    hpo = loader.load("hp.obo")

    # 獲取祖先
    ancestors = hpo.get_ancestors("HP:0001250")

    # 計算語義相似度
    sim = hpo.get_similarity("HP:0001250", "HP:0002311", sim_type="lin")

    # 儲存並比較 profile
    hpo.profiles.load_profiles({"P1": ["HP:0001250"], "P2": ["HP:0002311"]})
    similarities = hpo.profiles.compare_profiles()

版本: 1.0.0
"""

# Loader
from semtools.ontology.loader import (
    OBODocument,
    OBOParser,
    OntologyLoader,
    create_ontology_loader,
    load_pronto_document,
    read_document,
)

# Index builders
from semtools.ontology.aliases import AliasResolution, remove_terms, resolve_aliases
from semtools.ontology.relations import (
    RelationIndex,
    build_relation_index,
    classify_structure,
    expand_related_ids,
)
from semtools.ontology.dictionaries import build_dictionary, extract_id

# Engine
from semtools.ontology.hierarchy import Ontology
from semtools.ontology.similarity import SimilarityEngine
from semtools.ontology.paths import TermPathIndex
from semtools.ontology.profiles import ProfileManager

# Persistence
from semtools.ontology.persistence import (
    export_state,
    import_state,
    read_json,
    write_json,
)

__all__ = [
    # Loader
    "OBODocument",
    "OBOParser",
    "OntologyLoader",
    "create_ontology_loader",
    "load_pronto_document",
    "read_document",
    # Index builders
    "AliasResolution",
    "remove_terms",
    "resolve_aliases",
    "RelationIndex",
    "build_relation_index",
    "classify_structure",
    "expand_related_ids",
    "build_dictionary",
    "extract_id",
    # Engine
    "Ontology",
    "SimilarityEngine",
    "TermPathIndex",
    "ProfileManager",
    # Persistence
    "export_state",
    "import_state",
    "read_json",
    "write_json",
]
