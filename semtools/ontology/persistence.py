"""
semtools Engine State Persistence
=================================
Ontology 完整狀態的 JSON 匯出 / 匯入

匯出內容足以在不重新解析 OBO 檔案的情況下重建引擎:
- stanza (header, terms, typedefs, instances)
- 別名 / 過時 / 閉包索引、結構類型
- IC 表 (以公式名稱為 key)、元資料、全域最大值、字典
- profile (以 [id, terms] 保存，整數 ID 不會變成字串)、items
- 路徑記錄與層級

版本: 1.0.0
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

from semtools.core.types import (
    ICType,
    MaxFrequencies,
    StructureType,
    TermDictionary,
    TermMetadata,
    TermPathRecord,
)
from semtools.ontology.hierarchy import Ontology

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"


# =============================================================================
# Export
# =============================================================================
def export_state(ontology: Ontology) -> Dict[str, Any]:
    """將引擎狀態轉為可 JSON 序列化的 dict"""
    return {
        "format_version": FORMAT_VERSION,
        "name": ontology.name,
        "source": str(ontology.source) if ontology.source else None,
        "header": ontology.header,
        "terms": ontology.terms,
        "typedefs": ontology.typedefs,
        "instances": ontology.instances,
        "removable_terms": ontology.removable_terms,
        "extra_dicts": [[tag, params] for tag, params in ontology.extra_dicts],
        "reroot": ontology.reroot,
        "alternatives_index": ontology.alternatives_index,
        "obsoletes": sorted(ontology.obsoletes),
        "ancestors_index": ontology.ancestors_index,
        "descendants_index": ontology.descendants_index,
        "structure_type": ontology.structure_type.value if ontology.structure_type else None,
        "ics": {ic_type.value: table for ic_type, table in ontology.ics.items()},
        "meta": {term: record.to_dict() for term, record in ontology.meta.items()},
        "max_freqs": ontology.max_freqs.to_dict(),
        "dicts": {tag: dictionary.to_dict() for tag, dictionary in ontology.dicts.items()},
        "profiles": [[profile_id, terms] for profile_id, terms in ontology.profiles.profiles.items()],
        "items": ontology.profiles.items,
        "term_paths": {term: record.to_dict() for term, record in ontology.paths.term_paths.items()},
        "term_levels": ontology.paths.term_levels,
    }


def write_json(ontology: Ontology, path: Union[str, Path]) -> None:
    """匯出引擎狀態到 JSON 檔"""
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        json.dump(export_state(ontology), f, ensure_ascii=False, indent=2)
    logger.info(f"Ontology state saved to {out_path}: {len(ontology.terms)} terms")


# =============================================================================
# Import
# =============================================================================
def import_state(data: Dict[str, Any], build: bool = False) -> Ontology:
    """
    由匯出的 dict 重建引擎

    Args:
        data: export_state 的輸出
        build: 匯入後重新計算頻率、路徑與層級

    Returns:
        Ontology 實例
    """
    ontology = Ontology(
        removable_terms=data.get("removable_terms", []),
        build=False,
        extra_dicts=[tuple(entry) for entry in data.get("extra_dicts", [])],
        reroot=data.get("reroot", False),
    )
    ontology.name = data.get("name")
    ontology.source = Path(data["source"]) if data.get("source") else None
    ontology.header = data.get("header", {})
    ontology.terms = data.get("terms", {})
    ontology.typedefs = data.get("typedefs", {})
    ontology.instances = data.get("instances", {})

    ontology.alternatives_index = data.get("alternatives_index", {})
    ontology.obsoletes = set(data.get("obsoletes", []))
    ontology.ancestors_index = data.get("ancestors_index", {})
    ontology.descendants_index = data.get("descendants_index", {})
    structure_type = data.get("structure_type")
    ontology.structure_type = StructureType(structure_type) if structure_type else None

    for ic_name, table in data.get("ics", {}).items():
        ontology.ics[ICType.parse(ic_name)] = dict(table)
    ontology.meta = {term: TermMetadata(**record) for term, record in data.get("meta", {}).items()}
    ontology.max_freqs = MaxFrequencies(**data.get("max_freqs", {}))
    ontology.dicts = {
        tag: TermDictionary(by_term=dictionary["by_term"], by_value=dictionary["by_value"])
        for tag, dictionary in data.get("dicts", {}).items()
    }

    ontology.profiles.profiles = {profile_id: terms for profile_id, terms in data.get("profiles", [])}
    ontology.profiles.items = data.get("items", {})

    ontology.paths.term_paths = {
        term: TermPathRecord(**record) for term, record in data.get("term_paths", {}).items()
    }
    ontology.paths.term_levels = {}
    ontology.paths.levels = {}
    for term, level in data.get("term_levels", {}).items():
        ontology.paths.term_levels[term] = level
        ontology.paths.levels.setdefault(level, []).append(term)

    if build:
        ontology.precompute()
    return ontology


def read_json(path: Union[str, Path], build: bool = False) -> Ontology:
    """從 JSON 檔匯入引擎狀態"""
    in_path = Path(path)
    if not in_path.exists():
        raise FileNotFoundError(f"Ontology state file not found: {in_path}")
    with open(in_path, "r", encoding="utf-8") as f:
        data = json.load(f)
    ontology = import_state(data, build=build)
    logger.info(f"Ontology state loaded from {in_path}: {len(ontology.terms)} terms")
    return ontology


__all__ = [
    "export_state",
    "import_state",
    "write_json",
    "read_json",
]
