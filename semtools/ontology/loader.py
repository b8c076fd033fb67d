"""
semtools Ontology Loader
========================
本體載入器，將 OBO 1.4 文字解析為 tag/value stanza

支援的來源:
- OBO 檔案 (.obo / .obo.gz)，使用內建 stanza 解析器
- OWL / OBO Graphs JSON，透過 pronto 轉換為相同的 stanza 結構
- 已知本體 (hp, go, mondo, mp)，下載後快取於本地目錄

版本: 1.0.0
"""
from __future__ import annotations

import gzip
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union
from urllib.error import URLError
from urllib.request import urlretrieve

from semtools.config import LoaderSettings, get_settings_manager
from semtools.core.types import (
    ANCESTOR_TAG,
    MULTIVALUE_TAGS,
    TRAILING_MODIFIER_TAGS,
    StanzaKind,
    TagMap,
)

if TYPE_CHECKING:
    import pronto
    from semtools.ontology.hierarchy import Ontology

logger = logging.getLogger(__name__)

TagPairs = List[Tuple[str, str]]


# =============================================================================
# OBO Document
# =============================================================================
@dataclass
class OBODocument:
    """
    解析後的 OBO 檔案

    所有 stanza 皆以 tag map 表示: 多值 tag 為有序列表，單值 tag 為字串
    """
    header: TagMap = field(default_factory=dict)
    terms: Dict[str, TagMap] = field(default_factory=dict)
    typedefs: Dict[str, TagMap] = field(default_factory=dict)
    instances: Dict[str, TagMap] = field(default_factory=dict)
    source: Optional[Path] = None

    @property
    def name(self) -> Optional[str]:
        """來源檔名 (不含副檔名)"""
        if self.source is None:
            return None
        name = self.source.name
        for suffix in (".gz", ".obo", ".owl", ".json"):
            if name.endswith(suffix):
                name = name[: -len(suffix)]
        return name


# =============================================================================
# OBO Parser
# =============================================================================
class OBOParser:
    """
    OBO 格式解析器

    iter_stanzas 為 tokenizer，產生 (StanzaKind, [(tag, value), ...]);
    parse_* 將 tokenizer 輸出組成 OBODocument
    """

    STANZA_FLAGS = {
        "[Term]": StanzaKind.TERM,
        "[Typedef]": StanzaKind.TYPEDEF,
        "[Instance]": StanzaKind.INSTANCE,
    }

    # Extra qualifiers ({source=..., xref=...}) that some ontologies add to is_a values
    IS_A_QUALIFIER_PATTERN = re.compile(r'{[\\":A-Za-z0-9/.\-, =?&_]+} ')
    TRAILING_MODIFIER_SEPARATOR = " ! "

    def __init__(self, skip_comment_lines: bool = True):
        self.skip_comment_lines = skip_comment_lines

    def parse_file(self, file_path: Union[str, Path]) -> OBODocument:
        """
        解析 OBO 檔案

        Args:
            file_path: OBO 檔案路徑 (支援 .obo 和 .obo.gz)

        Returns:
            OBODocument
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"Ontology file not found: {file_path}")

        logger.info(f"Parsing OBO file: {file_path}")

        # Handle gzipped files
        if str(file_path).endswith(".gz"):
            open_func = lambda p: gzip.open(p, "rt", encoding="utf-8")
        else:
            open_func = lambda p: open(p, "r", encoding="utf-8")

        with open_func(file_path) as f:
            document = self.parse_lines(f)

        document.source = file_path
        logger.info(f"Parsed {len(document.terms)} terms from {file_path.name}")
        return document

    def parse_text(self, text: str) -> OBODocument:
        """解析 OBO 字串"""
        return self.parse_lines(text.splitlines())

    def parse_lines(self, lines: Iterable[str]) -> OBODocument:
        """將 tokenizer 的 stanza 記錄組成 OBODocument"""
        document = OBODocument()
        containers = {
            StanzaKind.TERM: document.terms,
            StanzaKind.TYPEDEF: document.typedefs,
            StanzaKind.INSTANCE: document.instances,
        }

        for kind, pairs in self.iter_stanzas(lines):
            tags = self.pairs_to_tags(pairs)
            if kind == StanzaKind.HEADER:
                document.header = tags
                continue

            stanza_id = tags.get("id")
            if not isinstance(stanza_id, str):
                raise ValueError(f"{kind.value} stanza without a valid id: {tags}")
            containers[kind][stanza_id] = tags

        return document

    def iter_stanzas(self, lines: Iterable[str]) -> Iterator[Tuple[StanzaKind, TagPairs]]:
        """
        Tokenizer: 產生 (stanza 類型, tag/value 列表)

        第一筆記錄永遠是 header (可能為空)
        """
        kind: Optional[StanzaKind] = StanzaKind.HEADER
        pairs: TagPairs = []

        for line_num, raw_line in enumerate(lines, 1):
            line = raw_line.rstrip("\r\n")
            if not line.strip():
                continue
            if self.skip_comment_lines and line.lstrip().startswith("!"):
                continue

            # Check for stanza start
            stripped = line.strip()
            if stripped.startswith("[") and stripped.endswith("]"):
                if kind is not None:
                    yield kind, pairs
                kind = self.STANZA_FLAGS.get(stripped)
                if kind is None:
                    logger.warning(f"Skipping unsupported stanza {stripped} at line {line_num}")
                pairs = []
                continue

            if kind is None:
                continue

            pairs.append(self._split_tag_line(line, line_num))

        if kind is not None:
            yield kind, pairs

    def _split_tag_line(self, line: str, line_num: int) -> Tuple[str, str]:
        """切分 "tag: value" 行，缺少 tag 或 value 視為格式錯誤"""
        tag, sep, value = line.partition(":")
        tag = tag.strip()
        value = value.strip()
        if not sep or not tag or not value:
            raise ValueError(f"Info element incorrect format at line {line_num}: {line!r}")
        return tag, value

    def pairs_to_tags(self, pairs: TagPairs) -> TagMap:
        """
        將 tag/value 列表轉為 tag map

        多值 tag 累積為有序列表；單值 tag 重複出現時拋出 ValueError
        """
        tags: TagMap = {}

        for tag, value in pairs:
            if tag == ANCESTOR_TAG:
                value = self.IS_A_QUALIFIER_PATTERN.sub("", value)
            if tag in TRAILING_MODIFIER_TAGS:
                value = value.split(self.TRAILING_MODIFIER_SEPARATOR)[0].rstrip()

            current = tags.get(tag)
            if current is None:
                tags[tag] = [value] if tag in MULTIVALUE_TAGS else value
            elif isinstance(current, list):
                current.append(value)
            else:
                raise ValueError(
                    f"Attempt to concatenate plain text with another. "
                    f"The tag is not declared as multivalue. [{tag}]({current})"
                )

        return tags


# =============================================================================
# pronto Adapter
# =============================================================================
def load_pronto_document(source: Union[str, Path, "pronto.Ontology"]) -> OBODocument:
    """
    透過 pronto 讀取 OWL / OBO Graphs JSON，轉換為 OBODocument

    Args:
        source: 檔案路徑或已載入的 pronto.Ontology

    Returns:
        與 OBOParser 輸出相同結構的 OBODocument
    """
    import pronto

    source_path: Optional[Path] = None
    if isinstance(source, pronto.Ontology):
        pronto_ont = source
    else:
        source_path = Path(source)
        if not source_path.exists():
            raise FileNotFoundError(f"Ontology file not found: {source_path}")
        logger.info(f"Loading {source_path} through pronto")
        pronto_ont = pronto.Ontology(str(source_path))

    meta = pronto_ont.metadata
    header: TagMap = {}
    if meta.format_version:
        header["format-version"] = meta.format_version
    if meta.data_version:
        header["data-version"] = meta.data_version
    if meta.ontology:
        header["ontology"] = meta.ontology

    document = OBODocument(header=header, source=source_path)
    for term in pronto_ont.terms():
        document.terms[term.id] = _pronto_term_to_tags(term)

    logger.info(f"Converted {len(document.terms)} pronto terms")
    return document


def _pronto_term_to_tags(term: "pronto.Term") -> TagMap:
    tags: TagMap = {"id": term.id}
    if term.name:
        tags["name"] = term.name
    if term.namespace:
        tags["namespace"] = term.namespace
    if term.definition:
        tags["def"] = f'"{term.definition}" []'

    parents = [p.id for p in term.superclasses(distance=1, with_self=False)]
    multivalued = {
        "is_a": parents,
        "alt_id": sorted(term.alternate_ids),
        "synonym": [f'"{s.description}" {s.scope}' for s in term.synonyms],
        "xref": sorted(x.id for x in term.xrefs),
        "subset": sorted(term.subsets),
        "replaced_by": [t.id for t in term.replaced_by],
        "consider": [t.id for t in term.consider],
    }
    for tag, values in multivalued.items():
        if values:
            tags[tag] = list(values)

    if term.obsolete:
        tags["is_obsolete"] = "true"
    return tags


def read_document(path: Union[str, Path], parser: Optional[OBOParser] = None) -> OBODocument:
    """
    依副檔名讀取本體檔案

    .obo / .obo.gz 使用 OBOParser；.owl / .obojson 透過 pronto
    """
    path = Path(path)
    name = str(path)
    if name.endswith(".obo") or name.endswith(".obo.gz"):
        parser = parser or OBOParser(get_settings_manager().parser.skip_comment_lines)
        return parser.parse_file(path)
    if name.endswith(".owl") or name.endswith(".owl.gz") or name.endswith(".obojson"):
        return load_pronto_document(path)
    raise ValueError(f"Unsupported ontology format: {path.suffix}")


# =============================================================================
# Ontology Loader
# =============================================================================
class OntologyLoader:
    """
    本體載入器

    支援從檔案或已知本體名稱 (下載並快取) 載入
    """

    def __init__(
        self,
        cache_dir: Optional[Path] = None,
        settings: Optional[LoaderSettings] = None,
    ):
        """
        Args:
            cache_dir: 快取目錄，用於存放下載的本體檔案
            settings: 載入設定，預設取自全域設定
        """
        self.settings = settings or get_settings_manager().loader
        self.cache_dir = Path(cache_dir or self.settings.cache_dir)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

        self.parser = OBOParser(get_settings_manager().parser.skip_comment_lines)
        self._loaded_ontologies: Dict[str, "Ontology"] = {}

    def read_document(self, path: Union[str, Path]) -> OBODocument:
        """依副檔名選擇解析器"""
        return read_document(path, self.parser)

    def load(self, path: Union[str, Path], **ontology_kwargs: Any) -> "Ontology":
        """
        載入本體檔案

        Args:
            path: OBO / OWL 檔案，或先前匯出的 JSON 狀態
            **ontology_kwargs: 傳給 Ontology 的參數 (removable_terms, build, extra_dicts)

        Returns:
            Ontology (build=True 時已建立索引並完成預計算)
        """
        from semtools.ontology.hierarchy import Ontology
        from semtools.ontology.persistence import read_json

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Ontology file not found: {path}")

        if path.suffix == ".json":
            return read_json(path, build=ontology_kwargs.get("build", False))

        return Ontology(self.read_document(path), **ontology_kwargs)

    def load_known(self, ontology_name: str, force_download: bool = False) -> "Ontology":
        """
        載入已知本體 (hp, go, mondo, mp)

        Args:
            ontology_name: 本體簡稱
            force_download: 是否強制重新下載
        """
        # Check memory cache
        if ontology_name in self._loaded_ontologies and not force_download:
            logger.info(f"Using cached {ontology_name} ontology")
            return self._loaded_ontologies[ontology_name]

        url = self.settings.known_ontologies.get(ontology_name)
        if not url:
            raise ValueError(f"Unknown ontology: {ontology_name}")

        # Check file cache
        cache_file = self.cache_dir / f"{ontology_name}.obo"
        if not cache_file.exists() or force_download:
            logger.info(f"Downloading {ontology_name} ontology from {url}")
            try:
                urlretrieve(url, cache_file)
                logger.info(f"Downloaded {ontology_name} to {cache_file}")
            except URLError as e:
                if cache_file.exists():
                    logger.warning(f"Download failed, using cached file: {e}")
                else:
                    raise RuntimeError(f"Failed to download {ontology_name}: {e}") from e

        ontology = self.load(cache_file)
        self._loaded_ontologies[ontology_name] = ontology
        return ontology


# =============================================================================
# Factory Function
# =============================================================================
def create_ontology_loader(cache_dir: Optional[Path] = None) -> OntologyLoader:
    """
    工廠函數: 創建本體載入器

    Args:
        cache_dir: 快取目錄

    Returns:
        OntologyLoader 實例
    """
    return OntologyLoader(cache_dir)


__all__ = [
    "OBODocument",
    "OBOParser",
    "load_pronto_document",
    "read_document",
    "OntologyLoader",
    "create_ontology_loader",
]
