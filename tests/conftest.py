"""
Shared Test Fixtures
====================
範例本體與設定重置
"""
import pytest
from pathlib import Path

from semtools.config import reset_settings_manager
from semtools.ontology import Ontology


# =============================================================================
# Paths
# =============================================================================
@pytest.fixture
def fixtures_dir() -> Path:
    """獲取 fixtures 目錄路徑"""
    return Path(__file__).parent / "fixtures"


@pytest.fixture(autouse=True)
def clean_settings():
    """每個測試使用預設設定"""
    reset_settings_manager()
    yield
    reset_settings_manager()


# =============================================================================
# Sample Ontologies
# =============================================================================
@pytest.fixture
def hierarchical(fixtures_dir: Path) -> Ontology:
    """Parental / Child1 (過時) / Child2 (別名 Child3, Child4)"""
    return Ontology.from_file(fixtures_dir / "hierarchical_sample.obo")


@pytest.fixture
def circular(fixtures_dir: Path) -> Ontology:
    """A -> C -> B -> A"""
    return Ontology.from_file(fixtures_dir / "circular_sample.obo")


@pytest.fixture
def atomic(fixtures_dir: Path) -> Ontology:
    """沒有 is_a 的術語"""
    return Ontology.from_file(fixtures_dir / "sparse_sample.obo")


@pytest.fixture
def sparse(fixtures_dir: Path) -> Ontology:
    """A <- B, A <- C，加上孤立的 D"""
    return Ontology.from_file(fixtures_dir / "sparse2_sample.obo")


@pytest.fixture
def short_hierarchical(fixtures_dir: Path) -> Ontology:
    """root <- Child1, root <- Child2"""
    return Ontology.from_file(fixtures_dir / "short_hierarchical_sample.obo")


@pytest.fixture
def enrichment(fixtures_dir: Path) -> Ontology:
    """root 下兩個分支，branchA 有兩個子節點"""
    return Ontology.from_file(fixtures_dir / "enrichment_ontology.obo")


@pytest.fixture
def enrichment2(fixtures_dir: Path) -> Ontology:
    """root 下三個分支"""
    return Ontology.from_file(fixtures_dir / "enrichment_ontology2.obo")
