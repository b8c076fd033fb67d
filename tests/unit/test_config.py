"""
Unit Tests for Settings
=======================
測試設定管理器
"""
import json
from pathlib import Path

import pytest
import yaml

from semtools.config import (
    DEFAULT_ONTOLOGY_URLS,
    MetricSettings,
    SettingsManager,
    get_settings_manager,
    reset_settings_manager,
)


@pytest.fixture
def manager() -> SettingsManager:
    """創建設定管理器"""
    return SettingsManager()


class TestDefaults:
    """測試預設值"""

    def test_metric_defaults(self, manager):
        """測試度量預設值"""
        assert manager.metrics.ic_type == "resnik"
        assert manager.metrics.sim_type == "resnik"
        assert manager.metrics.zhou_k == 0.5
        assert manager.metrics.bidirectional is True

    def test_profile_defaults(self, manager):
        """測試 profile 預設值"""
        assert manager.profiles.substitute is True
        assert manager.profiles.minimum_childs == 2

    def test_loader_defaults(self, manager):
        """測試已知本體表"""
        assert manager.loader.known_ontologies == DEFAULT_ONTOLOGY_URLS
        assert manager.loader.known_ontologies is not DEFAULT_ONTOLOGY_URLS

    def test_current_values(self, manager):
        """測試所有設定值"""
        values = manager.get_current_values()
        assert set(values) == {"parser", "metrics", "profiles", "loader"}
        assert values["parser"]["skip_comment_lines"] is True


class TestMetricValidation:
    """測試度量驗證"""

    def test_invalid_ic_type(self):
        """測試不允許的 IC 類型"""
        with pytest.raises(ValueError):
            MetricSettings(ic_type="unknown").validate()

    def test_invalid_zhou_k(self):
        """測試 zhou_k 超出範圍"""
        with pytest.raises(ValueError):
            MetricSettings(zhou_k=1.5).validate()


class TestUpdateSetting:
    """測試單一設定更新"""

    def test_update(self, manager):
        """測試更新成功"""
        result = manager.update_setting("zhou_k", 0.3)
        assert result == {"success": True}
        assert manager.metrics.zhou_k == 0.3

    def test_update_unknown(self, manager):
        """測試未知設定"""
        result = manager.update_setting("nope", 1)
        assert not result["success"]
        assert "Unknown setting" in result["error"]

    def test_update_invalid_rolls_back(self, manager):
        """測試無效值時還原"""
        result = manager.update_setting("sim_type", "cosine")
        assert not result["success"]
        assert manager.metrics.sim_type == "resnik"

    def test_update_with_category(self, manager):
        """測試指定類別"""
        assert manager.update_setting("substitute", False, category="profiles")["success"]
        assert manager.profiles.substitute is False
        assert not manager.update_setting("substitute", False, category="metrics")["success"]


class TestPersistence:
    """測試設定檔讀寫"""

    def test_yaml_round_trip(self, manager, tmp_path: Path):
        """測試 YAML 存取"""
        manager.metrics.ic_type = "seco"
        manager.parser.removable_terms = ["X:1"]
        path = tmp_path / "configs" / "semtools.yaml"
        manager.save_to_yaml(path)

        loaded = SettingsManager()
        loaded.load_from_yaml(path)
        assert loaded.metrics.ic_type == "seco"
        assert loaded.parser.removable_terms == ["X:1"]

    def test_load_yaml_unknown_key(self, manager, tmp_path: Path, caplog):
        """測試略過未知設定"""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"metrics": {"zhou_k": 0.2, "other": 1}}))

        manager.load_from_yaml(path)
        assert manager.metrics.zhou_k == 0.2
        assert "metrics.other" in caplog.text

    def test_load_yaml_invalid_metric(self, manager, tmp_path: Path):
        """測試無效的度量設定"""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump({"metrics": {"ic_type": "unknown"}}))
        with pytest.raises(ValueError):
            manager.load_from_yaml(path)

    def test_load_yaml_missing(self, manager, tmp_path: Path):
        """測試不存在的設定檔"""
        with pytest.raises(FileNotFoundError):
            manager.load_from_yaml(tmp_path / "missing.yaml")

    def test_save_json(self, manager, tmp_path: Path):
        """測試 JSON 匯出"""
        path = tmp_path / "config.json"
        manager.save_to_json(path)
        data = json.loads(path.read_text())
        assert data["version"] == "1.0"
        assert data["metrics"]["zhou_k"] == 0.5


class TestGlobalManager:
    """測試全域管理器"""

    def test_singleton(self):
        """測試單例"""
        assert get_settings_manager() is get_settings_manager()

    def test_reset(self):
        """測試重置"""
        first = get_settings_manager()
        first.metrics.zhou_k = 0.1
        reset_settings_manager()
        assert get_settings_manager().metrics.zhou_k == 0.5
