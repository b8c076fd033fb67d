"""
semtools Engine Settings
========================
Centralized settings for parsing, metrics, profiles and ontology loading.

Module: semtools/config/settings.py

Purpose:
    Provide a unified settings layer that:
    - Defines the default IC / similarity formulas and the zhou coefficient
    - Holds profile handling defaults (substitution, cleaning, rounding)
    - Holds the ontology cache directory and known-ontology URL table
    - Persists configurations to YAML/JSON files

Components:
    - ParserSettings: OBO parsing options
    - MetricSettings: IC and similarity defaults
    - ProfileSettings: Profile manager defaults
    - LoaderSettings: Ontology cache and download table
    - SettingsManager: Central manager for all settings

Dependencies:
    - yaml: Configuration file I/O
    - json: JSON export

Called by:
    - semtools/ontology/hierarchy.py (zhou_k, default IC type)
    - semtools/ontology/loader.py (cache directory, URL table)
    - scripts/semtools_cli.py (--config option)

Version: 1.0.0
"""
from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from semtools.core.types import ICType, SimilarityType

logger = logging.getLogger(__name__)


# =============================================================================
# Parser Settings
# =============================================================================
@dataclass
class ParserSettings:
    """OBO parsing options"""
    # Lines starting with "!" are skipped
    skip_comment_lines: bool = True

    # Extra dictionaries computed at build time: {tag: {select_regex, store_tag, multiterm, ...}}
    extra_dictionaries: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    # Terms removed before indexing
    removable_terms: List[str] = field(default_factory=list)


# =============================================================================
# Metric Settings
# =============================================================================
@dataclass
class MetricSettings:
    """IC and similarity defaults"""
    ic_type: str = ICType.RESNIK.value
    sim_type: str = SimilarityType.RESNIK.value

    # Zhou IC mixes seco and depth: k * seco + (1 - k) * depth term
    zhou_k: float = 0.5

    # Symmetrize profile comparisons
    bidirectional: bool = True

    def validate(self) -> None:
        ICType.parse(self.ic_type)
        SimilarityType.parse(self.sim_type)
        if not 0.0 <= self.zhou_k <= 1.0:
            raise ValueError(f"zhou_k must be within [0, 1]: {self.zhou_k}")


# =============================================================================
# Profile Settings
# =============================================================================
@dataclass
class ProfileSettings:
    """Profile manager defaults"""
    # Replace alternative IDs by their canonical term when storing profiles
    substitute: bool = True
    remove_alternatives: bool = True
    mean_size_round_digits: int = 4

    # Minimum children holding items needed to propagate to a parent
    minimum_childs: int = 2


# =============================================================================
# Loader Settings
# =============================================================================
DEFAULT_ONTOLOGY_URLS = {
    "hp": "http://purl.obolibrary.org/obo/hp.obo",
    "go": "http://purl.obolibrary.org/obo/go.obo",
    "mondo": "http://purl.obolibrary.org/obo/mondo.obo",
    "mp": "http://purl.obolibrary.org/obo/mp.obo",
}


@dataclass
class LoaderSettings:
    """Ontology cache and download table"""
    cache_dir: str = str(Path.home() / ".semtools" / "ontologies")
    known_ontologies: Dict[str, str] = field(
        default_factory=lambda: dict(DEFAULT_ONTOLOGY_URLS)
    )


# =============================================================================
# Settings Manager
# =============================================================================
class SettingsManager:
    """
    Central manager for all engine settings

    Provides:
    - Unified access to all setting groups
    - Validated single-setting updates
    - Configuration persistence
    """

    CATEGORIES = ("parser", "metrics", "profiles", "loader")

    def __init__(
        self,
        parser: Optional[ParserSettings] = None,
        metrics: Optional[MetricSettings] = None,
        profiles: Optional[ProfileSettings] = None,
        loader: Optional[LoaderSettings] = None,
    ):
        self.parser = parser or ParserSettings()
        self.metrics = metrics or MetricSettings()
        self.profiles = profiles or ProfileSettings()
        self.loader = loader or LoaderSettings()

    def get_current_values(self) -> Dict[str, Any]:
        """
        Get current values of all settings

        Returns:
            Dict with category -> setting -> value structure
        """
        return {category: asdict(getattr(self, category)) for category in self.CATEGORIES}

    def update_setting(
        self,
        name: str,
        value: Any,
        category: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Update a single setting

        Args:
            name: Setting name
            value: New value
            category: Optional category hint, required when a name is ambiguous

        Returns:
            Dict with success status and optional error
        """
        result: Dict[str, Any] = {"success": False}

        candidates = [category] if category else list(self.CATEGORIES)
        owners = [
            c for c in candidates
            if c in self.CATEGORIES and name in {f.name for f in fields(getattr(self, c))}
        ]
        if not owners:
            result["error"] = f"Unknown setting: {name}"
            return result
        if len(owners) > 1:
            result["error"] = f"Ambiguous setting {name}, specify one of {owners}"
            return result

        group = getattr(self, owners[0])
        previous = getattr(group, name)
        setattr(group, name, value)

        if isinstance(group, MetricSettings):
            try:
                group.validate()
            except ValueError as e:
                setattr(group, name, previous)
                result["error"] = str(e)
                return result

        result["success"] = True
        logger.info(f"Updated setting {owners[0]}.{name} = {value}")
        return result

    # =========================================================================
    # Persistence
    # =========================================================================
    def _snapshot(self) -> Dict[str, Any]:
        config = {"version": "1.0", "updated_at": datetime.now().isoformat()}
        config.update(self.get_current_values())
        return config

    def save_to_yaml(self, path: Union[str, Path]) -> None:
        """Save current configuration to YAML file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            yaml.dump(self._snapshot(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Configuration saved to {path}")

    def load_from_yaml(self, path: Union[str, Path]) -> None:
        """Load configuration from YAML file"""
        path = Path(path)

        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            config = yaml.safe_load(f) or {}

        for category in self.CATEGORIES:
            group = getattr(self, category)
            for key, value in (config.get(category) or {}).items():
                if hasattr(group, key):
                    setattr(group, key, value)
                else:
                    logger.warning(f"Ignoring unknown setting {category}.{key} in {path}")

        self.metrics.validate()
        logger.info(f"Configuration loaded from {path}")

    def save_to_json(self, path: Union[str, Path]) -> None:
        """Save current configuration to JSON file"""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(self._snapshot(), f, indent=2)

        logger.info(f"Configuration saved to {path}")


# =============================================================================
# Global Access
# =============================================================================
# Singleton instance for global access
_default_manager: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """Get the global settings manager instance"""
    global _default_manager
    if _default_manager is None:
        _default_manager = SettingsManager()
    return _default_manager


def reset_settings_manager() -> None:
    """Reset the global manager (for testing)"""
    global _default_manager
    _default_manager = None


__all__ = [
    "ParserSettings",
    "MetricSettings",
    "ProfileSettings",
    "LoaderSettings",
    "DEFAULT_ONTOLOGY_URLS",
    "SettingsManager",
    "get_settings_manager",
    "reset_settings_manager",
]
