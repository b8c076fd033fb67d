"""
semtools Configuration Module
=============================
Centralized settings management for the ontology engine.

Module: semtools/config/__init__.py

Components (re-exported):
    From settings:
        - ParserSettings: OBO parsing options
        - MetricSettings: IC / similarity defaults
        - ProfileSettings: Profile manager defaults
        - LoaderSettings: Ontology cache and URL table
        - SettingsManager: Central settings manager
        - get_settings_manager: Get global manager instance

Usage:
    from semtools.config import get_settings_manager
    manager = get_settings_manager()

    # Update a setting
    result = manager.update_setting("zhou_k", 0.3)

    # Save configuration
    manager.save_to_yaml("configs/semtools.yaml")

Version: 1.0.0
"""

from semtools.config.settings import (
    ParserSettings,
    MetricSettings,
    ProfileSettings,
    LoaderSettings,
    DEFAULT_ONTOLOGY_URLS,
    SettingsManager,
    get_settings_manager,
    reset_settings_manager,
)


__all__ = [
    # Setting groups
    "ParserSettings",
    "MetricSettings",
    "ProfileSettings",
    "LoaderSettings",
    "DEFAULT_ONTOLOGY_URLS",
    # Manager
    "SettingsManager",
    "get_settings_manager",
    "reset_settings_manager",
]
