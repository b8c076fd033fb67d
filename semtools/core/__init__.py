"""
semtools Core Module
====================
核心模組，包含所有本體模組共享的類型

使用方式:
    from semtools.core import StructureType, ICType, SimilarityType
    from semtools.core import TermMetadata, TermPathRecord
"""

from semtools.core.types import (
    # Type aliases
    TagValue,
    TagMap,
    ProfileID,
    # Tag tables
    MULTIVALUE_TAGS,
    TRAILING_MODIFIER_TAGS,
    ALTERNATIVE_TAGS,
    OBSOLETE_TAG,
    ANCESTOR_TAG,
    # Enums
    StanzaKind,
    StructureType,
    ExpansionStatus,
    ICType,
    SimilarityType,
    # Records
    TermMetadata,
    MaxFrequencies,
    TermPathRecord,
    TermDictionary,
)


__all__ = [
    # Type aliases
    "TagValue",
    "TagMap",
    "ProfileID",
    # Tag tables
    "MULTIVALUE_TAGS",
    "TRAILING_MODIFIER_TAGS",
    "ALTERNATIVE_TAGS",
    "OBSOLETE_TAG",
    "ANCESTOR_TAG",
    # Enums
    "StanzaKind",
    "StructureType",
    "ExpansionStatus",
    "ICType",
    "SimilarityType",
    # Records
    "TermMetadata",
    "MaxFrequencies",
    "TermPathRecord",
    "TermDictionary",
]
