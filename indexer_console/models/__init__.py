"""Modèles de données"""

from .indexer import (
    Config,
    DEFAULT_SETTINGS,
    RESERVED_KEYS,
    Indexer,
    IndexerStats,
    IndexerTestResult,
    SettingDescriptor,
    SettingType,
)
from .row import CheckStatus, RowEvent, RowState, apply, can_apply
from .search import SearchResult, format_size, format_title_link, sort_results

__all__ = [
    "Config",
    "DEFAULT_SETTINGS",
    "RESERVED_KEYS",
    "Indexer",
    "IndexerStats",
    "IndexerTestResult",
    "SettingDescriptor",
    "SettingType",
    "RowEvent",
    "RowState",
    "CheckStatus",
    "apply",
    "can_apply",
    "SearchResult",
    "format_size",
    "format_title_link",
    "sort_results",
]
