"""
Semantic Merge Engine
=====================

Cross-source column merging for multi-platform analytics dashboards.

Different platforms report the same business concept under different column
names (Google Ads "cost", Facebook "spend", LinkedIn "total_spend"). The engine
recognizes such columns, lets a user confirm a merge rule, and executes
grouped queries that read the right column from each source at query time.

Features:
- Synonym-based merge suggestions with confidence scores
- Thread-safe, instance-owned merge rule store
- Grouped queries with sum/avg/max/min/count/first aggregation
- Fail-open filters with warnings attached to every result
- Structured logging and process-wide metrics

Quick Start:
------------

    from semantic_merge import SemanticMergeEngine, generate_demo_sources

    engine = SemanticMergeEngine()
    sources = generate_demo_sources(days=7, seed=42)

    for suggestion in engine.analyze_sources(sources):
        print(suggestion.canonical_name, suggestion.confidence)

    engine.create_merge_rule(
        "total_cost", "Total Cost",
        [{"source_id": "google_ads_demo", "column_name": "cost"},
         {"source_id": "facebook_ads_demo", "column_name": "spend"}],
        "sum",
    )

    result = engine.execute_query(
        {"dimensions": ["date"], "metrics": ["total_cost"],
         "sources": ["google_ads_demo", "facebook_ads_demo"]},
        sources,
    )
    print(result.data[:3], result.warning_messages)

From Configuration:
-------------------

    from semantic_merge import create_engine

    # Reads MERGE_* environment variables (and .env); a synonym file
    # extends the built-in library
    engine = create_engine(synonym_file="synonyms.yaml")
"""

__version__ = "1.0.0"
__author__ = "Semantic Merge Team"

# Configuration
from .config import (
    LogLevel,
    EngineConfig,
    MetricsConfig,
    SystemConfig,
    get_config,
    set_config,
    reset_config,
)

# Models
from .models import (
    DataType,
    ColumnClassification,
    FormatType,
    AggregationType,
    FilterOperator,
    WarningCode,
    ColumnSchema,
    DataSource,
    ColumnSynonym,
    SourceColumnRef,
    MergeRule,
    SuggestedColumn,
    MergeSuggestion,
    QueryFilter,
    DateRange,
    MergedDataQuery,
    QueryWarning,
    QueryMetadata,
    MergedDataResult,
)

from .values import CellValue, Row, ValueKind

# Components
from .synonyms import DEFAULT_SYNONYMS, SynonymLibrary
from .analyzer import SuggestionAnalyzer
from .registry import MergeRuleStore
from .executor import QueryExecutor
from .packager import ResultPackager, WarningCollector
from .grouping import GroupKey
from .engine import SemanticMergeEngine, create_engine
from .demo_data import generate_demo_sources, get_demo_source

# Utilities
from .utils import (
    setup_logging,
    get_logger,
    log_context,
    get_metrics_collector,
    SemanticMergeError,
    ValidationError,
    DuplicateMergeRuleError,
    SynonymLibraryError,
    ConfigurationError,
    QueryTimeoutError,
)

__all__ = [
    # Version
    "__version__",

    # Configuration
    "LogLevel",
    "EngineConfig",
    "MetricsConfig",
    "SystemConfig",
    "get_config",
    "set_config",
    "reset_config",

    # Models
    "DataType",
    "ColumnClassification",
    "FormatType",
    "AggregationType",
    "FilterOperator",
    "WarningCode",
    "ColumnSchema",
    "DataSource",
    "ColumnSynonym",
    "SourceColumnRef",
    "MergeRule",
    "SuggestedColumn",
    "MergeSuggestion",
    "QueryFilter",
    "DateRange",
    "MergedDataQuery",
    "QueryWarning",
    "QueryMetadata",
    "MergedDataResult",
    "CellValue",
    "Row",
    "ValueKind",

    # Components
    "DEFAULT_SYNONYMS",
    "SynonymLibrary",
    "SuggestionAnalyzer",
    "MergeRuleStore",
    "QueryExecutor",
    "ResultPackager",
    "WarningCollector",
    "GroupKey",
    "SemanticMergeEngine",
    "create_engine",
    "generate_demo_sources",
    "get_demo_source",

    # Utilities
    "setup_logging",
    "get_logger",
    "log_context",
    "get_metrics_collector",
    "SemanticMergeError",
    "ValidationError",
    "DuplicateMergeRuleError",
    "SynonymLibraryError",
    "ConfigurationError",
    "QueryTimeoutError",
]
