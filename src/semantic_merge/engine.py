"""
Semantic Merge Engine

Entry point used by the dashboard/query layer. Owns one merge rule store and
wires the synonym library, suggestion analyzer and query executor around it.

Usage:
    engine = SemanticMergeEngine()

    suggestions = engine.analyze_sources(sources)
    rule = engine.create_rule_from_suggestion(suggestions[0])

    result = engine.execute_query(
        {"dimensions": ["date"], "metrics": [rule.merged_name], "sources": ["google", "meta"]},
        sources,
    )
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

from .analyzer import SuggestionAnalyzer
from .config import EngineConfig, SystemConfig, get_config
from .executor import QueryExecutor
from .models import (
    AggregationType,
    ColumnSynonym,
    DataSource,
    MergedDataQuery,
    MergedDataResult,
    MergeRule,
    MergeSuggestion,
)
from .registry import MergeRuleStore, SourceColumnInput
from .synonyms import SynonymLibrary
from .utils import get_logger, get_metrics_collector, setup_logging

logger = get_logger(__name__)


class SemanticMergeEngine:
    """
    Facade over the analyzer, rule store and executor

    Each engine instance has its own rule store unless one is passed in, so
    two engines never share rules by accident.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        library: Optional[SynonymLibrary] = None,
        store: Optional[MergeRuleStore] = None,
    ):
        self.config = config or EngineConfig()
        self.library = library or SynonymLibrary()
        self.store = store or MergeRuleStore(
            reject_duplicate_names=self.config.reject_duplicate_rule_names
        )
        self.analyzer = SuggestionAnalyzer(self.library, self.config)
        self.executor = QueryExecutor(self.store, self.config)

    # Suggestion analysis

    def analyze_sources(self, sources: Sequence[DataSource]) -> List[MergeSuggestion]:
        return self.analyzer.analyze_sources(sources)

    # Rule registry

    def create_merge_rule(
        self,
        merged_name: str,
        display_name: str,
        source_columns: Iterable[SourceColumnInput],
        aggregation_type: Union[AggregationType, str],
        created_by: Optional[str] = None,
    ) -> MergeRule:
        return self.store.create_merge_rule(
            merged_name, display_name, source_columns, aggregation_type, created_by=created_by
        )

    def create_rule_from_suggestion(
        self,
        suggestion: MergeSuggestion,
        aggregation_type: Optional[Union[AggregationType, str]] = None,
        merged_name: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> MergeRule:
        """Confirm a suggestion as a rule, defaulting to its suggested aggregation and canonical name"""
        return self.store.create_merge_rule(
            merged_name or suggestion.canonical_name,
            suggestion.display_name,
            suggestion.to_source_columns(),
            aggregation_type or suggestion.suggested_aggregation,
            created_by=created_by,
        )

    def delete_merge_rule(self, rule_id: str) -> bool:
        return self.store.delete_merge_rule(rule_id)

    def get_merge_rules(self) -> List[MergeRule]:
        return self.store.get_merge_rules()

    def get_merge_rule_by_name(self, merged_name: str) -> Optional[MergeRule]:
        return self.store.get_merge_rule_by_name(merged_name)

    # Query execution

    def execute_query(
        self,
        query: Union[MergedDataQuery, Dict[str, Any]],
        sources: Sequence[DataSource],
        timeout: Optional[float] = None,
    ) -> MergedDataResult:
        return self.executor.execute(query, sources, timeout=timeout)

    # Reference data

    def get_all_synonyms(self) -> List[ColumnSynonym]:
        return self.library.all_synonyms()


def create_engine(
    config: Optional[SystemConfig] = None,
    synonym_file: Optional[str] = None,
) -> SemanticMergeEngine:
    """
    Build an engine from system configuration

    Falls back to the global (environment-derived) configuration. Logging is
    configured from it (debug_mode forces DEBUG). A synonym file, given here
    or in the configuration, extends the default library.
    """
    config = config or get_config()

    level = "DEBUG" if config.debug_mode else config.log_level
    setup_logging(level=level, json_format=config.json_logs)

    collector = get_metrics_collector()
    if config.metrics.enabled:
        collector.enable()
    else:
        collector.disable()

    path = synonym_file or config.synonym_file
    library = SynonymLibrary.load(path, extend_defaults=True) if path else SynonymLibrary()

    logger.info(
        f"Semantic merge engine ready ({len(library)} synonym entries, "
        f"duplicate rule names {'rejected' if config.engine.reject_duplicate_rule_names else 'allowed'})"
    )
    return SemanticMergeEngine(config=config.engine, library=library)
