"""
Merge Suggestion Analyzer

Scans the schemas of several data sources against the synonym library and
proposes cross-source merges:

1. Resolve every column to a canonical concept (case-insensitive synonym match)
2. Group matched columns by canonical name across all sources
3. Keep groups that span at least two distinct sources
4. Score each group and sort by confidence
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from .config import EngineConfig
from .models import (
    AggregationType,
    ColumnClassification,
    ColumnSchema,
    DataSource,
    MergeSuggestion,
    SuggestedColumn,
)
from .synonyms import SynonymLibrary
from .utils import MergeEngineMetrics, get_logger

logger = get_logger(__name__)


@dataclass
class MatchedColumn:
    """A source column resolved to a canonical concept"""
    source_id: str
    source_name: str
    column: ColumnSchema


class SuggestionAnalyzer:
    """
    Proposes merges for columns that denote the same concept across sources

    Usage:
        analyzer = SuggestionAnalyzer(SynonymLibrary())
        suggestions = analyzer.analyze_sources(sources)
    """

    def __init__(
        self,
        library: Optional[SynonymLibrary] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.library = library or SynonymLibrary()
        self.config = config or EngineConfig()

    def analyze_sources(
        self,
        sources: Sequence[DataSource],
        min_confidence: Optional[float] = None,
    ) -> List[MergeSuggestion]:
        """
        Analyze source schemas and suggest merges

        Returns suggestions sorted by confidence (descending). Pure function
        of the sources and the library; callers re-run it after rule changes.
        """
        start = time.perf_counter()
        threshold = self.config.min_suggestion_confidence if min_confidence is None else min_confidence

        groups = self._group_by_canonical(sources)

        suggestions = []
        for canonical_name, matches in groups.items():
            distinct_sources = {m.source_id for m in matches}
            if len(distinct_sources) < 2:
                continue

            suggestion = self._build_suggestion(canonical_name, matches, len(distinct_sources))
            if suggestion.confidence >= threshold:
                suggestions.append(suggestion)

        suggestions.sort(key=lambda s: s.confidence, reverse=True)

        duration_ms = (time.perf_counter() - start) * 1000
        MergeEngineMetrics.record_analysis(duration_ms, len(suggestions))
        logger.info(
            f"Analyzed {len(sources)} sources: {len(groups)} canonical groups, "
            f"{len(suggestions)} merge suggestions"
        )

        return suggestions

    def calculate_confidence(self, columns: Sequence[ColumnSchema]) -> float:
        """
        Score a candidate merge

        base, plus a bonus when all columns share one declared type, plus a
        bonus when all share one classification; capped at 1.0.
        """
        confidence = self.config.base_confidence

        if len({col.type for col in columns}) == 1:
            confidence += self.config.type_match_bonus

        if len({col.classification for col in columns}) == 1:
            confidence += self.config.classification_match_bonus

        # Rounded so 0.7 + 0.2 + 0.1 reads as exactly 1.0
        return min(round(confidence, 6), 1.0)

    def _group_by_canonical(self, sources: Sequence[DataSource]) -> Dict[str, List[MatchedColumn]]:
        groups: Dict[str, List[MatchedColumn]] = {}

        for source in sources:
            for column in source.schema:
                synonym = self.library.find_synonym(column.name)
                if synonym is None:
                    continue
                groups.setdefault(synonym.canonical_name, []).append(
                    MatchedColumn(source_id=source.id, source_name=source.name, column=column)
                )

        return groups

    def _build_suggestion(
        self,
        canonical_name: str,
        matches: List[MatchedColumn],
        source_count: int,
    ) -> MergeSuggestion:
        synonym = self.library.get_by_canonical(canonical_name)
        confidence = self.calculate_confidence([m.column for m in matches])

        if synonym.classification == ColumnClassification.METRIC:
            aggregation = AggregationType.SUM
        else:
            aggregation = AggregationType.MAX

        logger.debug(
            f"Suggesting merge '{canonical_name}' over {source_count} sources "
            f"(confidence: {confidence:.0%})"
        )

        return MergeSuggestion(
            confidence=confidence,
            canonical_name=canonical_name,
            display_name=synonym.display_name,
            columns=[
                SuggestedColumn(
                    source_id=m.source_id,
                    source_name=m.source_name,
                    column_name=m.column.name,
                    display_name=m.column.display_name,
                    sample_values=list(m.column.sample_values),
                )
                for m in matches
            ],
            suggested_aggregation=aggregation,
            reason=(
                f'Found {len(matches)} columns that represent "{synonym.display_name}" '
                f"across {source_count} sources"
            ),
        )
