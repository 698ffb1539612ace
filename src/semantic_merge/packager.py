"""
Result packaging: wraps aggregated rows with execution metadata and the
warnings gathered along the way.
"""
from __future__ import annotations

import time
from typing import List, Optional, Sequence, Set, Tuple

from .models import (
    DataSource,
    MergedDataQuery,
    MergedDataResult,
    QueryMetadata,
    QueryWarning,
    WarningCode,
)
from .utils import MergeEngineMetrics, get_logger
from .values import Row

logger = get_logger(__name__)


class WarningCollector:
    """De-duplicating, capped list of query warnings"""

    def __init__(self, max_warnings: int = 100):
        self.max_warnings = max_warnings
        self._warnings: List[QueryWarning] = []
        self._seen: Set[Tuple[WarningCode, Optional[str], Optional[str], str]] = set()
        self.dropped = 0

    def __len__(self) -> int:
        return len(self._warnings)

    def add(
        self,
        code: WarningCode,
        message: str,
        source_id: Optional[str] = None,
        column: Optional[str] = None,
    ) -> None:
        key = (code, source_id, column, message)
        if key in self._seen:
            return
        self._seen.add(key)

        if len(self._warnings) >= self.max_warnings:
            self.dropped += 1
            return

        self._warnings.append(QueryWarning(code=code, message=message, source_id=source_id, column=column))
        MergeEngineMetrics.record_warning(code.value)
        logger.warning(message)

    def to_list(self) -> List[QueryWarning]:
        return list(self._warnings)


class ResultPackager:
    """Builds the MergedDataResult returned to callers"""

    def package(
        self,
        rows: List[Row],
        sources_used: Sequence[DataSource],
        query: MergedDataQuery,
        rules_applied: Sequence[str],
        started_at: float,
        warnings: Optional[WarningCollector] = None,
    ) -> MergedDataResult:
        """
        Args:
            rows: finalized, already-limited output rows
            sources_used: sources actually queried
            query: the executed query
            rules_applied: ids of the merge rules exercised
            started_at: time.perf_counter() value taken when execution began
            warnings: collector filled during execution
        """
        execution_ms = round((time.perf_counter() - started_at) * 1000, 3)

        metadata = QueryMetadata(
            total_rows=len(rows),
            sources_used=[source.id for source in sources_used],
            columns_returned=list(query.requested_columns),
            merge_rules_applied=list(rules_applied),
            query_execution_time=execution_ms,
        )

        collected = warnings.to_list() if warnings is not None else []
        if warnings is not None and warnings.dropped:
            logger.debug(f"{warnings.dropped} additional warnings suppressed")

        MergeEngineMetrics.record_query(
            execution_ms,
            rows=metadata.total_rows,
            sources=len(metadata.sources_used),
            rules_applied=len(metadata.merge_rules_applied),
        )

        return MergedDataResult(data=rows, metadata=metadata, warnings=collected)
