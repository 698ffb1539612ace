"""
Query Executor

Runs an ad-hoc grouped query over the raw rows of several sources, resolving
merge rules at query time:

1. Select the requested sources and filter their rows
2. Resolve requested dimensions/metrics against the merge rule store
3. Plan, per source, which field feeds each requested column
4. Group rows by a composite key and accumulate metrics
5. Finalize accumulators, apply the limit and package the result

Malformed data never raises: missing columns, unknown filter operators and
sources a rule does not map degrade to null/0/pass-through and are reported
as warnings on the result.
"""
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple, Union

from .aggregation import Accumulator, create_accumulator
from .config import EngineConfig
from .filters import filter_date_range, filter_rows
from .grouping import GroupKey
from .models import (
    AggregationType,
    DataSource,
    MergedDataQuery,
    MergedDataResult,
    MergeRule,
    WarningCode,
)
from .packager import ResultPackager, WarningCollector
from .registry import MergeRuleStore
from .utils import MergeEngineMetrics, get_logger, log_context, log_operation, new_query_id
from .utils.errors import QueryTimeoutError
from .values import Row

logger = get_logger(__name__)

# Deadline is checked once per this many accumulated rows
DEADLINE_CHECK_INTERVAL = 1024


@dataclass
class SourcePlan:
    """Which field of one source feeds each requested column (None: no field)"""
    source: DataSource
    rows: List[Row]
    fields: Dict[str, Optional[str]] = field(default_factory=dict)
    # Bare columns the source does not carry at all (already warned about)
    absent: Set[str] = field(default_factory=set)


@dataclass
class GroupState:
    """Accumulator row for one grouping key"""
    dimensions: Dict[str, Any]
    accumulators: Dict[str, Accumulator]


class QueryExecutor:
    """
    Executes MergedDataQuery objects against already-fetched sources

    Usage:
        executor = QueryExecutor(store)
        result = executor.execute(query, sources)
    """

    def __init__(
        self,
        store: MergeRuleStore,
        config: Optional[EngineConfig] = None,
        packager: Optional[ResultPackager] = None,
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.packager = packager or ResultPackager()

    def execute(
        self,
        query: Union[MergedDataQuery, Dict[str, Any]],
        sources: Sequence[DataSource],
        timeout: Optional[float] = None,
    ) -> MergedDataResult:
        """
        Execute a query

        Args:
            query: query object or dict of the same shape
            sources: every available source; only those named in query.sources are read
            timeout: optional deadline in seconds, overriding the configured one

        Raises:
            QueryTimeoutError: accumulation ran past the deadline
        """
        if isinstance(query, dict):
            query = MergedDataQuery.from_dict(query)

        started_at = time.perf_counter()
        timeout = timeout if timeout is not None else self.config.query_timeout_seconds
        deadline = started_at + timeout if timeout else None
        warnings = WarningCollector(self.config.max_warnings)

        with log_context(query_id=new_query_id(), component="executor"), log_operation(
            logger, "execute_query",
            sources=query.sources,
            dimensions=query.dimensions,
            metrics=query.metrics,
        ) as op:
            selected = self._select_sources(query, sources, warnings)
            columns_to_merge, rules_applied = self._resolve_merge_rules(query)
            group_columns = self._grouping_columns(query, columns_to_merge)

            plans = []
            for source in selected:
                with log_context(source_id=source.id):
                    plan = self._plan_source(source, query, group_columns, columns_to_merge, warnings)
                    logger.debug(f"{len(plan.rows)} of {len(source.rows)} rows kept after filters")
                plans.append(plan)
            self._restrict_unmerged_metrics(plans, query, columns_to_merge)

            groups = self._accumulate(plans, query, group_columns, columns_to_merge, warnings, deadline, timeout)
            rows = self._finalize(groups, query)

            if query.limit is not None and query.limit >= 0:
                rows = rows[:query.limit]

            result = self.packager.package(
                rows=rows,
                sources_used=selected,
                query=query,
                rules_applied=rules_applied,
                started_at=started_at,
                warnings=warnings,
            )
            op['rows'] = result.metadata.total_rows
            op['groups'] = len(groups)
            op['warnings'] = len(result.warnings)

        return result

    # ------------------------------------------------------------------
    # Planning
    # ------------------------------------------------------------------

    def _select_sources(
        self,
        query: MergedDataQuery,
        sources: Sequence[DataSource],
        warnings: WarningCollector,
    ) -> List[DataSource]:
        wanted = set(query.sources)
        selected = [source for source in sources if source.id in wanted]

        known = {source.id for source in sources}
        for source_id in query.sources:
            if source_id not in known:
                warnings.add(
                    WarningCode.UNKNOWN_SOURCE,
                    f"Source '{source_id}' was requested but not provided; ignored",
                    source_id=source_id,
                )

        return selected

    def _resolve_merge_rules(self, query: MergedDataQuery) -> Tuple[Dict[str, MergeRule], List[str]]:
        """Map requested (and explicitly grouped) names to rules, from one snapshot of the store"""
        by_name: Dict[str, MergeRule] = {}
        for rule in self.store.get_merge_rules():
            by_name.setdefault(rule.merged_name, rule)

        columns_to_merge: Dict[str, MergeRule] = {}
        rules_applied: List[str] = []
        for column in [*query.requested_columns, *(query.group_by or [])]:
            rule = by_name.get(column)
            if rule is None:
                continue
            columns_to_merge[column] = rule
            if rule.id not in rules_applied:
                rules_applied.append(rule.id)
                logger.bind(rule_id=rule.id).debug(
                    f"'{column}' resolved through merge rule ({rule.aggregation_type.value} "
                    f"over {len(rule.source_columns)} columns)"
                )

        return columns_to_merge, rules_applied

    def _grouping_columns(self, query: MergedDataQuery, columns_to_merge: Dict[str, MergeRule]) -> List[str]:
        if query.group_by is not None:
            return list(query.group_by)

        if not self.config.exclude_merged_dimensions_from_grouping:
            return list(query.dimensions)

        excluded = [dim for dim in query.dimensions if dim in columns_to_merge]
        if excluded:
            logger.debug(f"Merged dimensions left out of grouping: {excluded}")
        return [dim for dim in query.dimensions if dim not in columns_to_merge]

    def _plan_source(
        self,
        source: DataSource,
        query: MergedDataQuery,
        group_columns: List[str],
        columns_to_merge: Dict[str, MergeRule],
        warnings: WarningCollector,
    ) -> SourcePlan:
        rows = filter_rows(source, source.rows, query.filters, warnings)
        if query.date_range is not None:
            rows = filter_date_range(rows, query.date_range, self.config.date_field)

        plan = SourcePlan(source=source, rows=rows)

        for column in [*group_columns, *query.metrics]:
            if column in plan.fields:
                continue

            rule = columns_to_merge.get(column)
            if rule is not None:
                mapped = rule.column_for_source(source.id)
                if mapped is None:
                    warnings.add(
                        WarningCode.UNMAPPED_MERGE_SOURCE,
                        f"Merge rule '{rule.merged_name}' has no column for source '{source.id}'",
                        source_id=source.id,
                        column=column,
                    )
                plan.fields[column] = mapped
                continue

            if not self._source_has_field(source, column):
                warnings.add(
                    WarningCode.UNRECOGNIZED_COLUMN,
                    f"Column '{column}' is neither a merge rule nor a field of source '{source.id}'",
                    source_id=source.id,
                    column=column,
                )
                plan.absent.add(column)
            plan.fields[column] = column

        return plan

    def _restrict_unmerged_metrics(
        self,
        plans: List[SourcePlan],
        query: MergedDataQuery,
        columns_to_merge: Dict[str, MergeRule],
    ) -> None:
        """When cross-source summing of bare metrics is off, keep only the first source that has each"""
        if self.config.sum_unmerged_metrics:
            return

        for metric in query.metrics:
            if metric in columns_to_merge:
                continue
            owner_found = False
            for plan in plans:
                if owner_found or not self._source_has_field(plan.source, metric):
                    plan.fields[metric] = None
                else:
                    owner_found = True

    @staticmethod
    def _source_has_field(source: DataSource, column: str) -> bool:
        if source.has_column(column):
            return True
        return bool(source.rows) and column in source.rows[0]

    # ------------------------------------------------------------------
    # Accumulation
    # ------------------------------------------------------------------

    def _accumulate(
        self,
        plans: List[SourcePlan],
        query: MergedDataQuery,
        group_columns: List[str],
        columns_to_merge: Dict[str, MergeRule],
        warnings: WarningCollector,
        deadline: Optional[float],
        timeout: Optional[float],
    ) -> Dict[GroupKey, GroupState]:
        groups: Dict[GroupKey, GroupState] = {}
        aggregations = {
            metric: (columns_to_merge[metric].aggregation_type if metric in columns_to_merge
                     else AggregationType.SUM)
            for metric in query.metrics
        }
        processed = 0

        for plan in plans:
            source_id = plan.source.id

            for row in plan.rows:
                processed += 1
                if deadline is not None and processed % DEADLINE_CHECK_INTERVAL == 0:
                    self._check_deadline(deadline, timeout, processed)

                dim_values = [self._read(row, plan.fields.get(col)) for col in group_columns]
                key = GroupKey.from_values(dim_values)

                state = groups.get(key)
                if state is None:
                    state = GroupState(
                        dimensions=dict(zip(group_columns, dim_values)),
                        accumulators={m: create_accumulator(a) for m, a in aggregations.items()},
                    )
                    groups[key] = state

                for metric, accumulator in state.accumulators.items():
                    field_name = plan.fields.get(metric)
                    if field_name is None:
                        continue

                    value = row.get(field_name)
                    if value is None and accumulator.aggregation_type != AggregationType.COUNT:
                        if self.config.skip_missing_values:
                            continue
                        if metric not in plan.absent:
                            warnings.add(
                                WarningCode.MISSING_VALUE,
                                f"Missing value in '{field_name}' of source '{source_id}' counted as 0",
                                source_id=source_id,
                                column=metric,
                            )

                    if not accumulator.add(value):
                        warnings.add(
                            WarningCode.NON_NUMERIC_VALUE,
                            f"Non-numeric value in '{field_name}' of source '{source_id}' counted as 0",
                            source_id=source_id,
                            column=metric,
                        )

        if deadline is not None:
            self._check_deadline(deadline, timeout, processed)

        return groups

    @staticmethod
    def _read(row: Row, field_name: Optional[str]) -> Any:
        return row.get(field_name) if field_name is not None else None

    @staticmethod
    def _check_deadline(deadline: float, timeout: Optional[float], processed: int) -> None:
        if time.perf_counter() > deadline:
            MergeEngineMetrics.record_query_timeout()
            raise QueryTimeoutError(
                f"Query exceeded {timeout}s after {processed} rows",
                timeout_seconds=timeout,
                rows_processed=processed,
            )

    # ------------------------------------------------------------------
    # Finalization
    # ------------------------------------------------------------------

    @staticmethod
    def _finalize(groups: Dict[GroupKey, GroupState], query: MergedDataQuery) -> List[Row]:
        """Dimension values first, then each metric's final value, in first-seen group order"""
        rows = []
        for state in groups.values():
            row = dict(state.dimensions)
            for metric in query.metrics:
                row[metric] = state.accumulators[metric].result()
            rows.append(row)
        return rows
