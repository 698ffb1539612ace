"""
Merge Rule Registry

In-memory store of confirmed merge rules. A store is an explicitly owned
object handed to the analyzer/executor; all mutation and snapshotting happen
under a single lock so readers always see a consistent rule list.
"""
from __future__ import annotations

import random
import string
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from .models import (
    AggregationType,
    ColumnClassification,
    MergeRule,
    SourceColumnRef,
)
from .utils import MergeEngineMetrics, get_logger
from .utils.errors import DuplicateMergeRuleError, ValidationError

logger = get_logger(__name__)

SourceColumnInput = Union[SourceColumnRef, Dict[str, Any]]

_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_rule_id() -> str:
    """merge_<epoch ms>_<9 base36 chars>"""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"merge_{int(time.time() * 1000)}_{suffix}"


def classification_for(aggregation_type: AggregationType) -> ColumnClassification:
    """`first` rules merge dimensions; every other aggregation merges metrics"""
    if aggregation_type == AggregationType.FIRST:
        return ColumnClassification.DIMENSION
    return ColumnClassification.METRIC


class MergeRuleStore:
    """
    Thread-safe registry of merge rules

    Usage:
        store = MergeRuleStore()
        rule = store.create_merge_rule(
            "total_cost", "Total Cost",
            [{"source_id": "google", "column_name": "cost"},
             {"source_id": "meta", "column_name": "spend"}],
            "sum",
        )
        store.delete_merge_rule(rule.id)
    """

    def __init__(self, reject_duplicate_names: bool = True):
        self.reject_duplicate_names = reject_duplicate_names
        self._rules: List[MergeRule] = []
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        with self._lock:
            return any(rule.id == rule_id for rule in self._rules)

    def create_merge_rule(
        self,
        merged_name: str,
        display_name: str,
        source_columns: Iterable[SourceColumnInput],
        aggregation_type: Union[AggregationType, str],
        created_by: Optional[str] = None,
    ) -> MergeRule:
        """Validate, register and return a new merge rule"""
        if not merged_name or not merged_name.strip():
            raise ValidationError("Merged name must not be empty", field_name="merged_name")

        aggregation = self._coerce_aggregation(aggregation_type)
        refs = self._coerce_source_columns(source_columns)

        rule = MergeRule(
            id=generate_rule_id(),
            merged_name=merged_name,
            display_name=display_name or merged_name,
            source_columns=tuple(refs),
            aggregation_type=aggregation,
            classification=classification_for(aggregation),
            created_at=datetime.now(timezone.utc).isoformat(),
            created_by=created_by,
        )

        with self._lock:
            existing = self._find_by_name(merged_name)
            if existing is not None:
                if self.reject_duplicate_names:
                    raise DuplicateMergeRuleError(merged_name, existing_rule_id=existing.id)
                logger.warning(
                    f"Merge rule '{merged_name}' already exists as {existing.id}; "
                    f"the earlier rule keeps precedence"
                )
            self._rules.append(rule)
            count = len(self._rules)

        MergeEngineMetrics.record_rule_created(aggregation.value)
        MergeEngineMetrics.set_rule_count(count)
        logger.bind(rule_id=rule.id).info(
            f"Created merge rule '{merged_name}' "
            f"({aggregation.value}) over {len(refs)} columns"
        )
        return rule

    def delete_merge_rule(self, rule_id: str) -> bool:
        """Remove a rule by id; returns whether it existed"""
        with self._lock:
            for index, rule in enumerate(self._rules):
                if rule.id == rule_id:
                    del self._rules[index]
                    count = len(self._rules)
                    break
            else:
                logger.debug(f"Merge rule not found for deletion: {rule_id}")
                return False

        MergeEngineMetrics.record_rule_deleted()
        MergeEngineMetrics.set_rule_count(count)
        logger.bind(rule_id=rule_id).info("Deleted merge rule")
        return True

    def get_merge_rules(self) -> List[MergeRule]:
        """Snapshot of all rules in creation order"""
        with self._lock:
            return list(self._rules)

    def get_merge_rule(self, rule_id: str) -> Optional[MergeRule]:
        with self._lock:
            for rule in self._rules:
                if rule.id == rule_id:
                    return rule
        return None

    def get_merge_rule_by_name(self, merged_name: str) -> Optional[MergeRule]:
        """Earliest-created rule with this merged name"""
        with self._lock:
            return self._find_by_name(merged_name)

    def clear(self) -> None:
        with self._lock:
            self._rules.clear()
        MergeEngineMetrics.set_rule_count(0)

    def _find_by_name(self, merged_name: str) -> Optional[MergeRule]:
        for rule in self._rules:
            if rule.merged_name == merged_name:
                return rule
        return None

    @staticmethod
    def _coerce_aggregation(value: Union[AggregationType, str]) -> AggregationType:
        try:
            return AggregationType(value)
        except ValueError as e:
            allowed = ", ".join(a.value for a in AggregationType)
            raise ValidationError(
                f"Unknown aggregation type '{value}' (expected one of: {allowed})",
                field_name="aggregation_type",
                original_error=e,
            ) from e

    @staticmethod
    def _coerce_source_columns(source_columns: Iterable[SourceColumnInput]) -> List[SourceColumnRef]:
        refs = []
        for item in source_columns or []:
            if isinstance(item, SourceColumnRef):
                refs.append(item)
                continue
            try:
                refs.append(SourceColumnRef.from_dict(item))
            except (KeyError, TypeError, AttributeError) as e:
                raise ValidationError(
                    f"Invalid source column entry: {item!r}",
                    field_name="source_columns",
                    original_error=e,
                ) from e

        if not refs:
            raise ValidationError(
                "A merge rule needs at least one source column",
                field_name="source_columns",
            )
        return refs
