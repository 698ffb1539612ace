"""
Model Definitions for the Semantic Merge Engine

Defines source schemas, synonym entries, merge rules, suggestions, queries
and query results.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from .values import Row


class DataType(str, Enum):
    """Declared type of a source column"""
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


class ColumnClassification(str, Enum):
    """Role a column plays in a query"""
    DIMENSION = "dimension"
    METRIC = "metric"
    IDENTIFIER = "identifier"


class FormatType(str, Enum):
    """Display format hint for a canonical concept"""
    CURRENCY = "currency"
    PERCENTAGE = "percentage"
    NUMBER = "number"
    DATE = "date"


class AggregationType(str, Enum):
    """Reduction applied when combining values for one output row"""
    SUM = "sum"
    AVG = "avg"
    MAX = "max"
    MIN = "min"
    COUNT = "count"
    FIRST = "first"


class FilterOperator(str, Enum):
    """Supported row filter operators"""
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    LT = "lt"
    CONTAINS = "contains"
    IN = "in"


class WarningCode(str, Enum):
    """Non-fatal conditions observed while executing a query"""
    UNRECOGNIZED_COLUMN = "unrecognized_column"
    UNSUPPORTED_FILTER_OPERATOR = "unsupported_filter_operator"
    UNMAPPED_MERGE_SOURCE = "unmapped_merge_source"
    UNKNOWN_SOURCE = "unknown_source"
    NON_NUMERIC_VALUE = "non_numeric_value"
    MISSING_VALUE = "missing_value"


# ---------------------------------------------------------------------------
# Source schema
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnSchema:
    """Descriptor for one column of a data source snapshot"""
    name: str
    display_name: str
    type: DataType
    classification: ColumnClassification
    description: str = ""
    is_nullable: bool = True
    sample_values: Tuple[Any, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "display_name": self.display_name,
            "type": self.type.value,
            "classification": self.classification.value,
            "description": self.description,
            "is_nullable": self.is_nullable,
            "sample_values": list(self.sample_values[:5]),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnSchema":
        return cls(
            name=data["name"],
            display_name=data.get("display_name") or data.get("displayName") or data["name"],
            type=DataType(data.get("type", DataType.STRING.value)),
            classification=ColumnClassification(
                data.get("classification", ColumnClassification.DIMENSION.value)
            ),
            description=data.get("description", ""),
            is_nullable=data.get("is_nullable", data.get("isNullable", True)),
            sample_values=tuple(data.get("sample_values") or data.get("sampleValues") or ()),
        )


@dataclass
class DataSource:
    """An already-fetched source: schema plus materialized rows"""
    id: str
    name: str
    schema: List[ColumnSchema] = field(default_factory=list)
    rows: List[Row] = field(default_factory=list)
    type: Optional[str] = None
    description: Optional[str] = None
    last_synced: Optional[str] = None
    status: str = "active"

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.schema]

    def get_column(self, name: str) -> Optional[ColumnSchema]:
        """Get column by name (case-insensitive)"""
        name_lower = name.lower()
        for col in self.schema:
            if col.name == name or col.name.lower() == name_lower:
                return col
        return None

    def has_column(self, name: str) -> bool:
        return any(col.name == name for col in self.schema)

    def to_dict(self, include_rows: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "description": self.description,
            "last_synced": self.last_synced,
            "status": self.status,
            "schema": [col.to_dict() for col in self.schema],
            "row_count": len(self.rows),
        }
        if include_rows:
            data["rows"] = list(self.rows)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DataSource":
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            schema=[ColumnSchema.from_dict(c) for c in data.get("schema", [])],
            rows=list(data.get("rows", data.get("data", []))),
            type=data.get("type"),
            description=data.get("description"),
            last_synced=data.get("last_synced") or data.get("lastSynced"),
            status=data.get("status", "active"),
        )


# ---------------------------------------------------------------------------
# Synonyms
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnSynonym:
    """Reference entry describing one business concept and its known names"""
    canonical_name: str
    display_name: str
    synonyms: FrozenSet[str]
    data_type: DataType
    classification: ColumnClassification
    description: str = ""
    format_type: Optional[FormatType] = None
    unit: Optional[str] = None

    def matches(self, column_name: str) -> bool:
        """Case-insensitive exact match against the synonym set"""
        return column_name.lower() in self.synonyms

    def to_dict(self) -> Dict[str, Any]:
        return {
            "canonical_name": self.canonical_name,
            "display_name": self.display_name,
            "synonyms": sorted(self.synonyms),
            "data_type": self.data_type.value,
            "classification": self.classification.value,
            "description": self.description,
            "format_type": self.format_type.value if self.format_type else None,
            "unit": self.unit,
        }

    @classmethod
    def create(
        cls,
        canonical_name: str,
        display_name: str,
        synonyms: Iterable[str],
        data_type: DataType,
        classification: ColumnClassification,
        description: str = "",
        format_type: Optional[FormatType] = None,
        unit: Optional[str] = None,
    ) -> "ColumnSynonym":
        """Build an entry, lower-casing synonyms and including the canonical name"""
        names = {s.lower() for s in synonyms}
        names.add(canonical_name.lower())
        return cls(
            canonical_name=canonical_name,
            display_name=display_name,
            synonyms=frozenset(names),
            data_type=data_type,
            classification=classification,
            description=description,
            format_type=format_type,
            unit=unit,
        )


# ---------------------------------------------------------------------------
# Merge rules and suggestions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SourceColumnRef:
    """One (source, column) pair participating in a merge rule"""
    source_id: str
    column_name: str
    weight: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "column_name": self.column_name,
            "weight": self.weight,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SourceColumnRef":
        return cls(
            source_id=data.get("source_id") or data["sourceId"],
            column_name=data.get("column_name") or data["columnName"],
            weight=data.get("weight"),
        )


@dataclass(frozen=True)
class MergeRule:
    """A confirmed mapping from a merged name to per-source columns"""
    id: str
    merged_name: str
    display_name: str
    source_columns: Tuple[SourceColumnRef, ...]
    aggregation_type: AggregationType
    classification: ColumnClassification
    created_at: str
    created_by: Optional[str] = None

    def column_for_source(self, source_id: str) -> Optional[str]:
        """Column this rule reads for the given source, if mapped"""
        for ref in self.source_columns:
            if ref.source_id == source_id:
                return ref.column_name
        return None

    @property
    def source_ids(self) -> List[str]:
        return [ref.source_id for ref in self.source_columns]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "merged_name": self.merged_name,
            "display_name": self.display_name,
            "source_columns": [ref.to_dict() for ref in self.source_columns],
            "aggregation_type": self.aggregation_type.value,
            "classification": self.classification.value,
            "created_at": self.created_at,
            "created_by": self.created_by,
        }


@dataclass
class SuggestedColumn:
    """A source column that takes part in a merge suggestion"""
    source_id: str
    source_name: str
    column_name: str
    display_name: str
    sample_values: List[Any] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_id": self.source_id,
            "source_name": self.source_name,
            "column_name": self.column_name,
            "display_name": self.display_name,
            "sample_values": self.sample_values,
        }


@dataclass
class MergeSuggestion:
    """A proposed cross-source merge, recomputed on demand"""
    confidence: float
    canonical_name: str
    display_name: str
    columns: List[SuggestedColumn]
    suggested_aggregation: AggregationType
    reason: str

    @property
    def source_ids(self) -> List[str]:
        seen: List[str] = []
        for col in self.columns:
            if col.source_id not in seen:
                seen.append(col.source_id)
        return seen

    def to_source_columns(self) -> List[SourceColumnRef]:
        return [SourceColumnRef(col.source_id, col.column_name) for col in self.columns]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "confidence": self.confidence,
            "canonical_name": self.canonical_name,
            "display_name": self.display_name,
            "columns": [col.to_dict() for col in self.columns],
            "suggested_aggregation": self.suggested_aggregation.value,
            "reason": self.reason,
        }


# ---------------------------------------------------------------------------
# Queries and results
# ---------------------------------------------------------------------------

@dataclass
class QueryFilter:
    """Row predicate; operator is kept as given so unknown ones can fail open"""
    column: str
    operator: str
    value: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {"column": self.column, "operator": self.operator, "value": self.value}


@dataclass
class DateRange:
    """Inclusive ISO date range"""
    start: str
    end: str

    def contains(self, value: Optional[str]) -> bool:
        if value is None:
            return False
        return self.start <= value <= self.end

    @property
    def is_date_only(self) -> bool:
        """Both bounds are plain YYYY-MM-DD dates"""
        return len(self.start) == 10 and len(self.end) == 10

    def to_dict(self) -> Dict[str, Any]:
        return {"start": self.start, "end": self.end}


@dataclass
class MergedDataQuery:
    """Ad-hoc grouped query across several sources"""
    dimensions: List[str] = field(default_factory=list)
    metrics: List[str] = field(default_factory=list)
    sources: List[str] = field(default_factory=list)
    filters: List[QueryFilter] = field(default_factory=list)
    group_by: Optional[List[str]] = None
    date_range: Optional[DateRange] = None
    limit: Optional[int] = None

    @property
    def requested_columns(self) -> List[str]:
        return [*self.dimensions, *self.metrics]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimensions": self.dimensions,
            "metrics": self.metrics,
            "sources": self.sources,
            "filters": [f.to_dict() for f in self.filters],
            "group_by": self.group_by,
            "date_range": self.date_range.to_dict() if self.date_range else None,
            "limit": self.limit,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MergedDataQuery":
        """Build a query from a dict; camelCase keys from the dashboard layer are accepted"""
        date_range = data.get("date_range", data.get("dateRange"))
        if isinstance(date_range, dict):
            date_range = DateRange(start=date_range["start"], end=date_range["end"])

        filters = [
            f if isinstance(f, QueryFilter) else QueryFilter(
                column=f["column"], operator=f["operator"], value=f.get("value")
            )
            for f in data.get("filters") or []
        ]

        group_by = data.get("group_by", data.get("groupBy"))

        return cls(
            dimensions=list(data.get("dimensions", [])),
            metrics=list(data.get("metrics", [])),
            sources=list(data.get("sources", [])),
            filters=filters,
            group_by=list(group_by) if group_by is not None else None,
            date_range=date_range,
            limit=data.get("limit"),
        )


@dataclass
class QueryWarning:
    """Non-fatal issue encountered while executing a query"""
    code: WarningCode
    message: str
    source_id: Optional[str] = None
    column: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code.value,
            "message": self.message,
            "source_id": self.source_id,
            "column": self.column,
        }


@dataclass
class QueryMetadata:
    """Execution metadata returned with merged data"""
    total_rows: int
    sources_used: List[str]
    columns_returned: List[str]
    merge_rules_applied: List[str]
    query_execution_time: float  # milliseconds

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_rows": self.total_rows,
            "sources_used": self.sources_used,
            "columns_returned": self.columns_returned,
            "merge_rules_applied": self.merge_rules_applied,
            "query_execution_time": self.query_execution_time,
        }


@dataclass
class MergedDataResult:
    """Aggregated rows plus metadata and non-fatal warnings"""
    data: List[Row]
    metadata: QueryMetadata
    warnings: List[QueryWarning] = field(default_factory=list)

    @property
    def warning_messages(self) -> List[str]:
        return [w.message for w in self.warnings]

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": self.data,
            "metadata": self.metadata.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
        }
