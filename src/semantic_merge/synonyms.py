"""
Synonym Library

Static reference data mapping canonical business concepts (cost, clicks,
date, ...) to the column names different platforms use for them.

Custom libraries can be loaded from YAML or JSON:

```yaml
synonyms:
  - canonical_name: cost
    display_name: Cost
    synonyms: [cost, spend, amount_spent]
    data_type: number
    classification: metric
    format_type: currency
    unit: USD
```
"""
from __future__ import annotations

import json
import os
from typing import Any, Dict, Iterable, List, Optional

import yaml

from .models import ColumnClassification, ColumnSynonym, DataType, FormatType
from .utils import get_logger
from .utils.errors import SynonymLibraryError

logger = get_logger(__name__)


DEFAULT_SYNONYMS: List[ColumnSynonym] = [
    ColumnSynonym.create(
        canonical_name="impressions",
        display_name="Impressions",
        synonyms=["impressions", "imps", "impression", "views", "ad_views"],
        data_type=DataType.NUMBER,
        classification=ColumnClassification.METRIC,
        description="Number of times an ad was displayed",
        format_type=FormatType.NUMBER,
    ),
    ColumnSynonym.create(
        canonical_name="clicks",
        display_name="Clicks",
        synonyms=["clicks", "link_clicks", "ad_clicks", "click", "taps"],
        data_type=DataType.NUMBER,
        classification=ColumnClassification.METRIC,
        description="Number of clicks on ads",
        format_type=FormatType.NUMBER,
    ),
    ColumnSynonym.create(
        canonical_name="cost",
        display_name="Cost",
        synonyms=["cost", "spend", "total_spend", "amount_spent", "budget_used", "cost_usd"],
        data_type=DataType.NUMBER,
        classification=ColumnClassification.METRIC,
        description="Total amount spent on advertising",
        format_type=FormatType.CURRENCY,
        unit="USD",
    ),
    ColumnSynonym.create(
        canonical_name="conversions",
        display_name="Conversions",
        synonyms=["conversions", "conv", "total_conversions", "purchases", "leads", "signups"],
        data_type=DataType.NUMBER,
        classification=ColumnClassification.METRIC,
        description="Number of conversion events",
        format_type=FormatType.NUMBER,
    ),
    ColumnSynonym.create(
        canonical_name="revenue",
        display_name="Revenue",
        synonyms=["revenue", "sales", "conversion_value", "purchase_value", "total_revenue"],
        data_type=DataType.NUMBER,
        classification=ColumnClassification.METRIC,
        description="Revenue generated from conversions",
        format_type=FormatType.CURRENCY,
        unit="USD",
    ),
    ColumnSynonym.create(
        canonical_name="ctr",
        display_name="CTR (%)",
        synonyms=["ctr", "click_through_rate", "link_ctr", "clickthrough_rate"],
        data_type=DataType.NUMBER,
        classification=ColumnClassification.METRIC,
        description="Click-through rate as a percentage",
        format_type=FormatType.PERCENTAGE,
    ),
    ColumnSynonym.create(
        canonical_name="cpc",
        display_name="Cost Per Click",
        synonyms=["cpc", "avg_cpc", "cost_per_click", "average_cpc"],
        data_type=DataType.NUMBER,
        classification=ColumnClassification.METRIC,
        description="Average cost per click",
        format_type=FormatType.CURRENCY,
        unit="USD",
    ),
    ColumnSynonym.create(
        canonical_name="date",
        display_name="Date",
        synonyms=["date", "day", "date_start", "report_date", "campaign_date"],
        data_type=DataType.DATE,
        classification=ColumnClassification.DIMENSION,
        description="Date of the data point",
        format_type=FormatType.DATE,
    ),
    ColumnSynonym.create(
        canonical_name="campaign",
        display_name="Campaign",
        synonyms=["campaign", "campaign_name", "campaign_title", "ad_campaign"],
        data_type=DataType.STRING,
        classification=ColumnClassification.DIMENSION,
        description="Name of the advertising campaign",
    ),
]


class SynonymLibrary:
    """
    Read-only lookup over a fixed set of ColumnSynonym entries

    Usage:
        library = SynonymLibrary()
        library.find_synonym("Spend").canonical_name  # "cost"
    """

    def __init__(self, entries: Optional[Iterable[ColumnSynonym]] = None):
        self._entries: List[ColumnSynonym] = list(DEFAULT_SYNONYMS if entries is None else entries)
        self._by_canonical: Dict[str, ColumnSynonym] = {}
        self._by_name: Dict[str, ColumnSynonym] = {}

        for entry in self._entries:
            if entry.canonical_name in self._by_canonical:
                raise SynonymLibraryError(
                    f"Duplicate canonical name in synonym library: {entry.canonical_name}"
                )
            self._by_canonical[entry.canonical_name] = entry
            for name in entry.synonyms:
                # First entry listing a name wins, matching list-order lookup
                self._by_name.setdefault(name, entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def find_synonym(self, column_name: str) -> Optional[ColumnSynonym]:
        """Find the concept a column name denotes (case-insensitive exact match)"""
        if not column_name:
            return None
        return self._by_name.get(column_name.lower())

    def get_by_canonical(self, canonical_name: str) -> Optional[ColumnSynonym]:
        return self._by_canonical.get(canonical_name)

    def all_synonyms(self) -> List[ColumnSynonym]:
        return list(self._entries)

    def to_dict(self) -> Dict[str, Any]:
        return {"synonyms": [entry.to_dict() for entry in self._entries]}

    def to_yaml(self) -> str:
        """Export as YAML"""
        return yaml.dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], extend_defaults: bool = False) -> "SynonymLibrary":
        """Create a library from a parsed synonym document"""
        raw_entries = data.get("synonyms") if isinstance(data, dict) else None
        if not isinstance(raw_entries, list):
            raise SynonymLibraryError("Synonym document must contain a 'synonyms' list")

        entries = list(DEFAULT_SYNONYMS) if extend_defaults else []
        for raw in raw_entries:
            entries.append(cls._parse_entry(raw))

        return cls(entries)

    @classmethod
    def load(cls, path: str, extend_defaults: bool = False) -> "SynonymLibrary":
        """Load a library from a YAML or JSON file"""
        if not os.path.exists(path):
            raise SynonymLibraryError(f"Synonym file not found: {path}", path=path)

        try:
            with open(path, 'r') as f:
                if path.endswith('.yaml') or path.endswith('.yml'):
                    data = yaml.safe_load(f)
                else:
                    data = json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError, OSError) as e:
            raise SynonymLibraryError(
                f"Could not parse synonym file: {e}", path=path, original_error=e
            ) from e

        library = cls.from_dict(data or {}, extend_defaults=extend_defaults)
        logger.info(f"Loaded {len(library)} synonym entries from {path}")
        return library

    @staticmethod
    def _parse_entry(raw: Dict[str, Any]) -> ColumnSynonym:
        try:
            format_type = raw.get("format_type")
            return ColumnSynonym.create(
                canonical_name=raw["canonical_name"],
                display_name=raw.get("display_name", raw["canonical_name"]),
                synonyms=raw.get("synonyms", []),
                data_type=DataType(raw.get("data_type", DataType.NUMBER.value)),
                classification=ColumnClassification(
                    raw.get("classification", ColumnClassification.METRIC.value)
                ),
                description=raw.get("description", ""),
                format_type=FormatType(format_type) if format_type else None,
                unit=raw.get("unit"),
            )
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            raise SynonymLibraryError(f"Invalid synonym entry {raw!r}: {e}", original_error=e) from e
