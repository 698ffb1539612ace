#!/usr/bin/env python3
"""
Basic Usage Example for the Semantic Merge Engine

This example demonstrates:
1. Describing two ad platforms as data sources
2. Creating a merge rule for cost vs. spend
3. Querying merged data and reading warnings
"""
import sys
import os

# Add src to path for local development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from semantic_merge import (
    ColumnClassification,
    ColumnSchema,
    DataSource,
    DataType,
    DuplicateMergeRuleError,
    SemanticMergeEngine,
    setup_logging,
)


def main():
    # Setup logging
    setup_logging(level="INFO")

    print("=" * 60)
    print("Semantic Merge Engine - Basic Usage Example")
    print("=" * 60)

    # Two platforms reporting the same spend under different names
    print("\n1. Describing sources...")
    google = DataSource(
        id="google",
        name="Google Ads",
        schema=[
            ColumnSchema("date", "Date", DataType.DATE, ColumnClassification.DIMENSION),
            ColumnSchema("cost", "Cost", DataType.NUMBER, ColumnClassification.METRIC),
        ],
        rows=[
            {"date": "2024-01-01", "cost": 100},
            {"date": "2024-01-02", "cost": 80},
        ],
    )
    meta = DataSource(
        id="meta",
        name="Meta Ads",
        schema=[
            ColumnSchema("date", "Date", DataType.DATE, ColumnClassification.DIMENSION),
            ColumnSchema("spend", "Amount Spent", DataType.NUMBER, ColumnClassification.METRIC),
        ],
        rows=[
            {"date": "2024-01-01", "spend": 150},
            {"date": "2024-01-02", "spend": "n/a"},
        ],
    )
    sources = [google, meta]

    engine = SemanticMergeEngine()

    print("2. Analyzing sources for merge suggestions...")
    for suggestion in engine.analyze_sources(sources):
        print(f"   {suggestion.canonical_name}: {suggestion.confidence:.0%} - {suggestion.reason}")

    print("3. Creating merge rule...")
    rule = engine.create_merge_rule(
        merged_name="total_cost",
        display_name="Total Cost",
        source_columns=[
            {"source_id": "google", "column_name": "cost"},
            {"source_id": "meta", "column_name": "spend"},
        ],
        aggregation_type="sum",
    )
    print(f"   Rule {rule.id} ({rule.aggregation_type.value})")

    try:
        engine.create_merge_rule("total_cost", "Again", [{"source_id": "google", "column_name": "cost"}], "sum")
    except DuplicateMergeRuleError as e:
        print(f"   Duplicate refused: {e.message}")

    print("4. Querying merged data...")
    result = engine.execute_query(
        {"dimensions": ["date"], "metrics": ["total_cost"], "sources": ["google", "meta", "tiktok"]},
        sources,
    )

    print("\n" + "-" * 40)
    print("RESULTS")
    print("-" * 40)

    for row in result.data:
        print(f"   {row['date']}: {row['total_cost']}")

    print(f"\nRows: {result.metadata.total_rows}")
    print(f"Sources used: {', '.join(result.metadata.sources_used)}")
    print(f"Execution time: {result.metadata.query_execution_time:.2f}ms")

    if result.has_warnings:
        print("\nWarnings:")
        for warning in result.warnings:
            print(f"   [{warning.code.value}] {warning.message}")

    print("\n" + "=" * 60)
    print("Example completed!")
    print("=" * 60)


if __name__ == "__main__":
    main()
