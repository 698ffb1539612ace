#!/usr/bin/env python3
"""
Semantic Merge Engine - Multi-Source Demonstration

Walks through the full flow over three generated ad platforms: suggestion
analysis, confirming rules, grouped queries, and the metrics collected along
the way.
"""
import sys
import os

# Add src to path for local development
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from semantic_merge import (
    DateRange,
    MergedDataQuery,
    QueryFilter,
    create_engine,
    generate_demo_sources,
    get_metrics_collector,
    setup_logging,
)


def print_section(title: str):
    """Print a section header"""
    print(f"\n{'='*80}")
    print(f"  {title}")
    print(f"{'='*80}\n")


def print_table(rows, columns, max_rows: int = 10):
    """Print rows as a fixed-width table"""
    widths = {col: max([len(col)] + [len(str(row.get(col))) for row in rows[:max_rows]]) for col in columns}
    print("  " + " | ".join(col.ljust(widths[col]) for col in columns))
    print("  " + "-+-".join("-" * widths[col] for col in columns))
    for row in rows[:max_rows]:
        print("  " + " | ".join(str(row.get(col)).ljust(widths[col]) for col in columns))
    if len(rows) > max_rows:
        print(f"  ... {len(rows) - max_rows} more rows")


def demonstrate_multi_source_flow():
    setup_logging(level="WARNING")

    engine = create_engine()
    sources = generate_demo_sources(days=30, seed=2024)
    source_ids = [s.id for s in sources]

    print_section("SOURCES")
    for source in sources:
        print(f"  {source.name} ({source.id}): {len(source.rows)} rows")
        print(f"    columns: {', '.join(source.column_names)}")

    print_section("MERGE SUGGESTIONS")
    suggestions = engine.analyze_sources(sources)
    for suggestion in suggestions:
        columns = ", ".join(f"{c.source_id}.{c.column_name}" for c in suggestion.columns)
        print(f"  {suggestion.display_name:<16} {suggestion.confidence:>5.0%}  "
              f"[{suggestion.suggested_aggregation.value}]  {columns}")

    print_section("CONFIRMING RULES")
    by_name = {s.canonical_name: s for s in suggestions}
    for canonical_name, merged_name in [("cost", "total_cost"), ("clicks", "total_clicks"),
                                        ("conversions", "total_conversions"), ("revenue", "total_revenue")]:
        rule = engine.create_rule_from_suggestion(by_name[canonical_name], merged_name=merged_name)
        print(f"  {merged_name:<18} -> {rule.id}")

    cpc_rule = engine.create_rule_from_suggestion(by_name["cpc"], aggregation_type="avg", merged_name="avg_cpc")
    print(f"  {'avg_cpc':<18} -> {cpc_rule.id} (avg)")

    print_section("DAILY SPEND ACROSS PLATFORMS")
    result = engine.execute_query(
        MergedDataQuery(
            dimensions=["date"],
            metrics=["total_cost", "total_clicks", "total_conversions"],
            sources=source_ids,
            date_range=DateRange(sources[0].rows[0]["date"], sources[0].rows[-1]["date"]),
            limit=7,
        ),
        sources,
    )
    print_table(result.data, ["date", "total_cost", "total_clicks", "total_conversions"])
    print(f"\n  {result.metadata.total_rows} rows in {result.metadata.query_execution_time:.2f}ms")

    print_section("CAMPAIGN PERFORMANCE (SALE CAMPAIGNS)")
    result = engine.execute_query(
        MergedDataQuery(
            dimensions=["campaign_name"],
            metrics=["total_cost", "total_revenue", "avg_cpc"],
            sources=source_ids,
            filters=[QueryFilter("campaign_name", "contains", "sale")],
        ),
        sources,
    )
    print_table(result.data, ["campaign_name", "total_cost", "total_revenue", "avg_cpc"])

    print_section("PLATFORM-SPECIFIC COLUMN")
    result = engine.execute_query(
        {"dimensions": [], "metrics": ["reach"], "sources": source_ids},
        sources,
    )
    print(f"  reach: {result.data[0]['reach']}")
    for warning in result.warnings:
        print(f"  warning [{warning.code.value}]: {warning.message}")

    print_section("METRICS")
    print(get_metrics_collector().export_prometheus())

    print("\n✓ Demo complete!")


if __name__ == "__main__":
    demonstrate_multi_source_flow()
