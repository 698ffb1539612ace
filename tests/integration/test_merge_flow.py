"""
Integration Tests for the Semantic Merge Engine
Runs the analyze -> confirm -> query flow over the multi-platform demo data
"""
import pytest
from datetime import date
import threading
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from semantic_merge import (
    AggregationType,
    DateRange,
    MergedDataQuery,
    QueryFilter,
    SemanticMergeEngine,
    WarningCode,
    generate_demo_sources,
    get_demo_source,
)
from semantic_merge.demo_data import FACEBOOK_ADS_ID, GOOGLE_ADS_ID, LINKEDIN_ADS_ID


ALL_SOURCES = [GOOGLE_ADS_ID, FACEBOOK_ADS_ID, LINKEDIN_ADS_ID]
END = date(2024, 3, 31)


@pytest.fixture(scope="module")
def sources():
    return generate_demo_sources(days=14, seed=7, end=END)


@pytest.fixture
def engine():
    return SemanticMergeEngine()


def column_total(sources, source_id, column):
    source = next(s for s in sources if s.id == source_id)
    return sum(row[column] for row in source.rows)


class TestDemoData:
    """Tests for the demo source generator"""

    def test_three_platforms(self, sources):
        """Test the three demo sources and their differing column names"""
        assert [s.id for s in sources] == ALL_SOURCES
        by_id = {s.id: s for s in sources}
        assert by_id[GOOGLE_ADS_ID].has_column("cost")
        assert by_id[FACEBOOK_ADS_ID].has_column("spend")
        assert by_id[LINKEDIN_ADS_ID].has_column("total_spend")

    def test_rows_match_schema(self, sources):
        """Test every row carries exactly the schema columns"""
        for source in sources:
            assert source.rows
            for row in source.rows:
                assert set(row) == set(source.column_names)

    def test_deterministic(self):
        """Test a seed reproduces the same rows"""
        first = generate_demo_sources(days=5, seed=3, end=END)
        second = generate_demo_sources(days=5, seed=3, end=END)
        assert [s.rows for s in first] == [s.rows for s in second]

    def test_date_window(self, sources):
        """Test dates cover the requested window"""
        dates = sorted({row["date"] for row in sources[0].rows})
        assert dates[0] == "2024-03-18"
        assert dates[-1] == "2024-03-31"
        assert len(dates) == 14

    def test_get_demo_source(self):
        """Test lookup by id"""
        assert get_demo_source(LINKEDIN_ADS_ID, days=2, seed=1).name == "LinkedIn Ads Campaign Data"
        assert get_demo_source("tiktok_ads_demo") is None


class TestMergeFlow:
    """End-to-end flow over the demo data"""

    def test_suggestions(self, engine, sources):
        """Test the expected cross-platform concepts are suggested"""
        suggestions = {s.canonical_name: s for s in engine.analyze_sources(sources)}

        for name in ("impressions", "clicks", "cost", "conversions", "revenue", "ctr", "cpc", "date", "campaign"):
            assert name in suggestions

        cost = suggestions["cost"]
        assert cost.source_ids == ALL_SOURCES
        assert [c.column_name for c in cost.columns] == ["cost", "spend", "total_spend"]
        assert cost.suggested_aggregation == AggregationType.SUM
        assert suggestions["date"].suggested_aggregation == AggregationType.MAX

        for suggestion in suggestions.values():
            assert 0.7 <= suggestion.confidence <= 1.0

    def test_total_cost_by_date(self, engine, sources):
        """Test merged cost equals the per-platform totals"""
        cost = [s for s in engine.analyze_sources(sources) if s.canonical_name == "cost"][0]
        rule = engine.create_rule_from_suggestion(cost, merged_name="total_cost")

        result = engine.execute_query(
            MergedDataQuery(dimensions=["date"], metrics=["total_cost"], sources=ALL_SOURCES),
            sources,
        )

        expected = sum(column_total(sources, sid, col) for sid, col in
                       [(GOOGLE_ADS_ID, "cost"), (FACEBOOK_ADS_ID, "spend"), (LINKEDIN_ADS_ID, "total_spend")])

        assert len(result.data) == 14
        assert sum(row["total_cost"] for row in result.data) == pytest.approx(expected)
        assert result.metadata.merge_rules_applied == [rule.id]
        assert result.warnings == []

    def test_campaign_breakdown(self, engine, sources):
        """Test grouping by a dimension every platform names campaign_name"""
        engine.create_merge_rule(
            "total_clicks", "Total Clicks",
            [{"source_id": GOOGLE_ADS_ID, "column_name": "clicks"},
             {"source_id": FACEBOOK_ADS_ID, "column_name": "link_clicks"},
             {"source_id": LINKEDIN_ADS_ID, "column_name": "clicks"}],
            "sum",
        )

        result = engine.execute_query(
            {"dimensions": ["campaign_name"], "metrics": ["total_clicks"], "sources": ALL_SOURCES},
            sources,
        )

        expected = (column_total(sources, GOOGLE_ADS_ID, "clicks")
                    + column_total(sources, FACEBOOK_ADS_ID, "link_clicks")
                    + column_total(sources, LINKEDIN_ADS_ID, "clicks"))
        assert sum(row["total_clicks"] for row in result.data) == expected
        assert len({row["campaign_name"] for row in result.data}) == len(result.data)

    def test_filtered_window_with_limit(self, engine, sources):
        """Test date range, filter and limit together"""
        engine.create_merge_rule(
            "total_conversions", "Total Conversions",
            [{"source_id": GOOGLE_ADS_ID, "column_name": "conversions"},
             {"source_id": FACEBOOK_ADS_ID, "column_name": "conv"},
             {"source_id": LINKEDIN_ADS_ID, "column_name": "total_conversions"}],
            "max",
        )

        result = engine.execute_query(
            MergedDataQuery(
                dimensions=["date"],
                metrics=["total_conversions"],
                sources=ALL_SOURCES,
                filters=[QueryFilter("campaign_name", "contains", "sale")],
                date_range=DateRange("2024-03-25", "2024-03-31"),
                limit=3,
            ),
            sources,
        )

        assert len(result.data) <= 3
        assert result.metadata.total_rows == len(result.data)
        assert all("2024-03-25" <= row["date"] <= "2024-03-31" for row in result.data)

    def test_bare_metric_warns_for_missing_sources(self, engine, sources):
        """Test a platform-specific column queried across all platforms"""
        result = engine.execute_query(
            {"dimensions": ["date"], "metrics": ["reach"], "sources": ALL_SOURCES}, sources
        )

        assert sum(row["reach"] for row in result.data) == column_total(sources, FACEBOOK_ADS_ID, "reach")
        warned = {w.source_id for w in result.warnings if w.code == WarningCode.UNRECOGNIZED_COLUMN}
        assert warned == {GOOGLE_ADS_ID, LINKEDIN_ADS_ID}

    def test_delete_rule_and_reanalyze(self, engine, sources):
        """Test deleting a confirmed rule leaves its suggestion available"""
        before = {s.canonical_name for s in engine.analyze_sources(sources)}
        cost = [s for s in engine.analyze_sources(sources) if s.canonical_name == "cost"][0]
        rule = engine.create_rule_from_suggestion(cost)

        engine.delete_merge_rule(rule.id)

        assert {s.canonical_name for s in engine.analyze_sources(sources)} == before
        assert engine.get_merge_rules() == []


class TestConcurrentUse:
    """Rule churn while queries run"""

    def test_queries_during_rule_churn(self, engine, sources):
        """Test queries always see a consistent rule set"""
        engine.create_merge_rule(
            "total_cost", "Total Cost",
            [{"source_id": GOOGLE_ADS_ID, "column_name": "cost"},
             {"source_id": FACEBOOK_ADS_ID, "column_name": "spend"}],
            "sum",
        )
        errors = []
        stop = threading.Event()

        def churn():
            n = 0
            while not stop.is_set():
                rule = engine.create_merge_rule(
                    f"tmp_{n}", "Tmp", [{"source_id": GOOGLE_ADS_ID, "column_name": "clicks"}], "sum"
                )
                engine.delete_merge_rule(rule.id)
                n += 1

        def query():
            try:
                for _ in range(20):
                    result = engine.execute_query(
                        {"dimensions": ["date"], "metrics": ["total_cost"],
                         "sources": [GOOGLE_ADS_ID, FACEBOOK_ADS_ID]},
                        sources,
                    )
                    assert len(result.data) == 14
            except Exception as e:
                errors.append(e)

        writer = threading.Thread(target=churn)
        readers = [threading.Thread(target=query) for _ in range(4)]
        writer.start()
        for reader in readers:
            reader.start()
        for reader in readers:
            reader.join()
        stop.set()
        writer.join()

        assert errors == []
