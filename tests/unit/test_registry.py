"""
Unit Tests for the Merge Rule Registry
"""
import pytest
import re
import threading
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from semantic_merge.models import AggregationType, ColumnClassification, SourceColumnRef
from semantic_merge.registry import MergeRuleStore, classification_for, generate_rule_id
from semantic_merge.utils.errors import DuplicateMergeRuleError, ValidationError


COST_COLUMNS = [
    {"source_id": "google", "column_name": "cost"},
    {"source_id": "meta", "column_name": "spend"},
]


@pytest.fixture
def store():
    return MergeRuleStore()


class TestRuleIds:
    """Tests for rule id generation"""

    def test_format(self):
        """Test ids look like merge_<ms>_<suffix>"""
        assert re.fullmatch(r"merge_\d+_[a-z0-9]{9}", generate_rule_id())

    def test_unique(self):
        """Test ids do not repeat"""
        ids = {generate_rule_id() for _ in range(500)}
        assert len(ids) == 500

    def test_classification_for(self):
        """Test first merges dimensions and everything else merges metrics"""
        assert classification_for(AggregationType.FIRST) == ColumnClassification.DIMENSION
        for aggregation in (AggregationType.SUM, AggregationType.AVG, AggregationType.MAX,
                            AggregationType.MIN, AggregationType.COUNT):
            assert classification_for(aggregation) == ColumnClassification.METRIC


class TestCreateMergeRule:
    """Tests for rule creation"""

    def test_create(self, store):
        """Test a rule is built and registered"""
        rule = store.create_merge_rule("total_cost", "Total Cost", COST_COLUMNS, "sum", created_by="ana")

        assert rule.merged_name == "total_cost"
        assert rule.display_name == "Total Cost"
        assert rule.aggregation_type == AggregationType.SUM
        assert rule.classification == ColumnClassification.METRIC
        assert rule.source_columns == (SourceColumnRef("google", "cost"), SourceColumnRef("meta", "spend"))
        assert rule.created_by == "ana"
        assert rule.created_at
        assert rule.id in store
        assert len(store) == 1

    def test_accepts_refs_and_camel_case(self, store):
        """Test source columns as objects or camelCase dicts"""
        rule = store.create_merge_rule(
            "campaign", "Campaign",
            [SourceColumnRef("google", "campaign_name"), {"sourceId": "meta", "columnName": "campaign"}],
            AggregationType.FIRST,
        )
        assert rule.column_for_source("meta") == "campaign"
        assert rule.classification == ColumnClassification.DIMENSION

    def test_empty_name_rejected(self, store):
        """Test a blank merged name"""
        with pytest.raises(ValidationError) as exc_info:
            store.create_merge_rule("  ", "Blank", COST_COLUMNS, "sum")
        assert exc_info.value.field_name == "merged_name"

    def test_unknown_aggregation_rejected(self, store):
        """Test an aggregation outside the supported set"""
        with pytest.raises(ValidationError) as exc_info:
            store.create_merge_rule("total_cost", "Total Cost", COST_COLUMNS, "median")
        assert exc_info.value.field_name == "aggregation_type"

    def test_empty_source_columns_rejected(self, store):
        """Test a rule must map at least one column"""
        with pytest.raises(ValidationError):
            store.create_merge_rule("total_cost", "Total Cost", [], "sum")

    def test_malformed_source_column_rejected(self, store):
        """Test a source column entry without a column name"""
        with pytest.raises(ValidationError):
            store.create_merge_rule("total_cost", "Total Cost", [{"source_id": "google"}], "sum")
        assert len(store) == 0

    def test_duplicate_name_rejected(self, store):
        """Test a second rule with the same merged name"""
        first = store.create_merge_rule("total_cost", "Total Cost", COST_COLUMNS, "sum")

        with pytest.raises(DuplicateMergeRuleError) as exc_info:
            store.create_merge_rule("total_cost", "Cost again", COST_COLUMNS, "avg")

        assert exc_info.value.existing_rule_id == first.id
        assert len(store) == 1

    def test_duplicate_name_allowed_earliest_wins(self):
        """Test permissive mode keeps both and resolves to the earliest"""
        store = MergeRuleStore(reject_duplicate_names=False)
        first = store.create_merge_rule("total_cost", "Total Cost", COST_COLUMNS, "sum")
        store.create_merge_rule("total_cost", "Cost again", COST_COLUMNS, "avg")

        assert len(store) == 2
        assert store.get_merge_rule_by_name("total_cost").id == first.id


class TestRuleLifecycle:
    """Tests for listing and deleting rules"""

    def test_get_merge_rules_snapshot(self, store):
        """Test the returned list is a copy in creation order"""
        a = store.create_merge_rule("a", "A", COST_COLUMNS, "sum")
        b = store.create_merge_rule("b", "B", COST_COLUMNS, "max")

        rules = store.get_merge_rules()
        assert [r.id for r in rules] == [a.id, b.id]

        rules.clear()
        assert len(store.get_merge_rules()) == 2

    def test_delete(self, store):
        """Test deleting an existing rule"""
        rule = store.create_merge_rule("a", "A", COST_COLUMNS, "sum")
        assert store.delete_merge_rule(rule.id) is True
        assert store.get_merge_rule(rule.id) is None
        assert rule.id not in store

    def test_delete_unknown(self, store):
        """Test deleting a missing id"""
        assert store.delete_merge_rule("merge_0_missing") is False

    def test_name_reusable_after_delete(self, store):
        """Test a deleted rule's name can be used again"""
        rule = store.create_merge_rule("a", "A", COST_COLUMNS, "sum")
        store.delete_merge_rule(rule.id)
        again = store.create_merge_rule("a", "A", COST_COLUMNS, "avg")
        assert store.get_merge_rule_by_name("a").id == again.id

    def test_clear(self, store):
        """Test clearing every rule"""
        store.create_merge_rule("a", "A", COST_COLUMNS, "sum")
        store.clear()
        assert len(store) == 0

    def test_stores_are_independent(self):
        """Test two stores never share rules"""
        first, second = MergeRuleStore(), MergeRuleStore()
        first.create_merge_rule("a", "A", COST_COLUMNS, "sum")
        assert len(second) == 0


class TestConcurrency:
    """Tests for concurrent access"""

    def test_concurrent_creates(self, store):
        """Test parallel creates with distinct names all land"""
        errors = []

        def worker(index):
            try:
                for n in range(20):
                    store.create_merge_rule(f"rule_{index}_{n}", "R", COST_COLUMNS, "sum")
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=worker, args=(i,)) for i in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(store) == 160

    def test_concurrent_duplicate_names(self, store):
        """Test racing creates of one name leave exactly one rule"""
        outcomes = []
        lock = threading.Lock()

        def worker():
            try:
                store.create_merge_rule("shared", "Shared", COST_COLUMNS, "sum")
                result = "created"
            except DuplicateMergeRuleError:
                result = "duplicate"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("created") == 1
        assert len(store) == 1
