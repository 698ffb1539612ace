"""
Unit Tests for the Synonym Library
"""
import pytest
import json
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from semantic_merge.models import ColumnClassification, ColumnSynonym, DataType, FormatType
from semantic_merge.synonyms import DEFAULT_SYNONYMS, SynonymLibrary
from semantic_merge.utils.errors import SynonymLibraryError


class TestDefaultLibrary:
    """Tests for the built-in synonym entries"""

    @pytest.fixture
    def library(self):
        return SynonymLibrary()

    def test_default_entries(self, library):
        """Test the built-in concepts are present"""
        names = [entry.canonical_name for entry in library]
        assert names == [
            "impressions", "clicks", "cost", "conversions", "revenue",
            "ctr", "cpc", "date", "campaign",
        ]
        assert len(library) == len(DEFAULT_SYNONYMS)

    def test_find_synonym_case_insensitive(self, library):
        """Test platform column names resolve to their concept"""
        assert library.find_synonym("Spend").canonical_name == "cost"
        assert library.find_synonym("TOTAL_SPEND").canonical_name == "cost"
        assert library.find_synonym("link_clicks").canonical_name == "clicks"
        assert library.find_synonym("imps").canonical_name == "impressions"
        assert library.find_synonym("campaign_name").canonical_name == "campaign"

    def test_find_synonym_no_match(self, library):
        """Test unknown and empty names"""
        assert library.find_synonym("frequency") is None
        assert library.find_synonym("") is None

    def test_find_synonym_is_exact(self, library):
        """Test substring matches do not count"""
        assert library.find_synonym("cost_per_conversion") is None

    def test_classifications(self, library):
        """Test dimension concepts"""
        assert library.get_by_canonical("date").classification == ColumnClassification.DIMENSION
        assert library.get_by_canonical("campaign").classification == ColumnClassification.DIMENSION
        assert library.get_by_canonical("cost").format_type == FormatType.CURRENCY
        assert library.get_by_canonical("cost").unit == "USD"

    def test_all_synonyms_is_copy(self, library):
        """Test callers cannot mutate the library"""
        entries = library.all_synonyms()
        entries.clear()
        assert len(library.all_synonyms()) == len(DEFAULT_SYNONYMS)


class TestCustomLibrary:
    """Tests for custom and file-based libraries"""

    def test_duplicate_canonical_rejected(self):
        """Test two entries with one canonical name"""
        entry = ColumnSynonym.create("cost", "Cost", ["spend"], DataType.NUMBER, ColumnClassification.METRIC)
        with pytest.raises(SynonymLibraryError):
            SynonymLibrary([entry, entry])

    def test_first_entry_wins_for_shared_name(self):
        """Test a name listed by two entries resolves to the first"""
        first = ColumnSynonym.create("cost", "Cost", ["spend"], DataType.NUMBER, ColumnClassification.METRIC)
        second = ColumnSynonym.create("budget", "Budget", ["spend"], DataType.NUMBER, ColumnClassification.METRIC)
        library = SynonymLibrary([first, second])
        assert library.find_synonym("spend").canonical_name == "cost"

    def test_from_dict_extends_defaults(self):
        """Test custom entries are appended to the defaults"""
        library = SynonymLibrary.from_dict(
            {"synonyms": [{"canonical_name": "reach", "synonyms": ["unique_reach"]}]},
            extend_defaults=True,
        )
        assert len(library) == len(DEFAULT_SYNONYMS) + 1
        assert library.find_synonym("unique_reach").canonical_name == "reach"

    def test_from_dict_missing_list(self):
        """Test a document without a synonyms list"""
        with pytest.raises(SynonymLibraryError):
            SynonymLibrary.from_dict({"entries": []})

    def test_from_dict_invalid_entry(self):
        """Test an entry with a bad data type"""
        with pytest.raises(SynonymLibraryError):
            SynonymLibrary.from_dict({"synonyms": [{"canonical_name": "x", "data_type": "blob"}]})

    def test_load_yaml(self, tmp_path):
        """Test loading from a YAML file"""
        path = tmp_path / "synonyms.yaml"
        path.write_text(
            "synonyms:\n"
            "  - canonical_name: reach\n"
            "    display_name: Reach\n"
            "    synonyms: [reach, unique_reach]\n"
            "    data_type: number\n"
            "    classification: metric\n"
        )

        library = SynonymLibrary.load(str(path))
        assert len(library) == 1
        assert library.find_synonym("Unique_Reach").display_name == "Reach"

    def test_load_json(self, tmp_path):
        """Test loading from a JSON file"""
        path = tmp_path / "synonyms.json"
        path.write_text(json.dumps({"synonyms": [{"canonical_name": "day_part", "data_type": "string",
                                                  "classification": "dimension"}]}))

        library = SynonymLibrary.load(str(path))
        assert library.get_by_canonical("day_part").data_type == DataType.STRING

    def test_load_missing_file(self, tmp_path):
        """Test a missing file raises"""
        with pytest.raises(SynonymLibraryError) as exc_info:
            SynonymLibrary.load(str(tmp_path / "nope.yaml"))
        assert exc_info.value.path.endswith("nope.yaml")

    def test_load_malformed_yaml(self, tmp_path):
        """Test unparseable YAML raises"""
        path = tmp_path / "broken.yaml"
        path.write_text("synonyms: [unclosed\n")
        with pytest.raises(SynonymLibraryError):
            SynonymLibrary.load(str(path))

    def test_yaml_export_round_trip(self, tmp_path):
        """Test an exported library loads back"""
        path = tmp_path / "export.yaml"
        path.write_text(SynonymLibrary().to_yaml())

        library = SynonymLibrary.load(str(path))
        assert library.find_synonym("amount_spent").canonical_name == "cost"
