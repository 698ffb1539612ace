"""
Unit Tests for Configuration
"""
import pytest
import sys
import os

# Add src to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', 'src'))

from pydantic import ValidationError as PydanticValidationError

from semantic_merge.config import (
    EngineConfig,
    SystemConfig,
    get_config,
    reset_config,
    set_config,
)
from semantic_merge.utils.errors import ConfigurationError


ENV_KEYS = [
    "MERGE_EXCLUDE_MERGED_DIMENSIONS",
    "MERGE_SUM_UNMERGED_METRICS",
    "MERGE_SKIP_MISSING_VALUES",
    "MERGE_REJECT_DUPLICATE_RULES",
    "MERGE_DATE_FIELD",
    "MERGE_QUERY_TIMEOUT_SECONDS",
    "MERGE_MIN_CONFIDENCE",
    "MERGE_METRICS_ENABLED",
    "MERGE_JSON_LOGS",
    "MERGE_SYNONYM_FILE",
    "LOG_LEVEL",
    "DEBUG_MODE",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    # keep a stray .env in the working directory out of the picture
    monkeypatch.chdir(tmp_path)
    yield monkeypatch
    reset_config()


class TestEngineConfig:
    """Tests for EngineConfig defaults and validation"""

    def test_defaults(self):
        """Test default behavior switches"""
        config = EngineConfig()
        assert config.base_confidence == 0.7
        assert config.type_match_bonus == 0.2
        assert config.classification_match_bonus == 0.1
        assert config.exclude_merged_dimensions_from_grouping is True
        assert config.sum_unmerged_metrics is True
        assert config.skip_missing_values is False
        assert config.reject_duplicate_rule_names is True
        assert config.date_field == "date"
        assert config.query_timeout_seconds is None

    def test_bounds(self):
        """Test out-of-range values are refused"""
        with pytest.raises(PydanticValidationError):
            EngineConfig(base_confidence=1.5)
        with pytest.raises(PydanticValidationError):
            EngineConfig(query_timeout_seconds=0)
        with pytest.raises(PydanticValidationError):
            EngineConfig(date_field="")


class TestSystemConfigFromEnv:
    """Tests for environment-driven configuration"""

    def test_defaults(self, clean_env):
        """Test an empty environment yields defaults"""
        config = SystemConfig.from_env()
        assert config.engine == EngineConfig()
        assert config.metrics.enabled is True
        assert config.log_level == "INFO"
        assert config.synonym_file is None

    def test_overrides(self, clean_env):
        """Test MERGE_* variables are applied"""
        clean_env.setenv("MERGE_EXCLUDE_MERGED_DIMENSIONS", "false")
        clean_env.setenv("MERGE_SUM_UNMERGED_METRICS", "0")
        clean_env.setenv("MERGE_SKIP_MISSING_VALUES", "yes")
        clean_env.setenv("MERGE_REJECT_DUPLICATE_RULES", "no")
        clean_env.setenv("MERGE_DATE_FIELD", "day")
        clean_env.setenv("MERGE_QUERY_TIMEOUT_SECONDS", "2.5")
        clean_env.setenv("MERGE_METRICS_ENABLED", "off")
        clean_env.setenv("LOG_LEVEL", "debug")
        clean_env.setenv("MERGE_SYNONYM_FILE", "/etc/merge/synonyms.yaml")

        config = SystemConfig.from_env()
        assert config.engine.exclude_merged_dimensions_from_grouping is False
        assert config.engine.sum_unmerged_metrics is False
        assert config.engine.skip_missing_values is True
        assert config.engine.reject_duplicate_rule_names is False
        assert config.engine.date_field == "day"
        assert config.engine.query_timeout_seconds == 2.5
        assert config.metrics.enabled is False
        assert config.log_level == "DEBUG"
        assert config.synonym_file == "/etc/merge/synonyms.yaml"

    def test_dotenv_file(self, clean_env, tmp_path):
        """Test values are read from a .env file"""
        env_file = tmp_path / "merge.env"
        env_file.write_text("MERGE_DATE_FIELD=report_date\n")
        # registered with monkeypatch so the value load_dotenv sets is undone afterwards
        clean_env.setenv("MERGE_DATE_FIELD", "")
        clean_env.delenv("MERGE_DATE_FIELD")

        config = SystemConfig.from_env(str(env_file))
        assert config.engine.date_field == "report_date"

    def test_invalid_value(self, clean_env):
        """Test a malformed variable raises ConfigurationError"""
        clean_env.setenv("MERGE_QUERY_TIMEOUT_SECONDS", "soon")
        with pytest.raises(ConfigurationError):
            SystemConfig.from_env()

    def test_invalid_log_level(self, clean_env):
        """Test an unknown log level"""
        clean_env.setenv("LOG_LEVEL", "chatty")
        with pytest.raises(ConfigurationError):
            SystemConfig.from_env()


class TestGlobalConfig:
    """Tests for the global configuration instance"""

    def test_set_and_reset(self, clean_env):
        """Test set_config, get_config and reset_config"""
        custom = SystemConfig(debug_mode=True)
        set_config(custom)
        assert get_config() is custom

        reset_config()
        assert get_config() is not custom
        assert get_config().debug_mode is False
