"""
Configuration Management for the Semantic Merge Engine
Uses Pydantic for validation and type safety
"""
from __future__ import annotations

import os
from enum import Enum
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from .utils.errors import ConfigurationError


class LogLevel(str, Enum):
    """Log levels"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EngineConfig(BaseModel):
    """Behavioral switches for analysis, rule registry and query execution"""
    # Suggestion confidence scoring
    base_confidence: float = Field(default=0.7, ge=0.0, le=1.0)
    type_match_bonus: float = Field(default=0.2, ge=0.0, le=1.0)
    classification_match_bonus: float = Field(default=0.1, ge=0.0, le=1.0)
    min_suggestion_confidence: float = Field(default=0.0, ge=0.0, le=1.0)

    # Grouping keeps only un-merged dimensions unless group_by is explicit
    exclude_merged_dimensions_from_grouping: bool = True

    # Bare metric names are summed across every source that carries them
    sum_unmerged_metrics: bool = True

    # Null cells under a mapped column count as 0 unless skipped here
    skip_missing_values: bool = False

    reject_duplicate_rule_names: bool = True

    date_field: str = Field(default="date", min_length=1)
    query_timeout_seconds: Optional[float] = Field(default=None, gt=0.0)
    max_warnings: int = Field(default=100, ge=0, le=10000)


class MetricsConfig(BaseModel):
    """Metrics configuration"""
    enabled: bool = True


class SystemConfig(BaseModel):
    """Main system configuration"""
    engine: EngineConfig = Field(default_factory=EngineConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    log_level: LogLevel = LogLevel.INFO
    json_logs: bool = False
    debug_mode: bool = False
    synonym_file: Optional[str] = None

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "SystemConfig":
        """Create configuration from environment variables (and a .env file if present)"""
        load_dotenv(dotenv_path)

        timeout = os.getenv("MERGE_QUERY_TIMEOUT_SECONDS")

        try:
            engine = EngineConfig(
                exclude_merged_dimensions_from_grouping=_env_bool(
                    "MERGE_EXCLUDE_MERGED_DIMENSIONS", True
                ),
                sum_unmerged_metrics=_env_bool("MERGE_SUM_UNMERGED_METRICS", True),
                skip_missing_values=_env_bool("MERGE_SKIP_MISSING_VALUES", False),
                reject_duplicate_rule_names=_env_bool("MERGE_REJECT_DUPLICATE_RULES", True),
                date_field=os.getenv("MERGE_DATE_FIELD", "date"),
                query_timeout_seconds=float(timeout) if timeout else None,
                min_suggestion_confidence=float(os.getenv("MERGE_MIN_CONFIDENCE", "0.0")),
            )

            return cls(
                engine=engine,
                metrics=MetricsConfig(enabled=_env_bool("MERGE_METRICS_ENABLED", True)),
                log_level=LogLevel(os.getenv("LOG_LEVEL", "INFO").upper()),
                json_logs=_env_bool("MERGE_JSON_LOGS", False),
                debug_mode=_env_bool("DEBUG_MODE", False),
                synonym_file=os.getenv("MERGE_SYNONYM_FILE") or None,
            )
        except (PydanticValidationError, ValueError) as e:
            raise ConfigurationError(
                f"Invalid environment configuration: {e}",
                original_error=e,
            ) from e

    model_config = {"use_enum_values": True}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# Global configuration instance
_config: Optional[SystemConfig] = None


def get_config() -> SystemConfig:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = SystemConfig.from_env()
    return _config


def set_config(config: SystemConfig) -> None:
    """Set the global configuration instance"""
    global _config
    _config = config


def reset_config() -> None:
    """Reset the global configuration instance"""
    global _config
    _config = None
