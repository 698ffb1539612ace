"""
Utilities Package for the Semantic Merge Engine
"""
from .logging import (
    setup_logging,
    get_logger,
    current_context,
    new_query_id,
    clear_context,
    log_context,
    log_operation,
)

from .errors import (
    ErrorSeverity,
    ErrorCategory,
    ErrorContext,
    SemanticMergeError,
    ValidationError,
    DuplicateMergeRuleError,
    SynonymLibraryError,
    ConfigurationError,
    QueryTimeoutError,
    format_error,
)

from .metrics import (
    MetricsCollector,
    get_metrics_collector,
    counter,
    gauge,
    histogram,
    timer,
    time_operation,
    MergeEngineMetrics,
)

__all__ = [
    # Logging
    "setup_logging",
    "get_logger",
    "current_context",
    "new_query_id",
    "clear_context",
    "log_context",
    "log_operation",
    # Errors
    "ErrorSeverity",
    "ErrorCategory",
    "ErrorContext",
    "SemanticMergeError",
    "ValidationError",
    "DuplicateMergeRuleError",
    "SynonymLibraryError",
    "ConfigurationError",
    "QueryTimeoutError",
    "format_error",
    # Metrics
    "MetricsCollector",
    "get_metrics_collector",
    "counter",
    "gauge",
    "histogram",
    "timer",
    "time_operation",
    "MergeEngineMetrics",
]
