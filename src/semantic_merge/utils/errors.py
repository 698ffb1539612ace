"""
Error Handling Module for the Semantic Merge Engine
Defines custom exceptions and error handling utilities
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from .logging import current_context


class ErrorSeverity(str, Enum):
    """Error severity levels"""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification"""
    VALIDATION = "validation"
    REGISTRY = "registry"
    SYNONYMS = "synonyms"
    QUERY = "query"
    CONFIGURATION = "configuration"
    TIMEOUT = "timeout"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Additional context for errors"""
    correlation_id: Optional[str] = None
    query_id: Optional[str] = None
    component: Optional[str] = None
    rule_id: Optional[str] = None
    merged_name: Optional[str] = None
    source_ids: List[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "correlation_id": self.correlation_id,
            "query_id": self.query_id,
            "component": self.component,
            "rule_id": self.rule_id,
            "merged_name": self.merged_name,
            "source_ids": self.source_ids,
            "timestamp": self.timestamp.isoformat(),
            "metadata": self.metadata,
        }

    @classmethod
    def from_log_context(cls) -> "ErrorContext":
        """Context pre-filled from the ids bound on the current thread"""
        bound = current_context()
        return cls(
            correlation_id=bound.get("correlation_id"),
            query_id=bound.get("query_id"),
            component=bound.get("component"),
            rule_id=bound.get("rule_id"),
        )


class SemanticMergeError(Exception):
    """Base exception for the Semantic Merge Engine"""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        context: Optional[ErrorContext] = None,
        recoverable: bool = True,
        suggestions: Optional[List[str]] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext.from_log_context()
        self.recoverable = recoverable
        self.suggestions = suggestions or []
        self.original_error = original_error

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "recoverable": self.recoverable,
            "suggestions": self.suggestions,
            "context": self.context.to_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


class ValidationError(SemanticMergeError):
    """Invalid rule definition or query shape"""

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        failed_rules: Optional[List[str]] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Check the input against the documented model shape"]
        if field_name:
            suggestions.append(f"Review the value given for '{field_name}'")
        if failed_rules:
            suggestions.extend([f"Fix validation: {rule}" for rule in failed_rules])

        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.MEDIUM,
            context=context,
            recoverable=True,
            suggestions=suggestions,
            original_error=original_error
        )
        self.field_name = field_name
        self.failed_rules = failed_rules or []


class DuplicateMergeRuleError(SemanticMergeError):
    """A merge rule with the same merged name already exists"""

    def __init__(
        self,
        merged_name: str,
        existing_rule_id: Optional[str] = None,
        context: Optional[ErrorContext] = None,
    ):
        context = context or ErrorContext.from_log_context()
        context.merged_name = merged_name
        context.rule_id = existing_rule_id

        super().__init__(
            message=f"Merge rule '{merged_name}' already exists",
            category=ErrorCategory.REGISTRY,
            severity=ErrorSeverity.MEDIUM,
            context=context,
            recoverable=True,
            suggestions=[
                "Choose a different merged name",
                f"Delete rule '{existing_rule_id}' before recreating it" if existing_rule_id
                else "Delete the existing rule before recreating it",
            ],
        )
        self.merged_name = merged_name
        self.existing_rule_id = existing_rule_id


class SynonymLibraryError(SemanticMergeError):
    """Synonym library could not be loaded or is malformed"""

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Each entry needs canonical_name, display_name and synonyms"]
        if path:
            suggestions.append(f"Check synonym file: {path}")

        super().__init__(
            message=message,
            category=ErrorCategory.SYNONYMS,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=False,
            suggestions=suggestions,
            original_error=original_error
        )
        self.path = path


class ConfigurationError(SemanticMergeError):
    """Configuration errors"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        context: Optional[ErrorContext] = None,
        original_error: Optional[Exception] = None
    ):
        suggestions = ["Review configuration settings"]
        if config_key:
            suggestions.append(f"Check configuration for key: {config_key}")

        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.HIGH,
            context=context,
            recoverable=False,
            suggestions=suggestions,
            original_error=original_error
        )
        self.config_key = config_key


class QueryTimeoutError(SemanticMergeError):
    """Query execution exceeded its deadline"""

    def __init__(
        self,
        message: str,
        timeout_seconds: Optional[float] = None,
        rows_processed: int = 0,
        context: Optional[ErrorContext] = None,
    ):
        suggestions = [
            "Increase query_timeout_seconds",
            "Narrow the query with filters or a date range",
            "Query fewer sources at once",
        ]

        super().__init__(
            message=message,
            category=ErrorCategory.TIMEOUT,
            severity=ErrorSeverity.MEDIUM,
            context=context,
            recoverable=True,
            suggestions=suggestions,
        )
        self.timeout_seconds = timeout_seconds
        self.rows_processed = rows_processed


def format_error(error: SemanticMergeError) -> str:
    """Format error as a multi-line, human-readable report"""
    lines = [
        f"Error Type: {error.__class__.__name__}",
        f"Category: {error.category.value}",
        f"Message: {error.message}",
    ]

    if error.suggestions:
        lines.append("Suggestions:")
        for suggestion in error.suggestions:
            lines.append(f"  - {suggestion}")

    if error.context.merged_name:
        lines.append(f"Merged Name: {error.context.merged_name}")

    if error.original_error:
        lines.append(f"Original Error: {str(error.original_error)}")

    return "\n".join(lines)
