"""
Validator - Repeated quest generation for deck balance analysis.
"""

from .validator import (
    QuestValidator,
    ValidationReport,
    ValidationSummary,
    CardUsage,
    OveractiveCard,
    Bottleneck,
)
from .report import format_report_as_text

__all__ = [
    "QuestValidator",
    "ValidationReport",
    "ValidationSummary",
    "CardUsage",
    "OveractiveCard",
    "Bottleneck",
    "format_report_as_text",
]
