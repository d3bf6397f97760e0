"""Lead extraction orchestration."""

from orchestration.extractor import ExtractionResult, LeadExtractionOrchestrator
from orchestration.metrics import AccuracyMetrics, calculate_accuracy_metrics
from orchestration.strategies import (
    InlineTextStrategy,
    NoDocumentsAvailable,
    RemoteReferenceStrategy,
    TransferStrategy,
    select_relevant_files,
)
from orchestration.website import WebsiteAnalysis, WebsiteAnalyzer, WebsiteFetchError

__all__ = [
    "AccuracyMetrics",
    "ExtractionResult",
    "InlineTextStrategy",
    "LeadExtractionOrchestrator",
    "NoDocumentsAvailable",
    "RemoteReferenceStrategy",
    "TransferStrategy",
    "WebsiteAnalysis",
    "WebsiteAnalyzer",
    "WebsiteFetchError",
    "calculate_accuracy_metrics",
    "select_relevant_files",
]
