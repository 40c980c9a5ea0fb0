"""
Performance analytics modules.
"""
from .store import AnalyticsError, PerformanceStore, StoreReadError
from .learning_needs import LearningNeedsAnalyzer
from .org_overview import OrgOverviewSummarizer
from .detailed_report import DetailedPerformanceReporter
from .digests import ReportDigestBuilder

__all__ = [
    "AnalyticsError",
    "PerformanceStore",
    "StoreReadError",
    "LearningNeedsAnalyzer",
    "OrgOverviewSummarizer",
    "DetailedPerformanceReporter",
    "ReportDigestBuilder",
]
