"""Copilot Usage Report - aggregates Copilot usage across an organization's PRs."""

from .models import (
    AggregateReport,
    AnalysisConfig,
    CompletedEvent,
    ProgressEvent,
    PullRequestRecord,
    RepositoryWindow,
    ReviewRecord,
    UsageCategoryCounts,
)
from .api_client import GitHubAPIClient
from .annotations import UsageAnnotationParser
from .analyzer import CopilotUsageAnalyzer, PullRequestWindowFetcher, ReviewClassifier
from .delivery import ReportDeliveryAdapter
from .exceptions import (
    ConfigError,
    CopilotUsageError,
    FetchFailure,
    UpstreamAuthError,
    UpstreamRequestFailure,
)
from .output import OutputFormatter

__all__ = [
    'AggregateReport',
    'AnalysisConfig',
    'CompletedEvent',
    'ProgressEvent',
    'PullRequestRecord',
    'RepositoryWindow',
    'ReviewRecord',
    'UsageCategoryCounts',
    'GitHubAPIClient',
    'UsageAnnotationParser',
    'CopilotUsageAnalyzer',
    'PullRequestWindowFetcher',
    'ReviewClassifier',
    'ReportDeliveryAdapter',
    'ConfigError',
    'CopilotUsageError',
    'FetchFailure',
    'UpstreamAuthError',
    'UpstreamRequestFailure',
    'OutputFormatter',
]
