"""Repository walk, review classification and usage aggregation."""

from .core import CopilotUsageAnalyzer, REVIEW_FAILURE_POLICIES
from .pr_window import PullRequestWindowFetcher
from .review_classifier import ReviewClassifier

__all__ = [
    'CopilotUsageAnalyzer',
    'REVIEW_FAILURE_POLICIES',
    'PullRequestWindowFetcher',
    'ReviewClassifier',
]
