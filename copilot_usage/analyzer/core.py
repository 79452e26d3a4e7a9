"""Main Copilot usage analyzer."""

import logging
from datetime import datetime
from typing import Callable, Iterator, List, Tuple

from ..annotations import UsageAnnotationParser
from ..api_client import GitHubAPIClient, DEFAULT_PER_PAGE
from ..models import AggregateReport, AnalysisConfig, AnalysisEvent, CompletedEvent, ProgressEvent
from .pr_window import PullRequestWindowFetcher, utc_now
from .review_classifier import ReviewClassifier, DEFAULT_ASSISTANT_NAME

REVIEW_FAILURE_POLICIES = ('fail', 'skip')


class CopilotUsageAnalyzer:
    """Aggregates Copilot usage across the PRs of an organization's repositories."""

    def __init__(
        self,
        api_client: GitHubAPIClient,
        assistant_name: str = DEFAULT_ASSISTANT_NAME,
        review_failure_policy: str = 'fail',
        per_page: int = DEFAULT_PER_PAGE,
        clock: Callable[[], datetime] = utc_now
    ):
        """Initialize the analyzer.

        Args:
            api_client: Client used for every GitHub request
            assistant_name: Fragment identifying the assistant's login
            review_failure_policy: 'fail' aborts the run when a PR's reviews
                cannot be listed, 'skip' counts the PR's usage and leaves it
                out of the qualifying list
            per_page: Page size for the pull request listing
            clock: Returns the current UTC time
        """
        if review_failure_policy not in REVIEW_FAILURE_POLICIES:
            raise ValueError(f"Unknown review failure policy '{review_failure_policy}'")

        self.api_client = api_client
        self.fetcher = PullRequestWindowFetcher(api_client, per_page=per_page, clock=clock)
        self.parser = UsageAnnotationParser()
        self.classifier = ReviewClassifier(assistant_name)
        self.review_failure_policy = review_failure_policy

    def run(self, config: AnalysisConfig) -> AggregateReport:
        """Analyze every configured repository and return the finished report.

        Raises:
            FetchFailure: If a repository's PRs cannot be listed
            UpstreamRequestFailure: If a PR's reviews cannot be listed and
                the review failure policy is 'fail'
        """
        report = self._new_report(config)
        for _ in self._walk(report, config):
            pass
        return report

    def run_streaming(self, config: AnalysisConfig) -> Iterator[AnalysisEvent]:
        """Yield a snapshot after each classified PR, then the finished report.

        The consumer may stop iterating at any point; no further GitHub
        requests are made once the generator is closed.
        """
        report = self._new_report(config)
        walk = self._walk(report, config)
        try:
            for repo, number in walk:
                yield ProgressEvent(report.snapshot(), repo, number)
        except GeneratorExit:
            logging.info("Report consumer went away, stopping analysis")
            raise
        finally:
            walk.close()

        yield CompletedEvent(report)

    def _new_report(self, config: AnalysisConfig) -> AggregateReport:
        report = AggregateReport(window_days=config.window_days)
        for repo in _unique(config.repos):
            report.pull_requests[repo] = []
        return report

    def _walk(self, report: AggregateReport, config: AnalysisConfig) -> Iterator[Tuple[str, int]]:
        """Fold every in-window PR of every repository into the report."""
        repos = list(report.pull_requests)
        logging.info(f"Starting analysis of {len(repos)} repository/repositories "
                     f"over the last {config.window_days} day(s)")

        for repo in repos:
            logging.info(f"Analyzing repository: {repo}")
            window = self.fetcher.open_window(repo, config.window_days)
            seen_pr_numbers = set()
            analyzed = 0

            for record in self.fetcher.fetch_window(window):
                if not window.contains(record.closed_at):
                    logging.debug(f"Skipping PR #{record.number} closed before the window")
                    continue
                if record.number in seen_pr_numbers:
                    logging.debug(f"Skipping duplicate PR #{record.number}")
                    continue
                seen_pr_numbers.add(record.number)

                self._analyze_pr(report, record)
                analyzed += 1
                yield repo, record.number

            logging.info(f"Completed analysis of {repo}: {analyzed} PRs, "
                         f"{len(report.pull_requests[repo])} reviewed by Copilot")

        logging.info(f"Analysis complete: {report.qualifying_count()} PRs reviewed by Copilot, "
                     f"usage totals {report.totals.as_dict()}")


def _unique(repos: List[str]) -> List[str]:
    unique = []
    for repo in repos:
        if repo in unique:
            logging.warning(f"Repository {repo} is configured more than once, analyzing it once")
            continue
        unique.append(repo)
    return unique


# Import and attach methods from submodules
from .pr_processing import _analyze_pr, _fetch_reviews

# Attach methods to class
CopilotUsageAnalyzer._analyze_pr = _analyze_pr
CopilotUsageAnalyzer._fetch_reviews = _fetch_reviews
