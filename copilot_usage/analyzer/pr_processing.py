"""PR processing methods for CopilotUsageAnalyzer."""

import logging
from typing import List, Optional

import requests

from ..exceptions import UpstreamAuthError, UpstreamRequestFailure
from ..models import AggregateReport, PullRequestRecord, ReviewRecord, UsageCategoryCounts


def _analyze_pr(self, report: AggregateReport, record: PullRequestRecord):
    """Fold a single PR into the report.

    Usage declared in the body always counts towards the totals; the PR is
    listed only when the Copilot reviewer reviewed it. PRs whose reviews
    could not be fetched under the 'skip' policy are recorded in
    ``report.failed_review_lookups``.

    Args:
        report: Report of the current run
        record: PR taken from the repository window
    """
    record.usage = self.parser.parse(record.body)
    report.totals = report.totals + record.usage

    reviews = self._fetch_reviews(record)
    if reviews is None:
        report.failed_review_lookups.setdefault(record.repo, []).append(record.number)
        return

    copilot_review = self.classifier.classify(reviews)
    if copilot_review is None:
        logging.debug(f"PR #{record.number} in {record.repo} was not reviewed by Copilot")
        return

    logging.debug(f"PR #{record.number} in {record.repo} reviewed by {copilot_review.login}")
    record.assistant_review = copilot_review
    report.totals = report.totals + UsageCategoryCounts(review=1)
    report.pull_requests[record.repo].append(record)


def _fetch_reviews(self, record: PullRequestRecord) -> Optional[List[ReviewRecord]]:
    """Fetch the reviews of a PR.

    Returns:
        Reviews in GitHub order, or None if they could not be fetched and the
        review failure policy is 'skip'

    Raises:
        UpstreamRequestFailure: If the credential is rejected, or if the
            request fails under the 'fail' policy
    """
    operation = f"Listing reviews of PR #{record.number}"
    try:
        reviews = self.api_client.list_reviews(record.repo, record.number)
        return [ReviewRecord.from_api(review) for review in reviews]
    except UpstreamAuthError as e:
        # Auth failures abort the run under every policy
        logging.error(f"GitHub rejected the credential fetching reviews for PR #{record.number} in {record.repo}")
        raise UpstreamRequestFailure(record.repo, operation, e) from e
    except (requests.RequestException, ValueError) as e:
        if self.review_failure_policy == 'skip':
            logging.warning(f"Error fetching reviews for PR #{record.number} in {record.repo}, "
                            f"leaving it out of the report: {e}")
            return None
        logging.error(f"Error fetching reviews for PR #{record.number} in {record.repo}: {e}")
        raise UpstreamRequestFailure(record.repo, operation, e) from e
