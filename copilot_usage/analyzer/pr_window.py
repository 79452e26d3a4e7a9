"""Bounded walk over the recently closed pull requests of a repository."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterator, List, Optional

import requests

from ..api_client import GitHubAPIClient, DEFAULT_PER_PAGE
from ..exceptions import FetchFailure, UpstreamAuthError
from ..models import PullRequestRecord, RepositoryWindow

DEFAULT_CUTOFF_DAYS = 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class PullRequestWindowFetcher:
    """Fetches closed PRs page by page until the time window is exhausted."""

    def __init__(self, api_client: GitHubAPIClient, per_page: int = DEFAULT_PER_PAGE,
                 clock: Callable[[], datetime] = utc_now):
        self.api_client = api_client
        self.per_page = per_page
        self.clock = clock

    def open_window(self, repo: str, cutoff_days: Optional[int] = None) -> RepositoryWindow:
        """Fix the cutoff instant for a repository walk."""
        if cutoff_days is None:
            cutoff_days = DEFAULT_CUTOFF_DAYS
        return RepositoryWindow(repo, self.clock() - timedelta(days=cutoff_days))

    def fetch(self, repo: str, cutoff_days: Optional[int] = None) -> Iterator[PullRequestRecord]:
        """Yield the closed PRs of a repository, newest first.

        Nothing is requested until the iterator is first advanced.
        """
        yield from self.fetch_window(self.open_window(repo, cutoff_days))

    def fetch_window(self, window: RepositoryWindow) -> Iterator[PullRequestRecord]:
        """Yield the records of an already opened window.

        Pages are newest first, so the first page holding a PR closed at or
        before the cutoff is the last one needed. Every item of that page is
        still returned; callers filter with ``window.contains``.

        Raises:
            FetchFailure: If any page request fails. No record of the
                repository is yielded in that case.
        """
        yield from self._collect(window)

    def _collect(self, window: RepositoryWindow) -> List[PullRequestRecord]:
        repo = window.repo
        logging.info(f"Fetching closed PRs for {repo} closed after {window.cutoff:%Y-%m-%d %H:%M} UTC")

        results: List[PullRequestRecord] = []
        page = 1

        while True:
            logging.debug(f"Fetching page {page} of closed PRs for {repo}")
            try:
                data = self.api_client.list_closed_pull_requests(repo, page=page, per_page=self.per_page)
                records = [PullRequestRecord.from_api(repo, item) for item in data]
            except (requests.RequestException, UpstreamAuthError, ValueError, KeyError) as e:
                logging.error(f"Fetching closed PRs for {repo} failed on page {page}: {e}")
                raise FetchFailure(repo, e) from e

            if not records:
                break

            results.extend(records)

            if any(window.is_exhausted_by(record) for record in records):
                logging.debug(f"Window for {repo} exhausted at page {page}")
                break

            # A short page is the last one upstream has
            if len(records) < self.per_page:
                break

            page += 1

        logging.info(f"Fetched {len(results)} closed PRs from {repo} ({page} pages)")
        return results
