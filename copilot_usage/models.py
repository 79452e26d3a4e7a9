"""Data models for Copilot usage analysis."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

CATEGORIES = ('code', 'test', 'docs', 'review', 'other')

GITHUB_DATE_FORMAT = '%Y-%m-%dT%H:%M:%SZ'


def parse_github_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse a GitHub API timestamp into an aware UTC datetime."""
    if not value:
        return None
    return datetime.strptime(value, GITHUB_DATE_FORMAT).replace(tzinfo=timezone.utc)


@dataclass
class UsageCategoryCounts:
    """Per-category AI usage counters."""
    code: int = 0
    test: int = 0
    docs: int = 0
    review: int = 0
    other: int = 0

    def __post_init__(self):
        for name in CATEGORIES:
            if getattr(self, name) < 0:
                raise ValueError(f"Usage count '{name}' must be non-negative")

    def __add__(self, other: 'UsageCategoryCounts') -> 'UsageCategoryCounts':
        if not isinstance(other, UsageCategoryCounts):
            return NotImplemented
        return UsageCategoryCounts(**{
            name: getattr(self, name) + getattr(other, name) for name in CATEGORIES
        })

    def total(self) -> int:
        return sum(getattr(self, name) for name in CATEGORIES)

    def copy(self) -> 'UsageCategoryCounts':
        return replace(self)

    def as_dict(self) -> Dict[str, int]:
        return {name: getattr(self, name) for name in CATEGORIES}


@dataclass
class ReviewRecord:
    """A pull request review left by the automated assistant."""
    login: str
    account_type: str
    body: str
    url: str

    @classmethod
    def from_api(cls, review: Dict) -> 'ReviewRecord':
        """Build a review record from a GitHub review item."""
        # Deleted accounts come back with user set to null
        user = review.get('user') or {}
        return cls(
            login=user.get('login', ''),
            account_type=user.get('type', ''),
            body=review.get('body') or '',
            url=review.get('html_url', '')
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            'login': self.login,
            'type': self.account_type,
            'body': self.body,
            'url': self.url
        }


@dataclass
class PullRequestRecord:
    """A closed pull request and the usage signals derived from it."""
    repo: str
    number: int
    title: str
    author: str
    closed_at: Optional[datetime]
    body: str = ''
    usage: UsageCategoryCounts = field(default_factory=UsageCategoryCounts)
    assistant_review: Optional[ReviewRecord] = None

    @classmethod
    def from_api(cls, repo: str, pr: Dict) -> 'PullRequestRecord':
        """Build a record from one item of the pull request listing.

        Args:
            repo: Repository name the listing was requested for
            pr: PR data from GitHub API

        Returns:
            PullRequestRecord with empty usage and no review
        """
        user = pr.get('user') or {}
        return cls(
            repo=repo,
            number=pr['number'],
            title=pr.get('title', ''),
            author=user.get('login', ''),
            closed_at=parse_github_timestamp(pr.get('closed_at')),
            body=pr.get('body') or ''
        )

    def to_dict(self) -> Dict:
        data = {
            'number': self.number,
            'title': self.title,
            'author': self.author,
            'closed_at': self.closed_at.strftime(GITHUB_DATE_FORMAT) if self.closed_at else None,
            'repo': self.repo,
            'ai_usage': self.usage.as_dict()
        }
        if self.assistant_review is not None:
            data['copilot_review'] = self.assistant_review.to_dict()
        return data


@dataclass(frozen=True)
class RepositoryWindow:
    """A repository and the instant before which its PRs are out of range."""
    repo: str
    cutoff: datetime

    def contains(self, instant: Optional[datetime]) -> bool:
        return instant is not None and instant > self.cutoff

    def is_exhausted_by(self, record: PullRequestRecord) -> bool:
        """True once a record closed at or before the cutoff shows up."""
        return record.closed_at is not None and record.closed_at <= self.cutoff


@dataclass
class AnalysisConfig:
    """Repositories to analyze and the trailing window in days."""
    repos: List[str] = field(default_factory=list)
    window_days: int = 1


@dataclass
class AggregateReport:
    """Qualifying PRs per repository and usage totals for one analysis run."""
    pull_requests: Dict[str, List[PullRequestRecord]] = field(default_factory=dict)
    totals: UsageCategoryCounts = field(default_factory=UsageCategoryCounts)
    window_days: int = 1
    # PR numbers per repository whose reviews could not be fetched
    failed_review_lookups: Dict[str, List[int]] = field(default_factory=dict)

    def snapshot(self) -> 'AggregateReport':
        """Copy the report so later folding cannot change it."""
        return AggregateReport(
            pull_requests={repo: [replace(pr, usage=pr.usage.copy()) for pr in prs]
                           for repo, prs in self.pull_requests.items()},
            totals=self.totals.copy(),
            window_days=self.window_days,
            failed_review_lookups={repo: list(numbers)
                                   for repo, numbers in self.failed_review_lookups.items()}
        )

    def qualifying_count(self) -> int:
        return sum(len(prs) for prs in self.pull_requests.values())

    def to_dict(self) -> Dict:
        return {
            'pullRequestsReviewedByCopilot': {
                repo: [pr.to_dict() for pr in prs]
                for repo, prs in self.pull_requests.items()
            },
            'usageOfAI': self.totals.as_dict(),
            'failedReviewLookups': {
                repo: list(numbers) for repo, numbers in self.failed_review_lookups.items()
            }
        }


@dataclass
class ProgressEvent:
    """Running aggregate after one more pull request was classified."""
    report: AggregateReport
    repo: str
    number: int


@dataclass
class CompletedEvent:
    """Terminal event carrying the finished report."""
    report: AggregateReport


AnalysisEvent = Union[ProgressEvent, CompletedEvent]
