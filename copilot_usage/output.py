"""Output formatting and display for Copilot usage reports."""

from typing import Dict

from .models import AggregateReport, UsageCategoryCounts


# ANSI color codes
GREEN = '\033[92m'
YELLOW = '\033[93m'
RED = '\033[91m'
CYAN = '\033[96m'
BOLD = '\033[1m'
RESET = '\033[0m'

CATEGORY_LABELS = {
    'code': 'Code Generation',
    'test': 'Test Generation',
    'review': 'Reviews',
    'docs': 'Documentation',
    'other': 'Other',
}


def usage_percentages(counts: UsageCategoryCounts) -> Dict[str, int]:
    """Share of each category in the overall usage, rounded to whole percent."""
    total = counts.total()
    return {
        name: round(value / total * 100) if total else 0
        for name, value in counts.as_dict().items()
    }


class OutputFormatter:
    """Formats and prints Copilot usage reports."""

    def __init__(self, org: str, use_colors: bool = True):
        """Initialize the output formatter.

        Args:
            org: Organization the report was built for
            use_colors: Whether to emit ANSI color codes
        """
        self.org = org
        self.use_colors = use_colors

    def _c(self, code: str, text: str) -> str:
        return f"{code}{text}{RESET}" if self.use_colors else text

    def print_summary(self, report: AggregateReport):
        """Print usage totals followed by the PRs reviewed by Copilot."""
        print("\n" + "="*80)
        print(self._c(BOLD, f"COPILOT USAGE FOR {self.org} (last {report.window_days} day(s))"))
        print("="*80)

        self._print_totals(report.totals)
        self._print_pull_requests(report)
        self._print_failed_review_lookups(report)

    def _print_totals(self, totals: UsageCategoryCounts):
        percentages = usage_percentages(totals)

        print(f"\nTotal AI usage: {self._c(BOLD, str(totals.total()))}")
        print("-"*80)
        for name, label in CATEGORY_LABELS.items():
            value = getattr(totals, name)
            color = GREEN if value else YELLOW
            print(f"  {label:<20} {self._c(color, f'{value:>6}')}  {percentages[name]:>3}%")

    def _print_pull_requests(self, report: AggregateReport):
        print("\n" + "="*80)
        print(f"PULL REQUESTS REVIEWED BY COPILOT ({report.qualifying_count()})")
        print("="*80)

        if not report.pull_requests:
            print("\nNo repositories analyzed.")
            return

        for repo, prs in report.pull_requests.items():
            print(f"\n{self._c(CYAN, repo)}: {len(prs)} PR(s)")
            for pr in prs:
                closed = pr.closed_at.strftime('%Y-%m-%d') if pr.closed_at else '-'
                declared = [name for name, value in pr.usage.as_dict().items() if value]
                print(f"  #{pr.number} {pr.title} (by {pr.author}, closed {closed})")
                print(f"      usage: {', '.join(declared) or 'none declared'}")
                if pr.assistant_review is not None:
                    print(f"      review: {pr.assistant_review.login} {pr.assistant_review.url}")

    def _print_failed_review_lookups(self, report: AggregateReport):
        """Warn about PRs left out because their reviews could not be fetched."""
        if not report.failed_review_lookups:
            return

        count = sum(len(numbers) for numbers in report.failed_review_lookups.values())
        print("\n" + self._c(RED, f"WARNING: reviews of {count} PR(s) could not be fetched; "
                                  f"the review total may be too low"))
        for repo, numbers in report.failed_review_lookups.items():
            print(f"  {repo}: {', '.join(f'#{number}' for number in numbers)}")
