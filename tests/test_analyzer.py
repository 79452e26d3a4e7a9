"""
Unit tests for CopilotUsageAnalyzer
"""

import pytest
import requests
from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

from copilot_usage.analyzer import CopilotUsageAnalyzer
from copilot_usage.annotations import START_TOKEN, END_TOKEN
from copilot_usage.exceptions import FetchFailure, UpstreamAuthError, UpstreamRequestFailure
from copilot_usage.models import AnalysisConfig, CompletedEvent, ProgressEvent, UsageCategoryCounts

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def closed_pr(number, days_ago=1, body=''):
    return {
        'number': number,
        'title': f'PR {number}',
        'user': {'login': 'alice'},
        'closed_at': (NOW - timedelta(days=days_ago)).strftime('%Y-%m-%dT%H:%M:%SZ'),
        'body': body
    }


def review(login, body='Reviewed'):
    return {
        'user': {'login': login, 'type': 'Bot'},
        'body': body,
        'html_url': f'https://github.com/acme/pull/review-{login}'
    }


def usage_block(*checked):
    boxes = [f"- [{'x' if c in checked else ' '}] {c}" for c in ('AI_CODE', 'AI_TEST', 'AI_DOCS', 'AI_OTHER')]
    return "\n".join(["Summary", START_TOKEN, *boxes, END_TOKEN])


def make_api_client(prs_by_repo, reviews_by_pr):
    """Mock API client serving a single page of PRs per repository."""
    api_client = Mock()

    def list_closed_pull_requests(repo, page, per_page):
        return prs_by_repo.get(repo, []) if page == 1 else []

    def list_reviews(repo, pr_number):
        return reviews_by_pr.get((repo, pr_number), [])

    api_client.list_closed_pull_requests.side_effect = list_closed_pull_requests
    api_client.list_reviews.side_effect = list_reviews
    return api_client


def make_analyzer(api_client, **kwargs):
    return CopilotUsageAnalyzer(api_client, clock=lambda: NOW, **kwargs)


class TestEndToEnd:
    """Scenario covering listed, unlisted and zero-usage PRs."""

    @pytest.fixture
    def api_client(self):
        return make_api_client(
            {'svc-a': [
                closed_pr(10, 1, usage_block('AI_CODE')),
                closed_pr(11, 2, 'Just a fix'),
                closed_pr(12, 3, usage_block()),
            ]},
            {
                ('svc-a', 10): [review('alice'), review('copilot-pr-reviewer')],
                ('svc-a', 11): [review('bob')],
                ('svc-a', 12): [review('copilot-pr-reviewer')],
            }
        )

    def test_report(self, api_client):
        """Test the aggregate for the three PRs."""
        report = make_analyzer(api_client).run(AnalysisConfig(['svc-a'], 7))

        listed = report.pull_requests['svc-a']
        assert [pr.number for pr in listed] == [10, 12]

        pr10, pr12 = listed
        assert pr10.repo == 'svc-a'
        assert pr10.usage == UsageCategoryCounts(code=1)
        assert pr10.assistant_review.login == 'copilot-pr-reviewer'
        assert pr12.usage == UsageCategoryCounts()
        assert pr12.assistant_review is not None

        assert report.totals == UsageCategoryCounts(code=1, review=2)

    def test_review_total_matches_listed_prs(self, api_client):
        """Test that the review total equals the number of listed PRs."""
        report = make_analyzer(api_client).run(AnalysisConfig(['svc-a'], 7))
        assert report.totals.review == report.qualifying_count()

    def test_report_document(self, api_client):
        """Test the report document for the scenario."""
        data = make_analyzer(api_client).run(AnalysisConfig(['svc-a'], 7)).to_dict()

        entry = data['pullRequestsReviewedByCopilot']['svc-a'][0]
        assert entry['number'] == 10
        assert entry['ai_usage'] == {'code': 1, 'test': 0, 'docs': 0, 'review': 0, 'other': 0}
        assert entry['copilot_review']['login'] == 'copilot-pr-reviewer'
        assert data['usageOfAI']['review'] == 2


class TestCopilotUsageAnalyzer:
    """Test cases for the repository walk and aggregation."""

    def test_empty_repository_list(self):
        """Test that no repositories give an empty report."""
        api_client = make_api_client({}, {})
        report = make_analyzer(api_client).run(AnalysisConfig([], 7))

        assert report.pull_requests == {}
        assert report.totals == UsageCategoryCounts()
        assert not api_client.list_closed_pull_requests.called

    def test_repository_without_prs(self):
        """Test that a repository with no PRs still appears in the report."""
        report = make_analyzer(make_api_client({}, {})).run(AnalysisConfig(['svc-a'], 7))
        assert report.pull_requests == {'svc-a': []}

    def test_usage_counted_for_unreviewed_prs(self):
        """Test that usage of PRs without a Copilot review still counts."""
        api_client = make_api_client(
            {'svc-a': [closed_pr(1, 1, usage_block('AI_TEST', 'AI_DOCS'))]},
            {}
        )
        report = make_analyzer(api_client).run(AnalysisConfig(['svc-a'], 7))

        assert report.pull_requests['svc-a'] == []
        assert report.totals == UsageCategoryCounts(test=1, docs=1)

    def test_totals_across_repositories(self):
        """Test that totals cover every repository."""
        api_client = make_api_client(
            {
                'svc-a': [closed_pr(1, 1, usage_block('AI_CODE'))],
                'svc-b': [closed_pr(1, 1, usage_block('AI_CODE', 'AI_OTHER'))],
            },
            {('svc-b', 1): [review('copilot')]}
        )
        report = make_analyzer(api_client).run(AnalysisConfig(['svc-a', 'svc-b'], 7))

        assert report.totals == UsageCategoryCounts(code=2, other=1, review=1)
        assert [pr.number for pr in report.pull_requests['svc-b']] == [1]
        assert report.pull_requests['svc-a'] == []

    def test_repositories_processed_in_order(self):
        """Test that repositories are walked sequentially in configured order."""
        api_client = make_api_client({'svc-b': [closed_pr(1)], 'svc-a': [closed_pr(2)]}, {})
        make_analyzer(api_client).run(AnalysisConfig(['svc-b', 'svc-a'], 7))

        repos = [c.args[0] for c in api_client.list_closed_pull_requests.call_args_list]
        assert repos == ['svc-b', 'svc-a']
        reviewed = [c.args for c in api_client.list_reviews.call_args_list]
        assert reviewed == [('svc-b', 1), ('svc-a', 2)]

    def test_prs_outside_window_are_skipped(self):
        """Test that the boundary page's old PRs are not analyzed."""
        api_client = make_api_client(
            {'svc-a': [closed_pr(1, 1, usage_block('AI_CODE')), closed_pr(2, 30, usage_block('AI_CODE'))]},
            {('svc-a', 2): [review('copilot')]}
        )
        report = make_analyzer(api_client).run(AnalysisConfig(['svc-a'], 7))

        assert report.totals == UsageCategoryCounts(code=1)
        assert report.pull_requests['svc-a'] == []
        assert [c.args for c in api_client.list_reviews.call_args_list] == [('svc-a', 1)]

    def test_duplicate_prs_listed_once(self):
        """Test that a PR returned twice is analyzed once."""
        api_client = make_api_client(
            {'svc-a': [closed_pr(1), closed_pr(1)]},
            {('svc-a', 1): [review('copilot')]}
        )
        report = make_analyzer(api_client).run(AnalysisConfig(['svc-a'], 7))

        assert [pr.number for pr in report.pull_requests['svc-a']] == [1]
        assert report.totals.review == 1

    def test_duplicate_repository_analyzed_once(self):
        """Test that a repository configured twice is walked once."""
        api_client = make_api_client({'svc-a': [closed_pr(1)]}, {('svc-a', 1): [review('copilot')]})
        report = make_analyzer(api_client).run(AnalysisConfig(['svc-a', 'svc-a'], 7))

        assert report.totals.review == 1
        assert api_client.list_closed_pull_requests.call_count == 1

    def test_runs_are_independent(self):
        """Test that each run starts from a fresh report."""
        api_client = make_api_client({'svc-a': [closed_pr(1)]}, {('svc-a', 1): [review('copilot')]})
        analyzer = make_analyzer(api_client)

        first = analyzer.run(AnalysisConfig(['svc-a'], 7))
        second = analyzer.run(AnalysisConfig(['svc-a'], 7))

        assert first is not second
        assert first.totals.review == 1
        assert second.totals.review == 1

    def test_custom_assistant_name(self):
        """Test classifying with another reviewer name."""
        api_client = make_api_client({'svc-a': [closed_pr(1)]}, {('svc-a', 1): [review('copilot')]})
        report = make_analyzer(api_client, assistant_name='coderabbit').run(AnalysisConfig(['svc-a'], 7))
        assert report.totals.review == 0

    def test_invalid_review_failure_policy(self):
        """Test that unknown policies are rejected."""
        with pytest.raises(ValueError):
            make_analyzer(Mock(), review_failure_policy='retry')


class TestFailureHandling:
    """Test cases for upstream failures during a run."""

    def test_fetch_failure_fails_run(self):
        """Test that a failing repository listing aborts the run."""
        api_client = make_api_client({'svc-a': [closed_pr(1)]}, {})

        def list_closed_pull_requests(repo, page, per_page):
            if repo == 'svc-b':
                raise requests.exceptions.HTTPError("404 Not Found")
            return [closed_pr(1)] if page == 1 else []

        api_client.list_closed_pull_requests.side_effect = list_closed_pull_requests

        with pytest.raises(FetchFailure) as exc_info:
            make_analyzer(api_client).run(AnalysisConfig(['svc-a', 'svc-b'], 7))
        assert exc_info.value.repo == 'svc-b'

    def test_review_failure_fails_run_by_default(self):
        """Test that a failing review listing aborts the run."""
        api_client = make_api_client({'svc-a': [closed_pr(7)]}, {})
        api_client.list_reviews.side_effect = requests.exceptions.ConnectionError("Network error")

        with pytest.raises(UpstreamRequestFailure) as exc_info:
            make_analyzer(api_client).run(AnalysisConfig(['svc-a'], 7))

        assert exc_info.value.repo == 'svc-a'
        assert '#7' in str(exc_info.value)

    def test_review_failure_skipped_when_configured(self):
        """Test the lenient policy for review listing failures."""
        api_client = make_api_client(
            {'svc-a': [closed_pr(1, 1, usage_block('AI_CODE')), closed_pr(2)]},
            {('svc-a', 2): [review('copilot')]}
        )

        def list_reviews(repo, pr_number):
            if pr_number == 1:
                raise requests.exceptions.HTTPError("500 Server Error")
            return [review('copilot')]

        api_client.list_reviews.side_effect = list_reviews
        report = make_analyzer(api_client, review_failure_policy='skip').run(AnalysisConfig(['svc-a'], 7))

        assert report.totals == UsageCategoryCounts(code=1, review=1)
        assert [pr.number for pr in report.pull_requests['svc-a']] == [2]
        assert report.failed_review_lookups == {'svc-a': [1]}
        assert report.to_dict()['failedReviewLookups'] == {'svc-a': [1]}

    def test_rejected_credential_fails_run_when_skipping(self):
        """Test that a rejected credential aborts the run even under the lenient policy."""
        api_client = make_api_client({'svc-a': [closed_pr(3)]}, {})
        api_client.list_reviews.side_effect = UpstreamAuthError("GitHub rejected the credential: Bad credentials")

        with pytest.raises(UpstreamRequestFailure) as exc_info:
            make_analyzer(api_client, review_failure_policy='skip').run(AnalysisConfig(['svc-a'], 7))

        assert exc_info.value.repo == 'svc-a'
        assert '#3' in str(exc_info.value)
        assert isinstance(exc_info.value.cause, UpstreamAuthError)

    def test_streaming_reports_failed_lookups(self):
        """Test that skipped review lookups reach the final streamed report."""
        api_client = make_api_client({'svc-a': [closed_pr(1), closed_pr(2)]}, {})
        api_client.list_reviews.side_effect = requests.exceptions.HTTPError("500 Server Error")

        events = list(make_analyzer(api_client, review_failure_policy='skip')
                      .run_streaming(AnalysisConfig(['svc-a'], 7)))

        assert events[-1].report.failed_review_lookups == {'svc-a': [1, 2]}
        assert events[0].report.failed_review_lookups == {'svc-a': [1]}


class TestStreaming:
    """Test cases for CopilotUsageAnalyzer.run_streaming."""

    @pytest.fixture
    def api_client(self):
        return make_api_client(
            {'svc-a': [closed_pr(1), closed_pr(2)], 'svc-b': [closed_pr(3)]},
            {('svc-a', 1): [review('copilot')], ('svc-b', 3): [review('copilot')]}
        )

    def test_one_event_per_pr_then_completion(self, api_client):
        """Test the event sequence of a run."""
        events = list(make_analyzer(api_client).run_streaming(AnalysisConfig(['svc-a', 'svc-b'], 7)))

        assert [type(e) for e in events] == [ProgressEvent, ProgressEvent, ProgressEvent, CompletedEvent]
        assert [(e.repo, e.number) for e in events[:3]] == [('svc-a', 1), ('svc-a', 2), ('svc-b', 3)]
        assert [e.report.totals.review for e in events] == [1, 1, 2, 2]

    def test_snapshots_do_not_change(self, api_client):
        """Test that earlier snapshots keep their values."""
        events = list(make_analyzer(api_client).run_streaming(AnalysisConfig(['svc-a', 'svc-b'], 7)))

        assert events[0].report.pull_requests['svc-b'] == []
        assert len(events[-1].report.pull_requests['svc-b']) == 1

    def test_final_event_matches_run(self, api_client):
        """Test that streaming and single-value runs agree."""
        analyzer = make_analyzer(api_client)
        config = AnalysisConfig(['svc-a', 'svc-b'], 7)

        final = list(analyzer.run_streaming(config))[-1]
        assert final.report.to_dict() == analyzer.run(config).to_dict()

    def test_empty_run_streams_only_completion(self):
        """Test streaming with no repositories."""
        events = list(make_analyzer(make_api_client({}, {})).run_streaming(AnalysisConfig([], 7)))
        assert len(events) == 1
        assert isinstance(events[0], CompletedEvent)

    def test_stopping_early_stops_requests(self, api_client):
        """Test that closing the stream makes no further requests."""
        stream = make_analyzer(api_client).run_streaming(AnalysisConfig(['svc-a', 'svc-b'], 7))

        first = next(stream)
        stream.close()

        assert isinstance(first, ProgressEvent)
        assert api_client.list_reviews.call_count == 1
        repos = [c.args[0] for c in api_client.list_closed_pull_requests.call_args_list]
        assert 'svc-b' not in repos

    def test_nothing_requested_before_iteration(self, api_client):
        """Test that creating the stream makes no requests."""
        make_analyzer(api_client).run_streaming(AnalysisConfig(['svc-a'], 7))
        assert not api_client.list_closed_pull_requests.called
