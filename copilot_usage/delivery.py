"""Delivery of analysis results as one JSON document or as server-sent events."""

import json
import logging
from typing import Dict, Iterator, List, Optional, Union

from .analyzer import CopilotUsageAnalyzer
from .models import AnalysisConfig, CompletedEvent

DEFAULT_DAYS_RANGE = 1
CLOSE_SENTINEL = 'close'


def parse_days_range(value: Union[str, int, None], default: int = DEFAULT_DAYS_RANGE) -> int:
    """Turn a raw ``daysRange`` query value into a window size in days."""
    if value is None or value == '':
        return default
    try:
        days = int(value)
    except (TypeError, ValueError):
        logging.warning(f"Invalid daysRange value '{value}', using default: {default}")
        return default
    if days < 1:
        logging.warning(f"daysRange must be positive, got {days}, using default: {default}")
        return default
    return days


def format_sse(data: str) -> str:
    """Frame one payload as a server-sent event."""
    lines = data.splitlines() or ['']
    return ''.join(f"data: {line}\n" for line in lines) + "\n"


class ReportDeliveryAdapter:
    """Exposes the analyzer as a single response or as an event stream."""

    def __init__(self, analyzer: CopilotUsageAnalyzer, repos: List[str],
                 default_days_range: int = DEFAULT_DAYS_RANGE):
        self.analyzer = analyzer
        self.repos = list(repos)
        self.default_days_range = default_days_range

    def build_config(self, days_range=None) -> AnalysisConfig:
        return AnalysisConfig(
            repos=self.repos,
            window_days=parse_days_range(days_range, self.default_days_range)
        )

    def resolve(self, days_range: Optional[Union[str, int]] = None) -> Dict:
        """Run the analysis to completion and return the report document."""
        return self.analyzer.run(self.build_config(days_range)).to_dict()

    def stream(self, days_range: Optional[Union[str, int]] = None) -> Iterator[str]:
        """Yield one SSE frame per analysis event, then the close sentinel.

        Closing this iterator early stops the underlying analysis.
        """
        events = self.analyzer.run_streaming(self.build_config(days_range))
        try:
            for event in events:
                yield format_sse(json.dumps(event.report.to_dict()))
                if isinstance(event, CompletedEvent):
                    break
        finally:
            events.close()

        yield format_sse(CLOSE_SENTINEL)
