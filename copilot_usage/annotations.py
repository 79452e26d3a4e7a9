"""Parsing of the AI usage checklist embedded in pull request descriptions.

A PR template carries a block like::

    <!-- AI_USAGE_START -->
    - [x] AI_CODE
    - [ ] AI_TEST
    - [ ] AI_DOCS
    - [ ] AI_OTHER
    <!-- AI_USAGE_END -->

Each checked box declares one usage category for the PR.
"""

import re
from typing import Dict, Optional, Pattern

from .models import UsageCategoryCounts

START_TOKEN = '<!-- AI_USAGE_START -->'
END_TOKEN = '<!-- AI_USAGE_END -->'


def _checked_box(keyword: str) -> Pattern:
    return re.compile(
        rf'^[ \t]*(?:[-*+][ \t]*)?\[x\][ \t]*{keyword}\b',
        re.IGNORECASE | re.MULTILINE
    )


# "review" is deliberately absent: it only comes from actual reviews
CATEGORY_PATTERNS: Dict[str, Pattern] = {
    'code': _checked_box('AI_CODE'),
    'test': _checked_box('AI_TEST'),
    'docs': _checked_box('AI_DOCS'),
    'other': _checked_box('AI_OTHER'),
}


class UsageAnnotationParser:
    """Extracts declared AI usage categories from a PR body."""

    def __init__(self, start_token: str = START_TOKEN, end_token: str = END_TOKEN):
        self.start_token = start_token
        self.end_token = end_token

    def extract_block(self, body: Optional[str]) -> Optional[str]:
        """Return the text between the start and end tokens, or None.

        An unterminated block counts as no block at all.
        """
        if not body:
            return None

        start = body.find(self.start_token)
        if start == -1:
            return None
        start += len(self.start_token)

        end = body.find(self.end_token, start)
        if end == -1:
            return None

        return body[start:end]

    def parse(self, body: Optional[str]) -> UsageCategoryCounts:
        """Classify which usage categories a PR body declares.

        Args:
            body: Raw pull request description (may be None)

        Returns:
            Counts with 1 for every declared category and 0 elsewhere
        """
        block = self.extract_block(body)
        if block is None:
            return UsageCategoryCounts()

        return UsageCategoryCounts(**{
            category: 1 if pattern.search(block) else 0
            for category, pattern in CATEGORY_PATTERNS.items()
        })
