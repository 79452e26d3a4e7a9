"""Detection of reviews left by the Copilot reviewer."""

from typing import Iterable, Optional

from ..models import ReviewRecord

DEFAULT_ASSISTANT_NAME = 'copilot'


class ReviewClassifier:
    """Picks the assistant's review out of a PR's reviews."""

    def __init__(self, assistant_name: str = DEFAULT_ASSISTANT_NAME):
        self.assistant_name = assistant_name

    def is_assistant(self, review: ReviewRecord) -> bool:
        return self.assistant_name in review.login

    def classify(self, reviews: Iterable[ReviewRecord]) -> Optional[ReviewRecord]:
        """Return the first review whose author login contains the assistant name.

        Args:
            reviews: Reviews in the order GitHub returned them

        Returns:
            The first matching review, or None if the assistant did not review
        """
        for review in reviews:
            if self.is_assistant(review):
                return review
        return None
