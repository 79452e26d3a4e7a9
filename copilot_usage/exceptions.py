"""Error types raised while collecting Copilot usage."""


class CopilotUsageError(Exception):
    """Base class for all errors raised by this package."""


class ConfigError(CopilotUsageError):
    """A required setting is missing or unusable."""


class UpstreamAuthError(CopilotUsageError):
    """The GitHub credential is missing or was rejected."""


class UpstreamRequestFailure(CopilotUsageError):
    """A GitHub request failed while analyzing a repository.

    Attributes:
        repo: Repository being analyzed
        operation: Short description of the request that failed
        cause: The underlying exception
    """

    def __init__(self, repo: str, operation: str, cause: Exception):
        self.repo = repo
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed for {repo}: {cause}")


class FetchFailure(UpstreamRequestFailure):
    """Listing the pull request window of a repository failed."""

    def __init__(self, repo: str, cause: Exception):
        super().__init__(repo, 'Listing closed pull requests', cause)
