"""
Settings for the Copilot usage report.

Settings come from the environment (a ``.env`` file is loaded by the entry
point). The token, organization and repository list are required; everything
else falls back to a default with a warning when it cannot be parsed.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import List, Mapping, Optional

from .analyzer import REVIEW_FAILURE_POLICIES
from .analyzer.review_classifier import DEFAULT_ASSISTANT_NAME
from .delivery import DEFAULT_DAYS_RANGE, parse_days_range
from .exceptions import ConfigError

OUTPUT_MODES = ('summary', 'json', 'stream')


@dataclass
class Settings:
    """Process configuration."""
    token: str
    org: str
    repos: List[str] = field(default_factory=list)
    days_range: int = DEFAULT_DAYS_RANGE
    assistant_name: str = DEFAULT_ASSISTANT_NAME
    review_failure_policy: str = 'fail'
    output_mode: str = 'summary'


def parse_list(value: str) -> List[str]:
    """Parse a comma-separated list, dropping blank entries."""
    return [item.strip() for item in value.split(',') if item.strip()]


def _choice(environ: Mapping[str, str], name: str, choices, default: str) -> str:
    value = environ.get(name, default).strip().lower()
    if value not in choices:
        logging.warning(f"Invalid {name} value '{value}', using default: {default}")
        logging.warning(f"Valid options: {', '.join(choices)}")
        return default
    return value


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Read settings from the environment.

    Args:
        environ: Mapping to read from, defaults to ``os.environ``

    Returns:
        Populated Settings

    Raises:
        ConfigError: If GITHUB_TOKEN, GITHUB_ORG or GITHUB_REPOS is missing
    """
    if environ is None:
        environ = os.environ

    token = environ.get('GITHUB_TOKEN', '').strip()
    if not token:
        raise ConfigError('GITHUB_TOKEN is required')

    org = environ.get('GITHUB_ORG', '').strip()
    if not org:
        raise ConfigError('GITHUB_ORG is required')

    repos = parse_list(environ.get('GITHUB_REPOS', ''))
    if not repos:
        raise ConfigError('GITHUB_REPOS is required (comma-separated repository names)')
    logging.info(f"Using repositories from environment: {', '.join(repos)}")

    days_range = parse_days_range(environ.get('DAYS_RANGE'))
    assistant_name = environ.get('COPILOT_REVIEWER_NAME', '').strip() or DEFAULT_ASSISTANT_NAME

    return Settings(
        token=token,
        org=org,
        repos=repos,
        days_range=days_range,
        assistant_name=assistant_name,
        review_failure_policy=_choice(environ, 'REVIEW_FAILURE_POLICY', REVIEW_FAILURE_POLICIES, 'fail'),
        output_mode=_choice(environ, 'OUTPUT_MODE', OUTPUT_MODES, 'summary')
    )
