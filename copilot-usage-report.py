#!/usr/bin/env python3
"""
Copilot Usage Report
Aggregates Copilot reviews and declared AI usage across an organization's pull requests.
"""

import os
import sys
import json
import logging
import requests
from dotenv import load_dotenv

from copilot_usage.analyzer import CopilotUsageAnalyzer
from copilot_usage.api_client import GitHubAPIClient
from copilot_usage.delivery import ReportDeliveryAdapter
from copilot_usage.exceptions import ConfigError, CopilotUsageError, UpstreamAuthError
from copilot_usage.output import OutputFormatter
from copilot_usage.settings import load_settings

# Configure logging (can be overridden by LOG_LEVEL environment variable)
log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format='%(asctime)s %(levelname)s: %(message)s',
    datefmt='%m/%d/%Y %I:%M:%S %p',
    stream=sys.stderr
)


def main():
    """Main entry point for the script."""
    # Load environment variables from .env file if it exists
    load_dotenv()

    try:
        settings = load_settings()
    except ConfigError as e:
        logging.error(f"Configuration error: {e}")
        sys.exit(1)

    # Fail at startup rather than midway through the first repository
    try:
        api_client = GitHubAPIClient(settings.token, settings.org)
        api_client.get_authenticated_user()
    except UpstreamAuthError as e:
        logging.error(f"Authentication failed: {e}")
        sys.exit(1)
    except requests.RequestException as e:
        logging.error(f"Could not reach GitHub: {e}")
        sys.exit(1)

    analyzer = CopilotUsageAnalyzer(
        api_client,
        assistant_name=settings.assistant_name,
        review_failure_policy=settings.review_failure_policy
    )
    adapter = ReportDeliveryAdapter(analyzer, settings.repos, settings.days_range)

    try:
        if settings.output_mode == 'stream':
            for frame in adapter.stream():
                sys.stdout.write(frame)
                sys.stdout.flush()
        elif settings.output_mode == 'json':
            print(json.dumps(adapter.resolve(), indent=2))
        else:
            report = analyzer.run(adapter.build_config())
            OutputFormatter(settings.org, use_colors=sys.stdout.isatty()).print_summary(report)
    except CopilotUsageError as e:
        logging.error(f"Analysis failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
