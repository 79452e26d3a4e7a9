"""GitHub API client for making requests and handling pagination."""

import logging
from typing import Dict, List
import requests
from requests.adapters import HTTPAdapter

from .exceptions import UpstreamAuthError

API_URL = 'https://api.github.com'
DEFAULT_PER_PAGE = 100


class GitHubAPIClient:
    """Handles GitHub API requests and pagination for one organization."""

    def __init__(self, token: str, org: str, base_url: str = API_URL):
        """Initialize the GitHub API client.

        Args:
            token: GitHub personal access token for authentication
            org: Organization that owns the analyzed repositories
            base_url: GitHub API root URL

        Raises:
            UpstreamAuthError: If no token is given
        """
        if not token:
            raise UpstreamAuthError("A GitHub token is required (set GITHUB_TOKEN)")

        self.token = token
        self.org = org
        self.base_url = base_url.rstrip('/')
        self.session = requests.Session()

        # No retry policy: a failed request fails the whole analysis run
        adapter = HTTPAdapter(pool_connections=10, pool_maxsize=10)
        self.session.mount('https://', adapter)
        self.session.mount('http://', adapter)

        self.session.headers.update({
            'Authorization': f'Bearer {self.token}',
            'Accept': 'application/vnd.github+json',
            'X-GitHub-Api-Version': '2022-11-28',
            'User-Agent': 'copilot-usage-report'
        })
        logging.info(f"Initialized GitHub API client for organization '{org}'")

    def repo_url(self, repo: str) -> str:
        """Return the API URL of a repository, qualifying bare names with the org."""
        full_name = repo if '/' in repo else f"{self.org}/{repo}"
        return f"{self.base_url}/repos/{full_name}"

    def _get(self, url: str, params: Dict = None) -> requests.Response:
        """Make a GET request and raise on error responses.

        Raises:
            UpstreamAuthError: If GitHub rejects the credential
            requests.HTTPError: For any other error status
        """
        response = self.session.get(url, params=params)

        if response.status_code == 401:
            logging.error(f"GitHub rejected the credential for {url}")
            raise UpstreamAuthError(f"GitHub rejected the credential: {_error_message(response)}")

        if response.status_code in (403, 429):
            logging.error(f"Rate limit or permission error. Response: {_error_message(response)}")

        response.raise_for_status()
        return response

    def get_page(self, url: str, params: Dict = None) -> List[Dict]:
        """Fetch a single page of a list endpoint."""
        return self._get(url, params).json()

    def get_paginated(self, url: str, params: Dict = None) -> List[Dict]:
        """Fetch all pages of a paginated GitHub API endpoint.

        Args:
            url: The API endpoint URL
            params: Query parameters

        Returns:
            List of all items from all pages
        """
        results = []
        page = 1
        per_page = DEFAULT_PER_PAGE

        params = dict(params or {})
        params['per_page'] = per_page

        while True:
            params['page'] = page
            logging.debug(f"Fetching page {page} from {url}")
            data = self.get_page(url, params)

            if not data:
                break

            results.extend(data)

            # Check if there are more pages
            if len(data) < per_page:
                break

            page += 1

        logging.debug(f"Fetched {len(results)} total items from {url}")
        return results

    def list_closed_pull_requests(self, repo: str, page: int,
                                  per_page: int = DEFAULT_PER_PAGE) -> List[Dict]:
        """Fetch one page of closed pull requests, newest created first."""
        return self.get_page(f"{self.repo_url(repo)}/pulls", {
            'state': 'closed',
            'sort': 'created',
            'direction': 'desc',
            'per_page': per_page,
            'page': page
        })

    def list_reviews(self, repo: str, pr_number: int) -> List[Dict]:
        """Fetch every review of a pull request."""
        return self.get_paginated(f"{self.repo_url(repo)}/pulls/{pr_number}/reviews")

    def get_authenticated_user(self) -> Dict:
        """Return the user the token belongs to."""
        user = self._get(f"{self.base_url}/user").json()
        logging.info(f"Authenticated as: {user.get('login')}")
        return user


def _error_message(response: requests.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text
    if isinstance(data, dict):
        return data.get('message', response.text)
    return response.text
