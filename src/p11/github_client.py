"""
GitHub REST client for repository issue labels.

This module handles listing, creating, and deleting labels with token
authentication and consistent error reporting.
"""

import logging
from urllib.parse import quote

import httpx

from .exceptions import LabelApiError
from .http_client import BaseHTTPClient
from .models import Label, strip_server_fields

logger = logging.getLogger(__name__)


class GitHubClient(BaseHTTPClient):
    """
    Client for the GitHub labels API.

    Every request is authenticated with the token given at construction.
    """

    PAGE_SIZE = 100

    def __init__(
        self,
        token: str,
        api_root: str = "https://api.github.com",
        timeout: float = BaseHTTPClient.DEFAULT_TIMEOUT,
        max_retries: int = BaseHTTPClient.MAX_RETRIES,
        retry_delay: float = BaseHTTPClient.RETRY_DELAY,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the GitHub client.

        Args:
            token: GitHub API token
            api_root: Base URL of the GitHub REST API
            timeout: Request timeout in seconds
            max_retries: Retries for GET/DELETE on network failures
            retry_delay: Base delay between retries in seconds
            transport: Optional httpx transport (used by tests)
        """
        super().__init__(
            timeout=timeout,
            max_retries=max_retries,
            retry_delay=retry_delay,
            transport=transport,
        )
        self.token = token
        self.api_root = api_root.rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github.v3+json",
            "Authorization": f"token {self.token}",
        }

    def labels_url(self, org: str, repo: str) -> str:
        """Get the labels collection URL of a repository."""
        return f"{self.api_root}/repos/{org}/{repo}/labels"

    def _check(self, response: httpx.Response) -> httpx.Response:
        """Raise LabelApiError for non-success responses."""
        if response.is_success:
            return response

        try:
            message = response.json().get("message", response.text)
        except (ValueError, AttributeError):
            message = response.text or response.reason_phrase
        raise LabelApiError(message, response.status_code)

    async def list_labels(self, org: str, repo: str) -> list[Label]:
        """
        Fetch every label of a repository.

        Follows pagination until a page comes back short.

        Returns:
            Labels projected onto name, color and description

        Raises:
            LabelApiError: If GitHub rejects the request or returns
                malformed labels
        """
        url = self.labels_url(org, repo)
        labels: list[Label] = []
        page = 1

        while True:
            params = {"per_page": self.PAGE_SIZE, "page": page}
            response = self._check(await self._request("GET", url, params=params))
            try:
                data = response.json()
            except ValueError as e:
                message = f"Invalid JSON in label listing: {e}"
                raise LabelApiError(message, response.status_code) from e

            if not isinstance(data, list):
                raise LabelApiError("Expected list of labels in response")

            try:
                labels.extend(strip_server_fields(entry) for entry in data)
            except ValueError as e:
                message = f"Malformed label in response: {e}"
                raise LabelApiError(message, response.status_code) from e

            if len(data) < self.PAGE_SIZE:
                break

            page += 1

        logger.debug(f"Fetched {len(labels)} labels from {org}/{repo}")
        return labels

    async def create_label(self, org: str, repo: str, label: Label) -> int:
        """
        Create a label.

        Returns:
            HTTP status code

        Raises:
            LabelApiError: If GitHub rejects the request
        """
        url = self.labels_url(org, repo)
        response = await self._request("POST", url, json=label.model_dump(exclude_none=True))
        logger.debug(f"{url} {response.status_code} {response.reason_phrase}")
        return self._check(response).status_code

    async def delete_label(self, org: str, repo: str, name: str) -> int:
        """
        Delete a label by name.

        Returns:
            HTTP status code

        Raises:
            LabelApiError: If GitHub rejects the request
        """
        url = f"{self.labels_url(org, repo)}/{quote(name, safe='')}"
        response = await self._request("DELETE", url)
        logger.debug(f"{url} {response.status_code} {response.reason_phrase}")
        return self._check(response).status_code
