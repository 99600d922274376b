"""
Client for the read-only remote template store.

The store publishes raw repository files, scaffold manifests, and the
canonical issue labels document. No authentication is required.
"""

import json
import logging
from typing import Any

import httpx

from .exceptions import ScaffoldNotFoundError, TemplateFetchError
from .http_client import BaseHTTPClient
from .models import InitConfig, Label, ScaffoldManifest, strip_server_fields

logger = logging.getLogger(__name__)


class TemplateStore(BaseHTTPClient):
    """Fetches templates, scaffold manifests, and labels over HTTP."""

    def __init__(
        self,
        config: InitConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_delay=config.retry_delay,
            transport=transport,
        )
        self.config = config

    async def fetch_text(self, url: str) -> str:
        """
        Download a raw template file.

        Raises:
            TemplateFetchError: If the store returns a non-success status
        """
        response = await self._request("GET", url)
        logger.debug(f"{url} - {response.status_code} {response.reason_phrase}")
        if not response.is_success:
            raise TemplateFetchError(url, response.status_code)
        return response.text

    async def fetch_json(self, url: str) -> Any:
        """Download and decode a JSON document."""
        text = await self.fetch_text(url)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise TemplateFetchError(url, details=f"invalid JSON: {e}") from e

    async def fetch_scaffold(self, scaffold: str) -> ScaffoldManifest:
        """
        Fetch the manifest of a named scaffold.

        The manifest is either an object with a ``files`` array or a bare
        array of repository-relative paths.

        Raises:
            ScaffoldNotFoundError: If the scaffold does not exist
        """
        url = self.config.scaffold_url(scaffold)
        response = await self._request("GET", url)
        if not response.is_success:
            raise ScaffoldNotFoundError(scaffold, response.status_code)

        try:
            data = response.json()
        except json.JSONDecodeError:
            logger.warning(f"Scaffold manifest {url} is not valid JSON")
            return ScaffoldManifest(name=scaffold)

        files = data.get("files", []) if isinstance(data, dict) else data
        if not isinstance(files, list):
            logger.warning(f"Scaffold manifest {url} has no file list")
            return ScaffoldManifest(name=scaffold)

        return ScaffoldManifest(name=scaffold, files=[str(f) for f in files])

    async def fetch_labels(self) -> list[Label]:
        """
        Fetch the canonical labels document.

        Returns:
            Labels projected onto name, color and description

        Raises:
            TemplateFetchError: If the document is missing or malformed
        """
        url = self.config.labels_url
        data = await self.fetch_json(url)
        if not isinstance(data, list):
            raise TemplateFetchError(url, details="expected a list of labels")
        try:
            return [strip_server_fields(entry) for entry in data]
        except ValueError as e:
            raise TemplateFetchError(url, details=f"invalid label: {e}") from e
