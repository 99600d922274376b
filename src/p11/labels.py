"""
Issue label reconciliation.

This module makes a repository's labels match the canonical label set
published in the template store:
- Server-assigned metadata is projected away before comparing
- Label sets are compared independently of their order
- A mismatch replaces the whole set: every current label is deleted,
  then every canonical label is created
"""

import asyncio
import json
import logging
from collections.abc import Iterable

from .exceptions import RemoteError
from .github_client import GitHubClient
from .models import Label, LabelAction, LabelResult, ReconcileResult
from .template_store import TemplateStore

logger = logging.getLogger(__name__)


def canonical_json(labels: Iterable[Label]) -> str:
    """Serialize labels sorted by name, with stable key order."""
    ordered = sorted(labels, key=lambda label: label.name)
    return json.dumps([label.model_dump() for label in ordered], sort_keys=True)


def labels_match(template: Iterable[Label], current: Iterable[Label]) -> bool:
    """Check if two label sets are equal regardless of order."""
    return canonical_json(template) == canonical_json(current)


class LabelReconciler:
    """
    Converges a repository's labels onto the canonical label set.

    Label requests are best-effort: a failed delete or create is logged
    and recorded, and the rest of the batch still runs.
    """

    def __init__(self, store: TemplateStore, github: GitHubClient) -> None:
        self.store = store
        self.github = github

    async def get_template_labels(self) -> list[Label]:
        """Fetch the canonical label set."""
        return await self.store.fetch_labels()

    async def get_repo_labels(self, org: str, repo: str) -> list[Label]:
        """Fetch the current label set of a repository."""
        return await self.github.list_labels(org, repo)

    async def reconcile(self, org: str, repo: str) -> ReconcileResult:
        """
        Make the repository's labels match the canonical set.

        Deletes all run to completion before any create is sent, so a
        label being replaced never collides with its successor.

        Returns:
            ReconcileResult with one entry per label request

        Raises:
            RemoteError: If either label set cannot be fetched
        """
        logger.info("Checking issue labels")
        template_labels = await self.get_template_labels()
        current_labels = await self.get_repo_labels(org, repo)

        result = ReconcileResult(
            template_count=len(template_labels),
            current_count=len(current_labels),
        )

        if labels_match(template_labels, current_labels):
            result.in_sync = True
            logger.info(result.summary())
            return result

        logger.info("Migrating issue labels")

        deletions = await asyncio.gather(
            *(self._delete_label(org, repo, label) for label in current_labels)
        )
        for entry in deletions:
            result.add_entry(entry)

        creations = await asyncio.gather(
            *(self._create_label(org, repo, label) for label in template_labels)
        )
        for entry in creations:
            result.add_entry(entry)

        if result.failed:
            logger.warning(f"{len(result.failed)} label request(s) failed")
        logger.info(result.summary())
        return result

    async def _delete_label(self, org: str, repo: str, label: Label) -> LabelResult:
        try:
            status = await self.github.delete_label(org, repo, label.name)
        except RemoteError as e:
            logger.debug(f"Failed to delete label {label.name!r}: {e.message}")
            return LabelResult(
                name=label.name,
                action=LabelAction.DELETED,
                success=False,
                status_code=getattr(e, "status_code", None),
                error=e.message,
            )
        return LabelResult(
            name=label.name,
            action=LabelAction.DELETED,
            success=True,
            status_code=status,
        )

    async def _create_label(self, org: str, repo: str, label: Label) -> LabelResult:
        try:
            status = await self.github.create_label(org, repo, label)
        except RemoteError as e:
            logger.debug(f"Failed to create label {label.name!r}: {e.message}")
            return LabelResult(
                name=label.name,
                action=LabelAction.CREATED,
                success=False,
                status_code=getattr(e, "status_code", None),
                error=e.message,
            )
        return LabelResult(
            name=label.name,
            action=LabelAction.CREATED,
            success=True,
            status_code=status,
        )
