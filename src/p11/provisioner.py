"""
Scaffold file provisioning.

Repository files are downloaded from the template store, rendered with
the repository's template context, and written into the working tree.
"""

import asyncio
import logging
import uuid
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath

from .exceptions import P11Error, ProvisioningError, ScaffoldWriteError
from .models import InitConfig, ProvisionResult, ScaffoldFile, ScaffoldManifest
from .template_store import TemplateStore
from .templating import render

logger = logging.getLogger(__name__)


def files_for(config: InitConfig, manifest: ScaffoldManifest | None = None) -> list[ScaffoldFile]:
    """
    Build the list of files to provision.

    Uses the manifest's files when it lists any, otherwise the default
    repository files. Paths that name the same file are kept once, in
    first-seen order.
    """
    paths: Iterable[str] = config.default_files
    if manifest is not None and manifest.files:
        paths = manifest.files

    unique: dict[str, None] = {}
    for path in paths:
        unique.setdefault(str(PurePosixPath(path)), None)
    return [
        ScaffoldFile(relative_path=path, remote_source_url=config.file_url(path))
        for path in unique
    ]


def write_text(path: Path, content: str) -> None:
    """
    Write text to path, replacing any existing file.

    Uses atomic write (write to a uniquely named temp file beside the
    target, then rename).

    Raises:
        ScaffoldWriteError: If the write fails
    """
    temp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path.write_text(content, encoding="utf-8")
        temp_path.replace(path)
    except OSError as e:
        if temp_path.exists():
            temp_path.unlink()
        raise ScaffoldWriteError(str(path), str(e)) from e


class ScaffoldProvisioner:
    """Fetches, renders, and writes scaffold files concurrently."""

    def __init__(self, store: TemplateStore, root: Path | str = ".") -> None:
        """
        Initialize the provisioner.

        Args:
            store: Template store to download files from
            root: Directory the relative file paths are written under
        """
        self.store = store
        self.root = Path(root)

    async def provision_file(self, file: ScaffoldFile, context: Mapping[str, str]) -> str:
        """Fetch, render, and write a single file."""
        target = self.root / file.relative_path
        if not target.resolve().is_relative_to(self.root.resolve()):
            raise ScaffoldWriteError(file.relative_path, "path is outside the repository")

        logger.debug(f'Downloading "{file.remote_source_url}" to "{file.relative_path}".')

        text = await self.store.fetch_text(file.remote_source_url)
        content = render(text, context)
        await asyncio.to_thread(write_text, target, content)

        logger.debug(f"{file.relative_path} - Done")
        return file.relative_path

    async def provision(
        self,
        files: list[ScaffoldFile],
        context: Mapping[str, str],
    ) -> ProvisionResult:
        """
        Provision every file concurrently.

        A failing file does not stop the others; files already written
        are kept.

        Returns:
            ProvisionResult listing the files written

        Raises:
            ProvisioningError: If any file failed, after all have finished
        """
        logger.info("Copying files")

        outcomes = await asyncio.gather(
            *(self.provision_file(file, context) for file in files),
            return_exceptions=True,
        )

        written: list[str] = []
        failures: dict[str, str] = {}
        for file, outcome in zip(files, outcomes, strict=True):
            if isinstance(outcome, P11Error):
                logger.debug(f"{file.relative_path} - {outcome.message}")
                failures[file.relative_path] = outcome.message
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                written.append(outcome)

        if failures:
            raise ProvisioningError(failures, written)

        logger.info("File copy complete")
        return ProvisionResult(written=written)
