"""
Repository identity from local git configuration.

The organization and repository names are read from the remote URLs that
``git remote -v`` reports for the working directory.
"""

import asyncio
import logging
import re
from pathlib import Path

from .exceptions import ContextResolutionError
from .models import RepoContext

logger = logging.getLogger(__name__)

REMOTE_PATTERN = re.compile(r"([\w-]+)/([\w-]+)\.git")


def parse_remote_output(output: str) -> RepoContext:
    """
    Extract the repository identity from ``git remote -v`` output.

    The first remote line whose URL ends in ``org/repo.git`` wins.

    Raises:
        ContextResolutionError: If no remote matches
    """
    lines = [line for line in output.splitlines() if line.strip()]
    if not lines:
        raise ContextResolutionError("no git remote is configured")

    for line in lines:
        match = REMOTE_PATTERN.search(line)
        if match:
            org, repo = match.groups()
            return RepoContext(org=org, repo=repo)

    raise ContextResolutionError(f"no remote matches 'org/repo.git': {lines[0]}")


class RepoContextResolver:
    """Resolves the RepoContext of a working directory."""

    DEFAULT_TIMEOUT = 10  # seconds

    def __init__(self, cwd: Path | str = ".", timeout: float = DEFAULT_TIMEOUT) -> None:
        self.cwd = Path(cwd)
        self.timeout = timeout

    async def _run_git(self, *args: str) -> str:
        cmd = ["git", *args]
        logger.debug(f"Running command: {' '.join(cmd)}")

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                cwd=self.cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError:
            raise ContextResolutionError("git is not installed") from None

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(),
                timeout=self.timeout,
            )
        except TimeoutError:
            proc.kill()
            await proc.wait()
            raise ContextResolutionError(f"{' '.join(cmd)} timed out") from None

        if proc.returncode != 0:
            error_msg = stderr.decode().strip() if stderr else "Unknown error"
            raise ContextResolutionError(error_msg)

        return stdout.decode() if stdout else ""

    async def resolve(self) -> RepoContext:
        """
        Resolve the repository the working directory belongs to.

        Returns:
            RepoContext for the first matching remote

        Raises:
            ContextResolutionError: If git fails or no remote matches
        """
        output = await self._run_git("remote", "-v")
        context = parse_remote_output(output)
        logger.debug(f"Resolved repository {context.full_name}")
        return context
