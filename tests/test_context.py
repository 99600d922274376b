"""Tests for repository context resolution."""

import asyncio
from datetime import datetime
from pathlib import Path

import pytest
from pydantic import ValidationError

from p11.context import RepoContextResolver, parse_remote_output
from p11.exceptions import ContextResolutionError
from p11.models import RepoContext

from conftest import FakeGitResolver


class HungProcess:
    """Subprocess stand-in whose output never arrives."""

    def __init__(self) -> None:
        self.returncode: int | None = None
        self.killed = False
        self.waited = False

    async def communicate(self) -> tuple[bytes, bytes]:
        await asyncio.sleep(60)
        return b"", b""

    def kill(self) -> None:
        self.killed = True
        self.returncode = -9

    async def wait(self) -> int:
        self.waited = True
        return -9


class TestParseRemoteOutput:
    """Tests for parse_remote_output()."""

    def test_ssh_remote(self) -> None:
        output = "origin\tgit@github.com:partic11e/widgets.git (fetch)\n"
        assert parse_remote_output(output) == RepoContext(org="partic11e", repo="widgets")

    def test_https_remote(self) -> None:
        output = "origin\thttps://github.com/my-org/my_repo.git (fetch)\n"
        assert parse_remote_output(output) == RepoContext(org="my-org", repo="my_repo")

    def test_first_matching_line_wins(self) -> None:
        output = (
            "local\t/srv/mirror (fetch)\n"
            "origin\tgit@github.com:first/one.git (fetch)\n"
            "upstream\tgit@github.com:second/two.git (fetch)\n"
        )
        assert parse_remote_output(output) == RepoContext(org="first", repo="one")

    def test_no_remotes(self) -> None:
        with pytest.raises(ContextResolutionError, match="no git remote"):
            parse_remote_output("")

    def test_no_matching_remote(self) -> None:
        with pytest.raises(ContextResolutionError, match="org/repo.git"):
            parse_remote_output("origin\thttps://github.com/partic11e/widgets (fetch)\n")

    def test_error_has_hint(self) -> None:
        with pytest.raises(ContextResolutionError) as exc_info:
            parse_remote_output("")
        assert exc_info.value.hint is not None
        assert "Hint:" in str(exc_info.value)


class TestRepoContextResolver:
    """Tests for RepoContextResolver."""

    def test_resolve_is_idempotent(self, resolver: FakeGitResolver) -> None:
        first = asyncio.run(resolver.resolve())
        second = asyncio.run(resolver.resolve())
        assert first == second == RepoContext(org="partic11e", repo="widgets")
        assert resolver.calls == 2

    def test_resolve_outside_repository(self, tmp_path: Path) -> None:
        resolver = RepoContextResolver(tmp_path)
        with pytest.raises(ContextResolutionError):
            asyncio.run(resolver.resolve())

    def test_missing_git(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def no_git(*args: object, **kwargs: object) -> None:
            raise FileNotFoundError("git")

        monkeypatch.setattr(asyncio, "create_subprocess_exec", no_git)
        with pytest.raises(ContextResolutionError, match="git is not installed"):
            asyncio.run(RepoContextResolver().resolve())

    def test_hung_git_is_killed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        proc = HungProcess()

        async def spawn(*args: object, **kwargs: object) -> HungProcess:
            return proc

        monkeypatch.setattr(asyncio, "create_subprocess_exec", spawn)
        with pytest.raises(ContextResolutionError, match="git remote -v timed out"):
            asyncio.run(RepoContextResolver(timeout=0.01).resolve())
        assert proc.killed is True
        assert proc.waited is True


class TestRepoContext:
    """Tests for RepoContext."""

    def test_full_name(self) -> None:
        assert RepoContext(org="o", repo="r").full_name == "o/r"

    def test_template_context(self) -> None:
        context = RepoContext(org="o", repo="r").template_context(datetime(2026, 10, 19))
        assert context == {"org": "o", "repo": "r", "currentYear": "2026"}

    def test_template_context_defaults_to_now(self) -> None:
        context = RepoContext(org="o", repo="r").template_context()
        assert context["currentYear"] == str(datetime.now().year)

    def test_is_immutable(self) -> None:
        context = RepoContext(org="o", repo="r")
        with pytest.raises(ValidationError):
            context.org = "other"  # type: ignore[misc]
