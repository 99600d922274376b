"""Pytest configuration and fixtures."""

import asyncio
import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from p11.context import RepoContextResolver
from p11.models import InitConfig

TEMPLATE_HOST = "templates.test"
API_HOST = "api.test"


class FakeRemote:
    """
    In-memory template store and GitHub labels API.

    Every request is logged twice in ``events``: ``"METHOD path"`` when
    it arrives and ``"done METHOD path"`` when its response is ready.
    ``fail`` maps a request to an error status; ``broken`` maps it to a
    transport exception raised instead of any response.
    """

    def __init__(
        self,
        files: dict[str, str] | None = None,
        template_labels: list[dict[str, Any]] | None = None,
        repo_labels: list[dict[str, Any]] | None = None,
        scaffold: Any = None,
        delete_delay: float = 0,
    ) -> None:
        self.files = files or {}
        self.template_labels = template_labels or []
        self.repo_labels = list(repo_labels or [])
        self.scaffold = scaffold
        self.delete_delay = delete_delay
        self.fail: dict[tuple[str, str], int] = {}
        self.broken: dict[tuple[str, str], type[httpx.TransportError]] = {}
        self.events: list[str] = []
        self.requests: list[httpx.Request] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    @property
    def mutations(self) -> list[str]:
        return [
            f"{r.method} {r.url.path}"
            for r in self.requests
            if r.method in ("POST", "PUT", "PATCH", "DELETE")
        ]

    def calls(self, method: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        key = f"{request.method} {request.url.path}"
        self.requests.append(request)
        self.events.append(key)

        if request.method == "DELETE" and self.delete_delay:
            await asyncio.sleep(self.delete_delay)

        error = self.broken.get((request.method, request.url.path))
        if error is not None:
            raise error("Simulated transport failure", request=request)

        status = self.fail.get((request.method, request.url.path))
        if status is not None:
            response = httpx.Response(status, json={"message": "Simulated failure"})
        elif request.url.host == TEMPLATE_HOST:
            response = self._template(request)
        else:
            response = self._api(request)

        self.events.append(f"done {key}")
        return response

    def _template(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.startswith("/templates/"):
            if self.scaffold is None:
                return httpx.Response(404, text="Not Found")
            return httpx.Response(200, json=self.scaffold)

        name = path.removeprefix("/repo/")
        if name == "_labels.json":
            return httpx.Response(200, json=self.template_labels)
        if name in self.files:
            return httpx.Response(200, text=self.files[name])
        return httpx.Response(404, text="Not Found")

    def _api(self, request: httpx.Request) -> httpx.Response:
        parts = request.url.path.strip("/").split("/")
        # repos/{org}/{repo}/labels[/{name}]
        if request.method == "GET":
            page = int(request.url.params.get("page", "1"))
            per_page = int(request.url.params.get("per_page", "30"))
            start = (page - 1) * per_page
            return httpx.Response(200, json=self.repo_labels[start : start + per_page])

        if request.method == "POST":
            body = json.loads(request.content)
            self.repo_labels.append(body)
            return httpx.Response(201, json={"id": len(self.repo_labels), **body})

        if request.method == "DELETE":
            name = parts[-1]
            remaining = [lbl for lbl in self.repo_labels if lbl["name"] != name]
            if len(remaining) == len(self.repo_labels):
                return httpx.Response(404, json={"message": "Not Found"})
            self.repo_labels = remaining
            return httpx.Response(204)

        return httpx.Response(405)


class FakeGitResolver(RepoContextResolver):
    """Resolver that answers ``git remote -v`` with canned output."""

    def __init__(self, output: str) -> None:
        super().__init__()
        self.output = output
        self.calls = 0

    async def _run_git(self, *args: str) -> str:
        self.calls += 1
        return self.output


@pytest.fixture
def config() -> InitConfig:
    """Configuration pointing at the fake remote."""
    return InitConfig(
        template_root=f"https://{TEMPLATE_HOST}/repo",
        scaffold_root=f"https://{TEMPLATE_HOST}/templates",
        api_root=f"https://{API_HOST}",
        token_env_var="P11_TEST_TOKEN",
        timeout=5,
        max_retries=0,
        retry_delay=0,
    )


@pytest.fixture
def template_files() -> dict[str, str]:
    """Default repository files as published in the template store."""
    return {
        ".gitignore": "node_modules/\n.env\n",
        "LICENSE": "MIT License\n\nCopyright (c) {{currentYear}} {{org}}\n",
        "README.md": "# {{repo}}\n\nMaintained by {{org}}. See {{unknown}}.\n",
        "CONTRIBUTING.md": "# Contributing to {{org}}/{{repo}}\n",
    }


@pytest.fixture
def template_labels() -> list[dict[str, Any]]:
    """Canonical labels as published in _labels.json."""
    return [
        {
            "id": 1,
            "node_id": "MDU6TGFiZWwx",
            "url": "https://api.github.com/repos/partic11e/p11/labels/bug",
            "name": "bug",
            "color": "d73a4a",
            "default": True,
            "description": "Something isn't working",
        },
        {
            "id": 2,
            "node_id": "MDU6TGFiZWwy",
            "url": "https://api.github.com/repos/partic11e/p11/labels/enhancement",
            "name": "enhancement",
            "color": "a2eeef",
            "default": True,
            "description": "New feature or request",
        },
        {
            "id": 3,
            "node_id": "MDU6TGFiZWwz",
            "url": "https://api.github.com/repos/partic11e/p11/labels/good%20first%20issue",
            "name": "good first issue",
            "color": "7057ff",
            "default": True,
            "description": None,
        },
    ]


@pytest.fixture
def remote(template_files: dict[str, str], template_labels: list[dict[str, Any]]) -> FakeRemote:
    """Fake remote whose repository has no labels yet."""
    return FakeRemote(files=template_files, template_labels=template_labels)


@pytest.fixture
def resolver() -> FakeGitResolver:
    return FakeGitResolver(
        "origin\tgit@github.com:partic11e/widgets.git (fetch)\n"
        "origin\tgit@github.com:partic11e/widgets.git (push)\n"
    )


@pytest.fixture
def repo_dir(tmp_path: Path) -> Path:
    path = tmp_path / "widgets"
    path.mkdir()
    return path
