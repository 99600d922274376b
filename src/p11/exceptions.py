"""
Exception hierarchy for p11.

This module defines custom exceptions with clear messages and
actionable guidance for users.
"""


class P11Error(Exception):
    """Base exception for all p11 errors."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        self.message = message
        self.hint = hint
        super().__init__(message)

    def __str__(self) -> str:
        if self.hint:
            return f"{self.message}\n\nHint: {self.hint}"
        return self.message


# Repository Errors


class ContextResolutionError(P11Error):
    """The organization and repository could not be derived from git."""

    def __init__(self, details: str = "") -> None:
        message = "Unable to determine the GitHub repository"
        if details:
            message = f"{message}: {details}"
        super().__init__(
            message,
            "Run inside a git checkout with a remote like "
            "'git@github.com:org/repo.git'",
        )


class MissingTokenError(P11Error):
    """No GitHub API token was supplied or entered."""

    def __init__(self, env_var: str = "GH_WEB_API_TOKEN") -> None:
        super().__init__(
            "Exiting due to no GitHub API token",
            f"Pass --token or set the {env_var} environment variable",
        )


# Remote Errors


class RemoteError(P11Error):
    """Base class for errors talking to the template store or GitHub."""


class RemoteNetworkError(RemoteError):
    """Network error communicating with a remote endpoint."""

    def __init__(self, url: str, details: str = "") -> None:
        message = f"Network error requesting {url}"
        if details:
            message = f"{message}: {details}"
        super().__init__(
            message,
            "Check your internet connection and try again",
        )


class RemoteTimeoutError(RemoteError):
    """A remote request did not complete in time."""

    def __init__(self, url: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Request to {url} timed out after {timeout_seconds} seconds",
            "Increase --timeout or check your network",
        )


class TemplateFetchError(RemoteError):
    """The template store returned a non-success response."""

    def __init__(self, url: str, status_code: int | None = None, details: str = "") -> None:
        self.url = url
        self.status_code = status_code
        message = f"Failed to download {url}"
        if status_code:
            message = f"{message} (HTTP {status_code})"
        if details:
            message = f"{message}: {details}"
        super().__init__(
            message,
            "Check that the template exists in the template store",
        )


class ScaffoldNotFoundError(RemoteError):
    """The requested scaffold manifest does not exist."""

    def __init__(self, scaffold: str, status_code: int | None = None) -> None:
        self.scaffold = scaffold
        self.status_code = status_code
        status_info = f" (HTTP {status_code})" if status_code else ""
        super().__init__(
            f'No scaffold for "{scaffold}"{status_info}',
            "The default repository files will be used instead",
        )


class LabelApiError(RemoteError):
    """GitHub rejected a label request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        status_info = f" (HTTP {status_code})" if status_code else ""
        super().__init__(
            f"GitHub label API error{status_info}: {message}",
            "Check that the repository exists and your token can manage labels",
        )


# Provisioning Errors


class ScaffoldWriteError(P11Error):
    """A scaffold file could not be written."""

    def __init__(self, file_path: str, details: str = "") -> None:
        message = f"Failed to write '{file_path}'"
        if details:
            message = f"{message}: {details}"
        super().__init__(
            message,
            "Check that you have write permissions in the repository",
        )


class ProvisioningError(P11Error):
    """One or more scaffold files could not be fetched or written."""

    def __init__(self, failures: dict[str, str], written: list[str] | None = None) -> None:
        self.failures = failures
        self.written = written or []
        names = ", ".join(sorted(failures))
        super().__init__(
            f"Failed to provision {len(failures)} file(s): {names}",
            "Files that were written are kept; re-run to retry the rest",
        )
