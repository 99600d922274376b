"""
Pydantic models for repository initialization.

This module defines the data models used throughout the application,
providing strong typing, validation, and serialization capabilities.
"""

from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TEMPLATE_ROOT = "https://denopkg.com/partic11e/p11@dev/resources/repo"
DEFAULT_SCAFFOLD_ROOT = "https://denopkg.com/partic11e/p11@dev/resources/templates"
DEFAULT_API_ROOT = "https://api.github.com"
DEFAULT_FILES = (
    ".gitignore",
    "LICENSE",
    "README.md",
    "CONTRIBUTING.md",
)


class RepoContext(BaseModel):
    """Organization and repository the working directory belongs to."""

    model_config = ConfigDict(frozen=True)

    org: str
    repo: str

    @property
    def full_name(self) -> str:
        """Get repository in org/repo format."""
        return f"{self.org}/{self.repo}"

    def template_context(self, now: datetime | None = None) -> dict[str, str]:
        """Build the placeholder values available to file templates."""
        now = now or datetime.now()
        return {
            "org": self.org,
            "repo": self.repo,
            "currentYear": f"{now.year:04d}",
        }


class Label(BaseModel):
    """GitHub issue label without server-assigned metadata."""

    model_config = ConfigDict(frozen=True)

    name: str
    color: str | None = None
    description: str | None = None


LABEL_FIELDS = ("name", "color", "description")


def strip_server_fields(data: dict[str, Any] | Label) -> Label:
    """
    Project a label onto the fields that define it.

    ``id``, ``node_id``, ``url``, ``default`` and any other field GitHub
    adds are dropped; only name, color and description survive.

    Raises:
        ValueError: If the entry is not an object or has no valid name
    """
    if isinstance(data, Label):
        return data
    if not isinstance(data, dict):
        raise ValueError(f"label entry must be an object, got {type(data).__name__}")
    return Label.model_validate({key: data[key] for key in LABEL_FIELDS if key in data})


class LabelAction(str, Enum):
    """Mutation applied to a label during reconciliation."""

    DELETED = "deleted"
    CREATED = "created"


class LabelResult(BaseModel):
    """Outcome of a single label request."""

    model_config = ConfigDict(frozen=True)

    name: str
    action: LabelAction
    success: bool
    status_code: int | None = None
    error: str | None = None


class ReconcileResult(BaseModel):
    """Result of reconciling a repository's labels."""

    model_config = ConfigDict(frozen=False)

    in_sync: bool = False
    template_count: int = 0
    current_count: int = 0
    entries: list[LabelResult] = Field(default_factory=list)

    def add_entry(self, entry: LabelResult) -> None:
        """Record the outcome of a label request."""
        self.entries.append(entry)

    @property
    def deleted(self) -> int:
        return sum(
            1 for e in self.entries if e.success and e.action == LabelAction.DELETED
        )

    @property
    def created(self) -> int:
        return sum(
            1 for e in self.entries if e.success and e.action == LabelAction.CREATED
        )

    @property
    def failed(self) -> list[LabelResult]:
        return [e for e in self.entries if not e.success]

    def summary(self) -> str:
        """Generate human-readable summary."""
        if self.in_sync:
            return f"Issue labels are okay ({self.template_count} labels)"
        lines = [
            f"Migrated issue labels: {self.current_count} current, "
            f"{self.template_count} template",
            f"  Deleted: {self.deleted}",
            f"  Created: {self.created}",
        ]
        if self.failed:
            lines.append(f"  Failed: {len(self.failed)}")
            for entry in self.failed[:5]:
                lines.append(f"    - {entry.action.value} {entry.name}: {entry.error}")
            if len(self.failed) > 5:
                lines.append(f"    ... and {len(self.failed) - 5} more")
        return "\n".join(lines)


class ScaffoldFile(BaseModel):
    """A repository file provisioned from the template store."""

    model_config = ConfigDict(frozen=True)

    relative_path: str
    remote_source_url: str


class ScaffoldManifest(BaseModel):
    """Files making up a named scaffold."""

    model_config = ConfigDict(frozen=True)

    name: str
    files: list[str] = Field(default_factory=list)


class ProvisionResult(BaseModel):
    """Files written by the provisioner."""

    written: list[str] = Field(default_factory=list)


class InitStage(str, Enum):
    """Progress of a repository initialization run."""

    START = "start"
    CONTEXT_RESOLVED = "context_resolved"
    SCAFFOLD_CHECKED = "scaffold_checked"
    TOKEN_RESOLVED = "token_resolved"
    PROVISIONED = "provisioned"
    LABELS_RECONCILED = "labels_reconciled"
    DONE = "done"
    FAILED = "failed"


class InitResult(BaseModel):
    """Result of a repository initialization run."""

    model_config = ConfigDict(frozen=False)

    stage: InitStage = InitStage.START
    context: RepoContext | None = None
    scaffold: str = "module"
    scaffold_found: bool = False
    provisioned: list[str] = Field(default_factory=list)
    provisioning_errors: dict[str, str] = Field(default_factory=dict)
    labels: ReconcileResult | None = None
    label_error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Check if every stage completed without failures."""
        return (
            self.stage == InitStage.DONE
            and not self.provisioning_errors
            and self.label_error is None
        )


class InitConfig(BaseModel):
    """Process-wide configuration, built once at startup."""

    model_config = ConfigDict(frozen=True)

    template_root: str = DEFAULT_TEMPLATE_ROOT
    scaffold_root: str = DEFAULT_SCAFFOLD_ROOT
    api_root: str = DEFAULT_API_ROOT
    default_files: tuple[str, ...] = DEFAULT_FILES
    token_env_var: str = "GH_WEB_API_TOKEN"
    timeout: float = Field(default=30, gt=0)
    max_retries: int = Field(default=3, ge=0)
    retry_delay: float = Field(default=1, ge=0)

    def file_url(self, relative_path: str) -> str:
        """Get the template store URL of a repository file."""
        return f"{self.template_root.rstrip('/')}/{relative_path}"

    @property
    def labels_url(self) -> str:
        """Get the template store URL of the canonical labels document."""
        return self.file_url("_labels.json")

    def scaffold_url(self, scaffold: str) -> str:
        """Get the template store URL of a scaffold manifest."""
        return f"{self.scaffold_root.rstrip('/')}/{scaffold}.scaffold.json"


class InitOptions(BaseModel):
    """Options accepted by the init command."""

    model_config = ConfigDict(frozen=True)

    token: str | None = None
    scaffold: str = "module"
    directory: Path = Path(".")
