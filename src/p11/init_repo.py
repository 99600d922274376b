"""
Repository initialization orchestrator.

This module coordinates an init run:
1. Resolve the repository from git
2. Look up the requested scaffold
3. Resolve a GitHub token
4. Provision the scaffold files
5. Reconcile issue labels
"""

import asyncio
import logging
import os
from collections.abc import Callable

import httpx

from .context import RepoContextResolver
from .exceptions import MissingTokenError, P11Error, ProvisioningError, RemoteError
from .github_client import GitHubClient
from .labels import LabelReconciler
from .models import InitConfig, InitOptions, InitResult, InitStage, ScaffoldManifest
from .provisioner import ScaffoldProvisioner, files_for
from .template_store import TemplateStore

logger = logging.getLogger(__name__)

TokenPrompt = Callable[[], str | None]


class RepoInitializer:
    """
    Orchestrates scaffolding and label reconciliation for a repository.

    Fatal failures (no repository identity, no token) raise before any
    file is written or any label is touched. Provisioning and label
    failures are recorded on the result and the run carries on.
    """

    def __init__(
        self,
        config: InitConfig | None = None,
        resolver: RepoContextResolver | None = None,
        prompt: TokenPrompt | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            config: Endpoints, default files, and network settings
            resolver: Repository resolver. If None, one is created for the
                target directory of each run.
            prompt: Asks the user for a token when none was supplied
            transport: Optional httpx transport shared by the HTTP clients
        """
        self.config = config or InitConfig()
        self.resolver = resolver
        self.prompt = prompt
        self.transport = transport

    def resolve_token(self, token: str | None) -> str:
        """
        Resolve the GitHub token from the option, environment, or prompt.

        Raises:
            MissingTokenError: If every source came back empty
        """
        token = token or os.environ.get(self.config.token_env_var, "")
        if not token and self.prompt is not None:
            token = (self.prompt() or "").strip()
        if not token:
            logger.debug("Exiting due to no GitHub API token.")
            raise MissingTokenError(self.config.token_env_var)
        return token

    async def _check_scaffold(self, store: TemplateStore, scaffold: str) -> ScaffoldManifest | None:
        try:
            return await store.fetch_scaffold(scaffold)
        except RemoteError as e:
            logger.info(e.message)
            return None

    async def run(self, options: InitOptions) -> InitResult:
        """
        Run the initialization.

        Args:
            options: Options of the init command

        Returns:
            InitResult describing every stage

        Raises:
            ContextResolutionError: If the repository cannot be identified
            MissingTokenError: If no token is available
        """
        result = InitResult(scaffold=options.scaffold)
        resolver = self.resolver or RepoContextResolver(options.directory)

        try:
            context = await resolver.resolve()
        except P11Error:
            result.stage = InitStage.FAILED
            raise
        result.context = context
        result.stage = InitStage.CONTEXT_RESOLVED

        store = TemplateStore(self.config, transport=self.transport)
        github: GitHubClient | None = None
        try:
            manifest = await self._check_scaffold(store, options.scaffold)
            result.scaffold_found = manifest is not None
            result.stage = InitStage.SCAFFOLD_CHECKED

            try:
                token = self.resolve_token(options.token)
            except MissingTokenError:
                result.stage = InitStage.FAILED
                raise
            result.stage = InitStage.TOKEN_RESOLVED

            logger.info(f"Initializing repo {context.full_name}")

            provisioner = ScaffoldProvisioner(store, options.directory)
            try:
                provisioned = await provisioner.provision(
                    files_for(self.config, manifest),
                    context.template_context(),
                )
                result.provisioned = provisioned.written
            except ProvisioningError as e:
                logger.error(e.message)
                result.provisioned = e.written
                result.provisioning_errors = e.failures
            result.stage = InitStage.PROVISIONED

            github = GitHubClient(
                token=token,
                api_root=self.config.api_root,
                timeout=self.config.timeout,
                max_retries=self.config.max_retries,
                retry_delay=self.config.retry_delay,
                transport=self.transport,
            )
            reconciler = LabelReconciler(store, github)
            try:
                result.labels = await reconciler.reconcile(context.org, context.repo)
            except RemoteError as e:
                logger.error(e.message)
                result.label_error = e.message
            result.stage = InitStage.LABELS_RECONCILED

        finally:
            await store.close()
            if github is not None:
                await github.close()

        logger.info("Initialization done")
        result.stage = InitStage.DONE
        return result


def run_init(
    options: InitOptions,
    config: InitConfig | None = None,
    prompt: TokenPrompt | None = None,
    resolver: RepoContextResolver | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    on_result: Callable[[InitResult], None] | None = None,
    on_error: Callable[[P11Error], None] | None = None,
) -> int:
    """
    Synchronous wrapper for RepoInitializer.run().

    Args:
        options: Options of this run
        config: Endpoints, files, and timeouts (defaults to InitConfig())
        prompt: Asked for a token when neither option nor env var has one
        resolver: Repository context resolver (defaults to git in options.directory)
        transport: Optional httpx transport (used by tests)
        on_result: Called with the result of a run that reached the end
        on_error: Called with the error that aborted a run

    Returns:
        Process exit code: 0 on full success, 130 when interrupted,
        1 otherwise
    """
    initializer = RepoInitializer(
        config=config,
        resolver=resolver,
        prompt=prompt,
        transport=transport,
    )
    try:
        result = asyncio.run(initializer.run(options))
    except P11Error as e:
        if on_error is not None:
            on_error(e)
        else:
            logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.debug("Initialization interrupted")
        return 130

    if on_result is not None:
        on_result(result)
    return 0 if result.succeeded else 1
