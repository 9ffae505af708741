"""Deployment state machine for Git-based project deploys."""
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Sequence

from core.exceptions import RemoteCommandFailed, RemoteConnectionError
from core.models import DeploymentOutcome
from utils.git_output import looks_like_merge_conflict, touched_dependency_manifest


class DeployState(str, Enum):
    IDLE = 'idle'
    PREFLIGHT = 'preflight'
    MAINTENANCE_ON = 'maintenance_on'
    CACHE_CLEAR = 'cache_clear'
    UPDATE = 'update'
    CONFLICT_REVERT = 'conflict_revert'
    POST_DEPLOY_HOOKS = 'post_deploy_hooks'
    CACHE_REBUILD = 'cache_rebuild'
    MAINTENANCE_OFF = 'maintenance_off'
    OWNERSHIP_FIXUP = 'ownership_fixup'
    DONE = 'done'
    FAILED = 'failed'


# Errors that abort a deployment step
STEP_ERRORS = (RemoteCommandFailed, RemoteConnectionError)


@dataclass
class DeployOptions:
    """Flags of the project-deploy command."""

    fast: bool = False
    composer: bool = False
    migrate: bool = False
    sudo: bool = False
    branch: Optional[str] = None


class DeploymentOrchestrator:
    """
    Deploys a project on a remote server through a RemoteExecutor.

    Full mode: maintenance on, cache clear, update, cache rebuild, maintenance
    off. Fast mode: update only. The update is a `git pull` when branch_main is
    false, otherwise a fetch and merge of origin/<branch_main> followed by a
    push to the production branch. Merge conflicts are reverted with
    `git reset --hard`. Maintenance mode is always exited once entered.
    """

    def __init__(self, executor, options: Optional[DeployOptions] = None, logger=None,
                 sleep: Callable[[float], None] = time.sleep, drain_seconds: float = 1.0):
        """
        Args:
            executor: RemoteExecutor (connection, is_remote_clean, run_and_print)
            options: Deploy flags
            logger: Optional logger
            sleep: Sleep function used while requests drain
            drain_seconds: Pause after entering maintenance mode
        """
        self.executor = executor
        self.connection = executor.connection
        self.options = options or DeployOptions()
        self.logger = logger or logging.getLogger(self.__class__.__name__)
        self.sleep = sleep
        self.drain_seconds = drain_seconds
        self.state = DeployState.IDLE
        self.outcome = DeploymentOutcome(state=self.state.value)

    def _enter(self, state: DeployState) -> None:
        self.state = state
        self.outcome.state = state.value
        self.outcome.states.append(state.value)
        self.logger.debug(f"Deploy state: {state.value}")

    def _fail(self, message: str) -> DeploymentOutcome:
        self.outcome.success = False
        self.outcome.message = message
        self._enter(DeployState.FAILED)
        return self.outcome

    def wrap_sudo(self, command_parts: Sequence[str]) -> List[str]:
        """Prepend 'sudo' as the first argument when requested."""
        parts = list(command_parts)
        if self.options.sudo:
            parts.insert(0, 'sudo')
        return parts

    def deploy(self) -> DeploymentOutcome:
        """
        Run the deployment.

        Returns:
            DeploymentOutcome with the terminal state (done or failed)
        """
        self._enter(DeployState.PREFLIGHT)
        try:
            clean = self.executor.is_remote_clean()
        except STEP_ERRORS as e:
            self.logger.error(str(e))
            return self._fail(str(e))

        if not clean:
            self.outcome.remote_dirty = True
            message = (
                f"Remote changes detected on '{self.connection.name}'. Aborting deployment process. "
                f"Run 'project-pull {self.connection.name}' first."
            )
            self.logger.error(f"✘ {message}")
            return self._fail(message)

        try:
            if self.options.fast:
                self._update()
            else:
                self._full_deploy()
        except STEP_ERRORS as e:
            self.logger.error(str(e))
            self.outcome.success = False
            self.outcome.message = str(e)
        finally:
            self._best_effort(DeployState.OWNERSHIP_FIXUP, self._fix_web_ownership)

        if self.outcome.success:
            self._enter(DeployState.DONE)
            return self.outcome
        return self._fail(self.outcome.message)

    def _full_deploy(self) -> None:
        """Update wrapped in a maintenance window with cache flushes."""
        self._enter(DeployState.MAINTENANCE_ON)
        self.logger.info('Putting the application into maintenance mode:')
        self.executor.run_and_print([self.wrap_sudo(self.connection.commands.maintenance_down)])

        try:
            self.sleep(self.drain_seconds)

            self._enter(DeployState.CACHE_CLEAR)
            self.logger.info('Flushing the application cache:')
            self.executor.run_and_print(self._cache_commands())

            self._update()
        finally:
            self._best_effort(DeployState.CACHE_REBUILD, self._rebuild_cache)
            self._best_effort(DeployState.MAINTENANCE_OFF, self._maintenance_off)

    def _rebuild_cache(self) -> None:
        self.logger.info('Rebuilding the application cache:')
        self.executor.run_and_print(self._cache_commands())

    def _maintenance_off(self) -> None:
        self.logger.info('Bringing the application out of maintenance mode:')
        self.executor.run_and_print([self.wrap_sudo(self.connection.commands.maintenance_up)])

    def _best_effort(self, state: DeployState, step: Callable[[], None]) -> None:
        self._enter(state)
        try:
            step()
        except STEP_ERRORS as e:
            self.logger.error(f"Cleanup step '{state.value}' failed: {e}")

    def _cache_commands(self) -> List[List[str]]:
        return [self.wrap_sudo(command) for command in self.connection.commands.cache_clear]

    def _update(self) -> None:
        """Pull or merge, revert on conflict, then run post-deploy hooks."""
        self._fix_root_ownership()

        self._enter(DeployState.UPDATE)
        if self.connection.pull_only:
            self.logger.info('Deploying the project (pull mode):')
            commands = [['git', 'pull']]
        else:
            self.logger.info('Deploying the project (merge mode):')
            commands = [
                ['git', 'fetch'],
                ['git', 'merge', f"origin/{self.connection.branch_main}"],
            ]

        try:
            output = self.executor.run_and_print(commands)
        except RemoteCommandFailed as e:
            # git exits non-zero on conflicts; the report is on stdout
            if not looks_like_merge_conflict(f"{e.stdout}\n{e.stderr}"):
                raise
            output = f"{e.stdout}\n{e.stderr}"

        if looks_like_merge_conflict(output):
            self._enter(DeployState.CONFLICT_REVERT)
            self.logger.error('✘ Conflicts detected. Reverting changes...')
            self.executor.run_and_print([['git', 'reset', '--hard']])
            self.outcome.conflicted = True
            self.outcome.success = False
            self.outcome.message = 'Merge conflicts detected; remote changes were reverted.'
            return

        if not self.connection.pull_only:
            push_branch = self.options.branch or self.connection.branch_prod
            if push_branch:
                self.executor.run_and_print([['git', 'push', 'origin', push_branch]])

        self._enter(DeployState.POST_DEPLOY_HOOKS)
        self._after_deploy(output)
        self.outcome.success = True

    def _after_deploy(self, output: str) -> None:
        """Dependency install, migrations and web ownership after a successful update."""
        commands = self.connection.commands

        if self.options.composer or touched_dependency_manifest(output):
            self.logger.info('Running Composer install (remote)...')
            self.executor.run_and_print([self.wrap_sudo(commands.composer_install)])

        if self.options.migrate:
            self.logger.info('Running migrations (remote)...')
            self.executor.run_and_print([self.wrap_sudo(commands.migrate)])

        self._fix_web_ownership()

    def _fix_root_ownership(self) -> None:
        root_user = self.connection.permissions.root_user
        if not root_user:
            return
        self.logger.info('Handling file ownership...')
        self.executor.run_and_print([self.wrap_sudo(['chown', root_user, '-R', '.'])])

    def _fix_web_ownership(self) -> None:
        permissions = self.connection.permissions
        if not permissions.web_user or not permissions.web_folders:
            return
        self.logger.info('Handling web folder ownership...')
        for folder in permissions.web_folders:
            self.executor.run_and_print([self.wrap_sudo(['chown', permissions.web_user, '-R', folder])])
