"""project-pull: commit server-side changes and merge them locally."""
from core.command_base import CommandBase
from core.exceptions import LocalCommandFailed, SyncOpsError


DEFAULT_MESSAGE = 'Server changes'


class ProjectPullCommand(CommandBase):
    """Commit and push untracked changes on the server, then merge them into the local branch."""

    def run(self) -> int:
        server = self.options['server']
        message = self.option('message', DEFAULT_MESSAGE)

        self.logger.info(f"Connecting to remote server '{server}'...")

        try:
            with self._create_executor(server) as executor:
                if executor.is_remote_clean():
                    self.logger.warning("✔ Nothing to pull, the remote working tree is clean.")
                    return self.SUCCESS

                self.logger.info('Committing remote changes:')
                executor.run_and_print([
                    ['git', 'add', '--all'],
                    ['git', 'commit', '-m', message],
                ])

                if self.option('pull', False):
                    self.logger.info('Pulling before push:')
                    executor.run_and_print([['git', 'pull']])

                branch = executor.current_branch()
                self.logger.info(f"Pushing to origin/{branch}:")
                executor.run_and_print([['git', 'push', 'origin', branch]])

            if not self.option('no_merge', False):
                self._merge_locally(branch)
        except LocalCommandFailed as e:
            self.logger.error("✘ Local command failed:")
            self.logger.error(e.stderr.strip() or str(e))
            return self.FAILURE
        except SyncOpsError as e:
            self.logger.error(f"✘ An error occurred on server '{server}':")
            self.logger.error(str(e))
            return self.FAILURE

        self.logger.warning("✔ Changes were successfully pulled into the project.")
        return self.SUCCESS

    def _merge_locally(self, branch: str) -> None:
        self.logger.info(f"Merging origin/{branch} locally:")
        runner = self._create_local_runner()
        runner.run(['git', 'fetch'])
        output = runner.run(['git', 'merge', f"origin/{branch}"])
        for line in output.splitlines():
            if line.strip():
                self.logger.info(f"  {line}")
