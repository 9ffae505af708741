"""project-push: commit local changes and push them to the origin."""
from core.command_base import CommandBase
from core.exceptions import LocalCommandFailed


DEFAULT_MESSAGE = 'Project changes'


class ProjectPushCommand(CommandBase):
    """Add, commit and push local project changes."""

    def run(self) -> int:
        runner = self._create_local_runner()
        message = self.option('message', DEFAULT_MESSAGE)

        try:
            if runner.run(['git', 'status', '--porcelain']).strip() == '':
                self.logger.warning("✔ Nothing to push, the working tree is clean.")
                return self.SUCCESS

            self.logger.info('Committing local changes:')
            runner.run(['git', 'add', '--all'])
            runner.run(['git', 'commit', '-m', message])

            self.logger.info('Pushing to origin:')
            output = runner.run(['git', 'push'])
        except LocalCommandFailed as e:
            self.logger.error("✘ Local command failed:")
            self.logger.error(e.stderr.strip() or str(e))
            return self.FAILURE

        for line in output.splitlines():
            if line.strip():
                self.logger.info(f"  {line}")

        self.logger.warning("✔ Project changes were pushed.")
        return self.SUCCESS
