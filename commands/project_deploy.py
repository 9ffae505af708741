"""project-deploy: deploy a project to a remote server via Git."""
from core.command_base import CommandBase
from core.deployment import DeployOptions, DeploymentOrchestrator
from core.exceptions import SyncOpsError


class ProjectDeployCommand(CommandBase):
    """Deploy the project on a server (full or fast mode)."""

    def _deploy_options(self) -> DeployOptions:
        return DeployOptions(
            fast=bool(self.option('fast', False)),
            composer=bool(self.option('composer', False)),
            migrate=bool(self.option('migrate', False)),
            sudo=bool(self.option('sudo', False)),
            branch=self.option('branch'),
        )

    def _create_orchestrator(self, executor) -> DeploymentOrchestrator:
        return DeploymentOrchestrator(executor, self._deploy_options(), logger=self.logger)

    def run(self) -> int:
        server = self.options['server']
        self.logger.info(f"Connecting to remote server '{server}'...")

        try:
            with self._create_executor(server) as executor:
                if not executor.connection.project_path:
                    self.logger.error(f"✘ Project path is not defined for server '{server}'.")
                    return self.FAILURE

                outcome = self._create_orchestrator(executor).deploy()
        except SyncOpsError as e:
            self.logger.error(f"✘ An error occurred on server '{server}':")
            self.logger.error(str(e))
            return self.FAILURE

        if not outcome.success:
            if outcome.remote_dirty:
                self.logger.warning("Please run a command:")
                self.logger.warning(f"syncops project-pull {server}")
            self.logger.error("✘ Project deployment FAILED. Check error logs to see what went wrong.")
            return self.FAILURE

        self.logger.warning("✔ Project was successfully deployed.")
        return self.SUCCESS
