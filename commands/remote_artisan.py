"""remote-artisan: run a `php artisan` command on a remote server."""
from core.command_base import CommandBase
from core.exceptions import SyncOpsError


class RemoteArtisanCommand(CommandBase):
    """Run `php artisan <args>` in the project path and stream its output."""

    def run(self) -> int:
        server = self.options['server']
        artisan_args = list(self.option('artisan_args', []))

        if not artisan_args:
            self.logger.error('✘ No artisan command provided. Please specify the artisan sub-command to run.')
            return self.FAILURE

        command = ['php', 'artisan', *artisan_args]

        try:
            self.logger.info(f"Connecting to remote server '{server}'...")
            with self._create_executor(server) as executor:
                self.logger.info('Running remote artisan command:')
                self.logger.info(' '.join(command))
                executor.run_and_print([command])
        except SyncOpsError as e:
            self.logger.error(f"✘ Failed to run remote artisan command on server '{server}':")
            self.logger.error(str(e))
            return self.FAILURE

        self.logger.warning('✔ Remote artisan command executed successfully.')
        return self.SUCCESS
