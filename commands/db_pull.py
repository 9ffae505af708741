"""db-pull: dump a remote database, download it and import it locally."""
import os
import tempfile

from core.command_base import CommandBase
from core.exceptions import ConfigurationError, SyncOpsError
from utils.mysql_commands import dump_command, import_command, mask_password


class DbPullCommand(CommandBase):
    """
    Create a database dump on a remote server, download it over SFTP and
    import it into the local database.

    With --no-import the downloaded dump is kept and its path reported.
    """

    def run(self) -> int:
        server = self.options['server']
        no_import = bool(self.option('no_import', False))

        fd, local_file = tempfile.mkstemp(prefix='db_pull_', suffix='.sql')
        os.close(fd)
        remote_file = f"/tmp/{os.path.basename(local_file)}"
        keep_dump = False

        self.logger.info(f"Connecting to remote server '{server}'...")

        try:
            with self._create_executor(server) as executor:
                try:
                    remote_db = executor.connection.database
                    if remote_db is None:
                        raise ConfigurationError(f"No database configured for server '{server}'.")

                    self.logger.info('Creating remote database dump...')
                    db_config = remote_db.as_dict()
                    command = dump_command(db_config, remote_file, gzip=False, tables=remote_db.tables)
                    executor.run_raw_command(command, display=mask_password(command, db_config))

                    self.logger.info('Downloading database dump via SFTP...')
                    executor.download_file(remote_file, local_file)
                    self.logger.info('Database dump successfully downloaded.')

                    if no_import:
                        keep_dump = True
                    else:
                        self.logger.info('Importing local database...')
                        self._import(local_file)
                        self.logger.info('Database imported successfully.')
                finally:
                    self.logger.info('Cleaning up temporary files...')
                    if executor.is_connected():
                        executor.run_and_get(['rm', '-f', remote_file])
        except SyncOpsError as e:
            self.logger.error(f"✘ {e}")
            return self.FAILURE
        finally:
            if not keep_dump and os.path.exists(local_file):
                os.remove(local_file)

        if no_import:
            self.logger.warning(f"✔ Database dump was successfully saved to: {local_file}")
        else:
            self.logger.warning('✔ Database was successfully pulled and imported.')
        return self.SUCCESS

    def _import(self, local_file: str) -> None:
        local_db = self._local_database()
        command = import_command(local_db, local_file)
        self._create_local_runner().run(command)
