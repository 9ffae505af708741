"""db-push: create a compressed local database dump and upload it to a storage disk."""
import os
import shutil
from datetime import datetime

from core.command_base import CommandBase
from core.exceptions import SyncOpsError
from utils.mysql_commands import dump_command, mask_password
from utils.path_utils import format_path


DEFAULT_TIMESTAMP = '%Y-%m-%d_%H-%M-%S'


class DbPushCommand(CommandBase):
    """Dump the local database to <timestamp>.sql.gz and optionally upload it."""

    def run(self) -> int:
        disk = self.option('disk')
        folder = format_path(self.option('folder'))
        timestamp = self.option('timestamp') or DEFAULT_TIMESTAMP

        local_path = self._local_path()
        filename = datetime.now().strftime(timestamp) + '.sql.gz'
        dump_file = os.path.join(local_path, filename)

        try:
            db_config = self._local_database()

            self.logger.info('Creating database dump file...')
            command = dump_command(db_config, filename)
            self.logger.debug(mask_password(command, db_config))
            try:
                self._create_local_runner().run(command)
            except SyncOpsError:
                # gzip leaves a partial archive behind when the dump fails
                if os.path.exists(dump_file):
                    os.remove(dump_file)
                raise
            self.logger.info('Database dump file successfully created.')

            if disk:
                storage = self._create_storage(disk)

                self.logger.info(f"Uploading database dump file to the '{disk}' disk...")
                storage.put_file((folder or '') + filename, dump_file)
                self.logger.info('Database dump file successfully uploaded.')

                if not self.option('no_delete', False):
                    self.logger.info('Deleting the local dump file...')
                    os.remove(dump_file)
                elif folder:
                    self._move_into(dump_file, os.path.join(local_path, folder))
        except (SyncOpsError, OSError) as e:
            self.logger.error(f"✘ {e}")
            return self.FAILURE

        self.logger.warning('✔ Database backup was successfully created.')
        return self.SUCCESS

    def _move_into(self, file_path: str, folder: str) -> None:
        os.makedirs(folder, exist_ok=True)
        shutil.move(file_path, os.path.join(folder, os.path.basename(file_path)))
