"""project-backup: archive the project and optionally upload it to a storage disk."""
import os
import shlex
import shutil
from datetime import datetime
from typing import List, Optional

from core.command_base import CommandBase
from core.exceptions import SyncOpsError
from utils.path_utils import format_path


DEFAULT_FOLDER = 'backup'
DEFAULT_TIMESTAMP = '%Y-%m-%d_%H_%M_%S'
DEFAULT_EXCLUDES = ('storage/framework/cache', 'vendor')
ARCHIVE_TIMEOUT = 3600


def exclude_list(backup_dir: str, extra: Optional[str] = None) -> List[str]:
    """
    Folders excluded from the archive.

    Args:
        backup_dir: The backup folder itself
        extra: Comma-separated additional folders

    Returns:
        Unique, non-empty folder names in order
    """
    items = [backup_dir, *DEFAULT_EXCLUDES]
    if extra:
        items.extend(item.strip() for item in extra.split(','))

    unique = []
    for item in items:
        if item and item not in unique:
            unique.append(item)
    return unique


class ProjectBackupCommand(CommandBase):
    """Create a tar.gz archive of the project files."""

    def run(self) -> int:
        disk = self.option('disk')
        backup_dir = (self.option('folder') or DEFAULT_FOLDER).rstrip('/\\')
        timestamp = self.option('timestamp') or DEFAULT_TIMESTAMP
        no_delete = bool(self.option('no_delete', False))

        local_path = self._local_path()
        backup_dir_full = os.path.join(local_path, backup_dir)
        created_dir = not os.path.isdir(backup_dir_full)
        os.makedirs(backup_dir_full, exist_ok=True)

        archive = f"{backup_dir}/{datetime.now().strftime(timestamp)}.tar.gz"
        archive_full = os.path.join(local_path, archive)
        excludes = ' '.join(
            f"--exclude={shlex.quote(item)}" for item in exclude_list(backup_dir, self.option('exclude'))
        )

        try:
            self.logger.info(f"Creating project archive ({archive})...")
            self._create_local_runner().run(
                f"tar -pczf {shlex.quote(archive)} {excludes} .", timeout=ARCHIVE_TIMEOUT
            )
            self.logger.info(f"Project archive successfully created: {archive}")

            if disk:
                storage = self._create_storage(disk)

                self.logger.info(f"Uploading project archive to storage disk [{disk}]...")
                storage.put_file(format_path(backup_dir) + os.path.basename(archive), archive_full)
                self.logger.info('Project archive successfully uploaded.')

                if not no_delete:
                    self.logger.info('Deleting local project archive...')
                    os.remove(archive_full)
                    if created_dir:
                        shutil.rmtree(backup_dir_full, ignore_errors=True)
                else:
                    self.logger.info(f"Local archive preserved in: {backup_dir_full}")
            elif no_delete:
                self.logger.info(f"Local archive preserved in: {backup_dir_full}")
        except (SyncOpsError, OSError) as e:
            self.logger.error(f"✘ {e}")
            return self.FAILURE

        self.logger.warning('✔ Project backup was successfully created.')
        return self.SUCCESS
