"""media-pull: download remote media files into local storage."""
import os

from core.command_base import CommandBase
from core.exceptions import SyncOpsError
from utils.path_utils import join_remote_path, relative_to


REMOTE_MEDIA_DIR = 'storage/app'


class MediaPullCommand(CommandBase):
    """Download media files from the remote server via SFTP into local storage."""

    def run(self) -> int:
        server = self.options['server']
        no_overwrite = bool(self.option('no_overwrite', False))
        local_root = self._local_storage_path()

        self.logger.info(f"Connecting to remote server '{server}'...")

        try:
            with self._create_executor(server) as executor:
                if not executor.connection.project_path:
                    self.logger.error(f"✘ Project path is not defined for server '{server}'.")
                    return self.FAILURE

                remote_root = join_remote_path(executor.connection.project_path, REMOTE_MEDIA_DIR)

                self.logger.info('Fetching file list from remote server...')
                files = executor.list_files_recursively(remote_root)

                if not files:
                    self.logger.warning('✔ No media files found on remote server.')
                    return self.SUCCESS

                self.logger.info(f"Syncing {len(files)} media files...")
                downloaded = 0
                for remote_file in files:
                    local_file = os.path.join(local_root, *relative_to(remote_file, remote_root).split('/'))
                    if self._sync_file(executor, remote_file, local_file, no_overwrite):
                        downloaded += 1
        except SyncOpsError as e:
            self.logger.error(f"✘ An error occurred on server '{server}':")
            self.logger.error(str(e))
            return self.FAILURE

        self.logger.info(f"Downloaded {downloaded} of {len(files)} files.")
        self.logger.warning('✔ Media files successfully synced from remote server.')
        return self.SUCCESS

    def _sync_file(self, executor, remote_file: str, local_file: str, no_overwrite: bool) -> bool:
        """Download one file unless it is kept locally. Returns True when downloaded."""
        os.makedirs(os.path.dirname(local_file), exist_ok=True)

        if os.path.exists(local_file):
            if no_overwrite:
                return False
            if executor.remote_file_size(remote_file) == os.path.getsize(local_file):
                return False

        self.logger.debug(f"Downloading {remote_file}")
        executor.download_file(remote_file, local_file)
        return True
