"""media-push: back up local media files to a storage disk."""
import os
from typing import List

from core.command_base import CommandBase
from core.exceptions import SyncOpsError
from utils.path_utils import format_path, is_hidden_or_thumbnail, normalize_path


DEFAULT_FOLDER = 'storage'


class MediaPushCommand(CommandBase):
    """Upload every local media file whose copy on the disk is missing or differs in size."""

    def run(self) -> int:
        disk = self.options['disk']
        folder = format_path(self.option('folder') or DEFAULT_FOLDER)
        show_log = bool(self.option('log', False))

        try:
            storage = self._create_storage(disk)
        except SyncOpsError as e:
            self.logger.error(f"✘ {e}")
            return self.FAILURE

        local_root = self._local_storage_path()
        files = self._local_files(local_root)

        if not files:
            self.logger.warning('✔ No media files found to upload.')
            return self.SUCCESS

        if self.option('dry_run', False):
            self.logger.warning(f"Dry run: The following files ({len(files)}) would be uploaded:")
            for file in files:
                self.logger.warning(f"- {file}")
            return self.SUCCESS

        self.logger.info(f"Uploading {len(files)} media file(s) to storage disk '{disk}'...")

        try:
            for file in files:
                local_file = os.path.join(local_root, *file.split('/'))
                target = folder + file

                if storage.size(target) == os.path.getsize(local_file):
                    if show_log:
                        self.logger.info(f"File already exists: {file}")
                    continue

                storage.put_file(target, local_file)
                if show_log:
                    self.logger.info(f"File successfully uploaded: {file}")
        except (SyncOpsError, OSError) as e:
            self.logger.error(f"✘ {e}")
            return self.FAILURE

        self.logger.warning('✔ All media files have been successfully uploaded.')
        return self.SUCCESS

    def _local_files(self, local_root: str) -> List[str]:
        """Relative paths of local media files, without dotfiles and thumbnails."""
        files = []
        for dirpath, _, filenames in os.walk(local_root):
            for filename in filenames:
                relative = normalize_path(os.path.relpath(os.path.join(dirpath, filename), local_root))
                if not is_hidden_or_thumbnail(relative):
                    files.append(relative)
        return sorted(files)
