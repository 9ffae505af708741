"""remote-health: read-only health checks of a remote server."""
from typing import Tuple

from core.command_base import CommandBase
from core.exceptions import RemoteCommandFailed, RemoteConnectionError, SyncOpsError
from utils.mysql_commands import mask_password, probe_command


# Failures of a single check are reported and the next check runs
CHECK_ERRORS = (RemoteCommandFailed, RemoteConnectionError)

WINTER_BUILD_MARKER = 'detected winter cms build'


def first_line(text: str) -> str:
    lines = text.splitlines()
    return lines[0] if lines else ''


def winter_build(output: str) -> str:
    """Pick the build line from `php artisan winter:version` output."""
    lines = [line for line in output.strip().splitlines() if line.strip()]
    if not lines:
        return ''
    detected = next((line for line in lines if WINTER_BUILD_MARKER in line.lower()), lines[-1])
    return detected.lstrip('* \t')


class RemoteHealthCommand(CommandBase):
    """Report system, PHP, database and project state of a server."""

    def run(self) -> int:
        server = self.options['server']
        full = bool(self.option('full', False))

        self.logger.info(f"Checking remote health for server '{server}'...")

        try:
            with self._create_executor(server) as executor:
                self._check_system(executor)
                self._check_php(executor, full)
                self._check_database(executor, full)
                self._check_project(executor)
        except SyncOpsError as e:
            self.logger.error(f"✘ Failed to run remote health check for '{server}':")
            self.logger.error(str(e))
            return self.FAILURE

        self.logger.warning(f"✔ Remote health check completed for '{server}'. See details above.")
        return self.SUCCESS

    def _check_system(self, executor) -> None:
        self._log_section('System checks', level='info')

        try:
            self.logger.info(f"  Uptime: {executor.run_and_get(['uptime'])}")
        except CHECK_ERRORS as e:
            self.logger.warning(f"  Unable to retrieve uptime: {e}")

        try:
            disk_usage = executor.run_and_get(['df', '-h'])
            self.logger.info('  Disk usage (df -h):')
            for line in disk_usage.splitlines():
                self.logger.info(f"  {line}")
        except CHECK_ERRORS as e:
            self.logger.warning(f"  Unable to retrieve disk usage: {e}")

    def _check_php(self, executor, full: bool) -> None:
        self._log_section('PHP checks', level='info')

        try:
            self.logger.info(f"  Version: {first_line(executor.run_and_get(['php', '-v']))}")
        except CHECK_ERRORS as e:
            self.logger.warning(f"  Unable to retrieve PHP version: {e}")
            return

        if full:
            try:
                modules = executor.run_and_get(['php', '-m'])
                self.logger.info('  Loaded modules (php -m):')
                for line in modules.splitlines():
                    self.logger.info(f"  {line}")
            except CHECK_ERRORS as e:
                self.logger.warning(f"  Unable to retrieve PHP modules: {e}")

    def _check_database(self, executor, full: bool) -> None:
        self._log_section('Database checks', level='info')

        database = executor.connection.database
        if database is None:
            self.logger.info('  No database configuration found for this connection. Skipping.')
            return

        try:
            client, version = self._detect_database_client(executor)
        except CHECK_ERRORS as e:
            self.logger.warning(f"  Unable to retrieve MySQL/MariaDB version: {e}")
            return

        label = 'MariaDB' if client == 'mariadb' else 'MySQL'
        self.logger.info(f"  {label} client: {first_line(version)}")

        if not full:
            return

        if not database.username:
            self.logger.info('  Database connectivity check skipped (no username configured).')
            return

        db_config = database.as_dict()
        command = probe_command(db_config, client=client)
        try:
            executor.run_raw_command(command, display=mask_password(command, db_config))
            self.logger.info('  Database connectivity: OK (SELECT 1 succeeded).')
        except CHECK_ERRORS as e:
            self.logger.warning(f"  Database connectivity check failed: {e}")

    def _detect_database_client(self, executor) -> Tuple[str, str]:
        """Prefer the mariadb client, fall back to mysql."""
        try:
            output = executor.run_and_get(['mariadb', '--version'])
            if output.strip():
                return 'mariadb', output
        except RemoteCommandFailed:
            pass

        return 'mysql', executor.run_and_get(['mysql', '--version'])

    def _check_project(self, executor) -> None:
        self._log_section('Project checks', level='info')

        try:
            self.logger.info(f"  Working directory (pwd): {executor.run_and_get(['pwd'])}")
        except CHECK_ERRORS as e:
            self.logger.warning(f"  Unable to confirm project path (pwd): {e}")

        try:
            clean = executor.is_remote_clean()
            branch = executor.current_branch()
            if clean:
                self.logger.info(f"  Git: working tree is clean on branch '{branch}'.")
            else:
                self.logger.warning(f"  Git: working tree is NOT clean on branch '{branch}'.")
        except CHECK_ERRORS as e:
            self.logger.warning(f"  Unable to retrieve Git status: {e}")

        try:
            self.logger.info(f"  Framework: {executor.run_and_get(['php', 'artisan', '--version'])}")
        except CHECK_ERRORS as e:
            self.logger.warning(f"  Unable to run 'php artisan --version': {e}")

        try:
            build = winter_build(executor.run_and_get(['php', 'artisan', 'winter:version']))
            self.logger.info(f"  Winter CMS: {build}")
        except CHECK_ERRORS as e:
            self.logger.warning(f"  Unable to run 'php artisan winter:version': {e}")
