"""Main entry point for the syncops command line."""
import sys
import argparse

from commands.db_pull import DbPullCommand
from commands.db_push import DbPushCommand
from commands.media_pull import MediaPullCommand
from commands.media_push import MediaPushCommand
from commands.project_backup import ProjectBackupCommand
from commands.project_deploy import ProjectDeployCommand
from commands.project_pull import ProjectPullCommand
from commands.project_push import ProjectPushCommand
from commands.remote_artisan import RemoteArtisanCommand
from commands.remote_health import RemoteHealthCommand
from commands.validate import ValidateCommand
from core.config_loader import ConfigLoader
from core.exceptions import SyncOpsError


COMMANDS = {
    'project-deploy': ProjectDeployCommand,
    'project-pull': ProjectPullCommand,
    'project-push': ProjectPushCommand,
    'project-backup': ProjectBackupCommand,
    'db-pull': DbPullCommand,
    'db-push': DbPushCommand,
    'media-pull': MediaPullCommand,
    'media-push': MediaPushCommand,
    'remote-artisan': RemoteArtisanCommand,
    'remote-health': RemoteHealthCommand,
    'validate': ValidateCommand,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per console command."""
    parser = argparse.ArgumentParser(
        prog='syncops',
        description='Remote operations over SSH/SFTP: deploy, sync and back up projects'
    )
    parser.add_argument(
        '-c', '--config',
        type=str,
        default=None,
        help='Path to the configuration JSON file (default: $SYNCOPS_CONFIG or syncops.json)'
    )
    parser.add_argument(
        '-q', '--quiet',
        action='store_true',
        help='Only show milestones, warnings and errors'
    )

    subparsers = parser.add_subparsers(dest='command', metavar='command')
    subparsers.required = True

    deploy = subparsers.add_parser('project-deploy', help='Deploy the project to a remote server via Git')
    deploy.add_argument('server', help='The name of the remote server')
    deploy.add_argument('-f', '--fast', action='store_true', help='Fast deploy (without clearing the cache)')
    deploy.add_argument('-c', '--composer', action='store_true', help='Force Composer install')
    deploy.add_argument('-m', '--migrate', action='store_true', help='Run database migrations')
    deploy.add_argument('-x', '--sudo', action='store_true', help='Force super user (sudo)')
    deploy.add_argument('--branch', help='Branch pushed after the merge (default: project.branch_prod)')

    pull = subparsers.add_parser('project-pull', help='Commit server changes and merge them locally')
    pull.add_argument('server', help='The name of the remote server')
    pull.add_argument('-p', '--pull', action='store_true', help='Execute git pull before git push')
    pull.add_argument('-m', '--no-merge', action='store_true', help='Do not merge changes automatically')
    pull.add_argument('--message', help='Commit message (default: "Server changes")')

    push = subparsers.add_parser('project-push', help='Add, commit and push local changes')
    push.add_argument('--message', help='Commit message (default: "Project changes")')

    backup = subparsers.add_parser('project-backup', help='Create a compressed archive of the project files')
    backup.add_argument('disk', nargs='?', help='Storage disk where the archive is uploaded')
    backup.add_argument('--folder', help='Folder where the archive is stored (default: backup)')
    backup.add_argument('--timestamp', help='strftime format used for naming the archive')
    backup.add_argument('--exclude', help='Comma-separated list of folders to exclude')
    backup.add_argument('-d', '--no-delete', action='store_true', help='Keep the archive after the upload')

    db_pull = subparsers.add_parser('db-pull', help='Dump a remote database and import it locally')
    db_pull.add_argument('server', help='The name of the remote server')
    db_pull.add_argument('-i', '--no-import', action='store_true', help='Do not import the dump locally')

    db_push = subparsers.add_parser('db-push', help='Create a compressed local database dump')
    db_push.add_argument('disk', nargs='?', help='Storage disk where the dump is uploaded')
    db_push.add_argument('--folder', help='Folder where the dump is stored (local and/or on the disk)')
    db_push.add_argument('--timestamp', help='strftime format used for naming the dump file')
    db_push.add_argument('-d', '--no-delete', action='store_true', help='Keep the dump after the upload')

    media_pull = subparsers.add_parser('media-pull', help='Download remote media files into local storage')
    media_pull.add_argument('server', help='The name of the remote server')
    media_pull.add_argument('-o', '--no-overwrite', action='store_true', help='Do not overwrite existing local files')

    media_push = subparsers.add_parser('media-push', help='Upload local media files to a storage disk')
    media_push.add_argument('disk', help='Storage disk to upload media files to')
    media_push.add_argument('--folder', help='Target folder on the disk (default: storage)')
    media_push.add_argument('-l', '--log', action='store_true', help='Show details for each file')
    media_push.add_argument('-d', '--dry-run', action='store_true', help='List files without uploading')

    artisan = subparsers.add_parser('remote-artisan', help='Run a php artisan command on a remote server')
    artisan.add_argument('server', help='The name of the remote server')
    artisan.add_argument('artisan_args', nargs=argparse.REMAINDER, help='Artisan command and arguments')

    health = subparsers.add_parser('remote-health', help='Run health checks on a remote server')
    health.add_argument('server', help='The name of the remote server')
    health.add_argument('--full', action='store_true', help='Run extended checks')

    validate = subparsers.add_parser('validate', help='Validate the configured connections')
    validate.add_argument('--server', help='Validate only the given server')
    validate.add_argument('--connect', action='store_true', help='Also test SSH and SFTP connectivity')

    return parser


def main(argv=None) -> int:
    """Main function to run a console command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    options = vars(args)
    command_name = options.pop('command')
    config_path = options.pop('config') or ConfigLoader.default_path()

    try:
        command = COMMANDS[command_name].from_config_file(config_path, options)
    except SyncOpsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return command.run()


if __name__ == '__main__':
    sys.exit(main())
