"""Shell command builders for mysqldump / mysql."""
import shlex
from typing import Any, Dict, Sequence


def _password_env(password: str) -> str:
    # Keeps the password off the process list
    return f"MYSQL_PWD={shlex.quote(password)} " if password else ''


def dump_command(db_config: Dict[str, Any], output_file: str, gzip: bool = True,
                 tables: Sequence[str] = (), client: str = 'mysqldump') -> str:
    """
    Build a mysqldump command writing to output_file.

    Args:
        db_config: Dict with database, username, password
        output_file: Dump file path
        gzip: Pipe the dump through gzip
        tables: Only dump these tables (default: all)
        client: Dump client binary (mysqldump or mariadb-dump)

    Returns:
        Shell command string
    """
    parts = [
        client,
        '--skip-comments',
        '--replace',
        f"-u{shlex.quote(str(db_config['username']))}",
        shlex.quote(str(db_config['database'])),
    ]
    parts.extend(shlex.quote(str(table)) for table in tables)

    password_env = _password_env(str(db_config.get('password') or ''))
    command = ' '.join(parts)
    redirect = f" > {shlex.quote(output_file)}"

    if gzip:
        # Plain sh reports the exit status of gzip, not of the dump client
        pipeline = f"{command} | gzip{redirect}"
        return f"{password_env}bash -o pipefail -c {shlex.quote(pipeline)}"
    return password_env + command + redirect


def import_command(db_config: Dict[str, Any], input_file: str, client: str = 'mysql') -> str:
    """
    Build a mysql command importing input_file (plain or .gz).

    Args:
        db_config: Dict with database, username, password
        input_file: Dump file path; Windows separators are normalized
        client: Client binary (mysql or mariadb)

    Returns:
        Shell command string
    """
    path = input_file.replace('\\', '/')
    mysql = (
        _password_env(str(db_config.get('password') or ''))
        + f"{client} -u{shlex.quote(str(db_config['username']))} {shlex.quote(str(db_config['database']))}"
    )

    if path.endswith('.gz'):
        return f"gunzip -c {shlex.quote(path)} | {mysql}"
    return f"{mysql} < {shlex.quote(path)}"


def mask_password(command: str, db_config: Dict[str, Any]) -> str:
    """Replace the quoted password in a built command with asterisks."""
    password = str(db_config.get('password') or '')
    if not password:
        return command
    return command.replace(f"MYSQL_PWD={shlex.quote(password)}", 'MYSQL_PWD=***')


def probe_command(db_config: Dict[str, Any], client: str = 'mysql') -> str:
    """Build a `SELECT 1` connectivity check for the configured database."""
    parts = [client, f"-u{shlex.quote(str(db_config['username']))}", "-e 'SELECT 1'"]
    if db_config.get('database'):
        parts.append(shlex.quote(str(db_config['database'])))
    return _password_env(str(db_config.get('password') or '')) + ' '.join(parts)
