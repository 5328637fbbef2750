"""
Creates and restores MariaDB backups by calling mysqldump, mysql and gzip.
"""
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

import click
from dynaconf import Dynaconf
from loguru import logger

from mariadb_backup.mariadb.backends.base import Backend
from mariadb_backup.mariadb.backends.disk import DiskBackend
from mariadb_backup.mariadb.client import Client, ToolError
from mariadb_backup.utils.config import parse_config
from mariadb_backup.utils.converters import format_size
from mariadb_backup.utils.datatypes import Backup
from mariadb_backup.utils.directories import ensure_directory
from mariadb_backup.utils.lock import BackupDirLock, BackupDirLocked
from mariadb_backup.utils.logging import setup_logging

CONTEXT_SETTINGS = {'help_option_names': ['-h', '--help']}

EPILOG = """
\b
Examples:
  mariadb-backup backup              # back up all databases
  mariadb-backup backup shop         # back up the database shop
  mariadb-backup restore FILE shop   # restore FILE into shop (created if missing)
  mariadb-backup restore FILE        # restore an all_databases backup
  mariadb-backup list                # list available backups
  mariadb-backup cleanup 7           # delete compressed backups older than 7 days
"""


class CtxArgs:
    """
    Cache object for arguments between click group and commands.
    """

    def __init__(self, config_folder: Path, settings: Dynaconf, client: Client,
                 backend: Backend):
        self.config_folder = Path(config_folder)
        self.settings = settings
        self.client = client
        self.backend = backend


class Router(click.Group):
    """
    click group which checks for root before resolving the command and
    reports unknown commands with the usage and exit status 1.
    """

    def invoke(self, ctx):
        # runs before resolve_command and the group callback
        if os.geteuid() != 0:
            click.secho('This program needs root privileges. Run it with sudo or as root.',
                        fg='red', err=True)
            ctx.exit(1)
        return super().invoke(ctx)

    def resolve_command(self, ctx, args):
        try:
            return super().resolve_command(ctx, args)
        except click.UsageError as e:
            click.secho(f'Error: {e.format_message()}', fg='red', err=True)
            click.echo(ctx.get_help())
            ctx.exit(1)


def fail(message: str):
    """
    Log the error and exit with status 1.
    """
    logger.error(f'Error: {message}')
    sys.exit(1)


@click.group(cls=Router, invoke_without_command=True, context_settings=CONTEXT_SETTINGS,
             epilog=EPILOG)
@click.option(
    '-c',
    '--config-folder',
    help='Folder where the config files are stored. /etc/mariadb-backup by default.',
    default='/etc/mariadb-backup',
)
@click.pass_context
@click.version_option(package_name='mariadb_backup')
def main(ctx, config_folder):
    """
    Back up and restore MariaDB databases.
    Backups are gzipped SQL dumps created with mysqldump.
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())
        sys.exit(1)

    try:
        settings = parse_config(Path(config_folder))
        log_file = Path(settings('logging.file'))
        log_dir_created = ensure_directory(log_file.parent)
        setup_logging(log_file, settings('logging.level', default='INFO'))
        if log_dir_created:
            logger.info(f'Created log directory: {log_file.parent}')

        backup_dir = Path(settings('backup.dir'))
        if ensure_directory(backup_dir):
            logger.info(f'Created backup directory: {backup_dir}')

        client = Client(
            backup_dir=backup_dir,
            user=settings('mariadb.user', default='root'),
            password=settings('mariadb.password', default=''),
            host=settings('mariadb.host', default=''),
            port=int(settings('mariadb.port', default=0)),
            dump_tool=settings('tools.dump', default='mysqldump'),
            client_tool=settings('tools.client', default='mysql'),
            gzip_tool=settings('tools.gzip', default='gzip'),
        )
    except Exception as e:
        logger.error(f'Error during startup: {e}')
        sys.exit(1)

    ctx.obj = CtxArgs(config_folder, settings, client, DiskBackend(backup_dir))


@main.command('backup')
@click.argument('database', required=False)
@click.pass_context
def backup_command(ctx, database: Optional[str]):
    """
    Back up DATABASE. All databases are backed up if it is omitted.
    """
    args: CtxArgs = ctx.obj
    backup = Backup(database=database or None)
    try:
        with BackupDirLock(args.client.backup_dir):
            artifact = args.client.backup(backup)
    except (ToolError, ValueError, BackupDirLocked, OSError) as e:
        fail(str(e))
    click.echo(f'Backup file: {artifact}')


@main.command('restore')
@click.argument('file', required=False)
@click.argument('database', required=False)
@click.pass_context
def restore_command(ctx, file: Optional[str], database: Optional[str]):
    """
    Restore FILE into DATABASE.
    DATABASE is created if it does not exist. Without DATABASE the dump
    has to select its databases itself. (all_databases backups)
    """
    args: CtxArgs = ctx.obj
    if not file:
        logger.error('Error: no backup file given')
        click.echo(ctx.parent.get_help())
        sys.exit(1)
    try:
        with BackupDirLock(args.client.backup_dir):
            args.client.restore(Path(file), database or None)
    except (ToolError, ValueError, BackupDirLocked, OSError) as e:
        fail(str(e))


@main.command('list')
@click.pass_context
def list_command(ctx):
    """
    List all .sql and .sql.gz files in the backup directory.
    """
    args: CtxArgs = ctx.obj
    backup_dir = args.client.backup_dir
    lines = ''
    newest, newest_mtime = None, None
    for name in args.backend.get_existing_backups():
        try:
            stat = (backup_dir / name).stat()
        except FileNotFoundError:
            # removed by a concurrent cleanup
            continue
        mtime = datetime.fromtimestamp(stat.st_mtime)
        if newest_mtime is None or mtime >= newest_mtime:
            newest, newest_mtime = name, mtime
        lines += click.style(
            f'{format_size(stat.st_size):>8}  {mtime:%Y-%m-%d %H:%M:%S}  ', fg='cyan')
        lines += f'{name}\n'
    if newest is None:
        click.secho(f'No backups found in {backup_dir}.', fg='yellow')
        return

    output = click.style(f'Backups in {backup_dir}:\n', fg='green', bold=True) + lines
    restore_args = str(backup_dir / newest)
    try:
        backup = Backup.from_file_name(newest)
        if not backup.all_databases:
            restore_args += f' {backup.database}'
    except ValueError:
        pass
    output += '\nRestore the newest one with:\n'
    output += click.style(
        f'mariadb-backup -c {args.config_folder} restore {restore_args}', fg='green')
    click.echo(output)


@main.command('cleanup')
@click.argument('days', required=False)
@click.pass_context
def cleanup_command(ctx, days: Optional[str]):
    """
    Delete compressed backups older than DAYS days.
    Defaults to backup.retention_days (30).
    """
    args: CtxArgs = ctx.obj
    if not days:
        days = int(args.settings('backup.retention_days', default=30))
    else:
        try:
            days = int(days)
        except ValueError:
            fail(f'days must be a number: {days}')
        if days < 0:
            fail(f'days must not be negative: {days}')

    logger.info(f'Cleaning up backups older than {days} days')
    try:
        with BackupDirLock(args.client.backup_dir):
            deleted = args.backend.cleanup(days)
    except (BackupDirLocked, OSError) as e:
        fail(str(e))
    if len(deleted) == 0:
        logger.info('No old backups to delete')


@main.command('help')
@click.pass_context
def help_command(ctx):
    """
    Show this message.
    """
    click.echo(ctx.parent.get_help())


if __name__ == '__main__':
    main()
