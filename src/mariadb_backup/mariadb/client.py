"""
MariaDB client / dump and load actions
Everything is delegated to the native client tools. (mysqldump, mysql and gzip)
"""
import os
import subprocess
from pathlib import Path
from typing import List, Optional

from loguru import logger

from mariadb_backup.utils.converters import is_gzip_file
from mariadb_backup.utils.datatypes import Backup

SAFETY_FLAGS = ['--single-transaction', '--quick', '--lock-tables=false']


class ToolError(RuntimeError):
    """
    An external tool exited with a non-zero status.
    """

    def __init__(self, tool: str, returncode: int, message: Optional[str] = None):
        self.tool = tool
        self.returncode = returncode
        super().__init__(message or f'{tool} exited with status {returncode}')


class Client:
    """
    MariaDB client. Wraps the command line tools of the server.
    """

    def __init__(self, backup_dir: Path,
                 user: str = 'root', password: str = '',
                 host: str = '', port: int = 0,
                 dump_tool: str = 'mysqldump',
                 client_tool: str = 'mysql',
                 gzip_tool: str = 'gzip'):
        """
        Init a new client.
        :param backup_dir: directory for new backups. Has to exist.
        :param user: default: root. Omitted from the commands if empty.
        :param password: default: ''. Omitted from the commands if empty.
        :param host: default: '' -> local socket
        :param port: default: 0 -> client default
        :param dump_tool: default: mysqldump
        :param client_tool: default: mysql
        :param gzip_tool: default: gzip
        """
        if not os.path.isdir(backup_dir):
            raise FileNotFoundError(f'backup_dir {backup_dir} does not exist!')
        self.backup_dir = Path(backup_dir)
        self._user = user
        self._password = password
        self._host = host
        self._port = port
        self._dump_tool = dump_tool
        self._client_tool = client_tool
        self._gzip_tool = gzip_tool

    def _connection_args(self) -> List[str]:
        """
        Credentials and connection options shared by mysqldump and mysql.
        Empty values are left out instead of being passed as empty flags.
        """
        args = []
        if self._user:
            args.append(f'--user={self._user}')
        if self._password:
            args.append(f'--password={self._password}')
        if self._host:
            args.append(f'--host={self._host}')
        if self._port:
            args.append(f'--port={self._port}')
        return args

    @staticmethod
    def _run(cmd: List[str], **kwargs) -> subprocess.CompletedProcess:
        """
        subprocess.run without a shell. A missing binary is reported like a failed run.
        """
        try:
            return subprocess.run(cmd, **kwargs)
        except OSError as e:
            raise ToolError(cmd[0], 127, f'Could not execute {cmd[0]}: {e}')

    def _masked(self, cmd: List[str]) -> str:
        if not self._password:
            return ' '.join(cmd)
        return ' '.join('--password=***' if x.startswith('--password=') else x for x in cmd)

    @staticmethod
    def _check_database_name(database: Optional[str]):
        # the tools would parse it as an option
        if database and database.startswith('-'):
            raise ValueError(f'Invalid database name: {database}')

    def dump_command(self, database: Optional[str] = None) -> List[str]:
        """
        Build the mysqldump command.
        :param database: database to dump. None for all databases.
        :return: argument list
        """
        self._check_database_name(database)
        cmd = [self._dump_tool, *self._connection_args()]
        if database is None:
            cmd.append('--all-databases')
        cmd.extend(SAFETY_FLAGS)
        if database is not None:
            cmd.append(database)
        return cmd

    def load_command(self, database: Optional[str] = None) -> List[str]:
        """
        Build the mysql command for loading a dump.
        :param database: target database. None -> the dump selects its databases.
        :return: argument list
        """
        self._check_database_name(database)
        cmd = [self._client_tool, *self._connection_args()]
        if database:
            cmd.append(database)
        return cmd

    def backup(self, backup: Backup) -> Path:
        """
        Dump the database(s) of the given backup to the backup dir and gzip the dump.
        :param backup: backup object. database None -> all databases
        :return: path of the compressed artifact
        :raises ToolError: if mysqldump or gzip fail
        """
        backup.compressed = False
        dump_file = self.backup_dir / backup.path
        if backup.all_databases:
            logger.info('Starting backup of all databases')
        else:
            logger.info(f'Starting backup of database: {backup.database}')

        cmd = self.dump_command(backup.database)
        logger.debug(f'Running: {self._masked(cmd)} > {dump_file}')
        try:
            with open(dump_file, 'wb') as f:
                result = self._run(cmd, stdout=f)
        except ToolError:
            dump_file.unlink(missing_ok=True)
            raise
        if result.returncode != 0:
            # do not leave partial dumps behind
            dump_file.unlink(missing_ok=True)
            raise ToolError(self._dump_tool, result.returncode,
                            f'Backup of {backup.name} failed! '
                            f'({self._dump_tool} exited with status {result.returncode})')

        self.compress(dump_file)
        backup.compressed = True
        artifact = self.backup_dir / backup.path
        if not artifact.is_file() or artifact.stat().st_size == 0:
            raise ToolError(self._gzip_tool, 0,
                            f'Backup of {backup.name} failed! '
                            f'Compressed file {artifact} is missing or empty.')
        if backup.all_databases:
            logger.info(f'Backup of all databases succeeded: {artifact}')
        else:
            logger.info(f'Backup of database {backup.database} succeeded: {artifact}')
        return artifact

    def compress(self, file_path: Path) -> Path:
        """
        gzip the file in place. An existing .gz file is overwritten.
        :param file_path: file to compress
        :return: path of the compressed file
        """
        cmd = [self._gzip_tool, '-f', str(file_path)]
        logger.debug(f'Running: {" ".join(cmd)}')
        result = self._run(cmd)
        if result.returncode != 0:
            raise ToolError(self._gzip_tool, result.returncode,
                            f'Compression of {file_path} failed! '
                            f'({self._gzip_tool} exited with status {result.returncode})')
        return Path(f'{file_path}.gz')

    def create_database(self, database: str):
        """
        CREATE DATABASE IF NOT EXISTS for the given name.
        :param database: name of the database
        :raises ToolError: if mysql fails
        """
        escaped = database.replace('`', '``')
        statement = f'CREATE DATABASE IF NOT EXISTS `{escaped}`;\n'
        cmd = self.load_command()
        logger.debug(f'Running: {self._masked(cmd)} <<< {statement.strip()}')
        result = self._run(cmd, input=statement.encode('utf-8'))
        if result.returncode != 0:
            raise ToolError(self._client_tool, result.returncode,
                            f'Could not create database {database}! '
                            f'({self._client_tool} exited with status {result.returncode})')

    def restore(self, backup_file: Path, database: Optional[str] = None):
        """
        Load a backup file into the server.
        gzip compressed files are detected by their content and piped through gzip -dc.
        :param backup_file: dump to load
        :param database: target database. Created if it does not exist.
            None -> load unscoped (for all_databases dumps)
        :raises FileNotFoundError: if the file does not exist. No tool is invoked.
        :raises ToolError: if one of the stages fails
        """
        backup_file = Path(backup_file)
        self._check_database_name(database)
        if not backup_file.is_file():
            raise FileNotFoundError(f'Backup file does not exist: {backup_file}')

        if database:
            logger.info(f'Starting restore of database {database} from {backup_file}')
        else:
            logger.info(f'Starting restore from {backup_file}')

        compressed = is_gzip_file(backup_file)
        if compressed != backup_file.name.endswith('.gz'):
            logger.warning(f'File name of {backup_file} does not match its content '
                           f'({"gzip" if compressed else "plain"}). Using the content.')

        if database:
            self.create_database(database)

        cmd = self.load_command(database)
        if compressed:
            self._load_compressed(backup_file, cmd)
        else:
            logger.debug(f'Running: {self._masked(cmd)} < {backup_file}')
            with open(backup_file, 'rb') as f:
                result = self._run(cmd, stdin=f)
            if result.returncode != 0:
                raise ToolError(self._client_tool, result.returncode,
                                f'Restore failed! '
                                f'({self._client_tool} exited with status {result.returncode})')
        logger.info('Restore succeeded')

    def _load_compressed(self, backup_file: Path, cmd: List[str]):
        """
        gzip -dc <file> | mysql ...
        The exit status of each stage is checked on its own.
        """
        gunzip_cmd = [self._gzip_tool, '-dc', str(backup_file)]
        logger.debug(f'Running: {" ".join(gunzip_cmd)} | {self._masked(cmd)}')
        try:
            gunzip = subprocess.Popen(gunzip_cmd, stdout=subprocess.PIPE)
        except OSError as e:
            raise ToolError(self._gzip_tool, 127, f'Could not execute {self._gzip_tool}: {e}')
        try:
            load = subprocess.Popen(cmd, stdin=gunzip.stdout)
        except OSError as e:
            gunzip.kill()
            gunzip.wait()
            raise ToolError(self._client_tool, 127,
                            f'Could not execute {self._client_tool}: {e}')
        # mysql owns the read end now. gzip gets SIGPIPE if mysql dies.
        gunzip.stdout.close()
        load_status = load.wait()
        gunzip_status = gunzip.wait()

        # a dead mysql also breaks the pipe of gzip -> report the load first
        if load_status != 0:
            raise ToolError(self._client_tool, load_status,
                            f'Restore failed! '
                            f'({self._client_tool} exited with status {load_status})')
        if gunzip_status != 0:
            raise ToolError(self._gzip_tool, gunzip_status,
                            f'Decompression of {backup_file} failed! '
                            f'({self._gzip_tool} exited with status {gunzip_status})')
