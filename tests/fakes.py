"""
Stand-ins for mysqldump, mysql and gzip.
"""
import gzip
import shutil
import subprocess
from pathlib import Path
from unittest import mock

DUMP = b'CREATE TABLE `t` (`id` int);\nINSERT INTO `t` VALUES (1);\n'


class FakeTools:
    """
    Replaces subprocess.run / subprocess.Popen.
    Records every command and the data fed to mysql.
    """

    def __init__(self, status=None):
        """
        :param status: exit status per tool name. 0 for missing tools.
        """
        self.status = status or {}
        self.calls = []
        self.loaded = []

    def _status(self, cmd):
        return self.status.get(Path(cmd[0]).name, 0)

    def run(self, cmd, stdout=None, stdin=None, input=None, **kwargs):
        self.calls.append(list(cmd))
        tool = Path(cmd[0]).name
        status = self._status(cmd)
        if tool == 'mysqldump':
            stdout.write(DUMP[:10] if status else DUMP)
        elif tool == 'gzip' and status == 0:
            path = Path(cmd[-1])
            with open(path, 'rb') as src, gzip.open(f'{path}.gz', 'wb') as dst:
                shutil.copyfileobj(src, dst)
            path.unlink()
        elif tool == 'mysql':
            self.loaded.append(input if input is not None else stdin.read())
        return subprocess.CompletedProcess(cmd, status)

    def popen(self, cmd, stdout=None, stdin=None, **kwargs):
        self.calls.append(list(cmd))
        process = mock.Mock()
        process.returncode = self._status(cmd)
        process.wait.return_value = process.returncode
        process.stdout = mock.Mock() if stdout is not None else None
        return process

    def patch(self):
        return mock.patch.multiple('subprocess', run=mock.Mock(side_effect=self.run),
                                   Popen=mock.Mock(side_effect=self.popen))

    def tools(self):
        return [Path(cmd[0]).name for cmd in self.calls]
