"""
Tests for config parsing
"""
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from dynaconf.validator import ValidationError

from mariadb_backup.mariadb.client import Client
from mariadb_backup.utils.config import parse_config


class TestParseConfig(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_defaults_are_installed(self):
        settings = parse_config(self.temp_dir)
        self.assertTrue((self.temp_dir / 'default.toml').is_file())
        self.assertEqual(settings('mariadb.user'), 'root')
        self.assertEqual(settings('mariadb.password'), '')
        self.assertEqual(settings('backup.retention_days'), 30)

    def test_config_toml_overrides(self):
        (self.temp_dir / 'config.toml').write_text('[mariadb]\npassword = "secret"\n')
        settings = parse_config(self.temp_dir)
        self.assertEqual(settings('mariadb.password'), 'secret')
        self.assertEqual(settings('mariadb.user'), 'root')

    def test_numeric_password_from_env_is_rejected(self):
        for value in ('0', '1.50', '123456', 'true'):
            with self.subTest(value=value):
                with mock.patch.dict(os.environ, {'MARIADB_BACKUP_MARIADB__PASSWORD': value}):
                    with self.assertRaises(ValidationError):
                        parse_config(self.temp_dir)

    def test_str_prefix_keeps_password(self):
        with mock.patch.dict(os.environ, {'MARIADB_BACKUP_MARIADB__PASSWORD': '@str 0'}):
            settings = parse_config(self.temp_dir)
        password = settings('mariadb.password')
        self.assertEqual(password, '0')
        client = Client(backup_dir=self.temp_dir, password=password)
        self.assertIn('--password=0', client.dump_command('shop'))

    def test_port_from_env(self):
        with mock.patch.dict(os.environ, {'MARIADB_BACKUP_MARIADB__PORT': '3307'}):
            settings = parse_config(self.temp_dir)
        self.assertEqual(settings('mariadb.port'), 3307)


if __name__ == '__main__':
    unittest.main()
