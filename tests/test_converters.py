"""
Tests for file name handling and the backup datatype
"""
import gzip
import shutil
import tempfile
import unittest
from datetime import datetime
from pathlib import Path

from mariadb_backup.utils.converters import (format_size, format_timestamp, is_gzip_file,
                                             parse_file_name, parse_timestamp)
from mariadb_backup.utils.datatypes import Backup


class TestTimestamps(unittest.TestCase):

    def test_format_timestamp(self):
        self.assertEqual(format_timestamp(datetime(2024, 3, 5, 7, 8, 9)), '20240305_070809')

    def test_parse_timestamp(self):
        self.assertEqual(parse_timestamp('20240305_070809'), datetime(2024, 3, 5, 7, 8, 9))

    def test_parse_invalid_timestamp(self):
        with self.assertRaises(ValueError):
            parse_timestamp('2024-03-05')


class TestParseFileName(unittest.TestCase):

    def test_compressed_database_backup(self):
        data = parse_file_name('shop_20240305_070809.sql.gz')
        self.assertEqual(data['database'], 'shop')
        self.assertEqual(data['timestamp'], datetime(2024, 3, 5, 7, 8, 9))
        self.assertTrue(data['compressed'])
        self.assertEqual(data['path'], Path('shop_20240305_070809.sql.gz'))

    def test_uncompressed_backup(self):
        data = parse_file_name('shop_20240305_070809.sql')
        self.assertFalse(data['compressed'])

    def test_database_name_with_underscores(self):
        data = parse_file_name('/var/backups/mariadb/my_shop_db_20240305_070809.sql.gz')
        self.assertEqual(data['database'], 'my_shop_db')

    def test_all_databases(self):
        data = parse_file_name('all_databases_20240305_070809.sql.gz')
        self.assertEqual(data['database'], 'all_databases')

    def test_invalid_names(self):
        for name in ('notes.txt', 'shop.sql.gz', 'shop_2024_0305.sql', 'shop_20240305_070809.tar.gz',
                     'shop_20241305_070809.sql.gz'):
            with self.subTest(name=name):
                with self.assertRaises(ValueError):
                    parse_file_name(name)


class TestBackup(unittest.TestCase):
    timestamp = datetime(2024, 3, 5, 7, 8, 9)

    def test_database_path(self):
        backup = Backup(database='shop', timestamp=self.timestamp)
        self.assertEqual(backup.path, Path('shop_20240305_070809.sql'))
        backup.compressed = True
        self.assertEqual(backup.path, Path('shop_20240305_070809.sql.gz'))

    def test_all_databases_path(self):
        backup = Backup(timestamp=self.timestamp, compressed=True)
        self.assertTrue(backup.all_databases)
        self.assertEqual(backup.path, Path('all_databases_20240305_070809.sql.gz'))

    def test_default_timestamp(self):
        before = datetime.now().replace(microsecond=0)
        backup = Backup(database='shop')
        self.assertGreaterEqual(backup.timestamp, before)

    def test_from_file_name(self):
        backup = Backup.from_file_name('all_databases_20240305_070809.sql.gz')
        self.assertIsNone(backup.database)
        self.assertTrue(backup.compressed)
        self.assertEqual(backup.timestamp, self.timestamp)

        backup = Backup.from_file_name('shop_20240305_070809.sql')
        self.assertEqual(backup.database, 'shop')
        self.assertFalse(backup.compressed)


class TestGzipDetection(unittest.TestCase):

    def setUp(self):
        self.temp_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_gzip_content(self):
        path = self.temp_dir / 'dump.sql'
        with gzip.open(path, 'wb') as f:
            f.write(b'SELECT 1;\n')
        self.assertTrue(is_gzip_file(path))

    def test_plain_content_with_gz_suffix(self):
        path = self.temp_dir / 'dump.sql.gz'
        path.write_text('SELECT 1;\n')
        self.assertFalse(is_gzip_file(path))

    def test_empty_file(self):
        path = self.temp_dir / 'empty.sql'
        path.touch()
        self.assertFalse(is_gzip_file(path))


class TestFormatSize(unittest.TestCase):

    def test_sizes(self):
        self.assertEqual(format_size(512), '512B')
        self.assertEqual(format_size(2048), '2.0K')
        self.assertEqual(format_size(5 * 1024 * 1024), '5.0M')


if __name__ == '__main__':
    unittest.main()
