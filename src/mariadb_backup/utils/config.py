"""
config handling for dynaconf
"""
import os
import sys
from importlib.resources import files
from pathlib import Path

import click
from dynaconf import Dynaconf, Validator


def parse_config(config_folder: Path) -> Dynaconf:
    """
    Parse config with dynaconf.
    The packaged default.toml is installed to the folder if it is missing.
    config.toml in the same folder overrides the defaults.
    :param config_folder: folder with the config files
    :return: settings
    """
    default_config = config_folder / 'default.toml'
    if not os.path.isfile(default_config):
        try:
            config_folder.mkdir(parents=True, exist_ok=True)
            with open(default_config, 'w', encoding='utf-8') as f:
                f.write(files('mariadb_backup.data').joinpath('default.toml').read_text())
        except OSError as e:
            # logging is not configured at this point
            click.secho(f'Failed to create default config {default_config}. '
                        'Consider making the folder writeable for this user '
                        f'or choose a different path. Error: {e}', fg='red', file=sys.stderr)
            sys.exit(1)

    settings = Dynaconf(
        envvar_prefix='MARIADB_BACKUP',
        settings_files=['default.toml', 'config.toml'],
        root_path=str(config_folder),
        merge_enabled=True,
        validators=[
            Validator('backup.dir', must_exist=True),
            Validator('backup.retention_days', cast=int, default=30),
            Validator('logging.file', must_exist=True),
            Validator('logging.level', default='INFO'),
            # env values are parsed as toml: '0' would become an int. Use '@str 0'.
            Validator('mariadb.user', default='root', is_type_of=str),
            Validator('mariadb.password', default='', is_type_of=str),
            Validator('mariadb.host', default='', is_type_of=str),
            Validator('mariadb.port', cast=int, default=0),
            Validator('tools.dump', default='mysqldump', is_type_of=str),
            Validator('tools.client', default='mysql', is_type_of=str),
            Validator('tools.gzip', default='gzip', is_type_of=str),
        ]
    )
    settings.validators.validate()
    return settings
