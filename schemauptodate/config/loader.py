#  This file is part of Schema UpToDate.
#  Schema UpToDate is free software: you can redistribute it and/or modify
#  it under the terms of the GNU General Public License as published by
#  the Free Software Foundation, either version 3 of the License, or
#  (at your option) any later version.
#  Schema UpToDate is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#  You should have received a copy of the GNU General Public License
#  along with Schema UpToDate.  If not, see <http://www.gnu.org/licenses/>.

"""
Configuration loader for Schema UpToDate.

Loads and saves configuration from INI files:

    [Database]
    dbfile = /var/lib/app/app.db
    steps = app.schema:registry

    [Schema]
    auto_update = 1
    transactions = 1
    version_table = schema_version

    [Logging]
    logdir = /var/log/app
    loglevel = 1
"""

import configparser
import os
from typing import Any, Optional

from schemauptodate.config.settings import (
    Configuration,
    ConfigError,
    DEFAULT_VERSION_TABLE,
)

SECTIONS = ('Database', 'Schema', 'Logging')


class ConfigLoader:
    """Loads and saves configuration from INI files."""

    def __init__(self, config_file: Optional[str] = None):
        """Initialize the config loader.

        Args:
            config_file: Path to the configuration file
        """
        self.config_file = config_file
        self._parser = configparser.ConfigParser()

    def load(self, config_file: Optional[str] = None) -> Configuration:
        """Load configuration from a file.

        A missing file yields the default configuration.

        Args:
            config_file: Path to config file (overrides constructor path)

        Returns:
            Validated Configuration object

        Raises:
            ConfigError: If the file cannot be read or holds invalid values
        """
        file_path = config_file or self.config_file
        if not file_path:
            raise ConfigError("No configuration file specified")

        config = Configuration()

        if os.path.isfile(file_path):
            try:
                self._parser.read(file_path)
            except configparser.Error as e:
                raise ConfigError("Failed to read config file: %s" % str(e)) from e

            self._load_database_settings(config)
            self._load_engine_settings(config)
            self._load_log_settings(config)

        config.validate()
        return config

    def save(self, config: Configuration, config_file: Optional[str] = None) -> None:
        """Save configuration to a file.

        Raises:
            ConfigError: If file cannot be written
        """
        file_path = config_file or self.config_file
        if not file_path:
            raise ConfigError("No configuration file specified")

        for section in SECTIONS:
            self._ensure_section(section)

        self._parser.set('Database', 'dbfile', config.database.dbfile)
        self._parser.set('Database', 'steps', config.database.steps)
        self._parser.set('Schema', 'auto_update', '1' if config.engine.auto_update else '0')
        self._parser.set('Schema', 'transactions', '1' if config.engine.transactions else '0')
        self._parser.set('Schema', 'version_table', config.engine.version_table_name)
        self._parser.set('Logging', 'logdir', config.logging.log_dir)
        self._parser.set('Logging', 'loglevel', str(config.logging.log_level))
        self._parser.set('Logging', 'logsize', str(config.logging.log_size))
        self._parser.set('Logging', 'logfiles', str(config.logging.log_files))

        try:
            with open(file_path, 'w') as f:
                self._parser.write(f)
        except OSError as e:
            raise ConfigError("Failed to write config file: %s" % str(e)) from e

    def _ensure_section(self, section: str) -> None:
        if not self._parser.has_section(section):
            self._parser.add_section(section)

    def _get_setting(self, section: str, key: str, default: Any = None) -> Any:
        """Get a raw setting from the parser."""
        if self._parser.has_option(section, key):
            return self._parser.get(section, key)
        return default

    def _get_int(self, section: str, key: str, default: int = 0) -> int:
        value = self._get_setting(section, key)
        if value is None or value == '':
            return default
        try:
            return int(value)
        except ValueError:
            raise ConfigError("[%s] %s must be an integer, not %r" % (section, key, value))

    def _get_bool(self, section: str, key: str, default: bool = False) -> bool:
        value = self._get_setting(section, key)
        if value is None or value == '':
            return default
        value = value.strip().lower()
        if value in ('1', 'true', 'yes', 'on'):
            return True
        if value in ('0', 'false', 'no', 'off'):
            return False
        raise ConfigError("[%s] %s must be a boolean, not %r" % (section, key, value))

    def _load_database_settings(self, config: Configuration) -> None:
        config.database.dbfile = self._get_setting('Database', 'dbfile', '') or ''
        config.database.steps = self._get_setting('Database', 'steps', '') or ''

    def _load_engine_settings(self, config: Configuration) -> None:
        config.engine.auto_update = self._get_bool('Schema', 'auto_update', True)
        config.engine.transactions = self._get_bool('Schema', 'transactions', True)
        config.engine.version_table_name = self._get_setting(
            'Schema', 'version_table', DEFAULT_VERSION_TABLE
        ) or DEFAULT_VERSION_TABLE

    def _load_log_settings(self, config: Configuration) -> None:
        config.logging.log_dir = self._get_setting('Logging', 'logdir', '') or ''
        config.logging.log_level = self._get_int('Logging', 'loglevel', 1)
        config.logging.log_size = self._get_int('Logging', 'logsize', 204800)
        config.logging.log_files = self._get_int('Logging', 'logfiles', 10)
