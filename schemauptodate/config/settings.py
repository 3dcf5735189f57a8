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
Type-safe configuration settings for Schema UpToDate.

Each section is a dataclass with validated defaults.
"""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict

DEFAULT_VERSION_TABLE = 'schema_version'


class ConfigError(Exception):
    """Exception raised for configuration errors."""
    pass


@dataclass
class EngineSettings:
    """Migration engine settings."""
    # run ensure_up_to_date() when the engine is constructed
    auto_update: bool = True
    # wrap every step in a unit of work
    transactions: bool = True
    version_table_name: str = DEFAULT_VERSION_TABLE

    def validate(self) -> None:
        """Validate engine settings."""
        if not isinstance(self.auto_update, bool):
            raise ConfigError("auto_update must be a boolean")
        if not isinstance(self.transactions, bool):
            raise ConfigError("transactions must be a boolean")
        if not isinstance(self.version_table_name, str) or not self.version_table_name.strip():
            raise ConfigError("version_table_name must be a non-empty string")
        if '\x00' in self.version_table_name:
            raise ConfigError("version_table_name must not contain NUL characters")


@dataclass
class DatabaseSettings:
    """Database location and migration steps."""
    dbfile: str = ''
    # import reference to the steps, as 'package.module:attribute'
    steps: str = ''

    def validate(self) -> None:
        """Validate database settings."""
        if self.steps and ':' not in self.steps:
            raise ConfigError("steps must look like 'package.module:attribute'")


@dataclass
class LogSettings:
    """Logging settings."""
    log_dir: str = ''
    log_level: int = 1
    log_size: int = 204800
    log_files: int = 10

    def validate(self) -> None:
        """Validate logging settings."""
        if self.log_level < 0 or self.log_level > 2:
            raise ConfigError("Log level must be between 0 and 2")
        if self.log_size < 1:
            raise ConfigError("Log size must be positive")
        if self.log_files < 0:
            raise ConfigError("Log file count must not be negative")


@dataclass
class Configuration:
    """Main configuration container.

    This class aggregates all configuration sections.
    """
    engine: EngineSettings = field(default_factory=EngineSettings)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    logging: LogSettings = field(default_factory=LogSettings)

    def validate(self) -> None:
        """Validate all configuration settings.

        Raises:
            ConfigError: If any setting is invalid
        """
        self.engine.validate()
        self.database.validate()
        self.logging.validate()

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a nested dictionary."""
        return asdict(self)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by its flat key.

        Args:
            key: The configuration key (e.g., 'AUTO_UPDATE', 'LOGDIR')
            default: Default value if key not found

        Returns:
            The configuration value
        """
        key_mapping = self._get_key_mapping()
        if key.upper() in key_mapping:
            section, attr = key_mapping[key.upper()]
            section_obj = getattr(self, section, None)
            if section_obj:
                return getattr(section_obj, attr, default)
        return default

    def set(self, key: str, value: Any) -> None:
        """Set a configuration value by its flat key.

        Raises:
            ConfigError: If key is not valid
        """
        key_mapping = self._get_key_mapping()
        if key.upper() in key_mapping:
            section, attr = key_mapping[key.upper()]
            setattr(getattr(self, section), attr, value)
        else:
            raise ConfigError("Unknown configuration key: %s" % key)

    @staticmethod
    def _get_key_mapping() -> Dict[str, tuple]:
        return {
            'AUTO_UPDATE': ('engine', 'auto_update'),
            'TRANSACTIONS': ('engine', 'transactions'),
            'VERSION_TABLE': ('engine', 'version_table_name'),

            'DBFILE': ('database', 'dbfile'),
            'STEPS': ('database', 'steps'),

            'LOGDIR': ('logging', 'log_dir'),
            'LOGLEVEL': ('logging', 'log_level'),
            'LOGSIZE': ('logging', 'log_size'),
            'LOGFILES': ('logging', 'log_files'),
        }
