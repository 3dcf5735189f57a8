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
Configuration module for Schema UpToDate.

This module provides type-safe configuration management.
"""

from schemauptodate.config.settings import (
    Configuration,
    EngineSettings,
    DatabaseSettings,
    LogSettings,
    ConfigError,
    DEFAULT_VERSION_TABLE,
)
from schemauptodate.config.loader import ConfigLoader

__all__ = [
    'Configuration',
    'EngineSettings',
    'DatabaseSettings',
    'LogSettings',
    'ConfigLoader',
    'ConfigError',
    'DEFAULT_VERSION_TABLE',
]
