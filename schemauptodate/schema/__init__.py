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
Schema versioning for Schema UpToDate.

This package provides the version table, the migration registry and
the engine that replays it.
"""

from schemauptodate.schema.errors import (
    UpToDateError,
    StorageError,
    InitializationError,
    MigrationStepError,
    RegistryError,
)
from schemauptodate.schema.version_store import VersionStore, VersionRecord
from schemauptodate.schema.registry import (
    Migration,
    MigrationRegistry,
    Step,
    migration,
)
from schemauptodate.schema.engine import MigrationEngine

__all__ = [
    'UpToDateError',
    'StorageError',
    'InitializationError',
    'MigrationStepError',
    'RegistryError',
    'VersionStore',
    'VersionRecord',
    'Migration',
    'MigrationRegistry',
    'Step',
    'migration',
    'MigrationEngine',
]
