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
Version metadata table.

The table is an append-only log of applied versions. The current
version is the highest version recorded, not the last row inserted.
"""

import time
from dataclasses import dataclass
from typing import Any, List, Optional

from schemauptodate import logger
from schemauptodate.config.settings import DEFAULT_VERSION_TABLE


@dataclass(frozen=True)
class VersionRecord:
    """One row of the version table."""
    version: int
    updated_at: str


def quote_identifier(name: str) -> str:
    """Quote a table name for use in a SQL statement."""
    return '"%s"' % name.replace('"', '""')


def now() -> str:
    return time.strftime("%Y-%m-%d %H:%M:%S", time.gmtime())


class VersionStore:
    """Reads and writes the version table through a storage handle."""

    def __init__(self, handle: Any, table_name: str = DEFAULT_VERSION_TABLE):
        """Initialize the version store.

        Args:
            handle: Storage handle the table lives in
            table_name: Name of the version table
        """
        self.handle = handle
        self._table_name = table_name

    @property
    def table_name(self) -> str:
        return self._table_name

    def current_version(self) -> Optional[int]:
        """Get the current version of the store.

        Returns:
            The highest recorded version, or None when the table is
            missing or empty (the store is uninitialized)
        """
        if not self.handle.has_table(self._table_name):
            return None

        row = self.handle.match(
            'SELECT MAX(version) FROM %s' % quote_identifier(self._table_name)
        )
        if row is None or row[0] is None:
            return None
        return int(row[0])

    def initialize(self) -> None:
        """Create the version table and record version 0.

        Raises:
            StorageError: If the table cannot be created or written
        """
        logger.debug("Creating version table %s" % self._table_name)
        self.handle.execute(
            'CREATE TABLE %s (version INTEGER, updated_at TIMESTAMP)' %
            quote_identifier(self._table_name)
        )
        self.record_version(0)

    def record_version(self, version: int) -> None:
        """Append a record for version.

        Raises:
            StorageError: If the insert fails
        """
        self.handle.execute(
            'INSERT INTO %s (version, updated_at) VALUES (?, ?)' %
            quote_identifier(self._table_name),
            (version, now())
        )
        logger.debug("Recorded schema version %d" % version)

    def history(self) -> List[VersionRecord]:
        """Get all version records, lowest version first."""
        if not self.handle.has_table(self._table_name):
            return []
        rows = self.handle.query(
            'SELECT version, updated_at FROM %s ORDER BY version, updated_at' %
            quote_identifier(self._table_name)
        )
        return [VersionRecord(int(row[0]), str(row[1])) for row in rows]
