#  This file is part of Schema UpToDate.
#
#  Schema UpToDate is free software: you can redistribute it and/or modify
#  it under the terms of the GNU General Public License as published by
#  the Free Software Foundation, either version 3 of the License, or
#  (at your option) any later version.
#
#  Schema UpToDate is distributed in the hope that it will be useful,
#  but WITHOUT ANY WARRANTY; without even the implied warranty of
#  MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
#  GNU General Public License for more details.
#
#  You should have received a copy of the GNU General Public License
#  along with Schema UpToDate.  If not, see <http://www.gnu.org/licenses/>.

"""
Storage handles.

The migration engine only talks to the store through the StorageHandle
interface. DBConnection is the SQLite implementation.
"""

import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from schemauptodate import logger
from schemauptodate.schema.errors import StorageError

db_lock = threading.RLock()

# statements outside a unit of work are retried on these
RETRY_ERRORS = ("database is locked", "unable to open database file")
MAX_ATTEMPTS = 5


class StorageHandle(ABC):
    """Connection capability consumed by the migration engine.

    Every method raises StorageError with the driver's detail string
    when the underlying operation fails.
    """

    @abstractmethod
    def execute(self, statement: str, args: Optional[Sequence[Any]] = None) -> Any:
        """Execute a statement with positional parameters."""
        pass

    @abstractmethod
    def query(self, statement: str, args: Optional[Sequence[Any]] = None) -> List[Any]:
        """Run a read query and return all rows."""
        pass

    @abstractmethod
    def has_table(self, name: str) -> bool:
        """Return True if a table called name exists."""
        pass

    @abstractmethod
    def begin(self) -> None:
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass

    @property
    @abstractmethod
    def in_transaction(self) -> bool:
        pass

    def match(self, statement: str, args: Optional[Sequence[Any]] = None) -> Optional[Any]:
        """Run a read query and return the first row, or None."""
        rows = self.query(statement, args)
        if not rows:
            return None
        return rows[0]


class DBConnection(StorageHandle):
    def __init__(self, dbfile: str, timeout: float = 20):
        self.dbfile = dbfile
        try:
            # autocommit, units of work are opened explicitly with begin()
            self.connection = sqlite3.connect(dbfile, timeout, isolation_level=None)
            if dbfile != ':memory:':
                self.connection.execute("PRAGMA journal_mode = WAL")
                # sync less often as using WAL mode
                self.connection.execute("PRAGMA synchronous = NORMAL")
            self.connection.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error as e:
            logger.error('Unable to open database %s: %s' % (dbfile, e))
            raise StorageError(str(e)) from e
        self.connection.row_factory = sqlite3.Row

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def close(self) -> None:
        with db_lock:
            self.connection.close()

    @property
    def in_transaction(self) -> bool:
        return self.connection.in_transaction

    # wrapper function with lock
    def execute(self, statement, args=None):
        if not statement:
            return None
        with db_lock:
            return self._action(statement, args)

    # do not use directly, use through execute() or query() which add lock
    def _action(self, statement, args=None):
        attempt = 0

        while True:
            try:
                if args is None:
                    return self.connection.execute(statement)
                return self.connection.execute(statement, args)

            except sqlite3.OperationalError as e:
                msg = str(e)
                attempt += 1
                # a retry inside a unit of work would run outside its snapshot
                if any(err in msg for err in RETRY_ERRORS) and not self.in_transaction \
                        and attempt < MAX_ATTEMPTS:
                    logger.warn('Database Error: %s' % e)
                    logger.debug("Attempted db query: [%s]" % statement)
                    time.sleep(1)
                    continue
                logger.error('Database error: %s' % e)
                logger.error("Failed query: [%s]" % statement)
                raise StorageError(msg) from e

            except sqlite3.IntegrityError as e:
                logger.error('Database Integrity error: %s' % e)
                logger.error("Failed query: [%s]" % statement)
                logger.error("Failed args: [%s]" % str(args))
                raise StorageError(str(e)) from e

            except sqlite3.Error as e:
                logger.error('Fatal error executing %s :: %s' % (statement, e))
                raise StorageError(str(e)) from e

    def query(self, statement, args=None):
        with db_lock:
            cursor = self._action(statement, args)
            try:
                return cursor.fetchall()
            except sqlite3.Error as e:
                logger.error('Fatal error reading %s :: %s' % (statement, e))
                raise StorageError(str(e)) from e

    def has_table(self, name):
        result = self.match(
            "SELECT name FROM sqlite_master WHERE type='table' AND name=?",
            (name,)
        )
        return result is not None

    def begin(self):
        self._unit_of_work('BEGIN')

    def commit(self):
        self._unit_of_work('COMMIT')

    def rollback(self):
        if not self.in_transaction:
            logger.debug("Rollback requested with no active transaction")
            return
        self._unit_of_work('ROLLBACK')

    def _unit_of_work(self, statement):
        with db_lock:
            try:
                self.connection.execute(statement)
            except sqlite3.Error as e:
                logger.error('Database error on %s: %s' % (statement, e))
                raise StorageError(str(e)) from e
