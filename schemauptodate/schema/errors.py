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

"""Exception hierarchy for Schema UpToDate."""

from typing import Optional


class UpToDateError(Exception):
    """Base for all Schema UpToDate errors."""
    pass


class StorageError(UpToDateError):
    """A storage handle operation failed.

    Raised for failed statements, queries and begin/commit/rollback.

    Attributes:
        detail: The error detail reported by the storage driver
    """

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InitializationError(UpToDateError):
    """The version table could not be brought into a queryable state."""
    pass


class MigrationStepError(UpToDateError):
    """A migration step failed.

    Attributes:
        version: The version the failed step would have brought the store to
        cause: The underlying exception, or None for an explicit failure return
    """

    def __init__(self, version: int, message: str, cause: Optional[BaseException] = None):
        super().__init__("Migration v%d failed: %s" % (version, message))
        self.version = version
        self.cause = cause


class RegistryError(UpToDateError):
    """The migration registry is malformed."""
    pass
