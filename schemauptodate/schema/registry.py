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
Migration steps and the registry that orders them.

A step is either a plain callable taking the engine:

    registry = MigrationRegistry()

    @registry.step("Create authors table")
    def create_authors(engine):
        engine.handle.execute('CREATE TABLE authors (id INTEGER, name TEXT)')

or a Migration subclass whose up() does the work:

    @migration(registry, "Add email column")
    class AddEmail(Migration):
        def up(self):
            self.add_column('authors', 'email', 'TEXT')

The position of a step in the registry is its version: the first step
brings the store to version 1, the second to version 2 and so on.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Type

import schemauptodate
from schemauptodate import logger
from schemauptodate.schema.errors import RegistryError
from schemauptodate.schema.version_store import quote_identifier


class Migration(ABC):
    """Base class for class-based migration steps.

    Subclasses implement up(). The helpers below speak SQLite.

    Attributes:
        version: The version this migration brings the store to. Left
            at 0 it is taken from the registry position when the
            migration runs. A version inherited from a parent class
            is ignored.
        description: A brief description of what this migration does
    """

    version: int = 0
    description: str = ""

    def __init__(self, engine: Any):
        """Initialize the migration with the engine running it.

        Args:
            engine: MigrationEngine instance
        """
        self.engine = engine
        self.handle = engine.handle

    def log(self, message: str) -> None:
        """Log a migration message."""
        logger.debug("v%d: %s" % (self.version, message))
        schemauptodate.UPDATE_MSG = message

    def has_column(self, table: str, column: str) -> bool:
        """Check if a column exists in a table."""
        columns = self.handle.query('PRAGMA table_info(%s)' % quote_identifier(table))
        for item in columns:
            if item[1] == column:
                return True
        return False

    def has_table(self, table: str) -> bool:
        """Check if a table exists."""
        return self.handle.has_table(table)

    def has_index(self, index_name: str) -> bool:
        """Check if an index exists."""
        result = self.handle.match(
            "SELECT name FROM sqlite_master WHERE type='index' AND name=?",
            (index_name,)
        )
        return result is not None

    def add_column(self, table: str, column: str, column_type: str,
                   default: Optional[str] = None) -> bool:
        """Add a column to a table if it doesn't exist.

        Args:
            table: Table name
            column: Column name
            column_type: Column type (TEXT, INTEGER, etc.)
            default: Optional default value, as SQL

        Returns:
            True if column was added, False if it already exists
        """
        if self.has_column(table, column):
            return False

        sql = 'ALTER TABLE %s ADD COLUMN %s %s' % (
            quote_identifier(table), quote_identifier(column), column_type
        )
        if default is not None:
            sql += ' DEFAULT %s' % default

        self.handle.execute(sql)
        self.log("Added column %s to table %s" % (column, table))
        return True

    def create_index(self, table: str, columns: List[str],
                     unique: bool = False, index_name: Optional[str] = None) -> bool:
        """Create an index on a table.

        Returns:
            True if index was created, False if it already exists
        """
        if not index_name:
            index_name = '%s_%s_index' % (table, '_'.join(columns))

        if self.has_index(index_name):
            return False

        unique_str = 'UNIQUE ' if unique else ''
        column_str = ', '.join(columns)
        sql = 'CREATE %sINDEX %s ON %s (%s)' % (
            unique_str, quote_identifier(index_name), quote_identifier(table),
            ', '.join(quote_identifier(column) for column in columns)
        )

        self.handle.execute(sql)
        self.log("Created index %s on %s(%s)" % (index_name, table, column_str))
        return True

    @abstractmethod
    def up(self) -> Optional[bool]:
        """Apply the migration.

        Raise, or return False, to signal failure.
        """
        pass


def is_migration_class(obj: Any) -> bool:
    return isinstance(obj, type) and issubclass(obj, Migration)


@dataclass(frozen=True)
class Step:
    """One registered unit of work."""
    version: int
    func: Callable[..., Any]
    description: str = ""

    def run(self, engine: Any) -> bool:
        """Invoke the step with the engine.

        Returns:
            False if the step explicitly reported failure, True otherwise
        """
        if is_migration_class(self.func):
            instance = self.func(engine)
            instance.version = self.version
            result = instance.up()
        else:
            result = self.func(engine)
        return result is not False

    def __str__(self) -> str:
        return "v%d: %s" % (self.version, self.description or 'No description')


class MigrationRegistry:
    """Ordered list of migration steps.

    The number of registered steps is the latest schema version.
    """

    def __init__(self, steps: Optional[Iterable[Any]] = None):
        self._steps: List[Step] = []
        for step in steps or []:
            self.add(step)

    @classmethod
    def from_steps(cls, steps: Any) -> 'MigrationRegistry':
        """Wrap a plain sequence of steps, registries pass through."""
        if isinstance(steps, MigrationRegistry):
            return steps
        return cls(steps)

    def add(self, func: Any, description: str = "") -> Step:
        """Append a step.

        Args:
            func: Callable taking the engine, or a Migration subclass
            description: Description of the step

        Returns:
            The registered Step

        Raises:
            RegistryError: If func cannot be invoked as a step
        """
        if is_migration_class(func):
            self.register(func)
            return self._steps[-1]
        if not callable(func):
            raise RegistryError(
                "Migration step %d is not callable: %r" % (len(self._steps) + 1, func)
            )
        if not description:
            doc = (getattr(func, '__doc__', None) or '').strip()
            description = doc.splitlines()[0] if doc else getattr(func, '__name__', '')
        step = Step(len(self._steps) + 1, func, description)
        self._steps.append(step)
        return step

    def step(self, description: str = "") -> Callable[[Callable], Callable]:
        """Decorator form of add().

        Usage:
            @registry.step("Create authors table")
            def create_authors(engine):
                ...
        """
        def decorator(func: Callable) -> Callable:
            self.add(func, description)
            return func
        return decorator

    def register(self, migration_class: Type[Migration]) -> Type[Migration]:
        """Append a Migration subclass.

        Raises:
            RegistryError: If the class declares a version other than
                the next free position
        """
        if not is_migration_class(migration_class):
            raise RegistryError("%r is not a Migration subclass" % (migration_class,))

        next_version = len(self._steps) + 1
        # inherited values belong to the parent's registration
        version = migration_class.__dict__.get('version', 0)
        if version and version != next_version:
            raise RegistryError(
                "Migration %s declares version %d but would be registered as version %d" %
                (migration_class.__name__, version, next_version)
            )
        self._steps.append(Step(
            next_version, migration_class,
            migration_class.__dict__.get('description') or migration_class.__name__
        ))
        return migration_class

    def get(self, version: int) -> Optional[Step]:
        """Get the step for version, or None if there is none."""
        if 1 <= version <= len(self._steps):
            return self._steps[version - 1]
        return None

    def versions(self) -> List[int]:
        return [step.version for step in self._steps]

    def clear(self) -> None:
        """Remove every step. Primarily for testing purposes."""
        self._steps = []

    def __len__(self) -> int:
        return len(self._steps)

    def __iter__(self) -> Iterator[Step]:
        return iter(self._steps)

    def __getitem__(self, index: int) -> Step:
        return self._steps[index]


# Decorator for registering migrations
def migration(registry: MigrationRegistry, description: str = "") -> Callable[[Type[Migration]], Type[Migration]]:
    """Decorator to register a Migration subclass.

    Usage:
        @migration(registry, "Add audiobook chapters table")
        class AddAudiobookChapters(Migration):
            ...
    """
    def decorator(cls: Type[Migration]) -> Type[Migration]:
        if description:
            cls.description = description
        return registry.register(cls)
    return decorator
