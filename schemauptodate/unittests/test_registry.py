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

"""Tests for migration steps and the registry."""

import unittest
from unittest.mock import Mock

from schemauptodate.schema.errors import RegistryError
from schemauptodate.schema.registry import (
    Migration,
    MigrationRegistry,
    Step,
    migration,
)


class TestMigration(unittest.TestCase):
    """Test cases for the Migration base class."""

    def setUp(self):
        """Set up test fixtures."""
        self.mock_db = Mock()
        self.mock_db.query = Mock(return_value=[])
        self.mock_db.match = Mock(return_value=None)
        self.mock_db.execute = Mock()
        self.mock_db.has_table = Mock(return_value=False)
        self.engine = Mock()
        self.engine.handle = self.mock_db

    def _migration(self):
        class TestMigration(Migration):
            version = 1

            def up(self):
                pass

        return TestMigration(self.engine)

    def test_migration_uses_engine_handle(self):
        """Migration should keep the engine and its handle."""
        m = self._migration()
        self.assertIs(m.engine, self.engine)
        self.assertIs(m.handle, self.mock_db)

    def test_migration_has_column_true(self):
        """has_column should return True when column exists."""
        self.mock_db.query.return_value = [
            (0, 'id', 'INTEGER', 0, None, 1),
            (1, 'name', 'TEXT', 0, None, 0),
        ]
        self.assertTrue(self._migration().has_column('test_table', 'name'))

    def test_migration_has_column_false(self):
        """has_column should return False when column doesn't exist."""
        self.mock_db.query.return_value = [
            (0, 'id', 'INTEGER', 0, None, 1),
        ]
        self.assertFalse(self._migration().has_column('test_table', 'name'))

    def test_migration_has_table(self):
        """has_table should ask the handle."""
        self.mock_db.has_table.return_value = True
        self.assertTrue(self._migration().has_table('test_table'))
        self.mock_db.has_table.assert_called_once_with('test_table')

    def test_migration_has_index(self):
        """has_index should look the index up in sqlite_master."""
        self.mock_db.match.return_value = {'name': 'idx'}
        self.assertTrue(self._migration().has_index('idx'))

    def test_migration_add_column_new(self):
        """add_column should add column when it doesn't exist."""
        self.mock_db.query.return_value = [(0, 'id', 'INTEGER', 0, None, 1)]

        result = self._migration().add_column('test_table', 'new_col', 'TEXT', default="''")

        self.assertTrue(result)
        self.mock_db.execute.assert_called_once()
        call_args = self.mock_db.execute.call_args[0][0]
        self.assertIn('ALTER TABLE "test_table" ADD COLUMN "new_col" TEXT DEFAULT \'\'', call_args)

    def test_migration_add_column_exists(self):
        """add_column should return False when column exists."""
        self.mock_db.query.return_value = [
            (0, 'id', 'INTEGER', 0, None, 1),
            (1, 'existing_col', 'TEXT', 0, None, 0),
        ]

        result = self._migration().add_column('test_table', 'existing_col', 'TEXT')

        self.assertFalse(result)
        self.mock_db.execute.assert_not_called()

    def test_migration_create_index(self):
        """create_index should build a default index name."""
        result = self._migration().create_index('books', ['author', 'title'], unique=True)

        self.assertTrue(result)
        sql = self.mock_db.execute.call_args[0][0]
        self.assertEqual(sql, 'CREATE UNIQUE INDEX "books_author_title_index" ON "books" ("author", "title")')

    def test_migration_create_index_exists(self):
        """create_index should skip an existing index."""
        self.mock_db.match.return_value = {'name': 'books_author_index'}

        self.assertFalse(self._migration().create_index('books', ['author']))
        self.mock_db.execute.assert_not_called()


class TestStep(unittest.TestCase):
    """Test cases for Step."""

    def test_run_passes_engine(self):
        """run should call the function with the engine."""
        func = Mock(return_value=None)
        engine = Mock()

        self.assertTrue(Step(1, func).run(engine))
        func.assert_called_once_with(engine)

    def test_run_false_is_failure(self):
        """run should report an explicit False return as failure."""
        self.assertFalse(Step(1, lambda engine: False).run(Mock()))

    def test_run_other_values_are_success(self):
        """run should treat any other return value as success."""
        self.assertTrue(Step(1, lambda engine: 0).run(Mock()))
        self.assertTrue(Step(1, lambda engine: True).run(Mock()))

    def test_run_migration_class(self):
        """run should instantiate a Migration with the engine and call up()."""
        seen = []

        class Recorder(Migration):
            def up(self):
                seen.append(self.engine)

        engine = Mock()
        self.assertTrue(Step(1, Recorder).run(engine))
        self.assertEqual(seen, [engine])

    def test_run_migration_sees_step_version(self):
        """A running Migration should know the version of its step."""
        seen = []

        class Recorder(Migration):
            def up(self):
                seen.append(self.version)

        Step(3, Recorder).run(Mock())
        self.assertEqual(seen, [3])
        self.assertEqual(Recorder.version, 0)

    def test_str(self):
        """str should show the version and description."""
        self.assertEqual(str(Step(3, Mock(), 'Add index')), 'v3: Add index')
        self.assertEqual(str(Step(4, Mock())), 'v4: No description')


class TestMigrationRegistry(unittest.TestCase):
    """Test cases for MigrationRegistry."""

    def test_empty_registry(self):
        """An empty registry has no versions."""
        registry = MigrationRegistry()
        self.assertEqual(len(registry), 0)
        self.assertEqual(registry.versions(), [])
        self.assertIsNone(registry.get(1))

    def test_add_numbers_by_position(self):
        """add should number steps 1..N in order."""
        registry = MigrationRegistry()
        first = registry.add(lambda engine: None, 'first')
        second = registry.add(lambda engine: None, 'second')

        self.assertEqual(first.version, 1)
        self.assertEqual(second.version, 2)
        self.assertEqual(registry.versions(), [1, 2])
        self.assertIs(registry.get(2), second)
        self.assertIsNone(registry.get(0))
        self.assertIsNone(registry.get(3))

    def test_add_description_from_docstring(self):
        """add should fall back to the first docstring line."""
        def create_books(engine):
            """Create books table.

            More text.
            """

        registry = MigrationRegistry()
        self.assertEqual(registry.add(create_books).description, 'Create books table.')

    def test_add_description_from_name(self):
        """add should fall back to the function name."""
        def create_books(engine):
            pass

        registry = MigrationRegistry()
        self.assertEqual(registry.add(create_books).description, 'create_books')

    def test_add_not_callable(self):
        """add should reject objects that cannot be invoked."""
        registry = MigrationRegistry()
        with self.assertRaises(RegistryError):
            registry.add('CREATE TABLE t (a)')

    def test_step_decorator(self):
        """step should register the function and return it unchanged."""
        registry = MigrationRegistry()

        @registry.step("Create table")
        def create(engine):
            pass

        self.assertTrue(callable(create))
        self.assertEqual(registry.get(1).func, create)
        self.assertEqual(registry.get(1).description, 'Create table')

    def test_register_assigns_version(self):
        """register should give an unnumbered Migration the next version."""
        registry = MigrationRegistry()
        registry.add(lambda engine: None)

        class AddColumn(Migration):
            def up(self):
                pass

        registry.register(AddColumn)
        self.assertEqual(registry.get(2).version, 2)
        # the class itself is left alone
        self.assertEqual(AddColumn.version, 0)
        self.assertIs(registry.get(2).func, AddColumn)
        self.assertEqual(registry.get(2).description, 'AddColumn')

    def test_register_matching_version(self):
        """register should accept a Migration declaring the next version."""
        class First(Migration):
            version = 1

            def up(self):
                pass

        registry = MigrationRegistry()
        registry.register(First)
        self.assertEqual(registry.versions(), [1])

    def test_register_gap_version(self):
        """register should raise for a version that leaves a gap."""
        class Third(Migration):
            version = 3

            def up(self):
                pass

        registry = MigrationRegistry()
        with self.assertRaises(RegistryError):
            registry.register(Third)

    def test_register_duplicate_version(self):
        """register should raise for a version already taken."""
        class Migration1(Migration):
            version = 1

            def up(self):
                pass

        class Migration2(Migration):
            version = 1

            def up(self):
                pass

        registry = MigrationRegistry()
        registry.register(Migration1)
        with self.assertRaises(RegistryError):
            registry.register(Migration2)

    def test_register_subclass_of_registered(self):
        """A subclass should not inherit its parent's position."""
        class CreateBooks(Migration):
            description = 'Create books table'

            def up(self):
                pass

        class CreateAuthors(CreateBooks):
            def up(self):
                pass

        registry = MigrationRegistry()
        registry.register(CreateBooks)
        registry.register(CreateAuthors)

        self.assertEqual(registry.versions(), [1, 2])
        self.assertIs(registry.get(2).func, CreateAuthors)
        self.assertEqual(registry.get(2).description, 'CreateAuthors')

    def test_register_subclass_of_declared(self):
        """A version declared on a parent class is not checked for a subclass."""
        class First(Migration):
            version = 1

            def up(self):
                pass

        class Later(First):
            pass

        registry = MigrationRegistry([lambda engine: None, lambda engine: None])
        registry.register(Later)
        self.assertEqual(registry.get(3).func, Later)

    def test_register_in_two_registries(self):
        """One class may sit at different positions in separate registries."""
        class Shared(Migration):
            def up(self):
                pass

        first = MigrationRegistry([Shared])
        second = MigrationRegistry([lambda engine: None, Shared])

        self.assertIs(first.get(1).func, Shared)
        self.assertIs(second.get(2).func, Shared)

    def test_register_non_migration(self):
        """register should reject plain classes."""
        registry = MigrationRegistry()
        with self.assertRaises(RegistryError):
            registry.register(object)

    def test_from_steps_wraps_list(self):
        """from_steps should accept functions and Migration classes."""
        class Second(Migration):
            def up(self):
                pass

        registry = MigrationRegistry.from_steps([lambda engine: None, Second])
        self.assertEqual(len(registry), 2)
        self.assertIs(registry.get(2).func, Second)

    def test_from_steps_passes_registry_through(self):
        """from_steps should return an existing registry unchanged."""
        registry = MigrationRegistry()
        self.assertIs(MigrationRegistry.from_steps(registry), registry)

    def test_iteration_and_clear(self):
        """Iteration should follow version order; clear should empty it."""
        registry = MigrationRegistry([lambda engine: None, lambda engine: None])
        self.assertEqual([step.version for step in registry], [1, 2])
        self.assertEqual(registry[0].version, 1)

        registry.clear()
        self.assertEqual(len(registry), 0)


class TestMigrationDecorator(unittest.TestCase):
    """Test cases for the @migration decorator."""

    def test_migration_decorator(self):
        """@migration decorator should set description and register."""
        registry = MigrationRegistry()

        @migration(registry, "Test migration")
        class TestMigration(Migration):
            def up(self):
                pass

        self.assertEqual(registry.get(1).version, 1)
        self.assertEqual(TestMigration.description, "Test migration")
        self.assertIs(registry.get(1).func, TestMigration)
        self.assertEqual(registry.get(1).description, "Test migration")


if __name__ == '__main__':
    unittest.main()
