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
Migration engine.

The engine brings a store from whatever version it holds up to the
latest version its registry knows about:

    handle = DBConnection('app.db')
    engine = MigrationEngine(handle, registry=registry)
    # handle now holds the schema you expect

Applications can also subclass the engine and declare their steps in
build_registry():

    class AppSchema(MigrationEngine):
        def build_registry(self):
            return MigrationRegistry([self.create_tables, self.add_index])

        def create_tables(self, engine):
            self.handle.execute('CREATE TABLE books (id INTEGER, title TEXT)')

Steps can be applied one at a time for testing, outside of
ensure_up_to_date():

    engine = MigrationEngine(handle, registry=registry, auto_update=False)
    engine.initialize_version_table()
    engine.apply_step(1)
    # inspect the store
    engine.apply_step(2)
"""

import dataclasses
import os
import time
from typing import Any, Dict, List, Optional

import schemauptodate
from schemauptodate import logger
from schemauptodate.config.settings import ConfigError, EngineSettings
from schemauptodate.schema.errors import (
    InitializationError,
    MigrationStepError,
    StorageError,
)
from schemauptodate.schema.registry import MigrationRegistry
from schemauptodate.schema.version_store import VersionRecord, VersionStore

UPGRADE_LOG = 'schema_upgrade.log'


class MigrationEngine:
    """Keeps a store's schema up to date.

    Determines the current version, initializes the version table when
    it is missing, and applies pending steps one at a time in ascending
    order. Progress is recorded after every step so an interrupted run
    resumes where it stopped.
    """

    def __init__(self, handle: Any, settings: Optional[EngineSettings] = None,
                 registry: Any = None, log_dir: Optional[str] = None, **options: Any):
        """Initialize the engine.

        When auto_update is enabled the store is brought up to date
        before this returns.

        Args:
            handle: Storage handle to migrate
            settings: Engine settings (default: EngineSettings())
            registry: MigrationRegistry or sequence of steps (default:
                build_registry())
            log_dir: Directory for the upgrade log file (default: none)
            **options: Overrides for settings fields, e.g. auto_update=False

        Raises:
            ConfigError: If the handle is missing or an option is invalid
            UpToDateError: If the automatic update fails
        """
        if handle is None:
            raise ConfigError("A storage handle is required")

        settings = settings or EngineSettings()
        if options:
            try:
                settings = dataclasses.replace(settings, **options)
            except TypeError as e:
                raise ConfigError("Unknown engine option: %s" % e) from e
        settings.validate()

        self._handle = handle
        self.settings = settings
        self.log_dir = log_dir or ''
        self._registry = MigrationRegistry.from_steps(registry) if registry is not None else None
        self._log_file = None
        self.version_store = VersionStore(handle, settings.version_table_name)

        # make sure the database schema is current
        if settings.auto_update:
            self.ensure_up_to_date()

    @property
    def handle(self) -> Any:
        """The storage handle statements are executed against."""
        return self._handle

    @property
    def updates(self) -> MigrationRegistry:
        """The registry of steps, built on first access."""
        if self._registry is None:
            self._registry = MigrationRegistry.from_steps(self.build_registry())
        return self._registry

    def build_registry(self) -> Any:
        """Declare the migration steps.

        Subclasses override this to return a MigrationRegistry or a
        sequence of steps. The default registry is empty.
        """
        return MigrationRegistry()

    def version_table_name(self) -> str:
        return self.settings.version_table_name

    def current_version(self) -> Optional[int]:
        """Get the current version of the store.

        Returns:
            The current version, or None if the store is uninitialized
        """
        return self.version_store.current_version()

    def latest_version(self) -> int:
        """Get the latest possible version, the number of steps."""
        return len(self.updates)

    def initialize_version_table(self) -> None:
        """Create the version table and record version 0."""
        self.version_store.initialize()

    def set_version(self, version: int) -> None:
        """Record that the store is now at version."""
        self.version_store.record_version(version)

    def pending_versions(self) -> List[int]:
        """Get the versions ensure_up_to_date() would apply, in order."""
        current = self.current_version()
        if current is None:
            current = 0
        return list(range(current + 1, self.latest_version() + 1))

    def needs_upgrade(self) -> bool:
        """Check if the store needs initializing or upgrading."""
        return self.current_version() is None or len(self.pending_versions()) > 0

    def history(self) -> List[VersionRecord]:
        return self.version_store.history()

    def status(self) -> Dict[str, Any]:
        """Get the current migration status.

        Returns:
            Dictionary with:
            - table: Name of the version table
            - current_version: Current version, None if uninitialized
            - latest_version: Latest possible version
            - pending: List of pending steps as {version, description}
            - history: List of version records as {version, updated_at}
        """
        pending = []
        for version in self.pending_versions():
            step = self.updates.get(version)
            pending.append({
                'version': version,
                'description': step.description if step else '',
            })
        return {
            'table': self.version_table_name(),
            'current_version': self.current_version(),
            'latest_version': self.latest_version(),
            'pending': pending,
            'history': [dataclasses.asdict(record) for record in self.history()],
        }

    def apply_step(self, version: int) -> None:
        """Apply the step that brings the store to version.

        With transactions enabled the step and its version record are
        committed together, or rolled back together on failure.

        Args:
            version: Version to bring the store to, 1..latest_version()

        Raises:
            MigrationStepError: If there is no such step or the step fails
            StorageError: If the version cannot be recorded or committed
        """
        step = self.updates.get(version)
        if step is None:
            raise MigrationStepError(
                version,
                "no migration step registered (latest version is %d)" % self.latest_version()
            )

        self._progress('Running migration %s' % step)
        transactions = self.settings.transactions

        if transactions:
            self.handle.begin()
        try:
            self._run_step(step)

            # save the version now in case we get interrupted before the next commit
            self.set_version(version)

            if transactions:
                self.handle.commit()
        except BaseException as e:
            self._log_error('Migration v%d failed: %s %s' % (version, type(e).__name__, e))
            if transactions:
                self._rollback("migration v%d" % version)
            raise

        self._progress('Migration v%d complete' % version)

    def _run_step(self, step: Any) -> None:
        try:
            succeeded = step.run(self)
        except Exception as e:
            raise MigrationStepError(step.version, '%s %s' % (type(e).__name__, e), e) from e
        if not succeeded:
            raise MigrationStepError(step.version, 'step reported failure')

    def _rollback(self, what: str) -> None:
        try:
            self.handle.rollback()
        except StorageError as e:
            # the original failure is what the caller needs to see
            self._log_error('Rollback of %s failed: %s' % (what, e.detail))
        else:
            logger.info('Rolled back %s' % what)

    def ensure_up_to_date(self) -> List[int]:
        """Bring the store up to the latest version.

        Initializes the version table if the store has none, then applies
        every step after the current version in ascending order, stopping
        at the first failure.

        Returns:
            List of versions applied by this call

        Raises:
            InitializationError: If the version table is unusable
            MigrationStepError: If a step fails
            StorageError: If the store fails
        """
        self._open_log()
        try:
            current = self.current_version()
            if current is None:
                self._progress('Initializing version table %s' % self.version_table_name())
                self._initialize()
                current = self.current_version()
                if current is None:
                    msg = 'Unable to initialize version table %s' % self.version_table_name()
                    self._log_error(msg)
                    raise InitializationError(msg)

            latest = self.latest_version()
            if current >= latest:
                logger.debug("Schema is up to date at version %d" % current)
                return []

            self._progress('Updating schema from version %d to %d' % (current, latest))

            # start with the next version, never redo the current one
            applied = []
            for version in range(current + 1, latest + 1):
                self.apply_step(version)
                applied.append(version)

            self._progress('Schema updated to version %d' % latest)
            return applied
        finally:
            schemauptodate.UPDATE_MSG = ''
            self._close_log()

    def _initialize(self) -> None:
        # the table and its version 0 row are created together or not at all
        transactions = self.settings.transactions
        if transactions:
            self.handle.begin()
        try:
            self.initialize_version_table()
            if transactions:
                self.handle.commit()
        except BaseException as e:
            self._log_error('Initializing version table %s failed: %s %s' %
                            (self.version_table_name(), type(e).__name__, e))
            if transactions:
                self._rollback('version table initialization')
            raise

    def _open_log(self) -> None:
        if self.log_dir and self._log_file is None:
            if not os.path.isdir(self.log_dir):
                os.makedirs(self.log_dir, exist_ok=True)
            self._log_file = open(os.path.join(self.log_dir, UPGRADE_LOG), 'a')

    def _close_log(self) -> None:
        if self._log_file:
            self._log_file.close()
            self._log_file = None

    def _write_log(self, message: str) -> None:
        if self._log_file:
            self._log_file.write("%s: %s\n" % (time.ctime(), message))
            self._log_file.flush()

    def _progress(self, message: str) -> None:
        schemauptodate.UPDATE_MSG = message
        logger.info(message)
        self._write_log(message)

    def _log_error(self, message: str) -> None:
        logger.error(message)
        self._write_log(message)
