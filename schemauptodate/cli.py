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
Command line front end.

    schema-uptodate --db app.db --steps app.schema:registry
    schema-uptodate --config schema.ini --status

Exit codes: 0 success, 1 migration failure, 2 configuration error.
"""

import importlib
import sys
from optparse import OptionParser

import schemauptodate
from schemauptodate import logger
from schemauptodate.config import ConfigLoader, Configuration, ConfigError
from schemauptodate.database import DBConnection
from schemauptodate.schema import MigrationEngine, MigrationRegistry, RegistryError, UpToDateError
from schemauptodate.schema.registry import is_migration_class

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_CONFIG = 2


def load_steps(reference):
    """Import the steps named by 'package.module:attribute'.

    The attribute may be a MigrationRegistry, a list or tuple of steps,
    or a zero-argument callable returning either.

    Raises:
        ConfigError: If the reference cannot be imported or does not
            name a valid list of steps
    """
    module_name, _, attr = reference.partition(':')
    if not module_name or not attr:
        raise ConfigError("steps must look like 'package.module:attribute', not %r" % reference)
    try:
        module = importlib.import_module(module_name)
    except Exception as e:
        # anything the module raises while loading is a broken reference
        raise ConfigError("Unable to import %s: %s %s" % (module_name, type(e).__name__, e)) from e

    obj = module
    for part in attr.split('.'):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise ConfigError("%s has no attribute %s" % (module_name, attr)) from e

    if is_migration_class(obj):
        raise ConfigError("%s is a single Migration, not a list of steps" % reference)
    if not isinstance(obj, (MigrationRegistry, list, tuple)) and callable(obj):
        try:
            obj = obj()
        except Exception as e:
            raise ConfigError("Building steps from %s failed: %s %s" %
                              (reference, type(e).__name__, e)) from e
    if not isinstance(obj, (MigrationRegistry, list, tuple)):
        raise ConfigError("%s does not name a registry or a list of steps" % reference)
    try:
        return MigrationRegistry.from_steps(obj)
    except RegistryError as e:
        raise ConfigError("Invalid steps in %s: %s" % (reference, e)) from e


def print_status(status, out=None):
    out = out or sys.stdout
    current = status['current_version']
    out.write("Version table: %s\n" % status['table'])
    out.write("Current version: %s\n" % ('uninitialized' if current is None else current))
    out.write("Latest version: %d\n" % status['latest_version'])
    if status['pending']:
        out.write("Pending migrations:\n")
        for item in status['pending']:
            out.write("  v%d: %s\n" % (item['version'], item['description']))
    else:
        out.write("Schema is up to date\n")
    if status['history']:
        out.write("History:\n")
        for record in status['history']:
            out.write("  v%d at %s\n" % (record['version'], record['updated_at']))


def build_parser():
    p = OptionParser(usage="%prog [options]", version="%prog " + schemauptodate.__version__)
    p.add_option('--db',
                 dest='dbfile', default=None,
                 help="Path to the SQLite database to update")
    p.add_option('--config',
                 dest='config', default=None,
                 help="Path to config.ini file")
    p.add_option('--steps',
                 dest='steps', default=None,
                 help="Migration steps as package.module:attribute")
    p.add_option('--table',
                 dest='table', default=None,
                 help="Name of the version table")
    p.add_option('--no-transactions', action="store_true",
                 dest='no_transactions', help="Don't wrap steps in transactions")
    p.add_option('--status', action="store_true",
                 dest='status', help="Show migration status and exit")
    p.add_option('-q', '--quiet', action="store_true",
                 dest='quiet', help="Don't log to console")
    p.add_option('--debug', action="store_true",
                 dest='debug', help="Show debuglog messages")
    p.add_option('--loglevel',
                 dest='loglevel', default=None, type='int',
                 help="Debug loglevel")
    p.add_option('--logdir',
                 dest='logdir', default=None,
                 help="Directory for log files")
    return p


def load_configuration(options):
    """Build the configuration from the config file and command line.

    Raises:
        ConfigError: If the configuration is incomplete or invalid
    """
    if options.config:
        config = ConfigLoader(options.config).load()
    else:
        config = Configuration()

    if options.dbfile:
        config.database.dbfile = options.dbfile
    if options.steps:
        config.database.steps = options.steps
    if options.table:
        config.engine.version_table_name = options.table
    if options.no_transactions:
        config.engine.transactions = False
    if options.logdir:
        config.logging.log_dir = options.logdir

    if options.loglevel is not None:
        config.logging.log_level = options.loglevel
    elif options.debug:
        config.logging.log_level = 2
    if options.quiet:
        config.logging.log_level = 0

    config.validate()
    if not config.database.dbfile:
        raise ConfigError("No database given, use --db or [Database] dbfile")
    return config


def main(args=None):
    options, _ = build_parser().parse_args(args)

    try:
        config = load_configuration(options)
        if config.database.steps:
            registry = load_steps(config.database.steps)
        else:
            registry = MigrationRegistry()
    except ConfigError as e:
        sys.stderr.write("Configuration error: %s\n" % e)
        return EXIT_CONFIG

    schemauptodate.LOGLEVEL = config.logging.log_level
    logger.schemauptodate_log.initLogger(
        log_dir=config.logging.log_dir,
        loglevel=config.logging.log_level,
        log_size=config.logging.log_size,
        log_files=config.logging.log_files,
    )

    try:
        with DBConnection(config.database.dbfile) as handle:
            engine = MigrationEngine(handle, config.engine, registry,
                                     log_dir=config.logging.log_dir, auto_update=False)
            if options.status:
                print_status(engine.status())
                return EXIT_OK

            applied = engine.ensure_up_to_date()
            if applied:
                logger.info("Applied %d migration(s), schema is at version %d" %
                            (len(applied), applied[-1]))
            else:
                logger.info("Schema is up to date")
    except UpToDateError as e:
        logger.error("Schema update failed: %s" % e)
        return EXIT_FAILED
    finally:
        logger.schemauptodate_log.stopLogger()

    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
