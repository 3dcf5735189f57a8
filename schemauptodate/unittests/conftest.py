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
Pytest configuration and shared fixtures for Schema UpToDate tests.
"""

import os
import tempfile

import pytest

import schemauptodate
from schemauptodate.database import DBConnection


@pytest.fixture(autouse=True)
def setup_schemauptodate_globals():
    """Keep logging quiet and reset module globals around each test."""
    original_loglevel = schemauptodate.LOGLEVEL
    schemauptodate.LOGLEVEL = 0  # Disable info/debug logging during tests
    schemauptodate.LOGLIST = []
    schemauptodate.UPDATE_MSG = ''

    yield

    schemauptodate.LOGLEVEL = original_loglevel
    schemauptodate.LOGLIST = []
    schemauptodate.UPDATE_MSG = ''


@pytest.fixture
def temp_db():
    """
    Create a temporary SQLite database file for testing.

    Yields the path; the file and its WAL companions are removed afterwards.
    """
    fd, db_path = tempfile.mkstemp(suffix='.db', prefix='sut_test_')
    os.close(fd)

    yield db_path

    for suffix in ('', '-wal', '-shm'):
        if os.path.exists(db_path + suffix):
            os.unlink(db_path + suffix)


@pytest.fixture
def handle(temp_db):
    """A DBConnection on a temporary database file."""
    db = DBConnection(temp_db)
    yield db
    db.close()


@pytest.fixture
def memory_handle():
    """A DBConnection on an in-memory database."""
    db = DBConnection(':memory:')
    yield db
    db.close()
