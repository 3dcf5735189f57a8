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
Schema UpToDate keeps a database schema up to date by replaying an
ordered list of migration steps.
"""

__version__ = '0.5.0'

# Transients used by logger process
LOGLEVEL = 1  # 0 quiet, 1 info, 2 debug
LOGLIST = []
LOGLIMIT = 500

# Progress message of the running upgrade, empty when idle
UPDATE_MSG = ''
