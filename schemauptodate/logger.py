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

import inspect
import logging
import os
import threading
import time
from logging import handlers

import schemauptodate

LOGGER_NAME = 'schemauptodate'


# Rotating log handler, the console handler is optional
class RotatingLogger(object):

    def __init__(self, filename):

        self.filename = filename
        self.filehandler = None
        self.consolehandler = None

    def stopLogger(self):
        lg = logging.getLogger(LOGGER_NAME)
        if self.filehandler:
            lg.removeHandler(self.filehandler)
            self.filehandler.close()
            self.filehandler = None
        if self.consolehandler:
            lg.removeHandler(self.consolehandler)
            self.consolehandler = None

    def initLogger(self, log_dir='', loglevel=1, log_size=204800, log_files=10):

        self.stopLogger()

        lg = logging.getLogger(LOGGER_NAME)
        lg.setLevel(logging.DEBUG)

        if log_dir:
            if not os.path.isdir(log_dir):
                os.makedirs(log_dir, exist_ok=True)

            filehandler = handlers.RotatingFileHandler(
                os.path.join(log_dir, self.filename),
                maxBytes=log_size,
                backupCount=log_files)

            filehandler.setLevel(logging.DEBUG)

            fileformatter = logging.Formatter('%(asctime)s - %(levelname)-7s :: %(message)s', '%d-%b-%Y %H:%M:%S')

            filehandler.setFormatter(fileformatter)
            lg.addHandler(filehandler)
            self.filehandler = filehandler

        if loglevel:
            consolehandler = logging.StreamHandler()
            if loglevel == 1:
                consolehandler.setLevel(logging.INFO)
            if loglevel >= 2:
                consolehandler.setLevel(logging.DEBUG)
            consoleformatter = logging.Formatter('%(asctime)s - %(levelname)s :: %(message)s', '%d-%b-%Y %H:%M:%S')
            consolehandler.setFormatter(consoleformatter)
            lg.addHandler(consolehandler)
            self.consolehandler = consolehandler

    @staticmethod
    def log(message, level):

        logger = logging.getLogger(LOGGER_NAME)

        threadname = threading.current_thread().name

        # Get the frame data of the method that made the original logger call
        stack = inspect.stack()
        if len(stack) > 2:
            frame = inspect.getframeinfo(stack[2][0])
            program = os.path.basename(frame.filename)
            method = frame.function
            lineno = frame.lineno
        else:
            program = ""
            method = ""
            lineno = ""

        if level != 'DEBUG' or schemauptodate.LOGLEVEL >= 2:
            # Limit the size of the "in-memory" log
            schemauptodate.LOGLIST.insert(0, (time.strftime("%Y-%m-%d %H:%M:%S"), level, threadname,
                                              program, method, lineno, message))
            if len(schemauptodate.LOGLIST) > schemauptodate.LOGLIMIT:
                del schemauptodate.LOGLIST[-1]

        message = "%s : %s:%s:%s : %s" % (threadname, program, method, lineno, message)

        if level == 'DEBUG':
            logger.debug(message)
        elif level == 'INFO':
            logger.info(message)
        elif level == 'WARNING':
            logger.warning(message)
        else:
            logger.error(message)


schemauptodate_log = RotatingLogger('schemauptodate.log')


def debug(message):
    if schemauptodate.LOGLEVEL > 1:
        schemauptodate_log.log(message, level='DEBUG')


def info(message):
    if schemauptodate.LOGLEVEL > 0:
        schemauptodate_log.log(message, level='INFO')


def warn(message):
    schemauptodate_log.log(message, level='WARNING')


def error(message):
    schemauptodate_log.log(message, level='ERROR')
