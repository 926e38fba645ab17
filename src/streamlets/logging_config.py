# Copyright (C) 2025 Anthony (Lonnie) Hutchinson <chinacat@chinacat.org>
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.
'''
Load the logging config from a file.

The file is named by the STREAMLETS_LOGGING_CONFIG environment variable,
falling back to ~/logging.config. If neither exists logging is left as the
application configured it.
'''
from logging import DEBUG, addLevelName
from logging.config import fileConfig
from os import environ
from os.path import expanduser, isfile


__all__ = ['VERBOSE', 'LOGGING_CONFIG_ENV', 'logging_config_path',
           'load_logging_config']

# Define a custom log level.
VERBOSE = DEBUG - 5
addLevelName(VERBOSE, 'VERBOSE')

LOGGING_CONFIG_ENV = 'STREAMLETS_LOGGING_CONFIG'


def logging_config_path() -> str|None:
    '''the logging config file to load, None if there isn't one'''
    path = environ.get(LOGGING_CONFIG_ENV)
    if path:
        return path
    path = f"{expanduser('~')}/logging.config"
    return path if isfile(path) else None


def load_logging_config() -> str|None:
    '''
    Load the logging config file if there is one. Returns the path loaded.
    An explicitly configured path that can't be loaded is an error.
    '''
    path = logging_config_path()
    if path is not None:
        fileConfig(path, disable_existing_loggers=False)
    return path
