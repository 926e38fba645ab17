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
Logging config test.
'''
from logging import getLevelName
from os import environ
from os.path import join
from tempfile import TemporaryDirectory
from unittest import TestCase, main
from unittest.mock import patch

from ..logging_config import (LOGGING_CONFIG_ENV, VERBOSE,
                              load_logging_config, logging_config_path)


class LoggingConfigTest(TestCase):

    def test_verbose_level(self) -> None:
        self.assertEqual('VERBOSE', getLevelName(VERBOSE))

    def test_no_config(self) -> None:
        with TemporaryDirectory() as home, \
             patch.dict(environ, {'HOME': home}):
            environ.pop(LOGGING_CONFIG_ENV, None)
            self.assertIsNone(logging_config_path())
            self.assertIsNone(load_logging_config())

    def test_home_config(self) -> None:
        with TemporaryDirectory() as home, \
             patch.dict(environ, {'HOME': home}):
            environ.pop(LOGGING_CONFIG_ENV, None)
            path = join(home, 'logging.config')
            with open(path, 'w') as file:
                file.write('[loggers]\n')
            self.assertEqual(path, logging_config_path())

    def test_env_config(self) -> None:
        path = '/etc/streamlets.config'
        with patch.dict(environ, {LOGGING_CONFIG_ENV: path}):
            self.assertEqual(path, logging_config_path())

    def test_missing_env_config_is_an_error(self) -> None:
        with TemporaryDirectory() as directory, \
             patch.dict(environ, {LOGGING_CONFIG_ENV: join(directory, 'x')}):
            with self.assertRaises(FileNotFoundError):
                load_logging_config()


if __name__ == "__main__":
    main()
