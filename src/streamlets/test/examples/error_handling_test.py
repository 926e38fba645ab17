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
Errors travel down a chain as a Failure completion, where they can be
transformed, replaced or recovered from.
'''
from unittest import TestCase, main

from ... import (FINISHED, Failure, Outcome, Success, fail, from_iterable,
                 just)


class ParseError(Exception):
    pass


def parse(text: str) -> Outcome[int, ParseError]:
    try:
        return Success(int(text))
    except ValueError:
        return Failure(ParseError(text))


class ErrorHandlingTest(TestCase):

    def test_outcome_chain_short_circuits(self) -> None:
        calls: list[int] = []
        def half(value: int) -> Outcome[int, ParseError]:
            calls.append(value)
            return Success(value // 2)

        self.assertEqual(Success(2), parse('4').then(half))
        failed = parse('four').then(half).then(half)
        self.assertTrue(failed.is_failure)
        self.assertEqual([4], calls)
        self.assertEqual(-1, failed.map(lambda x: x + 1).value_or(-1))

    def test_failure_ends_stream(self) -> None:
        values: list[int] = []
        completions: list[object] = []
        (from_iterable(['1', '2', 'three', '4'])
         .flat_map(parse)
         .sink(values.append, completions.append))
        self.assertEqual([1, 2], values)
        self.assertEqual(1, len(completions))
        match completions[0]:
            case Failure(ParseError() as error):
                self.assertEqual(('three',), error.args)
            case other:
                self.fail(f'unexpected completion {other}')

    def test_replace_error(self) -> None:
        values: list[int] = []
        completions: list[object] = []
        (from_iterable(['1', 'two', '3'])
         .flat_map(parse)
         .replace_error(0)
         .sink(values.append, completions.append))
        self.assertEqual([1, 0], values)
        self.assertEqual([FINISHED], completions)

    def test_catch_error_falls_back(self) -> None:
        values: list[int] = []
        (from_iterable(['1', 'two'])
         .flat_map(parse)
         .catch_error(lambda _: from_iterable([98, 99]))
         .sink(values.append))
        self.assertEqual([1, 98, 99], values)

    def test_map_error(self) -> None:
        completions: list[object] = []
        (fail(ParseError('x'))
         .map_error(lambda error: str(error))
         .sink(None, completions.append))
        self.assertEqual([Failure('x')], completions)

    def test_recover(self) -> None:
        recovered = parse('x').recover(lambda _: 0)
        self.assertEqual(Success(0), recovered)
        values: list[int] = []
        just(recovered).map(lambda o: o.unwrap()).sink(values.append)
        self.assertEqual([0], values)


if __name__ == "__main__":
    main()
