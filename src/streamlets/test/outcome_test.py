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
Outcome test
'''
from unittest import TestCase, main

from ..error import InvalidOutcomeExpression, OutcomeFailed
from ..outcome import FINISHED, Failure, Outcome, Success, failure, success


class OutcomeTest(TestCase):

    def test_constructors(self) -> None:
        self.assertEqual(Success(1), success(1))
        self.assertEqual(Failure('e'), failure('e'))
        self.assertTrue(success(1).is_success)
        self.assertFalse(success(1).is_failure)
        self.assertTrue(failure('e').is_failure)
        self.assertEqual(Success(None), FINISHED)

    def test_exactly_one_tag(self) -> None:
        for outcome in (success(0), failure(0)):
            self.assertIsInstance(outcome, Outcome)
            self.assertNotEqual(outcome.is_success, outcome.is_failure)

    def test_immutable(self) -> None:
        outcome = success(1)
        with self.assertRaises(AttributeError):
            outcome.value = 2  # type: ignore[misc]

    def test_bool_not_supported(self) -> None:
        with self.assertRaises(InvalidOutcomeExpression):
            bool(success(0))
        with self.assertRaises(InvalidOutcomeExpression):
            if failure(''): ...

    def test_map(self) -> None:
        self.assertEqual(success(4), success(2).map(lambda x: x * 2))

    def test_map_does_not_call_func_on_failure(self) -> None:
        calls = 0
        def func(x: int) -> int:
            nonlocal calls
            calls += 1
            return x
        self.assertEqual(failure('e'), failure('e').map(func))
        self.assertEqual(0, calls)

    def test_map_propagates_exceptions(self) -> None:
        with self.assertRaises(ZeroDivisionError):
            success(1).map(lambda x: x / 0)

    def test_try_map(self) -> None:
        outcome = success(1).try_map(lambda x: x / 0)
        assert isinstance(outcome, Failure)
        self.assertIsInstance(outcome.error, ZeroDivisionError)
        self.assertEqual(success(0.5), success(1).try_map(lambda x: x / 2))
        self.assertEqual(failure('e'), failure('e').try_map(lambda x: x / 0))

    def test_then_returns_result_unwrapped(self) -> None:
        self.assertEqual(success(2), success(1).then(lambda x: success(x + 1)))
        self.assertEqual(success(2),
                         success(1).flat_map(lambda x: success(x + 1)))

    def test_then_must_return_outcome(self) -> None:
        with self.assertRaises(TypeError):
            success(1).then(lambda x: x)  # type: ignore[arg-type, return-value]

    def test_short_circuit(self) -> None:
        calls = 0
        def increment(x: int) -> int:
            nonlocal calls
            calls += 1
            return x + 1
        outcome = (success(3)
                   .then(lambda _: failure('e'))
                   .map(increment)
                   .then(lambda x: success(increment(x))))
        self.assertEqual(failure('e'), outcome)
        self.assertEqual(0, calls)

    def test_map_error(self) -> None:
        self.assertEqual(failure('E'), failure('e').map_error(str.upper))
        self.assertEqual(success(1), success(1).map_error(str.upper))

    def test_recover(self) -> None:
        self.assertEqual(success(1), failure('e').recover(lambda _: 1))
        self.assertEqual(success(2), success(2).recover(lambda _: 1))

    def test_recover_that_raises_stays_failure(self) -> None:
        error = ValueError('recovery failed')
        def recover(_: str) -> int:
            raise error
        self.assertEqual(failure(error), failure('e').recover(recover))

    def test_value_or(self) -> None:
        self.assertEqual(1, success(1).value_or(2))
        self.assertEqual(2, failure('e').value_or(2))

    def test_unwrap(self) -> None:
        self.assertEqual(1, success(1).unwrap())
        with self.assertRaises(OutcomeFailed) as context:
            failure('e').unwrap()
        self.assertEqual('e', context.exception.error)

        error = KeyError('k')
        with self.assertRaises(OutcomeFailed) as context:
            failure(error).unwrap()
        self.assertIs(error, context.exception.__cause__)

    def test_match(self) -> None:
        match success(1):
            case Success(value):
                self.assertEqual(1, value)
            case _:
                self.fail('Success did not match')
        match failure('e'):
            case Failure(error):
                self.assertEqual('e', error)
            case _:
                self.fail('Failure did not match')

    def test_str(self) -> None:
        self.assertEqual("Success(1)", str(success(1)))
        self.assertEqual("Failure('e')", str(failure('e')))


if __name__ == "__main__":
    main()
