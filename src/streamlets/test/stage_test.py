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
Stage test. Stages are exercised directly here, without a publisher.
'''
from typing import Any
from unittest import TestCase, main

from ..outcome import FINISHED, Failure
from ..stage import FilterStage, MapStage, PrefixStage, ReduceStage
from ..subscription import Delivery, Lifecycle
from .recorder import Recorder


def delivery(recorder: Recorder[Any]) -> Delivery[Any, Any]:
    return Delivery(recorder.value, recorder.complete)


class StageTest(TestCase):

    def test_creating_stage_calls_nothing(self) -> None:
        calls = []
        def record(x: int) -> int:
            calls.append(x)
            return x
        stage = MapStage(record)
        stage.wrap(delivery(Recorder()), Lifecycle('test'))
        self.assertEqual([], calls)

    def test_wrap(self) -> None:
        recorder = Recorder[int]()
        wrapped = MapStage(lambda x: x + 1).wrap(delivery(recorder),
                                                 Lifecycle('test'))
        wrapped.value(1)
        wrapped.value(2)
        wrapped.complete(FINISHED)
        self.assertEqual([2, 3], recorder.values)
        self.assertEqual(FINISHED, recorder.completion)

    def test_nothing_passes_after_completion(self) -> None:
        recorder = Recorder[int]()
        wrapped = FilterStage(bool).wrap(delivery(recorder), Lifecycle('test'))
        wrapped.value(1)
        wrapped.complete(Failure('e'))
        wrapped.value(2)
        wrapped.complete(FINISHED)
        self.assertEqual([1], recorder.values)
        self.assertEqual([Failure('e')], recorder.completions)

    def test_state_is_per_wrap(self) -> None:
        stage = ReduceStage(0, lambda a, b: a + b)
        first, second = Recorder[int](), Recorder[int]()
        first_delivery = stage.wrap(delivery(first), Lifecycle('first'))
        second_delivery = stage.wrap(delivery(second), Lifecycle('second'))
        for value in (1, 2, 3):
            first_delivery.value(value)
        second_delivery.value(10)
        first_delivery.complete(FINISHED)
        second_delivery.complete(FINISHED)
        self.assertEqual([6], first.values)
        self.assertEqual([10], second.values)

    def test_prefix_completes_once(self) -> None:
        recorder = Recorder[int]()
        wrapped = PrefixStage(2).wrap(delivery(recorder), Lifecycle('test'))
        for value in range(5):
            wrapped.value(value)
        wrapped.complete(FINISHED)
        self.assertEqual([0, 1], recorder.values)
        self.assertEqual([FINISHED], recorder.completions)

    def test_negative_prefix(self) -> None:
        with self.assertRaises(ValueError):
            PrefixStage(-1)

    def test_str(self) -> None:
        def double(x: int) -> int:
            return x * 2
        self.assertEqual('map(StageTest.test_str.<locals>.double)',
                         str(MapStage(double)))
        self.assertEqual('prefix(3)', str(PrefixStage(3)))


if __name__ == "__main__":
    main()
