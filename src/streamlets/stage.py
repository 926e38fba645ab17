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
Stages are the transform steps a publisher chain is made of.

A stage does nothing when it is created. When a chain is subscribed to, each
stage is asked to wrap() the Delivery of its downstream neighbor, and the
Delivery it returns is handed to its upstream neighbor. The Delivery returned
by the stage closest to the source is the composed delivery function for the
subscription.

Any state a stage needs while delivering (counts, accumulators) is created in
wrap() so that each subscription gets its own.
'''
from __future__ import annotations

from abc import ABC, abstractmethod
from asyncio import TimerHandle
from collections.abc import Callable
from logging import Logger, getLogger
from typing import TYPE_CHECKING, Any

from .logging_config import VERBOSE
from .outcome import FINISHED, Completion, Failure, Success
from .scheduler import DeferredScheduler, Scheduler
from .subscription import Delivery, Lifecycle

if TYPE_CHECKING:
    from .publisher import Publisher


__all__ = ['Stage', 'MapStage', 'TryMapStage', 'FlatMapStage', 'FilterStage',
           'CompactMapStage', 'MapErrorStage', 'CatchErrorStage',
           'ReplaceErrorStage', 'PrefixStage', 'ReduceStage', 'ScanStage',
           'HandleEventsStage', 'ReceiveOnStage', 'ThrottleStage']


logger: Logger = getLogger('streamlets.stage')


class _Gate[T, E]:
    '''
    Sits between a stage and its downstream. Once a completion has passed
    through nothing else does.
    '''

    def __init__(self, downstream: Delivery[T, E]) -> None:
        self.downstream = downstream
        self.open = True

    def value(self, value: T) -> None:
        if self.open:
            self.downstream.value(value)

    def complete(self, completion: Completion[E]) -> None:
        if self.open:
            self.open = False
            self.downstream.complete(completion)


class Stage(ABC):
    '''
    A single transform step. Stages are immutable and only hold what they
    were created with.
    '''

    name: str = 'stage'

    def wrap[T, E](self,
                   downstream: Delivery[Any, Any],
                   lifecycle: Lifecycle) -> Delivery[T, E]:
        '''
        Compose this stage's transform with downstream. Once the stage has
        completed downstream, whether passing on an upstream completion or
        producing its own, further upstream signals are dropped.
        '''
        gate = _Gate(downstream)
        upstream = self._wrap(Delivery(gate.value, gate.complete), lifecycle)

        def value(value: T) -> None:
            if gate.open:
                upstream.value(value)

        def complete(completion: Completion[E]) -> None:
            if gate.open:
                upstream.complete(completion)
        return Delivery(value, complete)

    @abstractmethod
    def _wrap(self,
              downstream: Delivery[Any, Any],
              lifecycle: Lifecycle) -> Delivery[Any, Any]:
        '''return the Delivery that applies this stage then calls downstream'''

    def __str__(self) -> str:
        return self.name
    __repr__ = __str__


class _FuncStage(Stage, ABC):
    '''A stage built around a single function.'''

    def __init__(self, func: Callable[..., Any]) -> None:
        self.func = func

    def __str__(self) -> str:
        return f'{self.name}({getattr(self.func, "__qualname__", self.func)})'
    __repr__ = __str__


class MapStage(_FuncStage):
    '''
    Deliver func(value). An exception raised by func is not caught here, it
    propagates out of the delivery function to whatever called it.
    '''
    name = 'map'

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        func = self.func
        def value(value: object) -> None:
            downstream.value(func(value))
        return Delivery(value, downstream.complete)


class TryMapStage(_FuncStage):
    '''Deliver func(value), completing with Failure(exc) if func raises.'''
    name = 'try_map'

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        func = self.func
        def value(value: object) -> None:
            try:
                result = func(value)
            except Exception as exc:
                logger.debug('%s %s failed on %r: %r',
                             lifecycle.name, self, value, exc)
                downstream.complete(Failure(exc))
                return
            downstream.value(result)
        return Delivery(value, downstream.complete)


class FlatMapStage(_FuncStage):
    '''
    func returns an Outcome for each value. A Success delivers its value, a
    Failure completes with it.
    '''
    name = 'flat_map'

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        func = self.func
        def value(value: object) -> None:
            match func(value):
                case Success(result):
                    downstream.value(result)
                case Failure(error):
                    downstream.complete(Failure(error))
                case other:
                    raise TypeError(f'{self} function must return an Outcome, '
                                    f'got {type(other).__qualname__}')
        return Delivery(value, downstream.complete)


class FilterStage(_FuncStage):
    '''Only deliver values the predicate is true for. Others are dropped.'''
    name = 'filter'

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        predicate = self.func
        def value(value: object) -> None:
            if predicate(value):
                downstream.value(value)
            else:
                logger.log(VERBOSE, '%s %s dropped %r',
                           lifecycle.name, self, value)
        return Delivery(value, downstream.complete)


class CompactMapStage(_FuncStage):
    '''Deliver func(value) unless it is None.'''
    name = 'compact_map'

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        func = self.func
        def value(value: object) -> None:
            result = func(value)
            if result is not None:
                downstream.value(result)
        return Delivery(value, downstream.complete)


class MapErrorStage(_FuncStage):
    '''Complete with Failure(func(error)) rather than Failure(error).'''
    name = 'map_error'

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        func = self.func
        def complete(completion: Completion[Any]) -> None:
            downstream.complete(completion.map_error(func))
        return Delivery(downstream.value, complete)


class CatchErrorStage(_FuncStage):
    '''
    Replace a failed upstream with the publisher func returns for the error.
    The values and completion of that publisher are delivered downstream.
    '''
    name = 'catch_error'

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        func: Callable[[Any], Publisher[Any, Any]] = self.func
        def complete(completion: Completion[Any]) -> None:
            match completion:
                case Failure(error):
                    logger.debug('%s %s replacing failed upstream (%r)',
                                 lifecycle.name, self, error)
                    fallback = func(error)
                    inner = fallback.subscribe(downstream.value,
                                               downstream.complete)
                    # inner is owned by the outer subscription
                    lifecycle.on_terminate(inner.cancel)
                case _:
                    downstream.complete(completion)
        return Delivery(downstream.value, complete)


class ReplaceErrorStage(Stage):
    '''Replace a failure with a single value followed by FINISHED.'''
    name = 'replace_error'

    def __init__(self, value: object) -> None:
        self.value = value

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        replacement = self.value
        def complete(completion: Completion[Any]) -> None:
            if completion.is_failure:
                downstream.value(replacement)
                downstream.complete(FINISHED)
            else:
                downstream.complete(completion)
        return Delivery(downstream.value, complete)


class PrefixStage(Stage):
    '''
    Deliver the first count values then complete with FINISHED. A count of
    zero completes as soon as the chain is subscribed to.
    '''
    name = 'prefix'

    def __init__(self, count: int) -> None:
        if count < 0:
            raise ValueError(f'prefix count must not be negative, got {count}')
        self.count = count

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        limit = self.count
        delivered = 0
        if limit == 0:
            downstream.complete(FINISHED)
        def value(value: object) -> None:
            nonlocal delivered
            if delivered < limit:
                delivered += 1
                downstream.value(value)
            if delivered >= limit:
                downstream.complete(FINISHED)
        return Delivery(value, downstream.complete)

    def __str__(self) -> str:
        return f'{self.name}({self.count})'
    __repr__ = __str__


class ReduceStage(_FuncStage):
    '''
    Fold the values with func starting from initial. The result is delivered
    when upstream finishes. A failure is passed on without a result.
    '''
    name = 'reduce'

    def __init__(self, initial: object, func: Callable[[Any, Any], Any]
                 ) -> None:
        super().__init__(func)
        self.initial = initial

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        func = self.func
        accumulator = self.initial
        def value(value: object) -> None:
            nonlocal accumulator
            accumulator = func(accumulator, value)
        def complete(completion: Completion[Any]) -> None:
            if completion.is_success:
                downstream.value(accumulator)
            downstream.complete(completion)
        return Delivery(value, complete)


class ScanStage(ReduceStage):
    '''Like reduce, but every intermediate result is delivered.'''
    name = 'scan'

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        func = self.func
        accumulator = self.initial
        def value(value: object) -> None:
            nonlocal accumulator
            accumulator = func(accumulator, value)
            downstream.value(accumulator)
        return Delivery(value, downstream.complete)


class HandleEventsStage(Stage):
    '''Call side effect functions as values and the completion pass.'''
    name = 'handle_events'

    def __init__(self,
                 on_value: Callable[[Any], None]|None = None,
                 on_complete: Callable[[Completion[Any]], None]|None = None
                 ) -> None:
        self.on_value = on_value
        self.on_complete = on_complete

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        on_value, on_complete = self.on_value, self.on_complete
        def value(value: object) -> None:
            if on_value is not None:
                on_value(value)
            downstream.value(value)
        def complete(completion: Completion[Any]) -> None:
            if on_complete is not None:
                on_complete(completion)
            downstream.complete(completion)
        return Delivery(value, complete)


class ReceiveOnStage(Stage):
    '''Deliver downstream through scheduler.schedule().'''
    name = 'receive_on'

    def __init__(self, scheduler: Scheduler) -> None:
        self.scheduler = scheduler

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        schedule = self.scheduler.schedule
        def value(value: object) -> None:
            schedule(downstream.value, value)
        def complete(completion: Completion[Any]) -> None:
            schedule(downstream.complete, completion)
        return Delivery(value, complete)

    def __str__(self) -> str:
        return f'{self.name}({self.scheduler})'
    __repr__ = __str__


class ThrottleStage(Stage):
    '''
    Deliver at most one value per interval seconds.

    The first value is delivered right away and opens a window. Values
    received while the window is open are held, only the latest (or the
    first, if latest is False) is kept. When the window closes the held
    value is delivered and a new window opens. A completion delivers any
    held value first.

    All deliveries are made by scheduler, which must be running.
    '''
    name = 'throttle'

    def __init__(self,
                 interval: float,
                 scheduler: DeferredScheduler,
                 latest: bool = True) -> None:
        if interval <= 0:
            raise ValueError(f'throttle interval must be positive, '
                             f'got {interval}')
        self.interval = interval
        self.scheduler = scheduler
        self.latest = latest

    def _wrap(self, downstream: Delivery[Any, Any], lifecycle: Lifecycle
              ) -> Delivery[Any, Any]:
        interval, scheduler, latest = (self.interval, self.scheduler,
                                       self.latest)
        window: TimerHandle|None = None
        held: list[object] = []

        def open_window() -> None:
            nonlocal window
            window = scheduler.schedule_after(interval, close_window)

        def close_window() -> None:
            nonlocal window
            window = None
            if held:
                downstream.value(held.pop())
                open_window()

        def value(value: object) -> None:
            if window is None:
                scheduler.schedule(downstream.value, value)
                open_window()
            elif latest or not held:
                logger.log(VERBOSE, '%s %s holding %r',
                           lifecycle.name, self, value)
                held[:] = [value]

        def complete(completion: Completion[Any]) -> None:
            nonlocal window
            if window is not None:
                window.cancel()
                window = None
            if held:
                scheduler.schedule(downstream.value, held.pop())
            scheduler.schedule(downstream.complete, completion)

        def cancel_window() -> None:
            if window is not None:
                window.cancel()
        lifecycle.on_terminate(cancel_window)
        return Delivery(value, complete)

    def __str__(self) -> str:
        return f'{self.name}({self.interval})'
    __repr__ = __str__
