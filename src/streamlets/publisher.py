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
Publishers describe a computation that delivers values to subscribers.

    [1, 2, 3]             from_iterable([1, 2, 3])
      .map(x * 2)           .map(lambda x: x * 2)
      .map(float)           .map(float)
      .map(str)             .map(str)
                            .subscribe(received.append)

The left is a batch, each step builds a new list. The right delivers one
value at a time through the whole chain. Calling map() on a publisher only
records the transform. Nothing is composed until subscribe() is called, at
which point each stage composes its transform with the delivery function of
its downstream neighbor, from the subscriber back up to the source, and the
source is handed the resulting function.
'''
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from logging import Logger, getLogger
from typing import Any

from .outcome import FINISHED, Completion, Failure, Outcome, Success
from .scheduler import DeferredScheduler, Scheduler
from .stage import (Stage, MapStage, TryMapStage, FlatMapStage, FilterStage,
                    CompactMapStage, MapErrorStage, CatchErrorStage,
                    ReplaceErrorStage, PrefixStage, ReduceStage, ScanStage,
                    HandleEventsStage, ReceiveOnStage, ThrottleStage)
from .subscription import Subscription


__all__ = ['Source', 'Publisher', 'from_iterable', 'just', 'fail', 'empty']


logger: Logger = getLogger('streamlets.publisher')


class Source(ABC):
    '''
    The root of a publisher chain, where values come from.
    '''

    @abstractmethod
    def attach(self, subscription: Subscription[Any, Any]) -> None:
        '''
        Start delivering to subscription.delivery. Sources must stop
        delivering once the subscription is no longer active.
        '''


class SequenceSource[T](Source):
    '''
    Delivers each item of an iterable in order, then FINISHED. Each
    subscription iterates the iterable again, so it should be a collection
    rather than a one shot iterator.
    '''

    def __init__(self, items: Iterable[T]) -> None:
        self.items = items

    def attach(self, subscription: Subscription[Any, Any]) -> None:
        delivery = subscription.delivery
        for item in self.items:
            if not subscription.active:
                logger.debug('%s stopped early by %s', self, subscription)
                return
            delivery.value(item)
        if subscription.active:
            delivery.complete(FINISHED)

    def __str__(self) -> str:
        return f'SequenceSource({type(self.items).__qualname__})'
    __repr__ = __str__


class OutcomeSource[T, E](Source):
    '''Delivers a Success value then FINISHED, or completes with a Failure.'''

    def __init__(self, outcome: Outcome[T, E]) -> None:
        self.outcome = outcome

    def attach(self, subscription: Subscription[Any, Any]) -> None:
        delivery = subscription.delivery
        if not subscription.active:
            return
        match self.outcome:
            case Success(value):
                delivery.value(value)
                if subscription.active:
                    delivery.complete(FINISHED)
            case Failure(error):
                delivery.complete(Failure(error))

    def __str__(self) -> str:
        return f'OutcomeSource({self.outcome})'
    __repr__ = __str__


class Publisher[T, E]:
    '''
    An immutable, not yet running chain of stages.

    A publisher is either a root, which has a Source, or was derived from a
    parent by a combinator, in which case it has the parent and the one stage
    the combinator added. Parents may be shared by any number of derived
    publishers.

    The combinator methods are O(1) and never touch the source.
    '''

    def __init__(self,
                 source: Source|None = None,
                 *,
                 parent: Publisher[Any, Any]|None = None,
                 stage: Stage|None = None) -> None:
        assert (parent is None) == (stage is None), \
            'derived publishers need both a parent and a stage'
        assert source is None or parent is None, \
            'a publisher is either a root or derived, not both'
        self._source = source
        self._parent = parent
        self._stage = stage

    def _root(self) -> Source:
        '''the source of a root publisher'''
        assert self._source is not None, f'{self} has no source'
        return self._source

    def _derive[U, F](self, stage: Stage) -> Publisher[U, F]:
        return Publisher(parent=self, stage=stage)

    ###########################################################################
    # Subscription
    ###########################################################################
    def subscribe(self,
                  on_value: Callable[[T], None],
                  on_complete: Callable[[Completion[E]], None]|None = None
                  ) -> Subscription[T, E]:
        '''
        Compose the chain and attach it to the source.

        on_value is called for each value, on_complete once with FINISHED or
        the Failure that ended the stream. Keep the returned Subscription
        for as long as deliveries are wanted. Subjects only hold it weakly.
        '''
        subscription = Subscription(on_value, on_complete)
        delivery = subscription.terminal
        publisher: Publisher[Any, Any] = self
        while publisher._stage is not None:
            assert publisher._parent is not None
            delivery = publisher._stage.wrap(delivery, subscription.lifecycle)
            publisher = publisher._parent
        subscription.delivery = delivery
        root = publisher._root()
        logger.debug('%s subscribing to %s', subscription, self)
        root.attach(subscription)
        return subscription

    def sink(self,
             receive_value: Callable[[T], None]|None = None,
             receive_completion: Callable[[Completion[E]], None]|None = None
             ) -> Subscription[T, E]:
        '''subscribe() with keyword friendly names and optional callbacks'''
        return self.subscribe(receive_value or (lambda _: None),
                              receive_completion)

    ###########################################################################
    # Combinators
    ###########################################################################
    def map[U](self, func: Callable[[T], U]) -> Publisher[U, E]:
        return self._derive(MapStage(func))

    def try_map[U](self, func: Callable[[T], U]
                   ) -> Publisher[U, E|Exception]:
        return self._derive(TryMapStage(func))

    def flat_map[U, F](self, func: Callable[[T], Outcome[U, F]]
                       ) -> Publisher[U, E|F]:
        return self._derive(FlatMapStage(func))

    then = flat_map

    def filter(self, predicate: Callable[[T], bool]) -> Publisher[T, E]:
        return self._derive(FilterStage(predicate))

    def compact_map[U](self, func: Callable[[T], U|None]) -> Publisher[U, E]:
        return self._derive(CompactMapStage(func))

    def map_error[F](self, func: Callable[[E], F]) -> Publisher[T, F]:
        return self._derive(MapErrorStage(func))

    def catch_error[F](self, func: Callable[[E], Publisher[T, F]]
                       ) -> Publisher[T, F]:
        return self._derive(CatchErrorStage(func))

    def replace_error(self, value: T) -> Publisher[T, E]:
        return self._derive(ReplaceErrorStage(value))

    def prefix(self, count: int) -> Publisher[T, E]:
        return self._derive(PrefixStage(count))

    def reduce[A](self, initial: A, func: Callable[[A, T], A]
                  ) -> Publisher[A, E]:
        return self._derive(ReduceStage(initial, func))

    def scan[A](self, initial: A, func: Callable[[A, T], A]
                ) -> Publisher[A, E]:
        return self._derive(ScanStage(initial, func))

    def handle_events(
            self,
            on_value: Callable[[T], None]|None = None,
            on_complete: Callable[[Completion[E]], None]|None = None
            ) -> Publisher[T, E]:
        return self._derive(HandleEventsStage(on_value, on_complete))

    def receive_on(self, scheduler: Scheduler) -> Publisher[T, E]:
        return self._derive(ReceiveOnStage(scheduler))

    def throttle(self,
                 interval: float,
                 scheduler: DeferredScheduler,
                 latest: bool = True) -> Publisher[T, E]:
        return self._derive(ThrottleStage(interval, scheduler, latest))

    def share(self) -> Publisher[T, E]:
        '''
        A publisher that subscribes to this one once, on its first
        subscription, and fans the values out to all of its subscribers.
        Cancelling one subscriber does not affect the others.
        '''
        # subject depends on publisher
        from .subject import SharedSource
        return Publisher(SharedSource(self))

    def __str__(self) -> str:
        if self._stage is None:
            return f'Publisher({self._source})'
        return f'{self._parent}.{self._stage}'
    __repr__ = __str__


def from_iterable[T](items: Iterable[T]) -> Publisher[T, Any]:
    '''a publisher of the items followed by FINISHED'''
    return Publisher(SequenceSource(items))


def just[T](value: T) -> Publisher[T, Any]:
    '''a publisher of a single value followed by FINISHED'''
    return Publisher(OutcomeSource(Success(value)))


def fail[E](error: E) -> Publisher[Any, E]:
    '''a publisher that completes with Failure(error) without any values'''
    return Publisher(OutcomeSource(Failure(error)))


def empty() -> Publisher[Any, Any]:
    '''a publisher that finishes without any values'''
    return Publisher(SequenceSource(()))
