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
Subscriptions and the delivery functions they are composed of.

A Subscription is the handle returned by Publisher.subscribe(). It is owned by
the caller. Sources that fan out (Subject) keep only a weak reference to it,
so dropping the last reference to a subscription detaches it just as
cancel() does.

The composed delivery does not reference the Subscription, only its
Lifecycle. Keeping it that way is what lets the weak reference held by a
Subject die as soon as the caller lets go of the handle.
'''
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from itertools import count
from logging import Logger, getLogger
from types import TracebackType
from typing import Any, ClassVar, Self

from .logging_config import VERBOSE
from .outcome import Completion


__all__ = ['Delivery', 'SubscriptionState', 'Lifecycle', 'Subscription']


logger: Logger = getLogger('streamlets.subscription')


@dataclass(frozen=True, slots=True)
class Delivery[T, E]:
    '''
    The pair of functions values and the completion are delivered to. Stages
    wrap the Delivery of their downstream neighbor in one of their own.
    '''
    value: Callable[[T], None]
    complete: Callable[[Completion[E]], None]


class SubscriptionState(Enum):
    ACTIVE = 'active'
    CANCELLED = 'cancelled'
    COMPLETED = 'completed'


class Lifecycle:
    '''
    The state of a subscription. Both CANCELLED and COMPLETED are terminal,
    there is no transition out of them.

    Teardowns are callables run once when the subscription leaves ACTIVE.
    Sources use them to remove their registration, stages to release inner
    subscriptions.
    '''

    state: SubscriptionState

    def __init__(self, name: str) -> None:
        self.name = name
        self.state = SubscriptionState.ACTIVE
        self._teardowns: list[Callable[[], None]] = []

    @property
    def active(self) -> bool:
        return self.state is SubscriptionState.ACTIVE

    def on_terminate(self, teardown: Callable[[], None]) -> None:
        '''Run teardown when the subscription terminates, now if it has.'''
        if self.active:
            self._teardowns.append(teardown)
        else:
            teardown()

    def terminate(self, state: SubscriptionState) -> bool:
        '''
        Move to the terminal state. Returns False if already terminal, in
        which case nothing is done.
        '''
        assert state is not SubscriptionState.ACTIVE
        if not self.active:
            return False
        self.state = state
        logger.debug('%s %s', self.name, state.value)
        teardowns, self._teardowns = self._teardowns, []
        for teardown in teardowns:
            teardown()
        return True

    def __str__(self) -> str:
        return f'{self.name}({self.state.value})'
    __repr__ = __str__


def _ignore(_: object) -> None: ...


class _Terminal[T, E]:
    '''
    The end of every composed delivery. Calls the subscriber while the
    subscription is active and completes it exactly once.
    '''

    def __init__(self,
                 lifecycle: Lifecycle,
                 on_value: Callable[[T], None],
                 on_complete: Callable[[Completion[E]], None]) -> None:
        self.lifecycle = lifecycle
        self.on_value = on_value
        self.on_complete = on_complete

    def value(self, value: T) -> None:
        if self.lifecycle.active:
            logger.log(VERBOSE, '%s received %r', self.lifecycle.name, value)
            self.on_value(value)

    def complete(self, completion: Completion[E]) -> None:
        if self.lifecycle.terminate(SubscriptionState.COMPLETED):
            self.on_complete(completion)


class Subscription[T, E]:
    '''
    A live attachment of a subscriber to a composed publisher chain.

    cancel() stops all further deliveries, including ones that were already
    queued on a deferred scheduler. It is idempotent and a no-op once the
    subscription has completed.

    Usable as a context manager that cancels on exit:
        with subject.map(str).subscribe(received.append):
            subject.send(1)
    '''

    _ids: ClassVar["count[int]"] = count()
    '''process unique subscription ids, used to identify them in logs'''

    delivery: Delivery[Any, E]
    '''
    The composed delivery function the root source delivers to. Set by
    Publisher.subscribe() once composition is done.
    '''

    def __init__(self,
                 on_value: Callable[[T], None],
                 on_complete: Callable[[Completion[E]], None]|None = None
                 ) -> None:
        self.id = next(self._ids)
        self.lifecycle = Lifecycle(f'Subscription({self.id})')
        terminal = _Terminal(self.lifecycle, on_value, on_complete or _ignore)
        self.terminal: Delivery[T, E] = Delivery(terminal.value,
                                                 terminal.complete)
        self.delivery = self.terminal

    @property
    def state(self) -> SubscriptionState:
        return self.lifecycle.state

    @property
    def active(self) -> bool:
        return self.lifecycle.active

    @property
    def cancelled(self) -> bool:
        return self.lifecycle.state is SubscriptionState.CANCELLED

    @property
    def completed(self) -> bool:
        return self.lifecycle.state is SubscriptionState.COMPLETED

    def on_terminate(self, teardown: Callable[[], None]) -> None:
        self.lifecycle.on_terminate(teardown)

    def cancel(self) -> None:
        self.lifecycle.terminate(SubscriptionState.CANCELLED)

    def __enter__(self) -> Self:
        return self

    def __exit__(self,
                 exc_type: type[BaseException]|None,
                 exc_val: BaseException|None,
                 exc_tb: TracebackType|None) -> None:
        self.cancel()

    def __str__(self) -> str:
        return str(self.lifecycle)
    __repr__ = __str__
