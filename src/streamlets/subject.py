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
Subjects are publishers that values are pushed into.

    subject = Subject[int, Exception]()
    doubled = subject.map(lambda x: x * 2).subscribe(received.append)
    subject.send(1)
    subject.send(2)
    subject.send_completion()
    subject.send(3)   # dropped, the subject has finished

A subject is how imperative code (a timer callback, an I/O handler) feeds a
publisher chain. It is the only mutable object in a chain: it keeps the list
of subscriptions to fan values out to, in the order they subscribed, and
whether it has finished.

Subscribers are independent. Cancelling one never affects the others.

A subscriber may send to the subject it is subscribed to. The value is
delivered once the fan out in progress is done, so every subscriber sees
values in the order they were sent.

Subjects are not thread safe. All calls to send(), send_completion(),
subscribe() and cancel() for a subject must be made from one thread, for
example the thread running the event loop.
'''
from __future__ import annotations

from collections import deque
from collections.abc import Callable
from functools import partial
from itertools import count
from logging import Logger, getLogger
from typing import Any, ClassVar
from weakref import ReferenceType, ref

from .logging_config import VERBOSE
from .outcome import FINISHED, Completion, Failure
from .publisher import Publisher, Source
from .subscription import Subscription


__all__ = ['Subject', 'PassthroughSubject', 'CurrentValueSubject']


logger: Logger = getLogger('streamlets.subject')


def _detach(subject_ref: ReferenceType[Subject[Any, Any]], key: int) -> None:
    '''
    Teardown for a subscription registered with a subject. The subject is
    held weakly so subscriptions don't keep it alive. Once it is gone there
    is nothing to detach from.
    '''
    subject = subject_ref()
    if subject is not None:
        subject._registrations.pop(key, None)  # pylint: disable=protected-access


class Subject[T, E](Publisher[T, E], Source):
    '''
    A publisher that delivers the values passed to send() to its current
    subscribers. Values sent while there are no subscribers are lost.
    '''

    _ids: ClassVar["count[int]"] = count()
    '''registration keys, increasing so dict order is subscription order'''

    _registrations: dict[int, ReferenceType[Subscription[Any, E]]]
    _completion: Completion[E]|None

    _pending: deque[Callable[[], None]]
    '''sends made while a fan out is in progress, made once it is done'''

    _fanning_out: bool

    def __init__(self) -> None:
        super().__init__()
        self._registrations = {}
        self._completion = None
        self._pending = deque()
        self._fanning_out = False

    def _root(self) -> Source:
        return self

    @property
    def finished(self) -> bool:
        return self._completion is not None

    @property
    def completion(self) -> Completion[E]|None:
        '''how the subject finished, None if it hasn't'''
        return self._completion

    @property
    def subscription_count(self) -> int:
        '''the number of live subscriptions'''
        return sum(1 for subscription_ref in self._registrations.values()
                     if (subscription := subscription_ref()) is not None
                        and subscription.active)

    def attach(self, subscription: Subscription[Any, Any]) -> None:
        if self._completion is not None:
            logger.debug('%s already finished, completing %s',
                         self, subscription)
            subscription.delivery.complete(self._completion)
            return
        if not subscription.active:
            return
        key = next(self._ids)
        self._registrations[key] = ref(subscription)
        subscription.on_terminate(partial(_detach, ref(self), key))
        logger.debug('%s registered %s', self, subscription)

    def _live(self) -> list[Subscription[Any, E]]:
        '''
        Snapshot of the active subscriptions in subscription order.
        Registrations whose subscription has been dropped are pruned.
        '''
        live = []
        for key, subscription_ref in list(self._registrations.items()):
            subscription = subscription_ref()
            if subscription is None:
                logger.debug('%s pruning dropped subscription %d', self, key)
                del self._registrations[key]
            elif subscription.active:
                live.append(subscription)
        return live

    def _deliver(self,
                 subscription: Subscription[Any, E],
                 deliver: Callable[[], None]) -> Exception|None:
        '''
        Make one delivery. A subscription that fails is logged rather than
        allowed to stop delivery to the rest. Returns what it raised.
        '''
        try:
            deliver()
        except Exception as exc:
            logger.exception('%s delivery to %s raised, continuing fan out.',
                             self, subscription, exc_info=exc)
            return exc
        return None

    def _signal(self, fan_out: Callable[[], None]) -> None:
        '''
        Run fan_out, or if a fan out is in progress (a subscriber sent to
        this subject) queue it to run after the current one. Every
        subscriber receives values in the order they were sent.
        '''
        self._pending.append(fan_out)
        if self._fanning_out:
            logger.log(VERBOSE, '%s fan out in progress, %d queued',
                       self, len(self._pending))
            return
        self._fanning_out = True
        try:
            while self._pending:
                self._pending.popleft()()
        finally:
            self._fanning_out = False
            self._pending.clear()

    def send(self, value: T) -> None:
        '''deliver value to every active subscription, in subscription order'''
        self._signal(partial(self._send, value))

    def _send(self, value: T) -> None:
        if self._completion is not None:
            logger.log(VERBOSE, '%s finished, dropped %r', self, value)
            return
        for subscription in self._live():
            # an earlier delivery in this fan out may have cancelled it
            if subscription.active:
                self._deliver(subscription,
                              partial(subscription.delivery.value, value))

    def send_completion(self, completion: Completion[E] = FINISHED) -> None:
        '''
        Finish the subject. The completion is delivered once to every active
        subscription. Only the first call has any effect.
        '''
        self._signal(partial(self._send_completion, completion))

    def _send_completion(self, completion: Completion[E]) -> None:
        if self._completion is not None:
            logger.log(VERBOSE, '%s already finished, ignoring %s',
                       self, completion)
            return
        self._completion = completion
        logger.debug('%s finished with %s', self, completion)
        for subscription in self._live():
            if not subscription.active:
                continue
            exc = self._deliver(subscription,
                                partial(subscription.delivery.complete,
                                        completion))
            if exc is not None and subscription.active:
                # The chain raised before the completion reached the
                # subscriber. Complete it with what was raised.
                self._deliver(subscription,
                              partial(subscription.terminal.complete,
                                      Failure(exc)))
        self._registrations.clear()

    def __str__(self) -> str:
        return f'{type(self).__qualname__}({id(self)})'
    __repr__ = __str__


PassthroughSubject = Subject


class CurrentValueSubject[T, E](Subject[T, E]):
    '''
    A subject that remembers the last value sent. New subscribers receive
    it as soon as they subscribe.
    '''

    def __init__(self, value: T) -> None:
        super().__init__()
        self._value = value

    @property
    def value(self) -> T:
        return self._value

    @value.setter
    def value(self, value: T) -> None:
        self.send(value)

    def attach(self, subscription: Subscription[Any, Any]) -> None:
        super().attach(subscription)
        if not self.finished and subscription.active:
            subscription.delivery.value(self._value)

    def _send(self, value: T) -> None:
        if self._completion is None:
            self._value = value
        super()._send(value)


class SharedSource[T, E](Source):
    '''
    The source behind Publisher.share(). Subscribers attach to an internal
    subject which is connected to the upstream publisher when the first one
    does, and disconnected when the last one terminates.

    Upstreams that deliver synchronously, such as from_iterable(), will have
    finished by the time a second subscriber arrives, and it only receives
    the completion.
    '''

    def __init__(self, upstream: Publisher[T, E]) -> None:
        self.upstream = upstream
        self.subject = Subject[T, E]()
        self.connection: Subscription[T, E]|None = None

    def attach(self, subscription: Subscription[Any, Any]) -> None:
        self.subject.attach(subscription)
        if not subscription.active:
            # finished, or completed while it was being composed
            return
        # The teardown also keeps this source alive for as long as any of its
        # subscriptions are.
        subscription.on_terminate(self._release)
        if self.connection is None and not self.subject.finished:
            logger.debug('%s connecting to %s', self, self.upstream)
            self.connection = self.upstream.subscribe(
                self.subject.send, self.subject.send_completion)

    def _release(self) -> None:
        if (self.connection is not None
                and self.subject.subscription_count == 0):
            logger.debug('%s disconnecting from %s', self, self.upstream)
            connection, self.connection = self.connection, None
            connection.cancel()

    def __str__(self) -> str:
        return f'SharedSource({id(self)})'
    __repr__ = __str__
