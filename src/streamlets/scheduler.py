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
Schedulers decide when a delivery happens.

ImmediateScheduler delivers inline, which is what every publisher does unless
told otherwise. DeferredScheduler queues deliveries and runs them from an
asyncio task so the code calling send() is not blocked by the subscribers.
Publisher.receive_on() moves the deliveries below it onto a scheduler.
'''

from abc import ABC, abstractmethod
from asyncio import (Queue, Task, TimerHandle, create_task, QueueShutDown,
                     sleep, get_event_loop, run)
from collections.abc import Awaitable, Callable, Generator
from itertools import count
from logging import Logger, getLogger
from types import TracebackType
from typing import ClassVar

from .error import (SchedulerAlreadyStarted, SchedulerNotStarted,
                    SchedulerStopped)
from .logging_config import VERBOSE


__all__ = ['Scheduler', 'ImmediateScheduler', 'DeferredScheduler',
           'IMMEDIATE']


logger: Logger = getLogger('streamlets.scheduler')


class Scheduler(ABC):
    '''Something that calls a function, now or later.'''

    @abstractmethod
    def schedule(self, func: Callable[..., None], *args: object) -> None:
        '''Arrange for func(*args) to be called. Must not block.'''


class ImmediateScheduler(Scheduler):
    '''Calls the function before schedule() returns.'''

    def schedule(self, func: Callable[..., None], *args: object) -> None:
        func(*args)

    def __str__(self) -> str:
        return 'ImmediateScheduler'


IMMEDIATE = ImmediateScheduler()


class DeferredScheduler(Scheduler):
    '''
    DeferredScheduler calls scheduled functions sequentially but
    asynchronously (the caller of schedule() is not blocked).

    It has a queue and a task. The queue holds the calls to make, while the
    task drains the queue and makes the calls in the order they were
    scheduled. Delivery order through a DeferredScheduler is therefore the
    order values were sent.

    A scheduled call that raises is logged and the scheduler moves on to the
    next one. A subscriber failing must not stop deliveries to the others.
    '''

    task: Task[None]|None = None
    '''the task that is processing the queue'''

    queue: Queue[tuple[int, Callable[..., None], tuple[object, ...]]]
    '''
    The queue of calls to make.
    tuple elements are:
        [0] - the id of the call (for logging)
        [1] - the function to call
        [2] - the arguments to call it with
    '''

    _ids: ClassVar["count[int]"] = count()
    '''
    _ids assigns a unique id to each call handled by a scheduler. It is used
    only for informational purposes. It is a class member, not instance, so
    ids are unique within a process.
    '''

    def __init__(self, *args: object, **kwargs: object) -> None:
        super().__init__(*args, **kwargs)
        self.queue = Queue()

    def schedule(self, func: Callable[..., None], *args: object) -> None:
        if self.task is None:
            raise SchedulerNotStarted()

        id_ = next(self._ids)
        try:
            self.queue.put_nowait((id_, func, args))
        except QueueShutDown:
            raise SchedulerStopped()
        logger.log(VERBOSE, '%d scheduled %s(%s)',
                   id_, getattr(func, '__qualname__', func),
                   ', '.join(repr(arg) for arg in args))

    def schedule_after(self,
                       delay: float,
                       func: Callable[..., None],
                       *args: object) -> TimerHandle:
        '''
        Schedule func(*args) once delay seconds have passed. The returned
        handle can be cancelled until then.
        '''
        if self.task is None:
            raise SchedulerNotStarted()
        return get_event_loop().call_later(delay, self._schedule_later,
                                           func, args)

    def _schedule_later(self,
                        func: Callable[..., None],
                        args: tuple[object, ...]) -> None:
        try:
            self.schedule(func, *args)
        except SchedulerStopped:
            logger.debug('%s stopped, dropped timed call to %s',
                         self, getattr(func, '__qualname__', func))

    ###########################################################################
    # Task life cycle:
    #
    # stop() shuts the queue down so no more calls are accepted. The calls
    # already queued are still made, then the worker gets QueueShutDown and
    # returns, completing the task. The task is the awaitable for waiting on
    # the scheduler to finish.
    # stop() takes a timeout= (default 2 seconds). If the task has not
    # completed by then it is cancelled and waiters see the CancelledError.
    ###########################################################################

    def start(self, start: Callable[[], None]|None = None) -> Awaitable[None]:
        '''
        Start the task that makes the scheduled calls.
        start: a callable that is called once the scheduler is started, for
               example to send the first values into a subject.
        '''
        if self.task is not None:
            raise SchedulerAlreadyStarted()
        self.task = create_task(self.execute())
        if start is not None:
            start()
        return self.task

    def stop(self, timeout: float|None = 2) -> Awaitable[None]:
        '''stop accepting calls and finish the queued ones'''
        if not self.task:
            raise SchedulerNotStarted()

        logger.debug('%s stopping.', self)

        self.queue.shutdown()

        if timeout is not None:
            def _cancel_task() -> None:
                assert self.task is not None
                if not self.task.done():
                    logger.error('%s cancelled after shutdown '
                                 'took more than %.2fs', self, timeout)
                    self.task.cancel()
            get_event_loop().call_later(timeout, _cancel_task)
        return self.task

    def run(self, start: Callable[[], None]|None = None) -> None:
        '''
        Run in a new event loop until stopped. start is called once the
        scheduler is running and is expected to arrange for stop() to be
        called.
        '''
        async def _run() -> None:
            task = self.start(start=start)
            await task
        run(_run())

    async def execute(self) -> None:
        '''
        Queue worker that gets scheduled calls from the queue and makes them.
        '''
        while True:
            try:
                (id_, func, args) = await self.queue.get()
            except QueueShutDown:
                logger.info('%s stopped', self)
                break

            try:
                logger.log(VERBOSE, '%s %s calling %s',
                           self, id_, getattr(func, '__qualname__', func))
                func(*args)
            except Exception as exc:
                logger.exception('%s %s raised, continuing.',
                                 self, id_, exc_info=exc)
            finally:
                self.queue.task_done()
            await sleep(0)

    async def __aenter__(self) -> Awaitable[None]:
        return self.start()

    async def __aexit__(self,
                        exc_type: type[BaseException]|None,
                        exc_val: BaseException|None,
                        exc_tb: TracebackType|None) -> None:
        self.stop()
        await self

    def __await__(self) -> Generator[Task[None]]:
        '''wait for the task to complete'''
        if not self.task:
            raise SchedulerNotStarted()
        yield from self.task

    def __str__(self) -> str:
        return f'DeferredScheduler({id(self)})'
    __repr__ = __str__
