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
A Ticker sends tick numbers into a Subject at a fixed rate. It is the
asynchronous event source for publisher chains that react to time:

    ticks = Subject[int, Exception]()
    subscription = ticks.prefix(10).subscribe(on_tick)
    async with Ticker(ticks, rate=5):
        ...
'''

from asyncio import sleep, create_task, Task
from collections.abc import Coroutine, Generator
from logging import Logger, getLogger
from time import time
from types import TracebackType
from typing import Self

from ..logging_config import VERBOSE
from ..outcome import FINISHED
from ..subject import Subject


__all__ = ['RateLimit', 'Ticker']


logger: Logger = getLogger('streamlets.utilities.ticker')


class RateLimit:
    '''
    Provides a coroutine to await that keeps a regular tick rather than a
    regular space between ticks.
    rate_limit = RateLimit(60)  # 60 per second
    ...
    await rate_limit()
    '''

    _next_tick_time: float = 0
    '''the time the next tick should happen'''

    tick = 0
    '''tick is incremented each time delay is called'''

    time_per_tick: float = 0
    '''the time in seconds per tick, 0 for as fast as possible'''

    last_delay: float = 0

    def __init__(self, rate: float = 60) -> None:
        '''create a RateLimit at the given rate per second'''
        self.time_per_tick = 1 / rate if rate > 0 else 0

    def skipped_tick(self, overrun: float) -> None:
        '''
        Called when the rate is not maintained. Subclasses can override to
        customize how this event is handled.
        overrun: the time in seconds the tick was missed by.
        '''
        logger.debug('%s missed tick %d by %.3fs', self, self.tick, overrun)

    def delay(self) -> Coroutine[None, None, None]:
        '''delay until the next tick should happen'''
        self.tick += 1
        _time = time()
        if self._next_tick_time == 0:
            delay: float = 0
            self._next_tick_time = _time + self.time_per_tick
        else:
            delay = self._next_tick_time - _time
            if delay >= 0:
                self._next_tick_time += self.time_per_tick
            else:
                self.skipped_tick(abs(delay))
                delay = 0
                if self.time_per_tick > 0:
                    self._next_tick_time += 2 * self.time_per_tick
                else:
                    self._next_tick_time = _time
        if self.time_per_tick > 0 and delay > self.time_per_tick:
            # a skipped tick advanced the schedule by two ticks and the tick
            # after it came early
            delay -= self.time_per_tick
        self.last_delay = delay
        return sleep(delay)
    __call__ = delay

    def __str__(self) -> str:
        return f'RateLimit({self.time_per_tick:.3f}s)'


class Ticker[E]:
    '''
    Sends 0, 1, 2, ... into subject at rate ticks per second from an asyncio
    task that runs while the ticker is entered as an async context manager.

    If count is given the subject is finished after that many ticks and the
    ticker can be awaited for that to happen. Otherwise it ticks until the
    context exits, which leaves the subject unfinished.
    '''

    _task: Task[None]|None = None
    _stop = False

    def __init__(self,
                 subject: Subject[int, E],
                 rate: float = 1,
                 count: int|None = None) -> None:
        self.subject = subject
        self.count = count
        self.rate_limit = RateLimit(rate)
        self.ticks = 0

    async def _loop(self) -> None:
        while not self._stop:
            if self.count is not None and self.ticks >= self.count:
                logger.debug('%s sent %d ticks, finishing', self, self.ticks)
                self.subject.send_completion(FINISHED)
                return
            await self.rate_limit()
            if self._stop:
                break
            logger.log(VERBOSE, '%s tick %d', self, self.ticks)
            self.subject.send(self.ticks)
            self.ticks += 1

    def start(self) -> Task[None]:
        if self._task is None:
            self._task = create_task(self._loop())
        return self._task

    async def stop(self) -> None:
        '''stop ticking and wait for the task to end'''
        self._stop = True
        if self._task is not None:
            await self._task

    async def __aenter__(self) -> Self:
        self.start()
        return self

    async def __aexit__(self,
                        exc_type: type[BaseException]|None,
                        exc_val: BaseException|None,
                        exc_tb: TracebackType|None) -> None:
        await self.stop()

    def __await__(self) -> Generator[Task[None]]:
        '''wait for the ticker to send count ticks'''
        assert self._task is not None, f'{self} not started'
        yield from self._task

    def __str__(self) -> str:
        return f'Ticker({id(self)})'
    __repr__ = __str__
