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
Error definitions.
'''
from collections.abc import Callable
from typing import NoReturn


__all__ = ['MustNotBeCalled', 'InvalidOutcomeExpression',
           'OutcomeError', 'OutcomeFailed',
           'SchedulerError', 'SchedulerNotStarted', 'SchedulerAlreadyStarted',
           'SchedulerStopped']


class MustNotBeCalled(RuntimeError):
    '''
    Raised by methods that are easy to call when they really aren't what should
    be called.
    '''
    def __init__(self, func: Callable[..., object]|None,
                 *args: object, **kwargs: object) -> None:
        if func:
            # subclasses don't have to pass func if they already handled it.
            super().__init__(f'{func} must not be called', *args, **kwargs)
        else:
            super().__init__(*args, **kwargs)

    def __call__(self, *args: object, **kwargs: object) -> NoReturn:
        '''raises self to indicate a MustNotBeCalled was in fact called'''
        raise self


class OutcomeError(RuntimeError):
    '''base class for outcome errors'''


class InvalidOutcomeExpression(OutcomeError, MustNotBeCalled):
    '''
    Raised when an Outcome is used in a boolean context. A Failure holding a
    falsy error and a Success holding a falsy value are both plausible readings
    of "if outcome:", so neither is supported.
    '''


class OutcomeFailed(OutcomeError):
    '''
    Raised by Outcome.unwrap() on a Failure. The error the Failure holds is
    available as .error and, when it is an exception, as __cause__.
    '''
    def __init__(self, error: object) -> None:
        super().__init__(f'unwrapped a failure: {error!r}')
        self.error = error


class SchedulerError(RuntimeError):
    '''base class for scheduler errors'''


class SchedulerNotStarted(SchedulerError):
    '''
    Error indicating work was scheduled on a deferred scheduler that has not
    been started.
    '''

class SchedulerAlreadyStarted(SchedulerError):
    '''
    Error indicating the scheduler has already been started.

    The scheduler may have already stopped, which, as the name implies, is
    terminal and can't be restarted. This error does not imply the scheduler
    is running, only that the request to start it failed.
    '''

class SchedulerStopped(SchedulerError):
    '''Error indicating work was scheduled after the scheduler was stopped.'''
