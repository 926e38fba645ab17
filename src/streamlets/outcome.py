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
Outcome is the result of a computation that either produced a value or
failed with an error.

    success(3).then(lambda x: failure('e')).map(lambda x: x + 1)

is Failure('e'), and the lambda passed to map() is never called. Each method
returns a new Outcome immediately. There is nothing deferred at this level,
laziness begins with Publisher.
'''
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass

from .error import InvalidOutcomeExpression, OutcomeFailed


__all__ = ['Outcome', 'Success', 'Failure', 'Completion',
           'success', 'failure', 'FINISHED']


class Outcome[T, E](ABC):
    '''
    Either a Success holding a value or a Failure holding an error. There are
    exactly two subclasses, and Outcomes are immutable.
    '''

    __slots__ = ()

    @property
    @abstractmethod
    def is_success(self) -> bool: ...

    @property
    def is_failure(self) -> bool:
        return not self.is_success

    @abstractmethod
    def map[U](self, func: Callable[[T], U]) -> Outcome[U, E]:
        '''
        Apply func to a Success value. Exceptions raised by func are not
        caught, use try_map() for that.
        '''

    @abstractmethod
    def try_map[U](self, func: Callable[[T], U]) -> Outcome[U, E|Exception]:
        '''Like map(), but an exception raised by func becomes a Failure.'''

    @abstractmethod
    def then[U, F](self, func: Callable[[T], Outcome[U, F]]
                   ) -> Outcome[U, E|F]:
        '''
        Monadic bind. func returns an Outcome which is returned as is rather
        than being wrapped in another Success.
        '''

    flat_map = then

    @abstractmethod
    def map_error[F](self, func: Callable[[E], F]) -> Outcome[T, F]:
        '''Apply func to a Failure error.'''

    @abstractmethod
    def recover(self, func: Callable[[E], T]) -> Outcome[T, E|Exception]:
        '''
        Turn a Failure into a Success with the value func returns for its
        error. If func raises the result is a Failure of what it raised.
        '''

    @abstractmethod
    def value_or(self, default: T) -> T: ...

    @abstractmethod
    def unwrap(self) -> T:
        '''the Success value, raises OutcomeFailed for a Failure'''

    # A Failure('') and a Success(0) are both falsy in any reasonable reading,
    # so truthiness is not supported.
    __bool__ = InvalidOutcomeExpression(
        None, "bool(Outcome) not supported, use .is_success or .is_failure")


@dataclass(frozen=True, slots=True)
class Success[T, E](Outcome[T, E]):
    value: T

    @property
    def is_success(self) -> bool:
        return True

    def map[U](self, func: Callable[[T], U]) -> Outcome[U, E]:
        return Success(func(self.value))

    def try_map[U](self, func: Callable[[T], U]) -> Outcome[U, E|Exception]:
        try:
            return Success(func(self.value))
        except Exception as exc:
            return Failure(exc)

    def then[U, F](self, func: Callable[[T], Outcome[U, F]]
                   ) -> Outcome[U, E|F]:
        result = func(self.value)
        if not isinstance(result, Outcome):
            raise TypeError(f'then() function must return an Outcome, '
                            f'got {type(result).__qualname__}')
        return result

    flat_map = then

    def map_error[F](self, func: Callable[[E], F]) -> Outcome[T, F]:
        return Success(self.value)

    def recover(self, func: Callable[[E], T]) -> Outcome[T, E|Exception]:
        return self

    def value_or(self, default: T) -> T:
        return self.value

    def unwrap(self) -> T:
        return self.value

    def __str__(self) -> str:
        return f'Success({self.value!r})'


@dataclass(frozen=True, slots=True)
class Failure[T, E](Outcome[T, E]):
    error: E

    @property
    def is_success(self) -> bool:
        return False

    def map[U](self, func: Callable[[T], U]) -> Outcome[U, E]:
        return Failure(self.error)

    def try_map[U](self, func: Callable[[T], U]) -> Outcome[U, E|Exception]:
        return Failure(self.error)

    def then[U, F](self, func: Callable[[T], Outcome[U, F]]
                   ) -> Outcome[U, E|F]:
        return Failure(self.error)

    flat_map = then

    def map_error[F](self, func: Callable[[E], F]) -> Outcome[T, F]:
        return Failure(func(self.error))

    def recover(self, func: Callable[[E], T]) -> Outcome[T, E|Exception]:
        try:
            return Success(func(self.error))
        except Exception as exc:
            return Failure(exc)

    def value_or(self, default: T) -> T:
        return default

    def unwrap(self) -> T:
        if isinstance(self.error, BaseException):
            raise OutcomeFailed(self.error) from self.error
        raise OutcomeFailed(self.error)

    def __str__(self) -> str:
        return f'Failure({self.error!r})'


type Completion[E] = Outcome[None, E]
'''How a stream ended: FINISHED, or a Failure with the error that ended it.'''


def success[T](value: T) -> Outcome[T, object]:
    return Success(value)


def failure[E](error: E) -> Outcome[object, E]:
    return Failure(error)


FINISHED: Completion[object] = Success(None)
'''the normal completion of a stream'''
