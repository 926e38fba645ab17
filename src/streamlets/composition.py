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
Functions that reshape other functions.

Publishers are built on the same idea: each stage composes its transform with
the function its downstream neighbor hands it. These helpers make the
reshaping available for transforms passed to the combinators:

    to_text = compose(lambda x: x * 2, float, str)
    to_text(1)  # '2.0'
'''
from collections.abc import Callable
from functools import reduce


__all__ = ['identity', 'compose', 'flip', 'curry', 'uncurry']


def identity[T](value: T) -> T:
    return value


def compose(first: Callable[..., object],
            *rest: Callable[[object], object]) -> Callable[..., object]:
    '''
    Forward composition, compose(f, g)(a) == g(f(a)). first may take any
    arguments, the rest take the single value returned by their predecessor.
    '''
    def _compose(f: Callable[..., object],
                 g: Callable[[object], object]) -> Callable[..., object]:
        def composed(*args: object, **kwargs: object) -> object:
            return g(f(*args, **kwargs))
        return composed
    return reduce(_compose, rest, first)


def flip[A, B, C](func: Callable[[A], Callable[[C], B]]
                  ) -> Callable[[C], Callable[[A], B]]:
    '''
    Swap the order of the arguments of a function returning a function.
    flip(f)(c)(a) == f(a)(c)
    '''
    def flipped(c: C) -> Callable[[A], B]:
        def applied(a: A) -> B:
            return func(a)(c)
        return applied
    return flipped


def curry[A, B, C](func: Callable[[A, B], C]
                   ) -> Callable[[A], Callable[[B], C]]:
    '''curry(f)(a)(b) == f(a, b)'''
    def curried(a: A) -> Callable[[B], C]:
        def applied(b: B) -> C:
            return func(a, b)
        return applied
    return curried


def uncurry[A, B, C](func: Callable[[A], Callable[[B], C]]
                     ) -> Callable[[A, B], C]:
    '''uncurry(f)(a, b) == f(a)(b)'''
    def uncurried(a: A, b: B) -> C:
        return func(a)(b)
    return uncurried
