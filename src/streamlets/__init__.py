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
A small single threaded reactive publish/subscribe engine.

Publishers describe a chain of transforms. Nothing runs until something
subscribes, at which point the transforms are composed, from the subscriber
back to the source, into a single delivery function that the source calls
with each value:

    received = []
    subscription = (from_iterable([1, 2, 3])
                    .map(lambda x: x * 2)
                    .filter(lambda x: x > 2)
                    .subscribe(received.append))
    # received == [4, 6]

A Subject is a source values are pushed into by imperative code:

    subject = Subject[int, Exception]()
    subscription = subject.try_map(parse).subscribe(on_value, on_complete)
    subject.send(1)
    subject.send_completion()

Errors travel forward. A failing transform completes its subscription with a
Failure outcome rather than raising back to whoever called send().
'''

from . import composition
from . import error
from . import outcome
from . import publisher
from . import scheduler
from . import stage
from . import subject
from . import subscription
from .composition import *
from .error import *
from .outcome import *
from .publisher import *
from .scheduler import *
from .stage import *
from .subject import *
from .subscription import *


__all__ = (
           composition.__all__ +
           error.__all__ +
           outcome.__all__ +
           publisher.__all__ +
           scheduler.__all__ +
           stage.__all__ +
           subject.__all__ +
           subscription.__all__ +
          [])
