"""
Producers: labelled sources emitting an endless stream of items at random intervals.

A producer never stops on its own and has no shutdown signal. Once nobody reads its channel it stays blocked on its
next put until the event loop is torn down.
"""
import collections
import logging
import random

from .channel import Chan, go, timeout

logger = logging.getLogger(__name__)

MAX_PAUSE = 1.0
"""
Upper bound (exclusive) of the pause after each emission, in seconds.
"""

PAUSE_STEPS = 1000
"""
The pause is drawn as a uniform integer in `[0, PAUSE_STEPS)` and scaled to `max_pause`, i.e. whole milliseconds with
the default settings.
"""


class Item(collections.namedtuple('Item', 'label seq gate')):
    """
    One emission of a producer: its label, its sequence number (from 0) and, for ordered producers, the gate on
    which the producer waits for its acknowledgment.
    """
    __slots__ = ()

    @property
    def text(self):
        return f'{self.label} {self.seq}'

    def __str__(self):
        return self.text


def _check_label(label):
    if not isinstance(label, str) or not label:
        raise ValueError('producer label must be a non-empty string, got %r' % (label,))


def pause_seconds(rng=None, max_pause=MAX_PAUSE):
    """
    Draw one random pause, in seconds.
    """
    return (rng or random).randrange(PAUSE_STEPS) / PAUSE_STEPS * max_pause


def boring(label, *, rng=None, max_pause=MAX_PAUSE):
    """
    Start a producer and return the channel it emits on.

    The producer puts `Item(label, i, None)` for `i = 0, 1, 2, ...`, each put blocking until someone takes the item,
    and pauses a random time after every emission.

    :param label: non-empty name of the producer, e.g. `'Joe'`.
    :param rng: random source for the pauses, the module-level generator if `None`.
    :param max_pause: upper bound of the pauses in seconds.
    :return: the output channel.
    """
    _check_label(label)
    c = Chan(name=label)

    async def work():
        i = 0
        while True:
            await c.put(Item(label, i, None))
            await timeout(pause_seconds(rng, max_pause)).get()
            i += 1

    logger.debug('starting producer %s', label)
    go(work())
    return c


def boring_with_order(label, *, rng=None, max_pause=MAX_PAUSE):
    """
    Start a producer that waits for permission between emissions.

    Every item carries the producer's gate. After emitting and pausing, the producer blocks until exactly one value
    is put on that gate. An item that is never acknowledged leaves the producer blocked for good.

    Parameters as for :func:`boring`.
    """
    _check_label(label)
    c = Chan(name=label)
    wait_for_it = Chan(name=label + '_gate')

    async def work():
        i = 0
        while True:
            await c.put(Item(label, i, wait_for_it))
            await timeout(pause_seconds(rng, max_pause)).get()
            await wait_for_it.get()
            i += 1

    logger.debug('starting ordered producer %s', label)
    go(work())
    return c
