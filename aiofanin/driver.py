"""
Consumers driving the fan-in strategies, and the demos wiring producers, fan-ins and consumers together.

Every consumer prints each item it takes through `emit` (`print` by default) followed by a fixed sentinel line when
it stops. Stopping never cancels anything: producers and relays are simply left blocked.
"""
import collections
import logging
import random

from .channel import select, timeout
from .fanin import fan_in, fan_in_with_order, fan_in_with_select
from .producer import MAX_PAUSE, boring, boring_with_order

logger = logging.getLogger(__name__)

BOTH_BORING = "You're both boring. I'm leaving."
GLOBAL_TIMEOUT_REACHED = 'global timeout reached.'
TOO_SLOW = "You're too slow."

GLOBAL_TIMEOUT = 3.0
"""
Seconds from the start of :func:`consume_with_timeout` until it gives up regardless of progress.
"""

IDLE_TIMEOUT = 1.0
"""
Seconds :func:`consume_with_timeout` waits for the next item, re-armed after every item received.
"""

UNORDERED_COUNT = 10
ORDERED_ROUNDS = 5
LABELS = ('Joe', 'Ann')

Outcome = collections.namedtuple('Outcome', 'reason consumed')
"""
How :func:`consume_with_timeout` ended: `reason` is :data:`GLOBAL` or :data:`IDLE`, `consumed` the number of items
taken before that.
"""

GLOBAL = 'global_timeout'
IDLE = 'too_slow'


async def consume(c, n=UNORDERED_COUNT, *, emit=print):
    """
    **Coroutine**. Take and print `n` items from `c`, then leave.

    :return: the items taken, in order.
    """
    if n < 0:
        raise ValueError('count must not be negative: %r' % (n,))
    items = []
    for _ in range(n):
        item = await c.get()
        emit(str(item))
        items.append(item)
    emit(BOTH_BORING)
    return items


async def consume_in_order(c, n_sources, rounds=ORDERED_ROUNDS, *, emit=print):
    """
    **Coroutine**. Consume gated items from `c` in lock-step rounds.

    Each round takes exactly `n_sources` items, one per producer since every producer is waiting on its gate, prints
    them, then acknowledges every gate of the round. Only then may any producer emit again.

    :return: a list of rounds, each the list of items received in that round.
    """
    if n_sources < 1:
        raise ValueError('need at least one source, got %r' % (n_sources,))
    if rounds < 0:
        raise ValueError('rounds must not be negative: %r' % (rounds,))
    received = []
    for r in range(rounds):
        batch = []
        for _ in range(n_sources):
            batch.append(await c.get())
        for item in batch:
            emit(str(item))
        for item in batch:
            await item.gate.put(True)
        logger.debug('round %d acknowledged for %d sources', r, n_sources)
        received.append(batch)
    emit(BOTH_BORING)
    return received


async def consume_with_timeout(c, *, global_timeout=GLOBAL_TIMEOUT, idle_timeout=IDLE_TIMEOUT, emit=print, rng=None):
    """
    **Coroutine**. Print items from `c` until either deadline fires.

    The global deadline is armed once, when the call starts. The idle deadline is armed anew after every item, so it
    only fires when no item arrives within `idle_timeout`. When several of the three are ready together the one taken
    is chosen at random.

    If `c` gets closed it is dropped from the selection and the idle deadline ends the run.

    :return: an :data:`Outcome`.
    """
    if global_timeout <= 0 or idle_timeout <= 0:
        raise ValueError('timeouts must be positive: global=%r idle=%r' % (global_timeout, idle_timeout))
    deadline = timeout(global_timeout)
    idle = timeout(idle_timeout)
    sources = [c]
    consumed = 0
    while True:
        s, ch = await select(*sources, deadline, idle, rng=rng)
        if ch is c:
            if s is None:
                # the idle window already running is kept, not restarted
                sources = []
                continue
            emit(str(s))
            consumed += 1
            idle = timeout(idle_timeout)
        elif ch is deadline:
            emit(GLOBAL_TIMEOUT_REACHED)
            logger.info('global timeout after %d items', consumed)
            return Outcome(GLOBAL, consumed)
        else:
            emit(TOO_SLOW)
            logger.info('idle timeout after %d items', consumed)
            return Outcome(IDLE, consumed)


def _child_rng(rng):
    if rng is None:
        return None
    return random.Random(rng.getrandbits(64))


async def unordered_demo(labels=LABELS, count=UNORDERED_COUNT, *, rng=None, max_pause=MAX_PAUSE, emit=print):
    """
    **Coroutine**. Unordered fan-in of one producer per label, `count` items consumed.
    """
    c = fan_in(*[boring(label, rng=_child_rng(rng), max_pause=max_pause) for label in labels])
    return await consume(c, count, emit=emit)


async def ordered_demo(labels=LABELS, rounds=ORDERED_ROUNDS, *, rng=None, max_pause=MAX_PAUSE, emit=print):
    """
    **Coroutine**. Turn-taking fan-in of one gated producer per label, `rounds` rounds consumed.
    """
    c = fan_in_with_order(*[boring_with_order(label, rng=_child_rng(rng), max_pause=max_pause) for label in labels])
    return await consume_in_order(c, len(labels), rounds, emit=emit)


async def select_demo(labels=LABELS, *, global_timeout=GLOBAL_TIMEOUT, idle_timeout=IDLE_TIMEOUT, rng=None,
                      max_pause=MAX_PAUSE, emit=print):
    """
    **Coroutine**. Select-based fan-in of two producers, consumed until a deadline fires.
    """
    if len(labels) != 2:
        raise ValueError('the select demo takes exactly two labels, got %r' % (labels,))
    first, second = labels
    c = fan_in_with_select(boring(first, rng=_child_rng(rng), max_pause=max_pause),
                           boring(second, rng=_child_rng(rng), max_pause=max_pause),
                           rng=_child_rng(rng))
    return await consume_with_timeout(c, global_timeout=global_timeout, idle_timeout=idle_timeout, emit=emit,
                                      rng=_child_rng(rng))
