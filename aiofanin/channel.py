import asyncio
import collections
import random

from ._util import FnHandler, SelectFlag, SelectHandler

__all__ = ('Chan', 'select', 'timeout', 'go', 'nop', 'run')

MAX_OP_QUEUE_SIZE = 1024
"""
The maximum pending puts or pending gets for a channel.

Channels here never buffer, so every producer blocked on a put and every consumer blocked on a get occupies one slot.
Running into this limit almost always means some task stopped reading and the writers piled up behind it.
"""

MAX_DIRTY_SIZE = 256
"""
The number of abandoned operations (from a `select` whose other branch completed) tolerated in a queue before it is
compacted.
"""

_background = set()


class Chan:
    """
    An unbuffered rendezvous channel, the basic construct in CSP-style concurrency.

    A put completes only when a get takes the value, and a get completes only when a put offers one: neither side
    ever buffers. This is what gives the fan-in strategies their backpressure and their lock-step behaviour.

    Channels can be consumed with ``async for`` until they are closed.

    :param name: used to provide more friendly debugging outputs.
    """

    _count = 0

    def __init__(self, *, name=None):
        self._name = name or '_unk_' + str(self.__class__._count)
        self._gets = collections.deque()
        self._puts = collections.deque()
        self._closed = False
        self._dirty_puts = 0
        self._dirty_gets = 0
        self.__class__._count += 1

    def _notify_dirty(self, is_put):
        if is_put:
            self._dirty_puts += 1
        else:
            self._dirty_gets += 1

    @staticmethod
    def _dispatch(f, value):
        if f is None:
            return
        elif asyncio.isfuture(f):
            f.set_result(value)
        else:
            f(value)

    def _clean_gets(self):
        self._gets = collections.deque(g for g in self._gets if g.active)
        self._dirty_gets = 0

    def _clean_puts(self):
        self._puts = collections.deque(p for p in self._puts if p[0].active)
        self._dirty_puts = 0

    def _next_getter(self):
        while self._gets:
            g = self._gets.popleft()
            if g.active:
                return g
        self._dirty_gets = 0
        return None

    def _next_putter(self):
        while self._puts:
            p = self._puts.popleft()
            if p[0].active:
                return p
        self._dirty_puts = 0
        return None

    # noinspection PyRedundantParentheses
    def _put(self, val, handler):
        if val is None:
            raise TypeError('Cannot put None on a channel')

        if not handler.active:
            return None

        if self._closed:
            handler.commit()
            return (False,)

        # case 1: a getter is waiting, hand the value over
        getter = self._next_getter()
        if getter is not None:
            handler.commit()
            self._dispatch(getter.commit(), val)
            return (True,)

        # case 2: nobody is waiting, queue the put if it may block
        if handler.blockable:
            if self._dirty_puts >= MAX_DIRTY_SIZE or len(self._puts) >= MAX_OP_QUEUE_SIZE:
                self._clean_puts()
            assert len(self._puts) < MAX_OP_QUEUE_SIZE, \
                'No more than ' + str(MAX_OP_QUEUE_SIZE) + ' pending puts are allowed on a single channel'
            handler.queue(self, True)
            self._puts.append((handler, val))
        return None

    # noinspection PyRedundantParentheses
    def _get(self, handler):
        if not handler.active:
            return None

        # case 1: a putter is waiting, take its value
        putter = self._next_putter()
        if putter is not None:
            handler.commit()
            self._dispatch(putter[0].commit(), True)
            return (putter[1],)

        # case 2: closed and drained
        if self._closed:
            handler.commit()
            return (None,)

        # case 3: nobody is waiting, queue the get if it may block
        if handler.blockable:
            if self._dirty_gets >= MAX_DIRTY_SIZE or len(self._gets) >= MAX_OP_QUEUE_SIZE:
                self._clean_gets()
            assert len(self._gets) < MAX_OP_QUEUE_SIZE, \
                'No more than ' + str(MAX_OP_QUEUE_SIZE) + ' pending gets are allowed on a single channel'
            handler.queue(self, False)
            self._gets.append(handler)
        return None

    def __aiter__(self):
        return ChanIterator(self)

    def __repr__(self):
        return 'Chan<' + self._name + ' ' + str(id(self)) + '>'

    def put(self, val):
        """
        **Coroutine**. Put a value into the channel, waiting until some getter takes it.

        :param val: value to put into the channel. Cannot be `None`.
        :return: Awaitable of `True` if the value was taken, `False` if the channel was already closed.
        """
        ft = asyncio.get_running_loop().create_future()
        ret = self._put(val, FnHandler(ft))
        if ret is not None:
            ft.set_result(ret[0])
        return ft

    def put_nowait(self, val, cb=None, *, immediate_only=True):
        """
        Put `val` into the channel synchronously.

        If `immediate_only` is `True`, the operation is dropped unless a getter is already waiting.

        When `immediate_only` is `False` the put is queued if it cannot complete at once, and `cb` (if given) is
        called with `True` or `False` when it eventually completes.

        Returns `True` if the put succeeded immediately, `False` if the channel is already closed, `None` otherwise.
        """
        if immediate_only:
            assert cb is None, 'cb must be None if immediate_only is True'
            ret = self._put(val, FnHandler(None, blockable=False))
            return ret[0] if ret else None

        ret = self._put(val, FnHandler(cb))
        if ret is None:
            return None
        self._dispatch(cb, ret[0])
        return ret[0]

    def add(self, *vals):
        """
        Queue puts of all `vals`, in order, without waiting. Only suitable for a small number of values.

        :return: `self`
        """
        for v in vals:
            self.put_nowait(v, immediate_only=False)
        return self

    def get(self):
        """
        **Coroutine**. Get a value out of the channel.

        :return: An awaitable holding the value, or `None` if the channel is closed and no putter is left.
        """
        ft = asyncio.get_running_loop().create_future()
        ret = self._get(FnHandler(ft))
        if ret is not None:
            ft.set_result(ret[0])
        return ft

    def get_nowait(self):
        """
        Take a value only if a putter is already waiting.

        :return: the value, or `None` if nothing could be taken immediately.
        """
        ret = self._get(FnHandler(None, blockable=False))
        return ret[0] if ret else None

    def close(self):
        """
        Close the channel.

        Waiting getters complete with `None`. Further puts complete immediately with `False`; puts queued before
        closing still hand their values to later getters.

        Closing an already closed channel is a no-op.

        :return: `self`
        """
        if self._closed:
            return self
        self._closed = True
        while True:
            getter = self._next_getter()
            if getter is None:
                break
            self._dispatch(getter.commit(), None)
        return self

    @property
    def closed(self):
        """
        :return: whether this channel is already closed.
        """
        return self._closed

    async def collect(self, n=None):
        """
        **Coroutine**. Collect values from the channel into a list.

        :param n: if given, take at most `n` values, otherwise take until the channel is closed.
        """
        result = []
        if n is None:
            async for v in self:
                result.append(v)
        else:
            for _ in range(n):
                r = await self.get()
                if r is None:
                    break
                result.append(r)
        return result


class ChanIterator:

    def __init__(self, chan):
        self._chan = chan

    def __aiter__(self):
        return self

    async def __anext__(self):
        ret = await self._chan.get()
        if ret is None:
            raise StopAsyncIteration
        return ret


def timeout(seconds):
    """
    Returns a channel that closes itself after `seconds`. A get on it therefore completes with `None` once the time
    is up, which makes it usable as a deadline inside `select`.
    """
    if seconds < 0:
        raise ValueError('timeout must not be negative: %r' % (seconds,))
    c = Chan(name='timeout_' + str(seconds))
    asyncio.get_running_loop().call_later(seconds, c.close)
    return c


def select(*chan_ops, rng=None):
    """
    Asynchronously completes exactly one operation in `chan_ops`.

    The operations are tried in a random order, so no branch is favoured when several are ready.

    :param chan_ops: operations, each is either a channel in which a get operation is attempted, or a tuple
           `(chan, val)` in which a put operation is attempted.
    :param rng: source of the random order; the module-level `random` generator if `None`.
    :return: a future containing `(value, chan)`, where `value` is the value taken for a get or the put status for
             a put.
    """
    chan_ops = list(chan_ops)
    ft = asyncio.get_running_loop().create_future()
    flag = SelectFlag(ft)
    (rng or random).shuffle(chan_ops)

    def set_result_wrap(c):
        def set_result(v):
            ft.set_result((v, c))

        return set_result

    for chan_op in chan_ops:
        if isinstance(chan_op, Chan):
            chan = chan_op
            # noinspection PyProtectedMember
            r = chan._get(SelectHandler(set_result_wrap(chan), flag))
        else:
            chan, val = chan_op
            # noinspection PyProtectedMember
            r = chan._put(val, SelectHandler(set_result_wrap(chan), flag))
        if r is not None:
            ft.set_result((r[0], chan))
            return ft

    return ft


def go(coro):
    """
    Spawn a coroutine as a background task on the running loop.

    The task is referenced until it finishes, so a task nobody awaits (an abandoned producer, say) stays alive
    blocked on its channel instead of being garbage collected mid-flight.

    :return: the task.
    """
    task = asyncio.ensure_future(coro)
    _background.add(task)
    task.add_done_callback(_background.discard)
    return task


def nop():
    """
    Useful for yielding control to the scheduler.
    """
    return asyncio.sleep(0)


def run(coro):
    """
    Run a coroutine on a fresh event loop in the current thread, blocking until it completes.

    Background tasks still pending when the coroutine returns are cancelled as the loop is torn down.

    :return: the result of the coroutine.
    """
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        pending = asyncio.all_tasks(loop)
        for task in pending:
            task.cancel()
        if pending:
            loop.run_until_complete(asyncio.gather(*pending, return_exceptions=True))
        loop.close()
