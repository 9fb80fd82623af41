import asyncio


def _cancelled(f):
    return asyncio.isfuture(f) and f.done()


class FnHandler:
    """
    Completion handler for a single put or get. `f` is either a future, a callable receiving the result, or `None`.

    A handler wrapping a future becomes inactive as soon as the future is done, which is how operations abandoned
    through cancellation (for example by `asyncio.wait_for`) drop out of a channel's queues.
    """
    __slots__ = ('_f', '_blockable')

    def __init__(self, f, blockable=True):
        self._f = f
        self._blockable = blockable

    @property
    def active(self):
        return not _cancelled(self._f)

    @property
    def blockable(self):
        return self._blockable

    def queue(self, chan, is_put):
        pass

    def commit(self):
        return self._f


class SelectFlag:
    """
    Shared by all handlers of one `select` call: once any of them commits, the rest become inactive.
    """
    __slots__ = ('_active', '_handlers', '_ft')

    def __init__(self, ft=None):
        self._handlers = []
        self._active = True
        self._ft = ft

    @property
    def active(self):
        return self._active and not _cancelled(self._ft)

    def set(self, handler):
        self._handlers.append(handler)

    def commit(self, handler):
        for h in self._handlers:
            if h is not handler:
                h.notify_inactive()
        self._handlers = []
        self._active = False


class SelectHandler:
    __slots__ = ('_f', '_flag', '_chan', '_is_put')
    blockable = True

    def __init__(self, f, flag):
        flag.set(self)
        self._f = f
        self._flag = flag
        self._chan = None
        self._is_put = None

    @property
    def active(self):
        return self._flag.active

    def notify_inactive(self):
        if self._chan is not None:
            # noinspection PyProtectedMember
            self._chan._notify_dirty(self._is_put)

    def queue(self, chan, is_put):
        self._chan = chan
        self._is_put = is_put

    def commit(self):
        self._flag.commit(self)
        return self._f
