"""
Companion concurrency patterns built on the same rendezvous channels: generators drained in parallel, a daisy
chain, a worker pool, replicated search with a deadline and a game of ping-pong.
"""
import logging
import random

from .channel import Chan, go, select, timeout

logger = logging.getLogger(__name__)

SEARCH_TIMEOUT = 0.1
SEARCH_LATENCY = 0.1


def generator(*values):
    """
    Returns a channel giving out `values` one by one, closed after the last one is taken.
    """
    c = Chan(name='generator')

    async def work():
        for v in values:
            await c.put(v)
        c.close()

    go(work())
    return c


async def fan_out(*channels, emit=print):
    """
    **Coroutine**. Drain every channel in its own task, printing `Channel<i> data: <v>`, and return once all of
    them are closed.
    """
    done = Chan(name='fan_out_done')

    async def drain(idx, ch):
        async for v in ch:
            emit(f'Channel{idx} data: {v}')
        await done.put(idx)

    for idx, ch in enumerate(channels, 1):
        go(drain(idx, ch))

    finished = []
    for _ in channels:
        finished.append(await done.get())
    return finished


async def _pass_on(left, right):
    value = await right.get()
    await left.put(1 + value)


async def daisy_chain(n):
    """
    **Coroutine**. Chain `n` tasks with channels, each passing on what it receives plus one, feed 1 in at the right
    end and return what comes out at the left: `n + 1`.
    """
    if n < 0:
        raise ValueError('chain length must not be negative: %r' % (n,))
    leftmost = Chan(name='leftmost')
    left = leftmost
    right = leftmost
    for _ in range(n):
        right = Chan()
        go(_pass_on(left, right))
        left = right

    async def giver(c):
        await c.put(1)

    go(giver(right))
    return await leftmost.get()


def _double(job):
    return job * 2


async def worker_pool(jobs, n_workers=3, work=_double, *, job_time=0.0, emit=print):
    """
    **Coroutine**. Process `jobs` with `n_workers` worker tasks taking jobs off one shared channel.

    The first exception raised by `work` is re-raised here; the remaining workers are abandoned.

    :param work: plain function applied to each job; neither jobs nor results may be `None`.
    :param job_time: seconds each job takes on top of `work`.
    :return: the results, in completion order.
    """
    if n_workers < 1:
        raise ValueError('need at least one worker, got %r' % (n_workers,))
    jobs = list(jobs)
    job_chan = Chan(name='jobs')
    results = Chan(name='results')

    async def worker(wid):
        async for j in job_chan:
            emit(f'worker {wid} started job {j}')
            await timeout(job_time).get()
            try:
                r = work(j)
                if r is None:
                    raise TypeError('work returned None for job %r' % (j,))
            except Exception as e:
                logger.debug('worker %d failed on job %r', wid, j)
                await results.put((None, e))
                return
            emit(f'worker {wid} finished job {j}')
            await results.put((r, None))

    async def feed():
        for j in jobs:
            await job_chan.put(j)
        job_chan.close()
        logger.debug('closed jobs')

    for wid in range(1, n_workers + 1):
        go(worker(wid))
    go(feed())

    out = []
    for _ in jobs:
        r, err = await results.get()
        if err is not None:
            raise err
        out.append(r)
    return out


def fake_search(kind, max_latency=SEARCH_LATENCY, rng=None):
    """
    Returns a search coroutine function answering after a random latency in `[0, max_latency)`.
    """

    async def searcher(query):
        await timeout((rng or random).uniform(0, max_latency)).get()
        return f'{kind} result for "{query}"'

    searcher.kind = kind
    return searcher


async def first(query, *replicas):
    """
    **Coroutine**. Send `query` to every replica and return the first answer. The slower replicas are left blocked
    on their put.
    """
    if not replicas:
        raise ValueError('first needs at least one replica')
    c = Chan(name='first')

    async def search_replica(replica):
        await c.put(await replica(query))

    for replica in replicas:
        go(search_replica(replica))

    return await c.get()


def default_backends(max_latency=SEARCH_LATENCY, rng=None):
    return [(fake_search(kind + '1', max_latency, rng), fake_search(kind + '2', max_latency, rng))
            for kind in ('web', 'image', 'video')]


async def search(query, backends=None, *, max_wait=SEARCH_TIMEOUT, emit=print):
    """
    **Coroutine**. Query every backend, each a sequence of replicas, in parallel and collect the fastest replica's
    answer per backend.

    Stops at `max_wait` seconds, printing `timeout` and returning what has arrived so far.
    """
    if backends is None:
        backends = default_backends()
    c = Chan(name='search')

    async def worker(replicas):
        await c.put(await first(query, *replicas))

    for replicas in backends:
        go(worker(replicas))

    tout = timeout(max_wait)
    results = []
    for _ in backends:
        r, ch = await select(c, tout)
        if ch is tout:
            emit('timeout')
            logger.info('search for %r timed out with %d of %d results', query, len(results), len(backends))
            return results
        results.append(r)
    return results


class Ball:
    __slots__ = ('hits',)

    def __init__(self):
        self.hits = 0


async def _player(name, table, hit_pause, emit):
    while True:
        ball = await table.get()
        ball.hits += 1
        emit(f'{name} {ball.hits}')
        await timeout(hit_pause).get()
        await table.put(ball)


async def ping_pong(duration=1.0, hit_pause=0.1, *, emit=print):
    """
    **Coroutine**. Two players hit a ball back and forth over a shared table channel. After `duration` seconds the
    ball is snatched off the table and returned; the players are left waiting for it.
    """
    table = Chan(name='table')
    go(_player('ping', table, hit_pause, emit))
    go(_player('pong', table, hit_pause, emit))

    await table.put(Ball())
    await timeout(duration).get()
    return await table.get()
