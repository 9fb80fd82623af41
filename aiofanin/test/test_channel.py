import asyncio
import random

import pytest

import aiofanin._util
import aiofanin.channel
from aiofanin import *

BLOCKED = '[BLOCKED]'


def f_result(ft: asyncio.Future):
    return ft.result() if ft.done() else BLOCKED


def test_has_asyncio():
    import pytest_asyncio
    assert pytest_asyncio.__version__


def test_putting_none():
    c = Chan()
    with pytest.raises(TypeError):
        c.put_nowait(None)


def test_negative_timeout():
    with pytest.raises(ValueError):
        timeout(-1)


@pytest.mark.asyncio
async def test_put_blocks_until_taken():
    c = Chan()
    p = c.put(42)
    await nop()
    assert f_result(p) == BLOCKED
    assert 42 == await c.get()
    assert f_result(p) is True


@pytest.mark.asyncio
async def test_get_blocks_until_put():
    c = Chan()
    g = c.get()
    await nop()
    assert f_result(g) == BLOCKED
    assert await c.put('val')
    assert f_result(g) == 'val'


@pytest.mark.asyncio
async def test_no_buffering():
    c = Chan()
    assert c.put_nowait(1) is None
    assert c.get_nowait() is None

    c.add(1)
    assert c.get_nowait() == 1
    assert c.get_nowait() is None


@pytest.mark.asyncio
async def test_channel_closing():
    c = Chan()
    assert c.put_nowait(1, immediate_only=False) is None
    assert c.put_nowait(2, immediate_only=False) is None
    assert 1 == await c.get()
    c.close()
    assert c.closed
    c.close()
    assert c.put_nowait(3, immediate_only=False) is False
    assert await c.put(4) is False
    assert 2 == await c.get()
    assert await c.get() is None


@pytest.mark.asyncio
async def test_close_releases_waiting_getters():
    c = Chan()
    g1 = c.get()
    g2 = c.get()
    c.close()
    assert await g1 is None
    assert await g2 is None


@pytest.mark.asyncio
async def test_put_nowait_callback():
    done = []
    c = Chan()
    c.put_nowait('val', done.append, immediate_only=False)
    assert not done
    assert 'val' == await c.get()
    assert done == [True]


@pytest.mark.asyncio
async def test_cancelled_get_is_skipped():
    c = Chan()
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(c.get(), 0.01)
    assert c.put_nowait(1) is None

    g = c.get()
    assert c.put_nowait(2) is True
    assert await g == 2


@pytest.mark.asyncio
async def test_cancelled_put_is_skipped():
    c = Chan()
    with pytest.raises(asyncio.TimeoutError):
        await asyncio.wait_for(c.put('lost'), 0.01)
    assert c.get_nowait() is None


@pytest.mark.asyncio
async def test_limit_pending_puts():
    c = Chan()
    for i in range(aiofanin.channel.MAX_OP_QUEUE_SIZE):
        c.put_nowait(i, immediate_only=False)
    with pytest.raises(AssertionError):
        c.put_nowait(42, immediate_only=False)


@pytest.mark.asyncio
async def test_limit_pending_gets():
    c = Chan()
    for i in range(aiofanin.channel.MAX_OP_QUEUE_SIZE):
        c.get()
    with pytest.raises(AssertionError):
        c.get()


@pytest.mark.asyncio
async def test_abandoned_select_puts_are_cleaned():
    c = Chan()
    flag = aiofanin._util.SelectFlag()
    for i in range(aiofanin.channel.MAX_OP_QUEUE_SIZE):
        if i % 2 == 0:
            c._put(i, aiofanin._util.FnHandler(None, True))
        else:
            c._put(i, aiofanin._util.SelectHandler(None, flag))
    assert c._dirty_puts == 0
    flag.commit(None)
    assert c._dirty_puts == 512
    assert c.put_nowait('last', immediate_only=False) is None
    assert c._dirty_puts == 0
    c.close()
    assert await c.collect() == list(range(0, 1024, 2)) + ['last']


@pytest.mark.asyncio
async def test_async_iterator():
    c = Chan().add(*range(10)).close()

    result = []
    async for v in c:
        result.append(v)

    assert result == list(range(10))


@pytest.mark.asyncio
async def test_collect():
    c = Chan().add(*range(10))
    assert list(range(3)) == await c.collect(3)
    c.close()
    assert list(range(3, 10)) == await c.collect(20)


@pytest.mark.asyncio
async def test_timeout():
    loop = asyncio.get_running_loop()
    tout = 0.02
    start = loop.time()
    c = timeout(tout)
    assert await c.get() is None
    assert c.closed
    assert loop.time() - start >= tout * 0.9


@pytest.mark.asyncio
async def test_select_works_at_all():
    c = Chan().add(42).close()

    assert (42, c) == await select(c)


@pytest.mark.asyncio
async def test_select_closed():
    c = Chan().close()
    assert (None, c) == await select(c)
    assert (False, c) == await select((c, 1))


@pytest.mark.asyncio
async def test_select_puts():
    f_hits = 0
    e_hits = 0
    for _ in range(100):
        f = Chan().add(1).close()
        e = Chan()
        taken = e.get()

        r, rc = await select(f, (e, 2))
        if rc is f:
            f_hits += 1
            assert r == 1
            assert not taken.done()
        else:
            e_hits += 1
            assert r is True
            assert taken.result() == 2
    # there is a 2/(2^100) chance that the following assertion become false
    # even though the program is correct
    assert (f_hits > 0) and (e_hits > 0)


@pytest.mark.asyncio
async def test_select_losing_branch_is_withdrawn():
    a = Chan(name='a')
    b = Chan(name='b')
    ft = select(a, b)
    await nop()
    assert not ft.done()
    assert await b.put('x')
    assert ('x', b) == await ft
    assert a.put_nowait('y') is None


@pytest.mark.asyncio
async def test_select_no_favouritism():
    n = 10000
    hits = {'a': 0, 'b': 0}
    for _ in range(n):
        a = Chan().add('a')
        b = Chan().add('b')
        v, _ = await select(a, b)
        hits[v] += 1
    assert abs(hits['a'] - hits['b']) < 0.1 * n / 2


@pytest.mark.asyncio
async def test_select_rng_is_reproducible():
    async def picks(seed):
        rng = random.Random(seed)
        out = []
        for _ in range(20):
            a = Chan().add('a')
            b = Chan().add('b')
            v, _ = await select(a, b, rng=rng)
            out.append(v)
        return out

    assert await picks(7) == await picks(7)


@pytest.mark.asyncio
async def test_go():
    async def af(a):
        await nop()
        return a

    t = go(af(2))
    assert t in aiofanin.channel._background
    assert 2 == await t
    await nop()
    assert t not in aiofanin.channel._background


def test_run():
    async def afunc():
        return 1

    assert run(afunc()) == 1


def test_run_cancels_leftover_tasks():
    started = []

    async def forever():
        started.append(True)
        await Chan().get()

    async def main():
        t = go(forever())
        await nop()
        return t

    t = run(main())
    assert started
    assert t.cancelled()
