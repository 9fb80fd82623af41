"""
Fan-in strategies: merge several input channels into one unbuffered output channel.

None of them ever closes the output or stops its tasks; they keep forwarding for as long as the inputs produce and
someone reads the output.
"""
import logging

from .channel import Chan, go, select

logger = logging.getLogger(__name__)


def _relay(inp, out):
    async def work():
        async for v in inp:
            await out.put(v)

    go(work())


def fan_in(*inputs):
    """
    Merge the inputs with one relay task per input.

    The relays race to put on the shared output, so the interleaving is whatever the scheduler and the producers'
    pauses make it. A silent input only blocks its own relay.

    :param inputs: the input channels.
    :return: the output channel.
    """
    if not inputs:
        raise ValueError('fan_in needs at least one input')
    c = Chan(name='fan_in')
    for inp in inputs:
        _relay(inp, c)
    logger.debug('fan-in over %d inputs', len(inputs))
    return c


def fan_in_with_order(*inputs):
    """
    Merge gated inputs (see :func:`aiofanin.producer.boring_with_order`).

    The relaying is the same as :func:`fan_in`; the ordering comes from the consumer acknowledging each item's gate
    only once a full round has been received.
    """
    if not inputs:
        raise ValueError('fan_in_with_order needs at least one input')
    c = Chan(name='fan_in_with_order')
    for inp in inputs:
        _relay(inp, c)
    logger.debug('ordered fan-in over %d inputs', len(inputs))
    return c


def fan_in_with_select(input1, input2, *, rng=None):
    """
    Merge two inputs with a single task selecting whichever input is ready first.

    When both are ready the choice is random. An input that gets closed is dropped from the selection.

    :param rng: random source for the tie-break, passed on to :func:`aiofanin.channel.select`.
    :return: the output channel.
    """
    c = Chan(name='fan_in_with_select')

    async def work():
        chs = [input1, input2]
        while chs:
            s, ch = await select(*chs, rng=rng)
            if s is None:
                chs.remove(ch)
            else:
                await c.put(s)

    go(work())
    return c
