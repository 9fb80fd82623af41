import argparse
import logging
import random

from . import driver, patterns
from .channel import run
from .producer import MAX_PAUSE

DEMOS = ('all', 'unordered', 'ordered', 'select', 'daisy-chain', 'search', 'workers', 'ping-pong')


def build_parser():
    p = argparse.ArgumentParser(prog='aiofanin', description='Fan-in patterns over rendezvous channels')
    p.add_argument('demo', nargs='?', default='all', choices=DEMOS,
                   help='which pattern to run (default: the three fan-in variants in sequence)')
    p.add_argument('--count', type=int, default=driver.UNORDERED_COUNT,
                   help='items consumed by the unordered fan-in')
    p.add_argument('--rounds', type=int, default=driver.ORDERED_ROUNDS,
                   help='rounds consumed by the ordered fan-in')
    p.add_argument('--global-timeout', type=float, default=driver.GLOBAL_TIMEOUT,
                   help='seconds before the select fan-in gives up')
    p.add_argument('--idle-timeout', type=float, default=driver.IDLE_TIMEOUT,
                   help='seconds the select fan-in waits for each item')
    p.add_argument('--max-pause', type=float, default=MAX_PAUSE,
                   help='upper bound of the pause after each emission, in seconds')
    p.add_argument('--chain', type=int, default=1000, help='length of the daisy chain')
    p.add_argument('--jobs', type=int, default=8, help='jobs handed to the worker pool')
    p.add_argument('--job-time', type=float, default=1.0, help='seconds each worker pool job takes')
    p.add_argument('--seed', type=int, default=None, help='seed the random pauses and tie-breaks')
    p.add_argument('--verbose', '-v', action='store_true', help='debug logging')
    return p


async def main(args):
    rng = random.Random(args.seed) if args.seed is not None else None

    if args.demo in ('all', 'unordered'):
        await driver.unordered_demo(count=args.count, rng=rng, max_pause=args.max_pause)
    if args.demo in ('all', 'ordered'):
        await driver.ordered_demo(rounds=args.rounds, rng=rng, max_pause=args.max_pause)
    if args.demo in ('all', 'select'):
        await driver.select_demo(global_timeout=args.global_timeout, idle_timeout=args.idle_timeout, rng=rng,
                                 max_pause=args.max_pause)
    if args.demo == 'daisy-chain':
        print(await patterns.daisy_chain(args.chain))
    if args.demo == 'search':
        for result in await patterns.search('aiofanin', patterns.default_backends(rng=rng)):
            print(result)
    if args.demo == 'workers':
        await patterns.worker_pool(range(1, args.jobs + 1), job_time=args.job_time)
    if args.demo == 'ping-pong':
        await patterns.ping_pong()


def cli(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.count < 0 or args.rounds < 0 or args.jobs < 0 or args.chain < 0:
        parser.error('counts must not be negative')
    if args.global_timeout <= 0 or args.idle_timeout <= 0:
        parser.error('timeouts must be positive')
    if args.max_pause < 0 or args.job_time < 0:
        parser.error('--max-pause and --job-time must not be negative')
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(asctime)s %(name)s %(levelname)s %(message)s')
    run(main(args))


if __name__ == '__main__':
    cli()
