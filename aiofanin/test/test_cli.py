import pytest

from aiofanin.__main__ import build_parser, cli
from aiofanin.driver import BOTH_BORING, GLOBAL_TIMEOUT_REACHED


def test_defaults():
    args = build_parser().parse_args([])
    assert args.demo == 'all'
    assert args.count == 10
    assert args.rounds == 5
    assert args.global_timeout == 3.0
    assert args.idle_timeout == 1.0
    assert args.seed is None


def test_daisy_chain(capsys):
    cli(['daisy-chain', '--chain', '10'])
    assert capsys.readouterr().out.strip() == '11'


def test_unordered(capsys):
    cli(['unordered', '--count', '3', '--max-pause', '0.01', '--seed', '1'])
    lines = capsys.readouterr().out.splitlines()
    assert len(lines) == 4
    assert lines[-1] == BOTH_BORING


def test_select(capsys):
    cli(['select', '--global-timeout', '0.2', '--idle-timeout', '0.5', '--max-pause', '0.01'])
    assert capsys.readouterr().out.splitlines()[-1] == GLOBAL_TIMEOUT_REACHED


@pytest.mark.parametrize('argv', [
    ['--idle-timeout', '0'],
    ['--count', '-1'],
    ['--max-pause', '-0.5'],
    ['no-such-demo'],
])
def test_bad_arguments(argv):
    with pytest.raises(SystemExit) as e:
        cli(argv)
    assert e.value.code == 2
