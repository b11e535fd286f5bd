import argparse
import asyncio
import os

import pytest

import run
from chaoscontrol.antagonist import OtherError
from chaoscontrol.harness import ActorError
from test import patch


def test_str2bool():
    for value in ('y', 'Yes', 'TRUE', '1', 't'):
        assert run.str2bool(value) is True
    for value in ('n', 'No', 'false', '0', 'F'):
        assert run.str2bool(value) is False
    with pytest.raises(argparse.ArgumentTypeError):
        run.str2bool('maybe')


def test_non_negative_int():
    assert run.non_negative_int('3') == 3
    with pytest.raises(argparse.ArgumentTypeError):
        run.non_negative_int('-1')
    with pytest.raises(argparse.ArgumentTypeError):
        run.non_negative_int('many')


def test_log_level():
    args = run.parse_args(['-l', 'debug'])
    assert args.log_level == run.levels['debug']
    with pytest.raises(argparse.ArgumentTypeError):
        run.log_level('loud')


def test_main_invalid_configuration():
    with patch(os, 'environ', {}):
        assert run.main(run.parse_args([])) == 2


def test_main_exit_codes():
    args = run.parse_args(['--host-uri', 'http://h', '--token', 't'])

    async def interrupted(config):
        return None

    async def failed(config):
        return ActorError('inst0_0', OtherError('boom'))

    with patch(run, 'run_harness', interrupted):
        assert run.main(args) == 0
    with patch(run, 'run_harness', failed):
        assert run.main(args) == 1


class FakeHarness(object):
    instances = []

    def __init__(self, config, client):
        self.config = config
        self.client = client
        FakeHarness.instances.append(self)

    async def run(self, interrupt):
        await interrupt.wait()
        return None


@pytest.mark.asyncio
async def test_run_harness_returns_on_interrupt():
    args = run.parse_args(['--host-uri', 'http://h', '--token', 't'])
    config = run.config_from_args(args, {})
    interrupt = asyncio.Event()
    asyncio.get_running_loop().call_later(0.01, interrupt.set)

    with patch(run, 'Harness', FakeHarness):
        result = await asyncio.wait_for(run.run_harness(config, interrupt), 2)

    assert result is None
    assert FakeHarness.instances[-1].config is config


def test_main_invalid_project():
    args = run.parse_args(['--host-uri', 'http://h', '--token', 't',
                           '--project', 'Bad_Project'])
    assert run.main(args) == 2
