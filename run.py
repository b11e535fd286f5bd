#!/usr/bin/env python3

import sys
import argparse
import asyncio
import logging
import signal

import logzero
from logzero import logger

from io import StringIO

from chaoscontrol.client import ControlPlaneClient
from chaoscontrol.common import *
from chaoscontrol.config import ConfigError, config_from_args
from chaoscontrol.harness import Harness
from chaoscontrol.helpers import run


# Command-line Argument Parsing
def str2bool(v):
    if isinstance(v, bool):
        return v
    if v.lower() in true_list:
        return True
    elif v.lower() in false_list:
        return False
    else:
        raise argparse.ArgumentTypeError(
            'Boolean value (yes, no, true, false, y, n, 1, or 0) expected.')


LOG_LEVEL_HELP = """Logging level.
                      [LOG-LEVEL]: notset, debug, info, warning, error, critical
                      Default: info"""
levels = {
    'notset': logging.NOTSET,
    'debug': logging.DEBUG,
    'info': logging.INFO,
    'warning': logging.WARNING,
    'error': logging.ERROR,
    'critical': logging.CRITICAL
}


def log_level(v):
    if v.lower() in levels.keys():
        return levels[v.lower()]
    else:
        raise argparse.ArgumentTypeError(
            'Expected one of the following: {}.'.format(
                 ', '.join(levels.keys())))


def non_negative_int(v):
    try:
        value = int(v)
    except ValueError:
        raise argparse.ArgumentTypeError(
            'Expected an integer, got {}'.format(v))
    if value < 0:
        raise argparse.ArgumentTypeError(
            'Expected a non-negative integer, got {}'.format(v))
    return value


def program_args():
    parser = argparse.ArgumentParser(
        description='Stress a control plane by racing antagonists that '
                    'create, start, stop and delete the same instances, '
                    'disks and snapshots.')

    parser.add_argument('--host-uri', help='Base URI of the control plane ' \
                        'API, e.g. http://127.0.0.1:12220. Default: the ' \
                        'value of the {} environment ' \
                        'variable.'.format(DEFAULT_CHAOS_HOST_ENV),
                        default=None)

    parser.add_argument('--token', help='Bearer token used to authenticate ' \
                        'every request. Default: the value of the {} ' \
                        'environment variable.'.format(
                            DEFAULT_CHAOS_TOKEN_ENV),
                        default=None)

    parser.add_argument('--project', help='The project in which all test ' \
                        'resources are created. It must already exist. ' \
                        'Default: {}'.format(DEFAULT_CHAOS_PROJECT),
                        default=DEFAULT_CHAOS_PROJECT)

    parser.add_argument('--num-test-instances', type=non_negative_int,
                        help='Number of instances to antagonize. ' \
                        'Default: {}'.format(
                            DEFAULT_CHAOS_NUM_TEST_INSTANCES),
                        default=DEFAULT_CHAOS_NUM_TEST_INSTANCES)

    parser.add_argument('--threads-per-instance', type=non_negative_int,
                        help='Number of actors acting on each instance. ' \
                        'Default: {}'.format(
                            DEFAULT_CHAOS_THREADS_PER_INSTANCE),
                        default=DEFAULT_CHAOS_THREADS_PER_INSTANCE)

    parser.add_argument('--num-test-disks', type=non_negative_int,
                        help='Number of disks to antagonize. ' \
                        'Default: {}'.format(DEFAULT_CHAOS_NUM_TEST_DISKS),
                        default=DEFAULT_CHAOS_NUM_TEST_DISKS)

    parser.add_argument('--threads-per-disk', type=non_negative_int,
                        help='Number of actors acting on each disk. ' \
                        'Default: {}'.format(DEFAULT_CHAOS_THREADS_PER_DISK),
                        default=DEFAULT_CHAOS_THREADS_PER_DISK)

    parser.add_argument('--num-test-snapshots', type=non_negative_int,
                        help='Number of snapshots to antagonize. Each one ' \
                        'gets its own backing disk. ' \
                        'Default: {}'.format(
                            DEFAULT_CHAOS_NUM_TEST_SNAPSHOTS),
                        default=DEFAULT_CHAOS_NUM_TEST_SNAPSHOTS)

    parser.add_argument('--threads-per-snapshot', type=non_negative_int,
                        help='Number of actors acting on each snapshot. ' \
                        'Default: {}'.format(
                            DEFAULT_CHAOS_THREADS_PER_SNAPSHOT),
                        default=DEFAULT_CHAOS_THREADS_PER_SNAPSHOT)

    parser.add_argument('--fatal-on-server-errors', type=str2bool,
                        help='Stop the run when the control plane answers ' \
                        'a request with a 5xx error. Other error responses ' \
                        'are always ignored. Default: N Options (case ' \
                        'insensitive): y, yes, true, 1, n, no, false, 0',
                        nargs='?', const='Y', default='N')

    parser.add_argument('--invalid-state-fatal', type=str2bool,
                        help='Stop the run when a resource is seen in a ' \
                        'state the antagonists do not expect (e.g. a ' \
                        'failed instance). Default: Y Options (case ' \
                        'insensitive): y, yes, true, 1, n, no, false, 0',
                        nargs='?', const='Y', default='Y')

    parser.add_argument('--max-jitter-ms', type=non_negative_int,
                        help='Upper bound, in milliseconds, of the random ' \
                        'naps antagonists take around each action. ' \
                        'Default: {}'.format(DEFAULT_CHAOS_MAX_JITTER_MS),
                        default=DEFAULT_CHAOS_MAX_JITTER_MS)

    parser.add_argument('--request-timeout', type=float,
                        help='Seconds to wait for each control plane ' \
                        'request. Default: {}'.format(
                            DEFAULT_CHAOS_REQUEST_TIMEOUT),
                        default=DEFAULT_CHAOS_REQUEST_TIMEOUT)

    parser.add_argument('--log-file', help='Also write log messages to ' \
                        'this file. Default: None', default=None)

    parser.add_argument('-t', '--test', action='store_true',
                        default=False, help='Runs unit tests and exits.')

    parser.add_argument('-l', '--log-level', type=log_level, nargs='?',
                        const=logging.INFO, default=logging.INFO,
                        help=LOG_LEVEL_HELP)

    return parser


def parse_args(argv=None, parser=program_args()):
    return parser.parse_args(args=argv)


def init(args):
    logzero.loglevel(args.log_level)
    if args.log_file:
        logzero.logfile(args.log_file, loglevel=args.log_level)
    logger.debug("Initializing...")
    logger.debug("args: %s", args)


async def run_harness(config, interrupt=None):
    """
    Run the harness until a fatal error or SIGINT/SIGTERM.

    :return: Optional[ActorError] - the fatal error, if any
    """
    if interrupt is None:
        interrupt = asyncio.Event()
    loop = asyncio.get_running_loop()
    installed = []
    for signum in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(signum, interrupt.set)
            installed.append(signum)
        except (NotImplementedError, RuntimeError):
            logger.warning("Unable to handle signal %s", signum)

    try:
        async with ControlPlaneClient(config.host, config.token,
                                      timeout=config.request_timeout) as client:
            harness = Harness(config, client)
            return await harness.run(interrupt)
    finally:
        for signum in installed:
            loop.remove_signal_handler(signum)


def main(args):
    try:
        init(args)
    except Exception:
        logger.error('Unable to initialize script')
        raise

    try:
        config = config_from_args(args)
    except ConfigError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    fatal = run(run_harness, config)
    if fatal is not None:
        logger.error("Stress test failed: [%s] %s", fatal.actor, fatal.error)
        return 1
    logger.info("Stress test interrupted, all actors halted")
    return 0


# **************
# *  UNIT TESTS !!!!! (use -t to run them)
# ***************
def test():
    print("The 'unittest' module is not available!\nUnable to run tests!")
    return 0


try:
    import unittest

    def test(args, module='__main__'):
        t = unittest.main(argv=['chaoscontrol_test'], module=module,
                          exit=False, verbosity=10)
        return int(not t.result.wasSuccessful())

    class TestRun(unittest.TestCase):

        @classmethod
        def setUpClass(cls):
            sys.stderr = StringIO()
            logzero.loglevel(logging.CRITICAL + 1)

        def test_arg_log_level(self):
            for k, v in levels.items():
                test_args = parse_args(['-l', k])
                self.assertEqual(test_args.log_level, v)

            test_args = parse_args(['-l'])
            self.assertEqual(test_args.log_level, logging.INFO,
                             msg='Invalid const level')
            test_args = parse_args([])
            self.assertEqual(test_args.log_level, logging.INFO,
                             msg='Invalid default level')

        def test_arg_booleans(self):
            test_args = parse_args([])
            self.assertFalse(test_args.fatal_on_server_errors)
            self.assertTrue(test_args.invalid_state_fatal)

            test_args = parse_args(['--fatal-on-server-errors',
                                    '--invalid-state-fatal', 'no'])
            self.assertTrue(test_args.fatal_on_server_errors)
            self.assertFalse(test_args.invalid_state_fatal)

        def test_arg_defaults(self):
            test_args = parse_args([])
            self.assertEqual(test_args.project, DEFAULT_CHAOS_PROJECT)
            self.assertEqual(test_args.num_test_instances,
                             DEFAULT_CHAOS_NUM_TEST_INSTANCES)
            self.assertEqual(test_args.threads_per_snapshot,
                             DEFAULT_CHAOS_THREADS_PER_SNAPSHOT)
            self.assertIsNone(test_args.host_uri)
            self.assertIsNone(test_args.token)

except ImportError:
    pass

if __name__ == '__main__':
    arguments = parse_args()

    if arguments.test:
        exit_code = test(arguments)
        sys.exit(exit_code)
    else:
        sys.exit(main(arguments))
